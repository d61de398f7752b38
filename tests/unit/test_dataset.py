from __future__ import annotations

from cosmic_split.models.dataset import Dataset, attribute_key, normalize_key
from cosmic_split.models.row import MovementKind, Row


def _row(process: str, group: str, attrs: str, kind: MovementKind = MovementKind.ENTRY) -> Row:
    return Row(
        functional_user="",
        trigger_event="",
        functional_process=process,
        sub_process_description="d",
        movement_kind=kind,
        data_group=group,
        data_attributes=attrs,
        parent_process=process,
    )


def test_normalize_key():
    assert normalize_key("  Device Info ") == "device info"
    assert normalize_key(None) == ""


def test_attribute_key_ignores_order_case_and_delimiters():
    assert attribute_key("编号, 名称, Time") == frozenset({"编号", "名称", "time"})
    assert attribute_key("名称、time，编号") == attribute_key("编号, 名称, Time")
    assert attribute_key(" | ") == frozenset()
    assert attribute_key(None) == frozenset()


def test_indexes_are_case_insensitive():
    ds = Dataset([
        _row("查询设备", "Device", "a, b, c"),
        _row("", "device", "A, B, C", MovementKind.READ),
        _row("QUERY", "其他", "x, y, z"),
        _row("query", "其他2", "x2, y2, z2"),
    ])
    assert ds.group_index["device"] == [0, 1]
    assert ds.attribute_index[frozenset({"a", "b", "c"})] == [0, 1]
    assert ds.distinct_process_count() == 2
    assert ds.process_display_names() == ["查询设备", "QUERY"]


def test_reordered_attribute_lists_share_one_index_entry():
    ds = Dataset([_row("P", "g1", "编号, 名称, 时间"), _row("", "g2", "时间, 编号, 名称", MovementKind.READ)])
    assert ds.attribute_index == {frozenset({"编号", "名称", "时间"}): [0, 1]}


def test_replace_rows_keeps_indexes_current():
    ds = Dataset([_row("P1", "g1", "a1, b1, c1"), _row("P2", "g2", "a2, b2, c2")])
    assert ds.group_index == {"g1": [0], "g2": [1]}
    ds.replace_rows([ds[1]])
    assert ds.group_index == {"g2": [0]}
    assert ds.process_names == {"p2"}
    ds.clear()
    assert len(ds) == 0
    assert ds.distinct_process_count() == 0


def test_rows_property_is_a_copy():
    ds = Dataset([_row("P", "g", "a, b, c")])
    rows = ds.rows
    rows.clear()
    assert len(ds) == 1
    assert [r.data_group for r in ds] == ["g"]
