from __future__ import annotations

import random

from cosmic_split.models.dataset import Dataset, attribute_key, normalize_key
from cosmic_split.models.row import MovementKind, Row
from cosmic_split.services.field_synthesis import split_attributes
from cosmic_split.services.uniqueness import UniquenessEngine, attribute_field_candidates, group_strategies


def _row(group: str, attrs: str = "a, b, c", description: str = "读取设备状态", process: str = "查询设备") -> Row:
    return Row(
        functional_user="",
        trigger_event="",
        functional_process="",
        sub_process_description=description,
        movement_kind=MovementKind.READ,
        data_group=group,
        data_attributes=attrs,
        parent_process=process,
    )


def _assert_pairwise_unique(rows: list[Row]) -> None:
    groups = [normalize_key(r.data_group) for r in rows]
    attrs = [attribute_key(r.data_attributes) for r in rows]
    assert len(set(groups)) == len(groups)
    assert len(set(attrs)) == len(attrs)


def test_group_strategies_order_and_truncation():
    assert group_strategies("设备信息", "读取设备状态", "查询设备列表", 1) == [
        "设备信息·读取设备状态",
        "读取设备信息",
        "设备信息设备状态表",
        "查询设备设备信息",
        "设备信息·2号",
    ]
    long_name = "很" * 25
    assert all(len(c) <= 20 for c in group_strategies(long_name, "读取设备状态", "", 1))


def test_group_strategies_skip_empty_ingredients():
    assert group_strategies("G", "", "", 2) == ["G·3号"]


def test_attribute_field_candidates_drop_short_names():
    assert attribute_field_candidates("", "", "", 0) == ["扩展字段1"]
    assert attribute_field_candidates("读取设备状态", "查询设备", "设备详情表", 1)[:2] == [
        "读取设备状态参数",
        "设备详情读取字段",
    ]


def test_incremental_resolves_against_dataset():
    dataset = Dataset([_row("设备信息", "编号, 名称, 时间")])
    engine = UniquenessEngine(rng=random.Random(0))
    (row,) = engine.resolve_incremental([_row("设备信息", "类型, 状态, 版本", "删除设备记录", "删除设备")], dataset)
    assert row.data_group == "设备信息删除设备记录"
    assert row.data_attributes == "类型, 状态, 版本"


def test_incremental_chain_of_collisions_is_resolved_against_prior_resolutions():
    engine = UniquenessEngine(rng=random.Random(0))
    rows = [_row("用户信息", f"f{i}, g{i}, h{i}", "读取用户") for i in range(3)]
    resolved = engine.resolve_incremental(rows, Dataset())
    assert resolved[0].data_group == "用户信息"
    assert resolved[1].data_group == "用户信息读取用户"
    assert resolved[2].data_group == "用户信息·读取用户"
    _assert_pairwise_unique(resolved)


def test_incremental_attribute_collision_appends_one_field():
    engine = UniquenessEngine(rng=random.Random(0))
    first, second = engine.resolve_incremental(
        [_row("设备详情表", "编号, 名称, 时间"), _row("设备列表", "编号, 名称, 时间")], Dataset()
    )
    assert first.data_attributes == "编号, 名称, 时间"
    fields = split_attributes(second.data_attributes)
    assert len(fields) == 4
    assert {"编号", "名称", "时间"} <= set(fields)
    assert attribute_key(second.data_attributes) != attribute_key(first.data_attributes)


def test_seeded_shuffle_is_reproducible():
    rows = [_row("设备详情表", "编号, 名称, 时间, 类型, 状态"), _row("设备列表", "编号, 名称, 时间, 类型, 状态")]
    a = UniquenessEngine(rng=random.Random(5)).resolve_incremental(rows, Dataset())
    b = UniquenessEngine(rng=random.Random(5)).resolve_incremental(rows, Dataset())
    assert a == b


def test_exhaustive_keeps_first_and_avoids_names_still_ahead():
    rows = [
        _row("设备信息", "a, b, c"),
        _row("设备信息", "a, b, c"),
        _row("设备信息·读取设备状态", "d, e, f"),
    ]
    result = UniquenessEngine(rng=random.Random(0)).resolve_exhaustive(rows)
    assert result[0] == rows[0]
    assert result[2] == rows[2]
    assert result[1].data_group == "读取设备信息"
    fields = split_attributes(result[1].data_attributes)
    assert set(fields) == {"a", "b", "c", "读取设备状态参数"}
    _assert_pairwise_unique(result)


def test_exhaustive_counter_is_last_resort():
    rows = [
        _row("G", "a1, b1, c1", "", ""),
        _row("G", "a2, b2, c2", "", ""),
        _row("G·2号", "a3, b3, c3", "", ""),
        _row("G扩展表", "a4, b4, c4", "", ""),
    ]
    result = UniquenessEngine(rng=random.Random(0)).resolve_exhaustive(rows)
    assert result[1].data_group == "G·2"
    _assert_pairwise_unique(result)


def test_exhaustive_makes_whole_dataset_pairwise_unique():
    descriptions = ["读取设备状态", "写入设备记录", "删除设备", "检查配置", "", "读取设备状态"]
    rows = [_row("数据", "x, y, z", d, f"过程{i}") for i, d in enumerate(descriptions)]
    result = UniquenessEngine(rng=random.Random(1)).resolve_exhaustive(rows)
    _assert_pairwise_unique(result)
    assert all(len(split_attributes(r.data_attributes)) >= 3 for r in result)
    assert result[0].data_group == "数据"


def test_exhaustive_pass_is_idempotent():
    rows = [_row("数据", "x, y, z", d) for d in ["读取设备状态", "写入设备记录", "删除设备"]]
    engine = UniquenessEngine(rng=random.Random(2))
    once = engine.resolve_exhaustive(rows)
    twice = engine.resolve_exhaustive(once)
    assert twice == once


def test_collisions_are_case_insensitive():
    rows = [_row("Device", "ID, Name, Time"), _row("device", "id, name, time")]
    result = UniquenessEngine(rng=random.Random(0)).resolve_exhaustive(rows)
    assert result[1].data_group != "device"
    _assert_pairwise_unique(result)


def _shared_attribute_rows(groups: list[str]) -> list[Row]:
    return [_row(group, "编号, 名称, 时间") for group in groups]


def test_exhaustive_attribute_lists_differ_as_sets_not_just_order():
    for seed in range(20):
        rows = _shared_attribute_rows(["设备甲", "设备乙", "设备丙", "设备丁"])
        result = UniquenessEngine(rng=random.Random(seed)).resolve_exhaustive(rows)
        field_sets = [attribute_key(r.data_attributes) for r in result]
        assert len(set(field_sets)) == 4, (seed, [r.data_attributes for r in result])
        assert result[0].data_attributes == "编号, 名称, 时间"


def test_incremental_attribute_lists_differ_as_sets_not_just_order():
    for seed in range(20):
        rows = _shared_attribute_rows(["设备甲乙丙", "设备丁", "设备戊", "设备己"])
        result = UniquenessEngine(rng=random.Random(seed)).resolve_incremental(rows, Dataset())
        field_sets = [attribute_key(r.data_attributes) for r in result]
        assert len(set(field_sets)) == 4, (seed, [r.data_attributes for r in result])


def test_reordered_list_from_the_generator_counts_as_a_collision():
    dataset = Dataset([_row("设备信息", "编号, 名称, 时间")])
    engine = UniquenessEngine(rng=random.Random(0))
    (row,) = engine.resolve_incremental([_row("设备列表", "时间, 编号, 名称")], dataset)
    assert attribute_key(row.data_attributes) != attribute_key("编号, 名称, 时间")
    assert attribute_key("编号, 名称, 时间") < attribute_key(row.data_attributes)


def test_engine_counts_resolutions():
    engine = UniquenessEngine(rng=random.Random(0))
    engine.resolve_exhaustive([_row("G", "a, b, c"), _row("G", "a, b, c"), _row("H", "d, e, f")])
    assert engine.renamed_groups == 1
    assert engine.extended_attributes == 1
