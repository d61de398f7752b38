from __future__ import annotations

from pathlib import Path

import pytest

from cosmic_split.config.loader import ConfigError, build_config, load_config

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_load_config_success(write_config: Path):
    cfg = load_config(write_config, environ={})
    assert cfg.generator.model == "test-model"
    assert cfg.generator.effective_naming_model == "test-naming-model"
    assert cfg.generator.temperature == 0.5
    assert cfg.generator.max_tokens == 2000
    assert cfg.generator.timeout_seconds == 30.0
    assert cfg.generator.api_key is None
    assert cfg.session.target_processes == 5
    assert cfg.session.round_delay_seconds == 0
    assert cfg.session.shuffle_seed == 7
    assert cfg.session.use_generator_for_naming is False


def test_environment_overrides_generator_connection(write_config: Path):
    env = {"OPENAI_API_KEY": "sk-x", "OPENAI_BASE_URL": "http://gw/v1", "OPENAI_MODEL": "env-model"}
    cfg = load_config(write_config, environ=env)
    assert cfg.generator.api_key == "sk-x"
    assert cfg.generator.base_url == "http://gw/v1"
    assert cfg.generator.model == "env-model"


def test_defaults_apply_when_optional_keys_missing(temp_workdir: Path):
    path = temp_workdir / "config" / "min.yml"
    path.write_text("generator:\n  model: m\n", encoding="utf-8")
    cfg = load_config(path, environ={})
    assert cfg.generator.effective_naming_model == "m"
    assert cfg.generator.max_tokens == 8000
    assert cfg.session.max_rounds == 12
    assert cfg.session.round_delay_seconds == 1.5
    assert cfg.session.completed_sample_size == 30
    assert cfg.session.existing_names_sample == 5
    assert cfg.session.shuffle_seed is None
    assert cfg.session.use_generator_for_naming is True


def test_load_config_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "not_exists.yml")


def test_load_config_invalid_yaml(temp_workdir: Path):
    path = temp_workdir / "config" / "bad.yml"
    path.write_text("generator: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(path)


def test_load_config_non_mapping_root(temp_workdir: Path):
    path = temp_workdir / "config" / "list.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)


def test_load_config_missing_required(write_config: Path):
    text = write_config.read_text(encoding="utf-8").replace("  model: test-model\n", "")
    write_config.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(write_config)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


@pytest.mark.parametrize(
    "old, new",
    [
        ("max_rounds: 12", "max_rounds: 0"),
        ("max_rounds: 12", "max_rounds: twelve"),
        ("shuffle_seed: 7", "shuffle_seed: 7\n  unknown_key: 1"),
    ],
)
def test_load_config_schema_violations(write_config: Path, old: str, new: str):
    write_config.write_text(write_config.read_text(encoding="utf-8").replace(old, new), encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_config(write_config)


def test_build_config_from_mapping():
    cfg = build_config({"generator": {"model": "m"}, "session": {"max_rounds": 3}}, environ={})
    assert cfg.session.max_rounds == 3
    assert cfg.session.target_processes == 30


def test_shipped_config_is_valid():
    cfg = load_config(REPO_ROOT / "config" / "cosmic.yml", environ={})
    assert cfg.session.max_rounds == 12
    assert cfg.generator.model
