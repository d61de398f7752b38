from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from cosmic_split.models.config_models import AppConfig, GeneratorConfig, SessionConfig

"""Config loader.

Responsibilities:
- Load YAML config (default config/cosmic.yml)
- Validate against cosmic_split/config/config_schema.json
- Apply defaults for missing optional keys
- Overlay OPENAI_API_KEY / OPENAI_BASE_URL / OPENAI_MODEL from the environment
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "build_config",
]

DEFAULT_CONFIG_PATH = Path("config/cosmic.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

ENV_API_KEY = "OPENAI_API_KEY"
ENV_BASE_URL = "OPENAI_BASE_URL"
ENV_MODEL = "OPENAI_MODEL"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: The schema file is missing or not valid JSON, or the config data
            fails validation (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path)
        suffix = f" (at {location})" if location else ""
        raise ConfigError(f"config validation failed: {e.message}{suffix}") from e


def build_config(data: Mapping[str, Any], environ: Mapping[str, str] | None = None) -> AppConfig:
    """Turn validated config data into an AppConfig, applying defaults and env overrides."""
    env = os.environ if environ is None else environ
    gen_raw = dict(data.get("generator") or {})
    session_raw = dict(data.get("session") or {})

    gen_defaults = GeneratorConfig()
    generator = GeneratorConfig(
        model=env.get(ENV_MODEL) or gen_raw.get("model") or gen_defaults.model,
        naming_model=gen_raw.get("naming_model"),
        base_url=env.get(ENV_BASE_URL) or gen_raw.get("base_url"),
        api_key=env.get(ENV_API_KEY) or None,
        temperature=float(gen_raw.get("temperature", gen_defaults.temperature)),
        max_tokens=int(gen_raw.get("max_tokens", gen_defaults.max_tokens)),
        timeout_seconds=float(gen_raw.get("timeout_seconds", gen_defaults.timeout_seconds)),
    )

    defaults = SessionConfig()
    session = SessionConfig(
        target_processes=session_raw.get("target_processes", defaults.target_processes),
        max_rounds=session_raw.get("max_rounds", defaults.max_rounds),
        round_delay_seconds=float(session_raw.get("round_delay_seconds", defaults.round_delay_seconds)),
        completed_sample_size=session_raw.get("completed_sample_size", defaults.completed_sample_size),
        existing_names_sample=session_raw.get("existing_names_sample", defaults.existing_names_sample),
        shuffle_seed=session_raw.get("shuffle_seed", defaults.shuffle_seed),
        use_generator_for_naming=session_raw.get(
            "use_generator_for_naming", defaults.use_generator_for_naming
        ),
    )
    return AppConfig(generator=generator, session=session)


def load_config(path: Path = DEFAULT_CONFIG_PATH, environ: Mapping[str, str] | None = None) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)
    return build_config(data, environ)
