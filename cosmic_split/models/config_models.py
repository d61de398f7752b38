from __future__ import annotations

from dataclasses import dataclass

"""Config dataclasses.

Populated by cosmic_split/config/loader.py after schema validation and defaulting.
Environment variables (OPENAI_API_KEY / OPENAI_BASE_URL / OPENAI_MODEL) take precedence
over file values for the generator connection.
"""

DEFAULT_MODEL = "glm-4-flash"


@dataclass(frozen=True)
class GeneratorConfig:
    """Connection and sampling settings for the external generator."""
    model: str = DEFAULT_MODEL
    naming_model: str | None = None  # Falls back to model
    base_url: str | None = None
    api_key: str | None = None  # Only ever taken from the environment
    temperature: float = 0.7
    max_tokens: int = 8000
    timeout_seconds: float = 120.0

    @property
    def effective_naming_model(self) -> str:
        return self.naming_model or self.model


@dataclass(frozen=True)
class SessionConfig:
    """Round orchestration settings."""
    target_processes: int = 30
    max_rounds: int = 12
    round_delay_seconds: float = 1.5
    completed_sample_size: int = 30  # Completed names quoted back to the generator
    existing_names_sample: int = 5  # Existing names quoted in naming prompts
    shuffle_seed: int | None = None  # Fixes attribute-list shuffling when set
    use_generator_for_naming: bool = True


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    generator: GeneratorConfig
    session: SessionConfig
