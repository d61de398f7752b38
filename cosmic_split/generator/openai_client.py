from __future__ import annotations

import logging
from typing import Any

from openai import OpenAI

from cosmic_split.models.config_models import GeneratorConfig

from .base import GeneratorError

"""OpenAI-compatible chat-completions generator.

Works against any endpoint speaking the OpenAI chat-completions protocol (OpenAI,
GLM, self-hosted gateways) through ``base_url``. Prompts arrive fully formed and are
sent as a single user message; the model hint selects the model.
"""

__all__ = [
    "OpenAIGenerator",
]

logger = logging.getLogger(__name__)


class OpenAIGenerator:
    """Implements ``generate(prompt, model_hint)`` on top of the ``openai`` client."""

    def __init__(self, config: GeneratorConfig, client: OpenAI | None = None) -> None:
        if client is None and not config.api_key:
            raise GeneratorError("OPENAI_API_KEY is not set")
        self.config = config
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            kwargs: dict[str, Any] = {
                "api_key": self.config.api_key,
                "timeout": self.config.timeout_seconds,
                "max_retries": 2,
            }
            if self.config.base_url:
                kwargs["base_url"] = self.config.base_url
            self._client = OpenAI(**kwargs)
        return self._client

    def generate(self, prompt: str, model_hint: str) -> str:
        model = model_hint or self.config.model
        logger.debug("generator request model=%s prompt_chars=%d", model, len(prompt))
        completion = self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )
        if not completion.choices:
            return ""
        content = completion.choices[0].message.content or ""
        logger.debug("generator reply chars=%d", len(content))
        return content

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
