"""External generator: contract, OpenAI-compatible client and prompt texts."""

from .base import Generator, GeneratorCancelled, GeneratorError, GeneratorTimeout, call_generator
from .openai_client import OpenAIGenerator

__all__ = [
    "Generator",
    "GeneratorCancelled",
    "GeneratorError",
    "GeneratorTimeout",
    "OpenAIGenerator",
    "call_generator",
]
