from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Protocol, runtime_checkable

"""External generator contract.

The generator is an opaque text-completion service: ``generate(prompt, model_hint)``
returns text or raises. Every call goes through ``call_generator``, which adds a timeout,
an optional cancellation event, and maps every failure (including an empty reply) onto
``GeneratorError`` so callers handle exactly one exception family.
"""

__all__ = [
    "Generator",
    "GeneratorError",
    "GeneratorTimeout",
    "GeneratorCancelled",
    "call_generator",
]

# Granularity of the cancellation check while a call is in flight
_POLL_SECONDS = 0.1


@runtime_checkable
class Generator(Protocol):
    def generate(self, prompt: str, model_hint: str) -> str: ...


class GeneratorError(Exception):
    """The generator call failed, timed out, was cancelled or returned nothing."""


class GeneratorTimeout(GeneratorError):
    pass


class GeneratorCancelled(GeneratorError):
    pass


def call_generator(
    generator: Generator,
    prompt: str,
    model_hint: str,
    *,
    timeout: float | None = None,
    cancel_event: threading.Event | None = None,
) -> str:
    """Invoke the generator with timeout / cancellation and return the stripped reply.

    Without a timeout or cancel event the call runs inline. Otherwise it runs on a
    single worker thread while this thread waits; an abandoned call is left to finish
    in the background and its result is discarded.

    Raises:
        GeneratorTimeout: No reply within ``timeout`` seconds
        GeneratorCancelled: ``cancel_event`` was set before or during the call
        GeneratorError: The generator raised, or replied with blank text
    """
    if cancel_event is not None and cancel_event.is_set():
        raise GeneratorCancelled("cancelled before generator call")

    if timeout is None and cancel_event is None:
        reply = _invoke(generator, prompt, model_hint)
    else:
        reply = _invoke_guarded(generator, prompt, model_hint, timeout, cancel_event)

    text = (reply or "").strip()
    if not text:
        raise GeneratorError("generator returned an empty reply")
    return text


def _invoke(generator: Generator, prompt: str, model_hint: str) -> str:
    try:
        return generator.generate(prompt, model_hint)
    except GeneratorError:
        raise
    except Exception as e:
        raise GeneratorError(f"generator call failed: {e}") from e


def _invoke_guarded(
    generator: Generator,
    prompt: str,
    model_hint: str,
    timeout: float | None,
    cancel_event: threading.Event | None,
) -> str:
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="generator")
    try:
        future = executor.submit(_invoke, generator, prompt, model_hint)
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            if deadline is None:
                step = _POLL_SECONDS
            else:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    future.cancel()
                    raise GeneratorTimeout(f"generator did not reply within {timeout:g}s")
                step = remaining if cancel_event is None else min(_POLL_SECONDS, remaining)
            try:
                return future.result(timeout=step)
            except FutureTimeoutError:
                if cancel_event is not None and cancel_event.is_set():
                    future.cancel()
                    raise GeneratorCancelled("cancelled while waiting for generator") from None
    finally:
        executor.shutdown(wait=False)
