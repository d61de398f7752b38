from __future__ import annotations

import logging
import random
import threading
import time
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from cosmic_split.generator.base import Generator, GeneratorCancelled, GeneratorError, call_generator
from cosmic_split.generator.prompts import build_round_prompt, is_completion_signal
from cosmic_split.logging.error_log import ErrorLogBuffer
from cosmic_split.models.config_models import AppConfig
from cosmic_split.models.dataset import Dataset
from cosmic_split.models.row import Row
from cosmic_split.models.session_result import (
    RoundStat,
    RoundStatsAccumulator,
    SessionResult,
    SessionState,
    StopReason,
)

from .batch_parser import parse_reply
from .naming import NameGenerator
from .process_dedup import remove_duplicate_processes
from .progress import RoundProgressTracker
from .uniqueness import UniquenessEngine

"""Round orchestration for one analysis session.

``AnalysisSession`` owns the Dataset and the uniqueness engine; ``run_session`` drives
it against the external generator:

idle -> requesting -> parsing -> evaluating -> (requesting | done | failed)

Stop rules, checked after each round in this order:

1. distinct processes >= target: done (GENERATOR_DONE if the reply also carried the
   completion signal, TARGET_MET otherwise)
2. completion signal with the target unmet: warn and keep going
3. after round 1, a reply that parsed to no rows: done (NO_PROGRESS); a reply that only
   re-emits known processes keeps the session going
4. round cap reached: done (ROUND_CAP)

A failed or cancelled batch request ends the session as FAILED; rows accumulated so far
are kept in the result.
"""

__all__ = [
    "SessionError",
    "AnalysisSession",
    "run_session",
]

logger = logging.getLogger(__name__)


class SessionError(Exception):
    """Session misuse, such as starting without a document."""


class AnalysisSession:
    """Dataset plus the per-session parsing and de-duplication machinery.

    Rounds must be applied strictly one after another: incremental uniqueness reads the
    dataset indexes left by the previous merge.
    """

    def __init__(
        self,
        config: AppConfig,
        generator: Generator | None = None,
        *,
        error_log: ErrorLogBuffer | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.config = config
        self.error_log = error_log
        self.dataset = Dataset()
        self.round_number = 0
        rng = random.Random(config.session.shuffle_seed)
        namer = NameGenerator(
            generator if config.session.use_generator_for_naming else None,
            model_hint=config.generator.effective_naming_model,
            rng=rng,
            existing_sample=config.session.existing_names_sample,
            timeout=config.generator.timeout_seconds,
            cancel_event=cancel_event,
            error_log=error_log,
        )
        self.engine = UniquenessEngine(namer, rng)

    def parse_batch(self, reply: str) -> list[Row]:
        """Rows of one reply, made unique against the dataset and each other."""
        self.engine.namer.round_number = self.round_number
        rows = parse_reply(reply, self.error_log, self.round_number)
        return self.engine.resolve_incremental(rows, self.dataset)

    def merge_round(self, rows: Iterable[Row]) -> int:
        """Append a parsed batch, then run process de-duplication and the exhaustive pass.

        The dataset is only swapped once both passes succeeded. Returns the net number
        of rows added.
        """
        before = len(self.dataset)
        combined = [*self.dataset.rows, *rows]
        kept, _ = remove_duplicate_processes(combined)
        self.dataset.replace_rows(self.engine.resolve_exhaustive(kept))
        return len(self.dataset) - before

    def clear(self) -> None:
        self.dataset.clear()
        self.round_number = 0


def run_session(
    document_text: str,
    target_count: int,
    generator: Generator,
    config: AppConfig,
    *,
    sleep: Callable[[float], None] = time.sleep,
    cancel_event: threading.Event | None = None,
    error_log: ErrorLogBuffer | None = None,
    progress: bool = True,
) -> SessionResult:
    """Run generator rounds until a stop rule fires.

    Args:
        document_text: Source document the functional processes are split from
        target_count: Distinct functional processes wanted
        generator: External text generator
        config: Generator model / timeout and session pacing
        sleep: Pacing function between rounds (replaced in tests)
        cancel_event: Set from another thread to abort; the session ends FAILED
        error_log: Structured error buffer, flushed before returning
        progress: Allow the TTY progress bar

    Returns:
        SessionResult with the final rows and the stop reason

    Raises:
        SessionError: Empty document or non-positive target
    """
    if not (document_text or "").strip():
        raise SessionError("document is empty")
    if target_count < 1:
        raise SessionError(f"target must be positive, got {target_count}")

    if error_log is None:
        error_log = ErrorLogBuffer()
    settings = config.session
    start_time = datetime.now(UTC)
    session = AnalysisSession(config, generator, error_log=error_log, cancel_event=cancel_event)
    timings = RoundStatsAccumulator()
    round_stats: list[RoundStat] = []
    state = SessionState.IDLE
    reason = StopReason.ROUND_CAP
    error: str | None = None

    logger.info(
        "Session start: target=%d processes, max_rounds=%d, model=%s",
        target_count,
        settings.max_rounds,
        config.generator.model,
    )

    with RoundProgressTracker(settings.max_rounds, enabled=progress) as tracker:
        for round_number in range(1, settings.max_rounds + 1):
            if round_number > 1 and settings.round_delay_seconds > 0:
                sleep(settings.round_delay_seconds)
            session.round_number = round_number
            tracker.start_round(round_number)
            round_start = time.monotonic()

            state = SessionState.REQUESTING
            prompt = build_round_prompt(
                document_text,
                round_number,
                target_count,
                session.dataset.process_display_names(),
                settings.completed_sample_size,
            )
            logger.info(
                "Round %d: requesting batch (%d processes so far)",
                round_number,
                session.dataset.distinct_process_count(),
            )
            try:
                reply = call_generator(
                    generator,
                    prompt,
                    config.generator.model,
                    timeout=config.generator.timeout_seconds,
                    cancel_event=cancel_event,
                )
                state = SessionState.PARSING
                parsed = session.parse_batch(reply)
                added = session.merge_round(parsed)
            except GeneratorCancelled as e:
                state, reason, error = SessionState.FAILED, StopReason.CANCELLED, str(e)
                logger.warning("Round %d: cancelled, keeping %d rows", round_number, len(session.dataset))
                error_log.record(round_number, -1, "GENERATOR_FAILURE", f"cancelled: {e}")
                break
            except GeneratorError as e:
                state, reason, error = SessionState.FAILED, StopReason.GENERATOR_FAILURE, str(e)
                logger.error("Round %d: generator failure: %s", round_number, e)
                error_log.record(round_number, -1, "GENERATOR_FAILURE", str(e))
                break

            state = SessionState.EVALUATING
            distinct = session.dataset.distinct_process_count()
            signal = is_completion_signal(reply)
            elapsed = time.monotonic() - round_start
            timings.add_round_time(elapsed)
            round_stats.append(
                RoundStat(
                    round_number=round_number,
                    parsed_rows=len(parsed),
                    kept_rows=added,
                    distinct_processes=distinct,
                    elapsed_seconds=elapsed,
                    completion_signal=signal,
                )
            )
            tracker.finish_round(rows=len(session.dataset), processes=distinct, target=target_count)
            logger.info(
                "Round %d: parsed %d rows, added %d, %d/%d processes",
                round_number,
                len(parsed),
                added,
                distinct,
                target_count,
            )

            if distinct >= target_count:
                state = SessionState.DONE
                reason = StopReason.GENERATOR_DONE if signal else StopReason.TARGET_MET
                break
            if signal:
                logger.warning(
                    "Round %d: generator reported completion with %d/%d processes; continuing",
                    round_number,
                    distinct,
                    target_count,
                )
            if round_number > 1 and not parsed:
                state, reason = SessionState.DONE, StopReason.NO_PROGRESS
                logger.info("Round %d: reply held no rows, stopping", round_number)
                break
            if round_number >= settings.max_rounds:
                state, reason = SessionState.DONE, StopReason.ROUND_CAP
                logger.warning(
                    "Round cap %d reached with %d/%d processes", settings.max_rounds, distinct, target_count
                )
                break

    end_time = datetime.now(UTC)
    count, mean_seconds, max_seconds = timings.get_stats()
    logger.debug("Round timings: n=%d mean=%.2fs max=%.2fs", count, mean_seconds, max_seconds)
    logger.info(
        "Uniqueness: %d data groups renamed, %d attribute lists extended",
        session.engine.renamed_groups,
        session.engine.extended_attributes,
    )

    log_path = error_log.flush()
    if log_path is not None:
        logger.info("Error log written: %s", log_path)

    return SessionResult(
        state=state,
        reason=reason,
        rows=session.dataset.rows,
        rounds=session.round_number,
        max_rounds=settings.max_rounds,
        distinct_processes=session.dataset.distinct_process_count(),
        target_processes=target_count,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        round_stats=round_stats,
        error=error,
    )
