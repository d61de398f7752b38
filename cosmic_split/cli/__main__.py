from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from cosmic_split.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from cosmic_split.generator.base import GeneratorError
from cosmic_split.generator.openai_client import OpenAIGenerator
from cosmic_split.logging.error_log import ErrorLogBuffer
from cosmic_split.logging.init import log_summary, setup_logging
from cosmic_split.models.config_models import AppConfig, GeneratorConfig, SessionConfig
from cosmic_split.models.session_result import SessionResult
from cosmic_split.services.orchestrator import AnalysisSession, SessionError, run_session
from cosmic_split.services.summary import render_summary_line
from cosmic_split.table.frame import write_csv

"""CLI entrypoint.

Flow:
- Load .env (overriding the process environment) and the YAML config
- Read the document and run generator rounds until a stop rule fires
- Write the rows as CSV when --output is given and log the SUMMARY line

``--parse-only`` skips the generator and runs a saved reply through the same parsing,
uniqueness and de-duplication steps as one session round.

Exit codes: 0 target met (or parse-only success), 2 finished with the target unmet,
1 fatal error or failed session.
"""

EXIT_SUCCESS = 0
EXIT_TARGET_UNMET = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; .env values win over the existing environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="cosmic-split",
        description="Split a requirements document into COSMIC functional processes",
    )
    p.add_argument("document", nargs="?", type=Path, help="Requirements document (plain text or Markdown)")
    p.add_argument("--target", type=int, default=None, help="Distinct functional processes wanted")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="YAML config path")
    p.add_argument("--output", type=Path, default=None, help="Write the resulting rows as CSV")
    p.add_argument("--fill-merged", action="store_true", help="Fill blank merged cells downward in the CSV")
    p.add_argument("--parse-only", type=Path, default=None, metavar="REPLY_FILE",
                   help="Parse a saved generator reply without calling the generator")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def _parse_only(args: argparse.Namespace, logger) -> int:
    """Run one saved reply through the session pipeline (uniqueness and de-duplication)."""
    try:
        reply = _read_text(args.parse_only)
    except OSError as e:
        logger.error(f"reply file: {e}")
        return EXIT_FATAL
    # The config is optional here; it only contributes the shuffle seed
    cfg = AppConfig(generator=GeneratorConfig(), session=SessionConfig())
    if args.config.exists():
        try:
            cfg = load_config(args.config)
        except ConfigError as e:
            logger.error(f"config: {e}")
            return EXIT_FATAL

    error_log = ErrorLogBuffer()
    session = AnalysisSession(cfg, None, error_log=error_log)
    parsed = session.parse_batch(reply)
    logger.info(f"parsed {len(parsed)} rows from {args.parse_only}")
    session.merge_round(parsed)
    rows = session.dataset.rows
    logger.info(f"kept {len(rows)} rows, {session.dataset.distinct_process_count()} processes")
    if args.output is not None:
        written = write_csv(rows, args.output, fill_merged=args.fill_merged)
        logger.info(f"wrote {written} rows to {args.output}")
    log_path = error_log.flush()
    if log_path is not None:
        logger.info(f"error log: {log_path}")
    return EXIT_SUCCESS


def _exit_code(result: SessionResult) -> int:
    if result.failed:
        return EXIT_FATAL
    if result.target_met:
        return EXIT_SUCCESS
    return EXIT_TARGET_UNMET


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # Only read sys.argv when no argument list was passed in (tests pass [])
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    if args.debug:
        setup_logging(debug=True)
        logger.debug("debug mode enabled")

    if args.parse_only is not None:
        return _parse_only(args, logger)

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.document is None:
        logger.error("document path is required unless --parse-only is given")
        return EXIT_FATAL
    try:
        document_text = _read_text(args.document)
    except OSError as e:
        logger.error(f"document: {e}")
        return EXIT_FATAL

    target = args.target if args.target is not None else cfg.session.target_processes
    try:
        generator = OpenAIGenerator(cfg.generator)
    except GeneratorError as e:
        logger.error(f"generator: {e}")
        return EXIT_FATAL

    logger.info(f"Splitting {args.document} (target {target} processes)")
    try:
        result = run_session(document_text, target, generator, cfg)
    except SessionError as e:
        logger.error(f"session: {e}")
        return EXIT_FATAL
    finally:
        generator.close()

    if result.failed:
        logger.error(f"session failed in round {result.rounds}: {result.error}")
    if args.output is not None and result.rows:
        written = write_csv(result.rows, args.output, fill_merged=args.fill_merged)
        logger.info(f"wrote {written} rows to {args.output}")

    summary_line = render_summary_line(result)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(summary_line[len("SUMMARY "):])
    return _exit_code(result)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
