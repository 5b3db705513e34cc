from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys
from typing import Sequence

from serial_worker.config import get_settings
from serial_worker.log import configure_logging
from serial_worker.plan import PlanError, build_worker, load_plan

EXIT_OK = 0
EXIT_ATTEMPTS_EXHAUSTED = 1
EXIT_FATAL = 2

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="serial-worker",
        description="Run a JSON plan of shell jobs in order, confirming each one before the next",
    )
    parser.add_argument("plan", type=Path, help="Path to the JSON plan file")
    parser.add_argument(
        "--attempts",
        type=int,
        default=None,
        help="Total attempts for the whole run (defaults to SERIAL_WORKER_MAX_ATTEMPTS)",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (defaults to SERIAL_WORKER_LOG_LEVEL)",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    if args.attempts is not None and args.attempts < 1:
        parser.error("--attempts must be at least 1")

    try:
        worker = build_worker(load_plan(args.plan))
        succeeded = asyncio.run(worker.run(args.attempts))
    except PlanError as exc:
        print(f"[serial-worker] invalid plan: {exc}", file=sys.stderr, flush=True)
        return EXIT_FATAL
    except Exception as exc:
        print(f"[serial-worker] failed: {exc}", file=sys.stderr, flush=True)
        return EXIT_FATAL

    if not succeeded:
        logger.warning("plan did not complete plan=%s", args.plan)
        return EXIT_ATTEMPTS_EXHAUSTED
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
