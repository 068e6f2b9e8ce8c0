"""`read-more-search` CLI entrypoint.

Prints the ids of published posts that embed the read-more block, newest
first, one per line. Invalid date ranges are reported as warnings and the
command still exits with status 0; a failing database query exits with
status 1.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import UTC, datetime
from functools import partial
from typing import TextIO

from app.cli import _common
from app.db.repositories import ContentRepository
from app.marker_search import (
    ContentStore,
    DateRangeResolved,
    DateRangeResolver,
    MarkerSearchQuery,
    ResultEmitter,
    StorageQueryError,
)

PROG_NAME = "read-more-search"
CLI_NAME = "search"
DESCRIPTION = "List published posts containing the dmg/read-more block within a date range."
EXIT_STORAGE_ERROR = 1

logger = _common.cli_logger(CLI_NAME)


def build_parser() -> argparse.ArgumentParser:
    # stdout carries the result ids, keep log records off it
    parser = _common.build_parser(prog=PROG_NAME, description=DESCRIPTION, log_destination="stderr")
    parser.add_argument(
        "--date-after",
        metavar="DATE",
        help=(
            "Inclusive lower bound. Accepts YYYY-MM-DD or YYYY-MM-DD HH:MM:SS. "
            "Defaults to 30 days ago at 00:00:00."
        ),
    )
    parser.add_argument(
        "--date-before",
        metavar="DATE",
        help="Inclusive upper bound. Accepts YYYY-MM-DD or YYYY-MM-DD HH:MM:SS. Defaults to now.",
    )
    parser.add_argument(
        "--strict-dates",
        action="store_true",
        help="Reject unparseable dates instead of falling back to the defaults.",
    )
    return parser


def run(
    args: argparse.Namespace,
    *,
    store: ContentStore | None = None,
    now: datetime | None = None,
    out: TextIO | None = None,
) -> int:
    current = now if now is not None else datetime.now(tz=UTC)
    resolver = DateRangeResolver(strict=args.strict_dates)
    outcome = resolver.resolve(args.date_after, args.date_before, now=current)
    if not isinstance(outcome, DateRangeResolved):
        logger.warning("Error executing search: %s", outcome, extra={"cli": CLI_NAME})
        return 0

    for fallback in outcome.fallbacks:
        logger.warning(
            "Could not parse date-%s, using %s",
            fallback.bound,
            fallback.fallback,
            extra={"cli": CLI_NAME, "raw_value": fallback.raw_value},
        )

    criteria = outcome.criteria
    if store is None:
        config = args.app_config
        store = ContentRepository(table=config.content.table, config=config)
    identifiers = MarkerSearchQuery().execute(criteria, store)
    ResultEmitter().emit(identifiers, criteria, out if out is not None else sys.stdout)
    return 0


def main(
    argv: Sequence[str] | None = None,
    *,
    store: ContentStore | None = None,
    now: datetime | None = None,
    out: TextIO | None = None,
) -> int:
    parser = build_parser()
    runner = partial(run, store=store, now=now, out=out)
    try:
        return _common.run_cli(
            parser, argv, cli_name=CLI_NAME, display_name="Search", runner=runner
        )
    except StorageQueryError as exc:
        logger.critical(
            "Search query failed",
            extra={"cli": CLI_NAME, "operation": exc.operation, "error": str(exc)},
        )
        return EXIT_STORAGE_ERROR


if __name__ == "__main__":  # pragma: no cover - manual execution guard
    raise SystemExit(main())


__all__ = ["build_parser", "main", "run"]
