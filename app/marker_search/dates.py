"""Date-range parsing, normalization and validation for marker searches.

Raw ``--date-after`` / ``--date-before`` values are normalized to
``YYYY-MM-DD HH:MM:SS`` strings before validation:

* ``YYYY-MM-DD`` gets ``00:00:00`` appended.
* ``YYYY-MM-DD HH:MM:SS`` passes through unchanged.
* Anything else goes through a calendar-aware parse (relative keywords such
  as ``yesterday`` or ``3 days ago``, then :func:`dateutil.parser.parse`).

Values that cannot be parsed at all fall back to the bound's default and the
substitution is reported as a :class:`DateFallbackApplied`. A strict
resolver reports a :class:`DateFormatError` instead.

Failures are returned, never raised, so the caller decides how to present
them.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Literal

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from app.marker_search.models import (
    READ_MORE_MARKER,
    SearchCriteria,
    format_timestamp,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

Bound = Literal["after", "before"]

DEFAULT_WINDOW_DAYS = 30
FORMAT_HINT = "Use YYYY-MM-DD or YYYY-MM-DD HH:MM:SS."

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_TIME = re.compile(r"^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}$")
_RELATIVE_OFFSET = re.compile(
    r"^(?P<sign>[+-])?\s*(?P<amount>\d+)\s*"
    r"(?P<unit>second|minute|hour|day|week|month|year)s?"
    r"(?P<ago>\s+ago)?$",
    re.IGNORECASE,
)
_RELATIVE_DAYS = {
    "today": 0,
    "midnight": 0,
    "yesterday": -1,
    "tomorrow": 1,
}


@dataclass(slots=True, frozen=True)
class DateFormatError:
    """A bound that still is not an absolute timestamp after normalization."""

    message: str
    bound: Bound | None = None

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True, frozen=True)
class DateRangeError:
    """The lower bound is strictly later than the upper bound."""

    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(slots=True, frozen=True)
class DateFallbackApplied:
    bound: Bound
    raw_value: str
    fallback: str


@dataclass(slots=True, frozen=True)
class DateRangeResolved:
    criteria: SearchCriteria
    fallbacks: tuple[DateFallbackApplied, ...] = ()


DateRangeOutcome = DateRangeResolved | DateFormatError | DateRangeError


@dataclass(slots=True, frozen=True)
class DateRangeResolver:
    """Turn two optional raw strings into validated :class:`SearchCriteria`."""

    window_days: int = DEFAULT_WINDOW_DAYS
    strict: bool = False
    marker: str = READ_MORE_MARKER

    def default_bounds(self, now: datetime) -> tuple[str, str]:
        """Return the ``(after, before)`` defaults, both anchored to ``now``."""

        current = _as_naive_utc(now)
        after = _midnight(current) - timedelta(days=self.window_days)
        return format_timestamp(after), format_timestamp(current)

    def resolve(
        self,
        raw_after: str | None,
        raw_before: str | None,
        *,
        now: datetime,
    ) -> DateRangeOutcome:
        default_after, default_before = self.default_bounds(now)
        fallbacks: list[DateFallbackApplied] = []

        bounds: dict[Bound, str] = {}
        for bound, raw, default in (
            ("after", raw_after, default_after),
            ("before", raw_before, default_before),
        ):
            if raw is None or raw.strip() == "":
                bounds[bound] = default
                continue
            normalized = normalize_date(raw, now=now)
            if normalized is not None:
                bounds[bound] = normalized
                continue
            if self.strict:
                return DateFormatError(
                    f"Invalid date-{bound} value {raw.strip()!r}. {FORMAT_HINT}",
                    bound=bound,
                )
            fallbacks.append(DateFallbackApplied(bound=bound, raw_value=raw, fallback=default))
            bounds[bound] = default

        try:
            after = parse_timestamp(bounds["after"])
            before = parse_timestamp(bounds["before"])
        except ValueError:
            return DateFormatError(f"Invalid date format. {FORMAT_HINT}")
        if after > before:
            return DateRangeError("date-after must be earlier than or equal to date-before.")

        criteria = SearchCriteria(after=after, before=before, marker=self.marker)
        logger.debug(
            "Resolved search window",
            extra={"after": criteria.after_text, "before": criteria.before_text},
        )
        return DateRangeResolved(criteria=criteria, fallbacks=tuple(fallbacks))


def resolve_date_range(
    raw_after: str | None,
    raw_before: str | None,
    *,
    now: datetime,
    strict: bool = False,
) -> DateRangeOutcome:
    return DateRangeResolver(strict=strict).resolve(raw_after, raw_before, now=now)


def normalize_date(raw: str, *, now: datetime) -> str | None:
    """Normalize ``raw`` to ``YYYY-MM-DD HH:MM:SS``; ``None`` when it cannot be parsed.

    Strings already matching one of the two accepted shapes are returned
    without calendar validation; :meth:`DateRangeResolver.resolve` rejects
    impossible dates such as ``2025-13-45`` afterwards.
    """

    value = raw.strip()
    if not value:
        return None
    if _DATE_ONLY.match(value):
        return f"{value} 00:00:00"
    if _DATE_TIME.match(value):
        return value
    parsed = _parse_calendar_expression(value, _as_naive_utc(now))
    if parsed is None:
        return None
    return format_timestamp(parsed)


def _parse_calendar_expression(value: str, now: datetime) -> datetime | None:
    lowered = value.lower()
    if lowered == "now":
        return now
    if lowered in _RELATIVE_DAYS:
        return _midnight(now) + timedelta(days=_RELATIVE_DAYS[lowered])

    match = _RELATIVE_OFFSET.match(lowered)
    if match:
        # "-3 days ago" is ambiguous, only one direction marker is accepted
        if match.group("sign") and match.group("ago"):
            return None
        amount = int(match.group("amount"))
        if match.group("sign") == "-" or match.group("ago"):
            amount = -amount
        try:
            return now + relativedelta(**{f"{match.group('unit')}s": amount})
        except (OverflowError, ValueError):
            return None

    try:
        return _as_naive_utc(date_parser.parse(value, default=_midnight(now)))
    except (OverflowError, ValueError):
        return None


def _as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.replace(microsecond=0)


def _midnight(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


__all__ = [
    "DEFAULT_WINDOW_DAYS",
    "DateFallbackApplied",
    "DateFormatError",
    "DateRangeError",
    "DateRangeOutcome",
    "DateRangeResolved",
    "DateRangeResolver",
    "normalize_date",
    "resolve_date_range",
]
