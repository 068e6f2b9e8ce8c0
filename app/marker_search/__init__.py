"""Search published posts that embed the read-more block within a date range."""

from __future__ import annotations

from app.marker_search.dates import (
    DateFallbackApplied,
    DateFormatError,
    DateRangeError,
    DateRangeOutcome,
    DateRangeResolved,
    DateRangeResolver,
    normalize_date,
    resolve_date_range,
)
from app.marker_search.emitter import ResultEmitter
from app.marker_search.memory import InMemoryContentStore
from app.marker_search.models import (
    PUBLISHED_CONTENT_TYPE,
    PUBLISHED_STATUS,
    READ_MORE_MARKER,
    ContentQuery,
    ContentRecord,
    ContentStore,
    SearchCriteria,
    StorageQueryError,
)
from app.marker_search.query import MarkerSearchQuery

__all__ = [
    "PUBLISHED_CONTENT_TYPE",
    "PUBLISHED_STATUS",
    "READ_MORE_MARKER",
    "ContentQuery",
    "ContentRecord",
    "ContentStore",
    "DateFallbackApplied",
    "DateFormatError",
    "DateRangeError",
    "DateRangeOutcome",
    "DateRangeResolved",
    "DateRangeResolver",
    "InMemoryContentStore",
    "MarkerSearchQuery",
    "ResultEmitter",
    "SearchCriteria",
    "StorageQueryError",
    "normalize_date",
    "resolve_date_range",
]
