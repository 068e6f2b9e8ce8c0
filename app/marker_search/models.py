"""Value objects and the content-store contract for marker searches."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
READ_MORE_MARKER = "<!-- wp:dmg/read-more"
MARKER_LABEL = "dmg/read-more"
PUBLISHED_CONTENT_TYPE = "post"
PUBLISHED_STATUS = "publish"


class StorageQueryError(RuntimeError):
    """Raised when the content store fails to execute a query."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


@dataclass(slots=True, frozen=True)
class ContentRecord:
    id: int
    post_type: str
    post_status: str
    post_content: str
    post_date: datetime


@dataclass(slots=True, frozen=True)
class SearchCriteria:
    after: datetime
    before: datetime
    marker: str = READ_MORE_MARKER

    def __post_init__(self) -> None:
        if self.after > self.before:
            raise ValueError("after must be earlier than or equal to before")

    @property
    def after_text(self) -> str:
        return format_timestamp(self.after)

    @property
    def before_text(self) -> str:
        return format_timestamp(self.before)


@dataclass(slots=True, frozen=True)
class ContentQuery:
    """Fully bound filter handed to a :class:`ContentStore`."""

    post_type: str
    post_status: str
    after: datetime
    before: datetime
    marker: str

    def matches(self, record: ContentRecord) -> bool:
        return (
            record.post_type == self.post_type
            and record.post_status == self.post_status
            and self.after <= record.post_date <= self.before
            and self.marker in record.post_content
        )


class ContentStore(Protocol):
    """Read-only access to published content.

    Implementations return matching identifiers ordered by publication
    timestamp descending, then identifier descending.
    """

    def find_ids(self, query: ContentQuery) -> Sequence[int]:
        ...


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, TIMESTAMP_FORMAT)
