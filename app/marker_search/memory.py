"""In-memory content store used for tests and local dry runs."""

from __future__ import annotations

from collections.abc import Iterable

from app.marker_search.models import ContentQuery, ContentRecord


class InMemoryContentStore:
    """Satisfies the ``ContentStore`` contract over a list of records."""

    def __init__(self, records: Iterable[ContentRecord] = ()) -> None:
        self._records = list(records)
        self.queries: list[ContentQuery] = []

    def add(self, record: ContentRecord) -> None:
        self._records.append(record)

    def find_ids(self, query: ContentQuery) -> list[int]:
        self.queries.append(query)
        matches = [record for record in self._records if query.matches(record)]
        matches.sort(key=lambda record: (record.post_date, record.id), reverse=True)
        return [record.id for record in matches]


__all__ = ["InMemoryContentStore"]
