"""Marker search execution against an injected content store."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from app.marker_search.models import (
    PUBLISHED_CONTENT_TYPE,
    PUBLISHED_STATUS,
    ContentQuery,
    ContentStore,
    SearchCriteria,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MarkerSearchQuery:
    post_type: str = PUBLISHED_CONTENT_TYPE
    post_status: str = PUBLISHED_STATUS

    def build(self, criteria: SearchCriteria) -> ContentQuery:
        return ContentQuery(
            post_type=self.post_type,
            post_status=self.post_status,
            after=criteria.after,
            before=criteria.before,
            marker=criteria.marker,
        )

    def execute(self, criteria: SearchCriteria, store: ContentStore) -> list[int]:
        """Run one query and return identifiers in the order the store produced them.

        :class:`~app.marker_search.models.StorageQueryError` from the store
        propagates unchanged.
        """

        query = self.build(criteria)
        identifiers = list(store.find_ids(query))
        logger.debug(
            "Marker search finished",
            extra={
                "after": criteria.after_text,
                "before": criteria.before_text,
                "matches": len(identifiers),
            },
        )
        return identifiers


__all__ = ["MarkerSearchQuery"]
