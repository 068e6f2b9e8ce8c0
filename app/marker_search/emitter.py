"""Operator-facing output for marker search results."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TextIO

from app.marker_search.models import MARKER_LABEL, SearchCriteria

NO_RESULTS_TEMPLATE = "No posts found between {after} and {before} containing the {label} block."


@dataclass(slots=True, frozen=True)
class ResultEmitter:
    marker_label: str = MARKER_LABEL

    def emit(self, identifiers: Sequence[int], criteria: SearchCriteria, out: TextIO) -> None:
        """Write one identifier per line, or the informational no-results line."""

        if not identifiers:
            out.write(
                NO_RESULTS_TEMPLATE.format(
                    after=criteria.after_text,
                    before=criteria.before_text,
                    label=self.marker_label,
                )
                + "\n"
            )
            return
        for identifier in identifiers:
            out.write(f"{identifier}\n")


__all__ = ["NO_RESULTS_TEMPLATE", "ResultEmitter"]
