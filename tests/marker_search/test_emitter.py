from __future__ import annotations

import io
from datetime import datetime

from app.marker_search import ResultEmitter, SearchCriteria

CRITERIA = SearchCriteria(after=datetime(2025, 1, 1), before=datetime(2025, 1, 31, 12, 0, 0))


def test_empty_result_writes_single_informational_line() -> None:
    out = io.StringIO()

    ResultEmitter().emit([], CRITERIA, out)

    assert out.getvalue() == (
        "No posts found between 2025-01-01 00:00:00 and 2025-01-31 12:00:00 "
        "containing the dmg/read-more block.\n"
    )


def test_identifiers_are_written_in_received_order() -> None:
    out = io.StringIO()

    ResultEmitter().emit([42, 7, 42, 100], CRITERIA, out)

    assert out.getvalue().splitlines() == ["42", "7", "42", "100"]
