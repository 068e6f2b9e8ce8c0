from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime

import app.config as app_config
import pytest
from app.db import repositories
from app.db.client import reset_pools
from app.marker_search import READ_MORE_MARKER, ContentRecord


def build_record(
    record_id: int,
    post_date: datetime,
    *,
    with_marker: bool = True,
    post_status: str = "publish",
    post_type: str = "post",
) -> ContentRecord:
    body = "<!-- wp:paragraph --><p>Intro</p><!-- /wp:paragraph -->"
    if with_marker:
        body += f'\n{READ_MORE_MARKER} {{"postId":{record_id + 100}}} /-->'
    return ContentRecord(
        id=record_id,
        post_type=post_type,
        post_status=post_status,
        post_content=body,
        post_date=post_date,
    )


@dataclass(slots=True)
class DbRepositoryTestContext:
    content_repo: repositories.ContentRepository
    _record_ids: set[int] = field(default_factory=set)

    def register_records(self, records: Iterable[ContentRecord]) -> None:
        for record in records:
            self._record_ids.add(record.id)

    def cleanup(self) -> None:
        if not self._record_ids:
            return
        self.content_repo.delete_records(sorted(self._record_ids))


@pytest.fixture(scope="session")
def _database_environment() -> Iterator[app_config.AppConfig]:
    try:
        config = app_config.load_config()
    except app_config.ConfigError as exc:  # pragma: no cover - depends on local secrets
        pytest.skip(f"Database tests skipped: {exc}")
    app_config._CONFIG_CACHE = config

    from scripts import migrate

    try:
        exit_code = migrate.main(["up"])
    except Exception as exc:  # pragma: no cover - depends on environment
        pytest.skip(f"Database tests skipped: failed to connect to the database ({exc}).")
    if exit_code != 0:  # pragma: no cover - would require broken database
        pytest.skip("Failed to apply migrations for database tests.")

    reset_pools()
    try:
        yield config
    finally:
        reset_pools()


@pytest.fixture()
def db_test_context(
    _database_environment: app_config.AppConfig,
) -> Iterator[DbRepositoryTestContext]:
    context = DbRepositoryTestContext(
        content_repo=repositories.ContentRepository(
            table=_database_environment.content.table,
            config=_database_environment,
        ),
    )
    try:
        yield context
    finally:
        context.cleanup()
