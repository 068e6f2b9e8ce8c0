"""Repository abstractions over the PostgreSQL content table."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from psycopg import sql
from psycopg.errors import Error as PsycopgError

from app.config import DEFAULT_CONTENT_TABLE, AppConfig
from app.db.client import ConnectionMode, get_connection
from app.marker_search.models import ContentQuery, ContentRecord, StorageQueryError

logger = logging.getLogger(__name__)

__all__ = [
    "ConnectionMode",
    "ContentRepository",
    "StorageQueryError",
]


_RECORD_COLUMNS = ("id", "post_type", "post_status", "post_content", "post_date")
_RECORD_VALUES_TEMPLATE = "(" + ", ".join(["%s"] * len(_RECORD_COLUMNS)) + ")"
_RECORD_COLUMNS_SQL = sql.SQL(", ").join(sql.Identifier(col) for col in _RECORD_COLUMNS)

_FIND_MARKER_IDS_SQL = """
    select id
    from {table}
    where
        post_type = %(post_type)s
        and post_status = %(post_status)s
        and post_date >= %(after)s
        and post_date <= %(before)s
        and strpos(post_content, %(marker)s) > 0
    order by post_date desc, id desc
"""


class _RepositoryBase:
    def __init__(
        self,
        *,
        table: str = DEFAULT_CONTENT_TABLE,
        connection_mode: ConnectionMode | str = ConnectionMode.READ_ONLY,
        config: AppConfig | None = None,
    ) -> None:
        self._config = config
        self._table = sql.Identifier(table)
        self._table_name = table
        self._default_mode = ConnectionMode.coerce(connection_mode)

    def _resolve_mode(self, override: ConnectionMode | str | None) -> ConnectionMode:
        if override is None:
            return self._default_mode
        return ConnectionMode.coerce(override)

    def _raise_db_error(self, operation: str, mode: ConnectionMode, exc: PsycopgError) -> None:
        logger.exception(
            "Repository operation failed",
            extra={"operation": operation, "mode": mode.value, "table": self._table_name},
        )
        raise StorageQueryError(operation, str(exc)) from exc


class ContentRepository(_RepositoryBase):
    """Content store backed by a WordPress-style posts table."""

    def find_ids(
        self,
        query: ContentQuery,
        *,
        connection_mode: ConnectionMode | str | None = None,
    ) -> list[int]:
        """Return ids of rows matching ``query``, newest first, without loading bodies."""

        mode = self._resolve_mode(connection_mode)
        statement = sql.SQL(_FIND_MARKER_IDS_SQL).format(table=self._table)
        params: dict[str, Any] = {
            "post_type": query.post_type,
            "post_status": query.post_status,
            "after": query.after,
            "before": query.before,
            "marker": query.marker,
        }
        try:
            with get_connection(mode=mode, config=self._config) as connection:
                cursor = connection.execute(statement, params)
                rows = cursor.fetchall()
        except PsycopgError as exc:  # pragma: no cover - exercised via mocks
            self._raise_db_error("posts.find_marker_ids", mode, exc)
        return [int(row[0]) for row in rows]

    def insert_records(
        self,
        records: Sequence[ContentRecord],
        *,
        connection_mode: ConnectionMode | str | None = ConnectionMode.READ_WRITE,
    ) -> int:
        """Insert content rows in a single statement (fixtures and local seeding)."""

        if not records:
            return 0

        mode = self._resolve_mode(connection_mode)
        params: list[Any] = []
        value_blocks = [sql.SQL(_RECORD_VALUES_TEMPLATE) for _ in records]
        statement = sql.SQL("insert into {table} ({columns}) values {values}").format(
            table=self._table,
            columns=_RECORD_COLUMNS_SQL,
            values=sql.SQL(", ").join(value_blocks),
        )
        for record in records:
            params.extend(
                (
                    record.id,
                    record.post_type,
                    record.post_status,
                    record.post_content,
                    record.post_date,
                )
            )

        try:
            with get_connection(mode=mode, config=self._config) as connection:
                with connection.transaction():
                    cursor = connection.execute(statement, params)
                    return cursor.rowcount
        except PsycopgError as exc:  # pragma: no cover - exercised via mocks
            self._raise_db_error("posts.insert", mode, exc)
        return 0  # pragma: no cover - systematically unreachable

    def delete_records(
        self,
        ids: Sequence[int],
        *,
        connection_mode: ConnectionMode | str | None = ConnectionMode.READ_WRITE,
    ) -> int:
        if not ids:
            return 0

        mode = self._resolve_mode(connection_mode)
        statement = sql.SQL("delete from {table} where id = any(%(ids)s)").format(
            table=self._table
        )
        try:
            with get_connection(mode=mode, config=self._config) as connection:
                with connection.transaction():
                    cursor = connection.execute(statement, {"ids": list(dict.fromkeys(ids))})
                    return cursor.rowcount
        except PsycopgError as exc:  # pragma: no cover - exercised via mocks
            self._raise_db_error("posts.delete", mode, exc)
        return 0  # pragma: no cover - systematically unreachable
