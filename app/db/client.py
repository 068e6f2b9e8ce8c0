"""Pooled psycopg connections to the content database.

Pools are keyed by the resolved :class:`PoolSettings`, so a caller that loaded
its own configuration (for example a CLI run with ``--env-file``) is served by
a pool for that database and never by one built from the default sources.
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any

from psycopg import Connection, conninfo, sql
from psycopg.errors import Error as PsycopgError
from psycopg_pool import ConnectionPool

from app.config import AppConfig, ConfigError, get_config, load_config

logger = logging.getLogger(__name__)

APPLICATION_NAME = "read-more-locator"


class ConnectionMode(str, Enum):
    READ_ONLY = "read-only"
    READ_WRITE = "read-write"

    @classmethod
    def coerce(cls, value: ConnectionMode | str | None) -> ConnectionMode:
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.READ_ONLY
        normalized = str(value).strip().lower().replace("_", "-")
        for member in cls:
            if member.value == normalized:
                return member
        raise ValueError(f"Unknown connection mode: {value!r}")


@dataclass(frozen=True, slots=True)
class PoolSettings:
    mode: ConnectionMode
    conninfo: str
    schema: str
    idle_in_transaction_timeout_ms: int = 5_000

    @classmethod
    def from_config(cls, config: AppConfig, mode: ConnectionMode) -> PoolSettings:
        database = config.database
        return cls(
            mode=mode,
            conninfo=conninfo.make_conninfo(
                database.url,
                dbname=database.name,
                application_name=f"{APPLICATION_NAME}:{mode.value}",
            ),
            schema=database.schema,
        )

    @property
    def read_only(self) -> bool:
        return self.mode is ConnectionMode.READ_ONLY


_POOLS: dict[PoolSettings, ConnectionPool] = {}
_POOL_LOCK = Lock()


@contextmanager
def get_connection(
    *,
    mode: ConnectionMode | str = ConnectionMode.READ_ONLY,
    config: AppConfig | None = None,
) -> Iterator[Connection[Any]]:
    """Yield a pooled connection for ``config`` (default sources when omitted)."""

    settings = PoolSettings.from_config(
        config if config is not None else get_config(),
        ConnectionMode.coerce(mode),
    )
    pool = _pool_for(settings)
    try:
        with pool.connection() as connection:
            yield connection
    except PsycopgError:
        logger.exception(
            "Database connection failed",
            extra={"mode": settings.mode.value, "conninfo": _mask_conninfo(settings.conninfo)},
        )
        raise


def reset_pools() -> None:
    """Close every open pool; the next :func:`get_connection` starts fresh."""

    with _POOL_LOCK:
        pools = list(_POOLS.values())
        _POOLS.clear()
    for pool in pools:
        pool.close()


def doctor(
    *,
    mode: ConnectionMode | str = ConnectionMode.READ_ONLY,
    config: AppConfig | None = None,
) -> bool:
    """Run ``select 1`` against the content database and report the outcome."""

    resolved = ConnectionMode.coerce(mode)
    try:
        with get_connection(mode=resolved, config=config) as connection:
            connection.execute("select 1")
    except (ConfigError, PsycopgError) as exc:
        print(f"Database connection failed ({resolved.value} mode): {exc}", file=sys.stderr)
        return False

    print(f"Database connection OK ({resolved.value} mode).")
    return True


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Content database connection utilities.")
    subparsers = parser.add_subparsers(dest="command")

    doctor_parser = subparsers.add_parser("doctor", help="Validate the database connection.")
    doctor_parser.add_argument(
        "--mode",
        default=ConnectionMode.READ_ONLY.value,
        choices=[mode.value for mode in ConnectionMode],
        help="Open the connection read-only (search) or read-write (migrations).",
    )
    doctor_parser.add_argument("--env-file", type=Path, help="Path to a .env file to load.")
    doctor_parser.add_argument("--config-file", type=Path, help="Path to a TOML config file.")

    args = parser.parse_args(argv)
    if args.command != "doctor":
        parser.print_help()
        return 1

    try:
        config = load_config(env_file=args.env_file, config_file=args.config_file)
    except ConfigError as exc:
        print(f"Configuration invalid: {exc}", file=sys.stderr)
        return 1
    return 0 if doctor(mode=args.mode, config=config) else 1


def _pool_for(settings: PoolSettings) -> ConnectionPool:
    with _POOL_LOCK:
        pool = _POOLS.get(settings)
        if pool is None:
            pool = ConnectionPool(
                settings.conninfo,
                min_size=1,
                max_size=2,
                timeout=10,
                configure=_session_setup(settings),
            )
            setattr(pool, "read_more_locator_settings", settings)
            _POOLS[settings] = pool
            logger.debug(
                "Opened content database pool",
                extra={
                    "mode": settings.mode.value,
                    "schema": settings.schema,
                    "conninfo": _mask_conninfo(settings.conninfo),
                },
            )
        return pool


def _session_setup(settings: PoolSettings) -> Callable[[Connection[Any]], None]:
    statements = [
        sql.SQL("set search_path to {}").format(sql.Identifier(settings.schema)),
        sql.SQL("set idle_in_transaction_session_timeout to {}").format(
            sql.Literal(settings.idle_in_transaction_timeout_ms)
        ),
    ]
    if settings.read_only:
        statements.append(sql.SQL("set default_transaction_read_only to on"))

    def _configure(connection: Connection[Any]) -> None:
        for statement in statements:
            connection.execute(statement)

    return _configure


def _mask_conninfo(value: str) -> str:
    params = conninfo.conninfo_to_dict(value)
    password = params.get("password")
    if password:
        params["password"] = "***" if len(str(password)) <= 8 else f"{password[:4]}...{password[-4:]}"
    return conninfo.make_conninfo(**params)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
