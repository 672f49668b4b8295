"""PostgreSQL connection helpers for schema introspection."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import psycopg


class DatabaseConnectionError(RuntimeError):
    """Raised when a PostgreSQL connection cannot be opened."""


@contextmanager
def connect_readonly(
    postgres_dsn: str,
    connect_timeout: int = 5,
) -> Iterator[psycopg.Connection]:
    """Open a PostgreSQL connection configured as read-only by default."""
    try:
        conn = psycopg.connect(
            postgres_dsn,
            connect_timeout=connect_timeout,
            options="-c default_transaction_read_only=on",
        )
    except psycopg.Error as exc:
        raise DatabaseConnectionError(
            f"Could not connect to PostgreSQL with provided DSN: {exc}"
        ) from exc

    with conn:
        yield conn
