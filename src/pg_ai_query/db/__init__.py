"""Database helpers for pg-ai-query."""

from pg_ai_query.db.connection import DatabaseConnectionError, connect_readonly
from pg_ai_query.db.introspect import (
    ColumnDetail,
    DatabaseSchema,
    PostgresIntrospector,
    SchemaIntrospector,
    TableDetails,
    TableSummary,
)

__all__ = [
    "ColumnDetail",
    "DatabaseConnectionError",
    "DatabaseSchema",
    "PostgresIntrospector",
    "SchemaIntrospector",
    "TableDetails",
    "TableSummary",
    "connect_readonly",
]
