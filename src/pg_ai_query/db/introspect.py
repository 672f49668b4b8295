"""PostgreSQL schema introspection used to enrich generation prompts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

import psycopg

from pg_ai_query.db.connection import DatabaseConnectionError, connect_readonly
from pg_ai_query.db.queries import COLUMNS_QUERY, INDEXES_QUERY, TABLES_QUERY
from pg_ai_query.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TableSummary:
    name: str
    schema: str
    table_type: str
    estimated_rows: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "table_name": self.name,
            "schema_name": self.schema,
            "table_type": self.table_type,
            "estimated_rows": self.estimated_rows,
        }


@dataclass(frozen=True)
class DatabaseSchema:
    """User tables visible to the connection, in schema then name order."""

    tables: list[TableSummary] = field(default_factory=list)
    success: bool = False
    error_message: str = ""

    def to_dict(self) -> dict[str, object]:
        return {"tables": [table.to_dict() for table in self.tables]}


@dataclass(frozen=True)
class ColumnDetail:
    name: str
    data_type: str
    nullable: bool = True
    default: str | None = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
    foreign_table: str | None = None
    foreign_column: str | None = None

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "column_name": self.name,
            "data_type": self.data_type,
            "is_nullable": self.nullable,
            "column_default": self.default,
            "is_primary_key": self.is_primary_key,
            "is_foreign_key": self.is_foreign_key,
        }
        if self.is_foreign_key:
            payload["foreign_table"] = self.foreign_table
            payload["foreign_column"] = self.foreign_column
        return payload


@dataclass(frozen=True)
class TableDetails:
    """Columns and index definitions of a single table."""

    table_name: str
    schema_name: str
    columns: list[ColumnDetail] = field(default_factory=list)
    indexes: list[str] = field(default_factory=list)
    success: bool = False
    error_message: str = ""

    def to_dict(self) -> dict[str, object]:
        return {
            "table_name": self.table_name,
            "schema_name": self.schema_name,
            "columns": [column.to_dict() for column in self.columns],
            "indexes": list(self.indexes),
        }


class SchemaIntrospector(Protocol):
    """Read-only schema lookups consumed by the prompt builder."""

    def list_tables(self) -> DatabaseSchema: ...

    def describe_table(
        self, table_name: str, schema_name: str = "public"
    ) -> TableDetails: ...


@dataclass(frozen=True)
class PostgresIntrospector:
    """Schema introspection over a read-only psycopg connection.

    Lookups never raise for database problems; they report them through
    ``success`` and ``error_message`` instead.
    """

    postgres_dsn: str
    connect_timeout: int = 5

    def list_tables(self) -> DatabaseSchema:
        try:
            with connect_readonly(self.postgres_dsn, self.connect_timeout) as conn:
                with conn.cursor() as cur:
                    cur.execute(TABLES_QUERY)
                    rows = cur.fetchall()
        except (DatabaseConnectionError, psycopg.Error) as exc:
            logger.warning("list_tables_failed", error=str(exc))
            return DatabaseSchema(success=False, error_message=str(exc))

        tables = [
            TableSummary(
                name=table_name,
                schema=schema_name,
                table_type=table_type,
                estimated_rows=int(estimated_rows or 0),
            )
            for table_name, schema_name, table_type, estimated_rows in rows
        ]
        return DatabaseSchema(tables=tables, success=True)

    def describe_table(
        self, table_name: str, schema_name: str = "public"
    ) -> TableDetails:
        params = {"table_name": table_name, "schema_name": schema_name}
        try:
            with connect_readonly(self.postgres_dsn, self.connect_timeout) as conn:
                with conn.cursor() as cur:
                    cur.execute(COLUMNS_QUERY, params)
                    column_rows = cur.fetchall()
                    cur.execute(INDEXES_QUERY, params)
                    index_rows = cur.fetchall()
        except (DatabaseConnectionError, psycopg.Error) as exc:
            logger.warning(
                "describe_table_failed",
                table=f"{schema_name}.{table_name}",
                error=str(exc),
            )
            return TableDetails(
                table_name=table_name,
                schema_name=schema_name,
                success=False,
                error_message=str(exc),
            )

        columns = [
            ColumnDetail(
                name=column_name,
                data_type=data_type,
                nullable=is_nullable == "YES",
                default=column_default,
                is_primary_key=bool(is_primary_key),
                is_foreign_key=bool(is_foreign_key),
                foreign_table=foreign_table,
                foreign_column=foreign_column,
            )
            for (
                column_name,
                data_type,
                is_nullable,
                column_default,
                is_primary_key,
                is_foreign_key,
                foreign_table,
                foreign_column,
            ) in column_rows
        ]
        indexes = [indexdef for _name, indexdef in index_rows if indexdef]
        return TableDetails(
            table_name=table_name,
            schema_name=schema_name,
            columns=columns,
            indexes=indexes,
            success=True,
        )
