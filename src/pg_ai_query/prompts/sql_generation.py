"""Prompt builder for schema-aware NL-to-SQL generation requests."""

from __future__ import annotations

import json
from dataclasses import dataclass

from pg_ai_query.config import Settings
from pg_ai_query.db.introspect import (
    DatabaseSchema,
    SchemaIntrospector,
    TableDetails,
    TableSummary,
)
from pg_ai_query.logging_config import get_logger

logger = get_logger(__name__)

MAX_DETAILED_TABLES = 3


@dataclass(frozen=True)
class PromptBundle:
    """Inspectable prompt pair sent to the selected provider."""

    question: str
    system_prompt: str
    user_prompt: str


_OUTPUT_CONTRACT = {
    "type": "object",
    "required": ["sql", "explanation"],
    "properties": {
        "sql": {
            "type": "string",
            "description": (
                "A single PostgreSQL query. Empty string when no query is needed "
                "or the request cannot be answered."
            ),
        },
        "explanation": {
            "type": "string",
            "description": (
                "What the query does, or why no query could be generated "
                "(for example 'Cannot generate query: table x does not exist')."
            ),
        },
        "warnings": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Caveats about performance, assumptions or data.",
        },
        "row_limit_applied": {
            "type": "boolean",
            "description": "True when a LIMIT clause was added for safety.",
        },
        "suggested_visualization": {
            "type": "string",
            "description": "One of table, bar, line, pie, scatter.",
        },
    },
}


def build_system_prompt(settings: Settings | None = None) -> str:
    """Build the system instruction, including the row-limit policy."""
    rules = [
        "- Use only tables and columns that exist in the provided schema.",
        "- Never query information_schema or pg_catalog.",
        "- If a requested table or column does not exist, return an empty sql "
        "value and explain which objects are missing.",
        "- Prefer explicit column lists and table aliases.",
    ]
    if settings is None or settings.enforce_limit:
        limit = settings.default_limit if settings is not None else 1000
        rules.append(
            f"- Add LIMIT {limit} to queries that may return many rows and set "
            "row_limit_applied to true when you do."
        )

    return (
        "You are a PostgreSQL expert that translates natural language requests "
        "into safe, correct SQL.\n"
        "Rules:\n"
        + "\n".join(rules)
        + "\n\nResponse contract (JSON Schema-like):\n"
        + json.dumps(_OUTPUT_CONTRACT, indent=2, sort_keys=True)
        + "\n\nReturn only a JSON object matching the contract."
    )


def format_schema_for_ai(schema: DatabaseSchema) -> str:
    lines = [
        "=== DATABASE SCHEMA ===",
        "IMPORTANT: These are the ONLY tables available in this database:",
        "",
    ]
    for table in schema.tables:
        lines.append(
            f"- {table.schema}.{table.name} "
            f"({table.table_type}, ~{table.estimated_rows} rows)"
        )
    if not schema.tables:
        lines.append("- No user tables found in database")

    lines.append("")
    lines.append(
        "CRITICAL: If user asks for tables not listed above, return an error "
        "with available table names."
    )
    lines.append("Do NOT query information_schema or pg_catalog tables.")
    return "\n".join(lines) + "\n"


def format_table_details_for_ai(details: TableDetails) -> str:
    lines = [f"=== TABLE: {details.schema_name}.{details.table_name} ===", "", "COLUMNS:"]
    for column in details.columns:
        line = f"- {column.name} ({column.data_type})"
        if column.is_primary_key:
            line += " [PRIMARY KEY]"
        if column.is_foreign_key:
            line += f" [FK -> {column.foreign_table}.{column.foreign_column}]"
        if not column.nullable:
            line += " [NOT NULL]"
        if column.default:
            line += f" [DEFAULT: {column.default}]"
        lines.append(line)

    if details.indexes:
        lines.append("")
        lines.append("INDEXES:")
        lines.extend(f"- {index}" for index in details.indexes)
    return "\n".join(lines) + "\n"


def mentioned_tables(
    natural_language: str,
    schema: DatabaseSchema,
    limit: int = MAX_DETAILED_TABLES,
) -> list[TableSummary]:
    """Return the first tables, in listing order, named verbatim in the request."""
    matches = [table for table in schema.tables if table.name in natural_language]
    return matches[:limit]


def build_schema_context(natural_language: str, introspector: SchemaIntrospector) -> str:
    """Describe the schema for the prompt; empty when introspection fails."""
    try:
        schema = introspector.list_tables()
        if not schema.success:
            logger.debug("schema_context_unavailable", error=schema.error_message)
            return ""

        context = format_schema_for_ai(schema)
        for table in mentioned_tables(natural_language, schema):
            details = introspector.describe_table(table.name, table.schema)
            if details.success:
                context += "\n" + format_table_details_for_ai(details)
        return context
    except Exception as exc:
        logger.debug("schema_context_failed", error=str(exc))
        return ""


def build_prompt(
    natural_language: str,
    introspector: SchemaIntrospector | None = None,
) -> str:
    """Build the user prompt, with schema context when it can be gathered."""
    prompt = (
        "Generate a PostgreSQL query for this request:\n\n"
        f"Request: {natural_language}\n"
    )
    schema_context = (
        build_schema_context(natural_language, introspector)
        if introspector is not None
        else ""
    )
    if schema_context:
        prompt += f"Schema info:\n{schema_context}\n"
    return prompt


def build_prompt_bundle(
    natural_language: str,
    settings: Settings,
    introspector: SchemaIntrospector | None = None,
) -> PromptBundle:
    return PromptBundle(
        question=natural_language,
        system_prompt=build_system_prompt(settings),
        user_prompt=build_prompt(natural_language, introspector),
    )
