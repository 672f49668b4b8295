"""Response parsing and keyword-level SQL guardrails."""

from pg_ai_query.sql.response_parser import (
    ParsedDocument,
    ParseFailure,
    PayloadSource,
    accesses_system_tables,
    extract_sql_payload,
    has_error_indicators,
    parse_query_response,
)

__all__ = [
    "ParsedDocument",
    "ParseFailure",
    "PayloadSource",
    "accesses_system_tables",
    "extract_sql_payload",
    "has_error_indicators",
    "parse_query_response",
]
