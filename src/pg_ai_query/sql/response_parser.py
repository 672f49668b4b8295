"""Extraction and validation of SQL payloads from free-form model output."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pg_ai_query.logging_config import get_logger
from pg_ai_query.models.query import QueryResult
from pg_ai_query.sql.rules import (
    DEFAULT_VISUALIZATION,
    EXPLANATION_ERROR_PHRASES,
    PROTECTED_NAMESPACES,
    RAW_OUTPUT_EXPLANATION,
    SYSTEM_TABLES_ERROR,
    WARNING_ERROR_PHRASES,
)

logger = get_logger(__name__)

# First fenced block holding a JSON object; the object must open the block.
_FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)


class PayloadSource(str, Enum):
    """Extraction stage that produced a payload."""

    FENCED = "fenced"
    DIRECT = "direct"
    RAW = "raw"


@dataclass(frozen=True)
class ParseFailure:
    """A stage that did not yield a JSON object."""

    stage: PayloadSource
    reason: str


@dataclass(frozen=True)
class ParsedDocument:
    """JSON object extracted from model output, with defaulting accessors."""

    data: Mapping[str, Any]
    source: PayloadSource

    def _string(self, key: str, default: str = "") -> str:
        value = self.data.get(key)
        return value if isinstance(value, str) else default

    def sql(self) -> str:
        return self._string("sql")

    def explanation(self) -> str:
        return self._string("explanation")

    def warnings(self) -> list[str]:
        """Return warnings given either as a list of strings or one string."""
        if "warnings" not in self.data:
            return []
        value = self.data["warnings"]
        if isinstance(value, str):
            return [value]
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
        logger.warning(
            "warnings_field_ignored",
            reason="expected a string or a list of strings",
            value_type=type(value).__name__,
        )
        return []

    def row_limit_applied(self) -> bool:
        value = self.data.get("row_limit_applied")
        return value if isinstance(value, bool) else False

    def suggested_visualization(self) -> str:
        return self._string("suggested_visualization", DEFAULT_VISUALIZATION)


ExtractionAttempt = ParsedDocument | ParseFailure


def _parse_document(text: str, stage: PayloadSource) -> ExtractionAttempt:
    try:
        value = json.loads(text)
    except (json.JSONDecodeError, RecursionError) as exc:
        return ParseFailure(stage=stage, reason=str(exc))
    if not isinstance(value, dict):
        return ParseFailure(
            stage=stage,
            reason=f"expected a JSON object, got {type(value).__name__}",
        )
    return ParsedDocument(data=value, source=stage)


def _extract_fenced(text: str) -> ExtractionAttempt:
    match = _FENCED_JSON.search(text)
    if match is None:
        return ParseFailure(stage=PayloadSource.FENCED, reason="no fenced JSON block")
    return _parse_document(match.group(1), PayloadSource.FENCED)


def _raw_fallback(text: str) -> ParsedDocument:
    return ParsedDocument(
        data={"sql": text, "explanation": RAW_OUTPUT_EXPLANATION},
        source=PayloadSource.RAW,
    )


def extract_sql_payload(text: str) -> ParsedDocument:
    """Extract the response document from model output.

    Tries a fenced JSON block first, then the whole text as JSON, and finally
    wraps the raw text as the SQL so that output is never discarded.
    """
    attempt = _extract_fenced(text)
    if isinstance(attempt, ParsedDocument):
        return attempt
    logger.debug("payload_stage_failed", stage=attempt.stage.value, reason=attempt.reason)

    attempt = _parse_document(text, PayloadSource.DIRECT)
    if isinstance(attempt, ParsedDocument):
        return attempt
    logger.debug("payload_stage_failed", stage=attempt.stage.value, reason=attempt.reason)

    return _raw_fallback(text)


def accesses_system_tables(sql: str) -> bool:
    """Return True when SQL mentions information_schema or pg_catalog."""
    upper_sql = sql.upper()
    return any(namespace in upper_sql for namespace in PROTECTED_NAMESPACES)


def has_error_indicators(explanation: str, warnings: list[str]) -> bool:
    """Return True when the explanation or a warning reports a failure."""
    lower_explanation = explanation.lower()
    if any(phrase in lower_explanation for phrase in EXPLANATION_ERROR_PHRASES):
        return True

    for warning in warnings:
        lower_warning = warning.lower()
        if any(phrase in lower_warning for phrase in WARNING_ERROR_PHRASES):
            return True
    return False


def _parse_query_response(response_text: str, allow_system_tables: bool) -> QueryResult:
    document = extract_sql_payload(response_text)
    sql = document.sql()
    explanation = document.explanation()
    warnings = document.warnings()

    if has_error_indicators(explanation, warnings):
        logger.info("model_reported_failure", source=document.source.value)
        return QueryResult(
            explanation=explanation,
            warnings=warnings,
            success=False,
            error_message=explanation,
        )

    if not sql:
        return QueryResult(
            explanation=explanation,
            warnings=warnings,
            success=True,
        )

    if not allow_system_tables and accesses_system_tables(sql):
        logger.warning("system_table_access_blocked")
        return QueryResult.failure(SYSTEM_TABLES_ERROR)

    return QueryResult(
        generated_query=sql,
        explanation=explanation,
        warnings=warnings,
        row_limit_applied=document.row_limit_applied(),
        suggested_visualization=document.suggested_visualization(),
        success=True,
    )


def parse_query_response(
    response_text: str,
    allow_system_tables: bool = False,
) -> QueryResult:
    """Turn raw model output into a validated query result.

    Never raises: unexpected errors become a failed result prefixed with
    ``"Exception: "``.
    """
    try:
        return _parse_query_response(response_text, allow_system_tables)
    except Exception as exc:
        logger.exception("response_parsing_failed")
        return QueryResult.failure(f"Exception: {exc}")
