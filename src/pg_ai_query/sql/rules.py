"""Keyword rules applied to model output by the response parser."""

from __future__ import annotations

# Catalog namespaces generated queries may not touch without an override.
PROTECTED_NAMESPACES: tuple[str, ...] = (
    "INFORMATION_SCHEMA",
    "PG_CATALOG",
)

# Phrases in an explanation that mean the model refused or failed.
EXPLANATION_ERROR_PHRASES: tuple[str, ...] = (
    "cannot generate query",
    "cannot create query",
    "unable to generate",
    "does not exist",
    "do not exist",
    "table not found",
    "column not found",
    "no such table",
    "no such column",
)

WARNING_ERROR_PHRASES: tuple[str, ...] = (
    "error:",
    "does not exist",
    "do not exist",
)

RAW_OUTPUT_EXPLANATION = "Raw LLM output (no JSON detected)"

SYSTEM_TABLES_ERROR = (
    "Generated query accesses system tables. Please query user tables only."
)

DEFAULT_VISUALIZATION = "table"
