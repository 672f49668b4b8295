"""Rendering of query results as JSON or SQL-comment annotated text."""

from __future__ import annotations

import json

from pg_ai_query.config import Settings
from pg_ai_query.models.query import QueryResult


def format_warnings(warnings: list[str]) -> str:
    if len(warnings) == 1:
        return f"-- Warning: {warnings[0]}"
    lines = ["-- Warnings:"]
    lines.extend(f"--   {index}. {warning}" for index, warning in enumerate(warnings, 1))
    return "\n".join(lines)


def format_visualization(visualization: str) -> str:
    return f"-- Suggested Visualization:\n-- {visualization}"


def create_json_response(result: QueryResult, settings: Settings) -> str:
    response: dict[str, object] = {
        "query": result.generated_query,
        "success": result.success,
    }
    if not result.success:
        response["error"] = result.error_message
    if settings.show_explanation and result.explanation:
        response["explanation"] = result.explanation
    if settings.show_warnings and result.warnings:
        response["warnings"] = list(result.warnings)
    if settings.show_suggested_visualization and result.suggested_visualization:
        response["suggested_visualization"] = result.suggested_visualization
    if result.row_limit_applied:
        response["row_limit_applied"] = True
    return json.dumps(response, indent=2)


def create_plain_text_response(result: QueryResult, settings: Settings) -> str:
    if not result.success:
        return f"-- Error: {result.error_message}"

    sections = [result.generated_query]
    if settings.show_explanation and result.explanation:
        sections.append(f"-- Explanation:\n-- {result.explanation}")
    if settings.show_warnings and result.warnings:
        sections.append(format_warnings(result.warnings))
    if settings.show_suggested_visualization and result.suggested_visualization:
        sections.append(format_visualization(result.suggested_visualization))
    if result.row_limit_applied:
        sections.append(
            "-- Note: Row limit was automatically applied to this query for safety"
        )
    return "\n\n".join(sections)


def format_response(result: QueryResult, settings: Settings) -> str:
    """Render a result as JSON or plain text, per the response settings."""
    if settings.use_formatted_response:
        return create_json_response(result, settings)
    return create_plain_text_response(result, settings)
