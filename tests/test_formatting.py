"""Tests for result rendering."""

from __future__ import annotations

import json

import pytest

from pg_ai_query.config import Settings
from pg_ai_query.formatting import (
    create_json_response,
    create_plain_text_response,
    format_response,
    format_warnings,
)
from pg_ai_query.models.query import QueryResult


@pytest.fixture
def full_result() -> QueryResult:
    return QueryResult(
        generated_query="SELECT * FROM orders LIMIT 1000",
        explanation="All orders",
        warnings=["Large table"],
        row_limit_applied=True,
        suggested_visualization="table",
        success=True,
    )


class TestPlainText:
    """Tests for SQL-comment annotated output."""

    def test_default_sections(self, full_result):
        text = create_plain_text_response(full_result, Settings())

        assert text == (
            "SELECT * FROM orders LIMIT 1000\n\n"
            "-- Explanation:\n-- All orders\n\n"
            "-- Warning: Large table\n\n"
            "-- Note: Row limit was automatically applied to this query for safety"
        )

    def test_visualization_shown_when_enabled(self, full_result):
        text = create_plain_text_response(
            full_result, Settings(show_suggested_visualization=True)
        )

        assert "-- Suggested Visualization:\n-- table" in text

    def test_sections_hidden(self, full_result):
        text = create_plain_text_response(
            full_result, Settings(show_explanation=False, show_warnings=False)
        )

        assert "Explanation" not in text
        assert "Warning" not in text

    def test_failure(self):
        text = create_plain_text_response(QueryResult.failure("boom"), Settings())

        assert text == "-- Error: boom"

    def test_multiple_warnings_numbered(self):
        assert format_warnings(["one", "two"]) == "-- Warnings:\n--   1. one\n--   2. two"


class TestJson:
    """Tests for JSON output."""

    def test_success_payload(self, full_result):
        payload = json.loads(create_json_response(full_result, Settings()))

        assert payload == {
            "query": "SELECT * FROM orders LIMIT 1000",
            "success": True,
            "explanation": "All orders",
            "warnings": ["Large table"],
            "row_limit_applied": True,
        }

    def test_failure_payload(self):
        payload = json.loads(create_json_response(QueryResult.failure("boom"), Settings()))

        assert payload == {"query": "", "success": False, "error": "boom"}

    def test_format_response_switches_on_setting(self, full_result):
        assert format_response(full_result, Settings()).startswith("SELECT")
        assert format_response(
            full_result, Settings(use_formatted_response=True)
        ).startswith("{")
