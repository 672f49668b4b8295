"""
Pytest Fixtures
===============

Shared fixtures for pg-ai-query tests. Nothing here touches the network or a
database: providers and introspection are replaced by in-memory fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import pytest
import structlog

from pg_ai_query.config import Settings, default_profile, reset_settings
from pg_ai_query.db.introspect import (
    ColumnDetail,
    DatabaseSchema,
    TableDetails,
    TableSummary,
)
from pg_ai_query.llm import ClientResult
from pg_ai_query.llm.base import GenerateOptions, GenerationResult, TextGenerator
from pg_ai_query.logging_config import setup_logging
from pg_ai_query.providers import Provider


@dataclass
class FakeGenerator(TextGenerator):
    """Text generator returning a canned result and recording requests."""

    result: GenerationResult
    calls: list[GenerateOptions] = field(default_factory=list)
    log_contexts: list[dict] = field(default_factory=list)

    def generate(self, options: GenerateOptions) -> GenerationResult:
        self.calls.append(options)
        self.log_contexts.append(structlog.contextvars.get_contextvars())
        return self.result


@dataclass
class FakeIntrospector:
    """In-memory schema introspection."""

    schema: DatabaseSchema
    details: dict[tuple[str, str], TableDetails] = field(default_factory=dict)
    described: list[tuple[str, str]] = field(default_factory=list)

    def list_tables(self) -> DatabaseSchema:
        return self.schema

    def describe_table(self, table_name: str, schema_name: str = "public") -> TableDetails:
        self.described.append((table_name, schema_name))
        return self.details.get(
            (schema_name, table_name),
            TableDetails(
                table_name=table_name,
                schema_name=schema_name,
                success=False,
                error_message="not found",
            ),
        )


class ExplodingIntrospector:
    """Introspection that fails with an unexpected exception."""

    def list_tables(self) -> DatabaseSchema:
        raise RuntimeError("connection reset")

    def describe_table(self, table_name: str, schema_name: str = "public") -> TableDetails:
        raise RuntimeError("connection reset")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep developer environment variables and config files out of tests."""
    for name in (
        "PG_AI_OPENAI_API_KEY",
        "PG_AI_ANTHROPIC_API_KEY",
        "PG_AI_GEMINI_API_KEY",
        "POSTGRES_DSN",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("PG_AI_CONFIG", str(tmp_path / "absent.config"))
    reset_settings()
    # Bind the log handler to this test's captured stderr.
    setup_logging("WARNING", enabled=False)


@pytest.fixture
def exploding_introspector() -> ExplodingIntrospector:
    return ExplodingIntrospector()


@pytest.fixture
def settings_all_providers() -> Settings:
    """Settings with a stored key for every provider."""
    return Settings(
        providers=(
            default_profile(Provider.OPENAI, api_key="sk-test-openai-key-12345"),
            default_profile(Provider.ANTHROPIC, api_key="sk-ant-config-key"),
            default_profile(Provider.GEMINI, api_key="gemini-config-key"),
        )
    )


@pytest.fixture
def settings_anthropic_only() -> Settings:
    """Settings where only the Anthropic profile has a key."""
    return Settings(
        providers=(
            default_profile(Provider.OPENAI),
            default_profile(Provider.ANTHROPIC, api_key="sk-ant-only-key"),
        )
    )


@pytest.fixture
def settings_no_keys() -> Settings:
    """Default settings: an OpenAI profile without a key."""
    return Settings()


@pytest.fixture
def sample_schema() -> DatabaseSchema:
    return DatabaseSchema(
        tables=[
            TableSummary(name="orders", schema="public", table_type="BASE TABLE", estimated_rows=1200),
            TableSummary(name="users", schema="public", table_type="BASE TABLE", estimated_rows=50),
            TableSummary(name="events", schema="analytics", table_type="BASE TABLE", estimated_rows=0),
        ],
        success=True,
    )


@pytest.fixture
def users_details() -> TableDetails:
    return TableDetails(
        table_name="users",
        schema_name="public",
        columns=[
            ColumnDetail(name="id", data_type="integer", nullable=False, is_primary_key=True,
                         default="nextval('users_id_seq'::regclass)"),
            ColumnDetail(name="email", data_type="text", nullable=False),
            ColumnDetail(name="team_id", data_type="integer", is_foreign_key=True,
                         foreign_table="teams", foreign_column="id"),
        ],
        indexes=["CREATE UNIQUE INDEX users_pkey ON public.users USING btree (id)"],
        success=True,
    )


@pytest.fixture
def fake_introspector(sample_schema: DatabaseSchema, users_details: TableDetails) -> FakeIntrospector:
    return FakeIntrospector(
        schema=sample_schema,
        details={("public", "users"): users_details},
    )


@pytest.fixture
def make_generator():
    """Factory for fake generators returning a canned result."""

    def _make(text: str = "", success: bool = True, error_message: str = "", status_code=None):
        return FakeGenerator(
            result=GenerationResult(
                text=text,
                success=success,
                error_message=error_message,
                status_code=status_code,
            )
        )

    return _make


@pytest.fixture
def client_factory_for():
    """Build a client factory that always hands out the given generator."""

    def _factory_for(generator: TextGenerator, model_name: str = "test-model"):
        calls: list[tuple[Provider, str]] = []

        def factory(provider, api_key, profile, settings) -> ClientResult:
            calls.append((provider, api_key))
            return ClientResult(client=generator, model_name=model_name, success=True)

        factory.calls = calls  # type: ignore[attr-defined]
        return factory

    return _factory_for


@pytest.fixture
def write_config(tmp_path: Path):
    """Write an INI config file and return its path."""

    def _write(content: str) -> Path:
        path = tmp_path / "pg_ai.config"
        path.write_text(content, encoding="utf-8")
        return path

    return _write
