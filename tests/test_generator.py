"""Tests for end-to-end query generation with fake providers."""

from __future__ import annotations

import json

import structlog

from pg_ai_query.config import Settings, default_profile
from pg_ai_query.generator import QueryGenerator, validate_natural_language_query
from pg_ai_query.llm import ClientResult
from pg_ai_query.models.query import QueryRequest
from pg_ai_query.providers import Provider

GOOD_RESPONSE = json.dumps(
    {
        "sql": "SELECT id, email FROM users LIMIT 1000",
        "explanation": "Lists users",
        "row_limit_applied": True,
    }
)


class TestValidateRequest:
    """Tests for natural language input checks."""

    def test_accepts_normal_text(self):
        assert validate_natural_language_query("count users", 4000) is None

    def test_empty_and_whitespace(self):
        assert validate_natural_language_query("", 4000) == "Query cannot be empty."
        assert validate_natural_language_query("   \n", 4000) == "Query cannot be empty."

    def test_too_long(self):
        message = validate_natural_language_query("x" * 11, 10)

        assert message == (
            "Query too long. Maximum 10 characters allowed. Your query: 11 characters."
        )

    def test_length_checked_before_emptiness(self):
        message = validate_natural_language_query(" " * 11, 10)

        assert message.startswith("Query too long.")


class TestQueryGenerator:
    """Tests for QueryGenerator.generate_query()."""

    def test_successful_generation(
        self, settings_all_providers, make_generator, client_factory_for, fake_introspector
    ):
        fake = make_generator(text=GOOD_RESPONSE)
        factory = client_factory_for(fake, model_name="gpt-4o")
        generator = QueryGenerator(settings_all_providers, fake_introspector, factory)

        result = generator.generate_query(QueryRequest(natural_language="emails of users"))

        assert result.success
        assert result.generated_query == "SELECT id, email FROM users LIMIT 1000"
        assert result.row_limit_applied is True
        assert factory.calls == [(Provider.OPENAI, "sk-test-openai-key-12345")]

        options = fake.calls[0]
        assert options.model == "gpt-4o"
        assert options.max_tokens == 4096
        assert options.temperature == 0.7
        assert "=== TABLE: public.users ===" in options.user_prompt
        assert "LIMIT 1000" in options.system_prompt

    def test_empty_request_never_reaches_provider(
        self, settings_all_providers, make_generator, client_factory_for
    ):
        fake = make_generator(text=GOOD_RESPONSE)
        factory = client_factory_for(fake)
        generator = QueryGenerator(settings_all_providers, client_factory=factory)

        result = generator.generate_query(QueryRequest(natural_language="  "))

        assert not result.success
        assert result.error_message == "Query cannot be empty."
        assert factory.calls == []

    def test_selection_failure(self, settings_no_keys, make_generator, client_factory_for):
        factory = client_factory_for(make_generator(text=GOOD_RESPONSE))
        generator = QueryGenerator(settings_no_keys, client_factory=factory)

        result = generator.generate_query(QueryRequest(natural_language="count users"))

        assert not result.success
        assert result.error_message.startswith("API key required.")
        assert factory.calls == []

    def test_explicit_provider_and_parameter_key(
        self, settings_all_providers, make_generator, client_factory_for
    ):
        factory = client_factory_for(make_generator(text=GOOD_RESPONSE))
        generator = QueryGenerator(settings_all_providers, client_factory=factory)

        generator.generate_query(
            QueryRequest(natural_language="count users", api_key="sk-x", provider="gemini")
        )

        assert factory.calls == [(Provider.GEMINI, "sk-x")]

    def test_provider_defaults_without_profile(self, make_generator, client_factory_for):
        settings = Settings(providers=(default_profile(Provider.OPENAI),))
        fake = make_generator(text=GOOD_RESPONSE)
        generator = QueryGenerator(settings, client_factory=client_factory_for(fake))

        generator.generate_query(
            QueryRequest(natural_language="count users", api_key="sk-x", provider="anthropic")
        )

        options = fake.calls[0]
        assert options.max_tokens is None
        assert options.temperature is None

    def test_transport_error_is_formatted(
        self, settings_all_providers, make_generator, client_factory_for
    ):
        raw = 'HTTP 404: {"type":"error","error":{"type":"not_found_error","message":"model: gpt-9"}}'
        fake = make_generator(success=False, error_message=raw, status_code=404)
        generator = QueryGenerator(
            settings_all_providers, client_factory=client_factory_for(fake)
        )

        result = generator.generate_query(QueryRequest(natural_language="count users"))

        assert not result.success
        assert result.error_message.startswith("AI API error: Invalid model 'gpt-9'.")

    def test_empty_response(self, settings_all_providers, make_generator, client_factory_for):
        fake = make_generator(text="")
        generator = QueryGenerator(
            settings_all_providers, client_factory=client_factory_for(fake)
        )

        result = generator.generate_query(QueryRequest(natural_language="count users"))

        assert not result.success
        assert result.error_message == "Empty response from AI service"

    def test_client_creation_failure(self, settings_all_providers):
        def factory(provider, api_key, profile, settings):
            return ClientResult(success=False, error_message="Unsupported provider: unknown")

        generator = QueryGenerator(settings_all_providers, client_factory=factory)

        result = generator.generate_query(QueryRequest(natural_language="count users"))

        assert result.error_message == "Unsupported provider: unknown"

    def test_system_table_override_from_settings(self, make_generator, client_factory_for):
        settings = Settings(
            providers=(default_profile(Provider.OPENAI, api_key="sk-x"),),
            allow_system_tables=True,
        )
        fake = make_generator(text='{"sql": "SELECT * FROM pg_catalog.pg_class"}')
        generator = QueryGenerator(settings, client_factory=client_factory_for(fake))

        result = generator.generate_query(QueryRequest(natural_language="list relations"))

        assert result.success
        assert result.generated_query == "SELECT * FROM pg_catalog.pg_class"

    def test_unexpected_errors_become_failures(self, settings_all_providers):
        def factory(provider, api_key, profile, settings):
            raise RuntimeError("factory broke")

        generator = QueryGenerator(settings_all_providers, client_factory=factory)

        result = generator.generate_query(QueryRequest(natural_language="count users"))

        assert not result.success
        assert result.error_message == "Exception: factory broke"

    def test_introspection_failure_still_generates(
        self, settings_all_providers, make_generator, client_factory_for, exploding_introspector
    ):
        fake = make_generator(text=GOOD_RESPONSE)
        generator = QueryGenerator(
            settings_all_providers, exploding_introspector, client_factory_for(fake)
        )

        result = generator.generate_query(QueryRequest(natural_language="count users"))

        assert result.success
        assert "Schema info:" not in fake.calls[0].user_prompt

    def test_log_context_bound_for_request(
        self, settings_anthropic_only, make_generator, client_factory_for
    ):
        fake = make_generator(text=GOOD_RESPONSE)
        generator = QueryGenerator(
            settings_anthropic_only, client_factory=client_factory_for(fake)
        )

        generator.generate_query(QueryRequest(natural_language="count users"))

        assert fake.log_contexts == [
            {"provider_preference": "auto", "provider": "anthropic"}
        ]
        assert structlog.contextvars.get_contextvars() == {}
