"""End-to-end query generation: selection, prompting, invocation and parsing."""

from __future__ import annotations

from collections.abc import Callable

from pg_ai_query.config import ProviderProfile, Settings
from pg_ai_query.db.introspect import SchemaIntrospector
from pg_ai_query.llm import ClientResult, GenerateOptions, create_client, format_api_error
from pg_ai_query.logging_config import bind_context, clear_context, get_logger
from pg_ai_query.models.query import QueryRequest, QueryResult
from pg_ai_query.prompts.sql_generation import PromptBundle, build_prompt_bundle
from pg_ai_query.providers import Provider
from pg_ai_query.selection import select_provider
from pg_ai_query.sql.response_parser import parse_query_response

logger = get_logger(__name__)

ClientFactory = Callable[[Provider, str, ProviderProfile | None, Settings], ClientResult]


def validate_natural_language_query(query: str, max_query_length: int) -> str | None:
    """Return an error message for an unusable request, or None when it is fine."""
    if len(query) > max_query_length:
        return (
            f"Query too long. Maximum {max_query_length} characters allowed. "
            f"Your query: {len(query)} characters."
        )
    if not query.strip():
        return "Query cannot be empty."
    return None


class QueryGenerator:
    """Turn natural language requests into validated SQL results.

    Every failure is reported as a ``QueryResult`` with ``success=False``;
    nothing is retried here, transport retries belong to the adapters.
    """

    def __init__(
        self,
        settings: Settings,
        introspector: SchemaIntrospector | None = None,
        client_factory: ClientFactory = create_client,
    ) -> None:
        self.settings = settings
        self.introspector = introspector
        self.client_factory = client_factory

    def generate_query(self, request: QueryRequest) -> QueryResult:
        bind_context(provider_preference=request.provider)
        try:
            return self._generate(request)
        except Exception as exc:
            logger.exception("query_generation_failed")
            return QueryResult.failure(f"Exception: {exc}")
        finally:
            clear_context()

    def _generate(self, request: QueryRequest) -> QueryResult:
        input_error = validate_natural_language_query(
            request.natural_language, self.settings.max_query_length
        )
        if input_error:
            return QueryResult.failure(input_error)

        selection = select_provider(request.api_key, request.provider, self.settings)
        if not selection.success:
            return QueryResult.failure(selection.error_message)
        bind_context(provider=selection.provider.value)

        client_result = self.client_factory(
            selection.provider,
            selection.api_key,
            selection.profile,
            self.settings,
        )
        if not client_result.success or client_result.client is None:
            return QueryResult.failure(client_result.error_message)

        bundle = build_prompt_bundle(
            request.natural_language, self.settings, self.introspector
        )
        options = self._generate_options(client_result.model_name, bundle, selection.profile)

        result = client_result.client.generate(options)
        if not result.success:
            logger.warning(
                "provider_request_failed",
                provider=selection.provider.value,
                status_code=result.status_code,
            )
            return QueryResult.failure(
                "AI API error: " + format_api_error(result.error_message)
            )
        if not result.text:
            return QueryResult.failure("Empty response from AI service")

        return parse_query_response(result.text, self.settings.allow_system_tables)

    @staticmethod
    def _generate_options(
        model_name: str,
        bundle: PromptBundle,
        profile: ProviderProfile | None,
    ) -> GenerateOptions:
        if profile is None:
            logger.info("model_settings", model=model_name, settings="provider defaults")
            return GenerateOptions(
                model=model_name,
                system_prompt=bundle.system_prompt,
                user_prompt=bundle.user_prompt,
            )

        logger.info(
            "model_settings",
            model=model_name,
            max_tokens=profile.default_max_tokens,
            temperature=profile.default_temperature,
        )
        return GenerateOptions(
            model=model_name,
            system_prompt=bundle.system_prompt,
            user_prompt=bundle.user_prompt,
            max_tokens=profile.default_max_tokens,
            temperature=profile.default_temperature,
        )
