"""AI provider adapters and factory helpers."""

from __future__ import annotations

from dataclasses import dataclass

from pg_ai_query.config import ProviderProfile, Settings
from pg_ai_query.llm.anthropic_adapter import AnthropicAdapter
from pg_ai_query.llm.base import GenerateOptions, GenerationResult, LLMError, TextGenerator
from pg_ai_query.llm.errors import format_api_error
from pg_ai_query.llm.gemini_adapter import GeminiAdapter
from pg_ai_query.llm.openai_adapter import OpenAIAdapter
from pg_ai_query.providers import DEFAULT_MODELS, Provider

_ADAPTERS: dict[Provider, type[TextGenerator]] = {
    Provider.OPENAI: OpenAIAdapter,
    Provider.ANTHROPIC: AnthropicAdapter,
    Provider.GEMINI: GeminiAdapter,
}


@dataclass(frozen=True)
class ClientResult:
    """Client built for a selected provider, with the model it should use."""

    client: TextGenerator | None = None
    model_name: str = ""
    success: bool = False
    error_message: str = ""


def create_client(
    provider: Provider,
    api_key: str,
    profile: ProviderProfile | None,
    settings: Settings,
) -> ClientResult:
    """Create the provider client, honoring the profile's model and endpoint."""
    adapter_cls = _ADAPTERS.get(provider)
    if adapter_cls is None:
        return ClientResult(
            success=False,
            error_message=f"Unsupported provider: {provider.value}",
        )

    kwargs: dict[str, object] = {
        "api_key": api_key,
        "timeout_seconds": settings.request_timeout_seconds,
        "max_retries": settings.max_retries,
    }
    if profile is not None and profile.api_endpoint:
        kwargs["base_url"] = profile.api_endpoint

    model_name = profile.default_model if profile is not None else DEFAULT_MODELS[provider]
    return ClientResult(
        client=adapter_cls(**kwargs),
        model_name=model_name,
        success=True,
    )


__all__ = [
    "AnthropicAdapter",
    "ClientResult",
    "GeminiAdapter",
    "GenerateOptions",
    "GenerationResult",
    "LLMError",
    "OpenAIAdapter",
    "TextGenerator",
    "create_client",
    "format_api_error",
]
