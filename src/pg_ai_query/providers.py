"""AI provider identities and their canonical names."""

from __future__ import annotations

from enum import Enum


class Provider(str, Enum):
    """Supported AI text-generation backends."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GEMINI = "gemini"
    UNKNOWN = "unknown"


# Order used when no provider is requested explicitly.
CANONICAL_ORDER: tuple[Provider, ...] = (
    Provider.OPENAI,
    Provider.ANTHROPIC,
    Provider.GEMINI,
)

DEFAULT_MODELS: dict[Provider, str] = {
    Provider.OPENAI: "gpt-4o",
    Provider.ANTHROPIC: "claude-sonnet-4-5-20250929",
    Provider.GEMINI: "gemini-2.5-flash",
}

DEFAULT_MAX_TOKENS: dict[Provider, int] = {
    Provider.OPENAI: 4096,
    Provider.ANTHROPIC: 8192,
    Provider.GEMINI: 8192,
}

DEFAULT_TEMPERATURE = 0.7


def provider_to_string(provider: Provider) -> str:
    return provider.value


def string_to_provider(value: str) -> Provider:
    """Map a provider name to its identity, ignoring case and whitespace."""
    normalized = value.strip().lower()
    for provider in CANONICAL_ORDER:
        if provider.value == normalized:
            return provider
    return Provider.UNKNOWN
