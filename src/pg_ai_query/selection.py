"""Provider and API key selection for a generation request."""

from __future__ import annotations

from dataclasses import dataclass

from pg_ai_query.config import ProviderProfile, Settings
from pg_ai_query.logging_config import get_logger
from pg_ai_query.providers import CANONICAL_ORDER, Provider, provider_to_string

logger = get_logger(__name__)

SOURCE_PARAMETER = "parameter"

# Only these exact lower-case tokens select a provider explicitly.
_EXPLICIT_PREFERENCES: dict[str, Provider] = {
    provider.value: provider for provider in CANONICAL_ORDER
}


@dataclass(frozen=True)
class ProviderSelection:
    """Selected provider, resolved API key and where that key came from."""

    provider: Provider
    api_key: str = ""
    profile: ProviderProfile | None = None
    api_key_source: str = ""
    success: bool = False
    error_message: str = ""


def _config_source(provider: Provider) -> str:
    return f"{provider_to_string(provider)}_config"


def _select_explicit(
    api_key: str,
    provider: Provider,
    settings: Settings,
) -> ProviderSelection:
    profile = settings.get_provider_profile(provider)
    provider_name = provider_to_string(provider)
    logger.info("provider_selected_explicitly", provider=provider_name)

    if api_key:
        return ProviderSelection(
            provider=provider,
            api_key=api_key,
            profile=profile,
            api_key_source=SOURCE_PARAMETER,
            success=True,
        )

    if profile is not None and profile.api_key:
        logger.info("api_key_from_configuration", provider=provider_name)
        return ProviderSelection(
            provider=provider,
            api_key=profile.api_key,
            profile=profile,
            api_key_source=_config_source(provider),
            success=True,
        )

    return ProviderSelection(
        provider=provider,
        profile=profile,
        success=False,
        error_message=(
            f"No API key available for {provider_name} provider. "
            "Please provide API key as parameter or configure it in "
            "~/.pg_ai.config."
        ),
    )


def _select_automatic(api_key: str, settings: Settings) -> ProviderSelection:
    if api_key:
        provider = CANONICAL_ORDER[0]
        logger.info(
            "provider_auto_selected",
            provider=provider_to_string(provider),
            reason="api key parameter without provider",
        )
        return ProviderSelection(
            provider=provider,
            api_key=api_key,
            profile=settings.get_provider_profile(provider),
            api_key_source=SOURCE_PARAMETER,
            success=True,
        )

    for provider in CANONICAL_ORDER:
        profile = settings.get_provider_profile(provider)
        if profile is None or not profile.api_key:
            continue
        logger.info(
            "provider_auto_selected",
            provider=provider_to_string(provider),
            reason="configured api key",
        )
        return ProviderSelection(
            provider=provider,
            api_key=profile.api_key,
            profile=profile,
            api_key_source=_config_source(provider),
            success=True,
        )

    logger.warning("no_api_key_configured")
    return ProviderSelection(
        provider=CANONICAL_ORDER[0],
        success=False,
        error_message=(
            "API key required. Pass as parameter or set OpenAI, Anthropic, "
            "or Gemini API key in ~/.pg_ai.config."
        ),
    )


def select_provider(
    api_key: str,
    provider_preference: str,
    settings: Settings,
) -> ProviderSelection:
    """Pick a provider and API key for one request.

    An exact, lower-case provider name selects that provider; anything else
    (empty, ``"auto"``, unknown or differently cased names) falls back to
    automatic selection. Automatic selection binds a caller-supplied key to
    OpenAI, otherwise uses the first provider in canonical order that has a
    configured key.
    """
    api_key = api_key or ""
    explicit = _EXPLICIT_PREFERENCES.get(provider_preference or "")
    if explicit is not None:
        return _select_explicit(api_key, explicit, settings)
    return _select_automatic(api_key, settings)
