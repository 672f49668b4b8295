"""Application configuration loading and validation."""

from __future__ import annotations

import configparser
import os
import threading
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pg_ai_query.logging_config import get_logger
from pg_ai_query.providers import (
    CANONICAL_ORDER,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODELS,
    DEFAULT_TEMPERATURE,
    Provider,
    string_to_provider,
)

logger = get_logger(__name__)

CONFIG_FILE_NAME = ".pg_ai.config"

_GENERAL_KEYS = ("log_level", "enable_logging", "request_timeout_ms", "max_retries")
_QUERY_KEYS = (
    "enforce_limit",
    "default_limit",
    "max_query_length",
    "allow_system_tables",
)
_RESPONSE_KEYS = (
    "show_explanation",
    "show_warnings",
    "show_suggested_visualization",
    "use_formatted_response",
)
_PROVIDER_KEYS = {
    "api_key": "api_key",
    "default_model": "default_model",
    "max_tokens": "default_max_tokens",
    "temperature": "default_temperature",
    "api_endpoint": "api_endpoint",
}


class ConfigError(ValueError):
    """Raised when configuration cannot be loaded safely."""


class ProviderProfile(BaseModel):
    """Stored settings for one AI provider."""

    model_config = ConfigDict(frozen=True)

    provider: Provider
    api_key: str = ""
    default_model: str = Field(min_length=1)
    default_max_tokens: int | None = Field(default=None, gt=0)
    default_temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    api_endpoint: str | None = None

    @field_validator("api_key", "default_model")
    @classmethod
    def strip_value(cls, value: str) -> str:
        return value.strip()

    @field_validator("api_endpoint")
    @classmethod
    def validate_api_endpoint(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        normalized = value.strip()
        if not normalized.startswith(("http://", "https://")):
            raise ValueError("api_endpoint must start with 'http://' or 'https://'.")
        return normalized.rstrip("/")


def default_profile(provider: Provider, **overrides: object) -> ProviderProfile:
    """Build a profile populated with the provider's default model settings."""
    payload: dict[str, object] = {
        "provider": provider,
        "default_model": DEFAULT_MODELS[provider],
        "default_max_tokens": DEFAULT_MAX_TOKENS[provider],
        "default_temperature": DEFAULT_TEMPERATURE,
    }
    payload.update(overrides)
    return ProviderProfile.model_validate(payload)


class Settings(BaseModel):
    """Immutable runtime settings shared by selection, prompting and output."""

    model_config = ConfigDict(frozen=True)

    providers: tuple[ProviderProfile, ...] = Field(
        default_factory=lambda: (default_profile(Provider.OPENAI),)
    )

    log_level: str = "INFO"
    enable_logging: bool = False
    request_timeout_ms: int = Field(default=30000, gt=0)
    max_retries: int = Field(default=3, ge=0)

    enforce_limit: bool = True
    default_limit: int = Field(default=1000, gt=0)
    max_query_length: int = Field(default=4000, gt=0)
    allow_system_tables: bool = False

    show_explanation: bool = True
    show_warnings: bool = True
    show_suggested_visualization: bool = False
    use_formatted_response: bool = False

    postgres_dsn: str | None = None

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log level {value!r}.")
        return normalized

    @field_validator("postgres_dsn")
    @classmethod
    def validate_postgres_dsn(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        normalized = value.strip()
        if not normalized.startswith(("postgresql://", "postgres://")):
            raise ValueError(
                "POSTGRES_DSN must start with 'postgresql://' or 'postgres://'."
            )
        return normalized

    @field_validator("providers")
    @classmethod
    def validate_unique_providers(
        cls, value: tuple[ProviderProfile, ...]
    ) -> tuple[ProviderProfile, ...]:
        seen: set[Provider] = set()
        for profile in value:
            if profile.provider in seen:
                raise ValueError(f"duplicate profile for {profile.provider.value}.")
            seen.add(profile.provider)
        return value

    def get_provider_profile(self, provider: Provider) -> ProviderProfile | None:
        for profile in self.providers:
            if profile.provider == provider:
                return profile
        return None

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout_ms / 1000.0


def _env_value(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name, default)
    if value is None:
        return None
    return value.strip()


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1]
    return value


def default_config_path() -> Path:
    """Return the config path from PG_AI_CONFIG or the home directory default."""
    override = _env_value("PG_AI_CONFIG")
    if override:
        return Path(override).expanduser()
    return Path.home() / CONFIG_FILE_NAME


def _read_config_file(config_path: Path) -> configparser.ConfigParser | None:
    parser = configparser.ConfigParser(
        interpolation=None,
        inline_comment_prefixes=("#", ";"),
    )
    try:
        content = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.warning("config_file_missing", path=str(config_path))
        return None
    except OSError as exc:
        logger.warning("config_file_unreadable", path=str(config_path), error=str(exc))
        return None
    except UnicodeDecodeError as exc:
        raise ConfigError(
            f"Configuration file {config_path} is not valid UTF-8: {exc}"
        ) from exc

    try:
        parser.read_string(content, source=str(config_path))
    except configparser.Error as exc:
        raise ConfigError(f"Could not parse configuration file {config_path}:\n{exc}") from exc
    return parser


def _settings_payload(parser: configparser.ConfigParser | None) -> dict[str, object]:
    payload: dict[str, object] = {}
    profiles: dict[Provider, dict[str, object]] = {Provider.OPENAI: {}}

    if parser is not None:
        for section, keys in (
            ("general", _GENERAL_KEYS),
            ("query", _QUERY_KEYS),
            ("response", _RESPONSE_KEYS),
        ):
            if not parser.has_section(section):
                continue
            for key in keys:
                if parser.has_option(section, key):
                    payload[key] = _unquote(parser.get(section, key))

        for section in parser.sections():
            provider = string_to_provider(section)
            if provider is Provider.UNKNOWN or section != provider.value:
                continue
            entry = profiles.setdefault(provider, {})
            for key, field_name in _PROVIDER_KEYS.items():
                if parser.has_option(section, key):
                    entry[field_name] = _unquote(parser.get(section, key))

    for provider in CANONICAL_ORDER:
        env_key = _env_value(f"PG_AI_{provider.name}_API_KEY")
        if env_key:
            profiles.setdefault(provider, {})["api_key"] = env_key

    payload["providers"] = [
        {
            "provider": provider,
            "default_model": DEFAULT_MODELS[provider],
            "default_max_tokens": DEFAULT_MAX_TOKENS[provider],
            "default_temperature": DEFAULT_TEMPERATURE,
            **profiles[provider],
        }
        for provider in CANONICAL_ORDER
        if provider in profiles
    ]

    dsn = _env_value("POSTGRES_DSN")
    if dsn:
        payload["postgres_dsn"] = dsn
    return payload


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from the INI config file plus environment overrides.

    A missing config file is not an error: defaults are used, with any
    ``PG_AI_<PROVIDER>_API_KEY`` environment values applied on top.
    """
    path = config_path or default_config_path()
    parser = _read_config_file(path)
    payload = _settings_payload(parser)

    try:
        settings = Settings.model_validate(payload)
    except ValidationError as exc:
        messages = []
        for err in exc.errors():
            field = ".".join(str(item) for item in err["loc"])
            messages.append(f"- {field}: {err['msg']}")
        raise ConfigError(
            "Invalid configuration values:\n" + "\n".join(messages)
        ) from exc

    logger.debug(
        "configuration_loaded",
        path=str(path),
        providers=[profile.provider.value for profile in settings.providers],
    )
    return settings


_settings: Settings | None = None
_settings_lock = threading.Lock()


def get_settings() -> Settings:
    """Return the process-wide settings, loading them once on first use.

    Invalid configuration is logged and replaced with defaults so concurrent
    first callers always observe the same usable value.
    """
    global _settings
    if _settings is None:
        with _settings_lock:
            if _settings is None:
                try:
                    _settings = load_settings()
                except ConfigError as exc:
                    logger.error("configuration_invalid_using_defaults", error=str(exc))
                    _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached process-wide settings (used by tests)."""
    global _settings
    with _settings_lock:
        _settings = None
