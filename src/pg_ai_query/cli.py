"""Command-line entrypoint for pg-ai-query."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from pg_ai_query import __version__

if TYPE_CHECKING:
    from pg_ai_query.config import Settings

_MISSING_DEPENDENCIES = (
    "Runtime dependencies are missing. "
    "Install project dependencies first (pip install -e .)."
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pg-ai-query",
        description=(
            "Generate PostgreSQL queries from natural language using OpenAI, "
            "Anthropic or Gemini."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the INI config file (default: $PG_AI_CONFIG or ~/.pg_ai.config).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit log output even when logging is disabled in the config file.",
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser(
        "config-check",
        help="Validate and print the loaded configuration.",
    )
    select_parser = subparsers.add_parser(
        "select-provider",
        help="Show which provider and API key source a request would use.",
    )
    select_parser.add_argument("--api-key", default="", help="API key parameter.")
    select_parser.add_argument(
        "--provider",
        default="auto",
        help="Provider preference: openai, anthropic, gemini or auto.",
    )

    list_parser = subparsers.add_parser(
        "list-tables",
        help="List user tables with approximate row counts.",
    )
    list_parser.add_argument("--dsn", default=None, help="PostgreSQL DSN.")
    describe_parser = subparsers.add_parser(
        "describe-table",
        help="Show columns and indexes of one table.",
    )
    describe_parser.add_argument("table", help="Table name.")
    describe_parser.add_argument("--schema", default="public", help="Schema name.")
    describe_parser.add_argument("--dsn", default=None, help="PostgreSQL DSN.")

    prompt_parser = subparsers.add_parser(
        "build-prompt",
        help="Print the system and user prompts for a request.",
    )
    prompt_parser.add_argument("question", help="Natural language request.")
    prompt_parser.add_argument(
        "--dsn",
        default=None,
        help="PostgreSQL DSN used for schema context (optional).",
    )

    parse_parser = subparsers.add_parser(
        "parse-response",
        help="Parse raw model output into a query result.",
    )
    parse_parser.add_argument(
        "text",
        nargs="?",
        default=None,
        help="Raw model output. Read from stdin when omitted.",
    )
    parse_parser.add_argument(
        "--allow-system-tables",
        action="store_true",
        default=None,
        help="Accept queries on information_schema / pg_catalog.",
    )

    generate_parser = subparsers.add_parser(
        "generate-query",
        help="Generate a SQL query for a natural language request.",
    )
    generate_parser.add_argument("question", help="Natural language request.")
    generate_parser.add_argument("--api-key", default="", help="API key parameter.")
    generate_parser.add_argument(
        "--provider",
        default="auto",
        help="Provider preference: openai, anthropic, gemini or auto.",
    )
    generate_parser.add_argument(
        "--dsn",
        default=None,
        help="PostgreSQL DSN used for schema context (optional).",
    )
    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    from pg_ai_query.config import load_settings
    from pg_ai_query.logging_config import setup_logging

    # Route config-loading warnings to stderr before the config is known.
    setup_logging("WARNING", enabled=args.verbose)
    settings = load_settings(args.config)
    setup_logging(
        "DEBUG" if args.verbose else settings.log_level,
        enabled=settings.enable_logging or args.verbose,
    )
    return settings


def _redact(api_key: str) -> str:
    return "***" if api_key else "(not set)"


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        from pg_ai_query.config import ConfigError
    except ModuleNotFoundError:
        print(_MISSING_DEPENDENCIES, file=sys.stderr)
        return 2

    try:
        settings = _load_settings(args)
    except ConfigError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return 2

    if args.command == "config-check":
        print("Configuration loaded successfully:")
        print(f"- log_level: {settings.log_level}")
        print(f"- enable_logging: {settings.enable_logging}")
        print(f"- request_timeout_ms: {settings.request_timeout_ms}")
        print(f"- max_retries: {settings.max_retries}")
        print(f"- enforce_limit: {settings.enforce_limit}")
        print(f"- default_limit: {settings.default_limit}")
        print(f"- max_query_length: {settings.max_query_length}")
        print(f"- allow_system_tables: {settings.allow_system_tables}")
        print(f"- use_formatted_response: {settings.use_formatted_response}")
        print(f"- postgres_dsn: {'(set)' if settings.postgres_dsn else '(not set)'}")
        print("- providers:")
        for profile in settings.providers:
            print(
                f"  - {profile.provider.value}: model={profile.default_model} "
                f"api_key={_redact(profile.api_key)} "
                f"max_tokens={profile.default_max_tokens} "
                f"temperature={profile.default_temperature}"
            )
            if profile.api_endpoint:
                print(f"    endpoint={profile.api_endpoint}")
        return 0

    if args.command == "select-provider":
        from pg_ai_query.selection import select_provider

        selection = select_provider(args.api_key, args.provider, settings)
        if not selection.success:
            print(f"Provider selection failed:\n{selection.error_message}", file=sys.stderr)
            return 1

        print("Provider selection succeeded:")
        print(f"- provider: {selection.provider.value}")
        print(f"- api_key_source: {selection.api_key_source}")
        model = selection.profile.default_model if selection.profile else "(provider default)"
        print(f"- model: {model}")
        return 0

    if args.command in {"list-tables", "describe-table"}:
        try:
            from pg_ai_query.db.introspect import PostgresIntrospector
        except ModuleNotFoundError:
            print(_MISSING_DEPENDENCIES, file=sys.stderr)
            return 2

        dsn = args.dsn or settings.postgres_dsn
        if not dsn:
            print(
                "Configuration error:\nPass --dsn or set POSTGRES_DSN.",
                file=sys.stderr,
            )
            return 2

        introspector = PostgresIntrospector(dsn)
        if args.command == "list-tables":
            schema = introspector.list_tables()
            if not schema.success:
                print(f"Schema introspection failed:\n{schema.error_message}", file=sys.stderr)
                return 1
            print(json.dumps(schema.to_dict(), indent=2))
            return 0

        details = introspector.describe_table(args.table, args.schema)
        if not details.success:
            print(f"Table introspection failed:\n{details.error_message}", file=sys.stderr)
            return 1
        print(json.dumps(details.to_dict(), indent=2))
        return 0

    if args.command == "build-prompt":
        try:
            from pg_ai_query.db.introspect import PostgresIntrospector
        except ModuleNotFoundError:
            print(_MISSING_DEPENDENCIES, file=sys.stderr)
            return 2
        from pg_ai_query.prompts.sql_generation import build_prompt_bundle

        dsn = args.dsn or settings.postgres_dsn
        introspector = PostgresIntrospector(dsn) if dsn else None
        bundle = build_prompt_bundle(args.question, settings, introspector)
        print("--- SYSTEM PROMPT ---")
        print(bundle.system_prompt)
        print("\n--- USER PROMPT ---")
        print(bundle.user_prompt)
        return 0

    if args.command == "parse-response":
        from pg_ai_query.formatting import format_response
        from pg_ai_query.sql.response_parser import parse_query_response

        text = args.text if args.text is not None else sys.stdin.read()
        allow_system_tables = (
            args.allow_system_tables
            if args.allow_system_tables is not None
            else settings.allow_system_tables
        )
        result = parse_query_response(text, allow_system_tables)
        print(format_response(result, settings))
        return 0 if result.success else 1

    if args.command == "generate-query":
        try:
            from pg_ai_query.db.introspect import PostgresIntrospector
        except ModuleNotFoundError:
            print(_MISSING_DEPENDENCIES, file=sys.stderr)
            return 2
        from pg_ai_query.formatting import format_response
        from pg_ai_query.generator import QueryGenerator
        from pg_ai_query.models.query import QueryRequest

        dsn = args.dsn or settings.postgres_dsn
        generator = QueryGenerator(
            settings,
            introspector=PostgresIntrospector(dsn) if dsn else None,
        )
        result = generator.generate_query(
            QueryRequest(
                natural_language=args.question,
                api_key=args.api_key,
                provider=args.provider,
            )
        )
        print(format_response(result, settings))
        return 0 if result.success else 1

    print(f"Command '{args.command}' is not implemented.", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())
