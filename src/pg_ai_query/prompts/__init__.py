"""Prompt builders for pg-ai-query."""

from pg_ai_query.prompts.sql_generation import (
    PromptBundle,
    build_prompt,
    build_prompt_bundle,
    build_schema_context,
    build_system_prompt,
)

__all__ = [
    "PromptBundle",
    "build_prompt",
    "build_prompt_bundle",
    "build_schema_context",
    "build_system_prompt",
]
