"""Anthropic implementation of the text generator interface."""

from __future__ import annotations

from dataclasses import dataclass

from pg_ai_query.llm.base import GenerateOptions, GenerationResult, LLMError, TextGenerator
from pg_ai_query.llm.transport import decode_json_body, post_json

ANTHROPIC_VERSION = "2023-06-01"

# The Messages API requires max_tokens on every request.
FALLBACK_MAX_TOKENS = 4096


@dataclass(frozen=True)
class AnthropicAdapter(TextGenerator):
    """Generate text using the Anthropic Messages API."""

    api_key: str
    base_url: str = "https://api.anthropic.com/v1"
    timeout_seconds: float = 30.0
    max_retries: int = 3

    def generate(self, options: GenerateOptions) -> GenerationResult:
        body: dict[str, object] = {
            "model": options.model,
            "max_tokens": options.max_tokens or FALLBACK_MAX_TOKENS,
            "system": options.system_prompt,
            "messages": [{"role": "user", "content": options.user_prompt}],
        }
        if options.temperature is not None:
            body["temperature"] = options.temperature

        endpoint = self.base_url.rstrip("/") + "/messages"
        try:
            response = post_json(
                endpoint,
                body,
                {
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                timeout_seconds=self.timeout_seconds,
                max_retries=self.max_retries,
            )
            if response.status_code != 200:
                return GenerationResult(
                    success=False,
                    error_message=f"HTTP {response.status_code}: {response.body}",
                    status_code=response.status_code,
                )
            text = self._extract_text(decode_json_body(response))
        except LLMError as exc:
            return GenerationResult(success=False, error_message=str(exc))

        return GenerationResult(text=text, success=True, status_code=200)

    @staticmethod
    def _extract_text(payload: dict[str, object]) -> str:
        content = payload.get("content")
        if not isinstance(content, list):
            raise LLMError("Anthropic response is missing content blocks.")
        parts = [
            block["text"]
            for block in content
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        ]
        return "".join(parts)
