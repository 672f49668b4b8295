"""OpenAI implementation of the text generator interface."""

from __future__ import annotations

from dataclasses import dataclass

from pg_ai_query.llm.base import GenerateOptions, GenerationResult, LLMError, TextGenerator
from pg_ai_query.llm.transport import decode_json_body, post_json


@dataclass(frozen=True)
class OpenAIAdapter(TextGenerator):
    """Generate text using the OpenAI Chat Completions API."""

    api_key: str
    base_url: str = "https://api.openai.com/v1"
    timeout_seconds: float = 30.0
    max_retries: int = 3

    def generate(self, options: GenerateOptions) -> GenerationResult:
        body: dict[str, object] = {
            "model": options.model,
            "messages": [
                {"role": "system", "content": options.system_prompt},
                {"role": "user", "content": options.user_prompt},
            ],
        }
        if options.max_tokens is not None:
            body["max_tokens"] = options.max_tokens
        if options.temperature is not None:
            body["temperature"] = options.temperature

        endpoint = self.base_url.rstrip("/") + "/chat/completions"
        try:
            response = post_json(
                endpoint,
                body,
                {"Authorization": f"Bearer {self.api_key}"},
                timeout_seconds=self.timeout_seconds,
                max_retries=self.max_retries,
            )
            if response.status_code != 200:
                return GenerationResult(
                    success=False,
                    error_message=f"HTTP {response.status_code}: {response.body}",
                    status_code=response.status_code,
                )
            text = self._extract_message_content(decode_json_body(response))
        except LLMError as exc:
            return GenerationResult(success=False, error_message=str(exc))

        return GenerationResult(text=text, success=True, status_code=200)

    @staticmethod
    def _extract_message_content(payload: dict[str, object]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise LLMError("OpenAI response is missing choices.")

        first = choices[0]
        if not isinstance(first, dict):
            raise LLMError("OpenAI response has invalid choice format.")

        message = first.get("message")
        if not isinstance(message, dict):
            raise LLMError("OpenAI response is missing message content.")

        content = message.get("content")
        if content is None:
            return ""
        if not isinstance(content, str):
            raise LLMError("OpenAI message content is not text.")
        return content
