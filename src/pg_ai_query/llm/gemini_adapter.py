"""Google Gemini implementation of the text generator interface."""

from __future__ import annotations

import json
from dataclasses import dataclass
from urllib.parse import quote

from pg_ai_query.llm.base import GenerateOptions, GenerationResult, LLMError, TextGenerator
from pg_ai_query.llm.transport import HTTPResponse, decode_json_body, post_json


@dataclass(frozen=True)
class GeminiAdapter(TextGenerator):
    """Generate text using the Gemini generateContent API."""

    api_key: str
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 30.0
    max_retries: int = 3

    def build_request_body(self, options: GenerateOptions) -> dict[str, object]:
        body: dict[str, object] = {
            "contents": [{"parts": [{"text": options.user_prompt}]}],
        }
        if options.system_prompt:
            body["systemInstruction"] = {"parts": [{"text": options.system_prompt}]}

        generation_config: dict[str, object] = {}
        if options.temperature is not None:
            generation_config["temperature"] = options.temperature
        if options.max_tokens is not None:
            generation_config["maxOutputTokens"] = options.max_tokens
        if generation_config:
            body["generationConfig"] = generation_config
        return body

    def generate(self, options: GenerateOptions) -> GenerationResult:
        endpoint = (
            f"{self.base_url.rstrip('/')}/models/"
            f"{quote(options.model, safe='')}:generateContent"
        )
        try:
            response = post_json(
                endpoint,
                self.build_request_body(options),
                {"x-goog-api-key": self.api_key},
                timeout_seconds=self.timeout_seconds,
                max_retries=self.max_retries,
            )
            if response.status_code != 200:
                return GenerationResult(
                    success=False,
                    error_message=self._error_message(response),
                    status_code=response.status_code,
                )
            text = self._extract_text(decode_json_body(response))
        except LLMError as exc:
            return GenerationResult(success=False, error_message=str(exc))

        return GenerationResult(text=text, success=True, status_code=200)

    @staticmethod
    def _error_message(response: HTTPResponse) -> str:
        try:
            payload = json.loads(response.body)
        except json.JSONDecodeError:
            return f"HTTP {response.status_code}: {response.body}"

        err = payload.get("error") if isinstance(payload, dict) else None
        if not isinstance(err, dict):
            return f"HTTP {response.status_code}"
        message = str(err.get("message", "Unknown error"))
        code = err.get("code")
        if isinstance(code, int):
            return f"Error {code}: {message}"
        return message

    @staticmethod
    def _extract_text(payload: dict[str, object]) -> str:
        candidates = payload.get("candidates")
        if isinstance(candidates, list) and candidates:
            content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list) and parts and isinstance(parts[0], dict):
                text = parts[0].get("text")
                if isinstance(text, str):
                    return text
        raise LLMError("Invalid response format: missing text content")
