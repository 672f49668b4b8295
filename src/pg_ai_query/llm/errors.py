"""Human-readable formatting of provider API errors."""

from __future__ import annotations

import json


def _invalid_model_message(model_name: str) -> str:
    return (
        f"Invalid model '{model_name}'. Please check your configuration and use "
        "a valid model name. Common models: 'claude-sonnet-4-5-20250929' "
        "(Anthropic), 'gpt-4o' (OpenAI)."
    )


def format_api_error(raw_error: str) -> str:
    """Condense a provider error, which may embed a JSON payload, into one message.

    Unknown-model errors get configuration advice; other errors with an
    ``error.message`` return that message; anything else is returned as-is.
    """
    json_start = raw_error.find("{")
    candidate = raw_error[json_start:] if json_start != -1 else raw_error

    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError:
        return raw_error

    if not isinstance(payload, dict):
        return raw_error
    error_obj = payload.get("error")
    if not isinstance(error_obj, dict):
        return raw_error

    message = error_obj.get("message")
    if error_obj.get("type") == "not_found_error":
        if isinstance(message, str) and "model:" in message:
            model_name = message[message.find("model:") + len("model:"):].strip()
            return _invalid_model_message(model_name)
        return (
            "Model not found. Please check your model configuration and ensure "
            "you're using a valid model name."
        )

    if isinstance(message, str):
        return message
    return raw_error
