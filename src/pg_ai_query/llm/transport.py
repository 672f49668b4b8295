"""Blocking JSON-over-HTTP transport shared by the provider adapters."""

from __future__ import annotations

import http.client
import json
import time
from dataclasses import dataclass
from urllib import error, request

from pg_ai_query.llm.base import LLMError
from pg_ai_query.logging_config import get_logger

logger = get_logger(__name__)

_RETRYABLE_STATUS = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class HTTPResponse:
    status_code: int
    body: str


def _send(
    endpoint: str,
    body: dict[str, object],
    headers: dict[str, str],
    timeout_seconds: float,
) -> HTTPResponse:
    req = request.Request(
        endpoint,
        method="POST",
        data=json.dumps(body).encode("utf-8"),
        headers={"Content-Type": "application/json", **headers},
    )
    try:
        with request.urlopen(req, timeout=timeout_seconds) as response:
            return HTTPResponse(
                status_code=response.status,
                body=response.read().decode("utf-8", errors="replace"),
            )
    except error.HTTPError as exc:
        return HTTPResponse(
            status_code=exc.code,
            body=exc.read().decode("utf-8", errors="replace"),
        )


def post_json(
    endpoint: str,
    body: dict[str, object],
    headers: dict[str, str],
    *,
    timeout_seconds: float,
    max_retries: int,
    backoff_seconds: float = 0.5,
) -> HTTPResponse:
    """POST a JSON body, retrying timeouts, connection errors and 429/5xx.

    Non-retryable HTTP errors are returned as responses so callers can read
    the provider's error payload. Raises ``LLMError`` once retries run out
    without any HTTP response.
    """
    attempts = max_retries + 1
    last_error = "no attempt made"
    for attempt in range(1, attempts + 1):
        try:
            response = _send(endpoint, body, headers, timeout_seconds)
        except error.URLError as exc:
            last_error = f"request failed: {exc.reason}"
        except TimeoutError:
            last_error = "request timed out"
        except (OSError, http.client.HTTPException) as exc:
            # urllib does not wrap errors raised while reading the response.
            last_error = f"connection failed: {exc!r}"
        else:
            if response.status_code not in _RETRYABLE_STATUS or attempt == attempts:
                return response
            last_error = f"HTTP {response.status_code}"

        if attempt < attempts:
            logger.warning(
                "provider_request_retry",
                endpoint=endpoint,
                attempt=attempt,
                max_attempts=attempts,
                error=last_error,
            )
            time.sleep(backoff_seconds * (2 ** (attempt - 1)))

    raise LLMError(f"Provider {last_error} after {attempts} attempt(s).")


def decode_json_body(response: HTTPResponse) -> dict[str, object]:
    """Decode a provider response body that must be a JSON object."""
    try:
        payload = json.loads(response.body)
    except json.JSONDecodeError as exc:
        raise LLMError("Provider response was not valid JSON.") from exc
    if not isinstance(payload, dict):
        raise LLMError("Provider response root must be a JSON object.")
    return payload
