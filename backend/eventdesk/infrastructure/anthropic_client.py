"""Resilient Anthropic Client — one-shot message calls with retry and error mapping.

Invariants:
    - 429 and transient failures (connection, 5xx, 529 overloaded) are retried
      up to max_retries with exponential backoff; a server Retry-After wins
    - Timeouts and other 4xx fail at once
    - Every failure leaves as AnthropicAPIError (503) carrying the caller's context
    - Token usage is logged per successful call with workspace/user extras

Design Decisions:
    - Error classification is a pure function (classify_error) so the retry
      loop stays flat and the policy is testable without the SDK's transport
    - response_text() lives here so services never walk SDK content blocks
"""

import asyncio
import logging
import random

import anthropic
from anthropic import (
    APIConnectionError,
    APIError,
    APIStatusError,
    APITimeoutError,
    RateLimitError,
)

from eventdesk.core.errors import AnthropicAPIError, ErrorContext

logger = logging.getLogger(__name__)

RETRYABLE_STATUS = frozenset({500, 502, 503, 504, 529})


def classify_error(error: Exception) -> tuple[bool, str]:
    """(retryable, error type) for an SDK exception."""
    if isinstance(error, RateLimitError):
        return True, "rate_limit"
    if isinstance(error, APITimeoutError):
        return False, "timeout"
    if isinstance(error, APIConnectionError):
        return True, "connection_error"
    if isinstance(error, APIStatusError):
        if error.status_code in RETRYABLE_STATUS:
            return True, "overloaded" if error.status_code == 529 else "server_error"
        return False, "client_error"
    return False, "unknown"


def retry_after_ms(error: Exception) -> int | None:
    response = getattr(error, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    if not value:
        return None
    try:
        return int(float(value) * 1000)
    except ValueError:
        return None


def response_text(message) -> str:
    """Concatenated text blocks of a Messages API response."""
    return "".join(
        block.text for block in message.content
        if getattr(block, "type", None) == "text"
    )


class ResilientAnthropicClient:

    def __init__(
        self,
        api_key: str,
        max_retries: int = 3,
        base_delay_ms: int = 1000,
        max_delay_ms: int = 30_000,
        timeout_seconds: int = 60,
    ):
        self.client = anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout_seconds)
        self.max_retries = max_retries
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms

    async def create_message(
        self,
        *,
        model: str,
        max_tokens: int,
        system: str,
        messages: list,
        context: ErrorContext | None = None,
    ):
        attempt = 0
        while True:
            try:
                response = await self.client.messages.create(
                    model=model, max_tokens=max_tokens, system=system, messages=messages,
                )
            except APIError as e:
                retryable, error_type = classify_error(e)
                server_delay = retry_after_ms(e)
                if not retryable or attempt >= self.max_retries:
                    raise AnthropicAPIError(
                        str(e), error_type, retry_after_ms=server_delay, context=context,
                    ) from e
                delay = server_delay or self.backoff_ms(attempt)
                logger.warning(
                    f"Anthropic {error_type}, retrying in {delay}ms",
                    extra={"attempt": attempt + 1, **_ids(context)},
                )
                await asyncio.sleep(delay / 1000)
                attempt += 1
                continue

            logger.info(
                f"Anthropic call ok ({model})",
                extra={
                    "attempt": attempt + 1,
                    "input_tokens": response.usage.input_tokens,
                    "output_tokens": response.usage.output_tokens,
                    **_ids(context),
                },
            )
            return response

    def backoff_ms(self, attempt: int) -> int:
        """2^attempt * base, capped, with ±25% jitter."""
        delay = min(self.max_delay_ms, (2 ** attempt) * self.base_delay_ms)
        return int(delay * random.uniform(0.75, 1.25))  # nosec B311


def _ids(context: ErrorContext | None) -> dict:
    if context is None:
        return {}
    return {
        k: v for k, v in (
            ("workspace_id", context.workspace_id), ("user_id", context.user_id),
        ) if v
    }
