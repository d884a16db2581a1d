"""Anthropic client — retry policy, error mapping, and text extraction.

Invariants:
    - Rate limits and 5xx/529 are retried, other 4xx and timeouts are not
    - Exhausted retries surface as AnthropicAPIError with the caller's context
"""

from types import SimpleNamespace

import anthropic
import httpx
import pytest

from eventdesk.core.errors import AnthropicAPIError, ErrorContext
from eventdesk.infrastructure.anthropic_client import (
    ResilientAnthropicClient,
    classify_error,
    response_text,
    retry_after_ms,
)

_REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def _status_error(cls, status: int, headers: dict | None = None):
    response = httpx.Response(status, headers=headers or {}, request=_REQUEST)
    return cls("failed", response=response, body=None)


def _ok():
    return SimpleNamespace(
        content=[
            SimpleNamespace(type="text", text="{\"a\": "),
            SimpleNamespace(type="tool_use", text="ignored"),
            SimpleNamespace(type="text", text="1}"),
        ],
        usage=SimpleNamespace(input_tokens=10, output_tokens=5),
    )


class _ScriptedMessages:
    def __init__(self, outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def create(self, **kwargs):
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _client(outcomes, max_retries=2):
    client = ResilientAnthropicClient(
        api_key="test", max_retries=max_retries, base_delay_ms=0, max_delay_ms=0,
    )
    scripted = _ScriptedMessages(outcomes)
    client.client = SimpleNamespace(messages=scripted)
    return client, scripted


def test_classify_error():
    assert classify_error(_status_error(anthropic.RateLimitError, 429)) == (True, "rate_limit")
    assert classify_error(_status_error(anthropic.InternalServerError, 500)) == (True, "server_error")
    assert classify_error(_status_error(anthropic.APIStatusError, 529)) == (True, "overloaded")
    assert classify_error(_status_error(anthropic.BadRequestError, 400)) == (False, "client_error")
    assert classify_error(anthropic.APITimeoutError(request=_REQUEST)) == (False, "timeout")
    assert classify_error(anthropic.APIConnectionError(request=_REQUEST)) == (True, "connection_error")


def test_retry_after_header_parsed():
    error = _status_error(anthropic.RateLimitError, 429, {"retry-after": "2"})
    assert retry_after_ms(error) == 2000
    assert retry_after_ms(_status_error(anthropic.RateLimitError, 429)) is None
    assert retry_after_ms(anthropic.APIConnectionError(request=_REQUEST)) is None


def test_response_text_joins_text_blocks():
    assert response_text(_ok()) == "{\"a\": 1}"


def test_backoff_is_capped():
    client = ResilientAnthropicClient(api_key="test", base_delay_ms=1000, max_delay_ms=4000)
    assert 750 <= client.backoff_ms(0) <= 1250
    assert client.backoff_ms(10) <= 5000


async def test_transient_failures_are_retried():
    client, scripted = _client([
        _status_error(anthropic.InternalServerError, 500),
        anthropic.APIConnectionError(request=_REQUEST),
        _ok(),
    ])
    response = await client.create_message(
        model="m", max_tokens=10, system="s", messages=[],
    )
    assert scripted.calls == 3
    assert response.usage.output_tokens == 5


async def test_client_errors_fail_immediately():
    client, scripted = _client([_status_error(anthropic.BadRequestError, 400), _ok()])
    with pytest.raises(AnthropicAPIError) as info:
        await client.create_message(model="m", max_tokens=10, system="s", messages=[])
    assert scripted.calls == 1
    assert info.value.api_error_type == "client_error"
    assert info.value.http_status == 503


async def test_exhausted_retries_keep_context():
    client, scripted = _client(
        [_status_error(anthropic.RateLimitError, 429)] * 3, max_retries=2,
    )
    with pytest.raises(AnthropicAPIError) as info:
        await client.create_message(
            model="m", max_tokens=10, system="s", messages=[],
            context=ErrorContext(workspace_id="ws-1"),
        )
    assert scripted.calls == 3
    assert info.value.context.workspace_id == "ws-1"
    assert info.value.api_error_type == "rate_limit"
