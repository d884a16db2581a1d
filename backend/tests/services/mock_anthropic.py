"""Mock Anthropic Client — stands in for ResilientAnthropicClient in design tests.

Invariants:
    - create_message() records each call's keyword arguments
    - Responses are served in order; the last one repeats once exhausted
    - _Block mirrors the SDK content block attributes the service reads

Design Decisions:
    - Flat mock classes (no inheritance): simple, explicit, easy to debug
    - Builder helpers produce realistic Anthropic response structures
"""

import json


class _Block:
    """Mock content block (text)."""

    def __init__(self, **kwargs):
        self._data = kwargs
        for k, v in kwargs.items():
            setattr(self, k, v)

    def __repr__(self):
        return f"_Block({self._data})"


class _Usage:
    def __init__(self, input_tokens=100, output_tokens=50):
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens


class _Message:
    """Mock Message returned by messages.create()."""

    def __init__(self, content, stop_reason="end_turn"):
        self.content = content
        self.stop_reason = stop_reason
        self.usage = _Usage()


def text_response(text: str) -> _Message:
    return _Message([_Block(type="text", text=text)])


def canvas_response(canvas: dict | None = None, fenced: bool = False) -> _Message:
    canvas = canvas or {
        "version": "6.0.0",
        "objects": [
            {"type": "i-text", "text": "{recipient_name}", "left": 421, "top": 280},
        ],
    }
    text = json.dumps(canvas)
    if fenced:
        text = f"```json\n{text}\n```"
    return text_response(text)


class MockAnthropicClient:
    """Sequences canned responses, one per create_message call."""

    def __init__(self, responses: list | None = None):
        self.responses = list(responses or [canvas_response()])
        self.calls: list[dict] = []

    async def create_message(self, **kwargs):
        self.calls.append(kwargs)
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        return self.responses[index]
