"""Tests for the completion clients and their error mapping."""

import json
from types import SimpleNamespace

import anthropic
import httpx
import openai
import pytest

from todo_agent.agent.completion_client import (
    AnthropicClient,
    CompletionError,
    GeminiClient,
    OpenAIClient,
    load_client,
)
from todo_agent.config import Settings
from todo_agent.core.schema import Message

HISTORY = [
    Message(role="system", content="You manage todos."),
    Message(role="user", content='{"type":"user","user":"hi"}'),
    Message(role="assistant", content='{"type":"plan","plan":"greet"}'),
    Message(role="user", content="Continue with your plan."),
]
OUTPUT = '{"type":"output","output":"Hello!"}'


def _gemini(settings: Settings, handler) -> GeminiClient:
    return GeminiClient(settings, transport=httpx.MockTransport(handler))


def _status_error(cls, status: int):
    request = httpx.Request("POST", "https://api.example.test/v1")
    return cls("failed", response=httpx.Response(status, request=request), body=None)


def test_load_client(settings: Settings) -> None:
    assert isinstance(load_client(settings), GeminiClient)
    assert isinstance(load_client(settings, "OpenAI"), OpenAIClient)
    with pytest.raises(ValueError, match="not registered"):
        load_client(settings, "tgi")


# ---------------------------------------------------------------------------
# Gemini
# ---------------------------------------------------------------------------
def test_gemini_request_and_response(settings: Settings) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["key"] = request.headers["x-goog-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200, json={"candidates": [{"content": {"parts": [{"text": OUTPUT}]}}]}
        )

    assert _gemini(settings, handler).generate(HISTORY) == OUTPUT

    assert seen["url"].endswith("/models/gemini-1.5-flash:generateContent")
    assert seen["key"] == "test-key"
    body = seen["body"]
    assert body["systemInstruction"] == {"parts": [{"text": "You manage todos."}]}
    assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
    assert body["generationConfig"]["responseMimeType"] == "application/json"


@pytest.mark.parametrize(
    ("status", "kind"),
    [(401, "auth"), (403, "auth"), (429, "rate_limit"), (500, "server"), (503, "server")],
)
def test_gemini_http_errors(settings: Settings, status: int, kind: str) -> None:
    client = _gemini(settings, lambda request: httpx.Response(status, json={"error": {}}))

    with pytest.raises(CompletionError) as excinfo:
        client.generate(HISTORY)
    assert excinfo.value.kind == kind


def test_gemini_network_error(settings: Settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CompletionError) as excinfo:
        _gemini(settings, handler).generate(HISTORY)
    assert excinfo.value.kind == "network"


@pytest.mark.parametrize(
    "payload",
    [
        {"promptFeedback": {"blockReason": "SAFETY"}},
        {"candidates": []},
        {"candidates": [{"content": {"parts": [{"text": "  "}]}}]},
    ],
)
def test_gemini_empty_or_blocked(settings: Settings, payload: dict) -> None:
    client = _gemini(settings, lambda request: httpx.Response(200, json=payload))

    with pytest.raises(CompletionError) as excinfo:
        client.generate(HISTORY)
    assert excinfo.value.kind == "server"


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------
class _FakeOpenAI:
    outcome: object = None
    calls: list = []

    def __init__(self, **kwargs):
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        _FakeOpenAI.calls.append(kwargs)
        if isinstance(_FakeOpenAI.outcome, Exception):
            raise _FakeOpenAI.outcome
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=_FakeOpenAI.outcome))]
        )


@pytest.fixture()
def fake_openai(monkeypatch: pytest.MonkeyPatch):
    _FakeOpenAI.calls = []
    monkeypatch.setattr(openai, "OpenAI", _FakeOpenAI)
    return _FakeOpenAI


def test_openai_sends_full_history(settings: Settings, fake_openai) -> None:
    fake_openai.outcome = OUTPUT

    assert OpenAIClient(settings).generate(HISTORY) == OUTPUT
    sent = fake_openai.calls[0]
    assert [m["role"] for m in sent["messages"]] == ["system", "user", "assistant", "user"]
    assert sent["response_format"] == {"type": "json_object"}


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (lambda: _status_error(openai.AuthenticationError, 401), "auth"),
        (lambda: _status_error(openai.RateLimitError, 429), "rate_limit"),
        (lambda: _status_error(openai.InternalServerError, 500), "server"),
        (
            lambda: openai.APIConnectionError(request=httpx.Request("POST", "https://x.test")),
            "network",
        ),
    ],
)
def test_openai_error_mapping(settings: Settings, fake_openai, error, kind: str) -> None:
    fake_openai.outcome = error()

    with pytest.raises(CompletionError) as excinfo:
        OpenAIClient(settings).generate(HISTORY)
    assert excinfo.value.kind == kind


def test_openai_empty_content(settings: Settings, fake_openai) -> None:
    fake_openai.outcome = None

    with pytest.raises(CompletionError, match="Empty response"):
        OpenAIClient(settings).generate(HISTORY)


# ---------------------------------------------------------------------------
# Anthropic
# ---------------------------------------------------------------------------
class _FakeAnthropic:
    outcome: object = None
    calls: list = []

    def __init__(self, **kwargs):
        self.messages = SimpleNamespace(create=self._create)

    def _create(self, **kwargs):
        _FakeAnthropic.calls.append(kwargs)
        if isinstance(_FakeAnthropic.outcome, Exception):
            raise _FakeAnthropic.outcome
        return SimpleNamespace(content=[SimpleNamespace(type="text", text=_FakeAnthropic.outcome)])


@pytest.fixture()
def fake_anthropic(monkeypatch: pytest.MonkeyPatch):
    _FakeAnthropic.calls = []
    monkeypatch.setattr(anthropic, "Anthropic", _FakeAnthropic)
    return _FakeAnthropic


def test_anthropic_moves_system_prompt(settings: Settings, fake_anthropic) -> None:
    fake_anthropic.outcome = OUTPUT

    assert AnthropicClient(settings).generate(HISTORY) == OUTPUT
    sent = fake_anthropic.calls[0]
    assert sent["system"] == "You manage todos."
    assert [m["role"] for m in sent["messages"]] == ["user", "assistant", "user"]


@pytest.mark.parametrize(
    ("error", "kind"),
    [
        (lambda: _status_error(anthropic.AuthenticationError, 401), "auth"),
        (lambda: _status_error(anthropic.RateLimitError, 429), "rate_limit"),
        (lambda: _status_error(anthropic.InternalServerError, 500), "server"),
    ],
)
def test_anthropic_error_mapping(settings: Settings, fake_anthropic, error, kind: str) -> None:
    fake_anthropic.outcome = error()

    with pytest.raises(CompletionError) as excinfo:
        AnthropicClient(settings).generate(HISTORY)
    assert excinfo.value.kind == kind
