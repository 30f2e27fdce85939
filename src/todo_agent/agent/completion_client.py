"""
Completion clients for the to-do assistant.

This module is the only place that *directly* calls an LLM.  Everything else (agent loop, tools,
store) stays model-agnostic: a client turns the full message history into one completion text, or
raises :class:`CompletionError`.

We support three back-ends out of the box:

1. **Google Gemini** via its REST API (httpx), the default.
2. **OpenAI** via the official SDK.
3. **Anthropic** via the official SDK.

Additional providers can be added by subclassing :class:`BaseCompletionClient` and registering via
:func:`register_client`.  Clients never retry: a failure aborts the current turn.
"""

import logging
from abc import (
    ABC,
    abstractmethod,
)
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Literal,
    Sequence,
    Tuple,
    Type,
)

import httpx

from todo_agent.config import Settings
from todo_agent.core.schema import Message

logger = logging.getLogger(__name__)

CompletionErrorKind = Literal["auth", "network", "rate_limit", "server"]


class CompletionError(RuntimeError):
    """Raised when the completion service cannot produce a completion."""

    def __init__(self, kind: CompletionErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    def __str__(self) -> str:
        return f"[{self.kind}] {super().__str__()}"


# ---------------------------------------------------------------------------
# Registry helpers
# ---------------------------------------------------------------------------
_CLIENT_REGISTRY: dict[str, Type["BaseCompletionClient"]] = {}


def register_client(name: str) -> Callable:
    """Decorator to register a completion client class under *name*."""

    def wrapper(cls: Type["BaseCompletionClient"]) -> Type["BaseCompletionClient"]:
        _CLIENT_REGISTRY[name] = cls
        return cls

    return wrapper


def load_client(settings: Settings, name: str | None = None) -> "BaseCompletionClient":
    """
    Factory that returns an instantiated completion client.

    Fallback order:
    1. *name* arg
    2. ``settings.COMPLETION_BACKEND``
    """
    target = name or settings.COMPLETION_BACKEND
    cls = _CLIENT_REGISTRY.get(target.lower())
    if cls is None:
        raise ValueError(f"Completion backend '{target}' is not registered.")
    return cls(settings)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------
class BaseCompletionClient(ABC):
    """Stateless request/response wrapper around a language-model API."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @abstractmethod
    def generate(self, messages: Sequence[Message]) -> str:
        """Return exactly one completion for *messages* or raise :class:`CompletionError`."""

    @staticmethod
    def _split_system(messages: Sequence[Message]) -> Tuple[str, List[Message]]:
        """Separate system text from the chat turns (for APIs that take it out of band)."""
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        return system, [m for m in messages if m.role != "system"]

    @staticmethod
    def _require_text(content: str | None, backend: str) -> str:
        if not content or not content.strip():
            logger.error("%s returned an empty completion", backend)
            raise CompletionError("server", f"Empty response from {backend}")
        logger.debug("%s completion: %s", backend, content)
        return content


def _kind_for_status(status: int) -> CompletionErrorKind:
    if status in (401, 403):
        return "auth"
    if status == 429:
        return "rate_limit"
    return "server"


# ---------------------------------------------------------------------------
# Concrete clients
# ---------------------------------------------------------------------------
@register_client("gemini")
class GeminiClient(BaseCompletionClient):
    """Gemini ``generateContent`` over httpx, asking for a JSON response."""

    def __init__(self, settings: Settings, transport: httpx.BaseTransport | None = None):
        super().__init__(settings)
        self._transport = transport

    def _payload(self, messages: Sequence[Message]) -> Dict[str, Any]:
        system, turns = self._split_system(messages)
        payload: Dict[str, Any] = {
            "contents": [
                {
                    "role": "model" if m.role == "assistant" else "user",
                    "parts": [{"text": m.content}],
                }
                for m in turns
            ],
            "generationConfig": {
                "temperature": self.settings.COMPLETION_TEMPERATURE,
                "responseMimeType": "application/json",
            },
        }
        if system:
            payload["systemInstruction"] = {"parts": [{"text": system}]}
        return payload

    def generate(self, messages: Sequence[Message]) -> str:
        base = self.settings.GEMINI_ENDPOINT.rstrip("/")
        url = f"{base}/models/{self.settings.GEMINI_MODEL}:generateContent"
        headers = {"x-goog-api-key": self.settings.GOOGLE_API_KEY or ""}

        try:
            with httpx.Client(
                timeout=self.settings.COMPLETION_TIMEOUT, transport=self._transport
            ) as client:
                resp = client.post(url, json=self._payload(messages), headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error("Gemini request failed with HTTP %d", status)
            raise CompletionError(_kind_for_status(status), f"Gemini HTTP {status}") from e
        except httpx.TransportError as e:
            logger.error("Gemini transport error: %s", str(e))
            raise CompletionError("network", f"Error calling Gemini: {e}") from e
        except ValueError as e:
            logger.error("Gemini returned a non-JSON body: %s", str(e))
            raise CompletionError("server", "Gemini returned a non-JSON body") from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
            content = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as e:
            feedback = data.get("promptFeedback") if isinstance(data, dict) else None
            reason = (feedback or {}).get("blockReason")
            logger.error("Unexpected Gemini response shape (block reason: %s)", reason)
            raise CompletionError(
                "server", f"Gemini returned no candidate (block reason: {reason})"
            ) from e

        return self._require_text(content, "Gemini")


@register_client("openai")
class OpenAIClient(BaseCompletionClient):
    """OpenAI chat completions in JSON mode."""

    def generate(self, messages: Sequence[Message]) -> str:
        import openai  # pylint: disable=import-outside-toplevel

        client = openai.OpenAI(
            api_key=self.settings.OPENAI_API_KEY,
            timeout=self.settings.COMPLETION_TIMEOUT,
            max_retries=0,
        )

        try:
            resp = client.chat.completions.create(
                model=self.settings.OPENAI_MODEL,
                messages=[{"role": m.role, "content": m.content} for m in messages],
                temperature=self.settings.COMPLETION_TEMPERATURE,
                response_format={"type": "json_object"},
            )
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            logger.error("OpenAI rejected the credentials: %s", str(e))
            raise CompletionError("auth", f"OpenAI authentication failed: {e}") from e
        except openai.RateLimitError as e:
            logger.error("OpenAI rate limit: %s", str(e))
            raise CompletionError("rate_limit", f"OpenAI rate limit: {e}") from e
        except openai.APIConnectionError as e:
            logger.error("OpenAI connection error: %s", str(e))
            raise CompletionError("network", f"Error calling OpenAI: {e}") from e
        except openai.APIError as e:
            logger.error("OpenAI error: %s", str(e))
            raise CompletionError("server", f"OpenAI error: {e}") from e

        if not resp.choices:
            raise CompletionError("server", "OpenAI returned no choices")
        return self._require_text(resp.choices[0].message.content, "OpenAI")


@register_client("anthropic")
class AnthropicClient(BaseCompletionClient):
    """Anthropic Claude messages API."""

    def generate(self, messages: Sequence[Message]) -> str:
        import anthropic  # pylint: disable=import-outside-toplevel

        client = anthropic.Anthropic(
            api_key=self.settings.ANTHROPIC_API_KEY,
            timeout=self.settings.COMPLETION_TIMEOUT,
            max_retries=0,
        )
        system, turns = self._split_system(messages)

        try:
            response = client.messages.create(
                model=self.settings.ANTHROPIC_MODEL,
                max_tokens=4096,
                system=system,
                messages=[{"role": m.role, "content": m.content} for m in turns],
                temperature=self.settings.COMPLETION_TEMPERATURE,
            )
        except (anthropic.AuthenticationError, anthropic.PermissionDeniedError) as e:
            logger.error("Anthropic rejected the credentials: %s", str(e))
            raise CompletionError("auth", f"Anthropic authentication failed: {e}") from e
        except anthropic.RateLimitError as e:
            logger.error("Anthropic rate limit: %s", str(e))
            raise CompletionError("rate_limit", f"Anthropic rate limit: {e}") from e
        except anthropic.APIConnectionError as e:
            logger.error("Anthropic connection error: %s", str(e))
            raise CompletionError("network", f"Error calling Anthropic: {e}") from e
        except anthropic.APIError as e:
            logger.error("Anthropic error: %s", str(e))
            raise CompletionError("server", f"Anthropic error: {e}") from e

        # Only text blocks carry the JSON intent
        content = "".join(block.text for block in response.content if block.type == "text")
        return self._require_text(content, "Anthropic")
