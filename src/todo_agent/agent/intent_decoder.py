"""
Strict decoder for model completions.

A completion must be exactly one JSON object of the form
    {"type": "plan",   "plan": "..."}
    {"type": "action", "function": "<tool>", "input": ...}
    {"type": "output", "output": "..."}
optionally wrapped in a single markdown code fence.  Anything else is a :class:`DecodeError`; an
action naming a tool outside the registry is an :class:`UnknownToolError`.  Nothing is repaired or
defaulted.
"""

import re
from typing import Union

from pydantic import (
    TypeAdapter,
    ValidationError,
)

from todo_agent.core.schema import (
    ActionIntent,
    AssistantIntent,
    OutputIntent,
    PlanIntent,
)
from todo_agent.tools import (
    ToolName,
    ToolRegistry,
)

DecodedIntent = Union[PlanIntent, ActionIntent, OutputIntent]

_INTENT_ADAPTER: TypeAdapter[DecodedIntent] = TypeAdapter(AssistantIntent)
_FENCE_RE = re.compile(r"\A```(?:json)?\s*\n?(.*?)\s*```\Z", re.DOTALL)


class DecodeError(ValueError):
    """Raised when a completion is not a well-formed intent."""

    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.raw = raw


class UnknownToolError(DecodeError):
    """Raised when an action names a tool that is not registered."""

    def __init__(self, function: str, raw: str):
        super().__init__(f"Unknown tool '{function}'", raw)
        self.function = function


def _strip_fence(text: str) -> str:
    match = _FENCE_RE.match(text)
    return match.group(1) if match else text


def decode_intent(text: str, registry: ToolRegistry) -> DecodedIntent:
    """
    Decode the raw completion *text* into exactly one intent.

    Raises
    ------
    DecodeError
        Invalid JSON, a missing or unrecognised ``type``, or a missing / mistyped field.
    UnknownToolError
        An ``action`` whose ``function`` is not in *registry*.
    """
    body = _strip_fence(text.strip())
    if not body:
        raise DecodeError("Empty completion", text)

    try:
        intent = _INTENT_ADAPTER.validate_json(body)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise DecodeError(f"Malformed intent: {problems}", text) from exc

    if isinstance(intent, ActionIntent):
        tool = ToolName.lookup(intent.function)
        if tool is None or tool not in registry:
            raise UnknownToolError(intent.function, text)

    return intent
