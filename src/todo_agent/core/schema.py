"""
Schema definitions for model <-> agent <-> tool messages.

These data models serve as the contract between the language model, the agent loop, and the to-do
tools.  We keep them separate from runtime logic so they can be imported anywhere without
side-effects.
"""

from datetime import datetime
from typing import (
    Annotated,
    Any,
    Literal,
    Optional,
    Union,
)

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
)

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """One entry of the conversation transcript sent on every completion request."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str


# ---------------------------------------------------------------------------
# Intents
# ---------------------------------------------------------------------------
class UserIntent(BaseModel):
    """Raw user text, wrapped so the transcript stays in one JSON dialect."""

    type: Literal["user"] = "user"
    user: StrictStr


class PlanIntent(BaseModel):
    """The model's statement of what it will do next.  No side effect."""

    type: Literal["plan"]
    plan: StrictStr


class ActionIntent(BaseModel):
    """A request to run one registered tool."""

    type: Literal["action"]
    function: StrictStr
    # ``getAllTodos`` takes nothing, the other tools take a string (ids may arrive as numbers)
    input: Union[StrictStr, StrictInt, None] = None


class OutputIntent(BaseModel):
    """Final answer for the current user turn."""

    type: Literal["output"]
    output: StrictStr


AssistantIntent = Annotated[
    Union[PlanIntent, ActionIntent, OutputIntent],
    Field(discriminator="type"),
]
"""The intents a model is allowed to emit."""

Intent = Union[UserIntent, PlanIntent, ActionIntent, OutputIntent]


class Observation(BaseModel):
    """Result (or error) of an action, fed back to the model as a user message."""

    type: Literal["observation"] = "observation"
    observation: Any = None
    error: Optional[str] = None

    def to_message(self) -> Message:
        """Render as the user-role message appended to the transcript."""
        if self.error is not None:
            content = self.model_dump_json(include={"type", "error"})
        else:
            content = self.model_dump_json(include={"type", "observation"})
        return Message(role="user", content=content)


# ---------------------------------------------------------------------------
# Store entities
# ---------------------------------------------------------------------------
class TodoItem(BaseModel):
    """A to-do row as seen by the tools and the model."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
