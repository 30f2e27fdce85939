"""Ordered transcript of role-tagged messages for the lifetime of one process."""

from typing import (
    List,
    Sequence,
)

from todo_agent.core.schema import Message


class ConversationState:
    """
    Append-only message sequence seeded with the system prompt.

    Nothing is ever removed or reordered; the whole sequence is sent on every completion request.
    Content is not validated here, callers append what they mean to send.
    """

    def __init__(self, system_prompt: str):
        self._messages: List[Message] = [Message(role="system", content=system_prompt)]

    def append(self, message: Message) -> None:
        """Add *message* to the end of the transcript."""
        self._messages.append(message)

    def snapshot(self) -> Sequence[Message]:
        """Read-only view of the full transcript, oldest first."""
        return tuple(self._messages)
