"""Dispatches action intents to the bound tool registry and wraps errors."""

import logging
from typing import Any

from todo_agent.store.todo_store import StoreError
from todo_agent.tools import (
    ToolName,
    ToolRegistry,
)

logger = logging.getLogger(__name__)


class ToolError(RuntimeError):
    """Raised when a tool rejects its input or fails while running."""

    def __init__(self, tool: ToolName, message: str):
        super().__init__(message)
        self.tool = tool


def execute_tool(registry: ToolRegistry, name: ToolName, value: Any = None) -> Any:
    """
    Invoke tool *name* from *registry* with *value*, exactly once.

    Parameters
    ----------
    registry:
        Tools bound to the to-do store.
    name:
        A tool name already validated by the intent decoder.
    value:
        The ``input`` of the action intent, passed verbatim.

    Returns
    -------
    Any
        Whatever the tool function returns (JSON-serialisable).

    Raises
    ------
    ToolError
        If the tool rejects *value*, the store fails or the tool raises anything else.
    """
    try:
        logger.debug("Executing tool '%s' with input=%r", name.value, value)
        return registry.call(name, value)
    except ValueError as exc:
        logger.warning("Invalid input for tool '%s': %s", name.value, exc)
        raise ToolError(name, f"Invalid input for tool '{name.value}': {exc}") from exc
    except StoreError as exc:
        logger.error("Store failure in tool '%s': %s", name.value, exc)
        raise ToolError(name, f"Tool '{name.value}' failed: {exc}") from exc
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Unexpected error in tool '%s'", name.value)
        raise ToolError(name, f"Tool '{name.value}' failed: {exc}") from exc
