"""
Tool registry for the to-do assistant.

The set of tools is closed: every tool name is a member of :class:`ToolName`, and a tool function is
registered against exactly one member with :func:`register_tool`.  Tool functions take the
:class:`~todo_agent.store.todo_store.TodoStore` as their first argument; :class:`ToolRegistry` binds
them to a concrete store once at startup.
"""

import inspect
import logging
from enum import Enum
from functools import partial
from types import MappingProxyType
from typing import (
    Any,
    Callable,
    Dict,
    List,
    Mapping,
    TypedDict,
    get_type_hints,
)

from todo_agent.store.todo_store import TodoStore

logger = logging.getLogger(__name__)


class ToolName(str, Enum):
    """Names the model uses in ``action`` intents."""

    CREATE_TODO = "createTodo"
    GET_ALL_TODOS = "getAllTodos"
    SEARCH_TODO = "searchTodo"
    DELETE_TODO_BY_ID = "deleteTodoById"

    @classmethod
    def lookup(cls, name: str) -> "ToolName | None":
        """Return the member called *name*, or ``None`` if it is not a known tool."""
        try:
            return cls(name)
        except ValueError:
            return None


TOOL_REGISTRY: Dict[ToolName, Callable] = {}
"""Unbound tool functions, keyed by tool name."""


def register_tool(name: ToolName) -> Callable:
    """
    Register a tool function under *name*.

    The function is registered as a decorator:
        @register_tool(ToolName.CREATE_TODO)
        def create_todo(store, title: str) -> int:
            ...

    Parameters
    ----------
    name: ToolName
        The tool name.  Only members of :class:`ToolName` can be registered.
    Returns
    -------
    Callable
        A decorator that registers the function with the given name.
    Raises
    ------
    TypeError
        If *name* is not a :class:`ToolName`.
    ValueError
        If a function with the same name is already registered.
    """
    if not isinstance(name, ToolName):
        raise TypeError(f"Tool name must be a ToolName, got {name!r}.")
    if name in TOOL_REGISTRY:
        raise ValueError(f"Tool '{name.value}' is already registered.")
    logger.debug("Registering tool '%s'", name.value)

    def wrapper(fn: Callable) -> Callable:
        TOOL_REGISTRY[name] = fn
        return fn

    return wrapper


class ParameterInfo(TypedDict):
    """
    Information about a tool parameter.
    """

    type: str
    required: bool


class ToolSchema(TypedDict):
    """
    Schema for a tool function
    """

    description: str
    parameters: Mapping[str, ParameterInfo]


def _input_parameters(fn: Callable) -> List[inspect.Parameter]:
    """Parameters of a tool function, without the leading store argument."""
    return list(inspect.signature(fn).parameters.values())[1:]


def get_tool_schemas() -> Mapping[str, ToolSchema]:
    """Extract parameter information from registered tools."""
    tool_schemas: Dict[str, ToolSchema] = {}
    for name, func in TOOL_REGISTRY.items():
        type_hints = get_type_hints(func)
        params = {}
        for param in _input_parameters(func):
            param_type = type_hints.get(param.name, "any")
            param_type_name = getattr(param_type, "__name__", str(param_type))
            params[param.name] = ParameterInfo(
                type=param_type_name, required=param.default is inspect.Parameter.empty
            )
        tool_schemas[name.value] = {
            "description": inspect.getdoc(func) or "",
            "parameters": params,
        }
    return tool_schemas


# ---------------------------------------------------------------------------
# Registry bound to a store
# ---------------------------------------------------------------------------
class ToolRegistry:
    """Immutable mapping from :class:`ToolName` to a tool bound to one store."""

    def __init__(self, store: TodoStore):
        missing = [name.value for name in ToolName if name not in TOOL_REGISTRY]
        if missing:
            raise RuntimeError(f"Tools without an implementation: {', '.join(missing)}")
        self._tools: Mapping[ToolName, Callable] = MappingProxyType(
            {name: partial(fn, store) for name, fn in TOOL_REGISTRY.items()}
        )
        self._takes_input: Mapping[ToolName, bool] = MappingProxyType(
            {name: bool(_input_parameters(fn)) for name, fn in TOOL_REGISTRY.items()}
        )

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> List[str]:
        """Tool names in declaration order."""
        return [name.value for name in ToolName if name in self._tools]

    def call(self, name: ToolName, value: Any = None) -> Any:
        """Invoke tool *name*; tools without an input parameter ignore *value*."""
        fn = self._tools[name]
        if self._takes_input[name]:
            return fn(value)
        return fn()


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------
def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name} must be a string")
    text = value.strip()
    if not text:
        raise ValueError(f"{name} must be non-empty")
    return text


_MAX_ID = 2**63 - 1


def _require_id(value: Any) -> int:
    if isinstance(value, bool):
        raise ValueError("id must be an integer")
    if isinstance(value, int):
        todo_id = value
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        todo_id = int(value.strip())
    else:
        raise ValueError(f"id must be an integer, got {value!r}")
    # ids are stored as signed 64-bit integers
    if not -_MAX_ID - 1 <= todo_id <= _MAX_ID:
        raise ValueError(f"id out of range: {todo_id}")
    return todo_id


@register_tool(ToolName.CREATE_TODO)
def create_todo(store: TodoStore, title: str) -> int:
    """Creates a new todo in the db with the given title and returns the id of that todo."""
    return store.insert(_require_text("title", title))


@register_tool(ToolName.GET_ALL_TODOS)
def get_all_todos(store: TodoStore) -> List[Dict[str, Any]]:
    """Returns all the todos from the database."""
    return [item.model_dump(mode="json") for item in store.list_all()]


@register_tool(ToolName.SEARCH_TODO)
def search_todo(store: TodoStore, query: str) -> List[Dict[str, Any]]:
    """Searches for all todos whose title contains the query string, ignoring case."""
    if not isinstance(query, str):
        raise ValueError("query must be a string")
    return [item.model_dump(mode="json") for item in store.search_by_title(query)]


@register_tool(ToolName.DELETE_TODO_BY_ID)
def delete_todo_by_id(  # pylint: disable=redefined-builtin
    store: TodoStore, id: str
) -> Dict[str, bool]:
    """Deletes the todo with the given id; reports whether a todo was actually removed."""
    return {"deleted": store.delete_by_id(_require_id(id))}
