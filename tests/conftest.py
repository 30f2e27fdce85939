"""Shared fixtures: in-memory SQLite store, bound tool registry and a scripted completion client."""

from typing import (
    Iterator,
    List,
    Sequence,
    Union,
)
from unittest.mock import create_autospec

import pytest
from sqlalchemy.pool import StaticPool

from todo_agent.agent.completion_client import BaseCompletionClient
from todo_agent.config import Settings
from todo_agent.core.schema import Message
from todo_agent.store.engine import (
    create_db_engine,
    create_session_factory,
    init_db,
)
from todo_agent.store.todo_store import TodoStore
from todo_agent.tools import ToolRegistry


class ScriptedClient(BaseCompletionClient):
    """Completion client that replays canned completions (or raises canned errors)."""

    def __init__(self, settings: Settings, script: Sequence[Union[str, Exception]]):
        super().__init__(settings)
        self._script = list(script)
        self.calls: List[List[Message]] = []

    def generate(self, messages: Sequence[Message]) -> str:
        self.calls.append(list(messages))
        if not self._script:
            raise AssertionError("ScriptedClient ran out of completions")
        item = self._script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        DATABASE_URL="sqlite+pysqlite:///:memory:",
        COMPLETION_BACKEND="gemini",
        GOOGLE_API_KEY="test-key",
        _env_file=None,
    )


@pytest.fixture()
def store() -> Iterator[TodoStore]:
    engine = create_db_engine(
        "sqlite+pysqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    init_db(engine)
    yield TodoStore(create_session_factory(engine))
    engine.dispose()


@pytest.fixture()
def registry(store: TodoStore) -> ToolRegistry:
    return ToolRegistry(store)


@pytest.fixture()
def mock_store() -> TodoStore:
    """A TodoStore stand-in that records calls; configure return values per test."""
    return create_autospec(TodoStore, instance=True)


@pytest.fixture()
def script_client(settings: Settings):
    def factory(*script: Union[str, Exception]) -> ScriptedClient:
        return ScriptedClient(settings, script)

    return factory
