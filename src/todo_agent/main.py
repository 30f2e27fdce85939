"""
To-do assistant entry point.

This file handles startup concerns (arg-parsing, settings, logging, database) and launches the REPL.
"""

import argparse
import logging
import sys

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from todo_agent.agent.agent_loop import AgentLoop
from todo_agent.agent.completion_client import load_client
from todo_agent.agent.conversation import ConversationState
from todo_agent.agent.prompt import build_system_prompt
from todo_agent.client.cli import run_cli
from todo_agent.config import get_settings
from todo_agent.store.engine import (
    create_db_engine,
    create_session_factory,
    init_db,
)
from todo_agent.store.todo_store import TodoStore
from todo_agent.tools import (
    ToolRegistry,
    get_tool_schemas,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )
    # Keep HTTP client chatter out of the REPL
    for noisy in ("httpx", "httpcore", "openai", "anthropic"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the to-do assistant.

    Configuration comes only from the environment (or ``.env``): ``DATABASE_URL`` and the API key
    of the selected completion backend are required.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(
        description="Manage a to-do list in natural language.",
        epilog="Configure with DATABASE_URL, COMPLETION_BACKEND and the matching API key.",
    )
    parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValidationError as exc:
        _init_logging("error")
        logger.error("Invalid configuration:\n%s", exc)
        return 1

    _init_logging(settings.LOG_LEVEL)
    logger.info("Starting to-do assistant [%s backend]", settings.COMPLETION_BACKEND)

    try:
        engine = create_db_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)
        init_db(engine)
    except SQLAlchemyError as exc:
        logger.error("Cannot open the database: %s", exc)
        return 1

    registry = ToolRegistry(TodoStore(create_session_factory(engine)))

    conversation = ConversationState(build_system_prompt(registry.names(), get_tool_schemas()))
    loop = AgentLoop(
        client=load_client(settings),
        registry=registry,
        conversation=conversation,
        max_steps=settings.MAX_TURN_STEPS,
    )

    try:
        return run_cli(loop)
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
