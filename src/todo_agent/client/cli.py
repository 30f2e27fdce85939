"""Interactive REPL for the to-do assistant."""

from __future__ import annotations

import logging
from typing import (
    Callable,
    Tuple,
)

from todo_agent.agent.agent_loop import AgentLoop
from todo_agent.common import (
    AnsiColors,
    colored_print,
)

logger = logging.getLogger(__name__)

EXIT_COMMANDS = {"exit", "quit"}


# ---------------------------------------------------------------------------
# CLI Client
# ---------------------------------------------------------------------------
def get_user_message(prompt: str = ">> ") -> Tuple[str, bool]:
    """
    Get a message from the user via standard input.

    Returns:
        Tuple of (user_input, success_flag)
        The success_flag is False if input couldn't be read (e.g., Ctrl+C)
    """
    try:
        user_input = input(prompt).strip()
        return user_input, True
    except (EOFError, KeyboardInterrupt):
        return "", False


def run_cli(
    loop: AgentLoop, read_message: Callable[[], Tuple[str, bool]] = get_user_message
) -> int:
    """
    Run the REPL until the user exits.

    Every non-empty line other than ``exit``/``quit`` is one turn of *loop*.  Ctrl+C while a turn
    is running cancels that turn only.  Returns the process exit status.
    """
    colored_print(
        "📝 To-do assistant - type 'exit' or 'quit' (or Ctrl+C) to exit.", AnsiColors.GREEN
    )

    while True:
        user_msg, ok = read_message()
        if not ok:
            break  # Exit if user input couldn't be retrieved (e.g., Ctrl+C)
        if not user_msg:
            continue
        if user_msg.lower() in EXIT_COMMANDS:
            break

        try:
            result = loop.run_turn(user_msg)
        except KeyboardInterrupt:
            logger.warning("Turn cancelled by user")
            colored_print("⚠️ Turn cancelled.", AnsiColors.RED)
            continue

        if not result.ok:
            logger.info("Turn ended in %s after %d step(s)", result.state.value, result.steps)

    colored_print("Goodbye!", AnsiColors.GREEN)
    return 0
