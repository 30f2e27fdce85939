"""Console helpers shared by the REPL and the agent loop."""

import json
from enum import Enum
from typing import Any

_RESET = "\033[0m"


class AnsiColors(Enum):
    """
    ANSI color codes for terminal output.
    """

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"


def colored_print(text: str, color: AnsiColors, *args: Any, **kwargs: Any) -> None:
    """
    Print text in color.

    Args:
        text: The text to print
        color: The color to use (AnsiColors enum)
        args: Additional positional arguments for print
        kwargs: Additional keyword arguments for print
    """
    print(f"{color.value}{text}{_RESET}", *args, **kwargs)


def compact_json(value: Any) -> str:
    """Serialise *value* the way it is shown to the model and the user."""
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
