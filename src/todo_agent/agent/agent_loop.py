"""
Agent loop: drives completion -> decode -> dispatch cycles for one user turn.

States::

    AWAITING_USER_INPUT -> AWAITING_COMPLETION -> {PLANNING, DISPATCHING, DONE, FAILED}

``PLANNING`` and ``DISPATCHING`` go back to ``AWAITING_COMPLETION`` until the model emits an
``output`` intent (``DONE``) or something fails (``FAILED``).  Each turn gets at most
``max_steps`` completions.  A failing tool does not fail the turn, its error is handed back to the
model as an observation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from todo_agent.agent.completion_client import (
    BaseCompletionClient,
    CompletionError,
)
from todo_agent.agent.conversation import ConversationState
from todo_agent.agent.intent_decoder import (
    DecodeError,
    UnknownToolError,
    decode_intent,
)
from todo_agent.agent.tool_executor import (
    ToolError,
    execute_tool,
)
from todo_agent.common import (
    AnsiColors,
    colored_print,
    compact_json,
)
from todo_agent.core.schema import (
    ActionIntent,
    Intent,
    Message,
    Observation,
    OutputIntent,
    PlanIntent,
    UserIntent,
)
from todo_agent.tools import (
    ToolName,
    ToolRegistry,
)

logger = logging.getLogger(__name__)

CONTINUE_MESSAGE = "Continue with your plan."
STEP_LIMIT_MESSAGE = "turn aborted: step limit"


class TurnState(str, Enum):
    """Where the loop is within a turn."""

    AWAITING_USER_INPUT = "awaiting_user_input"
    AWAITING_COMPLETION = "awaiting_completion"
    PLANNING = "planning"
    DISPATCHING = "dispatching"
    DONE = "done"
    FAILED = "failed"


class StepLimitError(RuntimeError):
    """Raised (as a turn result) when a turn uses up its completion budget."""


@dataclass
class TurnResult:
    """Outcome of one user turn."""

    state: TurnState
    output: str | None = None
    error: Exception | None = None
    steps: int = 0

    @property
    def ok(self) -> bool:
        return self.state is TurnState.DONE


class AgentLoop:
    """
    State machine for one conversation.

    The loop owns no global state: the transcript lives in the :class:`ConversationState` it is
    given, so the same loop can be driven by the REPL or by a test with a scripted client.
    """

    def __init__(
        self,
        client: BaseCompletionClient,
        registry: ToolRegistry,
        conversation: ConversationState,
        max_steps: int = 10,
        verbose: bool = True,
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.client = client
        self.registry = registry
        self.conversation = conversation
        self.max_steps = max_steps
        self.verbose = verbose
        self.state = TurnState.AWAITING_USER_INPUT

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def run_turn(self, user_text: str) -> TurnResult:
        """Process *user_text* until the model answers or the turn fails."""
        if self.state is not TurnState.AWAITING_USER_INPUT:
            raise RuntimeError(f"Cannot start a turn while {self.state.value}")

        self._record(UserIntent(user=user_text))
        try:
            return self._drive()
        finally:
            self.state = TurnState.AWAITING_USER_INPUT

    # ------------------------------------------------------------------ #
    # State machine
    # ------------------------------------------------------------------ #
    def _drive(self) -> TurnResult:
        for step in range(1, self.max_steps + 1):
            self.state = TurnState.AWAITING_COMPLETION
            try:
                raw = self.client.generate(self.conversation.snapshot())
            except CompletionError as exc:
                return self._fail(exc, step)

            try:
                intent = decode_intent(raw, self.registry)
            except DecodeError as exc:
                return self._fail(exc, step, raw=raw)

            self._record(intent)

            if isinstance(intent, OutputIntent):
                self.state = TurnState.DONE
                self._show(f"🤖: {intent.output}", AnsiColors.YELLOW)
                return TurnResult(TurnState.DONE, output=intent.output, steps=step)

            if isinstance(intent, PlanIntent):
                self.state = TurnState.PLANNING
                logger.info("Plan: %s", intent.plan)
                self._show(f"🧠 Planning: {intent.plan}", AnsiColors.MAGENTA)
                self.conversation.append(Message(role="user", content=CONTINUE_MESSAGE))
            elif isinstance(intent, ActionIntent):
                self.state = TurnState.DISPATCHING
                self._dispatch(intent)

        self.conversation.append(Observation(error=STEP_LIMIT_MESSAGE).to_message())
        return self._fail(
            StepLimitError(f"{STEP_LIMIT_MESSAGE} ({self.max_steps} completions)"), self.max_steps
        )

    def _dispatch(self, intent: ActionIntent) -> None:
        tool = ToolName(intent.function)
        logger.info("Action: %s(%r)", tool.value, intent.input)
        self._show(f"🔧 Action: {tool.value}({intent.input!r})", AnsiColors.BLUE)

        try:
            result = execute_tool(self.registry, tool, intent.input)
        except ToolError as exc:
            observation = Observation(error=str(exc))
            self._show(f"⚠️ {exc}", AnsiColors.RED)
        else:
            observation = Observation(observation=result)
            logger.info("Tool '%s' returned: %s", tool.value, compact_json(result))
            self._show(f"👀 Observation: {compact_json(result)}", AnsiColors.GREEN)

        self.conversation.append(observation.to_message())

    def _fail(self, exc: Exception, step: int, raw: str | None = None) -> TurnResult:
        self.state = TurnState.FAILED
        if isinstance(exc, UnknownToolError):
            logger.error("Model requested unknown tool '%s'; raw completion: %s", exc.function, raw)
        elif isinstance(exc, DecodeError):
            logger.error("Could not decode completion (%s); raw completion: %s", exc, raw)
        else:
            logger.error("Turn failed: %s", exc)
        self._show(f"⚠️ Turn failed: {exc}", AnsiColors.RED)
        return TurnResult(TurnState.FAILED, error=exc, steps=step)

    def _record(self, intent: Intent) -> None:
        role = "user" if isinstance(intent, UserIntent) else "assistant"
        self.conversation.append(Message(role=role, content=intent.model_dump_json()))

    def _show(self, text: str, color: AnsiColors) -> None:
        if self.verbose:
            colored_print(text, color)
