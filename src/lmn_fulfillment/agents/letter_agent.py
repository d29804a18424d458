"""Letter generation agent: a reasoning loop with one search capability.

The loop is an explicit state machine.  From ``AWAIT_MODEL`` a model turn
either requests capabilities (→ ``INVOKE_CAPABILITY``) or answers
(→ ``TERMINATED``).  Capability calls run one at a time, in the order the
model requested them, and always return to ``AWAIT_MODEL``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from lmn_fulfillment.agents.tools import CapabilityRegistry
from lmn_fulfillment.exceptions import GenerationError, LLMClientError
from lmn_fulfillment.hooks.events import IAgentObserver, ModelCallEvent, ToolCallEvent
from lmn_fulfillment.inference.protocols import IChatBackend, ToolCall
from lmn_fulfillment.models import IntakeRecord
from lmn_fulfillment.prompts.letter import SYSTEM_PROMPT

log = logging.getLogger(__name__)


class AgentState(str, Enum):
    AWAIT_MODEL = "await_model"
    INVOKE_CAPABILITY = "invoke_capability"
    TERMINATED = "terminated"


@dataclass
class AgentRun:
    """Outcome of one agent invocation."""

    text: str
    iterations: int
    tool_calls: int
    messages: list[dict[str, Any]] = field(default_factory=list)


class LetterAgent:
    """Drives the model until it emits final letter text.

    Args:
        backend: Chat backend; its failures are fatal (``GenerationError``).
        capabilities: The closed set of tools the model may call.
        system_prompt: Directive placed first in the conversation.
        max_iterations: Safety ceiling on model turns for one run.
        observers: Receive one event per model call and per tool call.
    """

    def __init__(
        self,
        backend: IChatBackend,
        capabilities: CapabilityRegistry,
        *,
        system_prompt: str = SYSTEM_PROMPT,
        max_iterations: int = 12,
        observers: Sequence[IAgentObserver] = (),
    ) -> None:
        self._backend = backend
        self._capabilities = capabilities
        self._system_prompt = system_prompt
        self._max_iterations = max_iterations
        self._observers = list(observers)

    async def run(self, intake: IntakeRecord) -> AgentRun:
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": self._system_prompt},
            {"role": "user", "content": json.dumps(intake.prompt_payload())},
        ]
        tools = self._capabilities.specs()

        state = AgentState.AWAIT_MODEL
        pending: list[ToolCall] = []
        final_text = ""
        iterations = 0
        tool_calls = 0

        while state is not AgentState.TERMINATED:
            if state is AgentState.AWAIT_MODEL:
                if iterations >= self._max_iterations:
                    raise GenerationError(
                        f"LMN generation incomplete: no final answer after {iterations} model turns"
                    )
                iterations += 1
                start = time.perf_counter()
                try:
                    turn = await self._backend.complete(messages, tools=tools)
                except LLMClientError as e:
                    log.error("Generation backend unavailable: %s", e)
                    raise GenerationError(f"Language model backend unavailable: {e}") from e

                self._emit_model_call(
                    ModelCallEvent(
                        model_id=self._backend.model,
                        iteration=iterations,
                        usage=turn.usage,
                        latency_ms=(time.perf_counter() - start) * 1000,
                        tool_call_count=len(turn.tool_calls),
                    )
                )
                messages.append(turn.as_message())

                if turn.tool_calls:
                    pending = list(turn.tool_calls)
                    state = AgentState.INVOKE_CAPABILITY
                else:
                    final_text = turn.content
                    state = AgentState.TERMINATED

            elif state is AgentState.INVOKE_CAPABILITY:
                for call in pending:
                    messages.append(await self._invoke(call))
                    tool_calls += 1
                pending = []
                state = AgentState.AWAIT_MODEL

        log.info(
            "Letter generation finished: iterations=%d tool_calls=%d chars=%d",
            iterations, tool_calls, len(final_text),
        )
        return AgentRun(
            text=final_text,
            iterations=iterations,
            tool_calls=tool_calls,
            messages=messages,
        )

    async def _invoke(self, call: ToolCall) -> dict[str, Any]:
        start = time.perf_counter()
        result = await self._capabilities.invoke(call)
        self._emit_tool_call(
            ToolCallEvent(
                tool_name=call.name,
                call_id=call.call_id,
                status=result.status,
                latency_ms=(time.perf_counter() - start) * 1000,
                error=result.error,
            )
        )
        return {
            "role": "tool",
            "tool_call_id": call.call_id,
            "name": call.name,
            "content": result.content,
        }

    def _emit_model_call(self, event: ModelCallEvent) -> None:
        for observer in self._observers:
            observer.on_model_call(event)

    def _emit_tool_call(self, event: ToolCallEvent) -> None:
        for observer in self._observers:
            observer.on_tool_call(event)
