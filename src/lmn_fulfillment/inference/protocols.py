"""Chat backend protocol — the contract the generation agent drives."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


@dataclass
class ToolCall:
    """A capability invocation requested by the model.

    ``arguments`` is the raw JSON string as emitted; parsing it is the
    capability registry's job so malformed calls can be reported back.
    """

    call_id: str
    name: str
    arguments: str = "{}"


@dataclass
class ModelTurn:
    """Result of one model round trip."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: str = "finished"
    usage: dict[str, int] = field(default_factory=dict)

    def as_message(self) -> dict[str, Any]:
        """OpenAI-format assistant message for the conversation history."""
        message: dict[str, Any] = {"role": "assistant", "content": self.content or None}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.call_id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments},
                }
                for call in self.tool_calls
            ]
        return message


@runtime_checkable
class IChatBackend(Protocol):
    """Protocol for pluggable chat backends."""

    @property
    def model(self) -> str:
        """Model identifier, for audit logs."""
        ...

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> ModelTurn:
        """Run one model turn.

        Args:
            messages: Chat messages in OpenAI format, system message first.
            tools: Function-calling specs the model may invoke.

        Returns:
            ModelTurn with either final content or requested tool calls.

        Raises:
            LLMClientError: when the backend is unreachable after retries.
        """
        ...
