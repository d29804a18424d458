"""Events emitted by the generation agent loop to its observers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass
class ModelCallEvent:
    """One completed language-model round trip."""

    model_id: str
    iteration: int
    usage: dict[str, int] = field(default_factory=dict)
    latency_ms: float = 0.0
    tool_call_count: int = 0


@dataclass
class ToolCallEvent:
    """One capability invocation and its outcome."""

    tool_name: str
    call_id: str
    status: str
    latency_ms: float = 0.0
    error: str = ""


@runtime_checkable
class IAgentObserver(Protocol):
    """Receives lifecycle callbacks from the generation agent."""

    def on_model_call(self, event: ModelCallEvent) -> None: ...

    def on_tool_call(self, event: ToolCallEvent) -> None: ...
