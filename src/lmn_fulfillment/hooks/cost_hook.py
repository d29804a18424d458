"""Cost tracking hook: accumulates token usage per pipeline run."""

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass

from lmn_fulfillment.hooks.events import ModelCallEvent, ToolCallEvent


@dataclass
class UsageSummary:
    """Accumulated token usage for a single pipeline run."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    call_count: int = 0
    tool_call_count: int = 0
    tool_error_count: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


_usage: ContextVar[UsageSummary] = ContextVar("lmn_usage")


def get_current_usage() -> UsageSummary:
    """Get the token usage for the current run context."""
    try:
        return _usage.get()
    except LookupError:
        summary = UsageSummary()
        _usage.set(summary)
        return summary


def reset_usage() -> UsageSummary:
    """Reset and return a fresh usage tracker for the current context."""
    summary = UsageSummary()
    _usage.set(summary)
    return summary


class CostHook:
    """Agent observer that tracks token usage per run.

    Use ``get_current_usage()`` to read accumulated totals after an agent run.
    """

    def on_model_call(self, event: ModelCallEvent) -> None:
        usage = event.usage or {}
        summary = get_current_usage()
        summary.prompt_tokens += usage.get("prompt_tokens", 0)
        summary.completion_tokens += usage.get("completion_tokens", 0)
        summary.call_count += 1

    def on_tool_call(self, event: ToolCallEvent) -> None:
        summary = get_current_usage()
        summary.tool_call_count += 1
        if event.status != "success":
            summary.tool_error_count += 1
