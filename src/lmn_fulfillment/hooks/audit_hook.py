"""Audit hook: logs every model call and capability invocation for traceability."""

from __future__ import annotations

import logging

from lmn_fulfillment.hooks.events import ModelCallEvent, ToolCallEvent

log = logging.getLogger(__name__)


class AuditHook:
    """Agent observer that writes one log line per model call and tool call.

    Parameters
    ----------
    run_id:
        Identifier of the pipeline run, for log filtering.
    administrator:
        HSA/FSA administrator dimension (e.g. ``"HealthEquity"``).
    """

    def __init__(self, run_id: str = "", administrator: str = "") -> None:
        self._run_id = run_id
        self._administrator = administrator

    def on_model_call(self, event: ModelCallEvent) -> None:
        usage = event.usage or {}
        log.info(
            "llm_call | model=%s iteration=%d prompt_tokens=%s completion_tokens=%s "
            "tool_calls=%d latency_ms=%.0f run_id=%s administrator=%s",
            event.model_id,
            event.iteration,
            usage.get("prompt_tokens", "?"),
            usage.get("completion_tokens", "?"),
            event.tool_call_count,
            event.latency_ms,
            self._run_id,
            self._administrator,
        )

    def on_tool_call(self, event: ToolCallEvent) -> None:
        if event.status == "success":
            log.info(
                "tool_call | tool=%s call_id=%s status=%s latency_ms=%.0f run_id=%s",
                event.tool_name,
                event.call_id,
                event.status,
                event.latency_ms,
                self._run_id,
            )
        else:
            log.warning(
                "tool_call | tool=%s call_id=%s status=%s error=%s run_id=%s",
                event.tool_name,
                event.call_id,
                event.status,
                event.error,
                self._run_id,
            )
