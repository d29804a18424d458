"""Agent observers and logging setup: audit, cost, structlog configuration."""

from __future__ import annotations

from lmn_fulfillment.hooks.audit_hook import AuditHook
from lmn_fulfillment.hooks.cost_hook import CostHook, UsageSummary, get_current_usage, reset_usage
from lmn_fulfillment.hooks.events import IAgentObserver, ModelCallEvent, ToolCallEvent
from lmn_fulfillment.hooks.logging_config import (
    bind_request_context,
    clear_request_context,
    setup_logging,
)

__all__ = [
    "AuditHook",
    "CostHook",
    "IAgentObserver",
    "ModelCallEvent",
    "ToolCallEvent",
    "UsageSummary",
    "bind_request_context",
    "clear_request_context",
    "get_current_usage",
    "reset_usage",
    "setup_logging",
]
