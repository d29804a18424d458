"""Factory wiring the letter agent from application settings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

from lmn_fulfillment.agents.letter_agent import LetterAgent
from lmn_fulfillment.agents.tools import CapabilityRegistry
from lmn_fulfillment.hooks.audit_hook import AuditHook
from lmn_fulfillment.hooks.cost_hook import CostHook

if TYPE_CHECKING:
    from lmn_fulfillment.core.config import AppSettings
    from lmn_fulfillment.hooks.events import IAgentObserver
    from lmn_fulfillment.inference.protocols import IChatBackend
    from lmn_fulfillment.search.client import KnowledgeSearchClient


def create_letter_agent(
    settings: AppSettings,
    search_client: KnowledgeSearchClient,
    *,
    backend: IChatBackend | None = None,
    observers: Sequence[IAgentObserver] | None = None,
    run_id: str = "",
    administrator: str = "",
) -> LetterAgent:
    """Create a ``LetterAgent`` bound to *search_client*.

    Args:
        settings: Application settings (drives model, retries, iteration ceiling).
        search_client: Backing implementation of the ``search_tool`` capability.
        backend: Chat backend override; defaults to LiteLLM.
        observers: Override the default audit + cost observers.
        run_id: Pipeline run identifier for audit logs.
        administrator: Administrator dimension for audit logs.
    """
    if backend is None:
        from lmn_fulfillment.inference.realtime import LiteLLMChatBackend

        backend = LiteLLMChatBackend(settings.llm)

    if observers is None:
        observers = [AuditHook(run_id=run_id, administrator=administrator), CostHook()]

    return LetterAgent(
        backend,
        CapabilityRegistry(search=search_client.search),
        max_iterations=settings.llm.max_iterations,
        observers=observers,
    )
