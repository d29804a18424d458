"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lmn_fulfillment.core.config import AppSettings

log = logging.getLogger(__name__)

# Providers that use IAM/local auth and do not require an API key
_NO_KEY_PROVIDERS = frozenset({"bedrock", "ollama"})


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_api_key(settings)
    _check_search(settings)
    _check_collaborators(settings)


def _check_api_key(settings: AppSettings) -> None:
    """Reject placeholder API keys for providers that need real ones."""
    if settings.llm.provider not in _NO_KEY_PROVIDERS:
        if settings.llm.api_key in ("no-key", ""):
            raise ValueError(
                f"LMN_LLM_API_KEY is required for provider '{settings.llm.provider}'. "
                f"Set it via environment variable or secrets manager."
            )


def _check_search(settings: AppSettings) -> None:
    """A Pinecone backend needs both an index host and an API key."""
    if settings.search.backend == "pinecone" and not (
        settings.search.index_host and settings.search.api_key
    ):
        raise ValueError(
            "LMN_SEARCH_BACKEND=pinecone requires LMN_SEARCH_INDEX_HOST and LMN_SEARCH_API_KEY. "
            "Set them, or use LMN_SEARCH_BACKEND=memory for offline runs."
        )


def _check_collaborators(settings: AppSettings) -> None:
    """Warn about external collaborators that will reject every call."""
    if not settings.signing.api_key:
        log.warning("LMN_SIGNING_API_KEY is empty; signature dispatch will fail.")
    if settings.payments.backend == "stripe" and not settings.payments.secret_key:
        log.warning("LMN_PAYMENTS_SECRET_KEY is empty; completion events cannot be correlated.")
    if not settings.mail.api_key:
        log.warning("LMN_MAIL_API_KEY is empty; signed letters will not be emailed.")
    if not settings.forms.forms_dir.is_dir():
        log.warning(
            "Forms directory %s does not exist; letters will be sent without administrator forms.",
            settings.forms.forms_dir,
        )
