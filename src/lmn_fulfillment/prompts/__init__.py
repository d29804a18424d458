"""System directives for the language model."""

from __future__ import annotations

from lmn_fulfillment.prompts.letter import SEARCH_TOOL_DESCRIPTION, SYSTEM_PROMPT

__all__ = ["SEARCH_TOOL_DESCRIPTION", "SYSTEM_PROMPT"]
