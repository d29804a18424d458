"""Pluggable language-model chat backends."""

from __future__ import annotations

from lmn_fulfillment.inference.protocols import IChatBackend, ModelTurn, ToolCall
from lmn_fulfillment.inference.realtime import LiteLLMChatBackend

__all__ = ["IChatBackend", "LiteLLMChatBackend", "ModelTurn", "ToolCall"]
