"""Closed capability registry for the generation agent.

Capabilities are a fixed enum, each bound to one typed callable.  Any
malformed call (unknown name, unparseable or invalid arguments) becomes an
error string for the model instead of an exception.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from lmn_fulfillment.inference.protocols import ToolCall
from lmn_fulfillment.prompts.letter import SEARCH_TOOL_DESCRIPTION
from lmn_fulfillment.search.client import SearchFailure, SearchOutcome, SearchSuccess


class Capability(str, Enum):
    SEARCH = "search_tool"


class SearchToolInput(BaseModel):
    """Arguments accepted by ``search_tool``."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    query: str = Field(min_length=1, description="Condition or symptom to look up")
    top_k: int = Field(default=5, ge=1, le=20, alias="topK", description="Number of results")


SearchFn = Callable[[str, int], Awaitable[SearchOutcome]]


@dataclass(frozen=True)
class CapabilityResult:
    """Tool message content plus its outcome for observers."""

    content: str
    status: str = "success"
    error: str = ""


def _error(message: str) -> CapabilityResult:
    return CapabilityResult(content=json.dumps({"error": message}), status="error", error=message)


@dataclass(frozen=True)
class CapabilityRegistry:
    """Statically known mapping from capability to implementation."""

    search: SearchFn

    def specs(self) -> list[dict[str, Any]]:
        """Function-calling specs in OpenAI format."""
        schema = SearchToolInput.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return [
            {
                "type": "function",
                "function": {
                    "name": Capability.SEARCH.value,
                    "description": SEARCH_TOOL_DESCRIPTION,
                    "parameters": schema,
                },
            }
        ]

    async def invoke(self, call: ToolCall) -> CapabilityResult:
        try:
            capability = Capability(call.name)
        except ValueError:
            names = ", ".join(c.value for c in Capability)
            return _error(f"Unknown capability '{call.name}'. Available: {names}")

        try:
            arguments = json.loads(call.arguments or "{}")
        except json.JSONDecodeError as e:
            return _error(f"Arguments for {capability.value} are not valid JSON: {e.msg}")
        if isinstance(arguments, str):
            # Some models send the bare query string
            arguments = {"query": arguments}

        if capability is Capability.SEARCH:
            return await self._invoke_search(arguments)
        return _error(f"Capability '{capability.value}' has no implementation")

    async def _invoke_search(self, arguments: Any) -> CapabilityResult:
        try:
            params = SearchToolInput.model_validate(arguments)
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            return _error(f"Invalid arguments for search_tool: {problems}")

        outcome = await self.search(params.query, params.top_k)
        if isinstance(outcome, SearchSuccess):
            return CapabilityResult(content=outcome.to_response().model_dump_json())
        if isinstance(outcome, SearchFailure):
            return _error(f"Search failed: {outcome.error}")
        return _error("Search failed: unexpected result")
