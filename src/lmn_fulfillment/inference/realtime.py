"""Real-time chat backend — wraps ``litellm.acompletion()`` with retries."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

from lmn_fulfillment.core.config import LLMConfig
from lmn_fulfillment.exceptions import NonRetryableError, RetryableError
from lmn_fulfillment.inference.protocols import ModelTurn, ToolCall

log = logging.getLogger(__name__)


class LiteLLMChatBackend:
    """Tool-capable chat backend over LiteLLM.

    Supports ``anthropic/``, ``bedrock/``, ``openai/`` model prefixes
    transparently.  Retryable failures back off exponentially with
    jitter; auth, bad-request and not-found errors fail immediately.
    """

    def __init__(self, config: LLMConfig | None = None) -> None:
        self._config = config or LLMConfig()

    @property
    def model(self) -> str:
        return self._config.model

    @staticmethod
    def _is_retryable(exc: Exception) -> bool:
        """Classify whether an LLM API error should be retried.

        Non-retryable: AuthenticationError, BadRequestError, NotFoundError (4xx non-429).
        Retryable (default): everything else including rate limits, timeouts, 5xx.
        """
        from litellm.exceptions import AuthenticationError, BadRequestError, NotFoundError

        return not isinstance(exc, (AuthenticationError, BadRequestError, NotFoundError))

    async def complete(
        self,
        messages: list[dict[str, Any]],
        *,
        tools: list[dict[str, Any]] | None = None,
    ) -> ModelTurn:
        from litellm import acompletion

        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": messages,
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "timeout": self._config.timeout,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        if self._config.api_key and self._config.api_key != "no-key":
            kwargs["api_key"] = self._config.api_key
        if self._config.base_url:
            kwargs["api_base"] = self._config.base_url

        max_retries = self._config.max_retries
        last_error: Exception | None = None
        for attempt in range(max_retries):
            try:
                response = await acompletion(**kwargs)
                return self._to_turn(response)
            except Exception as e:
                last_error = e
                if not self._is_retryable(e):
                    raise NonRetryableError(f"Non-retryable LLM error: {e}") from e

                base_wait = min(2**attempt, self._config.retry_max_delay)
                wait = base_wait + random.uniform(0, base_wait * self._config.retry_jitter_factor)
                log.warning(
                    "LLM retry %d/%d: %s (wait=%.1fs)",
                    attempt + 1, max_retries, e, wait,
                )
                if attempt < max_retries - 1:
                    await asyncio.sleep(wait)

        raise RetryableError(
            f"LLM API failed after {max_retries} retries: {last_error}"
        ) from last_error

    @staticmethod
    def _to_turn(response: Any) -> ModelTurn:
        choice = response.choices[0]
        message = choice.message
        calls: list[ToolCall] = []
        for i, raw in enumerate(getattr(message, "tool_calls", None) or []):
            function = raw.function
            calls.append(
                ToolCall(
                    call_id=raw.id or f"call_{i}",
                    name=function.name or "",
                    arguments=function.arguments or "{}",
                )
            )

        usage: dict[str, int] = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": getattr(response.usage, "prompt_tokens", 0) or 0,
                "completion_tokens": getattr(response.usage, "completion_tokens", 0) or 0,
                "total_tokens": getattr(response.usage, "total_tokens", 0) or 0,
            }

        reason = choice.finish_reason
        mapped_reason = "max_output_reached" if reason == "length" else "finished"
        return ModelTurn(
            content=message.content or "",
            tool_calls=calls,
            finish_reason=mapped_reason,
            usage=usage,
        )
