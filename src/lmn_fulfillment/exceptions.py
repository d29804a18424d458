"""Exception hierarchy for lmn-fulfillment."""

from __future__ import annotations


class LMNError(Exception):
    """Base exception for all lmn-fulfillment errors."""


class ValidationError(LMNError):
    """Intake failed schema validation.

    ``fields`` lists every offending field path, not just the first.
    """

    def __init__(self, message: str, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class GenerationError(LMNError):
    """Letter generation could not produce a complete structured payload."""

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class AssemblyError(LMNError):
    """Administrative form unreadable, or merge/cap step failed."""


class DispatchError(LMNError):
    """Submission to the counter-signing service failed."""


class CorrelationMiss(LMNError):
    """No payment record references a completed signature document."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"No payment record references document {document_id}")
        self.document_id = document_id


class SearchError(LMNError):
    """Knowledge index query failed."""


class DeliveryError(LMNError):
    """Mail delivery service rejected or failed a message."""


class LLMClientError(LMNError):
    """Raised when LLM API calls fail after exhausting retries."""


class RetryableError(LLMClientError):
    """Rate limits, timeouts, 5xx; retried with backoff."""


class NonRetryableError(LLMClientError):
    """Auth errors, bad requests, 4xx (non-429); fail immediately."""
