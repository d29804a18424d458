"""Mail delivery protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class Attachment:
    filename: str
    content: bytes
    content_type: str = "application/pdf"


@dataclass(frozen=True)
class MailMessage:
    to: str
    subject: str
    body: str
    attachments: list[Attachment] = field(default_factory=list)


@runtime_checkable
class IMailer(Protocol):
    """Protocol for mail delivery services."""

    async def send(self, message: MailMessage) -> str:
        """Send *message*. Returns the provider message id. Raises DeliveryError."""
        ...
