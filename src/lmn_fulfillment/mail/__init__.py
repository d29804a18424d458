"""Outbound mail delivery."""

from __future__ import annotations

from lmn_fulfillment.mail.protocols import Attachment, IMailer, MailMessage
from lmn_fulfillment.mail.resend import ResendMailer

__all__ = ["Attachment", "IMailer", "MailMessage", "ResendMailer"]
