"""Letter output formatters."""

from __future__ import annotations

from lmn_fulfillment.formatters.protocols import IOutputFormatter

__all__ = ["IOutputFormatter"]
