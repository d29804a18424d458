"""Purchaser correlation over payment records."""

from __future__ import annotations

from lmn_fulfillment.payments.memory_directory import MemoryPurchaserDirectory
from lmn_fulfillment.payments.protocols import IPurchaserDirectory

__all__ = ["IPurchaserDirectory", "MemoryPurchaserDirectory"]
