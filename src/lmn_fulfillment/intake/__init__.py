"""Intake schema validation."""

from __future__ import annotations

from lmn_fulfillment.intake.validator import validate_intake

__all__ = ["validate_intake"]
