"""Intake schema validation.

Pure and synchronous: turns an arbitrary mapping into an ``IntakeRecord``
or raises ``ValidationError`` naming every offending field at once.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from lmn_fulfillment.exceptions import ValidationError
from lmn_fulfillment.models import IntakeRecord

_ALIAS_TO_FIELD: dict[str, str] = {to_camel(name): name for name in IntakeRecord.model_fields}


def _field_path(loc: tuple[Any, ...]) -> str:
    parts: list[str] = []
    for part in loc:
        if isinstance(part, str):
            parts.append(_ALIAS_TO_FIELD.get(part, part) if not parts else part)
        else:
            parts.append(str(part))
    return ".".join(parts) or "<root>"


def validate_intake(data: Any) -> IntakeRecord:
    """Validate *data* into an ``IntakeRecord``.

    Raises:
        ValidationError: with ``fields`` listing every invalid or missing
            field path, in input order, without duplicates.
    """
    if isinstance(data, IntakeRecord):
        return data
    if not isinstance(data, dict):
        raise ValidationError("Missing or invalid fields: <root>", fields=["<root>"])

    try:
        return IntakeRecord.model_validate(data)
    except PydanticValidationError as exc:
        fields: list[str] = []
        for err in exc.errors():
            path = _field_path(tuple(err.get("loc", ())))
            if path not in fields:
                fields.append(path)
        raise ValidationError(
            f"Missing or invalid fields: {', '.join(fields)}",
            fields=fields,
        ) from exc
