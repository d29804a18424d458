"""Two-phase letter contract: raw model text in, ``LetterContent`` out.

``parse_letter`` never raises; callers branch on ``ParsedLetter`` versus
``ParseFailure``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterator, Union

from pydantic import ValidationError as PydanticValidationError

from lmn_fulfillment.models import LetterContent

log = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("treatment", "conclusion")


@dataclass(frozen=True)
class ParsedLetter:
    content: LetterContent
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    missing_fields: list[str] = field(default_factory=list)
    preview: str = ""


ParseResult = Union[ParsedLetter, ParseFailure]


def _balanced_spans(text: str) -> Iterator[str]:
    """Yield each top-level ``{...}`` span in order, honoring JSON strings."""
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escape = False
        end = -1
        for i in range(start, len(text)):
            ch = text[i]
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end == -1:
            start = text.find("{", start + 1)
            continue
        yield text[start : end + 1]
        start = text.find("{", end + 1)


def _try_parse(span: str) -> Any | None:
    try:
        return json.loads(span)
    except json.JSONDecodeError:
        pass
    # Trailing comma fix
    fixed = re.sub(r",\s*([}\]])", r"\1", span)
    try:
        return json.loads(fixed)
    except json.JSONDecodeError:
        return None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Return the first balanced ``{...}`` span that decodes to a JSON object."""
    for span in _balanced_spans(text or ""):
        parsed = _try_parse(span)
        if isinstance(parsed, dict):
            return parsed
    return None


def parse_letter(text: str) -> ParseResult:
    """Extract and validate the structured letter embedded in *text*."""
    preview = (text or "")[:200]
    payload = extract_json_object(text)
    if payload is None:
        return ParseFailure(reason="no JSON object found in model output", preview=preview)

    try:
        content = LetterContent.model_validate(payload)
    except PydanticValidationError as e:
        missing: list[str] = []
        for err in e.errors():
            name = str(err["loc"][0]) if err.get("loc") else ""
            if name in _REQUIRED_FIELDS and name not in missing:
                missing.append(name)
        detail = ", ".join(missing) or "; ".join(err["msg"] for err in e.errors())
        return ParseFailure(
            reason=f"letter payload missing or invalid: {detail}",
            missing_fields=missing,
            preview=preview,
        )

    warnings = content.compliance_warnings()
    for warning in warnings:
        log.warning("Letter content check: %s", warning)
    return ParsedLetter(content=content, warnings=warnings)
