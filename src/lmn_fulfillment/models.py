"""Pydantic data models for lmn-fulfillment.

Intake and letter models accept the loose key styles produced by web
forms and language models (camelCase, spaced headings, role aliases) and
normalize them to snake_case attributes.
"""

from __future__ import annotations

import base64
import re
from datetime import date, datetime, timezone
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ATTESTATION_PHRASE = "medically necessary as part of the patient's comprehensive treatment plan."

_CITATION_RE = re.compile(r"\bPMID\s*:?\s*\d{5,9}\b", re.IGNORECASE)


def _as_list(value: Any) -> Any:
    """Accept a bare string or ``None`` where a list of strings is expected."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return value


# ── Intake ───────────────────────────────────────────────────────────


class IntakeRecord(BaseModel):
    """Validated patient intake. Immutable once built."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )

    name: str = ""
    age: int = Field(gt=0)
    sex: str = ""
    hsa_provider: str = Field(min_length=1)
    state: str = Field(min_length=2, max_length=2)
    diagnosed_conditions: list[str] = Field(default_factory=list)
    family_history: list[str] = Field(default_factory=list)
    risk_factors: list[str] = Field(default_factory=list)
    preventive_targets: list[str] = Field(default_factory=list)
    desired_product: str = ""
    business_name: str = ""

    @field_validator(
        "diagnosed_conditions",
        "family_history",
        "risk_factors",
        "preventive_targets",
        mode="before",
    )
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        return _as_list(value)

    @field_validator("state")
    @classmethod
    def _upper_state(cls, value: str) -> str:
        return value.upper()

    @field_validator("name", "sex", "desired_product", "business_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def prompt_payload(self) -> dict[str, Any]:
        """Fields handed to the language model (display name excluded)."""
        return self.model_dump(exclude={"name"})


# ── Knowledge search ─────────────────────────────────────────────────


class KnowledgeSearchResult(BaseModel):
    """A coded reference entry returned by the knowledge index."""

    icd_code: str
    condition: str = ""
    description: str = ""
    relevance_score: float = Field(default=0.0, ge=0.0, le=1.0)

    @field_validator("relevance_score", mode="before")
    @classmethod
    def _clamp_score(cls, value: Any) -> float:
        score = float(value or 0.0)
        return min(1.0, max(0.0, score))


class SearchResponse(BaseModel):
    """Capability payload returned to the generation agent."""

    search_results: list[KnowledgeSearchResult] = Field(default_factory=list)
    total_found: int = 0


# ── Letter ───────────────────────────────────────────────────────────


def intervention_period(start: date | None = None) -> tuple[date, date]:
    """Treatment validity window: *start* (default today) through one year later."""
    start = start or date.today()
    try:
        end = start.replace(year=start.year + 1)
    except ValueError:
        # Feb 29 -> Feb 28
        end = start.replace(year=start.year + 1, day=28)
    return start, end


def _normalize_key(key: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", key.strip().lower()).strip("_")


class LetterContent(BaseModel):
    """Structured letter payload parsed out of the model's final text.

    ``treatment`` and ``conclusion`` are required and must be non-blank.
    Other narrative sections may be empty and are skipped when rendered.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    reported_diagnosis: str = Field(
        default="",
        validation_alias=AliasChoices("reported_diagnosis", "diagnosis"),
    )
    treatment: str = Field(min_length=1)
    clinical_rationale: str = Field(
        default="",
        validation_alias=AliasChoices("clinical_rationale", "rationale"),
    )
    role_in_health: str = Field(
        default="",
        validation_alias=AliasChoices(
            "role_in_health",
            "role_that_the_service_plays",
            "role_the_service_provides",
            "role_that_the_service_plays_in_helping_with_the_patient_s_health",
            "role",
        ),
    )
    conclusion: str = Field(min_length=1)
    icd_codes: list[str] = Field(default_factory=list)
    condition: list[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize_keys(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {_normalize_key(str(k)): v for k, v in data.items()}
        return data

    @field_validator(
        "reported_diagnosis",
        "treatment",
        "clinical_rationale",
        "role_in_health",
        "conclusion",
        mode="before",
    )
    @classmethod
    def _flatten_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return "; ".join(str(v).strip() for v in value if str(v).strip())
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("icd_codes", "condition", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> Any:
        return _as_list(value)

    def compliance_warnings(self) -> list[str]:
        """Content rules the model was asked to follow but did not."""
        warnings: list[str] = []
        if not _CITATION_RE.search(self.clinical_rationale):
            warnings.append("clinical rationale cites no PMID")
        if not self.conclusion.rstrip().endswith(ATTESTATION_PHRASE):
            warnings.append("conclusion lacks the attestation phrase")
        return warnings


class PatientDisplayInfo(BaseModel):
    """Patient facts printed on the letter and used to pick a form."""

    name: str = ""
    email: str = ""
    administrator: str = ""
    state: str = ""
    diagnosed_conditions: list[str] = Field(default_factory=list)
    desired_product: str = ""
    business_name: str = ""

    @classmethod
    def from_intake(cls, intake: IntakeRecord, *, email: str = "") -> PatientDisplayInfo:
        return cls(
            name=intake.name,
            email=email,
            administrator=intake.hsa_provider,
            state=intake.state,
            diagnosed_conditions=list(intake.diagnosed_conditions),
            desired_product=intake.desired_product,
            business_name=intake.business_name,
        )

    def file_name(self, on: date | None = None) -> str:
        """``LMN_<First>_<Last>_<YYYY-MM-DD>.pdf``."""
        parts = [p for p in re.split(r"\s+", self.name.strip()) if p]
        first = parts[0] if parts else "Patient"
        last = parts[-1] if len(parts) > 1 else ""
        stem = "_".join(p for p in ("LMN", first, last) if p)
        stem = re.sub(r"[^A-Za-z0-9_-]", "", stem)
        return f"{stem}_{(on or date.today()).isoformat()}.pdf"


class AssembledDocument(BaseModel):
    """Final document bytes plus how they were produced."""

    content: bytes
    page_count: int
    form_included: bool = False
    stage: Literal["merged", "letter_capped", "letter_full"] = "merged"

    def to_base64(self) -> str:
        return base64.b64encode(self.content).decode("ascii")


# ── Signature and correlation ────────────────────────────────────────


class Recipient(BaseModel):
    """Person asked to counter-sign the letter."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)


class SignatureRequest(BaseModel):
    """Record of one document submitted for counter-signature."""

    document_id: str
    recipient: Recipient
    file_name: str
    business_name: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PurchaserContact(BaseModel):
    """Purchaser address resolved from a payment record."""

    email: str
    payment_id: str = ""
    source: Literal["metadata", "customer", "receipt"] = "metadata"


class CompletionEvent(BaseModel):
    """Inbound notification from the counter-signing service."""

    event_type: str = ""
    document_id: str = ""
    event_time: str = ""
    event_hash: str = ""
    recipients: list[dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> CompletionEvent:
        """Read the nested ``{"event": {...}, "data": {"object": {...}}}`` shape.

        Flat ``{"event_type", "document_id"}`` payloads are also accepted.
        """
        event = payload.get("event") if isinstance(payload.get("event"), dict) else {}
        data = payload.get("data") if isinstance(payload.get("data"), dict) else {}
        obj = data.get("object") if isinstance(data.get("object"), dict) else {}
        return cls(
            event_type=str(event.get("type") or payload.get("event_type") or ""),
            document_id=str(obj.get("id") or payload.get("document_id") or ""),
            event_time=str(event.get("time") or ""),
            event_hash=str(event.get("hash") or ""),
            recipients=list(obj.get("recipients") or []),
        )
