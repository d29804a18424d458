"""lmn-fulfillment: Letter of Medical Necessity generation, signature and delivery.

Pipeline API::

    from lmn_fulfillment import (
        AppSettings,
        FulfillmentService, create_fulfillment_service,
        IntakeRecord, LetterContent, PatientDisplayInfo, AssembledDocument,
        validate_intake, DocumentAssembler, CompletionCorrelator,
    )
"""

from __future__ import annotations

from lmn_fulfillment.assembly import DocumentAssembler
from lmn_fulfillment.core.config import AppSettings
from lmn_fulfillment.correlation import CompletionCorrelator
from lmn_fulfillment.exceptions import (
    AssemblyError,
    CorrelationMiss,
    DispatchError,
    GenerationError,
    LMNError,
    ValidationError,
)
from lmn_fulfillment.intake import validate_intake
from lmn_fulfillment.models import (
    AssembledDocument,
    IntakeRecord,
    KnowledgeSearchResult,
    LetterContent,
    PatientDisplayInfo,
    Recipient,
    SignatureRequest,
)
from lmn_fulfillment.services.fulfillment_service import (
    FulfillmentService,
    create_fulfillment_service,
)

__all__ = [
    "AppSettings",
    "AssembledDocument",
    "AssemblyError",
    "CompletionCorrelator",
    "CorrelationMiss",
    "DispatchError",
    "DocumentAssembler",
    "FulfillmentService",
    "GenerationError",
    "IntakeRecord",
    "KnowledgeSearchResult",
    "LMNError",
    "LetterContent",
    "PatientDisplayInfo",
    "Recipient",
    "SignatureRequest",
    "ValidationError",
    "create_fulfillment_service",
    "validate_intake",
]
