"""Nested pydantic-settings configuration for the fulfillment pipeline.

Each sub-config reads its own ``LMN_<GROUP>_*`` env vars, so both the
nested ``AppSettings().llm.model`` style and flat ``LMN_LLM_MODEL``
overrides work.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMConfig(BaseSettings):
    """Language-model backend configuration.

    Env vars use ``LMN_LLM_`` prefix::

        export LMN_LLM_MODEL=anthropic/claude-3-7-sonnet-latest
        export LMN_LLM_API_KEY=sk-ant-...
    """

    model_config = {"env_prefix": "LMN_LLM_"}

    provider: Literal["anthropic", "openai", "bedrock", "ollama", "litellm"] = "anthropic"
    model: str = "anthropic/claude-3-7-sonnet-latest"
    api_key: str = "no-key"
    base_url: str = ""
    temperature: float = 0.1
    max_tokens: int = 4096
    timeout: float = 120.0
    max_retries: int = 5
    retry_max_delay: float = 30.0
    retry_jitter_factor: float = 0.5
    max_iterations: int = Field(default=12, ge=1)


class SearchConfig(BaseSettings):
    """Knowledge-search backend configuration.

    Env vars use ``LMN_SEARCH_`` prefix.  ``index_host`` is the Pinecone
    index host (``https://<index>-<project>.svc.<env>.pinecone.io``).
    """

    model_config = {"env_prefix": "LMN_SEARCH_"}

    backend: Literal["pinecone", "memory"] = "pinecone"
    index_name: str = "lmn-generator-ts"
    index_host: str = ""
    api_key: str = ""
    namespace: str = "lmn-namespace"
    api_version: str = "2025-04"
    default_top_k: int = Field(default=5, ge=1, le=50)
    rerank_model: str = "bge-reranker-v2-m3"
    timeout: float = 30.0
    upsert_batch_size: int = Field(default=96, ge=1, le=96)
    seed_path: Path | None = None


class PDFFormattingConfig(BaseSettings):
    """Letter PDF formatting configuration.

    Env vars use ``LMN_PDF_`` prefix.
    """

    model_config = {"env_prefix": "LMN_PDF_"}

    page_size: Literal["letter", "a4"] = "letter"
    margin_top: float = 50.0
    margin_bottom: float = 50.0
    margin_left: float = 72.0
    margin_right: float = 72.0
    font_family: str = "Times"
    body_font_size: int = Field(default=11, ge=6, le=24)
    heading_font_size: int = Field(default=14, ge=6, le=36)
    disclaimer: str = "This letter documents medical necessity for HSA/FSA reimbursement purposes."
    default_service: str = "Wellness service/product"


class FormsConfig(BaseSettings):
    """Administrative form merge configuration.

    ``form_files`` maps an administrator display name to a PDF file name
    inside ``forms_dir``.  Signer tokens are emitted verbatim into the
    document for the counter-signing service to pick up.
    """

    model_config = {"env_prefix": "LMN_FORMS_"}

    forms_dir: Path = Path("./forms")
    form_files: dict[str, str] = {
        "HealthEquity": "HealthEquity_LMN.pdf",
        "HSA Bank": "HSABank_LMN.pdf",
        "Optum": "Optum_LMN.pdf",
        "WEX": "WEX_LMN.pdf",
    }
    extra_layouts_path: Path | None = None
    max_pages: int = Field(default=3, ge=2)
    text_token: str = "{{text}}"
    signature_token: str = "{{signature}}"
    date_token: str = "{{date}}"


class SigningConfig(BaseSettings):
    """Counter-signing service configuration.

    Env vars use ``LMN_SIGNING_`` prefix.
    """

    model_config = {"env_prefix": "LMN_SIGNING_"}

    base_url: str = "https://www.signwell.com/api/v1"
    api_key: str = ""
    test_mode: bool = True
    text_tags: bool = True
    reminders: bool = True
    timeout: float = 60.0
    subject: str = "Please sign your Letter of Medical Necessity"
    message: str = (
        "Please review and sign your Letter of Medical Necessity. "
        "This document is required for HSA/FSA reimbursement."
    )
    webhook_secret: str = ""
    signers_path: Path | None = None


class PaymentConfig(BaseSettings):
    """Payment-record store configuration.

    Env vars use ``LMN_PAYMENTS_`` prefix.
    """

    model_config = {"env_prefix": "LMN_PAYMENTS_"}

    backend: Literal["stripe", "memory"] = "stripe"
    secret_key: str = ""
    document_key: str = "signwellDocumentGroupId"
    contact_key: str = "customerEmail"


class MailConfig(BaseSettings):
    """Mail delivery configuration.

    Env vars use ``LMN_MAIL_`` prefix.
    """

    model_config = {"env_prefix": "LMN_MAIL_"}

    base_url: str = "https://api.resend.com"
    api_key: str = ""
    sender: str = "Letters <letters@example.com>"
    subject: str = "Your Signed Letter of Medical Necessity"
    body: str = (
        "Hello,\n\n"
        "Your Letter of Medical Necessity has been reviewed and signed by a licensed "
        "medical provider. The signed letter is attached to this email.\n\n"
        "Submit it to your HSA/FSA administrator together with your receipts to "
        "request reimbursement.\n\n"
        "Thank you."
    )
    timeout: float = 30.0


class PersistenceConfig(BaseSettings):
    """Delivery-ledger persistence configuration.

    Env vars use ``LMN_PERSISTENCE_`` prefix.
    """

    model_config = {"env_prefix": "LMN_PERSISTENCE_"}

    backend: Literal["file", "memory"] = "memory"
    store_path: Path = Path("./ledger")


class ObservabilityConfig(BaseSettings):
    """Observability configuration.

    Env vars use ``LMN_OBSERVABILITY_`` prefix.
    """

    model_config = {"env_prefix": "LMN_OBSERVABILITY_"}

    service_name: str = "lmn-fulfillment"
    log_level: str = "INFO"


class APIConfig(BaseSettings):
    """API server configuration.

    Env vars use ``LMN_API_`` prefix.
    """

    model_config = {"env_prefix": "LMN_API_"}

    title: str = "LMN Fulfillment API"
    description: str = "Letter of Medical Necessity generation, signature and delivery"
    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Top-level application settings aggregating all sub-configs.

    Each sub-config reads its own ``LMN_<GROUP>_*`` env vars.
    """

    llm: LLMConfig = LLMConfig()
    search: SearchConfig = SearchConfig()
    pdf: PDFFormattingConfig = PDFFormattingConfig()
    forms: FormsConfig = FormsConfig()
    signing: SigningConfig = SigningConfig()
    payments: PaymentConfig = PaymentConfig()
    mail: MailConfig = MailConfig()
    persistence: PersistenceConfig = PersistenceConfig()
    observability: ObservabilityConfig = ObservabilityConfig()
    api: APIConfig = APIConfig()
