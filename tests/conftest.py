"""Shared fixtures for lmn-fulfillment tests."""

from __future__ import annotations

import os

# Use litellm's bundled model cost map; its background network fetch races
# module imports (intermittent _DeadlockError) when offline.
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

import json
from pathlib import Path
from typing import Any

import pytest

from lmn_fulfillment.core.config import (
    AppSettings,
    FormsConfig,
    LLMConfig,
    PaymentConfig,
    PersistenceConfig,
    SearchConfig,
)
from lmn_fulfillment.models import ATTESTATION_PHRASE, PatientDisplayInfo
from tests.fakes.pdf_builders import write_form


@pytest.fixture
def intake_data() -> dict[str, Any]:
    """Form submission as the web client sends it (camelCase keys)."""
    return {
        "name": "Jane Q Doe",
        "age": 32,
        "sex": "female",
        "hsaProvider": "HealthEquity",
        "state": "ny",
        "diagnosedConditions": ["stress"],
        "familyHistory": ["hypertension"],
        "riskFactors": ["sedentary work"],
        "preventiveTargets": "reduce stress and improve sleep",
        "desiredProduct": "Yoga classes",
        "businessName": "Lotus Studio",
    }


@pytest.fixture
def letter_payload() -> dict[str, Any]:
    """A complete structured letter as the model is asked to emit it."""
    return {
        "reported_diagnosis": "The patient reports chronic stress affecting sleep and daily function.",
        "treatment": (
            "Twice-weekly supervised yoga sessions of 60 minutes combining breathing "
            "exercises and graded postures as part of the management plan for 12 months."
        ),
        "clinical_rationale": (
            "Randomized trials show yoga lowers perceived stress and cortisol "
            "(PMID: 28963884, Pascoe et al. 2017)."
        ),
        "role_in_health": "Yoga provides a structured, non-pharmacological way to reduce stress.",
        "conclusion": f"Yoga classes are {ATTESTATION_PHRASE}",
        "icd_codes": ["F43.9"],
        "condition": ["Stress"],
    }


@pytest.fixture
def letter_text(letter_payload: dict[str, Any]) -> str:
    """Model output with prose around the JSON object."""
    return f"Here is the letter you asked for:\n\n{json.dumps(letter_payload, indent=2)}\n\nLet me know if you need changes."


@pytest.fixture
def patient() -> PatientDisplayInfo:
    return PatientDisplayInfo(
        name="Jane Q Doe",
        email="jane@example.com",
        administrator="HealthEquity",
        state="NY",
        diagnosed_conditions=["stress"],
        desired_product="Yoga classes",
        business_name="Lotus Studio",
    )


@pytest.fixture
def forms_dir(tmp_path: Path) -> Path:
    """Forms directory holding a two-page HealthEquity form."""
    directory = tmp_path / "forms"
    write_form(directory, "HealthEquity_LMN.pdf", pages=2)
    return directory


@pytest.fixture
def forms_config(forms_dir: Path) -> FormsConfig:
    return FormsConfig(forms_dir=forms_dir)


@pytest.fixture
def settings(forms_config: FormsConfig) -> AppSettings:
    """Offline settings: memory search, memory payments, memory ledger."""
    return AppSettings(
        llm=LLMConfig(api_key="test-key", max_retries=1),
        search=SearchConfig(backend="memory"),
        forms=forms_config,
        payments=PaymentConfig(backend="memory"),
        persistence=PersistenceConfig(backend="memory"),
    )
