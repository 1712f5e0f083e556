"""Pytest configuration and fixtures for denial and appeal engine tests."""

import pytest
from datetime import UTC, date, datetime
from decimal import Decimal

from rcm_appeals.compliance import AuditLogger
from rcm_appeals.config import Settings
from rcm_appeals.integrations import InMemoryAppealStore
from rcm_appeals.lifecycle import DenialAppealService
from rcm_appeals.models import (
    AppealTemplate,
    ClaimSummary,
    Denial,
    DenialCategory,
    PatientSummary,
)


FIXED_NOW = datetime(2026, 3, 2, 15, 30, tzinfo=UTC)
TODAY = FIXED_NOW.date()
ACTOR = "biller-42"


@pytest.fixture
def settings(monkeypatch) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("RCM_APPEALS_OPENAI_API_KEY", raising=False)
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    return lambda: FIXED_NOW


@pytest.fixture
def store() -> InMemoryAppealStore:
    return InMemoryAppealStore()


@pytest.fixture
def audit_logger(store) -> AuditLogger:
    return AuditLogger(store)


@pytest.fixture
def service(store, settings, clock) -> DenialAppealService:
    return DenialAppealService(store=store, settings=settings, clock=clock)


@pytest.fixture
def sample_claim() -> ClaimSummary:
    return ClaimSummary(
        id="CLM-001",
        claim_number="2026-00017",
        provider_name="Dr. Sarah Chen",
        provider_npi="1234567893",
        payer_name="Blue Cross Blue Shield",
    )


@pytest.fixture
def sample_patient() -> PatientSummary:
    return PatientSummary(
        id="PAT-001",
        first_name="Robert",
        last_name="Thompson",
        date_of_birth=date(1966, 4, 12),
        member_id="BCB123456789",
    )


@pytest.fixture
def co50_payload(sample_claim, sample_patient) -> dict:
    """Medical necessity denial of an MRI, $250 denied."""
    return {
        "claim": sample_claim,
        "patient": sample_patient,
        "billed_amount": "250.00",
        "denied_amount": "250.00",
        "reason_code": "CO-50",
        "reason_description": "Not deemed a medical necessity",
        "classified_category": "medical_necessity",
        "cpt_code": "72148",
        "cpt_description": "MRI lumbar spine without contrast",
        "icd_codes": ["M54.5", "M54.16"],
        "service_date": date(2026, 1, 20),
        "denial_date": date(2026, 2, 20),
    }


@pytest.fixture
def co50_denial(service, co50_payload) -> Denial:
    return service.create_denial(co50_payload, actor_id=ACTOR)


@pytest.fixture
def mednec_template() -> AppealTemplate:
    return AppealTemplate(
        id="TPL-MEDNEC",
        name="Medical Necessity Appeal",
        subject_template="Medical Necessity Appeal - Claim {{claim_number}}",
        body_template="Patient {{patient_name}} ({{member_id}}) was denied {{denied_amount}}. {{clinical_justification}}",
        denial_category=DenialCategory.MEDICAL_NECESSITY,
        is_default=True,
        required_attachments=["Copy of denial/EOB", "Letter of medical necessity"],
        optional_attachments=["Imaging results"],
    )


@pytest.fixture
def coding_template() -> AppealTemplate:
    return AppealTemplate(
        id="TPL-CODING",
        name="Coding Correction Appeal",
        subject_template="Coding Appeal - {{claim_number}}",
        body_template="CPT {{cpt_code}} was billed correctly.",
        denial_category=DenialCategory.CODING_ERROR,
        required_attachments=["Operative report"],
    )


@pytest.fixture
def default_template() -> AppealTemplate:
    return AppealTemplate(
        id="TPL-DEFAULT",
        name="General Reconsideration",
        subject_template="Reconsideration - {{claim_number}}",
        body_template="Please reconsider claim {{claim_number}}.",
        denial_category=None,
        is_default=True,
        required_attachments=["Copy of original claim"],
    )


@pytest.fixture
def make_denial():
    """Build a bare Denial without going through the service."""
    def _make(**overrides) -> Denial:
        fields = {
            "billed_amount": Decimal("500.00"),
            "denied_amount": Decimal("500.00"),
            "reason_code": "CO-16",
            "denial_date": TODAY,
        }
        fields.update(overrides)
        return Denial(**fields)
    return _make
