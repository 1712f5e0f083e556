"""Unit tests for denial and appeal data models."""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from pydantic import ValidationError

from rcm_appeals.models import (
    Appeal,
    AuditEntry,
    AuditActionType,
    DenialCategory,
    DenialPriority,
    DenialStatus,
    GenerateAppealOptions,
    NewDenial,
    PatientSummary,
    ProviderInfo,
    RecordOutcomeRequest,
    ValidationUtils,
)


class TestDenial:
    """Test Denial model validation and functionality."""

    def test_defaults(self, make_denial):
        """New denials start as new, low priority, category other."""
        denial = make_denial()
        assert denial.status == DenialStatus.NEW.value
        assert denial.priority == DenialPriority.LOW.value
        assert denial.classified_category == DenialCategory.OTHER.value
        assert denial.is_terminal is False

    def test_reason_code_required(self, make_denial):
        with pytest.raises(ValidationError):
            make_denial(reason_code="   ")

    def test_reason_code_normalized(self, make_denial):
        assert make_denial(reason_code=" co-50 ").reason_code == "CO-50"

    def test_negative_amount_rejected(self, make_denial):
        with pytest.raises(ValidationError):
            make_denial(denied_amount="-1.00")

    def test_non_numeric_amount_rejected(self, make_denial):
        with pytest.raises(ValidationError):
            make_denial(billed_amount="twelve dollars")

    def test_amounts_quantized_to_cents(self, make_denial):
        denial = make_denial(denied_amount=250, billed_amount="1200.5")
        assert denial.denied_amount == Decimal("250.00")
        assert denial.billed_amount == Decimal("1200.50")

    def test_denied_above_billed_is_allowed(self, make_denial):
        """The amount rule is soft: flagged, never rejected."""
        denial = make_denial(billed_amount="100.00", denied_amount="150.00")
        assert denial.amount_exceeds_billed is True

    def test_service_date_after_denial_date_rejected(self, make_denial):
        with pytest.raises(ValidationError):
            make_denial(denial_date=date(2026, 1, 1), service_date=date(2026, 1, 2))

    def test_codes_normalized_and_deduplicated(self, make_denial):
        denial = make_denial(icd_codes=["m54.5", "M54.5", " ", "m54.16"], remark_codes=None)
        assert denial.icd_codes == ["M54.5", "M54.16"]
        assert denial.remark_codes == []

    def test_days_until_deadline(self, make_denial):
        today = date(2026, 3, 2)
        assert make_denial(appeal_deadline=today + timedelta(days=5)).days_until_deadline(today) == 5
        assert make_denial(appeal_deadline=today - timedelta(days=2)).days_until_deadline(today) == -2
        assert make_denial().days_until_deadline(today) is None

    def test_status_assignment_validated(self, make_denial):
        denial = make_denial()
        with pytest.raises(ValidationError):
            denial.status = "archived"

    def test_terminal_statuses(self, make_denial):
        assert make_denial(status="resolved").is_terminal
        assert make_denial(status=DenialStatus.WRITTEN_OFF).is_terminal
        assert not make_denial(status="appealing").is_terminal


class TestNewDenial:
    """Test the intake payload."""

    def test_minimal_payload(self):
        payload = NewDenial(denied_amount="75", reason_code="PR-1")
        assert payload.billed_amount is None
        assert payload.denial_date is None
        assert payload.denied_amount == Decimal("75.00")

    def test_missing_reason_code_rejected(self):
        with pytest.raises(ValidationError):
            NewDenial(denied_amount="75", reason_code="")


class TestPatientSummary:

    def test_full_name(self):
        assert PatientSummary(id="P1", first_name="Ana", last_name="Ruiz").full_name == "Ana Ruiz"
        assert PatientSummary(id="P1", last_name="Ruiz").full_name == "Ruiz"
        assert PatientSummary(id="P1").full_name is None


class TestAppeal:
    """Test Appeal model validation."""

    def _appeal(self, **overrides) -> Appeal:
        fields = {
            "appeal_number": "APL-20260302-AB12CD",
            "denial_id": "D1",
            "subject_line": "Appeal",
            "letter_body": "Body",
            "disputed_amount": "500",
            "requested_amount": "500",
            "response_deadline": date(2026, 4, 16),
            "created_by": "biller-42",
        }
        fields.update(overrides)
        return Appeal(**fields)

    def test_defaults(self):
        appeal = self._appeal()
        assert appeal.status == "draft"
        assert appeal.appeal_type == "first_level"
        assert appeal.ai_generated is True
        assert appeal.ai_confidence == 70
        assert appeal.disputed_amount == Decimal("500.00")

    @pytest.mark.parametrize("number", [
        "APL-2026032-AB12CD",
        "APL-20260302-ab12cd",
        "APL-20260302-AB12C",
        "APP-20260302-AB12CD",
    ])
    def test_appeal_number_format(self, number):
        with pytest.raises(ValidationError):
            self._appeal(appeal_number=number)

    def test_confidence_bounds(self):
        with pytest.raises(ValidationError):
            self._appeal(ai_confidence=101)

    def test_outcome_statuses_are_terminal(self):
        assert self._appeal(status="won").is_terminal
        assert self._appeal(status="partial").is_terminal
        assert not self._appeal(status="in_review").is_terminal


class TestRequestModels:

    def test_won_requires_amount(self):
        with pytest.raises(ValidationError):
            RecordOutcomeRequest(outcome="won")

    def test_partial_requires_amount(self):
        with pytest.raises(ValidationError):
            RecordOutcomeRequest(outcome="partial", notes="reduced")

    def test_denied_without_amount(self):
        request = RecordOutcomeRequest(outcome="denied")
        assert request.amount is None
        assert request.notes == ""

    def test_negative_outcome_amount_rejected(self):
        with pytest.raises(ValidationError):
            RecordOutcomeRequest(outcome="won", amount="-5")

    def test_unknown_outcome_rejected(self):
        with pytest.raises(ValidationError):
            RecordOutcomeRequest(outcome="pending", amount="5")

    def test_blank_options_become_none(self):
        options = GenerateAppealOptions(clinical_justification="  ", additional_notes="", template_id=" ")
        assert options.clinical_justification is None
        assert options.additional_notes is None
        assert options.template_id is None

    def test_provider_npi_validation(self):
        assert ProviderInfo(name="Dr. A", npi="1234567893").npi == "1234567893"
        with pytest.raises(ValidationError):
            ProviderInfo(name="Dr. A", npi="12345")


class TestAuditEntry:
    """Test AuditEntry model."""

    def test_valid_entry(self):
        entry = AuditEntry(
            denial_id="D1",
            action_type=AuditActionType.DENIAL_CREATED,
            description="Denial recorded",
            performed_by="  biller-42 ",
        )
        assert entry.performed_by == "biller-42"
        assert entry.action_type == "denial_created"
        assert entry.timestamp.tzinfo is not None

    def test_actor_required(self):
        with pytest.raises(ValidationError):
            AuditEntry(
                denial_id="D1",
                action_type=AuditActionType.DENIAL_CREATED,
                description="Denial recorded",
                performed_by=" ",
            )

    def test_entries_are_immutable(self):
        entry = AuditEntry(
            denial_id="D1",
            action_type="status_changed",
            description="moved",
            performed_by="biller-42",
        )
        with pytest.raises(ValidationError):
            entry.description = "edited"


class TestValidationUtils:

    def test_to_amount(self):
        assert ValidationUtils.to_amount("10") == Decimal("10.00")
        assert ValidationUtils.to_amount("19.999") == Decimal("20.00")
        with pytest.raises(ValueError):
            ValidationUtils.to_amount("NaN")

    def test_sanitize_string(self):
        assert ValidationUtils.sanitize_string("  x ") == "x"
        assert ValidationUtils.sanitize_string("   ") is None
        assert ValidationUtils.sanitize_string(None) is None

    def test_validate_appeal_number(self):
        assert ValidationUtils.validate_appeal_number("APL-20260302-Z9Z9Z9")
        assert not ValidationUtils.validate_appeal_number("")
