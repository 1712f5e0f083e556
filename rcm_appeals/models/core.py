"""Core data models for denials, their joined projections and the audit trail."""

from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .validation import ValidationUtils


def utc_now() -> datetime:
    return datetime.now(UTC)


class DenialCategory(str, Enum):
    """Closed taxonomy of denial classifications."""
    MEDICAL_NECESSITY = "medical_necessity"
    CODING_ERROR = "coding_error"
    AUTHORIZATION = "authorization"
    ELIGIBILITY = "eligibility"
    TIMELY_FILING = "timely_filing"
    DUPLICATE = "duplicate"
    BUNDLING = "bundling"
    COORDINATION_OF_BENEFITS = "coordination_of_benefits"
    OTHER = "other"


class DenialStatus(str, Enum):
    """Workflow status of a denial."""
    NEW = "new"
    REVIEWING = "reviewing"
    APPEALING = "appealing"
    CORRECTING = "correcting"
    RESUBMITTING = "resubmitting"
    RESOLVED = "resolved"
    WRITTEN_OFF = "written_off"


TERMINAL_DENIAL_STATUSES = frozenset({DenialStatus.RESOLVED.value, DenialStatus.WRITTEN_OFF.value})


class DenialPriority(str, Enum):
    """Work priority derived from deadline proximity."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ResolutionType(str, Enum):
    """How a denial left the open queue."""
    APPEAL_WON = "appeal_won"
    APPEAL_DENIED = "appeal_denied"
    CORRECTED = "corrected"
    WRITTEN_OFF = "written_off"


class AuditActionType(str, Enum):
    """Types of audited lifecycle actions."""
    DENIAL_CREATED = "denial_created"
    APPEAL_GENERATED = "appeal_generated"
    APPEAL_SUBMITTED = "appeal_submitted"
    APPEAL_UPDATED = "appeal_updated"
    OUTCOME_RECORDED = "outcome_recorded"
    STATUS_CHANGED = "status_changed"


class ClaimSummary(BaseModel):
    """Minimal claim projection joined to a denial."""
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Claim identifier")
    claim_number: Optional[str] = Field(None, description="Payer-facing claim number")
    provider_name: Optional[str] = Field(None, description="Rendering/billing provider name")
    provider_npi: Optional[str] = Field(None, description="Provider NPI")
    payer_name: Optional[str] = Field(None, description="Payer the claim was billed to")


class PatientSummary(BaseModel):
    """Minimal patient projection joined to a denial."""
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., description="Patient identifier")
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    member_id: Optional[str] = Field(None, description="Insurance member ID")

    @property
    def full_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) if parts else None


class Denial(BaseModel):
    """A denied claim line tracked through the denial lifecycle."""
    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique denial identifier")
    claim_id: Optional[str] = Field(None, description="Linked claim, if any")
    patient_id: Optional[str] = Field(None, description="Linked patient, if any")
    payer_name: Optional[str] = Field(None, description="Payer that issued the denial")

    billed_amount: Decimal = Field(..., description="Amount billed for the line")
    denied_amount: Decimal = Field(..., description="Amount the payer refused to pay")

    reason_code: str = Field(..., description="Payer-supplied reason code, e.g. CO-50")
    reason_description: Optional[str] = None
    remark_codes: List[str] = Field(default_factory=list, description="Remittance remark codes")
    classified_category: DenialCategory = Field(default=DenialCategory.OTHER)
    root_cause: Optional[str] = None

    cpt_code: Optional[str] = None
    cpt_description: Optional[str] = None
    icd_codes: List[str] = Field(default_factory=list)

    denial_date: date = Field(..., description="Date the payer denied the line")
    service_date: Optional[date] = None
    appeal_deadline: Optional[date] = Field(None, description="Last day to file an appeal")

    status: DenialStatus = Field(default=DenialStatus.NEW)
    priority: DenialPriority = Field(default=DenialPriority.LOW)

    resolution_type: Optional[ResolutionType] = None
    resolution_amount: Optional[Decimal] = None
    resolution_date: Optional[date] = None
    resolution_notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('reason_code', mode='before')
    @classmethod
    def validate_reason_code(cls, v):
        """Reason code is required and stored normalized."""
        cleaned = ValidationUtils.sanitize_string(v)
        if not cleaned:
            raise ValueError("reason_code is required")
        return ValidationUtils.normalize_code(cleaned)

    @field_validator('billed_amount', 'denied_amount', 'resolution_amount', mode='before')
    @classmethod
    def validate_amounts(cls, v):
        if v is None:
            return v
        return ValidationUtils.to_amount(v)

    @field_validator('icd_codes', 'remark_codes', mode='before')
    @classmethod
    def validate_codes(cls, v):
        if v is None:
            return []
        return ValidationUtils.normalize_codes(v)

    @model_validator(mode='after')
    def validate_dates(self):
        if self.service_date and self.service_date > self.denial_date:
            raise ValueError("Service date cannot be after the denial date")
        return self

    @property
    def is_terminal(self) -> bool:
        return DenialStatus(self.status).value in TERMINAL_DENIAL_STATUSES

    @property
    def amount_exceeds_billed(self) -> bool:
        return self.denied_amount > self.billed_amount

    def days_until_deadline(self, today: Optional[date] = None) -> Optional[int]:
        """Days left to appeal; negative once the deadline has passed."""
        if self.appeal_deadline is None:
            return None
        today = today or utc_now().date()
        return (self.appeal_deadline - today).days

    def touch(self) -> None:
        self.updated_at = utc_now()


class DenialContext(BaseModel):
    """A denial joined with its claim and patient projections."""
    denial: Denial
    claim: Optional[ClaimSummary] = None
    patient: Optional[PatientSummary] = None


class NewDenial(BaseModel):
    """Payload for manual entry or pre-parsed remittance import."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    id: Optional[str] = None
    claim: Optional[ClaimSummary] = Field(None, description="Claim projection to link or upsert")
    patient: Optional[PatientSummary] = Field(None, description="Patient projection to link or upsert")
    claim_id: Optional[str] = None
    patient_id: Optional[str] = None
    payer_name: Optional[str] = None

    billed_amount: Optional[Decimal] = Field(None, description="Defaults to the denied amount when omitted")
    denied_amount: Decimal
    reason_code: str
    reason_description: Optional[str] = None
    remark_codes: List[str] = Field(default_factory=list)
    classified_category: Optional[DenialCategory] = Field(None, description="Derived from the reason code when omitted")
    root_cause: Optional[str] = None

    cpt_code: Optional[str] = None
    cpt_description: Optional[str] = None
    icd_codes: List[str] = Field(default_factory=list)

    denial_date: Optional[date] = Field(None, description="Defaults to today")
    service_date: Optional[date] = None
    appeal_deadline: Optional[date] = Field(None, description="Payer-stated deadline, derived when omitted")

    @field_validator('billed_amount', 'denied_amount', mode='before')
    @classmethod
    def validate_amounts(cls, v):
        if v is None:
            return v
        return ValidationUtils.to_amount(v)

    @field_validator('reason_code', mode='before')
    @classmethod
    def validate_reason_code(cls, v):
        cleaned = ValidationUtils.sanitize_string(v)
        if not cleaned:
            raise ValueError("reason_code is required")
        return cleaned


class AuditEntry(BaseModel):
    """Append-only record of a lifecycle action."""
    model_config = ConfigDict(use_enum_values=True, frozen=True, validate_default=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    denial_id: str = Field(..., description="Denial the action belongs to")
    appeal_id: Optional[str] = Field(None, description="Appeal involved, if any")
    action_type: AuditActionType = Field(..., description="Type of action performed")
    description: str = Field(..., description="Human readable summary")
    performed_by: str = Field(..., description="Actor who caused the action")
    previous_value: Optional[str] = None
    new_value: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now, description="When the action occurred")

    @field_validator('performed_by')
    @classmethod
    def validate_actor(cls, v):
        if not v or not v.strip():
            raise ValueError("performed_by is required")
        return v.strip()
