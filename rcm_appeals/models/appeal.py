"""Appeal, appeal template and request/response models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .core import DenialCategory, utc_now
from .validation import ValidationUtils


class AppealStatus(str, Enum):
    """Status of an appeal letter."""
    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    SUBMITTED = "submitted"
    IN_REVIEW = "in_review"
    WON = "won"
    DENIED = "denied"
    PARTIAL = "partial"


TERMINAL_APPEAL_STATUSES = frozenset({
    AppealStatus.WON.value,
    AppealStatus.DENIED.value,
    AppealStatus.PARTIAL.value,
})


class AppealType(str, Enum):
    """Appeal level."""
    FIRST_LEVEL = "first_level"
    SECOND_LEVEL = "second_level"
    EXTERNAL_REVIEW = "external_review"


class SubmissionMethod(str, Enum):
    MAIL = "mail"
    FAX = "fax"
    PORTAL = "portal"
    EMAIL = "email"
    ELECTRONIC = "electronic"


class AppealOutcome(str, Enum):
    """Payer decision on a submitted appeal."""
    WON = "won"
    PARTIAL = "partial"
    DENIED = "denied"


class AppealTemplate(BaseModel):
    """Reusable appeal letter skeleton with {{variable}} placeholders."""
    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    description: Optional[str] = None
    subject_template: str = Field(..., description="Subject line with placeholders")
    body_template: str = Field(..., description="Letter body with placeholders")
    denial_category: Optional[DenialCategory] = Field(
        None, description="Category this template targets; None makes it a fallback"
    )
    is_default: bool = False
    active: bool = True
    required_attachments: List[str] = Field(default_factory=list)
    optional_attachments: List[str] = Field(default_factory=list)
    usage_count: int = Field(default=0, ge=0)

    @property
    def is_global_default(self) -> bool:
        return self.active and self.is_default and self.denial_category is None


class Appeal(BaseModel):
    """One letter-generation attempt against a denial."""
    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)

    id: str = Field(default_factory=lambda: str(uuid4()), description="Unique appeal identifier")
    appeal_number: str = Field(..., description="Human readable number, APL-YYYYMMDD-XXXXXX")
    denial_id: str = Field(..., description="Denial being appealed")
    claim_id: Optional[str] = None
    patient_id: Optional[str] = None
    template_id: Optional[str] = Field(None, description="Template the letter was rendered from")
    appeal_type: AppealType = Field(default=AppealType.FIRST_LEVEL)
    payer_name: Optional[str] = None

    subject_line: str
    letter_body: str
    clinical_justification: Optional[str] = None
    additional_notes: Optional[str] = None
    supporting_documents: List[str] = Field(
        default_factory=list, description="Required attachments copied from the template"
    )
    optional_documents: List[str] = Field(
        default_factory=list, description="Optional attachments copied from the template"
    )

    disputed_amount: Decimal
    requested_amount: Decimal
    outcome_amount: Optional[Decimal] = None

    status: AppealStatus = Field(default=AppealStatus.DRAFT)
    submission_method: Optional[SubmissionMethod] = None
    confirmation_number: Optional[str] = None
    submitted_at: Optional[datetime] = None
    submitted_by: Optional[str] = None
    response_deadline: date = Field(..., description="Date the payer owes a response by")
    response_date: Optional[date] = None
    response_notes: Optional[str] = None

    ai_generated: bool = True
    ai_confidence: int = Field(default=70, ge=0, le=100)

    created_by: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator('appeal_number')
    @classmethod
    def validate_appeal_number(cls, v):
        if not ValidationUtils.validate_appeal_number(v):
            raise ValueError(f"Appeal number must match APL-YYYYMMDD-XXXXXX, got: {v}")
        return v

    @field_validator('disputed_amount', 'requested_amount', 'outcome_amount', mode='before')
    @classmethod
    def validate_amounts(cls, v):
        if v is None:
            return v
        return ValidationUtils.to_amount(v)

    @property
    def is_terminal(self) -> bool:
        return AppealStatus(self.status).value in TERMINAL_APPEAL_STATUSES

    def touch(self) -> None:
        self.updated_at = utc_now()


class PracticeInfo(BaseModel):
    """Letterhead details for the submitting practice."""
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    fax: Optional[str] = None


class ProviderInfo(BaseModel):
    """Signing provider for the appeal letter."""
    name: Optional[str] = None
    npi: Optional[str] = None

    @field_validator('npi')
    @classmethod
    def validate_npi(cls, v):
        """Validate NPI format (10 digits)."""
        if v is not None and not ValidationUtils.validate_npi(v):
            raise ValueError(f"NPI must be exactly 10 digits, got: {v}")
        return v


class GenerateAppealOptions(BaseModel):
    """Caller options for appeal generation."""
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    template_id: Optional[str] = None
    appeal_type: AppealType = AppealType.FIRST_LEVEL
    clinical_justification: Optional[str] = None
    additional_notes: Optional[str] = None
    practice_info: Optional[PracticeInfo] = None
    provider_info: Optional[ProviderInfo] = None

    @field_validator('clinical_justification', 'additional_notes', 'template_id', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        return ValidationUtils.sanitize_string(v)


class GeneratedAppeal(BaseModel):
    """Result returned to callers of appeal generation."""
    appeal_id: str
    appeal_number: str
    subject_line: str
    letter_body: str
    required_documents: List[str]
    optional_documents: List[str]
    ai_confidence: int
    response_deadline: date


class AppealStats(BaseModel):
    """Appeal counts by status and the amount recovered by won appeals."""
    total: int = 0
    drafts: int = 0
    pending_review: int = 0
    approved: int = 0
    submitted: int = Field(default=0, description="Submitted or in payer review")
    won: int = 0
    partial: int = 0
    denied: int = 0
    total_recovered: Decimal = Field(default=Decimal("0.00"), description="Sum of outcome amounts over won appeals")

    @property
    def success_rate(self) -> Optional[float]:
        """Share of decided appeals that recovered money; None before any decision."""
        decided = self.won + self.partial + self.denied
        if not decided:
            return None
        return (self.won + self.partial) / decided


class SubmitAppealRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    submission_method: SubmissionMethod
    confirmation_number: Optional[str] = None

    @field_validator('confirmation_number', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        return ValidationUtils.sanitize_string(v)


class RecordOutcomeRequest(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    outcome: AppealOutcome
    amount: Optional[Decimal] = None
    notes: str = ""

    @field_validator('amount', mode='before')
    @classmethod
    def validate_amount(cls, v):
        if v is None:
            return v
        return ValidationUtils.to_amount(v)

    @model_validator(mode='after')
    def validate_amount_for_outcome(self):
        """Won and partial outcomes must carry the recovered amount."""
        if self.outcome in (AppealOutcome.WON.value, AppealOutcome.PARTIAL.value) and self.amount is None:
            raise ValueError(f"An amount is required for a '{self.outcome}' outcome")
        return self
