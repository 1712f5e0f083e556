"""Data models for the denial and appeal lifecycle engine."""

from .core import (
    DenialCategory,
    DenialStatus,
    DenialPriority,
    ResolutionType,
    AuditActionType,
    TERMINAL_DENIAL_STATUSES,
    ClaimSummary,
    PatientSummary,
    Denial,
    DenialContext,
    NewDenial,
    AuditEntry,
    utc_now,
)

from .appeal import (
    AppealStatus,
    AppealType,
    AppealOutcome,
    SubmissionMethod,
    TERMINAL_APPEAL_STATUSES,
    AppealTemplate,
    Appeal,
    PracticeInfo,
    ProviderInfo,
    GenerateAppealOptions,
    GeneratedAppeal,
    AppealStats,
    SubmitAppealRequest,
    RecordOutcomeRequest,
)

from .validation import (
    ValidationUtils
)

__all__ = [
    # Denial models
    "DenialCategory",
    "DenialStatus",
    "DenialPriority",
    "ResolutionType",
    "AuditActionType",
    "TERMINAL_DENIAL_STATUSES",
    "ClaimSummary",
    "PatientSummary",
    "Denial",
    "DenialContext",
    "NewDenial",
    "AuditEntry",
    "utc_now",
    # Appeal models
    "AppealStatus",
    "AppealType",
    "AppealOutcome",
    "SubmissionMethod",
    "TERMINAL_APPEAL_STATUSES",
    "AppealTemplate",
    "Appeal",
    "PracticeInfo",
    "ProviderInfo",
    "GenerateAppealOptions",
    "GeneratedAppeal",
    "AppealStats",
    "SubmitAppealRequest",
    "RecordOutcomeRequest",
    # Validation utilities
    "ValidationUtils",
]
