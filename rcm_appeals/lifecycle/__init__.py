from .state_machine import (
    DENIAL_TRANSITIONS,
    APPEAL_TRANSITIONS,
    APPEAL_TO_DENIAL_STATUS,
    DenialStateMachine,
    AppealStateMachine,
    compute_priority,
    priority_sort_key,
)
from .classification import CLASSIFICATION_RULES, DenialClassification, classify_denial
from .appeal_factory import AppealFactory, generate_appeal_number, generate_unique_appeal_number
from .service import DenialAppealService, ImportIssue, ImportResult

__all__ = [
    "DENIAL_TRANSITIONS",
    "APPEAL_TRANSITIONS",
    "APPEAL_TO_DENIAL_STATUS",
    "DenialStateMachine",
    "AppealStateMachine",
    "compute_priority",
    "priority_sort_key",
    "AppealFactory",
    "generate_appeal_number",
    "generate_unique_appeal_number",
    "CLASSIFICATION_RULES",
    "DenialClassification",
    "classify_denial",
    "DenialAppealService",
    "ImportIssue",
    "ImportResult",
]
