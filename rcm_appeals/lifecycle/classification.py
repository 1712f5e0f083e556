"""Rule-based denial classification from CARC reason codes and descriptions."""

import logging
import re
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..models import DenialCategory, ValidationUtils

logger = logging.getLogger(__name__)


class DenialClassification(BaseModel):
    """Category and most likely root cause for a denial."""
    model_config = ConfigDict(use_enum_values=True)

    category: DenialCategory
    root_cause: str
    recommended_action: str
    matched_rule: Optional[str] = Field(None, description="Rule that produced the classification")


class ClassificationRule(BaseModel):
    name: str
    category: DenialCategory
    root_cause: str
    recommended_action: str
    reason_numbers: List[str] = Field(default_factory=list, description="CARC numbers without the group code")
    group_codes: List[str] = Field(default_factory=list, description="Claim adjustment group codes, e.g. PR")
    keywords: List[str] = Field(default_factory=list, description="Lower-case fragments of the reason description")


# Checked in order; the first match wins.
CLASSIFICATION_RULES = [
    ClassificationRule(
        name="medical_necessity",
        category=DenialCategory.MEDICAL_NECESSITY,
        root_cause="Service not deemed medically necessary",
        recommended_action="appeal_with_documentation",
        reason_numbers=["50", "56", "167"],
        keywords=["medical necessity", "medically necessary"],
    ),
    ClassificationRule(
        name="authorization",
        category=DenialCategory.AUTHORIZATION,
        root_cause="Prior authorization not obtained",
        recommended_action="request_retro_auth",
        reason_numbers=["15", "197", "198"],
        keywords=["authorization", "precert"],
    ),
    ClassificationRule(
        name="timely_filing",
        category=DenialCategory.TIMELY_FILING,
        root_cause="Claim filed after deadline",
        recommended_action="appeal_timely_filing",
        reason_numbers=["29"],
        keywords=["timely", "filing"],
    ),
    ClassificationRule(
        name="bundling",
        category=DenialCategory.BUNDLING,
        root_cause="NCCI bundling edit applied",
        recommended_action="review_and_correct",
        reason_numbers=["97", "151"],
        keywords=["bundl", "ncci"],
    ),
    ClassificationRule(
        name="coding_error",
        category=DenialCategory.CODING_ERROR,
        root_cause="Coding or claim form error",
        recommended_action="correct_and_resubmit",
        reason_numbers=["4", "11", "16"],
        keywords=["modifier", "coding"],
    ),
    ClassificationRule(
        name="duplicate",
        category=DenialCategory.DUPLICATE,
        root_cause="Duplicate claim submitted",
        recommended_action="verify_duplicate",
        reason_numbers=["18"],
        keywords=["duplicate"],
    ),
    ClassificationRule(
        name="coordination_of_benefits",
        category=DenialCategory.COORDINATION_OF_BENEFITS,
        root_cause="COB issue - wrong payer order",
        recommended_action="bill_correct_order",
        reason_numbers=["22", "23"],
        keywords=["coordination", "cob"],
    ),
    ClassificationRule(
        name="patient_responsibility",
        category=DenialCategory.OTHER,
        root_cause="Patient responsibility amount",
        recommended_action="bill_patient",
        group_codes=["PR"],
        keywords=["deductible", "copay", "coinsurance"],
    ),
]

UNCLASSIFIED = DenialClassification(
    category=DenialCategory.OTHER,
    root_cause="Unable to determine root cause",
    recommended_action="review",
)

_GROUP_PATTERN = re.compile(r'^([A-Z]{2})-?(?=\d)')
_NUMBER_PATTERN = re.compile(r'(\d+)$')


def split_reason_code(reason_code: str) -> Tuple[Optional[str], Optional[str]]:
    """Split ``CO-50`` into its group code and reason number: ``("CO", "50")``."""
    code = ValidationUtils.normalize_code(reason_code or "")
    group = _GROUP_PATTERN.match(code)
    number = _NUMBER_PATTERN.search(code)
    if number is None:
        return (group.group(1) if group else None, None)
    return (group.group(1) if group else None, number.group(1).lstrip("0") or "0")


def _matches(rule: ClassificationRule, group: Optional[str], number: Optional[str], description: str) -> bool:
    if number and number in rule.reason_numbers:
        return True
    if group and group in rule.group_codes:
        return True
    return any(keyword in description for keyword in rule.keywords)


def classify_denial(reason_code: str, reason_description: Optional[str] = None) -> DenialClassification:
    """Classify a denial by its reason code, then by keywords in its description."""
    group, number = split_reason_code(reason_code)
    description = (reason_description or "").lower()

    for rule in CLASSIFICATION_RULES:
        if _matches(rule, group, number, description):
            logger.debug(f"Reason code {reason_code} classified as {rule.name}")
            return DenialClassification(
                category=rule.category,
                root_cause=rule.root_cause,
                recommended_action=rule.recommended_action,
                matched_rule=rule.name,
            )

    logger.info(f"No classification rule matched reason code {reason_code}")
    return UNCLASSIFIED.model_copy()
