"""Variable substitution for appeal templates.

Placeholders use ``{{key}}`` syntax. Keys match case-insensitively, every
occurrence is replaced, and placeholders without a value are left verbatim
so they stay visible to the letter author.
"""

import re
from datetime import date
from decimal import Decimal
from typing import Dict, Mapping, Optional

from pydantic import BaseModel

from ..models import DenialContext, GenerateAppealOptions

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z0-9_]+)\s*\}\}")


def render_template(template_text: str, variables: Mapping[str, str]) -> str:
    """Replace ``{{key}}`` placeholders in a single pass."""
    if not template_text:
        return template_text
    lookup = {key.lower(): value for key, value in variables.items()}

    def _replace(match: re.Match) -> str:
        value = lookup.get(match.group(1).lower())
        return match.group(0) if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template_text)


def find_placeholders(text: str) -> list:
    """Placeholder keys still present in ``text``, lower-cased, in order of appearance."""
    keys = []
    for match in PLACEHOLDER_PATTERN.finditer(text or ""):
        key = match.group(1).lower()
        if key not in keys:
            keys.append(key)
    return keys


class AppealVariables(BaseModel):
    """Every variable an appeal template may reference.

    All keys are always present; missing source data becomes a bracketed
    marker such as ``[CLAIM NUMBER]``.
    """
    patient_name: str
    patient_first_name: str
    patient_last_name: str
    patient_dob: str
    member_id: str
    claim_number: str
    payer_name: str
    provider_name: str
    provider_npi: str
    practice_name: str
    practice_address: str
    practice_phone: str
    practice_fax: str
    service_date: str
    denial_date: str
    dos: str
    reason_code: str
    reason_description: str
    denial_reason: str
    denial_category: str
    root_cause: str
    cpt_code: str
    cpt_description: str
    icd_codes: str
    billed_amount: str
    denied_amount: str
    appeal_deadline: str
    appeal_type: str
    current_date: str
    clinical_justification: str
    additional_notes: str

    def as_mapping(self) -> Dict[str, str]:
        return self.model_dump()


def format_money(amount: Optional[Decimal]) -> Optional[str]:
    if amount is None:
        return None
    return f"${amount:,.2f}"


def format_date(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%B %d, %Y")


def _humanize(value: str) -> str:
    return value.replace("_", " ").title()


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def build_appeal_variables(
    context: DenialContext,
    options: Optional[GenerateAppealOptions] = None,
    today: Optional[date] = None,
) -> AppealVariables:
    """Map a denial, its claim and its patient to template variables."""
    options = options or GenerateAppealOptions()
    today = today or date.today()
    denial = context.denial
    claim = context.claim
    patient = context.patient
    practice = options.practice_info
    provider = options.provider_info

    return AppealVariables(
        patient_name=_first(patient.full_name if patient else None) or "[PATIENT NAME]",
        patient_first_name=_first(patient.first_name if patient else None) or "[PATIENT FIRST NAME]",
        patient_last_name=_first(patient.last_name if patient else None) or "[PATIENT LAST NAME]",
        patient_dob=format_date(patient.date_of_birth if patient else None) or "[DATE OF BIRTH]",
        member_id=_first(patient.member_id if patient else None) or "[MEMBER ID]",
        claim_number=_first(claim.claim_number if claim else None) or "[CLAIM NUMBER]",
        payer_name=_first(denial.payer_name, claim.payer_name if claim else None) or "[PAYER NAME]",
        provider_name=_first(
            provider.name if provider else None,
            claim.provider_name if claim else None,
        ) or "[PROVIDER NAME]",
        provider_npi=_first(
            provider.npi if provider else None,
            claim.provider_npi if claim else None,
        ) or "[PROVIDER NPI]",
        practice_name=_first(practice.name if practice else None) or "[PRACTICE NAME]",
        practice_address=_first(practice.address if practice else None) or "[PRACTICE ADDRESS]",
        practice_phone=_first(practice.phone if practice else None) or "[PRACTICE PHONE]",
        practice_fax=_first(practice.fax if practice else None) or "[PRACTICE FAX]",
        service_date=format_date(denial.service_date) or "[DATE OF SERVICE]",
        denial_date=format_date(denial.denial_date) or "[DENIAL DATE]",
        dos=format_date(denial.service_date or denial.denial_date) or "[DATE OF SERVICE]",
        reason_code=denial.reason_code,
        reason_description=_first(denial.reason_description) or "[DENIAL REASON]",
        denial_reason=_first(denial.reason_description, denial.reason_code) or "[DENIAL REASON]",
        denial_category=_humanize(denial.classified_category),
        root_cause=_first(denial.root_cause) or "[ROOT CAUSE]",
        cpt_code=_first(denial.cpt_code) or "[CPT CODE]",
        cpt_description=_first(denial.cpt_description) or "",
        icd_codes=", ".join(denial.icd_codes) if denial.icd_codes else "[DIAGNOSIS CODES]",
        billed_amount=format_money(denial.billed_amount) or "[BILLED AMOUNT]",
        denied_amount=format_money(denial.denied_amount) or "[DENIED AMOUNT]",
        appeal_deadline=format_date(denial.appeal_deadline) or "[APPEAL DEADLINE]",
        appeal_type=_humanize(options.appeal_type),
        current_date=format_date(today),
        clinical_justification=_first(options.clinical_justification) or "[CLINICAL JUSTIFICATION]",
        additional_notes=_first(options.additional_notes) or "",
    )
