from ..models import Denial
from .substitution import format_money


def build_enhancement_user_prompt(
    denial: Denial,
    base_letter: str,
    clinical_justification: str,
) -> str:
    """Build user prompt for appeal letter enhancement."""
    parts = []

    parts.append(f"""## Denial Information
- Reason Code: {denial.reason_code}
- Reason Description: {denial.reason_description or 'Not provided'}
- Category: {denial.classified_category}
- Root Cause: {denial.root_cause or 'Not provided'}
- Denied Amount: {format_money(denial.denied_amount)}""")

    parts.append(f"""## Service Details
- CPT Code: {denial.cpt_code or 'N/A'}{f' ({denial.cpt_description})' if denial.cpt_description else ''}
- Diagnosis Codes (ICD-10): {', '.join(denial.icd_codes) if denial.icd_codes else 'N/A'}""")

    parts.append(f"""## Clinical Justification
{clinical_justification}""")

    parts.append(f"""## Draft Letter
{base_letter}""")

    return "Enhance this appeal letter:\n\n" + "\n\n".join(parts)
