"""Appeal template resolution."""

import logging
from typing import Optional

from ..errors import TemplateNotFound
from ..integrations.store import AppealStore
from ..models import AppealTemplate, Denial

logger = logging.getLogger(__name__)


FALLBACK_TEMPLATE_ID = "builtin-fallback"

FALLBACK_SUBJECT = "Appeal of Denied Claim {{claim_number}} - Reason Code {{reason_code}}"

FALLBACK_BODY = """{{practice_name}}
{{practice_address}}
Phone: {{practice_phone}}

{{current_date}}

{{payer_name}}
Attn: Appeals Department

RE: Request for Reconsideration
Patient Name: {{patient_name}}
Date of Birth: {{patient_dob}}
Member ID: {{member_id}}
Claim Number: {{claim_number}}
Date of Service: {{service_date}}
Procedure: {{cpt_code}} {{cpt_description}}
Diagnosis Codes: {{icd_codes}}
Denied Amount: {{denied_amount}}

Dear Appeals Reviewer:

We are writing to request reconsideration of the claim referenced above, which was denied on {{denial_date}} with reason code {{reason_code}} ({{reason_description}}).

We believe this service was appropriately rendered and billed. {{clinical_justification}}

{{additional_notes}}

We respectfully request that the denial be overturned and the claim reprocessed for payment of {{denied_amount}}. Please contact our office if any additional information is required.

Sincerely,

{{provider_name}}
NPI: {{provider_npi}}
"""

FALLBACK_TEMPLATE = AppealTemplate(
    id=FALLBACK_TEMPLATE_ID,
    name="Standard Appeal (built-in)",
    description="Minimal appeal skeleton used when no template is configured",
    subject_template=FALLBACK_SUBJECT,
    body_template=FALLBACK_BODY,
    denial_category=None,
    is_default=False,
    active=True,
    required_attachments=["Copy of original claim", "Copy of denial/EOB"],
    optional_attachments=["Medical records supporting the service"],
)


class TemplateResolver:
    """Selects the best-fit template for a denial.

    Explicit id, then category match (defaults first), then the global
    default, then the built-in fallback.
    """

    def __init__(self, store: AppealStore):
        self.store = store

    def resolve(self, denial: Denial, template_id: Optional[str] = None) -> AppealTemplate:
        if template_id:
            template = self.store.get_template(template_id)
            if template is None:
                raise TemplateNotFound(template_id)
            if not template.active:
                raise TemplateNotFound(template_id, reason="is inactive")
            logger.info(f"Using requested template {template.id} for denial {denial.id}")
            return template

        matches = self.store.find_templates_by_category(denial.classified_category)
        if matches:
            logger.info(
                f"Using {denial.classified_category} template {matches[0].id} for denial {denial.id}"
            )
            return matches[0]

        default = self.store.find_default_template()
        if default is not None:
            logger.info(f"Using global default template {default.id} for denial {denial.id}")
            return default

        logger.warning(f"No appeal template configured; using built-in fallback for denial {denial.id}")
        return FALLBACK_TEMPLATE.model_copy(deep=True)
