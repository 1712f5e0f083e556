"""Appeal generation: draft a letter, then persist it with the denial move and audit entry."""

import logging
import secrets
import string
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from ..agent.enhancement import AppealEnhancer
from ..agent.templates import FALLBACK_TEMPLATE_ID, TemplateResolver
from ..agent.workflow import create_drafting_workflow
from ..compliance.audit_logger import AuditLogger
from ..config import Settings, get_settings
from ..errors import DenialNotFound, DependencyFailure, InvalidTransition
from ..integrations.store import AppealStore
from ..models import (
    Appeal,
    AppealStatus,
    DenialStatus,
    GenerateAppealOptions,
    GeneratedAppeal,
    utc_now,
)
from .state_machine import APPEAL_TO_DENIAL_STATUS, DenialStateMachine

logger = logging.getLogger(__name__)

APPEAL_NUMBER_ALPHABET = string.ascii_uppercase + string.digits
APPEAL_NUMBER_SUFFIX_LENGTH = 6


def generate_appeal_number(today: date) -> str:
    """APL-YYYYMMDD-XXXXXX with a CSPRNG suffix over A-Z0-9."""
    suffix = "".join(secrets.choice(APPEAL_NUMBER_ALPHABET) for _ in range(APPEAL_NUMBER_SUFFIX_LENGTH))
    return f"APL-{today.strftime('%Y%m%d')}-{suffix}"


def generate_unique_appeal_number(
    exists: Callable[[str], bool],
    today: date,
    max_attempts: int = 5,
) -> str:
    """Draw appeal numbers until one is not taken according to ``exists``."""
    for attempt in range(1, max_attempts + 1):
        appeal_number = generate_appeal_number(today)
        if not exists(appeal_number):
            return appeal_number
        logger.warning(f"Appeal number {appeal_number} already issued (attempt {attempt}/{max_attempts})")
    raise DependencyFailure(f"Could not allocate a unique appeal number after {max_attempts} attempts")


class AppealFactory:
    """Creates draft appeals for open denials.

    Drafting (template resolution, rendering, optional AI enhancement) has no
    side effects. The appeal, the denial's move to ``appealing`` and the audit
    entry are then written in one store transaction; the template usage
    counter is bumped afterwards on a best-effort basis.
    """

    def __init__(
        self,
        store: AppealStore,
        audit_logger: AuditLogger,
        enhancer: Optional[AppealEnhancer] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.audit_logger = audit_logger
        self.enhancer = enhancer
        self.settings = settings or get_settings()
        self.clock = clock or utc_now
        self.resolver = TemplateResolver(store)
        self.workflow = create_drafting_workflow(self.resolver, enhancer)

    async def generate(
        self,
        denial_id: str,
        options: Optional[GenerateAppealOptions],
        actor_id: str,
    ) -> GeneratedAppeal:
        options = options or GenerateAppealOptions()

        context = self.store.get_denial_context(denial_id)
        if context is None:
            raise DenialNotFound(denial_id)
        denial = context.denial
        if denial.is_terminal:
            raise InvalidTransition(
                denial.status, DenialStatus.APPEALING.value, detail="cannot appeal a closed denial"
            )

        now = self.clock()
        today = now.date()

        draft = await self.workflow.ainvoke({
            "denial_context": context,
            "options": options,
            "today": today,
        })
        template = draft["template"]

        # Anchored at generation, not at submission.
        response_deadline = today + timedelta(days=self.settings.response_window_days)
        appeal_number = generate_unique_appeal_number(
            self.store.appeal_number_exists,
            today,
            self.settings.appeal_number_max_attempts,
        )

        appeal = Appeal(
            appeal_number=appeal_number,
            denial_id=denial.id,
            claim_id=denial.claim_id,
            patient_id=denial.patient_id,
            template_id=template.id,
            appeal_type=options.appeal_type,
            payer_name=denial.payer_name or (context.claim.payer_name if context.claim else None),
            subject_line=draft["subject_line"],
            letter_body=draft["letter_body"],
            clinical_justification=options.clinical_justification,
            additional_notes=options.additional_notes,
            supporting_documents=list(template.required_attachments),
            optional_documents=list(template.optional_attachments),
            disputed_amount=denial.denied_amount,
            requested_amount=denial.denied_amount,
            status=AppealStatus.DRAFT,
            response_deadline=response_deadline,
            ai_generated=True,
            ai_confidence=draft["ai_confidence"],
            created_by=actor_id,
            created_at=now,
            updated_at=now,
        )

        with self.store.transaction():
            # Re-read so a concurrent close between drafting and commit is caught.
            current = self.store.get_denial(denial_id)
            if current is None:
                raise DenialNotFound(denial_id)
            previous_status = current.status

            changed = DenialStateMachine.transition(
                current, APPEAL_TO_DENIAL_STATUS[AppealStatus.DRAFT.value], force=True
            )
            self.store.save_appeal(appeal)
            if changed:
                self.store.save_denial(current)
            self.audit_logger.log_appeal_generated(
                denial_id=denial.id,
                appeal_id=appeal.id,
                appeal_number=appeal.appeal_number,
                performed_by=actor_id,
                previous_status=previous_status,
            )

        logger.info(
            f"Generated appeal {appeal.appeal_number} for denial {denial.id} "
            f"using template {template.id} (confidence {appeal.ai_confidence})"
        )

        if template.id != FALLBACK_TEMPLATE_ID:
            self._increment_usage(template.id)

        return GeneratedAppeal(
            appeal_id=appeal.id,
            appeal_number=appeal.appeal_number,
            subject_line=appeal.subject_line,
            letter_body=appeal.letter_body,
            required_documents=appeal.supporting_documents,
            optional_documents=appeal.optional_documents,
            ai_confidence=appeal.ai_confidence,
            response_deadline=appeal.response_deadline,
        )

    def _increment_usage(self, template_id: str) -> None:
        try:
            self.store.increment_usage(template_id)
        except Exception as e:
            logger.warning(f"Failed to increment usage count for template {template_id}: {e}")
