"""Entry points for denial intake, appeal generation, submission and outcomes."""

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ..agent.enhancement import AppealEnhancer
from ..compliance.audit_logger import AuditLogger
from ..config import Settings, get_settings
from ..errors import AppealNotFound, DenialNotFound, InvalidTransition, ValidationError
from ..integrations.store import AppealStore
from ..models import (
    Appeal,
    AppealOutcome,
    AppealStats,
    AppealStatus,
    AppealTemplate,
    AuditActionType,
    AuditEntry,
    Denial,
    DenialCategory,
    DenialPriority,
    DenialStatus,
    GenerateAppealOptions,
    GeneratedAppeal,
    NewDenial,
    RecordOutcomeRequest,
    ResolutionType,
    SubmitAppealRequest,
    ValidationUtils,
    utc_now,
)
from .appeal_factory import AppealFactory
from .classification import classify_denial
from .state_machine import (
    APPEAL_TO_DENIAL_STATUS,
    EDITABLE_APPEAL_STATUSES,
    AppealStateMachine,
    DenialStateMachine,
    compute_priority,
    priority_sort_key,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

REVIEW_TARGETS = frozenset({
    AppealStatus.DRAFT.value,
    AppealStatus.PENDING_REVIEW.value,
    AppealStatus.APPROVED.value,
})


class ImportIssue(BaseModel):
    """A remittance row that was not imported."""
    index: int = Field(..., description="Position of the row in the submitted batch")
    reason: str


class ImportResult(BaseModel):
    imported: List[Denial] = Field(default_factory=list)
    skipped: List[ImportIssue] = Field(default_factory=list, description="Rows already on file")
    errors: List[ImportIssue] = Field(default_factory=list, description="Rows that failed validation")


def _parse(model: Type[ModelT], payload: Union[ModelT, Dict[str, Any]]) -> ModelT:
    """Validate a request payload, surfacing pydantic errors as engine ValidationErrors."""
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid {model.__name__}: {e}") from e


def _enum_value(enum_type: Type[Enum], value: Any) -> str:
    try:
        return enum_type(value).value
    except ValueError:
        raise ValidationError(f"Unknown {enum_type.__name__} value: {value}")


def _duplicate_key(denial: Denial) -> Optional[Tuple[str, str, Optional[date]]]:
    if not denial.claim_id:
        return None
    return (denial.claim_id, denial.reason_code, denial.service_date)


class DenialAppealService:
    """Request-scoped facade over the store, state machines and appeal factory.

    Every mutating call names its actor explicitly and runs its writes in a
    single store transaction.
    """

    def __init__(
        self,
        store: AppealStore,
        enhancer: Optional[AppealEnhancer] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.store = store
        self.settings = settings or get_settings()
        self.clock = clock or utc_now
        self.audit_logger = audit_logger or AuditLogger(store)
        self.factory = AppealFactory(
            store=store,
            audit_logger=self.audit_logger,
            enhancer=enhancer,
            settings=self.settings,
            clock=self.clock,
        )

    def _today(self) -> date:
        return self.clock().date()

    def _load_denial(self, denial_id: str) -> Denial:
        denial = self.store.get_denial(denial_id)
        if denial is None:
            raise DenialNotFound(denial_id)
        return denial

    def _load_appeal(self, appeal_id: str) -> Appeal:
        appeal = self.store.get_appeal(appeal_id)
        if appeal is None:
            raise AppealNotFound(appeal_id)
        return appeal

    # Reads

    def get_denial(self, denial_id: str) -> Denial:
        return self._load_denial(denial_id)

    def get_appeal(self, appeal_id: str) -> Appeal:
        return self._load_appeal(appeal_id)

    def list_appeals(
        self,
        denial_id: Optional[str] = None,
        status: Optional[Union[AppealStatus, str]] = None,
    ) -> List[Appeal]:
        if denial_id is not None:
            self._load_denial(denial_id)
        appeals = self.store.list_appeals(denial_id=denial_id)
        if status is not None:
            status = _enum_value(AppealStatus, status)
            appeals = [a for a in appeals if a.status == status]
        return appeals

    def appeal_stats(self, denial_id: Optional[str] = None) -> AppealStats:
        """Counts by status and the amount recovered, over all appeals or one denial's."""
        stats = AppealStats()
        for appeal in self.list_appeals(denial_id=denial_id):
            stats.total += 1
            if appeal.status == AppealStatus.DRAFT.value:
                stats.drafts += 1
            elif appeal.status == AppealStatus.PENDING_REVIEW.value:
                stats.pending_review += 1
            elif appeal.status == AppealStatus.APPROVED.value:
                stats.approved += 1
            elif appeal.status in (AppealStatus.SUBMITTED.value, AppealStatus.IN_REVIEW.value):
                stats.submitted += 1
            elif appeal.status == AppealStatus.WON.value:
                stats.won += 1
                stats.total_recovered += appeal.outcome_amount or Decimal("0.00")
            elif appeal.status == AppealStatus.PARTIAL.value:
                stats.partial += 1
            elif appeal.status == AppealStatus.DENIED.value:
                stats.denied += 1
        return stats

    def get_audit_trail(
        self,
        denial_id: Optional[str] = None,
        appeal_id: Optional[str] = None,
    ) -> List[AuditEntry]:
        return self.audit_logger.get_audit_trail(denial_id=denial_id, appeal_id=appeal_id)

    # Templates

    def add_template(self, template: Union[AppealTemplate, Dict[str, Any]]) -> AppealTemplate:
        template = _parse(AppealTemplate, template)
        self.store.save_template(template)
        logger.info(f"Registered appeal template {template.id} ({template.name})")
        return template

    # Denial intake

    def _build_denial(self, payload: NewDenial) -> Denial:
        today = self._today()
        denial_date = payload.denial_date or today
        appeal_deadline = payload.appeal_deadline or (
            denial_date + timedelta(days=self.settings.default_appeal_window_days)
        )
        claim_id = payload.claim_id or (payload.claim.id if payload.claim else None)
        patient_id = payload.patient_id or (payload.patient.id if payload.patient else None)
        payer_name = payload.payer_name or (payload.claim.payer_name if payload.claim else None)

        classified_category = payload.classified_category
        root_cause = payload.root_cause
        if classified_category is None:
            classification = classify_denial(payload.reason_code, payload.reason_description)
            classified_category = classification.category
            root_cause = root_cause or classification.root_cause

        fields = dict(
            claim_id=claim_id,
            patient_id=patient_id,
            payer_name=payer_name,
            billed_amount=payload.billed_amount if payload.billed_amount is not None else payload.denied_amount,
            denied_amount=payload.denied_amount,
            reason_code=payload.reason_code,
            reason_description=payload.reason_description,
            remark_codes=payload.remark_codes,
            classified_category=classified_category,
            root_cause=root_cause,
            cpt_code=payload.cpt_code,
            cpt_description=payload.cpt_description,
            icd_codes=payload.icd_codes,
            denial_date=denial_date,
            service_date=payload.service_date,
            appeal_deadline=appeal_deadline,
            status=DenialStatus.NEW,
        )
        if payload.id:
            fields["id"] = payload.id

        try:
            denial = Denial(**fields)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid denial: {e}") from e

        if denial.amount_exceeds_billed:
            logger.warning(
                f"Denial {denial.id}: denied amount {denial.denied_amount} exceeds billed amount {denial.billed_amount}"
            )
        denial.priority = compute_priority(denial.days_until_deadline(today))
        return denial

    def create_denial(self, payload: Union[NewDenial, Dict[str, Any]], actor_id: str) -> Denial:
        """Record a denial from manual entry or a pre-parsed remittance row."""
        payload = _parse(NewDenial, payload)
        denial = self._build_denial(payload)

        with self.store.transaction():
            if payload.claim:
                self.store.save_claim(payload.claim)
            if payload.patient:
                self.store.save_patient(payload.patient)
            self.store.save_denial(denial)
            self.audit_logger.log_denial_created(
                denial_id=denial.id,
                reason_code=denial.reason_code,
                performed_by=actor_id,
            )

        logger.info(f"Created denial {denial.id} ({denial.reason_code}, priority {denial.priority})")
        return denial

    def import_denials(
        self,
        records: Iterable[Union[NewDenial, Dict[str, Any]]],
        actor_id: str,
    ) -> ImportResult:
        """Import pre-parsed remittance rows, skipping invalid rows and duplicates."""
        result = ImportResult()
        seen = {key for key in (_duplicate_key(d) for d in self.store.list_denials()) if key}

        for index, record in enumerate(records):
            try:
                payload = _parse(NewDenial, record)
                candidate = self._build_denial(payload)
            except ValidationError as e:
                logger.warning(f"Skipping remittance row {index}: {e.message}")
                result.errors.append(ImportIssue(index=index, reason=e.message))
                continue

            key = _duplicate_key(candidate)
            if key and key in seen:
                reason = (
                    f"Duplicate of existing denial for claim {candidate.claim_id} "
                    f"with reason code {candidate.reason_code}"
                )
                logger.info(f"Skipping remittance row {index}: {reason}")
                result.skipped.append(ImportIssue(index=index, reason=reason))
                continue

            denial = self.create_denial(payload, actor_id)
            if key:
                seen.add(key)
            result.imported.append(denial)

        logger.info(
            f"Imported {len(result.imported)} denials "
            f"({len(result.skipped)} duplicates, {len(result.errors)} invalid)"
        )
        return result

    # Denial lifecycle

    def transition_denial(
        self,
        denial_id: str,
        target: Union[DenialStatus, str],
        actor_id: str,
        notes: Optional[str] = None,
    ) -> Denial:
        target = _enum_value(DenialStatus, target)

        with self.store.transaction():
            denial = self._load_denial(denial_id)
            previous_status = denial.status
            if not DenialStateMachine.transition(denial, target):
                return denial

            if target == DenialStatus.WRITTEN_OFF.value:
                denial.resolution_type = ResolutionType.WRITTEN_OFF
                denial.resolution_date = self._today()
                denial.resolution_notes = notes
            elif target == DenialStatus.RESOLVED.value and previous_status == DenialStatus.RESUBMITTING.value:
                denial.resolution_type = ResolutionType.CORRECTED
                denial.resolution_date = self._today()
                denial.resolution_notes = notes

            self.store.save_denial(denial)
            self.audit_logger.log_status_change(
                denial_id=denial.id,
                old_status=previous_status,
                new_status=denial.status,
                performed_by=actor_id,
                notes=notes,
            )
        return denial

    def refresh_priorities(self, today: Optional[date] = None) -> List[Denial]:
        """Recompute priority for open denials; returns the ones that changed."""
        today = today or self._today()
        changed = []
        with self.store.transaction():
            for denial in self.store.list_denials():
                if denial.is_terminal:
                    continue
                priority = compute_priority(denial.days_until_deadline(today))
                if priority != denial.priority:
                    logger.info(f"Denial {denial.id} priority {denial.priority} -> {priority}")
                    denial.priority = priority
                    denial.touch()
                    self.store.save_denial(denial)
                    changed.append(denial)
        return changed

    def work_queue(
        self,
        today: Optional[date] = None,
        status: Optional[Union[DenialStatus, str]] = None,
        category: Optional[Union[DenialCategory, str]] = None,
        priority: Optional[Union[DenialPriority, str]] = None,
    ) -> List[Denial]:
        """Denials, most urgent first.

        Only open denials are listed unless ``status`` names a closed status;
        closed records keep the priority they had when they left the queue.
        """
        today = today or self._today()
        status = _enum_value(DenialStatus, status) if status is not None else None
        category = _enum_value(DenialCategory, category) if category is not None else None
        priority = _enum_value(DenialPriority, priority) if priority is not None else None

        queue = []
        for denial in self.store.list_denials():
            if status is None and denial.is_terminal:
                continue
            if status is not None and denial.status != status:
                continue
            if category is not None and denial.classified_category != category:
                continue
            if not denial.is_terminal:
                denial.priority = compute_priority(denial.days_until_deadline(today))
            if priority is not None and denial.priority != priority:
                continue
            queue.append(denial)
        return sorted(queue, key=lambda d: priority_sort_key(d, today))

    # Appeals

    async def generate_appeal(
        self,
        denial_id: str,
        options: Optional[Union[GenerateAppealOptions, Dict[str, Any]]],
        actor_id: str,
    ) -> GeneratedAppeal:
        options = _parse(GenerateAppealOptions, options) if options is not None else None
        return await self.factory.generate(denial_id, options, actor_id)

    def submit_appeal(
        self,
        appeal_id: str,
        request: Union[SubmitAppealRequest, Dict[str, Any]],
        actor_id: str,
    ) -> Appeal:
        request = _parse(SubmitAppealRequest, request)

        with self.store.transaction():
            appeal = self._load_appeal(appeal_id)
            previous_status = appeal.status
            if not AppealStateMachine.transition(appeal, AppealStatus.SUBMITTED):
                raise InvalidTransition(
                    previous_status, AppealStatus.SUBMITTED.value, entity="appeal", detail="already submitted"
                )
            appeal.submitted_at = self.clock()
            appeal.submission_method = request.submission_method
            appeal.confirmation_number = request.confirmation_number
            appeal.submitted_by = actor_id

            denial = self._load_denial(appeal.denial_id)
            if DenialStateMachine.transition(
                denial, APPEAL_TO_DENIAL_STATUS[AppealStatus.SUBMITTED.value], force=True
            ):
                self.store.save_denial(denial)

            self.store.save_appeal(appeal)
            self.audit_logger.log_appeal_submitted(
                denial_id=appeal.denial_id,
                appeal_id=appeal.id,
                appeal_number=appeal.appeal_number,
                submission_method=appeal.submission_method,
                performed_by=actor_id,
                confirmation_number=appeal.confirmation_number,
            )

        logger.info(f"Appeal {appeal.appeal_number} submitted via {appeal.submission_method}")
        return appeal

    def _change_appeal_status(
        self, appeal_id: str, target: str, actor_id: str, notes: Optional[str] = None
    ) -> Appeal:
        with self.store.transaction():
            appeal = self._load_appeal(appeal_id)
            previous_status = appeal.status
            if not AppealStateMachine.transition(appeal, target):
                return appeal
            self.store.save_appeal(appeal)
            self.audit_logger.log_status_change(
                denial_id=appeal.denial_id,
                old_status=previous_status,
                new_status=appeal.status,
                performed_by=actor_id,
                appeal_id=appeal.id,
                notes=notes,
            )
        return appeal

    def mark_in_review(self, appeal_id: str, actor_id: str) -> Appeal:
        """Payer acknowledged the appeal and is reviewing it."""
        return self._change_appeal_status(appeal_id, AppealStatus.IN_REVIEW.value, actor_id)

    def review_appeal(
        self,
        appeal_id: str,
        target: Union[AppealStatus, str],
        actor_id: str,
        notes: Optional[str] = None,
    ) -> Appeal:
        """Internal review moves: send for review, approve, or send back to draft."""
        target = _enum_value(AppealStatus, target)
        if target not in REVIEW_TARGETS:
            raise ValidationError(f"Review cannot move an appeal to '{target}'")
        return self._change_appeal_status(appeal_id, target, actor_id, notes=notes)

    def update_letter(
        self,
        appeal_id: str,
        letter_body: str,
        actor_id: str,
        subject_line: Optional[str] = None,
    ) -> Appeal:
        letter_body = ValidationUtils.sanitize_string(letter_body)
        if not letter_body:
            raise ValidationError("letter_body is required")

        with self.store.transaction():
            appeal = self._load_appeal(appeal_id)
            if AppealStatus(appeal.status).value not in EDITABLE_APPEAL_STATUSES:
                raise InvalidTransition(
                    appeal.status, appeal.status, entity="appeal",
                    detail="letter can only be edited while draft or pending review",
                )
            appeal.letter_body = letter_body
            if subject_line:
                appeal.subject_line = subject_line.strip()
            appeal.touch()
            self.store.save_appeal(appeal)
            self.audit_logger.log_action(
                denial_id=appeal.denial_id,
                action_type=AuditActionType.APPEAL_UPDATED,
                description=f"Appeal {appeal.appeal_number} letter edited",
                performed_by=actor_id,
                appeal_id=appeal.id,
            )
        return appeal

    def add_response_notes(self, appeal_id: str, notes: str, actor_id: str) -> Appeal:
        """Attach payer correspondence notes; allowed in every appeal status."""
        notes = ValidationUtils.sanitize_string(notes)
        if not notes:
            raise ValidationError("notes are required")

        with self.store.transaction():
            appeal = self._load_appeal(appeal_id)
            previous_notes = appeal.response_notes
            appeal.response_notes = f"{previous_notes}\n{notes}" if previous_notes else notes
            appeal.touch()
            self.store.save_appeal(appeal)
            self.audit_logger.log_action(
                denial_id=appeal.denial_id,
                action_type=AuditActionType.APPEAL_UPDATED,
                description=f"Response notes added to appeal {appeal.appeal_number}",
                performed_by=actor_id,
                appeal_id=appeal.id,
                previous_value=previous_notes,
                new_value=appeal.response_notes,
            )
        return appeal

    def record_outcome(
        self,
        appeal_id: str,
        request: Union[RecordOutcomeRequest, Dict[str, Any]],
        actor_id: str,
    ) -> Appeal:
        """Apply the payer's decision to the appeal and its denial."""
        request = _parse(RecordOutcomeRequest, request)
        outcome = AppealOutcome(request.outcome).value

        with self.store.transaction():
            appeal = self._load_appeal(appeal_id)

            if outcome == AppealOutcome.DENIED.value:
                amount = Decimal("0.00")
            else:
                amount = request.amount
                if amount > appeal.disputed_amount:
                    raise ValidationError(
                        f"Outcome amount {amount} exceeds disputed amount {appeal.disputed_amount}"
                    )

            previous_status = appeal.status
            AppealStateMachine.record_outcome(appeal, outcome)
            today = self._today()
            appeal.outcome_amount = amount
            appeal.response_date = today
            if request.notes:
                appeal.response_notes = request.notes

            denial = self._load_denial(appeal.denial_id)
            DenialStateMachine.transition(denial, APPEAL_TO_DENIAL_STATUS[outcome], force=True)
            if outcome == AppealOutcome.WON.value:
                denial.resolution_type = ResolutionType.APPEAL_WON
                denial.resolution_amount = amount
                denial.resolution_date = today
                denial.resolution_notes = request.notes or None
            elif outcome == AppealOutcome.DENIED.value:
                denial.resolution_type = ResolutionType.APPEAL_DENIED
                denial.resolution_date = today
                denial.resolution_notes = request.notes or None

            self.store.save_appeal(appeal)
            self.store.save_denial(denial)
            self.audit_logger.log_outcome_recorded(
                denial_id=denial.id,
                appeal_id=appeal.id,
                appeal_number=appeal.appeal_number,
                outcome=outcome,
                amount=str(amount),
                performed_by=actor_id,
                previous_status=previous_status,
            )

        logger.info(
            f"Appeal {appeal.appeal_number} outcome {outcome} ({amount}); denial {denial.id} now {denial.status}"
        )
        return appeal
