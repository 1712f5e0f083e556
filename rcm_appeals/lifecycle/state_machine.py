"""Denial and appeal status rules plus deadline-driven priority."""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, FrozenSet, Optional, Tuple

from ..errors import InvalidTransition
from ..models import (
    AppealStatus,
    Appeal,
    Denial,
    DenialPriority,
    DenialStatus,
    TERMINAL_APPEAL_STATUSES,
    TERMINAL_DENIAL_STATUSES,
)

logger = logging.getLogger(__name__)


DENIAL_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    DenialStatus.NEW.value: frozenset({
        DenialStatus.REVIEWING.value,
        DenialStatus.APPEALING.value,
        DenialStatus.WRITTEN_OFF.value,
    }),
    DenialStatus.REVIEWING.value: frozenset({
        DenialStatus.APPEALING.value,
        DenialStatus.CORRECTING.value,
        DenialStatus.WRITTEN_OFF.value,
    }),
    DenialStatus.APPEALING.value: frozenset({
        DenialStatus.RESOLVED.value,
        DenialStatus.NEW.value,
        DenialStatus.WRITTEN_OFF.value,
    }),
    DenialStatus.CORRECTING.value: frozenset({
        DenialStatus.RESUBMITTING.value,
        DenialStatus.WRITTEN_OFF.value,
    }),
    DenialStatus.RESUBMITTING.value: frozenset({
        DenialStatus.RESOLVED.value,
        DenialStatus.NEW.value,
        DenialStatus.WRITTEN_OFF.value,
    }),
    DenialStatus.RESOLVED.value: frozenset(),
    DenialStatus.WRITTEN_OFF.value: frozenset(),
}

# Manual appeal moves; outcomes are only reachable through outcome recording.
APPEAL_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    AppealStatus.DRAFT.value: frozenset({
        AppealStatus.PENDING_REVIEW.value,
        AppealStatus.SUBMITTED.value,
    }),
    AppealStatus.PENDING_REVIEW.value: frozenset({
        AppealStatus.APPROVED.value,
        AppealStatus.DRAFT.value,
        AppealStatus.SUBMITTED.value,
    }),
    AppealStatus.APPROVED.value: frozenset({AppealStatus.SUBMITTED.value}),
    AppealStatus.SUBMITTED.value: frozenset({AppealStatus.IN_REVIEW.value}),
    AppealStatus.IN_REVIEW.value: frozenset(),
    AppealStatus.WON.value: frozenset(),
    AppealStatus.DENIED.value: frozenset(),
    AppealStatus.PARTIAL.value: frozenset(),
}

OUTCOME_SOURCE_STATUSES = frozenset({AppealStatus.SUBMITTED.value, AppealStatus.IN_REVIEW.value})
EDITABLE_APPEAL_STATUSES = frozenset({AppealStatus.DRAFT.value, AppealStatus.PENDING_REVIEW.value})

APPEAL_TO_DENIAL_STATUS: Dict[str, str] = {
    AppealStatus.DRAFT.value: DenialStatus.APPEALING.value,
    AppealStatus.PENDING_REVIEW.value: DenialStatus.APPEALING.value,
    AppealStatus.APPROVED.value: DenialStatus.APPEALING.value,
    AppealStatus.SUBMITTED.value: DenialStatus.APPEALING.value,
    AppealStatus.IN_REVIEW.value: DenialStatus.APPEALING.value,
    AppealStatus.WON.value: DenialStatus.RESOLVED.value,
    AppealStatus.PARTIAL.value: DenialStatus.REVIEWING.value,
    AppealStatus.DENIED.value: DenialStatus.NEW.value,
}

PRIORITY_RANK: Dict[str, int] = {
    DenialPriority.CRITICAL.value: 0,
    DenialPriority.HIGH.value: 1,
    DenialPriority.MEDIUM.value: 2,
    DenialPriority.LOW.value: 3,
}


class DenialStateMachine:
    """Applies the denial transition table. Never clamps to a nearby state."""

    transitions = DENIAL_TRANSITIONS

    @classmethod
    def allowed_targets(cls, status: str) -> FrozenSet[str]:
        return cls.transitions[DenialStatus(status).value]

    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        current = DenialStatus(current).value
        target = DenialStatus(target).value
        if current in TERMINAL_DENIAL_STATUSES:
            return False
        return current == target or target in cls.allowed_targets(current)

    @classmethod
    def transition(cls, denial: Denial, target: str, force: bool = False) -> bool:
        """Move ``denial`` to ``target`` in place.

        Returns False when the denial is already in ``target`` (a no-op, so
        two concurrent appeal generations both succeed). Terminal denials
        always raise, even with ``force``; ``force`` only bypasses the table
        for appeal-driven moves.
        """
        current = DenialStatus(denial.status).value
        target = DenialStatus(target).value

        if current in TERMINAL_DENIAL_STATUSES:
            raise InvalidTransition(current, target, detail="denial is closed")

        if current == target:
            return False

        allowed = cls.allowed_targets(current)
        if not force and target not in allowed:
            raise InvalidTransition(current, target, detail=f"allowed: {', '.join(sorted(allowed))}")

        denial.status = target
        denial.touch()
        logger.debug(f"Denial {denial.id} moved from {current} to {target}")
        return True


class AppealStateMachine:
    """Manual appeal status moves (review, submission, payer acknowledgement)."""

    transitions = APPEAL_TRANSITIONS

    @classmethod
    def transition(cls, appeal: Appeal, target: str) -> bool:
        current = AppealStatus(appeal.status).value
        target = AppealStatus(target).value

        if current in TERMINAL_APPEAL_STATUSES:
            raise InvalidTransition(current, target, entity="appeal", detail="appeal outcome already recorded")

        if current == target:
            return False

        if target not in cls.transitions[current]:
            raise InvalidTransition(current, target, entity="appeal")

        appeal.status = target
        appeal.touch()
        return True

    @classmethod
    def record_outcome(cls, appeal: Appeal, outcome: str) -> None:
        current = AppealStatus(appeal.status).value
        outcome = AppealStatus(outcome).value
        if outcome not in TERMINAL_APPEAL_STATUSES:
            raise InvalidTransition(current, outcome, entity="appeal", detail="not an outcome status")
        if current not in OUTCOME_SOURCE_STATUSES:
            raise InvalidTransition(
                current, outcome, entity="appeal", detail="outcomes can only be recorded once submitted"
            )
        appeal.status = outcome
        appeal.touch()


def compute_priority(days_until_deadline: Optional[int]) -> str:
    """Bucket a denial by days left to appeal. Amount never shifts the bucket."""
    if days_until_deadline is None:
        return DenialPriority.LOW.value
    if days_until_deadline <= 3:
        return DenialPriority.CRITICAL.value
    if days_until_deadline <= 7:
        return DenialPriority.HIGH.value
    if days_until_deadline <= 21:
        return DenialPriority.MEDIUM.value
    return DenialPriority.LOW.value


def priority_sort_key(denial: Denial, today: Optional[date] = None) -> Tuple[int, Decimal, date]:
    """Work-queue ordering: priority bucket, then larger amounts, then earlier deadlines."""
    priority = compute_priority(denial.days_until_deadline(today))
    return (
        PRIORITY_RANK[priority],
        -denial.denied_amount,
        denial.appeal_deadline or date.max,
    )
