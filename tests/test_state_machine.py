"""Tests for denial/appeal status rules and deadline priority."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from rcm_appeals.errors import InvalidTransition
from rcm_appeals.lifecycle.state_machine import (
    APPEAL_TO_DENIAL_STATUS,
    DENIAL_TRANSITIONS,
    AppealStateMachine,
    DenialStateMachine,
    compute_priority,
    priority_sort_key,
)
from rcm_appeals.models import Appeal, DenialStatus


ALL_STATUSES = [s.value for s in DenialStatus]

ALLOWED = [
    (source, target)
    for source, targets in DENIAL_TRANSITIONS.items()
    for target in sorted(targets)
]

FORBIDDEN = [
    (source, target)
    for source in ["new", "reviewing", "appealing", "correcting", "resubmitting"]
    for target in ALL_STATUSES
    if target != source and target not in DENIAL_TRANSITIONS[source]
]


class TestDenialTransitions:
    """Transition table enforcement."""

    def test_table_matches_lifecycle(self):
        assert DENIAL_TRANSITIONS["new"] == {"reviewing", "appealing", "written_off"}
        assert DENIAL_TRANSITIONS["reviewing"] == {"appealing", "correcting", "written_off"}
        assert DENIAL_TRANSITIONS["appealing"] == {"resolved", "new", "written_off"}
        assert DENIAL_TRANSITIONS["correcting"] == {"resubmitting", "written_off"}
        assert DENIAL_TRANSITIONS["resubmitting"] == {"resolved", "new", "written_off"}
        assert DENIAL_TRANSITIONS["resolved"] == frozenset()
        assert DENIAL_TRANSITIONS["written_off"] == frozenset()

    @pytest.mark.parametrize("source,target", ALLOWED)
    def test_allowed_transitions(self, make_denial, source, target):
        denial = make_denial(status=source)
        assert DenialStateMachine.transition(denial, target) is True
        assert denial.status == target

    @pytest.mark.parametrize("source,target", FORBIDDEN)
    def test_forbidden_transitions_raise(self, make_denial, source, target):
        denial = make_denial(status=source)
        with pytest.raises(InvalidTransition):
            DenialStateMachine.transition(denial, target)
        assert denial.status == source

    @pytest.mark.parametrize("terminal", ["resolved", "written_off"])
    @pytest.mark.parametrize("target", ALL_STATUSES)
    def test_terminal_states_reject_everything(self, make_denial, terminal, target):
        """Closed denials reject every move, including a same-state or forced one."""
        denial = make_denial(status=terminal)
        with pytest.raises(InvalidTransition):
            DenialStateMachine.transition(denial, target)
        with pytest.raises(InvalidTransition):
            DenialStateMachine.transition(denial, target, force=True)
        assert denial.status == terminal

    def test_same_state_is_noop(self, make_denial):
        """appealing -> appealing succeeds quietly for concurrent generations."""
        denial = make_denial(status="appealing")
        before = denial.updated_at
        assert DenialStateMachine.transition(denial, "appealing") is False
        assert denial.status == "appealing"
        assert denial.updated_at == before

    def test_force_bypasses_table(self, make_denial):
        denial = make_denial(status="correcting")
        with pytest.raises(InvalidTransition):
            DenialStateMachine.transition(denial, "appealing")
        assert DenialStateMachine.transition(denial, "appealing", force=True) is True
        assert denial.status == "appealing"

    def test_accepts_enum_targets(self, make_denial):
        denial = make_denial()
        DenialStateMachine.transition(denial, DenialStatus.REVIEWING)
        assert denial.status == "reviewing"

    def test_error_carries_statuses(self, make_denial):
        denial = make_denial(status="new")
        with pytest.raises(InvalidTransition) as exc_info:
            DenialStateMachine.transition(denial, "resolved")
        assert exc_info.value.current == "new"
        assert exc_info.value.target == "resolved"

    def test_can_transition(self):
        assert DenialStateMachine.can_transition("new", "appealing")
        assert DenialStateMachine.can_transition("appealing", "appealing")
        assert not DenialStateMachine.can_transition("new", "resolved")
        assert not DenialStateMachine.can_transition("resolved", "resolved")

    def test_allowed_targets(self, make_denial):
        assert DenialStateMachine.allowed_targets("correcting") == {"resubmitting", "written_off"}
        assert DenialStateMachine.allowed_targets("written_off") == frozenset()

        denial = make_denial(status="correcting")
        with pytest.raises(InvalidTransition) as exc_info:
            DenialStateMachine.transition(denial, "appealing")
        assert str(exc_info.value) == "Cannot move denial from 'correcting' to 'appealing': allowed: resubmitting, written_off"


class TestAppealTransitions:
    """Appeal review, submission and outcome rules."""

    def _appeal(self, status: str) -> Appeal:
        return Appeal(
            appeal_number="APL-20260302-AB12CD",
            denial_id="D1",
            subject_line="s",
            letter_body="b",
            disputed_amount="100",
            requested_amount="100",
            response_deadline=date(2026, 4, 16),
            created_by="biller-42",
            status=status,
        )

    @pytest.mark.parametrize("source,target", [
        ("draft", "pending_review"),
        ("pending_review", "approved"),
        ("pending_review", "draft"),
        ("draft", "submitted"),
        ("pending_review", "submitted"),
        ("approved", "submitted"),
        ("submitted", "in_review"),
    ])
    def test_allowed(self, source, target):
        appeal = self._appeal(source)
        assert AppealStateMachine.transition(appeal, target) is True
        assert appeal.status == target

    @pytest.mark.parametrize("source,target", [
        ("draft", "in_review"),
        ("draft", "won"),
        ("submitted", "draft"),
        ("in_review", "submitted"),
        ("approved", "pending_review"),
    ])
    def test_forbidden(self, source, target):
        appeal = self._appeal(source)
        with pytest.raises(InvalidTransition):
            AppealStateMachine.transition(appeal, target)
        assert appeal.status == source

    @pytest.mark.parametrize("terminal", ["won", "denied", "partial"])
    def test_terminal_appeal_is_immutable(self, terminal):
        appeal = self._appeal(terminal)
        with pytest.raises(InvalidTransition):
            AppealStateMachine.transition(appeal, "submitted")

    @pytest.mark.parametrize("source", ["submitted", "in_review"])
    def test_outcome_from_submitted_states(self, source):
        appeal = self._appeal(source)
        AppealStateMachine.record_outcome(appeal, "won")
        assert appeal.status == "won"

    @pytest.mark.parametrize("source", ["draft", "pending_review", "approved", "denied"])
    def test_outcome_requires_submission(self, source):
        appeal = self._appeal(source)
        with pytest.raises(InvalidTransition):
            AppealStateMachine.record_outcome(appeal, "won")

    def test_status_mapping(self):
        assert APPEAL_TO_DENIAL_STATUS["draft"] == "appealing"
        assert APPEAL_TO_DENIAL_STATUS["submitted"] == "appealing"
        assert APPEAL_TO_DENIAL_STATUS["won"] == "resolved"
        assert APPEAL_TO_DENIAL_STATUS["partial"] == "reviewing"
        assert APPEAL_TO_DENIAL_STATUS["denied"] == "new"


class TestPriority:
    """Deadline-driven priority buckets."""

    @pytest.mark.parametrize("days,expected", [
        (-5, "critical"),
        (0, "critical"),
        (3, "critical"),
        (4, "high"),
        (7, "high"),
        (8, "medium"),
        (21, "medium"),
        (22, "low"),
        (90, "low"),
        (None, "low"),
    ])
    def test_compute_priority(self, days, expected):
        assert compute_priority(days) == expected

    def test_amount_breaks_ties_within_bucket_only(self, make_denial):
        today = date(2026, 3, 2)
        urgent_small = make_denial(id="urgent-small", denied_amount="50", billed_amount="50",
                                   appeal_deadline=today + timedelta(days=2))
        high_large = make_denial(id="high-large", denied_amount="90000", billed_amount="90000",
                                 appeal_deadline=today + timedelta(days=6))
        high_medium = make_denial(id="high-medium", denied_amount="700", billed_amount="700",
                                  appeal_deadline=today + timedelta(days=5))
        no_deadline = make_denial(id="no-deadline", denied_amount="100000", billed_amount="100000")

        ordered = sorted(
            [no_deadline, high_medium, high_large, urgent_small],
            key=lambda d: priority_sort_key(d, today),
        )
        assert [d.id for d in ordered] == ["urgent-small", "high-large", "high-medium", "no-deadline"]

    def test_sort_key_shape(self, make_denial):
        today = date(2026, 3, 2)
        denial = make_denial(appeal_deadline=today + timedelta(days=1), denied_amount="12.50", billed_amount="20")
        assert priority_sort_key(denial, today) == (0, Decimal("-12.50"), today + timedelta(days=1))
