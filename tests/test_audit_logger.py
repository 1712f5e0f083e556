"""Tests for the append-only audit trail."""

import json
import logging
import pytest
from datetime import timedelta

from rcm_appeals.models import AuditActionType, AuditEntry


class TestAuditLogger:
    """Entries are written through the store and mirrored to the log."""

    def test_log_action_appends_and_logs(self, audit_logger, store, caplog):
        with caplog.at_level(logging.INFO, logger="rcm_appeals.audit"):
            entry = audit_logger.log_action(
                denial_id="D1",
                action_type=AuditActionType.STATUS_CHANGED,
                description="Denial status changed from new to reviewing",
                performed_by="biller-42",
                previous_value="new",
                new_value="reviewing",
            )

        assert store.list_audit_entries(denial_id="D1") == [entry]
        audit_lines = [r.getMessage() for r in caplog.records if r.getMessage().startswith("AUDIT: ")]
        assert len(audit_lines) == 1
        payload = json.loads(audit_lines[0][len("AUDIT: "):])
        assert payload["id"] == entry.id
        assert payload["action_type"] == "status_changed"
        assert payload["performed_by"] == "biller-42"

    def test_actor_is_required(self, audit_logger, store):
        with pytest.raises(ValueError):
            audit_logger.log_denial_created("D1", "CO-50", performed_by="")
        assert store.list_audit_entries() == []

    def test_helpers_set_action_types(self, audit_logger):
        audit_logger.log_denial_created("D1", "CO-50", performed_by="a")
        audit_logger.log_appeal_generated("D1", "A1", "APL-20260302-AAAAAA", performed_by="a", previous_status="new")
        audit_logger.log_appeal_submitted("D1", "A1", "APL-20260302-AAAAAA", "fax", performed_by="a")
        audit_logger.log_outcome_recorded("D1", "A1", "APL-20260302-AAAAAA", "won", "500.00", performed_by="a",
                                          previous_status="submitted")
        audit_logger.log_status_change("D1", "resolved", "written_off", performed_by="a")

        entries = audit_logger.get_audit_trail(denial_id="D1")
        assert [e.action_type for e in entries] == [
            "denial_created",
            "appeal_generated",
            "appeal_submitted",
            "outcome_recorded",
            "status_changed",
        ]
        assert entries[1].previous_value == "new"
        assert entries[3].description == "Appeal APL-20260302-AAAAAA outcome: won ($500.00)"

    def test_status_change_description(self, audit_logger):
        denial_entry = audit_logger.log_status_change("D1", "new", "reviewing", performed_by="a", notes="triaged")
        appeal_entry = audit_logger.log_status_change("D1", "draft", "approved", performed_by="a", appeal_id="A1")

        assert denial_entry.description == "Denial status changed from new to reviewing: triaged"
        assert appeal_entry.description == "Appeal status changed from draft to approved"


class TestAuditTrailQueries:

    def test_filters(self, audit_logger):
        first = audit_logger.log_denial_created("D1", "CO-50", performed_by="alice")
        audit_logger.log_denial_created("D2", "CO-16", performed_by="bob")
        audit_logger.log_appeal_generated("D1", "A1", "APL-20260302-AAAAAA", performed_by="bob")

        assert len(audit_logger.get_audit_trail()) == 3
        assert len(audit_logger.get_audit_trail(denial_id="D1")) == 2
        assert [e.appeal_id for e in audit_logger.get_audit_trail(appeal_id="A1")] == ["A1"]
        assert [e.denial_id for e in audit_logger.get_audit_trail(performed_by="bob")] == ["D2", "D1"]
        assert audit_logger.get_audit_trail(end_time=first.timestamp - timedelta(seconds=1)) == []
        assert audit_logger.get_audit_trail(start_time=first.timestamp)[0] == first

    def test_entries_cannot_be_appended_twice(self, store):
        entry = AuditEntry(
            denial_id="D1",
            action_type="denial_created",
            description="Denial recorded",
            performed_by="alice",
        )
        store.append_audit_entry(entry)

        with pytest.raises(ValueError):
            store.append_audit_entry(entry)
        assert len(store.list_audit_entries()) == 1
