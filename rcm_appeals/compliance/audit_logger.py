"""Append-only audit trail for denial and appeal lifecycle actions."""

import json
import logging
from datetime import datetime
from typing import List, Optional

from ..integrations.store import AppealStore
from ..models import AuditActionType, AuditEntry


class AuditLogger:
    """Records every significant transition against the denial that caused it.

    The acting user is always passed explicitly; entries are written through
    the store so they commit or roll back with the surrounding transaction.
    """

    def __init__(self, store: AppealStore, logger_name: str = "rcm_appeals.audit"):
        self.store = store
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(logging.INFO)

        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_action(
        self,
        denial_id: str,
        action_type: AuditActionType,
        description: str,
        performed_by: str,
        appeal_id: Optional[str] = None,
        previous_value: Optional[str] = None,
        new_value: Optional[str] = None,
    ) -> AuditEntry:
        """Append an audit entry and mirror it to the structured log."""
        entry = AuditEntry(
            denial_id=denial_id,
            appeal_id=appeal_id,
            action_type=action_type,
            description=description,
            performed_by=performed_by,
            previous_value=previous_value,
            new_value=new_value,
        )

        self.store.append_audit_entry(entry)

        self.logger.info(f"AUDIT: {json.dumps(entry.model_dump(mode='json'))}")
        return entry

    def log_denial_created(self, denial_id: str, reason_code: str, performed_by: str) -> AuditEntry:
        return self.log_action(
            denial_id=denial_id,
            action_type=AuditActionType.DENIAL_CREATED,
            description=f"Denial recorded with reason code {reason_code}",
            performed_by=performed_by,
            new_value="new",
        )

    def log_appeal_generated(
        self, denial_id: str, appeal_id: str, appeal_number: str, performed_by: str,
        previous_status: Optional[str] = None
    ) -> AuditEntry:
        return self.log_action(
            denial_id=denial_id,
            action_type=AuditActionType.APPEAL_GENERATED,
            description=f"Appeal {appeal_number} generated",
            performed_by=performed_by,
            appeal_id=appeal_id,
            previous_value=previous_status,
            new_value="appealing",
        )

    def log_appeal_submitted(
        self, denial_id: str, appeal_id: str, appeal_number: str, submission_method: str,
        performed_by: str, confirmation_number: Optional[str] = None
    ) -> AuditEntry:
        description = f"Appeal {appeal_number} submitted via {submission_method}"
        if confirmation_number:
            description += f" (confirmation {confirmation_number})"
        return self.log_action(
            denial_id=denial_id,
            action_type=AuditActionType.APPEAL_SUBMITTED,
            description=description,
            performed_by=performed_by,
            appeal_id=appeal_id,
            new_value="submitted",
        )

    def log_outcome_recorded(
        self, denial_id: str, appeal_id: str, appeal_number: str, outcome: str,
        amount: str, performed_by: str, previous_status: Optional[str] = None
    ) -> AuditEntry:
        return self.log_action(
            denial_id=denial_id,
            action_type=AuditActionType.OUTCOME_RECORDED,
            description=f"Appeal {appeal_number} outcome: {outcome} (${amount})",
            performed_by=performed_by,
            appeal_id=appeal_id,
            previous_value=previous_status,
            new_value=outcome,
        )

    def log_status_change(
        self, denial_id: str, old_status: str, new_status: str, performed_by: str,
        appeal_id: Optional[str] = None, notes: Optional[str] = None
    ) -> AuditEntry:
        subject = "Appeal" if appeal_id else "Denial"
        description = f"{subject} status changed from {old_status} to {new_status}"
        if notes:
            description += f": {notes}"
        return self.log_action(
            denial_id=denial_id,
            action_type=AuditActionType.STATUS_CHANGED,
            description=description,
            performed_by=performed_by,
            appeal_id=appeal_id,
            previous_value=old_status,
            new_value=new_status,
        )

    def get_audit_trail(
        self,
        denial_id: Optional[str] = None,
        appeal_id: Optional[str] = None,
        performed_by: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None
    ) -> List[AuditEntry]:
        """Retrieve audit entries based on filters."""
        filtered_entries = self.store.list_audit_entries(denial_id=denial_id, appeal_id=appeal_id)

        if performed_by:
            filtered_entries = [e for e in filtered_entries if e.performed_by == performed_by]

        if start_time:
            filtered_entries = [e for e in filtered_entries if e.timestamp >= start_time]

        if end_time:
            filtered_entries = [e for e in filtered_entries if e.timestamp <= end_time]

        return sorted(filtered_entries, key=lambda x: x.timestamp)
