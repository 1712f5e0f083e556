"""Storage interface for denials, appeals, templates and the audit trail."""

import copy
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from threading import RLock, local
from typing import Dict, Iterator, List, Optional

from ..models import (
    Appeal,
    AppealTemplate,
    AuditEntry,
    ClaimSummary,
    Denial,
    DenialCategory,
    DenialContext,
    PatientSummary,
)

logger = logging.getLogger(__name__)


class AppealStore(ABC):
    """Persistence contract consumed by the lifecycle engine.

    Reads return detached copies; nothing is persisted until the matching
    ``save_*`` call. Multi-write sequences run inside ``transaction()`` and
    are applied all-or-nothing.
    """

    @abstractmethod
    @contextmanager
    def transaction(self) -> Iterator[None]:
        ...

    # Denials and joined projections
    @abstractmethod
    def get_denial(self, denial_id: str) -> Optional[Denial]:
        ...

    @abstractmethod
    def get_denial_context(self, denial_id: str) -> Optional[DenialContext]:
        ...

    @abstractmethod
    def save_denial(self, denial: Denial) -> None:
        ...

    @abstractmethod
    def list_denials(self) -> List[Denial]:
        ...

    @abstractmethod
    def save_claim(self, claim: ClaimSummary) -> None:
        ...

    @abstractmethod
    def save_patient(self, patient: PatientSummary) -> None:
        ...

    # Templates
    @abstractmethod
    def get_template(self, template_id: str) -> Optional[AppealTemplate]:
        ...

    @abstractmethod
    def find_templates_by_category(self, category: str) -> List[AppealTemplate]:
        """Active templates for a category, defaults first."""

    @abstractmethod
    def find_default_template(self) -> Optional[AppealTemplate]:
        """The active global default template (no category)."""

    @abstractmethod
    def save_template(self, template: AppealTemplate) -> None:
        ...

    @abstractmethod
    def increment_usage(self, template_id: str) -> None:
        ...

    # Appeals
    @abstractmethod
    def get_appeal(self, appeal_id: str) -> Optional[Appeal]:
        ...

    @abstractmethod
    def save_appeal(self, appeal: Appeal) -> None:
        ...

    @abstractmethod
    def list_appeals(self, denial_id: Optional[str] = None) -> List[Appeal]:
        ...

    @abstractmethod
    def appeal_number_exists(self, appeal_number: str) -> bool:
        ...

    # Audit trail
    @abstractmethod
    def append_audit_entry(self, entry: AuditEntry) -> None:
        ...

    @abstractmethod
    def list_audit_entries(self, denial_id: Optional[str] = None, appeal_id: Optional[str] = None) -> List[AuditEntry]:
        ...


class InMemoryAppealStore(AppealStore):
    """Dict-backed store with snapshot/rollback transactions."""

    def __init__(self):
        self._lock = RLock()
        self._tx = local()
        self._denials: Dict[str, Denial] = {}
        self._claims: Dict[str, ClaimSummary] = {}
        self._patients: Dict[str, PatientSummary] = {}
        self._templates: Dict[str, AppealTemplate] = {}
        self._appeals: Dict[str, Appeal] = {}
        self._audit_entries: List[AuditEntry] = []

    def _snapshot(self) -> dict:
        return copy.deepcopy({
            "denials": self._denials,
            "claims": self._claims,
            "patients": self._patients,
            "templates": self._templates,
            "appeals": self._appeals,
            "audit_entries": self._audit_entries,
        })

    def _restore(self, snapshot: dict) -> None:
        self._denials = snapshot["denials"]
        self._claims = snapshot["claims"]
        self._patients = snapshot["patients"]
        self._templates = snapshot["templates"]
        self._appeals = snapshot["appeals"]
        self._audit_entries = snapshot["audit_entries"]

    def _commit(self) -> None:
        """Hook run when the outermost transaction succeeds."""

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            depth = getattr(self._tx, "depth", 0)
            if depth:
                # Nested transactions join the outer one.
                self._tx.depth = depth + 1
                try:
                    yield
                finally:
                    self._tx.depth = depth
                return

            snapshot = self._snapshot()
            self._tx.depth = 1
            try:
                yield
                self._commit()
            except BaseException:
                self._restore(snapshot)
                logger.debug("Transaction rolled back")
                raise
            finally:
                self._tx.depth = 0

    def get_denial(self, denial_id: str) -> Optional[Denial]:
        with self._lock:
            denial = self._denials.get(denial_id)
            return denial.model_copy(deep=True) if denial else None

    def get_denial_context(self, denial_id: str) -> Optional[DenialContext]:
        with self._lock:
            denial = self._denials.get(denial_id)
            if denial is None:
                return None
            claim = self._claims.get(denial.claim_id) if denial.claim_id else None
            patient = self._patients.get(denial.patient_id) if denial.patient_id else None
            return DenialContext(
                denial=denial.model_copy(deep=True),
                claim=claim.model_copy(deep=True) if claim else None,
                patient=patient.model_copy(deep=True) if patient else None,
            )

    def save_denial(self, denial: Denial) -> None:
        with self._lock:
            self._denials[denial.id] = denial.model_copy(deep=True)

    def list_denials(self) -> List[Denial]:
        with self._lock:
            return [d.model_copy(deep=True) for d in self._denials.values()]

    def save_claim(self, claim: ClaimSummary) -> None:
        with self._lock:
            self._claims[claim.id] = claim.model_copy(deep=True)

    def save_patient(self, patient: PatientSummary) -> None:
        with self._lock:
            self._patients[patient.id] = patient.model_copy(deep=True)

    def get_template(self, template_id: str) -> Optional[AppealTemplate]:
        with self._lock:
            template = self._templates.get(template_id)
            return template.model_copy(deep=True) if template else None

    def find_templates_by_category(self, category: str) -> List[AppealTemplate]:
        category = DenialCategory(category).value
        with self._lock:
            matches = [
                t for t in self._templates.values()
                if t.active and t.denial_category == category
            ]
            # Stable sort keeps insertion order among equals.
            matches.sort(key=lambda t: not t.is_default)
            return [t.model_copy(deep=True) for t in matches]

    def find_default_template(self) -> Optional[AppealTemplate]:
        with self._lock:
            defaults = sorted(
                (t for t in self._templates.values() if t.is_global_default),
                key=lambda t: t.id,
            )
            if len(defaults) > 1:
                logger.warning(
                    f"{len(defaults)} active global default templates found; using {defaults[0].id}"
                )
            return defaults[0].model_copy(deep=True) if defaults else None

    def save_template(self, template: AppealTemplate) -> None:
        with self._lock:
            self._templates[template.id] = template.model_copy(deep=True)

    def increment_usage(self, template_id: str) -> None:
        with self.transaction():
            template = self._templates.get(template_id)
            if template is None:
                raise KeyError(f"Template {template_id} not found")
            template.usage_count += 1

    def get_appeal(self, appeal_id: str) -> Optional[Appeal]:
        with self._lock:
            appeal = self._appeals.get(appeal_id)
            return appeal.model_copy(deep=True) if appeal else None

    def save_appeal(self, appeal: Appeal) -> None:
        with self._lock:
            self._appeals[appeal.id] = appeal.model_copy(deep=True)

    def list_appeals(self, denial_id: Optional[str] = None) -> List[Appeal]:
        with self._lock:
            appeals = [
                a for a in self._appeals.values()
                if denial_id is None or a.denial_id == denial_id
            ]
            appeals.sort(key=lambda a: a.created_at)
            return [a.model_copy(deep=True) for a in appeals]

    def appeal_number_exists(self, appeal_number: str) -> bool:
        with self._lock:
            return any(a.appeal_number == appeal_number for a in self._appeals.values())

    def append_audit_entry(self, entry: AuditEntry) -> None:
        with self._lock:
            if any(e.id == entry.id for e in self._audit_entries):
                raise ValueError(f"Audit entry {entry.id} already recorded")
            self._audit_entries.append(entry)

    def list_audit_entries(self, denial_id: Optional[str] = None, appeal_id: Optional[str] = None) -> List[AuditEntry]:
        with self._lock:
            entries = self._audit_entries
            if denial_id:
                entries = [e for e in entries if e.denial_id == denial_id]
            if appeal_id:
                entries = [e for e in entries if e.appeal_id == appeal_id]
            return sorted(entries, key=lambda x: x.timestamp)
