"""JSON-file-backed store for local runs and demos."""

import json
import logging
from pathlib import Path
from typing import Union

from ..errors import PersistenceFailure
from ..models import Appeal, AppealTemplate, AuditEntry, ClaimSummary, Denial, PatientSummary
from .store import InMemoryAppealStore

logger = logging.getLogger(__name__)


class JsonFileAppealStore(InMemoryAppealStore):
    """In-memory store that flushes the whole document to disk on commit."""

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        if self.path.exists():
            self._load()

    def _load(self) -> None:
        with open(self.path) as f:
            data = json.load(f)

        self._denials = {k: Denial(**v) for k, v in data.get("denials", {}).items()}
        self._claims = {k: ClaimSummary(**v) for k, v in data.get("claims", {}).items()}
        self._patients = {k: PatientSummary(**v) for k, v in data.get("patients", {}).items()}
        self._templates = {k: AppealTemplate(**v) for k, v in data.get("templates", {}).items()}
        self._appeals = {k: Appeal(**v) for k, v in data.get("appeals", {}).items()}
        self._audit_entries = [AuditEntry(**e) for e in data.get("audit_entries", [])]
        logger.info(
            f"Loaded {len(self._denials)} denials and {len(self._appeals)} appeals from {self.path}"
        )

    def _dump(self) -> dict:
        return {
            "denials": {k: v.model_dump(mode="json") for k, v in self._denials.items()},
            "claims": {k: v.model_dump(mode="json") for k, v in self._claims.items()},
            "patients": {k: v.model_dump(mode="json") for k, v in self._patients.items()},
            "templates": {k: v.model_dump(mode="json") for k, v in self._templates.items()},
            "appeals": {k: v.model_dump(mode="json") for k, v in self._appeals.items()},
            "audit_entries": [e.model_dump(mode="json") for e in self._audit_entries],
        }

    def _commit(self) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                json.dump(self._dump(), f, indent=2, default=str)
            tmp_path.replace(self.path)
        except OSError as e:
            raise PersistenceFailure(f"Could not write {self.path}: {e}") from e

    # Writes outside an explicit transaction still need to reach disk.
    def save_denial(self, denial: Denial) -> None:
        with self.transaction():
            super().save_denial(denial)

    def save_claim(self, claim: ClaimSummary) -> None:
        with self.transaction():
            super().save_claim(claim)

    def save_patient(self, patient: PatientSummary) -> None:
        with self.transaction():
            super().save_patient(patient)

    def save_template(self, template: AppealTemplate) -> None:
        with self.transaction():
            super().save_template(template)

    def save_appeal(self, appeal: Appeal) -> None:
        with self.transaction():
            super().save_appeal(appeal)

    def append_audit_entry(self, entry: AuditEntry) -> None:
        with self.transaction():
            super().append_audit_entry(entry)
