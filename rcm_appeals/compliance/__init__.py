"""Compliance: audit trail management."""

from .audit_logger import AuditLogger

__all__ = [
    "AuditLogger",
]
