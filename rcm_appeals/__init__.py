"""Denial tracking and appeal generation for healthcare revenue-cycle teams."""

from .config import Settings, get_settings
from .errors import (
    AppealEngineError,
    NotFoundError,
    DenialNotFound,
    AppealNotFound,
    TemplateNotFound,
    InvalidTransition,
    ValidationError,
    DependencyFailure,
    PersistenceFailure,
)
from .lifecycle import DenialAppealService

__all__ = [
    "Settings",
    "get_settings",
    "AppealEngineError",
    "NotFoundError",
    "DenialNotFound",
    "AppealNotFound",
    "TemplateNotFound",
    "InvalidTransition",
    "ValidationError",
    "DependencyFailure",
    "PersistenceFailure",
    "DenialAppealService",
]
