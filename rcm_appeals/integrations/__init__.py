"""Storage collaborators for the lifecycle engine."""

from .store import AppealStore, InMemoryAppealStore
from .json_store import JsonFileAppealStore

__all__ = [
    "AppealStore",
    "InMemoryAppealStore",
    "JsonFileAppealStore",
]
