"""Error taxonomy for the denial and appeal lifecycle."""

from typing import Optional


class AppealEngineError(Exception):
    """Base class for every error raised by the engine."""

    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(AppealEngineError):
    """A denial, appeal or template does not exist."""


class DenialNotFound(NotFoundError):
    def __init__(self, denial_id: str):
        super().__init__(f"Denial {denial_id} not found")
        self.denial_id = denial_id


class AppealNotFound(NotFoundError):
    def __init__(self, appeal_id: str):
        super().__init__(f"Appeal {appeal_id} not found")
        self.appeal_id = appeal_id


class TemplateNotFound(NotFoundError):
    def __init__(self, template_id: str, reason: str = "not found"):
        super().__init__(f"Appeal template {template_id} {reason}")
        self.template_id = template_id


class InvalidTransition(AppealEngineError):
    """Illegal status change for a denial or an appeal."""

    def __init__(self, current: str, target: str, entity: str = "denial", detail: Optional[str] = None):
        message = f"Cannot move {entity} from '{current}' to '{target}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.entity = entity


class ValidationError(AppealEngineError, ValueError):
    """Malformed input: bad amounts, missing reason code, bad payloads."""


class DependencyFailure(AppealEngineError):
    """A collaborator (storage) could not be reached."""

    retryable = True


class PersistenceFailure(DependencyFailure):
    """A transaction failed to commit and was rolled back."""
