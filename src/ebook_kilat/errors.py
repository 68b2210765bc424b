"""Exception hierarchy for ebook generation and persistence."""
from typing import Optional

QUOTA_EXHAUSTED = "QUOTA_EXHAUSTED"


class EbookError(Exception):
    """Base class for all application errors."""
    pass


class QuotaExhaustedError(EbookError):
    """The vendor's rate/usage limit was hit and retries are exhausted."""

    def __init__(self, message: str = QUOTA_EXHAUSTED):
        super().__init__(message)


class GenerationAPIError(EbookError):
    """An outbound generation call failed with an HTTP-level error."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 status: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.status = status


class MalformedResponseError(EbookError):
    """The AI response could not be parsed or did not match the schema."""
    pass


class MissingCredentialError(EbookError):
    """No API key is configured for the action."""
    pass


class NotAuthenticatedError(EbookError):
    """The action requires a signed-in user."""
    pass


class ChapterNotFoundError(EbookError):
    """The chapter id is not part of the outline."""
    pass


class ProjectNotFoundError(EbookError):
    """The project does not exist or belongs to another user."""
    pass


class InvalidTransitionError(EbookError):
    """A chapter status change not allowed by the state machine."""
    pass


class PersistenceError(EbookError):
    """A remote database operation failed."""
    pass
