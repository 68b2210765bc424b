"""
Application context.

Holds the signed-in user, their API key and the output language. It is
created at startup (or per request by the web layer), updated on auth events
and torn down on sign-out, and passed explicitly to whatever needs it.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from .config import Settings
from .errors import MissingCredentialError, NotAuthenticatedError
from .models import SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)


@dataclass
class UserSession:
    user_id: str
    email: str = ""
    username: str = "User"


class AppContext:
    """Session, credential and language for one user of the workspace."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.session: Optional[UserSession] = None
        self.api_key: Optional[str] = None
        self._language = settings.default_language

    @property
    def language(self) -> str:
        return self._language

    @language.setter
    def language(self, value: str):
        if value not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {value}")
        self._language = value

    def sign_in(self, user_id: str, email: str = "", display_name: Optional[str] = None,
                api_key: Optional[str] = None) -> UserSession:
        """Start a session; the username falls back to the e-mail local part."""
        username = display_name or (email.split("@")[0] if email else "") or "User"
        self.session = UserSession(user_id=user_id, email=email or "", username=username)
        self.api_key = api_key or None
        logger.info(f"User {user_id} signed in")
        return self.session

    def sign_out(self):
        """Tear down the session and forget the credential."""
        if self.session:
            logger.info(f"User {self.session.user_id} signed out")
        self.session = None
        self.api_key = None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    def require_user(self) -> UserSession:
        if self.session is None:
            raise NotAuthenticatedError("Please sign in first.")
        return self.session

    def require_api_key(self) -> str:
        if not self.api_key:
            raise MissingCredentialError("Please configure your Google AI API key in Settings first.")
        return self.api_key
