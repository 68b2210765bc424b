"""Per-user Google AI API keys stored in Firestore (one document per user)."""
import logging
from typing import Any, Optional

from firebase_admin import firestore

from ..models import utc_now

logger = logging.getLogger(__name__)


class ApiKeyStore:
    """
    Credential store behind the settings dialog.
    Failures are logged and reported as None/False, never raised.
    """

    def __init__(self, db: Any = None, collection: str = "user_api_keys"):
        self.db = db if db is not None else firestore.client()
        self.collection = collection

    def _doc(self, user_id: str):
        return self.db.collection(self.collection).document(user_id)

    def get_api_key(self, user_id: str) -> Optional[str]:
        try:
            snapshot = self._doc(user_id).get()
            if not snapshot.exists:
                return None
            return snapshot.to_dict().get("api_key")
        except Exception as e:
            logger.error(f"Error fetching API key for user {user_id}: {e}")
            return None

    def save_api_key(self, user_id: str, api_key: str, is_valid: bool = True) -> bool:
        """Store (or replace) the user's key and reset its quota flag."""
        try:
            self._doc(user_id).set({
                "user_id": user_id,
                "api_key": api_key,
                "is_valid": is_valid,
                "quota_exceeded_at": None,
                "updated_at": utc_now(),
            }, merge=True)
            logger.info(f"API key saved for user {user_id}")
            return True
        except Exception as e:
            logger.error(f"Error saving API key for user {user_id}: {e}")
            return False

    def delete_api_key(self, user_id: str) -> bool:
        try:
            self._doc(user_id).delete()
            return True
        except Exception as e:
            logger.error(f"Error deleting API key for user {user_id}: {e}")
            return False

    def mark_quota_exceeded(self, user_id: str) -> bool:
        try:
            self._doc(user_id).set({"quota_exceeded_at": utc_now(), "updated_at": utc_now()}, merge=True)
            logger.warning(f"API key of user {user_id} marked as quota exceeded")
            return True
        except Exception as e:
            logger.error(f"Error marking quota exceeded for user {user_id}: {e}")
            return False

    def is_quota_exceeded(self, user_id: str) -> bool:
        try:
            snapshot = self._doc(user_id).get()
            return bool(snapshot.exists and snapshot.to_dict().get("quota_exceeded_at"))
        except Exception as e:
            logger.error(f"Error checking quota status for user {user_id}: {e}")
            return False
