"""
Remote project storage on Cloud Firestore.

One document per project in the ``projects`` collection, keyed by a
generated id and filtered by ``user_id``.
"""
import base64
import json
import logging
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from ..errors import PersistenceError

logger = logging.getLogger(__name__)


def init_firebase(credentials_base64: Optional[str] = None,
                  credentials_path: str = "serviceAccountKey.json"):
    """
    Initialise the Firebase Admin SDK once per process.

    Credentials come from a base64-encoded service account JSON (production)
    or from a key file on disk (development).
    """
    if firebase_admin._apps:
        return firebase_admin.get_app()

    if credentials_base64:
        cred_dict = json.loads(base64.b64decode(credentials_base64).decode("utf-8"))
        cred = credentials.Certificate(cred_dict)
        logger.info("Firebase credentials loaded from GOOGLE_CREDENTIALS_BASE64")
    else:
        try:
            with open(credentials_path, "r") as f:
                cred = credentials.Certificate(json.load(f))
        except FileNotFoundError:
            logger.error(f"GOOGLE_CREDENTIALS_BASE64 not set and {credentials_path} not found")
            raise
        logger.warning(f"Using {credentials_path} from disk - set GOOGLE_CREDENTIALS_BASE64 for production")

    app = firebase_admin.initialize_app(cred)
    logger.info("Firebase initialized successfully")
    return app


class FirestoreProjectStore:
    """CRUD on the projects collection. Every failure surfaces as PersistenceError."""

    def __init__(self, db: Any = None, collection: str = "projects"):
        self.db = db if db is not None else firestore.client()
        self.collection = collection

    def _ref(self):
        return self.db.collection(self.collection)

    def insert(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a project document; returns the stored row with its id."""
        try:
            doc_ref = self._ref().document()
            doc_ref.set(data)
            return {**data, "id": doc_ref.id}
        except Exception as e:
            raise PersistenceError(f"Insert into {self.collection} failed: {e}") from e

    def update(self, project_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            doc_ref = self._ref().document(project_id)
            snapshot = doc_ref.get()
            if not snapshot.exists or snapshot.to_dict().get("user_id") != user_id:
                raise PersistenceError(f"Project {project_id} not found for update")
            doc_ref.update(data)
            return {**snapshot.to_dict(), **data, "id": project_id}
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"Update of {project_id} failed: {e}") from e

    def get(self, project_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            snapshot = self._ref().document(project_id).get()
        except Exception as e:
            raise PersistenceError(f"Fetch of {project_id} failed: {e}") from e
        if not snapshot.exists:
            return None
        row = snapshot.to_dict()
        if row.get("user_id") != user_id:
            return None
        return {**row, "id": snapshot.id}

    def list_for_user(self, user_id: str) -> List[Dict[str, Any]]:
        try:
            query = self._ref().where(filter=FieldFilter("user_id", "==", user_id))
            return [{**doc.to_dict(), "id": doc.id} for doc in query.stream()]
        except Exception as e:
            raise PersistenceError(f"Listing {self.collection} failed: {e}") from e

    def delete(self, project_id: str, user_id: str):
        try:
            doc_ref = self._ref().document(project_id)
            snapshot = doc_ref.get()
            if snapshot.exists and snapshot.to_dict().get("user_id") == user_id:
                doc_ref.delete()
        except Exception as e:
            raise PersistenceError(f"Delete of {project_id} failed: {e}") from e
