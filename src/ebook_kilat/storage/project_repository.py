"""
Project persistence with local fallback.

Every write is tried against the remote store first. When it fails the same
payload is written to local storage under a ``local-`` identifier, and later
operations on that identifier stay local. A remote record that has a local
shadow copy is only written locally from then on. Local-only records are
never synced back to the remote store.
"""
import logging
from typing import Any, Dict, List, Optional

from ..errors import ProjectNotFoundError
from ..models import Ebook, ProjectRow, utc_now
from .local_store import LOCAL_ID_PREFIX, LocalProjectStore, is_local_id, new_local_id

logger = logging.getLogger(__name__)


def shadow_id(remote_id: str) -> str:
    """Local id of the copy kept when an update to a remote record failed."""
    return f"{LOCAL_ID_PREFIX}{remote_id}"


class ProjectRepository:
    """Remote-first project storage for one deployment."""

    def __init__(self, remote: Any, local: LocalProjectStore):
        """
        Args:
            remote: Remote store (FirestoreProjectStore or compatible)
            local: Local fallback store
        """
        self.remote = remote
        self.local = local

    def _store_locally(self, project_id: str, payload: Dict[str, Any],
                       remote_id: Optional[str] = None) -> ProjectRow:
        existing = self.local.get(project_id) or {}
        row = ProjectRow.model_validate({
            "created_at": existing.get("created_at") or payload.get("updated_at") or utc_now(),
            **payload,
            "id": project_id,
            "is_local": True,
            "remote_id": remote_id,
        })
        self.local.save(row.model_dump())
        return row

    def _shadow(self, remote_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        """The user's local shadow copy of a remote record, if one exists."""
        row = self.local.get(shadow_id(remote_id))
        if row and row.get("user_id") == user_id:
            return row
        return None

    def create_empty(self, user_id: str) -> ProjectRow:
        """Create a blank draft project."""
        timestamp = utc_now()
        payload = ProjectRow.payload_from_ebook(
            user_id, Ebook(title="New Project", subtitle="Draft"), status="draft", timestamp=timestamp
        )
        payload["created_at"] = timestamp
        try:
            return ProjectRow.model_validate(self.remote.insert(payload))
        except Exception as e:
            logger.warning(f"Remote create failed, falling back to local storage: {e}")
            return self._store_locally(new_local_id(), payload)

    def save(self, user_id: str, ebook: Ebook) -> ProjectRow:
        """
        Persist an ebook.

        Returns:
            ProjectRow: The stored row. Its id differs from ``ebook.id`` when
                the write fell back to local storage.
        """
        payload = ProjectRow.payload_from_ebook(user_id, ebook)

        if is_local_id(ebook.id):
            existing = self.local.get(ebook.id) or {}
            return self._store_locally(ebook.id, payload, remote_id=existing.get("remote_id"))

        # Once shadowed, a remote record is only written locally
        if ebook.id and self._shadow(ebook.id, user_id):
            return self._store_locally(shadow_id(ebook.id), payload, remote_id=ebook.id)

        try:
            if ebook.id:
                return ProjectRow.model_validate(self.remote.update(ebook.id, user_id, payload))
            payload["created_at"] = payload["updated_at"]
            return ProjectRow.model_validate(self.remote.insert(payload))
        except Exception as e:
            logger.warning(f"Remote save failed, falling back to local storage: {e}")
            if ebook.id:
                return self._store_locally(shadow_id(ebook.id), payload, remote_id=ebook.id)
            return self._store_locally(new_local_id(), payload)

    def get(self, project_id: str, user_id: str) -> ProjectRow:
        """
        Raises:
            ProjectNotFoundError: No such project for this user
        """
        if is_local_id(project_id):
            row = self.local.get(project_id)
        else:
            # A shadow copy is newer than the remote record it shadows
            row = self._shadow(project_id, user_id)
            if row is None:
                try:
                    row = self.remote.get(project_id, user_id)
                except Exception as e:
                    logger.warning(f"Remote fetch of {project_id} failed: {e}")
                    row = None
        if not row or row.get("user_id") != user_id:
            raise ProjectNotFoundError(f"Project {project_id} not found")
        return ProjectRow.model_validate(row)

    def list(self, user_id: str) -> List[ProjectRow]:
        """Remote and local projects, de-duplicated, newest first."""
        try:
            remote_rows = self.remote.list_for_user(user_id)
        except Exception as e:
            logger.warning(f"Remote listing failed, showing local projects only: {e}")
            remote_rows = []

        merged: Dict[str, Dict[str, Any]] = {}
        for row in remote_rows:
            merged[row["id"]] = row
        for row in self.local.list_projects(user_id):
            if row.get("remote_id"):
                merged.pop(row["remote_id"], None)
            merged[row["id"]] = row

        rows = [ProjectRow.model_validate(row) for row in merged.values()]
        rows.sort(key=lambda r: r.updated_at, reverse=True)
        return rows

    def delete(self, project_id: str, user_id: str):
        if is_local_id(project_id):
            row = self.local.get(project_id)
            if row and row.get("user_id") == user_id:
                self.local.delete(project_id)
            return

        try:
            self.remote.delete(project_id, user_id)
        except Exception as e:
            logger.warning(f"Remote delete of {project_id} failed, removing local copy only: {e}")
        if self._shadow(project_id, user_id):
            self.local.delete(shadow_id(project_id))
