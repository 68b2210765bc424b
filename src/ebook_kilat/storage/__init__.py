"""
Persistence: remote Firestore storage with a local SQLite fallback, and the
per-user API key store.
"""
from .local_store import LOCAL_PROJECTS_KEY, LocalProjectStore, is_local_id, new_local_id
from .project_repository import ProjectRepository, shadow_id

__all__ = [
    "LOCAL_PROJECTS_KEY", "LocalProjectStore", "is_local_id", "new_local_id",
    "ProjectRepository", "shadow_id",
]
