"""
Tests for remote-first persistence with the local fallback.
"""
import pytest

from ebook_kilat.errors import ProjectNotFoundError
from ebook_kilat.models import Chapter, Ebook, ProjectRow
from ebook_kilat.storage import LocalProjectStore, is_local_id, new_local_id
from ebook_kilat.storage import local_store as local_store_module


def _ebook(project_id=None, title="Book"):
    return Ebook(id=project_id, title=title, outline=[Chapter(id="sec-1", title="Intro")])


# --- Local store ---

def test_local_ids():
    project_id = new_local_id()
    assert is_local_id(project_id)
    assert project_id.startswith("local-")
    assert not is_local_id("remote-1")
    assert not is_local_id(None)


def test_local_store_save_get_delete(local_store):
    local_store.save({"id": "local-1", "user_id": "u1", "title": "A"})
    local_store.save({"id": "local-2", "user_id": "u2", "title": "B"})
    local_store.save({"id": "local-1", "user_id": "u1", "title": "A2"})

    assert local_store.get("local-1")["title"] == "A2"
    assert [r["id"] for r in local_store.list_projects("u1")] == ["local-1"]
    assert local_store.delete("local-1")
    assert not local_store.delete("local-1")
    assert local_store.get("local-1") is None


def test_local_store_module_is_documented():
    assert local_store_module.__doc__ and "fallback" in local_store_module.__doc__


def test_local_store_persists_across_instances(tmp_path):
    path = str(tmp_path / "store.db")
    LocalProjectStore(path).save({"id": "local-1", "user_id": "u1"})
    assert LocalProjectStore(path).get("local-1") is not None


# --- Repository ---

def test_create_empty_remote(repository, remote_store):
    row = repository.create_empty("u1")

    assert not is_local_id(row.id)
    assert row.title == "New Project"
    assert row.description == "Draft"
    assert row.status == "draft"
    assert row.id in remote_store.rows


def test_create_empty_falls_back_to_local(repository, remote_store, local_store):
    remote_store.fail = True
    row = repository.create_empty("u1")

    assert is_local_id(row.id)
    assert row.is_local
    assert row.remote_id is None
    assert local_store.get(row.id)["title"] == "New Project"


def test_failed_remote_write_is_retrievable_locally(repository, remote_store):
    """Remote insert throws -> record readable under a local- id."""
    remote_store.fail = True
    row = repository.save("u1", _ebook())

    assert is_local_id(row.id)
    remote_store.fail = False
    assert repository.get(row.id, "u1").title == "Book"


def test_update_of_local_record_never_touches_remote(repository, remote_store):
    remote_store.fail = True
    row = repository.save("u1", _ebook())
    remote_store.fail = False
    remote_store.calls.clear()

    updated = repository.save("u1", _ebook(project_id=row.id, title="Renamed"))

    assert updated.id == row.id
    assert remote_store.calls == []
    assert repository.get(row.id, "u1").title == "Renamed"


def test_failed_update_of_remote_record_creates_shadow(repository, remote_store):
    created = repository.save("u1", _ebook())
    remote_store.fail = True

    shadow = repository.save("u1", _ebook(project_id=created.id, title="Offline edit"))

    assert shadow.id == f"local-{created.id}"
    assert shadow.remote_id == created.id
    # Reading by the remote id prefers the newer shadow copy
    assert repository.get(created.id, "u1").title == "Offline edit"


def test_saves_after_shadow_stay_local(repository, remote_store):
    created = repository.save("u1", _ebook(title="v1"))
    remote_store.fail = True
    repository.save("u1", _ebook(project_id=created.id, title="v2"))
    remote_store.fail = False
    remote_store.calls.clear()

    row = repository.save("u1", _ebook(project_id=created.id, title="v3"))

    assert row.id == f"local-{created.id}"
    assert remote_store.calls == []
    assert repository.get(created.id, "u1").title == "v3"
    assert [r.title for r in repository.list("u1")] == ["v3"]


def test_list_merges_dedupes_and_sorts(repository, remote_store, local_store):
    old = ProjectRow(id="remote-a", user_id="u1", title="Old", updated_at="2026-01-01T00:00:00+00:00")
    mid = ProjectRow(id="remote-b", user_id="u1", title="Shadowed", updated_at="2026-01-02T00:00:00+00:00")
    remote_store.rows = {r.id: r.model_dump() for r in (old, mid)}
    local_store.save(ProjectRow(id="local-x", user_id="u1", title="Local", is_local=True,
                                updated_at="2026-01-03T00:00:00+00:00").model_dump())
    local_store.save(ProjectRow(id="local-remote-b", user_id="u1", title="Shadow", is_local=True,
                                remote_id="remote-b", updated_at="2026-01-04T00:00:00+00:00").model_dump())
    local_store.save(ProjectRow(id="local-other", user_id="u2", title="Other user").model_dump())

    rows = repository.list("u1")

    ids = [r.id for r in rows]
    assert ids == ["local-remote-b", "local-x", "remote-a"]
    assert len(ids) == len(set(ids))


def test_list_survives_remote_failure(repository, remote_store):
    repository.save("u1", _ebook())
    remote_store.fail = True
    repository.save("u1", _ebook(title="Offline"))

    rows = repository.list("u1")
    assert [r.title for r in rows] == ["Offline"]


def test_get_missing_or_foreign_project(repository):
    row = repository.save("u1", _ebook())
    with pytest.raises(ProjectNotFoundError):
        repository.get(row.id, "someone-else")
    with pytest.raises(ProjectNotFoundError):
        repository.get("local-nope", "u1")


def test_delete_removes_remote_and_shadow(repository, remote_store, local_store):
    created = repository.save("u1", _ebook())
    remote_store.fail = True
    repository.save("u1", _ebook(project_id=created.id))
    remote_store.fail = False

    repository.delete(created.id, "u1")

    assert created.id not in remote_store.rows
    assert local_store.get(f"local-{created.id}") is None


def test_delete_leaves_other_users_shadow(repository, remote_store, local_store):
    created = repository.save("alice", _ebook())
    remote_store.fail = True
    repository.save("alice", _ebook(project_id=created.id, title="Offline edit"))
    remote_store.fail = False

    repository.delete(created.id, "mallory")

    assert local_store.get(f"local-{created.id}") is not None
    assert repository.get(created.id, "alice").title == "Offline edit"
    with pytest.raises(ProjectNotFoundError):
        repository.get(created.id, "mallory")


def test_delete_local_record_stays_local(repository, remote_store, local_store):
    remote_store.fail = True
    row = repository.create_empty("u1")
    remote_store.fail = False
    remote_store.calls.clear()

    repository.delete(row.id, "u1")

    assert remote_store.calls == []
    assert local_store.get(row.id) is None


def test_delete_downgrades_remote_failure(repository, remote_store):
    created = repository.save("u1", _ebook())
    remote_store.fail = True
    repository.delete(created.id, "u1")
    assert created.id in remote_store.rows
