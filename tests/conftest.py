"""
Shared fixtures and in-memory fakes for the test suite.
No test touches the network, Firebase or the real Gemini API.
"""
import copy
import itertools
import os
import sys

import pytest

# Add the src directory to the path
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from ebook_kilat.config import Settings
from ebook_kilat.errors import PersistenceError
from ebook_kilat.generation.outline import ParsedOutline
from ebook_kilat.models import Chapter, ChapterStatus, SectionType
from ebook_kilat.storage import LocalProjectStore, ProjectRepository


# --- Remote project store ---

class FakeRemoteStore:
    """Dict-backed stand-in for FirestoreProjectStore with a failure switch."""

    def __init__(self):
        self.rows = {}
        self.fail = False
        self.calls = []
        self._ids = itertools.count(1)

    def _check(self, op):
        self.calls.append(op)
        if self.fail:
            raise PersistenceError(f"remote {op} failed")

    def insert(self, data):
        self._check("insert")
        project_id = f"remote-{next(self._ids)}"
        self.rows[project_id] = {**copy.deepcopy(data), "id": project_id}
        return copy.deepcopy(self.rows[project_id])

    def update(self, project_id, user_id, data):
        self._check("update")
        row = self.rows.get(project_id)
        if not row or row["user_id"] != user_id:
            raise PersistenceError(f"Project {project_id} not found for update")
        row.update(copy.deepcopy(data))
        return copy.deepcopy(row)

    def get(self, project_id, user_id):
        self._check("get")
        row = self.rows.get(project_id)
        if not row or row["user_id"] != user_id:
            return None
        return copy.deepcopy(row)

    def list_for_user(self, user_id):
        self._check("list")
        return [copy.deepcopy(r) for r in self.rows.values() if r["user_id"] == user_id]

    def delete(self, project_id, user_id):
        self._check("delete")
        row = self.rows.get(project_id)
        if row and row["user_id"] == user_id:
            del self.rows[project_id]


# --- Firestore documents (API key store) ---

class FakeSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data

    @property
    def exists(self):
        return self._data is not None

    def to_dict(self):
        return copy.deepcopy(self._data)


class FakeDocument:
    def __init__(self, store, doc_id):
        self.store = store
        self.id = doc_id

    def get(self):
        return FakeSnapshot(self.id, self.store.get(self.id))

    def set(self, data, merge=False):
        if merge and self.id in self.store:
            self.store[self.id].update(copy.deepcopy(data))
        else:
            self.store[self.id] = copy.deepcopy(data)

    def update(self, data):
        if self.id not in self.store:
            raise KeyError(self.id)
        self.store[self.id].update(copy.deepcopy(data))

    def delete(self):
        self.store.pop(self.id, None)


class FakeCollection:
    def __init__(self, store):
        self.store = store
        self._ids = itertools.count(1)

    def document(self, doc_id=None):
        return FakeDocument(self.store, doc_id or f"doc-{next(self._ids)}")

    def where(self, filter):
        return FakeQuery(self, filter)


class FakeQuery:
    """Equality-only query over a fake collection."""

    def __init__(self, collection, field_filter):
        self.collection = collection
        self.field_filter = field_filter

    def stream(self):
        for doc_id, data in list(self.collection.store.items()):
            if data.get(self.field_filter.field_path) == self.field_filter.value:
                yield FakeSnapshot(doc_id, data)


class FakeFirestore:
    """Minimal document database: collection(name).document(id).get/set/delete."""

    def __init__(self):
        self.collections = {}

    def collection(self, name):
        if name not in self.collections:
            self.collections[name] = FakeCollection({})
        return self.collections[name]


class BrokenFirestore:
    def collection(self, name):
        raise RuntimeError("firestore unavailable")


class FakeApiKeyStore:
    """Stand-in for ApiKeyStore used by the web tests."""

    def __init__(self, keys=None):
        self.keys = dict(keys or {})
        self.quota_marked = set()

    def get_api_key(self, user_id):
        return self.keys.get(user_id)

    def save_api_key(self, user_id, api_key, is_valid=True):
        self.keys[user_id] = api_key
        self.quota_marked.discard(user_id)
        return True

    def delete_api_key(self, user_id):
        self.keys.pop(user_id, None)
        return True

    def mark_quota_exceeded(self, user_id):
        self.quota_marked.add(user_id)
        return True

    def is_quota_exceeded(self, user_id):
        return user_id in self.quota_marked


# --- Generation ---

def make_outline(title="Urban Farming", subtitle="Grow food anywhere"):
    chapters = [
        Chapter(id="sec-1", title="Title Page", section_type=SectionType.FRONT, subpoints=["Title"]),
        Chapter(id="sec-2", title="Table of Contents", section_type=SectionType.FRONT),
        Chapter(id="sec-3", title="Chapter 1: Soil", subpoints=["Compost", "Drainage"]),
        Chapter(id="sec-4", title="Conclusion", section_type=SectionType.BACK, subpoints=["Summary"]),
    ]
    return ParsedOutline(title=title, subtitle=subtitle, chapters=chapters)


class FakeGenerationClient:
    """Records calls and returns canned text, or raises a queued error."""

    def __init__(self, outline=None, chapter_text="## Body\n\nSome text.\n\n> **[IMAGE PROMPT]:** A green field"):
        self.outline = outline or make_outline()
        self.chapter_text = chapter_text
        self.error = None
        self.outline_calls = []
        self.chapter_calls = []
        self.image_calls = []

    def generate_outline(self, config):
        self.outline_calls.append(config)
        if self.error:
            raise self.error
        return self.outline

    def generate_chapter_content(self, chapter, ebook_title, prev_context, language):
        self.chapter_calls.append((chapter.id, ebook_title, prev_context, language))
        if self.error:
            raise self.error
        return self.chapter_text

    def generate_illustration(self, prompt, api_key):
        self.image_calls.append((prompt, api_key))
        if self.error:
            raise self.error
        return "data:image/png;base64,AAAA"


# --- HTTP ---

class FakeResponse:
    def __init__(self, status_code=200, json_data=None, text="", reason="OK"):
        self.status_code = status_code
        self._json = json_data
        self.text = text
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeSession:
    """requests.Session stand-in returning queued responses (or raising queued errors)."""

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.requests = []
        self.headers = {}

    def _next(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, **kwargs):
        return self._next("POST", url, **kwargs)

    def get(self, url, **kwargs):
        return self._next("GET", url, **kwargs)

    def options(self, url, **kwargs):
        return self._next("OPTIONS", url, **kwargs)


# --- Fixtures ---

@pytest.fixture
def settings(tmp_path):
    return Settings(
        gemini_api_key="server-key",
        toc_delay_seconds=0,
        retry_base_delay=0,
        local_store_path=str(tmp_path / "local.db"),
        secret_key="test-secret",
    )


@pytest.fixture
def local_store(tmp_path):
    return LocalProjectStore(str(tmp_path / "local.db"))


@pytest.fixture
def remote_store():
    return FakeRemoteStore()


@pytest.fixture
def repository(remote_store, local_store):
    return ProjectRepository(remote_store, local_store)


@pytest.fixture
def generation_client():
    return FakeGenerationClient()


@pytest.fixture
def pending_chapter():
    return Chapter(id="a", title="Chapter 1: Soil", subpoints=["Compost"], status=ChapterStatus.PENDING)
