"""Fixtures for chat stores, storage and the API client."""

import pytest
from fastapi.testclient import TestClient

from app.adapters.local_storage import LocalObjectStorage
from app.adapters.sql_document_store import SqlDocumentStore
from app.db import db_manager
from app.main import create_app

MEDIA_BASE_URL = "http://testserver/media"


@pytest.fixture
def local_id():
    return "u1"


@pytest.fixture
def remote_id():
    return "u2"


@pytest.fixture
def chat_id():
    """Session key for u1 and u2."""
    return "u2-u1"


@pytest.fixture
def store(db):
    """SQL document store on the per-test schema."""
    return SqlDocumentStore(db_manager.db_session)


@pytest.fixture
def media_root(tmp_path):
    root = tmp_path / "media"
    root.mkdir()
    return root


@pytest.fixture
def storage(media_root):
    return LocalObjectStorage(media_root, MEDIA_BASE_URL)


@pytest.fixture
def client(store, storage, media_root, monkeypatch):
    """API client sharing the test store and storage."""
    monkeypatch.setenv("MEDIA_ROOT", str(media_root))
    app = create_app(testing=True, document_store=store, object_storage=storage)
    with TestClient(app) as c:
        yield c
