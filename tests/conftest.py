import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from app import storage
from app.database import connection
from app.main import app


# Use a fresh in-memory database for every test
@pytest.fixture
def mongo(monkeypatch):
    db = AsyncMongoMockClient()["election_test"]
    monkeypatch.setattr(connection, "db", db)
    return db


@pytest.fixture
def news_file(tmp_path, monkeypatch):
    path = tmp_path / "news.json"
    monkeypatch.setattr(storage, "NEWS_DB_PATH", str(path))
    return path


# Starting the client runs init_db, which seeds the three demo candidates
@pytest.fixture
def client(mongo, news_file):
    with TestClient(app) as client:
        yield client
