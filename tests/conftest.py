import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from catalog import Catalog
from database import get_db
from main import app


@pytest.fixture
def db():
    return mongomock.MongoClient()["cinema-catalog-test"]


@pytest.fixture
def catalog(db):
    return Catalog(db)


@pytest.fixture
def client(db, monkeypatch):
    # keep the startup hook away from any configured server
    monkeypatch.setattr(database, "db", None)
    app.dependency_overrides[get_db] = lambda: db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
