# tests/conftest.py

from __future__ import annotations

import os

# Settings are read once; pin them before the app is imported.
os.environ.pop("DATABASE_URL", None)
os.environ["SECRET_KEY"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"

import mongomock
import pytest
from fastapi.testclient import TestClient

from backend.main import app
from backend.middleware import SlidingWindowLimiter
from database import ensure_indexes, get_db

from .helpers import bearer, register


@pytest.fixture()
def mongo_db():
    """
    In-memory stand-in for the MongoDB server.

    The stores only use the pymongo collection API, which mongomock
    implements, so they run unchanged against it.
    """
    db = mongomock.MongoClient().taskboard
    ensure_indexes(db)
    return db


@pytest.fixture()
def client(mongo_db):
    app.dependency_overrides[get_db] = lambda: mongo_db
    app.state.rate_limiter = SlidingWindowLimiter(max_requests=10_000)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def ann(client):
    token, user = register(client)
    return {"token": token, "user": user, "headers": bearer(token)}


@pytest.fixture()
def bob(client):
    token, user = register(client, name="Bob", email="bob@y.com", password="xyz789")
    return {"token": token, "user": user, "headers": bearer(token)}
