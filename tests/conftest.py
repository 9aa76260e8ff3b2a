"""Shared fixtures: an app wired to an in-memory MongoDB (mongomock)."""

import os

# config.py fails fast without these, so they must exist before any app import
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/learningweb_test")
os.environ.setdefault("JWT_SECRET", "test-secret")

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
from database import MongoConnector
from main import create_app


def mongomock_factory(uri, tz_aware=False, **kwargs):
    return mongomock.MongoClient(uri, tz_aware=tz_aware)


@pytest.fixture
def connector():
    conn = MongoConnector(config.MONGODB_URI, config.MONGODB_DB, client_factory=mongomock_factory)
    yield conn
    conn.close()


@pytest.fixture
def db(connector):
    return connector.connect()


@pytest.fixture
def app(connector):
    return create_app(connector)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Register a user and return the response body's data."""

    def _register(name="Ada Lovelace", email="ada@example.com", password="correct-horse"):
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _register
