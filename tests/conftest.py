"""
Pytest configuration and fixtures for testing.
"""
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

import database
from main import app


@pytest.fixture(scope="function")
def db(monkeypatch):
    """Fresh in-memory Mongo database for each test."""
    mock_db = AsyncMongoMockClient()["test-courses"]
    monkeypatch.setattr(database, "_db", mock_db)
    return mock_db


@pytest.fixture(scope="function")
def client(db):
    with TestClient(app) as test_client:
        yield test_client


def signup(client, kind, username, password):
    response = client.post(f"/{kind}/signup", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


@pytest.fixture
def admin_headers(client):
    """Headers for the admin 'alice'."""
    return signup(client, "admin", "alice", "pw1")


@pytest.fixture
def user_headers(client):
    """Headers for the user 'bob'."""
    return signup(client, "users", "bob", "pw2")


def create_course(client, headers, **overrides):
    payload = {
        "title": "Go Basics",
        "description": "d",
        "price": 10,
        "imageLink": "http://x",
    }
    payload.update(overrides)
    response = client.post("/admin/courses", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    courses = client.get("/admin/courses", headers=headers).json()["Courses"]
    return next(c for c in courses if c["title"] == payload["title"])


@pytest.fixture
def course(client, admin_headers):
    return create_course(client, admin_headers)
