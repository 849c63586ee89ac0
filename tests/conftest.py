"""
Shared fixtures: in-memory SQLite database, a TestClient and registered users.

The environment is set before the application is imported so that
config.settings picks up the test database and media directory.
"""
import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["MEDIA_DIR"] = tempfile.mkdtemp(prefix="feed-media-")

import pytest
from fastapi.testclient import TestClient

from database import Base, SessionLocal, engine
from main import app


@pytest.fixture(autouse=True)
def _tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def register(client, username, email=None, password="secret123"):
    """Register and log in a user. Returns (user dict, auth headers)."""
    email = email or f"{username}@example.com"
    resp = client.post("/api/auth/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return body["user"], {"Authorization": f"Bearer {body['access_token']}"}


@pytest.fixture
def alice(client):
    return register(client, "alice")


@pytest.fixture
def bob(client):
    return register(client, "bob")


def create_post(client, headers, content=None, image=None):
    payload = {}
    if content is not None:
        payload["content"] = content
    if image is not None:
        payload["image"] = image
    resp = client.post("/api/posts", json=payload, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["post"]
