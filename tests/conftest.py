"""
Pytest configuration and shared fixtures.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from booknest.config import BookNestConfig
from booknest.main import create_app
from booknest.memory_store import InMemoryDocumentStore

TEST_SECRET = "test-secret-key-for-booknest"


def make_config(**overrides) -> BookNestConfig:
    """Build a config that ignores .env files and hashes cheaply."""
    settings = {
        "storage_backend": "memory",
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "log_level": "WARNING",
        "log_format": "console",
    }
    settings.update(overrides)
    return BookNestConfig(_env_file=None, **settings)


@pytest.fixture
def test_secret():
    return TEST_SECRET


@pytest.fixture
def config_factory():
    """Build extra configs, e.g. for a second app with another secret."""
    return make_config


@pytest.fixture
def test_config():
    """Configuration for an isolated test app."""
    return make_config()


@pytest.fixture
def memory_store():
    """Fresh in-memory document store."""
    return InMemoryDocumentStore()


@pytest.fixture
def app(test_config, memory_store):
    """Application wired to the in-memory store."""
    return create_app(test_config, store=memory_store)


@pytest.fixture
def client(app):
    """Create test client with lifespan events."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signup_payload():
    return {"name": "Ann", "email": "ann@x.com", "password": "secret1"}


@pytest.fixture
def book_payload():
    """Complete book payload without the optional description."""
    return {
        "title": "The Great Gatsby",
        "author": "F. Scott Fitzgerald",
        "isbn": "123-4567890123",
        "genre": "Fiction",
        "publishedYear": 1925,
        "pages": 180,
        "price": 10.99,
    }


@pytest.fixture
def registered_user(client, signup_payload):
    """Sign up the sample user and return the response body."""
    response = client.post("/api/auth/signup", json=signup_payload)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def auth_token(client, registered_user, signup_payload):
    response = client.post(
        "/api/auth/login",
        json={"email": signup_payload["email"], "password": signup_payload["password"]},
    )
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}


@pytest.fixture
def mock_database():
    """Mock motor database whose collections are addressable by name."""
    collections = {}
    for name in ("users", "books"):
        collection = MagicMock()
        collection.find_one = AsyncMock(return_value=None)
        collection.insert_one = AsyncMock()
        collection.find_one_and_update = AsyncMock(return_value=None)
        collection.find_one_and_delete = AsyncMock(return_value=None)
        collection.create_index = AsyncMock()
        collections[name] = collection

    database = MagicMock()
    database.__getitem__.side_effect = lambda name: collections[name]
    database.command = AsyncMock(return_value={"ok": 1.0})
    database.collections = collections
    return database
