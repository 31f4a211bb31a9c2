"""
Tests for environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from booknest.config import DEFAULT_JWT_SECRET, BookNestConfig
from booknest.database import MongoDocumentStore
from booknest.main import build_store
from booknest.memory_store import InMemoryDocumentStore


class TestBookNestConfig:

    def test_defaults(self):
        config = BookNestConfig(_env_file=None)

        assert config.api_prefix == "/api"
        assert config.docs_url == "/api-docs"
        assert config.port == 5000
        assert config.access_token_expire_minutes == 60
        assert config.max_request_body_bytes == 10 * 1024 * 1024
        assert config.uses_default_secret()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("JWT_SECRET", "from-env")
        monkeypatch.setenv("STORAGE_BACKEND", "MEMORY")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        config = BookNestConfig(_env_file=None)

        assert config.jwt_secret == "from-env"
        assert config.storage_backend == "memory"
        assert config.log_level == "DEBUG"
        assert not config.uses_default_secret()

    @pytest.mark.parametrize(
        "field, value",
        [
            ("storage_backend", "postgres"),
            ("jwt_algorithm", "RS256"),
            ("jwt_secret", ""),
            ("access_token_expire_minutes", 0),
            ("bcrypt_rounds", 3),
            ("log_level", "LOUD"),
            ("log_format", "xml"),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            BookNestConfig(_env_file=None, **{field: value})

    def test_default_secret_constant(self, test_config):
        assert DEFAULT_JWT_SECRET != test_config.jwt_secret


def test_build_store_follows_backend(config_factory):
    assert isinstance(build_store(config_factory(storage_backend="memory")), InMemoryDocumentStore)

    store = build_store(config_factory(storage_backend="mongodb", mongodb_database="catalog"))
    assert isinstance(store, MongoDocumentStore)
    assert store.database_name == "catalog"
    assert store.database is None
