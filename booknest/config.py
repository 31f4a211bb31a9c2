"""
API configuration settings.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_JWT_SECRET = "change-this-secret-in-production"


class BookNestConfig(BaseSettings):
    """
    BookNest configuration settings.

    Values come from environment variables (case-insensitive) or a `.env`
    file. One instance is built at startup and handed to `create_app`.
    """

    # API Settings
    api_title: str = "BookNest API"
    api_version: str = "1.0.0"
    api_description: str = "REST API for managing a book catalog with user authentication"
    api_prefix: str = "/api"
    docs_url: str = "/api-docs"

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 5000
    debug: bool = False

    # Database Settings
    storage_backend: str = Field(default="mongodb", description="mongodb or memory")
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_database: str = "booknest"

    # Security Settings
    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12

    # Request Settings
    max_request_body_bytes: int = 10 * 1024 * 1024

    # CORS Settings
    cors_origins: List[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_file: Optional[str] = None

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v):
        """Ensure the storage backend is supported."""
        valid_backends = ["mongodb", "memory"]
        if v.lower() not in valid_backends:
            raise ValueError(f"storage_backend must be one of: {valid_backends}")
        return v.lower()

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v):
        """Only HMAC algorithms work with a shared secret."""
        valid_algorithms = ["HS256", "HS384", "HS512"]
        if v.upper() not in valid_algorithms:
            raise ValueError(f"jwt_algorithm must be one of: {valid_algorithms}")
        return v.upper()

    @field_validator("jwt_secret")
    @classmethod
    def validate_jwt_secret(cls, v):
        if not v:
            raise ValueError("jwt_secret must not be empty")
        return v

    @field_validator("access_token_expire_minutes", "max_request_body_bytes")
    @classmethod
    def validate_positive(cls, v):
        if v < 1:
            raise ValueError("value must be positive")
        return v

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v):
        """bcrypt accepts a cost factor between 4 and 31."""
        if v < 4 or v > 31:
            raise ValueError("bcrypt_rounds must be between 4 and 31")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Ensure log format is valid."""
        valid_formats = ["json", "console"]
        if v.lower() not in valid_formats:
            raise ValueError(f"log_format must be one of: {valid_formats}")
        return v.lower()

    def uses_default_secret(self) -> bool:
        """Check whether the signing secret was left at its development default."""
        return self.jwt_secret == DEFAULT_JWT_SECRET

    def is_production(self) -> bool:
        """Check if running in production mode."""
        return not self.debug
