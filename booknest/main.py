"""
FastAPI application factory for the BookNest API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from booknest.config import BookNestConfig
from booknest.database import DocumentStore, MongoDocumentStore
from booknest.errors import BookNestError
from booknest.logger import get_logger, setup_logging
from booknest.memory_store import InMemoryDocumentStore
from booknest.middleware import BodyLimitMiddleware, RequestLoggingMiddleware, SecurityHeadersMiddleware
from booknest.models import HealthResponse
from booknest.routes import auth_router, books_router
from booknest.security import TokenService
from booknest.services import AuthService, BookService
from booknest.validation import first_error_message

logger = get_logger(__name__)

API_DESCRIPTION = """
REST API for a book catalog.

## Authentication

Sign up, then log in to receive a bearer token. Every `/books` endpoint
requires it in the Authorization header:

```
Authorization: Bearer your_token_here
```

Tokens expire one hour after login.
"""


def build_store(config: BookNestConfig) -> DocumentStore:
    """Create the document store selected by `storage_backend`."""
    if config.storage_backend == "memory":
        return InMemoryDocumentStore()
    return MongoDocumentStore(config.mongodb_uri, config.mongodb_database)


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message}, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure onto a `{"message": ...}` body."""

    @app.exception_handler(BookNestError)
    async def booknest_error_handler(request: Request, exc: BookNestError):
        log = logger.warning if exc.is_client_error else logger.error
        log(
            "Request failed",
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
            error=exc.message,
            error_type=type(exc).__name__,
            reason=getattr(exc, "reason", None),
        )
        headers = None
        if exc.status_code == status.HTTP_401_UNAUTHORIZED:
            headers = {"WWW-Authenticate": "Bearer"}
        return error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = first_error_message(exc.errors())
        logger.warning("Request rejected", method=request.method, path=request.url.path, error=message)
        return error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # A known path with an unsupported method is treated as an unmatched route.
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            logger.warning("Route not found", method=request.method, path=request.url.path)
            return error_response(status.HTTP_404_NOT_FOUND, "Route not found")
        logger.warning("HTTP error", method=request.method, path=request.url.path, status_code=exc.status_code)
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            method=request.method,
            path=request.url.path,
            error=str(exc),
            exc_info=exc,
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Something went wrong!")


def create_app(config: Optional[BookNestConfig] = None, store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Build the BookNest application.

    Args:
        config: Settings; read from the environment when omitted
        store: Document store; built from `config.storage_backend` when omitted

    Returns:
        Configured FastAPI application
    """
    config = config or BookNestConfig()
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.log_file,
        debug=config.debug,
    )
    if store is None:
        store = build_store(config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting BookNest API", storage_backend=store.backend)
        if config.uses_default_secret() and config.is_production():
            logger.warning("JWT secret is the development default, set JWT_SECRET")

        try:
            await store.connect()
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

        yield

        logger.info("Shutting down BookNest API")
        await store.close()

    app = FastAPI(
        title=config.api_title,
        description=API_DESCRIPTION,
        summary=config.api_description,
        version=config.api_version,
        docs_url=config.docs_url,
        redoc_url=None,
        openapi_url=f"{config.docs_url}/openapi.json",
        lifespan=lifespan,
    )

    token_service = TokenService(
        secret=config.jwt_secret,
        algorithm=config.jwt_algorithm,
        expire_minutes=config.access_token_expire_minutes,
    )
    app.state.config = config
    app.state.store = store
    app.state.token_service = token_service
    app.state.auth_service = AuthService(store, token_service, bcrypt_rounds=config.bcrypt_rounds)
    app.state.book_service = BookService(store)

    # Last added runs first: the body cap sits outside everything else.
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=config.cors_allow_credentials,
        allow_methods=config.cors_allow_methods,
        allow_headers=config.cors_allow_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(BodyLimitMiddleware, max_bytes=config.max_request_body_bytes)

    register_exception_handlers(app)

    app.include_router(auth_router, prefix=config.api_prefix)
    app.include_router(books_router, prefix=config.api_prefix)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint."""
        health_info = await request.app.state.store.health_check()
        return HealthResponse(
            message="BookNest API is running!",
            timestamp=datetime.now(timezone.utc),
            database_status=health_info.get("status", "unknown"),
        )

    return app
