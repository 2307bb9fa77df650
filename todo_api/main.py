"""Main FastAPI application for the todo API."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import Any, Dict, Optional
import uuid

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api import todos_router, users_router
from .db import DocumentStore, StoreError, create_store
from .logging_utils import configure_logging, request_context, request_id_var
from .settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Todo API...")
    owns_store = app.state.store is None
    if owns_store:
        app.state.store = create_store(get_settings().database_url)
    if not get_settings().jwt_secret:
        logger.warning("AUTH_JWT_SECRET is not configured; signup and login will fail and every token is rejected")
    try:
        await app.state.store.connect()
    except StoreError:
        logger.exception("Failed to initialize document store")
        raise

    yield

    logger.info("Shutting down Todo API...")
    if owns_store:
        await app.state.store.close()
        app.state.store = None


async def handle_http_exception(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "auth_error", "message": message},
        )
    if exc.status_code == status.HTTP_400_BAD_REQUEST:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "invalid_input", "message": message},
        )
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "not_found", "message": message},
        )
    return await http_exception_handler(request, exc)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    message = "Invalid input"
    errors = exc.errors()
    if errors:
        message = errors[0].get("msg", message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_input", "message": message},
    )


async def handle_store_error(request: Request, exc: StoreError):
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "store_unavailable",
            "message": "The document store is unavailable; retry the request",
            "request_id": request_id_var.get(),
        },
    )


async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    with request_context(request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """Build the application. Without ``store`` one is created from settings at startup."""
    configure_logging(get_settings().log_level)

    app = FastAPI(
        title="Todo API",
        description="A todo list resource collection with token-authenticated users",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.store = store

    app.add_exception_handler(HTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StoreError, handle_store_error)
    app.middleware("http")(request_id_middleware)

    @app.get("/")
    def root() -> Dict[str, Any]:
        """Root endpoint with basic API info."""
        return {
            "message": "Todo API",
            "endpoints": ["/todos", "/users", "/users/login", "/users/me"],
        }

    app.include_router(todos_router)
    app.include_router(users_router)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    logger.info("Starting on 0.0.0.0:%s (ENVIRONMENT=%s)", settings.port, settings.environment or "unset")
    uvicorn.run(
        "todo_api.main:app",
        host="0.0.0.0",
        port=settings.port,
        reload=settings.environment != "production",
        log_level="info",
    )


if __name__ == "__main__":
    main()
