"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api import giftcards, users
from src.api.guards import format_validation_errors
from src.config import Settings, get_settings
from src.context import AppContext
from src.database import create_client, get_database, init_db
from src.exceptions import ApiError, InternalError, ValidationFailed

logger = logging.getLogger(__name__)


def envelope_response(error: ApiError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_envelope())


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """Render every failure as an ERR envelope."""

    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        return envelope_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return envelope_response(ValidationFailed(format_validation_errors(exc.errors())))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        message = "endpoint not found" if exc.status_code == 404 else exc.detail
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "ERR", "data": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(PyMongoError)
    async def handle_database_error(request: Request, exc: PyMongoError):
        logger.exception(f"Database error on {request.method} {request.url.path}: {exc}")
        if settings.is_production:
            return envelope_response(InternalError())
        return envelope_response(InternalError(str(exc)))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
        return envelope_response(InternalError())


def create_app(settings: Settings | None = None, db: Database | None = None) -> FastAPI:
    """Build the application around its settings and database.

    When no database is given, a MongoDB client is created from settings and
    closed on shutdown.
    """
    settings = settings or get_settings()
    client = None
    if db is None:
        client = create_client(settings)
        db = get_database(client, settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Handle application startup and shutdown events."""
        init_db(db)
        yield
        if client is not None:
            client.close()

    app = FastAPI(
        title="Gift Shop API",
        description="Gift cards and users with JWT authentication",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.context = AppContext(settings=settings, db=db)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, settings)

    # Register routers
    app.include_router(giftcards.router)
    app.include_router(users.router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "OK", "data": {"status": "healthy", "environment": settings.environment}}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=app.state.context.settings.port)
