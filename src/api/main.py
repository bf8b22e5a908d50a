"""FastAPI application entry point."""
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routers import auth, bookmarks, health
from core.config import Settings
from core.exceptions import AppError, ErrorKind
from core.rate_limit_config import RateLimitExceededError
from core.redis import RedisClient, RedisOptions
from db.session import create_engine, create_session_factory

logger = logging.getLogger(__name__)


def _error_response(kind: ErrorKind, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=kind.status_code,
        content={"error": kind.message},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map every failure to {"error": message}; internal detail only goes to the log."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        log = logger.error if exc.kind.status_code >= 500 else logger.warning
        log(
            "request_failed",
            extra={
                "kind": exc.kind.name,
                "detail": exc.detail,
                "method": request.method,
                "path": request.url.path,
            },
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.kind == ErrorKind.UNAUTHORIZED else None
        return _error_response(exc.kind, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ) -> JSONResponse:
        logger.warning(
            "request_invalid",
            extra={"errors": exc.errors(), "path": request.url.path},
        )
        return _error_response(ErrorKind.INVALID_REQUEST)

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_handler(
        request: Request,  # noqa: ARG001
        exc: RateLimitExceededError,
    ) -> JSONResponse:
        result = exc.result
        return JSONResponse(
            status_code=429,
            content={"error": "Rate limit exceeded"},
            headers={
                "Retry-After": str(result.retry_after),
                "X-RateLimit-Limit": str(result.limit),
                "X-RateLimit-Remaining": str(result.remaining),
                "X-RateLimit-Reset": str(result.reset),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(
        request: Request,  # noqa: ARG001
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "request_crashed",
            exc_info=exc,
            extra={"method": request.method, "path": request.url.path},
        )
        return _error_response(ErrorKind.INTERNAL)


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Settings, the database engine and the Redis client are created here once and
    kept on app.state; dependencies read them from there. Redis connects during
    lifespan startup and is optional: until it connects, rate limiting fails open.
    """
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level.upper())

    engine = create_engine(settings)
    redis_client = RedisClient(
        RedisOptions.from_settings(settings),
        enabled=settings.redis_enabled,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:  # noqa: ARG001
        await redis_client.connect()
        yield
        await redis_client.close()
        await engine.dispose()

    app = FastAPI(
        title="Bookmarks API",
        description="Email/password accounts and browser bookmark storage with HTML import.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.redis_client = redis_client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.middleware("http")
    async def rate_limit_headers(request: Request, call_next) -> Response:  # noqa: ANN001
        """Copy the rate limit check's numbers onto successful responses."""
        response = await call_next(request)
        info = getattr(request.state, "rate_limit_info", None)
        if info:
            response.headers["X-RateLimit-Limit"] = str(info["limit"])
            response.headers["X-RateLimit-Remaining"] = str(info["remaining"])
            response.headers["X-RateLimit-Reset"] = str(info["reset"])
        return response

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(bookmarks.router)

    return app
