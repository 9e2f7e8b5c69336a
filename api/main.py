"""FastAPI application for the Bookstore API."""

import asyncio
from contextlib import asynccontextmanager

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core.config import get_settings
from core.database import (
    create_engine,
    create_session_maker,
    create_tables,
    dispose_engine,
    init_db,
)
from core.logger import configure_logging, get_logger
from core.ratelimit import limiter, rate_limit_exceeded_handler
from core.telemetry import RequestTimingMiddleware
from routes import authors_router, books_router, health_router, publishers_router
from schemas import ErrorResponse, FieldError
from services.entity_handler import INTERNAL_ERROR_MESSAGE

configure_logging()
logger = get_logger(__name__)

STARTUP_TIMEOUT_SECONDS = 60


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        exc_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": INTERNAL_ERROR_MESSAGE},
    )


async def validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Report path/query validation failures as 400 with field errors."""
    if not isinstance(exc, RequestValidationError):
        return JSONResponse(status_code=500, content={"detail": INTERNAL_ERROR_MESSAGE})

    errors = [
        FieldError(
            field=".".join(str(part) for part in err["loc"]),
            message=err["msg"],
        )
        for err in exc.errors()
    ]
    logger.warning(
        "request.validation_error",
        path=request.url.path,
        method=request.method,
        error_count=len(errors),
    )
    body = ErrorResponse(detail="Request validation failed.", errors=errors)
    return JSONResponse(status_code=400, content=body.model_dump())


async def _prepare_database(app: fastapi.FastAPI) -> None:
    """Verify connectivity, and build the schema in place for SQLite files.

    PostgreSQL schemas are owned by Alembic (``bookstore migrate``).
    """
    await init_db(app.state.engine)
    if get_settings().is_sqlite:
        await create_tables(app.state.engine)


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.init_done = False
    app.state.init_error = None

    try:
        async with asyncio.timeout(STARTUP_TIMEOUT_SECONDS):
            await _prepare_database(app)
    except TimeoutError:
        logger.error("init.timeout", timeout_s=STARTUP_TIMEOUT_SECONDS)
        raise RuntimeError("Application startup timed out")
    except Exception as e:
        app.state.init_error = str(e)
        logger.error("init.failed", error=str(e), exc_info=True)
        raise

    app.state.init_done = True
    logger.info("init.complete")

    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


def _docs_path(path: str) -> str | None:
    return path if get_settings().docs_enabled else None


app = fastapi.FastAPI(
    title="Bookstore API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url=_docs_path("/docs"),
    redoc_url=_docs_path("/redoc"),
    openapi_url=_docs_path("/openapi.json"),
)

app.state.limiter = limiter
for exc_class, handler in (
    (RateLimitExceeded, rate_limit_exceeded_handler),
    (RequestValidationError, validation_exception_handler),
    (Exception, global_exception_handler),
):
    app.add_exception_handler(exc_class, handler)

if origins := get_settings().allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
        expose_headers=["Location", "X-Request-Duration-Ms", "X-Request-Id"],
        max_age=600,
    )

# Added last so it wraps CORS and every router
app.add_middleware(RequestTimingMiddleware)

for router in (health_router, authors_router, publishers_router, books_router):
    app.include_router(router)
