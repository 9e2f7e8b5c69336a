"""Liveness, readiness and component health endpoints."""

from fastapi import APIRouter, FastAPI, HTTPException, Request
from starlette import status

from core.database import check_db_connection, comprehensive_health_check
from core.ratelimit import limiter
from schemas import DetailedHealthResponse, HealthResponse, PoolStatusResponse

SERVICE_NAME = "bookstore-api"
HEALTH_PROBE_LIMIT = "30/minute"

router = APIRouter(tags=["health"])

_UNAVAILABLE = {
    503: {
        "description": "Startup incomplete, startup failed, or database unreachable",
        "content": {"application/json": {"example": {"detail": "Database unavailable"}}},
    }
}


def _unavailable(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail)


def _startup_problem(app: FastAPI) -> str | None:
    """Describe why startup is not finished, or None once it has succeeded."""
    init_error = getattr(app.state, "init_error", None)
    if init_error:
        return f"Initialization failed: {init_error}"
    if not getattr(app.state, "init_done", False):
        return "Starting"
    return None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """The process is up. Touches nothing else."""
    return HealthResponse(status="healthy", service=SERVICE_NAME)


@router.get("/health/detailed", response_model=DetailedHealthResponse)
@limiter.limit(HEALTH_PROBE_LIMIT)
async def health_detailed(request: Request) -> DetailedHealthResponse:
    """Per-component report; always 200.

    ``pool`` is null when the engine has no queue pool (SQLite).
    """
    report = await comprehensive_health_check(request.app.state.engine)
    pool = report["pool"]

    return DetailedHealthResponse(
        status="healthy" if report["database"] else "unhealthy",
        service=SERVICE_NAME,
        database=report["database"],
        pool=PoolStatusResponse(**pool._asdict()) if pool is not None else None,
    )


@router.get("/ready", response_model=HealthResponse, responses=_UNAVAILABLE)
@limiter.limit(HEALTH_PROBE_LIMIT)
async def ready(request: Request) -> HealthResponse:
    """200 once startup succeeded and the database answers, 503 otherwise."""
    problem = _startup_problem(request.app)
    if problem:
        raise _unavailable(problem)

    try:
        await check_db_connection(request.app.state.engine)
    except Exception as e:
        raise _unavailable("Database unavailable") from e

    return HealthResponse(status="ready", service=SERVICE_NAME)
