"""
Health check endpoints for the clusterlcm server.

Provides /health (liveness) and /ready (readiness) endpoints.
"""

from fastapi import APIRouter, Request, Response, status

from clusterlcm.logging_config import get_logger

router = APIRouter(tags=["health"])
logger = get_logger(__name__)


@router.get("/health", status_code=status.HTTP_200_OK)
async def health() -> dict[str, str]:
    """Liveness probe endpoint.

    Returns 200 if the API server is running.
    """
    return {"status": "healthy"}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def ready(request: Request, response: Response) -> dict[str, str | dict[str, str]]:
    """Readiness probe endpoint.

    Checks that the lifecycle service is built and the record services answer.
    """
    checks: dict[str, str] = {}

    checks["lifecycle"] = (
        "healthy" if getattr(request.app.state, "lifecycle", None) is not None else "unhealthy"
    )
    for name in ("contract_client", "info_client"):
        client = getattr(request.app.state, name, None)
        healthy = client is not None and await client.health()
        checks[name.removesuffix("_client")] = "healthy" if healthy else "unhealthy"

    all_healthy = all(v == "healthy" for v in checks.values())

    if not all_healthy:
        logger.warning("Readiness check failed", checks=checks)
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "not ready", "checks": checks}

    return {"status": "ready", "checks": checks}
