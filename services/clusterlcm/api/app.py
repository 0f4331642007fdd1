"""
FastAPI application factory for the clusterlcm server.

Uses lifespan handler for startup/shutdown: the region table is loaded and
validated, the upstream clients are built once and handed to the
LifecycleService, which the routers receive through a dependency.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from clusterlcm import __version__
from clusterlcm.clients.contract import ContractClient
from clusterlcm.clients.info import InfoClient
from clusterlcm.clients.protocol import Upstreams
from clusterlcm.clients.workflow import WorkflowClient
from clusterlcm.config import load_region_table, settings, validate_startup_config
from clusterlcm.logging_config import configure_logging, get_logger
from clusterlcm.models import ResultCode, SimpleResponse
from clusterlcm.services.lifecycle import LifecycleService

from .dependencies import HTTP_STATUS_BY_CODE
from .health import router as health_router

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    # Startup
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)
    logger.info("Starting clusterlcm server", version=__version__)

    regions = load_region_table(settings.regions_file)
    validate_startup_config(settings, regions)
    logger.info("Region table loaded", regions=len(regions.max_az))

    timeout = settings.upstream_timeout_seconds
    contract_client = ContractClient(settings.contract.url, timeout=timeout)
    info_client = InfoClient(settings.info.url, timeout=timeout)
    workflow_client = WorkflowClient(
        host=settings.argo.host,
        port=settings.argo.port,
        ssl=settings.argo.ssl,
        token=settings.argo.token,
        timeout=timeout,
    )
    logger.info(
        "Upstream clients initialized",
        contract=settings.contract.url,
        info=settings.info.url,
        argo=workflow_client.base_url,
        git_account=settings.git.account,
        revision=settings.git.revision,
    )

    app.state.contract_client = contract_client
    app.state.info_client = info_client
    app.state.workflow_client = workflow_client
    app.state.lifecycle = LifecycleService(
        settings,
        regions,
        Upstreams(contract=contract_client, info=info_client, workflow=workflow_client),
    )

    yield

    # Shutdown
    logger.info("Shutting down clusterlcm server")
    await workflow_client.close()
    await info_client.close()
    await contract_client.close()


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="clusterlcm API",
        description="Cluster and app group lifecycle orchestrator",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    # Request ID middleware
    @app.middleware("http")
    async def add_request_id(request: Request, call_next):  # type: ignore[no-untyped-def]
        """Ensure every request has a request ID for logging correlation."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        structlog.contextvars.bind_contextvars(request_id=request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        structlog.contextvars.unbind_contextvars("request_id")

        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed bodies get the same structured reply as failed validation."""
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        body = SimpleResponse.failure(ResultCode.INVALID_ARGUMENT, errors)
        return JSONResponse(
            status_code=HTTP_STATUS_BY_CODE[ResultCode.INVALID_ARGUMENT],
            content=body.model_dump(by_alias=True, mode="json"),
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled errors."""
        logger.error("Unhandled exception", exc_info=exc, path=str(request.url.path))
        body = SimpleResponse.failure(ResultCode.INTERNAL, "Internal server error")
        return JSONResponse(
            status_code=HTTP_STATUS_BY_CODE[ResultCode.INTERNAL],
            content=body.model_dump(by_alias=True, mode="json"),
        )

    # Health endpoints (no prefix)
    app.include_router(health_router)

    from clusterlcm.api.routers.clusters import router as clusters_router

    app.include_router(clusters_router, prefix=settings.api_prefix)

    from clusterlcm.api.routers.app_groups import router as app_groups_router

    app.include_router(app_groups_router, prefix=settings.api_prefix)

    return app


# Application instance
app = create_application()
