"""FastAPI application factory."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from opsdash import __version__
from opsdash.api.registry import ServiceRegistry
from opsdash.api.routers import azure, cost, health, jira
from opsdash.config.settings import Settings
from opsdash.core.cache import ResponseCache
from opsdash.core.exceptions import ConfigurationException, DashboardException, UpstreamFetchException

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Operations dashboard API starting", environment=app.state.settings.environment.value)
    yield
    await app.state.registry.close()
    logger.info("Operations dashboard API stopped")


async def configuration_error_handler(request: Request, exc: ConfigurationException):
    logger.error("Missing configuration", path=request.url.path, variable=exc.variable)
    return JSONResponse(status_code=500, content={"error": "Configuration missing", "details": exc.message})


async def upstream_error_handler(request: Request, exc: UpstreamFetchException):
    status_code = exc.status_code if exc.status_code and exc.status_code >= 400 else 500
    logger.error("Upstream fetch failed", path=request.url.path, source=exc.source, status_code=status_code)
    return JSONResponse(
        status_code=status_code,
        content={"error": f"Failed to fetch {exc.source}", "details": exc.message},
    )


async def dashboard_error_handler(request: Request, exc: DashboardException):
    logger.error("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=500, content={"error": exc.message, "details": exc.details})


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error", path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error", "details": str(exc)})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API with its cache and service registry on ``app.state``."""
    settings = settings or Settings.create_from_env()

    app = FastAPI(
        title="Operations Dashboard API",
        description="Cached cost, security, pipeline and task views over Azure, Azure DevOps and Jira",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = ResponseCache()
    app.state.registry = ServiceRegistry(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def request_logging(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
        return response

    app.add_exception_handler(ConfigurationException, configuration_error_handler)
    app.add_exception_handler(UpstreamFetchException, upstream_error_handler)
    app.add_exception_handler(DashboardException, dashboard_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(cost.router)
    app.include_router(azure.router)
    app.include_router(jira.router)
    app.include_router(health.router)

    return app
