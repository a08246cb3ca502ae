# =============================================================================
# FastAPI Application — Resume Screener
# =============================================================================
#
# Wires the routers and renders every failure as {"error": "<message>"}:
#
#   ScreenerError subclasses → their own http_status (400/409/500/502)
#   malformed request bodies → 400
#   anything unexpected      → 500 (logged with traceback)
#
# Run locally:
#   uvicorn screener.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from screener.api import ingest, review
from screener.config import settings
from screener.errors import ScreenerError
from screener.logging_config import configure_logging
from screener.models.responses import HealthResponse
from screener.services.container import peek_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    logger.info(
        "Starting %s v%s (index=%s)",
        settings.app_name, settings.app_version, settings.index_path,
    )
    yield


async def screener_error_handler(request: Request, exc: ScreenerError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(
            "%s %s failed with %s: %s",
            request.method, request.url.path, type(exc).__name__, exc.message,
        )
    else:
        logger.warning(
            "%s %s rejected with %s: %s",
            request.method, request.url.path, type(exc).__name__, exc.message,
        )
    return JSONResponse(status_code=exc.http_status, content={"error": exc.message})


async def request_validation_handler(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    logger.warning("%s %s invalid request: %s", request.method, request.url.path, problems)
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("%s %s failed unexpectedly", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error."})


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.add_exception_handler(ScreenerError, screener_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(ingest.router)
    app.include_router(review.router)

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        services = peek_services()
        snapshot = services.vector_store.snapshot if services else None
        return HealthResponse(
            version=settings.app_version,
            service=settings.app_name,
            indexed_chunks=len(snapshot) if snapshot is not None else 0,
            index_dimension=snapshot.dimension if snapshot is not None else None,
        )

    return app


app = create_app()
