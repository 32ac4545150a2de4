"""FastAPI application serving the Hedera workflow node."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from hedera_node import __version__
from hedera_node.api.routes import nodes_router
from hedera_node.config import Settings, get_settings
from hedera_node.log_config import configure_logging

logger = structlog.get_logger()


def create_app(settings: Settings) -> FastAPI:
    """Build the application for ``settings``.

    API docs are only published in debug mode.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "application_starting",
            host=settings.host,
            port=settings.port,
            debug=settings.debug,
            gateway_url=settings.gateway_url,
            network=settings.network,
            receipt_timeout=settings.receipt_timeout,
            operator_key=settings.get_masked_key("operator_private_key"),
        )
        yield
        logger.info("application_shutting_down")

    app = FastAPI(
        title="Hedera Workflow Node",
        description="Account and transaction operations on the Hedera network for workflow batches",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )
    app.include_router(nodes_router, prefix="/api/v1/nodes", tags=["nodes"])

    @app.exception_handler(Exception)
    async def unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "unhandled_exception",
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": str(exc) if settings.debug else "An internal error occurred",
                "errorKind": "InternalError",
            },
        )

    @app.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "healthy", "version": __version__}

    return app


settings = get_settings()
configure_logging(settings)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "hedera_node.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
