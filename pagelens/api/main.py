"""
FastAPI application entry point.

Wires the analysis router and health checks to the pipeline built at startup.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pagelens import __version__
from .models.common import APIValidationIssue, ErrorResponse
from .routers import analysis, health
from pagelens.models.manager import ModelManager, load_config, resolve_config_path
from pagelens.pipeline.analysis import AnalysisPipeline

logger = logging.getLogger(__name__)

# Global application state
app_state = {}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Builds the ModelManager and pipeline once, and refuses to start serving
    when an upstream credential is missing.
    """
    load_dotenv()
    model_manager = ModelManager(config_path=app.state.config_path)
    configure_logging(model_manager.section("server").get("log_level", "INFO"))

    startup = model_manager.check_credentials()
    if not startup.ok:
        logger.error(f"Startup validation failed: {startup.reason}")
        raise RuntimeError(f"Startup validation failed: {startup.reason}")

    app_state["model_manager"] = model_manager
    app_state["pipeline"] = AnalysisPipeline.from_manager(model_manager)
    logger.info("PageLens API ready to accept requests")

    yield  # Server runs here

    logger.info("Shutting down PageLens API")
    await model_manager.aclose()
    app_state.clear()


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON never reaches a route; answer in the same shape as a schema failure."""
    issues = [
        APIValidationIssue(loc=list(err.get("loc", ())), msg=err.get("msg", ""), type=err.get("type", "value_error"))
        for err in exc.errors()
    ]
    body = ErrorResponse(message="Invalid input", validation_issues=issues)
    return JSONResponse(status_code=400, content=body.model_dump(by_alias=True, exclude_none=True))


def create_app(config_path: Optional[str] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    Only the server block of the config is read here; providers are built in
    the lifespan so creating an app never needs credentials.
    """
    server_cfg = load_config(resolve_config_path(config_path)).get("server") or {}

    app = FastAPI(
        title="PageLens API",
        description="Per-page OCR and vision analysis of remote PDFs and images",
        version=__version__,
        lifespan=lifespan
    )
    app.state.config_path = config_path

    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_cfg.get("cors_origins") or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(analysis.router, tags=["analysis"])

    @app.get("/")
    async def root():
        """Root endpoint with basic API information."""
        return {
            "name": "PageLens API",
            "version": __version__,
            "status": "operational",
            "endpoints": {
                "extract": "/extract",
                "extract_enriched": "/extract-enriched",
                "describe_image": "/describe-image",
                "health": "/health",
                "docs": "/docs",
            }
        }

    return app

# Create the FastAPI app instance
app = create_app()
