"""
Health check endpoints for monitoring and diagnostics.
"""

import time
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from pagelens import __version__
from ..models.common import HealthStatus
from ..dependencies.engines import get_model_manager
from pagelens.models.manager import ModelManager

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

@router.get("/", response_model=HealthStatus)
async def health_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Basic health check endpoint.

    Reports configured providers and whether their credentials are present.
    No upstream calls are made.
    """
    credentials = model_manager.check_credentials()

    dependencies = {}
    for name in model_manager.provider_names():
        dependencies[name] = "configured" if credentials.ok else f"missing credentials ({credentials.reason})"

    return HealthStatus(
        status="healthy" if credentials.ok else "degraded",
        version=__version__,
        uptime=time.time() - _server_start_time,
        dependencies=dependencies,
        stats=model_manager.get_stats(),
    )

@router.get("/ready")
async def readiness_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Readiness probe for container deployments.

    Returns 200 only when the service is ready to handle requests.
    """
    credentials = model_manager.check_credentials()
    if not credentials.ok:
        return JSONResponse(status_code=503, content={"ready": False, "reason": credentials.reason})

    return {"ready": True, "message": "Service ready to handle requests"}
