"""Health and readiness endpoints for load balancers."""
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

router = APIRouter(tags=["system"])


class HealthStatus(BaseModel):
    status: str
    version: str = "0.1.0"


@router.get("/health", response_model=HealthStatus)
def health_check():
    return HealthStatus(status="ok")


@router.get("/ready", response_model=HealthStatus)
def readiness_check(request: Request):
    # Ready once the lifespan has built the request handler.
    if getattr(request.app.state, "upload_handler", None) is None:
        return JSONResponse(content=HealthStatus(status="starting").model_dump(), status_code=503)
    return HealthStatus(status="ok")
