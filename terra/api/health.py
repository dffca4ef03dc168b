"""Health check endpoints."""
from fastapi import APIRouter, Request

from terra.config import settings

router = APIRouter(tags=["health"])


@router.get("/api/health")
async def health_check(request: Request):
    """Basic health check."""
    job = getattr(request.app.state, "expiration_job", None)
    return {
        "status": "healthy",
        "expiration_job_running": bool(job and job.is_running)
    }


@router.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Listing lifecycle and engagement analytics for Terra Listings"
    }
