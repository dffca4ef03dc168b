"""Main FastAPI application."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from terra.config import settings
from terra.api import admin, analytics, health, leads, properties
from terra.db.session import AsyncSessionLocal
from terra.exceptions import TerraError
from terra.services.lifecycle import ExpirationJob

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Terra Listings API...")

    job = None
    if settings.expiration_enabled:
        # Sweeps immediately, then on every interval, off the request path
        job = ExpirationJob(AsyncSessionLocal, settings.expiration_interval_seconds)
        job.start()
    app.state.expiration_job = job

    yield

    if job:
        await job.stop()
    logger.info("Shutting down Terra Listings API...")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Listing lifecycle and engagement analytics for Terra Listings",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TerraError)
async def terra_error_handler(request: Request, exc: TerraError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Include routers
app.include_router(health.router)
app.include_router(properties.router)
app.include_router(analytics.router)
app.include_router(leads.router)
app.include_router(admin.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "terra.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
