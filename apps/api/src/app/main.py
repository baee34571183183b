"""
Fellowship Portal API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Database and Redis connections
- Reference data seeding (cohorts, tracks, fees)
- Background job scheduler
- CORS middleware
- API routing
- Health check endpoints
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from app.api import api_router
from app.core import redis as redis_module
from app.core.auth import CurrentUser, get_current_admin_user
from app.core.config import settings
from app.core.database import async_session_maker, close_db, init_db
from app.core.redis import close_redis, init_redis
from app.core.scheduler import (
    list_registered_jobs,
    pause_job,
    resume_job,
    start_scheduler,
    stop_scheduler,
    trigger_job_manually,
)
from app.modules.cohorts.bootstrap import initialize_defaults
from app.modules.documents import register_document_jobs
from app.modules.notifications import register_notification_jobs
from app.modules.notifications.dispatcher import drain_pending_notifications


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Redis connection
    - Database connection and default data
    - Background job scheduler
    - In-flight notification emails
    """
    # Startup
    print(f"Starting Fellowship Portal API in {settings.python_env} mode...")

    # Initialize Redis
    try:
        await init_redis()
        print("[OK] Redis connected")
    except Exception as e:
        print(f"[FAIL] Redis connection failed: {e}")
        if settings.is_production:
            raise

    # Initialize Database
    database_ready = False
    try:
        await init_db()
        database_ready = True
        print("[OK] Database connected")
    except Exception as e:
        print(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    # Seed cohorts, tracks and fees (skipped when the database is unreachable)
    if database_ready:
        try:
            async with async_session_maker() as session:
                created = await initialize_defaults(session)
            print(
                f"[OK] Defaults initialized "
                f"(cohorts={created['cohorts']}, tracks={created['tracks']}, fees={created['fees']})"
            )
        except Exception as e:
            print(f"[FAIL] Default data initialization skipped: {e}")
    else:
        print("[FAIL] Default data initialization skipped: database unavailable")

    # Initialize Background Job Scheduler
    try:
        register_notification_jobs()
        register_document_jobs()

        await start_scheduler()
        print("[OK] Background scheduler started")
    except Exception as e:
        print(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    # Shutdown
    print("Shutting down Fellowship Portal API...")

    await stop_scheduler()
    print("[OK] Background scheduler stopped")

    await drain_pending_notifications()
    print("[OK] Pending notifications drained")

    await close_redis()
    await close_db()
    print("[OK] Cleanup complete")


app = FastAPI(
    title="Fellowship Portal API",
    description="Fellowship admissions portal: applications, payments and review",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint - API welcome message."""
    return {
        "message": "Welcome to the Fellowship Portal API",
        "status": "running",
        "environment": settings.python_env,
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for container orchestration."""
    return {"status": "healthy"}


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict[str, str]:
    """Readiness check endpoint."""
    return {"status": "ready"}


@app.get("/debug/db", tags=["Debug"])
async def debug_db():
    """Test database connection."""
    try:
        async with async_session_maker() as session:
            result = await session.execute(text("SELECT 1"))
            return {"database": "connected", "result": result.scalar()}
    except Exception as e:
        return {"database": "error", "message": str(e)}


@app.get("/debug/redis", tags=["Debug"])
async def debug_redis():
    """Test Redis connection."""
    client = redis_module.redis_client
    try:
        if client:
            await client.ping()
            return {"redis": "connected"}
        return {"redis": "not initialized"}
    except Exception as e:
        return {"redis": "error", "message": str(e)}


# ============================================
# Background Job Debug Endpoints
# ============================================
# Manual control of scheduled jobs. Admin only.


@app.get("/debug/jobs", tags=["Debug"])
async def list_jobs(admin: CurrentUser = Depends(get_current_admin_user)):
    """List all registered background jobs and their status."""
    return {"jobs": list_registered_jobs()}


@app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
async def trigger_job(job_id: str, admin: CurrentUser = Depends(get_current_admin_user)):
    """
    Run a background job immediately, bypassing its schedule.

    Args:
        job_id: The ID of the job to trigger. Available jobs:
            - notifications_retry_failed
            - documents_sweep_stale_staging

    Raises:
        HTTPException 400: If job_id is not registered.
    """
    try:
        return await trigger_job_manually(job_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/debug/jobs/{job_id}/pause", tags=["Debug"])
async def pause_job_endpoint(job_id: str, admin: CurrentUser = Depends(get_current_admin_user)):
    """Pause a scheduled background job."""
    return {"job_id": job_id, "paused": pause_job(job_id)}


@app.post("/debug/jobs/{job_id}/resume", tags=["Debug"])
async def resume_job_endpoint(job_id: str, admin: CurrentUser = Depends(get_current_admin_user)):
    """Resume a paused background job."""
    return {"job_id": job_id, "resumed": resume_job(job_id)}
