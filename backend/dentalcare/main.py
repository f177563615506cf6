"""
Main FastAPI Application
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.exc import IntegrityError
import logging

from dentalcare.core.config import settings
from dentalcare.core.database import init_db, SessionLocal
from dentalcare.core.rate_limit import RateLimitMiddleware
from dentalcare.api.v1 import (
    auth, patients, billing, expenses, inventory, insurance, prescriptions,
    staff, lab_work, treatments, appointments, audit
)
from dentalcare.services.numbering import NumberingService
from dentalcare.services.user_service import UserService

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)


def bootstrap(session_factory=SessionLocal):
    """Counters and the first login, created once per database"""
    db = session_factory()
    try:
        NumberingService(db).ensure_counters()
        UserService(db).ensure_bootstrap_admin()
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION} ({settings.ENVIRONMENT})")
    init_db()
    bootstrap()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")


# Create app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting middleware (must be after CORS)
app.add_middleware(RateLimitMiddleware)


# Exception handlers
@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={"detail": "The request conflicts with existing data, please retry"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    content = {"detail": "An unexpected error occurred"}
    if settings.DEBUG:
        content["error"] = str(exc)
    return JSONResponse(status_code=500, content=content)


# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(patients.router, prefix="/api/v1")
app.include_router(billing.router, prefix="/api/v1")
app.include_router(expenses.router, prefix="/api/v1")
app.include_router(inventory.router, prefix="/api/v1")
app.include_router(insurance.router, prefix="/api/v1")
app.include_router(prescriptions.router, prefix="/api/v1")
app.include_router(staff.router, prefix="/api/v1")
app.include_router(lab_work.router, prefix="/api/v1")
app.include_router(treatments.router, prefix="/api/v1")
app.include_router(appointments.router, prefix="/api/v1")
app.include_router(audit.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
