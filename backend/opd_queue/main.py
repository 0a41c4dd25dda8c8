"""
OPD Token Allocation - outpatient consultation queue.

Main FastAPI application entry point.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings, Settings
from .models.doctor import DoctorSchedule
from .services.allocation_service import AllocationEngine
from .routers import (
    tokens_router,
    slots_router,
    doctors_router,
    status_router
)

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

DEMO_DOCTORS = [
    {"doctor_id": "DOC001", "name": "Dr. Sharma", "start_time": "09:00", "end_time": "13:00"},
    {"doctor_id": "DOC002", "name": "Dr. Patel", "start_time": "10:00", "end_time": "14:00"},
    {"doctor_id": "DOC003", "name": "Dr. Kumar", "start_time": "09:00", "end_time": "12:00"},
]


def build_engine(config: Settings) -> AllocationEngine:
    """Fresh engine, seeded with the demo schedules when configured."""
    engine = AllocationEngine(emergency_adjustment=config.EMERGENCY_PRIORITY_ADJUSTMENT)
    if config.SEED_DEMO_DOCTORS:
        for doctor in DEMO_DOCTORS:
            engine.add_doctor(DoctorSchedule(
                slot_duration=config.DEFAULT_SLOT_DURATION,
                avg_consultation_time=config.DEFAULT_AVG_CONSULTATION_TIME,
                slot_capacity=config.DEFAULT_SLOT_CAPACITY,
                **doctor
            ))
    return engine


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    app.state.engine = build_engine(settings)
    app.state.engine_lock = asyncio.Lock()
    logger.info("%d doctors registered", len(app.state.engine.doctors))

    yield

    # Shutdown
    logger.info("Application shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"]
)


# Trace Middleware
@app.middleware("http")
async def trace_middleware(request: Request, call_next):
    response = await call_next(request)
    logger.debug("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "detail": exc.detail}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={"success": False, "detail": str(exc)}
    )


# Include routers
app.include_router(tokens_router)
app.include_router(slots_router)
app.include_router(doctors_router)
app.include_router(status_router)


@app.get("/", tags=["Health"])
@app.get("/api", tags=["Health"])
async def root():
    """API index."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "endpoints": {
            "request_token": "POST /api/tokens/request",
            "cancel_token": "POST /api/tokens/cancel",
            "emergency_token": "POST /api/tokens/emergency",
            "get_token": "GET /api/tokens/{token_id}",
            "add_delay": "POST /api/slots/delay",
            "doctors": "GET /api/doctors",
            "register_doctor": "POST /api/doctors",
            "doctor": "GET /api/doctors/{doctor_id}",
            "status": "GET /api/status",
            "waiting_list": "GET /api/waiting-list",
            "health": "GET /health"
        },
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check."""
    return {
        "status": "healthy",
        "version": settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# Entry point for running directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "opd_queue.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
