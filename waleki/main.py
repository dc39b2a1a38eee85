"""
Waleki Telemetry - FastAPI Application
Main entry point for the API server
"""

import logging
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
import structlog
from contextlib import asynccontextmanager

from waleki.api.routes import auth, dashboard, devices, health, ingestion, users
from waleki.core.config import settings
from waleki.core.exceptions import WalekiError
from waleki.database.connection import SessionLocal, init_database
from waleki.database.seed import seed_demo_data
from waleki.services.auth import SessionSweeper

logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger(__name__)

def run_startup_seed():
    """Create tables and seed demo data once, before traffic is accepted"""
    init_database()
    if not settings.seed_demo_data:
        return
    db = SessionLocal()
    try:
        seed_demo_data(db)
    finally:
        db.close()

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Waleki Telemetry API")
    # Startup
    run_startup_seed()
    sweeper = SessionSweeper()
    sweeper.start()
    yield
    # Shutdown
    await sweeper.stop()
    logger.info("Shutting down Waleki Telemetry API")

# Create FastAPI application
app = FastAPI(
    title="Waleki Telemetry API",
    description="Water level telemetry ingestion, device management and dashboard statistics",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(auth.router, prefix="/api", tags=["auth"])
app.include_router(users.router, prefix="/api", tags=["users"])
app.include_router(devices.router, prefix="/api", tags=["devices"])
app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])
app.include_router(ingestion.router, prefix="/api", tags=["ingestion"])

@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Waleki Telemetry API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health"
    }

@app.exception_handler(WalekiError)
async def waleki_exception_handler(request: Request, exc: WalekiError):
    """Domain errors carry their own status code"""
    logger.info("Request rejected", path=request.url.path, status_code=exc.status_code, detail=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message}
    )

@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are plain 400s"""
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "errors": jsonable_encoder(exc.errors())}
    )

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error("Unhandled exception", exc_info=exc, path=request.url.path)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )

if __name__ == "__main__":
    uvicorn.run(
        "waleki.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
