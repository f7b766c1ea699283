# fleetdesk/main.py
"""
FastAPI application entry point.
Includes CORS, request timing, typed error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fleetdesk.routers import (
    assignments, auth, bookings, branches, categories, documents, health,
    maintenance, navigation, snags, uploads, users, vehicles,
)
from fleetdesk.database import create_tables
from fleetdesk.config import settings
from fleetdesk.exceptions import FleetDeskError
from fleetdesk.services.auth_service import AuthClient
from fleetdesk.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="FleetDesk API",
    description="Fleet management dashboard backend: vehicles, bookings, snags and maintenance.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (dashboard origins) ────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(FleetDeskError)
async def fleetdesk_error_handler(request: Request, exc: FleetDeskError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} → {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(auth.router,        prefix="/api/v1", tags=["Auth"])
app.include_router(navigation.router,  prefix="/api/v1", tags=["Navigation"])
app.include_router(vehicles.router,    prefix="/api/v1", tags=["Vehicles"])
app.include_router(snags.router,       prefix="/api/v1", tags=["Snags"])
app.include_router(assignments.router, prefix="/api/v1", tags=["Assignments"])
app.include_router(maintenance.router, prefix="/api/v1", tags=["Maintenance"])
app.include_router(uploads.router,     prefix="/api/v1", tags=["Uploads"])
app.include_router(bookings.router,    prefix="/api/v1", tags=["Bookings"])
app.include_router(documents.router,   prefix="/api/v1", tags=["Booking Documents"])
app.include_router(branches.router,    prefix="/api/v1", tags=["Settings: Branches"])
app.include_router(categories.router,  prefix="/api/v1", tags=["Settings: Categories"])
app.include_router(users.router,       prefix="/api/v1", tags=["Users"])
app.include_router(health.router,      prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 FleetDesk backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    app.state.auth_client = AuthClient()
    logger.info(f"🔐 Auth service: {settings.auth_url}")
    if not settings.SUPABASE_SERVICE_KEY:
        logger.warning("⚠️  SUPABASE_SERVICE_KEY not set: user create/update/delete will fail")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 FleetDesk backend shutting down...")
    client = getattr(app.state, "auth_client", None)
    if client is not None:
        await client.close()
