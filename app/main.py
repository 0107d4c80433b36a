# app/main.py
"""
FastAPI application entry point.
Includes request timing middleware, global error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError
from app.routers import rfid, admin, applications, health
from app.database import create_tables
from app.config import settings
from app.errors import AccessControlError, StoreNotReadyError
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Campus Vehicle Pass & RFID Access API",
    description="Vehicle pass applications, admin review, RFID tag issuance and gate scan validation.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# ── CORS (admin dashboard + user portal) ────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to portal origins in production
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


# ── Domain Error Handler ─────────────────────────────────────────────────────
@app.exception_handler(AccessControlError)
async def access_control_error_handler(request: Request, exc: AccessControlError):
    logger.info(f"{request.method} {request.url.path} refused: {exc.code} — {exc.message}")
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


# ── Store Unavailable Handler ────────────────────────────────────────────────
@app.exception_handler(OperationalError)
async def store_unavailable_handler(request: Request, exc: OperationalError):
    logger.error(f"Record store unavailable on {request.url.path}: {exc}")
    err = StoreNotReadyError()
    return JSONResponse(status_code=err.http_status, content=err.to_dict())


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(rfid.router,         prefix="/api/v1", tags=["📡 RFID Scans"])
app.include_router(admin.router,        prefix="/api/v1", tags=["🛂 Admin Review"])
app.include_router(applications.router, prefix="/api/v1", tags=["🚗 Vehicle Passes"])
app.include_router(health.router,       prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 Campus Pass backend starting up...")
    try:
        create_tables()
        logger.info("✅ Database tables ready")
    except OperationalError as e:
        # Keep serving; requests answer STORE_NOT_READY until the DB is back
        logger.error(f"❌ Database not reachable at startup: {e}")
    logger.info(f"🔔 Notifications: {settings.NOTIFICATION_WEBHOOK_URL or 'log-only'}")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 Campus Pass backend shutting down...")
