# spoton/main.py
"""
FastAPI application entry point.
Includes security middleware, booking error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from spoton.routers import availability, bookings, buildings, health, notifications, stats, users
from spoton.database import create_tables
from spoton.config import settings
from spoton.services.change_feed import ChangeFeed
from spoton.services.errors import InvalidInput, SpotUnavailable, InvalidTransition, StoreUnavailable
from spoton.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="SpotOn Parking Reservations API",
    description="University parking: spot availability, QR-coded bookings, admin occupancy.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.state.change_feed = ChangeFeed()

# ── CORS (the web UI is served from a different origin) ─────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the UI origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Optional shared key between the UI backend-for-frontend and this API.
    Health check and docs stay open. Set API_KEY in .env; leave empty to disable.
    """
    OPEN_PATHS = {"/api/v1/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.OPEN_PATHS or not settings.API_KEY:
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Booking Error Handlers ───────────────────────────────────────────────────
@app.exception_handler(InvalidInput)
async def invalid_input_handler(request: Request, exc: InvalidInput):
    code = status.HTTP_404_NOT_FOUND if exc.not_found else status.HTTP_400_BAD_REQUEST
    return JSONResponse(status_code=code, content={"detail": str(exc), "error": "invalid_input"})


@app.exception_handler(SpotUnavailable)
async def spot_unavailable_handler(request: Request, exc: SpotUnavailable):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT,
                        content={"detail": str(exc), "error": "spot_unavailable"})


@app.exception_handler(InvalidTransition)
async def invalid_transition_handler(request: Request, exc: InvalidTransition):
    return JSONResponse(status_code=status.HTTP_409_CONFLICT,
                        content={"detail": str(exc), "error": "invalid_transition"})


@app.exception_handler(StoreUnavailable)
async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                        content={"detail": str(exc), "error": "store_unavailable"},
                        headers={"Retry-After": "1"})


# ── Global Exception Handler ─────────────────────────────────────────────────
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(availability.router,  prefix="/api/v1", tags=["🅿️  Availability"])
app.include_router(bookings.router,      prefix="/api/v1", tags=["🎫 Bookings"])
app.include_router(buildings.router,     prefix="/api/v1", tags=["🏢 Buildings & Spots"])
app.include_router(notifications.router, prefix="/api/v1", tags=["🔔 Notifications"])
app.include_router(users.router,         prefix="/api/v1", tags=["👤 Users"])
app.include_router(stats.router,         prefix="/api/v1", tags=["📊 Stats"])
app.include_router(health.router,        prefix="/api/v1", tags=["💚 Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 SpotOn backend starting up...")
    create_tables()
    logger.info("✅ Database tables ready")
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 SpotOn backend shutting down...")
