from fastapi import FastAPI, HTTPException, status, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from sqlalchemy import text
import logging
import time
import uuid

from .db import engine, SessionLocal
from .config import settings
from .logging_utils import setup_logging, setup_failure_log, close_failure_log
from .notifications import (
    ExpoRelayChannel,
    FcmChannel,
    NotificationDispatcher,
    NotificationScheduler,
    ScanPolicy,
)
from .notifications.scheduler import wall_clock
from .sessions import SessionMap

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App startup/shutdown lifecycle: process-scoped state lives on app.state."""
    # --- Startup ---
    # Schema is managed by Alembic (upgrade head)
    setup_logging(settings.LOG_LEVEL)

    app.state.sessions = SessionMap()
    app.state.fcm = FcmChannel.from_credentials_file(
        settings.FIREBASE_CREDENTIALS_FILE, timeout=settings.PUSH_TIMEOUT_SECONDS
    )
    app.state.expo = ExpoRelayChannel(settings.EXPO_PUSH_URL, timeout=settings.PUSH_TIMEOUT_SECONDS)
    app.state.failure_log = setup_failure_log(settings.NOTIFICATION_FAILURE_LOG)
    app.state.scheduler = None

    if not settings.SCHEDULER_ENABLED:
        logger.info("notification scheduler disabled by configuration")
    elif not app.state.fcm.initialized:
        logger.warning("FCM not initialized; due-task notification scheduler not started")
    else:
        dispatcher = NotificationDispatcher(app.state.fcm, app.state.expo, failure_log=app.state.failure_log)
        app.state.scheduler = NotificationScheduler(
            SessionLocal,
            dispatcher,
            ScanPolicy.from_settings(settings),
            interval_seconds=settings.SCHEDULER_INTERVAL_SECONDS,
            lead_minutes=settings.NOTIFY_LEAD_MINUTES,
            span_minutes=settings.NOTIFY_WINDOW_MINUTES,
            clock=wall_clock(settings.TIMEZONE),
        )
        app.state.scheduler.start()

    try:
        yield
    finally:
        # --- Shutdown ---
        if app.state.scheduler is not None:
            await app.state.scheduler.stop()
        app.state.sessions.clear()
        app.state.fcm.close()
        app.state.expo.close()
        close_failure_log(app.state.failure_log)


from .api.errors import register_exception_handlers
from .api.router import api_router
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from .rate_limit import limiter, _rate_limit_exceeded_handler

tags_metadata = [
    {"name": "auth", "description": "Authentication: signup, login, logout, checklogin."},
    {"name": "tasks", "description": "Task management: owner-scoped CRUD."},
    {"name": "notifications", "description": "Push delivery (FCM, Expo relay) and due-task passes."},
]

app = FastAPI(
    title="Workaholic API",
    version="1.0.0",
    description=(
        "JSON API exposed under /api. "
        "Log in to obtain a session token (cookie or Authorization header) for protected endpoints."
    ),
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)


@app.get("/health")
def health():
    """Simple healthcheck endpoint."""
    return {"status": "ok"}


app.include_router(api_router)

# Unified error handlers
register_exception_handlers(app)

# Rate limiting (global middleware + handler)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Request ID + access log middleware
@app.middleware("http")
async def request_id_and_logging(request: Request, call_next):
    start = time.perf_counter()
    incoming = request.headers.get(settings.REQUEST_ID_HEADER)
    req_id = incoming or uuid.uuid4().hex
    request.state.request_id = req_id
    response = await call_next(request)
    response.headers.setdefault(settings.REQUEST_ID_HEADER, req_id)
    duration_ms = int((time.perf_counter() - start) * 1000)
    logging.getLogger("workaholic.request").info(
        "method=%s path=%s status=%s duration_ms=%s request_id=%s",
        request.method,
        request.url.path,
        getattr(response, "status_code", "-"),
        duration_ms,
        req_id,
    )
    return response

# --- Security: CORS and security headers ---

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.middleware("http")
async def security_headers(request, call_next):
    response = await call_next(request)
    # Basic hardening headers; JSON only, so no CSP
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    if settings.SECURITY_ENABLE_HSTS:
        # 6 months + preload; adjust as needed in prod
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains; preload")
    return response


# --- Observability: liveness, readiness, metrics ---

@app.get("/live")
def live():
    return {"status": "live"}


@app.get("/ready")
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready") from exc
    scheduler = getattr(app.state, "scheduler", None)
    return {
        "status": "ready",
        "fcm": app.state.fcm.initialized,
        "scheduler": bool(scheduler is not None and scheduler.running),
    }


# Expose Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app, include_in_schema=False)
