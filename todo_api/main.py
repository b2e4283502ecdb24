# PURPOSE: application factory wiring: lifespan (logging + seeding), middleware,
# error handlers, rate limiting, health probes and metrics.

from fastapi import FastAPI, HTTPException, status, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from sqlalchemy import text
import logging
import time
import uuid

from prometheus_fastapi_instrumentator import Instrumentator
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from .api.errors import register_exception_handlers
from .api.v1.router import api_router
from .config import settings
from .db import SessionLocal, engine
from .logging_utils import setup_logging
from .rate_limit import limiter, _rate_limit_exceeded_handler
from .store import users as user_store

log = logging.getLogger("todo_api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """App startup/shutdown lifecycle."""
    # Schema is owned by Alembic (upgrade head); startup only seeds reference rows
    setup_logging(settings.LOG_LEVEL)
    if settings.SEED_ON_STARTUP:
        db = SessionLocal()
        try:
            user_store.seed(db)
        finally:
            db.close()
    log.info("startup complete seed=%s dev_testing=%s", settings.SEED_ON_STARTUP, settings.DEV_TESTING)
    yield


tags_metadata = [
    {"name": "auth", "description": "Authentication: register, login."},
    {"name": "tasks", "description": "Tasks: listing, CRUD, status toggle, reorder, statistics."},
    {"name": "todostates", "description": "Per-organization workflow states."},
    {"name": "projects", "description": "Projects grouping tasks."},
    {"name": "organization", "description": "The caller's organization (Admin)."},
    {"name": "usermanagement", "description": "Organization accounts (Admin)."},
    {"name": "userpreferences", "description": "Per-user UI preferences."},
    {"name": "users", "description": "Current user and assignable users."},
]

app = FastAPI(
    title="Todo API",
    version="1.0.0",
    description=(
        "Multi-tenant task management JSON API exposed under /api/v1. "
        "Use OAuth2 password flow to obtain a Bearer token and access protected endpoints."
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
    logging.getLogger("todo_api.request").info(
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
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    response.headers.setdefault(
        "Permissions-Policy",
        "camera=(), microphone=(), geolocation=()",
    )
    if settings.SECURITY_CSP:
        csp = settings.SECURITY_CSP
        path = request.url.path
        if path.startswith("/docs") or path.startswith("/redoc"):
            # Swagger/ReDoc load inline scripts and CDN assets
            csp = (
                "default-src 'self'; "
                "script-src 'self' https://cdn.jsdelivr.net https://unpkg.com 'unsafe-inline'; "
                "style-src 'self' https://cdn.jsdelivr.net 'unsafe-inline'; "
                "img-src 'self' https: data:; "
                "font-src 'self' https://cdn.jsdelivr.net data:; "
                "connect-src 'self'; "
                "frame-ancestors 'none'"
            )
        response.headers["Content-Security-Policy"] = csp
    if settings.SECURITY_ENABLE_HSTS:
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
        return {"status": "ready"}
    except Exception as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="not ready") from exc


# Expose Prometheus metrics at /metrics
Instrumentator().instrument(app).expose(app, include_in_schema=False)
