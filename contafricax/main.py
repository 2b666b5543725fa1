import contafricax.env_bootstrap  # noqa: F401  earliest import: DATABASE_URL from file secret
import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contafricax import db as app_db
from contafricax import orm_models  # noqa: F401  register tables on Base.metadata
from contafricax.config import ALLOW_ORIGINS, settings
from contafricax.logging import configure_logging
from contafricax.metrics import prime_metrics
from contafricax.middleware.request_logging import RequestLogMiddleware
from contafricax.routers import (
    auth,
    catalog,
    clients,
    currencies,
    health,
    metrics,
    payments,
    reports,
    suppliers,
    taxes,
    transactions,
    users,
)
from contafricax.routers import settings as settings_router
from contafricax.startup_guard import require_db_or_exit
from contafricax.version import APP_VERSION

configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)
logger = logging.getLogger("contafricax")


def _create_tables() -> None:
    if settings.AUTO_CREATE_TABLES:
        app_db.Base.metadata.create_all(bind=app_db.engine)


@asynccontextmanager
async def lifespan(app: FastAPI):
    require_db_or_exit()
    _create_tables()
    prime_metrics()
    logger.info("startup complete env=%s version=%s", settings.APP_ENV, APP_VERSION)
    try:
        yield
    finally:
        u = str(app_db.engine.url)
        # keep in-memory sqlite alive across test clients
        if ":memory:" not in u:
            app_db.engine.dispose()


app = FastAPI(
    title="ContAfricaX",
    version=APP_VERSION,
    openapi_url="/openapi.json",
    docs_url="/docs",
    redoc_url="/redoc",
)
app.router.lifespan_context = lifespan


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc) or None, "message": err.get("msg", "Invalid value")})
    return JSONResponse(
        status_code=400,
        content={"detail": "Validation failed", "errors": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Log unhandled exceptions with full traceback."""
    logger.error(
        "Unhandled exception in API request %s %s:\n%s",
        request.method,
        request.url.path,
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "Content-Disposition"],
)
app.add_middleware(RequestLogMiddleware)

# Operational endpoints at the root
app.include_router(health.router)
app.include_router(metrics.router)

# Business API
api = APIRouter(prefix="/api")
api.include_router(auth.router)
api.include_router(users.router)
api.include_router(transactions.router)
api.include_router(catalog.router)
api.include_router(clients.router)
api.include_router(suppliers.router)
api.include_router(payments.router)
api.include_router(currencies.router)
api.include_router(settings_router.router)
api.include_router(taxes.router)
api.include_router(reports.router)
app.include_router(api)
