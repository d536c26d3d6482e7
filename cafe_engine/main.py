"""
Cafe Engine — FastAPI entrypoint
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from cafe_engine.clients.backend import close_backend
from cafe_engine.core.config import get_settings
from cafe_engine.core.errors import (
    BackendError,
    BackendTimeoutError,
    BackendUnavailableError,
    EngineValidationError,
    StaffValidationError,
)
from cafe_engine.core.log import init_logging
from cafe_engine.core.redis_client import close_redis
from cafe_engine.middleware.idempotency import IdempotencyMiddleware
from cafe_engine.api import health, inventory, orders, payroll, reports, till

settings = get_settings()
init_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_backend()
    await close_redis()


app = FastAPI(
    title="Cafe Engine",
    description="Order pricing, till settlement, payroll and inventory evaluation for the café POS.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url=None,
)

app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True,
                   allow_methods=["*"], allow_headers=["*"])

if settings.STATE_BACKEND == "redis":
    app.add_middleware(IdempotencyMiddleware)

if settings.METRICS_ENABLED:
    Instrumentator().instrument(app).expose(app, endpoint="/metrics")


# ── Error mapping ─────────────────────────────────────────────────────────────

@app.exception_handler(StaffValidationError)
async def staff_validation_handler(request: Request, exc: StaffValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "error": exc.code, "errors": exc.errors})


@app.exception_handler(EngineValidationError)
async def validation_handler(request: Request, exc: EngineValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": exc.code})


@app.exception_handler(BackendError)
async def backend_handler(request: Request, exc: BackendError):
    if isinstance(exc, BackendTimeoutError):
        status_code = 504
    elif isinstance(exc, BackendUnavailableError):
        status_code = 503
    elif exc.status_code in (400, 404, 409):
        status_code = exc.status_code
    else:
        status_code = 502
    logger.warning("Backend failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc), "error": exc.code})


app.include_router(orders.router)
app.include_router(till.router)
app.include_router(payroll.router)
app.include_router(inventory.router)
app.include_router(reports.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"service": settings.SERVICE_NAME, "version": settings.SERVICE_VERSION}
