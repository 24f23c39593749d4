"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from securevault.config import settings
from securevault.database import init_db
from securevault.errors import ValidationError, VaultError
from securevault.routers import activity, clients, credentials, exports, platforms
from securevault.services.export_staging import ExportStaging
from securevault.utils.crypto import CryptoBox

# ── Logging setup ────────────────────────────────────────────────────
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await init_db()
    app.state.crypto = CryptoBox.from_settings(settings)

    staging = ExportStaging.from_settings(settings)
    staging.ensure_directory()
    try:
        await staging.sweep()
    except OSError as exc:
        logger.warning("Export staging sweep failed (non-fatal): %s", exc)
    app.state.staging = staging
    logger.info("SecureVault ready (env=%s, export dir=%s)", settings.env, staging.directory)

    yield

    # Shutdown: purge staged exports
    await staging.shutdown()


app = FastAPI(
    title="SecureVault",
    description="Multi-tenant credential vault with encrypted storage and Excel export",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error responses ──────────────────────────────────────────────────
# Every failure renders as {"status": "error", "category", "message", ...}.
_HTTP_CATEGORIES = {
    401: "unauthenticated",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
}


def _error_response(
    status_code: int, category: str, message: str, headers: dict | None = None, **extra
) -> JSONResponse:
    body = {"status": "error", "category": category, "message": message, **extra}
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.exception_handler(VaultError)
async def vault_error_handler(request: Request, exc: VaultError):
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.detail or exc.message,
        )
    extra = {}
    if settings.expose_error_details and exc.detail:
        extra["error"] = exc.detail
    return _error_response(exc.status_code, exc.category, exc.message, **extra)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return _error_response(
        exc.status_code,
        _HTTP_CATEGORIES.get(exc.status_code, "http_error"),
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error_response(
        422,
        ValidationError.category,
        ValidationError.default_message,
        errors=jsonable_encoder(exc.errors()),
    )


# Mount routers
app.include_router(clients.router, prefix="/api/clients", tags=["clients"])
app.include_router(platforms.router, prefix="/api/platforms", tags=["platforms"])
app.include_router(credentials.router, prefix="/api/credentials", tags=["credentials"])
app.include_router(exports.router, prefix="/api/export", tags=["export"])
app.include_router(activity.router, prefix="/api/activity", tags=["activity"])


@app.get("/health")
async def health():
    return {"status": "ok", "service": "securevault"}
