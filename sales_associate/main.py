"""
main.py — Sales Associate API

Wires routers, middleware and exception handlers onto one FastAPI app.

Business Rules:
- Every response carries X-Request-ID plus the standard security headers
- Errors are JSON {success: false, error, status_code, request_id}
- UnknownSiteError → 400, NotFoundError → 404, StoreWriteError → 500
- Anything else → 500 with the raw message (internal tool)

Called by: uvicorn (sales_associate.main:app)
Depends on: config, logging_config, routers/*
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .config import settings
from .dependencies import get_registry
from .errors import NotFoundError, StoreWriteError, UnknownSiteError
from .http_client import close_clients
from .logging_config import setup_logging
from .routers import proposals, quotes, sites, webhooks
from .schemas.errors import ErrorResponse
from .site_status import log_site_status


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    log_site_status(get_registry(), settings)
    yield
    await close_clients()


app = FastAPI(title="Sales Associate", version=__version__, lifespan=lifespan)


# ── Middleware ───────────────────────────────────────────────────────


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


# ── Exception handlers ───────────────────────────────────────────────


def _error(request: Request, status_code: int, message: str, detail: list | None = None):
    body = ErrorResponse(
        error=message,
        status_code=status_code,
        request_id=getattr(request.state, "request_id", ""),
        detail=detail,
    )
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return _error(request, exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ())[1:]) or "body"
    message = f"{field}: {first.get('msg', 'Invalid request')}"
    return _error(request, 422, message, detail=[
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in errors
    ])


@app.exception_handler(UnknownSiteError)
async def unknown_site_handler(request: Request, exc: UnknownSiteError):
    return _error(request, 400, str(exc))


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(request, 404, str(exc))


@app.exception_handler(StoreWriteError)
async def store_write_handler(request: Request, exc: StoreWriteError):
    logger.error("Store write failed on {}: {}", request.url.path, exc)
    return _error(request, 500, str(exc))


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on {}", request.url.path)
    return _error(request, 500, str(exc) or exc.__class__.__name__)


# ── Routes ───────────────────────────────────────────────────────────

app.include_router(sites.router)
app.include_router(quotes.router)
app.include_router(proposals.router)
app.include_router(webhooks.router)


@app.get("/health")
def health():
    return {"status": "ok", "version": __version__, "sites": len(get_registry())}
