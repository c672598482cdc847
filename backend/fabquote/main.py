# backend/fabquote/main.py

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from sqlalchemy.exc import TimeoutError as SA_TimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401  registers tables on Base.metadata
from .api import api_public_quote, api_quote
from .core.config import settings
from .core.observability import setup_logging
from .database import Base, engine
from .utils.errors import QuoteError, error_envelope

# Configure logging before creating any loggers
setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.PROJECT_NAME, default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def catch_exceptions(request: Request, call_next):
    """Turn anything unhandled into the standard error envelope."""
    try:
        response = await call_next(request)
    except SA_TimeoutError as exc:  # DB pool timeout -> 503 to reduce retry storms
        logger.error("DB timeout at %s: %s", request.url.path, str(exc))
        response = ORJSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_envelope("Database busy, please retry"),
        )
    except Exception as exc:  # pragma: no cover - generic handler
        logger.exception("Unhandled error: %s", exc)
        response = ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope("Internal Server Error"),
        )
    return response


@app.exception_handler(QuoteError)
async def quote_error_handler(request: Request, exc: QuoteError):
    if exc.status_code >= 500:
        logger.error("Quote error %s at %s: %s", exc.status_code, request.url.path, exc.message)
    else:
        logger.warning("Quote error %s at %s: %s", exc.status_code, request.url.path, exc.message)
    return ORJSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.field_errors),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.error("HTTP error %s at %s: %s", exc.status_code, request.url.path, exc.detail)
    detail = exc.detail
    if isinstance(detail, dict):
        body = error_envelope(str(detail.get("message", "")), detail.get("field_errors"))
    else:
        body = error_envelope(str(detail))
    return ORJSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


def _field_name(loc) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in ("body", "query", "path", "header"):
        parts = parts[1:]
    return ".".join(parts) or "body"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request validation problems as 400 with per-field messages."""
    errors = exc.errors()
    logger.warning("Validation error at %s: %s", request.url.path, errors)
    field_errors = {}
    for err in errors:
        field_errors.setdefault(_field_name(err.get("loc", ())), err.get("msg", "invalid"))
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_envelope("Validation failed", field_errors),
    )


@app.get("/healthz", tags=["health"])
async def healthz():
    return {"status": "ok"}


api_prefix = settings.API_V1_STR  # usually something like "/api/v1"

# Public routes first so "/quotes/public/..." never resolves as a quote id.
app.include_router(api_public_quote.router, prefix=f"{api_prefix}")
app.include_router(api_quote.router, prefix=f"{api_prefix}")


@app.on_event("startup")
def create_tables() -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured")
