"""Storefront FastAPI application.

Order lifecycle and fulfillment API: checkout, order queries, status
workflow, cancellations, coupons and payment provider callbacks. Each
request is wrapped in the correct domain context based on URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
# PROTEAN_ENV selects the configuration overlay from ``domain.toml``.
from uuid import uuid4

import structlog
from catalogue.domain import catalogue
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError
from protean.exceptions import ValidationError as ProteanValidationError

from shared.config import current_env
from shared.errors import (
    ConcurrentModification,
    ConflictError,
    Forbidden,
    InvalidWebhookSignature,
    NotFoundError,
    StorefrontError,
    ValidationError,
)
from shared.logging import add_context, clear_context, configure_logging

configure_logging(ordering.config["logging"])

catalogue.init()
ordering.init()

logger = structlog.get_logger(__name__)

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/orders": ordering,
    "/coupons": ordering,
    "/payments": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Order lifecycle and fulfillment engine",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # No domain match: pass through (health check, docs, etc.)
    return await call_next(request)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    """Bind a request id to every log line emitted while handling the request."""
    clear_context()
    request_id = request.headers.get("x-request-id") or uuid4().hex
    add_context(request_id=request_id, path=request.url.path, method=request.method)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------
_STATUS_CODES = [
    (ValidationError, 422),
    (NotFoundError, 404),
    (ConflictError, 409),
    (Forbidden, 403),
    (InvalidWebhookSignature, 401),
]


def status_code_for(exc: StorefrontError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


def _error_response(exc: StorefrontError) -> JSONResponse:
    status_code = status_code_for(exc)
    logger.info("request_rejected", error_type=exc.kind, status_code=status_code, detail=exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_type": exc.kind, "context": exc.context},
    )


@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    return _error_response(exc)


@app.exception_handler(ExpectedVersionError)
async def version_conflict_handler(request: Request, exc: ExpectedVersionError):
    # Raised when the conflict only surfaces at commit
    return _error_response(ConcurrentModification("The record was modified by another request"))


@app.exception_handler(ProteanValidationError)
async def domain_validation_handler(request: Request, exc: ProteanValidationError):
    return _error_response(ValidationError("Invalid request", errors=exc.messages))


@app.exception_handler(ObjectNotFoundError)
async def object_not_found_handler(request: Request, exc: ObjectNotFoundError):
    return _error_response(NotFoundError(str(exc)))


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from ordering.api import coupon_router, order_router  # noqa: E402
from payments.api.routes import payment_router  # noqa: E402

app.include_router(order_router)
app.include_router(coupon_router)
app.include_router(payment_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "env": current_env(),
            "domains": {
                "catalogue": {"name": catalogue.name},
                "ordering": {"name": ordering.name},
            },
        }
    )
