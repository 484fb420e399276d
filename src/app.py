"""Storefront ordering FastAPI application.

Web server for the ordering core: checkout, order lifecycle, payments,
refunds and stock. Commands are processed synchronously per request, each in
its own unit of work.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml:
#   - unset / "test" → in-memory database
#   - "production"   → PostgreSQL from DATABASE_URL
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from ordering.domain import ordering  # noqa: E402
from ordering.utils.logging import bind_request_context, clear_request_context

ordering.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_DOMAIN_ROUTES = ("/orders", "/payments", "/stock")


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    if path.startswith(_DOMAIN_ROUTES):
        return ordering
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront Ordering API",
    description="Orders, payments, refunds and stock for the storefront",
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
    """Push the Protean domain context for each domain request."""
    domain = _resolve_domain(request.url.path)
    if domain is None:
        # Not a domain route: health check or docs
        return await call_next(request)

    clear_request_context()
    bind_request_context(request_id=request.headers.get("x-request-id", str(uuid4())))
    try:
        with domain.domain_context():
            response = await call_next(request)
    finally:
        clear_request_context()
    return response


# ---------------------------------------------------------------------------
# Routers and error mapping
# ---------------------------------------------------------------------------
from ordering.api import order_router, payment_router, stock_router  # noqa: E402
from ordering.api.errors import register_exception_handlers  # noqa: E402

app.include_router(order_router)
app.include_router(payment_router)
app.include_router(stock_router)
register_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "ordering": {"name": ordering.name},
            },
        }
    )
