"""Storefront FastAPI application.

Web server that places orders and runs admin commands synchronously over
HTTP. Every request runs inside the storefront domain context.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml; LOG_DIR, when set,
# adds rotating log files next to the console output.
import os

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from storefront.domain import storefront  # noqa: E402
from storefront.guard.client_ip import client_ip_from_headers  # noqa: E402
from storefront.utils.logging import bind_request_context, configure_logging  # noqa: E402

configure_logging(log_dir=os.getenv("LOG_DIR"))
storefront.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Order placement and inventory consistency",
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
    """Push the storefront domain context and a log context for each request."""
    peer = request.client.host if request.client else None
    bind_request_context(request.method, request.url.path, client_ip_from_headers(request.headers, fallback=peer))
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api import admin_router, coupon_router, order_router  # noqa: E402

app.include_router(order_router)
app.include_router(coupon_router)
app.include_router(admin_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": storefront.name})
