"""Packline FastAPI application.

Web server for the warehouse fulfillment service. Commands are processed
synchronously per request inside the fulfillment domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay from domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from fulfillment.domain import fulfillment
from fulfillment.utils.logging import clear_context, configure_logging

configure_logging()
fulfillment.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Packline API",
    description="Warehouse fulfillment: pack station scanning, shipping rates and carrier webhooks",
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
    """Push the fulfillment domain context and start each request with clean log context."""
    clear_context()
    with fulfillment.domain_context():
        response = await call_next(request)
    return response


register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from fulfillment.api.routes import (  # noqa: E402
    carrier_admin_router,
    fulfillment_router,
    labels_router,
    orders_router,
    packaging_router,
    shipping_router,
    webhook_router,
)

app.include_router(orders_router)
app.include_router(labels_router)
app.include_router(fulfillment_router)
app.include_router(packaging_router)
app.include_router(shipping_router)
app.include_router(webhook_router)
app.include_router(carrier_admin_router)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": fulfillment.name})
