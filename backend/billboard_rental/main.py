# backend/billboard_rental/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import SessionLocal, settings
from .core.log import configure_logging
from .services.pricing_cache import PricingCache
from .services.pricing_source import SqlPricingSource

# ---- Routers ----
from .api import billboards, contracts, pricing, shared_billboards

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # a cache injected beforehand (tests) is kept as is
    if getattr(app.state, "pricing_cache", None) is None:
        app.state.pricing_cache = PricingCache(SqlPricingSource(SessionLocal))
    if settings.PRICING_PRELOAD:
        app.state.pricing_cache.init()
    logger.info("billboard rental API started (pricing initialized=%s)", app.state.pricing_cache.initialized)
    yield


app = FastAPI(title="Billboard Rental API", lifespan=lifespan)


# ---------------------------
# CORS
# ---------------------------
def cors_options(origins) -> dict:
    vals = [str(o).strip().rstrip("/") for o in origins or [] if str(o).strip()]
    if "*" in vals:
        # browsers refuse credentials on a wildcard origin
        return {"allow_origins": ["*"], "allow_credentials": False}
    return {"allow_origins": vals, "allow_credentials": bool(vals)}


app.add_middleware(
    CORSMiddleware,
    allow_methods=["*"],
    allow_headers=["*"],
    **cors_options(settings.CORS_ALLOW_ORIGINS),
)


# ---------------------------
# Health
# ---------------------------
@app.get("/health", tags=["system"])
def health():
    return {"status": "ok"}


# ---------------------------
# Routers
# ---------------------------
app.include_router(pricing.router)             # price lookups & pricing table
app.include_router(contracts.router)           # preview, installments, contract CRUD
app.include_router(billboards.router)          # availability & safe delete
app.include_router(shared_billboards.router)   # partnership split & ledger
