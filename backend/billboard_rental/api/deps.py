# backend/billboard_rental/api/deps.py
from fastapi import Depends, Request

from ..core.config import get_db  # noqa: F401  (re-export for routers)
from ..services.price_resolver import PriceResolver
from ..services.pricing_cache import PricingCache


def get_pricing_cache(request: Request) -> PricingCache:
    """Process-wide cache created in the app lifespan."""
    cache = getattr(request.app.state, "pricing_cache", None)
    if cache is None:
        # app built without lifespan (scripts / bare TestClient): static prices only
        cache = PricingCache()
        request.app.state.pricing_cache = cache
    return cache


def get_resolver(cache: PricingCache = Depends(get_pricing_cache)) -> PriceResolver:
    return PriceResolver(cache)
