"""
Market Data API Endpoints

Provider status, cache administration and market data lookups.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from signalpro.api.deps import get_market_data, to_http_exception
from signalpro.schemas.market import CacheStats, MarketData, ProviderStatus
from signalpro.services.base import ServiceError
from signalpro.services.data_ingestion import MarketDataAggregator

router = APIRouter()


class ProvidersResponse(BaseModel):
    providers: list[ProviderStatus]
    cache: CacheStats


@router.get("/providers", response_model=ProvidersResponse)
async def get_providers(aggregator: MarketDataAggregator = Depends(get_market_data)):
    """Configured providers in priority order, plus market data cache stats."""
    return ProvidersResponse(
        providers=aggregator.get_provider_status(),
        cache=aggregator.get_cache_stats(),
    )


@router.post("/clear-cache")
async def clear_cache(aggregator: MarketDataAggregator = Depends(get_market_data)):
    """Drop every cached market data entry."""
    aggregator.clear_cache()
    return {"message": "Market data cache cleared"}


@router.get("/{symbol}", response_model=MarketData)
async def get_symbol_data(
    symbol: str,
    period: Optional[str] = None,
    aggregator: MarketDataAggregator = Depends(get_market_data),
):
    """
    Quote plus daily history for a symbol.

    Served from the first provider that succeeds, or from cache.
    """
    try:
        if period:
            return await aggregator.get_market_data(symbol, period)
        return await aggregator.get_market_data(symbol)
    except ServiceError as e:
        raise to_http_exception(e)
