"""
Market Data Layer

CONTRACT:
    Input:  symbol + Period
    Output: MarketData (quote + ascending daily OHLCV)

RESPONSIBILITIES:
    - One adapter per provider: Yahoo Finance, Alpha Vantage, Finnhub, Polygon.io, IEX Cloud
    - Normalize every provider into the same validated shapes
    - Priority-ordered fallback with a per-provider deadline
    - Short-lived cache with single-flight miss handling
    - Futures symbol recognition and contract metadata

NO synthetic or mock data: when every provider fails the caller gets an error.
"""

from signalpro.services.data_ingestion.interface import (
    ProviderAdapter,
    HTTPProviderAdapter,
    ProviderResult,
    normalize_series,
)
from signalpro.services.data_ingestion.aggregator import (
    MarketDataAggregator,
    ADAPTER_TYPES,
    build_adapters,
    resolve_period,
)
from signalpro.services.data_ingestion.futures import is_futures_symbol, get_contract_info

__all__ = [
    "ProviderAdapter",
    "HTTPProviderAdapter",
    "ProviderResult",
    "normalize_series",
    "MarketDataAggregator",
    "ADAPTER_TYPES",
    "build_adapters",
    "resolve_period",
    "is_futures_symbol",
    "get_contract_info",
]
