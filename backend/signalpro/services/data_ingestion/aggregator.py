"""
Market Data Aggregator

Tries enabled providers in priority order until one succeeds, caches the
result per (symbol, period), and coalesces concurrent misses for the
same key into a single fetch chain.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Union

from signalpro.core.config import MarketDataConfig
from signalpro.schemas.market import (
    CacheStats,
    InstrumentType,
    MarketData,
    Period,
    ProviderStatus,
)
from signalpro.services.base import (
    AllProvidersFailedError,
    BaseService,
    ProviderError,
    ValidationError,
)
from signalpro.services.data_ingestion.interface import ProviderAdapter
from signalpro.services.data_ingestion.futures import get_contract_info, is_futures_symbol
from signalpro.services.data_ingestion.yahoo_adapter import YahooAdapter
from signalpro.services.data_ingestion.alpha_vantage_adapter import AlphaVantageAdapter
from signalpro.services.data_ingestion.finnhub_adapter import FinnhubAdapter
from signalpro.services.data_ingestion.polygon_adapter import PolygonAdapter
from signalpro.services.data_ingestion.iex_adapter import IEXAdapter

logger = logging.getLogger(__name__)

ADAPTER_TYPES: dict[str, type[ProviderAdapter]] = {
    "yahoo": YahooAdapter,
    "alpha_vantage": AlphaVantageAdapter,
    "finnhub": FinnhubAdapter,
    "polygon": PolygonAdapter,
    "iex": IEXAdapter,
}

CacheKey = tuple[str, str]


@dataclass
class CacheEntry:
    key: CacheKey
    timestamp: float  # clock() at fetch time
    payload: MarketData
    source_provider: str


def resolve_period(value: Union[Period, str]) -> Period:
    """Accept a Period or its string value."""
    if isinstance(value, Period):
        return value
    try:
        return Period(value)
    except ValueError:
        raise ValidationError(
            "MarketDataAggregator",
            f"Unsupported period: {value}",
            {"allowed": [p.value for p in Period]},
        )


def build_adapters(config: MarketDataConfig) -> dict[str, ProviderAdapter]:
    """Instantiate an adapter for every enabled provider with a known key."""
    adapters = {}
    for descriptor in config.enabled_providers():
        adapter_type = ADAPTER_TYPES.get(descriptor.key)
        if adapter_type is None:
            logger.warning(f"No adapter registered for provider '{descriptor.key}'")
            continue
        adapters[descriptor.key] = adapter_type(descriptor)
    return adapters


class MarketDataAggregator(BaseService[str, MarketData]):
    """
    Market Data Aggregator.

    INPUT: symbol (+ period)
    OUTPUT: MarketData tagged with the provider that served it

    Providers are tried strictly one at a time, each under its own
    deadline. A timeout counts as that provider's failure.
    """

    def __init__(
        self,
        config: MarketDataConfig,
        adapters: Optional[dict[str, ProviderAdapter]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.adapters = adapters if adapters is not None else build_adapters(config)
        self._clock = clock
        self._cache: dict[CacheKey, CacheEntry] = {}
        self._in_flight: dict[CacheKey, asyncio.Task] = {}

    @property
    def name(self) -> str:
        return "MarketDataAggregator"

    async def execute(self, input_data: str) -> MarketData:
        return await self.get_market_data(input_data)

    async def get_market_data(
        self, symbol: str, period: Union[Period, str] = Period.M6
    ) -> MarketData:
        """Cached, single-flight, priority-ordered fetch."""
        symbol = (symbol or "").strip().upper()
        if not symbol:
            raise ValidationError(self.name, "Symbol is required")
        period = resolve_period(period)
        key: CacheKey = (symbol, period.value)

        entry = self._get_cached(key)
        if entry is not None:
            logger.debug(f"Market data cache hit for {symbol} ({period.value})")
            return entry.payload

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.create_task(self._fetch_and_cache(key, symbol, period))
            self._in_flight[key] = task
            task.add_done_callback(lambda t: self._release(key, t))
        else:
            logger.debug(f"Joining in-flight fetch for {symbol} ({period.value})")

        # One caller giving up must not cancel the fetch for the others
        return await asyncio.shield(task)

    def _release(self, key: CacheKey, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the outcome retrieved even if every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _fetch_and_cache(self, key: CacheKey, symbol: str, period: Period) -> MarketData:
        errors: list[ProviderError] = []

        for descriptor in self.config.enabled_providers():
            adapter = self.adapters.get(descriptor.key)
            if adapter is None:
                continue

            try:
                result = await asyncio.wait_for(
                    adapter.fetch(symbol, period),
                    timeout=self.config.provider_timeout_seconds,
                )
            except asyncio.TimeoutError:
                error = ProviderError(
                    descriptor.key,
                    f"Timed out after {self.config.provider_timeout_seconds:g}s",
                )
            except ProviderError as e:
                error = e
            except Exception as e:
                error = ProviderError(descriptor.key, f"{type(e).__name__}: {e}")
            else:
                payload = self._tag(symbol, descriptor.key, result)
                self._cache[key] = CacheEntry(
                    key=key,
                    timestamp=self._clock(),
                    payload=payload,
                    source_provider=descriptor.key,
                )
                logger.info(
                    f"{descriptor.name}: {symbol} @ {payload.current_price} "
                    f"({len(payload.historical)} bars)"
                )
                return payload

            logger.warning(f"Provider {descriptor.key} failed for {symbol}: {error.cause}")
            errors.append(error)

        logger.error(f"No data available for {symbol} from any provider")
        raise AllProvidersFailedError(symbol, errors)

    def _tag(self, symbol: str, provider: str, result) -> MarketData:
        extra = {"provider": provider}
        if is_futures_symbol(symbol):
            extra["instrument_type"] = InstrumentType.FUTURES
            extra["contract_info"] = get_contract_info(symbol)
        quote = result.quote.model_copy(update={"symbol": symbol})
        return MarketData.from_quote(quote, result.series, **extra)

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _get_cached(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if self._clock() - entry.timestamp < self.config.cache_ttl_seconds:
            return entry
        del self._cache[key]
        return None

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Market data cache cleared")

    def get_cache_stats(self) -> CacheStats:
        return CacheStats(size=len(self._cache), timeout=self.config.cache_ttl_seconds)

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------

    def get_provider_status(self) -> list[ProviderStatus]:
        """Every configured provider, enabled or not, by priority."""
        return [
            ProviderStatus(
                name=p.key,
                display_name=p.name,
                enabled=p.enabled,
                priority=p.priority,
                has_api_key=p.has_credential,
            )
            for p in sorted(self.config.providers, key=lambda p: p.priority)
        ]

    async def close(self) -> None:
        for adapter in self.adapters.values():
            await adapter.close()

    async def health_check(self) -> bool:
        """Healthy when at least one provider can be tried."""
        return any(p.key in self.adapters for p in self.config.enabled_providers())
