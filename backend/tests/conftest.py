"""Shared fixtures: synthetic daily series, fake provider adapters, a manual clock."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np
import pytest

from signalpro.core.config import MarketDataConfig, ProviderDescriptor, RateLimit
from signalpro.schemas.market import OHLCV, Period, Quote
from signalpro.services.base import ProviderError
from signalpro.services.data_ingestion.interface import ProviderAdapter, ProviderResult

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_series(
    closes,
    volumes=None,
    spread: float = 0.5,
    start: datetime = START,
) -> list[OHLCV]:
    """Bars with open == close and high/low `spread` either side."""
    if volumes is None:
        volumes = [1_000_000] * len(closes)
    return [
        OHLCV(
            date=start + timedelta(days=i),
            open=float(c),
            high=float(c) + spread,
            low=float(c) - spread,
            close=float(c),
            volume=int(v),
        )
        for i, (c, v) in enumerate(zip(closes, volumes))
    ]


def make_quote(symbol: str = "AAPL", price: float = 150.0) -> Quote:
    return Quote(symbol=symbol, current_price=price, change=1.5, change_percent=1.0, volume=1_000_000)


class FakeAdapter(ProviderAdapter):
    """Adapter that returns a canned result, raises, or stalls."""

    def __init__(
        self,
        key: str,
        series: Optional[list[OHLCV]] = None,
        error: Optional[Exception] = None,
        delay: float = 0.0,
        price: float = 150.0,
    ):
        super().__init__(make_descriptor(key, priority=1))
        self.series = series if series is not None else make_series(np.linspace(100, 150, 60))
        self.error = error
        self.delay = delay
        self.price = price
        self.calls: list[tuple[str, Period]] = []

    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        self.calls.append((symbol, period))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProviderResult(quote=make_quote(symbol, self.price), series=self.series)


class SelectiveAdapter(FakeAdapter):
    """Fails only for the listed symbols."""

    def __init__(self, key: str, failing: set[str], **kwargs):
        super().__init__(key, **kwargs)
        self.failing = failing

    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        self.calls.append((symbol, period))
        if symbol in self.failing:
            raise ProviderError(self.key, f"unknown symbol {symbol}")
        return ProviderResult(quote=make_quote(symbol, self.price), series=self.series)


class ManualClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_descriptor(key: str, priority: int, enabled: bool = True) -> ProviderDescriptor:
    return ProviderDescriptor(
        key=key,
        name=key.replace("_", " ").title(),
        enabled=enabled,
        priority=priority,
        rate_limit=RateLimit(requests_per_minute=60, requests_per_hour=1000),
    )


def make_config(*keys: str, timeout: float = 1.0, ttl: float = 120.0) -> MarketDataConfig:
    """Config whose priority order is the argument order."""
    return MarketDataConfig(
        providers=tuple(make_descriptor(k, priority=i + 1) for i, k in enumerate(keys)),
        cache_ttl_seconds=ttl,
        provider_timeout_seconds=timeout,
    )


@pytest.fixture
def uptrend_series() -> list[OHLCV]:
    """60 bars, each close one higher than the last, constant volume."""
    return make_series([100.0 + i for i in range(60)])


@pytest.fixture
def flat_series() -> list[OHLCV]:
    """60 identical bars."""
    return make_series([100.0] * 60, spread=0.0)


@pytest.fixture
def random_walk_series() -> list[OHLCV]:
    rng = np.random.default_rng(42)
    closes = 100 * np.exp(np.cumsum(rng.normal(0, 0.015, 120)))
    volumes = rng.integers(500_000, 2_000_000, 120)
    return make_series(closes, volumes, spread=1.0)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
