"""
Provider Adapter Interface

Defines the contract every market data provider adapter implements,
plus the normalization helpers they share.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from signalpro.core.config import ProviderDescriptor
from signalpro.schemas.market import OHLCV, PERIOD_DAYS, Period, Quote
from signalpro.services.base import ProviderError, RateLimitError

logger = logging.getLogger(__name__)


@dataclass
class ProviderResult:
    """Normalized payload of one successful provider fetch."""

    quote: Quote
    series: list[OHLCV]


class ProviderAdapter(ABC):
    """
    Provider Adapter Contract.

    INPUT: symbol + Period

    OUTPUT: ProviderResult
        - quote: current price snapshot
        - series: ascending daily bars inside the period window

    Raises ProviderError (or RateLimitError) on any failure.
    Never retries and never returns partial data.
    """

    def __init__(self, descriptor: ProviderDescriptor):
        self.descriptor = descriptor

    @property
    def key(self) -> str:
        return self.descriptor.key

    @abstractmethod
    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        pass

    async def close(self) -> None:
        """Release network resources. Adapters without any keep the default."""
        return None

    def error(self, cause: str, **details) -> ProviderError:
        return ProviderError(self.key, cause, details or None)


class HTTPProviderAdapter(ProviderAdapter):
    """Adapter backed by a JSON-over-HTTP API."""

    def __init__(self, descriptor: ProviderDescriptor, session: Optional[aiohttp.ClientSession] = None):
        super().__init__(descriptor)
        self._session = session

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers={"Accept": "application/json"},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        session = await self._ensure_session()
        try:
            async with session.get(url, params=params) as resp:
                if resp.status == 429:
                    raise RateLimitError(self.key, "HTTP 429 rate limit exceeded")
                if resp.status in (401, 403):
                    raise self.error(f"Authentication failed (HTTP {resp.status})")
                if resp.status != 200:
                    body = await resp.text()
                    raise self.error(f"HTTP {resp.status}", body=body[:200])
                return await resp.json(content_type=None)
        except aiohttp.ClientError as e:
            raise self.error(f"Network error: {e}") from e
        except ValueError as e:
            raise self.error(f"Invalid JSON: {e}") from e


# =============================================================================
# NORMALIZATION
# =============================================================================


def window_start(period: Period, now: Optional[datetime] = None) -> datetime:
    """Earliest bar date kept for a period."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=PERIOD_DAYS[period])


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_float(provider: str, value: Any, field: str) -> float:
    """Provider number (possibly a string, possibly with a % sign) to float."""
    if value is None:
        raise ProviderError(provider, f"Missing field: {field}")
    if isinstance(value, str):
        value = value.strip().rstrip("%")
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ProviderError(provider, f"Unparseable {field}: {value!r}") from e


def normalize_series(
    provider: str,
    rows: Iterable[dict],
    period: Period,
    now: Optional[datetime] = None,
) -> list[OHLCV]:
    """
    Build a clean ascending series from raw rows.

    Rows need date/open/high/low/close/volume keys. Bars outside the
    period window are dropped; duplicate dates keep the last row seen.
    Any bar that fails validation fails the whole series.
    """
    start = window_start(period, now)
    by_date: dict[datetime, OHLCV] = {}

    for row in rows:
        try:
            bar = OHLCV(
                date=as_utc(row["date"]),
                open=row["open"],
                high=row["high"],
                low=row["low"],
                close=row["close"],
                volume=int(row["volume"] or 0),
            )
        except (KeyError, TypeError, ValueError, PydanticValidationError) as e:
            raise ProviderError(provider, f"Invalid bar: {e}") from e

        if bar.date >= start:
            by_date[bar.date] = bar

    if not by_date:
        raise ProviderError(provider, "Empty history")

    return [by_date[d] for d in sorted(by_date)]
