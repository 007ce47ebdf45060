"""
Polygon.io Data Adapter

Previous-day aggregate for the quote, daily range aggregates for history.
Aggregate timestamps are epoch milliseconds.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from signalpro.schemas.market import Period, Quote
from signalpro.services.base import ProviderError
from signalpro.services.data_ingestion.interface import (
    HTTPProviderAdapter,
    ProviderResult,
    normalize_series,
    window_start,
)

logger = logging.getLogger(__name__)

PROVIDER = "polygon"


def _results(payload: Any) -> list:
    if not isinstance(payload, dict):
        raise ProviderError(PROVIDER, "Unexpected response shape")
    if payload.get("status") == "ERROR":
        raise ProviderError(PROVIDER, payload.get("error") or "Polygon error")
    return payload.get("results") or []


def parse_polygon(
    symbol: str,
    prev_payload: Any,
    range_payload: Any,
    period: Period,
    now: Optional[datetime] = None,
) -> ProviderResult:
    prev = _results(prev_payload)
    if not prev:
        raise ProviderError(PROVIDER, f"No previous-day aggregate for {symbol}")

    rows = [
        {
            "date": datetime.fromtimestamp(bar["t"] / 1000, tz=timezone.utc),
            "open": bar.get("o"),
            "high": bar.get("h"),
            "low": bar.get("l"),
            "close": bar.get("c"),
            "volume": bar.get("v"),
        }
        for bar in _results(range_payload)
        if "t" in bar
    ]
    series = normalize_series(PROVIDER, rows, period, now)

    last = prev[0]
    try:
        close, open_ = float(last["c"]), float(last["o"])
        quote = Quote(
            symbol=symbol,
            current_price=close,
            change=close - open_,
            change_percent=(close - open_) / open_ * 100 if open_ else 0.0,
            volume=int(last.get("v") or 0),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderError(PROVIDER, f"Invalid quote: {e}") from e

    return ProviderResult(quote=quote, series=series)


class PolygonAdapter(HTTPProviderAdapter):
    """Polygon.io REST API."""

    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        base_url = self.descriptor.base_url
        params = {"adjusted": "true", "apiKey": self.descriptor.api_key}
        now = datetime.now(timezone.utc)
        start = window_start(period, now).strftime("%Y-%m-%d")
        end = now.strftime("%Y-%m-%d")

        prev_payload, range_payload = await asyncio.gather(
            self._get_json(f"{base_url}/v2/aggs/ticker/{symbol}/prev", params),
            self._get_json(
                f"{base_url}/v2/aggs/ticker/{symbol}/range/1/day/{start}/{end}",
                {**params, "sort": "asc", "limit": 5000},
            ),
        )
        return parse_polygon(symbol, prev_payload, range_payload, period, now)
