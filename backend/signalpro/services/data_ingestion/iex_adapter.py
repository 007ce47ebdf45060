"""
IEX Cloud Data Adapter

/quote for the quote, /chart/{range} for history.
IEX reports changePercent as a fraction (0.0123 == 1.23 %).
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from signalpro.schemas.market import Period, Quote
from signalpro.services.base import ProviderError
from signalpro.services.data_ingestion.interface import (
    HTTPProviderAdapter,
    ProviderResult,
    normalize_series,
)

logger = logging.getLogger(__name__)

PROVIDER = "iex"

CHART_RANGES = {
    Period.D5: "5d",
    Period.M1: "1m",
    Period.M3: "3m",
    Period.M6: "6m",
    Period.Y1: "1y",
    Period.Y2: "2y",
}


def parse_iex(
    symbol: str,
    quote_payload: Any,
    chart_payload: Any,
    period: Period,
    now: Optional[datetime] = None,
) -> ProviderResult:
    if not isinstance(quote_payload, dict) or not quote_payload.get("latestPrice"):
        raise ProviderError(PROVIDER, f"No quote for {symbol}")
    if not isinstance(chart_payload, list):
        raise ProviderError(PROVIDER, "Unexpected chart response shape")

    try:
        rows = [
            {
                "date": datetime.strptime(bar["date"], "%Y-%m-%d"),
                "open": bar.get("open"),
                "high": bar.get("high"),
                "low": bar.get("low"),
                "close": bar.get("close"),
                "volume": bar.get("volume"),
            }
            for bar in chart_payload
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ProviderError(PROVIDER, f"Invalid chart date: {e}") from e
    series = normalize_series(PROVIDER, rows, period, now)

    try:
        quote = Quote(
            symbol=quote_payload.get("symbol") or symbol,
            current_price=quote_payload["latestPrice"],
            change=quote_payload.get("change") or 0.0,
            change_percent=(quote_payload.get("changePercent") or 0.0) * 100,
            volume=int(quote_payload.get("latestVolume") or quote_payload.get("volume") or 0),
            market_cap=quote_payload.get("marketCap"),
            pe=quote_payload.get("peRatio"),
        )
    except ValueError as e:
        raise ProviderError(PROVIDER, f"Invalid quote: {e}") from e

    return ProviderResult(quote=quote, series=series)


class IEXAdapter(HTTPProviderAdapter):
    """IEX Cloud REST API."""

    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        base_url = self.descriptor.base_url
        params = {"token": self.descriptor.api_key}

        quote_payload, chart_payload = await asyncio.gather(
            self._get_json(f"{base_url}/stock/{symbol}/quote", params),
            self._get_json(f"{base_url}/stock/{symbol}/chart/{CHART_RANGES[period]}", params),
        )
        return parse_iex(symbol, quote_payload, chart_payload, period)
