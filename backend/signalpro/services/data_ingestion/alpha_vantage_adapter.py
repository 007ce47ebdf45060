"""
Alpha Vantage Data Adapter

GLOBAL_QUOTE for the quote, TIME_SERIES_DAILY for history.
Alpha Vantage answers HTTP 200 even when throttled; the throttle notice
arrives as a "Note" or "Information" field.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Optional

from signalpro.schemas.market import Period, Quote
from signalpro.services.base import ProviderError, RateLimitError
from signalpro.services.data_ingestion.interface import (
    HTTPProviderAdapter,
    ProviderResult,
    normalize_series,
    parse_float,
)

logger = logging.getLogger(__name__)

PROVIDER = "alpha_vantage"

# compact returns the latest 100 bars
COMPACT_PERIODS = {Period.D5, Period.M1, Period.M3}


def _check_payload(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ProviderError(PROVIDER, "Unexpected response shape")
    if "Note" in payload or "Information" in payload:
        raise RateLimitError(PROVIDER, payload.get("Note") or payload.get("Information"))
    if "Error Message" in payload:
        raise ProviderError(PROVIDER, payload["Error Message"])
    return payload


def parse_alpha_vantage(
    symbol: str,
    quote_payload: Any,
    series_payload: Any,
    period: Period,
    now: Optional[datetime] = None,
) -> ProviderResult:
    quote_data = _check_payload(quote_payload).get("Global Quote")
    time_series = _check_payload(series_payload).get("Time Series (Daily)")

    if not quote_data or not time_series:
        raise ProviderError(PROVIDER, "Invalid response from Alpha Vantage")

    rows = [
        {
            "date": datetime.strptime(day, "%Y-%m-%d"),
            "open": parse_float(PROVIDER, bar.get("1. open"), "open"),
            "high": parse_float(PROVIDER, bar.get("2. high"), "high"),
            "low": parse_float(PROVIDER, bar.get("3. low"), "low"),
            "close": parse_float(PROVIDER, bar.get("4. close"), "close"),
            "volume": int(parse_float(PROVIDER, bar.get("5. volume"), "volume")),
        }
        for day, bar in time_series.items()
    ]
    series = normalize_series(PROVIDER, rows, period, now)

    try:
        quote = Quote(
            symbol=quote_data.get("01. symbol") or symbol,
            current_price=parse_float(PROVIDER, quote_data.get("05. price"), "price"),
            change=parse_float(PROVIDER, quote_data.get("09. change"), "change"),
            change_percent=parse_float(
                PROVIDER, quote_data.get("10. change percent"), "change percent"
            ),
            volume=int(parse_float(PROVIDER, quote_data.get("06. volume"), "volume")),
        )
    except ValueError as e:
        raise ProviderError(PROVIDER, f"Invalid quote: {e}") from e

    return ProviderResult(quote=quote, series=series)


class AlphaVantageAdapter(HTTPProviderAdapter):
    """Alpha Vantage REST API."""

    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        base_url = self.descriptor.base_url
        api_key = self.descriptor.api_key

        quote_payload, series_payload = await asyncio.gather(
            self._get_json(
                base_url,
                {"function": "GLOBAL_QUOTE", "symbol": symbol, "apikey": api_key},
            ),
            self._get_json(
                base_url,
                {
                    "function": "TIME_SERIES_DAILY",
                    "symbol": symbol,
                    "outputsize": "compact" if period in COMPACT_PERIODS else "full",
                    "apikey": api_key,
                },
            ),
        )
        return parse_alpha_vantage(symbol, quote_payload, series_payload, period)
