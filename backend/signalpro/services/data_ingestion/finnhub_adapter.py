"""
Finnhub Data Adapter

/quote for the quote, /stock/candle (resolution D) for history.
Candle timestamps are epoch seconds.
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

PROVIDER = "finnhub"


def parse_finnhub(
    symbol: str,
    quote_payload: Any,
    candle_payload: Any,
    period: Period,
    now: Optional[datetime] = None,
) -> ProviderResult:
    if not isinstance(candle_payload, dict) or candle_payload.get("s") != "ok":
        raise ProviderError(PROVIDER, "Invalid response from Finnhub")
    if not isinstance(quote_payload, dict) or not quote_payload.get("c"):
        raise ProviderError(PROVIDER, f"No quote for {symbol}")

    try:
        columns = [candle_payload[k] for k in ("t", "o", "h", "l", "c", "v")]
    except KeyError as e:
        raise ProviderError(PROVIDER, f"Missing candle field {e}") from e
    if not all(isinstance(column, list) for column in columns):
        raise ProviderError(PROVIDER, "Candle fields are not arrays")
    if len({len(column) for column in columns}) != 1:
        raise ProviderError(PROVIDER, "Ragged candle arrays")

    rows = [
        {
            "date": datetime.fromtimestamp(t, tz=timezone.utc),
            "open": o,
            "high": h,
            "low": l,
            "close": c,
            "volume": v,
        }
        for t, o, h, l, c, v in zip(*columns)
    ]
    series = normalize_series(PROVIDER, rows, period, now)

    try:
        quote = Quote(
            symbol=symbol,
            current_price=quote_payload["c"],
            change=quote_payload.get("d") or 0.0,
            change_percent=quote_payload.get("dp") or 0.0,
            # /quote carries no volume; use the latest bar
            volume=int(quote_payload.get("v") or series[-1].volume),
        )
    except ValueError as e:
        raise ProviderError(PROVIDER, f"Invalid quote: {e}") from e

    return ProviderResult(quote=quote, series=series)


class FinnhubAdapter(HTTPProviderAdapter):
    """Finnhub REST API."""

    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        base_url = self.descriptor.base_url
        token = self.descriptor.api_key
        now = datetime.now(timezone.utc)

        quote_payload, candle_payload = await asyncio.gather(
            self._get_json(f"{base_url}/quote", {"symbol": symbol, "token": token}),
            self._get_json(
                f"{base_url}/stock/candle",
                {
                    "symbol": symbol,
                    "resolution": "D",
                    "from": int(window_start(period, now).timestamp()),
                    "to": int(now.timestamp()),
                    "token": token,
                },
            ),
        )
        return parse_finnhub(symbol, quote_payload, candle_payload, period, now)
