"""
Yahoo Finance Data Adapter

Fetches quote and daily history through yfinance. yfinance is blocking,
so every call runs in the default executor.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import yfinance as yf

from signalpro.schemas.market import Period, Quote
from signalpro.services.base import ProviderError
from signalpro.services.data_ingestion.interface import (
    ProviderAdapter,
    ProviderResult,
    normalize_series,
    window_start,
)

logger = logging.getLogger(__name__)


def _history_rows(hist) -> list[dict]:
    """Convert a yfinance history frame to plain rows."""
    rows = []
    for idx, row in hist.iterrows():
        rows.append(
            {
                "date": idx.to_pydatetime(),
                "open": float(row["Open"]),
                "high": float(row["High"]),
                "low": float(row["Low"]),
                "close": float(row["Close"]),
                "volume": int(row["Volume"]),
            }
        )
    return rows


def parse_yahoo(
    symbol: str,
    rows: list[dict],
    info: dict[str, Any],
    period: Period,
    now: Optional[datetime] = None,
) -> ProviderResult:
    """
    Normalize yfinance history rows and ticker info.

    The live price comes from info when present, otherwise the last close.
    """
    series = normalize_series("yahoo", rows, period, now)

    last_close = series[-1].close
    current_price = info.get("currentPrice") or info.get("regularMarketPrice") or last_close
    prev_close = info.get("previousClose") or (
        series[-2].close if len(series) > 1 else current_price
    )
    change = float(current_price) - float(prev_close)
    change_percent = (change / float(prev_close) * 100) if prev_close else 0.0

    try:
        quote = Quote(
            symbol=info.get("symbol") or symbol,
            current_price=float(current_price),
            change=change,
            change_percent=change_percent,
            volume=int(info.get("regularMarketVolume") or info.get("volume") or series[-1].volume),
            market_cap=info.get("marketCap"),
            pe=info.get("trailingPE"),
            dividend_yield=info.get("dividendYield"),
            beta=info.get("beta"),
        )
    except ValueError as e:
        raise ProviderError("yahoo", f"Invalid quote: {e}") from e

    return ProviderResult(quote=quote, series=series)


class YahooAdapter(ProviderAdapter):
    """Yahoo Finance via yfinance. No API key required."""

    def _download(self, symbol: str, period: Period) -> tuple[list[dict], dict]:
        ticker = yf.Ticker(symbol)
        hist = ticker.history(start=window_start(period).date(), interval="1d")
        if hist.empty:
            return [], {}

        try:
            info = ticker.info or {}
        except Exception as e:
            # History is enough; quote falls back to the last close
            logger.debug(f"Could not get live quote for {symbol}: {e}")
            info = {}

        return _history_rows(hist), info

    async def fetch(self, symbol: str, period: Period) -> ProviderResult:
        logger.info(f"Fetching {symbol} from Yahoo Finance...")
        loop = asyncio.get_running_loop()

        try:
            rows, info = await loop.run_in_executor(None, self._download, symbol, period)
        except Exception as e:
            raise self.error(f"Yahoo Finance error: {e}") from e

        if not rows:
            raise self.error(f"No data returned for {symbol}")

        return parse_yahoo(symbol, rows, info, period, datetime.now(timezone.utc))
