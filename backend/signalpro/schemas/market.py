"""
CONTRACT 1: Market Data Layer

Input: symbol + Period
Output: MarketData

Every provider adapter normalizes its response into these shapes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class Period(str, Enum):
    D5 = "5d"
    M1 = "1mo"
    M3 = "3mo"
    M6 = "6mo"
    Y1 = "1y"
    Y2 = "2y"


class InstrumentType(str, Enum):
    EQUITY = "equity"
    FUTURES = "futures"


# Calendar days of history each period covers
PERIOD_DAYS = {
    Period.D5: 7,
    Period.M1: 31,
    Period.M3: 92,
    Period.M6: 183,
    Period.Y1: 366,
    Period.Y2: 731,
}


# =============================================================================
# OHLCV
# =============================================================================


class OHLCV(BaseModel):
    """Single daily bar. Immutable once produced by an adapter."""

    model_config = ConfigDict(frozen=True)

    date: datetime
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)
    volume: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _check_range(self) -> "OHLCV":
        body_low = min(self.open, self.close)
        body_high = max(self.open, self.close)
        if not (self.low <= body_low and body_high <= self.high):
            raise ValueError(
                f"Bar {self.date.isoformat()} violates low <= open,close <= high "
                f"(o={self.open} h={self.high} l={self.low} c={self.close})"
            )
        return self


class Quote(BaseModel):
    """Current quote as reported by a provider."""

    symbol: str
    current_price: float = Field(..., gt=0)
    change: float
    change_percent: float
    volume: int = Field(..., ge=0)
    market_cap: Optional[float] = None
    pe: Optional[float] = None
    dividend_yield: Optional[float] = None
    beta: Optional[float] = None


class FuturesContractInfo(BaseModel):
    """Static metadata for a recognised futures root."""

    symbol: str
    name: str
    exchange: str
    tick_size: float
    tick_value: float
    contract_size: Optional[int] = None
    margin: Optional[int] = None


# =============================================================================
# OUTPUT: MarketData
# =============================================================================


class MarketData(BaseModel):
    """
    Quote plus daily history for one symbol.
    Returned by: MarketDataAggregator
    Consumed by: Indicator Engine, Signal Aggregator, API
    """

    model_config = ConfigDict(frozen=True)

    symbol: str
    current_price: float = Field(..., gt=0)
    change: float
    change_percent: float
    volume: int = Field(..., ge=0)
    market_cap: Optional[float] = None
    pe: Optional[float] = None
    dividend_yield: Optional[float] = None
    beta: Optional[float] = None
    historical: list[OHLCV]
    provider: Optional[str] = Field(default=None, description="Provider key that served the data")
    instrument_type: InstrumentType = InstrumentType.EQUITY
    contract_info: Optional[FuturesContractInfo] = None

    @classmethod
    def from_quote(cls, quote: Quote, historical: list[OHLCV], **extra) -> "MarketData":
        return cls(**quote.model_dump(), historical=historical, **extra)


# =============================================================================
# ADMIN
# =============================================================================


class ProviderStatus(BaseModel):
    """Administrative view of one configured provider."""

    name: str
    display_name: str
    enabled: bool
    priority: int
    has_api_key: bool


class CacheStats(BaseModel):
    size: int
    timeout: float = Field(..., description="TTL in seconds")
