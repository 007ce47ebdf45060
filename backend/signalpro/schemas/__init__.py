"""
SignalPro Schemas

Pydantic models defining the contracts between layers:
1. Market data (OHLCV, Quote, MarketData)
2. Indicator engine (IndicatorResultSet)
3. Signals (RuleSignal, CompositeTradeSignal)
"""

from signalpro.schemas.market import (
    Period,
    InstrumentType,
    PERIOD_DAYS,
    OHLCV,
    Quote,
    FuturesContractInfo,
    MarketData,
    ProviderStatus,
    CacheStats,
)
from signalpro.schemas.indicators import (
    ZoneSignal,
    DirectionSignal,
    TrendStrength,
    PricePattern,
    VolatilityLevel,
    IndicatorResultSet,
)
from signalpro.schemas.signals import (
    SignalDirection,
    SignalStrength,
    TradeAction,
    Sentiment,
    AnalysisSource,
    RuleSignal,
    EntryRange,
    AIAnalysis,
    AnalysisContext,
    TradeSummary,
    CompositeTradeSignal,
    SignalErrorRecord,
    IndicatorSignals,
)

__all__ = [
    # Market
    "Period",
    "InstrumentType",
    "PERIOD_DAYS",
    "OHLCV",
    "Quote",
    "FuturesContractInfo",
    "MarketData",
    "ProviderStatus",
    "CacheStats",
    # Indicators
    "ZoneSignal",
    "DirectionSignal",
    "TrendStrength",
    "PricePattern",
    "VolatilityLevel",
    "IndicatorResultSet",
    # Signals
    "SignalDirection",
    "SignalStrength",
    "TradeAction",
    "Sentiment",
    "AnalysisSource",
    "RuleSignal",
    "EntryRange",
    "AIAnalysis",
    "AnalysisContext",
    "TradeSummary",
    "CompositeTradeSignal",
    "SignalErrorRecord",
    "IndicatorSignals",
]
