"""
CONTRACT 3: Signal Layer

Input: IndicatorResultSet (+ MarketData, optional ML predictions / AI analysis)
Output: RuleSignal list and CompositeTradeSignal

Rule signals are a list of independent votes; interpretation happens in
the summary, never inside the rule engine.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from signalpro.schemas.indicators import IndicatorResultSet
from signalpro.schemas.market import MarketData


# =============================================================================
# ENUMS
# =============================================================================


class SignalDirection(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class SignalStrength(str, Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"
    VERY_STRONG = "very_strong"


class TradeAction(str, Enum):
    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


class Sentiment(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class AnalysisSource(str, Enum):
    AI = "ai"
    AI_TEXT = "ai_text"  # free-text response parsed heuristically
    FALLBACK = "fallback"


# =============================================================================
# RULE SIGNALS
# =============================================================================


class RuleSignal(BaseModel):
    """One indicator's vote."""

    indicator: str
    signal: SignalDirection
    strength: SignalStrength


# =============================================================================
# ANALYSIS
# =============================================================================


class EntryRange(BaseModel):
    min: float
    max: float


class AIAnalysis(BaseModel):
    """
    Narrative analysis of a symbol.

    Produced by an external AI capability or by the deterministic
    RSI/MACD fallback when that capability is missing or fails.
    """

    sentiment: Sentiment = Sentiment.NEUTRAL
    signal: TradeAction = TradeAction.HOLD
    confidence: float = Field(default=50, ge=0, le=100)
    # None when the analysis did not name a level
    entry_price: Optional[EntryRange] = None
    target_price: Optional[float] = None
    stop_loss: Optional[float] = None
    risk_reward_ratio: str = "1:1"
    reasoning: str = ""
    risks: list[str] = Field(default_factory=list)
    position_size: str = "1% of capital"
    source: AnalysisSource = AnalysisSource.AI


class AnalysisContext(BaseModel):
    """Everything an AI analysis capability may look at."""

    symbol: str
    market_data: MarketData
    technical_indicators: Optional[IndicatorResultSet] = None
    signals: list[RuleSignal] = Field(default_factory=list)
    ml_predictions: Optional[dict[str, Any]] = None


# =============================================================================
# OUTPUT: CompositeTradeSignal
# =============================================================================


class TradeSummary(BaseModel):
    signal: TradeAction
    confidence: float = Field(..., ge=0, le=100)
    sentiment: Sentiment
    entry_price: Optional[EntryRange] = None
    target_price: Optional[float] = None
    stop_loss: Optional[float] = None
    risk_reward_ratio: str


class CompositeTradeSignal(BaseModel):
    """
    Aggregated view of one symbol.
    Created per cache miss, superseded (never mutated) by the next refresh.
    """

    model_config = {"frozen": True}

    symbol: str
    timestamp: datetime
    market_data: MarketData
    technical_indicators: Optional[IndicatorResultSet] = Field(
        default=None, description="None when history is shorter than 50 bars"
    )
    signals: list[RuleSignal] = Field(default_factory=list)
    ml_predictions: Optional[dict[str, Any]] = None
    ai_analysis: AIAnalysis
    summary: TradeSummary


class SignalErrorRecord(BaseModel):
    """Per-symbol failure inside a batch."""

    symbol: str
    error: str
    timestamp: datetime


class IndicatorSignals(BaseModel):
    """Indicators plus rule signals, without the composite summary."""

    symbol: Optional[str] = None
    indicators: Optional[IndicatorResultSet] = None
    signals: list[RuleSignal] = Field(default_factory=list)
    timestamp: datetime
