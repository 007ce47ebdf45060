"""
CONTRACT 2: Indicator Engine

Input: list[OHLCV] (at least 50 bars)
Output: IndicatorResultSet

This module performs ALL mathematical calculations.
Pure Python/NumPy - NO LLM involvement.
"""

from enum import Enum

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class ZoneSignal(str, Enum):
    OVERBOUGHT = "overbought"
    OVERSOLD = "oversold"
    NEUTRAL = "neutral"


class DirectionSignal(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class TrendStrength(str, Enum):
    STRONG = "strong_trend"
    WEAK = "weak_trend"
    NEUTRAL = "neutral"


class PricePattern(str, Enum):
    UPTREND = "uptrend"
    DOWNTREND = "downtrend"
    CONSOLIDATION = "consolidation"
    REVERSAL = "reversal"
    SIDEWAYS = "sideways"


class VolatilityLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# OUTPUT: Indicator Components
# =============================================================================


class MACDResult(BaseModel):
    macd_line: float
    signal_line: float
    histogram: float
    signal: DirectionSignal
    divergence: float = Field(..., ge=0)


class RSIResult(BaseModel):
    value: float = Field(..., ge=0, le=100)
    signal: ZoneSignal
    strength: float = Field(..., ge=0, le=1)


class BollingerBandsResult(BaseModel):
    upper: float
    middle: float
    lower: float
    bandwidth: float
    percent_b: float


class StochasticResult(BaseModel):
    k: float = Field(..., ge=0, le=100)
    d: float = Field(..., ge=0, le=100)
    signal: ZoneSignal


class OscillatorResult(BaseModel):
    """Single-value oscillator with an overbought/oversold label (Williams %R, CCI, MFI)."""

    value: float
    signal: ZoneSignal


class ROCResult(BaseModel):
    value: float
    signal: DirectionSignal
    strength: float = Field(..., ge=0)


class ADXResult(BaseModel):
    value: float = Field(..., ge=0)
    plus_di: float = Field(..., ge=0)
    minus_di: float = Field(..., ge=0)
    signal: TrendStrength


class ATRResult(BaseModel):
    value: float = Field(..., ge=0)
    volatility: float = Field(..., ge=0, description="ATR as % of last close")


class OBVResult(BaseModel):
    value: float
    signal: DirectionSignal
    trend: str


class LevelResult(BaseModel):
    """Support or resistance level from the trailing close window."""

    level: float
    strength: int = Field(..., ge=0, description="Closes within 1% of the level")
    distance: float = Field(..., description="% gap from the current close")


class PriceActionResult(BaseModel):
    pattern: PricePattern
    higher_highs: bool
    higher_lows: bool
    lower_highs: bool
    lower_lows: bool
    momentum: str


class VolumeAnalysisResult(BaseModel):
    current_volume: float
    average_volume: float
    volume_ratio: float
    trend: str = Field(..., description="above_average / below_average")
    strength: float


class VolatilityResult(BaseModel):
    daily: float = Field(..., ge=0)
    annualized: float = Field(..., ge=0)
    level: VolatilityLevel


# =============================================================================
# OUTPUT: IndicatorResultSet (Complete Response)
# =============================================================================


class IndicatorResultSet(BaseModel):
    """
    Complete indicator analysis for one OHLCV series.
    Returned by: IndicatorService
    Consumed by: Signal Rule Engine, Signal Aggregator, API
    """

    # Trend
    sma: list[float] = Field(..., description="SMA(20), one value per full window")
    ema: list[float] = Field(..., description="EMA(12) seeded from SMA")
    macd: MACDResult
    adx: ADXResult

    # Momentum
    rsi: RSIResult
    stochastic: StochasticResult
    williams_r: OscillatorResult
    cci: OscillatorResult
    roc: ROCResult
    mfi: OscillatorResult

    # Volatility
    bollinger_bands: BollingerBandsResult
    atr: ATRResult

    # Volume
    obv: OBVResult
    volume_sma: list[float]

    # Levels
    support: LevelResult
    resistance: LevelResult

    # Additional analysis
    price_action: PriceActionResult
    volume_analysis: VolumeAnalysisResult
    volatility: VolatilityResult
