"""
Indicator Engine Service

CONTRACT:
    Input:  list[OHLCV]
    Output: IndicatorResultSet (or None below 50 bars)

RESPONSIBILITIES:
    - Trend: SMA, EMA, MACD, ADX/DI
    - Momentum: RSI, Stochastic, Williams %R, CCI, ROC, MFI
    - Volatility: Bollinger Bands, ATR, historical volatility
    - Volume: OBV, volume SMA, volume analysis
    - Support/resistance and short-horizon price action

PURE PYTHON - No LLM involvement.
Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from signalpro.services.indicators.interface import IndicatorServiceInterface
from signalpro.services.indicators.service import IndicatorService, MIN_HISTORY

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "MIN_HISTORY",
]
