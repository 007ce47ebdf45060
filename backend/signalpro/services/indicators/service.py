"""
Indicator Engine Service Implementation

Calculates all technical indicators from OHLCV data.
NO LLM INVOLVEMENT - Pure Python/NumPy calculations.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from signalpro.schemas.market import OHLCV
from signalpro.schemas.indicators import (
    IndicatorResultSet,
    MACDResult,
    RSIResult,
    BollingerBandsResult,
    StochasticResult,
    OscillatorResult,
    ROCResult,
    ADXResult,
    ATRResult,
    OBVResult,
    LevelResult,
    PriceActionResult,
    VolumeAnalysisResult,
    VolatilityResult,
    ZoneSignal,
    DirectionSignal,
    TrendStrength,
    VolatilityLevel,
)
from signalpro.services.indicators.interface import IndicatorServiceInterface
from signalpro.services.indicators.calculations import (
    sma,
    ema,
    rsi,
    macd,
    stochastic,
    cci,
    williams_r,
    roc,
    mfi,
    atr,
    bollinger_bands,
    historical_volatility,
    obv,
    volume_profile,
    adx,
    support_level,
    resistance_level,
    price_action,
    get_last_valid,
    valid_values,
)

logger = logging.getLogger(__name__)

MIN_HISTORY = 50

DEFAULT_PERIODS = {
    "sma": 20,
    "ema": 12,
    "macd": (12, 26, 9),
    "rsi": 14,
    "bollinger": (20, 2.0),
    "stochastic": (14, 3),
    "williams_r": 14,
    "cci": 20,
    "roc": 10,
    "mfi": 14,
    "adx": 14,
    "atr": 14,
    "volume_sma": 20,
    "levels": 10,
    "price_action": 5,
    "volatility": 20,
}


def _ohlcv_to_arrays(candles: Sequence[OHLCV]) -> tuple:
    """Convert OHLCV list to numpy arrays."""
    opens = np.array([c.open for c in candles], dtype=float)
    highs = np.array([c.high for c in candles], dtype=float)
    lows = np.array([c.low for c in candles], dtype=float)
    closes = np.array([c.close for c in candles], dtype=float)
    volumes = np.array([c.volume for c in candles], dtype=float)
    return opens, highs, lows, closes, volumes


def _zone(value: float, overbought: float, oversold: float) -> ZoneSignal:
    if value > overbought:
        return ZoneSignal.OVERBOUGHT
    if value < oversold:
        return ZoneSignal.OVERSOLD
    return ZoneSignal.NEUTRAL


def _last(arr: np.ndarray, default: float = 0.0) -> float:
    value = get_last_valid(arr)
    return default if value is None else value


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Stateless: every call works only from the series it is given.
    """

    async def execute(self, input_data: Sequence[OHLCV]) -> Optional[IndicatorResultSet]:
        return self.calculate_all_indicators(input_data)

    def calculate_all_indicators(
        self, series: Sequence[OHLCV]
    ) -> Optional[IndicatorResultSet]:
        """Calculate every indicator, or None if fewer than 50 bars."""
        if not series or len(series) < MIN_HISTORY:
            logger.debug(
                f"Insufficient history for indicators: {len(series) if series else 0} bars"
            )
            return None

        _, highs, lows, closes, volumes = _ohlcv_to_arrays(series)

        return IndicatorResultSet(
            # Trend
            sma=valid_values(sma(closes, DEFAULT_PERIODS["sma"])),
            ema=valid_values(ema(closes, DEFAULT_PERIODS["ema"])),
            macd=self._calculate_macd(closes),
            adx=self._calculate_adx(highs, lows, closes),
            # Momentum
            rsi=self._calculate_rsi(closes),
            stochastic=self._calculate_stochastic(highs, lows, closes),
            williams_r=self._calculate_williams_r(highs, lows, closes),
            cci=self._calculate_cci(highs, lows, closes),
            roc=self._calculate_roc(closes),
            mfi=self._calculate_mfi(highs, lows, closes, volumes),
            # Volatility
            bollinger_bands=self._calculate_bollinger(closes),
            atr=self._calculate_atr(highs, lows, closes),
            # Volume
            obv=self._calculate_obv(closes, volumes),
            volume_sma=valid_values(sma(volumes, DEFAULT_PERIODS["volume_sma"])),
            # Levels
            support=LevelResult(**support_level(closes, DEFAULT_PERIODS["levels"])),
            resistance=LevelResult(**resistance_level(closes, DEFAULT_PERIODS["levels"])),
            # Additional analysis
            price_action=PriceActionResult(
                **price_action(highs, lows, closes, DEFAULT_PERIODS["price_action"])
            ),
            volume_analysis=VolumeAnalysisResult(
                **volume_profile(volumes, DEFAULT_PERIODS["volume_sma"])
            ),
            volatility=self._calculate_volatility(closes),
        )

    # -------------------------------------------------------------------------
    # Trend
    # -------------------------------------------------------------------------

    def _calculate_macd(self, closes: np.ndarray) -> MACDResult:
        fast, slow, signal = DEFAULT_PERIODS["macd"]
        macd_arr, signal_arr, _ = macd(closes, fast, slow, signal)
        macd_line = _last(macd_arr)
        signal_line = _last(signal_arr)

        return MACDResult(
            macd_line=macd_line,
            signal_line=signal_line,
            histogram=macd_line - signal_line,
            signal=DirectionSignal.BULLISH if macd_line > signal_line else DirectionSignal.BEARISH,
            divergence=abs(macd_line - signal_line),
        )

    def _calculate_adx(
        self, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
    ) -> ADXResult:
        adx_arr, plus_di_arr, minus_di_arr = adx(highs, lows, closes, DEFAULT_PERIODS["adx"])
        value = _last(adx_arr)

        if value > 25:
            strength = TrendStrength.STRONG
        elif value < 20:
            strength = TrendStrength.WEAK
        else:
            strength = TrendStrength.NEUTRAL

        return ADXResult(
            value=value,
            plus_di=_last(plus_di_arr),
            minus_di=_last(minus_di_arr),
            signal=strength,
        )

    # -------------------------------------------------------------------------
    # Momentum
    # -------------------------------------------------------------------------

    def _calculate_rsi(self, closes: np.ndarray) -> RSIResult:
        value = float(np.clip(_last(rsi(closes, DEFAULT_PERIODS["rsi"]), 50.0), 0, 100))
        return RSIResult(
            value=value,
            signal=_zone(value, overbought=70, oversold=30),
            strength=abs(50 - value) / 50,
        )

    def _calculate_stochastic(
        self, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
    ) -> StochasticResult:
        k_period, d_period = DEFAULT_PERIODS["stochastic"]
        k_arr, d_arr = stochastic(highs, lows, closes, k_period, d_period)
        k_val = float(np.clip(_last(k_arr, 50.0), 0, 100))
        d_val = float(np.clip(_last(d_arr, 50.0), 0, 100))

        return StochasticResult(
            k=k_val,
            d=d_val,
            signal=_zone(k_val, overbought=80, oversold=20),
        )

    def _calculate_williams_r(
        self, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
    ) -> OscillatorResult:
        value = _last(williams_r(highs, lows, closes, DEFAULT_PERIODS["williams_r"]), -50.0)
        return OscillatorResult(value=value, signal=_zone(value, overbought=-20, oversold=-80))

    def _calculate_cci(
        self, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
    ) -> OscillatorResult:
        value = _last(cci(highs, lows, closes, DEFAULT_PERIODS["cci"]))
        return OscillatorResult(value=value, signal=_zone(value, overbought=100, oversold=-100))

    def _calculate_roc(self, closes: np.ndarray) -> ROCResult:
        value = _last(roc(closes, DEFAULT_PERIODS["roc"]))
        if value > 0:
            direction = DirectionSignal.BULLISH
        elif value < 0:
            direction = DirectionSignal.BEARISH
        else:
            direction = DirectionSignal.NEUTRAL
        return ROCResult(value=value, signal=direction, strength=abs(value))

    def _calculate_mfi(
        self,
        highs: np.ndarray,
        lows: np.ndarray,
        closes: np.ndarray,
        volumes: np.ndarray,
    ) -> OscillatorResult:
        value = _last(mfi(highs, lows, closes, volumes, DEFAULT_PERIODS["mfi"]), 50.0)
        return OscillatorResult(value=value, signal=_zone(value, overbought=80, oversold=20))

    # -------------------------------------------------------------------------
    # Volatility
    # -------------------------------------------------------------------------

    def _calculate_bollinger(self, closes: np.ndarray) -> BollingerBandsResult:
        period, std_dev = DEFAULT_PERIODS["bollinger"]
        upper, middle, lower, bandwidth, percent_b = bollinger_bands(closes, period, std_dev)
        current = float(closes[-1])

        return BollingerBandsResult(
            upper=_last(upper, current),
            middle=_last(middle, current),
            lower=_last(lower, current),
            bandwidth=_last(bandwidth),
            percent_b=_last(percent_b, 0.5),
        )

    def _calculate_atr(
        self, highs: np.ndarray, lows: np.ndarray, closes: np.ndarray
    ) -> ATRResult:
        value = max(_last(atr(highs, lows, closes, DEFAULT_PERIODS["atr"])), 0.0)
        return ATRResult(value=value, volatility=value / closes[-1] * 100)

    def _calculate_volatility(self, closes: np.ndarray) -> VolatilityResult:
        daily, annualized = historical_volatility(closes, DEFAULT_PERIODS["volatility"])

        if annualized > 0.30:
            level = VolatilityLevel.HIGH
        elif annualized > 0.15:
            level = VolatilityLevel.MEDIUM
        else:
            level = VolatilityLevel.LOW

        return VolatilityResult(daily=daily, annualized=annualized, level=level)

    # -------------------------------------------------------------------------
    # Volume
    # -------------------------------------------------------------------------

    def _calculate_obv(self, closes: np.ndarray, volumes: np.ndarray) -> OBVResult:
        value = float(obv(closes, volumes)[-1])
        return OBVResult(
            value=value,
            signal=DirectionSignal.BULLISH if value > 0 else DirectionSignal.BEARISH,
            trend="increasing" if value > 0 else "decreasing",
        )

    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        return True
