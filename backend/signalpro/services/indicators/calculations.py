"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators.
NO LLM INVOLVEMENT - All math is deterministic.

Series functions return arrays aligned with the input, NaN-padded where
the window is not yet full.
"""

import numpy as np
from numpy.lib.stride_tricks import sliding_window_view
from typing import Callable, Optional


def _rolling(data: np.ndarray, period: int, func: Callable) -> np.ndarray:
    """Apply `func` over each trailing window; NaN until the first full window."""
    result = np.full(len(data), np.nan)
    if period <= 0 or len(data) < period:
        return result
    result[period - 1 :] = func(sliding_window_view(data, period), axis=1)
    return result


def _position_in_range(
    closes: np.ndarray, highest: np.ndarray, lowest: np.ndarray, collapsed: float
) -> np.ndarray:
    """(close - lowest) / (highest - lowest), `collapsed` where the range is zero."""
    span = highest - lowest
    result = np.full(len(closes), np.nan)
    filled = ~np.isnan(span)
    open_range = filled & (span > 0)
    result[open_range] = (closes[open_range] - lowest[open_range]) / span[open_range]
    result[filled & (span == 0)] = collapsed
    return result


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(data: np.ndarray, period: int) -> np.ndarray:
    """Simple Moving Average."""
    return _rolling(data, period, np.mean)


def ema(data: np.ndarray, period: int) -> np.ndarray:
    """
    Exponential Moving Average.

    Seeded with the SMA of the first `period` valid points. Leading NaNs
    (e.g. the warm-up of another indicator) are skipped.
    """
    result = np.full(len(data), np.nan)
    valid = np.flatnonzero(~np.isnan(data))
    if len(valid) == 0:
        return result

    start = valid[0]
    seed = start + period - 1
    if seed >= len(data):
        return result

    multiplier = 2 / (period + 1)
    result[seed] = np.mean(data[start : seed + 1])

    # Incremental form keeps a constant input exactly constant
    for i in range(seed + 1, len(data)):
        result[i] = result[i - 1] + multiplier * (data[i] - result[i - 1])

    return result


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: np.ndarray, period: int = 14) -> np.ndarray:
    """
    Relative Strength Index (Wilder smoothing).

    avg_loss == 0 gives 100; a window with no movement at all gives 50.
    """
    result = np.full(len(closes), np.nan)
    if len(closes) < period + 1:
        return result

    deltas = np.diff(closes)
    gains = np.clip(deltas, 0, None)
    losses = np.clip(-deltas, 0, None)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()
    result[period] = _rsi_value(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain += (gains[i] - avg_gain) / period
        avg_loss += (losses[i] - avg_loss) / period
        result[i + 1] = _rsi_value(avg_gain, avg_loss)

    return result


def _rsi_value(avg_gain: float, avg_loss: float) -> float:
    if avg_loss == 0:
        return 50.0 if avg_gain == 0 else 100.0
    return 100 - 100 / (1 + avg_gain / avg_loss)


def macd(
    closes: np.ndarray,
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    MACD (Moving Average Convergence Divergence).

    Returns: (macd_line, signal_line, histogram)
    """
    macd_line = ema(closes, fast_period) - ema(closes, slow_period)
    signal_line = ema(macd_line, signal_period)
    return macd_line, signal_line, macd_line - signal_line


def stochastic(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    k_period: int = 14,
    d_period: int = 3,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Stochastic Oscillator. %K is 50 where the window has no range.

    Returns: (k, d)
    """
    k = 100 * _position_in_range(
        closes,
        _rolling(highs, k_period, np.max),
        _rolling(lows, k_period, np.min),
        collapsed=0.5,
    )
    return k, sma(k, d_period)


def williams_r(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14
) -> np.ndarray:
    """Williams %R in [-100, 0]; -50 where the window has no range."""
    position = _position_in_range(
        closes,
        _rolling(highs, period, np.max),
        _rolling(lows, period, np.min),
        collapsed=0.5,
    )
    return (position - 1) * 100


def cci(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 20
) -> np.ndarray:
    """Commodity Channel Index. Zero mean deviation gives 0."""
    typical_price = (highs + lows + closes) / 3
    result = np.full(len(closes), np.nan)
    if len(closes) < period:
        return result

    windows = sliding_window_view(typical_price, period)
    means = windows.mean(axis=1)
    mean_dev = np.abs(windows - means[:, None]).mean(axis=1)
    deviation = typical_price[period - 1 :] - means

    values = np.zeros(len(means))
    nonzero = mean_dev > 0
    values[nonzero] = deviation[nonzero] / (0.015 * mean_dev[nonzero])
    result[period - 1 :] = values
    return result


def roc(closes: np.ndarray, period: int = 10) -> np.ndarray:
    """Rate of Change in percent."""
    result = np.full(len(closes), np.nan)
    if len(closes) <= period:
        return result

    past = closes[:-period]
    result[period:] = (closes[period:] - past) / past * 100
    return result


def mfi(
    highs: np.ndarray,
    lows: np.ndarray,
    closes: np.ndarray,
    volumes: np.ndarray,
    period: int = 14,
) -> np.ndarray:
    """Money Flow Index. A window with no money flow in either direction gives 50."""
    typical_price = (highs + lows + closes) / 3
    raw_flow = typical_price * volumes

    direction = np.zeros(len(closes))
    direction[1:] = np.sign(np.diff(typical_price))
    pos_sum = _rolling(np.where(direction > 0, raw_flow, 0.0), period, np.sum)
    neg_sum = _rolling(np.where(direction < 0, raw_flow, 0.0), period, np.sum)

    result = np.full(len(closes), np.nan)
    # the first bar has no previous price to compare with
    ready = np.arange(len(closes)) >= period
    no_outflow = ready & (neg_sum == 0)
    with_outflow = ready & (neg_sum > 0)

    result[no_outflow] = np.where(pos_sum[no_outflow] == 0, 50.0, 100.0)
    ratio = pos_sum[with_outflow] / neg_sum[with_outflow]
    result[with_outflow] = 100 - 100 / (1 + ratio)
    return result


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def true_range(highs: np.ndarray, lows: np.ndarray, closes: np.ndarray) -> np.ndarray:
    """True Range. The first bar has no previous close and uses high - low."""
    tr = highs - lows
    if len(closes) > 1:
        prev_close = closes[:-1]
        tr[1:] = np.maximum.reduce(
            [
                highs[1:] - lows[1:],
                np.abs(highs[1:] - prev_close),
                np.abs(lows[1:] - prev_close),
            ]
        )
    return tr


def atr(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14
) -> np.ndarray:
    """Average True Range (simple average of the true range)."""
    if len(closes) < 2:
        return np.full(len(closes), np.nan)

    return sma(true_range(highs, lows, closes), period)


def bollinger_bands(
    closes: np.ndarray, period: int = 20, std_dev: float = 2.0
) -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Bollinger Bands with population standard deviation.

    Returns: (upper, middle, lower, bandwidth, percent_b)
    percent_b is 0.5 where the bands collapse onto the middle.
    """
    middle = sma(closes, period)
    std = _rolling(closes, period, np.std)

    upper = middle + std_dev * std
    lower = middle - std_dev * std
    bandwidth = (upper - lower) / middle
    percent_b = _position_in_range(closes, upper, lower, collapsed=0.5)

    return upper, middle, lower, bandwidth, percent_b


def historical_volatility(closes: np.ndarray, period: int = 20) -> tuple[float, float]:
    """
    Standard deviation of the trailing simple daily returns.

    Returns: (daily, annualized) where annualized = daily * sqrt(252)
    """
    if len(closes) < 2:
        return 0.0, 0.0

    returns = np.diff(closes) / closes[:-1]
    daily = float(np.std(returns[-period:]))
    return daily, daily * float(np.sqrt(252))


# =============================================================================
# VOLUME INDICATORS
# =============================================================================


def obv(closes: np.ndarray, volumes: np.ndarray) -> np.ndarray:
    """On-Balance Volume, starting from zero."""
    result = np.zeros(len(closes))
    if len(closes) > 1:
        result[1:] = np.cumsum(np.sign(np.diff(closes)) * volumes[1:])
    return result


def volume_profile(volumes: np.ndarray, period: int = 20) -> dict:
    """Current volume against its trailing average."""
    avg_volume = float(np.mean(volumes[-period:]))
    current = float(volumes[-1])

    if avg_volume > 0:
        ratio = current / avg_volume
        strength = abs(current - avg_volume) / avg_volume
    else:
        ratio = 1.0
        strength = 0.0

    return {
        "current_volume": current,
        "average_volume": avg_volume,
        "volume_ratio": ratio,
        "trend": "above_average" if current > avg_volume else "below_average",
        "strength": strength,
    }


# =============================================================================
# TREND INDICATORS
# =============================================================================


def _safe_ratio(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    """numerator / denominator, 0 where the denominator is 0. NaNs pass through."""
    return np.divide(
        numerator,
        denominator,
        out=np.zeros(len(numerator)),
        where=denominator != 0,
    )


def adx(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, period: int = 14
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Average Directional Index with EMA smoothing.

    Returns: (adx, plus_di, minus_di)
    """
    if len(closes) < period + 1:
        empty = np.full(len(closes), np.nan)
        return empty, empty.copy(), empty.copy()

    up_move = np.diff(highs)
    down_move = -np.diff(lows)

    plus_dm = np.zeros(len(closes))
    minus_dm = np.zeros(len(closes))
    plus_dm[1:] = np.where((up_move > down_move) & (up_move > 0), up_move, 0.0)
    minus_dm[1:] = np.where((down_move > up_move) & (down_move > 0), down_move, 0.0)

    smoothed_tr = ema(true_range(highs, lows, closes), period)
    plus_di = 100 * _safe_ratio(ema(plus_dm, period), smoothed_tr)
    minus_di = 100 * _safe_ratio(ema(minus_dm, period), smoothed_tr)

    dx = 100 * _safe_ratio(np.abs(plus_di - minus_di), plus_di + minus_di)
    return ema(dx, period), plus_di, minus_di


# =============================================================================
# SUPPORT/RESISTANCE
# =============================================================================


def level_touches(closes: np.ndarray, level: float, tolerance: float = 0.01) -> int:
    """Number of closes within `tolerance` (fraction) of a level."""
    if level == 0:
        return 0
    return int(np.count_nonzero(np.abs(closes - level) / level < tolerance))


def support_level(closes: np.ndarray, period: int = 10) -> dict:
    """Lowest close of the trailing window."""
    level = float(np.min(closes[-period:]))
    current = float(closes[-1])
    return {
        "level": level,
        "strength": level_touches(closes, level),
        "distance": (current - level) / current * 100,
    }


def resistance_level(closes: np.ndarray, period: int = 10) -> dict:
    """Highest close of the trailing window."""
    level = float(np.max(closes[-period:]))
    current = float(closes[-1])
    return {
        "level": level,
        "strength": level_touches(closes, level),
        "distance": (level - current) / current * 100,
    }


# =============================================================================
# PRICE ACTION
# =============================================================================


def price_action(
    highs: np.ndarray, lows: np.ndarray, closes: np.ndarray, lookback: int = 5
) -> dict:
    """
    Classify the last `lookback` bars by the shape of their highs and lows.

    Non-decreasing highs and lows is an uptrend, non-increasing both a
    downtrend, expanding range consolidation, contracting range reversal.
    """
    high_steps = np.diff(highs[-lookback:])
    low_steps = np.diff(lows[-lookback:])
    recent_closes = closes[-lookback:]

    higher_highs = bool(np.all(high_steps >= 0))
    higher_lows = bool(np.all(low_steps >= 0))
    lower_highs = bool(np.all(high_steps <= 0))
    lower_lows = bool(np.all(low_steps <= 0))

    if higher_highs and higher_lows:
        pattern = "uptrend"
    elif lower_highs and lower_lows:
        pattern = "downtrend"
    elif higher_highs and lower_lows:
        pattern = "consolidation"
    elif lower_highs and higher_lows:
        pattern = "reversal"
    else:
        pattern = "sideways"

    return {
        "pattern": pattern,
        "higher_highs": higher_highs,
        "higher_lows": higher_lows,
        "lower_highs": lower_highs,
        "lower_lows": lower_lows,
        "momentum": "positive" if recent_closes[-1] > recent_closes[0] else "negative",
    }


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_last_valid(arr: np.ndarray) -> Optional[float]:
    """Get last non-NaN value from array."""
    valid = arr[~np.isnan(arr)]
    return float(valid[-1]) if len(valid) > 0 else None


def valid_values(arr: np.ndarray) -> list[float]:
    """All non-NaN values as plain floats, in order."""
    return [float(v) for v in arr[~np.isnan(arr)]]
