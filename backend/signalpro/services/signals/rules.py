"""
Signal Rule Engine

Turns an IndicatorResultSet into a list of discrete BUY/SELL votes.
Each rule is independent; a single indicator set can yield contradicting
votes. Interpretation belongs to the summary stage.
"""

import logging
from typing import Optional

from signalpro.schemas.indicators import IndicatorResultSet, ZoneSignal, DirectionSignal
from signalpro.schemas.signals import RuleSignal, SignalDirection, SignalStrength

logger = logging.getLogger(__name__)

# Volume confirmation ladder; very_strong is the cap
STRENGTH_LADDER = [
    SignalStrength.WEAK,
    SignalStrength.MEDIUM,
    SignalStrength.STRONG,
    SignalStrength.VERY_STRONG,
]

PERCENT_B_LOWER = 0.2
PERCENT_B_UPPER = 0.8


def upgrade_strength(strength: SignalStrength) -> SignalStrength:
    """One step up the ladder, saturating at very_strong."""
    index = STRENGTH_LADDER.index(strength)
    return STRENGTH_LADDER[min(index + 1, len(STRENGTH_LADDER) - 1)]


class SignalRuleEngine:
    """Deterministic rule set over one indicator snapshot."""

    def generate_signals(self, indicators: Optional[IndicatorResultSet]) -> list[RuleSignal]:
        if indicators is None:
            return []

        signals: list[RuleSignal] = []

        # RSI
        if indicators.rsi.signal == ZoneSignal.OVERSOLD:
            signals.append(_vote("RSI", SignalDirection.BUY, SignalStrength.STRONG))
        elif indicators.rsi.signal == ZoneSignal.OVERBOUGHT:
            signals.append(_vote("RSI", SignalDirection.SELL, SignalStrength.STRONG))

        # MACD needs the histogram to agree with the crossover
        macd = indicators.macd
        if macd.signal == DirectionSignal.BULLISH and macd.histogram > 0:
            signals.append(_vote("MACD", SignalDirection.BUY, SignalStrength.MEDIUM))
        elif macd.signal == DirectionSignal.BEARISH and macd.histogram < 0:
            signals.append(_vote("MACD", SignalDirection.SELL, SignalStrength.MEDIUM))

        # Stochastic
        if indicators.stochastic.signal == ZoneSignal.OVERSOLD:
            signals.append(_vote("Stochastic", SignalDirection.BUY, SignalStrength.MEDIUM))
        elif indicators.stochastic.signal == ZoneSignal.OVERBOUGHT:
            signals.append(_vote("Stochastic", SignalDirection.SELL, SignalStrength.MEDIUM))

        # Bollinger Bands
        percent_b = indicators.bollinger_bands.percent_b
        if percent_b < PERCENT_B_LOWER:
            signals.append(_vote("Bollinger Bands", SignalDirection.BUY, SignalStrength.STRONG))
        elif percent_b > PERCENT_B_UPPER:
            signals.append(_vote("Bollinger Bands", SignalDirection.SELL, SignalStrength.STRONG))

        return self._confirm_with_volume(signals, indicators)

    def _confirm_with_volume(
        self, signals: list[RuleSignal], indicators: IndicatorResultSet
    ) -> list[RuleSignal]:
        """Above-average volume lifts every vote exactly one level."""
        volume = indicators.volume_analysis
        if volume.current_volume <= volume.average_volume:
            return signals

        logger.debug(
            f"Volume confirmation: {volume.current_volume:.0f} > {volume.average_volume:.0f}"
        )
        return [
            s.model_copy(update={"strength": upgrade_strength(s.strength)})
            for s in signals
        ]


def _vote(indicator: str, direction: SignalDirection, strength: SignalStrength) -> RuleSignal:
    return RuleSignal(indicator=indicator, signal=direction, strength=strength)
