"""Tests for the rule engine and its volume confirmation pass."""

import pytest

from signalpro.schemas.indicators import (
    DirectionSignal,
    MACDResult,
    RSIResult,
    StochasticResult,
    VolumeAnalysisResult,
    ZoneSignal,
)
from signalpro.schemas.signals import SignalDirection, SignalStrength
from signalpro.services.indicators import IndicatorService
from signalpro.services.signals import SignalRuleEngine, upgrade_strength


@pytest.fixture
def engine() -> SignalRuleEngine:
    return SignalRuleEngine()


@pytest.fixture
def flat_indicators(flat_series):
    return IndicatorService().calculate_all_indicators(flat_series)


def with_volume(indicators, current: float, average: float):
    volume = VolumeAnalysisResult(
        current_volume=current,
        average_volume=average,
        volume_ratio=current / average,
        trend="above_average" if current > average else "below_average",
        strength=abs(current - average) / average,
    )
    return indicators.model_copy(update={"volume_analysis": volume})


def by_indicator(signals):
    return {s.indicator: s for s in signals}


class TestUpgradeStrength:
    @pytest.mark.parametrize(
        "before,after",
        [
            (SignalStrength.WEAK, SignalStrength.MEDIUM),
            (SignalStrength.MEDIUM, SignalStrength.STRONG),
            (SignalStrength.STRONG, SignalStrength.VERY_STRONG),
            (SignalStrength.VERY_STRONG, SignalStrength.VERY_STRONG),
        ],
    )
    def test_one_step_with_cap(self, before, after):
        assert upgrade_strength(before) == after


class TestGenerateSignals:
    def test_no_indicators(self, engine):
        assert engine.generate_signals(None) == []

    def test_flat_series_yields_nothing(self, engine, flat_indicators):
        assert engine.generate_signals(flat_indicators) == []

    def test_uptrend_votes_sell(self, engine, uptrend_series):
        indicators = IndicatorService().calculate_all_indicators(uptrend_series)
        signals = by_indicator(engine.generate_signals(indicators))

        assert signals["RSI"].signal == SignalDirection.SELL
        assert signals["RSI"].strength == SignalStrength.STRONG
        assert signals["Stochastic"].signal == SignalDirection.SELL
        assert signals["Stochastic"].strength == SignalStrength.MEDIUM
        assert signals["Bollinger Bands"].signal == SignalDirection.SELL
        assert signals["Bollinger Bands"].strength == SignalStrength.STRONG

    def test_oversold_votes_buy(self, engine, flat_indicators):
        indicators = flat_indicators.model_copy(
            update={
                "rsi": RSIResult(value=20, signal=ZoneSignal.OVERSOLD, strength=0.6),
                "stochastic": StochasticResult(k=10, d=12, signal=ZoneSignal.OVERSOLD),
                "bollinger_bands": flat_indicators.bollinger_bands.model_copy(
                    update={"percent_b": 0.1}
                ),
            }
        )
        signals = engine.generate_signals(indicators)

        assert [s.indicator for s in signals] == ["RSI", "Stochastic", "Bollinger Bands"]
        assert all(s.signal == SignalDirection.BUY for s in signals)

    def test_macd_requires_histogram_agreement(self, engine, flat_indicators):
        agreeing = flat_indicators.model_copy(
            update={
                "macd": MACDResult(
                    macd_line=1.0,
                    signal_line=0.5,
                    histogram=0.5,
                    signal=DirectionSignal.BULLISH,
                    divergence=0.5,
                )
            }
        )
        disagreeing = flat_indicators.model_copy(
            update={
                "macd": MACDResult(
                    macd_line=1.0,
                    signal_line=0.5,
                    histogram=-0.1,
                    signal=DirectionSignal.BULLISH,
                    divergence=0.5,
                )
            }
        )

        signals = engine.generate_signals(agreeing)
        assert len(signals) == 1
        assert signals[0].indicator == "MACD"
        assert signals[0].signal == SignalDirection.BUY
        assert signals[0].strength == SignalStrength.MEDIUM
        assert engine.generate_signals(disagreeing) == []

    def test_contradicting_votes_are_kept(self, engine, flat_indicators):
        indicators = flat_indicators.model_copy(
            update={
                "rsi": RSIResult(value=80, signal=ZoneSignal.OVERBOUGHT, strength=0.6),
                "stochastic": StochasticResult(k=10, d=12, signal=ZoneSignal.OVERSOLD),
            }
        )
        directions = {s.indicator: s.signal for s in engine.generate_signals(indicators)}
        assert directions == {"RSI": SignalDirection.SELL, "Stochastic": SignalDirection.BUY}


class TestVolumeConfirmation:
    def test_above_average_upgrades_exactly_once(self, engine, uptrend_series):
        indicators = IndicatorService().calculate_all_indicators(uptrend_series)
        baseline = by_indicator(engine.generate_signals(indicators))
        boosted = by_indicator(
            engine.generate_signals(with_volume(indicators, 2_000_000, 1_000_000))
        )

        assert boosted.keys() == baseline.keys()
        for name, signal in boosted.items():
            assert signal.strength == upgrade_strength(baseline[name].strength)
        assert boosted["RSI"].strength == SignalStrength.VERY_STRONG
        assert boosted["Stochastic"].strength == SignalStrength.STRONG

    def test_equal_volume_does_not_upgrade(self, engine, uptrend_series):
        indicators = IndicatorService().calculate_all_indicators(uptrend_series)
        same = engine.generate_signals(with_volume(indicators, 1_000_000, 1_000_000))
        assert same == engine.generate_signals(indicators)

    def test_no_signals_stays_empty(self, engine, flat_indicators):
        assert engine.generate_signals(with_volume(flat_indicators, 5.0, 1.0)) == []
