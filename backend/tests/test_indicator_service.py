"""Tests for IndicatorService over synthetic series."""

import math

import pytest

from signalpro.schemas.indicators import (
    DirectionSignal,
    PricePattern,
    VolatilityLevel,
    ZoneSignal,
)
from signalpro.services.indicators import IndicatorService, MIN_HISTORY

from conftest import make_series


@pytest.fixture
def service() -> IndicatorService:
    return IndicatorService()


class TestMinimumHistory:
    def test_empty_series(self, service):
        assert service.calculate_all_indicators([]) is None

    def test_below_minimum(self, service):
        series = make_series([100.0 + i for i in range(MIN_HISTORY - 1)])
        assert service.calculate_all_indicators(series) is None

    def test_exactly_minimum(self, service):
        series = make_series([100.0 + i for i in range(MIN_HISTORY)])
        assert service.calculate_all_indicators(series) is not None


class TestUptrend:
    def test_momentum_reads_overbought(self, service, uptrend_series):
        result = service.calculate_all_indicators(uptrend_series)

        assert result.rsi.value == 100.0
        assert result.rsi.signal == ZoneSignal.OVERBOUGHT
        assert result.rsi.strength == pytest.approx(1.0)
        assert result.stochastic.signal == ZoneSignal.OVERBOUGHT
        assert result.roc.value > 0
        assert result.roc.signal == DirectionSignal.BULLISH

    def test_bands_and_levels(self, service, uptrend_series):
        result = service.calculate_all_indicators(uptrend_series)

        assert result.bollinger_bands.percent_b > 0.8
        assert result.bollinger_bands.upper > result.bollinger_bands.middle
        assert result.resistance.level == 159.0
        assert result.support.level == 150.0
        assert result.price_action.pattern == PricePattern.UPTREND
        assert result.price_action.momentum == "positive"

    def test_series_lengths(self, service, uptrend_series):
        result = service.calculate_all_indicators(uptrend_series)

        assert len(result.sma) == 60 - 20 + 1
        assert len(result.ema) == 60 - 12 + 1
        assert len(result.volume_sma) == 60 - 20 + 1
        assert result.sma[-1] == pytest.approx(149.5)

    def test_obv_rises(self, service, uptrend_series):
        result = service.calculate_all_indicators(uptrend_series)
        assert result.obv.value == pytest.approx(59 * 1_000_000)
        assert result.obv.signal == DirectionSignal.BULLISH

    def test_constant_volume_is_not_above_average(self, service, uptrend_series):
        result = service.calculate_all_indicators(uptrend_series)
        assert result.volume_analysis.trend == "below_average"
        assert result.volume_analysis.volume_ratio == pytest.approx(1.0)


class TestFlatSeries:
    def test_neutral_readings(self, service, flat_series):
        result = service.calculate_all_indicators(flat_series)

        assert result.rsi.value == 50.0
        assert result.rsi.signal == ZoneSignal.NEUTRAL
        assert result.mfi.value == 50.0
        assert result.stochastic.k == 50.0
        assert result.williams_r.value == -50.0
        assert result.cci.value == 0.0

    def test_degenerate_volatility(self, service, flat_series):
        result = service.calculate_all_indicators(flat_series)

        assert result.bollinger_bands.percent_b == 0.5
        assert result.bollinger_bands.bandwidth == 0.0
        assert result.atr.value == 0.0
        assert result.volatility.annualized == 0.0
        assert result.volatility.level == VolatilityLevel.LOW

    def test_macd_is_zero(self, service, flat_series):
        result = service.calculate_all_indicators(flat_series)
        assert result.macd.macd_line == 0.0
        assert result.macd.histogram == 0.0


class TestRandomWalk:
    def test_outputs_are_finite_and_bounded(self, service, random_walk_series):
        result = service.calculate_all_indicators(random_walk_series)
        dumped = result.model_dump()

        def walk(value):
            if isinstance(value, float):
                assert math.isfinite(value)
            elif isinstance(value, dict):
                for v in value.values():
                    walk(v)
            elif isinstance(value, list):
                for v in value:
                    walk(v)

        walk(dumped)
        assert 0 <= result.rsi.value <= 100
        assert 0 <= result.stochastic.k <= 100
        assert result.atr.value >= 0
        assert result.bollinger_bands.upper >= result.bollinger_bands.lower

    def test_does_not_mutate_input(self, service, random_walk_series):
        before = [bar.model_dump() for bar in random_walk_series]
        service.calculate_all_indicators(random_walk_series)
        assert [bar.model_dump() for bar in random_walk_series] == before


class TestServiceContract:
    @pytest.mark.asyncio
    async def test_execute_delegates(self, service, uptrend_series):
        result = await service.execute(uptrend_series)
        assert result.rsi.value == 100.0

    @pytest.mark.asyncio
    async def test_health_check(self, service):
        assert await service.health_check() is True

    def test_name(self, service):
        assert service.name == "IndicatorService"
