"""
Signal Aggregator Service Implementation

Orchestrates the per-symbol pipeline:
    Market Data → Indicators → Rule Signals → ML Predictions → AI Analysis → Summary

Results are cached per symbol for a short window. Only a market data
failure reaches the caller; every later stage degrades.
"""

import asyncio
import inspect
import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from signalpro.schemas.market import OHLCV, MarketData, CacheStats
from signalpro.schemas.indicators import IndicatorResultSet, DirectionSignal
from signalpro.schemas.signals import (
    AIAnalysis,
    AnalysisContext,
    AnalysisSource,
    CompositeTradeSignal,
    EntryRange,
    IndicatorSignals,
    Sentiment,
    SignalErrorRecord,
    TradeAction,
    TradeSummary,
)
from signalpro.services.base import ValidationError
from signalpro.services.data_ingestion.aggregator import MarketDataAggregator, resolve_period
from signalpro.services.indicators import IndicatorService
from signalpro.services.signals.interface import (
    AnalysisProvider,
    BatchItem,
    MLPredictor,
    SignalCallback,
    TradeSignalServiceInterface,
)
from signalpro.services.signals.rules import SignalRuleEngine

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# FALLBACK ANALYSIS
# =============================================================================


def build_fallback_analysis(
    market_data: MarketData, indicators: Optional[IndicatorResultSet]
) -> AIAnalysis:
    """
    Deterministic analysis from RSI and MACD alone.

    Used whenever no analysis provider is configured or it fails.
    """
    price = market_data.current_price
    rsi_value = indicators.rsi.value if indicators else 50.0
    macd_signal = indicators.macd.signal if indicators else DirectionSignal.NEUTRAL

    signal = TradeAction.HOLD
    sentiment = Sentiment.NEUTRAL
    confidence = 50

    if rsi_value < 30 and macd_signal == DirectionSignal.BULLISH:
        signal, sentiment, confidence = TradeAction.BUY, Sentiment.BULLISH, 75
    elif rsi_value > 70 and macd_signal == DirectionSignal.BEARISH:
        signal, sentiment, confidence = TradeAction.SELL, Sentiment.BEARISH, 75

    is_buy = signal == TradeAction.BUY

    return AIAnalysis(
        sentiment=sentiment,
        signal=signal,
        confidence=confidence,
        entry_price=EntryRange(min=price * 0.99, max=price * 1.01),
        target_price=price * 1.05 if is_buy else price * 0.95,
        stop_loss=price * 0.97 if is_buy else price * 1.03,
        risk_reward_ratio="1:2",
        reasoning=f"Fallback analysis based on RSI ({rsi_value:.2f}) and MACD ({macd_signal.value})",
        risks=["Limited data available", "Fallback analysis used"],
        position_size="1% of capital",
        source=AnalysisSource.FALLBACK,
    )


def _summarize(analysis: AIAnalysis) -> TradeSummary:
    return TradeSummary(
        signal=analysis.signal,
        confidence=analysis.confidence,
        sentiment=analysis.sentiment,
        entry_price=analysis.entry_price,
        target_price=analysis.target_price,
        stop_loss=analysis.stop_loss,
        risk_reward_ratio=analysis.risk_reward_ratio,
    )


# =============================================================================
# REAL-TIME POLLING
# =============================================================================


class RealTimeSubscription:
    """
    Handle for a polling stream.

    stop() cancels the poll task; once it returns no further callback
    invocation starts.
    """

    def __init__(self, symbols: list[str]):
        self.symbols = symbols
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @property
    def active(self) -> bool:
        return not self._stopped

    def start(self, poller) -> None:
        self._task = asyncio.create_task(poller)

    def stop(self) -> None:
        self._stopped = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait_closed(self) -> None:
        """Wait for the poll task to finish unwinding after stop()."""
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass


# =============================================================================
# SERVICE
# =============================================================================


class TradeSignalService(TradeSignalServiceInterface):
    """
    Signal Aggregator.

    Owns the composite-signal cache. Market data comes from an injected
    MarketDataAggregator which owns its own cache.
    """

    def __init__(
        self,
        market_data: MarketDataAggregator,
        indicator_service: Optional[IndicatorService] = None,
        rule_engine: Optional[SignalRuleEngine] = None,
        analysis_provider: Optional[AnalysisProvider] = None,
        ml_predictor: Optional[MLPredictor] = None,
        cache_ttl_seconds: float = 300.0,
        poll_interval_seconds: float = 60.0,
        max_realtime_symbols: int = 5,
        default_period: str = "6mo",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.market_data = market_data
        self.indicator_service = indicator_service or IndicatorService()
        self.rule_engine = rule_engine or SignalRuleEngine()
        self.analysis_provider = analysis_provider
        self.ml_predictor = ml_predictor
        self.cache_ttl_seconds = cache_ttl_seconds
        self.poll_interval_seconds = poll_interval_seconds
        self.max_realtime_symbols = max_realtime_symbols
        self.default_period = resolve_period(default_period)
        self._clock = clock
        # symbol -> (fetched_at, signal)
        self._cache: dict[str, tuple[float, CompositeTradeSignal]] = {}

    async def execute(self, input_data: str) -> CompositeTradeSignal:
        return await self.generate_trade_signals(input_data)

    # -------------------------------------------------------------------------
    # Composite signals
    # -------------------------------------------------------------------------

    async def generate_trade_signals(self, symbol: str) -> CompositeTradeSignal:
        """Build (or serve from cache) the composite signal for one symbol."""
        symbol = symbol.strip().upper()

        cached = self._get_cached(symbol)
        if cached is not None:
            logger.debug(f"Signal cache hit for {symbol}")
            return cached

        # =================================================================
        # STAGE 1: Market data (hard failure propagates)
        # =================================================================
        market_data = await self.market_data.get_market_data(symbol, self.default_period)

        # =================================================================
        # STAGE 2: Indicators and rule signals
        # =================================================================
        indicators = self.indicator_service.calculate_all_indicators(market_data.historical)
        signals = self.rule_engine.generate_signals(indicators)

        # =================================================================
        # STAGE 3: Optional ML predictions
        # =================================================================
        ml_predictions = await self._predict(symbol, market_data)

        # =================================================================
        # STAGE 4: AI analysis with deterministic fallback
        # =================================================================
        context = AnalysisContext(
            symbol=symbol,
            market_data=market_data,
            technical_indicators=indicators,
            signals=signals,
            ml_predictions=ml_predictions,
        )
        analysis = await self._analyze(context)

        trade_signal = CompositeTradeSignal(
            symbol=symbol,
            timestamp=_utcnow(),
            market_data=market_data,
            technical_indicators=indicators,
            signals=signals,
            ml_predictions=ml_predictions,
            ai_analysis=analysis,
            summary=_summarize(analysis),
        )

        self._cache[symbol] = (self._clock(), trade_signal)
        logger.info(
            f"Trade signal for {symbol}: {trade_signal.summary.signal.value} "
            f"({trade_signal.summary.confidence:.0f}%, {analysis.source.value})"
        )
        return trade_signal

    async def _predict(self, symbol: str, market_data: MarketData) -> Optional[dict]:
        if self.ml_predictor is None:
            return None
        try:
            return await self.ml_predictor.predict(symbol, market_data)
        except Exception as e:
            logger.warning(f"ML prediction failed for {symbol}: {e}")
            return None

    async def _analyze(self, context: AnalysisContext) -> AIAnalysis:
        if self.analysis_provider is None:
            return build_fallback_analysis(context.market_data, context.technical_indicators)
        try:
            return await self.analysis_provider.analyze(context)
        except Exception as e:
            logger.warning(f"AI analysis failed for {context.symbol}: {e}, using fallback")
            return build_fallback_analysis(context.market_data, context.technical_indicators)

    # -------------------------------------------------------------------------
    # Batch and streaming
    # -------------------------------------------------------------------------

    async def get_batch_signals(self, symbols: list[str]) -> list[BatchItem]:
        """Settle every symbol independently; failures become error records."""
        results = await asyncio.gather(
            *(self.generate_trade_signals(s) for s in symbols),
            return_exceptions=True,
        )

        batch: list[BatchItem] = []
        for symbol, result in zip(symbols, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, BaseException):
                logger.warning(f"Batch signal failed for {symbol}: {result}")
                batch.append(
                    SignalErrorRecord(symbol=symbol, error=str(result), timestamp=_utcnow())
                )
            else:
                batch.append(result)
        return batch

    async def get_real_time_signals(
        self, symbols: list[str], on_update: SignalCallback
    ) -> RealTimeSubscription:
        """
        Start polling batch signals for up to `max_realtime_symbols` symbols.

        The callback may be a plain function or a coroutine function.
        """
        if not symbols:
            raise ValidationError(self.name, "At least one symbol is required")
        if len(symbols) > self.max_realtime_symbols:
            raise ValidationError(
                self.name,
                f"Real-time signals support at most {self.max_realtime_symbols} symbols",
                {"requested": len(symbols)},
            )

        subscription = RealTimeSubscription([s.strip().upper() for s in symbols])
        subscription.start(self._poll(subscription, on_update))
        logger.info(f"Real-time signals started for {', '.join(subscription.symbols)}")
        return subscription

    async def _poll(self, subscription: RealTimeSubscription, on_update: SignalCallback) -> None:
        while subscription.active:
            await asyncio.sleep(self.poll_interval_seconds)
            batch = await self.get_batch_signals(subscription.symbols)
            if not subscription.active:
                break
            try:
                result = on_update(batch)
                if inspect.isawaitable(result):
                    await result
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Real-time signal callback failed: {e}")

    # -------------------------------------------------------------------------
    # Indicator views
    # -------------------------------------------------------------------------

    async def get_indicator_signals(
        self, symbol: str, period: Optional[str] = None
    ) -> IndicatorSignals:
        """Indicators plus rule signals for a symbol, without AI analysis."""
        symbol = symbol.strip().upper()
        market_data = await self.market_data.get_market_data(
            symbol, resolve_period(period) if period else self.default_period
        )
        indicators = self.indicator_service.calculate_all_indicators(market_data.historical)
        return IndicatorSignals(
            symbol=symbol,
            indicators=indicators,
            signals=self.rule_engine.generate_signals(indicators),
            timestamp=_utcnow(),
        )

    def calculate_indicators(self, series: Sequence[OHLCV]) -> IndicatorSignals:
        """
        Indicators plus rule signals for a caller-supplied series.

        The series must be ascending with no repeated dates.
        """
        for prev, bar in zip(series, series[1:]):
            if bar.date <= prev.date:
                problem = "Duplicate" if bar.date == prev.date else "Out of order"
                raise ValidationError(
                    self.name, f"{problem} bar date in series: {bar.date.isoformat()}"
                )

        indicators = self.indicator_service.calculate_all_indicators(series)
        return IndicatorSignals(
            indicators=indicators,
            signals=self.rule_engine.generate_signals(indicators),
            timestamp=_utcnow(),
        )

    # -------------------------------------------------------------------------
    # Cache
    # -------------------------------------------------------------------------

    def _get_cached(self, symbol: str) -> Optional[CompositeTradeSignal]:
        entry = self._cache.get(symbol)
        if entry is None:
            return None
        fetched_at, trade_signal = entry
        if self._clock() - fetched_at < self.cache_ttl_seconds:
            return trade_signal
        del self._cache[symbol]
        return None

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.info("Trade signal cache cleared")

    def get_cache_stats(self) -> CacheStats:
        return CacheStats(size=len(self._cache), timeout=self.cache_ttl_seconds)

    async def health_check(self) -> bool:
        return await self.market_data.health_check()
