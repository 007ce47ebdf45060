"""
Signal Aggregator Service Interface

Defines the contract for composite trade signals and the two optional
collaborators the aggregator can be given.
"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Union

from signalpro.services.base import BaseService
from signalpro.schemas.market import MarketData
from signalpro.schemas.signals import (
    AIAnalysis,
    AnalysisContext,
    CompositeTradeSignal,
    SignalErrorRecord,
)

BatchItem = Union[CompositeTradeSignal, SignalErrorRecord]
SignalCallback = Callable[[list[BatchItem]], Union[None, Awaitable[None]]]


class MLPredictor(ABC):
    """External prediction source. Its output is opaque to the aggregator."""

    @abstractmethod
    async def predict(self, symbol: str, market_data: MarketData) -> Optional[dict[str, Any]]:
        pass


class AnalysisProvider(ABC):
    """
    Narrative analysis capability (normally an LLM).

    May raise anything; the aggregator replaces a failed analysis with
    the deterministic RSI/MACD fallback.
    """

    @abstractmethod
    async def analyze(self, context: AnalysisContext) -> AIAnalysis:
        pass


class TradeSignalServiceInterface(BaseService[str, CompositeTradeSignal]):
    """
    Signal Aggregator Contract.

    INPUT: symbol
        - Upper-cased before any cache lookup

    OUTPUT: CompositeTradeSignal
        - market data, indicators (or None), rule signals,
          optional ML predictions, AI or fallback analysis, summary

    Only a market data failure is raised to the caller.
    """

    @property
    def name(self) -> str:
        return "TradeSignalService"

    @abstractmethod
    async def generate_trade_signals(self, symbol: str) -> CompositeTradeSignal:
        pass

    @abstractmethod
    async def get_batch_signals(self, symbols: list[str]) -> list[BatchItem]:
        """One entry per input symbol, in input order. Never raises per symbol."""
        pass
