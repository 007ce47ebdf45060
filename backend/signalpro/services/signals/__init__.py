"""
Signal Layer

CONTRACT:
    Input:  symbol (or IndicatorResultSet for the rule engine)
    Output: CompositeTradeSignal / list[RuleSignal]

RESPONSIBILITIES:
    - Rule engine: RSI, MACD, Stochastic and Bollinger votes with volume confirmation
    - Aggregator: market data + indicators + rules + optional ML/AI into one signal
    - Batch (settle-all) and polling delivery
    - Deterministic RSI/MACD fallback when AI analysis is unavailable
"""

from signalpro.services.signals.interface import (
    AnalysisProvider,
    MLPredictor,
    TradeSignalServiceInterface,
)
from signalpro.services.signals.rules import SignalRuleEngine, upgrade_strength
from signalpro.services.signals.service import (
    TradeSignalService,
    RealTimeSubscription,
    build_fallback_analysis,
)

__all__ = [
    "AnalysisProvider",
    "MLPredictor",
    "TradeSignalServiceInterface",
    "SignalRuleEngine",
    "upgrade_strength",
    "TradeSignalService",
    "RealTimeSubscription",
    "build_fallback_analysis",
]
