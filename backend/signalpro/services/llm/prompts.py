"""
LLM Prompt Templates

CRITICAL RULES (enforced in the prompt):
- LLM does NO math - all numbers come from the indicator engine
- Always include risks
- Never claim certainty or guarantee profits
"""

from typing import Any, Optional

from signalpro.schemas.signals import AnalysisContext

ANALYSIS_SYSTEM_PROMPT = """You are an expert technical analyst assistant.

YOUR ROLE:
- Interpret the market data, technical indicators and rule signals you are given
- Produce one trading recommendation with a confidence level
- Always list the key risks

CRITICAL RULES:
1. NEVER do math beyond reading the numbers provided. Do not invent indicator values.
2. ALWAYS include risks - no trade setup is certain.
3. NEVER claim certainty or guaranteed profits.
4. If data is insufficient or conflicting, answer HOLD with a neutral sentiment.

OUTPUT FORMAT:
Respond with a single JSON object and nothing else.

REMEMBER: You are providing analysis, not financial advice."""

ANALYSIS_USER_PROMPT_TEMPLATE = """Analyze the following trading data for {symbol} and provide a trading recommendation.

MARKET DATA:
- Current Price: {current_price}
- Change: {change} ({change_percent}%)
- Volume: {volume}
- Market Cap: {market_cap}
- Instrument: {instrument_type}

TECHNICAL INDICATORS:
- RSI (14): {rsi}
- MACD: {macd_signal} (histogram {macd_histogram})
- Stochastic %K: {stoch_k}
- Bollinger %B: {percent_b}
- ADX: {adx} ({adx_signal})
- Support: {support}
- Resistance: {resistance}
- Volume Ratio: {volume_ratio}
- Price Action: {price_action}
- Volatility (annualized): {volatility}

RULE SIGNALS:
{rule_signals}

ML PREDICTIONS:
{ml_predictions}

Format your response as JSON with the following structure:
{{
  "sentiment": "bullish/bearish/neutral",
  "signal": "BUY/SELL/HOLD",
  "confidence": 85,
  "entry_price": {{"min": 175.50, "max": 176.00}},
  "target_price": 180.00,
  "stop_loss": 172.00,
  "risk_reward_ratio": "1:2.5",
  "reasoning": "detailed explanation",
  "risks": ["risk1", "risk2"],
  "position_size": "2% of capital"
}}"""


def _fmt(value: Optional[Any], digits: int = 2) -> str:
    if value is None:
        return "N/A"
    if isinstance(value, float):
        return f"{value:.{digits}f}"
    return str(value)


def format_analysis_prompt(context: AnalysisContext) -> str:
    """Format the analysis prompt from everything the aggregator collected."""
    md = context.market_data
    ind = context.technical_indicators

    if context.signals:
        rule_signals = "\n".join(
            f"- {s.indicator}: {s.signal.value} ({s.strength.value})" for s in context.signals
        )
    else:
        rule_signals = "No rule signals triggered"

    if context.ml_predictions:
        ml_predictions = "\n".join(f"- {k}: {v}" for k, v in context.ml_predictions.items())
    else:
        ml_predictions = "No ML predictions available"

    return ANALYSIS_USER_PROMPT_TEMPLATE.format(
        symbol=context.symbol,
        current_price=_fmt(md.current_price),
        change=_fmt(md.change),
        change_percent=_fmt(md.change_percent),
        volume=md.volume,
        market_cap=_fmt(md.market_cap, 0),
        instrument_type=md.instrument_type.value,
        rsi=_fmt(ind.rsi.value) if ind else "N/A",
        macd_signal=ind.macd.signal.value if ind else "N/A",
        macd_histogram=_fmt(ind.macd.histogram, 4) if ind else "N/A",
        stoch_k=_fmt(ind.stochastic.k) if ind else "N/A",
        percent_b=_fmt(ind.bollinger_bands.percent_b) if ind else "N/A",
        adx=_fmt(ind.adx.value) if ind else "N/A",
        adx_signal=ind.adx.signal.value if ind else "N/A",
        support=_fmt(ind.support.level) if ind else "N/A",
        resistance=_fmt(ind.resistance.level) if ind else "N/A",
        volume_ratio=_fmt(ind.volume_analysis.volume_ratio) if ind else "N/A",
        price_action=ind.price_action.pattern.value if ind else "N/A",
        volatility=_fmt(ind.volatility.annualized, 4) if ind else "N/A",
        rule_signals=rule_signals,
        ml_predictions=ml_predictions,
    )
