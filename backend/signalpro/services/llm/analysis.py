"""
AI Analysis Provider

Uses the LLM client to produce an AIAnalysis for a symbol.

CRITICAL: LLM does NO math. All numbers come from the indicator engine.
Any failure is raised as AIAnalysisError; the signal aggregator then
switches to its deterministic fallback.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from signalpro.schemas.signals import (
    AIAnalysis,
    AnalysisContext,
    AnalysisSource,
    Sentiment,
    TradeAction,
)
from signalpro.services.base import AIAnalysisError
from signalpro.services.llm.client import LLMClient
from signalpro.services.llm.prompts import ANALYSIS_SYSTEM_PROMPT, format_analysis_prompt
from signalpro.services.signals.interface import AnalysisProvider

logger = logging.getLogger(__name__)

# camelCase keys some models echo back from older prompt formats
KEY_ALIASES = {
    "entryPrice": "entry_price",
    "targetPrice": "target_price",
    "stopLoss": "stop_loss",
    "riskRewardRatio": "risk_reward_ratio",
    "positionSize": "position_size",
}


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code block, if any."""
    content = content.strip()
    if content.startswith("```"):
        lines = content.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        content = "\n".join(lines).strip()
    return content


def parse_structured_text(response: str) -> AIAnalysis:
    """
    Best-effort analysis from a free-text answer.

    Starts neutral and lets keywords move signal and sentiment; a later
    keyword wins over an earlier one in the check order.
    """
    text = response.lower()

    signal = TradeAction.HOLD
    if "buy" in text:
        signal = TradeAction.BUY
    if "sell" in text:
        signal = TradeAction.SELL

    sentiment = Sentiment.NEUTRAL
    if "bullish" in text:
        sentiment = Sentiment.BULLISH
    if "bearish" in text:
        sentiment = Sentiment.BEARISH

    return AIAnalysis(
        sentiment=sentiment,
        signal=signal,
        confidence=50,
        entry_price=None,
        target_price=None,
        stop_loss=None,
        risk_reward_ratio="1:1",
        reasoning=response,
        risks=["Unable to parse AI response"],
        position_size="1% of capital",
        source=AnalysisSource.AI_TEXT,
    )


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    normalized = {KEY_ALIASES.get(k, k): v for k, v in data.items()}
    if isinstance(normalized.get("signal"), str):
        normalized["signal"] = normalized["signal"].upper()
    if isinstance(normalized.get("sentiment"), str):
        normalized["sentiment"] = normalized["sentiment"].lower()
    normalized["source"] = AnalysisSource.AI
    return normalized


def parse_ai_response(content: str) -> AIAnalysis:
    """JSON first, structured text if the answer is not a usable object."""
    cleaned = strip_code_fences(content)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"AI response is not JSON ({e}), parsing as text")
        return parse_structured_text(content)

    if not isinstance(data, dict):
        return parse_structured_text(content)

    try:
        return AIAnalysis(**_normalize_keys(data))
    except PydanticValidationError as e:
        logger.warning(f"AI response JSON did not match the analysis shape: {e}")
        return parse_structured_text(content)


class LLMAnalysisProvider(AnalysisProvider):
    """AnalysisProvider backed by an LLMClient."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    async def analyze(self, context: AnalysisContext) -> AIAnalysis:
        try:
            response = await self.llm_client.generate(
                system_prompt=ANALYSIS_SYSTEM_PROMPT,
                user_prompt=format_analysis_prompt(context),
                temperature=0.3,
                response_format="json",
            )
        except Exception as e:
            raise AIAnalysisError("LLMAnalysisProvider", f"LLM call failed: {e}") from e

        if not response.content or not response.content.strip():
            raise AIAnalysisError("LLMAnalysisProvider", "LLM returned an empty response")

        analysis = parse_ai_response(response.content)
        logger.info(
            f"AI analysis for {context.symbol}: {analysis.signal.value} "
            f"({analysis.confidence:.0f}%) via {response.provider.value}"
        )
        return analysis
