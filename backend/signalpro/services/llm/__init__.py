"""
AI Analysis Layer

CONTRACT:
    Input:  AnalysisContext (market data + indicators + rule signals + ML predictions)
    Output: AIAnalysis

LLM USAGE:
    - Anthropic Claude or OpenAI, whichever is primary, the other as fallback

CRITICAL RULES:
    - LLM does NO math - all numbers come from the indicator engine
    - Must always include risks

FALLBACK BEHAVIOR:
    - Non-JSON answers are parsed as structured text
    - Unreachable LLM raises AIAnalysisError; the signal aggregator
      then uses its RSI/MACD fallback
    - System remains functional without LLM API keys
"""

from signalpro.services.llm.client import (
    LLMClient,
    LLMConfig,
    LLMProvider,
    LLMResponse,
    build_llm_client,
)
from signalpro.services.llm.analysis import (
    LLMAnalysisProvider,
    parse_ai_response,
    parse_structured_text,
    strip_code_fences,
)

__all__ = [
    "LLMClient",
    "LLMConfig",
    "LLMProvider",
    "LLMResponse",
    "build_llm_client",
    "LLMAnalysisProvider",
    "parse_ai_response",
    "parse_structured_text",
    "strip_code_fences",
]
