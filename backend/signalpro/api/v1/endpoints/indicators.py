"""
Indicator API Endpoints

Endpoints for technical indicator calculations.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from signalpro.api.deps import get_trade_signals, to_http_exception
from signalpro.schemas.market import OHLCV
from signalpro.schemas.signals import IndicatorSignals
from signalpro.services.base import ServiceError
from signalpro.services.signals import TradeSignalService

logger = logging.getLogger(__name__)

router = APIRouter()


class CalculateRequest(BaseModel):
    """Caller-supplied daily series, ascending by date."""

    data: list[OHLCV] = Field(..., min_length=1)


@router.post("/calculate", response_model=IndicatorSignals)
async def calculate_indicators(
    request: CalculateRequest,
    service: TradeSignalService = Depends(get_trade_signals),
):
    """
    Indicators and rule signals for a posted series.

    Fewer than 50 bars returns null indicators and no signals.
    Repeated dates are rejected with 400.
    """
    series = sorted(request.data, key=lambda bar: bar.date)
    try:
        return service.calculate_indicators(series)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/signals/{symbol}", response_model=IndicatorSignals)
async def get_indicator_signals(
    symbol: str,
    period: Optional[str] = None,
    service: TradeSignalService = Depends(get_trade_signals),
):
    """Indicators and rule signals for a symbol, without AI analysis."""
    try:
        return await service.get_indicator_signals(symbol, period)
    except ServiceError as e:
        logger.warning(f"Indicator signals failed for {symbol}: {e}")
        raise to_http_exception(e)
