"""
Trade Signal API Endpoints

Composite trade signals for one symbol or a batch.
"""

from typing import Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from signalpro.api.deps import get_trade_signals, to_http_exception
from signalpro.schemas.market import CacheStats
from signalpro.schemas.signals import CompositeTradeSignal, SignalErrorRecord
from signalpro.services.base import ServiceError
from signalpro.services.signals import TradeSignalService

router = APIRouter()

MAX_BATCH_SYMBOLS = 20


class BatchRequest(BaseModel):
    symbols: list[str] = Field(..., min_length=1, max_length=MAX_BATCH_SYMBOLS)


class BatchResponse(BaseModel):
    results: list[Union[CompositeTradeSignal, SignalErrorRecord]]


@router.post("/batch", response_model=BatchResponse)
async def get_batch_signals(
    request: BatchRequest,
    service: TradeSignalService = Depends(get_trade_signals),
):
    """
    Signals for several symbols.

    Each result is either a trade signal or an error record, in request order.
    """
    symbols = [s.strip().upper() for s in request.symbols]
    return BatchResponse(results=await service.get_batch_signals(symbols))


@router.get("/cache/stats", response_model=CacheStats)
async def get_signal_cache_stats(service: TradeSignalService = Depends(get_trade_signals)):
    return service.get_cache_stats()


@router.post("/cache/clear")
async def clear_signal_cache(service: TradeSignalService = Depends(get_trade_signals)):
    service.clear_cache()
    return {"message": "Trade signal cache cleared"}


@router.get("/{symbol}", response_model=CompositeTradeSignal)
async def get_trade_signal(
    symbol: str,
    service: TradeSignalService = Depends(get_trade_signals),
):
    """Composite trade signal: market data, indicators, rule signals, analysis, summary."""
    try:
        return await service.generate_trade_signals(symbol)
    except ServiceError as e:
        raise to_http_exception(e)
