"""
API Dependencies

Service instances are built once in the application lifespan and kept
on app.state; endpoints receive them through these dependencies.
"""

from fastapi import HTTPException, Request

from signalpro.services.base import AllProvidersFailedError, ServiceError, ValidationError
from signalpro.services.data_ingestion import MarketDataAggregator
from signalpro.services.signals import TradeSignalService


def get_market_data(request: Request) -> MarketDataAggregator:
    return request.app.state.market_data


def get_trade_signals(request: Request) -> TradeSignalService:
    return request.app.state.trade_signals


def to_http_exception(error: ServiceError) -> HTTPException:
    """Map a service error onto an HTTP status."""
    if isinstance(error, ValidationError):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, AllProvidersFailedError):
        return HTTPException(
            status_code=502,
            detail={
                "message": error.message,
                "errors": [{"provider": e.provider, "error": e.cause} for e in error.errors],
            },
        )
    return HTTPException(status_code=500, detail=error.message)
