"""
API v1 Router

All API endpoints.
"""

from fastapi import APIRouter

from signalpro.api.v1.endpoints import market, indicators, signals

router = APIRouter()

# Include all endpoint routers
router.include_router(market.router, prefix="/market", tags=["Market Data"])
router.include_router(indicators.router, prefix="/indicators", tags=["Indicators"])
router.include_router(signals.router, prefix="/signals", tags=["Trade Signals"])
