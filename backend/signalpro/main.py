"""
SignalPro Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from signalpro.core.config import Settings, build_market_data_config, get_settings
from signalpro.core.logging import configure_logging
from signalpro.api.v1 import router as api_v1_router
from signalpro.services.data_ingestion import MarketDataAggregator
from signalpro.services.llm import LLMAnalysisProvider, build_llm_client
from signalpro.services.signals import TradeSignalService

logger = logging.getLogger(__name__)


def build_services(settings: Settings) -> tuple[MarketDataAggregator, TradeSignalService]:
    """Wire the aggregator and signal service from settings."""
    market_data = MarketDataAggregator(build_market_data_config(settings))

    analysis_provider = None
    if settings.enable_ai_analysis:
        llm_client = build_llm_client(settings)
        if llm_client.is_configured:
            analysis_provider = LLMAnalysisProvider(llm_client)

    trade_signals = TradeSignalService(
        market_data,
        analysis_provider=analysis_provider,
        cache_ttl_seconds=settings.signal_cache_ttl_seconds,
        poll_interval_seconds=settings.realtime_poll_interval_seconds,
        max_realtime_symbols=settings.realtime_max_symbols,
        default_period=settings.default_period,
    )
    return market_data, trade_signals


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    market_data, trade_signals = build_services(settings)
    app.state.market_data = market_data
    app.state.trade_signals = trade_signals

    enabled = [p.name for p in market_data.config.enabled_providers()]
    logger.info(f"Market data providers: {', '.join(enabled) or 'none'}")
    logger.info(
        f"AI analysis: {'enabled' if trade_signals.analysis_provider else 'fallback only'}"
    )

    yield

    # Shutdown
    logger.info("Shutting down...")
    await market_data.close()


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
    SignalPro Trade Signal API

    ## Architecture
    - **Market Data**: Yahoo Finance, Alpha Vantage, Finnhub, Polygon.io, IEX Cloud with priority fallback
    - **Indicator Engine**: Technical indicators (pure Python/NumPy)
    - **Signal Rules**: Deterministic BUY/SELL votes with volume confirmation
    - **AI Analysis**: Optional LLM narrative with a rule-based fallback
    """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    return app


app = create_app()
