"""
Application Configuration

All settings loaded from environment variables.
Provider descriptors are derived once from these settings and injected
into the market data aggregator.
"""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "SignalPro Backend"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Market data providers (enabled when a key is present)
    yahoo_enabled: bool = True
    alpha_vantage_api_key: Optional[str] = None
    alpha_vantage_base_url: str = "https://www.alphavantage.co/query"
    finnhub_api_key: Optional[str] = None
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    polygon_api_key: Optional[str] = None
    polygon_base_url: str = "https://api.polygon.io"
    iex_api_key: Optional[str] = None
    iex_base_url: str = "https://cloud.iexapis.com/stable"

    # Caching and timeouts
    market_data_cache_ttl_seconds: float = 120.0
    signal_cache_ttl_seconds: float = 300.0
    provider_timeout_seconds: float = 10.0
    default_period: str = "6mo"

    # Real-time polling
    realtime_poll_interval_seconds: float = 60.0
    realtime_max_symbols: int = 5

    # LLM Providers (AI analysis is optional)
    enable_ai_analysis: bool = True
    anthropic_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    llm_primary_provider: str = "anthropic"  # Options: anthropic, openai
    llm_analysis_model: str = "claude-3-5-sonnet-latest"
    llm_openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


# =============================================================================
# PROVIDER CONFIGURATION
# =============================================================================


class RateLimit(BaseModel):
    """Informational rate-limit hints. Not enforced by the core."""

    requests_per_minute: int = Field(..., ge=0)
    requests_per_hour: int = Field(..., ge=0)


class ProviderDescriptor(BaseModel):
    """Static description of one market data provider."""

    model_config = {"frozen": True}

    key: str
    name: str
    enabled: bool
    priority: int = Field(..., ge=0, description="Lower is tried first")
    rate_limit: RateLimit
    has_credential: bool = False
    api_key: Optional[str] = Field(default=None, repr=False)
    base_url: Optional[str] = None
    features: tuple[str, ...] = ()


class MarketDataConfig(BaseModel):
    """Validated provider set plus cache/timeout policy for the aggregator."""

    model_config = {"frozen": True}

    providers: tuple[ProviderDescriptor, ...]
    cache_ttl_seconds: float = Field(default=120.0, gt=0)
    provider_timeout_seconds: float = Field(default=10.0, gt=0)

    @model_validator(mode="after")
    def _check_providers(self) -> "MarketDataConfig":
        keys = [p.key for p in self.providers]
        if len(keys) != len(set(keys)):
            raise ValueError("Provider keys must be unique")
        priorities = [p.priority for p in self.providers]
        if len(priorities) != len(set(priorities)):
            raise ValueError("Provider priorities must be unique")
        return self

    def enabled_providers(self) -> list[ProviderDescriptor]:
        """Enabled providers in ascending priority order."""
        return sorted(
            (p for p in self.providers if p.enabled),
            key=lambda p: p.priority,
        )


def build_market_data_config(settings: "Settings") -> MarketDataConfig:
    """Derive provider descriptors from settings. Called once at startup."""
    providers = (
        ProviderDescriptor(
            key="yahoo",
            name="Yahoo Finance",
            enabled=settings.yahoo_enabled,
            priority=1,
            rate_limit=RateLimit(requests_per_minute=100, requests_per_hour=1000),
            features=("quotes", "historical", "fundamentals"),
        ),
        ProviderDescriptor(
            key="alpha_vantage",
            name="Alpha Vantage",
            enabled=bool(settings.alpha_vantage_api_key),
            priority=2,
            rate_limit=RateLimit(requests_per_minute=5, requests_per_hour=500),
            has_credential=bool(settings.alpha_vantage_api_key),
            api_key=settings.alpha_vantage_api_key,
            base_url=settings.alpha_vantage_base_url,
            features=("quotes", "historical", "fundamentals", "technical_indicators"),
        ),
        ProviderDescriptor(
            key="finnhub",
            name="Finnhub",
            enabled=bool(settings.finnhub_api_key),
            priority=3,
            rate_limit=RateLimit(requests_per_minute=60, requests_per_hour=3600),
            has_credential=bool(settings.finnhub_api_key),
            api_key=settings.finnhub_api_key,
            base_url=settings.finnhub_base_url,
            features=("quotes", "historical", "news", "sentiment"),
        ),
        ProviderDescriptor(
            key="polygon",
            name="Polygon.io",
            enabled=bool(settings.polygon_api_key),
            priority=4,
            rate_limit=RateLimit(requests_per_minute=5, requests_per_hour=300),
            has_credential=bool(settings.polygon_api_key),
            api_key=settings.polygon_api_key,
            base_url=settings.polygon_base_url,
            features=("quotes", "historical", "fundamentals", "options"),
        ),
        ProviderDescriptor(
            key="iex",
            name="IEX Cloud",
            enabled=bool(settings.iex_api_key),
            priority=5,
            rate_limit=RateLimit(requests_per_minute=100, requests_per_hour=6000),
            has_credential=bool(settings.iex_api_key),
            api_key=settings.iex_api_key,
            base_url=settings.iex_base_url,
            features=("quotes", "historical", "fundamentals", "news"),
        ),
    )

    return MarketDataConfig(
        providers=providers,
        cache_ttl_seconds=settings.market_data_cache_ttl_seconds,
        provider_timeout_seconds=settings.provider_timeout_seconds,
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
