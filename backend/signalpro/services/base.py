"""
Service contract and error hierarchy.

The data and signal services share one async execute()
entry point and a health probe. Every error they raise derives from
ServiceError so the HTTP layer can map it in one place.
"""

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseService(ABC, Generic[InputT, OutputT]):
    """An async unit of work typed by its request and result models."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Identifier used in log lines and error messages."""
        pass

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """
        Run the service on one request.

        Raises:
            ServiceError: or a subclass, on any failure
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        pass


class ServiceError(Exception):
    """Raised by a service; `details` is safe to return to API clients."""

    def __init__(self, service_name: str, message: str, details: dict = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")


class ValidationError(ServiceError):
    """Request rejected before any provider was called."""
    pass


class ExternalAPIError(ServiceError):
    """A remote dependency (data vendor or LLM) failed."""
    pass


class ProviderError(ExternalAPIError):
    """A single market data provider failed (auth, network, timeout, bad payload)."""

    def __init__(self, provider: str, cause: str, details: dict = None):
        self.provider = provider
        self.cause = cause
        super().__init__(provider, cause, details)


class RateLimitError(ProviderError):
    """Provider reported that its rate limit was exceeded."""
    pass


class AllProvidersFailedError(ServiceError):
    """Every enabled provider failed for one request."""

    def __init__(self, symbol: str, errors: Optional[list[ProviderError]] = None):
        self.symbol = symbol
        self.errors = errors or []
        tried = ", ".join(f"{e.provider}: {e.cause}" for e in self.errors) or "no providers enabled"
        super().__init__(
            "MarketDataAggregator",
            f"All market data providers failed for {symbol} ({tried})",
            {"symbol": symbol, "providers": [e.provider for e in self.errors]},
        )


class AIAnalysisError(ExternalAPIError):
    """AI analysis stage unreachable or returned unusable output."""
    pass
