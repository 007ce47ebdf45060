"""
SignalPro Services

Service layer containing all business logic.
Each service has a defined interface (contract) and implementation.
"""

from signalpro.services.base import (
    BaseService,
    ServiceError,
    ValidationError,
    ExternalAPIError,
    ProviderError,
    RateLimitError,
    AllProvidersFailedError,
    AIAnalysisError,
)

__all__ = [
    "BaseService",
    "ServiceError",
    "ValidationError",
    "ExternalAPIError",
    "ProviderError",
    "RateLimitError",
    "AllProvidersFailedError",
    "AIAnalysisError",
]
