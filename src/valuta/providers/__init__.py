"""
VALUTA Data Providers Module

Exchange rates: ExchangeRate-API → Alpha Vantage
Securities: Alpha Vantage
Logos: Logo.dev (favicon fallback)
"""

from valuta.providers.base import (
    ConfigurationError,
    DataAbsentError,
    ExchangeRateProvider,
    FallbackExhaustedError,
    LogoProvider,
    Provider,
    ProviderError,
    ProviderResponse,
    SecurityProvider,
    SkippedItem,
    TransportError,
    VendorError,
    with_provider_response,
)
from valuta.providers.http import HttpClient
from valuta.providers.alpha_vantage import AlphaVantageClient
from valuta.providers.exchange_rate_api import ExchangeRateApiClient
from valuta.providers.logo_dev import LogoDevClient
from valuta.providers.fallback import FallbackResolver
from valuta.providers.registry import ProviderRegistry, ProviderSpec, build_registry

__all__ = [
    "Provider",
    "ExchangeRateProvider",
    "SecurityProvider",
    "LogoProvider",
    "ProviderResponse",
    "SkippedItem",
    "with_provider_response",
    "ProviderError",
    "TransportError",
    "VendorError",
    "DataAbsentError",
    "ConfigurationError",
    "FallbackExhaustedError",
    "HttpClient",
    "AlphaVantageClient",
    "ExchangeRateApiClient",
    "LogoDevClient",
    "FallbackResolver",
    "ProviderRegistry",
    "ProviderSpec",
    "build_registry",
]
