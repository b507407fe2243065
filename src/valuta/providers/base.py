"""
Provider contracts, error taxonomy and the response envelope.

Every public provider operation returns a ProviderResponse. Errors raised
inside an operation are captured into the envelope and never cross the
provider boundary.
"""

import functools
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date as date_type
from typing import Any, Callable, ClassVar, Generic, TypeVar

from valuta.models import Concept, Price, Rate, Security, SecurityInfo, UsageData

logger = logging.getLogger(__name__)

T = TypeVar("T")


# === Errors ===

class ProviderError(Exception):
    """Base exception for provider errors."""
    
    default_error_type: ClassVar[str] = "UNKNOWN"
    
    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        error_type: str | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.error_type = error_type or self.default_error_type
        self.details = details or {}
    
    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(provider={self.provider!r}, "
            f"error_type={self.error_type!r}, message={self.message!r})"
        )


class TransportError(ProviderError):
    """Network failure or timeout that persisted through the retry policy."""
    default_error_type = "TRANSPORT"


class VendorError(ProviderError):
    """Structured error from the vendor: error payload or HTTP error status."""
    default_error_type = "VENDOR_ERROR"


class DataAbsentError(ProviderError):
    """Well-formed response lacking the requested data point."""
    default_error_type = "DATA_ABSENT"


class ConfigurationError(ProviderError):
    """Operation requires a credential that is not configured."""
    default_error_type = "CONFIG_ERROR"


class FallbackExhaustedError(ProviderError):
    """Every provider for a concept failed; last_error is the final failure."""
    default_error_type = "ALL_PROVIDERS_FAILED"
    
    def __init__(
        self,
        message: str,
        provider: str = "fallback",
        last_error: ProviderError | None = None,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message, provider=provider, details=details)
        self.last_error = last_error


# === Response Envelope ===

@dataclass(frozen=True)
class SkippedItem:
    """An element of a range or batch that was dropped, and why."""
    key: str
    reason: str


@dataclass(frozen=True)
class ProviderResponse(Generic[T]):
    """
    Result of a provider operation: success with data, or failure with error.
    
    Range and batch operations report the elements they had to drop in
    `skipped`; those are not failures of the operation itself.
    """
    data: T | None = None
    error: ProviderError | None = None
    raw: Any = None
    skipped: tuple[SkippedItem, ...] = ()
    
    def __post_init__(self):
        if self.error is not None and self.data is not None:
            raise ValueError("ProviderResponse cannot carry both data and an error")
    
    @property
    def success(self) -> bool:
        return self.error is None
    
    def unwrap(self) -> T:
        """Return data, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.data
    
    @classmethod
    def ok(cls, data: T, skipped: tuple[SkippedItem, ...] = ()) -> "ProviderResponse[T]":
        return cls(data=data, skipped=skipped)
    
    @classmethod
    def fail(cls, error: ProviderError, raw: Any = None) -> "ProviderResponse[T]":
        return cls(error=error, raw=raw)


@dataclass
class PartialResult(Generic[T]):
    """Accumulator for operations that keep going past per-item failures."""
    data: T
    skipped: list[SkippedItem] = field(default_factory=list)
    
    def skip(self, key: Any, reason: str) -> None:
        self.skipped.append(SkippedItem(key=str(key), reason=reason))


def with_provider_response(
    block: Callable[[], T],
    provider: str = "unknown"
) -> ProviderResponse[T]:
    """
    Run block and wrap its outcome in a ProviderResponse.
    
    ProviderError subclasses become failures as-is. Anything else is wrapped
    in a generic ProviderError so callers only ever see an envelope.
    """
    try:
        result = block()
    except ProviderError as e:
        logger.info(f"{provider} returned {e.error_type}: {e.message}")
        return ProviderResponse.fail(e, raw=e.details.get("response"))
    except Exception as e:
        logger.exception(f"{provider} unexpected error: {e}")
        error = ProviderError(
            message=str(e) or type(e).__name__,
            provider=provider,
            error_type="UNKNOWN",
            details={"exception": type(e).__name__}
        )
        error.__cause__ = e
        return ProviderResponse.fail(error)
    
    if isinstance(result, PartialResult):
        return ProviderResponse.ok(result.data, skipped=tuple(result.skipped))
    return ProviderResponse.ok(result)


def provider_response(method: Callable[..., T]) -> Callable[..., ProviderResponse[T]]:
    """Decorator form of with_provider_response for provider methods."""
    
    @functools.wraps(method)
    def wrapper(self: "Provider", *args: Any, **kwargs: Any) -> ProviderResponse[T]:
        return with_provider_response(
            lambda: method(self, *args, **kwargs),
            provider=self.provider_id
        )
    
    return wrapper


# === Provider Contracts ===

class Provider(ABC):
    """
    Abstract base class for data providers.
    
    Concrete providers subclass one or more capability classes below; the
    registry checks those declarations when a provider is registered.
    """
    
    PROVIDER_ID: ClassVar[str] = "base"
    
    @property
    def provider_id(self) -> str:
        return self.PROVIDER_ID
    
    @abstractmethod
    def healthy(self) -> bool:
        """Cheap liveness probe against the real endpoint."""
        pass
    
    @abstractmethod
    def usage(self) -> ProviderResponse[UsageData]:
        """Current quota snapshot."""
        pass
    
    def close(self) -> None:
        """Close the provider's HTTP client, if it has one."""
        http = getattr(self, "http", None)
        if http is not None:
            http.close()
    
    @classmethod
    def capabilities(cls) -> frozenset[type["Provider"]]:
        return frozenset(
            capability for capability in CAPABILITIES if issubclass(cls, capability)
        )
    
    def _to_float(self, value: Any) -> float | None:
        """Parse a vendor number; None unless it is positive and finite."""
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(number) or number <= 0:
            return None
        return number


class ExchangeRateProvider(Provider):
    """Capability: currency exchange rates."""
    
    @abstractmethod
    def fetch_exchange_rate(
        self,
        from_currency: str,
        to_currency: str,
        date: date_type
    ) -> ProviderResponse[Rate]:
        pass
    
    @abstractmethod
    def fetch_exchange_rates(
        self,
        from_currency: str,
        to_currency: str,
        start_date: date_type,
        end_date: date_type
    ) -> ProviderResponse[list[Rate]]:
        """Rates sorted ascending by date; missing days are skipped."""
        pass


class SecurityProvider(Provider):
    """Capability: security search, descriptive info and prices."""
    
    MAX_SEARCH_RESULTS: ClassVar[int] = 25
    
    @abstractmethod
    def search_securities(
        self,
        query: str,
        country_code: str | None = None,
        exchange_operating_mic: str | None = None
    ) -> ProviderResponse[list[Security]]:
        pass
    
    @abstractmethod
    def fetch_security_info(
        self,
        symbol: str,
        exchange_operating_mic: str | None = None
    ) -> ProviderResponse[SecurityInfo]:
        pass
    
    @abstractmethod
    def fetch_security_price(
        self,
        symbol: str,
        date: date_type,
        exchange_operating_mic: str | None = None
    ) -> ProviderResponse[Price]:
        pass
    
    @abstractmethod
    def fetch_security_prices(
        self,
        symbol: str,
        start_date: date_type,
        end_date: date_type,
        exchange_operating_mic: str | None = None
    ) -> ProviderResponse[list[Price]]:
        """Prices sorted ascending by date."""
        pass


class LogoProvider(Provider):
    """Capability: company logo URLs."""
    
    @abstractmethod
    def fetch_logo_url(
        self,
        company_name: str | None = None,
        domain: str | None = None,
        symbol: str | None = None
    ) -> ProviderResponse[str]:
        pass
    
    @abstractmethod
    def fetch_logo_urls(
        self,
        queries: Mapping[Any, Mapping[str, str | None]]
    ) -> ProviderResponse[dict[Any, str | None]]:
        """Per-item failures map to None instead of failing the batch."""
        pass


CAPABILITIES: tuple[type[Provider], ...] = (
    ExchangeRateProvider,
    SecurityProvider,
    LogoProvider,
)

CONCEPT_CAPABILITIES: dict[Concept, type[Provider]] = {
    Concept.EXCHANGE_RATES: ExchangeRateProvider,
    Concept.SECURITIES: SecurityProvider,
    Concept.LOGOS: LogoProvider,
}
