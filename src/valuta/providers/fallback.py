"""
Fallback resolution across the providers of one concept.

Providers are tried in priority order; the first success wins. A failure
from any provider moves on to the next one.
"""

import logging
import time
from collections.abc import Sequence
from typing import Any

from valuta.providers.base import (
    ConfigurationError,
    FallbackExhaustedError,
    Provider,
    ProviderError,
    ProviderResponse,
    with_provider_response,
)

logger = logging.getLogger(__name__)


class FallbackResolver:
    """
    Invokes one operation against an ordered list of providers.
    
    Holds no per-call state, so one resolver can serve concurrent callers.
    """
    
    def __init__(self, providers: Sequence[Provider], concept: str = "unknown"):
        self.providers = list(providers)
        self.concept = concept
    
    def call(self, operation: str, *args: Any, **kwargs: Any) -> ProviderResponse:
        """
        Run `operation` on each provider until one succeeds.
        
        Returns:
            The first successful response, or a failure carrying
            FallbackExhaustedError whose last_error is the final failure.
        """
        if not self.providers:
            return ProviderResponse.fail(ConfigurationError(
                message=f"No providers configured for {self.concept}",
                provider="fallback",
                details={"concept": self.concept}
            ))
        
        errors: list[ProviderError] = []
        total = len(self.providers)
        
        for idx, provider in enumerate(self.providers, start=1):
            name = provider.provider_id
            start_time = time.monotonic()
            
            logger.info(f"Attempting {name} for {operation} (attempt {idx}/{total})")
            response = self._invoke(provider, operation, args, kwargs)
            latency_ms = int((time.monotonic() - start_time) * 1000)
            
            if response.success:
                logger.info(f"✅ {name} {operation} success ({latency_ms}ms)")
                return response
            
            errors.append(response.error)
            logger.warning(
                f"❌ {name} {operation} failed ({latency_ms}ms): "
                f"{response.error.error_type}: {response.error}"
            )
        
        last_error = errors[-1]
        return ProviderResponse.fail(FallbackExhaustedError(
            message=(
                f"All providers failed for {self.concept}.{operation}. Errors: "
                f"{[(e.provider, e.error_type) for e in errors]}"
            ),
            last_error=last_error,
            details={
                "concept": self.concept,
                "operation": operation,
                "attempts": [(e.provider, e.error_type) for e in errors],
            }
        ))
    
    def _invoke(
        self,
        provider: Provider,
        operation: str,
        args: tuple,
        kwargs: dict[str, Any]
    ) -> ProviderResponse:
        method = getattr(provider, operation, None)
        if method is None:
            return ProviderResponse.fail(ConfigurationError(
                message=f"{provider.provider_id} does not support {operation}",
                provider=provider.provider_id,
                error_type="UNSUPPORTED_OPERATION"
            ))
        
        response = with_provider_response(
            lambda: method(*args, **kwargs),
            provider=provider.provider_id
        )
        # Capability methods already return an envelope; unwrap the double layer
        if response.success and isinstance(response.data, ProviderResponse):
            return response.data
        return response
