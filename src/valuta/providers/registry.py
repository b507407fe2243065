"""
Provider registry: which provider instances back which concept.

The registry is an explicit object built once from configuration and passed
to callers. Each concept lists its providers in a fixed priority order; a
provider is only constructed when its required credential resolves.

Credential resolution: stored setting > environment variable > absent.
"""

import logging
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from valuta.config import Settings, get_settings
from valuta.models import Concept, ProviderId, UsageData
from valuta.providers.alpha_vantage import AlphaVantageClient
from valuta.providers.base import CONCEPT_CAPABILITIES, Provider, ProviderResponse
from valuta.providers.exchange_rate_api import ExchangeRateApiClient
from valuta.providers.fallback import FallbackResolver
from valuta.providers.logo_dev import LogoDevClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderSpec:
    """How to build one provider and which concepts it serves."""
    provider_id: str
    factory: type[Provider]
    credential_setting: str
    base_url_setting: str
    concepts: tuple[Concept, ...]
    credential_required: bool = True


class ProviderRegistry:
    """
    Maps provider ids and concepts to provider instances.
    
    Usage:
        registry = build_registry(stored_settings={"alpha_vantage_api_key": "..."})
        provider = registry.primary_provider_for_concept(Concept.EXCHANGE_RATES)
        response = registry.fallback(Concept.EXCHANGE_RATES).call(
            "fetch_exchange_rate", "USD", "EUR", date.today()
        )
    """
    
    def __init__(
        self,
        settings: Settings | None = None,
        stored_settings: Mapping[str, str | None] | None = None,
        provider_options: Mapping[str, Mapping[str, Any]] | None = None
    ):
        self.settings = settings or get_settings()
        self.stored_settings = stored_settings or {}
        self.provider_options = provider_options or {}
        self._specs: dict[str, ProviderSpec] = {}
        self._concepts: dict[Concept, list[str]] = {}
        self._instances: dict[str, Provider] = {}
        self._lock = threading.Lock()
    
    def register(self, spec: ProviderSpec) -> None:
        """
        Register a provider. Concept priority follows registration order.
        
        Raises:
            TypeError: factory does not implement a concept it claims to serve
            ValueError: provider id already registered
        """
        if spec.provider_id in self._specs:
            raise ValueError(f"Provider '{spec.provider_id}' is already registered")
        
        if not (isinstance(spec.factory, type) and issubclass(spec.factory, Provider)):
            raise TypeError(f"Provider '{spec.provider_id}' factory must be a Provider subclass")
        
        capabilities = spec.factory.capabilities()
        for concept in spec.concepts:
            required = CONCEPT_CAPABILITIES[concept]
            if required not in capabilities:
                raise TypeError(
                    f"Provider '{spec.provider_id}' cannot serve {concept.value}: "
                    f"{spec.factory.__name__} does not implement {required.__name__}"
                )
        
        self._specs[spec.provider_id] = spec
        for concept in spec.concepts:
            self._concepts.setdefault(concept, []).append(spec.provider_id)
        logger.debug(f"Registered provider: {spec.provider_id}")
    
    @property
    def provider_ids(self) -> list[str]:
        return list(self._specs)
    
    def resolve_api_key(self, provider_id: str) -> str | None:
        spec = self._spec(provider_id)
        stored = self.stored_settings.get(spec.credential_setting)
        if stored:
            return stored
        env_value = getattr(self.settings, spec.credential_setting, None)
        return env_value or None
    
    def is_configured(self, provider_id: str) -> bool:
        """True when the provider's credential resolves."""
        return self.resolve_api_key(provider_id) is not None
    
    def get_provider(self, provider_id: str) -> Provider | None:
        """
        Provider instance by id, or None when its required credential is absent.
        
        Raises:
            KeyError: unknown provider id
        """
        provider_id = self._normalize_id(provider_id)
        spec = self._spec(provider_id)
        
        with self._lock:
            if provider_id in self._instances:
                return self._instances[provider_id]
            
            api_key = self.resolve_api_key(provider_id)
            if api_key is None and spec.credential_required:
                logger.debug(f"Provider {provider_id} not configured: missing {spec.credential_setting}")
                return None
            
            options = dict(self.provider_options.get(provider_id, {}))
            options.setdefault("base_url", getattr(self.settings, spec.base_url_setting))
            
            instance = spec.factory(api_key=api_key, **options)
            self._instances[provider_id] = instance
            return instance
    
    def providers_for_concept(self, concept: Concept | str) -> list[Provider]:
        """Constructible providers for concept, in priority order."""
        ids = self._concepts.get(Concept(concept), [])
        return [p for p in (self.get_provider(i) for i in ids) if p is not None]
    
    def primary_provider_for_concept(self, concept: Concept | str) -> Provider | None:
        """
        First provider for concept whose credential is configured.
        
        Open-access providers (no credential required, none set) are only
        chosen when no provider of the concept has a credential.
        """
        ids = self._concepts.get(Concept(concept), [])
        
        for provider_id in ids:
            if self.is_configured(provider_id):
                return self.get_provider(provider_id)
        
        for provider_id in ids:
            provider = self.get_provider(provider_id)
            if provider is not None:
                return provider
        
        return None
    
    def primary_exchange_rate_provider(self) -> Provider | None:
        return self.primary_provider_for_concept(Concept.EXCHANGE_RATES)
    
    def fallback(self, concept: Concept | str) -> FallbackResolver:
        """Resolver over the concept's providers in registration priority."""
        concept = Concept(concept)
        return FallbackResolver(self.providers_for_concept(concept), concept=concept.value)
    
    def usage_report(self) -> dict[str, ProviderResponse[UsageData] | None]:
        """Usage snapshot per registered provider; None when unconfigured."""
        report: dict[str, ProviderResponse[UsageData] | None] = {}
        for provider_id in self._specs:
            provider = self.get_provider(provider_id)
            report[provider_id] = provider.usage() if provider is not None else None
        return report
    
    def health_check_all(self) -> dict[str, bool]:
        """Check health status of all constructible providers."""
        results: dict[str, bool] = {}
        for provider_id in self._specs:
            provider = self.get_provider(provider_id)
            if provider is not None:
                results[provider_id] = provider.healthy()
        return results
    
    def close(self) -> None:
        """Release the HTTP clients of every provider built so far."""
        with self._lock:
            instances = list(self._instances.values())
            self._instances.clear()
        for provider in instances:
            provider.close()
    
    def __enter__(self) -> "ProviderRegistry":
        return self
    
    def __exit__(self, *exc_info: Any) -> None:
        self.close()
    
    def _spec(self, provider_id: str) -> ProviderSpec:
        provider_id = self._normalize_id(provider_id)
        spec = self._specs.get(provider_id)
        if spec is None:
            raise KeyError(
                f"Unknown provider '{provider_id}'. "
                f"Available: {list(self._specs)}"
            )
        return spec
    
    @staticmethod
    def _normalize_id(provider_id: str) -> str:
        return provider_id.value if isinstance(provider_id, ProviderId) else str(provider_id)


DEFAULT_PROVIDERS: Sequence[ProviderSpec] = (
    # ExchangeRate-API first: open access keeps current rates free of quota
    ProviderSpec(
        provider_id=ProviderId.EXCHANGE_RATE_API.value,
        factory=ExchangeRateApiClient,
        credential_setting="exchange_rate_api_key",
        base_url_setting="exchange_rate_api_base_url",
        concepts=(Concept.EXCHANGE_RATES,),
        credential_required=False,
    ),
    ProviderSpec(
        provider_id=ProviderId.ALPHA_VANTAGE.value,
        factory=AlphaVantageClient,
        credential_setting="alpha_vantage_api_key",
        base_url_setting="alpha_vantage_base_url",
        concepts=(Concept.EXCHANGE_RATES, Concept.SECURITIES),
        credential_required=True,
    ),
    ProviderSpec(
        provider_id=ProviderId.LOGO_DEV.value,
        factory=LogoDevClient,
        credential_setting="logo_dev_api_key",
        base_url_setting="logo_dev_base_url",
        concepts=(Concept.LOGOS,),
        credential_required=False,
    ),
)


def build_registry(
    settings: Settings | None = None,
    stored_settings: Mapping[str, str | None] | None = None,
    provider_options: Mapping[str, Mapping[str, Any]] | None = None
) -> ProviderRegistry:
    """Create a registry with all built-in providers."""
    registry = ProviderRegistry(
        settings=settings,
        stored_settings=stored_settings,
        provider_options=provider_options,
    )
    for spec in DEFAULT_PROVIDERS:
        registry.register(spec)
    return registry
