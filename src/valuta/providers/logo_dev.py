"""
Logo.dev Client with favicon fallback

Resolves a company's domain, asks Logo.dev for a logo, and falls back to a
public favicon service when Logo.dev has nothing usable. Results are cached
per domain.
API Documentation: https://docs.logo.dev/
"""

import logging
import re
import time
from collections.abc import Mapping
from datetime import timedelta
from typing import Any
from urllib.parse import urlencode

from valuta.cache import Cache, get_cache
from valuta.config import get_settings
from valuta.models import UsageData
from valuta.providers.base import (
    DataAbsentError,
    LogoProvider,
    PartialResult,
    ProviderError,
    provider_response,
)
from valuta.providers.http import HttpClient

logger = logging.getLogger(__name__)

CORPORATE_SUFFIXES = re.compile(
    r"\b(inc|corp|corporation|company|co|ltd|limited|llc|plc)\b"
)

SYMBOL_DOMAINS = {
    "AAPL": "apple.com",
    "MSFT": "microsoft.com",
    "GOOGL": "google.com",
    "GOOG": "google.com",
    "AMZN": "amazon.com",
    "TSLA": "tesla.com",
    "META": "meta.com",
    "NVDA": "nvidia.com",
    "NFLX": "netflix.com",
    "CRM": "salesforce.com",
    "ORCL": "oracle.com",
    "IBM": "ibm.com",
    "INTC": "intel.com",
    "AMD": "amd.com",
}


def derive_domain_from_company_name(company_name: str) -> str | None:
    """
    "Apple Inc" -> "apple.com".
    
    Heuristic only: lowercase, drop corporate suffixes and punctuation,
    squash whitespace, append ".com".
    """
    normalized = CORPORATE_SUFFIXES.sub("", company_name.lower())
    normalized = re.sub(r"[^a-z0-9\s]", "", normalized)
    normalized = re.sub(r"\s+", "", normalized.strip())
    if not normalized:
        return None
    return f"{normalized}.com"


def derive_domain_from_symbol(symbol: str) -> str | None:
    symbol = symbol.strip()
    if not symbol:
        return None
    return SYMBOL_DOMAINS.get(symbol.upper(), f"{symbol.lower()}.com")


def determine_lookup_domain(
    company_name: str | None = None,
    domain: str | None = None,
    symbol: str | None = None
) -> str | None:
    """Explicit domain > company name > symbol."""
    if domain and domain.strip():
        return domain.strip().lower()
    if company_name and company_name.strip():
        return derive_domain_from_company_name(company_name)
    if symbol and symbol.strip():
        return derive_domain_from_symbol(symbol)
    return None


class LogoDevClient(LogoProvider):
    """
    Client for the Logo.dev image CDN.
    
    Works without a key (lower quota); with one, the key is sent as the
    `token` query parameter.
    """
    
    PROVIDER_ID = "logo_dev"
    CACHE_KEY = "logo_provider:{domain}:v1"
    LOGO_TTL = timedelta(hours=24)
    FAVICON_TTL = timedelta(weeks=1)
    AUTHENTICATED_DAILY_LIMIT = 5000
    UNAUTHENTICATED_DAILY_LIMIT = 100
    
    def __init__(
        self,
        api_key: str | None = None,
        http_client: HttpClient | None = None,
        cache: Cache | None = None,
        base_url: str | None = None,
        favicon_url: str | None = None,
        request_delay: float | None = None
    ):
        settings = get_settings()
        self.api_key = api_key or None
        self.base_url = base_url or settings.logo_dev_base_url
        self.favicon_url = favicon_url or settings.favicon_base_url
        self.http = http_client or HttpClient(self.PROVIDER_ID)
        self.cache = cache if cache is not None else get_cache()
        self.request_delay = (
            request_delay if request_delay is not None else settings.request_delay_seconds
        )
    
    def healthy(self) -> bool:
        response = self.fetch_logo_url(domain="microsoft.com")
        if not response.success:
            logger.warning(f"Logo.dev health check failed: {response.error}")
        return response.success and bool(response.data)
    
    @provider_response
    def usage(self) -> UsageData:
        # Daily limits are not published; these are estimates
        if self.api_key:
            return UsageData(
                used=0,
                limit=self.AUTHENTICATED_DAILY_LIMIT,
                utilization=0,
                plan="free"
            )
        return UsageData(
            used=0,
            limit=self.UNAUTHENTICATED_DAILY_LIMIT,
            utilization=0,
            plan="unauthenticated"
        )
    
    @provider_response
    def fetch_logo_url(
        self,
        company_name: str | None = None,
        domain: str | None = None,
        symbol: str | None = None
    ) -> str:
        return self._resolve_logo_url(company_name=company_name, domain=domain, symbol=symbol)
    
    @provider_response
    def fetch_logo_urls(
        self,
        queries: Mapping[Any, Mapping[str, str | None]]
    ) -> PartialResult[dict[Any, str | None]]:
        result: PartialResult[dict[Any, str | None]] = PartialResult(data={})
        
        for key, query in queries.items():
            try:
                result.data[key] = self._resolve_logo_url(**self._query_fields(key, query))
            except ProviderError as e:
                logger.warning(f"Logo.dev failed to fetch logo for {key}: {e}")
                result.data[key] = None
                result.skip(key, str(e))
            
            if self.api_key and self.request_delay > 0:
                time.sleep(self.request_delay)
        
        return result
    
    def logo_url(self, domain: str, size: int | None = 200, image_format: str | None = "png") -> str:
        """Logo.dev image URL for domain."""
        params: dict[str, Any] = {}
        if self.api_key:
            params["token"] = self.api_key
        if size:
            params["size"] = size
        if image_format:
            params["format"] = image_format
        
        url = f"{self.base_url}/{domain}"
        return f"{url}?{urlencode(params)}" if params else url
    
    def favicon_fallback_url(self, domain: str) -> str:
        return f"{self.favicon_url}?{urlencode({'domain': domain, 'sz': 128})}"
    
    # === Internals ===
    
    def _query_fields(self, key: Any, query: Any) -> dict[str, str | None]:
        """Lookup fields of one batch query; DataAbsentError when malformed."""
        if not isinstance(query, Mapping):
            raise DataAbsentError(
                message=f"Logo query for {key} is not a mapping",
                provider=self.PROVIDER_ID,
                details={"query": query}
            )
        
        fields = {name: query.get(name) for name in ("company_name", "domain", "symbol")}
        invalid = [name for name, value in fields.items() if value is not None and not isinstance(value, str)]
        if invalid:
            raise DataAbsentError(
                message=f"Logo query for {key} has non-string fields: {invalid}",
                provider=self.PROVIDER_ID,
                details={"query": dict(query)}
            )
        return fields
    
    def _resolve_logo_url(
        self,
        company_name: str | None = None,
        domain: str | None = None,
        symbol: str | None = None
    ) -> str:
        lookup_domain = determine_lookup_domain(
            company_name=company_name, domain=domain, symbol=symbol
        )
        if not lookup_domain:
            raise DataAbsentError(
                message="No valid domain found for logo lookup",
                provider=self.PROVIDER_ID,
                details={"company_name": company_name, "domain": domain, "symbol": symbol}
            )
        
        cache_key = self.CACHE_KEY.format(domain=lookup_domain)
        cached = self.cache.read(cache_key)
        if cached:
            logger.info(f"Logo.dev cache hit for {lookup_domain}")
            return cached
        logger.info(f"Logo.dev cache miss for {lookup_domain}")
        
        logo_url = self._try_logo_dev(lookup_domain)
        
        if logo_url:
            final_url, ttl = logo_url, self.LOGO_TTL
        else:
            final_url, ttl = self.favicon_fallback_url(lookup_domain), self.FAVICON_TTL
            logger.info(f"Logo.dev using favicon fallback for {lookup_domain}")
        
        self.cache.write(cache_key, final_url, ttl)
        logger.info(
            f"Logo.dev cached result for {lookup_domain} "
            f"({int(ttl.total_seconds() // 3600)}h)"
        )
        return final_url
    
    def _try_logo_dev(self, domain: str) -> str | None:
        """Logo.dev URL when it serves an image for domain, else None."""
        endpoint = self.logo_url(domain)
        try:
            response = self.http.head(endpoint)
        except ProviderError as e:
            logger.warning(f"Logo.dev request failed for {domain}: {e}")
            return None
        
        content_type = response.headers.get("content-type", "")
        if content_type.startswith("image/"):
            logger.info(f"Logo.dev found logo for {domain}")
            return endpoint
        
        logger.info(f"Logo.dev returned {content_type or 'no content type'} for {domain}")
        return None
