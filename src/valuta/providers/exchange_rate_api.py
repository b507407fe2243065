"""
ExchangeRate-API Client

Current rates come from the open-access endpoint, which needs no key and
does not count against quota. Historical rates need a key; without one the
client fails with ConfigurationError so the caller falls back to another
provider.
API Documentation: https://www.exchangerate-api.com/docs
"""

import logging
import math
import time
from datetime import date as date_type
from datetime import timedelta
from typing import Any

from valuta.config import get_settings
from valuta.models import Rate, UsageData
from valuta.providers.base import (
    ConfigurationError,
    DataAbsentError,
    ExchangeRateProvider,
    PartialResult,
    ProviderError,
    VendorError,
    provider_response,
)
from valuta.providers.http import HttpClient

logger = logging.getLogger(__name__)


class ExchangeRateApiClient(ExchangeRateProvider):
    """
    Client for ExchangeRate-API.
    
    Response format: {"base": "USD", "date": "2026-01-15", "rates": {"EUR": 0.92, ...}}
    Errors: {"success": false, "error": {"info": "..."}} or {"error": "..."}
    """
    
    PROVIDER_ID = "exchange_rate_api"
    HISTORICAL_MONTHLY_LIMIT = 1500
    
    def __init__(
        self,
        api_key: str | None = None,
        http_client: HttpClient | None = None,
        base_url: str | None = None,
        request_delay: float | None = None
    ):
        settings = get_settings()
        self.api_key = api_key or None
        self.base_url = base_url or settings.exchange_rate_api_base_url
        self.http = http_client or HttpClient(self.PROVIDER_ID)
        self.request_delay = (
            request_delay if request_delay is not None else settings.request_delay_seconds
        )
    
    def healthy(self) -> bool:
        """Check that the open-access endpoint returns rates."""
        try:
            data = self.http.get_json(f"{self.base_url}/latest/USD")
            return isinstance(data, dict) and bool(data.get("rates")) and not data.get("error")
        except ProviderError as e:
            logger.warning(f"ExchangeRate-API health check failed: {e}")
            return False
    
    @provider_response
    def usage(self) -> UsageData:
        # No usage endpoint; only historical lookups consume quota
        if self.api_key:
            return UsageData(
                used=0,
                limit=self.HISTORICAL_MONTHLY_LIMIT,
                utilization=0,
                plan="free (optimized: current rates use open access)"
            )
        return UsageData(
            used=0,
            limit=math.inf,
            utilization=0,
            plan="open (current rates only)"
        )
    
    @provider_response
    def fetch_exchange_rate(
        self,
        from_currency: str,
        to_currency: str,
        date: date_type
    ) -> Rate:
        if date < date_type.today():
            if not self.api_key:
                raise ConfigurationError(
                    message="Historical data requires API key, falling back to next provider",
                    provider=self.PROVIDER_ID,
                    details={"date": date.isoformat()}
                )
            return self._fetch_historical_rate(from_currency, to_currency, date)
        
        # Today (or later): open access, even when a key is set
        return self._fetch_current_rate(from_currency, to_currency)
    
    @provider_response
    def fetch_exchange_rates(
        self,
        from_currency: str,
        to_currency: str,
        start_date: date_type,
        end_date: date_type
    ) -> PartialResult[list[Rate]]:
        """
        Fetch one rate per day from start_date to end_date inclusive.
        
        Past days use the historical endpoint, today uses open access, and
        days after today are skipped. A failed day is skipped without failing
        the range.
        """
        today = date_type.today()
        
        if start_date < today and not self.api_key:
            raise ConfigurationError(
                message="Historical data requires API key",
                provider=self.PROVIDER_ID,
                details={"start_date": start_date.isoformat()}
            )
        
        result: PartialResult[list[Rate]] = PartialResult(data=[])
        current = start_date
        
        while current <= end_date:
            if current > today:
                result.skip(current.isoformat(), "no rates published for future dates")
                current += timedelta(days=1)
                continue
            
            try:
                if current < today:
                    rate = self._fetch_historical_rate(from_currency, to_currency, current)
                else:
                    rate = self._fetch_current_rate(from_currency, to_currency)
                result.data.append(rate)
            except ProviderError as e:
                logger.warning(
                    f"ExchangeRate-API failed to fetch rate for {from_currency}/{to_currency} "
                    f"on {current}: {e}"
                )
                result.skip(current.isoformat(), str(e))
            
            if current < today and self.request_delay > 0:
                time.sleep(self.request_delay)
            current += timedelta(days=1)
        
        result.data.sort(key=lambda r: r.date)
        return result
    
    # === Internals ===
    
    def _fetch_current_rate(self, from_currency: str, to_currency: str) -> Rate:
        # No access_key on purpose: current rates never spend quota
        data = self.http.get_json(f"{self.base_url}/latest/{from_currency}")
        return self._parse_rate(data, from_currency, to_currency, date_type.today())
    
    def _fetch_historical_rate(
        self,
        from_currency: str,
        to_currency: str,
        date: date_type
    ) -> Rate:
        data = self.http.get_json(
            f"{self.base_url}/{date.isoformat()}/{from_currency}",
            params={"access_key": self.api_key}
        )
        return self._parse_rate(data, from_currency, to_currency, date)
    
    def _parse_rate(
        self,
        data: Any,
        from_currency: str,
        to_currency: str,
        date: date_type
    ) -> Rate:
        if not isinstance(data, dict):
            raise VendorError(
                message="Invalid response: expected a JSON object",
                provider=self.PROVIDER_ID,
                error_type="PARSE_ERROR"
            )
        
        if data.get("success") is False or data.get("error"):
            error = data.get("error")
            message = (
                error.get("info") if isinstance(error, dict) else error
            ) or "Unknown error"
            raise VendorError(
                message=str(message),
                provider=self.PROVIDER_ID,
                error_type="API_ERROR",
                details={"response": data}
            )
        
        rates = data.get("rates") or {}
        value = self._to_float(rates.get(to_currency.upper()))
        
        if value is None:
            raise DataAbsentError(
                message=f"No exchange rate data found for {from_currency}/{to_currency} on {date}",
                provider=self.PROVIDER_ID,
                details={"available": len(rates)}
            )
        
        logger.info(f"ExchangeRate-API fetched {from_currency}/{to_currency}={value} for {date}")
        
        return Rate(
            date=date,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=value
        )
