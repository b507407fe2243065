"""
Alpha Vantage API Client

Exchange rates and security data. Requires an API key; the free tier allows
25 requests per day.
API Documentation: https://www.alphavantage.co/documentation/
"""

import bisect
import logging
from datetime import date as date_type
from typing import Any

from valuta.config import get_settings
from valuta.models import Price, Rate, Security, SecurityInfo, UsageData
from valuta.providers.base import (
    ConfigurationError,
    DataAbsentError,
    ExchangeRateProvider,
    PartialResult,
    SecurityProvider,
    VendorError,
    provider_response,
)
from valuta.providers.http import HttpClient

logger = logging.getLogger(__name__)

# Alpha Vantage reports listing regions by name, not ISO code
REGION_COUNTRY_CODES = {
    "United States": "US",
    "United Kingdom": "GB",
    "Toronto": "CA",
    "Toronto Venture": "CA",
    "Frankfurt": "DE",
    "XETRA": "DE",
    "Paris": "FR",
    "Amsterdam": "NL",
    "Brussels": "BE",
    "Lisbon": "PT",
    "India/Bombay": "IN",
    "Brazil/Sao Paolo": "BR",
    "Shanghai": "CN",
    "Shenzhen": "CN",
}


class AlphaVantageClient(ExchangeRateProvider, SecurityProvider):
    """
    Client for Alpha Vantage.
    
    All functions are served from a single endpoint selected by the
    `function` query parameter. Error payloads arrive with HTTP 200:
    {"Error Message": "..."} for bad requests and {"Note": "..."} or
    {"Information": "..."} when throttled.
    """
    
    PROVIDER_ID = "alpha_vantage"
    FREE_TIER_DAILY_LIMIT = 25
    # FX_DAILY/TIME_SERIES_DAILY "compact" output covers the latest 100 points
    COMPACT_WINDOW_DAYS = 100
    
    def __init__(
        self,
        api_key: str,
        http_client: HttpClient | None = None,
        base_url: str | None = None
    ):
        if not api_key:
            raise ConfigurationError(
                message="Alpha Vantage API key not configured",
                provider=self.PROVIDER_ID,
                details={"hint": "Set ALPHA_VANTAGE_API_KEY environment variable"}
            )
        self.api_key = api_key
        self.base_url = base_url or get_settings().alpha_vantage_base_url
        self.http = http_client or HttpClient(self.PROVIDER_ID)
    
    def healthy(self) -> bool:
        """Check that a simple quote request returns data."""
        try:
            data = self._query({"function": "GLOBAL_QUOTE", "symbol": "AAPL"})
            return bool(data.get("Global Quote"))
        except VendorError as e:
            logger.warning(f"Alpha Vantage health check failed: {e}")
            return False
        except Exception as e:
            logger.warning(f"Alpha Vantage health check error: {e}")
            return False
    
    @provider_response
    def usage(self) -> UsageData:
        # No usage endpoint; report the free-tier allowance
        return UsageData(
            used=0,
            limit=self.FREE_TIER_DAILY_LIMIT,
            utilization=0,
            plan="free"
        )
    
    # === Exchange Rates ===
    
    @provider_response
    def fetch_exchange_rate(
        self,
        from_currency: str,
        to_currency: str,
        date: date_type
    ) -> Rate:
        """
        Close rate for `date`, or for the nearest date with data.
        
        Weekends and holidays have no FX_DAILY entry, so the latest date on or
        before the request is used, or the earliest after it when the request
        predates the series.
        """
        observations = self._fx_daily(from_currency, to_currency, self._output_size(date))
        
        if not observations:
            raise DataAbsentError(
                message=f"No rate data found for {from_currency}/{to_currency}",
                provider=self.PROVIDER_ID
            )
        
        resolved = self._nearest_date(sorted(observations), date)
        if resolved != date:
            logger.info(
                f"Alpha Vantage has no {from_currency}/{to_currency} rate on {date}, "
                f"using {resolved}"
            )
        
        return Rate(
            date=resolved,
            from_currency=from_currency,
            to_currency=to_currency,
            rate=observations[resolved]
        )
    
    @provider_response
    def fetch_exchange_rates(
        self,
        from_currency: str,
        to_currency: str,
        start_date: date_type,
        end_date: date_type
    ) -> PartialResult[list[Rate]]:
        result: PartialResult[list[Rate]] = PartialResult(data=[])
        observations = self._fx_daily(from_currency, to_currency, "full", result)
        
        for day in sorted(observations):
            if start_date <= day <= end_date:
                result.data.append(Rate(
                    date=day,
                    from_currency=from_currency,
                    to_currency=to_currency,
                    rate=observations[day]
                ))
        
        return result
    
    # === Securities ===
    
    @provider_response
    def search_securities(
        self,
        query: str,
        country_code: str | None = None,
        exchange_operating_mic: str | None = None
    ) -> list[Security]:
        # Results carry no MIC, so exchange_operating_mic cannot narrow them
        data = self._query({"function": "SYMBOL_SEARCH", "keywords": query})
        
        securities = []
        for match in data.get("bestMatches") or []:
            symbol = match.get("1. symbol")
            if not symbol:
                continue
            region = match.get("4. region")
            securities.append(Security(
                symbol=symbol,
                name=match.get("2. name"),
                logo_url=None,
                exchange_operating_mic=None,
                country_code=REGION_COUNTRY_CODES.get(region, region)
            ))
        
        if country_code:
            wanted = country_code.upper()
            securities = [
                s for s in securities
                if s.country_code and s.country_code.upper() == wanted
            ]
        
        return securities[:self.MAX_SEARCH_RESULTS]
    
    @provider_response
    def fetch_security_info(
        self,
        symbol: str,
        exchange_operating_mic: str | None = None
    ) -> SecurityInfo:
        data = self._query({"function": "OVERVIEW", "symbol": symbol})
        
        if not data.get("Symbol"):
            raise DataAbsentError(
                message=f"No security info found for symbol {symbol}",
                provider=self.PROVIDER_ID
            )
        
        website = data.get("OfficialSite")
        asset_type = data.get("AssetType")
        
        return SecurityInfo(
            symbol=symbol,
            name=data.get("Name"),
            links={"website": website} if website and website != "None" else None,
            logo_url=None,
            description=data.get("Description") or None,
            kind=asset_type.lower() if asset_type else "stock",
            exchange_operating_mic=exchange_operating_mic
        )
    
    @provider_response
    def fetch_security_price(
        self,
        symbol: str,
        date: date_type,
        exchange_operating_mic: str | None = None
    ) -> Price:
        prices = self._daily_prices(symbol, date, date, exchange_operating_mic).data
        
        if not prices:
            raise DataAbsentError(
                message=f"No prices found for security {symbol} on date {date}",
                provider=self.PROVIDER_ID
            )
        
        return prices[0]
    
    @provider_response
    def fetch_security_prices(
        self,
        symbol: str,
        start_date: date_type,
        end_date: date_type,
        exchange_operating_mic: str | None = None
    ) -> PartialResult[list[Price]]:
        return self._daily_prices(symbol, start_date, end_date, exchange_operating_mic)
    
    # === Internals ===
    
    def _query(self, params: dict[str, Any]) -> dict[str, Any]:
        data = self.http.get_json(
            f"{self.base_url}/query",
            params={**params, "apikey": self.api_key}
        )
        
        if not isinstance(data, dict):
            raise VendorError(
                message="Invalid response: expected a JSON object",
                provider=self.PROVIDER_ID,
                error_type="PARSE_ERROR"
            )
        
        if "Error Message" in data:
            raise VendorError(
                message=data["Error Message"],
                provider=self.PROVIDER_ID,
                error_type="API_ERROR",
                details={"function": params.get("function"), "response": data}
            )
        
        notice = data.get("Note") or data.get("Information")
        if notice and len(data) == 1:
            raise VendorError(
                message=notice,
                provider=self.PROVIDER_ID,
                error_type="RATE_LIMITED",
                details={"function": params.get("function")}
            )
        
        return data
    
    def _output_size(self, oldest: date_type) -> str:
        age = (date_type.today() - oldest).days
        return "compact" if age < self.COMPACT_WINDOW_DAYS else "full"
    
    def _fx_daily(
        self,
        from_currency: str,
        to_currency: str,
        output_size: str,
        result: PartialResult | None = None
    ) -> dict[date_type, float]:
        data = self._query({
            "function": "FX_DAILY",
            "from_symbol": from_currency,
            "to_symbol": to_currency,
            "outputsize": output_size,
        })
        
        series = data.get("Time Series FX (Daily)")
        if series is None:
            raise DataAbsentError(
                message="No exchange rate data found",
                provider=self.PROVIDER_ID,
                details={"pair": f"{from_currency}/{to_currency}"}
            )
        
        return self._closes(series, f"{from_currency}/{to_currency}", result)
    
    def _daily_prices(
        self,
        symbol: str,
        start_date: date_type,
        end_date: date_type,
        exchange_operating_mic: str | None
    ) -> PartialResult[list[Price]]:
        result: PartialResult[list[Price]] = PartialResult(data=[])
        data = self._query({
            "function": "TIME_SERIES_DAILY",
            "symbol": symbol,
            "outputsize": self._output_size(start_date),
        })
        
        series = data.get("Time Series (Daily)")
        if series is None:
            raise DataAbsentError(
                message=f"No price data found for symbol {symbol}",
                provider=self.PROVIDER_ID
            )
        
        closes = self._closes(series, symbol, result)
        for day in sorted(closes):
            if start_date <= day <= end_date:
                result.data.append(Price(
                    symbol=symbol,
                    date=day,
                    price=closes[day],
                    currency="USD",  # daily series are quoted in USD
                    exchange_operating_mic=exchange_operating_mic
                ))
        
        return result
    
    def _closes(
        self,
        series: dict[str, Any],
        label: str,
        result: PartialResult | None
    ) -> dict[date_type, float]:
        """Map each dated row to its close, dropping unusable rows."""
        closes: dict[date_type, float] = {}
        
        for date_str, row in series.items():
            try:
                day = date_type.fromisoformat(date_str[:10])
            except ValueError:
                logger.warning(f"Alpha Vantage returned unparsable date {date_str!r} for {label}")
                continue
            
            close = self._to_float(row.get("4. close") if isinstance(row, dict) else None)
            if close is None:
                logger.warning(f"Alpha Vantage returned invalid close for {label} on {day}")
                if result is not None:
                    result.skip(day.isoformat(), "invalid close value")
                continue
            
            closes[day] = close
        
        return closes
    
    @staticmethod
    def _nearest_date(days: list[date_type], target: date_type) -> date_type:
        index = bisect.bisect_right(days, target)
        if index > 0:
            return days[index - 1]
        return days[0]
