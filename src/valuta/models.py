"""
VALUTA Data Models

Value objects produced by providers. All records are immutable and carry
calendar dates only. Rates and prices MUST be positive finite numbers;
providers drop vendor rows that cannot satisfy that.
"""

import math
from datetime import date as date_type
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# === Enums ===

class Concept(str, Enum):
    """Logical capability groupings served by one or more providers."""
    EXCHANGE_RATES = "exchange_rates"
    SECURITIES = "securities"
    LOGOS = "logos"


class ProviderId(str, Enum):
    """Registered provider identifiers."""
    ALPHA_VANTAGE = "alpha_vantage"
    EXCHANGE_RATE_API = "exchange_rate_api"
    LOGO_DEV = "logo_dev"


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


# === Usage ===

class UsageData(_Record):
    """Snapshot of quota consumption for a provider."""
    used: int = Field(ge=0)
    limit: float = Field(description="Request limit; math.inf for unmetered access")
    utilization: float = Field(ge=0)
    plan: str
    
    @property
    def unlimited(self) -> bool:
        return math.isinf(self.limit)


# === Exchange Rates ===

class Rate(_Record):
    """One exchange-rate observation: 1 unit of from_currency in to_currency."""
    date: date_type
    from_currency: str = Field(alias="from")
    to_currency: str = Field(alias="to")
    rate: float = Field(gt=0, allow_inf_nan=False)
    
    @field_validator("from_currency", "to_currency")
    @classmethod
    def _upper(cls, v: str) -> str:
        return v.upper()


# === Securities ===

class Price(_Record):
    """One closing price observation for a security."""
    symbol: str
    date: date_type
    price: float = Field(gt=0, allow_inf_nan=False)
    currency: str
    exchange_operating_mic: str | None = None


class Security(_Record):
    """Search-result identity record."""
    symbol: str
    name: str | None = None
    logo_url: str | None = None
    exchange_operating_mic: str | None = None
    country_code: str | None = None


class SecurityInfo(_Record):
    """Descriptive record for a single security."""
    symbol: str
    name: str | None = None
    links: dict[str, str] | None = None
    logo_url: str | None = None
    description: str | None = None
    kind: str | None = None
    exchange_operating_mic: str | None = None
