"""
VALUTA Configuration Management

API keys are read from the environment (or a local .env file). Keys saved
through the application's settings store take precedence; see
ProviderRegistry for the resolution order.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    # === Provider Credentials ===
    alpha_vantage_api_key: str = Field(
        default="",
        description="Alpha Vantage API key (required for that provider)"
    )
    exchange_rate_api_key: str = Field(
        default="",
        description="ExchangeRate-API key (optional, unlocks historical rates)"
    )
    logo_dev_api_key: str = Field(
        default="",
        description="Logo.dev publishable key (optional, raises quota)"
    )
    
    # === Provider Endpoints ===
    alpha_vantage_base_url: str = Field(
        default="https://www.alphavantage.co",
        description="Alpha Vantage API base URL"
    )
    exchange_rate_api_base_url: str = Field(
        default="https://api.exchangerate-api.com/v4",
        description="ExchangeRate-API base URL"
    )
    logo_dev_base_url: str = Field(
        default="https://img.logo.dev",
        description="Logo.dev image CDN base URL"
    )
    favicon_base_url: str = Field(
        default="https://www.google.com/s2/favicons",
        description="Public favicon service used when Logo.dev has no logo"
    )
    
    # === HTTP Client ===
    http_timeout_seconds: float = Field(default=10.0)
    http_user_agent: str = Field(default="Valuta Finance Data Client")
    request_delay_seconds: float = Field(
        default=0.1,
        description="Pause between authenticated requests in range/batch fetches"
    )
    
    # === Logging ===
    log_level: str = Field(default="INFO")
    
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
