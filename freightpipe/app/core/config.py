"""
Freight Pipeline Analytics API Configuration
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Freight Pipeline Analytics API"
    version: str = "0.1.0"
    debug: bool = False
    environment: str = "production"

    # API Configuration
    api_v1_prefix: str = "/api/v1"

    # Database
    database_url: str = "sqlite+aiosqlite:///./pipeline.db"

    # Monitoring
    prometheus_enabled: bool = True
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Forecasting
    forecast_window_days: int = 90
    deal_probability_weight: float = 0.7
    historical_win_rate_weight: float = 0.3
    # Defaults to every TransportationMode when unset
    transportation_modes: Optional[list[str]] = None

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
