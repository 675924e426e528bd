"""
Configuration Settings

Centralized configuration management using Pydantic and environment variables.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Values can be overridden in a local .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Database settings
    database_url: str = "sqlite:///./data/vanproperty.db"
    database_echo: bool = False  # Set to True for SQL query logging

    # HTTP server settings
    host: str = "0.0.0.0"
    port: int = 5000
    api_prefix: str = "/api"
    cors_origin: str = "http://localhost:3000"

    # Vancouver Open Data (property tax report)
    vancouver_api_url: str = (
        "https://opendata.vancouver.ca/api/explore/v2.1/catalog/datasets/"
        "property-tax-report/records"
    )
    import_batch_size: int = 100
    import_max_records: int = 500
    import_request_timeout: int = 30
    import_request_delay_seconds: float = 0.1
    import_default_year: int = 2024

    # Query defaults
    default_page_size: int = 50
    top_properties_default: int = 10
    inactive_days_default: int = 90
    saved_search_list_default: int = 5

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "json"

    # Application settings
    app_name: str = "VanProperty Insights API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


# Singleton instance
settings = Settings()
