from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """
    
    # Environment
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    
    # Application
    app_name: str = "Partner Link Redirector"
    app_version: str = "1.0.0"
    admin_password: str = "changeme123"  # Shared secret for /api routes
    
    # Database
    database_url: str = "sqlite:///./redirector.db"
    
    # Short links
    base_url: str = "http://127.0.0.1:8000"
    code_length: int = 6
    code_max_retries: int = 10
    redirect_delay_seconds: int = 3  # Countdown on the verifying page
    
    # Visitor identity
    cdn_ip_header: str = "cf-connecting-ip"
    
    # Geolocation provider
    geo_api_url: str = "http://ip-api.com/json"
    geo_api_fields: str = "status,message,country,city,regionName"
    geo_timeout_seconds: float = 5.0
    
    # Analytics
    recent_events_limit: int = 100
    
    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get settings instance (singleton).
    
    Also used as a FastAPI dependency so routes and services receive
    configuration explicitly (tests override it).
    """
    return Settings()


settings = get_settings()
