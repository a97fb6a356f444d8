"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service settings. Geometry parameters are passed per request, not here."""

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    # Request limits
    max_sites: int = Field(default=50000, description="Maximum sites per tessellation request")
    max_series: int = Field(default=500, description="Maximum series per stack request")
    max_categories: int = Field(default=10000, description="Maximum categories per series")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    class Config:
        env_file = ".env"


settings = Settings()
