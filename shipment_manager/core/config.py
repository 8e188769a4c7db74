"""
Application configuration

Defaults target a local development setup. Carrier credentials are NOT read
from here; they arrive per tenant through the decrypted app configuration.
The only carrier values kept here are the public sandbox credentials used
when a tenant runs InOut in test mode.
"""
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # App
    APP_NAME: str = "Shipment Manager"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Outbound HTTP
    HTTP_TIMEOUT_SECONDS: float = 30.0
    HTTP_USER_AGENT: str = "shipment-manager/1.0"

    # Sender address store
    DATABASE_URL: str = "sqlite:///./shipment_manager.db"

    # Office cache - empty REDIS_URL keeps the cache in process memory
    REDIS_URL: str = ""
    OFFICE_CACHE_KEY_PREFIX: str = "shipping:offices"

    # InOut sandbox
    INOUT_TEST_TOKEN: str = ""
    INOUT_TEST_COMPANY_ID: int = 333

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        level = str(v or "INFO").upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}")
        return level

    @field_validator("HTTP_TIMEOUT_SECONDS")
    @classmethod
    def validate_timeout(cls, v):
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_SECONDS must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
