"""Configuration for the person store."""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Person store configuration.

    All settings can be overridden via environment variables.
    """

    # Service configuration
    SERVICE_NAME: str = Field(default="person-store")
    SERVICE_HOST: str = Field(default="0.0.0.0")
    SERVICE_PORT: int = Field(default=8020, ge=1, le=65535)
    DEBUG: bool = Field(default=False)
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO"
    )
    LOG_JSON: bool = Field(default=True)

    # Document store
    MONGO_URI: str = Field(default="mongodb://localhost:27017")
    MONGO_DATABASE: str = Field(default="person_store")
    PERSON_COLLECTION: str = Field(default="people")
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = Field(default=5000, ge=1)
    MONGO_CONNECT_TIMEOUT_MS: int = Field(default=10000, ge=1)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def mongo_client_options(self) -> dict:
        """Driver options derived from the timeout settings."""
        return {
            "serverSelectionTimeoutMS": self.MONGO_SERVER_SELECTION_TIMEOUT_MS,
            "connectTimeoutMS": self.MONGO_CONNECT_TIMEOUT_MS,
        }


settings = Settings()
