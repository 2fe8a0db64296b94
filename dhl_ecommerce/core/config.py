"""
Client configuration

Settings are read once from the environment (or a .env file) and frozen
into a ClientOptions struct at construction time. Nothing is merged at
call time.

Environment variables (prefix DHL_ECS_):
- DHL_ECS_CLIENT_ID
- DHL_ECS_CLIENT_SECRET
- DHL_ECS_ENVIRONMENT_URL (or DHL_ECS_BASE_URL)
- DHL_ECS_TIMEOUT_SECONDS
"""
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT_URL = "https://api-sandbox.dhlecs.com"
PRODUCTION_ENVIRONMENT_URL = "https://api.dhlecs.com"
DEFAULT_TIMEOUT_SECONDS = 30.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DHL_ECS_",
        env_file=".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # Credentials - empty by default, the carrier rejects the exchange
    CLIENT_ID: str = ""
    CLIENT_SECRET: str = ""

    # Older configs call this environmentUrl / base_url; same field
    ENVIRONMENT_URL: str = Field(
        default=DEFAULT_ENVIRONMENT_URL,
        validation_alias=AliasChoices(
            "DHL_ECS_ENVIRONMENT_URL",
            "DHL_ECS_BASE_URL",
        ),
    )

    TIMEOUT_SECONDS: float = DEFAULT_TIMEOUT_SECONDS

    @field_validator("ENVIRONMENT_URL", mode="before")
    @classmethod
    def default_blank_url(cls, v):
        """Treat an empty env var as unset."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_ENVIRONMENT_URL
        return v

    @field_validator("TIMEOUT_SECONDS")
    @classmethod
    def positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("TIMEOUT_SECONDS must be positive")
        return v


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process."""
    return Settings()


@dataclass(frozen=True)
class Credentials:
    """Client credentials for one DHL eCommerce account."""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    environment_url: str = DEFAULT_ENVIRONMENT_URL

    @property
    def base_url(self) -> str:
        return self.environment_url


@dataclass(frozen=True)
class ClientOptions:
    """Immutable client configuration, defaults filled in once."""
    credentials: Credentials = field(default_factory=Credentials)
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ClientOptions":
        settings = settings or get_settings()
        return cls(
            credentials=Credentials(
                client_id=settings.CLIENT_ID,
                client_secret=settings.CLIENT_SECRET,
                environment_url=settings.ENVIRONMENT_URL,
            ),
            timeout=settings.TIMEOUT_SECONDS,
        )

    @classmethod
    def create(
        cls,
        client_id: str = "",
        client_secret: str = "",
        environment_url: str = DEFAULT_ENVIRONMENT_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> "ClientOptions":
        """Build options directly, without touching the environment."""
        return cls(
            credentials=Credentials(
                client_id=client_id,
                client_secret=client_secret,
                environment_url=environment_url,
            ),
            timeout=timeout,
        )
