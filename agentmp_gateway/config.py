"""Application configuration using Pydantic Settings."""

import json
from functools import lru_cache
from typing import Annotated

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from agentmp_gateway.proxy.errors import CredentialMissing


class Settings(BaseSettings):
    """Gateway settings loaded from environment variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "AgentMP MCP Gateway"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 12345
    SHUTDOWN_GRACE_SECONDS: int = 10

    # Credential injected into every proxied request
    AGENTMP_API_KEY: str = Field(
        ...,
        description="Bearer token sent to every upstream MCP server and A2A agent",
    )

    # Routing file
    CONFIG_PATH: str = "config.json"

    # Outbound proxy client
    PROXY_TIMEOUT: float = 300.0
    PROXY_CONNECT_TIMEOUT: float = 10.0
    PROXY_MAX_CONNECTIONS: int = 100
    PROXY_MAX_KEEPALIVE: int = 20

    CORS_ORIGINS: Annotated[list[str], NoDecode] = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # OpenTelemetry Configuration
    OTEL_ENABLED: bool = False
    OTEL_EXPORTER_OTLP_ENDPOINT: str | None = None
    OTEL_SERVICE_NAME: str = "agentmp-gateway"

    @field_validator("AGENTMP_API_KEY")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Reject an empty credential."""
        if not v or not v.strip():
            raise ValueError("AGENTMP_API_KEY must not be empty")
        return v.strip()

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v) -> list[str]:
        """Parse CORS origins from list or comma-separated string."""
        if isinstance(v, str):
            if v == "*":
                return ["*"]
            if v.lstrip().startswith("["):
                v = json.loads(v)
                return [str(origin).rstrip("/") for origin in v if origin]
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        if isinstance(v, list):
            return [str(origin).rstrip("/") for origin in v if origin]
        return []

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of {valid_levels}")
        return v_upper

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if not 1 <= v <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("PROXY_TIMEOUT", "PROXY_CONNECT_TIMEOUT")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout values are positive and bounded."""
        if v <= 0:
            raise ValueError("Timeout must be a positive number")
        if v > 3600:
            raise ValueError("Timeout should not exceed 3600 seconds")
        return v

    @field_validator("PROXY_MAX_CONNECTIONS", "PROXY_MAX_KEEPALIVE", "SHUTDOWN_GRACE_SECONDS")
    @classmethod
    def validate_non_negative_int(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Value must be a non-negative integer")
        return v


def load_settings(**overrides) -> Settings:
    """
    Build settings, translating a missing credential into ``CredentialMissing``.

    Any other validation problem is re-raised unchanged.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        if any("AGENTMP_API_KEY" in err["loc"] for err in e.errors()):
            raise CredentialMissing(
                "AGENTMP_API_KEY environment variable is required"
            ) from e
        raise


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
