"""Server configuration with environment variable loading."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

load_dotenv()


class ServerConfig(BaseModel):
    """Configuration for the HTTP server and chat UI.

    Attributes:
        port: Listen port. Required.
        host: Listen address.
        log_level: Root log level name.
        storage_secret: Secret used to sign the UI's per-browser storage.
        api_base_url: Base URL the chat UI uses to reach the API.
    """

    model_config = ConfigDict(validate_default=True)

    port: int = Field(default_factory=lambda: os.getenv("PORT", ""), ge=1, le=65535)
    host: str = Field(default_factory=lambda: os.getenv("HOST", "0.0.0.0"))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    storage_secret: str = Field(
        default_factory=lambda: os.getenv("STORAGE_SECRET", "streaming-chat-secret")
    )
    api_base_url: str | None = Field(default_factory=lambda: os.getenv("API_BASE_URL") or None)

    @field_validator("port", mode="before")
    @classmethod
    def require_port(cls, v: object) -> object:
        """Reject a missing or blank PORT before integer parsing."""
        if v is None or (isinstance(v, str) and not v.strip()):
            raise ValueError("Listen port required. Set PORT in .env")
        return v

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.strip().upper() or "INFO"

    @property
    def base_url(self) -> str:
        """URL the UI's session controller sends chat requests to."""
        return self.api_base_url or f"http://127.0.0.1:{self.port}"


def get_server_config() -> ServerConfig:
    """Create server configuration from environment.

    Raises:
        ValueError: If PORT is missing or invalid.
    """
    return ServerConfig()
