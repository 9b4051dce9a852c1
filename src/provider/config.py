"""Provider configuration with environment variable loading.

Pydantic-based configuration for the Anthropic streaming client.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file
load_dotenv()

DEFAULT_MODEL = "claude-3-7-sonnet-20250219"
DEFAULT_MAX_TOKENS = 1024


class ProviderConfig(BaseModel):
    """Configuration for the model provider.

    Attributes:
        api_key: Anthropic API key.
        model_name: Model identifier used for every request.
        max_tokens: Upper bound on generated tokens per response.
        timeout: Provider request timeout in seconds.
    """

    model_config = ConfigDict(validate_default=True)

    api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", os.getenv("ANTHROPIC_KEY", "")),
        description="API key for the model provider",
    )
    model_name: str = Field(default=DEFAULT_MODEL, description="Model to use")
    max_tokens: int = Field(
        default=DEFAULT_MAX_TOKENS,
        ge=1,
        le=128000,
        description="Maximum tokens in generated response",
    )
    timeout: float = Field(
        default_factory=lambda: os.getenv("PROVIDER_TIMEOUT", "60"),
        gt=0,
        description="Provider request timeout in seconds",
    )

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError("API key required. Set ANTHROPIC_API_KEY in .env")
        v = v.strip()
        if len(v) > 255:
            raise ValueError("API key too long (max 255 characters)")
        return v


def get_provider_config() -> ProviderConfig:
    """Create provider configuration from environment.

    Raises:
        ValueError: If no API key is set.
    """
    return ProviderConfig()
