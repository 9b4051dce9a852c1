"""Model provider access.

Streams chat completions from the Anthropic Messages API.

Responsibilities:
    - Provider configuration from the environment
    - One streaming call per relayed request, fixed model and token bound
    - Mapping SDK stream events to delta / complete stream events

Maintains clean separation from the HTTP layer.
"""

from src.provider.anthropic_service import ProviderService, get_provider_service
from src.provider.base import ChatProvider
from src.provider.config import ProviderConfig, get_provider_config

__all__ = [
    "ChatProvider",
    "ProviderConfig",
    "ProviderService",
    "get_provider_config",
    "get_provider_service",
]
