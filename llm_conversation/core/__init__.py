"""Core module - Configuration, logging, HTTP clients, retry and shared utilities.

Exports:
    - Settings, get_settings, load_settings: Pydantic Settings configuration
    - configure_logging, get_logger: Structured logging (structlog)
    - HTTPClientFactory: per-provider httpx clients
    - RetryExecutor, RetryPolicy, is_retryable: backoff for outbound calls
    - Exception classes: ConversationError, ProviderError, etc.
"""

from llm_conversation.core.config import (
    Settings,
    get_settings,
    load_settings,
    validate_max_turns,
)
from llm_conversation.core.exceptions import (
    ConfigurationError,
    ConversationError,
    PersistenceError,
    ProviderError,
    UploadError,
)
from llm_conversation.core.http import HTTPClientFactory
from llm_conversation.core.logging import configure_logging, get_logger
from llm_conversation.core.retry import RetryExecutor, RetryPolicy, is_retryable


__all__ = [
    # Exceptions
    "ConfigurationError",
    "ConversationError",
    "PersistenceError",
    "ProviderError",
    "UploadError",
    # HTTP Clients
    "HTTPClientFactory",
    # Retry
    "RetryExecutor",
    "RetryPolicy",
    "is_retryable",
    # Configuration
    "Settings",
    "get_settings",
    "load_settings",
    "validate_max_turns",
    # Logging
    "configure_logging",
    "get_logger",
]
