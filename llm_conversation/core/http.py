"""HTTP client factory for LLM provider communication.

Provides a factory for creating httpx clients pre-configured per provider:
base URL, timeout and vendor-specific authentication headers.

Providers:
- openai     Authorization: Bearer <key>
- anthropic  x-api-key: <key>, anthropic-version: 2023-06-01
"""

from typing import Any

import httpx

from llm_conversation.core.config import Settings, get_settings
from llm_conversation.core.constants import ANTHROPIC_API_VERSION
from llm_conversation.core.logging import get_logger


logger = get_logger(__name__)


class HTTPClientFactory:
    """Factory for creating HTTP clients to LLM providers.

    Provides centralized client creation with:
    - Consistent timeout configuration
    - Provider base URLs from Settings
    - Vendor authentication headers

    Example:
        ```python
        factory = HTTPClientFactory(settings)
        client = factory.create_client("anthropic")
        try:
            response = await client.post("/messages", json=payload)
        finally:
            await client.aclose()
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the HTTP client factory.

        Args:
            settings: Application settings. Uses get_settings() if not provided.
        """
        self._settings = settings or get_settings()

    def get_base_url(self, provider: str) -> str:
        """Get the base URL for a provider.

        Raises:
            ValueError: If the provider has no URL configured.
        """
        url = self._settings.base_url_for(str(provider))
        if not url:
            raise ValueError(f"No base URL configured for provider: {provider}")
        return url.rstrip("/")

    def get_headers(self, provider: str) -> dict[str, str]:
        """Authentication and content headers for a provider.

        Raises:
            ValueError: If the provider is not supported.
        """
        provider = str(provider)
        if provider not in ("openai", "anthropic"):
            raise ValueError(f"Unsupported provider: {provider}")

        api_key = self._settings.api_key_for(provider)
        headers = {"Content-Type": "application/json"}
        if provider == "openai":
            headers["Authorization"] = f"Bearer {api_key}"
        else:
            headers["x-api-key"] = api_key
            headers["anthropic-version"] = ANTHROPIC_API_VERSION
        return headers

    def create_client(
        self,
        provider: str,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create a standalone HTTP client (caller manages lifecycle).

        Warning:
            Caller is responsible for calling `await client.aclose()`.
        """
        base_url = self.get_base_url(provider)
        request_timeout = timeout or self._settings.http_timeout_seconds

        logger.debug(
            "Creating HTTP client",
            provider=str(provider),
            base_url=base_url,
            timeout=request_timeout,
        )

        return httpx.AsyncClient(
            base_url=base_url,
            headers=self.get_headers(provider),
            timeout=httpx.Timeout(request_timeout),
            **kwargs,
        )
