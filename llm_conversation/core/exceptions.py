"""Custom exceptions for the conversation runner.

All exceptions are namespaced under ConversationError so callers can catch
any runner failure with a single except clause, while the retry layer can
still tell transient provider failures from fatal ones.
"""

from typing import Any

from llm_conversation.core.constants import RETRYABLE_STATUS_CODES


class ConversationError(Exception):
    """Base exception for all conversation-related errors."""

    def __init__(self, message: str, session_id: str | None = None) -> None:
        """Initialize conversation error.

        Args:
            message: Error description
            session_id: Session the error belongs to, when known
        """
        self.session_id = session_id
        super().__init__(message)


class ConfigurationError(ConversationError):
    """Raised when settings are missing or invalid.

    Always raised before a conversation starts, so no files are written
    and no network calls are made.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any | None = None,
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Error description
            field: The setting that failed validation
            value: The invalid value
            errors: Individual validation errors, when several fields failed
        """
        self.field = field
        self.value = value
        self.errors = errors or []
        super().__init__(message)


class ProviderError(ConversationError):
    """Raised when an LLM provider call fails.

    Carries the HTTP status code (when there is one) so the retry
    classifier can decide between retrying and giving up.
    """

    def __init__(
        self,
        message: str,
        provider: str,
        model: str | None = None,
        status_code: int | None = None,
        error_code: str | None = None,
    ) -> None:
        """Initialize provider error.

        Args:
            message: Error description
            provider: Provider name (openai, anthropic)
            model: Model that was requested
            status_code: HTTP status code, None for payload-embedded errors
            error_code: Provider-specific error code, if reported
        """
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Whether the status code marks a transient failure."""
        return self.status_code in RETRYABLE_STATUS_CODES


class PersistenceError(ConversationError):
    """Raised when history or a turn record cannot be written or read."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize persistence error.

        Args:
            message: Error description
            path: File or key that failed
            cause: Original exception that caused this error
        """
        self.path = path
        self.cause = cause
        if cause:
            self.__cause__ = cause
        super().__init__(message)


class UploadError(ConversationError):
    """Raised when the viewer upload endpoint rejects a transcript."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)
