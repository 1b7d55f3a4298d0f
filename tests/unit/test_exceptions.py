"""Unit tests for custom exceptions.

Pattern: Custom exception hierarchy
"""

import pytest

from llm_conversation.core.exceptions import (
    ConfigurationError,
    ConversationError,
    PersistenceError,
    ProviderError,
    UploadError,
)


class TestConversationError:
    """Tests for base ConversationError exception."""

    def test_is_exception(self) -> None:
        assert issubclass(ConversationError, Exception)

    def test_stores_message_and_session(self) -> None:
        error = ConversationError("Test error message", session_id="conversation_1")

        assert str(error) == "Test error message"
        assert error.session_id == "conversation_1"

    @pytest.mark.parametrize(
        "subclass",
        [ConfigurationError, ProviderError, PersistenceError, UploadError],
    )
    def test_subclasses_share_base(self, subclass: type) -> None:
        assert issubclass(subclass, ConversationError)


class TestConfigurationError:
    """Tests for ConfigurationError exception."""

    def test_stores_field_and_value(self) -> None:
        error = ConfigurationError("bad turns", field="max_turns", value=1)

        assert error.field == "max_turns"
        assert error.value == 1
        assert error.errors == []


class TestProviderError:
    """Tests for ProviderError exception."""

    def test_stores_provider_details(self) -> None:
        error = ProviderError(
            "HTTP 401: invalid key",
            provider="openai",
            model="gpt-4o-mini",
            status_code=401,
            error_code="invalid_api_key",
        )

        assert error.provider == "openai"
        assert error.model == "gpt-4o-mini"
        assert error.status_code == 401
        assert error.error_code == "invalid_api_key"

    @pytest.mark.parametrize("status", [429, 500, 502, 503, 504])
    def test_transient_statuses_are_retryable(self, status: int) -> None:
        assert ProviderError("x", provider="anthropic", status_code=status).retryable

    @pytest.mark.parametrize("status", [400, 401, 403, 404, None])
    def test_other_statuses_are_fatal(self, status: int | None) -> None:
        assert not ProviderError("x", provider="anthropic", status_code=status).retryable


class TestPersistenceError:
    """Tests for PersistenceError exception."""

    def test_chains_cause(self) -> None:
        cause = OSError("disk full")
        error = PersistenceError("write failed", path="logs/x.json", cause=cause)

        assert error.path == "logs/x.json"
        assert error.cause is cause
        assert error.__cause__ is cause


class TestUploadError:
    """Tests for UploadError exception."""

    def test_stores_status(self) -> None:
        assert UploadError("HTTP 500", status_code=500).status_code == 500
