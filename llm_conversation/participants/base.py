"""
Base Participant - Shared turn processing for provider adapters.

A participant turns one outbound message into one TurnResult:

    render history -> POST via RetryExecutor -> check payload -> normalize
    -> append reply to history -> persist TurnRecord -> log

Subclasses supply only the vendor-specific parts: the endpoint, the request
payload (which renders the history) and response normalization.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar

import httpx

from llm_conversation.conversation.history import HistoryStore
from llm_conversation.conversation.models import (
    Participant,
    Provider,
    TokenUsage,
    TurnRecord,
    TurnResult,
    utc_now,
)
from llm_conversation.conversation.storage import SessionStorage
from llm_conversation.core.exceptions import ProviderError
from llm_conversation.core.logging import INPUT, METADATA, OUTPUT, get_turn_logger
from llm_conversation.core.retry import RetryExecutor


class BaseParticipant(ABC):
    """Abstract base class for provider participants.

    Attributes:
        participant: Slot, provider and resolved model this adapter serves.
        history: Shared session history.
        storage: Where turn records are persisted.
    """

    provider: ClassVar[Provider]
    endpoint: ClassVar[str]

    def __init__(
        self,
        participant: Participant,
        history: HistoryStore,
        storage: SessionStorage,
        client: httpx.AsyncClient,
        retry: RetryExecutor | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the participant.

        Args:
            participant: Participant definition (slot, provider, model).
            history: Session history, shared with the other participant.
            storage: Turn-record persistence.
            client: HTTP client with base URL and auth headers set.
            retry: Retry executor for the outbound call.
            clock: Monotonic clock in seconds, used for response timing.
        """
        if participant.provider is not self.provider:
            raise ValueError(
                f"{type(self).__name__} cannot serve provider {participant.provider.value}"
            )
        self.participant = participant
        self.history = history
        self.storage = storage
        self._client = client
        self._retry = retry or RetryExecutor()
        self._clock = clock

    @property
    def model(self) -> str:
        return self.participant.model

    @abstractmethod
    def build_payload(self, message: str) -> dict[str, Any]:
        """Build the request body. Appends ``message`` to history."""

    @abstractmethod
    def parse_response(self, data: dict[str, Any]) -> tuple[str, TokenUsage, str]:
        """Extract (text, token usage, model) from a successful payload."""

    async def process(self, message: str, session_id: str, turn_number: int) -> TurnResult:
        """Run one turn.

        Args:
            message: Text to send (topic or the other participant's reply).
            session_id: Session identifier.
            turn_number: 1-based turn index.

        Returns:
            TurnResult with the reply and its TurnRecord.

        Raises:
            ProviderError: On a fatal or exhausted provider failure.
            PersistenceError: If history or the turn record cannot be saved.
        """
        log = get_turn_logger(
            __name__,
            session_id,
            turn_number,
            participant=self.participant.slot.value,
            provider=self.provider.value,
        )
        log.info("Received message from conversation orchestrator")
        log.info("Turn input", marker=INPUT, content=message)

        try:
            started_at = utc_now()
            payload = self.build_payload(message)
            log.debug(
                "Sending request",
                messages=len(payload["messages"]),
                model=self.model,
            )

            start = self._clock()
            data = await self._retry.run(
                lambda: self._send(payload),
                description=f"{self.provider.value} request",
            )
            response_time_ms = int((self._clock() - start) * 1000)
            log.debug("Response received", response_time_ms=response_time_ms)

            text, tokens, model_used = self._normalize(data)
            self.history.add_participant_output(self.participant.slot, text)

            record = TurnRecord(
                turn=turn_number,
                speaker=self.provider,
                speaker_position=self.participant.speaker_position,
                participant=self.participant.slot,
                model=model_used,
                timestamp=started_at,
                input=message,
                output=text,
                response_time_ms=response_time_ms,
                tokens=tokens,
                raw_response=data,
            )
            self.storage.save_turn(session_id, record)
        except Exception as e:
            log.error(f"Failed to process {self.provider.value} request", error=str(e))
            raise

        log.info("Turn output", marker=OUTPUT, content=text)
        log.info(
            "Turn metadata",
            marker=METADATA,
            tokens=tokens.total,
            response_time_ms=response_time_ms,
        )
        return TurnResult(response=text, record=record)

    async def _send(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Single HTTP attempt. Raises ProviderError on any failure."""
        response = await self._client.post(self.endpoint, json=payload)

        if not response.is_success:
            message, error_code = self._error_details(response)
            raise ProviderError(
                f"HTTP {response.status_code}: {message}",
                provider=self.provider.value,
                model=self.model,
                status_code=response.status_code,
                error_code=error_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Invalid JSON from {self.provider.value}: {e}",
                provider=self.provider.value,
                model=self.model,
            ) from e

        if isinstance(data, dict) and "error" in data:
            error = data["error"]
            details = error if isinstance(error, dict) else {"message": str(error)}
            raise ProviderError(
                details.get("message") or "Unknown provider error",
                provider=self.provider.value,
                model=self.model,
                error_code=details.get("type") or details.get("code"),
            )
        return data

    def _normalize(self, data: dict[str, Any]) -> tuple[str, TokenUsage, str]:
        try:
            return self.parse_response(data)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError(
                f"Malformed {self.provider.value} response: {e!r}",
                provider=self.provider.value,
                model=self.model,
            ) from e

    @staticmethod
    def _error_details(response: httpx.Response) -> tuple[str, str | None]:
        """Best-effort error message and code from an error response."""
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason_phrase, None
        error = body.get("error") if isinstance(body, dict) else None
        if isinstance(error, dict):
            return error.get("message") or response.text, error.get("type") or error.get("code")
        return response.text or response.reason_phrase, None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
