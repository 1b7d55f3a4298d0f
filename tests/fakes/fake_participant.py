"""Fake participants and clock for orchestrator unit tests.

FakeParticipant follows the same contract as the provider adapters:
it appends the outbound message and its reply to the shared history,
persists a TurnRecord and returns a TurnResult. No HTTP is involved.

Example:
    >>> factory = FakeParticipantFactory(storage, tokens={ParticipantSlot.FIRST: 10})
    >>> orchestrator = ConversationOrchestrator(settings, storage, participant_factory=factory)
"""

from __future__ import annotations

from typing import Any

from llm_conversation.conversation.history import HistoryStore
from llm_conversation.conversation.models import (
    Message,
    Participant,
    ParticipantSlot,
    TokenUsage,
    TurnRecord,
    TurnResult,
    utc_now,
)
from llm_conversation.conversation.storage import SessionStorage


class FakeClock:
    """Monotonic clock advanced only by its own sleep().

    Attributes:
        now: Current time in seconds.
        sleeps: Every duration passed to sleep(), in order.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeParticipant:
    """In-memory participant with scripted replies and error injection."""

    def __init__(
        self,
        participant: Participant,
        history: HistoryStore,
        storage: SessionStorage,
        tokens: int = 10,
        fail_on_turn: int | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.participant = participant
        self.history = history
        self.storage = storage
        self.tokens = tokens
        self.fail_on_turn = fail_on_turn
        self.error = error or RuntimeError("injected failure")
        self.calls: list[dict[str, Any]] = []
        self.closed = False

    async def process(self, message: str, session_id: str, turn_number: int) -> TurnResult:
        self.calls.append({"message": message, "session_id": session_id, "turn": turn_number})
        self.history.add_message(Message(content=message, role="user"))

        if turn_number == self.fail_on_turn:
            raise self.error

        reply = f"{self.participant.slot.value} reply to turn {turn_number}"
        self.history.add_participant_output(self.participant.slot, reply)
        record = TurnRecord(
            turn=turn_number,
            speaker=self.participant.provider,
            speaker_position=self.participant.speaker_position,
            participant=self.participant.slot,
            model=self.participant.model,
            timestamp=utc_now(),
            input=message,
            output=reply,
            response_time_ms=100 * turn_number,
            tokens=TokenUsage(total=self.tokens),
        )
        self.storage.save_turn(session_id, record)
        return TurnResult(response=reply, record=record)

    async def close(self) -> None:
        self.closed = True


class FakeParticipantFactory:
    """Participant factory for ConversationOrchestrator.

    Attributes:
        created: Participants built so far, keyed by slot.
    """

    def __init__(
        self,
        storage: SessionStorage,
        tokens: dict[ParticipantSlot, int] | None = None,
        fail_on_turn: int | None = None,
        error: BaseException | None = None,
    ) -> None:
        self.storage = storage
        self.tokens = tokens or {}
        self.fail_on_turn = fail_on_turn
        self.error = error
        self.created: dict[ParticipantSlot, FakeParticipant] = {}

    def __call__(self, participant: Participant, history: HistoryStore) -> FakeParticipant:
        fake = FakeParticipant(
            participant,
            history,
            self.storage,
            tokens=self.tokens.get(participant.slot, 10),
            fail_on_turn=self.fail_on_turn,
            error=self.error,
        )
        self.created[participant.slot] = fake
        return fake
