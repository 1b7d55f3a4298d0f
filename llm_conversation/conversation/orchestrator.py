"""
Conversation Orchestrator - Two-party turn loop

Drives one conversation session from the opening prompt to the final
transcript.

State machine:

    not_started --run()--> running --max turns reached--> completed
                               \\--unrecovered error-----> failed

Flow per turn:
    Orchestrator -> active participant.process(message) -> reply
    -> reply becomes the next participant's message

Participants always alternate, starting with the FIRST slot. Participants
never talk to each other directly; every message goes through here.
"""

from __future__ import annotations

import asyncio
import re
import time
import uuid
from datetime import datetime
from typing import Any, Awaitable, Callable

from llm_conversation.conversation.history import HistoryStore
from llm_conversation.conversation.models import (
    ConversationStatistics,
    ConversationTranscript,
    Participant,
    ParticipantSlot,
    Provider,
    SessionStatus,
    utc_now,
)
from llm_conversation.conversation.storage import FileSessionStorage, SessionStorage
from llm_conversation.core.config import Settings, get_settings, validate_max_turns
from llm_conversation.core.constants import SESSION_ID_SUFFIX_LENGTH, SESSION_TOPIC_SLUG_LENGTH
from llm_conversation.core.exceptions import ConfigurationError, ConversationError
from llm_conversation.core.logging import get_logger
from llm_conversation.core.retry import RetryExecutor, RetryPolicy


logger = get_logger(__name__)

# (participant, shared history) -> object with async process() and close()
ParticipantFactory = Callable[[Participant, HistoryStore], Any]
Sleeper = Callable[[float], Awaitable[Any]]


class ConversationOrchestrator:
    """Runs a single two-participant conversation session.

    An orchestrator instance runs one session; create a new one per run.

    Attributes:
        settings: Validated application settings.
        storage: Session persistence (history, turns, transcript).
        status: Current session status.
        session_id: Set once run() starts.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: SessionStorage | None = None,
        participant_factory: ParticipantFactory | None = None,
        sleep: Sleeper = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            settings: Application settings. Uses get_settings() if not provided.
            storage: Persistence backend. Defaults to files under settings.log_dir.
            participant_factory: Builds a participant for a slot. Defaults to
                the provider adapters over real HTTP clients.
            sleep: Async sleep for the inter-turn delay and retry backoff.
            clock: Monotonic clock used for response timing.
        """
        self.settings = settings or get_settings()
        self.storage = storage or FileSessionStorage(self.settings.log_dir)
        self._participant_factory = participant_factory or self._create_provider_participant
        self._sleep = sleep
        self._clock = clock

        self.status = SessionStatus.NOT_STARTED
        self.session_id: str | None = None
        self.transcript_location: str | None = None

    @staticmethod
    def generate_session_id(
        topic: str,
        now: datetime | None = None,
        suffix: str | None = None,
    ) -> str:
        """Build ``conversation_<YYYYMMDD_HHMMSS>_<slug>_<suffix>`` for a topic.

        The random suffix keeps two sessions on the same topic started within
        the same second from sharing history and turn files.
        """
        timestamp = (now or utc_now()).strftime("%Y%m%d_%H%M%S")
        slug = re.sub(r"[^a-z0-9]", "_", topic.lower())[:SESSION_TOPIC_SLUG_LENGTH]
        suffix = suffix or uuid.uuid4().hex[:SESSION_ID_SUFFIX_LENGTH]
        return f"conversation_{timestamp}_{slug}_{suffix}"

    def resolve_participants(self) -> dict[ParticipantSlot, Participant]:
        """Bind each slot to its configured provider and resolved model."""
        participants = {}
        for slot in ParticipantSlot:
            provider = Provider(self.settings.provider_for(slot.value))
            participants[slot] = Participant(
                slot=slot,
                provider=provider,
                model=self.settings.model_for(slot.value),
                api_base=self.settings.base_url_for(provider.value),
            )
        return participants

    async def run(
        self,
        topic: str | None = None,
        max_turns: int | None = None,
    ) -> ConversationTranscript:
        """Run the conversation to completion.

        Args:
            topic: Opening prompt. Defaults to settings.conversation_topic.
            max_turns: Turn budget in [2, 50]. Defaults to settings.max_turns.

        Returns:
            The completed transcript, already persisted via storage.

        Raises:
            ConfigurationError: Invalid topic or turn budget. Raised before
                any file is written or request is sent.
            ConversationError: If this orchestrator already ran a session.
            ProviderError: A participant call failed fatally or ran out of retries.
            PersistenceError: History, a turn record or the transcript could
                not be persisted.
        """
        topic = (topic if topic is not None else self.settings.conversation_topic).strip()
        if not topic:
            raise ConfigurationError("A conversation topic is required", field="conversation_topic")
        turn_budget = validate_max_turns(self.settings.max_turns if max_turns is None else max_turns)

        if self.status is not SessionStatus.NOT_STARTED:
            raise ConversationError(
                f"Orchestrator already used for session {self.session_id}",
                session_id=self.session_id,
            )

        participants = self.resolve_participants()
        session_id = self.generate_session_id(topic)
        self.session_id = session_id
        created_at = utc_now()

        log = logger.bind(session_id=session_id)
        log.info(
            "Conversation started",
            topic=topic,
            max_turns=turn_budget,
            participants={
                slot.value: f"{p.provider.value}/{p.model}" for slot, p in participants.items()
            },
        )

        self.status = SessionStatus.RUNNING
        adapters: dict[ParticipantSlot, Any] = {}
        try:
            history = HistoryStore(session_id, topic, self.storage)
            for slot, participant in participants.items():
                adapters[slot] = self._participant_factory(participant, history)

            await self._run_turns(adapters, topic, session_id, turn_budget)

            records = self.storage.load_turns(session_id)
            transcript = ConversationTranscript(
                session_id=session_id,
                topic=topic,
                max_turns=turn_budget,
                created_at=created_at,
                completed_at=utc_now(),
                status=SessionStatus.COMPLETED,
                participants=participants,
                turns=tuple(records),
                statistics=ConversationStatistics.from_turns(records, participants),
            )
            self.transcript_location = self.storage.save_transcript(transcript)
        except BaseException as e:
            # Cancellation also fails the session
            self.status = SessionStatus.FAILED
            log.error("Conversation failed", error=str(e), error_type=type(e).__name__)
            raise
        finally:
            await self._close_adapters(adapters)

        self.status = SessionStatus.COMPLETED
        log.info(
            "Conversation completed",
            turns=transcript.actual_turns,
            total_tokens=transcript.statistics.total_tokens,
            duration_seconds=transcript.duration_seconds,
            transcript=self.transcript_location,
        )
        return transcript

    async def _run_turns(
        self,
        adapters: dict[ParticipantSlot, Any],
        topic: str,
        session_id: str,
        turn_budget: int,
    ) -> None:
        message = topic
        slot = ParticipantSlot.FIRST
        for turn in range(1, turn_budget + 1):
            logger.info(
                f"Turn {turn}/{turn_budget}",
                session_id=session_id,
                participant=slot.value,
            )
            result = await adapters[slot].process(message, session_id, turn)
            message = result.response
            slot = slot.other

            if turn < turn_budget:
                await self._sleep(self.settings.delay_between_messages)

    def _create_provider_participant(self, participant: Participant, history: HistoryStore) -> Any:
        # Lazy import to avoid circular dependency
        from llm_conversation.core.http import HTTPClientFactory
        from llm_conversation.participants.factory import create_participant

        return create_participant(
            participant,
            history=history,
            storage=self.storage,
            http_factory=HTTPClientFactory(self.settings),
            retry=RetryExecutor(RetryPolicy.from_settings(self.settings), sleep=self._sleep),
            clock=self._clock,
        )

    async def _close_adapters(self, adapters: dict[ParticipantSlot, Any]) -> None:
        for slot, adapter in adapters.items():
            try:
                await adapter.close()
            except Exception as e:
                logger.warning("Failed to close participant", participant=slot.value, error=str(e))
