"""
Conversation Models - Data structures for two-party LLM conversations

This module defines the core data structures exchanged between the
orchestrator, the provider participants and session storage:

- Participant: one of the two fixed conversation slots
- Message / ConversationHistory: the shared, append-only message log
- TurnRecord / TurnResult: the outcome of one participant's turn
- ConversationTranscript: the finished artifact handed to serialization/upload
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from llm_conversation.core.constants import TRANSCRIPT_FEATURES, TRANSCRIPT_VERSION


class Provider(str, Enum):
    """Supported LLM vendors."""

    OPENAI = "openai"        # Chat Completions wire format
    ANTHROPIC = "anthropic"  # Messages wire format


class ParticipantSlot(str, Enum):
    """The two conversation slots. FIRST always opens the conversation."""

    FIRST = "llm1"
    SECOND = "llm2"

    @property
    def other(self) -> ParticipantSlot:
        """The opposite slot."""
        return ParticipantSlot.SECOND if self is ParticipantSlot.FIRST else ParticipantSlot.FIRST

    @property
    def speaker_position(self) -> SpeakerPosition:
        """Display position used by the viewer for visual alternation."""
        if self is ParticipantSlot.FIRST:
            return SpeakerPosition.SPEAKER_1
        return SpeakerPosition.SPEAKER_2


class SpeakerPosition(str, Enum):
    """Stable display label for a participant."""

    SPEAKER_1 = "speaker_1"
    SPEAKER_2 = "speaker_2"


class SessionStatus(str, Enum):
    """Lifecycle of one conversation session."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class Participant:
    """A conversation slot bound to a vendor and model for one session.

    Attributes:
        slot: FIRST or SECOND.
        provider: Vendor serving this participant.
        model: Resolved model name (override or vendor default).
        api_base: Vendor base URL, recorded in the transcript.
    """

    slot: ParticipantSlot
    provider: Provider
    model: str
    api_base: str = ""

    @property
    def speaker_position(self) -> SpeakerPosition:
        return self.slot.speaker_position

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "provider": self.provider.value,
            "model": self.model,
            "api_base": self.api_base,
            "speaker_position": self.speaker_position.value,
        }


@dataclass(frozen=True)
class Message:
    """Single utterance in the shared history.

    A message carries either a structural role ("user") or a speaker tag
    naming the participant slot that produced it, never both.

    Attributes:
        content: The message text.
        role: Structural role for prompts fed into a participant.
        speaker: Slot value ("llm1"/"llm2") of the participant that wrote it.
    """

    content: str
    role: str | None = None
    speaker: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"content": self.content}
        if self.role is not None:
            data["role"] = self.role
        if self.speaker is not None:
            data["speaker"] = self.speaker
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        return cls(
            content=data["content"],
            role=data.get("role"),
            speaker=data.get("speaker"),
        )


@dataclass
class ConversationHistory:
    """Ordered message log for a session plus its fixed topic."""

    topic: str
    messages: list[Message] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_topic": self.topic,
            "messages": [m.to_dict() for m in self.messages],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ConversationHistory:
        return cls(
            topic=data["conversation_topic"],
            messages=[Message.from_dict(m) for m in data.get("messages", [])],
        )


@dataclass(frozen=True)
class TokenUsage:
    """Normalized token counts.

    OpenAI reports prompt/completion, Anthropic reports input/output;
    ``total`` is always populated.
    """

    total: int
    prompt: int | None = None
    completion: int | None = None
    input: int | None = None
    output: int | None = None

    def to_dict(self) -> dict[str, int]:
        data = {"total": self.total}
        for name in ("prompt", "completion", "input", "output"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TokenUsage:
        return cls(
            total=int(data.get("total", 0)),
            prompt=data.get("prompt"),
            completion=data.get("completion"),
            input=data.get("input"),
            output=data.get("output"),
        )


@dataclass(frozen=True)
class TurnRecord:
    """Result of one participant's turn.

    Attributes:
        turn: 1-based turn index, unique within the session.
        speaker: Provider that produced the output.
        speaker_position: Display position of the participant.
        participant: Slot value of the participant.
        model: Model name reported by the provider.
        timestamp: When the turn started.
        input: Text sent to the participant.
        output: Text the participant produced.
        response_time_ms: Elapsed time across all attempts.
        tokens: Normalized token usage.
        raw_response: Provider payload, kept for audit.
    """

    turn: int
    speaker: Provider
    speaker_position: SpeakerPosition
    participant: ParticipantSlot
    model: str
    timestamp: datetime
    input: str
    output: str
    response_time_ms: int
    tokens: TokenUsage
    raw_response: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "turn": self.turn,
            "speaker": self.speaker.value,
            "speaker_position": self.speaker_position.value,
            "participant": self.participant.value,
            "model": self.model,
            "timestamp": self.timestamp.isoformat(),
            "input": self.input,
            "output": self.output,
            "response_time_ms": self.response_time_ms,
            "tokens": self.tokens.to_dict(),
            "raw_response": self.raw_response,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TurnRecord:
        return cls(
            turn=int(data["turn"]),
            speaker=Provider(data["speaker"]),
            speaker_position=SpeakerPosition(data["speaker_position"]),
            participant=ParticipantSlot(data["participant"]),
            model=data["model"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            input=data["input"],
            output=data["output"],
            response_time_ms=int(data["response_time_ms"]),
            tokens=TokenUsage.from_dict(data.get("tokens", {})),
            raw_response=data.get("raw_response") or {},
        )


@dataclass(frozen=True)
class TurnResult:
    """What a participant hands back to the orchestrator."""

    response: str
    record: TurnRecord


@dataclass(frozen=True)
class ConversationStatistics:
    """Aggregate token and timing figures for a transcript."""

    total_tokens: int
    openai_tokens: int
    anthropic_tokens: int
    average_response_time_ms: float

    @classmethod
    def from_turns(
        cls,
        turns: list[TurnRecord] | tuple[TurnRecord, ...],
        participants: dict[ParticipantSlot, Participant],
    ) -> ConversationStatistics:
        """Aggregate turn records.

        Per-vendor totals follow the session's slot-to-provider mapping,
        so a turn is attributed to whichever vendor its participant used.
        """
        per_provider = {provider: 0 for provider in Provider}
        total = 0
        for record in turns:
            tokens = record.tokens.total
            total += tokens
            participant = participants.get(record.participant)
            provider = participant.provider if participant else record.speaker
            per_provider[provider] += tokens

        average = (
            sum(record.response_time_ms for record in turns) / len(turns)
            if turns else 0.0
        )
        return cls(
            total_tokens=total,
            openai_tokens=per_provider[Provider.OPENAI],
            anthropic_tokens=per_provider[Provider.ANTHROPIC],
            average_response_time_ms=average,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_tokens": self.total_tokens,
            "openai_tokens": self.openai_tokens,
            "anthropic_tokens": self.anthropic_tokens,
            "average_response_time_ms": self.average_response_time_ms,
        }


@dataclass(frozen=True)
class ConversationTranscript:
    """The finished, immutable record of a session.

    Attributes:
        session_id: Unique session identifier.
        topic: Conversation topic (also the opening prompt).
        max_turns: Configured turn budget.
        created_at: Session start.
        completed_at: Session end.
        status: Final session status.
        participants: Slot-to-participant mapping.
        turns: Turn records ordered by turn index.
        statistics: Aggregates over ``turns``.
    """

    session_id: str
    topic: str
    max_turns: int
    created_at: datetime
    completed_at: datetime
    status: SessionStatus
    participants: dict[ParticipantSlot, Participant]
    turns: tuple[TurnRecord, ...]
    statistics: ConversationStatistics

    @property
    def actual_turns(self) -> int:
        return len(self.turns)

    @property
    def duration_seconds(self) -> int:
        return int((self.completed_at - self.created_at).total_seconds())

    def to_dict(self) -> dict[str, Any]:
        """Convert to the viewer's JSON document shape."""
        return {
            "metadata": {
                "session_id": self.session_id,
                "created_at": self.created_at.isoformat(),
                "completed_at": self.completed_at.isoformat(),
                "duration_seconds": self.duration_seconds,
                "status": self.status.value,
                "version": TRANSCRIPT_VERSION,
                "features": list(TRANSCRIPT_FEATURES),
            },
            "conversation": {
                "topic": self.topic,
                "max_turns": self.max_turns,
                "actual_turns": self.actual_turns,
            },
            "models": {
                slot.value: participant.to_dict()
                for slot, participant in sorted(
                    self.participants.items(), key=lambda item: item[0].value
                )
            },
            "statistics": self.statistics.to_dict(),
            "turns": [record.to_dict() for record in self.turns],
        }


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)
