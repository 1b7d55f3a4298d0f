"""Tests for conversation data models."""

from datetime import datetime, timedelta, timezone

from llm_conversation.conversation.models import (
    ConversationHistory,
    ConversationStatistics,
    ConversationTranscript,
    Message,
    Participant,
    ParticipantSlot,
    Provider,
    SessionStatus,
    SpeakerPosition,
    TokenUsage,
    TurnRecord,
)


START = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_record(turn: int, slot: ParticipantSlot, provider: Provider, tokens: int, ms: int) -> TurnRecord:
    return TurnRecord(
        turn=turn,
        speaker=provider,
        speaker_position=slot.speaker_position,
        participant=slot,
        model="gpt-4o-mini" if provider is Provider.OPENAI else "claude-3-5-sonnet-20241022",
        timestamp=START + timedelta(seconds=turn),
        input=f"in {turn}",
        output=f"out {turn}",
        response_time_ms=ms,
        tokens=TokenUsage(total=tokens),
    )


PARTICIPANTS = {
    ParticipantSlot.FIRST: Participant(ParticipantSlot.FIRST, Provider.OPENAI, "gpt-4o-mini"),
    ParticipantSlot.SECOND: Participant(
        ParticipantSlot.SECOND, Provider.ANTHROPIC, "claude-3-5-sonnet-20241022"
    ),
}


class TestParticipantSlot:

    def test_other(self) -> None:
        assert ParticipantSlot.FIRST.other is ParticipantSlot.SECOND
        assert ParticipantSlot.SECOND.other is ParticipantSlot.FIRST

    def test_speaker_position(self) -> None:
        assert ParticipantSlot.FIRST.speaker_position is SpeakerPosition.SPEAKER_1
        assert ParticipantSlot.SECOND.speaker_position is SpeakerPosition.SPEAKER_2


class TestMessage:

    def test_role_message_round_trip(self) -> None:
        message = Message(content="hello", role="user")

        assert message.to_dict() == {"content": "hello", "role": "user"}
        assert Message.from_dict(message.to_dict()) == message

    def test_speaker_message_omits_role(self) -> None:
        assert Message(content="hi", speaker="llm2").to_dict() == {"content": "hi", "speaker": "llm2"}


class TestConversationHistory:

    def test_serialized_shape(self) -> None:
        history = ConversationHistory(topic="tides", messages=[Message("tides", role="user")])

        assert history.to_dict() == {
            "conversation_topic": "tides",
            "messages": [{"content": "tides", "role": "user"}],
        }
        assert ConversationHistory.from_dict(history.to_dict()) == history


class TestTokenUsage:

    def test_omits_unreported_fields(self) -> None:
        assert TokenUsage(total=30, input=10, output=20).to_dict() == {
            "total": 30, "input": 10, "output": 20,
        }


class TestTurnRecord:

    def test_to_dict_and_back(self) -> None:
        record = make_record(3, ParticipantSlot.FIRST, Provider.OPENAI, 42, 800)
        data = record.to_dict()

        assert data["speaker"] == "openai"
        assert data["speaker_position"] == "speaker_1"
        assert data["participant"] == "llm1"
        assert data["timestamp"] == "2025-03-01T12:00:03+00:00"
        assert TurnRecord.from_dict(data) == record


class TestConversationStatistics:

    def test_totals_by_participant_provider(self) -> None:
        turns = [
            make_record(1, ParticipantSlot.FIRST, Provider.OPENAI, 100, 1000),
            make_record(2, ParticipantSlot.SECOND, Provider.ANTHROPIC, 50, 3000),
        ]

        stats = ConversationStatistics.from_turns(turns, PARTICIPANTS)

        assert stats.total_tokens == 150
        assert stats.openai_tokens == 100
        assert stats.anthropic_tokens == 50
        assert stats.average_response_time_ms == 2000

    def test_same_provider_on_both_slots(self) -> None:
        participants = {
            slot: Participant(slot, Provider.ANTHROPIC, "claude-3-5-haiku-20241022")
            for slot in ParticipantSlot
        }
        turns = [
            make_record(1, ParticipantSlot.FIRST, Provider.ANTHROPIC, 10, 100),
            make_record(2, ParticipantSlot.SECOND, Provider.ANTHROPIC, 20, 100),
        ]

        stats = ConversationStatistics.from_turns(turns, participants)

        assert stats.anthropic_tokens == 30
        assert stats.openai_tokens == 0

    def test_no_turns(self) -> None:
        stats = ConversationStatistics.from_turns([], PARTICIPANTS)

        assert stats.total_tokens == 0
        assert stats.average_response_time_ms == 0.0


class TestConversationTranscript:

    def test_to_dict_sections(self) -> None:
        turns = (
            make_record(1, ParticipantSlot.FIRST, Provider.OPENAI, 100, 1000),
            make_record(2, ParticipantSlot.SECOND, Provider.ANTHROPIC, 50, 3000),
        )
        transcript = ConversationTranscript(
            session_id="conversation_20250301_120000_tides",
            topic="tides",
            max_turns=2,
            created_at=START,
            completed_at=START + timedelta(seconds=95),
            status=SessionStatus.COMPLETED,
            participants=PARTICIPANTS,
            turns=turns,
            statistics=ConversationStatistics.from_turns(turns, PARTICIPANTS),
        )

        data = transcript.to_dict()

        assert set(data) == {"metadata", "conversation", "models", "statistics", "turns"}
        assert data["metadata"]["duration_seconds"] == 95
        assert data["metadata"]["status"] == "completed"
        assert data["metadata"]["version"] == "2.0"
        assert data["conversation"] == {"topic": "tides", "max_turns": 2, "actual_turns": 2}
        assert data["models"]["llm1"]["provider"] == "openai"
        assert data["models"]["llm2"]["model"] == "claude-3-5-sonnet-20241022"
        assert data["statistics"]["total_tokens"] == 150
        assert [t["turn"] for t in data["turns"]] == [1, 2]
