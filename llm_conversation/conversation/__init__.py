"""
Conversation Package - Two-party LLM conversation runtime

Components:
- ConversationOrchestrator: alternates the two participants for N turns
- HistoryStore: shared, persisted message history with vendor renderers
- SessionStorage: file and in-memory persistence for sessions
- Models: Participant, Message, TurnRecord, ConversationTranscript
"""

from llm_conversation.conversation.history import HistoryStore
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
    TurnResult,
)
from llm_conversation.conversation.orchestrator import ConversationOrchestrator
from llm_conversation.conversation.storage import (
    FileSessionStorage,
    InMemorySessionStorage,
    SessionStorage,
)


__all__ = [
    "ConversationHistory",
    "ConversationOrchestrator",
    "ConversationStatistics",
    "ConversationTranscript",
    "FileSessionStorage",
    "HistoryStore",
    "InMemorySessionStorage",
    "Message",
    "Participant",
    "ParticipantSlot",
    "Provider",
    "SessionStatus",
    "SessionStorage",
    "SpeakerPosition",
    "TokenUsage",
    "TurnRecord",
    "TurnResult",
]
