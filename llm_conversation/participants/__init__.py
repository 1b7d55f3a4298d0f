"""
Participants Package - Provider adapters for conversation participants

- OpenAIParticipant: Chat Completions format
- AnthropicParticipant: Messages format
- create_participant: picks the adapter for a Participant definition
"""

from llm_conversation.participants.anthropic_participant import AnthropicParticipant
from llm_conversation.participants.base import BaseParticipant
from llm_conversation.participants.factory import create_participant
from llm_conversation.participants.openai_participant import OpenAIParticipant


__all__ = [
    "AnthropicParticipant",
    "BaseParticipant",
    "OpenAIParticipant",
    "create_participant",
]
