"""
Participant Factory - maps a Participant definition to its adapter.

Exactly two adapters exist, one per supported provider. There is no
plugin registration; an unknown provider is a configuration error.
"""

from __future__ import annotations

import time
from typing import Callable

from llm_conversation.conversation.history import HistoryStore
from llm_conversation.conversation.models import Participant, Provider
from llm_conversation.conversation.storage import SessionStorage
from llm_conversation.core.exceptions import ConfigurationError
from llm_conversation.core.http import HTTPClientFactory
from llm_conversation.core.retry import RetryExecutor
from llm_conversation.participants.anthropic_participant import AnthropicParticipant
from llm_conversation.participants.base import BaseParticipant
from llm_conversation.participants.openai_participant import OpenAIParticipant


PARTICIPANT_CLASSES: dict[Provider, type[BaseParticipant]] = {
    Provider.OPENAI: OpenAIParticipant,
    Provider.ANTHROPIC: AnthropicParticipant,
}


def create_participant(
    participant: Participant,
    history: HistoryStore,
    storage: SessionStorage,
    http_factory: HTTPClientFactory,
    retry: RetryExecutor | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> BaseParticipant:
    """Create the adapter for a participant.

    Args:
        participant: Participant definition.
        history: Shared session history.
        storage: Turn-record persistence.
        http_factory: Builds the provider's authenticated HTTP client.
        retry: Retry executor for outbound calls.
        clock: Monotonic clock for response timing.

    Raises:
        ConfigurationError: If the provider has no adapter.
    """
    adapter_class = PARTICIPANT_CLASSES.get(participant.provider)
    if adapter_class is None:
        raise ConfigurationError(
            f"Unsupported LLM provider: {participant.provider}",
            field=f"{participant.slot.value}_provider",
            value=participant.provider,
        )

    client = http_factory.create_client(participant.provider.value)
    return adapter_class(
        participant,
        history=history,
        storage=storage,
        client=client,
        retry=retry,
        clock=clock,
    )
