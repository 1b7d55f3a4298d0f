"""
History Store - Single source of truth for a session's messages

Holds the append-only message log, persists it after every mutation and
projects it into each vendor's message array.

Rendering always appends the outbound message first, so the returned array
ends with the message being sent. Callers cannot render without mutating.

Role mapping:

    OpenAI     leading system message, then
               own outputs        -> assistant
               other's outputs    -> user
               role-tagged        -> that role

    Anthropic  no system entry (system text goes in a separate field)
               other's outputs    -> assistant
               everything else    -> user
               when len(history) > 6, up to 4 of the oldest messages outside
               the last 2 carry an ephemeral cache_control block
"""

from __future__ import annotations

from typing import Any

from llm_conversation.conversation.models import (
    ConversationHistory,
    Message,
    ParticipantSlot,
)
from llm_conversation.conversation.storage import SessionStorage
from llm_conversation.core.constants import (
    CACHE_CONTROL_EPHEMERAL,
    CACHE_MAX_BLOCKS,
    CACHE_MIN_HISTORY,
    CACHE_SKIP_RECENT,
    SYSTEM_PROMPT_TEMPLATE,
)
from llm_conversation.core.logging import get_logger


logger = get_logger(__name__)

_OPENAI_ROLES = frozenset({"system", "user", "assistant"})


class HistoryStore:
    """Append-only, persisted message history for one session.

    Attributes:
        session_id: Session this history belongs to.
    """

    def __init__(self, session_id: str, topic: str, storage: SessionStorage) -> None:
        """Load the persisted history, or start an empty one for ``topic``.

        Args:
            session_id: Session identifier used as the storage key.
            topic: Topic for a fresh history. Ignored if one is persisted.
            storage: Persistence backend.
        """
        self.session_id = session_id
        self._storage = storage
        loaded = storage.load_history(session_id)
        if loaded is not None:
            logger.debug(
                "Loaded existing history",
                session_id=session_id,
                messages=len(loaded.messages),
            )
        self._history = loaded or ConversationHistory(topic=topic)

    @property
    def topic(self) -> str:
        return self._history.topic

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._history.messages)

    def __len__(self) -> int:
        return len(self._history.messages)

    def system_prompt(self) -> str:
        """Framing instruction shared by both vendors."""
        return SYSTEM_PROMPT_TEMPLATE.format(topic=self.topic)

    def add_message(self, message: Message) -> None:
        """Append a message and overwrite the persisted history.

        Raises:
            PersistenceError: If the history cannot be written.
        """
        self._history.messages.append(message)
        self._storage.save_history(self.session_id, self._history)

    def add_participant_output(self, slot: ParticipantSlot, content: str) -> None:
        """Record a participant's reply, tagged with its slot."""
        self.add_message(Message(content=content, speaker=slot.value))

    def render_openai(self, new_message: str, speaker: ParticipantSlot) -> list[dict[str, Any]]:
        """Append ``new_message`` and render for an OpenAI-style participant.

        Args:
            new_message: Text being sent this turn.
            speaker: Slot of the participant the payload is for.

        Returns:
            Chat Completions message array, system message first.
        """
        self.add_message(Message(content=new_message, role="user"))

        messages: list[dict[str, Any]] = [
            {"role": "system", "content": self.system_prompt()},
        ]
        for msg in self._history.messages:
            if msg.speaker == speaker.value:
                role = "assistant"
            elif msg.speaker is not None:
                role = "user"
            elif msg.role in _OPENAI_ROLES:
                role = msg.role
            else:
                role = "user"
            messages.append({"role": role, "content": msg.content})
        return messages

    def render_anthropic(self, new_message: str, speaker: ParticipantSlot) -> list[dict[str, Any]]:
        """Append ``new_message`` and render for an Anthropic-style participant.

        Args:
            new_message: Text being sent this turn.
            speaker: Slot of the participant the payload is for.

        Returns:
            Messages API array without a system entry.
        """
        self.add_message(Message(content=new_message, role="user"))

        other = speaker.other.value
        total = len(self._history.messages)
        use_cache = total > CACHE_MIN_HISTORY
        cache_blocks_used = 0

        messages: list[dict[str, Any]] = []
        for index, msg in enumerate(self._history.messages):
            recent = index >= total - CACHE_SKIP_RECENT
            content: str | list[dict[str, Any]] = msg.content
            if use_cache and not recent and cache_blocks_used < CACHE_MAX_BLOCKS:
                content = [{
                    "type": "text",
                    "text": msg.content,
                    "cache_control": dict(CACHE_CONTROL_EPHEMERAL),
                }]
                cache_blocks_used += 1

            role = "assistant" if msg.speaker == other else "user"
            messages.append({"role": role, "content": content})
        return messages
