"""
Session Storage - Durable per-session state

Every session keeps three kinds of documents, all keyed by session id:

- history:    the full message log, overwritten after every append
- turns:      one TurnRecord document per completed turn
- transcript: the final ConversationTranscript

FileSessionStorage lays these out as JSON files in the log directory:

    <log_dir>/<session_id>_history.json
    <log_dir>/<session_id>_turn_<n>_<provider>.json
    <log_dir>/<session_id>.json

InMemorySessionStorage keeps the same documents in dictionaries and is
used by tests and dry runs.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from llm_conversation.conversation.models import (
    ConversationHistory,
    ConversationTranscript,
    TurnRecord,
)
from llm_conversation.core.exceptions import PersistenceError
from llm_conversation.core.logging import get_logger


logger = get_logger(__name__)


@runtime_checkable
class SessionStorage(Protocol):
    """Narrow persistence interface the core depends on."""

    def load_history(self, session_id: str) -> ConversationHistory | None:
        """Return the persisted history, or None if the session has none yet."""
        ...

    def save_history(self, session_id: str, history: ConversationHistory) -> None:
        """Overwrite the persisted history with ``history``."""
        ...

    def save_turn(self, session_id: str, record: TurnRecord) -> None:
        """Persist one turn record."""
        ...

    def load_turns(self, session_id: str) -> list[TurnRecord]:
        """All persisted turn records, ordered by turn index."""
        ...

    def save_transcript(self, transcript: ConversationTranscript) -> str:
        """Persist the final transcript and return where it was written."""
        ...


class FileSessionStorage:
    """JSON-file storage under a single log directory.

    Writes are full overwrites, not crash-atomic. Each session has a
    single writer, so no locking is needed.
    """

    def __init__(self, log_dir: str | Path = "logs") -> None:
        self.log_dir = Path(log_dir)

    def history_path(self, session_id: str) -> Path:
        return self.log_dir / f"{session_id}_history.json"

    def turn_path(self, session_id: str, record: TurnRecord) -> Path:
        return self.log_dir / f"{session_id}_turn_{record.turn}_{record.speaker.value}.json"

    def transcript_path(self, session_id: str) -> Path:
        return self.log_dir / f"{session_id}.json"

    def load_history(self, session_id: str) -> ConversationHistory | None:
        path = self.history_path(session_id)
        if not path.exists():
            return None
        return ConversationHistory.from_dict(self._read_json(path))

    def save_history(self, session_id: str, history: ConversationHistory) -> None:
        self._write_json(self.history_path(session_id), history.to_dict())

    def save_turn(self, session_id: str, record: TurnRecord) -> None:
        path = self.turn_path(session_id, record)
        self._write_json(path, record.to_dict())
        logger.debug("Saved turn record", session_id=session_id, turn=record.turn, path=str(path))

    def load_turns(self, session_id: str) -> list[TurnRecord]:
        if not self.log_dir.exists():
            return []

        pattern = re.compile(rf"^{re.escape(session_id)}_turn_(\d+)_[a-z]+\.json$")
        matches: list[tuple[int, Path]] = []
        for path in self.log_dir.iterdir():
            match = pattern.match(path.name)
            if match:
                matches.append((int(match.group(1)), path))

        # numeric order, so turn 10 follows turn 9
        matches.sort(key=lambda item: item[0])
        return [TurnRecord.from_dict(self._read_json(path)) for _, path in matches]

    def save_transcript(self, transcript: ConversationTranscript) -> str:
        path = self.transcript_path(transcript.session_id)
        self._write_json(path, transcript.to_dict())
        return str(path)

    def _read_json(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}", path=str(path), cause=e) from e

    def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False, default=str)
        except (OSError, TypeError) as e:
            raise PersistenceError(f"Failed to write {path}: {e}", path=str(path), cause=e) from e


class InMemorySessionStorage:
    """Dictionary-backed storage with the same document semantics."""

    def __init__(self) -> None:
        self.histories: dict[str, dict[str, Any]] = {}
        self.turns: dict[str, dict[int, dict[str, Any]]] = {}
        self.transcripts: dict[str, dict[str, Any]] = {}
        self.history_writes = 0

    def load_history(self, session_id: str) -> ConversationHistory | None:
        data = self.histories.get(session_id)
        return ConversationHistory.from_dict(data) if data is not None else None

    def save_history(self, session_id: str, history: ConversationHistory) -> None:
        self.histories[session_id] = history.to_dict()
        self.history_writes += 1

    def save_turn(self, session_id: str, record: TurnRecord) -> None:
        self.turns.setdefault(session_id, {})[record.turn] = record.to_dict()

    def load_turns(self, session_id: str) -> list[TurnRecord]:
        stored = self.turns.get(session_id, {})
        return [TurnRecord.from_dict(stored[turn]) for turn in sorted(stored)]

    def save_transcript(self, transcript: ConversationTranscript) -> str:
        self.transcripts[transcript.session_id] = transcript.to_dict()
        return f"memory://{transcript.session_id}"
