"""
OpenAI Participant - Chat Completions wire format.

Request:  POST {base}/chat/completions, Authorization: Bearer <key>
Response: choices[0].message.content, usage.{prompt,completion,total}_tokens
"""

from __future__ import annotations

from typing import Any

from llm_conversation.conversation.models import Provider, TokenUsage
from llm_conversation.core.constants import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    OPENAI_COMPLETIONS_PATH,
)
from llm_conversation.participants.base import BaseParticipant


class OpenAIParticipant(BaseParticipant):
    """Participant backed by an OpenAI-compatible chat completions API."""

    provider = Provider.OPENAI
    endpoint = OPENAI_COMPLETIONS_PATH

    def build_payload(self, message: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": self.history.render_openai(message, self.participant.slot),
            "max_tokens": DEFAULT_MAX_TOKENS,
            "temperature": DEFAULT_TEMPERATURE,
        }

    def parse_response(self, data: dict[str, Any]) -> tuple[str, TokenUsage, str]:
        text = data["choices"][0]["message"]["content"] or ""

        usage = data.get("usage") or {}
        prompt = int(usage.get("prompt_tokens", 0))
        completion = int(usage.get("completion_tokens", 0))
        tokens = TokenUsage(
            total=int(usage.get("total_tokens", prompt + completion)),
            prompt=prompt,
            completion=completion,
        )
        return text, tokens, data.get("model") or self.model
