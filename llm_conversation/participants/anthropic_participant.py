"""
Anthropic Participant - Messages API wire format.

Request:  POST {base}/messages, x-api-key + anthropic-version headers,
          system prompt in the top-level "system" field
Response: content[].text, usage.{input,output}_tokens (total = sum)
"""

from __future__ import annotations

from typing import Any

from llm_conversation.conversation.models import Provider, TokenUsage
from llm_conversation.core.constants import ANTHROPIC_MESSAGES_PATH, DEFAULT_MAX_TOKENS
from llm_conversation.participants.base import BaseParticipant


class AnthropicParticipant(BaseParticipant):
    """Participant backed by the Anthropic Messages API."""

    provider = Provider.ANTHROPIC
    endpoint = ANTHROPIC_MESSAGES_PATH

    def build_payload(self, message: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": DEFAULT_MAX_TOKENS,
            "system": self.history.system_prompt(),
            "messages": self.history.render_anthropic(message, self.participant.slot),
        }

    def parse_response(self, data: dict[str, Any]) -> tuple[str, TokenUsage, str]:
        blocks = data["content"]
        text = "".join(
            block.get("text", "") for block in blocks if block.get("type", "text") == "text"
        )

        usage = data.get("usage") or {}
        input_tokens = int(usage.get("input_tokens", 0))
        output_tokens = int(usage.get("output_tokens", 0))
        tokens = TokenUsage(
            total=input_tokens + output_tokens,
            input=input_tokens,
            output=output_tokens,
        )
        return text, tokens, data.get("model") or self.model
