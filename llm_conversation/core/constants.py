"""Conversation constants and wire-format values.

Provides centralized constants for the two-party conversation runner:
- Turn budget bounds and default pacing
- Vendor request defaults
- Prompt-caching limits for Anthropic-style payloads
- Transcript format version
"""

from enum import IntEnum


# =============================================================================
# Turn Budget
# =============================================================================

MIN_TURNS = 2
MAX_TURNS = 50
DEFAULT_MAX_TURNS = 10
DEFAULT_DELAY_SECONDS = 2.0


# =============================================================================
# Vendor Request Defaults
# =============================================================================

DEFAULT_MAX_TOKENS = 1000
DEFAULT_TEMPERATURE = 0.7
ANTHROPIC_API_VERSION = "2023-06-01"

OPENAI_COMPLETIONS_PATH = "/chat/completions"
ANTHROPIC_MESSAGES_PATH = "/messages"

SYSTEM_PROMPT_TEMPLATE = (
    "You are participating in a conversation with another AI about: {topic}. "
    "This is an ongoing discussion - respond naturally and build upon what has "
    "been said before. Keep your responses concise but meaningful."
)


# =============================================================================
# Prompt Caching (Anthropic)
# =============================================================================

CACHE_MIN_HISTORY = 6       # caching only once history is longer than this
CACHE_MAX_BLOCKS = 4        # provider limit on cache_control blocks
CACHE_SKIP_RECENT = 2       # most recent messages never carry the hint
CACHE_CONTROL_EPHEMERAL = {"type": "ephemeral"}


# =============================================================================
# Retry Defaults
# =============================================================================

class RetryDefaults:
    """Default retry/backoff values.

    Attributes:
        MAX_ATTEMPTS: Total attempts, initial call included.
        MIN_DELAY_MS: Delay before the first retry.
        MAX_DELAY_MS: Upper bound for any single delay.
        FACTOR: Exponential growth factor.
    """
    MAX_ATTEMPTS = 5
    MIN_DELAY_MS = 1000
    MAX_DELAY_MS = 30000
    FACTOR = 2.0


class HTTPStatus(IntEnum):
    """HTTP status codes the retry classifier cares about."""
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504


RETRYABLE_STATUS_CODES = frozenset(int(code) for code in HTTPStatus)


# =============================================================================
# Transcript
# =============================================================================

TRANSCRIPT_VERSION = "2.0"
TRANSCRIPT_FEATURES: tuple[str, ...] = (
    "conversation_history",
    "context_aware",
    "configurable_participants",
)

SESSION_TOPIC_SLUG_LENGTH = 30
SESSION_ID_SUFFIX_LENGTH = 8
DEFAULT_VIEWER_BASE_URL = "https://modelstogether.com/conversation"
