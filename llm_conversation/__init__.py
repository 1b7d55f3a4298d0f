"""LLM Conversation - turn-based dialogue between two hosted LLM providers."""

__version__ = "1.0.0"
