"""Configuration data for the conversation runner.

This module contains:
- models.py: supported-model registry loaded from llm_models.yaml
"""

from llm_conversation.config.models import (
    get_model_list_for_error,
    get_supported_models,
    is_model_supported,
    load_config,
    reload_config,
)

__all__ = [
    "get_model_list_for_error",
    "get_supported_models",
    "is_model_supported",
    "load_config",
    "reload_config",
]
