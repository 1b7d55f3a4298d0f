"""
LLM Model Registry Loader

Loads the supported-model lists from config/llm_models.yaml. Settings
validation uses this registry to reject participant model overrides that
do not belong to the participant's provider.

Usage:
    from llm_conversation.config.models import is_model_supported, get_supported_models
"""

import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# Registry file shipped with the package
CONFIG_PATH = Path(__file__).parent / "llm_models.yaml"

# Cached registry
_config: dict[str, Any] | None = None


def load_config() -> dict[str, Any]:
    """Load the model registry from YAML.

    Returns:
        Registry dictionary with a "providers" mapping.

    Raises:
        yaml.YAMLError: If the registry file is invalid.
    """
    global _config

    if _config is not None:
        return _config

    if not CONFIG_PATH.exists():
        logger.warning("Model registry not found at %s, no models supported", CONFIG_PATH)
        _config = {"providers": {}}
        return _config

    with open(CONFIG_PATH, encoding="utf-8") as f:
        _config = yaml.safe_load(f) or {"providers": {}}

    logger.debug("Loaded model registry from %s", CONFIG_PATH)
    return _config


def reload_config() -> dict[str, Any]:
    """Force reload the registry from disk."""
    global _config
    _config = None
    return load_config()


def get_supported_models(provider: str) -> tuple[str, ...]:
    """Get the supported models for a provider.

    Args:
        provider: Provider name (openai, anthropic).

    Returns:
        Tuple of model identifiers, empty for unknown providers.
    """
    provider_config = load_config().get("providers", {}).get(str(provider), {})
    return tuple(provider_config.get("models") or ())


def is_model_supported(provider: str, model: str) -> bool:
    """Check whether a model belongs to a provider's supported set."""
    return model in get_supported_models(provider)


def get_model_list_for_error(provider: str) -> str:
    """Format the supported models for an error message."""
    return ", ".join(get_supported_models(provider))
