"""LLM Provider implementations."""

from driveflow.providers.llm.base import LLMProvider, Message
from driveflow.providers.llm.catalog import AVAILABLE_MODELS, ModelInfo, get_model, is_known_model, model_family

__all__ = [
    "AVAILABLE_MODELS",
    "LLMProvider",
    "Message",
    "ModelInfo",
    "get_model",
    "is_known_model",
    "model_family",
]
