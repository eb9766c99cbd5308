"""Generative backend contracts, retry policy and the Gemini implementation."""

from .base import GenerationRequest, GenerativeBackend, Tool, generate_validated
from .gemini import GeminiBackend
from .retry import OVERLOADED_MESSAGE, RetryPolicy, is_overload_error

__all__ = [
    "GeminiBackend",
    "GenerationRequest",
    "GenerativeBackend",
    "OVERLOADED_MESSAGE",
    "RetryPolicy",
    "Tool",
    "generate_validated",
    "is_overload_error",
]
