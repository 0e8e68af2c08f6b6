"""
OpenRouter Completion

Chat-completion client and tolerant JSON extraction for model output.
"""

from .client import (
    OpenRouterClient,
    OpenRouterConfig,
    CompletionOptions,
    Message,
    TokenUsage,
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    LARGE_OUTPUT_TOKENS,
)
from .parser import parse_json_response, strip_code_fences
from ..errors import CompletionError, ParseError

__all__ = [
    "OpenRouterClient",
    "OpenRouterConfig",
    "CompletionOptions",
    "Message",
    "TokenUsage",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TEMPERATURE",
    "LARGE_OUTPUT_TOKENS",
    "parse_json_response",
    "strip_code_fences",
    "CompletionError",
    "ParseError",
]
