"""
Error types raised by the generation pipeline.

Nothing in the core retries or recovers from these; they propagate to the
caller, which decides whether to surface them and allow a manual re-run.
"""

from typing import Any, Dict, List, Optional


class TopicalMapError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(TopicalMapError):
    """A required credential or setting is absent."""


class HaloscanError(TopicalMapError):
    """Keyword-research provider error (transport or semantic failure)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        failure_reason: Optional[str] = None,
        response: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.failure_reason = failure_reason
        self.response = response


class HaloscanConfigurationError(HaloscanError, ConfigurationError):
    """HALOSCAN_API_KEY is not configured."""


class CompletionError(TopicalMapError):
    """Completion endpoint returned non-2xx or no choices."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CompletionConfigurationError(CompletionError, ConfigurationError):
    """OPENROUTER_API_KEY is not configured."""


class ParseError(TopicalMapError):
    """Completion output is not valid JSON after fence stripping."""

    def __init__(self, message: str, preview: str = ""):
        super().__init__(message)
        self.preview = preview


class StageValidationError(TopicalMapError):
    """Parsed stage JSON is missing required fields or has the wrong shape."""

    def __init__(self, stage: str, errors: List[str]):
        super().__init__(f"Invalid {stage} output: " + "; ".join(errors))
        self.stage = stage
        self.errors = errors


class PreconditionError(TopicalMapError):
    """A stage was invoked without its required predecessor results."""

    def __init__(self, stage: str, missing: List[str]):
        super().__init__(f"Cannot run {stage}: missing {', '.join(missing)}")
        self.stage = stage
        self.missing = missing
