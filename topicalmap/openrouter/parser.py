"""
JSON Extraction for Completion Output

Models are asked for a single JSON object but often wrap it in a markdown
code fence. parse_json_response strips one leading fence (```json or ```)
and one trailing fence, then parses. Nested fences, multiple objects and
trailing commentary are not handled.
"""

import json
import logging
from typing import Any

from ..errors import ParseError

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 500


def strip_code_fences(text: str) -> str:
    """Remove a single leading and trailing markdown fence and trim."""
    cleaned = text.strip()

    if cleaned.startswith("```json"):
        cleaned = cleaned[len("```json"):]
    elif cleaned.startswith("```"):
        cleaned = cleaned[len("```"):]

    if cleaned.endswith("```"):
        cleaned = cleaned[:-len("```")]

    return cleaned.strip()


def parse_json_response(text: str) -> Any:
    """
    Parse JSON out of raw completion text.

    Raises:
        ParseError: with the decoder message and a bounded preview
    """
    cleaned = strip_code_fences(text)

    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        preview = cleaned[:PREVIEW_LENGTH]
        logger.error(f"Failed to parse JSON response: {preview}")
        raise ParseError(f"Failed to parse LLM response as JSON: {e}", preview=preview) from e
