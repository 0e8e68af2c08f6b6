"""
Prompt Builder

Fixed system prompt plus one pure prompt builder per generation stage.
"""

from .stages import (
    SYSTEM_PROMPT,
    get_knowledge_domain_prompt,
    get_context_vector_prompt,
    get_eav_model_prompt,
    get_topical_map_prompt,
)
from .formatting import (
    OPPORTUNITY_KGR_THRESHOLD,
    HIGH_VOLUME_THRESHOLD,
    high_volume_keywords,
    opportunity_keywords,
    render_json,
)

__all__ = [
    "SYSTEM_PROMPT",
    "get_knowledge_domain_prompt",
    "get_context_vector_prompt",
    "get_eav_model_prompt",
    "get_topical_map_prompt",
    "OPPORTUNITY_KGR_THRESHOLD",
    "HIGH_VOLUME_THRESHOLD",
    "high_volume_keywords",
    "opportunity_keywords",
    "render_json",
]
