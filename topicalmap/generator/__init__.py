"""
Generation Orchestrator

Runs the keyword-data, knowledge-domain, context-vector, EAV-model and
topical-map stages and turns model output into project records.
"""

from .stages import (
    GenerationStep,
    StepStatus,
    ProgressEvent,
    PIPELINE_ORDER,
    STAGE_REQUIREMENTS,
    check_prerequisites,
)
from .transform import (
    LAYOUT,
    get_position,
    build_title_index,
    build_knowledge_domain,
    build_context_vector,
    build_eav_model,
    build_topical_map,
)
from .orchestrator import GenerationResult, TopicalMapGenerator

__all__ = [
    "GenerationStep",
    "StepStatus",
    "ProgressEvent",
    "PIPELINE_ORDER",
    "STAGE_REQUIREMENTS",
    "check_prerequisites",
    "LAYOUT",
    "get_position",
    "build_title_index",
    "build_knowledge_domain",
    "build_context_vector",
    "build_eav_model",
    "build_topical_map",
    "GenerationResult",
    "TopicalMapGenerator",
]
