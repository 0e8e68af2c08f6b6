"""
Pipeline stages, progress events and stage prerequisites.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from ..errors import PreconditionError


class GenerationStep(str, Enum):
    """The five ordered pipeline stages."""
    HALOSCAN = "haloscan"
    KNOWLEDGE_DOMAIN = "knowledge_domain"
    CONTEXT_VECTOR = "context_vector"
    EAV_MODEL = "eav_model"
    TOPICAL_MAP = "topical_map"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ERROR = "error"


PIPELINE_ORDER: List[GenerationStep] = [
    GenerationStep.HALOSCAN,
    GenerationStep.KNOWLEDGE_DOMAIN,
    GenerationStep.CONTEXT_VECTOR,
    GenerationStep.EAV_MODEL,
    GenerationStep.TOPICAL_MAP,
]

# Predecessor results each LLM stage needs, by argument name
STAGE_REQUIREMENTS: Dict[GenerationStep, List[str]] = {
    GenerationStep.KNOWLEDGE_DOMAIN: [],
    GenerationStep.CONTEXT_VECTOR: ["knowledge_domain"],
    GenerationStep.EAV_MODEL: ["knowledge_domain", "context_vector"],
    GenerationStep.TOPICAL_MAP: ["knowledge_domain", "context_vector", "eav_model"],
}


@dataclass(frozen=True)
class ProgressEvent:
    """One progress notification for a stage."""
    step: GenerationStep
    status: StepStatus
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "step": self.step.value,
            "status": self.status.value,
            "message": self.message,
        }
        if self.data is not None:
            result["data"] = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        return result


def check_prerequisites(step: GenerationStep, **available: Any) -> None:
    """
    Raise PreconditionError when a required predecessor result is absent.

    Usage:
        check_prerequisites(GenerationStep.EAV_MODEL,
                            knowledge_domain=kd, context_vector=None)
    """
    missing = [name for name in STAGE_REQUIREMENTS.get(step, []) if not available.get(name)]
    if missing:
        raise PreconditionError(step.value, missing)
