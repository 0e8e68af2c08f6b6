"""
Stage Output Schemas

Loosely-typed intermediate models of the JSON each generation stage is asked
to return. The field names mirror the shapes documented in the stage prompts
(topicalmap.prompts.stages); changing one side means changing the other.

Decoding is tolerant where the model output is usually sloppy:
- optional arrays default to [] (also when the model sends null)
- enumerations are lower-cased and unknown values fall back to a default
- unknown 5W+H values are dropped

and strict where later steps depend on the data: a knowledge domain needs a
sourceContext, entities need a name, nodes need a title and a valid type,
relations and edges need both endpoints. Violations raise
StageValidationError, which is distinct from ParseError (invalid JSON).
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from ..errors import StageValidationError
from ..models import (
    EdgeType,
    EntityType,
    FiveWH,
    Importance,
    NodeType,
    RelationType,
    SearchIntent,
    SemanticRoleType,
    TermCategory,
    ValueType,
)


def _coerce_enum(value: Any, enum_cls: Type[Enum], default: Enum) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            pass
    return default


def _coerce_number(value: Any) -> Optional[float]:
    """Numbers pass through; "NA", null and other junk become None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def _coerce_id(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def _filter_enum_values(values: Any, enum_cls: Type[Enum]) -> List[Enum]:
    known = {e.value for e in enum_cls}
    result = []
    for value in values or []:
        if isinstance(value, str) and value.strip().lower() in known:
            result.append(enum_cls(value.strip().lower()))
    return result


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        # null optional arrays/fields fall back to their defaults
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


# =============================================================================
# KNOWLEDGE DOMAIN
# =============================================================================


class QualityParameterPayload(_Payload):
    name: str
    description: str = ""
    importance: Importance = Importance.MEDIUM

    @field_validator("importance", mode="before")
    @classmethod
    def normalize_importance(cls, v):
        return _coerce_enum(v, Importance, Importance.MEDIUM)


class KnowledgeDomainPayload(_Payload):
    sourceContext: str
    qualityParameters: List[QualityParameterPayload] = []
    boundaries: List[str] = []
    userExpectations: List[str] = []


# =============================================================================
# CONTEXT VECTOR
# =============================================================================


class VocabularyTermPayload(_Payload):
    term: str
    category: TermCategory = TermCategory.COMMON
    definition: str = ""
    searchVolume: Optional[float] = None

    @field_validator("category", mode="before")
    @classmethod
    def normalize_category(cls, v):
        return _coerce_enum(v, TermCategory, TermCategory.COMMON)

    @field_validator("searchVolume", mode="before")
    @classmethod
    def normalize_volume(cls, v):
        return _coerce_number(v)


class SemanticRolePayload(_Payload):
    role: SemanticRoleType
    description: str = ""

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class PredicatePayload(_Payload):
    verb: str
    usage: str = ""
    foundInQueries: Optional[List[str]] = None
    semanticRoles: List[SemanticRolePayload] = []

    @field_validator("semanticRoles", mode="before")
    @classmethod
    def normalize_known_roles(cls, v):
        known = {r.value for r in SemanticRoleType}
        return [
            r for r in v or []
            if isinstance(r, dict) and str(r.get("role", "")).strip().lower() in known
        ]


class QueryPatternPayload(_Payload):
    pattern: str
    intent: SearchIntent = SearchIntent.INFORMATIONAL
    examples: List[str] = []
    totalVolume: Optional[float] = None

    @field_validator("intent", mode="before")
    @classmethod
    def normalize_intent(cls, v):
        return _coerce_enum(v, SearchIntent, SearchIntent.INFORMATIONAL)

    @field_validator("totalVolume", mode="before")
    @classmethod
    def normalize_volume(cls, v):
        return _coerce_number(v)


class FiveWHPatternPayload(_Payload):
    type: FiveWH
    patterns: List[str] = []
    paaExamples: Optional[List[str]] = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class ContextVectorPayload(_Payload):
    vocabulary: List[VocabularyTermPayload] = []
    predicates: List[PredicatePayload] = []
    queryPatterns: List[QueryPatternPayload] = []
    fiveWHPatterns: List[FiveWHPatternPayload] = []

    @field_validator("fiveWHPatterns", mode="before")
    @classmethod
    def normalize_known_types(cls, v):
        known = {f.value for f in FiveWH}
        return [
            p for p in v or []
            if isinstance(p, dict) and str(p.get("type", "")).strip().lower() in known
        ]


# =============================================================================
# EAV MODEL
# =============================================================================


class AttributePayload(_Payload):
    name: str
    valueType: ValueType = ValueType.TEXT
    description: str = ""
    relatedKeywords: Optional[List[str]] = None

    @field_validator("valueType", mode="before")
    @classmethod
    def normalize_value_type(cls, v):
        return _coerce_enum(v, ValueType, ValueType.TEXT)


class EntityPayload(_Payload):
    name: str
    type: EntityType = EntityType.OTHER
    description: str = ""
    isMainEntity: bool = False
    basedOnCluster: Optional[str] = None
    keyAttributes: List[AttributePayload] = []
    standardAttributes: List[AttributePayload] = []

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return _coerce_enum(v, EntityType, EntityType.OTHER)


class RelationPayload(_Payload):
    sourceEntity: str
    targetEntity: str
    relationType: RelationType = RelationType.RELATED_TO
    description: Optional[str] = None

    @field_validator("relationType", mode="before")
    @classmethod
    def normalize_relation_type(cls, v):
        return _coerce_enum(v, RelationType, RelationType.RELATED_TO)


class EAVModelPayload(_Payload):
    entities: List[EntityPayload] = []
    relations: List[RelationPayload] = []


# =============================================================================
# TOPICAL MAP
# =============================================================================


class NodeKeywordPayload(_Payload):
    keyword: str
    volume: Optional[float] = None
    kgr: Optional[float] = None
    isMain: bool = False

    @field_validator("volume", "kgr", mode="before")
    @classmethod
    def normalize_numbers(cls, v):
        return _coerce_number(v)


class NodePayload(_Payload):
    id: Optional[str] = None
    type: NodeType
    title: str
    description: str = ""
    intent: SearchIntent = SearchIntent.INFORMATIONAL
    fiveWH: List[FiveWH] = []
    keywords: List[Union[str, NodeKeywordPayload]] = []
    paaQuestions: List[str] = []
    basedOnHaloscanCluster: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def normalize_id(cls, v):
        return _coerce_id(v)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("intent", mode="before")
    @classmethod
    def normalize_intent(cls, v):
        return _coerce_enum(v, SearchIntent, SearchIntent.INFORMATIONAL)

    @field_validator("fiveWH", mode="before")
    @classmethod
    def normalize_five_wh(cls, v):
        return _filter_enum_values(v, FiveWH)


class EdgePayload(_Payload):
    source: str
    target: str
    type: EdgeType = EdgeType.HIERARCHICAL

    @field_validator("source", "target", mode="before")
    @classmethod
    def normalize_endpoint(cls, v):
        v = _coerce_id(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("edge endpoint must not be empty")
        return v

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        # missing -> hierarchical (field default), unrecognized -> related
        return _coerce_enum(v, EdgeType, EdgeType.RELATED)


class TopicalMapPayload(_Payload):
    nodes: List[NodePayload] = []
    edges: List[EdgePayload] = []


# =============================================================================
# DECODE
# =============================================================================

STAGE_PAYLOADS: Dict[str, Type[_Payload]] = {
    "knowledge_domain": KnowledgeDomainPayload,
    "context_vector": ContextVectorPayload,
    "eav_model": EAVModelPayload,
    "topical_map": TopicalMapPayload,
}


def _format_errors(error: ValidationError) -> List[str]:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        messages.append(f"{location}: {item.get('msg')}" if location else item.get("msg", ""))
    return messages


def decode_stage(stage: str, data: Any) -> _Payload:
    """
    Validate parsed stage JSON into its intermediate payload model.

    Args:
        stage: One of knowledge_domain, context_vector, eav_model, topical_map
        data: Output of parse_json_response

    Raises:
        StageValidationError: when the object is not a JSON object or a
            required field is missing or malformed
    """
    stage_name = getattr(stage, "value", stage)
    payload_cls = STAGE_PAYLOADS.get(stage_name)
    if payload_cls is None:
        raise ValueError(f"Unknown stage: {stage_name}")

    if not isinstance(data, dict):
        raise StageValidationError(stage_name, [f"expected a JSON object, got {type(data).__name__}"])

    try:
        return payload_cls.model_validate(data)
    except ValidationError as e:
        raise StageValidationError(stage_name, _format_errors(e)) from e
