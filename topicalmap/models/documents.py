"""
Generated Sub-Documents

Defines the four records produced by the generation pipeline, one per
LLM stage:
- KnowledgeDomain: scope, quality bar and boundaries of the topic
- ContextVector: vocabulary, predicates and query patterns
- EAVModel: entities, attributes and typed relations
- TopicalMap: pillar/cluster/supporting pages and their links

Every record carries its own id and the parent project id. Records are
replaced wholesale on regeneration.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# ENUMS
# =============================================================================


class Importance(str, Enum):
    """Weight of a knowledge-domain quality parameter."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TermCategory(str, Enum):
    """Register of a vocabulary term."""
    TECHNICAL = "technical"
    COMMON = "common"
    JARGON = "jargon"


class SemanticRoleType(str, Enum):
    """Thematic role a predicate argument plays."""
    AGENT = "agent"
    PATIENT = "patient"
    THEME = "theme"
    INSTRUMENT = "instrument"
    LOCATION = "location"
    TIME = "time"
    RESULT = "result"


class SearchIntent(str, Enum):
    """Search intent of a query pattern or page."""
    INFORMATIONAL = "informational"
    NAVIGATIONAL = "navigational"
    TRANSACTIONAL = "transactional"
    COMMERCIAL = "commercial"


class FiveWH(str, Enum):
    """5W+H question family."""
    WHAT = "what"
    WHO = "who"
    WHERE = "where"
    WHEN = "when"
    WHY = "why"
    HOW = "how"


class EntityType(str, Enum):
    PERSON = "person"
    ORGANIZATION = "organization"
    PRODUCT = "product"
    SERVICE = "service"
    CONCEPT = "concept"
    LOCATION = "location"
    EVENT = "event"
    OTHER = "other"


class ValueType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    LIST = "list"


class RelationType(str, Enum):
    IS_A = "is_a"
    PART_OF = "part_of"
    HAS = "has"
    BELONGS_TO = "belongs_to"
    RELATED_TO = "related_to"
    USES = "uses"
    PROVIDES = "provides"
    REQUIRES = "requires"


class NodeType(str, Enum):
    """Page level in the topical map hierarchy."""
    PILLAR = "pillar"  # Broad authoritative page
    CLUSTER = "cluster"  # Sub-topic page
    SUPPORTING = "supporting"  # Narrow detail page


class EdgeType(str, Enum):
    HIERARCHICAL = "hierarchical"
    CONTEXTUAL = "contextual"
    RELATED = "related"


class KeywordSource(str, Enum):
    HALOSCAN = "haloscan"
    MANUAL = "manual"
    GENERATED = "generated"


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# =============================================================================
# KNOWLEDGE DOMAIN
# =============================================================================


@dataclass
class QualityParameter:
    name: str
    description: str
    importance: Importance = Importance.MEDIUM

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "importance": self.importance.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QualityParameter":
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            importance=Importance(data.get("importance") or "medium"),
        )


@dataclass
class KnowledgeDomain:
    """Textual description of a topic's scope, quality bar and boundaries."""
    id: str
    project_id: str
    name: str
    source_context: str
    quality_parameters: List[QualityParameter] = field(default_factory=list)
    boundaries: List[str] = field(default_factory=list)
    user_expectations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "name": self.name,
            "sourceContext": self.source_context,
            "qualityParameters": [q.to_dict() for q in self.quality_parameters],
            "boundaries": list(self.boundaries),
            "userExpectations": list(self.user_expectations),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnowledgeDomain":
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            name=data.get("name", ""),
            source_context=data.get("sourceContext", ""),
            quality_parameters=[
                QualityParameter.from_dict(q) for q in data.get("qualityParameters") or []
            ],
            boundaries=list(data.get("boundaries") or []),
            user_expectations=list(data.get("userExpectations") or []),
        )


# =============================================================================
# CONTEXT VECTOR
# =============================================================================


@dataclass
class VocabularyTerm:
    term: str
    category: TermCategory = TermCategory.COMMON
    definition: str = ""
    search_volume: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "term": self.term,
            "category": self.category.value,
            "definition": self.definition,
            "searchVolume": self.search_volume,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VocabularyTerm":
        return cls(
            term=data["term"],
            category=TermCategory(data.get("category") or "common"),
            definition=data.get("definition") or "",
            search_volume=data.get("searchVolume"),
        )


@dataclass
class SemanticRole:
    role: SemanticRoleType
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "description": self.description}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SemanticRole":
        return cls(role=SemanticRoleType(data["role"]), description=data.get("description", ""))


@dataclass
class Predicate:
    verb: str
    usage: str = ""
    found_in_queries: Optional[List[str]] = None
    semantic_roles: List[SemanticRole] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "verb": self.verb,
            "usage": self.usage,
            "foundInQueries": list(self.found_in_queries) if self.found_in_queries is not None else None,
            "semanticRoles": [r.to_dict() for r in self.semantic_roles],
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Predicate":
        found = data.get("foundInQueries")
        return cls(
            verb=data["verb"],
            usage=data.get("usage", ""),
            found_in_queries=list(found) if found is not None else None,
            semantic_roles=[SemanticRole.from_dict(r) for r in data.get("semanticRoles") or []],
        )


@dataclass
class QueryPattern:
    pattern: str
    intent: SearchIntent = SearchIntent.INFORMATIONAL
    examples: List[str] = field(default_factory=list)
    total_volume: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "pattern": self.pattern,
            "intent": self.intent.value,
            "examples": list(self.examples),
            "totalVolume": self.total_volume,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QueryPattern":
        return cls(
            pattern=data["pattern"],
            intent=SearchIntent(data.get("intent") or "informational"),
            examples=list(data.get("examples") or []),
            total_volume=data.get("totalVolume"),
        )


@dataclass
class FiveWHPattern:
    type: FiveWH
    patterns: List[str] = field(default_factory=list)
    paa_examples: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "type": self.type.value,
            "patterns": list(self.patterns),
            "paaExamples": list(self.paa_examples) if self.paa_examples is not None else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FiveWHPattern":
        paa = data.get("paaExamples")
        return cls(
            type=FiveWH(data["type"]),
            patterns=list(data.get("patterns") or []),
            paa_examples=list(paa) if paa is not None else None,
        )


@dataclass
class ContextVector:
    """Vocabulary, predicates and query patterns characterizing a topic."""
    id: str
    project_id: str
    vocabulary: List[VocabularyTerm] = field(default_factory=list)
    predicates: List[Predicate] = field(default_factory=list)
    query_patterns: List[QueryPattern] = field(default_factory=list)
    five_wh_patterns: List[FiveWHPattern] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "vocabulary": [v.to_dict() for v in self.vocabulary],
            "predicates": [p.to_dict() for p in self.predicates],
            "queryPatterns": [q.to_dict() for q in self.query_patterns],
            "fiveWHPatterns": [f.to_dict() for f in self.five_wh_patterns],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextVector":
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            vocabulary=[VocabularyTerm.from_dict(v) for v in data.get("vocabulary") or []],
            predicates=[Predicate.from_dict(p) for p in data.get("predicates") or []],
            query_patterns=[QueryPattern.from_dict(q) for q in data.get("queryPatterns") or []],
            five_wh_patterns=[FiveWHPattern.from_dict(f) for f in data.get("fiveWHPatterns") or []],
        )


# =============================================================================
# EAV MODEL
# =============================================================================


@dataclass
class Attribute:
    id: str
    name: str
    value_type: ValueType = ValueType.TEXT
    is_key: bool = False  # Must match the list the attribute lives in
    description: str = ""
    related_keywords: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "valueType": self.value_type.value,
            "isKey": self.is_key,
            "description": self.description,
            "relatedKeywords": list(self.related_keywords) if self.related_keywords is not None else None,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Attribute":
        related = data.get("relatedKeywords")
        return cls(
            id=data["id"],
            name=data["name"],
            value_type=ValueType(data.get("valueType") or "text"),
            is_key=bool(data.get("isKey", False)),
            description=data.get("description") or "",
            related_keywords=list(related) if related is not None else None,
        )


@dataclass
class Entity:
    id: str
    name: str
    type: EntityType = EntityType.OTHER
    description: str = ""
    is_main_entity: bool = False
    based_on_cluster: Optional[str] = None
    key_attributes: List[Attribute] = field(default_factory=list)
    standard_attributes: List[Attribute] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "isMainEntity": self.is_main_entity,
            "basedOnCluster": self.based_on_cluster,
            "keyAttributes": [a.to_dict() for a in self.key_attributes],
            "standardAttributes": [a.to_dict() for a in self.standard_attributes],
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        return cls(
            id=data["id"],
            name=data["name"],
            type=EntityType(data.get("type") or "other"),
            description=data.get("description") or "",
            is_main_entity=bool(data.get("isMainEntity", False)),
            based_on_cluster=data.get("basedOnCluster"),
            key_attributes=[Attribute.from_dict(a) for a in data.get("keyAttributes") or []],
            standard_attributes=[Attribute.from_dict(a) for a in data.get("standardAttributes") or []],
        )


@dataclass
class EntityRelation:
    id: str
    source_entity_id: str
    target_entity_id: str
    relation_type: RelationType = RelationType.RELATED_TO
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "sourceEntityId": self.source_entity_id,
            "targetEntityId": self.target_entity_id,
            "relationType": self.relation_type.value,
            "description": self.description,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EntityRelation":
        return cls(
            id=data["id"],
            source_entity_id=data["sourceEntityId"],
            target_entity_id=data["targetEntityId"],
            relation_type=RelationType(data.get("relationType") or "related_to"),
            description=data.get("description"),
        )


@dataclass
class EAVModel:
    """Entities with key/standard attributes and typed relations."""
    id: str
    project_id: str
    entities: List[Entity] = field(default_factory=list)
    relations: List[EntityRelation] = field(default_factory=list)

    @property
    def main_entities(self) -> List[Entity]:
        """Entities flagged as the seed-topic entity (ideally exactly one)."""
        return [e for e in self.entities if e.is_main_entity]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "entities": [e.to_dict() for e in self.entities],
            "relations": [r.to_dict() for r in self.relations],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EAVModel":
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            entities=[Entity.from_dict(e) for e in data.get("entities") or []],
            relations=[EntityRelation.from_dict(r) for r in data.get("relations") or []],
        )


# =============================================================================
# TOPICAL MAP
# =============================================================================


@dataclass
class Position:
    x: float
    y: float

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}


@dataclass
class NodeKeyword:
    keyword: str
    volume: Optional[float] = None
    kgr: Optional[float] = None
    is_main: bool = False
    source: KeywordSource = KeywordSource.HALOSCAN

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "keyword": self.keyword,
            "volume": self.volume,
            "kgr": self.kgr,
            "isMain": self.is_main,
            "source": self.source.value,
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NodeKeyword":
        return cls(
            keyword=data["keyword"],
            volume=data.get("volume"),
            kgr=data.get("kgr"),
            is_main=bool(data.get("isMain", False)),
            source=KeywordSource(data.get("source") or "haloscan"),
        )


@dataclass
class TopicalMapNode:
    id: str
    type: NodeType
    title: str
    description: str = ""
    intent: SearchIntent = SearchIntent.INFORMATIONAL
    five_wh: Optional[List[FiveWH]] = None
    keywords: List[NodeKeyword] = field(default_factory=list)
    paa_questions: List[str] = field(default_factory=list)
    based_on_haloscan_cluster: Optional[str] = None
    position: Position = field(default_factory=lambda: Position(0, 0))

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "intent": self.intent.value,
            "fiveWH": [f.value for f in self.five_wh] if self.five_wh is not None else None,
            "keywords": [k.to_dict() for k in self.keywords],
            "paaQuestions": list(self.paa_questions),
            "basedOnHaloscanCluster": self.based_on_haloscan_cluster,
            "position": self.position.to_dict(),
        })

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicalMapNode":
        five_wh = data.get("fiveWH")
        position = data.get("position") or {}
        return cls(
            id=data["id"],
            type=NodeType(data["type"]),
            title=data["title"],
            description=data.get("description") or "",
            intent=SearchIntent(data.get("intent") or "informational"),
            five_wh=[FiveWH(f) for f in five_wh] if five_wh is not None else None,
            keywords=[NodeKeyword.from_dict(k) for k in data.get("keywords") or []],
            paa_questions=list(data.get("paaQuestions") or []),
            based_on_haloscan_cluster=data.get("basedOnHaloscanCluster"),
            position=Position(position.get("x", 0), position.get("y", 0)),
        )


@dataclass
class TopicalMapEdge:
    id: str
    source: str
    target: str
    type: EdgeType = EdgeType.HIERARCHICAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicalMapEdge":
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            type=EdgeType(data.get("type") or "hierarchical"),
        )


@dataclass
class TopicalMap:
    """Graph of content pages connected by hierarchical/contextual links."""
    id: str
    project_id: str
    nodes: List[TopicalMapNode] = field(default_factory=list)
    edges: List[TopicalMapEdge] = field(default_factory=list)

    def node_ids(self) -> List[str]:
        return [n.id for n in self.nodes]

    def dangling_edges(self) -> List[TopicalMapEdge]:
        """Edges whose source or target is not a node of this map."""
        ids = set(self.node_ids())
        return [e for e in self.edges if e.source not in ids or e.target not in ids]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "projectId": self.project_id,
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopicalMap":
        return cls(
            id=data["id"],
            project_id=data["projectId"],
            nodes=[TopicalMapNode.from_dict(n) for n in data.get("nodes") or []],
            edges=[TopicalMapEdge.from_dict(e) for e in data.get("edges") or []],
        )
