"""
Data Models

Project aggregate and the four generated sub-documents.
"""

from .project import BusinessType, Project, new_id, utcnow
from .documents import (
    # Enums
    Importance,
    TermCategory,
    SemanticRoleType,
    SearchIntent,
    FiveWH,
    EntityType,
    ValueType,
    RelationType,
    NodeType,
    EdgeType,
    KeywordSource,
    # Knowledge Domain
    QualityParameter,
    KnowledgeDomain,
    # Context Vector
    VocabularyTerm,
    SemanticRole,
    Predicate,
    QueryPattern,
    FiveWHPattern,
    ContextVector,
    # EAV Model
    Attribute,
    Entity,
    EntityRelation,
    EAVModel,
    # Topical Map
    Position,
    NodeKeyword,
    TopicalMapNode,
    TopicalMapEdge,
    TopicalMap,
)

__all__ = [
    "BusinessType",
    "Project",
    "new_id",
    "utcnow",
    "Importance",
    "TermCategory",
    "SemanticRoleType",
    "SearchIntent",
    "FiveWH",
    "EntityType",
    "ValueType",
    "RelationType",
    "NodeType",
    "EdgeType",
    "KeywordSource",
    "QualityParameter",
    "KnowledgeDomain",
    "VocabularyTerm",
    "SemanticRole",
    "Predicate",
    "QueryPattern",
    "FiveWHPattern",
    "ContextVector",
    "Attribute",
    "Entity",
    "EntityRelation",
    "EAVModel",
    "Position",
    "NodeKeyword",
    "TopicalMapNode",
    "TopicalMapEdge",
    "TopicalMap",
]
