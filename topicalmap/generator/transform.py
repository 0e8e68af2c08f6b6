"""
Stage Payload Transformation

Turns decoded stage payloads into persisted records:
- every new record (document, entity, attribute, relation, node, edge)
  gets a fresh uuid, whatever id the model invented
- isKey is forced by the list an attribute lives in
- nodes are laid out on a fixed grid by type
- references inside the same response (edge endpoints, relation entity
  names) are rewritten to the new ids

Reference reconciliation is lossy on purpose. An edge end that does not
resolve keeps the model's original string verbatim instead of being dropped,
and nodes that share a title all resolve to the first such node. Pass
strict=True to reject duplicate titles/entity names instead.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import StageValidationError
from ..models import (
    Attribute,
    ContextVector,
    EAVModel,
    Entity,
    EntityRelation,
    FiveWHPattern,
    KeywordSource,
    KnowledgeDomain,
    NodeKeyword,
    NodeType,
    Position,
    Predicate,
    Project,
    QualityParameter,
    QueryPattern,
    SemanticRole,
    TopicalMap,
    TopicalMapEdge,
    TopicalMapNode,
    VocabularyTerm,
    new_id,
)
from ..output.schemas import (
    AttributePayload,
    ContextVectorPayload,
    EAVModelPayload,
    KnowledgeDomainPayload,
    NodePayload,
    TopicalMapPayload,
)

logger = logging.getLogger(__name__)


# =============================================================================
# LAYOUT
# =============================================================================

# type -> (y base, items per row, horizontal spacing)
LAYOUT: Dict[NodeType, Tuple[int, int, int]] = {
    NodeType.PILLAR: (0, 2, 400),
    NodeType.CLUSTER: (200, 4, 300),
    NodeType.SUPPORTING: (400, 6, 250),
}

ROW_HEIGHT = 150
X_OFFSET = 100


def get_position(node_type: NodeType, index: int) -> Position:
    """Grid position of the index-th node of a given type."""
    y_base, per_row, spacing = LAYOUT[NodeType(node_type)]
    return Position(
        x=(index % per_row) * spacing + X_OFFSET,
        y=y_base + (index // per_row) * ROW_HEIGHT,
    )


def _duplicates(values: Sequence[str]) -> List[str]:
    seen = set()
    dupes = []
    for value in values:
        if value in seen and value not in dupes:
            dupes.append(value)
        seen.add(value)
    return dupes


# =============================================================================
# KNOWLEDGE DOMAIN / CONTEXT VECTOR
# =============================================================================


def build_knowledge_domain(payload: KnowledgeDomainPayload, project: Project) -> KnowledgeDomain:
    return KnowledgeDomain(
        id=new_id(),
        project_id=project.id,
        name=project.main_topic,
        source_context=payload.sourceContext,
        quality_parameters=[
            QualityParameter(name=q.name, description=q.description, importance=q.importance)
            for q in payload.qualityParameters
        ],
        boundaries=list(payload.boundaries),
        user_expectations=list(payload.userExpectations),
    )


def build_context_vector(payload: ContextVectorPayload, project: Project) -> ContextVector:
    return ContextVector(
        id=new_id(),
        project_id=project.id,
        vocabulary=[
            VocabularyTerm(
                term=v.term,
                category=v.category,
                definition=v.definition,
                search_volume=v.searchVolume,
            )
            for v in payload.vocabulary
        ],
        predicates=[
            Predicate(
                verb=p.verb,
                usage=p.usage,
                found_in_queries=list(p.foundInQueries) if p.foundInQueries is not None else None,
                semantic_roles=[SemanticRole(role=r.role, description=r.description) for r in p.semanticRoles],
            )
            for p in payload.predicates
        ],
        query_patterns=[
            QueryPattern(
                pattern=q.pattern,
                intent=q.intent,
                examples=list(q.examples),
                total_volume=q.totalVolume,
            )
            for q in payload.queryPatterns
        ],
        five_wh_patterns=[
            FiveWHPattern(
                type=f.type,
                patterns=list(f.patterns),
                paa_examples=list(f.paaExamples) if f.paaExamples is not None else None,
            )
            for f in payload.fiveWHPatterns
        ],
    )


# =============================================================================
# EAV MODEL
# =============================================================================


def _build_attribute(payload: AttributePayload, is_key: bool) -> Attribute:
    return Attribute(
        id=new_id(),
        name=payload.name,
        value_type=payload.valueType,
        is_key=is_key,
        description=payload.description,
        related_keywords=list(payload.relatedKeywords) if payload.relatedKeywords is not None else None,
    )


def build_eav_model(payload: EAVModelPayload, project: Project, strict: bool = False) -> EAVModel:
    """
    Build an EAV model with fresh ids.

    Relation endpoints name entities; each name is resolved to the id of the
    first entity with exactly that name, or kept verbatim when none matches.
    """
    if strict:
        dupes = _duplicates([e.name for e in payload.entities])
        if dupes:
            raise StageValidationError("eav_model", [f"duplicate entity name: {name}" for name in dupes])

    entities = [
        Entity(
            id=new_id(),
            name=e.name,
            type=e.type,
            description=e.description,
            is_main_entity=e.isMainEntity,
            based_on_cluster=e.basedOnCluster,
            key_attributes=[_build_attribute(a, True) for a in e.keyAttributes],
            standard_attributes=[_build_attribute(a, False) for a in e.standardAttributes],
        )
        for e in payload.entities
    ]

    by_name: Dict[str, str] = {}
    for entity in entities:
        by_name.setdefault(entity.name, entity.id)

    relations = []
    for r in payload.relations:
        source = by_name.get(r.sourceEntity, r.sourceEntity)
        target = by_name.get(r.targetEntity, r.targetEntity)
        if r.sourceEntity not in by_name or r.targetEntity not in by_name:
            logger.warning(f"Unresolved relation endpoint: {r.sourceEntity} -> {r.targetEntity}")
        relations.append(EntityRelation(
            id=new_id(),
            source_entity_id=source,
            target_entity_id=target,
            relation_type=r.relationType,
            description=r.description,
        ))

    main_count = sum(1 for e in entities if e.is_main_entity)
    if main_count != 1:
        logger.warning(f"EAV model has {main_count} main entities")

    return EAVModel(id=new_id(), project_id=project.id, entities=entities, relations=relations)


# =============================================================================
# TOPICAL MAP
# =============================================================================


def _build_keywords(node: NodePayload, index_within_type: int) -> List[NodeKeyword]:
    keywords = []
    for k in node.keywords:
        if isinstance(k, str):
            # bare strings are main keywords only on the first node of a type
            keywords.append(NodeKeyword(
                keyword=k,
                is_main=index_within_type == 0,
                source=KeywordSource.HALOSCAN,
            ))
        else:
            keywords.append(NodeKeyword(
                keyword=k.keyword,
                volume=k.volume,
                kgr=k.kgr,
                is_main=k.isMain,
                source=KeywordSource.HALOSCAN,
            ))
    return keywords


def _build_node(node: NodePayload, index_within_type: int) -> TopicalMapNode:
    return TopicalMapNode(
        id=new_id(),
        type=node.type,
        title=node.title,
        description=node.description,
        intent=node.intent,
        five_wh=list(node.fiveWH),
        keywords=_build_keywords(node, index_within_type),
        paa_questions=list(node.paaQuestions),
        based_on_haloscan_cluster=node.basedOnHaloscanCluster,
        position=get_position(node.type, index_within_type),
    )


def build_title_index(raw_nodes: Sequence[NodePayload], nodes: Sequence[TopicalMapNode]) -> Dict[str, str]:
    """
    Map each model-supplied node id to a new node id by exact title.

    The first new node carrying the raw node's title wins, so raw nodes
    that share a title all map to the same new id. Raw nodes without an id
    contribute nothing.
    """
    index: Dict[str, str] = {}
    for raw in raw_nodes:
        if not raw.id:
            continue
        match: Optional[TopicalMapNode] = next((n for n in nodes if n.title == raw.title), None)
        if match:
            index[raw.id] = match.id
    return index


def build_topical_map(payload: TopicalMapPayload, project: Project, strict: bool = False) -> TopicalMap:
    """
    Build a topical map with fresh ids, grid positions and rewired edges.

    Nodes come out grouped pillar, cluster, supporting, each group in the
    model's order.
    """
    if strict:
        dupes = _duplicates([n.title for n in payload.nodes])
        if dupes:
            raise StageValidationError("topical_map", [f"duplicate node title: {title}" for title in dupes])

    nodes: List[TopicalMapNode] = []
    for node_type in (NodeType.PILLAR, NodeType.CLUSTER, NodeType.SUPPORTING):
        of_type = [n for n in payload.nodes if n.type == node_type]
        nodes.extend(_build_node(n, i) for i, n in enumerate(of_type))

    id_map = build_title_index(payload.nodes, nodes)

    edges = []
    unresolved = 0
    for e in payload.edges:
        source = id_map.get(e.source, e.source)
        target = id_map.get(e.target, e.target)
        if e.source not in id_map or e.target not in id_map:
            unresolved += 1
        edges.append(TopicalMapEdge(id=new_id(), source=source, target=target, type=e.type))

    if unresolved:
        logger.warning(f"{unresolved} topical map edge(s) reference unknown node ids")

    return TopicalMap(id=new_id(), project_id=project.id, nodes=nodes, edges=edges)
