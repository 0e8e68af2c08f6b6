"""
Stage output decoding: loosely-typed payload models and decode_stage.
"""

from .schemas import (
    KnowledgeDomainPayload,
    ContextVectorPayload,
    EAVModelPayload,
    TopicalMapPayload,
    NodePayload,
    EdgePayload,
    NodeKeywordPayload,
    EntityPayload,
    RelationPayload,
    AttributePayload,
    STAGE_PAYLOADS,
    decode_stage,
)

__all__ = [
    "KnowledgeDomainPayload",
    "ContextVectorPayload",
    "EAVModelPayload",
    "TopicalMapPayload",
    "NodePayload",
    "EdgePayload",
    "NodeKeywordPayload",
    "EntityPayload",
    "RelationPayload",
    "AttributePayload",
    "STAGE_PAYLOADS",
    "decode_stage",
]
