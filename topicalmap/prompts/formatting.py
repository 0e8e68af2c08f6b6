"""
Keyword-data rendering helpers for stage prompts.

Each helper renders one section of a KeywordDataBundle as a compact
markdown list, capped to keep prompts short.
"""

import json
from collections import OrderedDict
from typing import Any, Iterable, List, Optional, Sequence

from ..haloscan.aggregator import ClusterRecord, KeywordRecord, QuestionRecord, SerpEntry, TopSite
from ..haloscan.types import is_number

NO_DATA = "Aucune donnée disponible"

OPPORTUNITY_KGR_THRESHOLD = 0.25
HIGH_VOLUME_THRESHOLD = 500


def render_json(value: Any) -> str:
    """Pretty-print a prior-stage result (record or plain dict)."""
    if hasattr(value, "to_dict"):
        value = value.to_dict()
    return json.dumps(value, indent=2, ensure_ascii=False)


def format_keyword_list(keywords: Optional[Sequence[KeywordRecord]], limit: int = 20) -> str:
    if not keywords:
        return NO_DATA

    return "\n".join(
        f'- "{k.keyword}" (vol: {k.volume}, KGR: {k.kgr}, CPC: {k.cpc})'
        for k in keywords[:limit]
    )


def format_questions_list(questions: Optional[Sequence[QuestionRecord]], limit: int = 15) -> str:
    if not questions:
        return NO_DATA

    return "\n".join(
        f'- [{q.question_type}] "{q.keyword}" (vol: {q.volume})'
        for q in questions[:limit]
    )


def format_clusters_list(
    clusters: Optional[Sequence[ClusterRecord]],
    max_categories: int = 10,
    items_per_category: int = 5,
) -> str:
    """Group cluster rows by their top-level category (V1)."""
    if not clusters:
        return NO_DATA

    grouped: "OrderedDict[str, List[ClusterRecord]]" = OrderedDict()
    for cluster in clusters:
        grouped.setdefault(cluster.V1 or "Autres", []).append(cluster)

    blocks = []
    for category, items in list(grouped.items())[:max_categories]:
        top_items = "\n".join(
            f'    - "{i.keyword}" (vol: {i.volume})' for i in items[:items_per_category]
        )
        blocks.append(f"**{category}**:\n{top_items}")

    return "\n\n".join(blocks)


def format_serp_list(serp: Optional[Sequence[SerpEntry]], limit: int = 10) -> str:
    if not serp:
        return NO_DATA

    return "\n".join(f"{s.position}. {s.title}\n   {s.url}" for s in serp[:limit])


def format_top_sites(sites: Optional[Sequence[TopSite]], limit: int = 10) -> str:
    if not sites:
        return "Non disponible"

    return "\n".join(f"- {s.domain} (score: {s.score})" for s in sites[:limit])


def opportunity_keywords(keywords: Iterable[KeywordRecord], limit: int = 15) -> List[KeywordRecord]:
    """Keywords with a numeric KGR under the opportunity threshold."""
    return [
        k for k in keywords
        if is_number(k.kgr) and k.kgr < OPPORTUNITY_KGR_THRESHOLD
    ][:limit]


def high_volume_keywords(keywords: Iterable[KeywordRecord], limit: int = 10) -> List[KeywordRecord]:
    """Keywords with a numeric volume above the pillar threshold."""
    return [
        k for k in keywords
        if is_number(k.volume) and k.volume > HIGH_VOLUME_THRESHOLD
    ][:limit]


def format_opportunity_list(keywords: Iterable[KeywordRecord]) -> str:
    selected = opportunity_keywords(keywords)
    if not selected:
        return "Aucune opportunité KGR détectée"

    return "\n".join(
        f'- "{k.keyword}" (vol: {k.volume}, KGR: {k.kgr}) ⭐ OPPORTUNITÉ' for k in selected
    )


def format_high_volume_list(keywords: Iterable[KeywordRecord]) -> str:
    selected = high_volume_keywords(keywords)
    if not selected:
        return "Pas assez de données volume"

    return "\n".join(f'- "{k.keyword}" (vol: {k.volume})' for k in selected)
