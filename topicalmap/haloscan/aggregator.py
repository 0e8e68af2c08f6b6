"""
Keyword Data Aggregator

Combines four Haloscan calls into one KeywordDataBundle per seed topic:
1. Overview (metrics, keyword match, similar highlights, top sites, SERP)
2. PAA questions (50 rows)
3. Related keywords by volume, descending (50 rows)
4. Site structure clustering (SERP + related, multipartite)

All four run concurrently. By default any failure fails the whole
aggregation; no partial bundle is returned.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .client import HaloscanClient, OVERVIEW_REQUESTED_DATA
from .types import (
    NA,
    KeywordSearchRequest,
    NumberOrNA,
    OverviewRequest,
    OverviewResponse,
    QuestionsRequest,
    SiteStructureRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_GRANULARITY = 0.25
DEFAULT_MAX_KEYWORDS = 500
QUESTIONS_LINE_COUNT = 50
RELATED_LINE_COUNT = 50


# =============================================================================
# BUNDLE MODELS
# =============================================================================


class _BundleModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class KeywordMetrics(_BundleModel):
    volume: NumberOrNA = NA
    kgr: NumberOrNA = NA
    allintitle: NumberOrNA = NA


class KeywordRecord(_BundleModel):
    keyword: str
    volume: NumberOrNA = NA
    cpc: NumberOrNA = NA
    competition: NumberOrNA = NA
    kgr: NumberOrNA = NA
    allintitle: NumberOrNA = NA


class QuestionRecord(_BundleModel):
    keyword: str
    question_type: str = "unknown"
    volume: NumberOrNA = NA
    depth: int = 0


class ClusterRecord(_BundleModel):
    article: str = ""
    keyword: str
    volume: NumberOrNA = NA
    V1: str = ""
    V2: str = ""
    V3: str = ""
    V4: str = ""


class TopSite(_BundleModel):
    domain: str
    score: float = 0


class SerpEntry(_BundleModel):
    position: int
    url: str
    title: str = ""


class KeywordDataBundle(_BundleModel):
    """Normalized keyword-research data for one seed keyword."""
    seed_keyword: str = Field(alias="seedKeyword")
    metrics: Optional[KeywordMetrics] = None
    similar_keywords: List[KeywordRecord] = Field(default_factory=list, alias="similarKeywords")
    matching_keywords: List[KeywordRecord] = Field(default_factory=list, alias="matchingKeywords")
    related_keywords: List[KeywordRecord] = Field(default_factory=list, alias="relatedKeywords")
    questions: List[QuestionRecord] = Field(default_factory=list)
    clusters: List[ClusterRecord] = Field(default_factory=list)
    top_sites: List[TopSite] = Field(default_factory=list, alias="topSites")
    serp: List[SerpEntry] = Field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase wire format."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KeywordDataBundle":
        return cls.model_validate(data)

    def summary(self) -> str:
        return (
            f"{len(self.similar_keywords)} keywords similaires, "
            f"{len(self.questions)} questions PAA, "
            f"{len(self.clusters)} entrées de clusters"
        )


# =============================================================================
# AGGREGATOR
# =============================================================================


def _records(items) -> List[Dict[str, Any]]:
    return [item.model_dump() for item in items or []]


def build_bundle(
    keyword: str,
    overview: OverviewResponse,
    questions: List[Any],
    related: List[Any],
    clusters: List[Any],
) -> KeywordDataBundle:
    """Assemble a bundle from already-fetched provider responses."""
    metrics = None
    if overview.seo_metrics:
        metrics = KeywordMetrics(
            volume=overview.seo_metrics.volume,
            kgr=overview.seo_metrics.kgr,
            allintitle=overview.seo_metrics.allintitle_count,
        )

    return KeywordDataBundle(
        seed_keyword=keyword,
        metrics=metrics,
        similar_keywords=_records(overview.similar_highlight.results if overview.similar_highlight else []),
        matching_keywords=_records(overview.keyword_match.results if overview.keyword_match else []),
        related_keywords=_records(related),
        questions=_records(questions),
        clusters=_records(clusters),
        top_sites=_records(overview.top_sites.results if overview.top_sites else []),
        serp=_records(overview.serp.results.serp if overview.serp else []),
    )


class KeywordDataAggregator:
    """
    Fetches and merges keyword-research data for a seed topic.

    Usage:
        aggregator = KeywordDataAggregator(client)
        bundle = await aggregator.fetch("visa france")
    """

    def __init__(self, client: HaloscanClient, fail_fast: bool = True):
        """
        Args:
            client: HaloscanClient instance
            fail_fast: When False, failed questions/related/clustering calls
                leave their section empty instead of failing the run. The
                overview call is always required.
        """
        self.client = client
        self.fail_fast = fail_fast

    async def fetch(
        self,
        keyword: str,
        granularity: float = DEFAULT_GRANULARITY,
        max_keywords: int = DEFAULT_MAX_KEYWORDS,
    ) -> KeywordDataBundle:
        logger.info(f"Fetching Haloscan data for '{keyword}'")

        calls = [
            self.client.get_keyword_overview(OverviewRequest(
                keyword=keyword,
                requested_data=OVERVIEW_REQUESTED_DATA,
            )),
            self.client.get_keyword_questions(QuestionsRequest(
                keyword=keyword,
                lineCount=QUESTIONS_LINE_COUNT,
                keep_only_paa=True,
            )),
            self.client.get_keyword_related(KeywordSearchRequest(
                keyword=keyword,
                lineCount=RELATED_LINE_COUNT,
                order_by="volume",
                order="desc",
            )),
            self.client.get_site_structure(SiteStructureRequest(
                keyword=keyword,
                mode="multi",
                multipartite_modes=["serp", "related"],
                neighbours_sources=["serp", "related"],
                neighbours_sample_max_size=max_keywords,
                granularity=granularity,
            )),
        ]

        if self.fail_fast:
            overview, questions, related, structure = await asyncio.gather(*calls)
        else:
            overview, questions, related, structure = await asyncio.gather(
                *calls, return_exceptions=True
            )
            if isinstance(overview, Exception):
                raise overview
            for name, result in (("questions", questions), ("related", related), ("site_structure", structure)):
                if isinstance(result, Exception):
                    logger.warning(f"Haloscan {name} call failed for '{keyword}': {result}")
            questions = None if isinstance(questions, Exception) else questions
            related = None if isinstance(related, Exception) else related
            structure = None if isinstance(structure, Exception) else structure

        bundle = build_bundle(
            keyword,
            overview,
            questions=questions.results if questions else [],
            related=related.results if related else [],
            clusters=structure.table if structure else [],
        )

        logger.info(f"Haloscan data for '{keyword}': {bundle.summary()}")
        return bundle


async def fetch_haloscan_data(
    client: HaloscanClient,
    keyword: str,
    granularity: float = DEFAULT_GRANULARITY,
    max_keywords: int = DEFAULT_MAX_KEYWORDS,
) -> KeywordDataBundle:
    """Fail-fast aggregation for one seed keyword."""
    return await KeywordDataAggregator(client).fetch(keyword, granularity, max_keywords)
