"""
Haloscan API Types

Request and response models for the Haloscan keyword-research API.

Numeric metrics may come back as the "NA" sentinel (or null) when the
provider has no data; NumberOrNA keeps "NA" and maps null to it instead
of coercing either.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

NA = "NA"


def _null_to_na(value: Any) -> Any:
    return NA if value is None else value


NumberOrNA = Annotated[Union[int, float, Literal["NA"]], BeforeValidator(_null_to_na)]


def is_number(value: Any) -> bool:
    """True for real numeric metrics (not the NA sentinel, not bools)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# =============================================================================
# COMMON
# =============================================================================


class HaloscanKeywordResult(BaseModel):
    """One keyword row as returned by the search endpoints."""
    model_config = ConfigDict(extra="allow")

    keyword: str
    volume: NumberOrNA = NA
    cpc: NumberOrNA = NA
    competition: NumberOrNA = NA
    kgr: NumberOrNA = NA
    allintitle: NumberOrNA = NA
    google_indexed: Optional[NumberOrNA] = None
    word_count: Optional[int] = None


class HaloscanBaseResponse(BaseModel):
    """Fields every Haloscan response carries."""
    model_config = ConfigDict(extra="allow")

    response_time: Optional[str] = None
    response_code: Optional[str] = None
    failure_reason: Optional[str] = None


class ResultCounts(HaloscanBaseResponse):
    total_result_count: int = 0
    filtered_result_count: int = 0
    filtered_result_volume: Optional[float] = None
    returned_result_count: int = 0
    remaining_result_count: int = 0


# =============================================================================
# OVERVIEW
# =============================================================================

OverviewRequestedData = Literal[
    "keyword_match",
    "related_search",
    "related_question",
    "similar_category",
    "similar_serp",
    "top_sites",
    "similar_highlight",
    "categories",
    "synonyms",
    "metrics",
    "volume_history",
    "serp",
]


class OverviewRequest(BaseModel):
    keyword: str
    requested_data: List[OverviewRequestedData]
    lang: Optional[Literal["fr", "en"]] = None


class OverviewSerpResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    position: int
    url: str
    title: str = ""
    description: str = ""


class OverviewTopSite(BaseModel):
    domain: str
    score: float = 0


class OverviewKeyword(BaseModel):
    model_config = ConfigDict(extra="allow")

    keyword: str
    volume: NumberOrNA = NA
    cpc: NumberOrNA = NA
    competition: NumberOrNA = NA
    kgr: NumberOrNA = NA
    allintitle: NumberOrNA = NA


class OverviewKeywordSection(BaseModel):
    results: List[OverviewKeyword] = Field(default_factory=list)


class OverviewSerpPage(BaseModel):
    serp: List[OverviewSerpResult] = Field(default_factory=list)


class OverviewSerpSection(BaseModel):
    serp_date: Optional[str] = None
    results: OverviewSerpPage = Field(default_factory=OverviewSerpPage)


class OverviewTopSitesSection(BaseModel):
    results: List[OverviewTopSite] = Field(default_factory=list)


class SeoMetrics(BaseModel):
    model_config = ConfigDict(extra="allow")

    results_count: Optional[NumberOrNA] = None
    allintitle_count: NumberOrNA = NA
    volume: NumberOrNA = NA
    keyword_count: Optional[NumberOrNA] = None
    kgr: NumberOrNA = NA


class AdsMetrics(BaseModel):
    volume: NumberOrNA = NA
    cpc: NumberOrNA = NA
    competition: NumberOrNA = NA


class OverviewResponse(HaloscanBaseResponse):
    keyword: str = ""
    errors: List[Any] = Field(default_factory=list)
    similar_highlight: Optional[OverviewKeywordSection] = None
    keyword_match: Optional[OverviewKeywordSection] = None
    serp: Optional[OverviewSerpSection] = None
    top_sites: Optional[OverviewTopSitesSection] = None
    seo_metrics: Optional[SeoMetrics] = None
    ads_metrics: Optional[AdsMetrics] = None


# =============================================================================
# KEYWORD SEARCH (match / similar / highlights / related / synonyms)
# =============================================================================

OrderBy = Literal[
    "default", "keyword", "volume", "cpc", "competition",
    "kgr", "allintitle", "similarity", "depth",
]


class KeywordSearchRequest(BaseModel):
    keyword: str
    lineCount: Optional[int] = None
    page: Optional[int] = None
    order_by: Optional[OrderBy] = None
    order: Optional[Literal["asc", "desc"]] = None
    exact_match: Optional[bool] = None
    volume_min: Optional[float] = None
    volume_max: Optional[float] = None
    cpc_min: Optional[float] = None
    cpc_max: Optional[float] = None
    competition_min: Optional[float] = None
    competition_max: Optional[float] = None
    kgr_min: Optional[float] = None
    kgr_max: Optional[float] = None
    allintitle_min: Optional[float] = None
    allintitle_max: Optional[float] = None
    word_count_min: Optional[int] = None
    word_count_max: Optional[int] = None
    include: Optional[str] = None
    exclude: Optional[str] = None


class KeywordSearchResponse(ResultCounts):
    keyword: str = ""
    results: List[HaloscanKeywordResult] = Field(default_factory=list)


# =============================================================================
# QUESTIONS (PAA)
# =============================================================================

QuestionType = Literal[
    "definition", "how", "how_expensive", "how_many", "what", "when",
    "where", "who", "why", "yesno", "how_long", "unknown",
]


class QuestionsRequest(KeywordSearchRequest):
    question_types: Optional[List[QuestionType]] = None
    keep_only_paa: Optional[bool] = None
    depth_min: Optional[int] = None
    depth_max: Optional[int] = None


class QuestionResult(HaloscanKeywordResult):
    question_type: str = "unknown"
    depth: int = 0


class QuestionsResponse(ResultCounts):
    keyword: str = ""
    results: List[QuestionResult] = Field(default_factory=list)


# =============================================================================
# SITE STRUCTURE (CLUSTERING)
# =============================================================================

SiteStructureSource = Literal["ngram", "serp", "related", "highlights", "categories"]


class SiteStructureRequest(BaseModel):
    keyword: Optional[str] = None
    keywords: Optional[List[str]] = None
    exact_match: Optional[bool] = None
    neighbours_sources: Optional[List[SiteStructureSource]] = None
    multipartite_modes: Optional[List[SiteStructureSource]] = None
    neighbours_sample_max_size: Optional[int] = None
    mode: Optional[Literal["multi", "manual"]] = None
    granularity: Optional[float] = None
    manual_common_10: Optional[int] = None
    manual_common_100: Optional[int] = None


class SiteStructureNode(BaseModel):
    name: str
    value: Optional[float] = None
    children: Optional[List["SiteStructureNode"]] = None


class SiteStructureCannibalisation(BaseModel):
    groupe: str
    keyword: str


class SiteStructureTableEntry(HaloscanKeywordResult):
    article: str = ""
    V1: str = ""
    V2: str = ""
    V3: str = ""
    V4: str = ""
    value: Optional[float] = None


class SiteStructureResponse(HaloscanBaseResponse):
    seed: str = ""
    graph: Optional[SiteStructureNode] = None
    cannibalisation: List[SiteStructureCannibalisation] = Field(default_factory=list)
    table: List[SiteStructureTableEntry] = Field(default_factory=list)
    outliers: List[str] = Field(default_factory=list)


# =============================================================================
# BULK / FIND
# =============================================================================


class BulkRequest(BaseModel):
    keywords: List[str]
    lineCount: Optional[int] = None
    page: Optional[int] = None
    order_by: Optional[Literal["keep", "keyword", "volume", "cpc", "competition", "kgr", "allintitle"]] = None
    order: Optional[Literal["asc", "desc"]] = None
    volume_min: Optional[float] = None
    volume_max: Optional[float] = None


class BulkResponse(ResultCounts):
    keywords: List[str] = Field(default_factory=list)
    results: List[HaloscanKeywordResult] = Field(default_factory=list)


FindSource = Literal["match", "serp", "related", "highlights", "categories", "questions"]


class FindRequest(KeywordSearchRequest):
    keywords: Optional[str] = None
    keywords_sources: Optional[List[FindSource]] = None
    keep_seed: Optional[bool] = None


class FindResult(HaloscanKeywordResult):
    match_count: int = 0
    modalities: str = ""


class FindResponse(HaloscanBaseResponse):
    seed: str = ""
    total_result_count: int = 0
    filtered_result_count: int = 0
    filtered_result_volume: Optional[float] = None
    result_count: int = 0
    remaining_result_count: int = 0
    results: List[FindResult] = Field(default_factory=list)


# =============================================================================
# SERP HISTORY
# =============================================================================


class SerpCompareRequest(BaseModel):
    keyword: str
    period: Optional[Literal["1 month", "3 months", "6 months", "12 months", "custom"]] = None
    first_date: Optional[str] = None
    second_date: Optional[str] = None


class SerpCompareResult(BaseModel):
    url: str
    position: int
    diff: str = ""


class SerpCompareResults(BaseModel):
    old_serp: List[SerpCompareResult] = Field(default_factory=list)
    new_serp: List[SerpCompareResult] = Field(default_factory=list)


class SerpCompareResponse(HaloscanBaseResponse):
    keyword: str = ""
    dates: List[str] = Field(default_factory=list)
    available_search_dates: List[str] = Field(default_factory=list)
    results: SerpCompareResults = Field(default_factory=SerpCompareResults)


class AvailableDatesResponse(HaloscanBaseResponse):
    keyword: str = ""
    available_search_dates: List[str] = Field(default_factory=list)


def request_body(request: BaseModel) -> Dict[str, Any]:
    """Serialize a request model, dropping unset filters."""
    return request.model_dump(exclude_none=True)
