"""
Haloscan API Client

Async HTTP client for the Haloscan keyword-intelligence API:
- One POST per endpoint, JSON body, key sent in the haloscan-api-key header
- Transport failures (non-2xx) and provider failures (2xx with a
  failure_reason) both raise HaloscanError
- Single attempt, no retry
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

import httpx
from pydantic import ValidationError

from ..errors import HaloscanConfigurationError, HaloscanError
from .types import (
    AvailableDatesResponse,
    BulkRequest,
    BulkResponse,
    FindRequest,
    FindResponse,
    HaloscanBaseResponse,
    KeywordSearchRequest,
    KeywordSearchResponse,
    OverviewRequest,
    OverviewResponse,
    QuestionsRequest,
    QuestionsResponse,
    SerpCompareRequest,
    SerpCompareResponse,
    SiteStructureRequest,
    SiteStructureResponse,
    request_body,
)

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=HaloscanBaseResponse)

OVERVIEW_REQUESTED_DATA = ["metrics", "keyword_match", "similar_highlight", "top_sites", "serp"]


class HaloscanClient:
    """
    Async client for the Haloscan API.

    Usage:
        client = HaloscanClient(api_key="your_api_key")

        related = await client.get_keyword_related(
            KeywordSearchRequest(keyword="visa france", lineCount=50)
        )

        await client.close()
    """

    BASE_URL = "https://api.haloscan.com/api"

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = BASE_URL,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Haloscan client.

        Args:
            api_key: Haloscan API key. A missing key only fails when a
                request is made.
            base_url: API root
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "HaloscanClient":
        """Build a client from a Settings instance."""
        return cls(
            api_key=settings.HALOSCAN_API_KEY,
            base_url=settings.HALOSCAN_API_URL,
            timeout=settings.API_TIMEOUT,
            transport=transport,
        )

    def _auth_headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise HaloscanConfigurationError("HALOSCAN_API_KEY is not configured")
        return {"haloscan-api-key": self.api_key}

    async def _post(self, endpoint: str, body: Dict[str, Any]) -> httpx.Response:
        if self._closed:
            raise HaloscanError("Client is closed")

        headers = self._auth_headers()
        logger.debug(f"POST {endpoint}")
        return await self._client.post(endpoint, json=body, headers=headers)

    async def _fetch(self, endpoint: str, body: Dict[str, Any], model: Type[ResponseT]) -> ResponseT:
        """POST to an endpoint and validate the response into `model`."""
        response = await self._post(endpoint, body)

        if not response.is_success:
            raise HaloscanError(
                f"Haloscan API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise HaloscanError(
                f"Haloscan API returned invalid JSON: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

        # A 2xx can still carry a provider-level failure
        failure_reason = data.get("failure_reason") if isinstance(data, dict) else None
        if failure_reason:
            raise HaloscanError(
                f"Haloscan API failed: {failure_reason}",
                failure_reason=failure_reason,
                response=data,
            )

        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise HaloscanError(
                f"Unexpected Haloscan response for {endpoint}: {e.error_count()} invalid fields",
                status_code=response.status_code,
                response=data if isinstance(data, dict) else None,
            ) from e

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # =========================================================================
    # KEYWORD OVERVIEW
    # =========================================================================

    async def get_keyword_overview(self, request: OverviewRequest) -> OverviewResponse:
        """Metrics, SERP, matching/similar keywords and top sites for one keyword."""
        return await self._fetch("/keywords/overview", request_body(request), OverviewResponse)

    # =========================================================================
    # KEYWORD SEARCH
    # =========================================================================

    async def get_keyword_match(self, request: KeywordSearchRequest) -> KeywordSearchResponse:
        """Keywords containing the seed keyword."""
        return await self._fetch("/keywords/match", request_body(request), KeywordSearchResponse)

    async def get_keyword_similar(self, request: KeywordSearchRequest) -> KeywordSearchResponse:
        """Keywords with a similar SERP."""
        return await self._fetch("/keywords/similar", request_body(request), KeywordSearchResponse)

    async def get_keyword_highlights(self, request: KeywordSearchRequest) -> KeywordSearchResponse:
        """Combination of match and similarity."""
        return await self._fetch("/keywords/highlights", request_body(request), KeywordSearchResponse)

    async def get_keyword_related(self, request: KeywordSearchRequest) -> KeywordSearchResponse:
        """Keywords from Google's related searches."""
        return await self._fetch("/keywords/related", request_body(request), KeywordSearchResponse)

    async def get_keyword_synonyms(self, request: KeywordSearchRequest) -> KeywordSearchResponse:
        return await self._fetch("/keywords/synonyms", request_body(request), KeywordSearchResponse)

    async def get_keyword_questions(self, request: QuestionsRequest) -> QuestionsResponse:
        """People Also Ask style questions."""
        return await self._fetch("/keywords/questions", request_body(request), QuestionsResponse)

    # =========================================================================
    # SITE STRUCTURE / BULK / FIND
    # =========================================================================

    async def get_site_structure(self, request: SiteStructureRequest) -> SiteStructureResponse:
        """Hierarchical keyword clustering."""
        return await self._fetch("/keywords/siteStructure", request_body(request), SiteStructureResponse)

    async def get_keywords_bulk(self, request: BulkRequest) -> BulkResponse:
        return await self._fetch("/keywords/bulk", request_body(request), BulkResponse)

    async def find_keywords(self, request: FindRequest) -> FindResponse:
        return await self._fetch("/keywords/find", request_body(request), FindResponse)

    # =========================================================================
    # SERP HISTORY
    # =========================================================================

    async def compare_serp_history(self, request: SerpCompareRequest) -> SerpCompareResponse:
        return await self._fetch("/keywords/serp/compare", request_body(request), SerpCompareResponse)

    async def get_available_serp_dates(self, keyword: str) -> AvailableDatesResponse:
        return await self._fetch(
            "/keywords/serp/availableDates", {"keyword": keyword}, AvailableDatesResponse
        )

    async def scrap_keywords(self, keywords: List[str]) -> None:
        """Request a refresh of the given keywords (no payload returned)."""
        response = await self._post("/keywords/scrap", {"keywords": keywords})

        if not response.is_success:
            raise HaloscanError(
                f"Haloscan scrap error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

    # =========================================================================
    # COMPOSITE HELPERS
    # =========================================================================

    async def get_full_keyword_analysis(self, keyword: str) -> Dict[str, Any]:
        """
        Overview, PAA questions and related keywords for one seed, fetched
        concurrently. Any failure propagates.
        """
        overview, questions, related = await asyncio.gather(
            self.get_keyword_overview(OverviewRequest(
                keyword=keyword,
                requested_data=OVERVIEW_REQUESTED_DATA,
            )),
            self.get_keyword_questions(QuestionsRequest(
                keyword=keyword,
                lineCount=50,
                keep_only_paa=True,
            )),
            self.get_keyword_related(KeywordSearchRequest(
                keyword=keyword,
                lineCount=50,
                order_by="volume",
                order="desc",
            )),
        )

        return {
            "keyword": keyword,
            "metrics": overview.seo_metrics,
            "serp": overview.serp.results.serp if overview.serp else [],
            "top_sites": overview.top_sites.results if overview.top_sites else [],
            "similar_keywords": overview.similar_highlight.results if overview.similar_highlight else [],
            "matching_keywords": overview.keyword_match.results if overview.keyword_match else [],
            "questions": questions.results,
            "related_keywords": related.results,
        }

    async def generate_topical_structure(
        self,
        keyword: str,
        granularity: float = 0.25,
        max_keywords: int = 500,
    ) -> Dict[str, Any]:
        """SERP + related-search multipartite clustering for one seed."""
        structure = await self.get_site_structure(SiteStructureRequest(
            keyword=keyword,
            mode="multi",
            multipartite_modes=["serp", "related"],
            neighbours_sources=["serp", "related"],
            neighbours_sample_max_size=max_keywords,
            granularity=granularity,
        ))

        return {
            "keyword": keyword,
            "graph": structure.graph,
            "clusters": structure.table,
            "cannibalisation": structure.cannibalisation,
        }
