"""
Tests for the Haloscan API client.
"""

import json
import pytest

import httpx

from topicalmap.errors import ConfigurationError, HaloscanConfigurationError, HaloscanError
from topicalmap.haloscan import HaloscanClient
from topicalmap.haloscan.types import (
    NA,
    KeywordSearchRequest,
    OverviewRequest,
    QuestionsRequest,
    is_number,
)
from topicalmap.utils import Settings


class TestRequests:
    """Request shape: one POST, JSON body, key header."""

    @pytest.mark.asyncio
    async def test_posts_json_with_api_key_header(self, make_haloscan_client):
        client = make_haloscan_client()

        await client.get_keyword_related(KeywordSearchRequest(
            keyword="visa france", lineCount=50, order_by="volume", order="desc",
        ))
        await client.close()

        assert len(client.requests) == 1
        request = client.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/keywords/related"
        assert request.headers["haloscan-api-key"] == "test-key"
        assert json.loads(request.content) == {
            "keyword": "visa france",
            "lineCount": 50,
            "order_by": "volume",
            "order": "desc",
        }

    @pytest.mark.asyncio
    async def test_unset_filters_are_not_sent(self, make_haloscan_client):
        client = make_haloscan_client()

        await client.get_keyword_questions(QuestionsRequest(keyword="visa france", keep_only_paa=True))
        await client.close()

        body = json.loads(client.requests[0].content)
        assert body == {"keyword": "visa france", "keep_only_paa": True}


class TestResponses:

    @pytest.mark.asyncio
    async def test_overview_parses_sections(self, make_haloscan_client):
        async with make_haloscan_client() as client:
            overview = await client.get_keyword_overview(OverviewRequest(
                keyword="visa france",
                requested_data=["metrics", "similar_highlight"],
            ))

        assert overview.seo_metrics.volume == 12000
        assert overview.seo_metrics.allintitle_count == 4800
        assert [k.keyword for k in overview.similar_highlight.results][0] == "visa schengen"
        assert overview.serp.results.serp[0].url == "https://france-visas.gouv.fr"

    @pytest.mark.asyncio
    async def test_na_sentinel_is_kept(self, make_haloscan_client):
        async with make_haloscan_client() as client:
            overview = await client.get_keyword_overview(OverviewRequest(
                keyword="visa france", requested_data=["similar_highlight"],
            ))

        maroc = overview.similar_highlight.results[1]
        assert maroc.kgr == NA
        assert not is_number(maroc.kgr)
        assert is_number(maroc.volume)

    @pytest.mark.asyncio
    async def test_questions_result_counts(self, make_haloscan_client):
        async with make_haloscan_client() as client:
            questions = await client.get_keyword_questions(QuestionsRequest(keyword="visa france"))

        assert questions.total_result_count == 1
        assert questions.results[0].question_type == "comment"
        assert questions.results[0].depth == 1

    @pytest.mark.asyncio
    async def test_null_metrics_become_na(self, make_haloscan_client):
        client = make_haloscan_client(responses={
            "/api/keywords/related": {"results": [{"keyword": "visa", "volume": None, "cpc": 1.2}]},
        })

        related = await client.get_keyword_related(KeywordSearchRequest(keyword="visa"))
        await client.close()

        row = related.results[0]
        assert row.volume == NA
        assert row.cpc == 1.2
        assert not is_number(row.volume)


class TestErrors:

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status(self, make_haloscan_client):
        client = make_haloscan_client(errors={"/api/keywords/related": (429, "rate limited")})

        with pytest.raises(HaloscanError) as exc_info:
            await client.get_keyword_related(KeywordSearchRequest(keyword="visa"))
        await client.close()

        assert exc_info.value.status_code == 429
        assert exc_info.value.failure_reason is None
        assert "rate limited" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_failure_reason_in_2xx_raises(self, make_haloscan_client):
        client = make_haloscan_client(responses={
            "/api/keywords/related": {"failure_reason": "Not enough credit", "results": []},
        })

        with pytest.raises(HaloscanError) as exc_info:
            await client.get_keyword_related(KeywordSearchRequest(keyword="visa"))
        await client.close()

        assert exc_info.value.failure_reason == "Not enough credit"
        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error(self, make_haloscan_client):
        client = make_haloscan_client(api_key=None)

        with pytest.raises(HaloscanConfigurationError) as exc_info:
            await client.get_keyword_related(KeywordSearchRequest(keyword="visa"))
        await client.close()

        assert isinstance(exc_info.value, HaloscanError)
        assert isinstance(exc_info.value, ConfigurationError)
        assert client.requests == []

    @pytest.mark.asyncio
    async def test_scrap_accepts_201(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(201))
        client = HaloscanClient(api_key="k", transport=transport)

        assert await client.scrap_keywords(["visa france"]) is None
        await client.close()

    @pytest.mark.asyncio
    async def test_non_json_2xx_raises_haloscan_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>"))
        client = HaloscanClient(api_key="k", transport=transport)

        with pytest.raises(HaloscanError) as exc_info:
            await client.get_keyword_related(KeywordSearchRequest(keyword="visa"))
        await client.close()

        assert exc_info.value.status_code == 200
        assert "invalid JSON" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unexpected_shape_raises_haloscan_error(self, make_haloscan_client):
        client = make_haloscan_client(responses={
            "/api/keywords/related": {"results": [{"volume": 10}]},
        })

        with pytest.raises(HaloscanError) as exc_info:
            await client.get_keyword_related(KeywordSearchRequest(keyword="visa"))
        await client.close()

        assert exc_info.value.status_code == 200
        assert "/keywords/related" in str(exc_info.value)


class TestHelpers:

    @pytest.mark.asyncio
    async def test_full_keyword_analysis_combines_three_calls(self, make_haloscan_client):
        client = make_haloscan_client()

        analysis = await client.get_full_keyword_analysis("visa france")
        await client.close()

        paths = sorted(r.url.path for r in client.requests)
        assert paths == ["/api/keywords/overview", "/api/keywords/questions", "/api/keywords/related"]
        assert analysis["keyword"] == "visa france"
        assert len(analysis["similar_keywords"]) == 3
        assert analysis["related_keywords"][0].keyword == "visa long séjour"

    @pytest.mark.asyncio
    async def test_topical_structure_request(self, make_haloscan_client):
        client = make_haloscan_client()

        structure = await client.generate_topical_structure("visa france")
        await client.close()

        body = json.loads(client.requests[0].content)
        assert body["mode"] == "multi"
        assert body["multipartite_modes"] == ["serp", "related"]
        assert body["neighbours_sources"] == ["serp", "related"]
        assert body["granularity"] == 0.25
        assert body["neighbours_sample_max_size"] == 500
        assert [c.keyword for c in structure["clusters"]] == ["visa schengen", "visa etudiant"]

    def test_from_settings(self):
        settings = Settings(HALOSCAN_API_KEY="abc", HALOSCAN_API_URL="https://example.test/api")

        client = HaloscanClient.from_settings(settings)

        assert client.api_key == "abc"
        assert str(client._client.base_url).startswith("https://example.test/api")
