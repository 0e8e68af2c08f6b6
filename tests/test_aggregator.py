"""
Tests for keyword-data aggregation.
"""

import json
import pytest

from topicalmap.errors import HaloscanError
from topicalmap.haloscan import KeywordDataAggregator, KeywordDataBundle, fetch_haloscan_data
from topicalmap.haloscan.types import NA


class TestFetch:

    @pytest.mark.asyncio
    async def test_issues_four_calls(self, make_haloscan_client):
        client = make_haloscan_client()

        await fetch_haloscan_data(client, "visa france")
        await client.close()

        bodies = {r.url.path: json.loads(r.content) for r in client.requests}
        assert set(bodies) == {
            "/api/keywords/overview",
            "/api/keywords/questions",
            "/api/keywords/related",
            "/api/keywords/siteStructure",
        }
        assert bodies["/api/keywords/overview"]["requested_data"] == [
            "metrics", "keyword_match", "similar_highlight", "top_sites", "serp",
        ]
        assert bodies["/api/keywords/questions"]["lineCount"] == 50
        assert bodies["/api/keywords/questions"]["keep_only_paa"] is True
        assert bodies["/api/keywords/related"]["lineCount"] == 50
        assert bodies["/api/keywords/related"]["order_by"] == "volume"
        assert bodies["/api/keywords/related"]["order"] == "desc"
        assert bodies["/api/keywords/siteStructure"]["granularity"] == 0.25
        assert bodies["/api/keywords/siteStructure"]["neighbours_sample_max_size"] == 500

    @pytest.mark.asyncio
    async def test_bundle_contents(self, make_haloscan_client):
        client = make_haloscan_client()

        bundle = await KeywordDataAggregator(client).fetch("visa france")
        await client.close()

        assert bundle.seed_keyword == "visa france"
        assert bundle.metrics.volume == 12000
        assert bundle.metrics.allintitle == 4800
        assert [k.keyword for k in bundle.similar_keywords] == [
            "visa schengen", "visa france maroc", "demande visa france",
        ]
        assert bundle.similar_keywords[1].kgr == NA
        assert bundle.matching_keywords[0].keyword == "visa france etudiant"
        assert bundle.related_keywords[0].keyword == "visa long séjour"
        assert bundle.questions[0].question_type == "comment"
        assert bundle.clusters[0].V1 == "Schengen"
        assert bundle.top_sites[0].domain == "france-visas.gouv.fr"
        assert bundle.serp[0].position == 1

    @pytest.mark.asyncio
    async def test_custom_granularity(self, make_haloscan_client):
        client = make_haloscan_client()

        await KeywordDataAggregator(client).fetch("visa france", granularity=0.5, max_keywords=100)
        await client.close()

        body = next(json.loads(r.content) for r in client.requests if r.url.path.endswith("siteStructure"))
        assert body["granularity"] == 0.5
        assert body["neighbours_sample_max_size"] == 100


class TestFailFast:

    @pytest.mark.asyncio
    async def test_clustering_failure_fails_whole_aggregation(self, make_haloscan_client):
        client = make_haloscan_client(errors={"/api/keywords/siteStructure": (500, "clustering down")})

        with pytest.raises(HaloscanError) as exc_info:
            await fetch_haloscan_data(client, "visa france")
        await client.close()

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_lenient_mode_keeps_other_sections(self, make_haloscan_client):
        client = make_haloscan_client(errors={"/api/keywords/siteStructure": (500, "clustering down")})

        bundle = await KeywordDataAggregator(client, fail_fast=False).fetch("visa france")
        await client.close()

        assert bundle.clusters == []
        assert len(bundle.similar_keywords) == 3
        assert len(bundle.questions) == 1

    @pytest.mark.asyncio
    async def test_lenient_mode_still_requires_overview(self, make_haloscan_client):
        client = make_haloscan_client(errors={"/api/keywords/overview": (503, "unavailable")})

        with pytest.raises(HaloscanError):
            await KeywordDataAggregator(client, fail_fast=False).fetch("visa france")
        await client.close()


class TestBundle:

    def test_wire_format_uses_camel_case(self, keyword_bundle):
        data = keyword_bundle.to_dict()

        assert data["seedKeyword"] == "visa france"
        assert "similarKeywords" in data
        assert "topSites" in data
        assert KeywordDataBundle.from_dict(data) == keyword_bundle

    def test_summary_counts(self, keyword_bundle):
        assert keyword_bundle.summary() == (
            "3 keywords similaires, 1 questions PAA, 2 entrées de clusters"
        )
