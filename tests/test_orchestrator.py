"""
Tests for the generation pipeline.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from topicalmap.errors import (
    ConfigurationError,
    HaloscanError,
    ParseError,
    PreconditionError,
    StageValidationError,
    TopicalMapError,
)
from topicalmap.generator import (
    GenerationResult,
    GenerationStep,
    PIPELINE_ORDER,
    StepStatus,
    TopicalMapGenerator,
)
from topicalmap.models import ContextVector, EAVModel, KnowledgeDomain, TopicalMap
from topicalmap.openrouter import LARGE_OUTPUT_TOKENS
from topicalmap.prompts import SYSTEM_PROMPT


def collect():
    events = []
    return events, events.append


class TestPreconditions:

    @pytest.mark.asyncio
    async def test_context_vector_requires_knowledge_domain(self, project, completion_client):
        generator = TopicalMapGenerator(None, completion_client)

        with pytest.raises(PreconditionError) as exc_info:
            await generator.generate_context_vector(project, None)

        assert exc_info.value.missing == ["knowledge_domain"]
        completion_client.complete_simple.assert_not_called()

    @pytest.mark.asyncio
    async def test_topical_map_lists_every_missing_input(self, project, completion_client):
        generator = TopicalMapGenerator(None, completion_client)

        with pytest.raises(PreconditionError) as exc_info:
            await generator.generate_topical_map(project, None, None, None)

        assert exc_info.value.missing == ["knowledge_domain", "context_vector", "eav_model"]
        completion_client.complete_simple.assert_not_called()

    @pytest.mark.asyncio
    async def test_eav_requires_context_vector(self, project, completion_client):
        generator = TopicalMapGenerator(None, completion_client)
        kd = await generator.generate_knowledge_domain(project)

        with pytest.raises(PreconditionError) as exc_info:
            await generator.generate_eav_model(project, kd, None)

        assert exc_info.value.missing == ["context_vector"]
        assert completion_client.complete_simple.await_count == 1

    @pytest.mark.asyncio
    async def test_fetch_keyword_data_requires_keyword_client(self, completion_client):
        generator = TopicalMapGenerator(None, completion_client)
        events, on_progress = collect()

        with pytest.raises(ConfigurationError) as exc_info:
            await generator.fetch_keyword_data("visa france", on_progress=on_progress)

        assert isinstance(exc_info.value, TopicalMapError)
        assert events == []


class TestSingleStage:

    @pytest.mark.asyncio
    async def test_stage_call_shape(self, project, completion_client, keyword_bundle):
        generator = TopicalMapGenerator(None, completion_client)
        events, on_progress = collect()

        kd = await generator.generate_knowledge_domain(project, keyword_bundle, on_progress=on_progress)

        assert isinstance(kd, KnowledgeDomain)
        args, kwargs = completion_client.complete_simple.call_args
        assert "Volume mensuel: 12000" in args[0]
        assert kwargs["system_prompt"] == SYSTEM_PROMPT
        assert kwargs["options"].max_tokens == 4096
        assert [(e.step, e.status) for e in events] == [
            (GenerationStep.KNOWLEDGE_DOMAIN, StepStatus.IN_PROGRESS),
            (GenerationStep.KNOWLEDGE_DOMAIN, StepStatus.COMPLETED),
        ]
        assert events[-1].data is kd
        assert events[-1].message == "Knowledge Domain généré: 3 paramètres de qualité"

    @pytest.mark.asyncio
    async def test_invalid_json_emits_error_then_raises(self, project):
        client = MagicMock()
        client.complete_simple = AsyncMock(return_value="Je ne peux pas répondre en JSON.")
        generator = TopicalMapGenerator(None, client)
        events, on_progress = collect()

        with pytest.raises(ParseError):
            await generator.generate_knowledge_domain(project, on_progress=on_progress)

        assert events[-1].status == StepStatus.ERROR
        assert "Failed to parse LLM response as JSON" in events[-1].message

    @pytest.mark.asyncio
    async def test_invalid_shape_emits_error_then_raises(self, project):
        client = MagicMock()
        client.complete_simple = AsyncMock(return_value='{"boundaries": []}')
        generator = TopicalMapGenerator(None, client)
        events, on_progress = collect()

        with pytest.raises(StageValidationError):
            await generator.generate_knowledge_domain(project, on_progress=on_progress)

        assert [e.status for e in events] == [StepStatus.IN_PROGRESS, StepStatus.ERROR]

    @pytest.mark.asyncio
    async def test_strict_ids_are_applied(
        self, project, knowledge_domain_json, context_vector_json, eav_model_json
    ):
        client = MagicMock()
        client.complete_simple = AsyncMock(return_value=(
            '{"nodes": [{"id": "a", "type": "pillar", "title": "T"},'
            ' {"id": "b", "type": "cluster", "title": "T"}], "edges": []}'
        ))
        generator = TopicalMapGenerator(None, client, strict_ids=True)

        with pytest.raises(StageValidationError):
            await generator.generate_topical_map(
                project, knowledge_domain_json, context_vector_json, eav_model_json
            )


class TestFullPipeline:

    @pytest.mark.asyncio
    async def test_full_run_with_keyword_client(self, project, completion_client, make_haloscan_client):
        haloscan = make_haloscan_client()
        generator = TopicalMapGenerator(haloscan, completion_client)
        events, on_progress = collect()

        result = await generator.run_full_pipeline(project, on_progress=on_progress)
        await haloscan.close()

        assert isinstance(result, GenerationResult)
        assert result.keyword_data.seed_keyword == "visa france"
        assert isinstance(result.context_vector, ContextVector)
        assert isinstance(result.eav_model, EAVModel)
        assert isinstance(result.topical_map, TopicalMap)
        assert len(haloscan.requests) == 4

        # pending for every stage first, then each stage in order
        assert [(e.step, e.status) for e in events[:5]] == [
            (step, StepStatus.PENDING) for step in PIPELINE_ORDER
        ]
        expected = []
        for step in PIPELINE_ORDER:
            expected += [(step, StepStatus.IN_PROGRESS), (step, StepStatus.COMPLETED)]
        assert [(e.step, e.status) for e in events[5:]] == expected

        assert events[-1].data is result
        assert events[-1].message.startswith("Topical Map générée: 4 nodes, 4 edges")

    @pytest.mark.asyncio
    async def test_one_event_per_step_and_status(self, project, completion_client, keyword_bundle):
        generator = TopicalMapGenerator(None, completion_client)
        events, on_progress = collect()

        await generator.run_full_pipeline(project, on_progress=on_progress, keyword_data=keyword_bundle)

        keys = [(e.step, e.status) for e in events]
        assert len(keys) == len(set(keys))

    @pytest.mark.asyncio
    async def test_large_stages_use_larger_token_limit(self, project, completion_client, keyword_bundle):
        generator = TopicalMapGenerator(None, completion_client)

        await generator.run_full_pipeline(project, keyword_data=keyword_bundle)

        limits = [c.kwargs["options"].max_tokens for c in completion_client.complete_simple.call_args_list]
        assert limits == [4096, 4096, LARGE_OUTPUT_TOKENS, LARGE_OUTPUT_TOKENS]

    @pytest.mark.asyncio
    async def test_prior_stages_are_embedded_in_later_prompts(self, project, completion_client):
        generator = TopicalMapGenerator(None, completion_client)

        result = await generator.run_full_pipeline(project)

        prompts = [c.args[0] for c in completion_client.complete_simple.call_args_list]
        assert result.knowledge_domain.id in prompts[1]
        assert result.context_vector.id in prompts[2]
        assert result.eav_model.id in prompts[3]

    @pytest.mark.asyncio
    async def test_without_keyword_data(self, project, completion_client):
        generator = TopicalMapGenerator(None, completion_client)
        events, on_progress = collect()

        result = await generator.run_full_pipeline(project, on_progress=on_progress)

        assert result.keyword_data is None
        haloscan_events = [e for e in events if e.step == GenerationStep.HALOSCAN]
        assert [e.status for e in haloscan_events] == [StepStatus.PENDING, StepStatus.COMPLETED]
        assert haloscan_events[-1].message == "Génération sans données Haloscan"

    @pytest.mark.asyncio
    async def test_keyword_failure_stops_pipeline(self, project, completion_client, make_haloscan_client):
        haloscan = make_haloscan_client(errors={"/api/keywords/siteStructure": (500, "boom")})
        generator = TopicalMapGenerator(haloscan, completion_client)
        events, on_progress = collect()

        with pytest.raises(HaloscanError):
            await generator.run_full_pipeline(project, on_progress=on_progress)
        await haloscan.close()

        assert (events[-1].step, events[-1].status) == (GenerationStep.HALOSCAN, StepStatus.ERROR)
        completion_client.complete_simple.assert_not_called()

    @pytest.mark.asyncio
    async def test_stage_failure_stops_pipeline(self, project, stage_responses, keyword_bundle):
        client = MagicMock()
        client.complete_simple = AsyncMock(side_effect=[stage_responses[0], "```json\nnot json\n```"])
        generator = TopicalMapGenerator(None, client)
        events, on_progress = collect()

        with pytest.raises(ParseError):
            await generator.run_full_pipeline(project, on_progress=on_progress, keyword_data=keyword_bundle)

        assert (events[-1].step, events[-1].status) == (GenerationStep.CONTEXT_VECTOR, StepStatus.ERROR)
        assert client.complete_simple.await_count == 2

    @pytest.mark.asyncio
    async def test_project_is_not_mutated(self, project, completion_client, keyword_bundle):
        generator = TopicalMapGenerator(None, completion_client)

        await generator.run_full_pipeline(project, keyword_data=keyword_bundle)

        assert project.knowledge_domain is None
        assert project.topical_map is None


class TestStream:

    @pytest.mark.asyncio
    async def test_stream_yields_events_in_order(self, project, completion_client, keyword_bundle):
        generator = TopicalMapGenerator(None, completion_client)

        events = [e async for e in generator.stream_full_pipeline(project, keyword_data=keyword_bundle)]

        assert len(events) == 5 + 1 + 8
        assert events[5].message.startswith("Données Haloscan fournies")
        assert isinstance(events[-1].data, GenerationResult)
        assert events[-1].to_dict()["data"]["topicalMap"]["nodes"]

    @pytest.mark.asyncio
    async def test_stream_raises_after_error_event(self, project):
        client = MagicMock()
        client.complete_simple = AsyncMock(return_value="pas du json")
        generator = TopicalMapGenerator(None, client)
        events = []

        with pytest.raises(ParseError):
            async for event in generator.stream_full_pipeline(project):
                events.append(event)

        assert events[-1].status == StepStatus.ERROR
