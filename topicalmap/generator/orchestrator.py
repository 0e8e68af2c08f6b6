"""
Topical Map Generation Orchestrator

Drives the five-stage pipeline:
    haloscan -> knowledge_domain -> context_vector -> eav_model -> topical_map

Stage 0 gathers keyword data; the four LLM stages run strictly in sequence,
each embedding the previous stages' results in its prompt. Every LLM stage
follows the same procedure:

    prompt -> completion -> JSON extraction -> decode -> transform

Two modes share that procedure:
- run_full_pipeline / stream_full_pipeline run every stage
- generate_* entry points run one stage from already-computed predecessor
  results (e.g. regenerate only the topical map after editing the EAV model)

Nothing here retries, and nothing mutates the Project. Results are returned
to the caller, which decides what to persist.
"""

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from ..errors import ConfigurationError
from ..haloscan.aggregator import KeywordDataAggregator, KeywordDataBundle
from ..models import ContextVector, EAVModel, KnowledgeDomain, Project, TopicalMap
from ..openrouter.client import CompletionOptions, LARGE_OUTPUT_TOKENS
from ..openrouter.parser import parse_json_response
from ..output.schemas import decode_stage
from ..prompts import (
    SYSTEM_PROMPT,
    get_context_vector_prompt,
    get_eav_model_prompt,
    get_knowledge_domain_prompt,
    get_topical_map_prompt,
)
from .stages import GenerationStep, PIPELINE_ORDER, ProgressEvent, StepStatus, check_prerequisites
from .transform import build_context_vector, build_eav_model, build_knowledge_domain, build_topical_map

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]


@dataclass
class GenerationResult:
    """Everything a full pipeline run produces."""
    keyword_data: Optional[KeywordDataBundle]
    knowledge_domain: KnowledgeDomain
    context_vector: ContextVector
    eav_model: EAVModel
    topical_map: TopicalMap

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keywordData": self.keyword_data.to_dict() if self.keyword_data else None,
            "knowledgeDomain": self.knowledge_domain.to_dict(),
            "contextVector": self.context_vector.to_dict(),
            "eavModel": self.eav_model.to_dict(),
            "topicalMap": self.topical_map.to_dict(),
        }


def _emitter(on_progress: Optional[ProgressCallback]) -> ProgressCallback:
    def emit(event: ProgressEvent):
        if on_progress:
            on_progress(event)
    return emit


class TopicalMapGenerator:
    """
    Generates a project's four sub-documents from keyword data and an LLM.

    Usage:
        generator = TopicalMapGenerator(haloscan_client, openrouter_client)

        result = await generator.run_full_pipeline(
            project,
            on_progress=lambda e: print(e.step.value, e.status.value, e.message),
        )

        # Or resume from a stage
        topical_map = await generator.generate_topical_map(
            project, project.knowledge_domain, project.context_vector, edited_eav_model
        )
    """

    def __init__(
        self,
        keyword_client,
        completion_client,
        strict_ids: bool = False,
        fail_fast: bool = True,
    ):
        """
        Args:
            keyword_client: HaloscanClient, or None to generate without keyword data
            completion_client: OpenRouterClient (anything with complete_simple)
            strict_ids: Reject duplicate node titles / entity names instead
                of collapsing references onto the first match
            fail_fast: Aggregation fails on any keyword-research error
        """
        self.keyword_client = keyword_client
        self.completion_client = completion_client
        self.strict_ids = strict_ids
        self.aggregator = KeywordDataAggregator(keyword_client, fail_fast=fail_fast) if keyword_client else None

    # =========================================================================
    # STAGE 0: KEYWORD DATA
    # =========================================================================

    async def fetch_keyword_data(
        self,
        keyword: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> KeywordDataBundle:
        """Fetch and merge keyword-research data for the seed keyword."""
        emit = _emitter(on_progress)
        step = GenerationStep.HALOSCAN

        if self.aggregator is None:
            raise ConfigurationError("No keyword-research client configured")

        emit(ProgressEvent(step, StepStatus.IN_PROGRESS, f'Récupération des données Haloscan pour "{keyword}"...'))

        try:
            bundle = await self.aggregator.fetch(keyword)
        except Exception as e:
            emit(ProgressEvent(step, StepStatus.ERROR, str(e)))
            raise

        emit(ProgressEvent(step, StepStatus.COMPLETED, f"Données Haloscan récupérées: {bundle.summary()}", data=bundle))
        return bundle

    # =========================================================================
    # LLM STAGES
    # =========================================================================

    async def _run_stage(
        self,
        step: GenerationStep,
        prompt: str,
        build: Callable[[Any], Any],
        summarize: Callable[[Any], str],
        in_progress_message: str,
        emit: ProgressCallback,
        max_tokens: Optional[int] = None,
    ):
        emit(ProgressEvent(step, StepStatus.IN_PROGRESS, in_progress_message))
        logger.info(f"Stage {step.value} started")

        try:
            options = CompletionOptions(max_tokens=max_tokens) if max_tokens else CompletionOptions()
            raw = await self.completion_client.complete_simple(
                prompt,
                system_prompt=SYSTEM_PROMPT,
                options=options,
            )
            payload = decode_stage(step.value, parse_json_response(raw))
            record = build(payload)
        except Exception as e:
            logger.error(f"Stage {step.value} failed: {e}")
            emit(ProgressEvent(step, StepStatus.ERROR, str(e)))
            raise

        message = summarize(record)
        logger.info(f"Stage {step.value} completed: {message}")
        emit(ProgressEvent(step, StepStatus.COMPLETED, message, data=record))
        return record

    async def generate_knowledge_domain(
        self,
        project: Project,
        keyword_data: Optional[KeywordDataBundle] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> KnowledgeDomain:
        check_prerequisites(GenerationStep.KNOWLEDGE_DOMAIN)

        return await self._run_stage(
            GenerationStep.KNOWLEDGE_DOMAIN,
            get_knowledge_domain_prompt(project, keyword_data),
            build=lambda payload: build_knowledge_domain(payload, project),
            summarize=lambda kd: f"Knowledge Domain généré: {len(kd.quality_parameters)} paramètres de qualité",
            in_progress_message="Génération du Knowledge Domain...",
            emit=_emitter(on_progress),
        )

    async def generate_context_vector(
        self,
        project: Project,
        knowledge_domain: Optional[KnowledgeDomain],
        keyword_data: Optional[KeywordDataBundle] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> ContextVector:
        check_prerequisites(GenerationStep.CONTEXT_VECTOR, knowledge_domain=knowledge_domain)

        return await self._run_stage(
            GenerationStep.CONTEXT_VECTOR,
            get_context_vector_prompt(project, knowledge_domain, keyword_data),
            build=lambda payload: build_context_vector(payload, project),
            summarize=lambda cv: (
                f"Context Vector généré: {len(cv.vocabulary)} termes, {len(cv.predicates)} prédicats"
            ),
            in_progress_message="Génération du Context Vector...",
            emit=_emitter(on_progress),
        )

    async def generate_eav_model(
        self,
        project: Project,
        knowledge_domain: Optional[KnowledgeDomain],
        context_vector: Optional[ContextVector],
        keyword_data: Optional[KeywordDataBundle] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> EAVModel:
        check_prerequisites(
            GenerationStep.EAV_MODEL,
            knowledge_domain=knowledge_domain,
            context_vector=context_vector,
        )

        return await self._run_stage(
            GenerationStep.EAV_MODEL,
            get_eav_model_prompt(project, knowledge_domain, context_vector, keyword_data),
            build=lambda payload: build_eav_model(payload, project, strict=self.strict_ids),
            summarize=lambda eav: (
                f"Modèle EAV généré: {len(eav.entities)} entités, {len(eav.relations)} relations"
            ),
            in_progress_message="Génération du modèle EAV...",
            emit=_emitter(on_progress),
            max_tokens=LARGE_OUTPUT_TOKENS,
        )

    async def generate_topical_map(
        self,
        project: Project,
        knowledge_domain: Optional[KnowledgeDomain],
        context_vector: Optional[ContextVector],
        eav_model: Optional[EAVModel],
        keyword_data: Optional[KeywordDataBundle] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> TopicalMap:
        check_prerequisites(
            GenerationStep.TOPICAL_MAP,
            knowledge_domain=knowledge_domain,
            context_vector=context_vector,
            eav_model=eav_model,
        )

        return await self._run_stage(
            GenerationStep.TOPICAL_MAP,
            get_topical_map_prompt(project, knowledge_domain, context_vector, eav_model, keyword_data),
            build=lambda payload: build_topical_map(payload, project, strict=self.strict_ids),
            summarize=lambda tm: f"Topical Map générée: {len(tm.nodes)} nodes, {len(tm.edges)} edges",
            in_progress_message="Génération de la Topical Map...",
            emit=_emitter(on_progress),
            max_tokens=LARGE_OUTPUT_TOKENS,
        )

    # =========================================================================
    # FULL PIPELINE
    # =========================================================================

    async def run_full_pipeline(
        self,
        project: Project,
        on_progress: Optional[ProgressCallback] = None,
        keyword_data: Optional[KeywordDataBundle] = None,
    ) -> GenerationResult:
        """
        Run all five stages for a project.

        Args:
            project: Project to generate for (read only)
            on_progress: Called once per (stage, status)
            keyword_data: Pre-fetched keyword data; skips the provider calls

        Returns:
            GenerationResult. The final topical_map "completed" event
            carries it as its data.
        """
        emit = _emitter(on_progress)
        logger.info(f"Starting generation for '{project.main_topic}' (project {project.id})")

        for step in PIPELINE_ORDER:
            emit(ProgressEvent(step, StepStatus.PENDING, "En attente"))

        if keyword_data is None and self.aggregator is not None:
            keyword_data = await self.fetch_keyword_data(project.main_topic, on_progress=emit)
        else:
            message = (
                f"Données Haloscan fournies: {keyword_data.summary()}"
                if keyword_data else "Génération sans données Haloscan"
            )
            emit(ProgressEvent(GenerationStep.HALOSCAN, StepStatus.COMPLETED, message, data=keyword_data))

        knowledge_domain = await self.generate_knowledge_domain(project, keyword_data, on_progress=emit)
        context_vector = await self.generate_context_vector(
            project, knowledge_domain, keyword_data, on_progress=emit
        )
        eav_model = await self.generate_eav_model(
            project, knowledge_domain, context_vector, keyword_data, on_progress=emit
        )

        # Hold the last completion so it can carry the whole result
        held: List[ProgressEvent] = []

        def hold_completion(event: ProgressEvent):
            if event.status == StepStatus.COMPLETED:
                held.append(event)
            else:
                emit(event)

        topical_map = await self.generate_topical_map(
            project, knowledge_domain, context_vector, eav_model, keyword_data, on_progress=hold_completion
        )

        result = GenerationResult(
            keyword_data=keyword_data,
            knowledge_domain=knowledge_domain,
            context_vector=context_vector,
            eav_model=eav_model,
            topical_map=topical_map,
        )
        emit(replace(held[0], data=result))

        logger.info(f"Generation complete for project {project.id}")
        return result

    async def stream_full_pipeline(
        self,
        project: Project,
        keyword_data: Optional[KeywordDataBundle] = None,
    ) -> AsyncIterator[ProgressEvent]:
        """
        Run the full pipeline as a stream of progress events.

        Usage:
            async for event in generator.stream_full_pipeline(project):
                if event.step == GenerationStep.TOPICAL_MAP and event.status == StepStatus.COMPLETED:
                    result = event.data

        A failing stage yields its "error" event, then the error is raised
        from the iterator.
        """
        queue: asyncio.Queue = asyncio.Queue()
        finished = object()

        async def run():
            try:
                await self.run_full_pipeline(project, on_progress=queue.put_nowait, keyword_data=keyword_data)
            finally:
                queue.put_nowait(finished)

        task = asyncio.create_task(run())
        try:
            while True:
                event = await queue.get()
                if event is finished:
                    break
                yield event
            await task
        finally:
            if not task.done():
                task.cancel()
