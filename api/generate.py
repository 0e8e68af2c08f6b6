"""
API Endpoints for Topical Map Generation

FastAPI handlers that:
1. Fetch keyword data for a project's seed topic (POST /api/generate, step=haloscan)
2. Run one generation stage from the project's existing results
3. Run the full pipeline (step=full or full-with-haloscan)
4. Proxy raw keyword-research lookups (POST /api/haloscan)

Handlers return results; persisting them is the caller's job.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from topicalmap import __version__
from topicalmap.errors import HaloscanError, PreconditionError, TopicalMapError
from topicalmap.generator import GenerationStep, TopicalMapGenerator, check_prerequisites
from topicalmap.haloscan import HaloscanClient, KeywordDataBundle
from topicalmap.haloscan.types import OverviewRequest, QuestionsRequest
from topicalmap.haloscan.client import OVERVIEW_REQUESTED_DATA
from topicalmap.models import Project
from topicalmap.openrouter import OpenRouterClient
from topicalmap.utils import configure_logging, get_settings

configure_logging(get_settings().LOG_LEVEL)
logger = logging.getLogger(__name__)

GENERATE_STEPS = [
    "haloscan",
    "knowledge-domain",
    "context-vector",
    "eav-model",
    "topical-map",
    "full",
    "full-with-haloscan",
]
HALOSCAN_ACTIONS = ["overview", "questions", "structure", "full"]

router = APIRouter(prefix="/api", tags=["generate"])


# ============================================================================
# REQUEST MODELS
# ============================================================================

class GenerateRequest(BaseModel):
    """Body of POST /api/generate (camelCase, as sent by the web client)."""
    project: Optional[Dict[str, Any]] = None
    step: Optional[str] = None
    haloscanData: Optional[Dict[str, Any]] = None


class HaloscanLookupRequest(BaseModel):
    keyword: Optional[str] = None
    action: Optional[str] = None


# ============================================================================
# DEPENDENCIES
# ============================================================================

async def get_haloscan_client() -> AsyncIterator[HaloscanClient]:
    client = HaloscanClient.from_settings(get_settings())
    try:
        yield client
    finally:
        await client.close()


async def get_openrouter_client() -> AsyncIterator[OpenRouterClient]:
    client = OpenRouterClient.from_settings(get_settings())
    try:
        yield client
    finally:
        await client.close()


def get_generator(
    haloscan: HaloscanClient = Depends(get_haloscan_client),
    openrouter: OpenRouterClient = Depends(get_openrouter_client),
) -> TopicalMapGenerator:
    return TopicalMapGenerator(haloscan, openrouter)


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


def _provider_status(error: HaloscanError) -> int:
    """Forward the upstream error status; anything else is a 500."""
    if error.status_code and error.status_code >= 400:
        return error.status_code
    return 500


# ============================================================================
# /api/generate
# ============================================================================

async def _keyword_data(
    generator: TopicalMapGenerator,
    project: Project,
    supplied: Optional[KeywordDataBundle],
) -> KeywordDataBundle:
    """Use the keyword data sent by the client, or fetch it."""
    if supplied is not None:
        return supplied
    return await generator.fetch_keyword_data(project.main_topic)


async def _run_step(
    generator: TopicalMapGenerator,
    project: Project,
    step: str,
    supplied: Optional[KeywordDataBundle],
) -> Dict[str, Any]:
    if step == "haloscan":
        bundle = await generator.fetch_keyword_data(project.main_topic)
        return {"haloscanData": bundle.to_dict()}

    if step == "knowledge-domain":
        keyword_data = await _keyword_data(generator, project, supplied)
        knowledge_domain = await generator.generate_knowledge_domain(project, keyword_data)
        return {"knowledgeDomain": knowledge_domain.to_dict()}

    if step == "context-vector":
        check_prerequisites(GenerationStep.CONTEXT_VECTOR, knowledge_domain=project.knowledge_domain)
        keyword_data = await _keyword_data(generator, project, supplied)
        context_vector = await generator.generate_context_vector(
            project, project.knowledge_domain, keyword_data
        )
        return {"contextVector": context_vector.to_dict()}

    if step == "eav-model":
        check_prerequisites(
            GenerationStep.EAV_MODEL,
            knowledge_domain=project.knowledge_domain,
            context_vector=project.context_vector,
        )
        keyword_data = await _keyword_data(generator, project, supplied)
        eav_model = await generator.generate_eav_model(
            project, project.knowledge_domain, project.context_vector, keyword_data
        )
        return {"eavModel": eav_model.to_dict()}

    if step == "topical-map":
        check_prerequisites(
            GenerationStep.TOPICAL_MAP,
            knowledge_domain=project.knowledge_domain,
            context_vector=project.context_vector,
            eav_model=project.eav_model,
        )
        keyword_data = await _keyword_data(generator, project, supplied)
        topical_map = await generator.generate_topical_map(
            project, project.knowledge_domain, project.context_vector, project.eav_model, keyword_data
        )
        return {"topicalMap": topical_map.to_dict()}

    # "full" is kept for older clients and behaves like full-with-haloscan
    result = await generator.run_full_pipeline(project, keyword_data=supplied)
    data = result.to_dict()
    data["haloscanData"] = data.pop("keywordData")
    return data


@router.post("/generate")
async def generate(
    request: GenerateRequest,
    generator: TopicalMapGenerator = Depends(get_generator),
):
    """Run one pipeline step (or all of them) for the project in the body."""
    if not request.project:
        return _error("Project is required", 400)

    if request.step not in GENERATE_STEPS:
        return _error(f"Invalid step. Use: {', '.join(GENERATE_STEPS)}", 400)

    try:
        project = Project.from_dict(request.project)
    except (KeyError, ValueError) as e:
        return _error(f"Invalid project: {e}", 400)

    try:
        supplied = KeywordDataBundle.from_dict(request.haloscanData) if request.haloscanData else None
    except ValueError as e:
        return _error(f"Invalid haloscanData: {e}", 400)

    try:
        return await _run_step(generator, project, request.step, supplied)

    except PreconditionError as e:
        return _error(str(e), 400, missing=e.missing)

    except HaloscanError as e:
        logger.error(f"Haloscan error during {request.step}: {e}")
        return _error(str(e), _provider_status(e), failureReason=e.failure_reason)

    except TopicalMapError as e:
        logger.error(f"Generation error during {request.step}: {e}")
        return _error(str(e), 500)


# ============================================================================
# /api/haloscan
# ============================================================================

@router.post("/haloscan")
async def haloscan_lookup(
    request: HaloscanLookupRequest,
    client: HaloscanClient = Depends(get_haloscan_client),
):
    """Raw keyword-research lookups for one keyword."""
    if not request.keyword:
        return _error("Keyword is required", 400)

    if request.action not in HALOSCAN_ACTIONS:
        return _error(f"Invalid action. Use: {', '.join(HALOSCAN_ACTIONS)}", 400)

    try:
        if request.action == "overview":
            overview = await client.get_keyword_overview(OverviewRequest(
                keyword=request.keyword,
                requested_data=OVERVIEW_REQUESTED_DATA,
            ))
            return {"overview": overview.model_dump()}

        if request.action == "questions":
            questions = await client.get_keyword_questions(QuestionsRequest(
                keyword=request.keyword,
                lineCount=50,
                keep_only_paa=True,
            ))
            return {"questions": [q.model_dump() for q in questions.results]}

        if request.action == "structure":
            return {"structure": await client.generate_topical_structure(request.keyword)}

        return {"analysis": await client.get_full_keyword_analysis(request.keyword)}

    except HaloscanError as e:
        logger.error(f"Haloscan API error: {e}")
        return _error(str(e), _provider_status(e), failureReason=e.failure_reason)


# ============================================================================
# APP
# ============================================================================

app = FastAPI(
    title="Topical Map Engine",
    description="Semantic SEO topical maps from Haloscan keyword data and OpenRouter LLMs",
    version=__version__,
)
app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": __version__}


# ============================================================================
# RUN SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.generate:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().ENVIRONMENT == "development",
    )
