"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import json
import pytest
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import httpx

from topicalmap.haloscan import HaloscanClient, KeywordDataBundle
from topicalmap.models import BusinessType, Project


# ============================================================================
# Project Fixtures
# ============================================================================

@pytest.fixture
def project() -> Project:
    """A fresh project with no generated sub-documents."""
    return Project.create(
        name="Visa France",
        main_topic="visa france",
        business_type=BusinessType.AFFILIATE,
        audience="Voyageurs hors UE préparant un séjour en France",
        objectives=["Capter le trafic informationnel", "Générer des demandes de visa"],
    )


@pytest.fixture
def keyword_bundle() -> KeywordDataBundle:
    """Aggregated keyword data for "visa france"."""
    return KeywordDataBundle.from_dict({
        "seedKeyword": "visa france",
        "metrics": {"volume": 12000, "kgr": 0.4, "allintitle": 4800},
        "similarKeywords": [
            {"keyword": "visa schengen", "volume": 800, "kgr": 0.1, "cpc": 1.2, "competition": 0.3},
            {"keyword": "visa france maroc", "volume": 450, "kgr": "NA", "cpc": 0.8},
            {"keyword": "demande visa france", "volume": 1500, "kgr": 0.6, "cpc": 1.5},
        ],
        "matchingKeywords": [
            {"keyword": "visa france etudiant", "volume": 600, "kgr": 0.2},
        ],
        "relatedKeywords": [
            {"keyword": "visa long séjour", "volume": 900, "kgr": "NA"},
        ],
        "questions": [
            {"keyword": "comment obtenir un visa pour la france", "question_type": "comment", "volume": 300, "depth": 1},
        ],
        "clusters": [
            {"article": "a1", "keyword": "visa schengen", "volume": 800, "V1": "Schengen"},
            {"article": "a2", "keyword": "visa etudiant", "volume": 600, "V1": ""},
        ],
        "topSites": [{"domain": "france-visas.gouv.fr", "score": 98.5}],
        "serp": [{"position": 1, "url": "https://france-visas.gouv.fr", "title": "France-Visas"}],
    })


# ============================================================================
# Stage Output Fixtures (raw model JSON)
# ============================================================================

@pytest.fixture
def knowledge_domain_json() -> Dict[str, Any]:
    return {
        "sourceContext": "Site d'information sur les démarches de visa pour la France.",
        "qualityParameters": [
            {"name": "Exactitude réglementaire", "description": "Sources officielles", "importance": "critical"},
            {"name": "Fraîcheur", "description": "Délais à jour", "importance": "HIGH"},
            {"name": "Ton", "description": "Rassurant", "importance": "essential"},
        ],
        "boundaries": ["Pas de conseil juridique individuel"],
        "userExpectations": ["Connaître les pièces justificatives"],
    }


@pytest.fixture
def context_vector_json() -> Dict[str, Any]:
    return {
        "vocabulary": [
            {"term": "visa schengen", "category": "technical", "definition": "Visa court séjour", "searchVolume": 800},
            {"term": "rendez-vous", "category": "slang", "definition": "RDV consulaire", "searchVolume": "NA"},
        ],
        "predicates": [
            {
                "verb": "obtenir",
                "usage": "obtenir un visa",
                "foundInQueries": ["comment obtenir un visa pour la france"],
                "semanticRoles": [
                    {"role": "agent", "description": "le demandeur"},
                    {"role": "beneficiary", "description": "inconnu"},
                ],
            },
        ],
        "queryPatterns": [
            {"pattern": "visa [pays] [type]", "intent": "informational", "examples": ["visa france etudiant"]},
        ],
        "fiveWHPatterns": [
            {"type": "how", "patterns": ["comment obtenir"], "paaExamples": ["comment obtenir un visa"]},
            {"type": "which", "patterns": ["quel visa"]},
        ],
    }


@pytest.fixture
def eav_model_json() -> Dict[str, Any]:
    return {
        "entities": [
            {
                "name": "Visa France",
                "type": "concept",
                "description": "Autorisation d'entrée",
                "isMainEntity": True,
                "basedOnCluster": "Schengen",
                "keyAttributes": [
                    {"name": "durée", "valueType": "number", "isKey": False, "description": "jours"},
                ],
                "standardAttributes": [
                    {"name": "coût", "valueType": "currency", "isKey": True, "description": "euros"},
                ],
            },
            {
                "name": "Consulat",
                "type": "organization",
                "description": "Instruit les demandes",
                "isMainEntity": False,
                "keyAttributes": [],
                "standardAttributes": None,
            },
        ],
        "relations": [
            {"sourceEntity": "Consulat", "targetEntity": "Visa France", "relationType": "provides", "description": "délivre"},
            {"sourceEntity": "Visa France", "targetEntity": "Ambassade", "relationType": "depends_on"},
        ],
    }


@pytest.fixture
def topical_map_json() -> Dict[str, Any]:
    return {
        "nodes": [
            {
                "id": "p1", "type": "pillar", "title": "Guide Visa France",
                "description": "Page pilier", "intent": "informational",
                "fiveWH": ["what", "how"],
                "keywords": [{"keyword": "visa france", "volume": 12000, "kgr": 0.4, "isMain": True}],
                "paaQuestions": ["comment obtenir un visa pour la france"],
            },
            {
                "id": "c1", "type": "cluster", "title": "Visa Schengen",
                "keywords": ["visa schengen", "visa court séjour"],
                "basedOnHaloscanCluster": "Schengen",
            },
            {
                "id": "c2", "type": "cluster", "title": "Visa Étudiant",
                "keywords": ["visa etudiant"],
            },
            {
                "id": "s1", "type": "supporting", "title": "Documents pour le visa Schengen",
                "intent": "transactional",
                "keywords": [{"keyword": "documents visa schengen", "kgr": None, "isMain": True}],
            },
        ],
        "edges": [
            {"source": "p1", "target": "c1", "type": "hierarchical"},
            {"source": "p1", "target": "c2", "type": "hierarchical"},
            {"source": "c1", "target": "s1", "type": "contextual"},
            {"source": "c2", "target": "ghost-node"},
        ],
    }


@pytest.fixture
def stage_responses(knowledge_domain_json, context_vector_json, eav_model_json, topical_map_json) -> List[str]:
    """Raw completion texts for the four LLM stages, in pipeline order."""
    return [
        "```json\n" + json.dumps(knowledge_domain_json, ensure_ascii=False) + "\n```",
        json.dumps(context_vector_json, ensure_ascii=False),
        "```\n" + json.dumps(eav_model_json, ensure_ascii=False) + "\n```",
        json.dumps(topical_map_json, ensure_ascii=False),
    ]


@pytest.fixture
def completion_client(stage_responses) -> MagicMock:
    """Completion client mock answering the four stages in order."""
    client = MagicMock()
    client.complete_simple = AsyncMock(side_effect=list(stage_responses))
    return client


# ============================================================================
# Haloscan HTTP Fixtures
# ============================================================================

@pytest.fixture
def haloscan_responses() -> Dict[str, Dict[str, Any]]:
    """Canned Haloscan responses keyed by endpoint path."""
    return {
        "/api/keywords/overview": {
            "keyword": "visa france",
            "seo_metrics": {"volume": 12000, "kgr": 0.4, "allintitle_count": 4800},
            "similar_highlight": {"results": [
                {"keyword": "visa schengen", "volume": 800, "kgr": 0.1, "cpc": 1.2, "competition": 0.3},
                {"keyword": "visa france maroc", "volume": 450, "kgr": "NA"},
                {"keyword": "demande visa france", "volume": 1500, "kgr": 0.6},
            ]},
            "keyword_match": {"results": [{"keyword": "visa france etudiant", "volume": 600, "kgr": 0.2}]},
            "top_sites": {"results": [{"domain": "france-visas.gouv.fr", "score": 98.5}]},
            "serp": {"serp_date": "2024-05-01", "results": {"serp": [
                {"position": 1, "url": "https://france-visas.gouv.fr", "title": "France-Visas"},
            ]}},
        },
        "/api/keywords/questions": {
            "total_result_count": 1,
            "returned_result_count": 1,
            "results": [
                {"keyword": "comment obtenir un visa pour la france", "question_type": "comment", "volume": 300, "depth": 1},
            ],
        },
        "/api/keywords/related": {
            "results": [{"keyword": "visa long séjour", "volume": 900}],
        },
        "/api/keywords/siteStructure": {
            "seed": "visa france",
            "table": [
                {"keyword": "visa schengen", "volume": 800, "article": "a1", "V1": "Schengen"},
                {"keyword": "visa etudiant", "volume": 600, "article": "a2", "V1": ""},
            ],
        },
    }


@pytest.fixture
def make_haloscan_client(haloscan_responses) -> Callable[..., HaloscanClient]:
    """
    Build a HaloscanClient over an httpx.MockTransport.

    Usage:
        client = make_haloscan_client(errors={"/api/keywords/siteStructure": (500, "boom")})
        client.requests  # list of httpx.Request seen by the transport
    """
    def factory(
        responses: Optional[Dict[str, Dict[str, Any]]] = None,
        errors: Optional[Dict[str, tuple]] = None,
        api_key: Optional[str] = "test-key",
    ) -> HaloscanClient:
        routes = responses if responses is not None else haloscan_responses
        errors = errors or {}
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.url.path in errors:
                status, text = errors[request.url.path]
                return httpx.Response(status, text=text)
            if request.url.path in routes:
                return httpx.Response(200, json=routes[request.url.path])
            return httpx.Response(404, text="not found")

        client = HaloscanClient(
            api_key=api_key,
            base_url="https://api.haloscan.test/api",
            transport=httpx.MockTransport(handler),
        )
        client.requests = seen
        return client

    return factory
