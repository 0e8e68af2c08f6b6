"""
Tests for stage prompt builders.
"""

import json

from topicalmap.haloscan import KeywordDataBundle
from topicalmap.prompts import (
    SYSTEM_PROMPT,
    get_context_vector_prompt,
    get_eav_model_prompt,
    get_knowledge_domain_prompt,
    get_topical_map_prompt,
    high_volume_keywords,
    opportunity_keywords,
    render_json,
)


class TestKeywordSelection:

    def test_opportunity_requires_numeric_kgr_below_threshold(self, keyword_bundle):
        selected = [k.keyword for k in opportunity_keywords(keyword_bundle.similar_keywords)]

        # "visa france maroc" has kgr NA, "demande visa france" 0.6
        assert selected == ["visa schengen"]

    def test_high_volume_requires_numeric_volume_above_threshold(self, keyword_bundle):
        selected = [k.keyword for k in high_volume_keywords(keyword_bundle.similar_keywords)]

        assert selected == ["visa schengen", "demande visa france"]

    def test_na_volume_is_never_high_volume(self):
        bundle = KeywordDataBundle.from_dict({
            "seedKeyword": "x",
            "similarKeywords": [{"keyword": "sans volume", "volume": "NA", "kgr": "NA"}],
        })

        assert high_volume_keywords(bundle.similar_keywords) == []
        assert opportunity_keywords(bundle.similar_keywords) == []


class TestKnowledgeDomainPrompt:

    def test_embeds_project_metadata(self, project, keyword_bundle):
        prompt = get_knowledge_domain_prompt(project, keyword_bundle)

        assert "Visa France" in prompt
        assert "affiliate" in prompt
        assert "Capter le trafic informationnel, Générer des demandes de visa" in prompt
        assert "Volume mensuel: 12000" in prompt
        assert "France-Visas" in prompt
        assert '[comment] "comment obtenir un visa pour la france"' in prompt
        assert '"sourceContext"' in prompt

    def test_without_keyword_data(self, project):
        prompt = get_knowledge_domain_prompt(project)

        assert "Données Haloscan" not in prompt
        assert "visa france" in prompt
        assert '"qualityParameters"' in prompt

    def test_empty_objectives(self, project):
        project.objectives = []

        assert "Non spécifiés" in get_knowledge_domain_prompt(project)


class TestLaterStagePrompts:

    def test_context_vector_embeds_prior_stage(self, project, keyword_bundle, knowledge_domain_json):
        prompt = get_context_vector_prompt(project, knowledge_domain_json, keyword_bundle)

        assert render_json(knowledge_domain_json) in prompt
        assert '"visa france etudiant"' in prompt
        assert '"fiveWHPatterns"' in prompt

    def test_eav_groups_clusters_by_category(
        self, project, keyword_bundle, knowledge_domain_json, context_vector_json
    ):
        prompt = get_eav_model_prompt(project, knowledge_domain_json, context_vector_json, keyword_bundle)

        assert "**Schengen**" in prompt
        assert "**Autres**" in prompt
        assert "france-visas.gouv.fr (score: 98.5)" in prompt

    def test_topical_map_lists_opportunities(
        self, project, keyword_bundle, knowledge_domain_json, context_vector_json, eav_model_json
    ):
        prompt = get_topical_map_prompt(
            project, knowledge_domain_json, context_vector_json, eav_model_json, keyword_bundle
        )

        assert '"visa schengen" (vol: 800, KGR: 0.1) ⭐ OPPORTUNITÉ' in prompt
        assert '- "demande visa france" (vol: 1500)' in prompt
        assert '"basedOnHaloscanCluster"' in prompt

    def test_topical_map_without_keyword_data(
        self, project, knowledge_domain_json, context_vector_json, eav_model_json
    ):
        prompt = get_topical_map_prompt(project, knowledge_domain_json, context_vector_json, eav_model_json)

        assert "OPPORTUNITÉ" not in prompt
        assert json.dumps(eav_model_json, indent=2, ensure_ascii=False) in prompt


def test_system_prompt_requires_json():
    assert "JSON valide" in SYSTEM_PROMPT
