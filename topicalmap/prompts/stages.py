"""
Stage Prompts

One pure builder per generation stage. Each embeds the project metadata,
the pretty-printed prior-stage results and, when available, a rendering of
the keyword data tailored to the stage. The expected JSON shape is
documented in-prompt and is the wire contract read back by
topicalmap.output.schemas.

Builders tolerate keyword_data=None and then omit the grounding section.
"""

from typing import Any, Optional

from ..haloscan.aggregator import KeywordDataBundle
from ..models import Project
from .formatting import (
    format_clusters_list,
    format_high_volume_list,
    format_keyword_list,
    format_opportunity_list,
    format_questions_list,
    format_serp_list,
    format_top_sites,
    render_json,
)


# =============================================================================
# SYSTEM PROMPT
# =============================================================================

SYSTEM_PROMPT = """Tu es un expert en Semantic SEO, spécialisé dans la création de Topical Maps et de Semantic Content Networks.

Tu connais parfaitement les concepts de:
- Knowledge Domain et Source Context
- Context Vector (vocabulaire, prédicats, patterns de requêtes)
- Entity-Attribute-Value (EAV) model
- Topical Authority et Knowledge-Based Trust
- Initial Ranking et Re-ranking
- Pillar-Cluster model

**IMPORTANT**: Tu analyses des données RÉELLES de mots-clés issues de l'API Haloscan. Ces données incluent:
- Volume de recherche mensuel
- KGR (Keyword Golden Ratio) - ratio allintitle/volume, < 0.25 = opportunité
- CPC (Cost Per Click) - indicateur de valeur commerciale
- PAA (People Also Ask) - vraies questions des utilisateurs
- Clusters sémantiques - regroupements basés sur la similarité SERP

Utilise ces données pour prendre des décisions BASÉES SUR LES FAITS, pas sur des suppositions.

Tes réponses doivent être structurées en JSON valide."""


def _objectives(project: Project) -> str:
    return ", ".join(project.objectives) or "Non spécifiés"


# =============================================================================
# STAGE 1: KNOWLEDGE DOMAIN
# =============================================================================


def _knowledge_domain_section(data: KeywordDataBundle) -> str:
    metrics = ""
    if data.metrics:
        metrics = (
            f"\n- Volume mensuel: {data.metrics.volume}"
            f"\n- KGR: {data.metrics.kgr}"
            f"\n- Allintitle: {data.metrics.allintitle}\n"
        )

    return f"""
## Données Haloscan (ANALYSE RÉELLE)

### Mot-clé principal: "{data.seed_keyword}"
{metrics}
### Top Sites positionnés sur ce sujet
{format_serp_list(data.serp)}

### Mots-clés similaires (même SERP)
{format_keyword_list(data.similar_keywords)}

### Mots-clés connexes (recherches associées)
{format_keyword_list(data.related_keywords)}

### Questions PAA (People Also Ask)
{format_questions_list(data.questions)}
"""


def get_knowledge_domain_prompt(project: Project, keyword_data: Optional[KeywordDataBundle] = None) -> str:
    """Prompt for the Knowledge Domain stage."""
    section = _knowledge_domain_section(keyword_data) if keyword_data else ""

    return f"""Analyse cette thématique et génère un Knowledge Domain complet BASÉ SUR LES DONNÉES RÉELLES.

## Informations du projet
- **Nom**: {project.name}
- **Type de business**: {project.business_type.value}
- **Thématique principale**: {project.main_topic}
- **Audience cible**: {project.audience}
- **Objectifs**: {_objectives(project)}
{section}
## Ta tâche
En utilisant les données Haloscan ci-dessus, génère un Knowledge Domain avec:

1. **sourceContext**: Description du contexte source (2-3 phrases) - BASÉ sur ce que montrent les SERPs et les types de sites positionnés

2. **qualityParameters**: 4-6 paramètres de qualité spécifiques - DÉDUITS des sites qui rankent déjà (type de contenu, niveau d'expertise attendu)

3. **boundaries**: 3-5 frontières du domaine - DÉFINIES par les keywords similaires vs ce qui n'apparaît PAS

4. **userExpectations**: 4-6 attentes utilisateur - EXTRAITES des questions PAA et des patterns de recherche

## Format de réponse (JSON uniquement)
{{
  "sourceContext": "string",
  "qualityParameters": [
    {{"name": "string", "description": "string", "importance": "critical|high|medium|low"}}
  ],
  "boundaries": ["string"],
  "userExpectations": ["string"]
}}"""


# =============================================================================
# STAGE 2: CONTEXT VECTOR
# =============================================================================


def _context_vector_section(data: KeywordDataBundle) -> str:
    return f"""
## Données Haloscan (VOCABULAIRE RÉEL DU MARCHÉ)

### Mot-clé seed: "{data.seed_keyword}"

### Mots-clés qui matchent (contiennent le seed)
Ces mots-clés RÉELS révèlent le vocabulaire utilisé par les chercheurs:
{format_keyword_list(data.matching_keywords, 25)}

### Mots-clés similaires (même intention de recherche)
{format_keyword_list(data.similar_keywords, 20)}

### Questions PAA - Révèlent les préoccupations RÉELLES
{format_questions_list(data.questions, 20)}

### Mots-clés connexes (associations Google)
{format_keyword_list(data.related_keywords, 15)}
"""


def get_context_vector_prompt(
    project: Project,
    knowledge_domain: Any,
    keyword_data: Optional[KeywordDataBundle] = None,
) -> str:
    """Prompt for the Context Vector stage."""
    section = _context_vector_section(keyword_data) if keyword_data else ""

    return f"""Génère le Context Vector pour ce Knowledge Domain EN UTILISANT LE VOCABULAIRE RÉEL.

## Knowledge Domain
{render_json(knowledge_domain)}

## Informations du projet
- **Thématique**: {project.main_topic}
- **Audience**: {project.audience}
{section}
## Ta tâche
**IMPORTANT**: Le vocabulaire, les prédicats et les patterns doivent être EXTRAITS des données Haloscan réelles ci-dessus, PAS inventés.

Génère un Context Vector avec:

1. **vocabulary**: 15-20 termes clés EXTRAITS des keywords Haloscan
   - Identifie les termes techniques, communs et le jargon
   - Priorise les termes à fort volume

2. **predicates**: 8-10 verbes/prédicats TROUVÉS dans les requêtes réelles
   - Exemple: si "comment choisir X" apparaît → prédicat "choisir"

3. **queryPatterns**: 6-8 patterns RÉELS trouvés dans les keywords
   - Utilise les structures des vraies requêtes

4. **fiveWHPatterns**: Patterns 5W+H EXTRAITS des questions PAA
   - What/Quoi, Who/Qui, Where/Où, When/Quand, Why/Pourquoi, How/Comment

## Format de réponse (JSON uniquement)
{{
  "vocabulary": [
    {{"term": "string", "category": "technical|common|jargon", "definition": "string", "searchVolume": number}}
  ],
  "predicates": [
    {{"verb": "string", "usage": "string", "foundInQueries": ["string"], "semanticRoles": [{{"role": "agent|patient|theme|instrument|location|time|result", "description": "string"}}]}}
  ],
  "queryPatterns": [
    {{"pattern": "string", "intent": "informational|navigational|transactional|commercial", "examples": ["string"], "totalVolume": number}}
  ],
  "fiveWHPatterns": [
    {{"type": "what|who|where|when|why|how", "patterns": ["string"], "paaExamples": ["string"]}}
  ]
}}"""


# =============================================================================
# STAGE 3: EAV MODEL
# =============================================================================


def _eav_model_section(data: KeywordDataBundle) -> str:
    return f"""
## Données Haloscan (ENTITÉS RÉELLES DU MARCHÉ)

### Clusters sémantiques détectés par Haloscan
Ces clusters représentent les VRAIES catégories que Google reconnaît:
{format_clusters_list(data.clusters)}

### Top Sites (révèlent les types d'entités qui rankent)
{format_top_sites(data.top_sites)}

### Mots-clés par volume (révèlent les attributs importants)
{format_keyword_list(data.similar_keywords, 15)}
"""


def get_eav_model_prompt(
    project: Project,
    knowledge_domain: Any,
    context_vector: Any,
    keyword_data: Optional[KeywordDataBundle] = None,
) -> str:
    """Prompt for the EAV Model stage."""
    section = _eav_model_section(keyword_data) if keyword_data else ""

    return f"""Génère le modèle EAV (Entity-Attribute-Value) BASÉ SUR LES CLUSTERS RÉELS.

## Knowledge Domain
{render_json(knowledge_domain)}

## Context Vector
{render_json(context_vector)}

## Informations du projet
- **Thématique**: {project.main_topic}
- **Type business**: {project.business_type.value}
{section}
## Ta tâche
**IMPORTANT**: Les entités doivent correspondre aux CLUSTERS détectés par Haloscan. Les attributs doivent refléter les KEYWORDS réels.

Génère un modèle EAV avec:

1. **entities**: 5-8 entités BASÉES sur les clusters Haloscan
   - Utilise les catégories V1/V2 des clusters comme guide
   - Les attributs clés = keywords à fort volume (prominent)
   - Les attributs standards = keywords secondaires (popular)
   - Une entité = "isMainEntity: true" (le seed keyword)

2. **relations**: 6-10 relations DÉDUITES de la structure des clusters

## Types d'entités possibles
person, organization, product, service, concept, location, event, other

## Types de relations possibles
is_a, part_of, has, belongs_to, related_to, uses, provides, requires

## Format de réponse (JSON uniquement)
{{
  "entities": [
    {{
      "name": "string",
      "type": "person|organization|product|service|concept|location|event|other",
      "description": "string",
      "isMainEntity": boolean,
      "basedOnCluster": "string (nom du cluster Haloscan)",
      "keyAttributes": [
        {{"name": "string", "valueType": "text|number|date|boolean|list", "isKey": true, "description": "string", "relatedKeywords": ["string"]}}
      ],
      "standardAttributes": [
        {{"name": "string", "valueType": "text|number|date|boolean|list", "isKey": false, "description": "string", "relatedKeywords": ["string"]}}
      ]
    }}
  ],
  "relations": [
    {{"sourceEntity": "string", "targetEntity": "string", "relationType": "is_a|part_of|has|belongs_to|related_to|uses|provides|requires", "description": "string"}}
  ]
}}"""


# =============================================================================
# STAGE 4: TOPICAL MAP
# =============================================================================


def _topical_map_section(data: KeywordDataBundle) -> str:
    return f"""
## Données Haloscan (STRUCTURE RÉELLE À SUIVRE)

### Structure de clusters Haloscan
Cette structure représente l'organisation OPTIMALE selon Google:
{format_clusters_list(data.clusters)}

### Questions PAA (à couvrir dans les pages)
{format_questions_list(data.questions, 25)}

### Keywords par opportunité (KGR < 0.25 = facile à ranker)
{format_opportunity_list(data.similar_keywords)}

### Keywords à fort volume (pour les Pillars)
{format_high_volume_list(data.similar_keywords)}
"""


def get_topical_map_prompt(
    project: Project,
    knowledge_domain: Any,
    context_vector: Any,
    eav_model: Any,
    keyword_data: Optional[KeywordDataBundle] = None,
) -> str:
    """Prompt for the Topical Map stage."""
    section = _topical_map_section(keyword_data) if keyword_data else ""

    return f"""Génère une Topical Map BASÉE SUR LA STRUCTURE HALOSCAN.

## Knowledge Domain
{render_json(knowledge_domain)}

## Context Vector
{render_json(context_vector)}

## Modèle EAV
{render_json(eav_model)}

## Informations du projet
- **Thématique**: {project.main_topic}
- **Audience**: {project.audience}
- **Objectifs**: {_objectives(project)}
{section}
## Ta tâche
**CRITIQUE**: La structure de ta Topical Map doit REFLÉTER les clusters Haloscan. Ne crée PAS une structure arbitraire.

Génère une Topical Map avec:

1. **Pillars (1-2)**: Basés sur les keywords à FORT VOLUME
   - Titre = reformulation du seed ou du cluster principal
   - Couvre les questions PAA principales

2. **Clusters (4-8)**: Correspondent aux catégories V1 de Haloscan
   - Chaque cluster = une catégorie Haloscan
   - Keywords = ceux du cluster correspondant

3. **Supporting (6-12)**: Pages de détail
   - Répondent aux questions PAA spécifiques
   - Ciblent les keywords à BON KGR (< 0.25)
   - Couvrent les angles 5W+H

## Règles de maillage
- Chaque cluster → connecté à son pillar parent
- Supporting → connecté à son cluster parent
- 3 ponts contextuels minimum pour justifier une connexion

## Format de réponse (JSON uniquement)
{{
  "nodes": [
    {{
      "id": "string (unique)",
      "type": "pillar|cluster|supporting",
      "title": "string",
      "description": "string",
      "intent": "informational|navigational|transactional|commercial",
      "fiveWH": ["what", "who", "where", "when", "why", "how"],
      "keywords": [{{"keyword": "string", "volume": number, "kgr": number|null, "isMain": boolean}}],
      "paaQuestions": ["string"],
      "basedOnHaloscanCluster": "string|null"
    }}
  ],
  "edges": [
    {{"source": "nodeId", "target": "nodeId", "type": "hierarchical|contextual"}}
  ]
}}"""
