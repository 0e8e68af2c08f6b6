"""
Topical Map Engine

Builds an SEO topical map for a project by chaining:
1. Keyword research from the Haloscan API (overview, PAA, related, clustering)
2. Four dependent LLM stages through OpenRouter
   (Knowledge Domain -> Context Vector -> EAV Model -> Topical Map)
3. Identifier reconciliation and grid layout of the resulting graph
"""

__version__ = "0.1.0"
