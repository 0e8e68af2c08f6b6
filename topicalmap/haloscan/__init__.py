"""
Haloscan Keyword Research

- HaloscanClient: typed wrapper around the Haloscan HTTP API
- KeywordDataAggregator: merges overview, PAA, related and clustering
  calls into one KeywordDataBundle per seed topic
"""

from .client import HaloscanClient
from .aggregator import (
    KeywordDataAggregator,
    KeywordDataBundle,
    KeywordMetrics,
    KeywordRecord,
    QuestionRecord,
    ClusterRecord,
    TopSite,
    SerpEntry,
    build_bundle,
    fetch_haloscan_data,
)
from .types import NA, is_number
from ..errors import HaloscanError

__all__ = [
    # Client
    "HaloscanClient",
    "HaloscanError",

    # Aggregation
    "KeywordDataAggregator",
    "KeywordDataBundle",
    "KeywordMetrics",
    "KeywordRecord",
    "QuestionRecord",
    "ClusterRecord",
    "TopSite",
    "SerpEntry",
    "build_bundle",
    "fetch_haloscan_data",

    # Helpers
    "NA",
    "is_number",
]
