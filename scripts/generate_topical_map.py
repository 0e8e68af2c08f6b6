#!/usr/bin/env python3
"""
Topical Map Generator

Runs the full pipeline for one seed topic:
1. Keyword data (Haloscan)
2. Knowledge Domain
3. Context Vector
4. EAV Model
5. Topical Map

Usage:
    # Set environment variables first (or put them in .env):
    export HALOSCAN_API_KEY=your_key
    export OPENROUTER_API_KEY=your_key

    # Run generation:
    python scripts/generate_topical_map.py "visa france"

    # With options:
    python scripts/generate_topical_map.py "visa france" \
        --name "Visa France" \
        --business-type affiliate \
        --audience "Voyageurs hors UE" \
        --objective "Générer des leads" \
        --output visa-france.json \
        --store ./projects
"""

import asyncio
import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from topicalmap.errors import ConfigurationError, TopicalMapError
from topicalmap.generator import ProgressEvent, StepStatus, TopicalMapGenerator
from topicalmap.haloscan import HaloscanClient
from topicalmap.models import BusinessType, Project
from topicalmap.openrouter import OpenRouterClient
from topicalmap.persistence import ProjectStore
from topicalmap.utils import Settings, configure_logging

logger = logging.getLogger(__name__)

STATUS_MARKS = {
    StepStatus.PENDING: " ",
    StepStatus.IN_PROGRESS: "…",
    StepStatus.COMPLETED: "✓",
    StepStatus.ERROR: "✗",
}


def print_progress(event: ProgressEvent):
    if event.status == StepStatus.PENDING:
        return
    print(f"[{STATUS_MARKS[event.status]}] {event.step.value:<16} {event.message}")


async def generate(
    main_topic: str,
    name: str = None,
    business_type: str = "other",
    audience: str = "",
    objectives: list = None,
    output: str = None,
    store_path: str = None,
    no_keyword_data: bool = False,
):
    """Run the pipeline and write the result."""

    load_dotenv()
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)

    missing = []
    if not settings.OPENROUTER_API_KEY:
        missing.append("OPENROUTER_API_KEY")
    if not settings.HALOSCAN_API_KEY and not no_keyword_data:
        missing.append("HALOSCAN_API_KEY (or use --no-keyword-data)")

    if missing:
        print("ERROR: Missing required environment variables:")
        for var in missing:
            print(f"  - {var}")
        return None

    store = ProjectStore(store_path) if store_path else None
    if store:
        project = store.create_project(
            name=name or main_topic,
            main_topic=main_topic,
            business_type=BusinessType(business_type),
            audience=audience,
            objectives=objectives,
        )
    else:
        project = Project.create(
            name=name or main_topic,
            main_topic=main_topic,
            business_type=BusinessType(business_type),
            audience=audience,
            objectives=objectives,
        )

    print("\n" + "=" * 70)
    print(f"TOPICAL MAP: {main_topic}")
    print("=" * 70)

    start_time = datetime.now()

    haloscan = None if no_keyword_data else HaloscanClient.from_settings(settings)
    openrouter = OpenRouterClient.from_settings(settings)
    try:
        generator = TopicalMapGenerator(haloscan, openrouter)
        result = await generator.run_full_pipeline(project, on_progress=print_progress)
    finally:
        if haloscan:
            await haloscan.close()
        await openrouter.close()

    if store:
        store.apply_generation(project.id, result)
        print(f"\nSaved project {project.id} to {store.storage_path}")

    data = {"project": project.to_dict(), **result.to_dict()}
    if output:
        Path(output).write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")

    duration = (datetime.now() - start_time).total_seconds()
    usage = openrouter.get_usage_summary()

    print("\n" + "=" * 70)
    print("GENERATION COMPLETE")
    print("=" * 70)
    print(f"Duration: {duration:.1f} seconds")
    print(f"Nodes: {len(result.topical_map.nodes)}, edges: {len(result.topical_map.edges)}")
    print(f"Tokens: {usage['total_tokens']} over {usage['total_calls']} calls")
    if output:
        print(f"Output: {output}")
    print("=" * 70 + "\n")

    return data


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Generate a semantic SEO topical map for a seed topic"
    )
    parser.add_argument(
        "main_topic",
        help="Seed keyword (e.g., \"visa france\")"
    )
    parser.add_argument(
        "--name",
        default=None,
        help="Project name (default: the seed keyword)"
    )
    parser.add_argument(
        "--business-type",
        default="other",
        choices=[b.value for b in BusinessType],
        help="Business type (default: other)"
    )
    parser.add_argument(
        "--audience",
        default="",
        help="Target audience"
    )
    parser.add_argument(
        "--objective",
        action="append",
        dest="objectives",
        default=[],
        help="Project objective (repeatable)"
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Write the result JSON to this file"
    )
    parser.add_argument(
        "--store",
        default=None,
        help="Persist the project in this project-store directory"
    )
    parser.add_argument(
        "--no-keyword-data",
        action="store_true",
        help="Generate without Haloscan keyword data"
    )

    args = parser.parse_args()

    try:
        result = asyncio.run(generate(
            main_topic=args.main_topic,
            name=args.name,
            business_type=args.business_type,
            audience=args.audience,
            objectives=args.objectives,
            output=args.output,
            store_path=args.store,
            no_keyword_data=args.no_keyword_data,
        ))
    except (ConfigurationError, TopicalMapError) as e:
        logger.error(f"Generation failed: {e}")
        sys.exit(1)

    if result is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
