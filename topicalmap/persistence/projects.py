"""
Project Store

File-backed persistence for projects and their generated sub-documents,
one JSON file per project.

The generation pipeline never writes here; callers persist its results
with apply_generation. Writes to the same project are serialized by a
per-project lock (single writer per project). Different projects never
contend.
"""

import json
import logging
import os
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from ..models import BusinessType, Project, TopicalMap, TopicalMapEdge, TopicalMapNode

logger = logging.getLogger(__name__)


class ProjectStore:
    """
    Stores projects as JSON files.

    Usage:
        store = ProjectStore("/var/lib/topicalmap/projects")
        project = store.create_project("Visa France", "visa france")

        result = await generator.run_full_pipeline(project)
        store.apply_generation(project.id, result)
    """

    def __init__(self, storage_path: Optional[str] = None):
        """
        Initialize project store.

        Args:
            storage_path: Directory for project files.
                         Defaults to ~/.topicalmap/projects/
        """
        if storage_path is None:
            storage_path = os.getenv(
                "PROJECTS_PATH",
                str(Path.home() / ".topicalmap" / "projects")
            )

        self.storage_path = Path(storage_path)
        self.storage_path.mkdir(parents=True, exist_ok=True)

        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_settings(cls, settings) -> "ProjectStore":
        return cls(settings.PROJECTS_PATH)

    def _get_project_path(self, project_id: str) -> Path:
        return self.storage_path / f"{project_id}.json"

    def _lock_for(self, project_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(project_id, threading.Lock())

    def _load(self, project_id: str) -> Optional[Project]:
        path = self._get_project_path(project_id)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return Project.from_dict(json.load(f))

    def _save(self, project: Project):
        path = self._get_project_path(project.id)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(project.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to save project {project.id}: {e}")
            raise

    def _mutate(self, project_id: str, change: Callable[[Project], Project]) -> Optional[Project]:
        """Load, change and save one project under its lock."""
        with self._lock_for(project_id):
            project = self._load(project_id)
            if project is None:
                return None
            updated = change(project)
            if updated is not project:
                self._save(updated)
            return updated

    # =========================================================================
    # PROJECTS
    # =========================================================================

    def create_project(
        self,
        name: str,
        main_topic: str,
        business_type: BusinessType = BusinessType.OTHER,
        audience: str = "",
        objectives: Optional[List[str]] = None,
    ) -> Project:
        project = Project.create(
            name=name,
            main_topic=main_topic,
            business_type=business_type,
            audience=audience,
            objectives=objectives,
        )
        with self._lock_for(project.id):
            self._save(project)

        logger.info(f"Created project {project.id} ({main_topic})")
        return project

    def save_project(self, project: Project) -> Project:
        """Persist a project built elsewhere (e.g. received from a client)."""
        with self._lock_for(project.id):
            self._save(project)
        return project

    def get_project(self, project_id: str) -> Optional[Project]:
        return self._load(project_id)

    def list_projects(self) -> List[Project]:
        """All stored projects, most recently updated first."""
        projects = []
        for file_path in self.storage_path.glob("*.json"):
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    projects.append(Project.from_dict(json.load(f)))
            except (OSError, ValueError, KeyError) as e:
                logger.warning(f"Failed to load project from {file_path}: {e}")

        return sorted(projects, key=lambda p: p.updated_at, reverse=True)

    def update_project(self, project_id: str, **updates: Any) -> Optional[Project]:
        """
        Replace top-level fields and refresh updated_at.

        Args:
            project_id: Project ID
            **updates: Project field names (name, audience, knowledge_domain, ...)

        Returns:
            Updated Project or None if not found
        """
        unknown = [key for key in updates if key not in Project.__dataclass_fields__]
        if unknown:
            raise ValueError(f"Unknown project fields: {', '.join(unknown)}")

        return self._mutate(project_id, lambda p: p.with_updates(**updates))

    def delete_project(self, project_id: str) -> bool:
        """Delete a project and everything generated for it."""
        with self._lock_for(project_id):
            path = self._get_project_path(project_id)
            if not path.exists():
                return False
            path.unlink()

        with self._locks_guard:
            self._locks.pop(project_id, None)

        logger.info(f"Deleted project {project_id}")
        return True

    def apply_generation(self, project_id: str, result) -> Optional[Project]:
        """
        Store a pipeline result, replacing all four sub-documents wholesale.

        Args:
            project_id: Project ID
            result: GenerationResult from the orchestrator
        """
        return self._mutate(project_id, lambda p: p.with_updates(
            knowledge_domain=result.knowledge_domain,
            context_vector=result.context_vector,
            eav_model=result.eav_model,
            topical_map=result.topical_map,
        ))

    # =========================================================================
    # TOPICAL MAP EDITING
    # =========================================================================

    def _edit_map(self, project_id: str, edit: Callable[[TopicalMap], TopicalMap]) -> Optional[Project]:
        def change(project: Project) -> Project:
            if project.topical_map is None:
                return project
            return project.with_updates(topical_map=edit(project.topical_map))

        return self._mutate(project_id, change)

    def add_node(self, project_id: str, node: TopicalMapNode) -> Optional[Project]:
        return self._edit_map(project_id, lambda tm: replace(tm, nodes=tm.nodes + [node]))

    def update_node(self, project_id: str, node_id: str, **updates: Any) -> Optional[Project]:
        """Replace fields of one node (title, description, position, ...)."""
        return self._edit_map(project_id, lambda tm: replace(tm, nodes=[
            replace(n, **updates) if n.id == node_id else n for n in tm.nodes
        ]))

    def delete_node(self, project_id: str, node_id: str) -> Optional[Project]:
        """Remove a node and every edge connected to it."""
        return self._edit_map(project_id, lambda tm: replace(
            tm,
            nodes=[n for n in tm.nodes if n.id != node_id],
            edges=[e for e in tm.edges if e.source != node_id and e.target != node_id],
        ))

    def add_edge(self, project_id: str, edge: TopicalMapEdge) -> Optional[Project]:
        return self._edit_map(project_id, lambda tm: replace(tm, edges=tm.edges + [edge]))

    def delete_edge(self, project_id: str, edge_id: str) -> Optional[Project]:
        return self._edit_map(project_id, lambda tm: replace(
            tm, edges=[e for e in tm.edges if e.id != edge_id]
        ))
