"""
Project Aggregate

The project record owned by the Project Store. The generation pipeline
only reads the fields it needs and returns new sub-documents; it never
mutates a Project in place.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .documents import KnowledgeDomain, ContextVector, EAVModel, TopicalMap


def new_id() -> str:
    """Generate a globally unique record id."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BusinessType(str, Enum):
    """Kind of business the topical map is built for."""
    ECOMMERCE = "ecommerce"
    SAAS = "saas"
    AFFILIATE = "affiliate"
    BLOG = "blog"
    AGENCY = "agency"
    LOCAL_BUSINESS = "local_business"
    OTHER = "other"


@dataclass
class Project:
    """A topical-map project and its generated sub-documents."""
    id: str
    name: str
    business_type: BusinessType
    audience: str
    main_topic: str
    objectives: List[str] = field(default_factory=list)

    knowledge_domain: Optional["KnowledgeDomain"] = None
    context_vector: Optional["ContextVector"] = None
    eav_model: Optional["EAVModel"] = None
    topical_map: Optional["TopicalMap"] = None

    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @classmethod
    def create(
        cls,
        name: str,
        main_topic: str,
        business_type: BusinessType = BusinessType.OTHER,
        audience: str = "",
        objectives: Optional[List[str]] = None,
    ) -> "Project":
        """Create a new project with a fresh id and timestamps."""
        now = utcnow()
        return cls(
            id=new_id(),
            name=name,
            business_type=BusinessType(business_type),
            audience=audience,
            main_topic=main_topic,
            objectives=list(objectives or []),
            created_at=now,
            updated_at=now,
        )

    def with_updates(self, **changes: Any) -> "Project":
        """Return a copy with the given fields replaced and updated_at refreshed."""
        changes.setdefault("updated_at", utcnow())
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase wire format."""
        data: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "businessType": self.business_type.value,
            "audience": self.audience,
            "mainTopic": self.main_topic,
            "objectives": list(self.objectives),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }
        if self.knowledge_domain:
            data["knowledgeDomain"] = self.knowledge_domain.to_dict()
        if self.context_vector:
            data["contextVector"] = self.context_vector.to_dict()
        if self.eav_model:
            data["eavModel"] = self.eav_model.to_dict()
        if self.topical_map:
            data["topicalMap"] = self.topical_map.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Create from the camelCase wire format."""
        from .documents import KnowledgeDomain, ContextVector, EAVModel, TopicalMap

        def _parse_date(value: Any) -> datetime:
            if isinstance(value, datetime):
                return value
            if value:
                return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
            return utcnow()

        kd = data.get("knowledgeDomain")
        cv = data.get("contextVector")
        eav = data.get("eavModel")
        tm = data.get("topicalMap")

        return cls(
            id=data["id"],
            name=data.get("name", ""),
            business_type=BusinessType(data.get("businessType") or "other"),
            audience=data.get("audience", ""),
            main_topic=data["mainTopic"],
            objectives=list(data.get("objectives") or []),
            knowledge_domain=KnowledgeDomain.from_dict(kd) if kd else None,
            context_vector=ContextVector.from_dict(cv) if cv else None,
            eav_model=EAVModel.from_dict(eav) if eav else None,
            topical_map=TopicalMap.from_dict(tm) if tm else None,
            created_at=_parse_date(data.get("createdAt")),
            updated_at=_parse_date(data.get("updatedAt")),
        )
