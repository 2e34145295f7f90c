from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from src.models.policy import PolicyVariant


@dataclass(slots=True)
class StoredPolicy:
    """A policy row as persisted: heading and wire-form sections plus timestamps."""

    id: str
    variant: PolicyVariant
    heading: str
    created_at: datetime
    updated_at: datetime
    sections: List[Dict[str, Any]] = field(default_factory=list)

    def to_record(self) -> Dict[str, Any]:
        return {
            "heading": self.heading,
            "sections": self.sections,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "variant": self.variant.value,
        }


@dataclass(slots=True)
class PolicySummary:
    id: str
    variant: PolicyVariant
    section_count: int
    created_at: datetime
    updated_at: datetime


__all__ = ["PolicySummary", "StoredPolicy"]
