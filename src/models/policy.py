from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

# Rich content is owned by the editing widget; the tree only stores and replaces it.
RichContent = str


class OverallPolicy(str, Enum):
    STRICTLY_PROHIBITED = "Strictly prohibited"
    ALLOWED_UNDER_CONDITIONS = "Allowed under conditions"
    NO_RESTRICTIONS = "No restrictions"


class PolicyVariant(str, Enum):
    SAVED = "saved"
    GENERATED = "generated"


class InvariantViolation(AssertionError):
    """Raised when a policy tree breaks one of its structural invariants."""


@dataclass(frozen=True, slots=True)
class UseCaseBody:
    """Reasonable/unreasonable pair rendered side by side in the Use Cases subsection."""

    reasonable: RichContent
    unreasonable: RichContent

    def sides(self) -> Tuple[RichContent, RichContent]:
        return (self.reasonable, self.unreasonable)

    def with_side(self, index: int, content: RichContent) -> "UseCaseBody":
        if index == 0:
            return replace(self, reasonable=content)
        if index == 1:
            return replace(self, unreasonable=content)
        raise IndexError(f"Use case side must be 0 or 1, got {index}")


SubsectionBody = Union[RichContent, UseCaseBody]


@dataclass(frozen=True, slots=True)
class SubsectionMetadata:
    overall_policy: Optional[OverallPolicy] = None


@dataclass(frozen=True, slots=True)
class Subsection:
    id: str
    title: str
    body: SubsectionBody
    metadata: Optional[SubsectionMetadata] = None


@dataclass(frozen=True, slots=True)
class Section:
    id: str
    title: str
    subsections: Tuple[Subsection, ...] = field(default_factory=tuple)

    def subsection_index(self, subsection_id: str) -> int:
        for index, subsection in enumerate(self.subsections):
            if subsection.id == subsection_id:
                return index
        return -1


@dataclass(frozen=True, slots=True)
class PolicyDocument:
    """Ordered two-level tree of sections and subsections for one course policy."""

    id: str
    heading: RichContent
    created_at: datetime
    updated_at: datetime
    sections: Tuple[Section, ...] = field(default_factory=tuple)
    variant: PolicyVariant = PolicyVariant.SAVED

    def section_index(self, section_id: str) -> int:
        for index, section in enumerate(self.sections):
            if section.id == section_id:
                return index
        return -1

    def find_section(self, section_id: str) -> Optional[Section]:
        index = self.section_index(section_id)
        return self.sections[index] if index >= 0 else None

    def subsection_ids(self) -> List[str]:
        return [sub.id for section in self.sections for sub in section.subsections]

    def node_ids(self) -> Iterator[str]:
        for section in self.sections:
            yield section.id
            for subsection in section.subsections:
                yield subsection.id


_CHECK_INVARIANTS = True


def set_invariant_checks(enabled: bool) -> None:
    global _CHECK_INVARIANTS
    _CHECK_INVARIANTS = enabled


def invariant_checks_enabled() -> bool:
    return _CHECK_INVARIANTS


def check_invariants(document: PolicyDocument) -> PolicyDocument:
    """Fail loudly on duplicate or empty ids and on sections left without subsections."""

    if not _CHECK_INVARIANTS:
        return document

    counts = Counter(document.node_ids())
    if "" in counts:
        raise InvariantViolation("Every section and subsection needs a non-empty id")
    duplicates = sorted(node_id for node_id, count in counts.items() if count > 1)
    if duplicates:
        raise InvariantViolation(f"Duplicate node ids in policy {document.id}: {duplicates}")
    for section in document.sections:
        if not section.subsections:
            raise InvariantViolation(f"Section {section.id} has no subsections")
    return document


__all__ = [
    "InvariantViolation",
    "OverallPolicy",
    "PolicyDocument",
    "PolicyVariant",
    "RichContent",
    "Section",
    "Subsection",
    "SubsectionBody",
    "SubsectionMetadata",
    "UseCaseBody",
    "check_invariants",
    "invariant_checks_enabled",
    "set_invariant_checks",
]
