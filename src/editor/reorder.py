from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from src.editor.mutations import move_section, move_subsection
from src.models.policy import PolicyDocument


class DragLevel(str, Enum):
    SECTIONS = "sections"
    SUBSECTIONS = "subsections"


@dataclass(frozen=True, slots=True)
class DragEndEvent:
    """Outcome of a drag gesture: what was dragged and what it was dropped on, if anything."""

    active_id: str
    over_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DragScope:
    """The sortable list a drag was started in."""

    level: DragLevel
    section_index: Optional[int] = None

    def __post_init__(self) -> None:
        if self.level is DragLevel.SUBSECTIONS and self.section_index is None:
            raise ValueError("A subsection drag scope needs the index of its section")

    @classmethod
    def sections(cls) -> "DragScope":
        return cls(level=DragLevel.SECTIONS)

    @classmethod
    def subsections(cls, section_index: int) -> "DragScope":
        return cls(level=DragLevel.SUBSECTIONS, section_index=section_index)

    def member_ids(self, document: PolicyDocument) -> Sequence[str]:
        if self.level is DragLevel.SECTIONS:
            return [section.id for section in document.sections]
        index = self.section_index if self.section_index is not None else -1
        if not 0 <= index < len(document.sections):
            return []
        return [sub.id for sub in document.sections[index].subsections]


@dataclass(frozen=True, slots=True)
class MoveCommand:
    level: DragLevel
    from_id: str
    to_id: str
    section_index: Optional[int] = None


@dataclass(frozen=True, slots=True)
class ReorderOutcome:
    document: PolicyDocument
    move: Optional[MoveCommand] = None

    @property
    def changed(self) -> bool:
        return self.move is not None


def resolve_drag(document: PolicyDocument, event: DragEndEvent, scope: DragScope) -> Optional[MoveCommand]:
    """Translate a drag into a same-level move, or ``None`` when nothing should change."""

    if event.over_id is None or event.active_id == event.over_id:
        return None
    members = scope.member_ids(document)
    # Both ends must live in the list the drag started in; cross-level drops are ignored.
    if event.active_id not in members or event.over_id not in members:
        return None
    return MoveCommand(
        level=scope.level,
        from_id=event.active_id,
        to_id=event.over_id,
        section_index=scope.section_index if scope.level is DragLevel.SUBSECTIONS else None,
    )


def apply_drag(document: PolicyDocument, event: DragEndEvent, scope: DragScope) -> ReorderOutcome:
    move = resolve_drag(document, event, scope)
    if move is None:
        return ReorderOutcome(document=document)
    if move.section_index is None:
        updated = move_section(document, move.from_id, move.to_id)
    else:
        updated = move_subsection(document, move.section_index, move.from_id, move.to_id)
    return ReorderOutcome(document=updated, move=move)


__all__ = [
    "DragEndEvent",
    "DragLevel",
    "DragScope",
    "MoveCommand",
    "ReorderOutcome",
    "apply_drag",
    "resolve_drag",
]
