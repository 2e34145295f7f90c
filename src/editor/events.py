from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


def _ts() -> str:
    return datetime.now(timezone.utc).isoformat()


class EditorEventKind(str, Enum):
    SECTION_ADDED = "section_added"
    SUBSECTION_ADDED = "subsection_added"
    SECTION_DELETED = "section_deleted"
    SUBSECTION_DELETED = "subsection_deleted"
    SECTION_CASCADE_DELETED = "section_cascade_deleted"
    SECTION_MOVED = "section_moved"
    SUBSECTION_MOVED = "subsection_moved"
    CONTENT_EDITED = "content_edited"
    NOOP = "noop"
    SAVE_SUCCEEDED = "save_succeeded"
    SAVE_FAILED = "save_failed"


# Structural changes the presentation layer may animate; edits and saves are not.
_ANIMATED = frozenset(
    {
        EditorEventKind.SECTION_ADDED,
        EditorEventKind.SUBSECTION_ADDED,
        EditorEventKind.SECTION_DELETED,
        EditorEventKind.SUBSECTION_DELETED,
        EditorEventKind.SECTION_CASCADE_DELETED,
        EditorEventKind.SECTION_MOVED,
        EditorEventKind.SUBSECTION_MOVED,
    }
)


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    level: NotificationLevel
    message: str


SAVE_SUCCESS = Notification(NotificationLevel.SUCCESS, "Changes have been saved!")
SAVE_FAILURE = Notification(NotificationLevel.ERROR, "Something went wrong")


@dataclass(frozen=True, slots=True)
class EditorEvent:
    """What a mutation or save did, for an outer presentation layer to react to."""

    kind: EditorEventKind
    summary: str
    detail: Dict[str, Any] = field(default_factory=dict)
    notification: Optional[Notification] = None
    ts: str = field(default_factory=_ts)

    @property
    def animate(self) -> bool:
        return self.kind in _ANIMATED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "summary": self.summary,
            "detail": dict(self.detail),
            "animate": self.animate,
            "notification": (
                {"level": self.notification.level.value, "message": self.notification.message}
                if self.notification
                else None
            ),
            "ts": self.ts,
        }


__all__ = [
    "EditorEvent",
    "EditorEventKind",
    "Notification",
    "NotificationLevel",
    "SAVE_FAILURE",
    "SAVE_SUCCESS",
]
