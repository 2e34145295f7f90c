from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from src.editor import mutations
from src.editor.events import SAVE_FAILURE, SAVE_SUCCESS, EditorEvent, EditorEventKind
from src.editor.reorder import DragEndEvent, DragLevel, DragScope, ReorderOutcome, apply_drag
from src.editor.serialization import PayloadError, document_from_record, dumps_save_payload
from src.interfaces.persistence import PersistenceBridge, PersistenceError, SaveReceipt
from src.models.identity import IdFactory, new_node_id
from src.models.policy import PolicyDocument, PolicyVariant, RichContent, Subsection, SubsectionBody

logger = logging.getLogger(__name__)

EventListener = Callable[[EditorEvent], None]


@dataclass(slots=True)
class SaveOutcome:
    saved: bool
    event: EditorEvent
    receipt: Optional[SaveReceipt] = None


class EditorSession:
    """Owns the current policy tree for one editing view.

    Mutations go through the pure functions in ``src.editor.mutations``; the
    session only swaps in the returned document and records an ``EditorEvent``
    describing the change, which listeners (toasts, animations) consume.
    """

    def __init__(
        self,
        document: PolicyDocument,
        bridge: Optional[PersistenceBridge] = None,
        *,
        id_factory: IdFactory = new_node_id,
    ) -> None:
        self.document = document
        self.bridge = bridge
        self.id_factory = id_factory
        self.events: List[EditorEvent] = []
        self._listeners: List[EventListener] = []
        self._saved_document = document

    @classmethod
    async def open(
        cls,
        bridge: PersistenceBridge,
        policy_id: str,
        *,
        variant: Optional[PolicyVariant] = None,
    ) -> "EditorSession":
        record = await bridge.load(policy_id)
        return cls(document_from_record(policy_id, record, variant), bridge)

    # ------------------------------------------------------------------ state
    @property
    def is_dirty(self) -> bool:
        return self.document != self._saved_document

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def _emit(self, event: EditorEvent) -> EditorEvent:
        self.events.append(event)
        for listener in self._listeners:
            listener(event)
        return event

    def _apply(
        self,
        updated: PolicyDocument,
        kind: EditorEventKind,
        summary: str,
        detail: Dict[str, Any],
    ) -> EditorEvent:
        if updated is self.document:
            logger.debug("Ignored %s on policy %s: %s", kind.value, self.document.id, detail)
            return self._emit(EditorEvent(EditorEventKind.NOOP, f"{summary} (no change)", detail))
        self.document = updated
        return self._emit(EditorEvent(kind, summary, detail))

    # ------------------------------------------------------------------ structure
    def add_section(self) -> EditorEvent:
        updated = mutations.add_section(self.document, id_factory=self.id_factory)
        added = updated.sections[-1]
        return self._apply(
            updated,
            EditorEventKind.SECTION_ADDED,
            f"Added {added.title}",
            {"section_id": added.id},
        )

    def add_subsection(self, section_id: str) -> EditorEvent:
        updated = mutations.add_subsection(self.document, section_id, id_factory=self.id_factory)
        detail: Dict[str, Any] = {"section_id": section_id}
        if updated is not self.document:
            detail["subsection_id"] = updated.sections[updated.section_index(section_id)].subsections[-1].id
        return self._apply(updated, EditorEventKind.SUBSECTION_ADDED, "Added subsection", detail)

    def delete_section(self, section_id: str) -> EditorEvent:
        updated = mutations.delete_section(self.document, section_id)
        return self._apply(
            updated,
            EditorEventKind.SECTION_DELETED,
            "Deleted section",
            {"section_id": section_id},
        )

    def delete_subsection(self, section_id: str, subsection_id: str) -> EditorEvent:
        updated = mutations.delete_subsection(self.document, section_id, subsection_id)
        cascaded = updated is not self.document and updated.section_index(section_id) < 0
        kind = EditorEventKind.SECTION_CASCADE_DELETED if cascaded else EditorEventKind.SUBSECTION_DELETED
        summary = "Deleted last subsection and its section" if cascaded else "Deleted subsection"
        return self._apply(
            updated,
            kind,
            summary,
            {"section_id": section_id, "subsection_id": subsection_id},
        )

    def drag_end(self, event: DragEndEvent, scope: DragScope) -> ReorderOutcome:
        outcome = apply_drag(self.document, event, scope)
        kind = (
            EditorEventKind.SECTION_MOVED
            if scope.level is DragLevel.SECTIONS
            else EditorEventKind.SUBSECTION_MOVED
        )
        detail: Dict[str, Any] = {"active_id": event.active_id, "over_id": event.over_id}
        if scope.section_index is not None:
            detail["section_index"] = scope.section_index
        if outcome.changed:
            self.document = outcome.document
            self._emit(EditorEvent(kind, "Reordered", detail))
        else:
            self._emit(EditorEvent(EditorEventKind.NOOP, "Drag ended without a move", detail))
        return outcome

    # ------------------------------------------------------------------ content
    def edit_heading(self, heading: RichContent) -> EditorEvent:
        updated = mutations.edit_heading(self.document, heading)
        return self._apply(updated, EditorEventKind.CONTENT_EDITED, "Edited heading", {"target": "heading"})

    def edit_section_body(self, section_id: str, subsections: Sequence[Subsection]) -> EditorEvent:
        updated = mutations.edit_section_body(self.document, section_id, subsections)
        return self._apply(
            updated,
            EditorEventKind.CONTENT_EDITED,
            "Edited section",
            {"section_id": section_id},
        )

    def edit_subsection_body(
        self,
        section_id: str,
        subsection_id: str,
        body: SubsectionBody,
        *,
        side: Optional[int] = None,
    ) -> EditorEvent:
        updated = mutations.edit_subsection_body(self.document, section_id, subsection_id, body, side=side)
        return self._apply(
            updated,
            EditorEventKind.CONTENT_EDITED,
            "Edited subsection",
            {"section_id": section_id, "subsection_id": subsection_id, "side": side},
        )

    def edit_section_title(self, section_id: str, title: str) -> EditorEvent:
        updated = mutations.edit_section_title(self.document, section_id, title)
        return self._apply(updated, EditorEventKind.CONTENT_EDITED, "Renamed section", {"section_id": section_id})

    def edit_subsection_title(self, section_id: str, subsection_id: str, title: str) -> EditorEvent:
        updated = mutations.edit_subsection_title(self.document, section_id, subsection_id, title)
        return self._apply(
            updated,
            EditorEventKind.CONTENT_EDITED,
            "Renamed subsection",
            {"section_id": section_id, "subsection_id": subsection_id},
        )

    # ------------------------------------------------------------------ persistence
    async def save(self) -> SaveOutcome:
        """Send the current tree to the bridge; failures keep the in-memory tree for a retry."""

        if self.bridge is None:
            raise RuntimeError("EditorSession has no persistence bridge configured")
        if not self.document.heading:
            event = self._emit(EditorEvent(EditorEventKind.NOOP, "Nothing to save without a heading"))
            return SaveOutcome(saved=False, event=event)

        sent = self.document
        try:
            receipt = await self.bridge.save(sent.id, dumps_save_payload(sent))
        except (PersistenceError, PayloadError) as exc:
            logger.warning("Saving policy %s failed: %s", sent.id, exc)
            event = self._emit(
                EditorEvent(
                    EditorEventKind.SAVE_FAILED,
                    "Save failed",
                    {"policy_id": sent.id, "error": str(exc)},
                    notification=SAVE_FAILURE,
                )
            )
            return SaveOutcome(saved=False, event=event)

        saved = replace(sent, updated_at=receipt.updated_at)
        # A later edit made while the save was in flight stays dirty.
        if self.document is sent:
            self.document = saved
        self._saved_document = saved
        event = self._emit(
            EditorEvent(
                EditorEventKind.SAVE_SUCCEEDED,
                "Saved",
                {"policy_id": sent.id, "duration_ms": receipt.duration_ms},
                notification=SAVE_SUCCESS,
            )
        )
        return SaveOutcome(saved=True, event=event, receipt=receipt)


__all__ = ["EditorSession", "EventListener", "SaveOutcome"]
