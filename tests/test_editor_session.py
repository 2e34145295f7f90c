from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from src.editor.events import EditorEventKind, NotificationLevel
from src.editor.normalizer import normalize
from src.editor.reorder import DragEndEvent, DragScope
from src.editor.serialization import PayloadError, document_to_record
from src.editor.session import EditorSession
from src.interfaces.persistence import PersistenceBridge, PersistenceError, PolicyNotFound
from src.models.policy import PolicyVariant
from src.server.policies.service import PolicyService
from src.server.settings import Settings

from factories import make_document

SAVED_AT = datetime(2025, 2, 2, tzinfo=timezone.utc)


class _MemoryBridge(PersistenceBridge):
    def __init__(self) -> None:
        self.records: Dict[str, Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.error: Optional[Exception] = None

    async def _load(self, policy_id: str) -> Dict[str, Any]:
        if policy_id not in self.records:
            raise PolicyNotFound(policy_id)
        return self.records[policy_id]

    async def _save(self, policy_id: str, serialized_payload: str) -> datetime:
        self.calls.append((policy_id, serialized_payload))
        if self.error is not None:
            raise self.error
        return SAVED_AT


def _session(*shape):
    bridge = _MemoryBridge()
    return EditorSession(make_document(*shape), bridge), bridge


def test_mutations_record_events_for_listeners():
    session, _ = _session(1, 2)
    seen = []
    session.subscribe(seen.append)

    session.add_section()
    session.delete_subsection("s0", "s0-0")
    session.delete_subsection("s1", "s1-0")
    session.delete_section("missing")

    kinds = [event.kind for event in seen]
    assert kinds == [
        EditorEventKind.SECTION_ADDED,
        EditorEventKind.SECTION_CASCADE_DELETED,
        EditorEventKind.SUBSECTION_DELETED,
        EditorEventKind.NOOP,
    ]
    assert seen[0].animate and not seen[-1].animate
    assert session.events == seen
    assert [section.id for section in session.document.sections][0] == "s1"


def test_drag_end_applies_one_move():
    session, _ = _session(1, 1, 1)

    outcome = session.drag_end(DragEndEvent("s2", "s0"), DragScope.sections())
    ignored = session.drag_end(DragEndEvent("s2"), DragScope.sections())

    assert outcome.changed and not ignored.changed
    assert [section.id for section in session.document.sections] == ["s2", "s0", "s1"]
    assert [event.kind for event in session.events] == [EditorEventKind.SECTION_MOVED, EditorEventKind.NOOP]


def test_content_edits_mark_session_dirty():
    session, _ = _session(1)
    assert not session.is_dirty

    session.edit_subsection_body("s0", "s0-0", "<p>new</p>")

    assert session.is_dirty
    assert session.events[-1].kind is EditorEventKind.CONTENT_EDITED


@pytest.mark.asyncio
async def test_save_success_clears_dirty_state():
    session, bridge = _session(1)
    session.edit_heading("<h2>Renamed</h2>")

    outcome = await session.save()

    assert outcome.saved
    assert outcome.event.notification.level is NotificationLevel.SUCCESS
    assert outcome.event.notification.message == "Changes have been saved!"
    assert not session.is_dirty
    assert session.document.updated_at == SAVED_AT
    policy_id, payload = bridge.calls[0]
    assert policy_id == "policy-1"
    assert json.loads(payload)["policy"]["heading"] == "<h2>Renamed</h2>"


@pytest.mark.asyncio
async def test_failed_save_keeps_document_for_retry():
    session, bridge = _session(1, 1)
    session.delete_section("s1")
    edited = session.document
    bridge.error = PersistenceError("store unavailable")

    outcome = await session.save()

    assert not outcome.saved
    assert outcome.event.kind is EditorEventKind.SAVE_FAILED
    assert outcome.event.notification.message == "Something went wrong"
    assert session.document is edited
    assert session.is_dirty

    bridge.error = None
    assert (await session.save()).saved
    assert len(bridge.calls) == 2


@pytest.mark.asyncio
async def test_save_without_heading_is_skipped():
    session, bridge = _session(1)
    session.edit_heading("")

    outcome = await session.save()

    assert not outcome.saved
    assert outcome.event.kind is EditorEventKind.NOOP
    assert bridge.calls == []


@pytest.mark.asyncio
async def test_open_loads_document_from_bridge():
    bridge = _MemoryBridge()
    document = make_document(2)
    bridge.records[document.id] = document_to_record(document)

    session = await EditorSession.open(bridge, document.id)

    assert session.document == document
    with pytest.raises(PolicyNotFound):
        await EditorSession.open(bridge, "missing")


@pytest.mark.asyncio
async def test_rejected_payload_is_reported_as_failed_save():
    session, bridge = _session(1)
    session.edit_heading("<h2>Renamed</h2>")
    edited = session.document
    bridge.error = PayloadError("sections[0] is missing 'children'")

    outcome = await session.save()

    assert not outcome.saved
    assert outcome.event.kind is EditorEventKind.SAVE_FAILED
    assert outcome.event.notification.level is NotificationLevel.ERROR
    assert session.document is edited
    assert session.is_dirty


@pytest.mark.asyncio
async def test_generated_document_saves_under_new_id(tmp_path, generation_payload):
    service = PolicyService(Settings(policy_db_path=tmp_path / "policies.db"))
    document = normalize(generation_payload, policy_id="fresh")
    session = EditorSession(document, service)
    session.delete_section(document.sections[-1].id)

    outcome = await session.save()

    assert outcome.saved
    assert outcome.event.kind is EditorEventKind.SAVE_SUCCEEDED
    assert not session.is_dirty

    reopened = await EditorSession.open(service, "fresh")
    assert reopened.document.variant is PolicyVariant.GENERATED
    assert reopened.document.sections == session.document.sections
    assert reopened.document.heading == document.heading
