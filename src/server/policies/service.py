from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from src.editor.normalizer import normalize
from src.editor.serialization import (
    PayloadError,
    deserialize_sections,
    detect_variant,
    document_from_record,
    read_save_payload,
    serialize_sections,
)
from src.interfaces.persistence import PersistenceBridge, PersistenceError, PolicyNotFound
from src.models.document import PolicySummary
from src.models.generation import GenerationResult
from src.models.policy import PolicyDocument, PolicyVariant
from src.server.policies.store import PolicyStore
from src.server.settings import Settings

logger = logging.getLogger(__name__)


class PolicyService(PersistenceBridge):
    """SQLite-backed persistence bridge plus generation entry point for the API."""

    def __init__(self, settings: Settings, store: Optional[PolicyStore] = None) -> None:
        self.settings = settings
        self.store = store or PolicyStore(settings.policy_db_path)

    # ------------------------------------------------------------------ bridge
    async def _load(self, policy_id: str) -> Dict[str, Any]:
        try:
            stored = await asyncio.to_thread(self.store.get_policy, policy_id)
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not read policy {policy_id}: {exc}") from exc
        if stored is None:
            raise PolicyNotFound(policy_id)
        return stored.to_record()

    async def _save(self, policy_id: str, serialized_payload: str) -> datetime:
        try:
            payload = json.loads(serialized_payload)
        except json.JSONDecodeError as exc:
            raise PayloadError(f"Policy payload is not valid JSON: {exc.msg}") from exc
        policy = read_save_payload(payload)

        try:
            existing = await asyncio.to_thread(self.store.get_policy, policy_id)
            variant = detect_variant(
                policy["sections"],
                default=existing.variant if existing else PolicyVariant.SAVED,
            )
            # Decoding validates the tree shape before anything is written.
            deserialize_sections(policy["sections"], variant)
            updated_at = await asyncio.to_thread(
                self.store.upsert_policy,
                policy_id=policy_id,
                heading=policy["heading"],
                sections=policy["sections"],
                variant=variant,
                created_at=existing.created_at if existing else None,
            )
        except sqlite3.Error as exc:
            logger.error("Saving policy %s failed: %s", policy_id, exc)
            raise PersistenceError(f"Could not save policy {policy_id}: {exc}") from exc

        logger.info("Saved policy %s (%d sections)", policy_id, len(policy["sections"]))
        return updated_at

    # ------------------------------------------------------------------ public API
    async def get_document(self, policy_id: str) -> PolicyDocument:
        record = await self.load(policy_id)
        return document_from_record(policy_id, record)

    async def generate(
        self,
        raw: GenerationResult | Mapping[str, Any],
        *,
        policy_id: Optional[str] = None,
        variant: PolicyVariant = PolicyVariant.GENERATED,
    ) -> PolicyDocument:
        document = normalize(raw, policy_id=policy_id, variant=variant)
        try:
            await asyncio.to_thread(
                self.store.upsert_policy,
                policy_id=document.id,
                heading=document.heading,
                sections=serialize_sections(document.sections, document.variant),
                variant=document.variant,
                created_at=document.created_at,
            )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Could not store generated policy {document.id}: {exc}") from exc
        logger.info("Stored generated policy %s as %s variant", document.id, document.variant.value)
        return document

    def list_policies(self) -> List[PolicySummary]:
        return self.store.list_policies()

    def delete_policy(self, policy_id: str) -> bool:
        return self.store.delete_policy(policy_id)


__all__ = ["PolicyService"]
