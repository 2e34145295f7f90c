from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from time import perf_counter
from typing import Any, Dict


class PolicyNotFound(KeyError):
    """No stored policy exists for the requested identifier."""


class PersistenceError(RuntimeError):
    """The backing store failed to read or write a policy."""


@dataclass(slots=True)
class SaveReceipt:
    policy_id: str
    updated_at: datetime
    duration_ms: float


class PersistenceBridge(ABC):
    """Asynchronous read/write capability for policies keyed by identifier."""

    async def load(self, policy_id: str) -> Dict[str, Any]:
        """Return ``{heading, sections, createdAt, updatedAt}`` or raise ``PolicyNotFound``."""

        return await self._load(policy_id)

    async def save(self, policy_id: str, serialized_payload: str) -> SaveReceipt:
        """Upsert a ``{"policy": {...}}`` JSON payload; raises ``PersistenceError`` on failure."""

        start = perf_counter()
        updated_at = await self._save(policy_id, serialized_payload)
        return SaveReceipt(
            policy_id=policy_id,
            updated_at=updated_at,
            duration_ms=(perf_counter() - start) * 1000,
        )

    @abstractmethod
    async def _load(self, policy_id: str) -> Dict[str, Any]:
        """Subclass implementation of the read."""

    @abstractmethod
    async def _save(self, policy_id: str, serialized_payload: str) -> datetime:
        """Subclass implementation of the upsert, returning the stored ``updated_at``."""


__all__ = ["PersistenceBridge", "PersistenceError", "PolicyNotFound", "SaveReceipt"]
