from __future__ import annotations

import uuid
from typing import Callable

IdFactory = Callable[[], str]


def new_node_id() -> str:
    """Mint a fresh identifier for a section or subsection."""

    return str(uuid.uuid4())


__all__ = ["IdFactory", "new_node_id"]
