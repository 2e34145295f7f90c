from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import Mapping, Type, TypeVar

from src.models.policy import OverallPolicy

E = TypeVar("E", bound=Enum)


def ensure_exhaustive(mapping: Mapping[E, str], enum_type: Type[E]) -> Mapping[E, str]:
    """Return a read-only copy of ``mapping`` after checking it covers every enum member."""

    missing = [member.value for member in enum_type if member not in mapping]
    if missing:
        raise ValueError(f"{enum_type.__name__} mapping is missing entries for: {missing}")
    return MappingProxyType(dict(mapping))


BADGE_STYLES: Mapping[OverallPolicy, str] = ensure_exhaustive(
    {
        OverallPolicy.STRICTLY_PROHIBITED: "bg-red-400",
        OverallPolicy.ALLOWED_UNDER_CONDITIONS: "bg-amber-300",
        OverallPolicy.NO_RESTRICTIONS: "bg-green-200",
    },
    OverallPolicy,
)

# Indexed by UseCaseBody side: reasonable, unreasonable.
USE_CASE_SIDE_STYLES = ("bg-stone-100", "bg-red-50")


def badge_for(policy: OverallPolicy | str) -> str:
    return BADGE_STYLES[OverallPolicy(policy)]


__all__ = ["BADGE_STYLES", "USE_CASE_SIDE_STYLES", "badge_for", "ensure_exhaustive"]
