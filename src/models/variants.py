from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from src.models.policy import PolicyVariant


@dataclass(frozen=True, slots=True)
class WireSchema:
    """Key names a variant uses when its tree is written to or read from JSON."""

    section_title: str
    subsections: str
    subsection_title: str
    body: str
    metadata: str


@dataclass(frozen=True, slots=True)
class NormalizationRules:
    variant: PolicyVariant
    wire: WireSchema
    always_include_additional_notes: bool = False
    emit_legacy_assignment_duplicate: bool = False


SAVED_RULES = NormalizationRules(
    variant=PolicyVariant.SAVED,
    wire=WireSchema(
        section_title="title",
        subsections="children",
        subsection_title="title",
        body="htmlContent",
        metadata="metadata",
    ),
)

GENERATED_RULES = NormalizationRules(
    variant=PolicyVariant.GENERATED,
    wire=WireSchema(
        section_title="sectionTitle",
        subsections="subSections",
        subsection_title="subSectionTitle",
        body="content",
        metadata="miscData",
    ),
    always_include_additional_notes=True,
    emit_legacy_assignment_duplicate=True,
)

_RULES: Mapping[PolicyVariant, NormalizationRules] = MappingProxyType(
    {
        PolicyVariant.SAVED: SAVED_RULES,
        PolicyVariant.GENERATED: GENERATED_RULES,
    }
)
assert set(_RULES) == set(PolicyVariant), "every PolicyVariant needs normalization rules"


def rules_for(variant: PolicyVariant | str) -> NormalizationRules:
    return _RULES[PolicyVariant(variant)]


__all__ = ["GENERATED_RULES", "NormalizationRules", "SAVED_RULES", "WireSchema", "rules_for"]
