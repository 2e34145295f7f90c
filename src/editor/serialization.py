from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from src.models.policy import (
    InvariantViolation,
    OverallPolicy,
    PolicyDocument,
    PolicyVariant,
    Section,
    Subsection,
    SubsectionBody,
    SubsectionMetadata,
    UseCaseBody,
    check_invariants,
)
from src.models.variants import WireSchema, rules_for

OVERALL_POLICY_KEY = "overallPolicy"


class PayloadError(ValueError):
    """Raised when a stored or submitted policy payload cannot be read as a tree."""


# ---------------------------------------------------------------------- encode
def _encode_body(body: SubsectionBody) -> Any:
    if isinstance(body, UseCaseBody):
        return list(body.sides())
    return body


def _encode_metadata(metadata: SubsectionMetadata) -> Dict[str, Any]:
    encoded: Dict[str, Any] = {}
    if metadata.overall_policy is not None:
        encoded[OVERALL_POLICY_KEY] = metadata.overall_policy.value
    return encoded


def serialize_subsection(subsection: Subsection, wire: WireSchema) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": subsection.id,
        wire.subsection_title: subsection.title,
        wire.body: _encode_body(subsection.body),
    }
    if subsection.metadata is not None:
        payload[wire.metadata] = _encode_metadata(subsection.metadata)
    return payload


def serialize_sections(sections: Sequence[Section], variant: PolicyVariant) -> List[Dict[str, Any]]:
    wire = rules_for(variant).wire
    return [
        {
            "id": section.id,
            wire.section_title: section.title,
            wire.subsections: [serialize_subsection(sub, wire) for sub in section.subsections],
        }
        for section in sections
    ]


def build_save_payload(document: PolicyDocument) -> Dict[str, Any]:
    return {
        "policy": {
            "heading": document.heading,
            "sections": serialize_sections(document.sections, document.variant),
        }
    }


def dumps_save_payload(document: PolicyDocument) -> str:
    return json.dumps(build_save_payload(document), ensure_ascii=False, separators=(",", ":"))


def document_to_record(document: PolicyDocument) -> Dict[str, Any]:
    return {
        "id": document.id,
        "variant": document.variant.value,
        "heading": document.heading,
        "sections": serialize_sections(document.sections, document.variant),
        "createdAt": document.created_at.isoformat(),
        "updatedAt": document.updated_at.isoformat(),
    }


# ---------------------------------------------------------------------- decode
def _require(mapping: Mapping[str, Any], key: str, kind: type, where: str) -> Any:
    if key not in mapping:
        raise PayloadError(f"{where} is missing '{key}'")
    value = mapping[key]
    if not isinstance(value, kind):
        raise PayloadError(f"{where} field '{key}' must be {kind.__name__}")
    return value


def _decode_body(raw: Any, where: str) -> SubsectionBody:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, list) and len(raw) == 2 and all(isinstance(side, str) for side in raw):
        return UseCaseBody(reasonable=raw[0], unreasonable=raw[1])
    raise PayloadError(f"{where} body must be a string or a pair of strings")


def _decode_metadata(raw: Any, where: str) -> SubsectionMetadata:
    if not isinstance(raw, Mapping):
        raise PayloadError(f"{where} metadata must be an object")
    unknown = sorted(set(raw) - {OVERALL_POLICY_KEY})
    if unknown:
        raise PayloadError(f"{where} metadata has unknown keys {unknown}")
    if OVERALL_POLICY_KEY not in raw:
        return SubsectionMetadata()
    value = raw[OVERALL_POLICY_KEY]
    if value is None:
        raise PayloadError(f"{where} overall policy must be omitted rather than null")
    try:
        return SubsectionMetadata(overall_policy=OverallPolicy(value))
    except ValueError as exc:
        raise PayloadError(f"{where} has unknown overall policy {value!r}") from exc


def deserialize_subsection(raw: Any, wire: WireSchema, where: str) -> Subsection:
    if not isinstance(raw, Mapping):
        raise PayloadError(f"{where} must be an object")
    metadata = _decode_metadata(raw[wire.metadata], where) if wire.metadata in raw else None
    return Subsection(
        id=_require(raw, "id", str, where),
        title=_require(raw, wire.subsection_title, str, where),
        body=_decode_body(raw.get(wire.body), where),
        metadata=metadata,
    )


def deserialize_sections(payload: Any, variant: PolicyVariant) -> tuple[Section, ...]:
    if not isinstance(payload, list):
        raise PayloadError("sections must be a list")
    wire = rules_for(variant).wire
    sections = []
    for position, raw in enumerate(payload):
        where = f"sections[{position}]"
        if not isinstance(raw, Mapping):
            raise PayloadError(f"{where} must be an object")
        children = _require(raw, wire.subsections, list, where)
        sections.append(
            Section(
                id=_require(raw, "id", str, where),
                title=_require(raw, wire.section_title, str, where),
                subsections=tuple(
                    deserialize_subsection(child, wire, f"{where}.{wire.subsections}[{index}]")
                    for index, child in enumerate(children)
                ),
            )
        )
    return tuple(sections)


def detect_variant(sections: Any, default: PolicyVariant = PolicyVariant.SAVED) -> PolicyVariant:
    """Infer the wire schema from the first section's keys, falling back to ``default``."""

    if isinstance(sections, list) and sections and isinstance(sections[0], Mapping):
        for variant in PolicyVariant:
            if rules_for(variant).wire.subsections in sections[0]:
                return variant
    return default


def _parse_timestamp(value: Any, fallback: datetime) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            # Legacy records store epoch milliseconds as strings.
            try:
                parsed = datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)
            except ValueError as exc:
                raise PayloadError(f"Unreadable timestamp {value!r}") from exc
    else:
        return fallback
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def document_from_record(
    policy_id: str,
    record: Mapping[str, Any],
    variant: Optional[PolicyVariant] = None,
) -> PolicyDocument:
    """Build a document from a persistence read ``{heading, sections, createdAt, updatedAt}``."""

    resolved = PolicyVariant(variant or record.get("variant") or PolicyVariant.SAVED)
    now = datetime.now(timezone.utc)
    heading = record.get("heading")
    if not isinstance(heading, str):
        raise PayloadError("policy heading must be a string")
    created_at = _parse_timestamp(record.get("createdAt"), now)
    document = PolicyDocument(
        id=policy_id,
        heading=heading,
        created_at=created_at,
        updated_at=_parse_timestamp(record.get("updatedAt"), created_at),
        sections=deserialize_sections(record.get("sections"), resolved),
        variant=resolved,
    )
    try:
        return check_invariants(document)
    except InvariantViolation as exc:
        raise PayloadError(str(exc)) from exc


def read_save_payload(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate the ``{"policy": {"heading", "sections"}}`` envelope and return its inner mapping."""

    policy = payload.get("policy") if isinstance(payload, Mapping) else None
    if not isinstance(policy, Mapping):
        raise PayloadError("payload must contain a 'policy' object")
    if not isinstance(policy.get("heading"), str) or not policy["heading"]:
        raise PayloadError("policy heading must be a non-empty string")
    if not isinstance(policy.get("sections"), list):
        raise PayloadError("policy sections must be a list")
    return dict(policy)


__all__ = [
    "PayloadError",
    "build_save_payload",
    "deserialize_sections",
    "deserialize_subsection",
    "detect_variant",
    "document_from_record",
    "document_to_record",
    "dumps_save_payload",
    "read_save_payload",
    "serialize_sections",
    "serialize_subsection",
]
