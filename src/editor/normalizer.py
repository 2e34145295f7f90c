from __future__ import annotations

import logging
from datetime import datetime, timezone
from html import escape
from typing import Any, List, Mapping, Optional, Sequence

from src.models.generation import GenerationResult, UseCaseEntry
from src.models.identity import IdFactory, new_node_id
from src.models.policy import (
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
from src.models.variants import NormalizationRules, rules_for

logger = logging.getLogger(__name__)

COURSE_DESCRIPTION = "Course Description"
GENERATIVE_AI_POLICY = "Generative AI Policy"
ADDITIONAL_POLICIES = "Additional Policies"

INTRODUCTION = "Introduction"
USE_CASES = "Use Cases"
ASSIGNMENT_POLICIES = "Assignment Specific AI Policies"
LEGACY_ASSIGNMENT_POLICIES = "Asignment Specific AI Policies"
ETHICAL_GUIDELINES = "Ethical Guidelines"
DECLARATION = "Declaration"
ADDITIONAL_NOTES = "Additional Notes"
POLICY_LINKS = "Policy Links"

NONE_PLACEHOLDER = "None"
EMPTY_LINK_PLACEHOLDER = "N/A"

_POLICY_LINKS = (
    ("campus_wide_policy", "Campus-wide generative AI policy"),
    ("department_wide_policy", "Department-wide generative AI policy"),
    ("academic_integrity_policy", "Academic Integrity policy"),
    ("other_policies", "Other policies"),
)


def _text(value: Optional[str]) -> str:
    return escape(value or "")


def _paragraph(value: Optional[str]) -> str:
    return f"<p>{_text(value)}</p>"


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


class PolicyNormalizer:
    """Turn a raw generation result into the canonical three-section policy tree."""

    def __init__(self, rules: NormalizationRules, id_factory: IdFactory = new_node_id) -> None:
        self.rules = rules
        self.id_factory = id_factory

    def build(
        self,
        raw: GenerationResult,
        *,
        policy_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PolicyDocument:
        timestamp = _parse_timestamp(raw.generated_at) or now or datetime.now(timezone.utc)
        sections = (
            self._section(COURSE_DESCRIPTION, self._course_description(raw)),
            self._section(GENERATIVE_AI_POLICY, self._generative_ai_policy(raw)),
            self._section(ADDITIONAL_POLICIES, self._additional_policies(raw)),
        )
        document = PolicyDocument(
            id=policy_id or self.id_factory(),
            heading=self._heading(raw),
            created_at=timestamp,
            updated_at=timestamp,
            sections=sections,
            variant=self.rules.variant,
        )
        return check_invariants(document)

    # ------------------------------------------------------------------ sections
    def _course_description(self, raw: GenerationResult) -> List[Subsection]:
        body = f"<section><h3>Course Description</h3>{_paragraph(raw.course_description)}</section>"
        return [self._subsection(INTRODUCTION, body)]

    def _generative_ai_policy(self, raw: GenerationResult) -> List[Subsection]:
        policy = raw.overall_policy.value if raw.overall_policy else ""
        intro = (
            "<section>"
            f"<h3>1. {_text(raw.course_number)} Generative AI Policy</h3>"
            f"<p>Overall generative AI policy: <span>{escape(policy)}</span></p>"
            f"{_paragraph(raw.overall_policy_text)}"
            "</section>"
        )
        metadata = SubsectionMetadata(overall_policy=raw.overall_policy) if raw.overall_policy else None
        subsections = [self._subsection(INTRODUCTION, intro, metadata=metadata)]

        if raw.use_cases is not None:
            body = UseCaseBody(
                reasonable=self._use_case_side("Reasonable Use Cases", raw.use_cases.reasonable),
                unreasonable=self._use_case_side("Unreasonable Use Cases", raw.use_cases.unreasonable),
            )
            subsections.append(self._subsection(USE_CASES, body))

        if raw.specific_policies_for_assignments:
            body = (
                "<section><h3>Assignment/Project Specific AI Policies</h3>"
                f"{_paragraph(raw.specific_policies_for_assignments)}</section>"
            )
            subsections.append(self._subsection(ASSIGNMENT_POLICIES, body))
            if self.rules.emit_legacy_assignment_duplicate:
                # Kept for parity with previously generated policies; see DESIGN.md.
                logger.warning(
                    "Emitting duplicate '%s' subsection alongside '%s'",
                    LEGACY_ASSIGNMENT_POLICIES,
                    ASSIGNMENT_POLICIES,
                )
                subsections.append(self._subsection(LEGACY_ASSIGNMENT_POLICIES, body))

        if raw.ethical_guidelines:
            body = self._paragraph_list(
                "Ethical guidelines for using generative AI for this course:",
                raw.ethical_guidelines,
                raw.additional_guidelines,
            )
            subsections.append(self._subsection(ETHICAL_GUIDELINES, body))

        if raw.generative_ai_tool_declarations:
            body = self._paragraph_list(
                "How to declare the use of generative tools:",
                raw.generative_ai_tool_declarations,
                raw.additional_generative_ai_tools_declarations,
            )
            subsections.append(self._subsection(DECLARATION, body))

        if raw.additional_notes or self.rules.always_include_additional_notes:
            notes = _paragraph(raw.additional_notes) if raw.additional_notes else ""
            body = f"<section><h3>Additional Notes</h3>{notes}</section>"
            subsections.append(self._subsection(ADDITIONAL_NOTES, body))

        return subsections

    def _additional_policies(self, raw: GenerationResult) -> List[Subsection]:
        intro = f"<section><h2>2. Additional Policies</h2>{_paragraph(raw.additional_policy_text)}</section>"
        subsections = [self._subsection(INTRODUCTION, intro)]

        if raw.overall_policy != OverallPolicy.NO_RESTRICTIONS:
            lines = []
            for field_name, label in _POLICY_LINKS:
                value = getattr(raw, field_name)
                if value is None:
                    continue
                shown = value if value else EMPTY_LINK_PLACEHOLDER
                lines.append(f"<li>{label}: <span>{escape(shown)}</span></li>")
            body = f"<section><ul>{''.join(lines)}</ul></section>"
            subsections.append(self._subsection(POLICY_LINKS, body))

        return subsections

    # ------------------------------------------------------------------ helpers
    def _heading(self, raw: GenerationResult) -> str:
        return (
            f"<h2>{_text(raw.course_number)}: {_text(raw.course_title)}</h2>"
            f"<p>Course Instructor: {_text(raw.instructor)} [{_text(raw.email)}] "
            f"<span>Generated on {_text(raw.generated_at)}</span></p>"
        )

    @staticmethod
    def _use_case_side(title: str, entries: Optional[Sequence[UseCaseEntry]]) -> str:
        if not entries:
            return f"<h3>{title}</h3><p>{NONE_PLACEHOLDER}</p>"
        items = "".join(
            f"<li><strong>{escape(entry.label)}</strong><p>{escape(entry.text)}</p></li>" for entry in entries
        )
        return f"<h3>{title}</h3><ul>{items}</ul>"

    @staticmethod
    def _paragraph_list(title: str, entries: Sequence[str], trailer: Optional[str]) -> str:
        paragraphs = "".join(_paragraph(entry) for entry in entries)
        extra = _paragraph(trailer) if trailer else ""
        return f"<section><h3>{title}</h3>{paragraphs}{extra}</section>"

    def _section(self, title: str, subsections: List[Subsection]) -> Section:
        return Section(id=self.id_factory(), title=title, subsections=tuple(subsections))

    def _subsection(
        self,
        title: str,
        body: SubsectionBody,
        *,
        metadata: Optional[SubsectionMetadata] = None,
    ) -> Subsection:
        return Subsection(id=self.id_factory(), title=title, body=body, metadata=metadata)


def normalize(
    raw: GenerationResult | Mapping[str, Any],
    *,
    policy_id: Optional[str] = None,
    variant: PolicyVariant = PolicyVariant.GENERATED,
    id_factory: IdFactory = new_node_id,
    now: Optional[datetime] = None,
) -> PolicyDocument:
    """Normalize a generation result (model or camelCase mapping) into a policy tree."""

    result = raw if isinstance(raw, GenerationResult) else GenerationResult.model_validate(raw)
    normalizer = PolicyNormalizer(rules_for(variant), id_factory=id_factory)
    return normalizer.build(result, policy_id=policy_id, now=now)


__all__ = [
    "ADDITIONAL_NOTES",
    "ADDITIONAL_POLICIES",
    "ASSIGNMENT_POLICIES",
    "COURSE_DESCRIPTION",
    "DECLARATION",
    "ETHICAL_GUIDELINES",
    "GENERATIVE_AI_POLICY",
    "INTRODUCTION",
    "LEGACY_ASSIGNMENT_POLICIES",
    "POLICY_LINKS",
    "PolicyNormalizer",
    "USE_CASES",
    "normalize",
]
