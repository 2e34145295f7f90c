from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.models.policy import OverallPolicy


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class UseCaseEntry(_CamelModel):
    label: str = ""
    text: str = ""


class UseCases(_CamelModel):
    reasonable: List[UseCaseEntry] | None = None
    unreasonable: List[UseCaseEntry] | None = None


class GenerationResult(_CamelModel):
    """Raw course policy produced by the upstream generator.

    Every field is optional: a partial response still normalizes into a
    best-effort document. ``overall_policy`` is the one closed vocabulary and
    rejects values outside ``OverallPolicy``.
    """

    course_number: str | None = None
    course_title: str | None = None
    instructor: str | None = None
    email: str | None = None
    generated_at: str | None = None
    course_description: str | None = None
    overall_policy: OverallPolicy | None = None
    overall_policy_text: str | None = None
    use_cases: UseCases | None = None
    specific_policies_for_assignments: str | None = None
    ethical_guidelines: List[str] | None = None
    additional_guidelines: str | None = None
    generative_ai_tool_declarations: List[str] | None = None
    additional_generative_ai_tools_declarations: str | None = None
    additional_notes: str | None = None
    additional_policy_text: str | None = None
    campus_wide_policy: str | None = None
    department_wide_policy: str | None = None
    academic_integrity_policy: str | None = None
    other_policies: str | None = None


__all__ = ["GenerationResult", "UseCaseEntry", "UseCases"]
