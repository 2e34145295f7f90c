from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

from src.models.generation import GenerationResult
from src.models.policy import PolicyVariant


class PolicyPayload(BaseModel):
    heading: str = Field(min_length=1)
    sections: List[Dict[str, Any]]


class SavePolicyRequest(BaseModel):
    """Body of ``PUT /api/policies/{id}``: ``{"policy": {"heading", "sections"}}``."""

    policy: PolicyPayload


class GeneratePolicyRequest(BaseModel):
    result: GenerationResult
    variant: PolicyVariant = PolicyVariant.GENERATED
    policy_id: str | None = None


class PolicyResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    variant: PolicyVariant
    heading: str
    sections: List[Dict[str, Any]]
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class SavePolicyResponse(BaseModel):
    policy_id: str
    updated_at: str
    message: str


class PolicySummaryModel(BaseModel):
    id: str
    variant: PolicyVariant
    section_count: int
    created_at: str
    updated_at: str


class PolicyListResponse(BaseModel):
    items: List[PolicySummaryModel]


__all__ = [
    "GeneratePolicyRequest",
    "PolicyListResponse",
    "PolicyPayload",
    "PolicyResponse",
    "PolicySummaryModel",
    "SavePolicyRequest",
    "SavePolicyResponse",
]
