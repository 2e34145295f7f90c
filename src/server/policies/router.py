from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException

from src.editor.events import SAVE_SUCCESS
from src.editor.serialization import PayloadError, document_to_record
from src.interfaces.persistence import PersistenceError, PolicyNotFound
from src.server.policies.models import (
    GeneratePolicyRequest,
    PolicyListResponse,
    PolicyResponse,
    PolicySummaryModel,
    SavePolicyRequest,
    SavePolicyResponse,
)
from src.server.policies.service import PolicyService
from src.server.settings import Settings, get_settings


router = APIRouter(prefix="/api/policies", tags=["policies"])


def _resolve_service(settings: Settings) -> PolicyService:
    global _POLICY_SERVICE
    if _POLICY_SERVICE is None:
        _POLICY_SERVICE = PolicyService(settings)
    return _POLICY_SERVICE


def get_policy_service(settings: Settings = Depends(get_settings)) -> PolicyService:
    return _resolve_service(settings)


def get_policy_service_instance(settings: Settings) -> PolicyService:
    return _resolve_service(settings)


_POLICY_SERVICE: PolicyService | None = None


@router.get("", response_model=PolicyListResponse)
async def list_policies(service: PolicyService = Depends(get_policy_service)) -> PolicyListResponse:
    return PolicyListResponse(
        items=[
            PolicySummaryModel(
                id=summary.id,
                variant=summary.variant,
                section_count=summary.section_count,
                created_at=summary.created_at.isoformat(),
                updated_at=summary.updated_at.isoformat(),
            )
            for summary in service.list_policies()
        ]
    )


@router.post("/generate", response_model=PolicyResponse)
async def generate_policy(
    payload: GeneratePolicyRequest,
    service: PolicyService = Depends(get_policy_service),
) -> PolicyResponse:
    try:
        document = await service.generate(payload.result, policy_id=payload.policy_id, variant=payload.variant)
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return PolicyResponse(**document_to_record(document))


@router.get("/{policy_id}", response_model=PolicyResponse)
async def get_policy(policy_id: str, service: PolicyService = Depends(get_policy_service)) -> PolicyResponse:
    try:
        record = await service.load(policy_id)
    except PolicyNotFound as exc:
        raise HTTPException(status_code=404, detail="Policy not found") from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return PolicyResponse(id=policy_id, **record)


@router.put("/{policy_id}", response_model=SavePolicyResponse)
async def save_policy(
    policy_id: str,
    payload: SavePolicyRequest,
    service: PolicyService = Depends(get_policy_service),
) -> SavePolicyResponse:
    serialized = json.dumps(payload.model_dump(), ensure_ascii=False)
    try:
        receipt = await service.save(policy_id, serialized)
    except PayloadError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PersistenceError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return SavePolicyResponse(
        policy_id=receipt.policy_id,
        updated_at=receipt.updated_at.isoformat(),
        message=SAVE_SUCCESS.message,
    )


@router.delete("/{policy_id}")
async def delete_policy(policy_id: str, service: PolicyService = Depends(get_policy_service)):
    if not service.delete_policy(policy_id):
        raise HTTPException(status_code=404, detail="Policy not found")
    return {"status": "deleted"}


__all__ = ["router", "get_policy_service", "get_policy_service_instance"]
