from __future__ import annotations

import importlib

import pytest
from fastapi import HTTPException

from src.models.generation import GenerationResult
from src.server.policies.models import GeneratePolicyRequest, PolicyPayload, SavePolicyRequest
from src.server.policies.service import PolicyService
from src.server.settings import Settings, get_settings


# The package re-exports the APIRouter under the same name as this module.
policy_routes = importlib.import_module("src.server.policies.router")


@pytest.mark.asyncio
async def test_policy_router_functions(tmp_path, generation_payload):
    service = PolicyService(Settings(policy_db_path=tmp_path / "policies.db"))

    generated = await policy_routes.generate_policy(
        GeneratePolicyRequest(result=GenerationResult.model_validate(generation_payload), policy_id="p-1"),
        service=service,
    )
    assert generated.id == "p-1"
    assert generated.variant == "generated"
    assert generated.model_dump(by_alias=True)["createdAt"].startswith("2024-03-01")

    fetched = await policy_routes.get_policy("p-1", service=service)
    assert fetched.sections == generated.sections

    sections = fetched.sections[:2]
    saved = await policy_routes.save_policy(
        "p-1",
        SavePolicyRequest(policy=PolicyPayload(heading="<h2>Edited</h2>", sections=sections)),
        service=service,
    )
    assert saved.message == "Changes have been saved!"

    refetched = await policy_routes.get_policy("p-1", service=service)
    assert refetched.heading == "<h2>Edited</h2>"
    assert len(refetched.sections) == 2

    listing = await policy_routes.list_policies(service=service)
    assert [item.id for item in listing.items] == ["p-1"]

    assert await policy_routes.delete_policy("p-1", service=service) == {"status": "deleted"}


@pytest.mark.asyncio
async def test_policy_router_errors(tmp_path):
    service = PolicyService(Settings(policy_db_path=tmp_path / "policies.db"))

    with pytest.raises(HTTPException) as missing:
        await policy_routes.get_policy("missing", service=service)
    assert missing.value.status_code == 404

    with pytest.raises(HTTPException) as malformed:
        await policy_routes.save_policy(
            "p-2",
            SavePolicyRequest(policy=PolicyPayload(heading="<h2>H</h2>", sections=[{"id": "a"}])),
            service=service,
        )
    assert malformed.value.status_code == 400

    with pytest.raises(HTTPException) as gone:
        await policy_routes.delete_policy("missing", service=service)
    assert gone.value.status_code == 404


@pytest.mark.asyncio
async def test_app_exposes_health_and_policy_routes(monkeypatch, tmp_path):
    monkeypatch.setenv("POLICY_DB", str(tmp_path / "policies.db"))
    monkeypatch.setenv("SAMPLE_PDF_URL", "https://example.edu/sample.pdf")
    get_settings.cache_clear()
    try:
        server_api = importlib.reload(importlib.import_module("src.server.api"))

        assert await server_api.healthz() == {"status": "ok"}
        assert await server_api.sample_links() == {"pdf_url": "https://example.edu/sample.pdf"}
        paths = {route.path for route in server_api.app.routes}
        assert {"/api/policies", "/api/policies/{policy_id}", "/api/policies/generate"} <= paths
    finally:
        get_settings.cache_clear()


def test_settings_parse_environment(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "http://a.test, http://b.test")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("POLICY_CHECK_INVARIANTS", "false")

    settings = Settings()

    assert settings.cors_origins == ["http://a.test", "http://b.test"]
    assert settings.log_level == "DEBUG"
    assert settings.check_invariants is False
