from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.models.policy import set_invariant_checks

from .logging_config import configure_logging
from .policies import router as policies_router
from .settings import get_settings

settings = get_settings()
configure_logging(settings.log_level)
set_invariant_checks(settings.check_invariants)

app = FastAPI(title="Course AI Policy Editor API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(policies_router)


@app.get("/api/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/sample")
async def sample_links() -> dict[str, str | None]:
    return {"pdf_url": settings.sample_pdf_url}


__all__ = ["app"]
