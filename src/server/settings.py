from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv(override=False)

DEFAULT_CORS_ORIGINS = ["http://localhost:3000"]


def _parse_origins(value: object) -> List[str]:
    if value is None:
        return list(DEFAULT_CORS_ORIGINS)
    if isinstance(value, str):
        if not value.strip():
            return list(DEFAULT_CORS_ORIGINS)
        return [origin.strip() for origin in value.split(",") if origin.strip()]
    return list(value)  # type: ignore[call-overload]


class Settings(BaseModel):
    """Runtime configuration for the policy editor API."""

    environment: str = Field(default_factory=lambda: os.getenv("ENVIRONMENT", "dev"))
    policy_db_path: Path = Field(default_factory=lambda: Path(os.getenv("POLICY_DB", "artifacts/policies.db")))
    cors_origins: List[str] = Field(default_factory=lambda: _parse_origins(os.getenv("CORS_ORIGINS")))
    log_level: str = Field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO").strip().upper())
    check_invariants: bool = Field(
        default_factory=lambda: os.getenv("POLICY_CHECK_INVARIANTS", "true").lower() not in {"0", "false"}
    )
    sample_pdf_url: str | None = Field(default_factory=lambda: os.getenv("SAMPLE_PDF_URL") or None)

    model_config = {
        "frozen": True,
    }

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: object) -> List[str]:
        return _parse_origins(value)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported LOG_LEVEL '{value}'")
        return level


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance for FastAPI dependency injection."""

    return Settings()


__all__ = ["Settings", "get_settings", "DEFAULT_CORS_ORIGINS"]
