"""Pydantic schemas for exploits and ChromeOS versions."""

from __future__ import annotations

from datetime import date
from typing import Any, Literal

from pydantic import BaseModel, Field

Severity = Literal["critical", "high", "medium", "low", "info"]


class ExploitCreate(BaseModel):
    cve_id: str | None = Field(None, max_length=32)
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    severity: Severity
    cvss_score: float | None = Field(None, ge=0.0, le=10.0)
    category_id: str | None = None
    chromeos_version_id: str = Field(..., min_length=1)
    discovered_date: date | None = None
    disclosed_date: date | None = None
    patched_date: date | None = None
    exploit_code: str | None = None
    proof_of_concept: str | None = None
    references: list[str] | None = None
    tags: list[str] | None = None
    is_public: bool = True


class ExploitUpdate(BaseModel):
    """Partial update; omitted fields keep their stored values."""

    cve_id: str | None = Field(None, max_length=32)
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, min_length=1)
    severity: Severity | None = None
    cvss_score: float | None = Field(None, ge=0.0, le=10.0)
    category_id: str | None = None
    chromeos_version_id: str | None = None
    patched_date: date | None = None
    exploit_code: str | None = None
    proof_of_concept: str | None = None
    references: list[str] | None = None
    tags: list[str] | None = None
    is_public: bool | None = None
    is_verified: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class VersionCreate(BaseModel):
    version: str = Field(..., min_length=1, max_length=50)
    build_number: str | None = Field(None, max_length=50)
    release_date: date | None = None
    end_of_life_date: date | None = None
    is_stable: bool = True


class VersionUpdate(BaseModel):
    """Partial update of a ChromeOS release; ``is_current`` has its own endpoint."""

    version: str | None = Field(None, min_length=1, max_length=50)
    build_number: str | None = Field(None, max_length=50)
    release_date: date | None = None
    end_of_life_date: date | None = None
    is_stable: bool | None = None

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)
