"""Pydantic schemas for user-submitted reports."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

ReportType = Literal["error", "false_positive", "missing_exploit", "suggestion"]
ReportStatus = Literal["pending", "reviewing", "accepted", "rejected"]


class ReportCreate(BaseModel):
    report_type: ReportType
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    exploit_id: str | None = None
    chromeos_version_id: str | None = None


class ReportValidation(BaseModel):
    """AI verdict on a report. Defaults describe an unparseable reply."""

    is_valid: bool = False
    analysis: str = "Unable to parse AI validation response"
    confidence: float = Field(0.0, ge=0.0, le=1.0)


class ReportStatusUpdate(BaseModel):
    status: ReportStatus
    admin_notes: str | None = None
