"""Pydantic schemas for administrative actions."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

LogLevel = Literal["debug", "info", "warn", "warning", "error"]


class TrainingValidation(BaseModel):
    is_validated: bool = True
