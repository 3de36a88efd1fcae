"""Shared response envelopes."""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    limit: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    pages: int = Field(..., ge=0)

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=math.ceil(total / limit))


class Page(BaseModel):
    """A page of database rows and its position in the full result set."""

    items: list[dict[str, Any]]
    pagination: Pagination


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit
