"""Pydantic schemas for lead form submissions."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class LeadKind(str, Enum):
    """Website form a lead was submitted from."""

    BOOKING = "booking"
    ACCOMMODATION = "akomodasi"
    ACCESSORY = "aksesori"
    CONTACT = "kontak"


class LeadCreate(BaseModel):
    kind: LeadKind
    payload: Dict[str, Any] = Field(..., description="Raw form fields as submitted.")
    user_agent: str | None = Field(
        default=None,
        max_length=500,
        description="Overrides the request User-Agent header when provided.",
    )
    ip: str | None = Field(
        default=None,
        max_length=50,
        description="Overrides the IP derived from proxy headers when provided.",
    )


class Lead(BaseModel):
    id: str
    kind: LeadKind
    payload: Dict[str, Any]
    user_agent: str | None = None
    ip: str | None = None
    created_at: datetime
