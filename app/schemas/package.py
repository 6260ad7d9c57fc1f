"""Pydantic schemas for tour packages."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

Facility = Annotated[str, StringConstraints(max_length=200)]

_NULLABLE_FIELDS = frozenset({"notes"})


class PackageBase(BaseModel):
    """Fields an administrator supplies when creating a package."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=200, description="Package display name.")
    price_idr: int = Field(..., gt=0, le=100_000_000, description="Price per package in IDR.")
    pax_min: int = Field(..., gt=0, le=1000, description="Minimum group size.")
    pax_max: int = Field(..., gt=0, le=1000, description="Maximum group size.")
    duration_hours: int = Field(..., gt=0, le=240, description="Tour duration in hours.")
    facilities: List[Facility] = Field(
        ..., max_length=50, description="Included facilities (max 50 entries)."
    )
    notes: str | None = Field(default=None, max_length=5000)
    dp_percent: int = Field(default=50, ge=0, le=100, description="Down payment percentage.")
    published: bool = False
    sort_order: int = Field(default=0, ge=0, le=1000)


class PackageCreate(PackageBase):
    pass


class PackageUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=200)
    price_idr: int | None = Field(default=None, gt=0, le=100_000_000)
    pax_min: int | None = Field(default=None, gt=0, le=1000)
    pax_max: int | None = Field(default=None, gt=0, le=1000)
    duration_hours: int | None = Field(default=None, gt=0, le=240)
    facilities: List[Facility] | None = Field(default=None, max_length=50)
    notes: str | None = Field(default=None, max_length=5000)
    dp_percent: int | None = Field(default=None, ge=0, le=100)
    published: bool | None = None
    sort_order: int | None = Field(default=None, ge=0, le=1000)

    @model_validator(mode="before")
    @classmethod
    def _reject_null_for_required_fields(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulls = sorted(k for k, v in data.items() if v is None and k not in _NULLABLE_FIELDS)
            if nulls:
                raise ValueError(f"fields cannot be null: {', '.join(nulls)}")
        return data


class Package(PackageBase):
    """Stored package as returned by the API."""

    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: datetime
    updated_at: datetime


class DeleteResponse(BaseModel):
    success: bool = True
