"""Pydantic schema for the health endpoint."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    rate_limit_sweeper: bool = Field(..., description="Whether the limiter sweep task is running.")
