"""Request-scoped accessors for objects owned by the application instance."""

from __future__ import annotations

from fastapi import Request

from app.adapters.storage.base import AbstractLeadRepository, AbstractPackageRepository


def get_package_repository(request: Request) -> AbstractPackageRepository:
    return request.app.state.package_repository


def get_lead_repository(request: Request) -> AbstractLeadRepository:
    return request.app.state.lead_repository
