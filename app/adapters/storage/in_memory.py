"""Thread-safe in-memory repositories.

State is per process and lost on restart.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable

from app.adapters.storage.base import AbstractLeadRepository, AbstractPackageRepository
from app.schemas.lead import Lead, LeadKind
from app.schemas.package import Package, PackageCreate


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryPackageRepository(AbstractPackageRepository):
    def __init__(self, *, now: Callable[[], datetime] = _utcnow) -> None:
        self._now = now
        self._lock = threading.RLock()
        self._packages: dict[str, Package] = {}

    def list(self, *, published: bool | None = None) -> list[Package]:
        with self._lock:
            packages = list(self._packages.values())
        if published is not None:
            packages = [p for p in packages if p.published is published]
        # Stable sort keeps insertion order for equal sort_order
        return sorted(packages, key=lambda p: p.sort_order)

    def get(self, package_id: str) -> Package | None:
        with self._lock:
            return self._packages.get(package_id)

    def create(self, data: PackageCreate) -> Package:
        timestamp = self._now()
        package = Package(
            id=str(uuid.uuid4()),
            created_at=timestamp,
            updated_at=timestamp,
            **data.model_dump(),
        )
        with self._lock:
            self._packages[package.id] = package
        return package

    def update(self, package_id: str, changes: dict[str, Any]) -> Package | None:
        with self._lock:
            current = self._packages.get(package_id)
            if current is None:
                return None
            updated = current.model_copy(update={**changes, "updated_at": self._now()})
            self._packages[package_id] = updated
            return updated

    def delete(self, package_id: str) -> Package | None:
        with self._lock:
            return self._packages.pop(package_id, None)


class InMemoryLeadRepository(AbstractLeadRepository):
    def __init__(self, *, now: Callable[[], datetime] = _utcnow) -> None:
        self._now = now
        self._lock = threading.RLock()
        self._leads: dict[str, Lead] = {}

    def list(self) -> list[Lead]:
        with self._lock:
            return list(self._leads.values())

    def get(self, lead_id: str) -> Lead | None:
        with self._lock:
            return self._leads.get(lead_id)

    def create(
        self,
        *,
        kind: LeadKind,
        payload: dict[str, Any],
        user_agent: str | None,
        ip: str | None,
    ) -> Lead:
        lead = Lead(
            id=str(uuid.uuid4()),
            kind=kind,
            payload=payload,
            user_agent=user_agent,
            ip=ip,
            created_at=self._now(),
        )
        with self._lock:
            self._leads[lead.id] = lead
        return lead

    def delete(self, lead_id: str) -> Lead | None:
        with self._lock:
            return self._leads.pop(lead_id, None)
