"""Repository interfaces for packages and leads.

Routes depend on these abstractions; the in-memory implementations can be
replaced by a database-backed one without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from app.schemas.lead import Lead, LeadKind
from app.schemas.package import Package, PackageCreate


class AbstractPackageRepository(ABC):
    @abstractmethod
    def list(self, *, published: bool | None = None) -> list[Package]:
        """Return packages ordered by ``sort_order``, optionally filtered."""
        raise NotImplementedError

    @abstractmethod
    def get(self, package_id: str) -> Package | None:
        raise NotImplementedError

    @abstractmethod
    def create(self, data: PackageCreate) -> Package:
        raise NotImplementedError

    @abstractmethod
    def update(self, package_id: str, changes: dict[str, Any]) -> Package | None:
        """Apply ``changes`` and refresh ``updated_at``.

        Returns:
            The updated package, or None if it does not exist.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, package_id: str) -> Package | None:
        """Remove a package, returning it, or None if it does not exist."""
        raise NotImplementedError


class AbstractLeadRepository(ABC):
    @abstractmethod
    def list(self) -> list[Lead]:
        raise NotImplementedError

    @abstractmethod
    def get(self, lead_id: str) -> Lead | None:
        raise NotImplementedError

    @abstractmethod
    def create(
        self,
        *,
        kind: LeadKind,
        payload: dict[str, Any],
        user_agent: str | None,
        ip: str | None,
    ) -> Lead:
        raise NotImplementedError

    @abstractmethod
    def delete(self, lead_id: str) -> Lead | None:
        """Remove a lead, returning it, or None if it does not exist."""
        raise NotImplementedError
