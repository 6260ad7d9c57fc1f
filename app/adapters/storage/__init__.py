"""Storage adapters for packages and leads."""

from app.adapters.storage.base import AbstractLeadRepository, AbstractPackageRepository
from app.adapters.storage.in_memory import InMemoryLeadRepository, InMemoryPackageRepository

__all__ = [
    "AbstractLeadRepository",
    "AbstractPackageRepository",
    "InMemoryLeadRepository",
    "InMemoryPackageRepository",
]
