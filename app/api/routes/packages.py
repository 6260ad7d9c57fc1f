from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.adapters.storage.base import AbstractPackageRepository
from app.api.deps import get_package_repository
from app.core.auth import verify_api_key
from app.core.errors import NotFoundAppError
from app.core.rate_limit import enforce_delete_rate_limit, enforce_update_rate_limit
from app.schemas.package import DeleteResponse, Package, PackageCreate, PackageUpdate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Packages"])


def _not_found(package_id: str) -> NotFoundAppError:
    return NotFoundAppError(
        code="package_not_found",
        message="Package not found",
        details={"resource": "package", "resource_id": package_id},
    )


@router.get("/packages", response_model=List[Package])
def list_packages(
    published: bool | None = Query(None, description="Only return packages with this published flag."),
    repo: AbstractPackageRepository = Depends(get_package_repository),
) -> List[Package]:
    """List packages ordered by ``sort_order``."""
    return repo.list(published=published)


@router.get("/packages/{package_id}", response_model=Package)
def get_package(
    package_id: str,
    repo: AbstractPackageRepository = Depends(get_package_repository),
) -> Package:
    package = repo.get(package_id)
    if package is None:
        raise _not_found(package_id)
    return package


@router.post(
    "/packages",
    response_model=Package,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(verify_api_key)],
)
def create_package(
    body: PackageCreate,
    repo: AbstractPackageRepository = Depends(get_package_repository),
) -> Package:
    package = repo.create(body)
    logger.info("package.created", extra={"package_id": package.id})
    return package


def _parse_update(raw: bytes) -> PackageUpdate:
    """Validate a raw PATCH body, reporting failures like FastAPI's own body errors."""
    try:
        return PackageUpdate.model_validate_json(raw)
    except ValidationError as exc:
        errors = [
            {**error, "loc": ("body", *error["loc"])}
            for error in exc.errors(include_url=False)
        ]
        raise RequestValidationError(errors, body=raw) from exc


# The body is read inside the handler, after the dependencies ran, so
# throttled requests are rejected before the body is parsed or validated
# and malformed bodies still count against the limit.
@router.patch(
    "/packages/{package_id}",
    response_model=Package,
    dependencies=[Depends(enforce_update_rate_limit), Depends(verify_api_key)],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": PackageUpdate.model_json_schema()}},
        }
    },
)
async def update_package(
    package_id: str,
    request: Request,
    repo: AbstractPackageRepository = Depends(get_package_repository),
) -> Package:
    """Apply a partial update to a package.

    Only fields present in the request body are changed; ``updated_at`` is
    refreshed on every successful update.
    """
    body = _parse_update(await request.body())
    changes = body.model_dump(exclude_unset=True)
    updated = repo.update(package_id, changes)
    if updated is None:
        raise _not_found(package_id)

    logger.info(
        "package.updated",
        extra={"package_id": package_id, "fields": sorted(changes)},
    )
    return updated


@router.delete(
    "/packages/{package_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(enforce_delete_rate_limit), Depends(verify_api_key)],
)
def delete_package(
    package_id: str,
    repo: AbstractPackageRepository = Depends(get_package_repository),
) -> DeleteResponse:
    if repo.delete(package_id) is None:
        raise _not_found(package_id)

    logger.info("package.deleted", extra={"package_id": package_id})
    return DeleteResponse(success=True)
