from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, status

from app.adapters.storage.base import AbstractLeadRepository
from app.api.deps import get_lead_repository
from app.core.auth import verify_api_key
from app.core.errors import NotFoundAppError
from app.core.rate_limit import UNKNOWN_CLIENT_IP, get_client_ip
from app.schemas.lead import Lead, LeadCreate
from app.schemas.package import DeleteResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Leads"])


def _not_found(lead_id: str) -> NotFoundAppError:
    return NotFoundAppError(
        code="lead_not_found",
        message="Lead not found",
        details={"resource": "lead", "resource_id": lead_id},
    )


@router.post("/leads", response_model=Lead, status_code=status.HTTP_201_CREATED)
def create_lead(
    body: LeadCreate,
    request: Request,
    repo: AbstractLeadRepository = Depends(get_lead_repository),
) -> Lead:
    """Capture a website form submission.

    ``user_agent`` and ``ip`` fall back to the request headers when the
    client does not send them.
    """
    user_agent = body.user_agent or request.headers.get("user-agent")
    ip = body.ip
    if not ip:
        client_ip = get_client_ip(request)
        ip = None if client_ip == UNKNOWN_CLIENT_IP else client_ip

    lead = repo.create(kind=body.kind, payload=body.payload, user_agent=user_agent, ip=ip)
    logger.info("lead.created", extra={"lead_id": lead.id, "kind": lead.kind.value})
    return lead


@router.get("/leads", response_model=List[Lead], dependencies=[Depends(verify_api_key)])
def list_leads(repo: AbstractLeadRepository = Depends(get_lead_repository)) -> List[Lead]:
    return repo.list()


@router.get("/leads/{lead_id}", response_model=Lead, dependencies=[Depends(verify_api_key)])
def get_lead(lead_id: str, repo: AbstractLeadRepository = Depends(get_lead_repository)) -> Lead:
    lead = repo.get(lead_id)
    if lead is None:
        raise _not_found(lead_id)
    return lead


@router.delete(
    "/leads/{lead_id}",
    response_model=DeleteResponse,
    dependencies=[Depends(verify_api_key)],
)
def delete_lead(
    lead_id: str,
    repo: AbstractLeadRepository = Depends(get_lead_repository),
) -> DeleteResponse:
    if repo.delete(lead_id) is None:
        raise _not_found(lead_id)

    logger.info("lead.deleted", extra={"lead_id": lead_id})
    return DeleteResponse(success=True)
