"""
Child enrollment routes.

Staff enroll a child before the parent has an account; enrollment issues
the access code printed on the parent's slip.
"""

from datetime import timedelta
from fastapi import APIRouter, Depends, Request, status
from typing import List

from daycare.models.child import ChildCreate, ChildResponse
from daycare.models.access_code import AccessCodeCreate, AccessCodeResponse, ChildCreatedResponse
from daycare.auth.dependencies import get_linking_service, require_staff
from daycare.linking import LinkingError, LinkingService
from daycare.utils.audit_log import log_link_event
from daycare.utils.http_errors import http_error

router = APIRouter(prefix="/children", tags=["Children"])


@router.post("", response_model=ChildCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_child(
    child: ChildCreate,
    request: Request,
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    """
    Enroll a child and issue the parent's access code.

    Returns 503 when no unique code could be issued; the child record is
    kept and a code can be issued again from the child's page.
    """
    try:
        record, code = await service.create_child(
            first_name=child.first_name,
            last_name=child.last_name,
            parent_email=child.parent_email,
            parent_name=child.parent_name,
            date_of_birth=child.date_of_birth,
            group=child.group,
            max_uses=child.max_uses,
            ttl_days=child.expires_in_days
        )
    except LinkingError as e:
        log_link_event(
            event_type="issue_code",
            actor_id=current_user["id"],
            success=False,
            target_email=child.parent_email,
            request=request,
            details=e.message
        )
        raise http_error(e)

    log_link_event(
        event_type="issue_code",
        actor_id=current_user["id"],
        success=True,
        child_id=record.id,
        code=code.code,
        target_email=record.parent_email,
        request=request,
        details=f"max_uses={code.max_uses}"
    )
    return ChildCreatedResponse(
        child=ChildResponse.model_validate(record),
        access_code=AccessCodeResponse.model_validate(code)
    )


@router.get("", response_model=List[ChildResponse])
async def list_children(
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    """List every enrolled child by name."""
    children = await service.list_children()
    return [ChildResponse.model_validate(child) for child in children]


@router.get("/{child_id}", response_model=ChildResponse)
async def get_child(
    child_id: str,
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    try:
        child = await service.get_child(child_id)
    except LinkingError as e:
        raise http_error(e)
    return ChildResponse.model_validate(child)


@router.post(
    "/{child_id}/access-code",
    response_model=AccessCodeResponse,
    status_code=status.HTTP_201_CREATED
)
async def issue_access_code(
    child_id: str,
    options: AccessCodeCreate,
    request: Request,
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    """
    Issue a fresh access code for an enrolled child.

    Used when the first code expired or was lost. Earlier codes stay
    valid until they expire or are revoked.
    """
    try:
        child = await service.get_child(child_id)
        code = await service.issue_access_code(
            child.id,
            child.parent_email,
            child.parent_name,
            child.full_name,
            ttl=timedelta(days=options.expires_in_days),
            max_uses=options.max_uses,
            code=options.code,
            note=options.note
        )
    except LinkingError as e:
        log_link_event(
            event_type="issue_code",
            actor_id=current_user["id"],
            success=False,
            child_id=child_id,
            request=request,
            details=e.message
        )
        raise http_error(e)

    log_link_event(
        event_type="issue_code",
        actor_id=current_user["id"],
        success=True,
        child_id=child_id,
        code=code.code,
        target_email=code.parent_email,
        request=request
    )
    return AccessCodeResponse.model_validate(code)
