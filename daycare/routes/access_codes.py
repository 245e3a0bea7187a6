"""
Access code routes.

Staff list and revoke codes; anyone holding a code can preview it before
signing up.
"""

from fastapi import APIRouter, Depends, Query, Request, status
from typing import List

from daycare.models.access_code import AccessCodePreview, AccessCodeResponse
from daycare.auth.dependencies import get_linking_service, require_staff
from daycare.linking import LinkingError, LinkingService
from daycare.utils.audit_log import log_link_event
from daycare.utils.http_errors import http_error

router = APIRouter(prefix="/access-codes", tags=["Access Codes"])


@router.get("", response_model=List[AccessCodeResponse])
async def list_access_codes(
    active_only: bool = Query(True, description="Only codes with uses left"),
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    """List access codes, newest first."""
    codes = await service.list_access_codes(active_only=active_only)
    return [AccessCodeResponse.model_validate(code) for code in codes]


@router.get("/{code}", response_model=AccessCodePreview)
async def preview_access_code(
    code: str,
    service: LinkingService = Depends(get_linking_service)
):
    """
    Preview an access code (public endpoint).

    Shows the child's name and whether the code can still be redeemed,
    without consuming a use.
    """
    try:
        preview = await service.preview_code(code)
    except LinkingError as e:
        raise http_error(e)
    return AccessCodePreview.model_validate(preview)


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_access_code(
    code: str,
    request: Request,
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    """Delete an access code so it can no longer be redeemed."""
    try:
        await service.revoke_access_code(code)
    except LinkingError as e:
        raise http_error(e)

    log_link_event(
        event_type="revoke_code",
        actor_id=current_user["id"],
        success=True,
        code=code.strip().upper(),
        request=request
    )
