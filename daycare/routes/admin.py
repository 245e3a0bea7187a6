"""
Admin routes for diagnosing and repairing parent links.
"""

from fastapi import APIRouter, Depends, Request

from daycare.models.access_code import AccessCodeResponse
from daycare.models.child import ChildResponse
from daycare.models.linking import (
    ChildMatchResponse,
    LinkStateResponse,
    RepairRequest,
    RepairResponse
)
from daycare.models.user import UserResponse
from daycare.auth.dependencies import get_linking_service, require_staff
from daycare.linking import LinkingError, LinkingService
from daycare.utils.audit_log import log_link_event
from daycare.utils.http_errors import http_error

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/repair-link", response_model=RepairResponse)
async def repair_parent_link(
    repair: RepairRequest,
    request: Request,
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    """
    Re-link a parent account to every child enrolled under its email or
    access code.

    Per-child failures are reported in the response rather than failing
    the whole request. Running it twice leaves the same state.
    """
    # Stored emails are fully lower-cased
    parent_email = repair.parent_email.lower()
    try:
        report = await service.repair_parent_link(parent_email)
    except LinkingError as e:
        log_link_event(
            event_type="repair_link",
            actor_id=current_user["id"],
            success=False,
            target_email=parent_email,
            request=request,
            details=e.message
        )
        raise http_error(e)

    log_link_event(
        event_type="repair_link",
        actor_id=current_user["id"],
        success=not report.errors,
        target_email=report.email,
        request=request,
        details=(
            f"matched={len(report.matches)} linked={len(report.linked_child_ids)} "
            f"code={report.code_update} errors={len(report.errors)}"
        )
    )

    return RepairResponse(
        user_id=report.user_id,
        email=report.email,
        matched_child_ids=report.matched_child_ids,
        matches=[
            ChildMatchResponse(
                child_id=match.child_id,
                child_name=match.child_name,
                email_match=match.email_match,
                code_match=match.code_match,
                previous_parent_id=match.previous_parent_id,
                linked=match.linked,
                error=match.error
            )
            for match in report.matches
        ],
        linked_child_ids=report.linked_child_ids,
        linked_children_updated=report.linked_children_updated,
        code_update=report.code_update,
        ambiguous=report.ambiguous,
        errors=report.errors
    )


@router.get("/link-state", response_model=LinkStateResponse)
async def get_link_state(
    current_user: dict = Depends(require_staff()),
    service: LinkingService = Depends(get_linking_service)
):
    """Snapshot of every account, child and access code."""
    state = await service.link_state()
    return LinkStateResponse(
        users=[UserResponse.model_validate(user) for user in state["users"]],
        children=[ChildResponse.model_validate(child) for child in state["children"]],
        access_codes=[AccessCodeResponse.model_validate(code) for code in state["access_codes"]]
    )
