"""
Parent-specific routes.

Provides endpoints for parents to:
- View the children on their dashboard
- Redeem an access code after signup
"""

from fastapi import APIRouter, Depends, Request

from daycare.models.access_code import RedeemRequest, RedeemResponse
from daycare.models.child import ParentChildResponse
from daycare.models.linking import ResolvedChildrenResponse, StrategyAttemptResponse
from daycare.auth.dependencies import get_linking_service, require_parent
from daycare.linking import LinkingError, LinkingService
from daycare.utils.audit_log import log_link_event
from daycare.utils.http_errors import http_error

router = APIRouter(prefix="/me", tags=["Parent"])


@router.get("/children", response_model=ResolvedChildrenResponse)
async def get_my_children(
    current_user: dict = Depends(require_parent()),
    service: LinkingService = Depends(get_linking_service)
):
    """
    Get the children shown on the parent dashboard.

    Strategies run in order until one finds children; the response carries
    every strategy tried and any lookup errors so support can see why a
    dashboard came back empty.
    """
    resolution = await service.resolve_children_for_user(
        current_user["id"], current_user["email"]
    )

    return ResolvedChildrenResponse(
        children=[ParentChildResponse.model_validate(child) for child in resolution.children],
        strategies_tried=[
            StrategyAttemptResponse(
                name=attempt.name,
                found=attempt.found,
                child_ids=attempt.child_ids,
                error=attempt.error
            )
            for attempt in resolution.strategies_tried
        ],
        errors=[str(error) for error in resolution.errors],
        matched_by=resolution.matched_by,
        ambiguous=resolution.ambiguous
    )


@router.post("/access-code", response_model=RedeemResponse)
async def redeem_access_code(
    redeem: RedeemRequest,
    request: Request,
    current_user: dict = Depends(require_parent()),
    service: LinkingService = Depends(get_linking_service)
):
    """Redeem an access code for the signed-in parent."""
    try:
        result = await service.redeem_access_code(redeem.code, current_user["id"])
    except LinkingError as e:
        log_link_event(
            event_type="redeem_code",
            actor_id=current_user["id"],
            success=False,
            code=redeem.code.strip().upper(),
            target_email=current_user["email"],
            request=request,
            details=e.message
        )
        raise http_error(e)

    log_link_event(
        event_type="redeem_code",
        actor_id=current_user["id"],
        success=True,
        child_id=result.child_id,
        code=result.code,
        target_email=current_user["email"],
        request=request,
        details=f"uses_left={result.uses_left} linked={result.linked}"
    )
    return RedeemResponse(
        child_id=result.child_id,
        uses_left=result.uses_left,
        linked=result.linked
    )
