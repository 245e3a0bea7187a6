"""
Authentication routes.

Provides endpoints for:
- Parent registration with an access code
- Email/password login
- Google OAuth sign-in
- Current user profile
"""

from fastapi import APIRouter, HTTPException, status, Depends, Request
from typing import Optional, Tuple
import secrets

from daycare.models.user import (
    RegisterRequest,
    UserLogin,
    GoogleAuthRequest,
    TokenResponse,
    UserResponse
)
from daycare.auth import (
    create_access_token,
    hash_password,
    verify_password,
    exchange_code_for_token,
    display_name_from_profile,
    get_current_user,
    get_linking_service
)
from daycare.auth.oauth import get_google_auth_url
from daycare.linking import LinkingError, LinkingService, ParentUser, utcnow
from daycare.utils.audit_log import log_auth_event, log_link_event
from daycare.utils.http_errors import http_error

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_response(
    user: ParentUser,
    linked_child_id: Optional[str] = None,
    link_error: Optional[str] = None
) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.role),
        token_type="bearer",
        user=UserResponse.model_validate(user),
        linked_child_id=linked_child_id,
        link_error=link_error
    )


async def _redeem_for_new_account(
    service: LinkingService,
    user: ParentUser,
    code: str,
    request: Request
) -> Tuple[ParentUser, Optional[str], Optional[str]]:
    """
    Redeem a code for an account that already exists.

    The account is kept when redemption fails; the failure is reported back
    so the parent can retry the code from the dashboard.
    """
    try:
        result = await service.redeem_access_code(code, user.id)
    except LinkingError as e:
        log_link_event(
            event_type="redeem_code",
            actor_id=user.id,
            success=False,
            code=code,
            target_email=user.email,
            request=request,
            details=e.message
        )
        return user, None, e.message

    log_link_event(
        event_type="redeem_code",
        actor_id=user.id,
        success=True,
        child_id=result.child_id,
        code=code,
        target_email=user.email,
        request=request,
        details=f"uses_left={result.uses_left} linked={result.linked}"
    )
    refreshed = await service.store.get_user(user.id)
    return refreshed or user, result.child_id, None


@router.get("/google/url")
async def get_google_oauth_url():
    """
    Get the Google OAuth authorization URL.

    Includes a random state parameter for CSRF protection.
    """
    state = secrets.token_urlsafe(32)
    return {"url": get_google_auth_url(state=state)}


@router.post("/google", response_model=TokenResponse)
async def google_auth(
    auth_request: GoogleAuthRequest,
    request: Request,
    service: LinkingService = Depends(get_linking_service)
):
    """
    Authenticate with Google OAuth.

    Creates a parent account with no links if the email is new. Children
    enrolled under that email are still found by the dashboard resolver.
    """
    try:
        user_info = await exchange_code_for_token(auth_request.code)
    except Exception as e:
        log_auth_event(
            event_type="google_login",
            user_id=None,
            email=None,
            success=False,
            request=request,
            details=str(e)
        )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Google authentication failed"
        )

    email = user_info.get("email")
    if not email:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email not provided by Google"
        )

    user = await service.store.find_user_by_email(email.strip().lower())
    if user:
        await service.store.touch_login(user.id, utcnow())
    else:
        user = await service.create_account(
            email=email,
            display_name=display_name_from_profile(user_info),
            role="parent",
            auth_provider="google",
            access_code=auth_request.access_code
        )

    linked_child_id = None
    link_error = None
    if auth_request.access_code and user.role == "parent":
        user, linked_child_id, link_error = await _redeem_for_new_account(
            service, user, auth_request.access_code, request
        )

    log_auth_event(
        event_type="google_login",
        user_id=user.id,
        email=user.email,
        success=True,
        request=request
    )
    return _token_response(user, linked_child_id, link_error)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_request: UserLogin,
    request: Request,
    service: LinkingService = Depends(get_linking_service)
):
    """Authenticate with email and password."""
    email = login_request.email.strip().lower()
    user = await service.store.find_user_by_email(email)

    if not user or user.auth_provider != "local" or not verify_password(
        login_request.password, user.password_hash or ""
    ):
        log_auth_event(
            event_type="login",
            user_id=user.id if user else None,
            email=email,
            success=False,
            request=request,
            details="User not found" if not user else "Invalid password"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    now = utcnow()
    await service.store.touch_login(user.id, now)
    user.last_login_at = now

    log_auth_event(
        event_type="login",
        user_id=user.id,
        email=user.email,
        success=True,
        request=request
    )
    return _token_response(user)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register_with_access_code(
    register_request: RegisterRequest,
    request: Request,
    service: LinkingService = Depends(get_linking_service)
):
    """
    Register a parent account using an access code.

    The code is checked before the account is created so a mistyped code
    does not leave an orphaned account behind. The redemption itself runs
    after the account exists; if it loses a race for the last use the
    account is kept and ``link_error`` explains why.
    """
    try:
        await service.check_access_code(register_request.access_code)
    except LinkingError as e:
        log_auth_event(
            event_type="register",
            user_id=None,
            email=register_request.email,
            success=False,
            request=request,
            details=e.message
        )
        raise http_error(e)

    existing = await service.store.find_user_by_email(register_request.email)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    user = await service.create_account(
        email=register_request.email,
        display_name=register_request.display_name,
        role="parent",
        password_hash=hash_password(register_request.password),
        auth_provider="local",
        access_code=register_request.access_code
    )

    user, linked_child_id, link_error = await _redeem_for_new_account(
        service, user, register_request.access_code, request
    )

    log_auth_event(
        event_type="register",
        user_id=user.id,
        email=user.email,
        success=True,
        request=request,
        details=f"linked_child_id={linked_child_id}" if linked_child_id else link_error
    )
    return _token_response(user, linked_child_id, link_error)


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(current_user: dict = Depends(get_current_user)):
    """Get the current user's profile."""
    return UserResponse(**current_user)
