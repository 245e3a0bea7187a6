"""
FastAPI dependencies for authentication and authorization.

The linking service is installed once at startup (``set_linking_service``)
and handed to routes through ``get_linking_service``, so tests can swap in
an in-memory store with ``app.dependency_overrides``.
"""

from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jwt.exceptions import InvalidTokenError

from daycare.linking import LinkingService
from .jwt import decode_token

# Installed by the application lifespan
linking_service: Optional[LinkingService] = None


def set_linking_service(service: Optional[LinkingService]):
    """Set the global linking service used by route dependencies."""
    global linking_service
    linking_service = service


def get_linking_service() -> LinkingService:
    if linking_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized"
        )
    return linking_service


# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: LinkingService = Depends(get_linking_service)
) -> dict:
    """
    Get the current authenticated user.

    Returns:
        User dictionary (id, email, role, display_name, linked_child_ids, ...)

    Raises:
        HTTPException: 401 if not authenticated
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_token(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user = await service.store.get_user(payload["sub"])
    except ValueError:
        # Subject is not a UUID
        user = None

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user.to_dict()


def require_role(required_role: str):
    """
    Create a dependency that requires a specific role.

    Args:
        required_role: 'staff' or 'parent'
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        if current_user["role"] != required_role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires {required_role} role"
            )
        return current_user

    return role_checker


def require_staff():
    """Shorthand dependency for daycare staff (admin screens, repair)."""
    return require_role("staff")


def require_parent():
    """Shorthand dependency for parent accounts."""
    return require_role("parent")
