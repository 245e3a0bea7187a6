"""
Test utilities and helper functions.

Provides helper functions for creating test data and making authenticated requests.
"""

from datetime import timedelta
from typing import Dict, Optional

from httpx import AsyncClient

from daycare.auth import hash_password, create_access_token
from daycare.linking import LinkingService, utcnow


async def create_test_user(
    service: LinkingService,
    role: str,
    email: str,
    display_name: Optional[str] = None
) -> Dict:
    """
    Create a test user in the store.

    Args:
        service: Linking service backed by the test store
        role: User role ('staff' or 'parent')
        email: Email address
        display_name: Optional display name

    Returns:
        Dictionary with user data including password and token
    """
    password = f"{email.split('@')[0]}_password_123"

    if display_name is None:
        display_name = email.split("@")[0].title()

    user = await service.create_account(
        email=email,
        display_name=display_name,
        role=role,
        password_hash=hash_password(password)
    )

    return {
        **user.to_dict(),
        "password": password,
        "token": create_access_token(user.id, user.role)
    }


async def enroll_child(
    service: LinkingService,
    first_name: str,
    parent_email: str,
    last_name: str = "Smith",
    max_uses: int = 1
) -> Dict:
    """
    Enroll a child and issue an access code.

    Returns:
        Dictionary with the child id, name and code
    """
    child, code = await service.create_child(
        first_name=first_name,
        last_name=last_name,
        parent_email=parent_email,
        parent_name=f"Parent of {first_name}",
        max_uses=max_uses
    )
    return {"id": child.id, "name": child.full_name, "code": code.code}


async def expire_code(service: LinkingService, code: str) -> None:
    """Move a code's expiry into the past."""
    service.store.codes[code].expires_at = utcnow() - timedelta(minutes=1)


async def register_parent(
    client: AsyncClient,
    email: str,
    access_code: str,
    password: str = "parentpass123",
    display_name: str = "Registered Parent"
):
    """POST /auth/register and return the response."""
    return await client.post(
        "/auth/register",
        json={
            "email": email,
            "password": password,
            "display_name": display_name,
            "access_code": access_code
        }
    )


def auth_headers(token: str) -> Dict[str, str]:
    """
    Create authorization headers for API requests.

    Args:
        token: JWT access token

    Returns:
        Dictionary with Authorization header
    """
    return {"Authorization": f"Bearer {token}"}
