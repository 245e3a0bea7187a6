"""
Authentication module for the daycare portal.

This module provides:
- JWT access token generation and validation
- Password hashing and verification
- Google sign-in for parents
- FastAPI dependencies for route protection
"""

from .jwt import create_access_token, decode_token
from .password import hash_password, verify_password
from .oauth import get_google_auth_url, exchange_code_for_token, display_name_from_profile
from .dependencies import (
    get_current_user,
    get_linking_service,
    set_linking_service,
    require_role,
    require_staff,
    require_parent
)

__all__ = [
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
    "get_google_auth_url",
    "exchange_code_for_token",
    "display_name_from_profile",
    "get_current_user",
    "get_linking_service",
    "set_linking_service",
    "require_role",
    "require_staff",
    "require_parent",
]
