"""
JWT access tokens for portal sessions.

Tokens are HS256-signed and carry only the user id and role; everything
else is loaded from the user store on each request.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
import jwt
from jwt.exceptions import InvalidTokenError

# Configuration from environment
JWT_SECRET = os.getenv("JWT_SECRET", "your-secret-key-change-in-production")
JWT_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))


def create_access_token(user_id: str, role: str, additional_claims: Optional[Dict] = None) -> str:
    """
    Create a JWT access token.

    Args:
        user_id: The user's UUID as a string
        role: The user's role ('staff' or 'parent')
        additional_claims: Optional additional claims to include in the token

    Returns:
        Encoded JWT token string
    """
    issued_at = datetime.now(timezone.utc)

    payload = {
        "sub": user_id,
        "role": role,
        "type": "access",
        "exp": issued_at + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS),
        "iat": issued_at
    }

    if additional_claims:
        payload.update(additional_claims)

    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> Dict:
    """
    Decode and validate a JWT token.

    Raises:
        InvalidTokenError: If the token is invalid or expired
    """
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError as e:
        raise InvalidTokenError(f"Invalid token: {str(e)}")
