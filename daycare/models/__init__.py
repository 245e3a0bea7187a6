"""
Pydantic models for request/response validation.
"""

from .user import (
    RegisterRequest,
    UserLogin,
    GoogleAuthRequest,
    UserResponse,
    TokenResponse
)

from .child import (
    ChildCreate,
    ChildResponse,
    ParentChildResponse
)

from .access_code import (
    AccessCodeResponse,
    AccessCodePreview,
    AccessCodeCreate,
    ChildCreatedResponse,
    RedeemRequest,
    RedeemResponse
)

from .linking import (
    StrategyAttemptResponse,
    ResolvedChildrenResponse,
    RepairRequest,
    ChildMatchResponse,
    RepairResponse,
    LinkStateResponse
)

__all__ = [
    # User models
    "RegisterRequest",
    "UserLogin",
    "GoogleAuthRequest",
    "UserResponse",
    "TokenResponse",

    # Child models
    "ChildCreate",
    "ChildResponse",
    "ParentChildResponse",

    # Access code models
    "AccessCodeResponse",
    "AccessCodePreview",
    "AccessCodeCreate",
    "ChildCreatedResponse",
    "RedeemRequest",
    "RedeemResponse",

    # Linking models
    "StrategyAttemptResponse",
    "ResolvedChildrenResponse",
    "RepairRequest",
    "ChildMatchResponse",
    "RepairResponse",
    "LinkStateResponse"
]
