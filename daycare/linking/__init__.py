"""
Parent-child linking for the daycare portal.

Staff create a child record before the parent has an account. This package
issues the access code handed to the parent, redeems it at registration,
finds a parent's children even when redemption never happened, and repairs
links on operator request.
"""

from .errors import (
    LinkingError,
    CodeNotFound,
    CodeExpired,
    CodeExhausted,
    InvalidCode,
    IssuanceFailed,
    UserNotFound,
    ChildNotFound,
    PartialFailure,
    StrategyFailure
)
from .records import AccessCode, Child, ParentUser, utcnow
from .store import LinkStore
from .memory_store import InMemoryLinkStore
from .pg_store import PostgresLinkStore
from .codes import CodeIssuer, generate_code, normalize_code, assign_group
from .redemption import RedemptionService, RedemptionResult
from .resolver import ChildResolver, ParentIdentity, Resolution, Strategy, DEFAULT_STRATEGIES
from .repair import RepairService, RepairReport, ChildMatch
from .cache import ResolutionCache
from .service import LinkingService, CodePreview

__all__ = [
    # Errors
    "LinkingError",
    "CodeNotFound",
    "CodeExpired",
    "CodeExhausted",
    "InvalidCode",
    "IssuanceFailed",
    "UserNotFound",
    "ChildNotFound",
    "PartialFailure",
    "StrategyFailure",

    # Records and stores
    "AccessCode",
    "Child",
    "ParentUser",
    "utcnow",
    "LinkStore",
    "InMemoryLinkStore",
    "PostgresLinkStore",

    # Services
    "CodeIssuer",
    "generate_code",
    "normalize_code",
    "assign_group",
    "RedemptionService",
    "RedemptionResult",
    "ChildResolver",
    "ParentIdentity",
    "Resolution",
    "Strategy",
    "DEFAULT_STRATEGIES",
    "RepairService",
    "RepairReport",
    "ChildMatch",
    "ResolutionCache",
    "LinkingService",
    "CodePreview",
]
