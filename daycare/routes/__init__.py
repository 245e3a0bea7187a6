"""
API route modules.
"""

from .auth import router as auth_router
from .parent import router as parent_router
from .children import router as children_router
from .access_codes import router as access_codes_router
from .admin import router as admin_router

__all__ = [
    "auth_router",
    "parent_router",
    "children_router",
    "access_codes_router",
    "admin_router"
]
