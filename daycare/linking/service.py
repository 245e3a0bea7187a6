"""
Entry points collaborators call into.

Wires the issuer, redemption, resolver and repair services to one store
and one resolution cache, so every write invalidates what the dashboard
would otherwise serve from memory.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from .cache import ResolutionCache
from .codes import ACCESS_CODE_TTL_DAYS, CodeIssuer, assign_group, normalize_code, normalize_email
from .errors import ChildNotFound, CodeNotFound
from .records import AccessCode, Child, ParentUser, utcnow
from .redemption import RedemptionResult, RedemptionService
from .repair import RepairReport, RepairService
from .resolver import ChildResolver, ParentIdentity, Resolution
from .store import LinkStore

logger = logging.getLogger(__name__)


@dataclass
class CodePreview:
    """What an unauthenticated visitor may learn about a code."""
    code: str
    child_name: Optional[str]
    expires_at: datetime
    is_valid: bool


class LinkingService:
    """Facade over the linking subsystem."""

    def __init__(
        self,
        store: LinkStore,
        cache: Optional[ResolutionCache] = None,
        issuer: Optional[CodeIssuer] = None,
        resolver: Optional[ChildResolver] = None
    ):
        self.store = store
        self.cache = cache if cache is not None else ResolutionCache()
        self.issuer = issuer or CodeIssuer(store)
        self.redemption = RedemptionService(store, on_write=self.cache.invalidate)
        self.resolver = resolver or ChildResolver(store)
        self.repairer = RepairService(store, on_write=self.cache.invalidate)

    async def create_child(
        self,
        first_name: str,
        last_name: str,
        parent_email: str,
        parent_name: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        group: Optional[str] = None,
        max_uses: int = 1,
        ttl_days: int = ACCESS_CODE_TTL_DAYS
    ) -> Tuple[Child, AccessCode]:
        """
        Enroll a child and issue the parent's access code.

        The child is created unlinked; the code is stamped on it by the issuer.
        """
        now = utcnow()
        child = await self.store.create_child(Child(
            id=str(uuid.uuid4()),
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            parent_email=normalize_email(parent_email),
            parent_name=parent_name.strip() if parent_name else None,
            date_of_birth=date_of_birth,
            group=group or assign_group(date_of_birth),
            created_at=now,
            updated_at=now
        ))

        record = await self.issue_access_code(
            child.id,
            child.parent_email,
            child.parent_name,
            child.full_name,
            ttl=timedelta(days=ttl_days),
            max_uses=max_uses
        )
        child.access_code = record.code
        return child, record

    async def issue_access_code(
        self,
        child_id: str,
        parent_email: str,
        parent_name: Optional[str],
        child_name: Optional[str],
        **options
    ) -> AccessCode:
        record = await self.issuer.issue(child_id, parent_email, parent_name, child_name, **options)
        # A new code can change what the fallback strategies find for anyone
        self.cache.invalidate()
        return record

    async def redeem_access_code(self, code: str, user_id: str) -> RedemptionResult:
        return await self.redemption.redeem(code, user_id)

    async def check_access_code(self, code: str) -> AccessCode:
        """Validate a code for signup without consuming it."""
        return await self.redemption.validate(code)

    async def create_account(
        self,
        email: Optional[str],
        display_name: str,
        role: str = "parent",
        password_hash: Optional[str] = None,
        auth_provider: str = "local",
        access_code: Optional[str] = None
    ) -> ParentUser:
        now = utcnow()
        return await self.store.create_user(ParentUser(
            id=str(uuid.uuid4()),
            email=normalize_email(email) if email else None,
            display_name=display_name.strip(),
            role=role,
            password_hash=password_hash,
            auth_provider=auth_provider,
            access_code=normalize_code(access_code) if access_code else None,
            created_at=now,
            last_login_at=now
        ))

    async def resolve_children_for_user(self, user_id: str, user_email: Optional[str]) -> Resolution:
        cached = self.cache.get(user_id, user_email)
        if cached is not None:
            return cached

        resolution = await self.resolver.resolve(ParentIdentity(id=user_id, email=user_email))
        self.cache.put(user_id, user_email, resolution)
        return resolution

    async def repair_parent_link(self, parent_email: str) -> RepairReport:
        return await self.repairer.repair(parent_email)

    async def get_child(self, child_id: str) -> Child:
        try:
            child = await self.store.get_child(child_id)
        except ValueError:
            # Not a valid id for the store
            child = None
        if child is None:
            raise ChildNotFound(child_id)
        return child

    async def list_children(self) -> List[Child]:
        return await self.store.list_children()

    async def preview_code(self, code: str) -> CodePreview:
        code = normalize_code(code)
        record = await self.store.get_code(code)
        if record is None:
            raise CodeNotFound(code)
        return CodePreview(
            code=record.code,
            child_name=record.child_name,
            expires_at=record.expires_at,
            is_valid=record.is_active(utcnow())
        )

    async def list_access_codes(self, active_only: bool = True) -> List[AccessCode]:
        return await self.store.list_codes(active_only=active_only)

    async def revoke_access_code(self, code: str) -> None:
        code = normalize_code(code)
        if not await self.store.delete_code(code):
            raise CodeNotFound(code)
        # Removing a code can change what the fallback strategies find
        self.cache.invalidate()
        logger.info(f"Revoked access code {code}")

    async def link_state(self) -> Dict[str, list]:
        """Snapshot of every user, child and code, for link debugging."""
        return {
            "users": await self.store.list_users(),
            "children": await self.store.list_children(),
            "access_codes": await self.store.list_codes(),
        }
