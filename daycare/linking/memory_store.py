"""
In-process implementation of LinkStore.

Used for local development and the test suite. Every operation yields to
the event loop once before touching state, the way a network round trip
would, so concurrent coroutines genuinely interleave between a read and a
later conditional write.
"""

import asyncio
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from .records import AccessCode, Child, ParentUser
from .store import LinkStore


class InMemoryLinkStore(LinkStore):
    """Dict-backed store. Conditional writes run under a single lock."""

    def __init__(self):
        self.codes: Dict[str, AccessCode] = {}
        self.children: Dict[str, Child] = {}
        self.users: Dict[str, ParentUser] = {}
        self._lock = asyncio.Lock()

    async def _hop(self):
        await asyncio.sleep(0)

    # Code store

    async def code_exists(self, code: str) -> bool:
        await self._hop()
        return code in self.codes

    async def insert_code(self, record: AccessCode) -> bool:
        await self._hop()
        async with self._lock:
            if record.code in self.codes:
                return False
            self.codes[record.code] = replace(record)
            return True

    async def get_code(self, code: str) -> Optional[AccessCode]:
        await self._hop()
        record = self.codes.get(code)
        return replace(record) if record else None

    async def consume_code_use(self, code: str, user_id: str, now: datetime) -> Optional[AccessCode]:
        await self._hop()
        async with self._lock:
            record = self.codes.get(code)
            if record is None or record.uses_left <= 0:
                return None
            record.uses_left -= 1
            record.used = record.uses_left == 0
            record.parent_id = user_id
            record.used_at = now
            return replace(record)

    async def find_codes_by_parent_email(self, email: str) -> List[AccessCode]:
        await self._hop()
        return [replace(c) for c in self.codes.values() if c.parent_email == email]

    async def mark_code_used(self, code: str, user_id: str, now: datetime) -> bool:
        await self._hop()
        async with self._lock:
            record = self.codes.get(code)
            if record is None:
                return False
            record.used = True
            record.uses_left = 0
            record.parent_id = record.parent_id or user_id
            record.used_at = record.used_at or now
            return True

    async def list_codes(self, active_only: bool = False) -> List[AccessCode]:
        await self._hop()
        codes = sorted(self.codes.values(), key=lambda c: c.created_at or c.expires_at, reverse=True)
        if active_only:
            codes = [c for c in codes if c.uses_left > 0]
        return [replace(c) for c in codes]

    async def delete_code(self, code: str) -> bool:
        await self._hop()
        return self.codes.pop(code, None) is not None

    # Child store

    async def create_child(self, child: Child) -> Child:
        await self._hop()
        self.children[child.id] = replace(child)
        return replace(child)

    async def get_child(self, child_id: str) -> Optional[Child]:
        await self._hop()
        child = self.children.get(child_id)
        return replace(child) if child else None

    async def list_children(self) -> List[Child]:
        await self._hop()
        children = sorted(self.children.values(), key=lambda c: (c.last_name, c.first_name))
        return [replace(c) for c in children]

    async def set_child_access_code(self, child_id: str, code: str) -> None:
        await self._hop()
        child = self.children.get(child_id)
        if child is not None:
            child.access_code = code

    async def find_children_by_parent_id(self, user_id: str) -> List[Child]:
        await self._hop()
        return [replace(c) for c in self.children.values() if c.parent_id == user_id]

    async def find_children_by_parent_email(self, email: str) -> List[Child]:
        await self._hop()
        return [replace(c) for c in self.children.values() if c.parent_email == email]

    async def find_children_by_access_code(self, code: str) -> List[Child]:
        await self._hop()
        return [replace(c) for c in self.children.values() if c.access_code == code]

    async def link_child(
        self,
        child_id: str,
        user_id: str,
        now: datetime,
        overwrite: bool = False
    ) -> Optional[Child]:
        await self._hop()
        async with self._lock:
            child = self.children.get(child_id)
            if child is None:
                return None
            if child.parent_id not in (None, user_id) and not overwrite:
                return replace(child)
            if child.parent_id != user_id or child.parent_registered_at is None:
                child.parent_registered_at = now
                child.updated_at = now
            child.parent_id = user_id
            child.parent_registered = True
            return replace(child)

    # User store

    async def create_user(self, user: ParentUser) -> ParentUser:
        await self._hop()
        self.users[user.id] = replace(user, linked_child_ids=list(user.linked_child_ids))
        return replace(user)

    async def get_user(self, user_id: str) -> Optional[ParentUser]:
        await self._hop()
        user = self.users.get(user_id)
        return replace(user, linked_child_ids=list(user.linked_child_ids)) if user else None

    async def find_user_by_email(self, email: str) -> Optional[ParentUser]:
        await self._hop()
        for user in self.users.values():
            if user.email == email:
                return replace(user, linked_child_ids=list(user.linked_child_ids))
        return None

    async def list_users(self) -> List[ParentUser]:
        await self._hop()
        return [replace(u, linked_child_ids=list(u.linked_child_ids)) for u in self.users.values()]

    async def add_linked_child(self, user_id: str, child_id: str, access_code: Optional[str] = None) -> None:
        await self._hop()
        user = self.users.get(user_id)
        if user is None:
            raise KeyError(f"user {user_id} not found")
        if child_id not in user.linked_child_ids:
            user.linked_child_ids.append(child_id)
        if access_code:
            user.access_code = access_code

    async def set_linked_children(self, user_id: str, child_ids: List[str]) -> None:
        await self._hop()
        user = self.users.get(user_id)
        if user is None:
            raise KeyError(f"user {user_id} not found")
        user.linked_child_ids = list(child_ids)

    async def touch_login(self, user_id: str, now: datetime) -> None:
        await self._hop()
        user = self.users.get(user_id)
        if user is not None:
            user.last_login_at = now
