"""
Storage interface for access codes, children and parent accounts.

Implementations must provide two atomic primitives the services rely on:

- ``insert_code`` is insert-if-absent on the code primary key.
- ``consume_code_use`` decrements ``uses_left`` only while the stored value
  is still positive (compare-and-swap), never from a value read earlier.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from .records import AccessCode, Child, ParentUser


class LinkStore(ABC):
    """Abstract durable store used by the issuer, redemption, resolver and repair."""

    # Code store

    @abstractmethod
    async def code_exists(self, code: str) -> bool:
        pass

    @abstractmethod
    async def insert_code(self, record: AccessCode) -> bool:
        """
        Insert an access code unless the key is already taken.

        Returns:
            True if inserted, False if a record with the same code exists
        """
        pass

    @abstractmethod
    async def get_code(self, code: str) -> Optional[AccessCode]:
        pass

    @abstractmethod
    async def consume_code_use(self, code: str, user_id: str, now: datetime) -> Optional[AccessCode]:
        """
        Conditionally take one use of a code.

        Decrements ``uses_left`` if and only if the stored value is > 0 at
        write time, sets ``used`` when it reaches zero and records the
        redeeming user.

        Returns:
            The updated record, or None if no use was left
        """
        pass

    @abstractmethod
    async def find_codes_by_parent_email(self, email: str) -> List[AccessCode]:
        pass

    @abstractmethod
    async def mark_code_used(self, code: str, user_id: str, now: datetime) -> bool:
        """
        Force a code to ``used = true, uses_left = 0``.

        An existing ``parent_id``/``used_at`` is kept so the call is idempotent.

        Returns:
            False if the code does not exist
        """
        pass

    @abstractmethod
    async def list_codes(self, active_only: bool = False) -> List[AccessCode]:
        pass

    @abstractmethod
    async def delete_code(self, code: str) -> bool:
        pass

    # Child store

    @abstractmethod
    async def create_child(self, child: Child) -> Child:
        pass

    @abstractmethod
    async def get_child(self, child_id: str) -> Optional[Child]:
        pass

    @abstractmethod
    async def list_children(self) -> List[Child]:
        pass

    @abstractmethod
    async def set_child_access_code(self, child_id: str, code: str) -> None:
        pass

    @abstractmethod
    async def find_children_by_parent_id(self, user_id: str) -> List[Child]:
        pass

    @abstractmethod
    async def find_children_by_parent_email(self, email: str) -> List[Child]:
        """Exact, case-sensitive match on ``parent_email``."""
        pass

    @abstractmethod
    async def find_children_by_access_code(self, code: str) -> List[Child]:
        pass

    @abstractmethod
    async def link_child(
        self,
        child_id: str,
        user_id: str,
        now: datetime,
        overwrite: bool = False
    ) -> Optional[Child]:
        """
        Point a child at a parent account.

        Sets ``parent_id``, ``parent_registered`` and ``parent_registered_at``.
        The timestamp is preserved when the child already belongs to the same
        user. With ``overwrite=False`` a child linked to a different user is
        left untouched.

        Returns:
            The child as stored after the call, or None if it does not exist
        """
        pass

    # User store

    @abstractmethod
    async def create_user(self, user: ParentUser) -> ParentUser:
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[ParentUser]:
        pass

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[ParentUser]:
        """Exact match on ``email``."""
        pass

    @abstractmethod
    async def list_users(self) -> List[ParentUser]:
        pass

    @abstractmethod
    async def add_linked_child(self, user_id: str, child_id: str, access_code: Optional[str] = None) -> None:
        """Append ``child_id`` to ``linked_child_ids`` (no duplicates) and remember the code."""
        pass

    @abstractmethod
    async def set_linked_children(self, user_id: str, child_ids: List[str]) -> None:
        pass

    @abstractmethod
    async def touch_login(self, user_id: str, now: datetime) -> None:
        pass
