"""
Domain records for children, access codes and parent accounts.

Identifiers are kept as strings; the Postgres store converts them to UUIDs
at the query boundary.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional


def utcnow() -> datetime:
    """Timezone-aware current time used for every persisted timestamp."""
    return datetime.now(timezone.utc)


@dataclass
class Child:
    """One enrolled child. ``parent_id`` stays None until linked."""
    id: str
    first_name: str
    last_name: str
    parent_email: str
    date_of_birth: Optional[date] = None
    group: Optional[str] = None
    parent_name: Optional[str] = None
    parent_id: Optional[str] = None
    parent_registered: bool = False
    parent_registered_at: Optional[datetime] = None
    access_code: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass
class AccessCode:
    """
    Bounded-use capability binding one child to a not-yet-registered parent.

    ``uses_left`` is authoritative; ``used`` mirrors ``uses_left == 0``.
    """
    code: str
    child_id: str
    parent_email: str
    expires_at: datetime
    parent_name: Optional[str] = None
    child_name: Optional[str] = None
    created_at: Optional[datetime] = None
    max_uses: int = 1
    uses_left: int = 1
    used: bool = False
    parent_id: Optional[str] = None
    used_at: Optional[datetime] = None
    note: Optional[str] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def is_active(self, now: datetime) -> bool:
        return self.uses_left > 0 and not self.is_expired(now)


@dataclass
class ParentUser:
    """An account as seen by the linking subsystem."""
    id: str
    email: Optional[str]
    display_name: str = ""
    role: str = "parent"
    password_hash: Optional[str] = None
    auth_provider: str = "local"
    access_code: Optional[str] = None
    linked_child_ids: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """User dict shape handed to route handlers (no password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "display_name": self.display_name,
            "role": self.role,
            "auth_provider": self.auth_provider,
            "access_code": self.access_code,
            "linked_child_ids": list(self.linked_child_ids),
            "created_at": self.created_at,
            "last_login_at": self.last_login_at,
        }
