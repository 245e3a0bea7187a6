"""
PostgreSQL implementation of LinkStore on an asyncpg pool.

Every query carries a request-level timeout. Uniqueness of access codes is
enforced by the primary key (``ON CONFLICT DO NOTHING``), and use
consumption is a single conditional ``UPDATE ... WHERE uses_left > 0``.
"""

import os
import uuid
from datetime import datetime
from typing import List, Optional

import asyncpg

from .records import AccessCode, Child, ParentUser
from .store import LinkStore

STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "5"))

CHILD_COLUMNS = """
    id, first_name, last_name, date_of_birth, group_name, parent_id,
    parent_email, parent_name, parent_registered, parent_registered_at,
    access_code, created_at, updated_at
"""

CODE_COLUMNS = """
    code, child_id, parent_email, parent_name, child_name, created_at,
    expires_at, max_uses, uses_left, used, parent_id, used_at, note
"""

USER_COLUMNS = """
    id, email, display_name, role, password_hash, auth_provider,
    access_code, linked_child_ids, created_at, last_login_at
"""

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        email TEXT UNIQUE,
        display_name TEXT NOT NULL DEFAULT '',
        role TEXT NOT NULL CHECK (role IN ('staff', 'parent')),
        password_hash TEXT,
        auth_provider TEXT DEFAULT 'local',
        access_code TEXT,
        linked_child_ids UUID[] NOT NULL DEFAULT '{}',
        created_at TIMESTAMPTZ DEFAULT NOW(),
        last_login_at TIMESTAMPTZ
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS children (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        first_name TEXT NOT NULL,
        last_name TEXT NOT NULL,
        date_of_birth DATE,
        group_name TEXT,
        parent_id UUID REFERENCES users(id) ON DELETE SET NULL,
        parent_email TEXT NOT NULL,
        parent_name TEXT,
        parent_registered BOOLEAN NOT NULL DEFAULT FALSE,
        parent_registered_at TIMESTAMPTZ,
        access_code TEXT,
        created_at TIMESTAMPTZ DEFAULT NOW(),
        updated_at TIMESTAMPTZ DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS access_codes (
        code TEXT PRIMARY KEY,
        child_id UUID NOT NULL REFERENCES children(id) ON DELETE CASCADE,
        parent_email TEXT NOT NULL,
        parent_name TEXT,
        child_name TEXT,
        created_at TIMESTAMPTZ DEFAULT NOW(),
        expires_at TIMESTAMPTZ NOT NULL,
        max_uses INTEGER NOT NULL DEFAULT 1,
        uses_left INTEGER NOT NULL DEFAULT 1,
        used BOOLEAN NOT NULL DEFAULT FALSE,
        parent_id UUID REFERENCES users(id) ON DELETE SET NULL,
        used_at TIMESTAMPTZ,
        note TEXT,
        CONSTRAINT uses_left_in_range CHECK (uses_left >= 0 AND uses_left <= max_uses)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_children_parent_id ON children(parent_id)",
    "CREATE INDEX IF NOT EXISTS idx_children_parent_email ON children(parent_email)",
    "CREATE INDEX IF NOT EXISTS idx_children_access_code ON children(access_code)",
    "CREATE INDEX IF NOT EXISTS idx_access_codes_parent_email ON access_codes(parent_email)",
]


def _uuid(value: Optional[str]) -> Optional[uuid.UUID]:
    return uuid.UUID(value) if value else None


def _str(value) -> Optional[str]:
    return str(value) if value is not None else None


def _child(row) -> Child:
    return Child(
        id=str(row["id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        date_of_birth=row["date_of_birth"],
        group=row["group_name"],
        parent_id=_str(row["parent_id"]),
        parent_email=row["parent_email"],
        parent_name=row["parent_name"],
        parent_registered=row["parent_registered"],
        parent_registered_at=row["parent_registered_at"],
        access_code=row["access_code"],
        created_at=row["created_at"],
        updated_at=row["updated_at"]
    )


def _code(row) -> AccessCode:
    return AccessCode(
        code=row["code"],
        child_id=str(row["child_id"]),
        parent_email=row["parent_email"],
        parent_name=row["parent_name"],
        child_name=row["child_name"],
        created_at=row["created_at"],
        expires_at=row["expires_at"],
        max_uses=row["max_uses"],
        uses_left=row["uses_left"],
        used=row["used"],
        parent_id=_str(row["parent_id"]),
        used_at=row["used_at"],
        note=row["note"]
    )


def _user(row) -> ParentUser:
    return ParentUser(
        id=str(row["id"]),
        email=row["email"],
        display_name=row["display_name"],
        role=row["role"],
        password_hash=row["password_hash"],
        auth_provider=row["auth_provider"],
        access_code=row["access_code"],
        linked_child_ids=[str(cid) for cid in (row["linked_child_ids"] or [])],
        created_at=row["created_at"],
        last_login_at=row["last_login_at"]
    )


class PostgresLinkStore(LinkStore):
    """LinkStore backed by the application's asyncpg pool."""

    def __init__(self, pool: asyncpg.Pool, timeout: float = STORE_TIMEOUT_SECONDS):
        self.pool = pool
        self.timeout = timeout

    async def init_schema(self):
        """Create tables and indexes if they don't exist."""
        async with self.pool.acquire() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)

    async def _fetch(self, query: str, *args):
        async with self.pool.acquire(timeout=self.timeout) as conn:
            return await conn.fetch(query, *args, timeout=self.timeout)

    async def _fetchrow(self, query: str, *args):
        async with self.pool.acquire(timeout=self.timeout) as conn:
            return await conn.fetchrow(query, *args, timeout=self.timeout)

    async def _execute(self, query: str, *args) -> str:
        async with self.pool.acquire(timeout=self.timeout) as conn:
            return await conn.execute(query, *args, timeout=self.timeout)

    # Code store

    async def code_exists(self, code: str) -> bool:
        async with self.pool.acquire(timeout=self.timeout) as conn:
            return await conn.fetchval(
                "SELECT EXISTS(SELECT 1 FROM access_codes WHERE code = $1)",
                code,
                timeout=self.timeout
            )

    async def insert_code(self, record: AccessCode) -> bool:
        row = await self._fetchrow(
            """
            INSERT INTO access_codes (code, child_id, parent_email, parent_name,
                                      child_name, created_at, expires_at, max_uses,
                                      uses_left, used, note)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
            ON CONFLICT (code) DO NOTHING
            RETURNING code
            """,
            record.code,
            uuid.UUID(record.child_id),
            record.parent_email,
            record.parent_name,
            record.child_name,
            record.created_at,
            record.expires_at,
            record.max_uses,
            record.uses_left,
            record.used,
            record.note
        )
        return row is not None

    async def get_code(self, code: str) -> Optional[AccessCode]:
        row = await self._fetchrow(
            f"SELECT {CODE_COLUMNS} FROM access_codes WHERE code = $1",
            code
        )
        return _code(row) if row else None

    async def consume_code_use(self, code: str, user_id: str, now: datetime) -> Optional[AccessCode]:
        row = await self._fetchrow(
            f"""
            UPDATE access_codes
            SET uses_left = uses_left - 1,
                used = (uses_left - 1 = 0),
                parent_id = $2,
                used_at = $3
            WHERE code = $1 AND uses_left > 0
            RETURNING {CODE_COLUMNS}
            """,
            code, uuid.UUID(user_id), now
        )
        return _code(row) if row else None

    async def find_codes_by_parent_email(self, email: str) -> List[AccessCode]:
        rows = await self._fetch(
            f"SELECT {CODE_COLUMNS} FROM access_codes WHERE parent_email = $1 ORDER BY created_at",
            email
        )
        return [_code(row) for row in rows]

    async def mark_code_used(self, code: str, user_id: str, now: datetime) -> bool:
        result = await self._execute(
            """
            UPDATE access_codes
            SET used = TRUE,
                uses_left = 0,
                parent_id = COALESCE(parent_id, $2),
                used_at = COALESCE(used_at, $3)
            WHERE code = $1
            """,
            code, uuid.UUID(user_id), now
        )
        return result != "UPDATE 0"

    async def list_codes(self, active_only: bool = False) -> List[AccessCode]:
        query = f"SELECT {CODE_COLUMNS} FROM access_codes"
        if active_only:
            query += " WHERE uses_left > 0"
        rows = await self._fetch(query + " ORDER BY created_at DESC")
        return [_code(row) for row in rows]

    async def delete_code(self, code: str) -> bool:
        result = await self._execute("DELETE FROM access_codes WHERE code = $1", code)
        return result != "DELETE 0"

    # Child store

    async def create_child(self, child: Child) -> Child:
        row = await self._fetchrow(
            f"""
            INSERT INTO children (id, first_name, last_name, date_of_birth, group_name,
                                  parent_email, parent_name, access_code,
                                  created_at, updated_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $9)
            RETURNING {CHILD_COLUMNS}
            """,
            uuid.UUID(child.id),
            child.first_name,
            child.last_name,
            child.date_of_birth,
            child.group,
            child.parent_email,
            child.parent_name,
            child.access_code,
            child.created_at
        )
        return _child(row)

    async def get_child(self, child_id: str) -> Optional[Child]:
        row = await self._fetchrow(
            f"SELECT {CHILD_COLUMNS} FROM children WHERE id = $1",
            uuid.UUID(child_id)
        )
        return _child(row) if row else None

    async def list_children(self) -> List[Child]:
        rows = await self._fetch(
            f"SELECT {CHILD_COLUMNS} FROM children ORDER BY last_name, first_name"
        )
        return [_child(row) for row in rows]

    async def set_child_access_code(self, child_id: str, code: str) -> None:
        await self._execute(
            "UPDATE children SET access_code = $2, updated_at = NOW() WHERE id = $1",
            uuid.UUID(child_id), code
        )

    async def find_children_by_parent_id(self, user_id: str) -> List[Child]:
        rows = await self._fetch(
            f"SELECT {CHILD_COLUMNS} FROM children WHERE parent_id = $1 ORDER BY first_name",
            uuid.UUID(user_id)
        )
        return [_child(row) for row in rows]

    async def find_children_by_parent_email(self, email: str) -> List[Child]:
        rows = await self._fetch(
            f"SELECT {CHILD_COLUMNS} FROM children WHERE parent_email = $1 ORDER BY first_name",
            email
        )
        return [_child(row) for row in rows]

    async def find_children_by_access_code(self, code: str) -> List[Child]:
        rows = await self._fetch(
            f"SELECT {CHILD_COLUMNS} FROM children WHERE access_code = $1",
            code
        )
        return [_child(row) for row in rows]

    async def link_child(
        self,
        child_id: str,
        user_id: str,
        now: datetime,
        overwrite: bool = False
    ) -> Optional[Child]:
        # Right-hand side column references see the pre-update row.
        row = await self._fetchrow(
            f"""
            UPDATE children
            SET parent_id = $2,
                parent_registered = TRUE,
                parent_registered_at = CASE
                    WHEN parent_id = $2 AND parent_registered_at IS NOT NULL
                    THEN parent_registered_at ELSE $3 END,
                updated_at = CASE
                    WHEN parent_id = $2 AND parent_registered_at IS NOT NULL
                    THEN updated_at ELSE $3 END
            WHERE id = $1 AND ($4 OR parent_id IS NULL OR parent_id = $2)
            RETURNING {CHILD_COLUMNS}
            """,
            uuid.UUID(child_id), uuid.UUID(user_id), now, overwrite
        )
        if row:
            return _child(row)
        return await self.get_child(child_id)

    # User store

    async def create_user(self, user: ParentUser) -> ParentUser:
        row = await self._fetchrow(
            f"""
            INSERT INTO users (id, email, display_name, role, password_hash,
                               auth_provider, access_code, linked_child_ids,
                               created_at, last_login_at)
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            RETURNING {USER_COLUMNS}
            """,
            uuid.UUID(user.id),
            user.email,
            user.display_name,
            user.role,
            user.password_hash,
            user.auth_provider,
            user.access_code,
            [uuid.UUID(cid) for cid in user.linked_child_ids],
            user.created_at,
            user.last_login_at
        )
        return _user(row)

    async def get_user(self, user_id: str) -> Optional[ParentUser]:
        row = await self._fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
            uuid.UUID(user_id)
        )
        return _user(row) if row else None

    async def find_user_by_email(self, email: str) -> Optional[ParentUser]:
        row = await self._fetchrow(
            f"SELECT {USER_COLUMNS} FROM users WHERE email = $1",
            email
        )
        return _user(row) if row else None

    async def list_users(self) -> List[ParentUser]:
        rows = await self._fetch(f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at")
        return [_user(row) for row in rows]

    async def add_linked_child(self, user_id: str, child_id: str, access_code: Optional[str] = None) -> None:
        result = await self._execute(
            """
            UPDATE users
            SET linked_child_ids = CASE
                    WHEN $2 = ANY(linked_child_ids) THEN linked_child_ids
                    ELSE array_append(linked_child_ids, $2) END,
                access_code = COALESCE($3, access_code)
            WHERE id = $1
            """,
            uuid.UUID(user_id), uuid.UUID(child_id), access_code
        )
        if result == "UPDATE 0":
            raise LookupError(f"user {user_id} not found")

    async def set_linked_children(self, user_id: str, child_ids: List[str]) -> None:
        result = await self._execute(
            "UPDATE users SET linked_child_ids = $2 WHERE id = $1",
            uuid.UUID(user_id), [uuid.UUID(cid) for cid in child_ids]
        )
        if result == "UPDATE 0":
            raise LookupError(f"user {user_id} not found")

    async def touch_login(self, user_id: str, now: datetime) -> None:
        await self._execute(
            "UPDATE users SET last_login_at = $2 WHERE id = $1",
            uuid.UUID(user_id), now
        )
