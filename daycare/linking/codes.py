"""
Access code generation and issuance.

Codes are 8 characters drawn from A-Z and 0-9 (about 41 bits), safe to read
out loud or print on an enrollment slip. Uniqueness is guaranteed by the
store's insert-if-absent on the code key; the existence pre-check only
saves a round trip on the rare collision.
"""

import logging
import os
import secrets
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from .errors import InvalidCode, IssuanceFailed
from .records import AccessCode, utcnow
from .store import LinkStore

logger = logging.getLogger(__name__)

CODE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
CODE_LENGTH = 8
ACCESS_CODE_TTL_DAYS = int(os.getenv("ACCESS_CODE_TTL_DAYS", "30"))
ACCESS_CODE_MAX_ATTEMPTS = int(os.getenv("ACCESS_CODE_MAX_ATTEMPTS", "10"))


def generate_code(length: int = CODE_LENGTH) -> str:
    """Draw a random code from the access code alphabet."""
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_code(raw: str) -> str:
    """Normalize user-typed codes: surrounding whitespace dropped, upper-cased."""
    return (raw or "").strip().upper()


def is_well_formed(code: str) -> bool:
    return len(code) == CODE_LENGTH and all(ch in CODE_ALPHABET for ch in code)


def normalize_email(raw: str) -> str:
    return (raw or "").strip().lower()


def assign_group(date_of_birth: Optional[date], today: Optional[date] = None) -> str:
    """
    Pick the classroom group from a child's age.

    Infant under 18 months, Toddler under 36 months, Pre-K otherwise.
    A missing birth date defaults to Infant.
    """
    if date_of_birth is None:
        return "Infant"

    today = today or date.today()
    age_in_months = (today.year - date_of_birth.year) * 12 + (today.month - date_of_birth.month)

    if age_in_months < 18:
        return "Infant"
    elif age_in_months < 36:
        return "Toddler"
    return "Pre-K"


class CodeIssuer:
    """Creates access codes bound to a pending child."""

    def __init__(
        self,
        store: LinkStore,
        code_factory: Callable[[], str] = generate_code,
        max_attempts: int = ACCESS_CODE_MAX_ATTEMPTS,
        clock: Callable[[], datetime] = utcnow
    ):
        self.store = store
        self.code_factory = code_factory
        self.max_attempts = max_attempts
        self.clock = clock

    async def issue(
        self,
        child_id: str,
        parent_email: str,
        parent_name: Optional[str],
        child_name: Optional[str],
        ttl: timedelta = timedelta(days=ACCESS_CODE_TTL_DAYS),
        max_uses: int = 1,
        code: Optional[str] = None,
        note: Optional[str] = None
    ) -> AccessCode:
        """
        Persist a new access code for a child and stamp it on the child record.

        Args:
            child_id: The child the code grants access to
            parent_email: Intended parent's email
            parent_name: Denormalized for display
            child_name: Denormalized for display
            ttl: Validity window from now
            max_uses: Number of successful redemptions allowed
            code: Staff-chosen code; generated when omitted
            note: Free-text note shown on the admin code list

        Returns:
            The persisted AccessCode

        Raises:
            InvalidCode: If a staff-chosen code is malformed or max_uses < 1
            IssuanceFailed: If no unique code could be inserted
        """
        if max_uses < 1:
            raise InvalidCode("max_uses must be at least 1")

        now = self.clock()
        if note is None and parent_name and child_name:
            note = f"Access code for {parent_name} - child: {child_name}"

        def build(candidate: str) -> AccessCode:
            return AccessCode(
                code=candidate,
                child_id=child_id,
                parent_email=parent_email,
                parent_name=parent_name,
                child_name=child_name,
                created_at=now,
                expires_at=now + ttl,
                max_uses=max_uses,
                uses_left=max_uses,
                used=False,
                note=note
            )

        if code is not None:
            candidate = normalize_code(code)
            if not is_well_formed(candidate):
                raise InvalidCode(
                    f"Access codes must be {CODE_LENGTH} characters from A-Z and 0-9"
                )
            record = build(candidate)
            if not await self.store.insert_code(record):
                raise IssuanceFailed(f"Access code {candidate} is already in use")
        else:
            record = await self._insert_generated(build)

        await self.store.set_child_access_code(child_id, record.code)
        logger.info(f"Issued access code for child {child_id} (max_uses={max_uses}, expires {record.expires_at.isoformat()})")
        return record

    async def _insert_generated(self, build: Callable[[str], AccessCode]) -> AccessCode:
        for attempt in range(1, self.max_attempts + 1):
            candidate = self.code_factory()

            if await self.store.code_exists(candidate):
                logger.debug(f"Access code candidate collided on pre-check (attempt {attempt})")
                continue

            record = build(candidate)
            if await self.store.insert_code(record):
                return record

            # Another issuer inserted the same candidate after our pre-check
            logger.warning(f"Access code insert lost a race (attempt {attempt}), retrying")

        raise IssuanceFailed(
            f"Could not generate a unique access code after {self.max_attempts} attempts"
        )
