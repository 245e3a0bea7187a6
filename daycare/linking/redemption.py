"""
Access code redemption.

Runs once at parent registration (or when an existing account enters a
code). Checks run in order: not found, expired, exhausted. A code with no
uses left reports exhausted even after it expires. The use itself is taken
with a conditional store write, so two parents racing for the last use of
a code cannot both succeed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .codes import normalize_code
from .errors import CodeExhausted, CodeExpired, CodeNotFound, PartialFailure
from .records import AccessCode, utcnow
from .store import LinkStore

logger = logging.getLogger(__name__)


@dataclass
class RedemptionResult:
    """Outcome of a successful redemption."""
    child_id: str
    code: str
    uses_left: int
    # False when the child already belongs to an earlier redeemer
    linked: bool = True


class RedemptionService:
    """Consumes access codes and writes the parent-child link."""

    def __init__(
        self,
        store: LinkStore,
        clock: Callable[[], datetime] = utcnow,
        on_write: Optional[Callable[[str], None]] = None
    ):
        self.store = store
        self.clock = clock
        self.on_write = on_write

    async def redeem(self, code: str, user_id: str) -> RedemptionResult:
        """
        Redeem an access code for an existing user account.

        Args:
            code: The code as typed by the parent (normalized here)
            user_id: The redeeming user's id

        Returns:
            RedemptionResult naming the child

        Raises:
            CodeNotFound: No code under this key
            CodeExpired: Past expires_at while uses remain
            CodeExhausted: No uses left, including losing a concurrent race
            PartialFailure: The use was taken but the link writes failed
        """
        code = normalize_code(code)
        now = self.clock()
        await self._check(code, now)

        consumed = await self.store.consume_code_use(code, user_id, now)
        if consumed is None:
            logger.info(f"Access code {code} was exhausted between read and write")
            raise CodeExhausted(code)

        if self.on_write:
            self.on_write(user_id)

        linked = await self._link(consumed.child_id, user_id, code, now)

        logger.info(
            f"Redeemed access code {code} for child {consumed.child_id} by user {user_id} "
            f"(uses_left={consumed.uses_left}, linked={linked})"
        )
        return RedemptionResult(
            child_id=consumed.child_id,
            code=code,
            uses_left=consumed.uses_left,
            linked=linked
        )

    async def validate(self, code: str) -> AccessCode:
        """
        Run the redemption checks without taking a use.

        Lets a signup form reject a bad code before creating the account.
        The later redeem call still decides the race.
        """
        return await self._check(normalize_code(code), self.clock())

    async def _check(self, code: str, now: datetime) -> AccessCode:
        record = await self.store.get_code(code)
        if record is None:
            raise CodeNotFound(code)
        if record.is_expired(now) and record.uses_left > 0:
            raise CodeExpired(code)
        if record.uses_left <= 0:
            raise CodeExhausted(code)
        return record

    async def _link(self, child_id: str, user_id: str, code: str, now: datetime) -> bool:
        try:
            child = await self.store.link_child(child_id, user_id, now, overwrite=False)
        except Exception as e:
            logger.error(f"Linking child {child_id} to user {user_id} failed: {e}")
            raise PartialFailure(child_id, user_id, ["child"], str(e)) from e

        if child is None:
            raise PartialFailure(child_id, user_id, ["child"], "child record missing")

        if child.parent_id != user_id:
            # Multi-use code: the first redeemer keeps the child
            logger.warning(
                f"Child {child_id} already linked to {child.parent_id}; "
                f"redemption by {user_id} leaves the link unchanged"
            )
            return False

        try:
            await self.store.add_linked_child(user_id, child_id, code)
        except Exception as e:
            logger.error(f"Updating linked children for user {user_id} failed: {e}")
            raise PartialFailure(child_id, user_id, ["user"], str(e)) from e

        return True
