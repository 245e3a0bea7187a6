"""
Operator-triggered repair of parent-child links.

Re-derives the links a redemption should have produced, from the child's
recorded parent email and the user's known access code, and writes them.
Every write is reported as succeeded or failed. Running a repair twice
leaves the store exactly as the first run did.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Optional

from .errors import UserNotFound
from .records import Child, utcnow
from .store import LinkStore

logger = logging.getLogger(__name__)

CODE_UPDATED = "updated"
CODE_NOT_FOUND = "not_found"
CODE_SKIPPED = "skipped"
CODE_FAILED = "failed"


@dataclass
class ChildMatch:
    """One child picked up by the repair and what happened to it."""
    child_id: str
    child_name: str
    email_match: bool = False
    code_match: bool = False
    previous_parent_id: Optional[str] = None
    linked: bool = False
    error: Optional[str] = None


@dataclass
class RepairReport:
    user_id: str
    email: str
    matches: List[ChildMatch] = field(default_factory=list)
    linked_child_ids: List[str] = field(default_factory=list)
    linked_children_updated: bool = False
    code_update: str = CODE_SKIPPED
    errors: List[str] = field(default_factory=list)

    @property
    def matched_child_ids(self) -> List[str]:
        return [match.child_id for match in self.matches]

    @property
    def ambiguous(self) -> bool:
        """More than one child matched this email. Reported, not an error."""
        return len(self.matches) > 1


class RepairService:
    """Reconciles a parent's links from the child and code records."""

    def __init__(
        self,
        store: LinkStore,
        clock: Callable[[], datetime] = utcnow,
        on_write: Optional[Callable[[str], None]] = None
    ):
        self.store = store
        self.clock = clock
        self.on_write = on_write

    async def repair(self, parent_email: str) -> RepairReport:
        """
        Repair the links for the account registered under ``parent_email``.

        Args:
            parent_email: Exact email of the parent account

        Returns:
            RepairReport with per-child outcomes

        Raises:
            UserNotFound: No account has this email
        """
        user = await self.store.find_user_by_email(parent_email)
        if user is None:
            raise UserNotFound(parent_email)

        now = self.clock()
        report = RepairReport(user_id=user.id, email=parent_email)
        matches: Dict[str, ChildMatch] = {}
        lookups_ok = True

        def record(children: List[Child], predicate: str):
            for child in children:
                match = matches.get(child.id)
                if match is None:
                    match = ChildMatch(
                        child_id=child.id,
                        child_name=child.full_name,
                        previous_parent_id=child.parent_id
                    )
                    matches[child.id] = match
                setattr(match, predicate, True)

        try:
            record(await self.store.find_children_by_parent_email(parent_email), "email_match")
        except Exception as e:
            lookups_ok = False
            report.errors.append(f"parent email lookup failed: {e}")
            logger.error(f"Repair for {parent_email}: parent email lookup failed: {e}")

        if user.access_code:
            try:
                record(await self.store.find_children_by_access_code(user.access_code), "code_match")
            except Exception as e:
                lookups_ok = False
                report.errors.append(f"access code lookup failed: {e}")
                logger.error(f"Repair for {parent_email}: access code lookup failed: {e}")

        report.matches = list(matches.values())
        if not report.matches:
            logger.info(f"Repair for {parent_email}: no matching children")
            return report

        for match in report.matches:
            try:
                child = await self.store.link_child(match.child_id, user.id, now, overwrite=True)
            except Exception as e:
                match.error = str(e)
                report.errors.append(f"linking child {match.child_id} failed: {e}")
                logger.error(f"Repair for {parent_email}: linking child {match.child_id} failed: {e}")
                continue

            if child is None:
                match.error = "child record missing"
                report.errors.append(f"child {match.child_id} disappeared during repair")
                continue

            match.linked = True
            if match.previous_parent_id and match.previous_parent_id != user.id and self.on_write:
                self.on_write(match.previous_parent_id)

        if self.on_write:
            self.on_write(user.id)

        await self._rewrite_linked_children(user.id, report, lookups_ok)
        await self._retire_code(user.id, user.access_code, report, now)

        logger.info(
            f"Repair for {parent_email}: {len(report.matches)} matched, "
            f"{sum(1 for m in report.matches if m.linked)} linked, "
            f"code {report.code_update}, {len(report.errors)} errors"
        )
        return report

    async def _rewrite_linked_children(self, user_id: str, report: RepairReport, lookups_ok: bool):
        if not lookups_ok:
            report.errors.append("linked_child_ids left unchanged because a lookup failed")
            return

        # Children already pointing at this user stay in the set
        child_ids = [match.child_id for match in report.matches if match.linked]
        try:
            for child in await self.store.find_children_by_parent_id(user_id):
                if child.id not in child_ids:
                    child_ids.append(child.id)
            await self.store.set_linked_children(user_id, child_ids)
        except Exception as e:
            report.errors.append(f"updating linked_child_ids failed: {e}")
            logger.error(f"Repair for user {user_id}: updating linked_child_ids failed: {e}")
            return

        report.linked_child_ids = child_ids
        report.linked_children_updated = True

    async def _retire_code(self, user_id: str, code: Optional[str], report: RepairReport, now: datetime):
        if not code:
            report.code_update = CODE_SKIPPED
            return

        try:
            updated = await self.store.mark_code_used(code, user_id, now)
        except Exception as e:
            report.code_update = CODE_FAILED
            report.errors.append(f"marking access code {code} used failed: {e}")
            logger.warning(f"Repair for user {user_id}: could not update access code {code}: {e}")
            return

        report.code_update = CODE_UPDATED if updated else CODE_NOT_FOUND
