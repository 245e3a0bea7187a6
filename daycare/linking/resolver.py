"""
Child resolution for the parent dashboard.

A parent's children are looked up through an ordered list of strategies.
The first is the authoritative ``parent_id`` link; the rest cover the cases
where redemption never happened or only half happened. Strategies are tried
left to right and resolution stops at the first one that finds anything.

A strategy that raises or times out is recorded and skipped. ``resolve``
never raises to its caller.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from .errors import StrategyFailure
from .records import Child
from .store import LinkStore

logger = logging.getLogger(__name__)

RESOLVER_STRATEGY_TIMEOUT_SECONDS = float(os.getenv("RESOLVER_STRATEGY_TIMEOUT_SECONDS", "5"))


@dataclass
class ParentIdentity:
    """The authenticated caller: an id and an email, nothing more."""
    id: str
    email: Optional[str]


Lookup = Callable[[LinkStore, ParentIdentity], Awaitable[List[Child]]]


@dataclass
class Strategy:
    name: str
    lookup: Lookup
    # Report more than one hit as ambiguous rather than collapsing it
    flags_ambiguity: bool = False


@dataclass
class StrategyAttempt:
    """Diagnostic trail entry for one strategy that ran."""
    name: str
    found: int = 0
    child_ids: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class Resolution:
    children: List[Child]
    strategies_tried: List[StrategyAttempt]
    errors: List[StrategyFailure]
    ambiguous: bool = False

    @property
    def matched_by(self) -> Optional[str]:
        """Name of the strategy that produced the result, if any."""
        for attempt in self.strategies_tried:
            if attempt.found:
                return attempt.name
        return None


async def by_parent_id(store: LinkStore, user: ParentIdentity) -> List[Child]:
    return await store.find_children_by_parent_id(user.id)


async def by_parent_email(store: LinkStore, user: ParentIdentity) -> List[Child]:
    if not user.email:
        return []
    return await store.find_children_by_parent_email(user.email)


async def by_access_code_email(store: LinkStore, user: ParentIdentity) -> List[Child]:
    if not user.email:
        return []

    children = []
    for record in await store.find_codes_by_parent_email(user.email):
        child = await store.get_child(record.child_id)
        if child is not None:
            children.append(child)
    return children


async def by_email_scan(store: LinkStore, user: ParentIdentity) -> List[Child]:
    if not user.email:
        return []

    wanted = user.email.strip().casefold()
    return [
        child for child in await store.list_children()
        if child.parent_email and child.parent_email.strip().casefold() == wanted
    ]


DEFAULT_STRATEGIES: Sequence[Strategy] = (
    Strategy("parent_id", by_parent_id),
    Strategy("parent_email", by_parent_email),
    Strategy("access_code_email", by_access_code_email),
    Strategy("email_scan", by_email_scan, flags_ambiguity=True),
)


class ChildResolver:
    """Folds the strategy list over the store, short-circuiting on the first hit."""

    def __init__(
        self,
        store: LinkStore,
        strategies: Sequence[Strategy] = DEFAULT_STRATEGIES,
        timeout: float = RESOLVER_STRATEGY_TIMEOUT_SECONDS
    ):
        self.store = store
        self.strategies = list(strategies)
        self.timeout = timeout

    async def resolve(self, user: ParentIdentity) -> Resolution:
        found: Dict[str, Child] = {}
        attempts: List[StrategyAttempt] = []
        errors: List[StrategyFailure] = []
        ambiguous = False

        for strategy in self.strategies:
            attempt = StrategyAttempt(name=strategy.name)
            attempts.append(attempt)

            try:
                children = await asyncio.wait_for(
                    strategy.lookup(self.store, user),
                    timeout=self.timeout
                )
            except asyncio.TimeoutError:
                attempt.error = f"timed out after {self.timeout}s"
            except Exception as e:
                attempt.error = f"{type(e).__name__}: {e}"
            else:
                attempt.found = len(children)
                attempt.child_ids = [child.id for child in children]
                for child in children:
                    found.setdefault(child.id, child)
                if strategy.flags_ambiguity and len(children) > 1:
                    ambiguous = True
                    logger.warning(
                        f"Strategy {strategy.name} matched {len(children)} children "
                        f"for user {user.id}: {attempt.child_ids}"
                    )

            if attempt.error:
                logger.warning(f"Resolver strategy {strategy.name} failed for user {user.id}: {attempt.error}")
                errors.append(StrategyFailure(strategy.name, attempt.error))
                continue

            if found:
                break

        resolution = Resolution(
            children=list(found.values()),
            strategies_tried=attempts,
            errors=errors,
            ambiguous=ambiguous
        )
        logger.info(
            f"Resolved {len(resolution.children)} children for user {user.id} "
            f"via {resolution.matched_by or 'no strategy'} "
            f"({len(attempts)} tried, {len(errors)} failed)"
        )
        return resolution
