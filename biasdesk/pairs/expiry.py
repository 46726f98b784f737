"""
Deadlines for unnamed pairs.

A pair created without a name is deleted if it is still unnamed when
its deadline passes. Deadlines are keyed by pair id: any change to a
pair cancels its deadline and re-arms it only if the pair is still an
unnamed draft, so a pair renamed in time is never purged by a stale
deadline.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from biasdesk.core.models import Pair
from biasdesk.pairs.tracker import is_pending_draft

logger = logging.getLogger(__name__)

DRAFT_TTL_SECONDS = 30.0


class ExpiryScheduler:
    """Cancellable per-pair deletion deadlines."""

    def __init__(self, ttl_seconds: float = DRAFT_TTL_SECONDS):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._deadlines: Dict[int, datetime] = {}

    def arm(self, pair_id: int, deadline: datetime) -> None:
        self._deadlines[pair_id] = deadline
        logger.debug(f"Pair {pair_id} expires at {deadline.isoformat()}")

    def cancel(self, pair_id: int) -> None:
        if self._deadlines.pop(pair_id, None) is not None:
            logger.debug(f"Cancelled expiry for pair {pair_id}")

    def is_armed(self, pair_id: int) -> bool:
        return pair_id in self._deadlines

    def deadline_for(self, pair_id: int) -> Optional[datetime]:
        return self._deadlines.get(pair_id)

    def sync(self, pairs: List[Pair], now: datetime, changed_ids: Optional[Iterable[int]] = None) -> None:
        """
        Reconcile deadlines with the current pair list.

        Args:
            pairs: Current collection
            now: Current time; fresh deadlines are now + ttl
            changed_ids: Pairs touched by the last command. None re-arms
                every draft (used after loading from the store).
        """
        by_id = {pair.id: pair for pair in pairs}

        for pair_id in list(self._deadlines):
            if pair_id not in by_id:
                self.cancel(pair_id)

        targets = by_id.keys() if changed_ids is None else set(changed_ids)

        for pair_id in targets:
            self.cancel(pair_id)
            pair = by_id.get(pair_id)
            if pair is not None and is_pending_draft(pair):
                self.arm(pair_id, now + self.ttl)

    def due(self, now: datetime) -> List[int]:
        """Ids whose deadline has passed. Does not cancel them."""
        return [pair_id for pair_id, deadline in self._deadlines.items() if deadline <= now]

    def next_deadline(self) -> Optional[datetime]:
        """Earliest armed deadline, for hosts that sleep until it."""
        if not self._deadlines:
            return None
        return min(self._deadlines.values())
