"""
Pair manager.

UI-facing boundary for the trading pairs collection. Owns the pair
list, persists every change, and keeps unnamed-pair deadlines in step
with the list.

Expiry runs one of two ways. Hosts with an event loop call run_expiry()
on a poll or at next_deadline(). Long-lived hosts without one pass
auto_expire=True and a background timer fires run_expiry() at each
deadline until close().
"""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from functools import partial
from typing import Any, Callable, List, Optional

from biasdesk.core.config import Config
from biasdesk.core.models import Bias, Pair, Timeframe
from biasdesk.core.state import StateOwner
from biasdesk.core.store import PAIRS_KEY, KeyValueStore, load_collection, write_through
from biasdesk.core.utils import utc_now
from biasdesk.pairs.expiry import ExpiryScheduler
from biasdesk.pairs.tracker import (
    CommitName,
    CreatePair,
    DeletePair,
    PairField,
    PurgeExpired,
    SetBias,
    ToggleInvalidation,
    UpdatePair,
    is_valid,
    reduce_pairs,
    seed_pairs,
    validity_reason,
)

logger = logging.getLogger(__name__)


def _changed_ids(command, pairs: List[Pair]) -> List[int]:
    if isinstance(command, CreatePair):
        return [pairs[-1].id] if pairs else []
    if isinstance(command, PurgeExpired):
        return list(command.pair_ids)
    return [command.pair_id]


class PairManager:
    """Manage trading pairs and their bias lifecycle."""

    def __init__(
        self,
        store: KeyValueStore,
        config: Optional[Config] = None,
        clock: Callable[[], datetime] = utc_now,
        auto_expire: bool = False,
    ):
        """
        Initialize pair manager.

        Args:
            store: Persistence backend
            config: Settings (defaults to Config())
            clock: Source of the current time
            auto_expire: Start a timer that purges expired drafts on its own
        """
        self.config = config or Config()
        self.clock = clock
        self.tz = self.config.get_tzinfo()
        self.scheduler = ExpiryScheduler(self.config.draft_ttl_seconds)
        self.auto_expire = auto_expire
        self._timer: Optional[threading.Timer] = None

        pairs = load_collection(store, PAIRS_KEY, Pair.from_dict, seed_pairs)
        limit = self.config.history_limit
        pairs = [
            replace(pair, history=pair.history[:limit]) if len(pair.history) > limit else pair
            for pair in pairs
        ]
        reducer = partial(reduce_pairs, history_limit=limit)

        self.state: StateOwner[Pair, Any] = StateOwner(pairs, reducer)
        self.state.subscribe(write_through(store, PAIRS_KEY))
        self.state.subscribe(self._reschedule)

        # Drafts restored from the store get a fresh deadline
        with self.state.lock:
            self.scheduler.sync(pairs, self.clock())
            self._arm_timer()

    def _reschedule(self, pairs: List[Pair], command) -> None:
        self.scheduler.sync(pairs, self.clock(), _changed_ids(command, pairs))
        self._arm_timer()

    def _arm_timer(self) -> None:
        """Point the timer at the earliest deadline. Caller holds state.lock."""
        if not self.auto_expire:
            return

        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        deadline = self.scheduler.next_deadline()
        if deadline is None:
            return

        delay = max((deadline - self.clock()).total_seconds(), 0.0)
        self._timer = threading.Timer(delay, self._on_timer)
        self._timer.daemon = True
        self._timer.start()

    def _on_timer(self) -> None:
        with self.state.lock:
            if not self.auto_expire:
                return
            try:
                self.run_expiry()
            except Exception as e:
                logger.error(f"Draft expiry failed: {e}")
            self._arm_timer()

    def close(self) -> None:
        """Stop the expiry timer. Pending deadlines are kept for run_expiry()."""
        with self.state.lock:
            self.auto_expire = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def list(self) -> List[Pair]:
        """All pairs in display order."""
        return self.state.get()

    def get(self, pair_id: int) -> Optional[Pair]:
        for pair in self.state.get():
            if pair.id == pair_id:
                return pair
        return None

    def create(self) -> Pair:
        """Add an unnamed bearish/bearish pair in editing state."""
        pairs = self.state.apply(CreatePair(now=self.clock()))
        return pairs[-1]

    def update(self, pair_id: int, field: PairField, value: Any) -> List[Pair]:
        """Set one field. Bias fields follow set_bias rules."""
        return self.state.apply(UpdatePair(pair_id, field, value, now=self.clock()))

    def commit_name(self, pair_id: int, name: str) -> List[Pair]:
        """Confirm the name (Enter or focus loss). Blank names keep the editor open."""
        return self.state.apply(CommitName(pair_id, name))

    def set_bias(self, pair_id: int, timeframe: Timeframe, value: Bias) -> List[Pair]:
        return self.state.apply(SetBias(pair_id, timeframe, value, now=self.clock()))

    def toggle_invalidation(self, pair_id: int) -> List[Pair]:
        """Flip the manual on/off switch."""
        return self.state.apply(ToggleInvalidation(pair_id))

    def delete(self, pair_id: int) -> List[Pair]:
        """Remove a pair. Callers confirm with the user first."""
        return self.state.apply(DeletePair(pair_id))

    def run_expiry(self, now: Optional[datetime] = None) -> List[Pair]:
        """
        Purge unnamed pairs whose deadline has passed.

        Safe to call at any time; pairs named since their deadline was
        armed are kept.
        """
        now = now or self.clock()
        with self.state.lock:
            due = self.scheduler.due(now)
            if not due:
                return self.state.get()

            pairs = self.state.apply(PurgeExpired(tuple(due)))
            # Due pairs that were named in the meantime drop their deadline
            self.scheduler.sync(pairs, now, due)
            return pairs

    def next_deadline(self) -> Optional[datetime]:
        with self.state.lock:
            return self.scheduler.next_deadline()

    def is_valid(self, pair: Pair, now: Optional[datetime] = None) -> bool:
        return is_valid(pair, now or self.clock(), self.tz)

    def validity_reason(self, pair: Pair, now: Optional[datetime] = None) -> Optional[str]:
        return validity_reason(pair, now or self.clock(), self.tz)
