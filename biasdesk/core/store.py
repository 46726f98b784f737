"""
Key/value persistence for BiasDesk collections.

Each collection is stored as one JSON array under a stable key.
Loading is fail-safe: a missing or malformed value is replaced by
the collection's default seed.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, TypeVar

from biasdesk.core.config import Config
from biasdesk.core.db import init_db, session_scope
from biasdesk.core.models import KeyValue

logger = logging.getLogger(__name__)

ACCOUNTS_KEY = "riskAccounts"
PAIRS_KEY = "tradingPairs"

T = TypeVar("T")


class KeyValueStore(ABC):
    """Durable string key/value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Stored value, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the value under key."""


class MemoryKeyValueStore(KeyValueStore):
    """Dict-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class SqlKeyValueStore(KeyValueStore):
    """
    SQLite-backed store.

    Rows live in the key_values table; the schema is created on first use.
    """

    def __init__(self, config: Config):
        self.config = config
        init_db(config)

    def get(self, key: str) -> Optional[str]:
        with session_scope(self.config) as session:
            row = session.get(KeyValue, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        try:
            with session_scope(self.config) as session:
                session.merge(
                    KeyValue(key=key, value=value, updated_at=datetime.now(timezone.utc))
                )
        except Exception as e:
            logger.error(f"Failed to persist {key}: {e}")
            raise


def load_collection(
    store: KeyValueStore,
    key: str,
    parse: Callable[[dict], T],
    seed: Callable[[], List[T]],
) -> List[T]:
    """
    Load a persisted collection.

    Args:
        store: Backing store
        key: Collection key
        parse: Builds one entity from its dictionary
        seed: Builds the default collection

    Returns:
        Parsed entities, or the seed when the key is absent or unreadable
    """
    raw = store.get(key)

    if raw is None:
        logger.debug(f"No saved {key}, seeding defaults")
        return seed()

    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.warning(f"Malformed JSON under {key}, seeding defaults: {e}")
        return seed()

    if not isinstance(data, list):
        logger.warning(f"Expected a list under {key}, got {type(data).__name__}; seeding defaults")
        return seed()

    items: List[T] = []
    for entry in data:
        if not isinstance(entry, dict):
            logger.warning(f"Skipping unreadable entry in {key}: {entry!r}")
            continue
        items.append(parse(entry))

    logger.info(f"Loaded {len(items)} entries from {key}")
    return items


def save_collection(store: KeyValueStore, key: str, items: list) -> None:
    """Write the full collection snapshot."""
    store.set(key, json.dumps([item.to_dict() for item in items]))
    logger.debug(f"Saved {len(items)} entries to {key}")


def write_through(store: KeyValueStore, key: str):
    """
    Build a StateOwner listener that saves every new snapshot.

    Usage:
        owner.subscribe(write_through(store, ACCOUNTS_KEY))
    """
    def listener(items: list, command) -> None:
        save_collection(store, key, items)

    return listener
