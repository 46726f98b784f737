"""
Single-owner state container.

Each collection (accounts, pairs) lives in one StateOwner. Mutations go
through apply(command); the reducer is a pure function returning the new
collection. Listeners (persistence, scheduling, UI) are notified after the
new state is installed.
"""

import logging
import threading
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C")

Listener = Callable[[List[T], C], None]
Reducer = Callable[[List[T], C], List[T]]


class StateOwner(Generic[T, C]):
    """
    Owns one collection and serialises every mutation to it.

    A reentrant lock guards apply(). Callers that read other state and
    then apply (the expiry timer) hold the same lock across both steps;
    listeners may re-enter apply() from inside a notification.
    """

    def __init__(self, initial: List[T], reducer: Reducer):
        self._state: List[T] = list(initial)
        self._reducer = reducer
        self._listeners: List[Listener] = []
        self.lock = threading.RLock()

    def get(self) -> List[T]:
        """Return a shallow copy of the current collection."""
        with self.lock:
            return list(self._state)

    def apply(self, command: C) -> List[T]:
        """
        Run a command through the reducer and notify listeners.

        Listeners are skipped when the reducer returns the same list
        object (a no-op command).

        Returns:
            The collection after the command
        """
        with self.lock:
            new_state = self._reducer(self._state, command)

            if new_state is self._state:
                logger.debug(f"No-op command: {command!r}")
                return list(self._state)

            self._state = new_state
            for listener in list(self._listeners):
                listener(list(new_state), command)

            return list(new_state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Callable that removes the listener
        """
        with self.lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self.lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe
