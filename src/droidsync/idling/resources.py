"""
Idling Resources
================

Waitable objects that report whether asynchronous work is in progress.
An idle monitor polls them (and listens for their idle transitions) to
decide when the application under test is quiescent.

Two implementations are provided:
- CountingIdlingResource: counts outstanding operations; idle at zero
- SimpleIdlingResource: a plain busy/idle flag set by the caller

Example usage:

    >>> network = CountingIdlingResource("network")
    >>> network.increment()
    1
    >>> network.is_idle_now()
    False
    >>> network.decrement()
    True
    >>> network.is_idle_now()
    True

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from abc import ABC, abstractmethod
from typing import Callable, List
import logging
import threading

logger = logging.getLogger(__name__)

IdleCallback = Callable[[], None]


class IdlingResource(ABC):
    """
    Base class for anything an idle monitor can wait on.

    Subclasses report their state through is_idle_now() and call
    _notify_idle() whenever they transition to idle, so waiters can
    wake up without waiting for the next poll.
    """

    def __init__(self, name: str):
        self._name = name
        self._callbacks: List[IdleCallback] = []
        self._callbacks_lock = threading.Lock()

    @property
    def name(self) -> str:
        """Unique name of this resource."""
        return self._name

    @abstractmethod
    def is_idle_now(self) -> bool:
        """Return True if no tracked work is in progress."""

    def register_idle_transition_callback(self, callback: IdleCallback) -> None:
        """
        Register a callback fired on every transition to idle.

        Registering the same callback twice has no effect.

        Args:
            callback: Zero-argument callable
        """
        with self._callbacks_lock:
            if callback not in self._callbacks:
                self._callbacks.append(callback)

    def remove_idle_transition_callback(self, callback: IdleCallback) -> None:
        """Remove a previously registered callback (no-op if absent)."""
        with self._callbacks_lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _notify_idle(self) -> None:
        # Called outside the state lock so callbacks may query the resource
        with self._callbacks_lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()


class CountingIdlingResource(IdlingResource):
    """
    Named counter of outstanding asynchronous operations.

    Producers call increment() when work starts and decrement() when it
    finishes. The resource is idle when the count is zero.

    The count never goes negative: decrementing an idle counter is a
    no-op, recorded in ignored_decrements. This keeps a double-decrement
    from pinning the counter below zero, but it also means unbalanced
    calls can leave the counter idle while work is still outstanding, so
    callers must pair increment/decrement 1:1.

    All state changes happen under a per-counter lock, so any number of
    threads may signal concurrently.

    Attributes:
        name: Unique resource name (e.g., "network", "database")
    """

    def __init__(self, name: str):
        super().__init__(name)
        self._lock = threading.Lock()
        self._count = 0
        self._ignored_decrements = 0

    @property
    def count(self) -> int:
        """Current number of outstanding operations."""
        with self._lock:
            return self._count

    @property
    def ignored_decrements(self) -> int:
        """How many decrements arrived while the counter was already idle."""
        with self._lock:
            return self._ignored_decrements

    def is_idle_now(self) -> bool:
        with self._lock:
            return self._count == 0

    def increment(self) -> int:
        """
        Record the start of an operation.

        Returns:
            The count after incrementing
        """
        with self._lock:
            self._count += 1
            count = self._count
        logger.debug(f"{self._name}: increment -> {count}")
        return count

    def decrement(self) -> bool:
        """
        Record the end of an operation, unless the counter is already idle.

        Returns:
            True if the count was decremented, False if it was already zero
        """
        with self._lock:
            if self._count == 0:
                self._ignored_decrements += 1
                ignored = self._ignored_decrements
                count = None
            else:
                self._count -= 1
                count = self._count

        if count is None:
            logger.warning(
                f"{self._name}: decrement on idle counter ignored "
                f"({ignored} ignored so far)"
            )
            return False

        logger.debug(f"{self._name}: decrement -> {count}")
        if count == 0:
            self._notify_idle()
        return True

    def __repr__(self) -> str:
        return f"CountingIdlingResource({self._name!r}, count={self.count})"


class SimpleIdlingResource(IdlingResource):
    """
    Busy/idle flag for operations that are not naturally counted.

    Starts idle. Setting the resource idle always fires the transition
    callbacks, matching how a single long operation reports completion.

    Example:
        >>> upload = SimpleIdlingResource("upload")
        >>> upload.set_busy()
        >>> upload.is_idle_now()
        False
        >>> upload.set_idle()
    """

    def __init__(self, name: str, idle: bool = True):
        super().__init__(name)
        self._idle = threading.Event()
        if idle:
            self._idle.set()

    def is_idle_now(self) -> bool:
        return self._idle.is_set()

    def set_idle_state(self, is_idle: bool) -> None:
        """
        Set the idle state.

        Args:
            is_idle: True to mark idle (fires callbacks), False to mark busy
        """
        if is_idle:
            self._idle.set()
            logger.debug(f"{self._name}: idle")
            self._notify_idle()
        else:
            self._idle.clear()
            logger.debug(f"{self._name}: busy")

    def set_busy(self) -> None:
        """Mark as busy."""
        self.set_idle_state(False)

    def set_idle(self) -> None:
        """Mark as idle."""
        self.set_idle_state(True)

    def __repr__(self) -> str:
        state = "idle" if self.is_idle_now() else "busy"
        return f"SimpleIdlingResource({self._name!r}, {state})"
