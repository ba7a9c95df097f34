"""
Idling Registry
===============

Process-lifetime registry of named counters that track outstanding
asynchronous operations (network calls, database writes, ...). Producers
signal "started" and "finished" against a name; an idle waiter polls the
counters to decide when UI assertions are safe to run.

The registry is an ordinary object: create one for the test session and
pass it to every fixture and call site that signals async work. Entries
are created on first reference to a name and can be bulk-cleared between
tests without discarding the registry.

Example usage:

    >>> registry = IdlingRegistry(IdleMonitor())
    >>> registry.increment("network")
    1
    >>> registry.increment("network")
    2
    >>> registry.decrement("network")
    True
    >>> registry.is_idle("network")
    False
    >>> registry.decrement("network")
    True
    >>> registry.is_idle("network")
    True

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from typing import Dict, FrozenSet, List, Optional
import logging
import threading

from .monitor import IdleWaiter
from .resources import CountingIdlingResource

logger = logging.getLogger(__name__)


class IdlingRegistry:
    """
    Thread-safe mapping from resource name to CountingIdlingResource.

    Structural changes (creating, removing, clearing entries) and
    snapshots are serialized by a registry lock. Count changes are
    serialized per counter, so signalling on different names never
    contends.

    The registry never raises for state reasons. A decrement on an idle
    counter is ignored and counted (see ignored_decrements).

    Attributes:
        waiter: Idle waiter counters are registered with (may be None)
    """

    def __init__(self, waiter: Optional[IdleWaiter] = None):
        """
        Initialize an empty registry.

        Args:
            waiter: Idle-wait mechanism to register new counters with.
                    When None, counters are tracked but not registered anywhere.
        """
        self.waiter = waiter
        self._lock = threading.RLock()
        self._resources: Dict[str, CountingIdlingResource] = {}

    # ═══════════════════════════════════════════════════════════════════════════
    # REGISTRATION
    # ═══════════════════════════════════════════════════════════════════════════

    def get_or_create(self, name: str) -> CountingIdlingResource:
        """
        Return the counter for a name, creating and registering it if absent.

        Calling this again with the same name returns the same counter
        with its count intact. The counter is registered with the waiter
        at most once.

        Args:
            name: Resource name (e.g., "network", "database")

        Returns:
            The CountingIdlingResource for this name
        """
        with self._lock:
            resource = self._resources.get(name)
            if resource is None:
                resource = CountingIdlingResource(name)
                self._resources[name] = resource
                if self.waiter is not None:
                    self.waiter.register(resource)
                logger.debug(f"Created idling counter '{name}'")
            return resource

    def unregister(self, name: str) -> bool:
        """
        Remove one counter and unregister it from the waiter.

        Args:
            name: Resource name

        Returns:
            True if the counter existed
        """
        with self._lock:
            resource = self._resources.pop(name, None)
            if resource is None:
                return False
            if self.waiter is not None:
                self.waiter.unregister(resource)
        logger.debug(f"Removed idling counter '{name}'")
        return True

    def clear_all(self) -> int:
        """
        Unregister every counter from the waiter and empty the registry.

        Operations still in flight may keep signalling on the removed
        counters; that is harmless but no longer observable. A later
        reference to the same name starts a fresh counter at zero.

        Returns:
            Number of counters removed
        """
        with self._lock:
            resources = list(self._resources.values())
            self._resources.clear()
            if self.waiter is not None and resources:
                self.waiter.unregister(*resources)
        if resources:
            logger.debug(f"Cleared {len(resources)} idling counter(s)")
        return len(resources)

    def list_all(self) -> FrozenSet[CountingIdlingResource]:
        """Snapshot of all currently registered counters."""
        with self._lock:
            return frozenset(self._resources.values())

    def names(self) -> List[str]:
        """Sorted names of all registered counters."""
        with self._lock:
            return sorted(self._resources)

    # ═══════════════════════════════════════════════════════════════════════════
    # SIGNALLING
    # ═══════════════════════════════════════════════════════════════════════════

    def increment(self, name: str) -> int:
        """
        Record the start of an operation under a name.

        Returns:
            The count after incrementing
        """
        return self.get_or_create(name).increment()

    def decrement(self, name: str) -> bool:
        """
        Record the end of an operation, unless the counter is already idle.

        Returns:
            True if the count was decremented, False if it was already zero
        """
        return self.get_or_create(name).decrement()

    # ═══════════════════════════════════════════════════════════════════════════
    # QUERIES
    # ═══════════════════════════════════════════════════════════════════════════

    def _get(self, name: str) -> Optional[CountingIdlingResource]:
        with self._lock:
            return self._resources.get(name)

    def is_idle(self, name: str) -> bool:
        """True if the named counter is absent or at zero."""
        resource = self._get(name)
        return resource is None or resource.is_idle_now()

    def count(self, name: str) -> int:
        """Current count for a name (0 if absent)."""
        resource = self._get(name)
        return resource.count if resource is not None else 0

    def busy_names(self) -> List[str]:
        """Sorted names of counters that are currently busy."""
        return sorted(r.name for r in self.list_all() if not r.is_idle_now())

    def is_quiescent(self) -> bool:
        """True if every registered counter is idle."""
        return not self.busy_names()

    def snapshot(self) -> Dict[str, int]:
        """Counts of every registered counter, ordered by name."""
        resources = sorted(self.list_all(), key=lambda r: r.name)
        return {r.name: r.count for r in resources}

    @property
    def ignored_decrements(self) -> int:
        """Total decrements ignored across currently registered counters."""
        return sum(r.ignored_decrements for r in self.list_all())

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._resources

    def __len__(self) -> int:
        with self._lock:
            return len(self._resources)

    def __repr__(self) -> str:
        return f"IdlingRegistry({self.snapshot()!r})"
