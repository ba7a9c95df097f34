"""
Idle Monitor
============

The idle-wait mechanism that idling resources are registered with. The
monitor holds a set of named resources and, on request, blocks until
every one of them reports idle at the same time (quiescence) or a
timeout expires.

The idling registry only needs the register()/unregister() half of this
class (the IdleWaiter protocol), so a test harness with its own waiting
machinery can be injected in its place.

Example usage:

    >>> monitor = IdleMonitor()
    >>> registry = IdlingRegistry(monitor)
    >>> registry.increment("network")
    >>> start_background_request(on_done=lambda: registry.decrement("network"))
    >>> monitor.wait_for_idle(timeout=5.0)   # returns once "network" drains

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from typing import Dict, List, Optional, Protocol
import logging
import threading
import time

from droidsync.config import SyncConfig, get_default_config
from droidsync.exceptions import IdleTimeoutError

from .resources import IdlingResource

logger = logging.getLogger(__name__)


class IdleWaiter(Protocol):
    """Anything idling resources can be registered with."""

    def register(self, *resources: IdlingResource) -> bool:
        ...

    def unregister(self, *resources: IdlingResource) -> bool:
        ...


class IdleMonitor:
    """
    Poll registered idling resources until they are all idle.

    Resources are keyed by name. Registering the same object twice is a
    no-op; registering a different object under a name that is already
    taken is refused, because the monitor could then wait on a resource
    nobody signals.

    wait_for_idle() polls at config.poll_interval but also wakes as soon
    as any resource fires its idle transition callback.

    Attributes:
        config: Timing defaults for wait_for_idle()
    """

    def __init__(self, config: Optional[SyncConfig] = None):
        self.config = config or get_default_config()
        self._lock = threading.RLock()
        self._resources: Dict[str, IdlingResource] = {}
        self._condition = threading.Condition()

    # ═══════════════════════════════════════════════════════════════════════════
    # REGISTRATION
    # ═══════════════════════════════════════════════════════════════════════════

    def register(self, *resources: IdlingResource) -> bool:
        """
        Register resources to be waited on.

        Args:
            *resources: Idling resources to register

        Returns:
            True if every resource is now registered, False if any was
            refused because its name belongs to a different resource
        """
        all_registered = True
        with self._lock:
            for resource in resources:
                existing = self._resources.get(resource.name)
                if existing is resource:
                    continue
                if existing is not None:
                    logger.warning(
                        f"Refusing to register {resource!r}: name '{resource.name}' "
                        f"already belongs to {existing!r}"
                    )
                    all_registered = False
                    continue
                self._resources[resource.name] = resource
                resource.register_idle_transition_callback(self._on_transition_to_idle)
                logger.debug(f"Registered idling resource '{resource.name}'")
        return all_registered

    def unregister(self, *resources: IdlingResource) -> bool:
        """
        Stop waiting on resources.

        Args:
            *resources: Idling resources to unregister

        Returns:
            True if every resource was registered before this call
        """
        all_found = True
        with self._lock:
            for resource in resources:
                if self._resources.get(resource.name) is not resource:
                    all_found = False
                    continue
                del self._resources[resource.name]
                resource.remove_idle_transition_callback(self._on_transition_to_idle)
                logger.debug(f"Unregistered idling resource '{resource.name}'")
        return all_found

    @property
    def registered(self) -> List[IdlingResource]:
        """Snapshot of registered resources, ordered by name."""
        with self._lock:
            return [self._resources[name] for name in sorted(self._resources)]

    def is_registered(self, name: str) -> bool:
        """Whether a resource with this name is registered."""
        with self._lock:
            return name in self._resources

    # ═══════════════════════════════════════════════════════════════════════════
    # STATE
    # ═══════════════════════════════════════════════════════════════════════════

    def busy_resources(self) -> List[str]:
        """Names of registered resources that are currently busy."""
        return [r.name for r in self.registered if not r.is_idle_now()]

    def is_idle_now(self) -> bool:
        """True if every registered resource is idle."""
        return not self.busy_resources()

    # ═══════════════════════════════════════════════════════════════════════════
    # WAITING
    # ═══════════════════════════════════════════════════════════════════════════

    def wait_for_idle(
        self,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> float:
        """
        Block until all registered resources are idle.

        Args:
            timeout: Maximum seconds to wait (default: config.idle_timeout)
            poll_interval: Seconds between checks (default: config.poll_interval)

        Returns:
            Seconds spent waiting

        Raises:
            IdleTimeoutError: If resources are still busy when the timeout expires
        """
        timeout = timeout if timeout is not None else self.config.idle_timeout
        interval = poll_interval if poll_interval is not None else self.config.poll_interval

        start = time.monotonic()
        deadline = start + timeout

        with self._condition:
            while True:
                busy = self.busy_resources()
                now = time.monotonic()
                if not busy:
                    elapsed = now - start
                    logger.debug(f"Quiescent after {elapsed:.3f}s")
                    return elapsed

                remaining = deadline - now
                if remaining <= 0:
                    elapsed = now - start
                    logger.warning(
                        f"Idle wait timed out after {elapsed:.3f}s; busy: {', '.join(busy)}"
                    )
                    raise IdleTimeoutError(
                        f"Resources did not become idle within {timeout:g}s: "
                        f"{', '.join(busy)}",
                        timeout=timeout,
                        busy_resources=busy,
                        elapsed=elapsed,
                    )

                self._condition.wait(min(interval, remaining))

    def _on_transition_to_idle(self) -> None:
        with self._condition:
            self._condition.notify_all()
