"""
DroidSync Test Kit - Test Context
=================================

The SyncTestContext is the central class of the test kit. It wraps an
IdlingRegistry (and the IdleMonitor its counters are registered with)
and provides:

- Signalling actions that mirror what the app under test does
- Waiting for quiescence with timeout handling
- Fluent assertions on idle state that return self for chaining
- Action logging for diagnostic purposes

Usage:
    def test_refresh(sync_ctx: SyncTestContext):
        sync_ctx.track("network")
        start_refresh(on_done=lambda: sync_ctx.registry.decrement("network"))
        sync_ctx.wait_until_idle().assert_quiescent()

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from __future__ import annotations
from typing import Dict, List, Optional

from droidsync.config import SyncConfig, get_default_config
from droidsync.exceptions import IdleTimeoutError, SyncAssertionError
from droidsync.idling import IdleMonitor, IdlingRegistry

from .diagnostics import SyncDiagnostics, ActionLogEntry


class SyncTestContext:
    """
    Test context for idle synchronization.

    All action methods return self for fluent chaining. Every action is
    logged; when an assertion fails or a wait times out, the log and a
    snapshot of every counter are printed as a failure report.

    Attributes:
        registry: The wrapped IdlingRegistry
        monitor: IdleMonitor used by wait_until_idle()
        config: Test configuration

    Example:
        ctx.track("database").then().assert_busy("database")
        ctx.release("database").assert_idle("database")
    """

    def __init__(
        self,
        registry: IdlingRegistry,
        monitor: Optional[IdleMonitor] = None,
        config: Optional[SyncConfig] = None,
    ):
        """
        Initialize test context.

        Args:
            registry: Registry the app under test signals on
            monitor: Monitor to wait on (default: the registry's waiter
                     when it is an IdleMonitor, else the registry's counters)
            config: Test configuration (default: global config)
        """
        self.registry = registry
        if monitor is None and isinstance(registry.waiter, IdleMonitor):
            monitor = registry.waiter
        self.monitor = monitor
        self.config = config or get_default_config()
        self._diagnostics = SyncDiagnostics(self)

    # ═══════════════════════════════════════════════════════════════════════════
    # PROPERTIES
    # ═══════════════════════════════════════════════════════════════════════════

    @property
    def counts(self) -> Dict[str, int]:
        """Current count of every registered counter."""
        return self.registry.snapshot()

    @property
    def busy(self) -> List[str]:
        """Names of busy counters."""
        return self.registry.busy_names()

    @property
    def action_log(self) -> List[ActionLogEntry]:
        """Log of all actions performed (for diagnostics)."""
        return self._diagnostics.action_log

    @property
    def diagnostics(self) -> SyncDiagnostics:
        return self._diagnostics

    # ═══════════════════════════════════════════════════════════════════════════
    # ACTIONS
    # ═══════════════════════════════════════════════════════════════════════════

    def register(self, *names: str) -> "SyncTestContext":
        """
        Make sure counters exist (and are registered) for the given names.

        Returns:
            self (for chaining)
        """
        self._diagnostics.log_action_start("register", ", ".join(f'"{n}"' for n in names))
        for name in names:
            self.registry.get_or_create(name)
        self._diagnostics.log_action_end("success")
        return self

    def track(self, name: str) -> "SyncTestContext":
        """
        Increment a counter, as the app does when async work starts.

        Returns:
            self (for chaining)
        """
        self._diagnostics.log_action_start("track", f'"{name}"')
        self.registry.increment(name)
        self._diagnostics.log_action_end("success")
        return self

    def release(self, name: str) -> "SyncTestContext":
        """
        Decrement a counter, as the app does when async work finishes.

        A release on an idle counter is ignored by the registry; it is
        logged here as failed so it shows up in the action log.

        Returns:
            self (for chaining)
        """
        self._diagnostics.log_action_start("release", f'"{name}"')
        if self.registry.decrement(name):
            self._diagnostics.log_action_end("success")
        else:
            self._diagnostics.log_action_end("failed", f"'{name}' was already idle")
        return self

    def wait_until_idle(
        self,
        *,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> "SyncTestContext":
        """
        Wait until every registered resource is idle.

        Args:
            timeout: Maximum seconds to wait (default: from config)
            poll_interval: Seconds between checks (default: from config)

        Returns:
            self (for chaining)

        Raises:
            IdleTimeoutError: If quiescence is not reached in time
        """
        monitor = self.monitor
        temporary = monitor is None
        if temporary:
            monitor = IdleMonitor(self.config)
            monitor.register(*self.registry.list_all())

        self._diagnostics.log_action_start(
            "wait_until_idle", f"timeout={timeout}" if timeout is not None else ""
        )
        try:
            monitor.wait_for_idle(timeout=timeout, poll_interval=poll_interval)
        except IdleTimeoutError as e:
            self._diagnostics.log_action_end("timeout", str(e))
            print("\n" + self._diagnostics.format_failure_report(e) + "\n")
            raise
        finally:
            if temporary:
                monitor.unregister(*monitor.registered)
        self._diagnostics.log_action_end("success")
        return self

    def then(self) -> "SyncTestContext":
        """
        Semantic no-op for readability in fluent chains.

        Example:
            ctx.track("network").then().assert_busy("network")
        """
        return self

    # ═══════════════════════════════════════════════════════════════════════════
    # ASSERTIONS - All return self for chaining
    # ═══════════════════════════════════════════════════════════════════════════

    def assert_idle(self, name: str, *, msg: Optional[str] = None) -> "SyncTestContext":
        """
        Assert a counter is idle (or absent).

        Raises:
            SyncAssertionError: If the counter is busy
        """
        self._diagnostics.log_action_start("assert_idle", f'"{name}"')

        if self.registry.is_idle(name):
            self._diagnostics.log_action_end("success")
            return self

        actual = self.registry.count(name)
        self._fail(
            msg or f"Resource '{name}' is busy (count {actual})",
            assertion_type="idle",
            expected=0,
            actual=actual,
            custom_message=msg,
        )

    def assert_busy(self, name: str, *, msg: Optional[str] = None) -> "SyncTestContext":
        """
        Assert a counter has outstanding operations.

        Raises:
            SyncAssertionError: If the counter is idle or absent
        """
        self._diagnostics.log_action_start("assert_busy", f'"{name}"')

        if not self.registry.is_idle(name):
            self._diagnostics.log_action_end("success")
            return self

        self._fail(
            msg or f"Resource '{name}' is idle",
            assertion_type="busy",
            expected="> 0",
            actual=0,
            custom_message=msg,
        )

    def assert_count(
        self, name: str, expected: int, *, msg: Optional[str] = None
    ) -> "SyncTestContext":
        """
        Assert the exact count of a counter.

        Raises:
            SyncAssertionError: If the count differs
        """
        self._diagnostics.log_action_start("assert_count", f'"{name}", {expected}')

        actual = self.registry.count(name)
        if actual == expected:
            self._diagnostics.log_action_end("success")
            return self

        self._fail(
            msg or f"Resource '{name}': expected count {expected}, got {actual}",
            assertion_type="count",
            expected=expected,
            actual=actual,
            custom_message=msg,
        )

    def assert_quiescent(self, *, msg: Optional[str] = None) -> "SyncTestContext":
        """
        Assert every registered counter is idle right now (no waiting).

        Raises:
            SyncAssertionError: If any counter is busy
        """
        self._diagnostics.log_action_start("assert_quiescent", "")

        busy = self.registry.busy_names()
        if not busy:
            self._diagnostics.log_action_end("success")
            return self

        self._fail(
            msg or f"Resources still busy: {', '.join(busy)}",
            assertion_type="quiescent",
            expected=[],
            actual=busy,
            custom_message=msg,
        )

    def assert_no_ignored_decrements(
        self, *, msg: Optional[str] = None
    ) -> "SyncTestContext":
        """
        Assert no decrement was ignored because its counter was idle.

        An ignored decrement means some caller decremented more often than
        it incremented, which can hide outstanding work from the monitor.

        Raises:
            SyncAssertionError: If any decrement was ignored
        """
        self._diagnostics.log_action_start("assert_no_ignored_decrements", "")

        offenders = {
            r.name: r.ignored_decrements
            for r in self.registry.list_all()
            if r.ignored_decrements
        }
        if not offenders:
            self._diagnostics.log_action_end("success")
            return self

        summary = ", ".join(f"{name} x{n}" for name, n in sorted(offenders.items()))
        self._fail(
            msg or f"Unbalanced decrements ignored: {summary}",
            assertion_type="ignored_decrements",
            expected=0,
            actual=dict(sorted(offenders.items())),
            custom_message=msg,
        )

    def _fail(self, error_msg: str, **details) -> None:
        """Build, report and raise a SyncAssertionError."""
        error = SyncAssertionError(error_msg, counts=self.registry.snapshot(), **details)
        self._diagnostics.log_action_end("failed", error_msg)
        print("\n" + self._diagnostics.format_failure_report(error) + "\n")
        raise error
