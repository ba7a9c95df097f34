"""
DroidSync Test Kit - Diagnostics
================================

Diagnostic utilities for test failure analysis:
- Action logging with timing information
- Counter snapshots before and after each action
- Failure reports listing busy resources and recent actions

When a sync assertion fails or an idle wait times out, the report shows
what every counter looked like and which signals led up to the failure.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional
import time

if TYPE_CHECKING:
    from .context import SyncTestContext


@dataclass
class ActionLogEntry:
    """
    Record of a single action performed during a test.

    Attributes:
        index: Sequential action number (1-based for readability)
        action_type: Type of action (track, release, wait_until_idle, assert_*)
        action_args: Human-readable argument summary (e.g., '"network"')
        timestamp: Seconds since the context was created
        duration: Seconds spent in this action
        result: "success", "failed", or "timeout"
        counts_before: Counter snapshot before the action
        counts_after: Counter snapshot after the action
        error_message: Error details if result != "success"
    """

    index: int
    action_type: str
    action_args: str
    timestamp: float
    duration: float = 0.0
    result: str = "success"
    counts_before: Dict[str, int] = field(default_factory=dict)
    counts_after: Dict[str, int] = field(default_factory=dict)
    error_message: Optional[str] = None

    def format_short(self) -> str:
        """
        Format action as single-line summary.

        Returns:
            Formatted string like '[  3] track("network") → success (0.001s)'
        """
        if self.result == "timeout":
            result_str = f"TIMEOUT after {self.duration:.3f}s"
        elif self.result == "failed":
            result_str = "FAILED"
        else:
            result_str = f"success ({self.duration:.3f}s)"

        return f"[{self.index:3}] {self.action_type}({self.action_args}) → {result_str}"

    def format_detailed(self) -> str:
        """Format action with counter snapshots."""
        lines = [self.format_short()]

        if self.counts_before:
            lines.append(f"    Counts before: {_format_counts(self.counts_before)}")

        if self.counts_after and self.counts_after != self.counts_before:
            lines.append(f"    Counts after:  {_format_counts(self.counts_after)}")

        if self.error_message:
            lines.append(f"    Error: {self.error_message}")

        return "\n".join(lines)


def _format_counts(counts: Dict[str, int]) -> str:
    if not counts:
        return "(none)"
    return ", ".join(f"{name}={count}" for name, count in counts.items())


class SyncDiagnostics:
    """
    Diagnostic collector for a SyncTestContext.

    Usage:
        diagnostics = SyncDiagnostics(ctx)

        diagnostics.log_action_start("track", '"network"')
        # ... action executes ...
        diagnostics.log_action_end("success")

        report = diagnostics.format_failure_report(error)
    """

    def __init__(self, ctx: "SyncTestContext"):
        self._ctx = ctx
        self._action_log: List[ActionLogEntry] = []
        self._current_action: Optional[ActionLogEntry] = None
        self._test_name: Optional[str] = None
        self._start = time.monotonic()

    @property
    def action_log(self) -> List[ActionLogEntry]:
        """Get the action log."""
        return self._action_log

    @property
    def test_name(self) -> Optional[str]:
        return self._test_name

    def set_test_name(self, name: str) -> None:
        """Set the current test name for reports."""
        self._test_name = name

    def log_action_start(self, action_type: str, action_args: str) -> None:
        """
        Log the start of an action.

        Args:
            action_type: Type of action (track, release, wait_until_idle, ...)
            action_args: Human-readable arguments
        """
        max_size = self._ctx.config.max_action_log_size
        if len(self._action_log) >= max_size:
            # Keep the most recent half
            self._action_log = self._action_log[max_size // 2 :]

        self._current_action = ActionLogEntry(
            index=len(self._action_log) + 1,
            action_type=action_type,
            action_args=action_args,
            timestamp=time.monotonic() - self._start,
            counts_before=self._ctx.registry.snapshot(),
        )

    def log_action_end(
        self,
        result: str = "success",
        error_message: Optional[str] = None,
    ) -> None:
        """
        Log the end of an action.

        Args:
            result: "success", "failed", or "timeout"
            error_message: Error details if failed
        """
        if self._current_action is None:
            return

        action = self._current_action
        action.duration = (time.monotonic() - self._start) - action.timestamp
        action.result = result
        action.error_message = error_message
        action.counts_after = self._ctx.registry.snapshot()

        self._action_log.append(action)
        self._current_action = None

    def format_failure_report(self, error: Exception) -> str:
        """
        Format a failure report for an assertion or timeout.

        Args:
            error: The exception that caused the failure

        Returns:
            Multi-line formatted failure report
        """
        registry = self._ctx.registry
        lines = []

        lines.append("╔" + "═" * 78 + "╗")
        lines.append("║" + "IDLE SYNC FAILURE".center(78) + "║")
        lines.append("╠" + "═" * 78 + "╣")

        lines.append("║" + " " * 78 + "║")
        test_name = self._test_name or "unknown"
        lines.append("║" + f"  Test: {test_name}".ljust(78) + "║")
        lines.append("║" + f"  Error: {str(error)[:69]}".ljust(78) + "║")
        lines.append("║" + " " * 78 + "║")

        lines.append("╠" + "═" * 78 + "╣")
        lines.append("║" + "  COUNTERS".ljust(78) + "║")
        counts = registry.snapshot()
        if not counts:
            lines.append("║" + "  (no counters registered)".ljust(78) + "║")
        for name, count in counts.items():
            state = "idle" if count == 0 else "BUSY"
            lines.append("║" + f"  {name[:50]:<50} {count:>6}  {state}".ljust(78) + "║")
        lines.append(
            "║" + f"  Ignored decrements: {registry.ignored_decrements}".ljust(78) + "║"
        )
        lines.append("║" + " " * 78 + "║")

        lines.append("╠" + "═" * 78 + "╣")
        recent_count = min(5, len(self._action_log))
        total_count = len(self._action_log)
        lines.append(
            "║"
            + f"  RECENT ACTIONS (last {recent_count} of {total_count})".ljust(78)
            + "║"
        )
        for entry in self._action_log[-recent_count:] if recent_count else []:
            lines.append("║" + f"  {entry.format_short()[:75]}".ljust(78) + "║")
        lines.append("║" + " " * 78 + "║")

        lines.append("╚" + "═" * 78 + "╝")

        return "\n".join(lines)

    def format_action_log(self, detailed: bool = False) -> str:
        """
        Format complete action log.

        Args:
            detailed: If True, include counter snapshots for each action
        """
        if not self._action_log:
            return "No actions recorded"

        lines = [f"Action Log ({len(self._action_log)} actions):", ""]

        for entry in self._action_log:
            if detailed:
                lines.append(entry.format_detailed())
            else:
                lines.append(entry.format_short())

        return "\n".join(lines)
