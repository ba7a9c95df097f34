"""
DroidSync - Exception Classes
=============================

Exceptions raised by the test kit and the idle monitor. The idling
registry itself never raises for state reasons: unbalanced signalling is
clamped and counted, not reported as an error.

Exception Hierarchy:
    DroidSyncError (base)
    ├── IdleTimeoutError       - Resources did not become idle in time
    ├── SyncAssertionError     - Idle-state assertion failed
    └── SyncSetupError         - Error during test setup

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from typing import Optional, List, Dict, Any


class DroidSyncError(Exception):
    """
    Base exception for all DroidSync errors.

    Carries a context dictionary with diagnostic details so callers
    (and failure reports) can inspect what the registry looked like.
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """
        Initialize error with message and optional context.

        Args:
            message: Human-readable error description
            context: Additional diagnostic information (counts, busy names, etc.)
        """
        super().__init__(message)
        self.context = context or {}


class IdleTimeoutError(DroidSyncError):
    """
    Raised when registered resources fail to reach quiescence in time.
    """

    def __init__(
        self,
        message: str,
        *,
        timeout: float = None,
        busy_resources: List[str] = None,
        elapsed: float = None,
    ):
        """
        Initialize timeout error with diagnostic details.

        Args:
            message: Description of what timed out
            timeout: Seconds we were prepared to wait
            busy_resources: Names of resources still busy at timeout
            elapsed: Seconds actually spent waiting
        """
        context = {
            "timeout": timeout,
            "busy_resources": busy_resources,
            "elapsed": elapsed,
        }
        super().__init__(message, context)
        self.timeout = timeout
        self.busy_resources = busy_resources or []
        self.elapsed = elapsed


class SyncAssertionError(DroidSyncError, AssertionError):
    """
    Raised when an idle-state assertion fails.

    Inherits from both DroidSyncError (for context) and AssertionError
    (for pytest compatibility).
    """

    def __init__(
        self,
        message: str,
        *,
        assertion_type: str = None,
        expected: Any = None,
        actual: Any = None,
        counts: Dict[str, int] = None,
        custom_message: str = None,
    ):
        """
        Initialize assertion error with diagnostic context.

        Args:
            message: Description of the failed assertion
            assertion_type: Type of assertion (idle, busy, count, quiescent, ...)
            expected: Expected value
            actual: Actual value found
            counts: Snapshot of every registered counter
            custom_message: User-provided custom message
        """
        context = {
            "assertion_type": assertion_type,
            "expected": expected,
            "actual": actual,
            "counts": counts,
            "custom_message": custom_message,
        }
        super().__init__(message, context)
        self.assertion_type = assertion_type
        self.expected = expected
        self.actual = actual
        self.counts = counts
        self.custom_message = custom_message


class SyncSetupError(DroidSyncError):
    """
    Raised when test setup fails.

    This covers registering default resources and building the
    monitor or registry for a decorated test.
    """

    def __init__(
        self,
        message: str,
        *,
        phase: str = None,
        cause: Exception = None,
    ):
        """
        Initialize setup error.

        Args:
            message: Description of setup failure
            phase: Setup phase that failed (register_defaults, wait_idle, ...)
            cause: Underlying exception if any
        """
        context = {
            "phase": phase,
            "cause": str(cause) if cause else None,
        }
        super().__init__(message, context)
        self.phase = phase
        self.cause = cause
