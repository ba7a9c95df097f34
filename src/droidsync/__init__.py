"""
DroidSync - Idling Resource Synchronization for Android UI Tests
================================================================

UI tests must not assert on the screen while the app is still loading
data in the background. DroidSync tracks that background work as named
counters of outstanding operations, and lets the test wait until every
counter has drained before it looks at the UI.

Main Components
---------------
- **idling**: the registry of named counters, idling resources and the
    idle monitor that waits for quiescence
- **testkit**: pytest fixtures, a fluent test context, and helpers that
    keep increments and decrements paired
- **cli**: the ``droidsync`` command (registry self-checks, configuration)

Quick Start
-----------
Signal background work from the app side:
    >>> from droidsync import IdleMonitor, IdlingRegistry
    >>> monitor = IdleMonitor()
    >>> registry = IdlingRegistry(monitor)
    >>> registry.increment("network")
    1
    >>> registry.decrement("network")
    True

Wait for quiescence from the test side:
    >>> monitor.wait_for_idle(timeout=5.0)

Version History
---------------
1.0.0 - Initial release with idling registry, idle monitor and pytest test kit
"""

__version__ = "1.0.0"
__author__ = "Hugo José Pinto & Contributors"

# =============================================================================
# Public API Exports
# =============================================================================

from droidsync.idling import (
    IdlingResource,
    CountingIdlingResource,
    SimpleIdlingResource,
    IdleMonitor,
    IdleWaiter,
    IdlingRegistry,
)
from droidsync.config import (
    SyncConfig,
    get_default_config,
    set_default_config,
)
from droidsync.exceptions import (
    DroidSyncError,
    IdleTimeoutError,
    SyncAssertionError,
    SyncSetupError,
)

__all__ = [
    # Version
    "__version__",
    # Idling
    "IdlingResource",
    "CountingIdlingResource",
    "SimpleIdlingResource",
    "IdleMonitor",
    "IdleWaiter",
    "IdlingRegistry",
    # Configuration
    "SyncConfig",
    "get_default_config",
    "set_default_config",
    # Exceptions
    "DroidSyncError",
    "IdleTimeoutError",
    "SyncAssertionError",
    "SyncSetupError",
]
