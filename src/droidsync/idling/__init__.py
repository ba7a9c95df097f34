"""
DroidSync Idling Resources
==========================

Synchronization primitives that let UI tests wait for background work.

- **IdlingRegistry**: named counters of outstanding operations
- **CountingIdlingResource** / **SimpleIdlingResource**: waitable resources
- **IdleMonitor**: waits until every registered resource is idle

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from .resources import (
    IdlingResource,
    CountingIdlingResource,
    SimpleIdlingResource,
)
from .monitor import IdleMonitor, IdleWaiter
from .registry import IdlingRegistry

__all__ = [
    "IdlingResource",
    "CountingIdlingResource",
    "SimpleIdlingResource",
    "IdleMonitor",
    "IdleWaiter",
    "IdlingRegistry",
]
