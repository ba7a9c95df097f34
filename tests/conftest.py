"""
DroidSync Test Configuration
============================

pytest configuration shared by all tests. Registers the droidsync
fixtures and hooks, and provides helpers for threading tests.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import threading
from typing import Callable, List

import pytest

from droidsync.config import SyncConfig, set_default_config
from droidsync.testkit.fixtures import (
    sync_config,
    idle_monitor,
    idling_registry_session,
    idling_registry,
    sync_ctx,
    pytest_addoption,
    pytest_configure,
)


# Re-export fixtures so pytest can discover them
__all__ = [
    "sync_config",
    "idle_monitor",
    "idling_registry_session",
    "idling_registry",
    "sync_ctx",
]


# ═══════════════════════════════════════════════════════════════════════════════
# HELPER FIXTURES
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def fast_config() -> SyncConfig:
    """Fixture: Configuration with short timeouts for unit tests."""
    return SyncConfig(idle_timeout=1.0, poll_interval=0.01)


@pytest.fixture
def clean_default_config():
    """Fixture: Reset the global default configuration around a test."""
    set_default_config(None)
    yield
    set_default_config(None)


class RecordingWaiter:
    """Idle waiter that records register/unregister calls."""

    def __init__(self):
        self.registered: List[str] = []
        self.unregistered: List[str] = []

    def register(self, *resources) -> bool:
        self.registered.extend(r.name for r in resources)
        return True

    def unregister(self, *resources) -> bool:
        self.unregistered.extend(r.name for r in resources)
        return True


@pytest.fixture
def recording_waiter() -> RecordingWaiter:
    return RecordingWaiter()


def _run_in_threads(count: int, action: Callable[[], None]) -> None:
    """Run action once on each of count threads, all released together."""
    barrier = threading.Barrier(count)

    def worker():
        barrier.wait()
        action()

    threads = [threading.Thread(target=worker) for _ in range(count)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)


@pytest.fixture
def run_in_threads() -> Callable[[int, Callable[[], None]], None]:
    """Fixture: Helper that runs an action concurrently on N threads."""
    return _run_in_threads
