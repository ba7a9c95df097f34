"""
DroidSync Test Kit
==================

Pytest support for tests that must wait on background work in the app
under test. The test kit wraps an IdlingRegistry and IdleMonitor with
fixtures, a fluent test context and failure diagnostics.

Quick Start
-----------

Fixture-based test::

    def test_refresh(sync_ctx):
        sync_ctx.track("network")
        sync_ctx.assert_busy("network")
        sync_ctx.release("network").wait_until_idle().assert_quiescent()

Decorator-based test with its own registry::

    from droidsync.testkit import idle_test, SyncTestContext

    @idle_test(resources=["images"], strict=True)
    def test_thumbnail(ctx: SyncTestContext):
        ctx.track("images").release("images")

Keeping production signals paired::

    from droidsync.testkit import tracks, tracking

    @tracks(registry, "network")
    def fetch_feed():
        ...

    with tracking(registry, "database"):
        save_draft()

Fixtures
--------

Register the fixtures in your conftest.py::

    from droidsync.testkit.fixtures import (
        sync_config,
        idle_monitor,
        idling_registry_session,
        idling_registry,
        sync_ctx,
        pytest_addoption,
        pytest_configure,
    )

Configuration
-------------

Via pytest ini options::

    [tool.pytest.ini_options]
    droidsync_timeout = "5"
    droidsync_resources = ["network", "database", "images"]
    droidsync_strict = "true"

Or via environment variables::

    DROIDSYNC_TIMEOUT=5
    DROIDSYNC_RESOURCES=network,database,images
    DROIDSYNC_STRICT=1

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from .context import SyncTestContext

from .decorators import (
    idle_test,
    tracks,
    tracking,
)

from .diagnostics import (
    SyncDiagnostics,
    ActionLogEntry,
)

from .fixtures import (
    sync_config,
    idle_monitor,
    idling_registry_session,
    idling_registry,
    sync_ctx,
    pytest_addoption,
    pytest_configure,
)


__all__ = [
    # Core
    "SyncTestContext",
    # Decorators
    "idle_test",
    "tracks",
    "tracking",
    # Diagnostics
    "SyncDiagnostics",
    "ActionLogEntry",
    # Fixtures
    "sync_config",
    "idle_monitor",
    "idling_registry_session",
    "idling_registry",
    "sync_ctx",
    "pytest_addoption",
    "pytest_configure",
]
