"""
DroidSync Test Kit - Pytest Fixtures
====================================

Pytest fixtures that give each test a registry whose counters are
registered with an idle monitor:

    sync_config               - Configuration (session-scoped)
    idle_monitor              - IdleMonitor shared by the session
    idling_registry_session   - IdlingRegistry shared by the session
    idling_registry           - The session registry, cleared around each test
    sync_ctx                  - SyncTestContext over idling_registry

The registry lives for the whole session and is only emptied between
tests, so production code that was handed the registry once keeps
signalling on the right object.

Usage:
    In your conftest.py, import the fixtures and hooks:

        from droidsync.testkit.fixtures import (
            sync_config, idle_monitor, idling_registry_session,
            idling_registry, sync_ctx, pytest_addoption, pytest_configure,
        )

    Then use in tests:

        def test_sync(sync_ctx):
            sync_ctx.track("network").assert_busy("network")

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from __future__ import annotations
from typing import Generator

import pytest

from droidsync.config import SyncConfig, get_default_config
from droidsync.exceptions import IdleTimeoutError, SyncSetupError
from droidsync.idling import IdleMonitor, IdlingRegistry

from .context import SyncTestContext


# ═══════════════════════════════════════════════════════════════════════════════
# FIXTURE IMPLEMENTATIONS
# ═══════════════════════════════════════════════════════════════════════════════


@pytest.fixture(scope="session")
def sync_config(request) -> SyncConfig:
    """
    Fixture: Sync configuration (session-scoped).

    Returns the global default configuration built from the pytest ini
    options, unless conftest.py installed one with set_default_config().
    Override in your conftest.py to customize:

        @pytest.fixture(scope="session")
        def sync_config():
            return SyncConfig(idle_timeout=2.0, strict_balance=True)
    """
    return get_default_config(request.config)


@pytest.fixture(scope="session")
def idle_monitor(sync_config: SyncConfig) -> IdleMonitor:
    """Fixture: Idle monitor shared by every test in the session."""
    return IdleMonitor(sync_config)


@pytest.fixture(scope="session")
def idling_registry_session(idle_monitor: IdleMonitor) -> Generator[IdlingRegistry, None, None]:
    """
    Fixture: Registry for the whole test session.

    Hand this to application code that needs a registry before any
    individual test runs.
    """
    registry = IdlingRegistry(idle_monitor)
    yield registry
    registry.clear_all()


@pytest.fixture(scope="function")
def idling_registry(
    idling_registry_session: IdlingRegistry, sync_config: SyncConfig
) -> Generator[IdlingRegistry, None, None]:
    """
    Fixture: Session registry, emptied before and after each test.

    Registers config.default_resources ("network" and "database" by
    default) before the test. After the test, optionally waits for
    quiescence (config.wait_for_idle_on_teardown) and then clears the
    registry.

    Example:
        def test_saves_draft(idling_registry):
            idling_registry.increment("database")
            assert not idling_registry.is_idle("database")
    """
    registry = idling_registry_session
    registry.clear_all()

    if sync_config.register_default_resources:
        try:
            for name in sync_config.default_resources:
                registry.get_or_create(name)
        except Exception as e:
            raise SyncSetupError(
                f"Failed to register default idling resources: {e}",
                phase="register_defaults",
                cause=e,
            )

    yield registry

    try:
        if sync_config.wait_for_idle_on_teardown and isinstance(registry.waiter, IdleMonitor):
            registry.waiter.wait_for_idle()
    except IdleTimeoutError as e:
        pytest.fail(f"Registry not idle at teardown: {e}", pytrace=False)
    finally:
        registry.clear_all()


@pytest.fixture(scope="function")
def sync_ctx(
    request,
    idling_registry: IdlingRegistry,
    idle_monitor: IdleMonitor,
    sync_config: SyncConfig,
) -> Generator[SyncTestContext, None, None]:
    """
    Fixture: SyncTestContext over the per-test registry.

    With config.strict_balance enabled, the test fails at teardown if
    any decrement was ignored during the test.

    Example:
        def test_refresh(sync_ctx):
            sync_ctx.track("network").release("network")
            sync_ctx.wait_until_idle().assert_quiescent()
    """
    ctx = SyncTestContext(idling_registry, idle_monitor, sync_config)
    ctx.diagnostics.set_test_name(request.node.name)
    yield ctx

    if sync_config.strict_balance:
        ctx.assert_no_ignored_decrements()


# ═══════════════════════════════════════════════════════════════════════════════
# PYTEST HOOKS
# ═══════════════════════════════════════════════════════════════════════════════


def pytest_addoption(parser):
    """Register droidsync ini options."""
    parser.addini("droidsync_timeout", "Idle wait timeout in seconds", default="")
    parser.addini("droidsync_poll_interval", "Idle poll interval in seconds", default="")
    parser.addini(
        "droidsync_resources",
        "Resource names registered before every test",
        type="args",
        default=[],
    )
    parser.addini(
        "droidsync_strict", "Fail tests that ignored unbalanced decrements", default=""
    )


def pytest_configure(config):
    """
    Register droidsync markers.

    Registers:
        droidsync: Test uses the @idle_test decorator
    """
    config.addinivalue_line(
        "markers", "droidsync: Test runs with a fresh droidsync idling registry"
    )
