"""
Test Kit - Fixture Tests
========================

Tests for the pytest fixtures exported by droidsync.testkit.fixtures
(imported by tests/conftest.py).

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import pytest

from droidsync.idling import IdleMonitor, IdlingRegistry
from droidsync.testkit import SyncTestContext


_seen_registries = []


class TestRegistryFixtures:
    def test_defaults_registered(self, idling_registry, sync_config):
        """Every test starts with exactly the default resources, all idle."""
        expected = set(sync_config.default_resources) if sync_config.register_default_resources else set()
        assert set(idling_registry.names()) == expected
        assert idling_registry.is_quiescent()
        assert idling_registry.ignored_decrements == 0

    def test_leftover_state_first(self, idling_registry):
        """Leave a busy counter behind; the next test must not see it."""
        idling_registry.increment("leftover")
        idling_registry.increment("network")
        _seen_registries.append(idling_registry)

    def test_leftover_state_second(self, idling_registry):
        assert "leftover" not in idling_registry
        assert idling_registry.is_quiescent()
        _seen_registries.append(idling_registry)

    def test_same_registry_across_tests(self, idling_registry, idling_registry_session):
        """The per-test registry is the session registry, emptied in between."""
        assert idling_registry is idling_registry_session
        assert all(r is idling_registry for r in _seen_registries)

    def test_registry_uses_session_monitor(self, idling_registry, idle_monitor):
        assert isinstance(idling_registry, IdlingRegistry)
        assert isinstance(idle_monitor, IdleMonitor)
        assert idling_registry.waiter is idle_monitor
        for resource in idling_registry.list_all():
            assert idle_monitor.is_registered(resource.name)


class TestSyncCtxFixture:
    def test_context_wraps_registry(self, sync_ctx, idling_registry, idle_monitor):
        assert isinstance(sync_ctx, SyncTestContext)
        assert sync_ctx.registry is idling_registry
        assert sync_ctx.monitor is idle_monitor

    def test_test_name_recorded(self, sync_ctx):
        assert sync_ctx.diagnostics.test_name == "test_test_name_recorded"

    def test_track_release_wait(self, sync_ctx):
        sync_ctx.track("network").assert_busy("network")
        sync_ctx.release("network").wait_until_idle(timeout=1.0).assert_quiescent()


# =============================================================================
# Fixture behaviour in a separate pytest run
# =============================================================================

FIXTURE_IMPORTS = """
from droidsync.testkit.fixtures import (
    sync_config,
    idle_monitor,
    idling_registry_session,
    idling_registry,
    sync_ctx,
    pytest_addoption,
    pytest_configure,
)
"""


@pytest.fixture
def droidsync_pytester(pytester, monkeypatch):
    """Pytester with the droidsync fixtures in its conftest and a clean environment."""
    for var in (
        "DROIDSYNC_TIMEOUT",
        "DROIDSYNC_POLL_INTERVAL",
        "DROIDSYNC_RESOURCES",
        "DROIDSYNC_STRICT",
        "DROIDSYNC_LOG_ACTIONS",
    ):
        monkeypatch.delenv(var, raising=False)
    return pytester


class TestIniConfiguration:
    def test_ini_applies_after_import_time_monitor(self, droidsync_pytester):
        """A monitor built while conftest.py is imported does not hide the ini options."""
        droidsync_pytester.makeini(
            """
            [pytest]
            droidsync_timeout = 2
            droidsync_resources = images
            """
        )
        droidsync_pytester.makeconftest(
            FIXTURE_IMPORTS
            + """
from droidsync import IdleMonitor, IdlingRegistry

APP_REGISTRY = IdlingRegistry(IdleMonitor())
"""
        )
        droidsync_pytester.makepyfile(
            """
            def test_ini_values(sync_config, idling_registry):
                assert sync_config.idle_timeout == 2.0
                assert idling_registry.names() == ["images"]
            """
        )
        result = droidsync_pytester.runpytest_subprocess()
        result.assert_outcomes(passed=1)


class TestTeardownChecks:
    def test_strict_mode_fails_on_ignored_decrement(self, droidsync_pytester):
        droidsync_pytester.makeini(
            """
            [pytest]
            droidsync_strict = true
            """
        )
        droidsync_pytester.makeconftest(FIXTURE_IMPORTS)
        droidsync_pytester.makepyfile(
            """
            def test_unbalanced(sync_ctx):
                sync_ctx.release("network")
            """
        )
        result = droidsync_pytester.runpytest_subprocess()
        result.assert_outcomes(passed=1, errors=1)
        result.stdout.fnmatch_lines(["*Unbalanced decrements ignored: network x1*"])

    def test_strict_mode_off_passes(self, droidsync_pytester):
        droidsync_pytester.makeconftest(FIXTURE_IMPORTS)
        droidsync_pytester.makepyfile(
            """
            def test_unbalanced(sync_ctx):
                sync_ctx.release("network")
            """
        )
        result = droidsync_pytester.runpytest_subprocess()
        result.assert_outcomes(passed=1)

    def test_wait_for_idle_on_teardown(self, droidsync_pytester):
        """A counter left busy fails the test at teardown when waiting is enabled."""
        droidsync_pytester.makeconftest(
            FIXTURE_IMPORTS
            + """
import pytest

from droidsync import SyncConfig


@pytest.fixture(scope="session")
def sync_config():
    return SyncConfig(idle_timeout=0.1, poll_interval=0.01, wait_for_idle_on_teardown=True)
"""
        )
        droidsync_pytester.makepyfile(
            """
            def test_leaves_work_running(idling_registry):
                idling_registry.increment("network")
            """
        )
        result = droidsync_pytester.runpytest_subprocess()
        result.assert_outcomes(passed=1, errors=1)
        result.stdout.fnmatch_lines(["*Registry not idle at teardown*"])
