"""
Idling Registry Unit Tests
==========================

Tests for IdlingRegistry: get-or-create identity, clamped signalling,
waiter registration, bulk clearing and concurrent signalling.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import pytest

from droidsync.idling import CountingIdlingResource, IdleMonitor, IdlingRegistry


@pytest.fixture
def registry():
    return IdlingRegistry()


# =============================================================================
# Registration Tests
# =============================================================================

class TestRegistration:
    """Test get_or_create, unregister and waiter registration."""

    def test_initial_state(self, registry):
        """Registry starts empty."""
        assert len(registry) == 0
        assert registry.list_all() == frozenset()
        assert registry.names() == []

    def test_get_or_create_creates(self, registry):
        """get_or_create adds a counter at zero."""
        counter = registry.get_or_create("network")
        assert isinstance(counter, CountingIdlingResource)
        assert counter.name == "network"
        assert counter.count == 0
        assert "network" in registry

    def test_get_or_create_returns_same_counter(self, registry):
        """Second call returns the same counter without resetting it."""
        first = registry.get_or_create("network")
        first.increment()
        second = registry.get_or_create("network")
        assert second is first
        assert second.count == 1

    def test_registers_with_waiter_once(self, recording_waiter):
        """A counter is registered with the waiter at most once per name."""
        registry = IdlingRegistry(recording_waiter)
        registry.get_or_create("network")
        registry.get_or_create("network")
        registry.increment("network")
        registry.get_or_create("database")
        assert recording_waiter.registered == ["network", "database"]

    def test_unregister(self, recording_waiter):
        """unregister removes one counter and unregisters it."""
        registry = IdlingRegistry(recording_waiter)
        registry.get_or_create("network")
        registry.get_or_create("database")

        assert registry.unregister("network") is True
        assert "network" not in registry
        assert "database" in registry
        assert recording_waiter.unregistered == ["network"]

    def test_unregister_missing(self, registry):
        """Unregistering an unknown name is safe."""
        assert registry.unregister("missing") is False

    def test_works_with_idle_monitor(self):
        """Counters appear in the monitor as they are created."""
        monitor = IdleMonitor()
        registry = IdlingRegistry(monitor)
        registry.increment("network")
        assert monitor.is_registered("network")
        assert monitor.busy_resources() == ["network"]


# =============================================================================
# Signalling Tests
# =============================================================================

class TestSignalling:
    """Test increment, decrement and idle queries."""

    def test_network_scenario(self, registry):
        """Increment twice, decrement once: busy with count 1; again: idle."""
        registry.get_or_create("network")
        registry.increment("network")
        registry.increment("network")
        registry.decrement("network")
        assert registry.is_idle("network") is False
        assert registry.count("network") == 1

        registry.decrement("network")
        assert registry.is_idle("network") is True

    def test_increment_creates_counter(self, registry):
        """Signalling an unknown name creates its counter."""
        assert registry.increment("database") == 1
        assert "database" in registry

    def test_decrement_on_idle_is_clamped(self, registry):
        """Decrementing an idle counter leaves it idle at zero."""
        assert registry.decrement("network") is False
        assert registry.count("network") == 0
        assert registry.is_idle("network")
        assert registry.ignored_decrements == 1

    def test_unknown_name_is_idle(self, registry):
        """is_idle on an unknown name is True and does not create it."""
        assert registry.is_idle("never-seen")
        assert "never-seen" not in registry
        assert registry.count("never-seen") == 0

    def test_busy_names_and_quiescence(self, registry):
        """busy_names lists only busy counters, sorted."""
        registry.increment("network")
        registry.increment("database")
        registry.get_or_create("images")

        assert registry.busy_names() == ["database", "network"]
        assert not registry.is_quiescent()

        registry.decrement("network")
        registry.decrement("database")
        assert registry.busy_names() == []
        assert registry.is_quiescent()

    def test_snapshot(self, registry):
        """snapshot maps every name to its count, ordered by name."""
        registry.increment("network")
        registry.increment("network")
        registry.get_or_create("database")
        assert registry.snapshot() == {"database": 0, "network": 2}
        assert list(registry.snapshot()) == ["database", "network"]


# =============================================================================
# Clearing Tests
# =============================================================================

class TestClearAll:
    """Test bulk teardown."""

    def test_clear_all_empties_registry(self, recording_waiter):
        """After clear_all, list_all is empty and all were unregistered."""
        registry = IdlingRegistry(recording_waiter)
        registry.increment("network")
        registry.get_or_create("database")

        assert registry.clear_all() == 2
        assert registry.list_all() == frozenset()
        assert sorted(recording_waiter.unregistered) == ["database", "network"]

    def test_clear_all_on_empty_registry(self, registry):
        assert registry.clear_all() == 0

    def test_name_starts_fresh_after_clear(self, registry):
        """A previously known name starts at zero after clear_all."""
        old = registry.get_or_create("network")
        old.increment()
        registry.clear_all()

        new = registry.get_or_create("network")
        assert new is not old
        assert new.count == 0
        assert registry.is_idle("network")

    def test_list_all_is_snapshot(self, registry):
        """list_all returns a snapshot unaffected by later changes."""
        registry.get_or_create("network")
        snapshot = registry.list_all()
        registry.get_or_create("database")
        assert {r.name for r in snapshot} == {"network"}

    def test_stale_counter_does_not_affect_registry(self, registry):
        """Signalling a cleared counter is not observable through the registry."""
        stale = registry.get_or_create("network")
        registry.clear_all()
        stale.increment()
        assert registry.is_idle("network")
        assert "network" not in registry


# =============================================================================
# Concurrency Tests
# =============================================================================

class TestConcurrency:
    """Concurrent signalling must not lose updates."""

    @pytest.mark.parametrize("threads", [1, 10, 100])
    def test_concurrent_increments_then_decrements(self, registry, run_in_threads, threads):
        """N concurrent increments followed by N decrements end idle."""
        rounds = 50

        def produce():
            for _ in range(rounds):
                registry.increment("network")

        def consume():
            for _ in range(rounds):
                registry.decrement("network")

        run_in_threads(threads, produce)
        assert registry.count("network") == threads * rounds

        run_in_threads(threads, consume)
        assert registry.count("network") == 0
        assert registry.is_idle("network")
        assert registry.ignored_decrements == 0

    def test_concurrent_get_or_create_yields_one_counter(self, recording_waiter, run_in_threads):
        """Racing creators all get the same counter, registered once."""
        registry = IdlingRegistry(recording_waiter)
        seen = []

        run_in_threads(20, lambda: seen.append(registry.get_or_create("network")))

        assert len({id(counter) for counter in seen}) == 1
        assert recording_waiter.registered == ["network"]

    def test_clear_all_during_signalling(self, registry, run_in_threads):
        """clear_all racing with signalling never raises."""

        def signal():
            for i in range(200):
                registry.increment(f"r{i % 5}")
                registry.decrement(f"r{i % 5}")
                if i % 50 == 0:
                    registry.clear_all()
                    registry.list_all()

        run_in_threads(8, signal)
        assert all(count >= 0 for count in registry.snapshot().values())
