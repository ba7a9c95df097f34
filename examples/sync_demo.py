#!/usr/bin/env python3
"""
DroidSync Idling Registry Demo
==============================

This script demonstrates how to use the droidsync idling registry to:
1. Create a registry wired to an idle monitor
2. Signal background work from "app" threads
3. Wait for quiescence before asserting on the UI
4. See unbalanced decrements being ignored and counted

Usage:
    source .venv/bin/activate
    python examples/sync_demo.py

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import random
import threading
import time

from droidsync import IdleMonitor, IdlingRegistry, SyncConfig
from droidsync.testkit import tracking


def main():
    # ==========================================================================
    # 1. Create the registry
    # ==========================================================================
    # The registry is handed to every call site that starts async work.
    # Counters are registered with the monitor on first reference.

    print("Creating idle monitor and registry...")
    monitor = IdleMonitor(SyncConfig(idle_timeout=5.0, poll_interval=0.01))
    registry = IdlingRegistry(monitor)

    # ==========================================================================
    # 2. Start background work
    # ==========================================================================
    # Each "request" increments on start and decrements when done.

    def fake_request(name: str):
        with tracking(registry, name):
            time.sleep(random.uniform(0.05, 0.3))

    workers = [
        threading.Thread(target=fake_request, args=("network",)) for _ in range(5)
    ] + [
        threading.Thread(target=fake_request, args=("database",)) for _ in range(3)
    ]
    for worker in workers:
        worker.start()

    time.sleep(0.01)
    print(f"  Counts while loading: {registry.snapshot()}")
    print(f"  Busy: {registry.busy_names()}")

    # ==========================================================================
    # 3. Wait for quiescence
    # ==========================================================================
    # wait_for_idle() returns once every registered resource is idle at once,
    # or raises IdleTimeoutError naming the busy ones.

    print("\nWaiting for idle...")
    elapsed = monitor.wait_for_idle()
    print(f"  Idle after {elapsed:.3f}s: {registry.snapshot()}")

    for worker in workers:
        worker.join()

    # ==========================================================================
    # 4. Unbalanced decrements
    # ==========================================================================
    # Decrementing an idle counter is a no-op, recorded for diagnostics.

    print("\nDecrementing an idle counter...")
    applied = registry.decrement("network")
    print(f"  Applied: {applied}")
    print(f"  Count: {registry.count('network')}")
    print(f"  Ignored decrements: {registry.ignored_decrements}")

    # ==========================================================================
    # 5. Clean up between tests
    # ==========================================================================
    removed = registry.clear_all()
    print(f"\nCleared {removed} counters; registry now has {len(registry)}")


if __name__ == "__main__":
    main()
