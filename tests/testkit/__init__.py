"""
DroidSync Test Kit Tests
========================

Tests for the test kit defined in src/droidsync/testkit/: the fluent
SyncTestContext, the tracking helpers and @idle_test decorator, and the
pytest fixtures.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""
