"""
DroidSync - Configuration
=========================

Configuration for idle synchronization: wait timing, the resources every
test starts with, and diagnostics behaviour. Configuration can come from:
- Default values (defined here)
- Pytest configuration (ini options)
- Environment variables

All timing values are in seconds of wall-clock time.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional
import logging
import os

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class SyncConfig:
    """
    Configuration for idle synchronization in tests.

    Attributes:
        idle_timeout: Maximum seconds to wait for quiescence (default: 10.0)
        poll_interval: Seconds between idle checks while waiting (default: 0.05)
        default_resources: Names registered at the start of every test
        register_default_resources: Register default_resources in fixtures
        strict_balance: Fail tests that issued more decrements than increments
        wait_for_idle_on_teardown: Wait for quiescence before clearing the registry
        max_action_log_size: Maximum actions to keep in the context log
    """

    # ═══════════════════════════════════════════════════════════════════════════
    # TIMING
    # ═══════════════════════════════════════════════════════════════════════════

    idle_timeout: float = 10.0
    poll_interval: float = 0.05

    # ═══════════════════════════════════════════════════════════════════════════
    # RESOURCES
    # ═══════════════════════════════════════════════════════════════════════════

    default_resources: List[str] = field(
        default_factory=lambda: ["network", "database"]
    )
    register_default_resources: bool = True

    # ═══════════════════════════════════════════════════════════════════════════
    # DIAGNOSTICS
    # ═══════════════════════════════════════════════════════════════════════════

    strict_balance: bool = False
    wait_for_idle_on_teardown: bool = False
    max_action_log_size: int = 100

    # ═══════════════════════════════════════════════════════════════════════════
    # FACTORY METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    @classmethod
    def from_env(cls) -> "SyncConfig":
        """
        Create SyncConfig from environment variables.

        Environment variables (all optional):
            DROIDSYNC_TIMEOUT: Idle timeout in seconds (float)
            DROIDSYNC_POLL_INTERVAL: Poll interval in seconds (float)
            DROIDSYNC_RESOURCES: Comma-separated default resource names
            DROIDSYNC_STRICT: Enable strict balance checking (1/true/yes/on)
            DROIDSYNC_LOG_ACTIONS: Maximum action log size (integer)

        Returns:
            SyncConfig with values from environment variables
        """
        config = cls()

        if timeout := os.environ.get("DROIDSYNC_TIMEOUT"):
            config.idle_timeout = _parse_float("DROIDSYNC_TIMEOUT", timeout, config.idle_timeout)

        if interval := os.environ.get("DROIDSYNC_POLL_INTERVAL"):
            config.poll_interval = _parse_float(
                "DROIDSYNC_POLL_INTERVAL", interval, config.poll_interval
            )

        if resources := os.environ.get("DROIDSYNC_RESOURCES"):
            config.default_resources = _parse_names(resources)

        if strict := os.environ.get("DROIDSYNC_STRICT"):
            config.strict_balance = strict.strip().lower() in _TRUE_VALUES

        if log_size := os.environ.get("DROIDSYNC_LOG_ACTIONS"):
            try:
                config.max_action_log_size = int(log_size)
            except ValueError:
                logger.warning(f"Ignoring invalid DROIDSYNC_LOG_ACTIONS={log_size!r}")

        return config

    @classmethod
    def from_pytest_config(cls, pytest_config) -> "SyncConfig":
        """
        Create SyncConfig from pytest configuration.

        Reads from pytest.ini or pyproject.toml [tool.pytest.ini_options]:
            droidsync_timeout = 5
            droidsync_poll_interval = 0.02
            droidsync_resources = network database images
            droidsync_strict = true

        Values not set in the ini file fall back to the environment.

        Args:
            pytest_config: Pytest Config object

        Returns:
            SyncConfig with values from pytest configuration
        """
        config = cls.from_env()

        if not hasattr(pytest_config, "getini"):
            return config

        if timeout := _getini(pytest_config, "droidsync_timeout"):
            config.idle_timeout = _parse_float("droidsync_timeout", timeout, config.idle_timeout)

        if interval := _getini(pytest_config, "droidsync_poll_interval"):
            config.poll_interval = _parse_float(
                "droidsync_poll_interval", interval, config.poll_interval
            )

        if resources := _getini(pytest_config, "droidsync_resources"):
            # linelist ini values arrive as a list, plain values as a string
            if isinstance(resources, str):
                resources = [resources]
            config.default_resources = _parse_names(" ".join(resources))

        if strict := _getini(pytest_config, "droidsync_strict"):
            config.strict_balance = str(strict).strip().lower() in _TRUE_VALUES

        return config

    # ═══════════════════════════════════════════════════════════════════════════
    # HELPER METHODS
    # ═══════════════════════════════════════════════════════════════════════════

    def to_dict(self) -> Dict[str, Any]:
        """Return the configuration as a plain dictionary."""
        return asdict(self)


def _getini(pytest_config, name: str) -> Any:
    # Unregistered ini keys raise ValueError (the fixtures' pytest_addoption was not loaded)
    try:
        return pytest_config.getini(name)
    except ValueError:
        return None


def _parse_float(source: str, raw: str, fallback: float) -> float:
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {source}={raw!r}")
        return fallback
    if value <= 0:
        logger.warning(f"Ignoring non-positive {source}={raw!r}")
        return fallback
    return value


def _parse_names(raw: str) -> List[str]:
    """Split a comma- or whitespace-separated list of resource names."""
    return [name for name in raw.replace(",", " ").split() if name]


# ═══════════════════════════════════════════════════════════════════════════════
# DEFAULT CONFIGURATION INSTANCE
# ═══════════════════════════════════════════════════════════════════════════════

_default_config: Optional[SyncConfig] = None
# Where _default_config came from: None, "env", "pytest" or "explicit"
_default_source: Optional[str] = None


def get_default_config(pytest_config=None) -> SyncConfig:
    """
    Get the default sync configuration.

    Created on first access from environment variables. When a pytest
    configuration is given, the ini options take over from an
    environment-only default, even if one was already created (e.g. by
    an IdleMonitor built while conftest.py was imported). A configuration
    installed with set_default_config() is never replaced.

    Args:
        pytest_config: Optional pytest Config to read ini options from

    Returns:
        Default SyncConfig instance
    """
    global _default_config, _default_source
    if pytest_config is not None and _default_source in (None, "env"):
        _default_config = SyncConfig.from_pytest_config(pytest_config)
        _default_source = "pytest"
    elif _default_config is None:
        _default_config = SyncConfig.from_env()
        _default_source = "env"
    return _default_config


def set_default_config(config: Optional[SyncConfig]) -> None:
    """
    Set the default sync configuration.

    Use this in conftest.py to customize configuration for all tests.
    Passing None resets to the environment-derived default on next access.

    Args:
        config: Configuration to use as default
    """
    global _default_config, _default_source
    _default_config = config
    _default_source = "explicit" if config is not None else None
