"""
DroidSync Test Kit - Decorators
===============================

Helpers that keep increments and decrements paired, plus the test
decorator that sets up a registry for a plain test function.

Available Helpers:
    tracking(registry, name)  - Context manager: increment on entry, decrement on exit
    @tracks(registry, name)   - Same, wrapped around a function (sync or async)
    @idle_test(...)           - Give a test a fresh SyncTestContext

Usage:
    from droidsync.testkit import idle_test, tracks, tracking

    @tracks(registry, "network")
    def fetch_profile(user_id):
        ...

    with tracking(registry, "database"):
        save_draft()

    @idle_test(resources=["images"], wait_after=True)
    def test_gallery(ctx: SyncTestContext):
        ctx.track("images").release("images")

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Callable, Iterator, List, Optional, TypeVar
import functools
import inspect

import pytest

from droidsync.config import SyncConfig, get_default_config
from droidsync.exceptions import SyncSetupError
from droidsync.idling import IdleMonitor, IdlingRegistry

from .context import SyncTestContext


F = TypeVar("F", bound=Callable[..., Any])


@contextmanager
def tracking(registry: IdlingRegistry, name: str) -> Iterator[None]:
    """
    Mark a block of work as outstanding on a named counter.

    The decrement happens even if the block raises, so the counter can
    never be left busy by an exception.

    Args:
        registry: Registry to signal on
        name: Counter name
    """
    registry.increment(name)
    try:
        yield
    finally:
        registry.decrement(name)


def tracks(registry: IdlingRegistry, name: str) -> Callable[[F], F]:
    """
    Decorate a function so each call is tracked on a named counter.

    Coroutine functions are tracked until the coroutine completes.

    Args:
        registry: Registry to signal on
        name: Counter name

    Example:
        @tracks(registry, "network")
        async def fetch_feed():
            ...
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs):
                with tracking(registry, name):
                    return await func(*args, **kwargs)

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with tracking(registry, name):
                return func(*args, **kwargs)

        return wrapper

    return decorator


def idle_test(
    resources: Optional[List[str]] = None,
    *,
    wait_after: bool = False,
    strict: Optional[bool] = None,
    timeout: Optional[float] = None,
    config: Optional[SyncConfig] = None,
) -> Callable[[F], F]:
    """
    Decorator for tests that need a fresh idling registry.

    Builds an IdleMonitor and IdlingRegistry, registers the default
    resources (plus any listed here), and passes a SyncTestContext as
    the test's first argument. The registry is always cleared when the
    test ends.

    Args:
        resources: Extra resource names to register before the test
        wait_after: Wait for quiescence after the test body returns
        strict: Fail if any decrement was ignored (default: config.strict_balance)
        timeout: Timeout for wait_after (default: config.idle_timeout)
        config: Custom SyncConfig (default: global default)

    Example:
        @idle_test(resources=["images"], strict=True)
        def test_thumbnail_loads(ctx: SyncTestContext):
            ctx.track("images").assert_busy("images")
            ctx.release("images").assert_quiescent()
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            test_config = config or get_default_config()
            check_balance = test_config.strict_balance if strict is None else strict

            monitor = IdleMonitor(test_config)
            registry = IdlingRegistry(monitor)

            names = list(test_config.default_resources) if test_config.register_default_resources else []
            names.extend(resources or [])
            try:
                for name in names:
                    registry.get_or_create(name)
            except Exception as e:
                raise SyncSetupError(
                    f"Failed to register idling resources: {e}",
                    phase="register_defaults",
                    cause=e,
                )

            ctx = SyncTestContext(registry, monitor, test_config)
            ctx.diagnostics.set_test_name(func.__name__)

            try:
                result = func(ctx, *args, **kwargs)
                if wait_after:
                    ctx.wait_until_idle(timeout=timeout)
                if check_balance:
                    ctx.assert_no_ignored_decrements()
                return result
            finally:
                registry.clear_all()

        # Hide the context parameter from pytest so it is not looked up as a fixture
        orig_sig = inspect.signature(func)
        params = list(orig_sig.parameters.values())
        if params and params[0].kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            params = params[1:]
        wrapper.__signature__ = orig_sig.replace(parameters=params)

        return pytest.mark.droidsync(wrapper)

    return decorator
