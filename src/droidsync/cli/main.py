"""
droidsync - Idling Registry Command-Line Interface
==================================================

Self-checks for the idling registry, useful when validating a test
harness or a new interpreter build.

Usage Examples
--------------
Hammer one counter from 10 producer and 10 consumer threads:
    $ droidsync stress --threads 10

Show that extra decrements are clamped and counted:
    $ droidsync stress --threads 4 --extra-decrements 3

Print the effective configuration:
    $ droidsync config
    $ droidsync config --json

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import json
import logging
import threading
import time

import click

from droidsync import __version__
from droidsync.config import SyncConfig
from droidsync.idling import IdleMonitor, IdlingRegistry

from .errors import ExitCode, handle_cli_exception


# =============================================================================
# CLI Definition
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable debug logging",
)
@click.version_option(version=__version__, prog_name="droidsync")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """
    Inspect and exercise the droidsync idling registry.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.option(
    "-t", "--threads",
    type=click.IntRange(min=1),
    default=10,
    show_default=True,
    help="Number of producer threads (and as many consumer threads)",
)
@click.option(
    "-r", "--rounds",
    type=click.IntRange(min=1),
    default=100,
    show_default=True,
    help="Increments per producer (and decrements per consumer)",
)
@click.option(
    "-n", "--name",
    default="network",
    show_default=True,
    help="Counter name to signal on",
)
@click.option(
    "--extra-decrements",
    type=click.IntRange(min=0),
    default=0,
    help="Decrements to issue after the counter has drained",
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Seconds to wait for idle after signalling (default: from config)",
)
@click.pass_context
def stress(
    ctx: click.Context,
    threads: int,
    rounds: int,
    name: str,
    extra_decrements: int,
    timeout: float,
) -> None:
    """
    Signal one counter concurrently and check it returns to idle.

    Producers increment first; once they have all finished, the same
    number of consumers decrement. The counter must end idle, and any
    --extra-decrements must be ignored rather than drive it negative.
    """
    try:
        config = SyncConfig.from_env()
        monitor = IdleMonitor(config)
        registry = IdlingRegistry(monitor)

        start = time.monotonic()
        _run_threads(threads, rounds, lambda: registry.increment(name))
        peak = registry.count(name)
        _run_threads(threads, rounds, lambda: registry.decrement(name))

        for _ in range(extra_decrements):
            registry.decrement(name)

        monitor.wait_for_idle(timeout=timeout)
        elapsed = time.monotonic() - start

        click.echo(f"Counter:            {name}")
        click.echo(f"Threads:            {threads} producers, {threads} consumers")
        click.echo(f"Peak count:         {peak} (expected {threads * rounds})")
        click.echo(f"Final count:        {registry.count(name)}")
        click.echo(f"Idle:               {registry.is_idle(name)}")
        click.echo(f"Ignored decrements: {registry.ignored_decrements}")
        click.echo(f"Elapsed:            {elapsed:.3f}s")

        if peak != threads * rounds or not registry.is_idle(name):
            click.echo("Error: lost updates detected", err=True)
            ctx.exit(ExitCode.NOT_IDLE)

    except click.exceptions.Exit:
        raise
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.obj.get("verbose", False))


@main.command("config")
@click.option(
    "--json", "as_json",
    is_flag=True,
    help="Print configuration as JSON",
)
def show_config(as_json: bool) -> None:
    """
    Print the configuration derived from DROIDSYNC_* environment variables.
    """
    values = SyncConfig.from_env().to_dict()
    if as_json:
        click.echo(json.dumps(values, indent=2))
        return
    for key, value in values.items():
        if isinstance(value, list):
            value = ", ".join(value)
        click.echo(f"{key}: {value}")


def _run_threads(count: int, rounds: int, action) -> None:
    """Run action rounds times on each of count threads, released together."""
    barrier = threading.Barrier(count)

    def worker():
        barrier.wait()
        for _ in range(rounds):
            action()

    workers = [threading.Thread(target=worker, daemon=True) for _ in range(count)]
    for thread in workers:
        thread.start()
    for thread in workers:
        thread.join()


if __name__ == "__main__":
    main()
