"""CLI entry point for the label serial allocator."""

from __future__ import annotations

import functools
import logging

import click

from config import settings
from exceptions import SerialError

_MODE_CHOICE = click.Choice(["jbk", "lot"], case_sensitive=False)


def _serial_errors(f):
    """Turn SerialError into a clean CLI failure."""

    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except SerialError as exc:
            hint = " (safe to retry)" if exc.retryable else ""
            if exc.serial is not None:
                hint = f" (serial {exc.serial} was drawn; finalize it instead of allocating again)"
            raise click.ClickException(f"{exc}{hint}") from exc

    return wrapper


@click.group()
def cli() -> None:
    """JBK and Lot serial number allocation."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)-8s] %(name)s - %(message)s",
    )


@cli.command()
@click.argument("part")
@click.option("--mode", type=_MODE_CHOICE, required=True, help="Serialization mode.")
@click.option("--queue-key", default=None, help="Queue entry to read if not the part.")
@_serial_errors
def peek(part: str, mode: str, queue_key: str | None) -> None:
    """Show the serial the next label for PART would get."""
    from services.serializer import peek as peek_serial

    print(peek_serial(part, mode, queue_key=queue_key))


@cli.command()
@click.argument("part")
@click.option("--mode", type=_MODE_CHOICE, required=True, help="Serialization mode.")
@click.option("--full/--partial", "full_unit", default=True, help="Basket type.")
@click.option("--queue-key", default=None, help="Queue entry to draw from if not the part.")
@_serial_errors
def allocate(part: str, mode: str, full_unit: bool, queue_key: str | None) -> None:
    """Allocate a serial number for a new label."""
    from services.serializer import allocate as allocate_serial

    print(allocate_serial(part, mode, full_unit, queue_key=queue_key))


@cli.command()
@click.argument("part")
@click.argument("serial")
@click.option("--printed/--failed", "succeeded", required=True, help="Print outcome.")
@click.option("--full/--partial", "full_unit", default=True, help="Basket type.")
@_serial_errors
def finalize(part: str, serial: str, succeeded: bool, full_unit: bool) -> None:
    """Record the outcome of printing SERIAL for PART."""
    from services.reconciliation import finalize as finalize_print

    action = finalize_print(part, serial, succeeded, full_unit)
    print(f"Serial {serial} {action} for {part}")


@cli.command()
@_serial_errors
def cache() -> None:
    """List serial numbers held in the local cache."""
    from storage import get_cache_store

    entries = get_cache_store().entries()
    if not entries:
        print("Serial cache is empty.")
        return

    print(f"{'Part':<30} {'Reserved':>12}")
    print("-" * 43)
    for part, value in sorted(entries.items()):
        print(f"{part:<30} {value:>12}")
    print(f"\nTotal: {len(entries)} reservation(s)")


@cli.command()
@click.option("--mode", type=_MODE_CHOICE, required=True, help="Serialization mode.")
@_serial_errors
def queue(mode: str) -> None:
    """List provisioned parts and their next queued serial."""
    from storage import get_queue_store
    from utils.serial import SerializationMode, format_serial

    store = get_queue_store(SerializationMode.parse(mode))
    parts = store.parts()
    if not parts:
        print(f"{store.label} is empty.")
        return

    print(f"{'Part':<30} {'Next':>12}")
    print("-" * 43)
    for part in parts:
        print(f"{part:<30} {format_serial(store.peek(part), store.mode):>12}")
    print(f"\nTotal: {len(parts)} part(s)")


@cli.command()
@click.option("--limit", default=20, show_default=True, help="Number of events to show.")
@_serial_errors
def history(limit: int) -> None:
    """Show the most recent print events."""
    from services.print_history import read_history

    if not settings.history_enabled:
        print("Print history is disabled.")
        return

    events = read_history(settings.print_history_path, limit=limit)
    if not events:
        print("No print events recorded.")
        return

    for event in events:
        print(event.to_line())


if __name__ == "__main__":
    cli()
