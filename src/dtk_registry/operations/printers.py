"""
Human-readable and JSON output formatting.

Centralizes all CLI output so commands stay thin. Everything is printed
with soft wrapping so digests and image URLs are never folded mid-token.
"""
from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.markup import escape

from ..registry import LayerDigests
from ..release import DriverToolkitEntry

_console = Console()
_err_console = Console(stderr=True)


def print_json(data: Any) -> None:
    """Print data as indented JSON."""
    _console.print_json(json.dumps(data))


def print_digests(resolved: LayerDigests, *, json_output: bool = False) -> None:
    """
    Print an image's repository and layer digests, base layer first.

    The last digest is marked; that is the layer metadata is read from.
    """
    if json_output:
        print_json({"repository": resolved.repository, "digests": list(resolved.digests)})
        return

    auth = "anonymous" if resolved.credential is None else "pull secret"
    _console.print(f"[bold]Repository:[/] {escape(resolved.repository)}", soft_wrap=True)
    _console.print(f"[bold]Auth:[/] {auth}", soft_wrap=True)

    last = len(resolved.digests) - 1
    for i, digest in enumerate(resolved.digests):
        marker = " [bold yellow](last)[/]" if i == last else ""
        _console.print(f"{i:>3}  [cyan]{escape(digest)}[/]{marker}", soft_wrap=True, highlight=False)


def print_toolkit_entry(entry: DriverToolkitEntry, *, json_output: bool = False) -> None:
    """Print a driver-toolkit entry."""
    if json_output:
        print_json(entry.to_dict())
        return

    for label, value in (
        ("Image", entry.image_url),
        ("Kernel", entry.kernel_full_version),
        ("RT kernel", entry.rt_kernel_full_version),
        ("OS version", entry.os_version),
    ):
        _console.print(f"[bold]{label}:[/] {escape(value)}", soft_wrap=True, highlight=False)


def print_value(label: str, value: str, *, json_output: bool = False) -> None:
    """Print a single labelled string result."""
    if json_output:
        print_json({label: value})
        return
    _console.print(value, soft_wrap=True, highlight=False, markup=False)


def print_error(exc: BaseException) -> None:
    """Print an error message to stderr."""
    _err_console.print(f"[bold red]Error:[/] {escape(str(exc))}", soft_wrap=True, highlight=False)
