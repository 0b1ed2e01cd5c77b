"""
dtk-registry CLI

Implements 4 CLI verbs over the Operations facade:
- digests: Resolve an image to its repository and layer digests
- toolkit-release: Kernel and OS versions of a driver-toolkit image
- toolkit-image: Driver-toolkit image listed in a release payload
- machine-os: machine-os-content versions listed in a release payload
"""
from __future__ import annotations

import logging
from typing import Optional

import typer

from .cli_context import CLIContext
from .operations import Operations, OpsConfig, run_and_exit
from .operations.printers import print_digests, print_toolkit_entry, print_value

app = typer.Typer(name="dtk-registry", help="Read driver-toolkit and release metadata from image layers")


def _operations(ctx: typer.Context, json_output: bool) -> Operations:
    """Build the facade from the context created by the app callback."""
    state = ctx.obj or {}
    context = state.get("context")
    if context is None:
        context = CLIContext.from_env(architecture=state.get("arch"))
    return Operations(config=OpsConfig(json_output=json_output), registry=context.registry)


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    arch: Optional[str] = typer.Option(None, "--arch", envvar="DTK_ARCH",
                                       help="Architecture to select from multi-arch images"),
) -> None:
    """Resolve images and read metadata from their last layer."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    ctx.ensure_object(dict)
    ctx.obj.setdefault("arch", arch)


@app.command()
def digests(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Image reference with tag or digest"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Resolve an image to its repository and ordered layer digests."""

    def _digests() -> None:
        ops = _operations(ctx, json_output)
        print_digests(ops.digests(image), json_output=ops.cfg.json_output)

    run_and_exit(_digests)


@app.command("toolkit-release")
def toolkit_release(
    ctx: typer.Context,
    image: str = typer.Argument(..., help="Driver-toolkit image reference"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Kernel, RT kernel and OS versions a driver-toolkit image was built for."""

    def _toolkit_release() -> None:
        ops = _operations(ctx, json_output)
        print_toolkit_entry(ops.toolkit_release(image), json_output=ops.cfg.json_output)

    run_and_exit(_toolkit_release)


@app.command("toolkit-image")
def toolkit_image(
    ctx: typer.Context,
    release_image: str = typer.Argument(..., help="Release payload image reference"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """Driver-toolkit image URL listed in a release payload."""

    def _toolkit_image() -> None:
        ops = _operations(ctx, json_output)
        print_value("imageURL", ops.toolkit_image(release_image), json_output=ops.cfg.json_output)

    run_and_exit(_toolkit_image)


@app.command("machine-os")
def machine_os(
    ctx: typer.Context,
    release_image: str = typer.Argument(..., help="Release payload image reference"),
    json_output: bool = typer.Option(False, "--json", help="Print JSON"),
) -> None:
    """machine-os-content build versions listed in a release payload."""

    def _machine_os() -> None:
        ops = _operations(ctx, json_output)
        print_value("machineOSVersions", ops.machine_os(release_image), json_output=ops.cfg.json_output)

    run_and_exit(_machine_os)


if __name__ == "__main__":
    app()
