"""Command-line interface for the mobile GLB optimizer."""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.markup import escape

from mobile_glb.utils.constants import DEFAULT_CONFIG, OptimizationConfig

try:
    __version__ = version("mobile-glb")
except PackageNotFoundError:
    __version__ = "unknown"

app = typer.Typer(
    name="mobile-glb",
    help="Optimize a GLB scene for mobile delivery",
    add_completion=False,
    rich_markup_mode="rich",
)
err_console = Console(stderr=True)


def version_callback(value: bool) -> None:
    if value:
        print(f"mobile-glb {__version__}")
        raise typer.Exit()


@app.command()
def optimize(
    input_path: Annotated[
        Path,
        typer.Argument(
            help="Input [bold green].glb[/] file",
            metavar="INPUT",
        ),
    ] = DEFAULT_CONFIG.input_path,
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output GLB path",
            rich_help_panel="Core Options",
        ),
    ] = DEFAULT_CONFIG.output_path,
    max_texture_size: Annotated[
        int,
        typer.Option(
            "--max-texture",
            min=1,
            help="Max texture size in px",
            rich_help_panel="Textures",
        ),
    ] = DEFAULT_CONFIG.texture_resolution,
    quality: Annotated[
        int,
        typer.Option(
            "--quality",
            "-q",
            min=0,
            max=100,
            help="WebP quality (0-100, lossy)",
            rich_help_panel="Textures",
        ),
    ] = DEFAULT_CONFIG.texture_quality,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
) -> None:
    """
    Deduplicate, prune, resample and compress a GLB, then print a report.
    """
    # Deferred so --help and --version stay fast
    from mobile_glb.pipeline import run_pipeline

    try:
        config = OptimizationConfig(
            texture_resolution=max_texture_size,
            texture_quality=quality,
            input_path=input_path,
            output_path=output,
        )
        run_pipeline(config)
    except Exception as e:
        err_console.print(f"[bold red]FATAL ERROR:[/] {escape(str(e))}", soft_wrap=True)
        raise typer.Exit(code=1) from e


def main() -> None:
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
