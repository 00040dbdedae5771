"""Command-line interface for the glTF LOD generator."""

import os
import sys
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from typing import Annotated

import typer
from rich.console import Console

try:
    __version__ = version("notso-lod")
except PackageNotFoundError:
    __version__ = "unknown"

from notso_lod.config import LODConfig
from notso_lod.errors import ConfigError
from notso_lod.utils.constants import DEFAULT_CONFIG, SUPPORTED_EXTENSIONS

app = typer.Typer(
    name="notso-lod",
    help="Generate MSFT_lod levels of detail for GLB/glTF files",
    add_completion=False,
    rich_markup_mode="rich",
    suggest_commands=True,
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        print(f"notso-lod {__version__}")
        raise typer.Exit()


class CoverageOrder(Enum):
    descending = "descending"
    ascending = "ascending"
    none = "none"


@app.command()
def generate(
    input_path: Annotated[
        str,
        typer.Argument(
            help="Input file ([bold green].glb[/] or [bold green].gltf[/])",
            metavar="INPUT",
        ),
    ],
    output_path: Annotated[
        str,
        typer.Argument(
            help="Output file ([bold green].glb[/] or [bold green].gltf[/])",
            metavar="OUTPUT",
        ),
    ],
    ratio: Annotated[
        str,
        typer.Option(
            help="Triangle ratio per level, e.g. [italic]0.5,0.1[/]",
            rich_help_panel="Levels",
        ),
    ] = "",
    error: Annotated[
        str,
        typer.Option(
            help="Simplification error bound per level, e.g. [italic]0.01,0.05[/]",
            rich_help_panel="Levels",
        ),
    ] = "",
    coverage: Annotated[
        str,
        typer.Option(
            help="Screen coverage thresholds, one more than levels, e.g. [italic]0.7,0.3,0.0[/]",
            rich_help_panel="Levels",
        ),
    ] = "",
    coverage_order: Annotated[
        CoverageOrder,
        typer.Option(
            help="Expected order of coverage values ([italic]none[/] skips the check)",
            rich_help_panel="Levels",
        ),
    ] = CoverageOrder["descending"],
    texture: Annotated[
        str | None,
        typer.Option(
            help="Max texture size per level, e.g. [italic]512x512,128x128[/]",
            rich_help_panel="Textures",
        ),
    ] = None,
    interleaved: Annotated[
        bool,
        typer.Option(
            "--interleaved/",
            help="Write interleaved vertex buffers",
            rich_help_panel="Output",
        ),
    ] = DEFAULT_CONFIG["interleaved"],
    weld: Annotated[
        bool,
        typer.Option(
            "--weld/--no-weld",
            help="Merge identical vertices before simplifying",
            rich_help_panel="Output",
        ),
    ] = DEFAULT_CONFIG["weld"],
    dedup: Annotated[
        bool,
        typer.Option(
            "--dedup/--no-dedup",
            help="Merge identical resources after generation",
            rich_help_panel="Output",
        ),
    ] = DEFAULT_CONFIG["dedup"],
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Hide per-mesh and per-texture details",
        ),
    ] = DEFAULT_CONFIG["quiet"],
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
    Generate simplified LOD meshes and write them as MSFT_lod chains.
    """
    # Everything below is checked before the document is read
    abs_input_path = os.path.abspath(input_path)
    if not os.path.isfile(abs_input_path):
        console.print(f"[bold red][ERROR][/] File not found: {abs_input_path}")
        raise typer.Exit(code=1)

    for path in (abs_input_path, output_path):
        ext = os.path.splitext(path)[1].lower()
        if ext not in SUPPORTED_EXTENSIONS:
            console.print(f"[bold red][ERROR][/] Unsupported format: {ext or path}")
            console.print(f"        Supported: {', '.join(SUPPORTED_EXTENSIONS)}")
            raise typer.Exit(code=1)

    order = None if coverage_order is CoverageOrder.none else coverage_order.value
    try:
        config = LODConfig.from_strings(
            ratio,
            error,
            coverage,
            texture,
            interleaved=interleaved,
            coverage_order=order,
        )
    except ConfigError as e:
        console.print(f"[bold red][ERROR][/] {e}")
        raise typer.Exit(code=1) from None

    # Lazy import to keep --help snappy
    from notso_lod.exporters import generate_and_export

    try:
        generate_and_export(
            abs_input_path,
            os.path.abspath(output_path),
            config,
            quiet=quiet,
            weld_vertices=weld,
            dedup_resources=dedup,
        )
    except Exception as e:
        console.print(f"[bold red][ERROR][/] {type(e).__name__}: {e}")
        raise typer.Exit(code=1) from None


def main() -> None:
    """Entry point. With a single command, typer runs ``generate`` directly."""
    args = sys.argv[1:]

    if not args:
        # Print help to stderr, preserving colors
        old_stdout = sys.stdout
        sys.stdout = sys.stderr
        try:
            app(args=["--help"], standalone_mode=False)
        except (SystemExit, typer.Exit):
            pass
        finally:
            sys.stdout = old_stdout
        sys.exit(1)

    app(args=args, standalone_mode=True)


if __name__ == "__main__":
    main()
