"""CLI interface for forestdot using Typer framework."""

import logging
import sys
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from typer.core import TyperCommand

from forestdot import __description__, __version__
from forestdot.config import ALL_TREES, LogLevel, PrintTreeOptions, RenderRequest, load_config
from forestdot.errors import ForestdotError, MissingInputError
from forestdot.graph import DotRenderer, TreeGraphConverter
from forestdot.model_store import load_model
from forestdot.output import OutputRouter, select_output_target

EXAMPLE = """Example:

    forestdot --tree 0 -i model.joblib -o model.gv -f 20 -d 3
    dot -Tpng model.gv -o model.png
"""

console = Console()

# Typer raises the exceptions of the click it is built on, which newer
# releases bundle as their own copy instead of the click package.
UsageError = next(cls for cls in typer.BadParameter.__mro__ if cls.__name__ == "UsageError")


class ForestdotCommand(TyperCommand):
    """Command that reports every argument problem with exit status 1.

    Click uses status 2 for usage errors; here status 2 is reserved for
    I/O and runtime failures.
    """

    def main(self, args=None, prog_name=None, complete_var=None, standalone_mode=True, **extra):
        try:
            rv = super().main(
                args=args,
                prog_name=prog_name,
                complete_var=complete_var,
                standalone_mode=False,
                **extra,
            )
        except typer.BadParameter as e:
            option = e.param.opts[0] if e.param is not None and e.param.opts else "argument"
            console.print(f"[red]ERROR:[/red] invalid {option} argument ({escape(e.message)})")
            sys.exit(1)
        except UsageError as e:
            console.print(f"[red]ERROR:[/red] {escape(e.format_message())}")
            print_usage(e.ctx)
            sys.exit(1)
        except typer.Abort:
            console.print("Aborted!")
            sys.exit(1)
        sys.exit(rv if isinstance(rv, int) else 0)


def print_usage(ctx: typer.Context | None) -> None:
    """Print the full option list and an example invocation, as --help does."""
    if ctx is None:
        console.print("Try 'forestdot --help' for the list of options.")
        console.print()
        console.print(EXAMPLE)
        return
    # Rich help is printed directly and comes back as an empty string.
    help_text = ctx.get_help()
    if help_text:
        console.print(escape(help_text))


def configure_logging(level: LogLevel) -> None:
    """Send forestdot log records to stderr through rich."""
    package_logger = logging.getLogger("forestdot")
    package_logger.handlers.clear()
    package_logger.addHandler(RichHandler(console=Console(stderr=True), show_path=False))
    package_logger.setLevel(level.to_logging_level())


def version_callback(value: bool) -> None:
    """Show version information and exit."""
    if value:
        console.print(f"forestdot version {__version__}")
        raise typer.Exit()


def load_model_callback(ctx: typer.Context, param: typer.CallbackParam, value: Optional[Path]) -> Optional[Path]:
    """Load the model as soon as -i is processed.

    Click processes options in command line order, so a bad value given
    after -i is reported with the model already loaded.
    """
    if value is None:
        return value
    try:
        model = load_model(value)
    except ForestdotError as e:
        raise typer.BadParameter(str(e))
    ctx.ensure_object(dict)["model"] = model
    return value


app = typer.Typer(
    name="forestdot",
    help=__description__,
    add_completion=False,
    rich_markup_mode="rich"
)


@app.command(cls=ForestdotCommand, epilog=EXAMPLE)
def render(
    ctx: typer.Context,
    tree: Annotated[
        Optional[int],
        typer.Option("--tree", parser=int, metavar="N", help="Tree number to print. (default: all)")
    ] = None,
    levels: Annotated[
        Optional[int],
        typer.Option("--levels", parser=int, metavar="N", help="Number of levels per edge to print. (default: 10)")
    ] = None,
    title: Annotated[
        Optional[str],
        typer.Option("--title", help="(Optional) Force title of tree graph.")
    ] = None,
    detail: Annotated[
        bool,
        typer.Option("--detail", help="Print additional detailed information like node numbers.")
    ] = False,
    input: Annotated[
        Optional[Path],
        typer.Option("--input", "-i", callback=load_model_callback, help="Input model file (joblib).")
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Output dot filename. (default: stdout)")
    ] = None,
    decimal_places: Annotated[
        Optional[int],
        typer.Option("--decimalplaces", "-d", parser=int, metavar="N", help="Set decimal places of all numerical values.")
    ] = None,
    font_size: Annotated[
        Optional[int],
        typer.Option("--fontsize", "-f", parser=int, metavar="N", help="Set font sizes of strings. (default: 14)")
    ] = None,
    raw: Annotated[
        bool,
        typer.Option("--raw", help="Dump the raw tree graph before the dot output.")
    ] = False,
    internal: Annotated[
        bool,
        typer.Option("--internal", help="Use the raw stored node fields (feature indices, leaf values) of the model.")
    ] = False,
    direct: Annotated[
        Optional[Path],
        typer.Option("--direct", help="Produce directly a PNG image of the tree instead of the dot format.")
    ] = None,
    config: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Configuration file path (default: search for .forestdot.json)")
    ] = None,
    version: Annotated[
        bool,
        typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit")
    ] = False,
) -> None:
    """Emit a human-consumable graph of a tree-ensemble model for use with dot (graphviz).

    The currently supported models are fitted scikit-learn decision trees,
    random forests, extra trees and gradient boosting ensembles.
    """
    try:
        settings = load_config(config)
    except ValueError as e:
        console.print(f"[red]ERROR:[/red] {escape(str(e))}")
        raise typer.Exit(1)
    configure_logging(settings.logging.level)
    defaults = settings.render

    model = (ctx.obj or {}).get("model")
    if model is None:
        console.print(f"[red]ERROR:[/red] {MissingInputError()}")
        print_usage(ctx)
        raise typer.Exit(1)

    try:
        options = PrintTreeOptions.from_cli(
            decimal_places=decimal_places if decimal_places is not None else defaults.decimal_places,
            font_size=font_size if font_size is not None else defaults.font_size,
            internal=internal,
        )
        request = RenderRequest(
            tree_index=tree if tree is not None else ALL_TREES,
            max_levels_per_edge=levels if levels is not None else defaults.levels,
            title=title,
            detail=detail,
            raw_dump=raw,
        )
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"[red]ERROR:[/red] invalid {field}: {escape(error['msg'])}")
        raise typer.Exit(1)

    try:
        graph = TreeGraphConverter().convert(model, request.tree_index, options.internal)
        target = select_output_target(output, direct)
        renderer = DotRenderer(
            options,
            max_levels_per_edge=request.max_levels_per_edge,
            detail=request.detail,
            title=request.title,
        )
        OutputRouter(renderer).emit(graph, target, raw_dump=request.raw_dump)
    except ForestdotError as e:
        console.print(f"[red]ERROR:[/red] {escape(str(e))}")
        raise typer.Exit(e.exit_code)
    except Exception as e:
        logging.getLogger(__name__).debug("Unexpected failure", exc_info=True)
        console.print(f"[red]ERROR:[/red] {escape(str(e))}")
        raise typer.Exit(2)


def main(argv: Optional[list[str]] = None) -> Any:
    """Console script entry point."""
    return app(args=argv, prog_name="forestdot")


if __name__ == "__main__":
    main()
