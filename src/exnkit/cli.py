"""
Command line interface for exnkit.
"""
import importlib
import logging
import os
import sys
from pathlib import Path
from typing import Any, Callable, Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import ExnConfig, load_config
from .error.exceptions import ConfigurationError, SexpParseError
from .error.handler import create_s, handle_uncaught, reraise_uncaught, to_string, to_string_mach
from .sexp import of_string
from .utils.logging import setup_logging

app = typer.Typer(
    name="exnkit",
    help="Render structured errors and run callables under the uncaught-exception handler",
    no_args_is_help=True
)

# Status messages go to stderr, rendered output to stdout
console = Console(stderr=True)
logger = logging.getLogger("exnkit.cli")


def _config(ctx: typer.Context) -> ExnConfig:
    return ctx.obj["config"]


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to config file"),
    never_elide: bool = typer.Option(False, "--never-elide", help="Always include backtraces"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override the configured log level")
):
    """Load configuration and set up logging."""
    load_dotenv()

    overrides = {}
    if never_elide:
        overrides["never_elide_backtraces"] = True
    if log_level:
        overrides["log_level"] = log_level

    try:
        config = load_config(config_path)
        if overrides:
            config = ExnConfig(**{**config.model_dump(), **overrides})
    except (ConfigurationError, ValueError) as e:
        console.print(f"[bold red]Error loading configuration: {escape(str(e))}[/bold red]")
        raise typer.Exit(code=2)

    setup_logging(config.log_level, structured=config.structured_logging, config=config)
    ctx.obj = {"config": config}


@app.command("render")
def render(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Structured description, or - to read standard input"),
    mach: bool = typer.Option(False, "--mach", "-m", help="Single-line machine format"),
    indent: Optional[int] = typer.Option(None, "--indent", help="Indentation of broken-out lists"),
    width: Optional[int] = typer.Option(None, "--width", help="Target line width")
):
    """Build an error from a structured description and render it."""
    config = _config(ctx)
    updates = {}
    if indent is not None:
        updates["hum_indent"] = indent
    if width is not None:
        updates["hum_width"] = width
    if updates:
        try:
            config = ExnConfig(**{**config.model_dump(), **updates})
        except ValueError as e:
            console.print(f"[bold red]Invalid option: {escape(str(e))}[/bold red]")
            raise typer.Exit(code=2)

    source = sys.stdin.read() if text == "-" else text
    try:
        sexp = of_string(source)
    except SexpParseError as e:
        console.print(f"[bold red]Invalid structured description: {escape(e.message)}[/bold red]")
        raise typer.Exit(code=1)

    exn = create_s(sexp)
    typer.echo(to_string_mach(exn, config) if mach else to_string(exn, config))


def _load_target(target: str) -> Callable[[], Any]:
    """Resolve ``module:function`` to a callable."""
    module_name, sep, attribute = target.partition(":")
    if not sep or not module_name or not attribute:
        raise typer.BadParameter(f"Expected module:function, got '{target}'")

    if os.getcwd() not in sys.path:
        sys.path.insert(0, os.getcwd())

    try:
        obj = importlib.import_module(module_name)
    except ImportError as e:
        raise typer.BadParameter(f"Cannot import module '{module_name}': {e}")
    for part in attribute.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise typer.BadParameter(f"'{module_name}' has no attribute '{attribute}'")
    if not callable(obj):
        raise typer.BadParameter(f"'{target}' is not callable")
    return obj


@app.command("run")
def run(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Function to call, as module:function"),
    label: Optional[str] = typer.Option(None, "--label", "-l", help="Breadcrumb wrapped around escaping errors"),
    no_exit: bool = typer.Option(False, "--no-exit", help="Return normally after printing an uncaught error")
):
    """Call a function under the uncaught-exception handler."""
    config = _config(ctx)
    func = _load_target(target)

    def call():
        if label:
            return reraise_uncaught(label, func)
        return func()

    logger.debug(f"Running {target}")
    handle_uncaught(call, exit_on_error=not no_exit, config=config)


@app.command("version")
def version_command():
    """Display version information."""
    typer.echo(f"exnkit {__version__}")


if __name__ == "__main__":
    app()
