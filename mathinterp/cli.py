import logging
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from mathinterp.builtins import BUILTIN_FUNCS
from mathinterp.config import ConfigError, get_config
from mathinterp.lexer import LexerError
from mathinterp.parser import ParserError
from mathinterp.result import Err
from mathinterp.runtime import evaluate
from mathinterp.sampling import SamplingError, extract_function_body, sample_range
from mathinterp.symbols import SymbolTable
from mathinterp.utils import format_number
from mathinterp.visualizer import visualize

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

SYNTAX_HELP = (
    "Valid tokens: +, -, *, /, %, ^, parentheses, assignment (x=10), and implied multiplication (2x). "
    f"Also trig/log functions: {', '.join(BUILTIN_FUNCS)}. "
    "Constants: pi, e."
)


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Evaluate and sample arithmetic expressions."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _report_error(error: LexerError | ParserError | SamplingError) -> None:
    err_console.print(str(error), style="red", markup=False, highlight=False, soft_wrap=True)


def _parse_assignments(assignments: list[str]) -> dict[str, float]:
    variables: dict[str, float] = dict()
    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        name = name.strip()
        if not sep or not name.isalpha():
            raise typer.BadParameter(f"Expected NAME=VALUE, got {assignment!r}", param_hint="--set")
        try:
            variables[name] = float(value)
        except ValueError:
            raise typer.BadParameter(f"Not a number: {value.strip()!r}", param_hint="--set")
    return variables


@app.command("eval")
def eval_(
    expression: Annotated[str, typer.Argument(help="Expression or assignment, e.g. '2x + 1' or 'y = sin(pi/2)'")],
    *,
    tree: Annotated[bool, typer.Option("--tree", "-t", help="Also print the parse tree")] = False,
    assignments: Annotated[
        Optional[list[str]],
        typer.Option("--set", "-s", help="Bind a variable before evaluating, e.g. --set x=5"),
    ] = None,
) -> None:
    """Evaluate a single statement and print its value."""
    symbols = SymbolTable(_parse_assignments(assignments or []))

    try:
        evaluated = evaluate(expression, symbols)
    except Exception as e:
        logger.exception("Unexpected error")
        err_console.print(f"Error: {e}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)

    if isinstance(evaluated, Err):
        _report_error(evaluated.error)
        raise typer.Exit(code=1)

    out_console.print(format_number(evaluated.value.value), markup=False, highlight=False, soft_wrap=True)
    if tree:
        out_console.print(visualize(evaluated.value.tree), markup=False, highlight=False, soft_wrap=True)


@app.command()
def plot(
    function: Annotated[str, typer.Argument(help="Function in the form 'y = f(x)'")],
    *,
    x_min: Annotated[Optional[float], typer.Option("--x-min", help="First sample point")] = None,
    x_max: Annotated[Optional[float], typer.Option("--x-max", help="Last sample point")] = None,
    step: Annotated[Optional[float], typer.Option("--step", help="Distance between sample points")] = None,
) -> None:
    """Sample a function of x across a range and print the points."""
    try:
        config = get_config()
    except ConfigError as e:
        err_console.print(f"Configuration error: {e}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)

    extracted = extract_function_body(function)
    if isinstance(extracted, Err):
        _report_error(extracted.error)
        raise typer.Exit(code=1)

    x_min = config.x_min if x_min is None else x_min
    x_max = config.x_max if x_max is None else x_max
    step = config.step_size if step is None else step

    try:
        sampled = sample_range(extracted.value, x_min, x_max, step, SymbolTable())
    except Exception as e:
        logger.exception("Unexpected error")
        err_console.print(f"Error: {e}", style="red", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)

    if isinstance(sampled, Err):
        _report_error(sampled.error)
        raise typer.Exit(code=1)

    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("x", justify="right")
    table.add_column("y", justify="right")
    for x, y in sampled.value:
        table.add_row(format_number(x), format_number(y))
    out_console.print(table)


@app.command()
def syntax() -> None:
    """Show the expression syntax."""
    out_console.print(SYNTAX_HELP, markup=False, highlight=False, soft_wrap=True)


@app.command()
def repl() -> None:
    """Evaluate statements interactively; variables persist for the session.

    Commands: :vars, :tree (toggle parse tree output), :help, :quit
    """
    symbols = SymbolTable()
    show_tree = False

    while True:
        try:
            code = out_console.input("> ")
        except EOFError:
            break

        code = code.strip()
        if not code:
            continue
        if code == ":quit":
            break
        if code == ":help":
            out_console.print(SYNTAX_HELP, markup=False, highlight=False, soft_wrap=True)
            continue
        if code == ":tree":
            show_tree = not show_tree
            out_console.print(f"Parse tree output {'on' if show_tree else 'off'}")
            continue
        if code == ":vars":
            for name, value in symbols.items():
                out_console.print(f"{name} = {format_number(value)}", markup=False, highlight=False, soft_wrap=True)
            continue

        try:
            evaluated = evaluate(code, symbols)
        except Exception as e:
            logger.debug("Unexpected error", exc_info=e)
            err_console.print(f"Error: {e}", style="red", markup=False, soft_wrap=True)
            continue

        if isinstance(evaluated, Err):
            _report_error(evaluated.error)
            continue

        out_console.print(format_number(evaluated.value.value), markup=False, highlight=False, soft_wrap=True)
        if show_tree:
            out_console.print(visualize(evaluated.value.tree), markup=False, highlight=False, soft_wrap=True)
