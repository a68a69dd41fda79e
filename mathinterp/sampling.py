import logging
import math
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Optional

from mathinterp.lexer import LexerError, lex
from mathinterp.parser import ParserError, try_parse_statement
from mathinterp.result import Err, Ok, Result
from mathinterp.symbols import SymbolTable
from mathinterp.utils import format_number

logger = logging.getLogger(__name__)

SAMPLE_VARIABLE = "x"
SAMPLE_EPSILON = 1e-9

Point = tuple[float, float]


@dataclass
class SamplingError(Exception):
    errmsg: str
    x: Optional[float] = None
    cause: LexerError | ParserError | None = None

    def __str__(self) -> str:
        header = "[Sampling error]"
        if self.x is not None:
            header += f" at {SAMPLE_VARIABLE} = {format_number(self.x)}"
        header += f": {self.errmsg}"
        if self.cause is None:
            return header
        return "\n".join([header, str(self.cause)])


def extract_function_body(function_input: str) -> Result[str, SamplingError]:
    """'y = x^2' -> 'x^2'"""
    function_input = function_input.strip()
    if not function_input.startswith("y=") and not function_input.startswith("y ="):
        return Err(SamplingError("Function must be in the format y = f(x)"))
    return Ok(function_input[function_input.index("=") + 1 :].strip())


def validate_range(x_min: float, x_max: float, step_size: float) -> Result[None, SamplingError]:
    if not all(math.isfinite(v) for v in (x_min, x_max, step_size)):
        return Err(SamplingError("Range bounds and step size must be finite."))
    if step_size <= 0:
        return Err(SamplingError("Invalid step size. Must be positive."))
    if x_min >= x_max:
        return Err(SamplingError("xMin must be less than xMax."))
    return Ok(None)


def sample_points(x_min: float, x_max: float, step_size: float) -> Iterator[float]:
    """x_min, x_min + step_size, ... up to and including x_max (within SAMPLE_EPSILON)"""
    i = 0
    x = x_min
    while x <= x_max + SAMPLE_EPSILON:
        yield x
        i += 1
        x = x_min + i * step_size


def sample_range(
    expression: str, x_min: float, x_max: float, step_size: float, symbols: SymbolTable
) -> Result[list[Point], SamplingError]:
    """Evaluates the expression at every sample point, binding the point to `x` in the symbol table first.

    Fails on the first point that does not evaluate; no partial results are returned.
    """
    validated = validate_range(x_min, x_max, step_size)
    if isinstance(validated, Err):
        return validated

    lexed = lex(expression)
    if isinstance(lexed, Err):
        return Err(SamplingError(lexed.error.errmsg, cause=lexed.error))
    tokens = lexed.value

    points: list[Point] = []
    for x in sample_points(x_min, x_max, step_size):
        symbols.set(SAMPLE_VARIABLE, x)
        parsed = try_parse_statement(tokens, symbols)
        if isinstance(parsed, Err):
            logger.debug(f"Sampling {expression!r} stopped at {SAMPLE_VARIABLE} = {x}")
            return Err(SamplingError(parsed.error.errmsg, x=x, cause=parsed.error))
        points.append((x, parsed.value.value))

    logger.debug(f"Sampled {expression!r} at {len(points)} points in [{x_min}, {x_max}]")
    return Ok(points)
