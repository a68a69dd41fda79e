import logging
import math
import operator
from dataclasses import dataclass
from typing import Callable, ClassVar

from mathinterp.builtins import BUILTIN_FUNCS
from mathinterp.lexer import Token, TokenType, untokenize
from mathinterp.result import Err, Ok, Result
from mathinterp.symbols import SymbolTable
from mathinterp.utils import PrintableEnum

logger = logging.getLogger(__name__)


@dataclass
class ParserError(Exception):
    errmsg: str
    tokens: list[Token]
    error_token_idx: int

    label: ClassVar[str] = "Parser error"

    def __str__(self) -> str:
        source = untokenize(self.tokens)
        if self.error_token_idx < len(self.tokens):
            caret_idx = self.tokens[self.error_token_idx].position
        else:
            caret_idx = len(source)
        return "\n".join([f"[{self.label}] {self.errmsg}", source, " " * caret_idx + "^"])


class EvaluationError(ParserError):
    """Statement is well-formed but has no numeric value (unbound variable, division by zero, ...)"""

    label: ClassVar[str] = "Evaluation error"


class BinaryOperator(PrintableEnum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "^"


class UnaryOperator(PrintableEnum):
    NEG = "-"


@dataclass(frozen=True)
class NumberLiteral:
    value: float


@dataclass(frozen=True)
class VariableReference:
    name: str
    value: float


@dataclass(frozen=True)
class Assignment:
    name: str
    expression: "Node"
    value: float


@dataclass(frozen=True)
class UnaryOperation:
    operator: UnaryOperator
    operand: "Node"
    value: float


@dataclass(frozen=True)
class BinaryOperation:
    operator: BinaryOperator
    left: "Node"
    right: "Node"
    value: float
    implied: bool = False


@dataclass(frozen=True)
class FunctionCall:
    name: str
    argument: "Node"
    value: float


Node = NumberLiteral | VariableReference | Assignment | UnaryOperation | BinaryOperation | FunctionCall

# parsed node and the index of the first token after it
_Parsed = Result[tuple[Node, int], ParserError]

ADDITIVE_OPERATORS = {
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
}

MULTIPLICATIVE_OPERATORS = {
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
}

# tokens that may start an operand directly after another operand, e.g. 2x, 2(x+1), (a)(b), x y
IMPLIED_MULTIPLICATION_STARTS = {TokenType.NUMBER, TokenType.IDENTIFIER, TokenType.BRACKET_OPEN}

BINARY_OPERATION_IMPLS: dict[BinaryOperator, Callable[[float, float], float]] = {
    BinaryOperator.ADD: operator.add,
    BinaryOperator.SUB: operator.sub,
    BinaryOperator.MUL: operator.mul,
    BinaryOperator.DIV: operator.truediv,
    BinaryOperator.MOD: math.fmod,
    BinaryOperator.POW: math.pow,
}


def parse_statement(tokens: list[Token], symbols: SymbolTable) -> tuple[float, Node]:
    """Parses and evaluates a single statement, raising ParserError on failure"""
    tree = try_parse_statement(tokens, symbols).unwrap()
    return tree.value, tree


def try_parse_statement(tokens: list[Token], symbols: SymbolTable) -> Result[Node, ParserError]:
    """Statement := Identifier '=' Expression | Expression

    The symbol table is only written once the whole statement has been parsed and evaluated.
    """
    if not tokens or tokens[-1].type is not TokenType.EXPR_END:
        return Err(ParserError("Token sequence is not terminated", tokens=tokens, error_token_idx=len(tokens)))

    is_assignment = (
        len(tokens) > 2 and tokens[0].type is TokenType.IDENTIFIER and tokens[1].type is TokenType.EQUAL
    )
    try:
        parsed = _parse_expression(tokens, 2 if is_assignment else 0, symbols)
    except RecursionError:
        return Err(ParserError("Expression is nested too deeply", tokens=tokens, error_token_idx=0))
    if isinstance(parsed, Err):
        return parsed
    expr, i = parsed.value

    if tokens[i].type is not TokenType.EXPR_END:
        return Err(
            ParserError(
                f"Unexpected {_describe(tokens[i])} after end of expression", tokens=tokens, error_token_idx=i
            )
        )

    if not is_assignment:
        logger.debug(f"Statement evaluated to {expr.value}")
        return Ok(expr)

    name = tokens[0].lexeme
    symbols.set(name, expr.value)
    logger.debug(f"Assigned {name} = {expr.value}")
    return Ok(Assignment(name=name, expression=expr, value=expr.value))


def _parse_expression(tokens: list[Token], i: int, symbols: SymbolTable) -> _Parsed:
    """Expression := Term (('+' | '-') Term)*"""
    parsed = _parse_term(tokens, i, symbols)
    if isinstance(parsed, Err):
        return parsed
    left, i = parsed.value

    while tokens[i].type in ADDITIVE_OPERATORS:
        operator_idx = i
        parsed = _parse_term(tokens, i + 1, symbols)
        if isinstance(parsed, Err):
            return parsed
        right, i = parsed.value
        combined = _combine(ADDITIVE_OPERATORS[tokens[operator_idx].type], left, right, tokens, operator_idx)
        if isinstance(combined, Err):
            return combined
        left = combined.value

    return Ok((left, i))


def _parse_term(tokens: list[Token], i: int, symbols: SymbolTable) -> _Parsed:
    """Term := Unary (('*' | '/' | '%') Unary | <implied '*'> Unary)*"""
    parsed = _parse_unary(tokens, i, symbols)
    if isinstance(parsed, Err):
        return parsed
    left, i = parsed.value

    while True:
        operator_idx = i
        if tokens[i].type in MULTIPLICATIVE_OPERATORS:
            binary_operator = MULTIPLICATIVE_OPERATORS[tokens[i].type]
            implied = False
            i += 1
        elif tokens[i].type in IMPLIED_MULTIPLICATION_STARTS:
            binary_operator = BinaryOperator.MUL
            implied = True
        else:
            break

        parsed = _parse_unary(tokens, i, symbols)
        if isinstance(parsed, Err):
            return parsed
        right, i = parsed.value
        combined = _combine(binary_operator, left, right, tokens, operator_idx, implied=implied)
        if isinstance(combined, Err):
            return combined
        left = combined.value

    return Ok((left, i))


def _parse_unary(tokens: list[Token], i: int, symbols: SymbolTable) -> _Parsed:
    """Unary := '-' Unary | Power"""
    if tokens[i].type is not TokenType.MINUS:
        return _parse_power(tokens, i, symbols)

    parsed = _parse_unary(tokens, i + 1, symbols)
    if isinstance(parsed, Err):
        return parsed
    operand, j = parsed.value
    return Ok((UnaryOperation(operator=UnaryOperator.NEG, operand=operand, value=-operand.value), j))


def _parse_power(tokens: list[Token], i: int, symbols: SymbolTable) -> _Parsed:
    """Power := Primary ('^' Unary)?

    Right associative: the exponent is parsed as a Unary, which in turn may be another Power.
    """
    parsed = _parse_primary(tokens, i, symbols)
    if isinstance(parsed, Err):
        return parsed
    base, i = parsed.value
    if tokens[i].type is not TokenType.CARET:
        return Ok((base, i))

    operator_idx = i
    parsed = _parse_unary(tokens, i + 1, symbols)
    if isinstance(parsed, Err):
        return parsed
    exponent, i = parsed.value
    combined = _combine(BinaryOperator.POW, base, exponent, tokens, operator_idx)
    if isinstance(combined, Err):
        return combined
    return Ok((combined.value, i))


def _parse_primary(tokens: list[Token], i: int, symbols: SymbolTable) -> _Parsed:
    """Primary := Number | Identifier | Identifier '(' Expression ')' | '(' Expression ')'"""
    token = tokens[i]
    if token.type is TokenType.NUMBER:
        if not math.isfinite(token.value):
            return Err(EvaluationError(f"Number is too large: {token.lexeme}", tokens=tokens, error_token_idx=i))
        return Ok((NumberLiteral(value=token.value), i + 1))

    elif token.type is TokenType.IDENTIFIER:
        if tokens[i + 1].type is TokenType.BRACKET_OPEN:
            return _parse_function_call(tokens, i, symbols)
        looked_up = symbols.get(token.lexeme)
        if isinstance(looked_up, Err):
            return Err(EvaluationError(f"Unknown variable {token.lexeme!r}", tokens=tokens, error_token_idx=i))
        if not math.isfinite(looked_up.value):
            return Err(
                EvaluationError(
                    f"Variable {token.lexeme!r} is not a finite number: {looked_up.value}",
                    tokens=tokens,
                    error_token_idx=i,
                )
            )
        return Ok((VariableReference(name=token.lexeme, value=looked_up.value), i + 1))

    elif token.type is TokenType.BRACKET_OPEN:
        if tokens[i + 1].type is TokenType.BRACKET_CLOSE:
            return Err(ParserError("Empty parenthesis", tokens=tokens, error_token_idx=i + 1))
        parsed = _parse_expression(tokens, i + 1, symbols)
        if isinstance(parsed, Err):
            return parsed
        inner, j = parsed.value
        closed = _expect_bracket_close(tokens, j)
        if isinstance(closed, Err):
            return closed
        return Ok((inner, j + 1))

    elif token.type is TokenType.EXPR_END:
        return Err(ParserError("Unexpected end of input", tokens=tokens, error_token_idx=i))

    else:
        return Err(
            ParserError(
                f"Expected a number, variable or '(' but found {_describe(token)}",
                tokens=tokens,
                error_token_idx=i,
            )
        )


def _parse_function_call(tokens: list[Token], i: int, symbols: SymbolTable) -> _Parsed:
    name = tokens[i].lexeme
    func = BUILTIN_FUNCS.get(name)
    if func is None:
        return Err(ParserError(f"Unknown function {name!r}", tokens=tokens, error_token_idx=i))

    # tokens[i + 1] is the opening bracket
    if tokens[i + 2].type is TokenType.BRACKET_CLOSE:
        return Err(
            ParserError(
                f"Function {name!r} expects {func.arity} argument, got 0", tokens=tokens, error_token_idx=i + 2
            )
        )
    parsed = _parse_expression(tokens, i + 2, symbols)
    if isinstance(parsed, Err):
        return parsed
    argument, j = parsed.value
    closed = _expect_bracket_close(tokens, j)
    if isinstance(closed, Err):
        return closed

    applied = func.apply(argument.value)
    if isinstance(applied, Err):
        return Err(EvaluationError(f"{name}({argument.value}): {applied.error}", tokens=tokens, error_token_idx=i))
    checked = _check_finite(applied.value, tokens, i)
    if isinstance(checked, Err):
        return checked
    return Ok((FunctionCall(name=name, argument=argument, value=applied.value), j + 1))


def _combine(
    binary_operator: BinaryOperator,
    left: Node,
    right: Node,
    tokens: list[Token],
    operator_idx: int,
    implied: bool = False,
) -> Result[BinaryOperation, ParserError]:
    if right.value == 0 and binary_operator is BinaryOperator.DIV:
        return Err(EvaluationError("Division by zero", tokens=tokens, error_token_idx=operator_idx))
    if right.value == 0 and binary_operator is BinaryOperator.MOD:
        return Err(EvaluationError("Modulo by zero", tokens=tokens, error_token_idx=operator_idx))

    try:
        value = BINARY_OPERATION_IMPLS[binary_operator](left.value, right.value)
    except (ValueError, OverflowError) as e:
        return Err(
            EvaluationError(
                f"{left.value} {binary_operator.value} {right.value}: {e}", tokens=tokens, error_token_idx=operator_idx
            )
        )
    checked = _check_finite(value, tokens, operator_idx)
    if isinstance(checked, Err):
        return checked
    return Ok(BinaryOperation(operator=binary_operator, left=left, right=right, value=value, implied=implied))


def _check_finite(value: float, tokens: list[Token], error_token_idx: int) -> Result[float, ParserError]:
    if math.isfinite(value):
        return Ok(value)
    return Err(
        EvaluationError(f"Result is not a finite number: {value}", tokens=tokens, error_token_idx=error_token_idx)
    )


def _expect_bracket_close(tokens: list[Token], i: int) -> Result[int, ParserError]:
    if tokens[i].type is TokenType.BRACKET_CLOSE:
        return Ok(i)
    return Err(ParserError(f"Expected ')' but found {_describe(tokens[i])}", tokens=tokens, error_token_idx=i))


def _describe(token: Token) -> str:
    if token.type is TokenType.EXPR_END:
        return "end of input"
    return f"{token.type} {token.lexeme!r}"
