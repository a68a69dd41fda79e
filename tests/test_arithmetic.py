import math

import pytest

from mathinterp.lexer import lex
from mathinterp.parser import Assignment, BinaryOperation, EvaluationError, ParserError, parse_statement
from mathinterp.symbols import SymbolTable


def evaluate(code: str, symbols: SymbolTable) -> float:
    tokens = lex(code).unwrap()
    value, _ = parse_statement(tokens, symbols)
    return value


@pytest.fixture
def symbols() -> SymbolTable:
    return SymbolTable({"x": 5.0, "y": 2.0})


@pytest.mark.parametrize(
    "code, expected_ret_val",
    [
        pytest.param("1", 1.0),
        pytest.param("-1", -1.0),
        pytest.param("--1", 1.0),
        pytest.param("1+2", 3.0),
        pytest.param("(1+2)", 3.0),
        pytest.param("-(1+2)", -3.0),
        pytest.param("(((1)))", 1.0),
        pytest.param("1 * 4 + 5", 9.0),
        pytest.param("1 + 4 * 5", 21.0),
        pytest.param("2+3*4", 14.0),
        pytest.param("10 / 5 / 2 / 2", 0.5),
        pytest.param("10 - 4 - 3", 3.0),
        pytest.param("10 + 2 * (5 + 3 - 1)", 24.0),
        pytest.param("2 * -3", -6.0),
        # power
        pytest.param("2^3^2", 512.0),
        pytest.param("-2^2", -4.0),
        pytest.param("(-2)^2", 4.0),
        pytest.param("2^-1", 0.5),
        pytest.param("2*3^2", 18.0),
        # truncating modulo, sign follows the dividend
        pytest.param("7 % 3", 1.0),
        pytest.param("-7 % 3", -1.0),
        pytest.param("7 % -3", 1.0),
        pytest.param("5.5 % 2", 1.5),
        pytest.param("2 + 7 % 3 * 2", 4.0),
        # implied multiplication
        pytest.param("2(3+4)", 14.0),
        pytest.param("(1+1)(2+2)", 8.0),
        pytest.param("6/2(1+2)", 9.0),
        pytest.param("2 3", 6.0),
        # funcs
        pytest.param("sin(0)", 0.0),
        pytest.param("cos(0)", 1.0),
        pytest.param("tan(0)", 0.0),
        pytest.param("exp(0)", 1.0),
        pytest.param("log(e)", 1.0),
        pytest.param("log(exp(2))", 2.0),
        pytest.param("2sin(pi/2)", 2.0),
        pytest.param("sin (pi / 2)", 1.0),
        pytest.param("cos(pi)^2", 1.0),
    ],
)
def test_eval_arithmetic(code: str, expected_ret_val: float) -> None:
    assert evaluate(code, SymbolTable()) == pytest.approx(expected_ret_val, abs=1e-12)


@pytest.mark.parametrize(
    "code, expected_ret_val",
    [
        pytest.param("x", 5.0),
        pytest.param("2x", 10.0),
        pytest.param("x y", 10.0),
        pytest.param("(x)(y)", 10.0),
        pytest.param("2x^2", 50.0),
        pytest.param("-x^2", -25.0),
        pytest.param("x^y", 25.0),
        pytest.param("3x + 2y", 19.0),
        pytest.param("x2", 10.0),
        pytest.param("2pi", 6.283185307179586),
    ],
)
def test_eval_variables(code: str, expected_ret_val: float, symbols: SymbolTable) -> None:
    assert evaluate(code, symbols) == pytest.approx(expected_ret_val)


def test_assignment_round_trip() -> None:
    symbols = SymbolTable()
    assert evaluate("x=10", symbols) == 10.0
    assert symbols["x"] == 10.0
    assert evaluate("x+1", symbols) == 11.0


def test_assignment_tree() -> None:
    symbols = SymbolTable({"x": 4.0})
    value, tree = parse_statement(lex("y = 2(3+x)").unwrap(), symbols)
    assert value == 14.0
    assert isinstance(tree, Assignment)
    assert tree.name == "y"
    assert isinstance(tree.expression, BinaryOperation)
    assert tree.expression.implied
    assert symbols["y"] == 14.0


def test_reassignment_uses_previous_value() -> None:
    symbols = SymbolTable()
    evaluate("a = 1", symbols)
    evaluate("a = a + 1", symbols)
    assert symbols["a"] == 2.0


@pytest.mark.parametrize("code", ["z = 1/0", "z = 1 +", "z = 1 )"])
def test_failed_assignment_does_not_bind(code: str) -> None:
    symbols = SymbolTable()
    with pytest.raises(ParserError):
        evaluate(code, symbols)
    assert "z" not in symbols


@pytest.mark.parametrize(
    "code, errmsg",
    [
        pytest.param("foo(1)", "Unknown function 'foo'"),
        pytest.param("x(2)", "Unknown function 'x'"),
        pytest.param("sin()", "Function 'sin' expects 1 argument, got 0"),
        pytest.param("(1+2", "Expected ')' but found end of input"),
        pytest.param("sin(1 2", "Expected ')' but found end of input"),
        pytest.param("1+", "Unexpected end of input"),
        pytest.param("", "Unexpected end of input"),
        pytest.param("()", "Empty parenthesis"),
        pytest.param("+1", "Expected a number, variable or '(' but found PLUS '+'"),
        pytest.param("1 2 )", "Unexpected BRACKET_CLOSE ')' after end of expression"),
        pytest.param("a = 1 = 2", "Unexpected EQUAL '=' after end of expression"),
        pytest.param("1 + (2 = 2)", "Expected ')' but found EQUAL '='"),
    ],
)
def test_parser_errors(code: str, errmsg: str) -> None:
    with pytest.raises(ParserError) as excinfo:
        evaluate(code, SymbolTable())
    assert type(excinfo.value) is ParserError
    assert excinfo.value.errmsg.startswith(errmsg)


@pytest.mark.parametrize(
    "code, errmsg",
    [
        pytest.param("5/0", "Division by zero"),
        pytest.param("5/(2-2)", "Division by zero"),
        pytest.param("5%0", "Modulo by zero"),
        pytest.param("y+1", "Unknown variable 'y'"),
        pytest.param("2y", "Unknown variable 'y'"),
        pytest.param("log(0)", "log(0.0): "),
        pytest.param("log(-1)", "log(-1.0): "),
        pytest.param("exp(1000)", "exp(1000.0): "),
        pytest.param("10^400", "10.0 ^ 400.0: "),
        pytest.param("0^-1", "0.0 ^ -1.0: "),
        pytest.param("(0-8)^0.5", "-8.0 ^ 0.5: "),
        pytest.param("1" + "0" * 400, "Number is too large: 1000"),
        pytest.param("2 * 1" + "0" * 400, "Number is too large: 1000"),
    ],
)
def test_evaluation_errors(code: str, errmsg: str) -> None:
    with pytest.raises(EvaluationError) as excinfo:
        evaluate(code, SymbolTable())
    assert excinfo.value.errmsg.startswith(errmsg)


def test_parser_error_points_at_offending_token() -> None:
    with pytest.raises(ParserError) as excinfo:
        evaluate("1 + foo(2)", SymbolTable())
    lines = str(excinfo.value).splitlines()
    assert lines == [
        "[Parser error] Unknown function 'foo'",
        "1 + foo(2)",
        "    ^",
    ]


def test_evaluation_error_is_labeled() -> None:
    with pytest.raises(EvaluationError) as excinfo:
        evaluate("5/0", SymbolTable())
    assert str(excinfo.value).splitlines() == [
        "[Evaluation error] Division by zero",
        "5/0",
        " ^",
    ]


def test_unterminated_token_sequence() -> None:
    tokens = lex("1 + 2").unwrap()[:-1]
    with pytest.raises(ParserError, match="not terminated"):
        parse_statement(tokens, SymbolTable())


@pytest.mark.parametrize(
    "value, errmsg",
    [
        pytest.param(math.inf, "Variable 'x' is not a finite number: inf"),
        pytest.param(-math.inf, "Variable 'x' is not a finite number: -inf"),
        pytest.param(math.nan, "Variable 'x' is not a finite number: nan"),
    ],
)
def test_non_finite_variable(value: float, errmsg: str) -> None:
    symbols = SymbolTable({"x": value})
    with pytest.raises(EvaluationError) as excinfo:
        evaluate("x + 1", symbols)
    assert excinfo.value.errmsg == errmsg
    with pytest.raises(EvaluationError):
        evaluate("z = 2x", symbols)
    assert "z" not in symbols


@pytest.mark.parametrize(
    "code",
    [
        pytest.param("(" * 300 + "1" + ")" * 300, id="parentheses"),
        pytest.param("-" * 5000 + "1", id="negations"),
        pytest.param("sin(" * 300 + "0" + ")" * 300, id="calls"),
        pytest.param("2^" * 2000 + "1", id="powers"),
    ],
)
def test_deep_nesting_is_a_parser_error(code: str) -> None:
    with pytest.raises(ParserError) as excinfo:
        evaluate(code, SymbolTable())
    assert type(excinfo.value) is ParserError
    assert excinfo.value.errmsg == "Expression is nested too deeply"
