from dataclasses import dataclass

from mathinterp.lexer import LexerError, lex
from mathinterp.parser import Node, ParserError, try_parse_statement
from mathinterp.result import Err, Ok, Result
from mathinterp.symbols import SymbolTable


@dataclass(frozen=True)
class Evaluation:
    value: float
    tree: Node


def evaluate(code: str, symbols: SymbolTable) -> Result[Evaluation, LexerError | ParserError]:
    lexed = lex(code)
    if isinstance(lexed, Err):
        return lexed
    parsed = try_parse_statement(lexed.value, symbols)
    if isinstance(parsed, Err):
        return parsed
    return Ok(Evaluation(value=parsed.value.value, tree=parsed.value))
