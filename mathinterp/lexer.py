import enum
import logging
from dataclasses import dataclass

from mathinterp.result import Err, Ok, Result
from mathinterp.utils import PrintableEnum

logger = logging.getLogger(__name__)


@dataclass
class LexerError(Exception):
    errmsg: str
    code: str
    error_char_idx: int

    def __str__(self) -> str:
        print_start_idx = max(0, self.error_char_idx - 10)
        print_ellipsis_pre = print_start_idx > 0
        print_end_idx = min(len(self.code), self.error_char_idx + 10)
        print_ellipsis_post = print_end_idx < len(self.code)
        return "\n".join(
            [
                f"[Lexer error] {self.errmsg}",
                (
                    ("..." if print_ellipsis_pre else "")
                    + f"{self.code[print_start_idx:print_end_idx]}"
                    + ("..." if print_ellipsis_post else "")
                ),
                " " * (self.error_char_idx - print_start_idx + (3 if print_ellipsis_pre else 0)) + "^",
            ]
        )


class TokenType(PrintableEnum):
    NUMBER = enum.auto()
    IDENTIFIER = enum.auto()
    PLUS = enum.auto()
    MINUS = enum.auto()
    STAR = enum.auto()
    SLASH = enum.auto()
    PERCENT = enum.auto()
    CARET = enum.auto()
    BRACKET_OPEN = enum.auto()
    BRACKET_CLOSE = enum.auto()
    EQUAL = enum.auto()
    EXPR_END = enum.auto()


@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    position: int

    @property
    def value(self) -> float:
        """Numeric value of a NUMBER token"""
        return float(self.lexeme)

    def __str__(self) -> str:
        return f"<{self.type}>{self.lexeme}"


def _is_valid_in_number(s: str) -> bool:
    return s.isdecimal() or s == "."


SINGLE_CHAR_TOKENS = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "^": TokenType.CARET,
    "(": TokenType.BRACKET_OPEN,
    ")": TokenType.BRACKET_CLOSE,
    "=": TokenType.EQUAL,
}


def lex(code: str) -> Result[list[Token], LexerError]:
    i = 0
    tokens: list[Token] = []
    while i < len(code):
        if _is_valid_in_number(code[i]):
            number_end_idx = i + 1
            while number_end_idx < len(code) and _is_valid_in_number(code[number_end_idx]):
                number_end_idx += 1
            lexeme = code[i:number_end_idx]
            if lexeme.count(".") > 1 or lexeme == ".":
                return Err(LexerError(f"Malformed number: {lexeme!r}", code=code, error_char_idx=i))
            tokens.append(Token(type=TokenType.NUMBER, lexeme=lexeme, position=i))
            i = number_end_idx - 1  # to account for += 1 later
        elif code[i].isalpha():
            ident_end_idx = i + 1
            while ident_end_idx < len(code) and code[ident_end_idx].isalpha():
                ident_end_idx += 1
            tokens.append(Token(type=TokenType.IDENTIFIER, lexeme=code[i:ident_end_idx], position=i))
            i = ident_end_idx - 1  # to account for += 1 later
        elif code[i] in SINGLE_CHAR_TOKENS:
            tokens.append(Token(type=SINGLE_CHAR_TOKENS[code[i]], lexeme=code[i], position=i))
        elif code[i].isspace():
            pass
        else:
            return Err(LexerError(f"Unexpected character: {code[i]!r}", code=code, error_char_idx=i))
        i += 1

    tokens.append(Token(type=TokenType.EXPR_END, lexeme="", position=len(code)))
    logger.debug(f"Lexed {len(tokens)} tokens from {code!r}")
    return Ok(tokens)


def untokenize(tokens: list[Token]) -> str:
    """Rebuilds the source text, placing each lexeme at its original position"""
    result = ""
    for token in tokens:
        result += " " * (token.position - len(result)) + token.lexeme
    return result
