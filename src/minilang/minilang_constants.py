"""
Token kinds and spelling tables for the minilang language.

`TerminalKind` is the closed set of lexical categories the parser dispatches
on. `KEYWORDS` and `SYMBOLS` map source spellings to kinds and are used by the
lexer; `RELATIONAL_KINDS`, `ADDING_KINDS` and `MULTIPLYING_KINDS` group the
operator kinds for the parser.
"""

from enum import Enum


class TerminalKind(Enum):
    """Lexical category of a token. The value is the display name."""

    BEGIN = "'begin'"
    END = "'end'"
    IF = "'if'"
    THEN = "'then'"
    ELSE = "'else'"
    WHILE = "'while'"
    LOOP = "'loop'"
    CALL = "'call'"
    DO = "'do'"
    UNTIL = "'until'"
    FOR = "'for'"

    SEMICOLON = "';'"
    COMMA = "','"
    LEFT_PARENTHESIS = "'('"
    RIGHT_PARENTHESIS = "')'"
    BECOMES = "':='"

    GREATER_THAN = "'>'"
    GREATER_EQUAL = "'>='"
    EQUAL = "'='"
    NOT_EQUAL = "'/='"
    LESS_THAN = "'<'"
    LESS_EQUAL = "'<='"

    PLUS = "'+'"
    MINUS = "'-'"
    TIMES = "'*'"
    DIVIDE = "'/'"

    IDENTIFIER = "identifier"
    NUMBER_CONSTANT = "numberConstant"
    STRING_CONSTANT = "stringConstant"

    END_OF_FILE = "end of file"
    ILLEGAL_SYMBOL = "illegal symbol"

    def __str__(self) -> str:
        return self.value


KEYWORDS: dict[str, TerminalKind] = {
    "begin": TerminalKind.BEGIN,
    "end": TerminalKind.END,
    "if": TerminalKind.IF,
    "then": TerminalKind.THEN,
    "else": TerminalKind.ELSE,
    "while": TerminalKind.WHILE,
    "loop": TerminalKind.LOOP,
    "call": TerminalKind.CALL,
    "do": TerminalKind.DO,
    "until": TerminalKind.UNTIL,
    "for": TerminalKind.FOR,
}

# Longest match wins, so two-character spellings must be listed here too.
SYMBOLS: dict[str, TerminalKind] = {
    ";": TerminalKind.SEMICOLON,
    ",": TerminalKind.COMMA,
    "(": TerminalKind.LEFT_PARENTHESIS,
    ")": TerminalKind.RIGHT_PARENTHESIS,
    ":=": TerminalKind.BECOMES,
    ">": TerminalKind.GREATER_THAN,
    ">=": TerminalKind.GREATER_EQUAL,
    "=": TerminalKind.EQUAL,
    "/=": TerminalKind.NOT_EQUAL,
    "<": TerminalKind.LESS_THAN,
    "<=": TerminalKind.LESS_EQUAL,
    "+": TerminalKind.PLUS,
    "-": TerminalKind.MINUS,
    "*": TerminalKind.TIMES,
    "/": TerminalKind.DIVIDE,
}

RELATIONAL_KINDS: frozenset[TerminalKind] = frozenset(
    {
        TerminalKind.GREATER_THAN,
        TerminalKind.GREATER_EQUAL,
        TerminalKind.EQUAL,
        TerminalKind.NOT_EQUAL,
        TerminalKind.LESS_THAN,
        TerminalKind.LESS_EQUAL,
    }
)

ADDING_KINDS: frozenset[TerminalKind] = frozenset(
    {TerminalKind.PLUS, TerminalKind.MINUS}
)

MULTIPLYING_KINDS: frozenset[TerminalKind] = frozenset(
    {TerminalKind.TIMES, TerminalKind.DIVIDE}
)

COMMENT_PREFIX = "--"

__all__ = [
    "ADDING_KINDS",
    "COMMENT_PREFIX",
    "KEYWORDS",
    "MULTIPLYING_KINDS",
    "RELATIONAL_KINDS",
    "SYMBOLS",
    "TerminalKind",
]
