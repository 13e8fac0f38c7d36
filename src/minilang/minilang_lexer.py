"""
Lexical analyzer for the minilang language.

This module provides the token sources the syntax analyser reads from:

Classes:
    CharacterStream: Stream abstraction for reading characters with line tracking.
    Token: Immutable token with kind, source text and line number.
    TokenSource: Protocol every token source satisfies.
    Lexer: Converts a CharacterStream into tokens, one per call.
    TokenListSource: Replays a prepared list of tokens (used by tests).

Features:
    - Skips whitespace and `--` line comments
    - Longest-match recognition of operators (`:=`, `>=`, `<=`, `/=`)
    - Recognizes keywords, identifiers, number constants and string constants
    - Characters outside the language become `ILLEGAL_SYMBOL` tokens
    - Returns an end-of-file token forever once the input is exhausted

Raises:
    LexicalError: If a string constant is not terminated on its line.

Example:
    >>> lexer = Lexer(CharacterStream("begin x := 1 end"))
    >>> lexer.next_token()
    Token(BEGIN, 'begin', 1)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from minilang.minilang_constants import COMMENT_PREFIX, KEYWORDS, SYMBOLS, TerminalKind
from minilang.minilang_errors import LexicalError


class CharacterStream:
    """
    A utility for reading characters from a string source with line tracking.

    Attributes:
        source (str): The input source string.
        position (int): Current index in the source.
        line (int): Current line number (1-indexed).
    """

    def __init__(self, source: str, position: int = 0, line: int = 1):
        self.source = source
        self.position = position
        self.line = line

    def next(self) -> str:
        """
        Consumes and returns the next character in the stream.

        Raises:
            EOFError: If reading past the end of the source.
        """
        if self.position >= len(self.source):
            raise EOFError(
                f"Attempted to read past end of source at position=<{self.position}>, line=<{self.line}>"
            )
        char = self.source[self.position]
        if char == "\n":
            self.line += 1
        self.position += 1
        return char

    def peek(self, offset: int = 0) -> str:
        """Returns the character at `offset` without advancing, or "" if out of bounds."""
        index = self.position + offset
        if index < 0 or index >= len(self.source):
            return ""
        return self.source[index]

    def end_of_file(self) -> bool:
        """Checks if the stream has consumed all characters.

        Returns:
            bool: True at end of source, False otherwise.
        """
        return self.position >= len(self.source)


@dataclass(frozen=True)
class Token:
    """A single lexical token.

    Attributes:
        symbol (TerminalKind): The token's lexical category.
        text (str): The source text (string constants without their quotes).
        line (int): The 1-based line number where the token appears.
    """

    symbol: TerminalKind
    text: str
    line: int = 0

    def __repr__(self) -> str:
        return f"Token({self.symbol.name}, {self.text!r}, {self.line})"


class TokenSource(Protocol):
    """Anything the syntax analyser can pull tokens from."""

    filename: str

    def next_token(self) -> Token: ...  # pragma: no cover


class Lexer:
    """Lexical analyzer for minilang.

    Tokens are produced lazily; the lexer never holds more than the token it
    is currently building.

    Attributes:
        stream (CharacterStream): The source stream to tokenize.
        filename (str): Name of the source, used in diagnostics.
    """

    def __init__(self, stream: CharacterStream, filename: str = "<string>") -> None:
        self.stream = stream
        self.filename = filename

    @classmethod
    def from_file(cls, path: str) -> Lexer:
        """Builds a lexer over the UTF-8 contents of `path`."""
        with open(path, encoding="utf-8") as f:
            return cls(CharacterStream(f.read()), filename=path)

    def peek(self) -> str:
        """Returns the next character without consuming it.

        Returns:
            str: The upcoming character, or an empty string at end of source.
        """
        return self.stream.peek()

    def advance(self) -> str:
        """Consumes and returns the next character from the stream.

        Returns:
            str: The consumed character.
        """
        return self.stream.next()

    def skip_whitespace(self) -> None:
        """Skips all whitespace and comments in the stream."""
        while not self.stream.end_of_file():
            if self.peek().isspace():
                self.advance()
            elif self.peek() + self.stream.peek(1) == COMMENT_PREFIX:
                self.skip_comment()
            else:
                break

    def skip_comment(self) -> None:
        """Advances to the end of a `--` comment line."""
        while not self.stream.end_of_file() and self.peek() != "\n":
            self.advance()

    def match_operator(self) -> Token | None:
        """Attempts to match the longest operator or punctuation symbol."""
        line = self.stream.line
        longest = ""
        candidate = ""
        for i in range(max(len(s) for s in SYMBOLS)):
            ch = self.stream.peek(i)
            if ch == "":
                break
            candidate += ch
            if candidate in SYMBOLS:
                longest = candidate

        if not longest:
            return None
        for _ in longest:
            self.advance()
        return Token(SYMBOLS[longest], longest, line)

    def next_token(self) -> Token:
        """Consumes and returns the next Token from the stream.

        Raises:
            LexicalError: On an unterminated string constant.
        """
        self.skip_whitespace()

        line = self.stream.line
        if self.stream.end_of_file():
            return Token(TerminalKind.END_OF_FILE, "", line)

        ch = self.peek()

        # 1. Identifier or keyword
        if ch.isalpha():
            word = ""
            while self.peek().isalnum() or self.peek() == "_":
                word += self.advance()
            return Token(KEYWORDS.get(word, TerminalKind.IDENTIFIER), word, line)

        # 2. Number constant, with an optional fractional part
        if ch.isdigit():
            num = ""
            while self.peek().isdigit():
                num += self.advance()
            if self.peek() == "." and self.stream.peek(1).isdigit():
                num += self.advance()
                while self.peek().isdigit():
                    num += self.advance()
            return Token(TerminalKind.NUMBER_CONSTANT, num, line)

        # 3. String constant
        if ch == '"':
            self.advance()
            val = ""
            while self.peek() not in ('"', "\n", ""):
                val += self.advance()
            if self.peek() != '"':
                raise LexicalError(
                    f"{self.filename}:{line}: unterminated string constant", line
                )
            self.advance()
            return Token(TerminalKind.STRING_CONSTANT, val, line)

        # 4. Operators and punctuation
        token = self.match_operator()
        if token:
            return token

        # 5. Anything else is handed to the parser to reject
        return Token(TerminalKind.ILLEGAL_SYMBOL, self.advance(), line)


class TokenListSource:
    """Token source over a prepared list of tokens.

    Once the list is used up, an end-of-file token on the last seen line is
    returned on every call.
    """

    def __init__(self, tokens: Iterable[Token], filename: str = "<tokens>") -> None:
        self._tokens = iter(tokens)
        self._line = 1
        self.filename = filename

    def next_token(self) -> Token:
        """Returns the next prepared token, then end-of-file tokens forever.

        Returns:
            Token: The next token; an END_OF_FILE token on the last seen line
            once the list is used up.
        """
        token = next(self._tokens, None)
        if token is None:
            return Token(TerminalKind.END_OF_FILE, "", self._line)
        self._line = token.line
        return token


__all__ = ["CharacterStream", "Lexer", "Token", "TokenListSource", "TokenSource"]
