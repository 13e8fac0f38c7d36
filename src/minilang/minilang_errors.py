"""
Error types raised by the minilang lexer and syntax analyser.

Classes:
    CompilationError: Base error carrying a message, a line number and an
        optional wrapped cause. Grammar rules wrap errors raised by the rules
        they call, so a failure arrives at the caller as a chain whose
        innermost link is the original diagnostic.
    SyntaxAnalysisError: The lookahead did not match what the grammar needs.
    SemanticAnalysisError: Undeclared identifier or incompatible operand types.
    LexicalError: The lexer could not produce a token (e.g. unterminated string).

Example:
    >>> try:
    ...     analyser.parse()
    ... except CompilationError as e:
    ...     print(e.root.message)
    ...     print(" > ".join(e.rule_trace()))
"""

from __future__ import annotations


class CompilationError(Exception):
    """A fatal analysis error.

    Attributes:
        message (str): The diagnostic text. For a wrapping error this is the
            root diagnostic prefixed with the rule name.
        line (int): Source line the error was detected on.
        cause (CompilationError | None): The error this one wraps, if any.
        rule (str | None): Grammar rule that added this layer; None for the root.
    """

    def __init__(
        self,
        message: str,
        line: int = 0,
        cause: CompilationError | None = None,
        rule: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.line = line
        self.cause = cause
        self.rule = rule

    @classmethod
    def wrap(cls, rule: str, error: CompilationError) -> CompilationError:
        """Builds a new layer naming `rule` around `error`.

        The new error keeps the class and line of the root so callers can
        still tell syntax and semantic failures apart at the top.
        """
        root = error.root
        return type(root)(
            f"in {rule}: {root.message}", line=error.line, cause=error, rule=rule
        )

    @property
    def root(self) -> CompilationError:
        """The innermost error of the cause chain."""
        error = self
        while error.cause is not None:
            error = error.cause
        return error

    def chain(self) -> list[CompilationError]:
        """All errors of the chain, outermost first."""
        errors: list[CompilationError] = []
        error: CompilationError | None = self
        while error is not None:
            errors.append(error)
            error = error.cause
        return errors

    def rule_trace(self) -> list[str]:
        """Names of the grammar rules the error passed through, outermost first."""
        return [e.rule for e in self.chain() if e.rule is not None]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, line={self.line})"


class SyntaxAnalysisError(CompilationError):
    """Raised when the lookahead's kind is not one the current rule accepts."""


class SemanticAnalysisError(CompilationError):
    """Raised for undeclared identifiers and type-incompatible arithmetic."""


class LexicalError(CompilationError):
    """Raised by the lexer for input it cannot turn into a token."""


__all__ = [
    "CompilationError",
    "LexicalError",
    "SemanticAnalysisError",
    "SyntaxAnalysisError",
]
