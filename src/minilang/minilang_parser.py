"""
minilang Syntax Analyser

Single-pass recursive-descent parser and type checker for minilang.

Every nonterminal of the grammar is one method of `SyntaxAnalyser`. The
analyser looks at exactly one token (the lookahead) to decide which production
to follow and never backtracks; `accept_terminal` is the only place the token
stream moves forward. While parsing it infers the type of each expression,
rejects arithmetic on incompatible operands and keeps the variable registry of
its `Generate` sink up to date.

Grammar
-------
    <statement part>        ::= begin <statement list> end
    <statement list>        ::= <statement> | <statement> ; <statement list>
    <statement>             ::= <assignment statement> | <if statement>
                              | <while statement> | <procedure statement>
                              | <until statement> | <for statement>
    <assignment statement>  ::= identifier := <expression>
                              | identifier := stringConstant
    <if statement>          ::= if <condition> then <statement list>
                                [ else <statement list> ] end if
    <while statement>       ::= while <condition> loop <statement list> end loop
    <procedure statement>   ::= call identifier ( <argument list> )
    <until statement>       ::= do <statement list> until <condition>
    <for statement>         ::= for ( <assignment statement> ; <condition> ;
                                <assignment statement> ) do <statement list> end loop
    <argument list>         ::= identifier | identifier , <argument list>
    <condition>             ::= identifier <conditional operator>
                                ( identifier | numberConstant | stringConstant )
    <conditional operator>  ::= > | >= | = | /= | < | <=
    <expression>            ::= <term> | <term> ( + | - ) <expression>
    <term>                  ::= <factor> | <factor> ( * | / ) <term>
    <factor>                ::= identifier | numberConstant | ( <expression> )

A `;` may also close the last statement of a list.

Raises
------
SyntaxAnalysisError
    The lookahead is not a token the current rule accepts.
SemanticAnalysisError
    An identifier is used before it is assigned, or arithmetic mixes types.

Errors raised inside a rule are re-raised by every enclosing rule with the
rule's name attached (see `CompilationError.rule_trace`).
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import NoReturn, TypeVar

from minilang.minilang_constants import (
    ADDING_KINDS,
    MULTIPLYING_KINDS,
    RELATIONAL_KINDS,
    TerminalKind,
)
from minilang.minilang_errors import (
    CompilationError,
    SemanticAnalysisError,
    SyntaxAnalysisError,
)
from minilang.minilang_generate import Generate
from minilang.minilang_lexer import CharacterStream, Lexer, Token, TokenSource
from minilang.minilang_symbols import Variable, VariableType

T = TypeVar("T")

# Lookahead kinds that open a <statement>.
STATEMENT_STARTERS: frozenset[TerminalKind] = frozenset(
    {
        TerminalKind.IDENTIFIER,
        TerminalKind.IF,
        TerminalKind.WHILE,
        TerminalKind.CALL,
        TerminalKind.DO,
        TerminalKind.FOR,
    }
)


def nonterminal(name: str) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Marks a method as the procedure for grammar rule `name`.

    The wrapped method reports entering and leaving the rule to the sink.
    A CompilationError escaping the method is re-raised as a new error that
    names the rule and wraps the original as its cause.
    """

    def decorator(method: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(method)
        def wrapper(self: SyntaxAnalyser, *args: object, **kwargs: object) -> T:
            self.generate.commence_nonterminal(name)
            try:
                result = method(self, *args, **kwargs)
            except CompilationError as e:
                raise CompilationError.wrap(name, e) from e
            self.generate.finish_nonterminal(name)
            return result

        return wrapper

    return decorator


class TokenCursor:
    """Holds the single lookahead token; `advance` is the only way to move on."""

    def __init__(self, source: TokenSource) -> None:
        self.source = source
        self.current: Token = source.next_token()

    def advance(self) -> Token:
        """Replaces the lookahead with the next token from the source.

        Returns:
            Token: The new lookahead.
        """
        self.current = self.source.next_token()
        return self.current


class SyntaxAnalyser:
    """
    Recursive-descent analyser for one minilang source.

    Attributes
    ----------
    source : TokenSource
        Where tokens come from; its `filename` appears in diagnostics.
    generate : Generate
        Sink receiving the parse trace; owns the variable registry.
    cursor : TokenCursor | None
        The lookahead holder, created when `parse()` starts.

    Methods
    -------
    parse() -> Generate
        Analyse the whole source.
    accept_terminal(kind) -> Token
        Consume the lookahead if it is of `kind`, else raise.
    report_error(expectation, error_class) -> NoReturn
        Format, record and raise a diagnostic against the lookahead.
    """

    def __init__(self, source: TokenSource, generate: Generate | None = None) -> None:
        self.source = source
        self.generate = generate if generate is not None else Generate()
        self.cursor: TokenCursor | None = None

    @property
    def lookahead(self) -> Token:
        """The current unconsumed token.

        Raises:
            RuntimeError: If `parse()` has not been called yet.
        """
        if self.cursor is None:
            raise RuntimeError("parse() has not been started")
        return self.cursor.current

    def parse(self) -> Generate:
        """Analyse the source from `begin` to end of file.

        Returns:
            Generate: The sink holding the trace and the final registry.

        Raises:
            CompilationError: On the first syntactic or semantic violation.
            RuntimeError: If called a second time; the source is read once.
        """
        if self.cursor is not None:
            raise RuntimeError("a SyntaxAnalyser can only parse once")
        self.cursor = TokenCursor(self.source)
        self.statement_part()
        # End of file is checked, not accepted: it is not part of the trace.
        if self.lookahead.symbol is not TerminalKind.END_OF_FILE:
            self.report_error(f"expected {TerminalKind.END_OF_FILE}")
        return self.generate

    # Terminals and diagnostics

    def accept_terminal(self, kind: TerminalKind) -> Token:
        """Consumes the lookahead if it is of `kind`.

        Args:
            kind (TerminalKind): The kind the grammar requires here.

        Returns:
            Token: The accepted token.

        Raises:
            SyntaxAnalysisError: If the lookahead is of another kind; the
            lookahead is left in place.
        """
        token = self.lookahead
        if token.symbol is not kind:
            self.report_error(f"expected {kind}")
        self.generate.insert_terminal(token)
        assert self.cursor is not None  # for mypy
        self.cursor.advance()
        return token

    def report_error(
        self,
        expectation: str,
        error_class: type[CompilationError] = SyntaxAnalysisError,
    ) -> NoReturn:
        """Formats a diagnostic against the lookahead, records it and raises.

        Args:
            expectation (str): What the rule wanted, e.g. "expected 'then'".
            error_class (type[CompilationError]): Error kind to raise.

        Raises:
            CompilationError: Always, as an instance of `error_class`.
        """
        token = self.lookahead
        message = (
            f"{self.source.filename}:{token.line}: "
            f"found '{token.text}' ({token.symbol}), {expectation}"
        )
        self.generate.report_error(token, message)
        raise error_class(message, token.line)

    def accept_variable(self) -> Variable:
        """Consumes an identifier that must already be declared."""
        token = self.lookahead
        if token.symbol is not TerminalKind.IDENTIFIER:
            self.report_error(f"expected {TerminalKind.IDENTIFIER}")
        variable = self.generate.get_variable(token.text)
        if variable is None:
            self.report_error(f"'{token.text}' is not declared", SemanticAnalysisError)
        self.accept_terminal(TerminalKind.IDENTIFIER)
        return variable

    # Statements

    @nonterminal("StatementPart")
    def statement_part(self) -> None:
        self.accept_terminal(TerminalKind.BEGIN)
        self.statement_list()
        self.accept_terminal(TerminalKind.END)

    @nonterminal("StatementList")
    def statement_list(self) -> None:
        self.statement()
        if self.lookahead.symbol is TerminalKind.SEMICOLON:
            self.accept_terminal(TerminalKind.SEMICOLON)
            if self.lookahead.symbol in STATEMENT_STARTERS:
                self.statement_list()

    @nonterminal("Statement")
    def statement(self) -> None:
        symbol = self.lookahead.symbol
        if symbol is TerminalKind.IDENTIFIER:
            self.assignment_statement()
        elif symbol is TerminalKind.IF:
            self.if_statement()
        elif symbol is TerminalKind.WHILE:
            self.while_statement()
        elif symbol is TerminalKind.CALL:
            self.procedure_statement()
        elif symbol is TerminalKind.DO:
            self.until_statement()
        elif symbol is TerminalKind.FOR:
            self.for_statement()
        else:
            self.report_error("expected a statement (assignment/if/while/call/do/for)")

    @nonterminal("AssignmentStatement")
    def assignment_statement(self) -> Variable:
        """Declares the target if it is new and returns the Variable built for it."""
        identifier = self.accept_terminal(TerminalKind.IDENTIFIER).text
        self.accept_terminal(TerminalKind.BECOMES)

        if self.lookahead.symbol is TerminalKind.STRING_CONSTANT:
            self.accept_terminal(TerminalKind.STRING_CONSTANT)
            var_type = VariableType.STRING
        else:
            var_type = self.expression()

        variable = Variable(identifier, var_type)
        self.generate.add_variable(variable)
        return variable

    @nonterminal("IfStatement")
    def if_statement(self) -> None:
        self.accept_terminal(TerminalKind.IF)
        self.condition()
        self.accept_terminal(TerminalKind.THEN)
        self.statement_list()

        if self.lookahead.symbol is TerminalKind.ELSE:
            self.accept_terminal(TerminalKind.ELSE)
            self.statement_list()

        self.accept_terminal(TerminalKind.END)
        self.accept_terminal(TerminalKind.IF)

    @nonterminal("WhileStatement")
    def while_statement(self) -> None:
        self.accept_terminal(TerminalKind.WHILE)
        self.condition()
        self.accept_terminal(TerminalKind.LOOP)
        self.statement_list()
        self.accept_terminal(TerminalKind.END)
        self.accept_terminal(TerminalKind.LOOP)

    @nonterminal("ProcedureStatement")
    def procedure_statement(self) -> None:
        self.accept_terminal(TerminalKind.CALL)
        self.accept_terminal(TerminalKind.IDENTIFIER)
        self.accept_terminal(TerminalKind.LEFT_PARENTHESIS)
        self.argument_list()
        self.accept_terminal(TerminalKind.RIGHT_PARENTHESIS)

    @nonterminal("UntilStatement")
    def until_statement(self) -> None:
        self.accept_terminal(TerminalKind.DO)
        self.statement_list()
        self.accept_terminal(TerminalKind.UNTIL)
        self.condition()

    @nonterminal("ForStatement")
    def for_statement(self) -> None:
        """Parses a for loop; its control variables only live until `end loop`."""
        self.accept_terminal(TerminalKind.FOR)
        self.accept_terminal(TerminalKind.LEFT_PARENTHESIS)
        initial = self.assignment_statement()
        self.accept_terminal(TerminalKind.SEMICOLON)
        self.condition()
        self.accept_terminal(TerminalKind.SEMICOLON)
        step = self.assignment_statement()
        self.accept_terminal(TerminalKind.RIGHT_PARENTHESIS)

        self.accept_terminal(TerminalKind.DO)
        self.statement_list()
        self.accept_terminal(TerminalKind.END)
        self.accept_terminal(TerminalKind.LOOP)

        # Only entries created by the two header assignments are dropped.
        self.generate.remove_variable(initial)
        self.generate.remove_variable(step)

    @nonterminal("ArgumentList")
    def argument_list(self) -> None:
        self.accept_variable()
        if self.lookahead.symbol is TerminalKind.COMMA:
            self.accept_terminal(TerminalKind.COMMA)
            self.argument_list()

    # Conditions

    @nonterminal("Condition")
    def condition(self) -> None:
        self.accept_variable()
        self.conditional_operator()

        # Comparisons are not type checked.
        symbol = self.lookahead.symbol
        if symbol is TerminalKind.IDENTIFIER:
            self.accept_variable()
        elif symbol in (TerminalKind.NUMBER_CONSTANT, TerminalKind.STRING_CONSTANT):
            self.accept_terminal(symbol)
        else:
            self.report_error("expected identifier/numberConstant/stringConstant")

    @nonterminal("ConditionalOperator")
    def conditional_operator(self) -> None:
        symbol = self.lookahead.symbol
        if symbol not in RELATIONAL_KINDS:
            self.report_error("expected a conditional operator (>, >=, =, /=, <, <=)")
        self.accept_terminal(symbol)

    # Expressions

    @nonterminal("Expression")
    def expression(self) -> VariableType:
        """Returns the type of the leftmost term."""
        var_type = self.term()

        operator = self.lookahead.symbol
        if operator in ADDING_KINDS:
            self.accept_terminal(operator)
            right_type = self.expression()
            self.check_adding_operands(operator, var_type, right_type)

        return var_type

    def check_adding_operands(
        self, operator: TerminalKind, left: VariableType, right: VariableType
    ) -> None:
        """`-` never takes a String; `+` takes Strings only on both sides."""
        strings = (left is VariableType.STRING, right is VariableType.STRING)
        if operator is TerminalKind.MINUS and any(strings):
            compatible = False
        else:
            compatible = strings[0] == strings[1]
        if not compatible:
            self.report_error(
                f"incompatible types {left} and {right} for {operator}",
                SemanticAnalysisError,
            )

    @nonterminal("Term")
    def term(self) -> VariableType:
        """Returns the type of the leftmost factor."""
        var_type = self.factor()

        operator = self.lookahead.symbol
        if operator in MULTIPLYING_KINDS:
            if var_type is VariableType.STRING:
                self.report_error(
                    f"cannot apply {operator} to a String left operand",
                    SemanticAnalysisError,
                )
            self.accept_terminal(operator)
            if self.term() is VariableType.STRING:
                self.report_error(
                    f"cannot apply {operator} to a String right operand",
                    SemanticAnalysisError,
                )

        return var_type

    @nonterminal("Factor")
    def factor(self) -> VariableType:
        symbol = self.lookahead.symbol
        if symbol is TerminalKind.IDENTIFIER:
            return self.accept_variable().type
        if symbol is TerminalKind.NUMBER_CONSTANT:
            self.accept_terminal(TerminalKind.NUMBER_CONSTANT)
            return VariableType.NUMBER
        if symbol is TerminalKind.LEFT_PARENTHESIS:
            self.accept_terminal(TerminalKind.LEFT_PARENTHESIS)
            var_type = self.expression()
            self.accept_terminal(TerminalKind.RIGHT_PARENTHESIS)
            return var_type
        self.report_error("expected an identifier, numberConstant or ( expression )")


def analyse_source(
    text: str, filename: str = "<string>", echo: bool = False
) -> Generate:
    """Lexes and analyses `text`, returning the sink of the finished parse."""
    lexer = Lexer(CharacterStream(text), filename=filename)
    return SyntaxAnalyser(lexer, Generate(echo=echo)).parse()


__all__ = [
    "STATEMENT_STARTERS",
    "SyntaxAnalyser",
    "TokenCursor",
    "analyse_source",
    "nonterminal",
]
