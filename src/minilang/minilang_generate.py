"""
Output sink for the syntax analyser.

`Generate` records the traversal of an accepted parse as a flat list of
`TraceEvent` entries (rule entered, terminal accepted, rule left, variable
declared or dropped, error reported) and owns the `SymbolRegistry` the
analyser declares variables in. The trace can be rendered as an indented
parse tree, either after the fact with `render()` or live by passing
`echo=True`.

Example:
    >>> generate = Generate()
    >>> SyntaxAnalyser(Lexer(CharacterStream("begin x := 1 end")), generate).parse()
    >>> print(generate.render())
    begin StatementPart
      terminal 'begin' ('begin')
      ...
"""

from __future__ import annotations

from typing import Literal, NamedTuple

from minilang.minilang_lexer import Token
from minilang.minilang_symbols import SymbolRegistry, Variable

EventKind = Literal["commence", "finish", "terminal", "declare", "remove", "error"]


class TraceEvent(NamedTuple):
    """One entry of the parse trace.

    Attributes:
        kind (EventKind): What happened.
        value (object): Rule name, Token, Variable or error message.
        depth (int): Rule nesting depth at the time of the event.
        line (int): Source line for terminals and errors, 0 otherwise.
    """

    kind: EventKind
    value: object
    depth: int
    line: int = 0

    def render(self) -> str:
        """Renders this event as one line of the indented trace."""
        indent = "  " * self.depth
        if self.kind == "commence":
            return f"{indent}begin {self.value}"
        if self.kind == "finish":
            return f"{indent}end {self.value}"
        if self.kind == "terminal":
            token = self.value
            assert isinstance(token, Token)  # for mypy
            return f"{indent}terminal '{token.text}' ({token.symbol})"
        if self.kind == "declare":
            return f"{indent}DECL {self.value}"
        if self.kind == "remove":
            variable = self.value
            assert isinstance(variable, Variable)  # for mypy
            return f"{indent}DROP {variable.identifier}"
        return f"{indent}ERROR line {self.line}: {self.value}"


class Generate:
    """Records the parse trace and holds the variable registry for one parse.

    Attributes:
        events (list[TraceEvent]): Trace entries in the order they happened.
        registry (SymbolRegistry): Variables declared so far.
        echo (bool): Print each event as it is recorded.
    """

    def __init__(
        self, registry: SymbolRegistry | None = None, echo: bool = False
    ) -> None:
        self.events: list[TraceEvent] = []
        self.registry = registry if registry is not None else SymbolRegistry()
        self.echo = echo
        self._depth = 0

    def _record(self, event: TraceEvent) -> None:
        self.events.append(event)
        if self.echo:
            print(event.render())

    # Traversal trace

    def commence_nonterminal(self, name: str) -> None:
        """Records entry into grammar rule `name` and nests following events.

        Args:
            name (str): The rule name, e.g. "Expression".
        """
        self._record(TraceEvent("commence", name, self._depth))
        self._depth += 1

    def finish_nonterminal(self, name: str) -> None:
        """Records leaving grammar rule `name` at the depth it was entered."""
        self._depth = max(self._depth - 1, 0)
        self._record(TraceEvent("finish", name, self._depth))

    def insert_terminal(self, token: Token) -> None:
        """Records an accepted terminal.

        Args:
            token (Token): The token the analyser consumed.
        """
        self._record(TraceEvent("terminal", token, self._depth, token.line))

    def report_error(self, token: Token, message: str) -> None:
        """Records a diagnostic against `token`. Does not raise."""
        self._record(TraceEvent("error", message, self._depth, token.line))

    # Variable registry

    def get_variable(self, identifier: str) -> Variable | None:
        """Looks up a declared variable.

        Args:
            identifier (str): The variable name.

        Returns:
            Variable | None: The registry entry, or None if undeclared.
        """
        return self.registry.get(identifier)

    def add_variable(self, variable: Variable) -> Variable:
        """Declares `variable` if its identifier is new; returns the stored entry."""
        stored = self.registry.add(variable)
        if stored is variable:
            self._record(TraceEvent("declare", variable, self._depth))
        return stored

    def remove_variable(self, variable: Variable) -> None:
        """Drops `variable` from the registry if it is the stored entry.

        A `remove` event is recorded only when something was dropped.
        """
        if self.registry.remove(variable):
            self._record(TraceEvent("remove", variable, self._depth))

    # Inspection

    @property
    def errors(self) -> list[str]:
        """Messages of all reported errors, in order."""
        return [str(e.value) for e in self.events if e.kind == "error"]

    def nonterminals(self) -> list[tuple[str, str]]:
        """(kind, name) pairs for every commence/finish event, in order."""
        return [
            (e.kind, str(e.value))
            for e in self.events
            if e.kind in ("commence", "finish")
        ]

    def terminals(self) -> list[Token]:
        """Tokens accepted so far, in order.

        Returns:
            list[Token]: One entry per `insert_terminal` call.
        """
        return [e.value for e in self.events if isinstance(e.value, Token)]

    def is_balanced(self) -> bool:
        """True when every rule entered was left again, innermost first."""
        stack: list[str] = []
        for kind, name in self.nonterminals():
            if kind == "commence":
                stack.append(name)
            elif not stack or stack.pop() != name:
                return False
        return not stack

    def render(self) -> str:
        """Renders the whole trace as an indented parse tree.

        Returns:
            str: One line per event, two spaces per nesting level.
        """
        return "\n".join(event.render() for event in self.events)


__all__ = ["EventKind", "Generate", "TraceEvent"]
