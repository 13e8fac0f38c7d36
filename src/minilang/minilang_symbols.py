"""
Variables and the symbol registry used by the syntax analyser.

A variable is declared the first time it is the target of an assignment. The
registry keeps at most one entry per identifier and never overwrites an entry:
re-assigning a variable with a value of another type leaves the recorded type
alone. `for` statements remove their control variables again once the loop is
closed, but only the entries the loop itself created.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum


class VariableType(Enum):
    """Inferred type of a variable or expression."""

    NUMBER = "Number"
    STRING = "String"
    UNKNOWN = "Unknown"

    def __str__(self) -> str:
        return self.value


class Variable:
    """A declared identifier and the type it was declared with.

    Attributes:
        identifier (str): The variable's name.
        type (VariableType): Type inferred from its first assignment.
    """

    def __init__(
        self, identifier: str, type_: VariableType = VariableType.UNKNOWN
    ) -> None:
        self.identifier = identifier
        self.type = type_

    def __repr__(self) -> str:
        return f"Variable({self.identifier}, {self.type})"

    def __str__(self) -> str:
        return f"{self.identifier}: {self.type}"


class SymbolRegistry:
    """Mapping from identifier to the live Variable for that identifier."""

    def __init__(self) -> None:
        self._variables: dict[str, Variable] = {}

    def add(self, variable: Variable) -> Variable:
        """Declares `variable` unless its identifier is already known.

        Returns:
            Variable: The entry now stored for the identifier. This is
            `variable` itself only when it was newly declared.
        """
        return self._variables.setdefault(variable.identifier, variable)

    def get(self, identifier: str) -> Variable | None:
        """Looks up the live entry for `identifier`.

        Args:
            identifier (str): The variable name.

        Returns:
            Variable | None: The stored Variable, or None if undeclared.
        """
        return self._variables.get(identifier)

    def remove(self, variable: Variable) -> bool:
        """Removes the entry for `variable` if it is that exact object.

        An entry declared by someone else under the same identifier is left
        in place, as is a missing one.

        Returns:
            bool: True if an entry was removed.
        """
        if self._variables.get(variable.identifier) is not variable:
            return False
        del self._variables[variable.identifier]
        return True

    def snapshot(self) -> dict[str, str]:
        """Identifier to type-name mapping, sorted by identifier."""
        return {
            name: str(self._variables[name].type) for name in sorted(self._variables)
        }

    def __contains__(self, identifier: object) -> bool:
        """True if `identifier` is currently declared."""
        return identifier in self._variables

    def __iter__(self) -> Iterator[Variable]:
        return iter(list(self._variables.values()))

    def __len__(self) -> int:
        return len(self._variables)


__all__ = ["SymbolRegistry", "Variable", "VariableType"]
