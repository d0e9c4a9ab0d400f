"""
Exceptions raised inside the DBC grammar engine.

They never leave ``DbcParser.parse``: each one is caught at the statement
level, turned into a diagnostic, and the offending statement is discarded.
"""

from __future__ import annotations

from .diagnostics import Location


class DbcParseError(Exception):
    """
    Base class for problems found in DBC text.

    Attributes:
        location: where the problem was detected
    """

    def __init__(self, message: str, location: Location) -> None:
        super().__init__(f"Line {location.line}, column {location.column}: {message}")
        self.message = message
        self.location = location


class LexicalError(DbcParseError):
    """Invalid character or unterminated string literal."""


class DbcSyntaxError(DbcParseError):
    """A token that does not fit the statement being recognized."""


class ConversionError(DbcParseError):
    """A numeric literal that does not fit its target type."""


class UnresolvedReferenceError(DbcParseError):
    """An annotation names an object that has not been declared (strict mode)."""


class ParseAbortedError(DbcParseError):
    """The input ended inside a statement, before its ";" or line break."""
