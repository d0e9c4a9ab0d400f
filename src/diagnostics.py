"""
Diagnostics reported while parsing a DBC network.

The parser never prints or exits; every problem it finds is handed to a
diagnostics sink as ``report(location, severity, message)``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Protocol

logger = logging.getLogger(__name__)


class Severity(enum.Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class Location:
    """
    Position in the DBC text.

    Attributes:
        line: 1-based line number
        column: 1-based column number
    """
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True)
class Diagnostic:
    location: Location
    severity: Severity
    message: str

    def __str__(self) -> str:
        return f"{self.location}: {self.severity.value}: {self.message}"


class DiagnosticSink(Protocol):
    def report(self, location: Location, severity: Severity, message: str) -> None:
        ...


@dataclass
class DiagnosticCollector:
    """
    Sink that keeps every report in order and mirrors it to the module logger.

    An optional downstream sink receives each report as well.
    """
    diagnostics: list[Diagnostic] = field(default_factory=list)
    forward_to: DiagnosticSink | None = None

    def report(self, location: Location, severity: Severity, message: str) -> None:
        diagnostic = Diagnostic(location, severity, message)
        self.diagnostics.append(diagnostic)
        if severity is Severity.ERROR:
            logger.debug("DBC error at %s: %s", location, message)
        else:
            logger.debug("DBC warning at %s: %s", location, message)
        if self.forward_to is not None:
            self.forward_to.report(location, severity, message)
