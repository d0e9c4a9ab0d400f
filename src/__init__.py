"""
DBC Parser package for parsing CAN database files.
"""

from .dbc_parser import DbcParser, ParseResult, parse_text
from .diagnostics import Diagnostic, DiagnosticCollector, DiagnosticSink, Location, Severity
from .errors import (
    ConversionError,
    DbcParseError,
    DbcSyntaxError,
    LexicalError,
    ParseAbortedError,
    UnresolvedReferenceError,
)
from .dbc_model import (
    Network,
    Node,
    Message,
    Signal,
    SignalGroup,
    SignalType,
    ValueTable,
    EnvironmentVariable,
    ExtendedMultiplexor,
    Attribute,
    AttributeDefinition,
    AttributeRelation,
    AttributeValueType,
    BitTiming,
    ByteOrder,
    ValueType,
    ExtendedValueType,
    Multiplexor,
    EnvironmentVariableType,
    AccessType,
    AttributeObjectType,
    AttributeKind,
)

__all__ = [
    "DbcParser",
    "ParseResult",
    "parse_text",
    "Diagnostic",
    "DiagnosticCollector",
    "DiagnosticSink",
    "Location",
    "Severity",
    "ConversionError",
    "DbcParseError",
    "DbcSyntaxError",
    "LexicalError",
    "ParseAbortedError",
    "UnresolvedReferenceError",
    "Network",
    "Node",
    "Message",
    "Signal",
    "SignalGroup",
    "SignalType",
    "ValueTable",
    "EnvironmentVariable",
    "ExtendedMultiplexor",
    "Attribute",
    "AttributeDefinition",
    "AttributeRelation",
    "AttributeValueType",
    "BitTiming",
    "ByteOrder",
    "ValueType",
    "ExtendedValueType",
    "Multiplexor",
    "EnvironmentVariableType",
    "AccessType",
    "AttributeObjectType",
    "AttributeKind",
]
