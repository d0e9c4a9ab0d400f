"""
DBC grammar engine.

Recognizes the statements of a DBC file one at a time, converts their
literals and hands the results to a NetworkBuilder. Every statement is
recovered independently: a problem is reported to the diagnostics sink, the
rest of the statement is skipped and parsing continues at the next line that
starts with a statement keyword.

Usage:
    result = parse_text(text)
    if not result.success:
        ...
    for diagnostic in result.diagnostics:
        print(diagnostic)
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterator, Protocol, Union

from .conversions import parse_value_range, to_double, to_int64, to_uint32, truncate_to_int64
from .dbc_lexer import NUMBER_TYPES, DbcLexer, Token, TokenType
from .dbc_model import (
    AttributeKind,
    AttributeObjectType,
    AttributeRelation,
    AttributeValueType,
    ByteOrder,
    EnvironmentVariableType,
    ExtendedValueType,
    Message,
    Multiplexor,
    Network,
    Signal,
    SignalType,
    ValueType,
)
from .diagnostics import Diagnostic, DiagnosticCollector, DiagnosticSink, Location, Severity
from .errors import (
    ConversionError,
    DbcParseError,
    DbcSyntaxError,
    LexicalError,
    ParseAbortedError,
)
from .network_builder import NetworkBuilder

logger = logging.getLogger(__name__)


class TextReader(Protocol):
    def read(self) -> str:
        ...


Source = Union[str, TextReader]

# Position of each statement kind in the canonical file layout, used when
# statement order is enforced.
SECTION_RANK: dict[TokenType, int] = {
    TokenType.VERSION: 0,
    TokenType.NS: 1,
    TokenType.BS: 2,
    TokenType.BU: 3,
    TokenType.VAL_TABLE: 4,
    TokenType.BO: 5,
    TokenType.BO_TX_BU: 6,
    TokenType.VAL: 7,
    TokenType.SIG_VALTYPE: 7,
    TokenType.EV: 7,
    TokenType.ENVVAR_DATA: 7,
    TokenType.SGTYPE: 8,
    TokenType.CM: 9,
    TokenType.BA_DEF: 10,
    TokenType.BA_DEF_REL: 10,
    TokenType.BA_DEF_DEF: 11,
    TokenType.BA_DEF_DEF_REL: 11,
    TokenType.BA: 12,
    TokenType.BA_REL: 12,
    TokenType.SG_MUL_VAL: 13,
    TokenType.SIG_GROUP: 14,
}

STATEMENT_KEYWORDS = frozenset(SECTION_RANK)

# Keywords of statements this parser does not interpret (BA_DEF_SGTYPE_,
# SGTYPE_VAL_, CAT_DEF_, ...); they are skipped with a warning.
_UNSUPPORTED_KEYWORD_RE = re.compile(r"[A-Z][A-Z0-9_]*_|FILTER")

# Reserved words that are still accepted where a name is expected
_NAME_TYPES = frozenset({
    TokenType.IDENTIFIER,
    TokenType.INT,
    TokenType.HEX,
    TokenType.FLOAT,
    TokenType.STRING,
    TokenType.ENUM,
})

_TERMINATORS = frozenset({TokenType.SEMICOLON, TokenType.EOL})

_ACCESS_TYPES = frozenset({
    TokenType.DUMMY_NODE_VECTOR0,
    TokenType.DUMMY_NODE_VECTOR1,
    TokenType.DUMMY_NODE_VECTOR2,
    TokenType.DUMMY_NODE_VECTOR3,
    TokenType.DUMMY_NODE_VECTOR8000,
    TokenType.DUMMY_NODE_VECTOR8001,
    TokenType.DUMMY_NODE_VECTOR8002,
    TokenType.DUMMY_NODE_VECTOR8003,
})

_LITERAL_NAMES = {
    TokenType.UNSIGNED_INTEGER: "unsigned integer",
    TokenType.SIGNED_INTEGER: "integer",
    TokenType.DOUBLE: "number",
    TokenType.MULTIPLEXOR_VALUE_RANGE: "value range",
    TokenType.CHAR_STRING: "string",
    TokenType.IDENTIFIER: "identifier",
    TokenType.EOL: "end of line",
    TokenType.END: "end of input",
}


def describe(token: Token) -> str:
    """
    Human-readable form of a token for diagnostics.

    Example:
        >>> describe(Token(TokenType.COLON, ":", 1, 4))
        "':'"
    """
    if token.type in (TokenType.EOL, TokenType.END):
        return _LITERAL_NAMES[token.type]
    if token.type is TokenType.CHAR_STRING:
        return f'string "{token.value}"'
    return f"'{token.value}'"


def location_of(token: Token) -> Location:
    """Location of the first character of ``token``."""
    return Location(token.line, token.column)


@dataclass
class ParseResult:
    """
    Outcome of one parse.

    Attributes:
        network: the network built so far; complete unless success is False
        diagnostics: every report in the order it was made
        success: False when parsing stopped early (fatal error or cancellation)
        cancelled: True when should_cancel() stopped the parse
    """
    network: Network
    diagnostics: list[Diagnostic] = field(default_factory=list)
    success: bool = True
    cancelled: bool = False

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity is Severity.WARNING)


class DbcParser:
    """
    Parser configuration; each ``parse()`` call runs independently.

    Args:
        strict_references: annotations on undeclared messages, signals, nodes,
            environment variables or attributes are errors instead of
            creating those objects
        strict_order: statements must follow the canonical section order
        sink: additional diagnostics sink receiving every report
        should_cancel: polled between statements; returning True stops parsing
        progress: called between statements with (offset, total) in characters
    """

    def __init__(self, strict_references: bool = False, strict_order: bool = False,
                 sink: DiagnosticSink | None = None,
                 should_cancel: Callable[[], bool] | None = None,
                 progress: Callable[[int, int], None] | None = None) -> None:
        self.strict_references = strict_references
        self.strict_order = strict_order
        self.sink = sink
        self.should_cancel = should_cancel
        self.progress = progress

    def parse(self, source: Source) -> ParseResult:
        text = source if isinstance(source, str) else source.read()
        collector = DiagnosticCollector(forward_to=self.sink)
        builder = NetworkBuilder(collector, strict_references=self.strict_references)
        run = _ParseRun(text, builder, collector, self)
        run.parse()
        result = ParseResult(
            network=builder.network,
            diagnostics=collector.diagnostics,
            success=not (run.aborted or run.cancelled),
            cancelled=run.cancelled,
        )
        logger.debug("Parsed %d messages with %d errors and %d warnings",
                     len(result.network.messages), result.error_count, result.warning_count)
        return result


def parse_text(text: Source, **options) -> ParseResult:
    """
    Parse DBC text with a one-off DbcParser.

    Example:
        >>> result = parse_text('VERSION "1.0"\\n')
        >>> result.network.version, result.success
        ('1.0', True)
    """
    return DbcParser(**options).parse(text)


class _ParseRun:
    """State of a single parse: token buffer, section order and recovery."""

    def __init__(self, text: str, builder: NetworkBuilder, sink: DiagnosticCollector,
                 options: DbcParser) -> None:
        self._text = text
        self._tokens: Iterator[Token] = DbcLexer(text).tokens()
        self._buffer: list[Token] = []
        self._ignore_eol = False
        self._consumed = 0
        self._last: Token | None = None
        self._rank = -1
        self._keyword: Token | None = None
        self._line_offsets = [0] + [m.end() for m in re.finditer("\n", text)]
        self.builder = builder
        self.sink = sink
        self.options = options
        self.aborted = False
        self.cancelled = False
        self._handlers: dict[TokenType, Callable[[], None]] = {
            TokenType.VERSION: self._version,
            TokenType.NS: self._new_symbols,
            TokenType.BS: self._bit_timing,
            TokenType.BU: self._nodes,
            TokenType.VAL_TABLE: self._value_table,
            TokenType.BO: self._message,
            TokenType.BO_TX_BU: self._message_transmitters,
            TokenType.VAL: self._value_descriptions,
            TokenType.SIG_VALTYPE: self._signal_extended_value_type,
            TokenType.EV: self._environment_variable,
            TokenType.ENVVAR_DATA: self._environment_variable_data,
            TokenType.SGTYPE: self._signal_type,
            TokenType.CM: self._comment,
            TokenType.BA_DEF: self._attribute_definition,
            TokenType.BA_DEF_REL: self._attribute_definition,
            TokenType.BA_DEF_DEF: self._attribute_default,
            TokenType.BA_DEF_DEF_REL: self._attribute_default,
            TokenType.BA: self._attribute_value,
            TokenType.BA_REL: self._attribute_relation_value,
            TokenType.SG_MUL_VAL: self._extended_multiplexing,
            TokenType.SIG_GROUP: self._signal_group,
        }

    # --------------------------
    # Main loop
    # --------------------------

    def parse(self) -> None:
        total = len(self._text)
        while not self.aborted:
            self._ignore_eol = False
            self._skip_eols()
            token = self._current
            if token.type is TokenType.END:
                break
            if self.options.should_cancel is not None and self.options.should_cancel():
                logger.debug("Parse cancelled at %s", location_of(token))
                self.cancelled = True
                break
            if self.options.progress is not None:
                self.options.progress(self._offset_of(token), total)
            start = self._consumed
            try:
                self._statement()
            except ParseAbortedError as exc:
                self.sink.report(exc.location, Severity.ERROR, exc.message)
                self.aborted = True
            except DbcParseError as exc:
                self.sink.report(exc.location, Severity.ERROR, exc.message)
                self._recover(start)

    def _statement(self) -> None:
        token = self._advance()
        if token.type is TokenType.INVALID:
            raise LexicalError(token.value, location_of(token))
        if token.type is TokenType.IDENTIFIER and token.line_start \
                and _UNSUPPORTED_KEYWORD_RE.fullmatch(token.value):
            self.sink.report(location_of(token), Severity.WARNING,
                             f"unsupported statement '{token.value}' skipped")
            self._recover(self._consumed - 1, end_is_fatal=False)
            return
        if token.type is TokenType.SG:
            raise DbcSyntaxError("signal definition outside of a message", location_of(token))
        handler = self._handlers.get(token.type)
        if handler is None:
            raise DbcSyntaxError(f"expected a statement keyword, got {describe(token)}",
                                 location_of(token))
        if self.options.strict_order:
            rank = SECTION_RANK[token.type]
            if rank < self._rank:
                raise DbcSyntaxError(f"{token.value} statement out of order", location_of(token))
            self._rank = rank
        self._keyword = token
        handler()

    def _recover(self, start: int, end_is_fatal: bool = True, in_message: bool = False) -> bool:
        """
        Discard tokens up to the next statement boundary.

        Returns False when the input ended first. Ending inside the failed
        statement, before its ";" or line break, aborts the parse unless
        ``end_is_fatal`` is False.
        """
        self._ignore_eol = False
        terminated = self._last is not None and self._last.type in _TERMINATORS
        if self._consumed == start:
            terminated = self._advance().type in _TERMINATORS
        skipped = 0
        while True:
            token = self._current
            if token.type is TokenType.END:
                if end_is_fatal and not terminated:
                    self.aborted = True
                    logger.debug("Input ended while recovering; parse aborted")
                return False
            if token.line_start and (self._is_boundary(token)
                                     or (in_message and token.type is TokenType.SG)):
                logger.debug("Resuming at %s after skipping %d tokens", location_of(token), skipped)
                return True
            terminated = terminated or token.type in _TERMINATORS
            self._advance()
            skipped += 1

    @staticmethod
    def _is_boundary(token: Token) -> bool:
        if token.type in STATEMENT_KEYWORDS:
            return True
        return token.type is TokenType.IDENTIFIER and bool(_UNSUPPORTED_KEYWORD_RE.fullmatch(token.value))

    def _offset_of(self, token: Token) -> int:
        return self._line_offsets[token.line - 1] + token.column - 1

    # --------------------------
    # Token buffer
    # --------------------------

    def _peek(self, offset: int = 0) -> Token:
        index = 0
        seen = -1
        while True:
            if index == len(self._buffer):
                self._buffer.append(next(self._tokens))
            token = self._buffer[index]
            if not (self._ignore_eol and token.type is TokenType.EOL):
                seen += 1
                if seen == offset:
                    return token
            if token.type is TokenType.END:
                return token
            index += 1

    @property
    def _current(self) -> Token:
        return self._peek()

    def _advance(self) -> Token:
        token = self._peek()
        if token.type is TokenType.END:
            return token
        while self._buffer.pop(0) is not token:
            pass
        self._consumed += 1
        self._last = token
        return token

    def _check(self, *types: TokenType) -> bool:
        return self._current.type in types

    def _match(self, token_type: TokenType) -> Token | None:
        if self._current.type is token_type:
            return self._advance()
        return None

    def _expect(self, token_type: TokenType) -> Token:
        if self._current.type is token_type:
            return self._advance()
        raise self._unexpected(_LITERAL_NAMES.get(token_type, f"'{token_type.value}'"))

    def _unexpected(self, expected: str) -> DbcParseError:
        token = self._current
        location = location_of(token)
        if token.type is TokenType.INVALID:
            return LexicalError(token.value, location)
        if token.type is TokenType.END:
            return ParseAbortedError(f"unexpected end of input, expected {expected}", location)
        return DbcSyntaxError(f"expected {expected}, got {describe(token)}", location)

    def _skip_eols(self) -> None:
        while self._current.type is TokenType.EOL:
            self._advance()

    def _at_line_end(self) -> bool:
        return self._current.type in (TokenType.EOL, TokenType.END)

    def _end_of_line(self) -> None:
        if self._current.type is TokenType.EOL:
            self._advance()
        elif self._current.type is not TokenType.END:
            raise self._unexpected("end of line")

    def _begin_statement(self) -> None:
        """Line breaks are insignificant until the closing ';'."""
        self._ignore_eol = True

    def _end_statement(self) -> None:
        self._expect(TokenType.SEMICOLON)
        self._ignore_eol = False

    # --------------------------
    # Literals
    # --------------------------

    def _name(self) -> str:
        if self._current.type in _NAME_TYPES:
            return self._advance().value
        raise self._unexpected("identifier")

    def _node_name(self) -> str | None:
        """Node name, or None for Vector__XXX."""
        if self._match(TokenType.VECTOR_XXX):
            return None
        return self._name()

    def _string(self) -> str:
        return self._expect(TokenType.CHAR_STRING).value

    def _unsigned(self) -> int:
        token = self._current
        if token.type is TokenType.SIGNED_INTEGER:
            raise ConversionError(f"negative value {token.value} where an unsigned value is required",
                                  location_of(token))
        token = self._expect(TokenType.UNSIGNED_INTEGER)
        value = to_uint32(token.value)
        if value is None:
            raise ConversionError(f"\"{token.value}\" does not fit a 32-bit unsigned integer",
                                  location_of(token))
        return value

    def _integer(self) -> int:
        """
        Consume a number as int64.

        DOUBLE literals are truncated toward zero with a warning.
        """
        token = self._current
        if token.type not in NUMBER_TYPES:
            raise self._unexpected("integer")
        self._advance()
        if token.type is TokenType.DOUBLE:
            value = truncate_to_int64(token.value)
            if value is not None:
                self.sink.report(location_of(token), Severity.WARNING,
                                 f"converted \"{token.value}\" to int due to data type restrictions")
        else:
            value = to_int64(token.value)
        if value is None:
            raise ConversionError(f"\"{token.value}\" does not fit a 64-bit integer",
                                  location_of(token))
        return value

    def _double(self) -> float:
        """Consume any numeric literal as a double."""
        token = self._current
        if token.type not in NUMBER_TYPES:
            raise self._unexpected("number")
        self._advance()
        value = to_double(token.value)
        if value is None:
            raise ConversionError(f"\"{token.value}\" does not fit a double", location_of(token))
        return value

    def _attribute_literal(self) -> Token:
        token = self._current
        if token.type in NUMBER_TYPES or token.type is TokenType.CHAR_STRING:
            return self._advance()
        raise self._unexpected("attribute value")

    def _description_pairs(self) -> dict[int, str]:
        descriptions: dict[int, str] = {}
        while self._current.type in NUMBER_TYPES:
            code = self._integer()
            descriptions[code] = self._string()
        return descriptions

    def _byte_order(self) -> ByteOrder:
        token = self._current
        if token.type is TokenType.UNSIGNED_INTEGER and token.value in ("0", "1"):
            self._advance()
            return ByteOrder.BIG_ENDIAN if token.value == "0" else ByteOrder.LITTLE_ENDIAN
        raise self._unexpected("byte order 0 or 1")

    def _value_type(self) -> ValueType:
        if self._match(TokenType.PLUS):
            return ValueType.UNSIGNED
        if self._match(TokenType.MINUS):
            return ValueType.SIGNED
        raise self._unexpected("'+' or '-'")

    def _scaling(self) -> tuple[float, float, float, float]:
        """``(factor,offset) [minimum|maximum]``"""
        self._expect(TokenType.OPEN_PARENTHESIS)
        factor = self._double()
        self._expect(TokenType.COMMA)
        offset = self._double()
        self._expect(TokenType.CLOSE_PARENTHESIS)
        minimum, maximum = self._bounds()
        return factor, offset, minimum, maximum

    def _bounds(self) -> tuple[float, float]:
        self._expect(TokenType.OPEN_BRACKET)
        minimum = self._double()
        self._expect(TokenType.VERTICAL_BAR)
        maximum = self._double()
        self._expect(TokenType.CLOSE_BRACKET)
        return minimum, maximum

    def _node_list(self, until: TokenType | None) -> set[str]:
        """Node names separated by commas and/or blanks, without Vector__XXX."""
        names: set[str] = set()
        while not (self._check(until) if until is not None else self._at_line_end()):
            if self._match(TokenType.COMMA):
                continue
            name = self._node_name()
            if name is not None:
                names.add(name)
        return names

    # --------------------------
    # Header statements
    # --------------------------

    def _version(self) -> None:
        version = self._string()
        self._end_of_line()
        self.builder.set_version(version)

    def _new_symbols(self) -> None:
        self._expect(TokenType.COLON)
        symbols: list[str] = []
        while True:
            self._skip_eols()
            token = self._current
            if token.type is TokenType.END or token.column == 1:
                break
            if token.type is TokenType.INVALID:
                raise LexicalError(token.value, location_of(token))
            symbols.append(self._advance().value)
        self.builder.set_new_symbols(symbols)

    def _bit_timing(self) -> None:
        self._expect(TokenType.COLON)
        if self._at_line_end():
            self._end_of_line()
            self.builder.set_bit_timing(0, 0, 0)
            return
        baudrate = self._unsigned()
        self._expect(TokenType.COLON)
        btr1 = self._unsigned()
        self._expect(TokenType.COMMA)
        btr2 = self._unsigned()
        self._end_of_line()
        self.builder.set_bit_timing(baudrate, btr1, btr2)

    def _nodes(self) -> None:
        self._expect(TokenType.COLON)
        names = []
        while not self._at_line_end():
            name = self._node_name()
            if name is not None:
                names.append(name)
        self._end_of_line()
        self.builder.add_nodes(names)

    def _value_table(self) -> None:
        self._begin_statement()
        name = self._name()
        descriptions = self._description_pairs()
        self._end_statement()
        self.builder.add_value_table(name, descriptions)

    # --------------------------
    # Messages and signals
    # --------------------------

    def _message(self) -> None:
        message_id = self._unsigned()
        name = self._name()
        self._expect(TokenType.COLON)
        size = self._unsigned()
        transmitter = self._node_name() or ""
        self._end_of_line()

        message = Message(message_id, name, size, transmitter)
        while True:
            self._skip_eols()
            if not self._check(TokenType.SG):
                break
            start = self._consumed
            try:
                signal = self._signal()
            except DbcParseError as exc:
                self.sink.report(exc.location, Severity.ERROR, exc.message)
                if isinstance(exc, ParseAbortedError):
                    self.aborted = True
                    break
                if not self._recover(start, in_message=True):
                    break
                continue
            message.signals[signal.name] = signal
        self.builder.add_message(message)

    def _signal(self) -> Signal:
        self._expect(TokenType.SG)
        signal = Signal(self._name())
        if not self._check(TokenType.COLON):
            signal.multiplexor, signal.multiplexer_switch_value = self._multiplexer_indicator()
        self._expect(TokenType.COLON)
        signal.start_bit = self._unsigned()
        self._expect(TokenType.VERTICAL_BAR)
        signal.bit_size = self._unsigned()
        self._expect(TokenType.AT)
        signal.byte_order = self._byte_order()
        signal.value_type = self._value_type()
        signal.factor, signal.offset, signal.minimum, signal.maximum = self._scaling()
        signal.unit = self._string()
        signal.receivers = self._node_list(until=None)
        self._end_of_line()
        return signal

    def _multiplexer_indicator(self) -> tuple[Multiplexor, int | None]:
        """``M`` for the switch, ``m<N>`` (optionally ``m<N>M``) for multiplexed signals."""
        token = self._current
        if token.type is TokenType.IDENTIFIER:
            if token.value == "M":
                self._advance()
                return Multiplexor.SWITCH, None
            m = re.fullmatch(r"m(\d+)M?", token.value)
            if m:
                value = to_uint32(m.group(1))
                if value is None:
                    raise ConversionError(f"multiplexer value {m.group(1)} out of range",
                                          location_of(token))
                self._advance()
                return Multiplexor.MULTIPLEXED, value
        raise self._unexpected("multiplexer indicator or ':'")

    def _message_transmitters(self) -> None:
        self._begin_statement()
        message_id = self._unsigned()
        self._expect(TokenType.COLON)
        location = location_of(self._current)
        transmitters = self._node_list(until=TokenType.SEMICOLON)
        self._end_statement()
        self.builder.set_message_transmitters(message_id, transmitters, location)

    def _signal_extended_value_type(self) -> None:
        self._begin_statement()
        location = location_of(self._current)
        message_id = self._unsigned()
        signal_name = self._name()
        self._expect(TokenType.COLON)
        token = self._current
        code = self._unsigned()
        if code not in (0, 1, 2):
            raise DbcSyntaxError(f"expected signal value type 0, 1 or 2, got {code}",
                                 location_of(token))
        self._end_statement()
        self.builder.set_signal_extended_value_type(message_id, signal_name,
                                                    ExtendedValueType(code), location)

    def _extended_multiplexing(self) -> None:
        self._begin_statement()
        location = location_of(self._current)
        message_id = self._unsigned()
        signal_name = self._name()
        switch_name = self._name()
        value_ranges: set[tuple[int, int]] = set()
        while True:
            token = self._expect(TokenType.MULTIPLEXOR_VALUE_RANGE)
            value_range = parse_value_range(token.value)
            if value_range is None:
                raise ConversionError(f"value range {token.value} out of range", location_of(token))
            value_ranges.add(value_range)
            if not self._match(TokenType.COMMA):
                break
        self._end_statement()
        self.builder.set_extended_multiplexor(message_id, signal_name, switch_name,
                                              value_ranges, location)

    def _signal_group(self) -> None:
        self._begin_statement()
        location = location_of(self._current)
        message_id = self._unsigned()
        name = self._name()
        repetitions = self._unsigned()
        self._expect(TokenType.COLON)
        signals: set[str] = set()
        while not self._check(TokenType.SEMICOLON):
            if self._match(TokenType.COMMA):
                continue
            signals.add(self._name())
        self._end_statement()
        self.builder.add_signal_group(message_id, name, repetitions, signals, location)

    # --------------------------
    # Value descriptions, environment variables, signal types
    # --------------------------

    def _value_descriptions(self) -> None:
        self._begin_statement()
        location = location_of(self._current)
        if self._check(TokenType.UNSIGNED_INTEGER):
            message_id = self._unsigned()
            signal_name = self._name()
            descriptions = self._description_pairs()
            self._end_statement()
            self.builder.set_signal_value_descriptions(message_id, signal_name, descriptions, location)
        else:
            variable_name = self._name()
            descriptions = self._description_pairs()
            self._end_statement()
            self.builder.set_environment_variable_value_descriptions(variable_name, descriptions,
                                                                     location)

    def _environment_variable(self) -> None:
        self._begin_statement()
        name = self._name()
        self._expect(TokenType.COLON)
        token = self._current
        code = self._unsigned()
        if code > 2:
            raise DbcSyntaxError(f"expected environment variable type 0, 1 or 2, got {code}",
                                 location_of(token))
        minimum, maximum = self._bounds()
        unit = self._string()
        initial_value = self._double()
        ev_id = self._unsigned()
        token = self._current
        if token.type not in _ACCESS_TYPES:
            raise self._unexpected("access type DUMMY_NODE_VECTOR<n>")
        self._advance()
        access_mask = int(token.value[len("DUMMY_NODE_VECTOR"):], 16)
        access_nodes = self._node_list(until=TokenType.SEMICOLON)
        self._end_statement()
        self.builder.add_environment_variable(name, EnvironmentVariableType(code), minimum, maximum,
                                              unit, initial_value, ev_id, access_mask, access_nodes)

    def _environment_variable_data(self) -> None:
        self._begin_statement()
        location = location_of(self._current)
        name = self._name()
        self._expect(TokenType.COLON)
        data_size = self._unsigned()
        self._end_statement()
        self.builder.set_environment_variable_data(name, data_size, location)

    def _signal_type(self) -> None:
        self._begin_statement()
        location = location_of(self._current)
        if self._check(TokenType.UNSIGNED_INTEGER):
            # reference form: SGTYPE_ <message id> <signal> : <type name>;
            message_id = self._unsigned()
            signal_name = self._name()
            self._expect(TokenType.COLON)
            type_name = self._name()
            self._end_statement()
            self.builder.set_signal_type_reference(message_id, signal_name, type_name, location)
            return

        signal_type = SignalType(self._name())
        self._expect(TokenType.COLON)
        signal_type.size = self._unsigned()
        if not (self._match(TokenType.AT) or self._match(TokenType.VERTICAL_BAR)):
            raise self._unexpected("'@'")
        signal_type.byte_order = self._byte_order()
        signal_type.value_type = self._value_type()
        (signal_type.factor, signal_type.offset,
         signal_type.minimum, signal_type.maximum) = self._scaling()
        signal_type.unit = self._string()
        signal_type.default_value = self._double()
        self._expect(TokenType.COMMA)
        if self._current.type in _NAME_TYPES:
            signal_type.value_table = self._name()
        self._end_statement()
        self.builder.add_signal_type(signal_type)

    # --------------------------
    # Comments
    # --------------------------

    def _comment(self) -> None:
        self._begin_statement()
        location = location_of(self._current)
        if self._match(TokenType.BU):
            node_name = self._name()
            text = self._string()
            self._end_statement()
            self.builder.set_node_comment(node_name, text, location)
        elif self._match(TokenType.BO):
            message_id = self._unsigned()
            text = self._string()
            self._end_statement()
            self.builder.set_message_comment(message_id, text, location)
        elif self._match(TokenType.SG):
            message_id = self._unsigned()
            signal_name = self._name()
            text = self._string()
            self._end_statement()
            self.builder.set_signal_comment(message_id, signal_name, text, location)
        elif self._match(TokenType.EV):
            variable_name = self._name()
            text = self._string()
            self._end_statement()
            self.builder.set_environment_variable_comment(variable_name, text, location)
        else:
            text = self._string()
            self._end_statement()
            self.builder.set_network_comment(text)

    # --------------------------
    # Attributes
    # --------------------------

    def _attribute_definition(self) -> None:
        """``BA_DEF_ [BU_|BO_|SG_|EV_] "name" <value type>;`` and its BA_DEF_REL_ form."""
        self._begin_statement()
        if self._keyword.type is TokenType.BA_DEF_REL:
            object_type = self._relation_object_type()
        else:
            object_type = self._object_type()
        name = self._string()
        value_type = self._attribute_value_type()
        self._end_statement()
        self.builder.add_attribute_definition(name, object_type, value_type)

    def _object_type(self) -> AttributeObjectType:
        if self._match(TokenType.BU):
            return AttributeObjectType.NODE
        if self._match(TokenType.BO):
            return AttributeObjectType.MESSAGE
        if self._match(TokenType.SG):
            return AttributeObjectType.SIGNAL
        if self._match(TokenType.EV):
            return AttributeObjectType.ENVIRONMENT_VARIABLE
        return AttributeObjectType.NETWORK

    def _relation_object_type(self) -> AttributeObjectType:
        if self._match(TokenType.BU_EV_REL):
            return AttributeObjectType.NODE_ENV_VAR_RELATION
        if self._match(TokenType.BU_BO_REL):
            return AttributeObjectType.NODE_TX_MESSAGE_RELATION
        if self._match(TokenType.BU_SG_REL):
            return AttributeObjectType.NODE_RX_SIGNAL_RELATION
        raise self._unexpected("relation type BU_EV_REL_, BU_BO_REL_ or BU_SG_REL_")

    def _attribute_value_type(self) -> AttributeValueType:
        if self._match(TokenType.INT):
            return AttributeValueType(AttributeKind.INT, self._integer(), self._integer())
        if self._match(TokenType.HEX):
            return AttributeValueType(AttributeKind.HEX, self._integer(), self._integer())
        if self._match(TokenType.FLOAT):
            return AttributeValueType(AttributeKind.FLOAT, self._double(), self._double())
        if self._match(TokenType.STRING):
            return AttributeValueType(AttributeKind.STRING)
        if self._match(TokenType.ENUM):
            labels: list[str] = []
            while self._check(TokenType.CHAR_STRING):
                labels.append(self._string())
                if not self._match(TokenType.COMMA):
                    break
            return AttributeValueType(AttributeKind.ENUM, enum_values=labels)
        raise self._unexpected("attribute value type INT, HEX, FLOAT, STRING or ENUM")

    def _attribute_default(self) -> None:
        self._begin_statement()
        name = self._string()
        literal = self._attribute_literal()
        self._end_statement()
        self.builder.set_attribute_default(name, literal, location_of(literal))

    def _attribute_value(self) -> None:
        self._begin_statement()
        name = self._string()
        if self._match(TokenType.BU):
            node_name = self._name()
            literal = self._attribute_literal()
            self._end_statement()
            self.builder.set_node_attribute(name, node_name, literal, location_of(literal))
        elif self._match(TokenType.BO):
            message_id = self._unsigned()
            literal = self._attribute_literal()
            self._end_statement()
            self.builder.set_message_attribute(name, message_id, literal, location_of(literal))
        elif self._match(TokenType.SG):
            message_id = self._unsigned()
            signal_name = self._name()
            literal = self._attribute_literal()
            self._end_statement()
            self.builder.set_signal_attribute(name, message_id, signal_name, literal,
                                              location_of(literal))
        elif self._match(TokenType.EV):
            variable_name = self._name()
            literal = self._attribute_literal()
            self._end_statement()
            self.builder.set_environment_variable_attribute(name, variable_name, literal,
                                                            location_of(literal))
        else:
            literal = self._attribute_literal()
            self._end_statement()
            self.builder.set_network_attribute(name, literal, location_of(literal))

    def _attribute_relation_value(self) -> None:
        self._begin_statement()
        relation = AttributeRelation(self._string())
        relation.object_type = self._relation_object_type()
        relation.node_name = self._name()
        if relation.object_type is AttributeObjectType.NODE_ENV_VAR_RELATION:
            relation.environment_variable_name = self._name()
        elif relation.object_type is AttributeObjectType.NODE_TX_MESSAGE_RELATION:
            relation.message_id = self._unsigned()
        else:
            self._expect(TokenType.SG)
            relation.message_id = self._unsigned()
            relation.signal_name = self._name()
        literal = self._attribute_literal()
        self._end_statement()
        self.builder.set_relation_attribute(relation, literal, location_of(literal))
