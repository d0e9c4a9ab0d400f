"""
Statement handlers: the only code that mutates a Network during a parse.

The grammar engine recognizes a statement, converts its tokens and then calls
exactly one NetworkBuilder method. Handlers receive finished values, so a
statement either commits completely or (when a lookup or conversion fails)
not at all.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

from .conversions import to_double, to_int64, truncate_to_int64
from .dbc_lexer import Token, TokenType
from .dbc_model import (
    AccessType,
    Attribute,
    AttributeDefinition,
    AttributeKind,
    AttributeObjectType,
    AttributeRelation,
    AttributeValueType,
    BitTiming,
    EnvironmentVariable,
    EnvironmentVariableType,
    ExtendedMultiplexor,
    ExtendedValueType,
    Message,
    Network,
    Node,
    Signal,
    SignalGroup,
    SignalType,
    ValueTable,
)
from .diagnostics import DiagnosticSink, Location, Severity
from .errors import ConversionError, UnresolvedReferenceError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# access mask bit that turns an environment variable into a string variable
ACCESS_STRING_FLAG = 0x8000


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Result of a find-or-insert: the entity and whether this call created it."""
    entity: T
    created: bool


def find_or_insert(mapping: dict[Any, T], key: Any, factory: Callable[[], T]) -> Lookup[T]:
    """
    Return the entry for ``key``, inserting ``factory()`` when it is missing.

    Example:
        >>> nodes = {}
        >>> find_or_insert(nodes, "ECU1", lambda: Node("ECU1")).created
        True
        >>> find_or_insert(nodes, "ECU1", lambda: Node("ECU1")).created
        False
    """
    if key in mapping:
        return Lookup(mapping[key], False)
    entity = factory()
    mapping[key] = entity
    return Lookup(entity, True)


def find_or_error(mapping: dict[Any, T], key: Any, what: str, location: Location) -> T:
    """
    Return the entry for ``key`` without creating it.

    Raises:
        UnresolvedReferenceError: when ``key`` is missing; ``what`` names the
            object in the message, e.g. "message 100"
    """
    try:
        return mapping[key]
    except KeyError:
        raise UnresolvedReferenceError(f"{what} is not defined", location) from None


class NetworkBuilder:
    """
    Applies recognized statements to a Network.

    Args:
        sink: receives warnings raised while typing attribute values
        strict_references: report annotations on undeclared objects instead of
            creating those objects on the fly
    """

    def __init__(self, sink: DiagnosticSink, strict_references: bool = False) -> None:
        self.network = Network()
        self.sink = sink
        self.strict_references = strict_references
        # ids declared by a BO_ statement, as opposed to created by an annotation
        self._declared_messages: set[int] = set()

    # --------------------------
    # Lookups
    # --------------------------

    def _resolve(self, mapping: dict[Any, T], key: Any, factory: Callable[[], T],
                 what: str, location: Location) -> Lookup[T]:
        if self.strict_references:
            return Lookup(find_or_error(mapping, key, what, location), False)
        found = find_or_insert(mapping, key, factory)
        if found.created:
            logger.debug("Created %s on first reference at %s", what, location)
        return found

    def node(self, name: str, location: Location) -> Node:
        return self._resolve(self.network.nodes, name, lambda: Node(name),
                             f"node '{name}'", location).entity

    def message(self, message_id: int, location: Location) -> Message:
        """Message by id, created on first reference unless references are strict."""
        return self._resolve(self.network.messages, message_id, lambda: Message(message_id),
                             f"message {message_id}", location).entity

    def signal(self, message_id: int, signal_name: str, location: Location) -> Signal:
        """Signal of a message; both are resolved like ``message()``."""
        message = self.message(message_id, location)
        return self._resolve(message.signals, signal_name, lambda: Signal(signal_name),
                             f"signal '{signal_name}' of message {message_id}", location).entity

    def environment_variable(self, name: str, location: Location) -> EnvironmentVariable:
        return self._resolve(self.network.environment_variables, name,
                             lambda: EnvironmentVariable(name),
                             f"environment variable '{name}'", location).entity

    # --------------------------
    # Header statements
    # --------------------------

    def set_version(self, version: str) -> None:
        self.network.version = version

    def set_new_symbols(self, symbols: list[str]) -> None:
        self.network.new_symbols = list(symbols)

    def set_bit_timing(self, baudrate: int, btr1: int, btr2: int) -> None:
        self.network.bit_timing = BitTiming(baudrate, btr1, btr2)

    def add_nodes(self, names: Iterable[str]) -> None:
        for name in names:
            find_or_insert(self.network.nodes, name, lambda: Node(name))

    def add_value_table(self, name: str, descriptions: dict[int, str]) -> None:
        self.network.value_tables[name] = ValueTable(name, dict(descriptions))

    # --------------------------
    # Messages and signals
    # --------------------------

    def add_message(self, message: Message) -> None:
        """
        Store the message of a BO_ statement.

        A message first created by an annotation (CM_, BA_, VAL_, ...) is
        completed in place, keeping what those statements attached to it.
        A second BO_ with the same id replaces the earlier definition.
        """
        existing = self.network.messages.get(message.id)
        if message.id in self._declared_messages:
            logger.warning("Message %d (%s) redefined; the later definition replaces the earlier one",
                           message.id, message.name)
            self.network.messages[message.id] = message
        elif existing is not None:
            existing.name = message.name
            existing.size = message.size
            existing.transmitter = message.transmitter
            for signal in message.signals.values():
                self._merge_signal(existing, signal)
        else:
            self.network.messages[message.id] = message
        self._declared_messages.add(message.id)

    @staticmethod
    def _merge_signal(message: Message, signal: Signal) -> None:
        """Copy the SG_ layout onto a signal that annotations created earlier."""
        target = message.signals.get(signal.name)
        if target is None:
            message.signals[signal.name] = signal
            return
        target.multiplexor = signal.multiplexor
        target.multiplexer_switch_value = signal.multiplexer_switch_value
        target.start_bit = signal.start_bit
        target.bit_size = signal.bit_size
        target.byte_order = signal.byte_order
        target.value_type = signal.value_type
        target.factor = signal.factor
        target.offset = signal.offset
        target.minimum = signal.minimum
        target.maximum = signal.maximum
        target.unit = signal.unit
        target.receivers = set(signal.receivers)

    def set_message_transmitters(self, message_id: int, transmitters: set[str],
                                 location: Location) -> None:
        """BO_TX_BU_: replace the additional senders of a message."""
        self.message(message_id, location).transmitters = set(transmitters)

    def set_signal_extended_value_type(self, message_id: int, signal_name: str,
                                       value_type: ExtendedValueType, location: Location) -> None:
        self.signal(message_id, signal_name, location).extended_value_type = value_type

    def set_signal_value_descriptions(self, message_id: int, signal_name: str,
                                      descriptions: dict[int, str], location: Location) -> None:
        self.signal(message_id, signal_name, location).value_descriptions = dict(descriptions)

    def set_signal_type_reference(self, message_id: int, signal_name: str, type_name: str,
                                  location: Location) -> None:
        self.signal(message_id, signal_name, location).signal_type = type_name

    def add_signal_group(self, message_id: int, name: str, repetitions: int,
                         signals: set[str], location: Location) -> None:
        message = self.message(message_id, location)
        message.signal_groups[name] = SignalGroup(message_id, name, repetitions, set(signals))

    def set_extended_multiplexor(self, message_id: int, signal_name: str, switch_name: str,
                                 value_ranges: set[tuple[int, int]], location: Location) -> None:
        signal = self.signal(message_id, signal_name, location)
        signal.extended_multiplexors[switch_name] = ExtendedMultiplexor(switch_name, set(value_ranges))

    # --------------------------
    # Environment variables and signal types
    # --------------------------

    def add_environment_variable(self, name: str, var_type: EnvironmentVariableType,
                                 minimum: float, maximum: float, unit: str, initial_value: float,
                                 ev_id: int, access_mask: int, access_nodes: set[str]) -> None:
        """
        EV_: create or update an environment variable.

        Args:
            access_mask: value of DUMMY_NODE_VECTOR<hex>; bits 0-1 give the
                access type and bit 15 forces the STRING type
        """
        variable = find_or_insert(self.network.environment_variables, name,
                                  lambda: EnvironmentVariable(name)).entity
        variable.type = var_type
        if access_mask & ACCESS_STRING_FLAG:
            variable.type = EnvironmentVariableType.STRING
        variable.minimum = minimum
        variable.maximum = maximum
        variable.unit = unit
        variable.initial_value = initial_value
        variable.id = ev_id
        variable.access_type = AccessType(access_mask & 0x03)
        variable.access_nodes = set(access_nodes)

    def set_environment_variable_data(self, name: str, data_size: int, location: Location) -> None:
        """ENVVAR_DATA_: the variable becomes a DATA variable of ``data_size`` bytes."""
        variable = self.environment_variable(name, location)
        variable.type = EnvironmentVariableType.DATA
        variable.data_size = data_size

    def set_environment_variable_value_descriptions(self, name: str, descriptions: dict[int, str],
                                                    location: Location) -> None:
        self.environment_variable(name, location).value_descriptions = dict(descriptions)

    def add_signal_type(self, signal_type: SignalType) -> None:
        self.network.signal_types[signal_type.name] = signal_type

    # --------------------------
    # Comments
    # --------------------------

    def set_network_comment(self, text: str) -> None:
        self.network.comment = text

    def set_node_comment(self, node_name: str, text: str, location: Location) -> None:
        self.node(node_name, location).comment = text

    def set_message_comment(self, message_id: int, text: str, location: Location) -> None:
        self.message(message_id, location).comment = text

    def set_signal_comment(self, message_id: int, signal_name: str, text: str,
                           location: Location) -> None:
        self.signal(message_id, signal_name, location).comment = text

    def set_environment_variable_comment(self, name: str, text: str, location: Location) -> None:
        self.environment_variable(name, location).comment = text

    # --------------------------
    # Attributes
    # --------------------------

    def add_attribute_definition(self, name: str, object_type: AttributeObjectType,
                                 value_type: AttributeValueType) -> None:
        self.network.attribute_definitions[name] = AttributeDefinition(name, object_type, value_type)

    def set_attribute_default(self, name: str, literal: Token, location: Location) -> None:
        """
        BA_DEF_DEF_ and BA_DEF_DEF_REL_: store the default of an attribute.

        The value is typed by the definition; ENUM defaults keep their text.
        Without a definition the default is filed as a NETWORK attribute.
        """
        definition = self._definition(name, location)
        object_type = definition.object_type if definition else AttributeObjectType.NETWORK
        kind, value = self._typed_value(definition, literal, location, enum_as_label=False)
        self.network.attribute_defaults[name] = Attribute(name, object_type, kind, value)

    def set_network_attribute(self, name: str, literal: Token, location: Location) -> None:
        kind, value = self._typed_value(self._definition(name, location), literal, location)
        self.network.attribute_values[name] = Attribute(name, AttributeObjectType.NETWORK, kind, value)

    def set_node_attribute(self, name: str, node_name: str, literal: Token,
                           location: Location) -> None:
        kind, value = self._typed_value(self._definition(name, location), literal, location)
        node = self.node(node_name, location)
        node.attribute_values[name] = Attribute(name, AttributeObjectType.NODE, kind, value)

    def set_message_attribute(self, name: str, message_id: int, literal: Token,
                              location: Location) -> None:
        kind, value = self._typed_value(self._definition(name, location), literal, location)
        message = self.message(message_id, location)
        message.attribute_values[name] = Attribute(name, AttributeObjectType.MESSAGE, kind, value)

    def set_signal_attribute(self, name: str, message_id: int, signal_name: str, literal: Token,
                             location: Location) -> None:
        """BA_ on a signal; an ENUM index is stored as its label."""
        definition = self._definition(name, location)
        kind, value = self._typed_value(definition, literal, location, resolve_enum=True)
        signal = self.signal(message_id, signal_name, location)
        signal.attribute_values[name] = Attribute(name, AttributeObjectType.SIGNAL, kind, value)

    def set_environment_variable_attribute(self, name: str, variable_name: str, literal: Token,
                                           location: Location) -> None:
        kind, value = self._typed_value(self._definition(name, location), literal, location)
        variable = self.environment_variable(variable_name, location)
        variable.attribute_values[name] = Attribute(
            name, AttributeObjectType.ENVIRONMENT_VARIABLE, kind, value)

    def set_relation_attribute(self, relation: AttributeRelation, literal: Token,
                               location: Location) -> None:
        """Type ``literal`` and store ``relation`` under its attribute name."""
        kind, value = self._typed_value(self._definition(relation.name, location), literal, location)
        relation.value_type = kind
        relation.value = value
        self.network.attribute_relation_values[relation.name] = relation

    def _definition(self, name: str, location: Location) -> AttributeDefinition | None:
        definition = self.network.attribute_definitions.get(name)
        if definition is not None:
            return definition
        if self.strict_references:
            raise UnresolvedReferenceError(f"attribute '{name}' is not defined", location)
        self.sink.report(location, Severity.WARNING,
                         f"attribute '{name}' is not defined; value typed from its literal")
        return None

    def _typed_value(self, definition: AttributeDefinition | None, literal: Token,
                     location: Location, enum_as_label: bool = True,
                     resolve_enum: bool = False) -> tuple[AttributeKind, int | float | str]:
        """
        Convert an attribute literal according to the definition's value type.

        ENUM values: defaults keep their text (enum_as_label=False), signals
        resolve an index to its label (resolve_enum=True), everything else
        keeps the raw index.
        """
        if definition is None:
            if literal.type is TokenType.CHAR_STRING:
                return AttributeKind.STRING, literal.value
            if literal.type is TokenType.DOUBLE:
                return AttributeKind.FLOAT, self._double(literal, location)
            return AttributeKind.INT, self._integer(literal, location)

        kind = definition.value_type.kind
        if kind in (AttributeKind.INT, AttributeKind.HEX):
            return kind, self._integer(literal, location)
        if kind is AttributeKind.FLOAT:
            return kind, self._double(literal, location)
        if kind is AttributeKind.STRING:
            return kind, literal.value

        # ENUM
        if literal.type is TokenType.CHAR_STRING or not enum_as_label:
            return kind, literal.value
        index = self._integer(literal, location)
        if not resolve_enum:
            return kind, index
        label = definition.value_type.enum_label(index)
        if label is None:
            self.sink.report(location, Severity.WARNING,
                             f"enum index {index} out of range for attribute '{definition.name}'")
            return kind, literal.value
        return kind, label

    def _integer(self, literal: Token, location: Location) -> int:
        if literal.type is TokenType.DOUBLE:
            value = truncate_to_int64(literal.value)
            if value is not None:
                self.sink.report(location, Severity.WARNING,
                                 f"converted \"{literal.value}\" to int due to data type restrictions")
        elif literal.type in (TokenType.UNSIGNED_INTEGER, TokenType.SIGNED_INTEGER):
            value = to_int64(literal.value)
        else:
            raise ConversionError(f"expected an integer attribute value, got \"{literal.value}\"",
                                  location)
        if value is None:
            raise ConversionError(f"\"{literal.value}\" does not fit a 64-bit integer", location)
        return value

    def _double(self, literal: Token, location: Location) -> float:
        if literal.type is TokenType.CHAR_STRING:
            raise ConversionError(f"expected a numeric attribute value, got \"{literal.value}\"",
                                  location)
        value = to_double(literal.value)
        if value is None:
            raise ConversionError(f"\"{literal.value}\" does not fit a double", location)
        return value
