"""
In-memory model of a CAN network described by a DBC file.

Everything hangs off a single Network. The grammar engine creates entities
the first time any statement references them and never deletes them;
consumers should treat a parsed Network as read-only.

Usage:
    result = parse_text(text)
    network = result.network
    print(network.version, len(network.messages))
    for message in network.messages.values():
        print(hex(message.id), message.name, sorted(message.signals))
    # Export to JSON-like dict
    import json
    print(json.dumps(network.to_dict(), indent=2))
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields
from typing import Any


# --------------------------
# Enumerations
# --------------------------

class ByteOrder(enum.Enum):
    BIG_ENDIAN = "big_endian"  # Motorola, "@0"
    LITTLE_ENDIAN = "little_endian"  # Intel, "@1"


class ValueType(enum.Enum):
    SIGNED = "signed"
    UNSIGNED = "unsigned"


class ExtendedValueType(enum.Enum):
    INTEGER = 0
    FLOAT = 1
    DOUBLE = 2


class Multiplexor(enum.Enum):
    NONE = "none"
    SWITCH = "switch"
    MULTIPLEXED = "multiplexed"


class EnvironmentVariableType(enum.Enum):
    INTEGER = 0
    FLOAT = 1
    STRING = 2
    DATA = 3


class AccessType(enum.Enum):
    UNRESTRICTED = 0
    READ = 1
    WRITE = 2
    READ_WRITE = 3


class AttributeObjectType(enum.Enum):
    NETWORK = "network"
    NODE = "node"
    MESSAGE = "message"
    SIGNAL = "signal"
    ENVIRONMENT_VARIABLE = "environment_variable"
    NODE_ENV_VAR_RELATION = "node_env_var_relation"
    NODE_TX_MESSAGE_RELATION = "node_tx_message_relation"
    NODE_RX_SIGNAL_RELATION = "node_rx_signal_relation"


class AttributeKind(enum.Enum):
    INT = "INT"
    HEX = "HEX"
    FLOAT = "FLOAT"
    STRING = "STRING"
    ENUM = "ENUM"


# --------------------------
# Attributes
# --------------------------

@dataclass
class AttributeValueType:
    """
    Value type descriptor of an attribute definition.

    Attributes:
        kind: INT, HEX, FLOAT, STRING or ENUM
        minimum: lower bound for INT/HEX/FLOAT, None otherwise
        maximum: upper bound for INT/HEX/FLOAT, None otherwise
        enum_values: ordered labels for ENUM
    """
    kind: AttributeKind = AttributeKind.INT
    minimum: int | float | None = None
    maximum: int | float | None = None
    enum_values: list[str] = field(default_factory=list)

    def enum_label(self, index: int) -> str | None:
        """
        Label of an ENUM index, or None when the index is out of range.

        Example:
            >>> AttributeValueType(AttributeKind.ENUM, enum_values=["Low", "High"]).enum_label(1)
            'High'
        """
        if 0 <= index < len(self.enum_values):
            return self.enum_values[index]
        return None


@dataclass
class AttributeDefinition:
    name: str
    object_type: AttributeObjectType = AttributeObjectType.NETWORK
    value_type: AttributeValueType = field(default_factory=AttributeValueType)


@dataclass
class Attribute:
    """
    An attribute value attached to an object, or an attribute default.

    ``value_type`` says which kind ``value`` holds. ENUM values are the raw
    index (int) except on signals and defaults, where they hold the label text.
    """
    name: str
    object_type: AttributeObjectType = AttributeObjectType.NETWORK
    value_type: AttributeKind = AttributeKind.INT
    value: int | float | str = 0

    def _value_if(self, kind: AttributeKind) -> Any:
        return self.value if self.value_type is kind else None

    @property
    def integer_value(self) -> int | None:
        return self._value_if(AttributeKind.INT)

    @property
    def hex_value(self) -> int | None:
        return self._value_if(AttributeKind.HEX)

    @property
    def float_value(self) -> float | None:
        return self._value_if(AttributeKind.FLOAT)

    @property
    def string_value(self) -> str | None:
        if self.value_type is AttributeKind.STRING:
            return self.value
        if self.value_type is AttributeKind.ENUM and isinstance(self.value, str):
            return self.value
        return None

    @property
    def enum_value(self) -> int | None:
        if self.value_type is AttributeKind.ENUM and isinstance(self.value, int):
            return self.value
        return None


@dataclass
class AttributeRelation(Attribute):
    """
    Attribute value on a relation between a node and another object.

    Which key fields are set depends on ``object_type``:
    environment_variable_name for NODE_ENV_VAR_RELATION, message_id for
    NODE_TX_MESSAGE_RELATION, message_id and signal_name for
    NODE_RX_SIGNAL_RELATION.
    """
    node_name: str = ""
    environment_variable_name: str = ""
    message_id: int | None = None
    signal_name: str = ""


# --------------------------
# Network objects
# --------------------------

@dataclass
class BitTiming:
    baudrate: int = 0
    btr1: int = 0
    btr2: int = 0


@dataclass
class Node:
    name: str
    comment: str = ""
    attribute_values: dict[str, Attribute] = field(default_factory=dict)


@dataclass
class ValueTable:
    name: str
    value_descriptions: dict[int, str] = field(default_factory=dict)


@dataclass
class ExtendedMultiplexor:
    """
    Value ranges of a switch signal that select a multiplexed signal.

    Attributes:
        switch_name: name of the multiplexor switch signal
        value_ranges: inclusive (low, high) pairs; a pair written high-low is not reordered
    """
    switch_name: str
    value_ranges: set[tuple[int, int]] = field(default_factory=set)


@dataclass
class Signal:
    """
    A bit field of a CAN message carrying one physical quantity.

    physical value = raw * factor + offset; minimum and maximum are bounds
    of the physical value.

    Attributes:
        name: signal name, unique within its message
        multiplexor: NONE, SWITCH (the "M" signal) or MULTIPLEXED ("m<N>")
        multiplexer_switch_value: N of "m<N>", None unless MULTIPLEXED
        start_bit: start bit in the byte order's numbering
        bit_size: length in bits
        byte_order: BIG_ENDIAN ("@0") or LITTLE_ENDIAN ("@1")
        value_type: SIGNED ("-") or UNSIGNED ("+")
        extended_value_type: INTEGER unless changed by SIG_VALTYPE_
        receivers: receiving node names, never containing Vector__XXX
        signal_type: name of a signal type referenced via SGTYPE_, "" when none
    """
    name: str
    multiplexor: Multiplexor = Multiplexor.NONE
    multiplexer_switch_value: int | None = None
    start_bit: int = 0
    bit_size: int = 0
    byte_order: ByteOrder = ByteOrder.BIG_ENDIAN
    value_type: ValueType = ValueType.UNSIGNED
    extended_value_type: ExtendedValueType = ExtendedValueType.INTEGER
    factor: float = 1.0
    offset: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    unit: str = ""
    receivers: set[str] = field(default_factory=set)
    value_descriptions: dict[int, str] = field(default_factory=dict)
    extended_multiplexors: dict[str, ExtendedMultiplexor] = field(default_factory=dict)
    signal_type: str = ""
    comment: str = ""
    attribute_values: dict[str, Attribute] = field(default_factory=dict)


@dataclass
class SignalGroup:
    message_id: int
    name: str
    repetitions: int = 1
    signals: set[str] = field(default_factory=set)


@dataclass
class Message:
    """
    A CAN frame.

    Attributes:
        id: CAN identifier as written (bit 31 set for extended frames)
        name: message name
        size: payload length in bytes
        transmitter: sending node, "" for Vector__XXX
        transmitters: additional senders from BO_TX_BU_
        signals: signals by name
        signal_groups: signal groups by name
    """
    id: int
    name: str = ""
    size: int = 0
    transmitter: str = ""
    transmitters: set[str] = field(default_factory=set)
    signals: dict[str, Signal] = field(default_factory=dict)
    signal_groups: dict[str, SignalGroup] = field(default_factory=dict)
    comment: str = ""
    attribute_values: dict[str, Attribute] = field(default_factory=dict)


@dataclass
class EnvironmentVariable:
    """
    A network-level variable not bound to a message.

    When the access mask has its top bit set (DUMMY_NODE_VECTOR8xxx) the type
    is STRING whatever type was declared.
    """
    name: str
    type: EnvironmentVariableType = EnvironmentVariableType.INTEGER
    minimum: float = 0.0
    maximum: float = 0.0
    unit: str = ""
    initial_value: float = 0.0
    id: int = 0
    access_type: AccessType = AccessType.UNRESTRICTED
    access_nodes: set[str] = field(default_factory=set)
    data_size: int = 0
    value_descriptions: dict[int, str] = field(default_factory=dict)
    comment: str = ""
    attribute_values: dict[str, Attribute] = field(default_factory=dict)


@dataclass
class SignalType:
    name: str
    size: int = 0
    byte_order: ByteOrder = ByteOrder.BIG_ENDIAN
    value_type: ValueType = ValueType.UNSIGNED
    factor: float = 1.0
    offset: float = 0.0
    minimum: float = 0.0
    maximum: float = 0.0
    unit: str = ""
    default_value: float = 0.0
    value_table: str = ""


# --------------------------
# Network
# --------------------------

@dataclass
class Network:
    """
    Complete DBC network model.

    This class holds every object parsed from a DBC file: nodes, value
    tables, messages with their signals, environment variables, signal
    types, attribute definitions, defaults and values.
    """
    version: str = ""
    new_symbols: list[str] = field(default_factory=list)
    bit_timing: BitTiming = field(default_factory=BitTiming)
    nodes: dict[str, Node] = field(default_factory=dict)
    value_tables: dict[str, ValueTable] = field(default_factory=dict)
    messages: dict[int, Message] = field(default_factory=dict)
    environment_variables: dict[str, EnvironmentVariable] = field(default_factory=dict)
    signal_types: dict[str, SignalType] = field(default_factory=dict)
    attribute_definitions: dict[str, AttributeDefinition] = field(default_factory=dict)
    attribute_defaults: dict[str, Attribute] = field(default_factory=dict)
    attribute_values: dict[str, Attribute] = field(default_factory=dict)
    attribute_relation_values: dict[str, AttributeRelation] = field(default_factory=dict)
    comment: str = ""

    def to_dict(self) -> dict[str, Any]:
        """
        Export the network as a JSON-compatible dict.

        Enums become their names, sets become sorted lists and value range
        pairs become two-element lists.
        """
        def conv(obj: Any) -> Any:
            if isinstance(obj, enum.Enum):
                return obj.name
            if hasattr(obj, "__dataclass_fields__"):
                return {f.name: conv(getattr(obj, f.name)) for f in fields(obj)}
            if isinstance(obj, dict):
                return {k: conv(v) for k, v in obj.items()}
            if isinstance(obj, (set, frozenset)):
                return [conv(x) for x in sorted(obj)]
            if isinstance(obj, (list, tuple)):
                return [conv(x) for x in obj]
            return obj
        return conv(self)
