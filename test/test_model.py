"""
Tests for the network model helpers and its dictionary export.
"""

import json
from pathlib import Path

from dbcparser import (
    Attribute,
    AttributeKind,
    AttributeValueType,
    DbcParser,
    Network,
)
from dbcparser.network_builder import find_or_insert

DEMO_DBC = Path(__file__).parent / "demo.dbc"


def test_to_dict_is_json_serializable()->None:
    """The demo network exports to plain JSON types."""
    network = DbcParser().parse(DEMO_DBC.read_text(encoding="utf-8")).network
    data = network.to_dict()

    encoded = json.dumps(data)
    assert "EngineSpeed" in encoded

    signal = data["messages"][100]["signals"]["EngineSpeed"]
    assert signal["byte_order"] == "LITTLE_ENDIAN"
    assert signal["receivers"] == ["Dashboard", "Gateway"]
    muxed = data["messages"][2147483848]["signals"]["Speed"]
    assert muxed["extended_multiplexors"]["Mode"]["value_ranges"] == [[1, 1], [5, 9]]


def test_empty_network_to_dict()->None:
    data = Network().to_dict()
    assert data["version"] == ""
    assert data["messages"] == {}
    assert data["bit_timing"] == {"baudrate": 0, "btr1": 0, "btr2": 0}


def test_attribute_accessors_match_kind()->None:
    hex_attribute = Attribute("Id", value_type=AttributeKind.HEX, value=0x1F)
    assert hex_attribute.hex_value == 0x1F
    assert hex_attribute.integer_value is None
    assert hex_attribute.string_value is None

    enum_attribute = Attribute("Mode", value_type=AttributeKind.ENUM, value=2)
    assert enum_attribute.enum_value == 2
    assert enum_attribute.string_value is None


def test_enum_label_lookup()->None:
    value_type = AttributeValueType(AttributeKind.ENUM, enum_values=["Low", "Medium", "High"])
    assert value_type.enum_label(1) == "Medium"
    assert value_type.enum_label(3) is None
    assert value_type.enum_label(-1) is None


def test_find_or_insert_reports_creation()->None:
    table = {}
    first = find_or_insert(table, "k", lambda: [1])
    second = find_or_insert(table, "k", lambda: [2])
    assert first.created
    assert not second.created
    assert second.entity is first.entity
    assert table == {"k": [1]}
