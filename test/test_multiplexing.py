"""
Tests for extended multiplexing (SG_MUL_VAL_).
"""

from dbcparser import parse_text


MUX_MESSAGE = ('BO_ 10 Mux: 8 A\n'
               ' SG_ Switch M : 0|8@1+ (1,0) [0|255] "" B\n'
               ' SG_ Value m5 : 8|8@1+ (1,0) [0|255] "" B\n')


def test_value_ranges()->None:
    result = parse_text(MUX_MESSAGE + 'SG_MUL_VAL_ 10 Value Switch 5-9;\n')
    assert result.diagnostics == []
    multiplexor = result.network.messages[10].signals["Value"].extended_multiplexors["Switch"]
    assert multiplexor.switch_name == "Switch"
    assert multiplexor.value_ranges == {(5, 9)}


def test_value_ranges_not_reordered()->None:
    """A range written high-low is kept as written."""
    result = parse_text(MUX_MESSAGE + 'SG_MUL_VAL_ 10 Value Switch 9-5;\n')
    multiplexor = result.network.messages[10].signals["Value"].extended_multiplexors["Switch"]
    assert multiplexor.value_ranges == {(9, 5)}


def test_several_ranges_and_switches()->None:
    text = MUX_MESSAGE + ('SG_MUL_VAL_ 10 Value Switch 1-1, 3-4,\n 8-8;\n'
                          'SG_MUL_VAL_ 10 Value Other 0-0;\n')
    signal = parse_text(text).network.messages[10].signals["Value"]
    assert signal.extended_multiplexors["Switch"].value_ranges == {(1, 1), (3, 4), (8, 8)}
    assert signal.extended_multiplexors["Other"].value_ranges == {(0, 0)}


def test_range_out_of_range()->None:
    result = parse_text(MUX_MESSAGE + 'SG_MUL_VAL_ 10 Value Switch 0-4294967296;\n')
    assert result.success
    assert result.error_count == 1
    assert result.network.messages[10].signals["Value"].extended_multiplexors == {}
