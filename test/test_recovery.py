"""
Tests for error reporting, statement-level recovery and cancellation.
"""

from dbcparser import DbcParser, Severity, parse_text


VALID_SIGNAL = ' SG_ S : 0|8@1+ (1,0) [0|255] "" B\n'


def test_malformed_message_then_valid_message()->None:
    """One diagnostic for the broken BO_, the next BO_ is parsed normally."""
    text = ('BO_ 1 Broken 8 A\n' + VALID_SIGNAL +
            'BO_ 2 Good: 8 A\n' + VALID_SIGNAL)
    result = parse_text(text)
    assert result.success
    assert len(result.diagnostics) == 1
    diagnostic = result.diagnostics[0]
    assert diagnostic.severity is Severity.ERROR
    assert diagnostic.location.line == 1
    assert list(result.network.messages) == [2]
    assert result.network.messages[2].signals["S"].bit_size == 8


def test_missing_semicolon_recovers_at_next_statement()->None:
    text = 'CM_ "first"\nCM_ BU_ A "second";\n'
    result = parse_text(text)
    assert result.error_count == 1
    assert result.diagnostics[0].location.line == 2
    assert result.network.nodes["A"].comment == "second"


def test_lexical_error_is_reported()->None:
    result = parse_text('BU_: A # B\nBO_ 1 M: 8 A\n')
    assert result.error_count == 1
    assert "invalid character" in result.diagnostics[0].message
    assert result.diagnostics[0].location.column == 8
    assert 1 in result.network.messages


def test_unterminated_string_aborts()->None:
    result = parse_text('BU_: A\nCM_ "never closed;\nBO_ 1 M: 8 A\n')
    assert not result.success
    assert result.error_count == 1
    assert set(result.network.nodes) == {"A"}


def test_input_ending_inside_statement_is_fatal()->None:
    """The network parsed so far is still returned."""
    result = parse_text('BU_: A\nBO_ 1 M: 8 A\n SG_ S : 0|8@1+ (1,')
    assert not result.success
    assert result.error_count == 1
    assert "end of input" in result.diagnostics[0].message
    assert 1 in result.network.messages
    assert result.network.messages[1].signals == {}


def test_bad_signal_keeps_message_and_other_signals()->None:
    text = ('BO_ 1 M: 8 A\n'
            ' SG_ Bad : 0|8@1+ (1,0 [0|255] "" B\n' +
            VALID_SIGNAL)
    result = parse_text(text)
    assert result.success
    assert result.error_count == 1
    assert list(result.network.messages[1].signals) == ["S"]


def test_unsigned_overflow_is_a_conversion_error()->None:
    result = parse_text('BO_ 4294967296 M: 8 A\nBO_ 2 N: 8 A\n')
    assert result.error_count == 1
    assert "32-bit" in result.diagnostics[0].message
    assert list(result.network.messages) == [2]


def test_negative_where_unsigned_required()->None:
    result = parse_text('BO_ -1 M: 8 A\n')
    assert result.error_count == 1
    assert "negative" in result.diagnostics[0].message
    assert result.network.messages == {}


def test_unsupported_statement_is_skipped_with_warning()->None:
    text = ('BA_DEF_SGTYPE_ "Attr" INT 0 10;\n'
            'SGTYPE_VAL_ T 0 "zero" ;\n'
            'BU_: A\n')
    result = parse_text(text)
    assert result.success
    assert result.error_count == 0
    assert result.warning_count == 2
    assert set(result.network.nodes) == {"A"}


def test_signal_outside_message()->None:
    result = parse_text('BU_: A\n' + VALID_SIGNAL + 'BU_: B\n')
    assert result.error_count == 1
    assert set(result.network.nodes) == {"A", "B"}


def test_annotation_creates_missing_objects()->None:
    """Lenient references create the message and signal being annotated."""
    result = parse_text('CM_ SG_ 7 Ghost "boo";\n')
    assert result.diagnostics == []
    assert result.network.messages[7].signals["Ghost"].comment == "boo"


def test_strict_references_discard_statement()->None:
    result = parse_text('BU_: A\nCM_ SG_ 7 Ghost "boo";\nCM_ BU_ A "ok";\n',
                        strict_references=True)
    assert result.success
    assert result.error_count == 1
    assert "message 7" in result.diagnostics[0].message
    assert result.network.messages == {}
    assert result.network.nodes["A"].comment == "ok"


def test_statement_order_is_relaxed_by_default()->None:
    text = 'CM_ "net";\nBU_: A\n'
    assert parse_text(text).diagnostics == []


def test_strict_order_rejects_out_of_order_statement()->None:
    text = 'CM_ "net";\nBU_: A\nBA_DEF_ "X" INT 0 1;\n'
    result = parse_text(text, strict_order=True)
    assert result.error_count == 1
    assert "out of order" in result.diagnostics[0].message
    assert result.network.nodes == {}
    assert "X" in result.network.attribute_definitions


def test_cancellation_between_statements()->None:
    calls = []

    def should_cancel() -> bool:
        calls.append(1)
        return len(calls) > 2

    result = DbcParser(should_cancel=should_cancel).parse(
        'VERSION "1"\nBU_: A\nBO_ 1 M: 8 A\nBO_ 2 N: 8 A\n')
    assert result.cancelled
    assert not result.success
    assert result.network.version == "1"
    assert set(result.network.nodes) == {"A"}
    assert result.network.messages == {}


def test_errors_never_raise_out_of_parse()->None:
    result = parse_text(';;; ]] "x" 12\n@@@\n')
    assert result.error_count >= 1


def test_error_in_terminated_last_statement_is_not_fatal()->None:
    """The broken last line still ends with a line break, so the parse completes."""
    result = parse_text('BU_: A\nBO_ 1 Broken 8 A\n')
    assert result.success
    assert result.error_count == 1
    assert "expected ':'" in result.diagnostics[0].message
    assert result.network.messages == {}


def test_error_in_unterminated_last_statement_is_fatal()->None:
    result = parse_text('BU_: A\nBO_ 1 Broken 8 A')
    assert not result.success
    assert result.error_count == 1
    assert set(result.network.nodes) == {"A"}


def test_non_ascii_digits_are_lexical_errors()->None:
    """Arabic-Indic digits are not read as a message id."""
    result = parse_text('BO_ ١٠٠ M: 8 A\n')
    assert result.error_count == 1
    assert "invalid character" in result.diagnostics[0].message
    assert result.network.messages == {}
