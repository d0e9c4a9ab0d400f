"""
Tests for the DBC lexer.
"""

from dbcparser.dbc_lexer import DbcLexer, Token, TokenType, tokenize


def types_of(text: str) -> list[TokenType]:
    return [t.type for t in tokenize(text)]


def test_signal_line_tokens()->None:
    """A complete SG_ line splits into the expected token kinds."""
    tokens = tokenize(' SG_ S : 0|8@1- (0.5,-40) [-40|87.5] "degC" A,B')
    assert [t.type for t in tokens] == [
        TokenType.SG, TokenType.IDENTIFIER, TokenType.COLON,
        TokenType.UNSIGNED_INTEGER, TokenType.VERTICAL_BAR, TokenType.UNSIGNED_INTEGER,
        TokenType.AT, TokenType.UNSIGNED_INTEGER, TokenType.MINUS,
        TokenType.OPEN_PARENTHESIS, TokenType.DOUBLE, TokenType.COMMA,
        TokenType.SIGNED_INTEGER, TokenType.CLOSE_PARENTHESIS,
        TokenType.OPEN_BRACKET, TokenType.SIGNED_INTEGER, TokenType.VERTICAL_BAR,
        TokenType.DOUBLE, TokenType.CLOSE_BRACKET, TokenType.CHAR_STRING,
        TokenType.IDENTIFIER, TokenType.COMMA, TokenType.IDENTIFIER, TokenType.END,
    ]
    assert tokens[10].value == "0.5"
    assert tokens[12].value == "-40"


def test_keywords_and_identifiers()->None:
    """Reserved words are classified, anything else is an identifier."""
    assert types_of("BO_ BO_TX_BU_ Vector__XXX DUMMY_NODE_VECTOR8003 BO_X") == [
        TokenType.BO, TokenType.BO_TX_BU, TokenType.VECTOR_XXX,
        TokenType.DUMMY_NODE_VECTOR8003, TokenType.IDENTIFIER, TokenType.END,
    ]


def test_keywords_are_case_sensitive()->None:
    assert types_of("bo_ Int") == [TokenType.IDENTIFIER, TokenType.IDENTIFIER, TokenType.END]


def test_numbers()->None:
    """Exponents and fractions make a DOUBLE, a leading minus a SIGNED_INTEGER."""
    assert types_of("12 -3 1.5 3.4E+038 -1e-5") == [
        TokenType.UNSIGNED_INTEGER, TokenType.SIGNED_INTEGER, TokenType.DOUBLE,
        TokenType.DOUBLE, TokenType.DOUBLE, TokenType.END,
    ]


def test_multiplexor_value_range()->None:
    tokens = tokenize("5-9, 9-5")
    assert [t.type for t in tokens] == [
        TokenType.MULTIPLEXOR_VALUE_RANGE, TokenType.COMMA,
        TokenType.MULTIPLEXOR_VALUE_RANGE, TokenType.END,
    ]
    assert tokens[2].value == "9-5"


def test_string_escapes_and_line_breaks()->None:
    """Escaped quotes are decoded and a string may span lines."""
    tokens = tokenize('CM_ "say \\"hi\\"\nthere";\nBU_:')
    assert tokens[1] == Token(TokenType.CHAR_STRING, 'say "hi"\nthere', 1, 5, False)
    assert tokens[2].type is TokenType.SEMICOLON
    assert tokens[2].line == 2
    assert tokens[4].type is TokenType.BU
    assert tokens[4].line == 3


def test_line_breaks_collapse()->None:
    """Runs of blank lines give a single EOL, and none before the first token."""
    assert types_of("\n\nVERSION \"\"\n\n\r\n\nBU_:") == [
        TokenType.VERSION, TokenType.CHAR_STRING, TokenType.EOL,
        TokenType.BU, TokenType.COLON, TokenType.END,
    ]


def test_locations_and_line_start()->None:
    tokens = tokenize('BU_: A\n SG_ x')
    sg = tokens[4]
    assert sg.type is TokenType.SG
    assert (sg.line, sg.column) == (2, 2)
    assert sg.line_start
    assert not tokens[5].line_start


def test_invalid_tokens_do_not_raise()->None:
    """Lexical errors come back as INVALID tokens carrying the message."""
    tokens = tokenize('BU_ # "open')
    assert tokens[1].type is TokenType.INVALID
    assert "invalid character" in tokens[1].value
    assert tokens[2].type is TokenType.INVALID
    assert tokens[2].value == "unterminated string literal"
    assert tokens[-1].type is TokenType.END


def test_tokens_on_demand()->None:
    """The lexer is a generator; it only scans as far as it is pulled."""
    stream = DbcLexer("VERSION \"1\"\nBU_: A B C").tokens()
    assert next(stream).type is TokenType.VERSION
    assert next(stream).value == "1"


def test_only_ascii_digits_form_numbers()->None:
    tokens = tokenize("١٢ -٣")
    assert [t.type for t in tokens] == [
        TokenType.INVALID, TokenType.INVALID, TokenType.MINUS, TokenType.INVALID, TokenType.END,
    ]
