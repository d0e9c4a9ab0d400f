"""
Lexical scanner for DBC text.

Produces located, classified tokens on demand. Numbers are kept as raw text;
the grammar engine converts them once it knows the target type.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterator


class TokenType(enum.Enum):
    """All token kinds produced by the DBC lexer."""

    # Statement keywords
    VERSION = "VERSION"
    NS = "NS_"
    BS = "BS_"
    BU = "BU_"
    VAL_TABLE = "VAL_TABLE_"
    BO = "BO_"
    SG = "SG_"
    BO_TX_BU = "BO_TX_BU_"
    VAL = "VAL_"
    EV = "EV_"
    ENVVAR_DATA = "ENVVAR_DATA_"
    SGTYPE = "SGTYPE_"
    SIG_GROUP = "SIG_GROUP_"
    CM = "CM_"
    BA_DEF = "BA_DEF_"
    BA_DEF_REL = "BA_DEF_REL_"
    BA_DEF_DEF = "BA_DEF_DEF_"
    BA_DEF_DEF_REL = "BA_DEF_DEF_REL_"
    BA = "BA_"
    BA_REL = "BA_REL_"
    SIG_VALTYPE = "SIG_VALTYPE_"
    SG_MUL_VAL = "SG_MUL_VAL_"

    # Relation object types
    BU_EV_REL = "BU_EV_REL_"
    BU_BO_REL = "BU_BO_REL_"
    BU_SG_REL = "BU_SG_REL_"

    # Attribute value types
    INT = "INT"
    HEX = "HEX"
    FLOAT = "FLOAT"
    STRING = "STRING"
    ENUM = "ENUM"

    # "no node" sentinel and environment variable access rights
    VECTOR_XXX = "Vector__XXX"
    DUMMY_NODE_VECTOR0 = "DUMMY_NODE_VECTOR0"
    DUMMY_NODE_VECTOR1 = "DUMMY_NODE_VECTOR1"
    DUMMY_NODE_VECTOR2 = "DUMMY_NODE_VECTOR2"
    DUMMY_NODE_VECTOR3 = "DUMMY_NODE_VECTOR3"
    DUMMY_NODE_VECTOR8000 = "DUMMY_NODE_VECTOR8000"
    DUMMY_NODE_VECTOR8001 = "DUMMY_NODE_VECTOR8001"
    DUMMY_NODE_VECTOR8002 = "DUMMY_NODE_VECTOR8002"
    DUMMY_NODE_VECTOR8003 = "DUMMY_NODE_VECTOR8003"

    # Punctuation
    COLON = ":"
    SEMICOLON = ";"
    COMMA = ","
    VERTICAL_BAR = "|"
    AT = "@"
    OPEN_PARENTHESIS = "("
    CLOSE_PARENTHESIS = ")"
    OPEN_BRACKET = "["
    CLOSE_BRACKET = "]"
    PLUS = "+"
    MINUS = "-"
    ASSIGN = "="

    # Literals
    UNSIGNED_INTEGER = "UNSIGNED_INTEGER"
    SIGNED_INTEGER = "SIGNED_INTEGER"
    DOUBLE = "DOUBLE"
    MULTIPLEXOR_VALUE_RANGE = "MULTIPLEXOR_VALUE_RANGE"
    CHAR_STRING = "CHAR_STRING"
    IDENTIFIER = "IDENTIFIER"

    EOL = "EOL"
    INVALID = "INVALID"
    END = "END"


@dataclass(frozen=True)
class Token:
    """
    A lexical token with its source location.

    Attributes:
        type: token kind
        value: raw text; decoded content for CHAR_STRING; the error message for INVALID
        line: 1-based line of the first character
        column: 1-based column of the first character
        line_start: True when no other token precedes it on its line
    """
    type: TokenType
    value: str
    line: int
    column: int
    line_start: bool = False


_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_RANGE_RE = re.compile(r"[0-9]+-[0-9]+(?![0-9.eE])")
_NUMBER_RE = re.compile(r"-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_WHITESPACE = " \t\r\f\v\ufeff"
_DIGITS = "0123456789"

_NON_KEYWORDS = frozenset({
    TokenType.UNSIGNED_INTEGER,
    TokenType.SIGNED_INTEGER,
    TokenType.DOUBLE,
    TokenType.MULTIPLEXOR_VALUE_RANGE,
    TokenType.CHAR_STRING,
    TokenType.IDENTIFIER,
    TokenType.EOL,
    TokenType.INVALID,
    TokenType.END,
})

KEYWORDS: dict[str, TokenType] = {
    t.value: t
    for t in TokenType
    if t not in _NON_KEYWORDS and _IDENTIFIER_RE.fullmatch(t.value)
}

NUMBER_TYPES = frozenset({TokenType.UNSIGNED_INTEGER, TokenType.SIGNED_INTEGER, TokenType.DOUBLE})

_PUNCTUATION: dict[str, TokenType] = {
    ":": TokenType.COLON,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
    "|": TokenType.VERTICAL_BAR,
    "@": TokenType.AT,
    "(": TokenType.OPEN_PARENTHESIS,
    ")": TokenType.CLOSE_PARENTHESIS,
    "[": TokenType.OPEN_BRACKET,
    "]": TokenType.CLOSE_BRACKET,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "=": TokenType.ASSIGN,
}


class DbcLexer:
    """
    Scanner over one DBC text.

    ``tokens()`` is a generator, so the grammar engine pulls tokens only as it
    needs them. Lexical errors do not raise; they become INVALID tokens that
    the engine reports like any other unexpected token.
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_has_token = False
        self._last_type: TokenType | None = None

    def tokens(self) -> Iterator[Token]:
        text = self._text
        while self._pos < len(text):
            ch = text[self._pos]
            if ch in _WHITESPACE:
                self._advance(1)
                continue
            if ch == "\n":
                token = None
                if self._last_type not in (None, TokenType.EOL):
                    token = self._make(TokenType.EOL, "\n")
                self._pos += 1
                self._line += 1
                self._column = 1
                self._line_has_token = False
                if token is not None:
                    yield token
                continue
            yield self._scan_token(ch)
        yield Token(TokenType.END, "", self._line, self._column, not self._line_has_token)

    def _scan_token(self, ch: str) -> Token:
        text = self._text
        if ch == '"':
            return self._scan_string()

        if ch in _DIGITS or ch in "-.":
            m = _RANGE_RE.match(text, self._pos)
            if m:
                return self._emit(TokenType.MULTIPLEXOR_VALUE_RANGE, m.group(0))
            m = _NUMBER_RE.match(text, self._pos)
            if m:
                raw = m.group(0)
                if any(c in raw for c in ".eE"):
                    kind = TokenType.DOUBLE
                elif raw.startswith("-"):
                    kind = TokenType.SIGNED_INTEGER
                else:
                    kind = TokenType.UNSIGNED_INTEGER
                return self._emit(kind, raw)

        if ch in _PUNCTUATION:
            return self._emit(_PUNCTUATION[ch], ch)

        m = _IDENTIFIER_RE.match(text, self._pos)
        if m:
            word = m.group(0)
            return self._emit(KEYWORDS.get(word, TokenType.IDENTIFIER), word)

        token = self._make(TokenType.INVALID, f"invalid character {ch!r}")
        self._advance(1)
        return token

    def _scan_string(self) -> Token:
        """Scan a double-quoted string; ``\\"`` and ``\\\\`` are unescaped, line breaks kept."""
        text = self._text
        token_line, token_column = self._line, self._column
        line_start = not self._line_has_token
        self._line_has_token = True
        i = self._pos + 1
        chars: list[str] = []
        while i < len(text):
            c = text[i]
            if c == "\\" and i + 1 < len(text) and text[i + 1] in '"\\':
                chars.append(text[i + 1])
                i += 2
                continue
            if c == '"':
                break
            if c == "\n":
                self._line += 1
            chars.append(c)
            i += 1
        else:
            self._pos = i
            self._column = self._column_of(i)
            self._last_type = TokenType.INVALID
            return Token(TokenType.INVALID, "unterminated string literal",
                         token_line, token_column, line_start)

        self._pos = i + 1
        self._column = self._column_of(self._pos)
        self._last_type = TokenType.CHAR_STRING
        return Token(TokenType.CHAR_STRING, "".join(chars), token_line, token_column, line_start)

    def _column_of(self, pos: int) -> int:
        return pos - (self._text.rfind("\n", 0, pos) + 1) + 1

    def _make(self, kind: TokenType, value: str) -> Token:
        token = Token(kind, value, self._line, self._column, not self._line_has_token)
        if kind is not TokenType.EOL:
            self._line_has_token = True
        self._last_type = kind
        return token

    def _emit(self, kind: TokenType, value: str) -> Token:
        token = self._make(kind, value)
        self._advance(len(value))
        return token

    def _advance(self, count: int) -> None:
        self._pos += count
        self._column += count


def tokenize(text: str) -> list[Token]:
    """
    Tokenize a whole DBC text.

    Example:
        >>> [t.type.name for t in tokenize('BU_: ECU1')]
        ['BU', 'COLON', 'IDENTIFIER', 'END']
    """
    return list(DbcLexer(text).tokens())
