"""
Numeric conversions for DBC literals.

The lexer keeps numbers as raw text. These helpers turn that text into the
target type and return None when it does not fit, so the grammar engine can
report a statement-level diagnostic instead of failing the whole parse.
"""

from __future__ import annotations

import math

UINT32_MAX = 0xFFFFFFFF
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def to_uint32(token: str) -> int | None:
    """
    Convert an unsigned decimal token to an int in the uint32 range.

    Example:
        >>> to_uint32("2147483748")
        2147483748
        >>> to_uint32("4294967296") is None
        True
        >>> to_uint32("-1") is None
        True
    """
    try:
        value = int(token, 10)
    except ValueError:
        return None
    if value < 0 or value > UINT32_MAX:
        return None
    return value


def to_int64(token: str) -> int | None:
    """
    Convert a signed decimal token to an int in the int64 range.

    Example:
        >>> to_int64("-42")
        -42
        >>> to_int64("9223372036854775808") is None
        True
    """
    try:
        value = int(token, 10)
    except ValueError:
        return None
    if value < INT64_MIN or value > INT64_MAX:
        return None
    return value


def to_double(token: str) -> float | None:
    """
    Convert a token to an IEEE-754 double.

    Overflowing literals (e.g. "1e999") yield None rather than infinity.

    Example:
        >>> to_double("0.1")
        0.1
        >>> to_double("1e999") is None
        True
    """
    try:
        value = float(token)
    except ValueError:
        return None
    if math.isinf(value) or math.isnan(value):
        return None
    return value


def truncate_to_int64(token: str) -> int | None:
    """
    Convert a floating literal to int64 by truncating toward zero.

    Example:
        >>> truncate_to_int64("12.9")
        12
        >>> truncate_to_int64("-1e30") is None
        True
    """
    value = to_double(token)
    if value is None:
        return None
    result = int(value)
    if result < INT64_MIN or result > INT64_MAX:
        return None
    return result


def parse_value_range(token: str) -> tuple[int, int] | None:
    """
    Split a multiplexor value range literal "<low>-<high>" into a pair.

    The order is kept exactly as written.

    Example:
        >>> parse_value_range("5-9")
        (5, 9)
        >>> parse_value_range("9-5")
        (9, 5)
    """
    low_text, sep, high_text = token.partition("-")
    if not sep:
        return None
    low = to_uint32(low_text)
    high = to_uint32(high_text)
    if low is None or high is None:
        return None
    return low, high
