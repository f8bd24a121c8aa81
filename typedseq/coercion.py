from __future__ import annotations

from functools import lru_cache
import logging
import math
import re
from re import Pattern
from typing import Dict, Final, Optional, Tuple, Union


logger = logging.getLogger(__name__)


# Constants
PATTERN_CACHE_SIZE: Final[int] = 128
PATTERN_DELIMITERS: Final[str] = "/#~!%@;,|"

_INTEGER_PREFIX: Final[Pattern[str]] = re.compile(r"\s*([+-]?\d+)")
_MODIFIERS: Final[Dict[str, int]] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
    "u": re.UNICODE,
    "A": 0,  # anchors the expression
    "D": 0,  # rewrites `$` as `\Z`
    "S": 0,
    "X": 0,
    "J": 0,
}
_UNSUPPORTED_MODIFIERS: Final[str] = "U"
FLOAT_PRECISION: Final[int] = 14


# ========
# Integers
# ========


def to_integer(value: object) -> int:
    """Coerce `value` to `int` the way a loosely typed language does.

    Strings contribute their leading decimal prefix ("7.5" -> 7, "x" -> 0),
    floats are truncated toward zero and `None` counts as zero. Objects
    that are neither numbers nor strings are parsed through `to_string()`.
    """
    if value is None:
        return 0
    if isinstance(value, bytes):
        value = value.decode("latin-1")
    if isinstance(value, str):
        return _parse_integer_prefix(value)
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if hasattr(value, "__index__") or hasattr(value, "__int__"):
        try:
            return int(value)  # type: ignore[call-overload]
        except (ValueError, OverflowError):
            return 0
    return _parse_integer_prefix(to_string(value))


def _parse_integer_prefix(text: str) -> int:
    match = _INTEGER_PREFIX.match(text)
    if match is None:
        return 0
    return int(match.group(1))


# =======
# Strings
# =======


def to_string(value: object) -> str:
    if value is None or value is False:
        return ""
    if value is True:
        return "1"
    if isinstance(value, float):
        return format_float(value)
    if isinstance(value, bytes):
        return value.decode("utf-8", "replace")
    return str(value)


def format_float(value: float) -> str:
    """Format `value` with `FLOAT_PRECISION` significant digits.

    Integral values lose the fraction ("7"), large and tiny values use an
    exponent with a one-place mantissa at least ("1.0E+20", "1.5E-7") and
    infinities and NaN print as "INF", "-INF" and "NAN".
    """
    text = f"{value:.{FLOAT_PRECISION}G}"
    mantissa, separator, exponent = text.partition("E")
    if not separator:
        return text
    if "." not in mantissa:
        mantissa += ".0"
    return f"{mantissa}E{exponent[0]}{int(exponent[1:])}"


# ===========
# Truthiness
# ===========


_FALSY_STRINGS: Final[Tuple[Union[str, bytes], ...]] = ("", "0", b"", b"0")


def is_loose_falsy(value: object) -> bool:
    """Return True for values a loosely typed language treats as false.

    Those are `None`, `False`, numeric zero, the empty string, the string
    "0" and empty built-in containers. Any other object is truthy.
    """
    if value is None:
        return True
    if isinstance(value, (str, bytes)):
        return value in _FALSY_STRINGS
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return not value
    if isinstance(value, (bool, int, float, complex)):
        return value == 0
    return False


# ========
# Patterns
# ========


@lru_cache(maxsize=PATTERN_CACHE_SIZE)
def compile_pattern(pattern: Union[str, Pattern[str]]) -> Pattern[str]:
    """Compile a regular expression.

    Accepts already compiled patterns, PCRE-style delimited strings such
    as "/^a/i" and plain Python regular expressions. Delimited patterns
    take the modifiers `i m s x u A D`, and `S X J` are accepted without
    effect. The ungreedy modifier `U` is not supported.
    Can raise `re.error`.
    """
    if isinstance(pattern, re.Pattern):
        return pattern

    split = _split_delimited(pattern)
    if split is None:
        logger.debug("Compiling plain pattern %r", pattern)
        return re.compile(pattern)

    body, modifiers = split
    flags = 0
    for modifier in modifiers:
        if modifier in _UNSUPPORTED_MODIFIERS:
            raise re.error(f"unsupported modifier {modifier!r}", pattern)
        try:
            flags |= _MODIFIERS[modifier]
        except KeyError:
            raise re.error(f"unknown modifier {modifier!r}", pattern) from None
    if "D" in modifiers and "m" not in modifiers:
        body = _dollar_at_end_only(body)
    if "A" in modifiers:
        body = rf"\A(?:{body})"

    logger.debug("Compiling delimited pattern %r as %r", pattern, body)
    return re.compile(body, flags)


def _split_delimited(pattern: str) -> Optional[Tuple[str, str]]:
    """Return (body, modifiers) of a delimited pattern or `None`."""
    if len(pattern) < 2 or pattern[0] not in PATTERN_DELIMITERS:
        return None
    end = pattern.rfind(pattern[0])
    modifiers = pattern[end + 1:]
    if end == 0 or (modifiers and not modifiers.isalpha()):
        return None
    return pattern[1:end], modifiers


def _dollar_at_end_only(body: str) -> str:
    """Replace `$` anchors outside character classes with `\\Z`."""
    parts = []
    escaped = in_class = False
    for char in body:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif in_class:
            in_class = char != "]"
        elif char == "[":
            in_class = True
        elif char == "$":
            char = r"\Z"
        parts.append(char)
    return "".join(parts)
