"""Built-in type casters: raw input strings to typed field values.

Conversion is a closed dispatch over ``Kind``.  A field's declared type is
first rendered to a token with ``type_name`` and the token is then handed to
``convert`` together with the raw string.

Exports
-------
Kind
    Enumeration of the supported type tokens.

Float32
    Marker type for fields that hold a single-precision float.

convert
    ``convert(type_name, value)`` → typed value, or ``ConversionError``.

type_name
    Render a declared field type to its token.

split
    Split a string on newlines and commas, returning the non-blank pieces.
"""

from __future__ import annotations

import math
import struct
import types
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, List, NewType, Union, get_args, get_origin

import regex

from .errors import ConversionError, UnsupportedTypeError

Float32 = NewType("Float32", float)

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_INT64_DIGITS = len(str(_INT64_MAX))


class Kind(str, Enum):
    """Supported type tokens."""

    BOOL = "bool"
    FLOAT32 = "float32"
    FLOAT64 = "float"
    INT = "int"
    STRING = "str"
    DURATION = "datetime.timedelta"
    TIMESTAMP = "datetime.datetime"
    STRING_LIST = "list[str]"
    BYTES = "bytes"


# ─────────────────────────────────────────────────────────────────────────────
# Type tokens
# ─────────────────────────────────────────────────────────────────────────────

_TYPE_NAMES: dict[Any, Kind] = {
    bool: Kind.BOOL,
    Float32: Kind.FLOAT32,
    float: Kind.FLOAT64,
    int: Kind.INT,
    str: Kind.STRING,
    timedelta: Kind.DURATION,
    datetime: Kind.TIMESTAMP,
    bytes: Kind.BYTES,
}


def type_name(tp: Any) -> str:
    """Return the type token for a declared field type.

    ``Optional[T]`` is unwrapped to ``T``.  Types without a conversion rule
    are rendered by name so that ``convert`` can report them::

        type_name(int)                    # "int"
        type_name(list[str])              # "list[str]"
        type_name(Optional[timedelta])    # "datetime.timedelta"
        type_name(decimal.Decimal)        # "decimal.Decimal"
    """
    origin = get_origin(tp)

    if origin is Union or origin is types.UnionType:
        args = get_args(tp)
        rest = [a for a in args if a is not type(None)]
        if len(rest) == 1 and len(args) == 2:
            return type_name(rest[0])

    if origin is list and get_args(tp) == (str,):
        return Kind.STRING_LIST.value

    try:
        return _TYPE_NAMES[tp].value
    except (KeyError, TypeError):
        pass

    if origin is None and isinstance(tp, type):
        if tp.__module__ == "builtins":
            return tp.__qualname__
        return f"{tp.__module__}.{tp.__qualname__}"

    return repr(tp)


# ─────────────────────────────────────────────────────────────────────────────
# Scalars
# ─────────────────────────────────────────────────────────────────────────────

_BOOLS = {
    "1": True, "t": True, "T": True, "TRUE": True, "true": True, "True": True,
    "0": False, "f": False, "F": False, "FALSE": False, "false": False, "False": False,
}

_FLOAT_RE = regex.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    regex.IGNORECASE,
)
_HEX_FLOAT_RE = regex.compile(
    r"[+-]?0x(?:[0-9a-f]+\.?[0-9a-f]*|\.[0-9a-f]+)p[+-]?[0-9]+",
    regex.IGNORECASE,
)
_INT_RE = regex.compile(r"[+-]?[0-9]+")


def parse_bool(value: str) -> bool:
    try:
        return _BOOLS[value]
    except KeyError:
        raise ConversionError(Kind.BOOL.value, value, "invalid syntax") from None


def _parse_float(kind: Kind, value: str) -> float:
    if _HEX_FLOAT_RE.fullmatch(value):
        try:
            return float.fromhex(value)
        except OverflowError:
            raise ConversionError(kind.value, value, "value out of range") from None
    if not _FLOAT_RE.fullmatch(value):
        raise ConversionError(kind.value, value, "invalid syntax")
    result = float(value)
    # float() saturates to inf on overflow instead of failing
    if math.isinf(result) and "inf" not in value.lower():
        raise ConversionError(kind.value, value, "value out of range")
    return result


def parse_float64(value: str) -> float:
    return _parse_float(Kind.FLOAT64, value)


def parse_float32(value: str) -> float:
    """Parse *value* and round it to the nearest single-precision float."""
    result = _parse_float(Kind.FLOAT32, value)
    try:
        return struct.unpack("f", struct.pack("f", result))[0]
    except OverflowError:
        raise ConversionError(Kind.FLOAT32.value, value, "value out of range") from None


def parse_int(value: str) -> int:
    if not _INT_RE.fullmatch(value):
        raise ConversionError(Kind.INT.value, value, "invalid syntax")
    digits = value.lstrip("+-").lstrip("0")
    # more digits than int64 holds; also keeps int() under its digit limit
    if len(digits) > _INT64_DIGITS:
        raise ConversionError(Kind.INT.value, value, "value out of range")
    result = int(digits or "0")
    if value[0] == "-":
        result = -result
    if not _INT64_MIN <= result <= _INT64_MAX:
        raise ConversionError(Kind.INT.value, value, "value out of range")
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Durations
# ─────────────────────────────────────────────────────────────────────────────

_UNIT_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # U+00B5 micro sign
    "μs": 1_000,  # U+03BC greek small letter mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_DURATION_TERM = regex.compile(r"(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?(?P<unit>[^0-9.]*)")


def parse_duration(value: str) -> timedelta:
    """Parse a duration such as ``"1m9s"``, ``"1.5h"`` or ``"-300ms"``.

    A duration is an optionally signed sequence of decimal numbers, each with
    an optional fraction and a mandatory unit.  Valid units are ``ns``,
    ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``.  The bare string
    ``"0"`` is also accepted.

    The total must fit a signed 64-bit count of nanoseconds.  Anything below
    microsecond resolution is truncated toward zero.
    """
    kind = Kind.DURATION.value
    s = value
    negative = False
    if s[:1] in ("+", "-"):
        negative = s[0] == "-"
        s = s[1:]

    if s == "0":
        return timedelta(0)
    if not s:
        raise ConversionError(kind, value, "invalid duration")

    total = 0
    pos = 0
    while pos < len(s):
        match = _DURATION_TERM.match(s, pos)
        whole = match.group("whole")
        frac = match.group("frac") or ""
        unit = match.group("unit")

        if not whole and not frac:
            raise ConversionError(kind, value, "invalid duration")
        if not unit:
            raise ConversionError(kind, value, "missing unit in duration")
        if unit not in _UNIT_NS:
            raise ConversionError(kind, value, f'unknown unit "{unit}" in duration')

        whole = whole.lstrip("0")
        if len(whole) > _INT64_DIGITS:
            raise ConversionError(kind, value, "invalid duration")
        # further digits are worth less than a nanosecond in every unit
        frac = frac[:_INT64_DIGITS]

        scale = _UNIT_NS[unit]
        total += int(whole or "0") * scale
        if frac:
            total += int(frac) * scale // 10 ** len(frac)
        if total > -_INT64_MIN:
            raise ConversionError(kind, value, "invalid duration")
        pos = match.end()

    limit = -_INT64_MIN if negative else _INT64_MAX
    if total > limit:
        raise ConversionError(kind, value, "invalid duration")

    micros = total // 1_000
    return timedelta(microseconds=-micros if negative else micros)


# ─────────────────────────────────────────────────────────────────────────────
# Timestamps
# ─────────────────────────────────────────────────────────────────────────────

_RFC3339_RE = regex.compile(
    r"(?P<year>[0-9]{4})-(?P<month>[0-9]{2})-(?P<day>[0-9]{2})"
    r"T(?P<hour>[0-9]{2}):(?P<minute>[0-9]{2}):(?P<second>[0-9]{2})"
    r"(?:\.(?P<fraction>[0-9]+))?"
    r"(?P<offset>Z|(?P<sign>[+-])(?P<off_hour>[0-9]{2}):(?P<off_minute>[0-9]{2}))"
)


def parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp into an offset-aware ``datetime``.

    ``Z`` maps to ``timezone.utc``; numeric offsets map to a fixed
    ``timezone``.  Fractional seconds beyond microseconds are truncated.
    Year 0000 is valid RFC 3339 but outside the range of ``datetime`` and
    fails like any other invalid calendar value.
    """
    kind = Kind.TIMESTAMP.value
    match = _RFC3339_RE.fullmatch(value)
    if match is None:
        raise ConversionError(kind, value, "invalid syntax")

    if match.group("offset") == "Z":
        tz = timezone.utc
    else:
        off_hour = int(match.group("off_hour"))
        off_minute = int(match.group("off_minute"))
        if off_hour >= 24 or off_minute >= 60:
            raise ConversionError(kind, value, "time zone offset out of range")
        offset = timedelta(hours=off_hour, minutes=off_minute)
        tz = timezone(-offset if match.group("sign") == "-" else offset)

    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")

    try:
        return datetime(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            int(fraction),
            tzinfo=tz,
        )
    except ValueError as err:
        raise ConversionError(kind, value, str(err)) from err


# ─────────────────────────────────────────────────────────────────────────────
# Sequences
# ─────────────────────────────────────────────────────────────────────────────

_DELIMITERS = regex.compile(r"[\n,]")


def split(value: str) -> List[str]:
    """Split *value* on newlines and commas, trim, and return the non-blank pieces.

    ::

        split("a,, b,\\nc")   # ["a", "b", "c"]
        split("")             # []
    """
    pieces = (piece.strip() for piece in _DELIMITERS.split(value))
    return [piece for piece in pieces if piece]


def encode_bytes(value: str) -> bytes:
    # surrogateescape restores undecodable bytes that os.environ smuggled in
    return value.encode("utf-8", "surrogateescape")


# ─────────────────────────────────────────────────────────────────────────────
# Dispatch
# ─────────────────────────────────────────────────────────────────────────────

BUILTIN_CASTERS: dict[Kind, Callable[[str], Any]] = {
    Kind.BOOL: parse_bool,
    Kind.FLOAT32: parse_float32,
    Kind.FLOAT64: parse_float64,
    Kind.INT: parse_int,
    Kind.STRING: lambda x: x,
    Kind.DURATION: parse_duration,
    Kind.TIMESTAMP: parse_timestamp,
    Kind.STRING_LIST: split,
    Kind.BYTES: encode_bytes,
}


def convert(type_name: str, value: str) -> Any:
    """Convert the raw string *value* into the type named by *type_name*.

    Raises:
        UnsupportedTypeError: *type_name* is not one of the ``Kind`` tokens.
        ConversionError:      *value* is not valid for that type.
    """
    try:
        kind = Kind(type_name)
    except ValueError:
        raise UnsupportedTypeError(type_name) from None
    return BUILTIN_CASTERS[kind](value)
