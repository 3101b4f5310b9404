"""Canonical textual forms of scalar option values."""

from __future__ import annotations

import base64
import math
import struct
from decimal import Decimal
from typing import Any

from google.protobuf.descriptor import FieldDescriptor

NULL_VALUE_ENUM = "google.protobuf.NullValue"
FLOAT32_MAX_DIGITS = 9
# Exponent bounds outside which floats switch to scientific notation.
FIXED_NOTATION_MIN_EXPONENT = -4
FIXED_NOTATION_MAX_EXPONENT = 6

_FLOAT32 = struct.Struct("<f")


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_float(value: float, single_precision: bool = False) -> str:
    """Render a float with the shortest digits that round-trip.

    Fixed notation is used for decimal exponents in [-4, 6), scientific
    notation with a signed two-digit exponent otherwise (``1e+06``).
    """

    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"

    digits = _shortest_float32(value) if single_precision else repr(value)
    number = Decimal(digits)
    exponent = number.adjusted()
    if FIXED_NOTATION_MIN_EXPONENT <= exponent < FIXED_NOTATION_MAX_EXPONENT:
        return _strip_fraction(format(number, "f"))

    mantissa = _strip_fraction(format(number.scaleb(-exponent), "f"))
    sign = "+" if exponent >= 0 else "-"
    return f"{mantissa}e{sign}{abs(exponent):02d}"


def format_bytes(value: bytes) -> str:
    return base64.urlsafe_b64encode(value).decode("ascii")


def format_enum(field: FieldDescriptor, number: int) -> str:
    enum_type = field.enum_type
    if enum_type.full_name == NULL_VALUE_ENUM:
        return "null"
    value = enum_type.values_by_number.get(number)
    if value is None:
        return str(number)
    return value.name


def format_plain_scalar(field: FieldDescriptor, value: Any) -> str:
    """Render any non-message field value in its canonical string form."""

    if field.type == FieldDescriptor.TYPE_BOOL:
        return format_bool(value)
    if field.type == FieldDescriptor.TYPE_ENUM:
        return format_enum(field, value)
    if field.type == FieldDescriptor.TYPE_STRING:
        return value
    if field.type == FieldDescriptor.TYPE_BYTES:
        return format_bytes(value)
    if field.type == FieldDescriptor.TYPE_FLOAT:
        return format_float(value, single_precision=True)
    if field.type == FieldDescriptor.TYPE_DOUBLE:
        return format_float(value)
    return str(value)


def _shortest_float32(value: float) -> str:
    for precision in range(1, FLOAT32_MAX_DIGITS + 1):
        text = f"{value:.{precision}g}"
        if _FLOAT32.unpack(_FLOAT32.pack(float(text)))[0] == value:
            return text
    return repr(value)


def _strip_fraction(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text
