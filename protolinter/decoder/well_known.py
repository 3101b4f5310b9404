"""Single-string renderings of well-known message types."""

from __future__ import annotations

import base64
from typing import Callable, Dict, Tuple

from google.protobuf import duration_pb2, text_format
from google.protobuf.descriptor import Descriptor
from google.protobuf.message import Message

from protolinter.errors import OptionDecodeError, UnsupportedMessageError
from protolinter.utils.naming import snake_to_lower_camel

from .textfmt import format_plain_scalar

TIMESTAMP = "google.protobuf.Timestamp"
DURATION = "google.protobuf.Duration"
BYTES_VALUE = "google.protobuf.BytesValue"
FIELD_MASK = "google.protobuf.FieldMask"
OPENAPI_RESPONSE = "grpc.gateway.protoc_gen_openapiv2.options.Response"
OPENAPI_RESPONSES_ENTRY = "grpc.gateway.protoc_gen_openapiv2.options.Operation.ResponsesEntry"
SCALAR_WRAPPERS = (
    "google.protobuf.DoubleValue",
    "google.protobuf.FloatValue",
    "google.protobuf.Int64Value",
    "google.protobuf.Int32Value",
    "google.protobuf.UInt64Value",
    "google.protobuf.UInt32Value",
    "google.protobuf.BoolValue",
    "google.protobuf.StringValue",
)

MIN_TIMESTAMP_SECONDS = -6213559680013
MAX_TIMESTAMP_SECONDS = 253402300799
MAX_NANOS = 999999999
NANOS_PER_SECOND = 1_000_000_000
SECONDS_PER_DAY = 86400
MIN_DURATION_NANOS = -(2**63)
MAX_DURATION_NANOS = 2**63 - 1


def is_well_known(descriptor: Descriptor) -> bool:
    return descriptor.full_name in _RENDERERS


def render_well_known(message: Message) -> str:
    """Render ``message`` as one string or raise ``UnsupportedMessageError``."""

    full_name = message.DESCRIPTOR.full_name
    renderer = _RENDERERS.get(full_name)
    if renderer is None:
        raise UnsupportedMessageError(f'unsupported message type: "{full_name}"')
    return renderer(message)


# ----------------------------------------------------------------------
# Temporal types
# ----------------------------------------------------------------------
def render_timestamp(message: Message) -> str:
    seconds, nanos = _seconds_and_nanos(message)
    if seconds < MIN_TIMESTAMP_SECONDS or seconds > MAX_TIMESTAMP_SECONDS:
        raise OptionDecodeError(f"{TIMESTAMP}: seconds out of range {seconds}")
    if nanos < 0 or nanos > MAX_NANOS:
        raise OptionDecodeError(f"{TIMESTAMP}: nanos out of range {nanos}")

    days, remainder = divmod(seconds, SECONDS_PER_DAY)
    year, month, day = _civil_from_days(days)
    hour, remainder = divmod(remainder, 3600)
    minute, second = divmod(remainder, 60)
    sign = "-" if year < 0 else ""
    text = f"{sign}{abs(year):04d}-{month:02d}-{day:02d}T{hour:02d}:{minute:02d}:{second:02d}.{nanos:09d}"
    for suffix in ("000", "000", ".000"):
        if text.endswith(suffix):
            text = text[: -len(suffix)]
    return text + "Z"


def render_duration(message: Message) -> str:
    """Render a duration, clamping values outside the signed 64-bit nanosecond range."""

    seconds, nanos = _seconds_and_nanos(message)
    total = seconds * NANOS_PER_SECOND + nanos
    if total > MAX_DURATION_NANOS or total < MIN_DURATION_NANOS:
        if seconds < 0:
            total = MIN_DURATION_NANOS
        elif seconds > 0:
            total = MAX_DURATION_NANOS
    duration = duration_pb2.Duration()
    duration.FromNanoseconds(total)
    return duration.ToJsonString()


def _seconds_and_nanos(message: Message) -> Tuple[int, int]:
    fields = message.DESCRIPTOR.fields_by_number
    return getattr(message, fields[1].name), getattr(message, fields[2].name)


def _civil_from_days(days: int) -> Tuple[int, int, int]:
    """Convert days since 1970-01-01 to a proleptic Gregorian date.

    Works for any year, including years before 1 that ``datetime`` rejects.
    """

    days += 719468
    era = days // 146097
    day_of_era = days - era * 146097
    year_of_era = (day_of_era - day_of_era // 1460 + day_of_era // 36524 - day_of_era // 146096) // 365
    day_of_year = day_of_era - (365 * year_of_era + year_of_era // 4 - year_of_era // 100)
    shifted_month = (5 * day_of_year + 2) // 153
    day = day_of_year - (153 * shifted_month + 2) // 5 + 1
    month = shifted_month + 3 if shifted_month < 10 else shifted_month - 9
    year = year_of_era + era * 400 + (1 if month <= 2 else 0)
    return year, month, day


# ----------------------------------------------------------------------
# Wrappers and other singletons
# ----------------------------------------------------------------------
def render_bytes_value(message: Message) -> str:
    return base64.b64encode(message.value).decode("ascii")


def render_scalar_wrapper(message: Message) -> str:
    field = message.DESCRIPTOR.fields_by_name["value"]
    return format_plain_scalar(field, getattr(message, field.name))


def render_field_mask(message: Message) -> str:
    return ",".join(snake_to_lower_camel(path) for path in message.paths)


def render_passthrough(message: Message) -> str:
    text = text_format.MessageToString(message, as_one_line=True).strip()
    return text or "{}"


_RENDERERS: Dict[str, Callable[[Message], str]] = {
    TIMESTAMP: render_timestamp,
    DURATION: render_duration,
    BYTES_VALUE: render_bytes_value,
    FIELD_MASK: render_field_mask,
    OPENAPI_RESPONSE: render_passthrough,
    OPENAPI_RESPONSES_ENTRY: render_passthrough,
}
_RENDERERS.update({name: render_scalar_wrapper for name in SCALAR_WRAPPERS})
