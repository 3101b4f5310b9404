"""Flatten structured option messages into a query-string-like multi-map."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple
from urllib.parse import urlencode

from google.protobuf.descriptor import FieldDescriptor
from google.protobuf.message import Message

from protolinter.errors import OptionDecodeError
from protolinter.utils.naming import default_json_name

from .textfmt import format_plain_scalar
from .well_known import is_well_known, render_well_known

LOGGER = logging.getLogger(__name__)

MAX_DEPTH = 64


class OptionValues(Dict[str, List[str]]):
    """Decoded options keyed by dotted/bracketed path.

    Repeated fields keep one entry per element, in schema order.
    """

    def add(self, key: str, value: str) -> None:
        self.setdefault(key, []).append(value)

    def set(self, key: str, value: str) -> None:
        self[key] = [value]

    def first(self, key: str) -> str:
        """Return the first value stored under ``key`` or an empty string."""

        values = super().get(key)
        return values[0] if values else ""

    def has(self, key: str) -> bool:
        return key in self

    def items_flat(self) -> Iterator[Tuple[str, str]]:
        for key, values in self.items():
            for value in values:
                yield key, value

    def to_query_string(self) -> str:
        return urlencode(list(self.items_flat()))


def decode_options(
    message: Message,
    logger: Optional[logging.Logger] = None,
    json_names: Optional[Mapping[str, str]] = None,
) -> OptionValues:
    """Decode every set field of ``message`` into an ``OptionValues`` map.

    Unset fields are absent. Raises ``OptionDecodeError`` when a well-known
    value is out of range or a repeated message element has no single-string
    form. ``json_names`` maps full field names to explicitly declared JSON
    names that match the default camel-case form and so cannot be told apart
    from the descriptor alone.
    """

    values = OptionValues()
    _Flattener(values, logger or LOGGER, json_names or {}).encode_fields("", message, 0)
    return values


def iter_message_options(options: Optional[Message]) -> Iterator[Tuple[str, Message]]:
    """Yield ``(full option name, value)`` for every message-typed option that is set."""

    if options is None:
        return
    for field, value in options.ListFields():
        if field.cpp_type != FieldDescriptor.CPPTYPE_MESSAGE or field.is_repeated:
            continue
        yield field.full_name, value


def external_key(field: FieldDescriptor, json_names: Optional[Mapping[str, str]] = None) -> str:
    """Return the key a field contributes to the decoded path."""

    if field.is_extension:
        return f"[{field.full_name}]"
    if json_names and field.full_name in json_names:
        return json_names[field.full_name]
    if field.json_name and field.json_name != default_json_name(field.name):
        return field.json_name
    return field.name


class _Flattener:
    def __init__(self, values: OptionValues, logger: logging.Logger, json_names: Mapping[str, str]) -> None:
        self._values = values
        self._logger = logger
        self._json_names = json_names

    def encode_fields(self, path: str, message: Message, depth: int) -> None:
        if depth > MAX_DEPTH:
            raise OptionDecodeError(
                f"{message.DESCRIPTOR.full_name}: nesting deeper than {MAX_DEPTH} levels"
            )

        for field, value in message.ListFields():
            oneof = field.containing_oneof
            if oneof is not None and message.WhichOneof(oneof.name) != field.name:
                continue

            key = external_key(field, self._json_names)
            field_path = f"{path}.{key}" if path else key

            if _is_map(field):
                self._encode_map(field_path, field, value)
            elif field.is_repeated:
                for item in value:
                    self._values.add(field_path, _format_value(field, item))
            elif field.cpp_type == FieldDescriptor.CPPTYPE_MESSAGE:
                if is_well_known(field.message_type):
                    self._values.set(field_path, render_well_known(value))
                else:
                    self.encode_fields(field_path, value, depth + 1)
            else:
                self._values.set(field_path, format_plain_scalar(field, value))

    def _encode_map(self, path: str, field: FieldDescriptor, mapping: Any) -> None:
        key_field = field.message_type.fields_by_name["key"]
        value_field = field.message_type.fields_by_name["value"]
        for key in sorted(mapping):
            key_text = format_plain_scalar(key_field, key)
            try:
                value_text = _format_value(value_field, mapping[key])
            except OptionDecodeError as error:
                self._logger.debug("Omitting map entry %s[%s]: %s", path, key_text, error)
                continue
            self._values.set(f"{path}[{key_text}]", value_text)


def _format_value(field: FieldDescriptor, value: Any) -> str:
    if field.cpp_type == FieldDescriptor.CPPTYPE_MESSAGE:
        return render_well_known(value)
    return format_plain_scalar(field, value)


def _is_map(field: FieldDescriptor) -> bool:
    message_type = field.message_type
    return (
        field.is_repeated
        and message_type is not None
        and message_type.GetOptions().map_entry
    )
