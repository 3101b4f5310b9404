"""Read-only views over compiled schema descriptors."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, ClassVar, Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from google.protobuf import descriptor_pb2
from google.protobuf.message import Message

from protolinter.utils.naming import default_json_name

# Field numbers used by descriptor.proto to address elements in source info.
FILE_MESSAGE_TYPE = 4
FILE_ENUM_TYPE = 5
FILE_SERVICE = 6
MESSAGE_FIELD = 2
MESSAGE_NESTED_TYPE = 3
MESSAGE_ENUM_TYPE = 4
ENUM_VALUE = 2
SERVICE_METHOD = 2
FIELD_JSON_NAME = 10

EMPTY_MESSAGE = "google.protobuf.Empty"


class ElementKind(str, Enum):
    """Closed set of schema element kinds the linter visits."""

    FILE = "Package"
    SERVICE = "Service"
    METHOD = "Method"
    MESSAGE = "Message"
    FIELD = "Field"
    ENUM = "Enum"
    ENUM_VALUE = "Enum value"

    @property
    def noun(self) -> str:
        return self.value.lower()


@dataclass(frozen=True)
class SourceLocation:
    """Position of an element in its source file, 1-based."""

    path: str
    line: int
    column: int
    leading_comments: str = ""


@dataclass(frozen=True)
class EnumValue:
    name: str
    full_name: str
    number: int = 0
    options: Optional[Message] = None
    location: Optional[SourceLocation] = None

    kind: ClassVar[ElementKind] = ElementKind.ENUM_VALUE


@dataclass(frozen=True)
class EnumType:
    name: str
    full_name: str
    values: Tuple[EnumValue, ...] = ()
    options: Optional[Message] = None
    location: Optional[SourceLocation] = None

    kind: ClassVar[ElementKind] = ElementKind.ENUM


@dataclass(frozen=True)
class Field:
    """A message field; ``json_name`` is set only when declared explicitly."""

    name: str
    full_name: str
    number: int = 0
    json_name: Optional[str] = None
    type_name: str = ""
    options: Optional[Message] = None
    location: Optional[SourceLocation] = None

    kind: ClassVar[ElementKind] = ElementKind.FIELD


@dataclass(frozen=True)
class MessageType:
    name: str
    full_name: str
    fields: Tuple[Field, ...] = ()
    messages: Tuple["MessageType", ...] = ()
    enums: Tuple[EnumType, ...] = ()
    options: Optional[Message] = None
    location: Optional[SourceLocation] = None

    kind: ClassVar[ElementKind] = ElementKind.MESSAGE


@dataclass(frozen=True)
class Method:
    """An RPC; input and output types are fully qualified without a leading dot."""

    name: str
    full_name: str
    input_type: str = EMPTY_MESSAGE
    output_type: str = EMPTY_MESSAGE
    options: Optional[Message] = None
    location: Optional[SourceLocation] = None

    kind: ClassVar[ElementKind] = ElementKind.METHOD

    @property
    def input_name(self) -> str:
        return self.input_type.rsplit(".", 1)[-1]


@dataclass(frozen=True)
class Service:
    name: str
    full_name: str
    methods: Tuple[Method, ...] = ()
    options: Optional[Message] = None
    location: Optional[SourceLocation] = None

    kind: ClassVar[ElementKind] = ElementKind.SERVICE


@dataclass(frozen=True)
class ProtoFile:
    """A compiled schema file; its full name is the package name."""

    path: str
    package: str = ""
    services: Tuple[Service, ...] = ()
    messages: Tuple[MessageType, ...] = ()
    enums: Tuple[EnumType, ...] = ()
    options: Optional[Message] = None
    location: Optional[SourceLocation] = None
    # Explicitly declared JSON names of every field compiled with this file.
    json_names: Mapping[str, str] = field(default_factory=dict, compare=False)

    kind: ClassVar[ElementKind] = ElementKind.FILE

    @property
    def name(self) -> str:
        return self.path

    @property
    def full_name(self) -> str:
        return self.package


SchemaElement = Union[ProtoFile, Service, Method, MessageType, Field, EnumType, EnumValue]
OptionsLoader = Callable[[Message], Message]


def iter_elements(proto_file: ProtoFile) -> Iterator[SchemaElement]:
    """Yield every element of ``proto_file`` in walk order, the file first."""

    yield proto_file
    for service in proto_file.services:
        yield service
        yield from service.methods
    yield from _iter_messages(proto_file.messages)
    yield from _iter_enums(proto_file.enums)


def _iter_messages(messages: Sequence[MessageType]) -> Iterator[SchemaElement]:
    for message in messages:
        yield message
        yield from message.fields
        yield from _iter_messages(message.messages)
        yield from _iter_enums(message.enums)


def _iter_enums(enums: Sequence[EnumType]) -> Iterator[SchemaElement]:
    for enum in enums:
        yield enum
        yield from enum.values


# ----------------------------------------------------------------------
# Construction from descriptor protos
# ----------------------------------------------------------------------
class _LocationIndex:
    """Lookup from a descriptor path to its recorded source location."""

    def __init__(self, file_proto: descriptor_pb2.FileDescriptorProto, path: str) -> None:
        self._path = path
        self._locations: Dict[Tuple[int, ...], descriptor_pb2.SourceCodeInfo.Location] = {}
        for location in file_proto.source_code_info.location:
            # The first location recorded for a path is the declaration itself.
            self._locations.setdefault(tuple(location.path), location)

    def has(self, path: Tuple[int, ...]) -> bool:
        return path in self._locations

    def get(self, path: Tuple[int, ...]) -> Optional[SourceLocation]:
        location = self._locations.get(path)
        if location is None or len(location.span) < 3:
            return None
        return SourceLocation(
            path=self._path,
            line=location.span[0] + 1,
            column=location.span[1] + 1,
            leading_comments=location.leading_comments,
        )


class _ViewBuilder:
    def __init__(
        self,
        file_proto: descriptor_pb2.FileDescriptorProto,
        path: str,
        options_loader: Optional[OptionsLoader],
    ) -> None:
        self._file = file_proto
        self._locations = _LocationIndex(file_proto, path)
        self._options_loader = options_loader
        self._path = path

    def build(self) -> ProtoFile:
        package = self._file.package
        services = tuple(
            self._service(service, package, (FILE_SERVICE, index))
            for index, service in enumerate(self._file.service)
        )
        messages = tuple(
            self._message(message, package, (FILE_MESSAGE_TYPE, index))
            for index, message in enumerate(self._file.message_type)
        )
        enums = tuple(
            self._enum(enum, package, (FILE_ENUM_TYPE, index))
            for index, enum in enumerate(self._file.enum_type)
        )
        return ProtoFile(
            path=self._path,
            package=package,
            services=services,
            messages=messages,
            enums=enums,
            options=self._options(self._file),
        )

    def _service(self, proto, scope: str, path: Tuple[int, ...]) -> Service:
        full_name = _join(scope, proto.name)
        methods = tuple(
            Method(
                name=method.name,
                full_name=_join(full_name, method.name),
                input_type=method.input_type.lstrip("."),
                output_type=method.output_type.lstrip("."),
                options=self._options(method),
                location=self._locations.get(path + (SERVICE_METHOD, index)),
            )
            for index, method in enumerate(proto.method)
        )
        return Service(
            name=proto.name,
            full_name=full_name,
            methods=methods,
            options=self._options(proto),
            location=self._locations.get(path),
        )

    def _message(self, proto, scope: str, path: Tuple[int, ...]) -> MessageType:
        full_name = _join(scope, proto.name)
        fields = tuple(
            self._field(field_proto, full_name, path + (MESSAGE_FIELD, index))
            for index, field_proto in enumerate(proto.field)
        )
        messages = tuple(
            self._message(nested, full_name, path + (MESSAGE_NESTED_TYPE, index))
            for index, nested in enumerate(proto.nested_type)
        )
        enums = tuple(
            self._enum(enum, full_name, path + (MESSAGE_ENUM_TYPE, index))
            for index, enum in enumerate(proto.enum_type)
        )
        return MessageType(
            name=proto.name,
            full_name=full_name,
            fields=fields,
            messages=messages,
            enums=enums,
            options=self._options(proto),
            location=self._locations.get(path),
        )

    def _field(self, proto, scope: str, path: Tuple[int, ...]) -> Field:
        return Field(
            name=proto.name,
            full_name=_join(scope, proto.name),
            number=proto.number,
            json_name=self._declared_json_name(proto, path),
            type_name=proto.type_name.lstrip("."),
            options=self._options(proto),
            location=self._locations.get(path),
        )

    def _declared_json_name(self, proto, path: Tuple[int, ...]) -> Optional[str]:
        if not proto.HasField("json_name"):
            return None
        # protoc fills json_name for every field; only an explicit option
        # leaves a source location or a value that differs from the default.
        if self._locations.has(path + (FIELD_JSON_NAME,)):
            return proto.json_name
        if proto.json_name != default_json_name(proto.name):
            return proto.json_name
        return None

    def collect_json_names(self, proto, scope: str, path: Tuple[int, ...], names: Dict[str, str]) -> None:
        full_name = _join(scope, proto.name)
        for index, field_proto in enumerate(proto.field):
            declared = self._declared_json_name(field_proto, path + (MESSAGE_FIELD, index))
            if declared is not None:
                names[_join(full_name, field_proto.name)] = declared
        for index, nested in enumerate(proto.nested_type):
            self.collect_json_names(nested, full_name, path + (MESSAGE_NESTED_TYPE, index), names)

    def _enum(self, proto, scope: str, path: Tuple[int, ...]) -> EnumType:
        full_name = _join(scope, proto.name)
        # Enum values are scoped to the enum's parent, not the enum itself.
        values = tuple(
            EnumValue(
                name=value.name,
                full_name=_join(scope, value.name),
                number=value.number,
                options=self._options(value),
                location=self._locations.get(path + (ENUM_VALUE, index)),
            )
            for index, value in enumerate(proto.value)
        )
        return EnumType(
            name=proto.name,
            full_name=full_name,
            values=values,
            options=self._options(proto),
            location=self._locations.get(path),
        )

    def _options(self, proto) -> Optional[Message]:
        if not proto.HasField("options"):
            return None
        if self._options_loader is None:
            return proto.options
        return self._options_loader(proto.options)


def build_proto_file(
    file_proto: descriptor_pb2.FileDescriptorProto,
    path: Optional[str] = None,
    options_loader: Optional[OptionsLoader] = None,
    json_names: Optional[Mapping[str, str]] = None,
) -> ProtoFile:
    """Wrap a ``FileDescriptorProto`` into immutable element views.

    ``options_loader`` converts each element's raw options message, which is
    how the compiler makes custom option extensions visible to the rules.
    """

    proto_file = _ViewBuilder(file_proto, path or file_proto.name, options_loader).build()
    if json_names:
        proto_file = replace(proto_file, json_names=dict(json_names))
    return proto_file


def declared_json_names(file_protos: Iterable[descriptor_pb2.FileDescriptorProto]) -> Dict[str, str]:
    """Map full field names to the JSON names declared with an explicit option.

    Needs source info; without it only names that differ from the default
    camel-case form are detected.
    """

    names: Dict[str, str] = {}
    for file_proto in file_protos:
        builder = _ViewBuilder(file_proto, file_proto.name, None)
        for index, message in enumerate(file_proto.message_type):
            builder.collect_json_names(message, file_proto.package, (FILE_MESSAGE_TYPE, index), names)
    return names


def _join(scope: str, name: str) -> str:
    return f"{scope}.{name}" if scope else name
