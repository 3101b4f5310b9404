import pytest
from google.protobuf import (
    descriptor_pb2,
    duration_pb2,
    field_mask_pb2,
    message_factory,
    struct_pb2,
    timestamp_pb2,
    wrappers_pb2,
)

from protolinter.compiler import build_pool

FD = descriptor_pb2.FieldDescriptorProto
OPENAPI_PACKAGE = "grpc.gateway.protoc_gen_openapiv2.options"
WELL_KNOWN_MODULES = (timestamp_pb2, duration_pb2, wrappers_pb2, field_mask_pb2, struct_pb2)


def _field(name, number, field_type, label=FD.LABEL_OPTIONAL, type_name=None, json_name=None, oneof_index=None):
    field = FD(name=name, number=number, type=field_type, label=label)
    if type_name:
        field.type_name = type_name
    if json_name:
        field.json_name = json_name
    if oneof_index is not None:
        field.oneof_index = oneof_index
    return field


def _map_entry(message, name, value_type, value_type_name=None):
    entry = message.nested_type.add(name=name)
    entry.options.map_entry = True
    entry.field.append(_field("key", 1, FD.TYPE_STRING))
    entry.field.append(_field("value", 2, value_type, type_name=value_type_name))
    return entry


def http_file():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="google/api/http.proto",
        package="google.api",
        syntax="proto3",
        dependency=["google/protobuf/descriptor.proto"],
    )
    rule = file_proto.message_type.add(name="HttpRule")
    rule.oneof_decl.add(name="pattern")
    rule.field.extend(
        [
            _field("selector", 1, FD.TYPE_STRING),
            _field("get", 2, FD.TYPE_STRING, oneof_index=0),
            _field("put", 3, FD.TYPE_STRING, oneof_index=0),
            _field("post", 4, FD.TYPE_STRING, oneof_index=0),
            _field("delete", 5, FD.TYPE_STRING, oneof_index=0),
            _field("patch", 6, FD.TYPE_STRING, oneof_index=0),
            _field("custom", 8, FD.TYPE_MESSAGE, type_name=".google.api.CustomHttpPattern", oneof_index=0),
            _field("body", 7, FD.TYPE_STRING),
            _field("response_body", 12, FD.TYPE_STRING),
            _field("additional_bindings", 11, FD.TYPE_MESSAGE, FD.LABEL_REPEATED, ".google.api.HttpRule"),
        ]
    )
    custom = file_proto.message_type.add(name="CustomHttpPattern")
    custom.field.extend([_field("kind", 1, FD.TYPE_STRING), _field("path", 2, FD.TYPE_STRING)])
    file_proto.extension.append(
        FD(
            name="http",
            number=72295728,
            type=FD.TYPE_MESSAGE,
            label=FD.LABEL_OPTIONAL,
            type_name=".google.api.HttpRule",
            extendee=".google.protobuf.MethodOptions",
        )
    )
    return file_proto


def openapi_file():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="protoc-gen-openapiv2/options/annotations.proto",
        package=OPENAPI_PACKAGE,
        syntax="proto3",
        dependency=["google/protobuf/descriptor.proto"],
    )
    operation = file_proto.message_type.add(name="Operation")
    _map_entry(operation, "ResponsesEntry", FD.TYPE_MESSAGE, f".{OPENAPI_PACKAGE}.Response")
    operation.field.extend(
        [
            _field("tags", 1, FD.TYPE_STRING, FD.LABEL_REPEATED),
            _field("summary", 2, FD.TYPE_STRING),
            _field("description", 3, FD.TYPE_STRING),
            _field("operation_id", 5, FD.TYPE_STRING),
            _field(
                "responses",
                9,
                FD.TYPE_MESSAGE,
                FD.LABEL_REPEATED,
                f".{OPENAPI_PACKAGE}.Operation.ResponsesEntry",
            ),
        ]
    )
    response = file_proto.message_type.add(name="Response")
    response.field.append(_field("description", 1, FD.TYPE_STRING))
    schema = file_proto.message_type.add(name="JSONSchema")
    schema.field.extend([_field("title", 5, FD.TYPE_STRING), _field("description", 6, FD.TYPE_STRING)])
    file_proto.extension.extend(
        [
            FD(
                name="openapiv2_operation",
                number=1042,
                type=FD.TYPE_MESSAGE,
                label=FD.LABEL_OPTIONAL,
                type_name=f".{OPENAPI_PACKAGE}.Operation",
                extendee=".google.protobuf.MethodOptions",
            ),
            FD(
                name="openapiv2_field",
                number=1042,
                type=FD.TYPE_MESSAGE,
                label=FD.LABEL_OPTIONAL,
                type_name=f".{OPENAPI_PACKAGE}.JSONSchema",
                extendee=".google.protobuf.FieldOptions",
            ),
        ]
    )
    return file_proto


def sample_file():
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="lintertest/sample.proto",
        package="lintertest",
        syntax="proto3",
        dependency=[module.DESCRIPTOR.name for module in WELL_KNOWN_MODULES],
    )
    sample = file_proto.message_type.add(name="Sample")
    color = sample.enum_type.add(name="Color")
    color.value.add(name="COLOR_UNSPECIFIED", number=0)
    color.value.add(name="RED", number=1)
    inner = sample.nested_type.add(name="Inner")
    inner.field.extend(
        [
            _field("value", 1, FD.TYPE_STRING),
            _field("depth", 2, FD.TYPE_INT64),
            _field("next", 3, FD.TYPE_MESSAGE, type_name=".lintertest.Sample.Inner"),
        ]
    )
    _map_entry(sample, "LabelsEntry", FD.TYPE_STRING)
    _map_entry(sample, "DeadlinesEntry", FD.TYPE_MESSAGE, ".google.protobuf.Timestamp")
    sample.oneof_decl.add(name="choice")
    sample.field.extend(
        [
            _field("name", 1, FD.TYPE_STRING),
            _field("count", 2, FD.TYPE_INT32),
            _field("enabled", 3, FD.TYPE_BOOL),
            _field("color", 4, FD.TYPE_ENUM, type_name=".lintertest.Sample.Color"),
            _field("payload", 5, FD.TYPE_BYTES),
            _field("tags", 6, FD.TYPE_STRING, FD.LABEL_REPEATED),
            _field("labels", 7, FD.TYPE_MESSAGE, FD.LABEL_REPEATED, ".lintertest.Sample.LabelsEntry"),
            _field("created_at", 8, FD.TYPE_MESSAGE, type_name=".google.protobuf.Timestamp"),
            _field("ttl", 9, FD.TYPE_MESSAGE, type_name=".google.protobuf.Duration"),
            _field("blob", 10, FD.TYPE_MESSAGE, type_name=".google.protobuf.BytesValue"),
            _field("limit", 11, FD.TYPE_MESSAGE, type_name=".google.protobuf.Int32Value"),
            _field("mask", 12, FD.TYPE_MESSAGE, type_name=".google.protobuf.FieldMask"),
            _field("inner", 13, FD.TYPE_MESSAGE, type_name=".lintertest.Sample.Inner"),
            _field("text", 14, FD.TYPE_STRING, oneof_index=0),
            _field("number", 15, FD.TYPE_INT64, oneof_index=0),
            _field("ratio", 16, FD.TYPE_DOUBLE),
            _field("weight", 17, FD.TYPE_FLOAT),
            _field("display", 18, FD.TYPE_STRING, json_name="shownAs"),
            _field("nothing", 19, FD.TYPE_ENUM, type_name=".google.protobuf.NullValue"),
            _field("children", 20, FD.TYPE_MESSAGE, FD.LABEL_REPEATED, ".lintertest.Sample.Inner"),
            _field(
                "deadlines", 21, FD.TYPE_MESSAGE, FD.LABEL_REPEATED, ".lintertest.Sample.DeadlinesEntry"
            ),
            _field("note", 22, FD.TYPE_MESSAGE, type_name=".google.protobuf.StringValue"),
            _field("colors", 23, FD.TYPE_ENUM, FD.LABEL_REPEATED, ".lintertest.Sample.Color"),
        ]
    )
    return file_proto


def build_descriptor_set(*files):
    descriptor_set = descriptor_pb2.FileDescriptorSet()
    for module in WELL_KNOWN_MODULES:
        descriptor_set.file.add().ParseFromString(module.DESCRIPTOR.serialized_pb)
    descriptor_set.file.extend([http_file(), openapi_file(), sample_file()])
    descriptor_set.file.extend(files)
    return descriptor_set


class OptionFactory:
    """Build option messages from the test pool."""

    def __init__(self, pool):
        self.pool = pool

    def message(self, full_name, **fields):
        message_class = message_factory.GetMessageClass(self.pool.FindMessageTypeByName(full_name))
        return message_class(**fields)

    def http_rule(self, **fields):
        return self.message("google.api.HttpRule", **fields)

    def operation(self, **fields):
        return self.message(f"{OPENAPI_PACKAGE}.Operation", **fields)

    def response(self, **fields):
        return self.message(f"{OPENAPI_PACKAGE}.Response", **fields)

    def json_schema(self, **fields):
        return self.message(f"{OPENAPI_PACKAGE}.JSONSchema", **fields)

    def sample(self, **fields):
        return self.message("lintertest.Sample", **fields)

    def method_options(self, http=None, operation=None):
        options = self.message("google.protobuf.MethodOptions")
        if http is not None:
            options.Extensions[self.pool.FindExtensionByName("google.api.http")].CopyFrom(http)
        if operation is not None:
            extension = self.pool.FindExtensionByName(f"{OPENAPI_PACKAGE}.openapiv2_operation")
            options.Extensions[extension].CopyFrom(operation)
        return options

    def field_options(self, schema):
        options = self.message("google.protobuf.FieldOptions")
        extension = self.pool.FindExtensionByName(f"{OPENAPI_PACKAGE}.openapiv2_field")
        options.Extensions[extension].CopyFrom(schema)
        return options


@pytest.fixture(scope="session")
def pool():
    return build_pool(build_descriptor_set())


@pytest.fixture(scope="session")
def options(pool):
    return OptionFactory(pool)
