import warnings

import pytest

from protolinter.decoder import OptionValues, decode_options, external_key, iter_message_options
from protolinter.errors import OptionDecodeError, UnsupportedMessageError


def test_unset_fields_are_absent(options):
    values = decode_options(options.sample())

    assert values == {}
    assert values.first("name") == ""
    assert not values.has("name")


def test_plain_scalars_use_canonical_text(options):
    sample = options.sample(
        name="demo",
        count=-3,
        enabled=True,
        payload=b"\xfb\xff",
        ratio=1e6,
        weight=0.1,
        color=1,
    )

    values = decode_options(sample)

    assert values.first("name") == "demo"
    assert values.first("count") == "-3"
    assert values.first("enabled") == "true"
    assert values.first("payload") == "-_8="
    assert values.first("ratio") == "1e+06"
    assert values.first("weight") == "0.1"
    assert values.first("color") == "RED"


def test_repeated_fields_keep_schema_order(options):
    sample = options.sample(tags=["b", "a"], colors=[1, 0])

    values = decode_options(sample)

    assert values["tags"] == ["b", "a"]
    assert values["colors"] == ["RED", "COLOR_UNSPECIFIED"]
    assert list(values.items_flat())[:2] == [("tags", "b"), ("tags", "a")]


def test_map_entries_are_keyed_and_sorted(options):
    sample = options.sample()
    sample.labels["zone"] = "eu"
    sample.labels["app"] = "api"

    values = decode_options(sample)

    assert list(values) == ["labels[app]", "labels[zone]"]
    assert values.first("labels[app]") == "api"


def test_map_entry_with_invalid_value_is_omitted(options):
    sample = options.sample()
    sample.deadlines["ok"].seconds = 0
    sample.deadlines["bad"].seconds = 253402300800

    values = decode_options(sample)

    assert values == {"deadlines[ok]": ["1970-01-01T00:00:00Z"]}


def test_nested_messages_are_flattened_into_dotted_paths(options):
    sample = options.sample()
    sample.inner.value = "v"
    sample.inner.next.depth = 7

    values = decode_options(sample)

    assert values.first("inner.value") == "v"
    assert values.first("inner.next.depth") == "7"


def test_well_known_fields_render_as_single_values(options):
    sample = options.sample()
    sample.created_at.seconds = 1
    sample.created_at.nanos = 500000000
    sample.ttl.seconds = 90
    sample.blob.value = b"\xfb\xff"
    sample.limit.value = 0
    sample.mask.paths.extend(["foo_bar", "baz"])
    sample.note.value = "hello"

    values = decode_options(sample)

    assert values.first("created_at") == "1970-01-01T00:00:01.500Z"
    assert values.first("ttl") == "90s"
    assert values.first("blob") == "+/8="
    assert values.first("limit") == "0"
    assert values.first("mask") == "fooBar,baz"
    assert values.first("note") == "hello"


def test_only_selected_oneof_member_is_decoded(options):
    sample = options.sample(text="first")
    sample.number = 5

    values = decode_options(sample)

    assert values.first("number") == "5"
    assert not values.has("text")


def test_declared_json_name_becomes_the_key(options):
    sample = options.sample(display="visible")
    sample.created_at.SetInParent()

    values = decode_options(sample)

    assert values.first("shownAs") == "visible"
    assert values.has("created_at")


def test_extension_keys_use_bracketed_full_name(options):
    method_options = options.method_options(http=options.http_rule(post="/v1/users", body="*"))

    values = decode_options(method_options)

    assert values.first("[google.api.http].post") == "/v1/users"
    assert values.first("[google.api.http].body") == "*"


def test_http_rule_keys(options):
    values = decode_options(options.http_rule(get="/v1/users/{id}"))

    assert values.first("get") == "/v1/users/{id}"
    assert not values.has("body")


def test_openapi_default_response_is_passed_through(options):
    operation = options.operation(summary="Get user", tags=["users"])
    operation.responses["default"].CopyFrom(options.response(description="Error"))

    values = decode_options(operation)

    assert values.first("tags") == "users"
    assert values.first("summary") == "Get user"
    assert values.first("responses[default]") == 'description: "Error"'


def test_repeated_nested_message_is_unsupported(options):
    rule = options.http_rule(post="/v1/users")
    rule.additional_bindings.add(get="/v1/users")

    with pytest.raises(UnsupportedMessageError) as excinfo:
        decode_options(rule)

    assert 'unsupported message type: "google.api.HttpRule"' in str(excinfo.value)


def test_recursion_depth_is_capped(options):
    sample = options.sample()
    node = sample.inner
    for _ in range(70):
        node = node.next
    node.depth = 1

    with pytest.raises(OptionDecodeError):
        decode_options(sample)


def test_external_key_prefers_declared_json_name(options):
    descriptor = options.sample().DESCRIPTOR

    assert external_key(descriptor.fields_by_name["display"]) == "shownAs"
    assert external_key(descriptor.fields_by_name["created_at"]) == "created_at"


def test_option_values_query_string():
    values = OptionValues()
    values.add("tags", "a b")
    values.add("tags", "c")
    values.set("summary", "x&y")

    assert values.to_query_string() == "tags=a+b&tags=c&summary=x%26y"


def test_repeated_and_map_fields_decode_without_deprecated_descriptor_api(options):
    sample = options.sample(tags=["a"])
    sample.labels["app"] = "api"

    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        values = decode_options(sample)
        found = list(iter_message_options(options.method_options(http=options.http_rule(get="/v1/users"))))

    assert values == {"tags": ["a"], "labels[app]": ["api"]}
    assert [name for name, _ in found] == ["google.api.http"]


def test_declared_json_name_matching_the_default_is_still_used(options):
    sample = options.sample()
    sample.created_at.SetInParent()

    values = decode_options(sample, json_names={"lintertest.Sample.created_at": "createdAt"})

    assert values.has("createdAt")
    assert not values.has("created_at")
