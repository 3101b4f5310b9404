"""Naming, HTTP binding and documentation checks for RPC methods."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from protolinter.decoder import OptionValues
from protolinter.result import Finding
from protolinter.schema import EMPTY_MESSAGE, ElementKind, Method

from . import HTTP_OPTION, OPENAPI_OPERATION_OPTION, violation

METHOD_NAME_PATTERN = r"^[A-Z][A-Za-z0-9]*V\d+$"
METHOD_NAME_RE = re.compile(METHOD_NAME_PATTERN)
HTTP_VERBS = ("get", "put", "post", "delete", "patch")
BODY_VERBS = ("post", "put")
WILDCARD_BODY = "*"
REQUEST_SUFFIX = "Request"


def has_versioned_name(method: Method) -> bool:
    return METHOD_NAME_RE.search(method.name) is not None


def http_path(options: OptionValues) -> str:
    """Return the path bound to the first HTTP verb present, or ``""``."""

    for verb in HTTP_VERBS:
        if options.has(verb):
            return options.first(verb)
    return ""


class MethodHasVersion:
    name = "method_has_version"
    applies_to = ElementKind.METHOD
    option = None

    def evaluate(self, element: Method, options: OptionValues, display_name: str) -> List[Finding]:
        if has_versioned_name(element):
            return []
        return [
            violation(
                self.name,
                element,
                f"Name of method {display_name} doesn't match regular expression: {METHOD_NAME_PATTERN}",
            )
        ]


class MethodHasCorrectInputName:
    """Versioned methods must take ``<MethodName>Request`` unless the input is empty."""

    name = "method_has_correct_input_name"
    applies_to = ElementKind.METHOD
    option = None

    def evaluate(self, element: Method, options: OptionValues, display_name: str) -> List[Finding]:
        if not has_versioned_name(element) or element.input_type == EMPTY_MESSAGE:
            return []
        expected = element.name + REQUEST_SUFFIX
        if element.input_name == expected:
            return []
        return [violation(self.name, element, f"Input of method {display_name} should be named as {expected}")]


# ----------------------------------------------------------------------
# google.api.http
# ----------------------------------------------------------------------
class MethodHasHttpPath:
    name = "method_has_http_path"
    applies_to = ElementKind.METHOD
    option = HTTP_OPTION

    def evaluate(self, element: Method, options: OptionValues, display_name: str) -> List[Finding]:
        if http_path(options):
            return []
        return [violation(self.name, element, f"Path of method {display_name} is not specified")]


class MethodHasBodyTag:
    name = "method_has_body_tag"
    applies_to = ElementKind.METHOD
    option = HTTP_OPTION

    def evaluate(self, element: Method, options: OptionValues, display_name: str) -> List[Finding]:
        if not any(options.has(verb) for verb in BODY_VERBS):
            return []
        if options.first("body") == WILDCARD_BODY:
            return []
        return [
            violation(
                self.name,
                element,
                f"Method {display_name} doesn't have body tag or body is not equal to {WILDCARD_BODY}",
            )
        ]


# ----------------------------------------------------------------------
# openapiv2_operation
# ----------------------------------------------------------------------
@dataclass(frozen=True)
class MethodHasSwaggerValue:
    """Require a non-empty value under ``key`` of the operation documentation."""

    name: str
    key: str
    applies_to: ElementKind = ElementKind.METHOD
    option: str = OPENAPI_OPERATION_OPTION

    def evaluate(self, element: Method, options: OptionValues, display_name: str) -> List[Finding]:
        if options.first(self.key):
            return []
        return [violation(self.name, element, f"Method {display_name} has no swagger {self.key}")]


class MethodHasDefaultErrorResponse:
    name = "method_has_default_error_response"
    applies_to = ElementKind.METHOD
    option = OPENAPI_OPERATION_OPTION

    def evaluate(self, element: Method, options: OptionValues, display_name: str) -> List[Finding]:
        if options.first("responses[default]"):
            return []
        return [violation(self.name, element, f"Method {display_name} doesn't have a default error response")]


METHOD_HAS_SWAGGER_TAGS = MethodHasSwaggerValue(name="method_has_swagger_tags", key="tags")
METHOD_HAS_SWAGGER_SUMMARY = MethodHasSwaggerValue(name="method_has_swagger_summary", key="summary")
METHOD_HAS_SWAGGER_DESCRIPTION = MethodHasSwaggerValue(name="method_has_swagger_description", key="description")
