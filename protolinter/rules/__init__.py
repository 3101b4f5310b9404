"""Rule protocol and shared helpers for the rule catalog."""

from __future__ import annotations

from typing import List, Optional, Protocol

from protolinter.decoder import OptionValues
from protolinter.result import Finding
from protolinter.schema import ElementKind, SchemaElement
from protolinter.severity import Severity

HTTP_OPTION = "google.api.http"
OPENAPI_OPERATION_OPTION = "grpc.gateway.protoc_gen_openapiv2.options.openapiv2_operation"
OPENAPI_FIELD_OPTION = "grpc.gateway.protoc_gen_openapiv2.options.openapiv2_field"


class Rule(Protocol):
    """Protocol implemented by all rule evaluators.

    ``option`` names the structured option a rule reads. Such a rule only
    runs for elements carrying that option, and ``options`` holds its decoded
    values; rules without an option receive an empty map.
    """

    name: str
    applies_to: ElementKind
    option: Optional[str]

    def evaluate(self, element: SchemaElement, options: OptionValues, display_name: str) -> List[Finding]:
        """Return one finding per violation, or an empty list."""


def violation(rule: str, element: SchemaElement, message: str) -> Finding:
    return Finding(
        rule=rule,
        severity=Severity.ERROR,
        message=message,
        subject=element.full_name,
        location=element.location,
    )


__all__ = [
    "HTTP_OPTION",
    "OPENAPI_OPERATION_OPTION",
    "OPENAPI_FIELD_OPTION",
    "Rule",
    "violation",
]
