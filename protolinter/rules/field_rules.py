"""Naming and documentation checks for message fields."""

from __future__ import annotations

import re
from typing import List

from protolinter.decoder import OptionValues
from protolinter.result import Finding
from protolinter.schema import ElementKind, Field

from . import OPENAPI_FIELD_OPTION, violation

FIELD_NAME_PATTERN = r"^[a-z][a-z0-9_]*$"
FIELD_NAME_RE = re.compile(FIELD_NAME_PATTERN)
DESCRIPTION_KEY = "description"
SENTENCE_ENDINGS = (".", "?")


class FieldNameIsSnakeCase:
    name = "field_name_is_snake_case"
    applies_to = ElementKind.FIELD
    option = None

    def evaluate(self, element: Field, options: OptionValues, display_name: str) -> List[Finding]:
        if FIELD_NAME_RE.search(element.name):
            return []
        return [
            violation(
                self.name,
                element,
                f"Name of field {display_name} doesn't match regular expression: {FIELD_NAME_PATTERN}",
            )
        ]


class FieldHasCorrectJsonName:
    """An explicit ``json_name`` must repeat the field's own name."""

    name = "field_has_correct_json_name"
    applies_to = ElementKind.FIELD
    option = None

    def evaluate(self, element: Field, options: OptionValues, display_name: str) -> List[Finding]:
        if element.json_name is None or element.json_name == element.name:
            return []
        return [violation(self.name, element, f"Field {display_name} has incorrect json_name tag")]


# ----------------------------------------------------------------------
# openapiv2_field
# ----------------------------------------------------------------------
class FieldHasNoDescription:
    name = "field_has_no_description"
    applies_to = ElementKind.FIELD
    option = OPENAPI_FIELD_OPTION

    def evaluate(self, element: Field, options: OptionValues, display_name: str) -> List[Finding]:
        if options.first(DESCRIPTION_KEY):
            return []
        return [violation(self.name, element, f"Field {display_name} doesn't have description")]


class FieldDescriptionStartsWithCapital:
    name = "field_description_starts_with_capital"
    applies_to = ElementKind.FIELD
    option = OPENAPI_FIELD_OPTION

    def evaluate(self, element: Field, options: OptionValues, display_name: str) -> List[Finding]:
        description = options.first(DESCRIPTION_KEY)
        if not description or description[0].isupper():
            return []
        return [
            violation(self.name, element, f"Description of field {display_name} doesn't start with capital letter")
        ]


class FieldDescriptionEndsWithDotOrQuestionMark:
    name = "field_description_ends_with_dot_or_question_mark"
    applies_to = ElementKind.FIELD
    option = OPENAPI_FIELD_OPTION

    def evaluate(self, element: Field, options: OptionValues, display_name: str) -> List[Finding]:
        description = options.first(DESCRIPTION_KEY)
        if not description or description.endswith(SENTENCE_ENDINGS):
            return []
        return [
            violation(
                self.name,
                element,
                f"Description of field {display_name} must end with dot or question mark",
            )
        ]
