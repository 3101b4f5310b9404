"""Documentation checks for enum values."""

from __future__ import annotations

from typing import List

from protolinter.decoder import OptionValues
from protolinter.result import Finding
from protolinter.schema import ElementKind, EnumValue

from . import violation


class EnumValueHasComments:
    """Every enum value needs a leading comment.

    A value compiled without any source information counts as undocumented.
    """

    name = "enum_value_has_comments"
    applies_to = ElementKind.ENUM_VALUE
    option = None

    def evaluate(self, element: EnumValue, options: OptionValues, display_name: str) -> List[Finding]:
        location = element.location
        if location is not None and location.leading_comments.strip():
            return []
        return [violation(self.name, element, f"Enum value {display_name} has no leading comments")]
