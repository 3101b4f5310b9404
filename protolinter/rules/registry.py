"""Rule catalog in evaluation order."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from protolinter.config import ExclusionPolicy
from protolinter.schema import ElementKind

from . import Rule
from .enum_rules import EnumValueHasComments
from .field_rules import (
    FieldDescriptionEndsWithDotOrQuestionMark,
    FieldDescriptionStartsWithCapital,
    FieldHasCorrectJsonName,
    FieldHasNoDescription,
    FieldNameIsSnakeCase,
)
from .method_rules import (
    METHOD_HAS_SWAGGER_DESCRIPTION,
    METHOD_HAS_SWAGGER_SUMMARY,
    METHOD_HAS_SWAGGER_TAGS,
    MethodHasBodyTag,
    MethodHasCorrectInputName,
    MethodHasDefaultErrorResponse,
    MethodHasHttpPath,
    MethodHasVersion,
)

ALL_RULES: Sequence[Rule] = (
    MethodHasVersion(),
    MethodHasCorrectInputName(),
    MethodHasHttpPath(),
    MethodHasBodyTag(),
    METHOD_HAS_SWAGGER_TAGS,
    METHOD_HAS_SWAGGER_SUMMARY,
    METHOD_HAS_SWAGGER_DESCRIPTION,
    MethodHasDefaultErrorResponse(),
    FieldNameIsSnakeCase(),
    FieldHasCorrectJsonName(),
    FieldHasNoDescription(),
    FieldDescriptionStartsWithCapital(),
    FieldDescriptionEndsWithDotOrQuestionMark(),
    EnumValueHasComments(),
)

RULE_IDS: Sequence[str] = tuple(rule.name for rule in ALL_RULES)


def load_rules(policy: Optional[ExclusionPolicy] = None) -> List[Rule]:
    """Return the catalog minus the globally excluded checks."""

    policy = policy or ExclusionPolicy()
    return [rule for rule in ALL_RULES if not policy.is_check_excluded(rule.name)]


def rules_by_kind(rules: Sequence[Rule]) -> Dict[ElementKind, List[Rule]]:
    grouped: Dict[ElementKind, List[Rule]] = {}
    for rule in rules:
        grouped.setdefault(rule.applies_to, []).append(rule)
    return grouped
