"""Core result data structures for the linter."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .config import LinterConfig
from .schema import SourceLocation
from .severity import Severity


@dataclass(frozen=True)
class Finding:
    """Capture a single rule evaluation result."""

    rule: str
    severity: Severity
    message: str
    subject: str
    location: Optional[SourceLocation] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "rule": self.rule,
            "severity": self.severity.value,
            "message": self.message,
            "subject": self.subject,
        }
        if self.location is not None:
            data["location"] = {
                "path": self.location.path,
                "line": self.location.line,
                "column": self.location.column,
            }
        return data


@dataclass
class OperationResult:
    """Outcome of checking (or listing) one schema file."""

    path: str
    omit_coordinates: bool = False
    messages: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    findings: List[Finding] = field(default_factory=list)
    descriptors: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.errors

    def add_message(self, message: str) -> None:
        self.messages.append(message)

    def add_finding(self, finding: Finding) -> None:
        self.findings.append(finding)
        if finding.severity is Severity.ERROR:
            self.errors.append(self.format_error(finding))
        else:
            self.messages.append(finding.message)

    def add_descriptor(self, full_name: str) -> None:
        self.descriptors.append(full_name)

    def format_error(self, finding: Finding) -> str:
        location = finding.location
        if location is None or self.omit_coordinates:
            return finding.message
        return f"{location.path}:{location.line}:{location.column}: {finding.message}"

    def to_dict(self) -> Dict[str, object]:
        return {
            "path": self.path,
            "messages": list(self.messages),
            "findings": [finding.to_dict() for finding in self.findings],
            "passed": self.passed,
        }


def has_errors(results: Iterable[OperationResult]) -> bool:
    return any(not result.passed for result in results)


def build_suppression_config(results: Iterable[OperationResult], config: LinterConfig) -> LinterConfig:
    """Build a configuration that excludes every recorded descriptor.

    Descriptors from all results are merged, de-duplicated and sorted; the
    excluded checks are carried over from ``config`` in sorted order.
    """

    descriptors = set()
    for result in results:
        descriptors.update(result.descriptors)
    return LinterConfig(
        verbose_mode=config.verbose_mode,
        omit_coordinates=config.omit_coordinates,
        excluded_checks=tuple(sorted(set(config.excluded_checks))),
        excluded_descriptors=tuple(sorted(descriptors)),
    )
