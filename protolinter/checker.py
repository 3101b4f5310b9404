"""Walk schema element trees and apply the rule catalog."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional, Sequence

from .config import LinterConfig
from .decoder import OptionValues, decode_options, iter_message_options
from .errors import OptionDecodeError
from .result import OperationResult
from .rules import Rule
from .rules.registry import load_rules, rules_by_kind
from .schema import (
    ElementKind,
    EnumType,
    MessageType,
    ProtoFile,
    SchemaElement,
    Service,
    iter_elements,
)

LOGGER = logging.getLogger(__name__)


class ProtoChecker:
    """Apply every enabled rule to every non-excluded element of a file."""

    def __init__(self, config: Optional[LinterConfig] = None, logger: Optional[logging.Logger] = None) -> None:
        self.config = config or LinterConfig()
        self.policy = self.config.policy
        self.logger = logger or LOGGER
        self._rules: Dict[ElementKind, List[Rule]] = rules_by_kind(load_rules(self.policy))
        self._options = {rule.option for rules in self._rules.values() for rule in rules if rule.option}

    def check_file(self, proto_file: ProtoFile) -> OperationResult:
        return _FileWalk(self, proto_file).run()

    def check_files(self, files: Sequence[ProtoFile], max_workers: Optional[int] = None) -> List[OperationResult]:
        """Check each file, possibly in parallel; results keep input order."""

        if max_workers == 1 or len(files) <= 1:
            return [self.check_file(proto_file) for proto_file in files]
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            return list(executor.map(self.check_file, files))

    def list_full_names(self, proto_file: ProtoFile) -> List[str]:
        return [f"{element.kind.value}: {element.full_name}" for element in iter_elements(proto_file)]

    def rules_for(self, element: SchemaElement) -> List[Rule]:
        return self._rules.get(element.kind, [])

    def wants_option(self, option_name: str) -> bool:
        return option_name in self._options


class _FileWalk:
    """State for checking a single file."""

    def __init__(self, checker: ProtoChecker, proto_file: ProtoFile) -> None:
        self.checker = checker
        self.config = checker.config
        self.file = proto_file
        self.result = OperationResult(path=proto_file.path, omit_coordinates=self.config.omit_coordinates)
        self._service_count = len(proto_file.services)

    def run(self) -> OperationResult:
        proto_file = self.file
        self.checker.logger.debug("Walking %s (package %r)", proto_file.path, proto_file.package)
        if not self._enter(proto_file, proto_file.package):
            return self.result

        for service in proto_file.services:
            self._service(service)
        for message in proto_file.messages:
            self._message(message)
        for enum in proto_file.enums:
            self._enum(enum)
        return self.result

    def _service(self, service: Service) -> None:
        if not self._visit(service, self.display_name(service.full_name)):
            return
        for method in service.methods:
            self._visit(method, self.display_name(method.full_name, service.name))

    def _message(self, message: MessageType) -> None:
        self._visit(message, self.display_name(message.full_name))
        for field in message.fields:
            self._visit(field, self.display_name(field.full_name))
        for nested in message.messages:
            self._message(nested)
        for enum in message.enums:
            self._enum(enum)

    def _enum(self, enum: EnumType) -> None:
        enum_display = self.display_name(enum.full_name)
        if not self._visit(enum, enum_display):
            return
        for value in enum.values:
            self._visit(value, f"{enum_display}.{value.name}")

    # ------------------------------------------------------------------
    # Per-element steps
    # ------------------------------------------------------------------
    def display_name(self, full_name: str, service_name: str = "") -> str:
        """Strip the package prefix, and the service prefix in single-service files."""

        package = self.file.package
        if package and full_name.startswith(package + "."):
            full_name = full_name[len(package) + 1 :]
        if service_name and self._service_count == 1 and full_name.startswith(service_name + "."):
            full_name = full_name[len(service_name) + 1 :]
        return full_name

    def _enter(self, element: SchemaElement, display_name: str) -> bool:
        """Record the element and report whether it is excluded."""

        if self.config.print_all_descriptors:
            self.result.add_descriptor(element.full_name)
        if self.checker.policy.is_descriptor_excluded(element.full_name):
            if self.config.verbose_mode:
                self.result.add_message(f"{element.kind.value} {display_name} is skipped")
            return False
        return True

    def _visit(self, element: SchemaElement, display_name: str) -> bool:
        if not self._enter(element, display_name):
            return False

        rules = self.checker.rules_for(element)
        if not rules:
            return True

        decoded = self._decode_options(element, display_name)
        violated = False
        for rule in rules:
            if rule.option is None:
                options = OptionValues()
            elif rule.option in decoded:
                options = decoded[rule.option]
            else:
                continue
            for finding in rule.evaluate(element, options, display_name):
                self.result.add_finding(finding)
                violated = True

        if violated and not self.config.print_all_descriptors:
            self.result.add_descriptor(element.full_name)
        return True

    def _decode_options(self, element: SchemaElement, display_name: str) -> Dict[str, OptionValues]:
        decoded: Dict[str, OptionValues] = {}
        for option_name, value in iter_message_options(element.options):
            if not self.checker.wants_option(option_name):
                continue
            try:
                decoded[option_name] = decode_options(value, self.checker.logger, self.file.json_names)
            except OptionDecodeError as error:
                self.result.add_message(
                    f"Failed to parse option {option_name} of {element.kind.noun} {display_name}: {error}"
                )
        return decoded
