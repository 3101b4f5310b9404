"""Linter configuration loading and serialization."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

import yaml

from protolinter.errors import ConfigError
from protolinter.utils import read_text_file, read_yaml_file

DEFAULT_CONFIG_NAME = ".protolinter.yaml"
GO_MOD_PATH = "go.mod"
MODULE_NAME_PATTERN = re.compile(r"\s*module\s+(?P<module>\S+)")

BOOL_KEYS = ("verbose_mode", "omit_coordinates")
LIST_KEYS = ("excluded_checks", "excluded_descriptors")


@dataclass(frozen=True)
class ExclusionPolicy:
    """Which checks never run, and which element subtrees are skipped."""

    excluded_checks: FrozenSet[str] = frozenset()
    excluded_descriptors: Tuple[str, ...] = ()

    def is_check_excluded(self, name: str) -> bool:
        return name in self.excluded_checks

    def is_descriptor_excluded(self, full_name: str) -> bool:
        return any(full_name.startswith(prefix) for prefix in self.excluded_descriptors)


@dataclass(frozen=True)
class LinterConfig:
    """Settings from ``.protolinter.yaml`` plus runtime-only switches."""

    verbose_mode: bool = False
    omit_coordinates: bool = False
    excluded_checks: Tuple[str, ...] = ()
    excluded_descriptors: Tuple[str, ...] = ()
    # Runtime-only settings, never serialized.
    print_all_descriptors: bool = field(default=False, compare=False)
    github_url: str = field(default="", compare=False)
    module_name: str = field(default="", compare=False)

    @property
    def policy(self) -> ExclusionPolicy:
        return ExclusionPolicy(
            excluded_checks=frozenset(self.excluded_checks),
            excluded_descriptors=tuple(prefix for prefix in self.excluded_descriptors if prefix),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verbose_mode": self.verbose_mode,
            "omit_coordinates": self.omit_coordinates,
            "excluded_checks": list(self.excluded_checks),
            "excluded_descriptors": list(self.excluded_descriptors),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "<config>") -> "LinterConfig":
        values: Dict[str, Any] = {}
        for key in BOOL_KEYS:
            if data.get(key) is None:
                continue
            if not isinstance(data[key], bool):
                raise ConfigError(f"{source}: {key} must be a boolean")
            values[key] = data[key]
        for key in LIST_KEYS:
            values[key] = _string_tuple(data.get(key), key, source)
        return cls(**values)


def load_config(
    path: Optional[str] = None,
    github_url: str = "",
    print_all_descriptors: bool = False,
    go_mod_path: str = GO_MOD_PATH,
) -> LinterConfig:
    """Load the YAML configuration; a missing file yields the defaults."""

    config_path = Path(path or DEFAULT_CONFIG_NAME)
    try:
        data = read_yaml_file(config_path)
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse {config_path}: {error}") from error
    except OSError as error:
        raise ConfigError(f"Failed to read {config_path}: {error}") from error

    if data is None:
        config = LinterConfig()
    elif isinstance(data, dict):
        config = LinterConfig.from_dict(data, source=str(config_path))
    else:
        raise ConfigError(f"Configuration at {config_path} is not a mapping")

    return replace(
        config,
        github_url=github_url,
        print_all_descriptors=print_all_descriptors,
        module_name=read_module_name(go_mod_path),
    )


def dump_config(config: LinterConfig) -> str:
    """Serialize ``config`` back into the YAML shape ``load_config`` reads."""

    return yaml.safe_dump(config.to_dict(), sort_keys=False, default_flow_style=False)


def read_module_name(go_mod_path: str = GO_MOD_PATH) -> str:
    """Return the Go module name declared in ``go.mod``, or an empty string."""

    path = Path(go_mod_path)
    if not path.exists():
        return ""
    match = MODULE_NAME_PATTERN.search(read_text_file(path))
    if match is None:
        raise ConfigError(f"module name not found in {go_mod_path}")
    return match.group("module")


def _string_tuple(value: Any, key: str, source: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, (list, tuple)):
        raise ConfigError(f"{source}: {key} must be a list of strings")
    return tuple(str(item) for item in _flatten(value))


def _flatten(items: Iterable[Any]) -> Iterable[Any]:
    for item in items:
        if item is not None:
            yield item
