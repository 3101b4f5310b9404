"""Locate schema files from glob patterns or a mimir manifest."""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Iterable, List, Optional, Set

from protolinter.errors import ConfigError

from .fileio import read_yaml_file

PROTO_EXTENSION = ".proto"
MIMIR_PATHS_KEY = "proto_paths"


def extract_files_from_patterns(patterns: Iterable[str], extension: Optional[str] = None) -> List[str]:
    """Expand glob patterns into a de-duplicated list of regular files.

    Order follows the patterns, then the sorted matches of each pattern.
    """

    seen: Set[str] = set()
    files: List[str] = []
    for pattern in patterns:
        for match in sorted(glob.glob(pattern, recursive=True)):
            if match in seen:
                continue
            seen.add(match)
            path = Path(match)
            if not path.is_file():
                continue
            if extension and path.suffix != extension:
                continue
            files.append(match)
    return files


def extract_files_from_mimir(manifest_path: str) -> List[str]:
    """Read ``proto_paths`` patterns from a mimir YAML manifest and expand them."""

    data = read_yaml_file(Path(manifest_path))
    if data is None:
        raise ConfigError(f"Mimir file {manifest_path} does not exist or is empty")
    if not isinstance(data, dict):
        raise ConfigError(f"Mimir file {manifest_path} is not a mapping")
    patterns = data.get(MIMIR_PATHS_KEY) or []
    if isinstance(patterns, str):
        patterns = [patterns]
    if not isinstance(patterns, list):
        raise ConfigError(f'Section "{MIMIR_PATHS_KEY}" of {manifest_path} must be a list')
    return extract_files_from_patterns([str(item) for item in patterns], extension=PROTO_EXTENSION)
