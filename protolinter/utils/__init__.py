"""Utility helpers for the linter."""

from .fileio import read_text_file, read_yaml_file, write_text_file
from .files import extract_files_from_mimir, extract_files_from_patterns
from .naming import default_json_name, snake_to_lower_camel

__all__ = [
    "read_yaml_file",
    "read_text_file",
    "write_text_file",
    "extract_files_from_patterns",
    "extract_files_from_mimir",
    "default_json_name",
    "snake_to_lower_camel",
]
