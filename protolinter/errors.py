"""Exception hierarchy shared across the linter."""

from __future__ import annotations


class ProtolinterError(Exception):
    """Base class for all linter failures."""


class ConfigError(ProtolinterError):
    """Raised when the configuration file cannot be used."""


class CompileError(ProtolinterError):
    """Raised when a schema file cannot be compiled into descriptors."""


class ResolveError(ProtolinterError):
    """Raised when an imported schema dependency cannot be fetched."""


class OptionDecodeError(ProtolinterError):
    """Raised when a structured option value cannot be flattened."""


class UnsupportedMessageError(OptionDecodeError):
    """Raised when a nested message has no single-string rendering."""
