"""Structured option decoding."""

from .values import OptionValues, decode_options, external_key, iter_message_options
from .well_known import is_well_known, render_well_known

__all__ = [
    "OptionValues",
    "decode_options",
    "external_key",
    "iter_message_options",
    "is_well_known",
    "render_well_known",
]
