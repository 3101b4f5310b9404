"""Identifier case conversions used by the decoder and the views."""

from __future__ import annotations


def snake_to_lower_camel(value: str) -> str:
    """Convert a snake_case field path the way protobuf JSON converts field masks.

    Only lower-case ASCII letters that follow an underscore are upper-cased;
    the underscores themselves are dropped.
    """

    chars = []
    after_underscore = False
    for char in value:
        if char != "_":
            if after_underscore and "a" <= char <= "z":
                char = char.upper()
            chars.append(char)
        after_underscore = char == "_"
    return "".join(chars)


def default_json_name(name: str) -> str:
    """Return the JSON name protoc derives for a field without ``json_name``."""

    chars = []
    capitalize_next = False
    for char in name:
        if char == "_":
            capitalize_next = True
        elif capitalize_next:
            chars.append(char.upper())
            capitalize_next = False
        else:
            chars.append(char)
    return "".join(chars)
