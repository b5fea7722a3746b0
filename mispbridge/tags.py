"""Parsing of ``observables.tags`` values."""

from __future__ import annotations

import re

_MISP_TAG = re.compile(r'misp:([\w\-].*)="([\w\-].*)"', re.ASCII)
_TYPE_PATTERNS = (
    re.compile(r"type:([\w\-].*)", re.ASCII),
    re.compile(r"example:([\w\-].*)", re.ASCII),
)


def check_misp_observables_tag(tag: str) -> tuple[str, str]:
    """Split a ``misp:<category>="<type>"`` tag into (category, type).

    Raises ValueError when the tag does not follow that pattern.
    """
    match = _MISP_TAG.fullmatch(tag)
    if match is None:
        raise ValueError("the accepted value does not match the regular expression")
    return match.group(1), match.group(2)


def get_type_name_observables_tag(tag: str) -> str:
    """Return the type named by a tag.

    A tag without a colon is a type name itself; ``type:<name>`` gives
    ``<name>``; any other prefixed tag gives an empty string.
    """
    if ":" not in tag:
        return tag
    for pattern in _TYPE_PATTERNS:
        match = pattern.fullmatch(tag)
        if match:
            return match.group(1)
    return ""