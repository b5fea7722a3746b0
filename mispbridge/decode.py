"""Flattening of a case message into leaf fields with their JSON paths."""

from __future__ import annotations

import json
from typing import Any, Iterator, Mapping, Optional, Sequence, Union

from mispbridge.tracking import DecodedField

_EMPTY_MESSAGE = "error decoding the json message, it may be empty"


class DecodeError(ValueError):
    """The message is not JSON, or holds nothing."""


def decode_message(data: Union[bytes, str]) -> list[DecodedField]:
    """Decode a JSON object or array and return its leaf fields in order.

    Numbers are decoded as floats. Raises DecodeError for invalid or empty
    input and for a top level that is neither an object nor an array.
    """
    try:
        decoded = json.loads(data, parse_int=float)
    except ValueError as exc:
        raise DecodeError(str(exc)) from exc

    if isinstance(decoded, dict):
        if not decoded:
            raise DecodeError(_EMPTY_MESSAGE)
        return list(process_map(decoded, ""))
    if isinstance(decoded, list):
        if not decoded:
            raise DecodeError(_EMPTY_MESSAGE)
        return list(process_list(decoded, ""))
    if decoded is None:
        raise DecodeError(_EMPTY_MESSAGE)
    raise DecodeError("the json message is neither an object nor an array")


def process_map(mapping: Mapping[str, Any], field_branch: str) -> Iterator[DecodedField]:
    """Yield the leaf fields of ``mapping``; a null value ends the walk of it."""
    for key, value in mapping.items():
        if value is None:
            return
        branch = f"{field_branch}.{key}" if field_branch else key

        if isinstance(value, Mapping):
            yield from process_map(value, branch)
        elif isinstance(value, list):
            yield from process_list(value, branch)
        else:
            item = process_simple(key, value, branch)
            if item is not None:
                yield item


def process_list(items: Sequence[Any], field_branch: str) -> Iterator[DecodedField]:
    """Yield the leaf fields of ``items``, keeping the branch of the list itself.

    Scalars are named by their index; a null element ends the walk.
    """
    for index, value in enumerate(items):
        if value is None:
            return
        if isinstance(value, Mapping):
            yield from process_map(value, field_branch)
        elif isinstance(value, list):
            yield from process_list(value, field_branch)
        else:
            item = process_simple(index, value, field_branch)
            if item is not None:
                yield item


def process_simple(name: Union[int, str], value: Any, field_branch: str) -> Optional[DecodedField]:
    """Wrap a scalar value as a field; return None for anything else."""
    field_name = str(name) if isinstance(name, (int, str)) else ""

    if isinstance(value, str):
        value_type = "string"
    elif isinstance(value, bool):
        value_type = "bool"
    elif isinstance(value, int):
        value_type = "int"
    elif isinstance(value, float):
        value_type = "float"
    else:
        return None

    return DecodedField(
        field_name=field_name,
        value_type=value_type,
        value=value,
        field_branch=field_branch,
    )