"""Bookkeeping types used while walking a decoded case message."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class DecodedField:
    """One leaf value of a decoded message together with its JSON path."""

    uuid: str = ""
    field_name: str = ""
    value_type: str = ""
    value: Any = None
    field_branch: str = ""


@dataclass
class FieldsNameMapping:
    """Maps an input field name to a MISP field name."""

    input_field_name: str = ""
    misp_field_name: str = ""


class StorageValueName(list):
    """Property names seen so far in the current observable."""

    def add(self, value: str) -> None:
        self.append(value)

    def contains(self, value: str) -> bool:
        return value in self

    def clean(self) -> None:
        self.clear()


def get_obj_name(obj_name: str) -> str:
    """Return the first dotted component of a field path."""
    return obj_name.split(".")[0]


@dataclass(frozen=True)
class ExclusionRule:
    """An object to keep out of what is sent to MISP."""

    sequence_number: int
    name_list: str


class ExclusionRules(list):
    """Objects to keep out of what is sent to MISP."""

    def add(self, seq_num: int, name: str) -> None:
        """Record an object by sequence number and top-level name, once."""
        rule = ExclusionRule(seq_num, get_obj_name(name))
        if rule not in self:
            self.append(rule)

    def search_object_name(self, obj_name: str) -> list[ExclusionRule]:
        name = get_obj_name(obj_name)
        return [rule for rule in self if rule.name_list == name]

    def search_seq_num(self, seq_num: int) -> list[ExclusionRule]:
        return [rule for rule in self if rule.sequence_number == seq_num]

    def clean(self) -> None:
        self.clear()


@dataclass
class MispGalaxyOptions:
    """The parts of a MITRE galaxy tag."""

    name: str = ""
    pattern_id: str = ""
    pattern_type: str = ""


class MispGalaxyTags(dict):
    """Galaxy tag parts keyed by their order of appearance."""

    def get_galaxy_options(self, num: int) -> MispGalaxyOptions:
        """Return a copy of the options under ``num``, or empty options."""
        options = super().get(num)
        if options is None:
            return MispGalaxyOptions()
        return MispGalaxyOptions(options.name, options.pattern_id, options.pattern_type)

    def set_pattern_id(self, key: int, value: str) -> None:
        options = self.get_galaxy_options(key)
        options.pattern_id = value
        self[key] = options

    def set_pattern_type(self, key: int, value: str) -> None:
        options = self.get_galaxy_options(key)
        options.pattern_type = value
        self[key] = options

    def set_name(self, key: int, value: str) -> None:
        options = self.get_galaxy_options(key)
        options.name = value
        self[key] = options