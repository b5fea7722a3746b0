"""Smaller MISP records: galaxy elements, tags and event tag links."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any


@dataclass
class GalaxyElementMisp:
    """A key and value belonging to a galaxy cluster."""

    id: str = ""
    galaxy_cluster_id: str = ""
    key: str = ""
    value: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the element keyed by its MISP JSON names."""
        return dataclasses.asdict(self)


@dataclass
class TagsMisp:
    """A MISP tag."""

    hide_tag: bool = False
    is_galaxy: bool = False
    exportable: bool = False
    is_custom_galaxy: bool = False
    inherited: int = 0
    name: str = ""
    colour: str = ""
    org_id: str = ""
    user_id: str = ""
    numerical_value: str = ""

    def set_inherited(self, value: Any) -> None:
        """Set ``inherited`` from an integer or a float, truncating the float.

        Raises TypeError for any other value.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError("inherited must be a number")
        self.inherited = int(value)

    def to_dict(self) -> dict[str, Any]:
        """Return the tag keyed by its MISP JSON names."""
        return dataclasses.asdict(self)


@dataclass
class EventObjectTagsMisp:
    """A link between a MISP event and one of its tags."""

    event: str = ""
    tag: str = ""