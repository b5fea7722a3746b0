"""The MISP ``GalaxyCluster`` record."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any

from mispbridge.formats import GalaxyElementMisp


@dataclass
class GalaxyClustersMisp:
    """A MISP galaxy cluster as sent to the MISP API."""

    default: bool = False
    locked: bool = False
    published: bool = False
    deleted: bool = False
    id: str = ""
    uuid: str = ""
    collection_uuid: str = ""
    type: str = ""
    value: str = ""
    tag_name: str = ""
    description: str = ""
    galaxy_id: str = ""
    source: str = ""
    version: str = ""
    distribution: str = ""
    sharing_group_id: str = ""
    org_id: str = ""
    orgc_id: str = ""
    extends_uuid: str = ""
    extends_version: str = ""
    authors: list[str] = field(default_factory=list)
    galaxy_element: list[GalaxyElementMisp] = field(default_factory=list)

    def add_authors(self, value: Any) -> None:
        """Append one author or a list of authors.

        Raises TypeError for anything but a string or a list of strings.
        """
        if isinstance(value, str):
            self.authors.append(value)
            return
        if isinstance(value, (list, tuple)) and all(isinstance(v, str) for v in value):
            self.authors.extend(value)
            return
        raise TypeError("authors must be a string or a list of strings")

    def add_galaxy_elements(self, value: Any) -> None:
        """Append a list of galaxy elements.

        Raises TypeError for anything but a list of GalaxyElementMisp.
        """
        if isinstance(value, (list, tuple)) and all(
            isinstance(v, GalaxyElementMisp) for v in value
        ):
            self.galaxy_element.extend(value)
            return
        raise TypeError("galaxy elements must be a list of GalaxyElementMisp")

    def to_dict(self) -> dict[str, Any]:
        """Return the cluster keyed by its MISP JSON names."""
        data = dataclasses.asdict(self)
        data["GalaxyElement"] = data.pop("galaxy_element")
        return data