"""MISP ``Object`` records built from observable attachments."""

from __future__ import annotations

import copy
import dataclasses
import re
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from mispbridge.attributes import _is_number, _millis_rfc3339, _to_text

_PAYLOAD_DELIVERY = "Payload delivery"

_HEX = re.compile(r"[0-9a-fA-F]+")
_HASH_BY_LENGTH = {
    32: "md5",
    40: "sha1",
    56: "sha224",
    64: "sha256",
    96: "sha384",
    128: "sha512",
}


def _detect_hash(value: str) -> Optional[str]:
    """Name the hash algorithm a hex digest looks like, or None."""
    if not _HEX.fullmatch(value):
        return None
    return _HASH_BY_LENGTH.get(len(value))


@dataclass
class AttributeMisp:
    """An attribute nested inside a MISP object."""

    disable_correlation: bool = False
    category: str = ""
    type: str = ""
    value: str = ""
    distribution: str = ""
    object_relation: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the attribute keyed by its MISP JSON names."""
        return dataclasses.asdict(self)


@dataclass
class ObjectsMisp:
    """A MISP object describing a file attached to an observable."""

    template_uuid: str = field(default_factory=lambda: str(uuid.uuid4()))
    template_version: str = "1"
    first_seen: str = field(default_factory=lambda: str(time.time_ns() // 1000))
    timestamp: str = field(default_factory=lambda: str(int(time.time())))
    name: str = ""
    description: str = ""
    event_id: str = ""
    meta_category: str = "file"
    distribution: str = "5"
    attribute: list[AttributeMisp] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the object keyed by its MISP JSON names."""
        return {
            "template_uuid": self.template_uuid,
            "template_version": self.template_version,
            "first_seen": self.first_seen,
            "timestamp": self.timestamp,
            "name": self.name,
            "description": self.description,
            "event_id": self.event_id,
            "meta-category": self.meta_category,
            "distribution": self.distribution,
            "Attribute": [a.to_dict() for a in self.attribute],
        }


class ObjectsMispList:
    """Objects keyed by the sequence number of the observable they come from."""

    def __init__(self) -> None:
        self._objects: dict[int, ObjectsMisp] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._objects)

    def get(self, num: int) -> Optional[ObjectsMisp]:
        """Return the object stored under ``num``, if any."""
        return self._objects.get(num)

    def as_dict(self) -> dict[int, ObjectsMisp]:
        """Return copies of the stored objects keyed by their numbers."""
        with self._lock:
            return copy.deepcopy(self._objects)

    def clean(self) -> None:
        """Drop every stored object."""
        with self._lock:
            self._objects = {}

    def _update(self, num: int, change: Callable[[ObjectsMisp], None]) -> None:
        with self._lock:
            obj = self._objects.get(num)
            if obj is None:
                obj = ObjectsMisp()
            change(obj)
            self._objects[num] = obj

    def set_event_id(self, value: Any, num: int) -> None:
        text = _to_text(value)
        self._update(num, lambda obj: setattr(obj, "event_id", text))

    def set_name(self, value: Any, num: int) -> None:
        text = _to_text(value)
        self._update(num, lambda obj: setattr(obj, "name", text))

    def set_description(self, value: Any, num: int) -> None:
        text = _to_text(value)
        self._update(num, lambda obj: setattr(obj, "description", text))

    def set_first_seen(self, value: Any, num: int) -> None:
        def change(obj: ObjectsMisp) -> None:
            if _is_number(value):
                obj.first_seen = _millis_rfc3339(value)

        self._update(num, change)

    def set_timestamp(self, value: Any, num: int) -> None:
        def change(obj: ObjectsMisp) -> None:
            if _is_number(value):
                obj.timestamp = f"{float(value):10.0f}"[:10]

        self._update(num, change)

    def set_size(self, value: Any, num: int) -> None:
        """Describe the attachment by its size in bytes."""
        text = f"размер {_to_text(value)} байт"
        self._update(num, lambda obj: setattr(obj, "description", text))

    def set_attribute(self, value: Any, num: int) -> None:
        """Replace the object's attributes; anything but a list of them is ignored."""
        if not isinstance(value, list) or not all(
            isinstance(item, AttributeMisp) for item in value
        ):
            return
        self._update(num, lambda obj: setattr(obj, "attribute", list(value)))


class AttributeTmpList:
    """Attachment attributes collected per observable before objects are built."""

    def __init__(self) -> None:
        self._attributes: dict[int, list[AttributeMisp]] = {}
        self._lock = threading.RLock()

    def add_attribute(self, branch: str, value: Any, num: int) -> None:
        """Record an attachment name or hash found under ``branch``."""
        is_name = "attachment.name" in branch
        is_hashes = "attachment.hashes" in branch
        if not is_name and not is_hashes:
            return

        type_name = relation = "other"
        if is_name:
            type_name = relation = "filename"

        with self._lock:
            items = self._attributes.get(num, [])
            if isinstance(value, str):
                if is_hashes:
                    detected = _detect_hash(value)
                    if detected is not None:
                        type_name = relation = detected
                items.append(
                    AttributeMisp(
                        disable_correlation=relation in ("filename", "other"),
                        category=_PAYLOAD_DELIVERY,
                        type=type_name,
                        value=value,
                        distribution="0",
                        object_relation=relation,
                    )
                )
            self._attributes[num] = items

    def as_dict(self) -> dict[int, list[AttributeMisp]]:
        """Return copies of the collected attributes keyed by observable number."""
        with self._lock:
            return copy.deepcopy(self._attributes)

    def clean(self) -> None:
        """Drop every collected attribute."""
        with self._lock:
            self._attributes = {}