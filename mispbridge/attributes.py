"""MISP ``Attribute`` objects and the per-observable collection that builds them."""

from __future__ import annotations

import dataclasses
import re
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

_DISTRIBUTION = "2"
_SHARING_GROUP_ID = "1"

_NETWORK_ACTIVITY = "Network activity"
_PAYLOAD_DELIVERY = "Payload delivery"

_AUTO_CATEGORY = {
    "snort_sid": _NETWORK_ACTIVITY,
    "url": _PAYLOAD_DELIVERY,
    "domain": _NETWORK_ACTIVITY,
    "md5": _PAYLOAD_DELIVERY,
    "sha1": _PAYLOAD_DELIVERY,
    "sha224": _PAYLOAD_DELIVERY,
    "sha256": _PAYLOAD_DELIVERY,
    "sha512": _PAYLOAD_DELIVERY,
    "filename": _PAYLOAD_DELIVERY,
    "ja3": _PAYLOAD_DELIVERY,
    "ip_home": _NETWORK_ACTIVITY,
}

_AUTO_TYPE = {
    "snort_sid": "snort",
    "url": "url",
    "domain": "domain",
    "md5": "md5",
    "sha1": "sha1",
    "sha224": "sha224",
    "sha256": "sha256",
    "sha512": "sha512",
    "filename": "filename",
    "ja3": "ja3-fingerprint-md5",
    "ip_home": "other",
}

_OCTET = r"(25[0-5]|2[0-4]\d|[01]?\d\d?)"
_SENSOR_IP = re.compile(r"\d+:(" + _OCTET + r"[.]){3}" + _OCTET, re.ASCII)
_SENSOR_IP_PARTS = re.compile(r"(\d+):(\d+\.\d+\.\d+\.\d+)", re.ASCII)
_MISP_TAG = re.compile(r'misp:([\w\-].*)="([\w\-].*)"', re.ASCII)


def _rfc3339(moment: datetime) -> str:
    """Format an aware datetime to whole seconds, with ``Z`` for UTC."""
    text = moment.strftime("%Y-%m-%dT%H:%M:%S")
    offset = moment.utcoffset()
    if not offset:
        return text + "Z"
    total = int(offset.total_seconds())
    sign = "+" if total >= 0 else "-"
    hours, minutes = divmod(abs(total) // 60, 60)
    return f"{text}{sign}{hours:02d}:{minutes:02d}"


def _now_rfc3339() -> str:
    return _rfc3339(datetime.now().astimezone())


def _millis_rfc3339(value: float) -> str:
    seconds = int(value) // 1000
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone()
    return _rfc3339(moment)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_text(value: Any) -> str:
    """Render a decoded JSON value as plain text."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "<nil>"
    if isinstance(value, float):
        if value.is_integer() and abs(value) < 1e21:
            return str(int(value))
        return repr(value)
    return str(value)


@dataclass
class AttributesMisp:
    """A MISP attribute as sent to the MISP API."""

    to_ids: bool = True
    deleted: bool = False
    disable_correlation: bool = False
    event_id: str = ""
    object_id: str = ""
    object_relation: str = ""
    category: str = "Other"
    type: str = "other"
    value: str = ""
    uuid: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: str = "0"
    distribution: str = _DISTRIBUTION
    sharing_group_id: str = _SHARING_GROUP_ID
    comment: str = ""
    first_seen: str = field(default_factory=_now_rfc3339)
    last_seen: str = field(default_factory=_now_rfc3339)

    def to_dict(self) -> dict[str, Any]:
        """Return the attribute keyed by its MISP JSON names."""
        return dataclasses.asdict(self)


class AttributesMispList:
    """Attributes keyed by the sequence number of the observable they come from.

    Every setter creates the attribute with default values when the number
    has not been seen yet.
    """

    def __init__(self) -> None:
        self._attributes: dict[int, AttributesMisp] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        return len(self._attributes)

    def get(self, num: int) -> Optional[AttributesMisp]:
        """Return the attribute stored under ``num``, if any."""
        return self._attributes.get(num)

    def as_dict(self) -> dict[int, AttributesMisp]:
        """Return copies of the stored attributes keyed by their numbers."""
        with self._lock:
            return {k: dataclasses.replace(v) for k, v in self._attributes.items()}

    def clean(self) -> None:
        """Drop every stored attribute."""
        with self._lock:
            self._attributes = {}

    def delete(self, num: int) -> Optional[AttributesMisp]:
        """Remove and return the attribute under ``num``, or None if absent."""
        with self._lock:
            return self._attributes.pop(num, None)

    def _update(self, num: int, change: Callable[[AttributesMisp], None]) -> None:
        with self._lock:
            attr = self._attributes.get(num)
            if attr is None:
                attr = AttributesMisp()
            change(attr)
            self._attributes[num] = attr

    def _set_text(self, name: str, value: Any, num: int) -> None:
        text = _to_text(value)
        self._update(num, lambda attr: setattr(attr, name, text))

    def _set_bool(self, name: str, value: Any, num: int) -> None:
        def change(attr: AttributesMisp) -> None:
            if isinstance(value, bool):
                setattr(attr, name, value)

        self._update(num, change)

    def set_object_id(self, value: Any, num: int) -> None:
        self._set_text("object_id", value, num)

    def set_object_relation(self, value: Any, num: int) -> None:
        self._set_text("object_relation", value, num)

    def set_category(self, value: Any, num: int) -> None:
        self._set_text("category", value, num)

    def auto_set_category(self, value: str, num: int) -> None:
        """Pick the category that suits a known observable data type."""
        category = _AUTO_CATEGORY.get(value)
        if category is not None:
            self.set_category(category, num)

    def set_type(self, value: Any, num: int) -> None:
        self._set_text("type", value, num)

    def auto_set_type(self, value: str, num: int) -> None:
        """Pick the MISP type that suits a known observable data type."""
        type_name = _AUTO_TYPE.get(value)
        if type_name is not None:
            self.set_type(type_name, num)

    def set_value(self, value: Any, num: int) -> None:
        """Set the value; a ``<sensor>:<ip>`` value is reduced to the address."""
        text = _to_text(value)
        self._update(num, lambda attr: setattr(attr, "value", text))

        if _SENSOR_IP.fullmatch(text):
            self.auto_set_category("ip_home", num)
            self.auto_set_type("ip_home", num)
            parts = _SENSOR_IP_PARTS.fullmatch(text)
            if parts:
                self.set_value(parts.group(2), num)

    def set_uuid(self, value: Any, num: int) -> None:
        self._set_text("uuid", value, num)

    def set_timestamp(self, value: Any, num: int) -> None:
        def change(attr: AttributesMisp) -> None:
            if _is_number(value):
                attr.timestamp = f"{float(value):10.0f}"[:10]

        self._update(num, change)

    def set_distribution(self, value: Any, num: int) -> None:
        self._set_text("distribution", value, num)

    def set_sharing_group_id(self, value: Any, num: int) -> None:
        self._set_text("sharing_group_id", value, num)

    def set_comment(self, value: Any, num: int) -> None:
        self._set_text("comment", value, num)

    def set_first_seen(self, value: Any, num: int) -> None:
        def change(attr: AttributesMisp) -> None:
            if _is_number(value):
                attr.first_seen = _millis_rfc3339(value)

        self._update(num, change)

    def set_last_seen(self, value: Any, num: int) -> None:
        def change(attr: AttributesMisp) -> None:
            if _is_number(value):
                attr.last_seen = _millis_rfc3339(value)

        self._update(num, change)

    def set_to_ids(self, value: Any, num: int) -> None:
        self._set_bool("to_ids", value, num)

    def set_deleted(self, value: Any, num: int) -> None:
        self._set_bool("deleted", value, num)

    def set_disable_correlation(self, value: Any, num: int) -> None:
        self._set_bool("disable_correlation", value, num)

    def set_event_id(self, value: Any, num: int) -> None:
        self._set_text("event_id", value, num)

    def handle_data_type(self, value: Any, num: int) -> None:
        """Fill category, type and relation from an observable's data type."""
        text = _to_text(value)
        self.auto_set_category(text, num)
        self.auto_set_type(text, num)
        if text == "ip_home":
            self.set_object_relation(text, num)


def handling_list_tags(tags: Iterable[str]) -> list[tuple[str, str]]:
    """Return (category, type) pairs for the tags written as ``misp:X="Y"``."""
    result = []
    for tag in tags:
        match = _MISP_TAG.fullmatch(tag)
        if match:
            result.append((match.group(1), match.group(2)))
    return result