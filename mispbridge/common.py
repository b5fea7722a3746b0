"""Shared message types: log records, counters, event tags and MISP error replies."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

_EVENT_TAG_PATTERNS = ("ats", "sensor", "misp-galaxy", "class-attack")


@dataclass
class MessageLogging:
    """A message for the logger: its text and its type."""

    msg_data: str = ""
    msg_type: str = ""


@dataclass
class DataCounterSettings:
    """An update for one of the application counters."""

    data_type: str = ""
    count: int = 0


class EventObjectTags(list):
    """Tags taken from ``event.object.tags`` that are worth passing to MISP."""

    def __init__(self, tags: Iterable[str] = ()) -> None:
        super().__init__()
        for tag in tags:
            self.set_tag(tag)

    def set_tag(self, value: str) -> None:
        """Keep the tag if it mentions one of the known tag families."""
        lowered = value.lower()
        if any(pattern in lowered for pattern in _EVENT_TAG_PATTERNS):
            self.append(value)

    def clean(self) -> None:
        """Drop every stored tag."""
        self.clear()


@dataclass
class MispFormatError:
    """An error reply from the MISP API."""

    saved: bool = False
    name: str = ""
    message: str = ""
    url: str = ""
    errors: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MispFormatError":
        """Build the error from a decoded JSON reply."""
        errors = data.get("errors") or {}
        if not isinstance(errors, Mapping):
            raise TypeError("'errors' must be a JSON object")
        return cls(
            saved=bool(data.get("saved", False)),
            name=str(data.get("name", "")),
            message=str(data.get("message", "")),
            url=str(data.get("url", "")),
            errors=dict(errors),
        )