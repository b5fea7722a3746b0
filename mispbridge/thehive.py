"""Case messages received from TheHive and replies sent back to it."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional


class _Reader:
    """Typed access to the members of one JSON object.

    Missing or null members give the zero value of their type. A member of
    the wrong type raises TypeError and a negative unsigned number raises
    ValueError.
    """

    def __init__(self, data: Any, where: str) -> None:
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise TypeError(f"{where or 'message'}: expected a JSON object")
        self._data = data
        self._where = where

    def _path(self, key: str) -> str:
        return f"{self._where}.{key}" if self._where else key

    def _get(self, key: str) -> Any:
        return self._data.get(key)

    def text(self, key: str) -> str:
        value = self._get(key)
        if value is None:
            return ""
        if not isinstance(value, str):
            raise TypeError(f"{self._path(key)}: expected a string")
        return value

    def integer(self, key: str) -> int:
        value = self._get(key)
        if value is None:
            return 0
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"{self._path(key)}: expected an integer")
        return value

    def unsigned(self, key: str) -> int:
        value = self.integer(key)
        if value < 0:
            raise ValueError(f"{self._path(key)}: expected a non-negative integer")
        return value

    def flag(self, key: str) -> bool:
        value = self._get(key)
        if value is None:
            return False
        if not isinstance(value, bool):
            raise TypeError(f"{self._path(key)}: expected a boolean")
        return value

    def strings(self, key: str) -> list[str]:
        value = self._get(key)
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise TypeError(f"{self._path(key)}: expected a list of strings")
        return list(value)

    def mapping(self, key: str) -> dict[str, Any]:
        value = self._get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise TypeError(f"{self._path(key)}: expected a JSON object")
        return dict(value)

    def objects(self, key: str) -> list[Any]:
        value = self._get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise TypeError(f"{self._path(key)}: expected a list")
        return value

    def child(self, key: str) -> "_Reader":
        return _Reader(self._get(key), self._path(key))


@dataclass
class ResponseCommand:
    """A command for TheHive carried in a reply."""

    command: str = ""
    string: str = ""
    name: str = ""


@dataclass
class ResponseMessage:
    """A reply for TheHive about the handling of a case in MISP."""

    success: bool = False
    service: str = ""
    error: Optional[BaseException] = None
    commands: list[ResponseCommand] = field(default_factory=list)

    def add_command(self, command: ResponseCommand) -> None:
        """Append a command to the reply."""
        self.commands.append(command)

    def to_dict(self) -> dict[str, Any]:
        """Return the reply keyed by its JSON names."""
        return {
            "success": self.success,
            "service": self.service,
            "error": None if self.error is None else str(self.error),
            "commands": [
                {"command": c.command, "string": c.string, "name": c.name}
                for c in self.commands
            ],
        }


@dataclass
class SourceMessage:
    """Where a case message came from."""

    source: str = ""


@dataclass
class EventDetails:
    """Details of a case event."""

    end_date: int = 0
    resolution_status: str = ""
    summary: str = ""
    status: str = ""
    impact_status: str = ""
    custom_fields: dict[str, Any] = field(default_factory=dict)


@dataclass
class EventObject:
    """The case an event refers to."""

    underlining_id: str = ""
    id: str = ""
    created_by: str = ""
    updated_by: str = ""
    created_at: int = 0
    updated_at: int = 0
    underlining_type: str = ""
    case_id: int = 0
    title: str = ""
    description: str = ""
    severity: int = 0
    start_date: int = 0
    end_date: int = 0
    impact_status: str = ""
    resolution_status: str = ""
    tags: list[str] = field(default_factory=list)
    flag: bool = False
    tlp: int = 0
    pap: int = 0
    status: str = ""
    summary: str = ""
    owner: str = ""
    custom_fields: dict[str, Any] = field(default_factory=dict)
    stats: dict[str, Any] = field(default_factory=dict)
    permissions: list[str] = field(default_factory=list)


@dataclass
class EventMessage:
    """The event part of a case message."""

    operation: str = ""
    object_id: str = ""
    object_type: str = ""
    base: bool = False
    start_date: int = 0
    root_id: str = ""
    request_id: str = ""
    details: EventDetails = field(default_factory=EventDetails)
    object: EventObject = field(default_factory=EventObject)
    organisation_id: str = ""
    organisation: str = ""


@dataclass
class ObservableMessage:
    """One observable of a case."""

    created_at: int = 0
    created_by: str = ""
    underlining_id: str = ""
    underlining_type: str = ""
    updated_at: int = 0
    updated_by: str = ""
    data: str = ""
    data_type: str = ""
    ignore_similarity: bool = False
    extra_data: dict[str, Any] = field(default_factory=dict)
    ioc: bool = False
    message: str = ""
    sighted: bool = False
    start_date: int = 0
    tags: list[str] = field(default_factory=list)
    tlp: int = 0
    reports: dict[str, Any] = field(default_factory=dict)


@dataclass
class PatternExtraData:
    """An attack pattern referenced by a TTP."""

    created_at: int = 0
    created_by: str = ""
    underlining_id: str = ""
    underlining_type: str = ""
    data_sources: list[str] = field(default_factory=list)
    defense_bypassed: list[str] = field(default_factory=list)
    description: str = ""
    extra_data: dict[str, Any] = field(default_factory=dict)
    name: str = ""
    pattern_id: str = ""
    pattern_type: str = ""
    permissions_required: list[str] = field(default_factory=list)
    platforms: list[str] = field(default_factory=list)
    remote_support: bool = False
    revoked: bool = False
    system_requirements: list[str] = field(default_factory=list)
    tactics: list[str] = field(default_factory=list)
    url: str = ""
    version: str = ""


@dataclass
class ExtraDataTtp:
    """The pattern of a TTP and its parent pattern."""

    pattern: PatternExtraData = field(default_factory=PatternExtraData)
    pattern_parent: PatternExtraData = field(default_factory=PatternExtraData)


@dataclass
class TtpMessage:
    """One tactic, technique or procedure of a case."""

    created_at: int = 0
    created_by: str = ""
    underlining_id: str = ""
    extra_data: ExtraDataTtp = field(default_factory=ExtraDataTtp)
    occur_date: int = 0
    pattern_id: str = ""
    tactic: str = ""


def _event_details(r: _Reader) -> EventDetails:
    return EventDetails(
        end_date=r.unsigned("endDate"),
        resolution_status=r.text("resolutionStatus"),
        summary=r.text("summary"),
        status=r.text("status"),
        impact_status=r.text("impactStatus"),
        custom_fields=r.mapping("customFields"),
    )


def _event_object(r: _Reader) -> EventObject:
    return EventObject(
        underlining_id=r.text("_id"),
        id=r.text("id"),
        created_by=r.text("createdBy"),
        updated_by=r.text("updatedBy"),
        created_at=r.unsigned("createdAt"),
        updated_at=r.unsigned("updatedAt"),
        underlining_type=r.text("_type"),
        case_id=r.integer("caseId"),
        title=r.text("title"),
        description=r.text("description"),
        severity=r.integer("severity"),
        start_date=r.unsigned("startDate"),
        end_date=r.unsigned("endDate"),
        impact_status=r.text("impactStatus"),
        resolution_status=r.text("resolutionStatus"),
        tags=r.strings("tags"),
        flag=r.flag("flag"),
        tlp=r.integer("tlp"),
        pap=r.integer("pap"),
        status=r.text("status"),
        summary=r.text("summary"),
        owner=r.text("owner"),
        custom_fields=r.mapping("customFields"),
        stats=r.mapping("stats"),
        permissions=r.strings("permissions"),
    )


def _event_message(r: _Reader) -> EventMessage:
    return EventMessage(
        operation=r.text("operation"),
        object_id=r.text("objectId"),
        object_type=r.text("objectType"),
        base=r.flag("base"),
        start_date=r.unsigned("startDate"),
        root_id=r.text("rootId"),
        request_id=r.text("requestId"),
        details=_event_details(r.child("details")),
        object=_event_object(r.child("object")),
        organisation_id=r.text("organisationId"),
        organisation=r.text("organisation"),
    )


def _observable(r: _Reader) -> ObservableMessage:
    return ObservableMessage(
        created_at=r.unsigned("_createdAt"),
        created_by=r.text("_createdBy"),
        underlining_id=r.text("_id"),
        underlining_type=r.text("_type"),
        updated_at=r.unsigned("_updatedAt"),
        updated_by=r.text("_updatedBy"),
        data=r.text("data"),
        data_type=r.text("dataType"),
        ignore_similarity=r.flag("ignoreSimilarity"),
        extra_data=r.mapping("extraData"),
        ioc=r.flag("ioc"),
        message=r.text("message"),
        sighted=r.flag("sighted"),
        start_date=r.unsigned("startDate"),
        tags=r.strings("tags"),
        tlp=r.integer("tlp"),
        reports=r.mapping("reports"),
    )


def _pattern(r: _Reader) -> PatternExtraData:
    return PatternExtraData(
        created_at=r.unsigned("_createdAt"),
        created_by=r.text("_createdBy"),
        underlining_id=r.text("_id"),
        underlining_type=r.text("_type"),
        data_sources=r.strings("dataSources"),
        defense_bypassed=r.strings("defenseBypassed"),
        description=r.text("description"),
        extra_data=r.mapping("extraData"),
        name=r.text("name"),
        pattern_id=r.text("patternId"),
        pattern_type=r.text("patternType"),
        permissions_required=r.strings("permissionsRequired"),
        platforms=r.strings("platforms"),
        remote_support=r.flag("remoteSupport"),
        revoked=r.flag("revoked"),
        system_requirements=r.strings("systemRequirements"),
        tactics=r.strings("tactics"),
        url=r.text("url"),
        version=r.text("version"),
    )


def _ttp(r: _Reader) -> TtpMessage:
    extra = r.child("extraData")
    return TtpMessage(
        created_at=r.unsigned("_createdAt"),
        created_by=r.text("_createdBy"),
        underlining_id=r.text("_id"),
        extra_data=ExtraDataTtp(
            pattern=_pattern(extra.child("pattern")),
            pattern_parent=_pattern(extra.child("patternParent")),
        ),
        occur_date=r.unsigned("occurDate"),
        pattern_id=r.text("patternId"),
        tactic=r.text("tactic"),
    )


@dataclass
class MainMessage:
    """A whole case message as received through the message bus."""

    source: SourceMessage = field(default_factory=SourceMessage)
    event: EventMessage = field(default_factory=EventMessage)
    observables: list[ObservableMessage] = field(default_factory=list)
    ttp: list[TtpMessage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MainMessage":
        """Build the message from its decoded JSON form.

        The source, event, observables and ttp members sit side by side at
        the top level. Raises TypeError for a member of the wrong type and
        ValueError for a negative date.
        """
        if not isinstance(data, Mapping):
            raise TypeError("message: expected a JSON object")
        r = _Reader(data, "")
        return cls(
            source=SourceMessage(source=r.text("source")),
            event=_event_message(r),
            observables=[
                _observable(_Reader(item, f"observables[{i}]"))
                for i, item in enumerate(r.objects("observables"))
            ],
            ttp=[
                _ttp(_Reader(item, f"ttp[{i}]"))
                for i, item in enumerate(r.objects("ttp"))
            ],
        )