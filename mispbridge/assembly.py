"""Helpers that turn collected observable data into the pieces of a MISP event."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional

from mispbridge.attributes import AttributesMisp, AttributesMispList, _to_text
from mispbridge.common import EventObjectTags
from mispbridge.objects import AttributeMisp, ObjectsMisp
from mispbridge.tags import check_misp_observables_tag, get_type_name_observables_tag
from mispbridge.tracking import DecodedField, ExclusionRules, MispGalaxyTags

log = logging.getLogger(__name__)

_HASH_NAMES = frozenset(
    ("md5", "sha1", "sha128", "sha224", "sha256", "sha384", "sha512", "ja3")
)

_PATTERN_ID = "ttp.extraData.pattern.patternId"
_PATTERN_TYPE = "ttp.extraData.pattern.patternType"
_PATTERN_NAME = "ttp.extraData.pattern.name"


def del_element_attributes(
    rules: ExclusionRules, attributes: AttributesMispList
) -> list[AttributesMisp]:
    """Remove the attributes of observables named by the exclusion rules.

    Returns the attributes that were removed.
    """
    removed = []
    for rule in rules.search_object_name("observables"):
        attr = attributes.delete(rule.sequence_number)
        if attr is not None:
            log.warning("an attribute with a value of '%s' has been removed", attr.value)
            removed.append(attr)
    return removed


def handle_observables_tags(
    value: Any,
    list_tags: dict[int, tuple[str, str]],
    attributes: AttributesMispList,
    seq_num: int,
) -> dict[int, tuple[str, str]]:
    """Apply an ``observables.tags`` value to the observable ``seq_num``.

    A ``misp:<category>="<type>"`` tag is stored in ``list_tags``; a type tag
    sets the attribute's object relation and, for hash names, its category.
    """
    if not isinstance(value, str):
        return list_tags

    try:
        list_tags[seq_num] = check_misp_observables_tag(value)
    except ValueError:
        name = get_type_name_observables_tag(value)
        if not name:
            return list_tags
        attributes.set_object_relation(name, seq_num)
        if check_hash_name(name):
            attributes.auto_set_category(name, seq_num)

    return list_tags


@dataclass
class _RuleOption:
    field_name: str
    value: str
    is_equal: bool


class SupportiveExcludeRule:
    """Matches of exclusion rules, grouped by observable number."""

    def __init__(self) -> None:
        self.rules: dict[int, list[_RuleOption]] = {}

    def add(self, num: int, field_name: str, value: str, is_equal: bool) -> None:
        """Record a match for observable ``num``; non-matches are ignored."""
        if not is_equal:
            return
        self.rules.setdefault(num, []).append(_RuleOption(field_name, value, is_equal))

    def check_rule_true(self, num: int) -> bool:
        """Tell whether every recorded condition for ``num`` matched."""
        options = self.rules.get(num)
        if options is None:
            return False
        return all(option.is_equal for option in options)


def _search(item: DecodedField, branch: str, kind: type) -> Optional[Any]:
    if item.field_branch != branch or not isinstance(item.value, kind):
        return None
    if kind is float and isinstance(item.value, bool):
        return None
    return item.value


def search_event_source(item: DecodedField) -> Optional[str]:
    """Return the event source carried by ``item``, if it is one."""
    return _search(item, "source", str)


def search_case_id(item: DecodedField) -> Optional[float]:
    """Return the case id carried by ``item``, if it is one."""
    return _search(item, "event.object.caseId", float)


def search_owner_email(item: DecodedField) -> Optional[str]:
    """Return the event owner's e-mail carried by ``item``, if it is one."""
    return _search(item, "event.object.owner", str)


def get_new_list_attributes(
    attributes: Mapping[int, AttributesMisp],
    list_tags: Mapping[int, tuple[str, str]],
) -> list[AttributesMisp]:
    """Merge user tags into the attributes and settle correlation.

    A tag's category and type override the automatic ones and clear the
    object relation; ``other`` and ``snort`` attributes without a specific
    relation get correlation disabled.
    """
    result = []
    for num, attr in attributes.items():
        attr = dataclasses.replace(attr)
        tag = list_tags.get(num)
        if tag is not None:
            attr.category, attr.type = tag
            attr.object_relation = ""

        if attr.type in ("other", "snort") and attr.object_relation in ("", "snort"):
            attr.disable_correlation = True

        result.append(attr)
    return result


def galaxy_tags_collector(galaxy_tags: MispGalaxyTags) -> Callable[[str, Any], None]:
    """Return a handler that fills ``galaxy_tags`` from TTP pattern fields.

    A field seen again starts a new galaxy entry.
    """
    num = 0
    seen: list[str] = []
    setters = {
        _PATTERN_ID: galaxy_tags.set_pattern_id,
        _PATTERN_TYPE: galaxy_tags.set_pattern_type,
        _PATTERN_NAME: galaxy_tags.set_name,
    }

    def collect(field_branch: str, value: Any) -> None:
        nonlocal num, seen
        text = _to_text(value)
        if field_branch in seen:
            num += 1
            seen = []

        setter = setters.get(field_branch)
        if setter is not None:
            setter(num, text)
            seen.append(field_branch)

    return collect


def create_galaxy_tags(galaxy_tags: MispGalaxyTags) -> list[str]:
    """Build the tags MISP uses to attach MITRE galaxies to an event."""
    return [
        f'misp-galaxy:mitre-{options.pattern_type}="{options.name} - {options.pattern_id}"'
        for options in galaxy_tags.values()
    ]


def get_new_list_objects(
    objects: Mapping[int, ObjectsMisp],
    attachment: Mapping[int, list[AttributeMisp]],
) -> dict[int, ObjectsMisp]:
    """Attach collected attributes to their objects; objects without any are dropped."""
    result = {}
    for num, attrs in attachment.items():
        obj = objects.get(num)
        if obj is not None:
            result[num] = dataclasses.replace(obj, attribute=list(attrs))
    return result


def join_event_tags(tags: EventObjectTags, galaxy_tags: Iterable[str]) -> None:
    """Add the galaxy tags to the event tags."""
    for tag in galaxy_tags:
        tags.set_tag(tag)


def check_hash_name(name: str) -> bool:
    """Tell whether ``name`` is the name of a known hash algorithm."""
    return name in _HASH_NAMES