import re
from datetime import datetime

import pytest

from mispbridge.attributes import AttributesMisp, AttributesMispList, handling_list_tags


def _parse(text):
    return datetime.fromisoformat(text.replace("Z", "+00:00"))


def test_new_attribute_defaults():
    attrs = AttributesMispList()
    attrs.set_comment("note", 0)
    attr = attrs.get(0)
    assert attr.category == "Other"
    assert attr.type == "other"
    assert attr.timestamp == "0"
    assert attr.distribution == "2"
    assert attr.sharing_group_id == "1"
    assert attr.to_ids is True
    assert attr.comment == "note"
    assert re.fullmatch(r"\d{4}-\d\d-\d\dT\d\d:\d\d:\d\d(Z|[+-]\d\d:\d\d)", attr.first_seen)


def test_uuids_are_unique():
    assert AttributesMisp().uuid != AttributesMisp().uuid or False
    first, second = AttributesMisp(), AttributesMisp()
    assert len({first.uuid, second.uuid}) == 2


def test_sensor_ip_value_is_split():
    attrs = AttributesMispList()
    attrs.set_value("8030073:193.29.19.55", 1)
    attr = attrs.get(1)
    assert attr.value == "193.29.19.55"
    assert attr.category == "Network activity"
    assert attr.type == "other"


def test_plain_value_kept():
    attrs = AttributesMispList()
    attrs.set_value("example.com", 2)
    assert attrs.get(2).value == "example.com"
    assert attrs.get(2).category == "Other"


@pytest.mark.parametrize(
    "data_type, category, type_name",
    [
        ("sha256", "Payload delivery", "sha256"),
        ("ja3", "Payload delivery", "ja3-fingerprint-md5"),
        ("snort_sid", "Network activity", "snort"),
        ("domain", "Network activity", "domain"),
    ],
)
def test_handle_data_type(data_type, category, type_name):
    attrs = AttributesMispList()
    attrs.handle_data_type(data_type, 0)
    attr = attrs.get(0)
    assert (attr.category, attr.type) == (category, type_name)
    assert attr.object_relation == ""


def test_handle_data_type_ip_home_sets_relation():
    attrs = AttributesMispList()
    attrs.handle_data_type("ip_home", 3)
    assert attrs.get(3).object_relation == "ip_home"
    assert attrs.get(3).category == "Network activity"


def test_unknown_data_type_leaves_defaults():
    attrs = AttributesMispList()
    attrs.handle_data_type("unknown", 0)
    assert attrs.get(0).type == "other"


def test_timestamp_takes_leading_digits():
    attrs = AttributesMispList()
    attrs.set_timestamp(1690000000123, 0)
    assert attrs.get(0).timestamp == "1690000000"
    attrs.set_timestamp("not a number", 0)
    assert attrs.get(0).timestamp == "1690000000"


def test_first_and_last_seen_from_millis():
    attrs = AttributesMispList()
    attrs.set_first_seen(1690000000123.0, 0)
    attrs.set_last_seen(0, 0)
    assert _parse(attrs.get(0).first_seen).timestamp() == 1690000000
    assert _parse(attrs.get(0).last_seen).timestamp() == 0


def test_bool_setters_ignore_other_types():
    attrs = AttributesMispList()
    attrs.set_to_ids("false", 0)
    assert attrs.get(0).to_ids is True
    attrs.set_to_ids(False, 0)
    attrs.set_deleted(True, 0)
    attrs.set_disable_correlation(True, 0)
    attr = attrs.get(0)
    assert (attr.to_ids, attr.deleted, attr.disable_correlation) == (False, True, True)


def test_text_setters_render_numbers():
    attrs = AttributesMispList()
    attrs.set_object_id(5.0, 0)
    attrs.set_event_id(7, 0)
    attrs.set_distribution(True, 0)
    attr = attrs.get(0)
    assert attr.object_id == "5"
    assert attr.event_id == "7"
    assert attr.distribution == "true"


def test_delete_and_clean():
    attrs = AttributesMispList()
    attrs.set_value("a", 0)
    attrs.set_value("b", 1)
    removed = attrs.delete(0)
    assert removed.value == "a"
    assert attrs.delete(0) is None
    assert len(attrs) == 1
    attrs.clean()
    assert len(attrs) == 0


def test_as_dict_returns_copies():
    attrs = AttributesMispList()
    attrs.set_value("a", 4)
    snapshot = attrs.as_dict()
    snapshot[4].value = "changed"
    assert attrs.get(4).value == "a"
    assert list(snapshot) == [4]


def test_to_dict_uses_misp_names():
    attr = AttributesMisp(value="v")
    data = attr.to_dict()
    assert data["value"] == "v"
    assert data["sharing_group_id"] == "1"
    assert set(data) >= {"to_ids", "object_relation", "first_seen", "last_seen"}


def test_handling_list_tags():
    tags = ['misp:Network activity="snort"', "other", 'misp:x="y', 'misp:a="b"']
    assert handling_list_tags(tags) == [("Network activity", "snort"), ("a", "b")]


def test_handling_list_tags_empty():
    assert handling_list_tags([]) == []