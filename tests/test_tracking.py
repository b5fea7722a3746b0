from mispbridge.tracking import (
    DecodedField,
    ExclusionRule,
    ExclusionRules,
    MispGalaxyOptions,
    MispGalaxyTags,
    StorageValueName,
    get_obj_name,
)


def test_get_obj_name():
    assert get_obj_name("observables.attachment.name") == "observables"
    assert get_obj_name("event") == "event"
    assert get_obj_name("") == ""


def test_storage_value_name():
    svn = StorageValueName()
    svn.add("data")
    assert svn.contains("data")
    assert not svn.contains("dataType")
    svn.clean()
    assert not svn.contains("data")


def test_exclusion_rules_dedup():
    rules = ExclusionRules()
    rules.add(1, "observables.data")
    rules.add(1, "observables.dataType")
    rules.add(2, "observables.data")
    assert rules == [ExclusionRule(1, "observables"), ExclusionRule(2, "observables")]


def test_exclusion_rules_search():
    rules = ExclusionRules()
    rules.add(1, "observables.data")
    rules.add(1, "event.object.title")
    assert rules.search_object_name("observables.tags") == [ExclusionRule(1, "observables")]
    assert len(rules.search_seq_num(1)) == 2
    assert rules.search_seq_num(9) == []
    rules.clean()
    assert rules.search_seq_num(1) == []


def test_galaxy_tags_setters_merge():
    tags = MispGalaxyTags()
    tags.set_pattern_id(0, "T1036.005")
    tags.set_pattern_type(0, "attack-pattern")
    tags.set_name(0, "Masquerading")
    assert tags[0] == MispGalaxyOptions("Masquerading", "T1036.005", "attack-pattern")


def test_galaxy_options_missing_and_copy():
    tags = MispGalaxyTags()
    assert tags.get_galaxy_options(5) == MispGalaxyOptions()
    tags.set_name(1, "n")
    copy = tags.get_galaxy_options(1)
    copy.name = "other"
    assert tags[1].name == "n"


def test_decoded_field_defaults():
    item = DecodedField(field_name="source", value="s", field_branch="source")
    assert item.value_type == ""
    assert item.value == "s"