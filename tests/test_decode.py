import pytest

from mispbridge.decode import (
    DecodeError,
    decode_message,
    process_list,
    process_map,
    process_simple,
)


def test_decode_nested_object():
    fields = decode_message(b'{"event": {"object": {"title": "x"}}}')
    assert len(fields) == 1
    assert fields[0].field_branch == "event.object.title"
    assert fields[0].field_name == "title"
    assert fields[0].value_type == "string"
    assert fields[0].value == "x"


def test_decode_numbers_are_floats():
    fields = decode_message('{"caseId": 34}')
    assert fields[0].value == 34.0
    assert isinstance(fields[0].value, float)
    assert fields[0].value_type == "float"


def test_decode_bool():
    fields = decode_message('{"flag": true}')
    assert fields[0].value is True
    assert fields[0].value_type == "bool"


def test_decode_top_level_array():
    fields = decode_message('[{"source": "s"}]')
    assert [(f.field_branch, f.value) for f in fields] == [("source", "s")]


def test_list_scalars_named_by_index():
    fields = decode_message('{"tags": ["t1", "t2"]}')
    assert [(f.field_name, f.field_branch, f.value) for f in fields] == [
        ("0", "tags", "t1"),
        ("1", "tags", "t2"),
    ]


def test_nested_lists_keep_branch():
    fields = decode_message('{"a": [["p", "q"]]}')
    assert [(f.field_name, f.field_branch) for f in fields] == [("0", "a"), ("1", "a")]


def test_list_of_objects_uses_list_branch():
    fields = decode_message('{"observables": [{"data": "d1"}, {"data": "d2"}]}')
    assert [f.field_branch for f in fields] == ["observables.data", "observables.data"]
    assert [f.value for f in fields] == ["d1", "d2"]


def test_null_ends_map_walk():
    fields = list(process_map({"a": "1", "b": None, "c": "2"}, ""))
    assert [f.field_name for f in fields] == ["a"]


def test_null_in_nested_map_only_stops_that_map():
    fields = list(process_map({"x": {"a": None, "b": "v"}, "y": "w"}, ""))
    assert [f.field_branch for f in fields] == ["y"]


def test_null_ends_list_walk():
    fields = list(process_list(["a", None, "b"], "root"))
    assert [f.value for f in fields] == ["a"]


@pytest.mark.parametrize("data", [b"{}", b"[]", b"null", b"not json", b"5", b'"text"'])
def test_decode_errors(data):
    with pytest.raises(DecodeError):
        decode_message(data)


def test_process_simple_int_name():
    item = process_simple(3, "v", "branch")
    assert item.field_name == "3"
    assert item.field_branch == "branch"
    assert item.value_type == "string"


def test_process_simple_int_value():
    assert process_simple("n", 7, "b").value_type == "int"


def test_process_simple_unsupported():
    assert process_simple("n", None, "b") is None
    assert process_simple("n", {"k": "v"}, "b") is None