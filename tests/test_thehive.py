import pytest

from mispbridge.thehive import (
    EventObject,
    MainMessage,
    ResponseCommand,
    ResponseMessage,
)


def _sample():
    return {
        "source": "GCM",
        "operation": "update",
        "objectId": "~obj1",
        "objectType": "case",
        "base": True,
        "startDate": 1690000000000,
        "rootId": "~root1",
        "requestId": "req-1",
        "details": {
            "endDate": 1690000005000,
            "status": "Resolved",
            "customFields": {"class-attack": {"string": "scan"}},
        },
        "object": {
            "_id": "~case1",
            "caseId": 34411,
            "title": "Case title",
            "severity": 2,
            "tags": ["ATs:reason=\"x\"", "Sensor:id=\"1\""],
            "flag": False,
            "tlp": 2,
            "owner": "owner@example.com",
            "stats": {"n": 1},
            "permissions": ["manageCase"],
        },
        "organisationId": "~org",
        "organisation": "org",
        "observables": [
            {
                "_createdAt": 1690000000001,
                "_id": "~obs1",
                "data": "8.8.8.8",
                "dataType": "ip",
                "ioc": True,
                "tags": ["misp:Network activity=\"ip-src\""],
                "reports": {"Drill_1_2": {"taxonomies": [{"level": "info"}]}},
            },
            {"data": "example.com", "dataType": "domain"},
        ],
        "ttp": [
            {
                "_id": "~ttp1",
                "occurDate": 1690000000002,
                "patternId": "T1036.005",
                "tactic": "defense-evasion",
                "extraData": {
                    "pattern": {
                        "patternId": "T1036.005",
                        "patternType": "attack-pattern",
                        "name": "Match Legitimate Name or Location",
                        "platforms": ["Linux"],
                        "revoked": False,
                    },
                    "patternParent": {"patternId": "T1036"},
                },
            }
        ],
    }


def test_from_dict_reads_top_level_parts():
    msg = MainMessage.from_dict(_sample())
    assert msg.source.source == "GCM"
    assert msg.event.operation == "update"
    assert msg.event.base is True
    assert msg.event.start_date == 1690000000000
    assert msg.event.root_id == "~root1"
    assert msg.event.organisation_id == "~org"


def test_from_dict_reads_details_and_object():
    msg = MainMessage.from_dict(_sample())
    assert msg.event.details.end_date == 1690000005000
    assert msg.event.details.custom_fields == {"class-attack": {"string": "scan"}}
    obj = msg.event.object
    assert obj.underlining_id == "~case1"
    assert obj.case_id == 34411
    assert obj.tags == ["ATs:reason=\"x\"", "Sensor:id=\"1\""]
    assert obj.owner == "owner@example.com"
    assert obj.permissions == ["manageCase"]


def test_from_dict_reads_observables_in_order():
    msg = MainMessage.from_dict(_sample())
    assert [o.data for o in msg.observables] == ["8.8.8.8", "example.com"]
    first = msg.observables[0]
    assert first.created_at == 1690000000001
    assert first.ioc is True
    assert first.reports["Drill_1_2"]["taxonomies"][0]["level"] == "info"
    assert msg.observables[1].tags == []


def test_from_dict_reads_ttp_patterns():
    msg = MainMessage.from_dict(_sample())
    ttp = msg.ttp[0]
    assert ttp.pattern_id == "T1036.005"
    assert ttp.occur_date == 1690000000002
    assert ttp.extra_data.pattern.pattern_type == "attack-pattern"
    assert ttp.extra_data.pattern.platforms == ["Linux"]
    assert ttp.extra_data.pattern_parent.pattern_id == "T1036"


def test_empty_message_gives_zero_values():
    msg = MainMessage.from_dict({})
    assert msg.observables == [] and msg.ttp == []
    assert msg.event.object == EventObject()
    assert msg.event.start_date == 0


def test_null_members_give_zero_values():
    msg = MainMessage.from_dict({"object": None, "observables": None, "source": None})
    assert msg.source.source == ""
    assert msg.observables == []
    assert msg.event.object.case_id == 0


def test_wrong_type_is_rejected():
    with pytest.raises(TypeError):
        MainMessage.from_dict({"source": 5})


def test_float_for_integer_is_rejected():
    with pytest.raises(TypeError):
        MainMessage.from_dict({"object": {"caseId": 1.5}})


def test_bool_for_integer_is_rejected():
    with pytest.raises(TypeError):
        MainMessage.from_dict({"object": {"tlp": True}})


def test_negative_date_is_rejected():
    with pytest.raises(ValueError):
        MainMessage.from_dict({"startDate": -1})


def test_non_object_observable_is_rejected():
    with pytest.raises(TypeError):
        MainMessage.from_dict({"observables": ["x"]})


def test_non_mapping_message_is_rejected():
    with pytest.raises(TypeError):
        MainMessage.from_dict(["source"])


def test_response_message_to_dict():
    reply = ResponseMessage(success=True, service="MISP")
    reply.add_command(ResponseCommand(command="addtag", string="Webhook: send=\"MISP\""))
    reply.add_command(ResponseCommand(command="setcustomfield", name="misp-event-id", string="12"))
    data = reply.to_dict()
    assert data["success"] is True
    assert data["service"] == "MISP"
    assert data["error"] is None
    assert data["commands"] == [
        {"command": "addtag", "string": "Webhook: send=\"MISP\"", "name": ""},
        {"command": "setcustomfield", "string": "12", "name": "misp-event-id"},
    ]


def test_response_message_error_is_rendered_as_text():
    reply = ResponseMessage(error=RuntimeError("no connection"))
    assert reply.to_dict()["error"] == "no connection"