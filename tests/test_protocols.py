import pytest
from pydantic import ValidationError

from wordrace.transport.protocols import OutError, parse_incoming


def test_parse_incoming_create_room():
    msg = parse_incoming({"type": "create_room", "username": "alice"})
    assert msg.type == "create_room"
    assert msg.username == "alice"
    assert msg.avatar is None


def test_parse_incoming_username_bounds():
    with pytest.raises(ValidationError):
        parse_incoming({"type": "join", "join_code": "ABC234", "username": ""})
    with pytest.raises(ValidationError):
        parse_incoming({"type": "join", "join_code": "ABC234", "username": "x" * 25})


def test_parse_incoming_submit_answers():
    msg = parse_incoming(
        {
            "type": "submit_answers",
            "room_id": "r1",
            "username": "bob",
            "answers": [{"category": "food", "word": "apple", "time_left": 0.5}],
        }
    )
    assert msg.type == "submit_answers"
    assert msg.answers[0].category == "food"
    assert msg.answers[0].time_left == 0.5


def test_parse_incoming_config_patch_is_partial():
    msg = parse_incoming(
        {"type": "update_config", "room_id": "r1", "username": "alice", "config": {"rounds_count": 3}}
    )
    assert msg.config.rounds_count == 3
    assert msg.config.supported_categories is None


def test_parse_incoming_unknown_type():
    with pytest.raises(ValueError):
        parse_incoming({"type": "does_not_exist"})


def test_parse_incoming_missing_type():
    with pytest.raises(ValueError):
        parse_incoming({"username": "alice"})


def test_error_event_shape():
    e = OutError(code="BAD_REQUEST", reason="room_full", message="Room is full").model_dump()
    assert e == {"type": "error", "code": "BAD_REQUEST", "reason": "room_full", "message": "Room is full"}


@pytest.mark.parametrize("time_left", [float("nan"), float("inf")])
def test_parse_incoming_rejects_non_finite_time_left(time_left):
    with pytest.raises(ValidationError):
        parse_incoming(
            {
                "type": "submit_answers",
                "room_id": "r1",
                "username": "bob",
                "answers": [{"category": "food", "word": "apple", "time_left": time_left}],
            }
        )
