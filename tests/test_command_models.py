from tlsrelay.models.command_models import CommandRecord, SENDER_UNKNOWN, command_code


def test_missing_sender_defaults_to_null_sentinel():
    record = CommandRecord.from_payload({"command": 2}, "stop")

    assert record.sender == SENDER_UNKNOWN == "NULL"
    assert record.otp is None


def test_otp_is_carried_through_uninterpreted():
    record = CommandRecord.from_payload({"command": 1, "otp-auth": "abcd", "sender": "x"}, "open")

    assert record.otp == "abcd"
    assert record.sender == "x"


def test_zero_is_a_present_command():
    assert command_code({"command": 0}) == 0


def test_absent_or_invalid_command():
    assert command_code({"sender": "deviceA"}) is None
    assert command_code({"command": None}) is None
    assert command_code({"command": "1"}) is None
    assert command_code({"command": True}) is None
