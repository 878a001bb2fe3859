import pytest

from school_bot.callbacks import Action, CallbackCommand, callback_data


def test_plain_actions_round_trip():
    payload = callback_data(Action.REGISTER_PARENT)

    assert payload == "register_parent"
    assert CallbackCommand.parse(payload) == CallbackCommand.of(Action.REGISTER_PARENT)


def test_parent_approval_carries_both_ids():
    payload = callback_data(Action.APPROVE_PARENT, 555, "1234567890")

    assert payload == "approve_parent_555_1234567890"
    command = CallbackCommand.parse(payload)
    assert command.action is Action.APPROVE_PARENT
    assert command.args == (555, "1234567890")


def test_subject_spaces_are_encoded():
    payload = callback_data(Action.APPROVE_SUBJECT, "2000000001", "Computer Science")

    assert payload == "approve_subject_2000000001_Computer_Science"
    assert CallbackCommand.parse(payload).args == ("2000000001", "Computer Science")


def test_subject_removal_does_not_collide_with_remove_subject():
    assert CallbackCommand.parse("subject_removal").action is Action.SUBJECT_REMOVAL
    command = CallbackCommand.parse("remove_subject_Math")
    assert command.action is Action.REMOVE_SUBJECT
    assert command.args == ("Math",)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "",
        "approve_parent",
        "approve_parent_abc_1234567890",
        "approve_parent_5_123",
        "approve_parent_5_1234567890\n",
        "manage_grades_12345678901",
        "edit_grade_not-a-token",
        "drop_tables",
        "x" * 65,
    ],
)
def test_parse_rejects_payloads_outside_the_schema(payload):
    assert CallbackCommand.parse(payload) is None


def test_encode_rejects_bad_arguments():
    with pytest.raises(ValueError):
        callback_data(Action.MANAGE_GRADES, "42")
    with pytest.raises(ValueError):
        callback_data(Action.APPROVE_PARENT, 5)
    with pytest.raises(ValueError):
        callback_data(Action.SELECT_SUBJECT, "under_score")


def test_encode_enforces_telegram_limit():
    with pytest.raises(ValueError):
        callback_data(Action.ADD_STUDENT_TO_SUBJECT, "1000000001", "A" * 40)
