import json

import pytest

from school_bot import messages
from school_bot.callbacks import Action, callback_data
from school_bot.database import Role, User

pytestmark = pytest.mark.anyio

AVA = "1000000001"
BEN = "1000000002"


def button_payloads(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


async def test_admin_adds_a_student_in_two_steps(chat, school):
    admin = chat(1, "Principal")

    await admin.say(messages.STUDENT_MANAGEMENT_LABELS["add_student"])
    assert admin.last == messages.PROMPTS["student_name"]

    await admin.say("Ava Stone")
    assert admin.scene == "add_student_class"
    assert admin.fields == {"new_student_name": "Ava Stone"}

    await admin.say("Grade 5")

    created = [student for student in school.list_students() if student.name == "Ava Stone"]
    assert len(created) == 1
    assert created[0].class_name == "Grade 5"
    assert created[0].student_id in admin.last
    assert admin.scene is None
    assert admin.fields == {}


async def test_parent_registration_and_approval(chat, school, bot):
    parent = chat(300, "Dana")
    admin = chat(1, "Principal")

    await parent.command("start")
    assert parent.last == messages.WELCOME_MESSAGE
    assert button_payloads(parent.last_markup) == ["register_teacher", "register_parent"]

    await parent.press("register_parent")
    await parent.say(AVA)
    assert "Ava" in parent.last
    assert parent.scene is None
    assert school.find_student(AVA).pending_parent_id == 300

    approve = callback_data(Action.APPROVE_PARENT, 300, AVA)
    assert approve in button_payloads(bot.markups_to(1)[-1])

    await admin.press(approve)
    assert admin.last == "✅ Parent Dana has been linked to student Ava."
    assert school.find_student(AVA).parent_id == 300
    assert school.find_user(300).role is Role.PARENT

    await admin.press(approve)
    assert admin.last == messages.ERRORS["request_not_found"]

    await parent.say(messages.PARENT_MENU_LABELS["grades"])
    assert "Ava" in parent.last


async def test_duplicate_pending_subject_keeps_the_teacher_in_the_scene(chat, school, bot):
    teacher = chat(20, "Mr Smith")

    await teacher.press("add_new_subject")
    await teacher.say("Chemistry")
    assert teacher.last == messages.SUCCESS["subject_requested"].format(subject="Chemistry")
    assert teacher.scene is None

    await teacher.press("add_new_subject")
    await teacher.say("chemistry")
    assert teacher.last == messages.ERRORS["duplicate_subject"].format(subject="chemistry")
    assert teacher.scene == "add_subject"
    assert school.find_teacher("2000000001").pending_subjects == ["Chemistry"]

    await teacher.command("cancel")
    assert teacher.scene is None
    assert teacher.last == messages.SUCCESS["scene_cancelled"]


async def test_overlong_subject_is_asked_again(chat, school, bot):
    teacher = chat(20, "Mr Smith")

    await teacher.press("add_new_subject")
    await teacher.say("Литература и русский язык")

    assert teacher.last == messages.ERRORS["subject_too_long"]
    assert teacher.scene == "add_subject"
    assert school.find_teacher("2000000001").pending_subjects == []

    await teacher.say("Литература")

    assert teacher.scene is None
    assert school.find_teacher("2000000001").pending_subjects == ["Литература"]
    assert "Литература" in bot.texts_to(1)[-1]


async def test_admin_unbinds_a_parent(chat, school):
    parent = school.add_user(User(identity=300, name="Dana", role=Role.PARENT, student_ids=[AVA]))
    school.find_student(AVA).parent_id = parent.identity
    admin = chat(1, "Principal")

    await admin.say(messages.STUDENT_MANAGEMENT_LABELS["unbind_parent"])
    await admin.say("300")

    assert admin.last == messages.SUCCESS["parent_unbound"].format(identity="300")
    assert school.find_student(AVA).parent_id is None
    assert school.find_user(300).role is Role.USER


async def test_unbind_of_unknown_parent_asks_again(chat, school):
    admin = chat(1, "Principal")

    await admin.say(messages.STUDENT_MANAGEMENT_LABELS["unbind_parent"])
    await admin.say("12345")

    assert admin.last == messages.ERRORS["parent_not_found"]
    assert admin.scene == "unbind_parent"


async def test_admin_login_with_the_secret_code(chat, school):
    visitor = chat(50, "Eve")

    await visitor.command("admin")
    assert visitor.last == messages.PROMPTS["admin_code"]
    await visitor.say("guess")
    assert visitor.last == messages.ERRORS["invalid_code"]
    assert school.find_user(50) is None

    await visitor.command("admin")
    await visitor.say("letmein")
    assert visitor.last == messages.SUCCESS["admin_login"]
    assert school.find_user(50).is_admin

    await visitor.command("admin")
    assert visitor.last == messages.ADMIN_PANEL_TITLE


async def test_stale_and_forged_callbacks_change_nothing(chat, school):
    parent = chat(300, "Dana")

    await parent.press("select_subject_Math")
    assert parent.last == messages.ERRORS["request_not_found"]

    await parent.press("approve_parent_300_1000000001; drop")
    assert parent.last == messages.ERRORS["request_not_found"]

    await parent.press(callback_data(Action.APPROVE_PARENT, 300, AVA))
    assert parent.last == messages.ERRORS["not_authorized"]
    assert school.find_student(AVA).parent_id is None


async def test_teacher_registration_chains_into_a_subject_request(chat, school, bot):
    newcomer = chat(40, "Jo")

    await newcomer.press("register_teacher")
    await newcomer.say("2000000002")
    assert newcomer.scene == "register_teacher_subject"
    assert school.find_user(40).role is Role.TEACHER

    await newcomer.say("Home_Ec")
    assert newcomer.last == messages.ERRORS["subject_underscore"]
    assert newcomer.scene == "register_teacher_subject"

    await newcomer.say("Art")
    assert newcomer.scene is None
    assert school.find_teacher("2000000002").pending_subjects == ["Art"]
    assert "Art" in bot.texts_to(1)[-1]


async def test_invalid_teacher_code_leaves_the_scene(chat, school):
    newcomer = chat(40, "Jo")

    await newcomer.press("register_teacher")
    await newcomer.say("2000000001")

    assert newcomer.last == messages.ERRORS["invalid_teacher_code"]
    assert newcomer.scene is None


async def test_teacher_adds_and_edits_a_grade(chat, school):
    teacher = chat(20, "Mr Smith")

    await teacher.press(callback_data(Action.MANAGE_GRADES, AVA))
    assert button_payloads(teacher.last_markup) == ["select_subject_Math"]

    await teacher.press("select_subject_Math")
    await teacher.say("A")
    await teacher.say("Quiz")
    grades = school.find_student(AVA).grades["math"]
    assert [(grade.score, grade.purpose) for grade in grades] == [("A", "Quiz")]
    assert teacher.scene is None
    assert teacher.fields == {}

    await teacher.press(callback_data(Action.MANAGE_GRADES, AVA))
    await teacher.press("select_subject_Math")
    history = teacher.replies[-2]
    assert "Score: A" in history[0]
    edit_payload = button_payloads(history[1])[0]
    assert edit_payload == callback_data(Action.EDIT_GRADE, grades[0].grade_id)

    await teacher.press(edit_payload)
    assert teacher.scene == "edit_grade"
    await teacher.say("A+")
    await teacher.say("Quiz (regraded)")

    grades = school.find_student(AVA).grades["math"]
    assert [(grade.score, grade.purpose) for grade in grades] == [("A+", "Quiz (regraded)")]
    assert teacher.fields == {}


async def test_button_for_a_dropped_subject_shows_no_history(chat, school, services):
    school.find_teacher("2000000001").subjects.append("Physics")
    teacher = chat(20, "Mr Smith")
    await teacher.press(callback_data(Action.MANAGE_GRADES, AVA))
    assert button_payloads(teacher.last_markup) == ["select_subject_Math", "select_subject_Physics"]

    await services.staff.remove_own_subject(20, "Math")
    await teacher.press("select_subject_Math")

    assert teacher.last == messages.ERRORS["request_not_found"]
    assert teacher.scene == "manage_grades"
    assert "current_subject" not in teacher.fields

    await teacher.press("select_subject_Physics")
    assert teacher.scene == "enter_grade_score"
    assert teacher.fields["current_subject"] == "Physics"


async def test_menu_button_escapes_an_unfinished_scene(chat, school):
    teacher = chat(20, "Mr Smith")
    await teacher.press(callback_data(Action.MANAGE_GRADES, AVA))
    await teacher.press("select_subject_Math")
    assert teacher.scene == "enter_grade_score"

    await teacher.say(messages.TEACHER_MENU_LABELS["my_students"])

    assert teacher.scene is None
    assert teacher.fields == {}
    assert school.find_student(AVA).grades == {}


async def test_teacher_enrolls_a_student_and_sees_the_roster(chat, school):
    teacher = chat(20, "Mr Smith")

    await teacher.press("teacher_add_student")
    await teacher.say(BEN)
    assert callback_data(Action.ADD_STUDENT_TO_SUBJECT, BEN, "Math") in button_payloads(teacher.last_markup)

    await teacher.press(callback_data(Action.ADD_STUDENT_ALL_SUBJECTS, AVA))
    assert teacher.last == messages.ERRORS["request_not_found"]

    await teacher.press(callback_data(Action.ADD_STUDENT_TO_SUBJECT, BEN, "Math"))
    assert teacher.scene is None

    await teacher.say(messages.TEACHER_MENU_LABELS["my_students"])
    assert "Ben" in teacher.last


async def test_class_announcement_reaches_roster_parents(chat, school, bot):
    school.add_user(User(identity=300, name="Dana", role=Role.PARENT, student_ids=[AVA]))
    ava = school.find_student(AVA)
    ava.parent_id = 300
    ava.grades["math"] = []
    teacher = chat(20, "Mr Smith")

    await teacher.say(messages.TEACHER_MENU_LABELS["announce"])
    assert button_payloads(teacher.last_markup) == ["announce_subject_Math"]

    await teacher.press("announce_subject_Math")
    await teacher.say("Test on Friday")

    assert teacher.last == messages.SUCCESS["class_announcement_sent"].format(count=1)
    assert "Test on Friday" in bot.texts_to(300)[-1]


async def test_direct_message_to_blocked_parent_is_reported(chat, school, bot):
    school.add_user(User(identity=300, name="Dana", role=Role.PARENT, student_ids=[AVA]))
    school.find_student(AVA).parent_id = 300
    bot.blocked.add(300)
    teacher = chat(20, "Mr Smith")

    await teacher.say(messages.TEACHER_MENU_LABELS["contact_parent"])
    await teacher.say(AVA)
    await teacher.say("Please call me")

    assert teacher.last == messages.ERRORS["delivery_failed"]
    assert teacher.scene is None
    assert teacher.fields == {}


async def test_admin_announcement_to_teachers(chat, school, bot):
    admin = chat(1, "Principal")

    await admin.say(messages.ADMIN_MENU_LABELS["announcements"])
    await admin.press("announce_teachers")
    await admin.say("")
    assert admin.last == messages.ERRORS["empty_announcement"]

    await admin.say("Staff meeting at 3pm")

    assert "Staff meeting at 3pm" in bot.texts_to(20)[-1]
    assert admin.last == messages.SUCCESS["announcement_sent"].format(target="teachers", count=1)
    assert admin.fields == {}


async def test_admin_uploads_a_student_list(chat, school, dispatcher):
    admin = chat(1, "Principal")
    assert not dispatcher.accepts_documents(1)

    await admin.say(messages.STUDENT_MANAGEMENT_LABELS["upload"])
    assert dispatcher.accepts_documents(1)

    await admin.upload(json.dumps([{"name": "Cleo", "class": "Grade 3"}]).encode("utf-8"))

    assert admin.last == messages.SUCCESS["students_imported"].format(count=1)
    assert any(student.name == "Cleo" for student in school.list_students())


async def test_admin_edits_a_student_name(chat, school):
    admin = chat(1, "Principal")

    await admin.say(messages.STUDENT_MANAGEMENT_LABELS["edit_student"])
    await admin.say(AVA)
    await admin.press("edit_student_name")
    assert admin.scene == "edit_student_name"
    await admin.say("Ava Marie")

    assert school.find_student(AVA).name == "Ava Marie"
    assert admin.fields == {}


async def test_menu_buttons_check_the_role(chat, school):
    teacher = chat(20, "Mr Smith")

    await teacher.say(messages.ADMIN_MENU_LABELS["students"])

    assert teacher.last == messages.ERRORS["not_authorized"]
    assert teacher.scene is None


async def test_teacher_search_offers_grade_buttons(chat, school):
    teacher = chat(20, "Mr Smith")

    await teacher.say(messages.TEACHER_MENU_LABELS["search"])
    await teacher.say("ben")

    assert "Ben" in teacher.last
    assert button_payloads(teacher.last_markup) == [callback_data(Action.MANAGE_GRADES, BEN)]
