import asyncio

import pytest

from school_bot.callbacks import CALLBACK_DATA_LIMIT, Action, callback_data
from school_bot.database import Role, User
from school_bot.errors import IntegrityConflict, NotAuthorized, RequestNotFound, ValidationError
from school_bot.services.approvals import normalize_subject

pytestmark = pytest.mark.anyio

PARENT = 300
AVA = "1000000001"
SMITH = "2000000001"


def button_payloads(markup):
    return [button.callback_data for row in markup.inline_keyboard for button in row]


async def test_link_request_marks_both_sides_and_notifies_admins(services, school, bot):
    student = await services.approvals.request_parent_link(PARENT, "Dana", AVA)

    parent = school.find_user(PARENT)
    assert student.pending_parent_id == PARENT
    assert parent.role is Role.PARENT
    assert parent.pending_student_ids == [AVA]
    assert "Dana" in bot.texts_to(1)[0]
    assert button_payloads(bot.markups_to(1)[0]) == [
        callback_data(Action.APPROVE_PARENT, PARENT, AVA),
        callback_data(Action.DENY_PARENT, PARENT, AVA),
    ]


async def test_approval_links_parent_and_student(services, school, bot):
    await services.approvals.request_parent_link(PARENT, "Dana", AVA)

    await services.approvals.approve_parent_link(1, PARENT, AVA)

    parent = school.find_user(PARENT)
    student = school.find_student(AVA)
    assert student.parent_id == PARENT
    assert student.pending_parent_id is None
    assert parent.student_ids == [AVA]
    assert parent.pending_student_ids == []
    assert "approved" in bot.texts_to(PARENT)[-1]


async def test_approval_is_single_use(services, school):
    await services.approvals.request_parent_link(PARENT, "Dana", AVA)
    await services.approvals.approve_parent_link(1, PARENT, AVA)

    with pytest.raises(RequestNotFound):
        await services.approvals.approve_parent_link(1, PARENT, AVA)
    with pytest.raises(RequestNotFound):
        await services.approvals.deny_parent_link(1, PARENT, AVA)

    assert school.find_user(PARENT).student_ids == [AVA]


async def test_concurrent_approvals_apply_once(services, school):
    await services.approvals.request_parent_link(PARENT, "Dana", AVA)

    results = await asyncio.gather(
        services.approvals.approve_parent_link(1, PARENT, AVA),
        services.approvals.deny_parent_link(1, PARENT, AVA),
        return_exceptions=True,
    )

    assert sum(isinstance(result, RequestNotFound) for result in results) == 1
    assert school.find_student(AVA).pending_parent_id is None


async def test_denial_reverts_a_parent_without_links(services, school, bot):
    await services.approvals.request_parent_link(PARENT, "Dana", AVA)

    await services.approvals.deny_parent_link(1, PARENT, AVA)

    parent = school.find_user(PARENT)
    assert parent.role is Role.USER
    assert parent.pending_student_ids == []
    assert school.find_student(AVA).pending_parent_id is None
    assert "denied" in bot.texts_to(PARENT)[-1]


async def test_second_request_for_a_pending_student_is_rejected(services, school):
    await services.approvals.request_parent_link(PARENT, "Dana", AVA)

    with pytest.raises(IntegrityConflict):
        await services.approvals.request_parent_link(301, "Eli", AVA)

    assert school.find_user(301) is None


async def test_link_to_unknown_student_changes_nothing(services, school):
    with pytest.raises(ValidationError):
        await services.approvals.request_parent_link(PARENT, "Dana", "9999999999")
    assert school.find_user(PARENT) is None


async def test_link_another_student_requires_registration(services, school):
    with pytest.raises(ValidationError):
        await services.approvals.request_parent_link(PARENT, "Dana", AVA, registered_only=True)


async def test_only_admins_resolve_requests(services, school):
    await services.approvals.request_parent_link(PARENT, "Dana", AVA)

    with pytest.raises(NotAuthorized):
        await services.approvals.approve_parent_link(20, PARENT, AVA)

    assert school.find_student(AVA).pending_parent_id == PARENT


async def test_blocked_admin_does_not_stop_the_request(services, school, bot):
    school.add_user(User(identity=2, name="Deputy", role=Role.ADMIN))
    bot.blocked.add(1)

    await services.approvals.request_parent_link(PARENT, "Dana", AVA)

    assert bot.texts_to(1) == []
    assert len(bot.texts_to(2)) == 1
    assert school.find_student(AVA).pending_parent_id == PARENT


async def test_subject_request_and_approval_mirror_onto_user(services, school, bot):
    subject = await services.approvals.request_subject(20, "  Computer   Science ")

    assert subject == "Computer Science"
    assert school.find_teacher(SMITH).pending_subjects == ["Computer Science"]
    assert button_payloads(bot.markups_to(1)[0])[0] == "approve_subject_2000000001_Computer_Science"

    await services.approvals.approve_subject(1, SMITH, "Computer Science")

    assert school.find_teacher(SMITH).subjects == ["Math", "Computer Science"]
    assert school.find_teacher(SMITH).pending_subjects == []
    assert school.find_user(20).subjects == ["Math", "Computer Science"]


async def test_subject_denial_leaves_subjects_untouched(services, school):
    await services.approvals.request_subject(20, "Chemistry")

    await services.approvals.deny_subject(1, SMITH, "Chemistry")

    assert school.find_teacher(SMITH).subjects == ["Math"]
    assert school.find_teacher(SMITH).pending_subjects == []
    assert school.find_user(20).subjects == ["Math"]
    with pytest.raises(RequestNotFound):
        await services.approvals.approve_subject(1, SMITH, "Chemistry")


async def test_duplicate_subject_is_rejected_case_insensitively(services, school):
    await services.approvals.request_subject(20, "Chemistry")

    with pytest.raises(IntegrityConflict):
        await services.approvals.request_subject(20, "chemistry")
    with pytest.raises(IntegrityConflict):
        await services.approvals.request_subject(20, "MATH")

    assert school.find_teacher(SMITH).pending_subjects == ["Chemistry"]


async def test_subject_requests_need_a_registered_teacher(services, school):
    with pytest.raises(NotAuthorized):
        await services.approvals.request_subject(300, "Art")


@pytest.mark.parametrize(
    "raw", ["", "   ", "Home_Economics", "x" * 31, "x" * 32, "Литература и русский язык"]
)
def test_malformed_subjects_are_rejected(raw):
    with pytest.raises(ValidationError):
        normalize_subject(raw)


def test_longest_accepted_subject_fits_every_button():
    subject = normalize_subject("x" * 30)

    payload = callback_data(Action.ADD_STUDENT_TO_SUBJECT, "1000000001", subject)

    assert len(payload.encode("utf-8")) == CALLBACK_DATA_LIMIT


async def test_rejected_long_subject_leaves_no_pending_request(services, school, bot):
    with pytest.raises(ValidationError):
        await services.approvals.request_subject(20, "Литература и русский язык")

    assert school.find_teacher(SMITH).pending_subjects == []
    assert bot.texts_to(1) == []

    assert await services.approvals.request_subject(20, "Литература") == "Литература"
    assert button_payloads(bot.markups_to(1)[-1])[0] == "approve_subject_2000000001_Литература"
