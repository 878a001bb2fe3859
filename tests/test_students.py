import json

import pytest

from school_bot.database import Role, User
from school_bot.errors import IntegrityConflict, NotAuthorized, ValidationError

pytestmark = pytest.mark.anyio

AVA = "1000000001"
BEN = "1000000002"


def link(repository, parent_id, *student_ids):
    parent = repository.find_user(parent_id) or repository.add_user(
        User(identity=parent_id, name=f"Parent {parent_id}", role=Role.PARENT)
    )
    for student_id in student_ids:
        repository.find_student(student_id).parent_id = parent_id
        parent.student_ids.append(student_id)
    return parent


async def test_added_students_get_the_default_schedule(services, school):
    student = await services.students.add_student(" Cleo ", "Grade 3")

    assert student.name == "Cleo"
    assert student.schedule == {"monday": "N/A", "tuesday": "N/A"}
    assert school.find_student(student.student_id) is student


async def test_import_links_known_parents_and_drops_unknown_ones(services, school):
    link(school, 300)
    payload = json.dumps(
        [
            {"name": "Cleo", "class": "Grade 3", "parentId": 300},
            {"name": "Dan", "class": "Grade 4", "parentId": 999},
            {"name": "No class"},
            "not an object",
        ]
    ).encode("utf-8")

    added = await services.students.import_students(payload)

    assert [student.name for student in added] == ["Cleo", "Dan"]
    assert added[0].parent_id == 300
    assert added[0].student_id in school.find_user(300).student_ids
    assert added[1].parent_id is None


@pytest.mark.parametrize("payload", [b"{not json", b'{"name": "Cleo"}'])
async def test_import_rejects_anything_but_a_json_array(services, school, payload):
    with pytest.raises(ValidationError):
        await services.students.import_students(payload)
    assert len(school.list_students()) == 2


async def test_removing_a_student_unlinks_the_parent(services, school):
    link(school, 300, AVA)

    await services.students.remove_student(AVA)

    parent = school.find_user(300)
    assert school.find_student(AVA) is None
    assert parent.student_ids == []
    assert parent.role is Role.USER


async def test_unbind_clears_both_sides(services, school):
    link(school, 300, AVA, BEN)

    affected = await services.students.unbind_parent("300")

    assert {student.student_id for student in affected} == {AVA, BEN}
    assert school.find_student(AVA).parent_id is None
    assert school.find_student(BEN).parent_id is None
    assert school.find_user(300).student_ids == []
    assert school.find_user(300).role is Role.USER


async def test_unbind_requires_a_parent(services, school):
    with pytest.raises(ValidationError):
        await services.students.unbind_parent("20")


async def test_reassign_moves_the_student_between_parents(services, school):
    link(school, 300, AVA)
    link(school, 301)

    await services.students.reassign_parent(AVA, "301")

    assert school.find_student(AVA).parent_id == 301
    assert school.find_user(301).student_ids == [AVA]
    assert school.find_user(300).student_ids == []


async def test_reassign_rejects_non_parents(services, school):
    with pytest.raises(ValidationError):
        await services.students.reassign_parent(AVA, "20")
    assert school.find_student(AVA).parent_id is None


async def test_register_teacher_links_the_record(services, school):
    teacher = await services.staff.register_teacher(40, "Jo", "2000000002")

    user = school.find_user(40)
    assert teacher.user_id == 40
    assert user.role is Role.TEACHER


async def test_teacher_codes_are_single_use(services, school):
    with pytest.raises(IntegrityConflict):
        await services.staff.register_teacher(40, "Jo", "2000000001")
    with pytest.raises(IntegrityConflict):
        await services.staff.register_teacher(40, "Jo", "0000000000")
    assert school.find_user(40) is None


async def test_removing_a_teacher_demotes_the_linked_user(services, school):
    await services.staff.remove_teacher("2000000001")

    user = school.find_user(20)
    assert school.find_teacher("2000000001") is None
    assert user.role is Role.USER
    assert user.subjects == []


async def test_replacing_subjects_is_mirrored(services, school):
    await services.staff.replace_subjects("2000000001", "Math, Physics, math, ")

    assert school.find_teacher("2000000001").subjects == ["Math", "Physics"]
    assert school.find_user(20).subjects == ["Math", "Physics"]


async def test_admin_login_checks_the_code(services, school):
    with pytest.raises(NotAuthorized):
        await services.staff.login_admin(50, "Eve", "wrong")
    assert school.find_user(50) is None

    user = await services.staff.login_admin(50, "Eve", " letmein ")
    assert user.is_admin


async def test_admins_cannot_demote_themselves(services, school):
    with pytest.raises(IntegrityConflict):
        await services.staff.demote_admin(1, "1")
    assert school.find_user(1).is_admin


async def test_promote_and_demote(services, school):
    school.add_user(User(identity=60, name="Val"))

    await services.staff.promote_admin(1, "60")
    assert school.find_user(60).is_admin

    await services.staff.demote_admin(1, "60")
    assert school.find_user(60).role is Role.USER

    with pytest.raises(ValidationError):
        await services.staff.demote_admin(1, "60")


async def test_bootstrap_admins_from_configuration(services, school):
    promoted = await services.staff.bootstrap_admins([1, 70])

    assert [user.identity for user in promoted] == [70]
    assert school.find_user(70).is_admin


def test_teachers_search_students_only(services, school):
    admin = school.find_user(1)
    teacher = school.find_user(20)

    students, teachers = services.staff.search(admin, "smith")
    assert students == []
    assert [t.teacher_id for t in teachers] == ["2000000001"]

    students, teachers = services.staff.search(teacher, "av")
    assert [s.student_id for s in students] == [AVA]
    assert teachers == []
