import json

import pytest

from school_bot.database import Grade, Repository, Role, Student, Teacher, User
from school_bot.errors import IntegrityConflict

pytestmark = pytest.mark.anyio


def test_records_survive_a_reload(tmp_path):
    repository = Repository.from_directory(tmp_path)
    repository.add_user(User(identity=7, name="Dana", role=Role.PARENT, student_ids=["1000000001"]))
    student = Student(student_id="1000000001", name="Ava", class_name="Grade 5", parent_id=7)
    student.grades["math"] = [Grade(grade_id="a" * 32, score="A", purpose="Quiz", date="2024-01-01T00:00:00.000Z")]
    repository.add_student(student)
    repository.add_teacher(Teacher(teacher_id="2000000001", name="Mr Smith", subjects=["Math"]))
    repository.flush()

    reloaded = Repository.from_directory(tmp_path)

    assert reloaded.find_user(7).student_ids == ["1000000001"]
    assert reloaded.find_student("1000000001").grades["math"][0].score == "A"
    assert reloaded.find_teacher("2000000001").subjects == ["Math"]


def test_files_use_the_documented_keys(tmp_path):
    repository = Repository.from_directory(tmp_path)
    repository.add_student(Student(student_id="1000000001", name="Ava", class_name="Grade 5"))
    repository.flush()

    payload = json.loads((tmp_path / "students.json").read_text(encoding="utf-8"))

    assert payload["students"][0]["studentId"] == "1000000001"
    assert payload["students"][0]["class"] == "Grade 5"
    assert payload["students"][0]["schedule"] == {"monday": "N/A", "tuesday": "N/A"}


def test_malformed_and_duplicate_records_are_skipped(tmp_path):
    (tmp_path / "users.json").write_text(
        json.dumps(
            {
                "users": [
                    {"telegramId": 1, "name": "First", "role": "admin"},
                    {"telegramId": 1, "name": "Copy", "role": "user"},
                    {"name": "No id"},
                    "garbage",
                ]
            }
        ),
        encoding="utf-8",
    )

    repository = Repository.from_directory(tmp_path)

    assert [user.name for user in repository.list_users()] == ["First"]
    assert repository.find_user(1).is_admin


def test_grades_without_a_usable_id_are_repaired_not_dropped(tmp_path):
    shared = "b" * 32
    (tmp_path / "students.json").write_text(
        json.dumps(
            {
                "students": [
                    {
                        "studentId": "1000000001",
                        "name": "Ava",
                        "class": "Grade 5",
                        "grades": {
                            "math": [
                                {"score": "A", "purpose": "Quiz"},
                                {"gradeId": shared, "score": "B", "purpose": "Test"},
                                {"gradeId": shared, "score": "C", "purpose": "Essay"},
                                {"gradeId": "legacy-7", "score": "D", "purpose": "Lab"},
                            ]
                        },
                    },
                    {"studentId": "1000000002", "name": "Ben", "class": "Grade 8"},
                ]
            }
        ),
        encoding="utf-8",
    )

    repository = Repository.from_directory(tmp_path)
    ava = repository.find_student("1000000001")
    ids = [grade.grade_id for grade in ava.grades["math"]]

    assert [student.student_id for student in repository.list_students()] == ["1000000001", "1000000002"]
    assert [grade.score for grade in ava.grades["math"]] == ["A", "B", "C", "D"]
    assert ids[1] == shared
    assert len(set(ids)) == 4
    assert all(len(grade_id) == 32 for grade_id in ids)

    repository.touch(ava)
    repository.flush()
    reloaded = Repository.from_directory(tmp_path)

    assert [student.student_id for student in reloaded.list_students()] == ["1000000001", "1000000002"]
    assert [grade.grade_id for grade in reloaded.find_student("1000000001").grades["math"]] == ids


def test_missing_files_start_empty(tmp_path):
    repository = Repository.from_directory(tmp_path)
    assert repository.list_users() == []
    assert repository.list_students() == []
    assert repository.list_teachers() == []


def test_duplicate_identity_is_rejected(tmp_path):
    repository = Repository.from_directory(tmp_path)
    repository.add_user(User(identity=1, name="A"))
    with pytest.raises(IntegrityConflict):
        repository.add_user(User(identity=1, name="B"))


async def test_transaction_flushes_touched_collections(tmp_path):
    repository = Repository.from_directory(tmp_path)

    async with repository.transaction() as repo:
        assert repo.in_transaction
        repo.add_user(User(identity=3, name="Cleo"))

    assert not repository.in_transaction
    assert (tmp_path / "users.json").exists()
    assert not (tmp_path / "students.json").exists()


async def test_new_student_ids_do_not_collide(tmp_path):
    repository = Repository.from_directory(tmp_path)
    async with repository.transaction() as repo:
        for index in range(50):
            repo.add_student(Student(student_id=repo.new_student_id(), name=f"S{index}", class_name="Grade 1"))

    ids = [student.student_id for student in repository.list_students()]
    assert len(set(ids)) == 50
    assert all(len(value) == 10 and value.isdigit() for value in ids)
