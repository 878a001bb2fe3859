from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Iterable, Optional, TypeVar

from school_bot.errors import IntegrityConflict
from school_bot.utils.identifiers import generate_grade_id, generate_record_id, is_grade_id

LOGGER = logging.getLogger(__name__)

DEFAULT_SCHEDULE = {"monday": "N/A", "tuesday": "N/A"}


class Role(str, Enum):
    USER = "user"
    PARENT = "parent"
    TEACHER = "teacher"
    ADMIN = "admin"


def _str_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    seen: list[str] = []
    for item in value:
        text = str(item).strip()
        if text and text not in seen:
            seen.append(text)
    return seen


def _optional_identity(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    return int(value)


@dataclass(slots=True)
class Grade:
    grade_id: str
    score: str
    purpose: str
    date: str

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Grade":
        return cls(
            grade_id=str(payload.get("gradeId") or ""),
            score=str(payload.get("score", "")),
            purpose=str(payload.get("purpose", "")),
            date=str(payload.get("date", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "gradeId": self.grade_id,
            "score": self.score,
            "purpose": self.purpose,
            "date": self.date,
        }


@dataclass(slots=True)
class User:
    identity: int
    name: str
    role: Role = Role.USER
    student_ids: list[str] = field(default_factory=list)
    pending_student_ids: list[str] = field(default_factory=list)
    subjects: list[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "User":
        try:
            role = Role(payload.get("role", Role.USER.value))
        except ValueError:
            role = Role.USER
        return cls(
            identity=int(payload["telegramId"]),
            name=str(payload.get("name") or "User"),
            role=role,
            student_ids=_str_list(payload.get("studentIds")),
            pending_student_ids=_str_list(payload.get("pendingStudentIds")),
            subjects=_str_list(payload.get("subjects")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "telegramId": self.identity,
            "role": self.role.value,
            "name": self.name,
            "studentIds": list(self.student_ids),
            "pendingStudentIds": list(self.pending_student_ids),
            "subjects": list(self.subjects),
        }


@dataclass(slots=True)
class Student:
    student_id: str
    name: str
    class_name: str
    parent_id: Optional[int] = None
    pending_parent_id: Optional[int] = None
    grades: dict[str, list[Grade]] = field(default_factory=dict)
    schedule: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SCHEDULE))

    def grade_ids(self) -> set[str]:
        return {grade.grade_id for grades in self.grades.values() for grade in grades}

    def find_grade(self, subject: str, grade_id: str) -> Optional[Grade]:
        for grade in self.grades.get(subject.lower(), []):
            if grade.grade_id == grade_id:
                return grade
        return None

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Student":
        grades_payload = payload.get("grades")
        grades: dict[str, list[Grade]] = {}
        if isinstance(grades_payload, dict):
            for subject, entries in grades_payload.items():
                if not isinstance(entries, list):
                    continue
                grades[str(subject).lower()] = [
                    Grade.from_dict(entry) for entry in entries if isinstance(entry, dict)
                ]
        _repair_grade_ids(payload.get("studentId"), grades)
        schedule_payload = payload.get("schedule")
        schedule = (
            {str(day): str(text) for day, text in schedule_payload.items()}
            if isinstance(schedule_payload, dict)
            else dict(DEFAULT_SCHEDULE)
        )
        return cls(
            student_id=str(payload["studentId"]),
            name=str(payload.get("name", "")),
            class_name=str(payload.get("class", "")),
            parent_id=_optional_identity(payload.get("parentId")),
            pending_parent_id=_optional_identity(payload.get("pendingParentId")),
            grades=grades,
            schedule=schedule,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "studentId": self.student_id,
            "name": self.name,
            "class": self.class_name,
            "parentId": self.parent_id,
            "pendingParentId": self.pending_parent_id,
            "grades": {
                subject: [grade.to_dict() for grade in grades]
                for subject, grades in self.grades.items()
            },
            "schedule": dict(self.schedule),
        }


@dataclass(slots=True)
class Teacher:
    teacher_id: str
    name: str
    user_id: Optional[int] = None
    subjects: list[str] = field(default_factory=list)
    pending_subjects: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Teacher":
        subjects = _str_list(payload.get("subjects"))
        return cls(
            teacher_id=str(payload["teacherId"]),
            name=str(payload.get("name", "")),
            user_id=_optional_identity(payload.get("telegramId")),
            subjects=subjects,
            pending_subjects=[
                subject for subject in _str_list(payload.get("pendingSubjects"))
                if subject not in subjects
            ],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "teacherId": self.teacher_id,
            "name": self.name,
            "telegramId": self.user_id,
            "subjects": list(self.subjects),
            "pendingSubjects": list(self.pending_subjects),
        }


def _repair_grade_ids(student_id: Any, grades: dict[str, list[Grade]]) -> None:
    """Give grades with a missing, malformed or repeated id a fresh one."""

    seen: set[str] = set()
    for subject, entries in grades.items():
        for grade in entries:
            if is_grade_id(grade.grade_id) and grade.grade_id not in seen:
                seen.add(grade.grade_id)
                continue
            replacement = generate_grade_id(seen | {other.grade_id for bucket in grades.values() for other in bucket})
            LOGGER.warning(
                "Student %s: replacing grade id %r in %s with %s", student_id, grade.grade_id, subject, replacement
            )
            grade.grade_id = replacement
            seen.add(replacement)


RecordT = TypeVar("RecordT", User, Student, Teacher)


class JsonDocument:
    """A single JSON file holding ``{key: [record, ...]}``."""

    def __init__(self, path: Path, key: str) -> None:
        self.path = path
        self.key = key

    def load(self, factory: Callable[[dict[str, Any]], RecordT]) -> list[RecordT]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            LOGGER.warning("Failed to read %s: %s", self.path, exc)
            return []

        items = raw.get(self.key) if isinstance(raw, dict) else None
        if not isinstance(items, list):
            LOGGER.warning("%s has no '%s' list; starting empty", self.path, self.key)
            return []

        records: list[RecordT] = []
        for item in items:
            if not isinstance(item, dict):
                LOGGER.warning("Skipping malformed %s entry in %s: %r", self.key, self.path, item)
                continue
            try:
                records.append(factory(item))
            except (KeyError, TypeError, ValueError) as exc:
                LOGGER.warning("Skipping malformed %s entry in %s: %s", self.key, self.path, exc)
        return records

    def save(self, records: Iterable[Any]) -> None:
        payload = {self.key: [record.to_dict() for record in records]}
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
            tmp_path.replace(self.path)
        except OSError as exc:  # pragma: no cover - filesystem dependant
            LOGGER.warning("Failed to write %s: %s", self.path, exc)


class Repository:
    """Owner of the users, students and teachers collections.

    Reads may happen anywhere.  Every mutation must run inside
    :meth:`transaction`, which holds one lock for all three collections and
    rewrites the touched collections when the block exits.
    """

    def __init__(self, users_path: Path, students_path: Path, teachers_path: Path) -> None:
        self._users_doc = JsonDocument(users_path, "users")
        self._students_doc = JsonDocument(students_path, "students")
        self._teachers_doc = JsonDocument(teachers_path, "teachers")
        self._users: list[User] = self._users_doc.load(User.from_dict)
        self._students: list[Student] = self._students_doc.load(Student.from_dict)
        self._teachers: list[Teacher] = self._teachers_doc.load(Teacher.from_dict)
        self._lock = asyncio.Lock()
        self._dirty: set[str] = set()
        self._drop_duplicates()

    @classmethod
    def from_directory(cls, data_dir: Path) -> "Repository":
        return cls(data_dir / "users.json", data_dir / "students.json", data_dir / "teachers.json")

    def _drop_duplicates(self) -> None:
        for name, records, key in (
            ("users", self._users, lambda record: record.identity),
            ("students", self._students, lambda record: record.student_id),
            ("teachers", self._teachers, lambda record: record.teacher_id),
        ):
            seen: set[Any] = set()
            unique = []
            for record in records:
                record_key = key(record)
                if record_key in seen:
                    LOGGER.warning("Dropping duplicate %s record %s", name, record_key)
                    continue
                seen.add(record_key)
                unique.append(record)
            records[:] = unique

    # Transactions ---------------------------------------------------------
    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["Repository"]:
        async with self._lock:
            try:
                yield self
            finally:
                self.flush()

    @property
    def in_transaction(self) -> bool:
        return self._lock.locked()

    def touch(self, *records: User | Student | Teacher) -> None:
        for record in records:
            if isinstance(record, User):
                self._dirty.add("users")
            elif isinstance(record, Student):
                self._dirty.add("students")
            elif isinstance(record, Teacher):
                self._dirty.add("teachers")

    def flush(self) -> None:
        if "users" in self._dirty:
            self._users_doc.save(self._users)
        if "students" in self._dirty:
            self._students_doc.save(self._students)
        if "teachers" in self._dirty:
            self._teachers_doc.save(self._teachers)
        self._dirty.clear()

    # Users ----------------------------------------------------------------
    def find_user(self, identity: Optional[int]) -> Optional[User]:
        if identity is None:
            return None
        return next((user for user in self._users if user.identity == identity), None)

    def list_users(self, role: Optional[Role] = None) -> list[User]:
        if role is None:
            return list(self._users)
        return [user for user in self._users if user.role is role]

    def list_admins(self) -> list[User]:
        return self.list_users(Role.ADMIN)

    def add_user(self, user: User) -> User:
        if self.find_user(user.identity) is not None:
            raise IntegrityConflict(f"❌ User {user.identity} already exists.")
        self._users.append(user)
        self.touch(user)
        return user

    def remove_user(self, identity: int) -> Optional[User]:
        user = self.find_user(identity)
        if user is not None:
            self._users.remove(user)
            self.touch(user)
        return user

    # Students -------------------------------------------------------------
    def find_student(self, student_id: Optional[str]) -> Optional[Student]:
        if not student_id:
            return None
        return next((student for student in self._students if student.student_id == student_id), None)

    def find_students_by_parent(self, identity: int) -> list[Student]:
        return [student for student in self._students if student.parent_id == identity]

    def list_students(self) -> list[Student]:
        return list(self._students)

    def new_student_id(self) -> str:
        return generate_record_id({student.student_id for student in self._students})

    def add_student(self, student: Student) -> Student:
        if self.find_student(student.student_id) is not None:
            raise IntegrityConflict(f"❌ Student ID {student.student_id} is already taken.")
        self._students.append(student)
        self.touch(student)
        return student

    def remove_student(self, student_id: str) -> Optional[Student]:
        student = self.find_student(student_id)
        if student is not None:
            self._students.remove(student)
            self.touch(student)
        return student

    def new_grade_id(self, student: Student) -> str:
        return generate_grade_id(student.grade_ids())

    # Teachers -------------------------------------------------------------
    def find_teacher(self, teacher_id: Optional[str]) -> Optional[Teacher]:
        if not teacher_id:
            return None
        return next((teacher for teacher in self._teachers if teacher.teacher_id == teacher_id), None)

    def find_teacher_by_user(self, identity: Optional[int]) -> Optional[Teacher]:
        if identity is None:
            return None
        return next((teacher for teacher in self._teachers if teacher.user_id == identity), None)

    def list_teachers(self) -> list[Teacher]:
        return list(self._teachers)

    def new_teacher_id(self) -> str:
        return generate_record_id({teacher.teacher_id for teacher in self._teachers})

    def add_teacher(self, teacher: Teacher) -> Teacher:
        if self.find_teacher(teacher.teacher_id) is not None:
            raise IntegrityConflict(f"❌ Teacher ID {teacher.teacher_id} is already taken.")
        self._teachers.append(teacher)
        self.touch(teacher)
        return teacher

    def remove_teacher(self, teacher_id: str) -> Optional[Teacher]:
        teacher = self.find_teacher(teacher_id)
        if teacher is not None:
            self._teachers.remove(teacher)
            self.touch(teacher)
        return teacher


__all__ = [
    "DEFAULT_SCHEDULE",
    "Grade",
    "JsonDocument",
    "Repository",
    "Role",
    "Student",
    "Teacher",
    "User",
]
