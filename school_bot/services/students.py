from __future__ import annotations

import json
import logging
from typing import Any, Optional

from school_bot import messages
from school_bot.database import DEFAULT_SCHEDULE, Repository, Role, Student, User
from school_bot.errors import ValidationError

LOGGER = logging.getLogger(__name__)


def parse_identity(raw: str) -> int:
    text = (raw or "").strip()
    if not text.isdigit():
        raise ValidationError(messages.ERRORS["invalid_identity"])
    return int(text)


def _release_parent(parent: Optional[User]) -> None:
    if parent is None:
        return
    if parent.role is Role.PARENT and not parent.student_ids and not parent.pending_student_ids:
        parent.role = Role.USER


class StudentService:
    """Administrative operations on student records and their parent links."""

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    async def add_student(self, name: str, class_name: str) -> Student:
        name = (name or "").strip()
        class_name = (class_name or "").strip()
        if not name:
            raise ValidationError(messages.ERRORS["invalid_name"])
        if not class_name:
            raise ValidationError(messages.ERRORS["invalid_class"])
        async with self.repository.transaction() as repo:
            student = repo.add_student(
                Student(student_id=repo.new_student_id(), name=name, class_name=class_name)
            )
        LOGGER.info("Added student %s (%s, %s)", student.student_id, name, class_name)
        return student

    async def import_students(self, payload: bytes | str) -> list[Student]:
        """Add every ``{name, class, parentId?, schedule?}`` entry of a JSON array."""

        try:
            entries = json.loads(payload)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.warning("Rejected student upload: %s", exc)
            raise ValidationError(messages.ERRORS["upload_failed"]) from exc
        if not isinstance(entries, list):
            raise ValidationError(messages.ERRORS["invalid_upload"])

        added: list[Student] = []
        async with self.repository.transaction() as repo:
            for entry in entries:
                student = self._import_entry(repo, entry)
                if student is not None:
                    added.append(student)
        LOGGER.info("Imported %d of %d uploaded students", len(added), len(entries))
        return added

    def _import_entry(self, repo: Repository, entry: Any) -> Optional[Student]:
        if not isinstance(entry, dict):
            LOGGER.warning("Skipping uploaded entry that is not an object: %r", entry)
            return None
        name = str(entry.get("name") or "").strip()
        class_name = str(entry.get("class") or "").strip()
        if not name or not class_name:
            LOGGER.warning("Skipping uploaded student without name or class: %r", entry)
            return None

        schedule = entry.get("schedule")
        student = Student(
            student_id=repo.new_student_id(),
            name=name,
            class_name=class_name,
            schedule=(
                {str(day): str(text) for day, text in schedule.items()}
                if isinstance(schedule, dict)
                else dict(DEFAULT_SCHEDULE)
            ),
        )
        repo.add_student(student)

        raw_parent = entry.get("parentId")
        if raw_parent in (None, ""):
            return student
        try:
            parent = repo.find_user(int(raw_parent))
        except (TypeError, ValueError):
            parent = None
        if parent is None:
            LOGGER.warning(
                "Parent ID %s not found for student %s. Setting to null.", raw_parent, student.student_id
            )
            return student
        student.parent_id = parent.identity
        if student.student_id not in parent.student_ids:
            parent.student_ids.append(student.student_id)
        if parent.role is Role.USER:
            parent.role = Role.PARENT
        repo.touch(parent)
        return student

    async def remove_student(self, student_id: str) -> Student:
        student_id = (student_id or "").strip()
        async with self.repository.transaction() as repo:
            student = repo.find_student(student_id)
            if student is None:
                raise ValidationError(messages.ERRORS["student_not_found"])
            for parent_id in (student.parent_id, student.pending_parent_id):
                parent = repo.find_user(parent_id)
                if parent_id is not None and parent is None:
                    LOGGER.warning("Student %s references missing user %s", student_id, parent_id)
                if parent is None:
                    continue
                parent.student_ids = [sid for sid in parent.student_ids if sid != student_id]
                parent.pending_student_ids = [
                    sid for sid in parent.pending_student_ids if sid != student_id
                ]
                _release_parent(parent)
                repo.touch(parent)
            repo.remove_student(student_id)
        LOGGER.info("Removed student %s", student_id)
        return student

    async def rename_student(self, student_id: Optional[str], name: str) -> Student:
        name = (name or "").strip()
        async with self.repository.transaction() as repo:
            student = repo.find_student(student_id)
            if student is None or not name:
                raise ValidationError(messages.ERRORS["invalid_student_name"])
            student.name = name
            repo.touch(student)
        return student

    async def change_class(self, student_id: Optional[str], class_name: str) -> Student:
        class_name = (class_name or "").strip()
        async with self.repository.transaction() as repo:
            student = repo.find_student(student_id)
            if student is None or not class_name:
                raise ValidationError(messages.ERRORS["invalid_student_class"])
            student.class_name = class_name
            repo.touch(student)
        return student

    async def reassign_parent(self, student_id: Optional[str], raw_parent_id: str) -> Student:
        text = (raw_parent_id or "").strip()
        async with self.repository.transaction() as repo:
            student = repo.find_student(student_id)
            new_parent = repo.find_user(int(text)) if text.isdigit() else None
            if student is None or new_parent is None or new_parent.role is not Role.PARENT:
                raise ValidationError(messages.ERRORS["invalid_parent"])

            for old_id in (student.parent_id, student.pending_parent_id):
                if old_id is None or old_id == new_parent.identity:
                    continue
                old_parent = repo.find_user(old_id)
                if old_parent is None:
                    continue
                old_parent.student_ids = [sid for sid in old_parent.student_ids if sid != student.student_id]
                old_parent.pending_student_ids = [
                    sid for sid in old_parent.pending_student_ids if sid != student.student_id
                ]
                _release_parent(old_parent)
                repo.touch(old_parent)

            student.parent_id = new_parent.identity
            student.pending_parent_id = None
            new_parent.pending_student_ids = [
                sid for sid in new_parent.pending_student_ids if sid != student.student_id
            ]
            if student.student_id not in new_parent.student_ids:
                new_parent.student_ids.append(student.student_id)
            repo.touch(student, new_parent)
        LOGGER.info("Student %s reassigned to parent %s", student.student_id, new_parent.identity)
        return student

    async def unbind_parent(self, raw_parent_id: str) -> list[Student]:
        text = (raw_parent_id or "").strip()
        async with self.repository.transaction() as repo:
            parent = repo.find_user(int(text)) if text.isdigit() else None
            if parent is None or parent.role is not Role.PARENT:
                raise ValidationError(messages.ERRORS["parent_not_found"])
            affected = [
                student
                for student in repo.list_students()
                if parent.identity in (student.parent_id, student.pending_parent_id)
            ]
            for student in affected:
                if student.parent_id == parent.identity:
                    student.parent_id = None
                if student.pending_parent_id == parent.identity:
                    student.pending_parent_id = None
                repo.touch(student)
            parent.student_ids = []
            parent.pending_student_ids = []
            _release_parent(parent)
            repo.touch(parent)
        LOGGER.info("Unbound parent %s from %d students", parent.identity, len(affected))
        return affected


__all__ = ["StudentService", "parse_identity"]
