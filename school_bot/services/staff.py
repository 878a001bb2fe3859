from __future__ import annotations

import hmac
import logging
from typing import Iterable

from school_bot import messages
from school_bot.database import Repository, Role, Student, Teacher, User
from school_bot.errors import IntegrityConflict, NotAuthorized, ValidationError
from school_bot.services.approvals import contains_subject, normalize_subject, require_admin
from school_bot.services.students import parse_identity

LOGGER = logging.getLogger(__name__)


class StaffService:
    """Teachers, administrators and search."""

    def __init__(self, repository: Repository, admin_secret_code: str) -> None:
        self.repository = repository
        self._admin_secret_code = admin_secret_code

    # ------------------------------------------------------------------
    # Teachers

    async def add_teacher(self, name: str) -> Teacher:
        name = (name or "").strip()
        if not name:
            raise ValidationError(messages.ERRORS["invalid_name"])
        async with self.repository.transaction() as repo:
            teacher = repo.add_teacher(Teacher(teacher_id=repo.new_teacher_id(), name=name))
        LOGGER.info("Added teacher %s (%s)", teacher.teacher_id, name)
        return teacher

    async def remove_teacher(self, teacher_id: str) -> Teacher:
        teacher_id = (teacher_id or "").strip()
        async with self.repository.transaction() as repo:
            teacher = repo.find_teacher(teacher_id)
            if teacher is None:
                raise ValidationError(messages.ERRORS["teacher_not_found"])
            user = repo.find_user(teacher.user_id)
            if user is not None:
                user.subjects = []
                if user.role is Role.TEACHER:
                    user.role = Role.USER
                repo.touch(user)
            repo.remove_teacher(teacher_id)
        LOGGER.info("Removed teacher %s", teacher_id)
        return teacher

    async def rename_teacher(self, teacher_id: str | None, name: str) -> Teacher:
        name = (name or "").strip()
        async with self.repository.transaction() as repo:
            teacher = repo.find_teacher(teacher_id)
            if teacher is None or not name:
                raise ValidationError(messages.ERRORS["invalid_teacher_name"])
            teacher.name = name
            repo.touch(teacher)
            user = repo.find_user(teacher.user_id)
            if user is not None:
                user.name = name
                repo.touch(user)
        return teacher

    async def replace_subjects(self, teacher_id: str | None, raw_subjects: str) -> Teacher:
        subjects: list[str] = []
        for chunk in (raw_subjects or "").split(","):
            if not chunk.strip():
                continue
            subject = normalize_subject(chunk)
            if not contains_subject(subjects, subject):
                subjects.append(subject)
        async with self.repository.transaction() as repo:
            teacher = repo.find_teacher(teacher_id)
            if teacher is None or not subjects:
                raise ValidationError(messages.ERRORS["invalid_teacher_subjects"])
            teacher.subjects = subjects
            teacher.pending_subjects = [s for s in teacher.pending_subjects if s not in subjects]
            repo.touch(teacher)
            user = repo.find_user(teacher.user_id)
            if user is not None:
                user.subjects = list(subjects)
                repo.touch(user)
        LOGGER.info("Teacher %s subjects set to %s", teacher.teacher_id, ", ".join(subjects))
        return teacher

    async def register_teacher(self, identity: int, display_name: str, teacher_id: str) -> Teacher:
        teacher_id = (teacher_id or "").strip()
        async with self.repository.transaction() as repo:
            teacher = repo.find_teacher(teacher_id)
            if teacher is None or teacher.user_id is not None:
                raise IntegrityConflict(messages.ERRORS["invalid_teacher_code"])
            if repo.find_teacher_by_user(identity) is not None:
                raise IntegrityConflict(messages.ERRORS["invalid_teacher_code"])
            user = repo.find_user(identity)
            if user is None:
                user = repo.add_user(User(identity=identity, name=display_name or "Teacher"))
            user.role = Role.TEACHER
            user.subjects = list(teacher.subjects)
            teacher.user_id = identity
            repo.touch(user, teacher)
        LOGGER.info("User %s registered as teacher %s", identity, teacher_id)
        return teacher

    async def remove_own_subject(self, identity: int, subject: str) -> Teacher:
        async with self.repository.transaction() as repo:
            teacher = repo.find_teacher_by_user(identity)
            if teacher is None or subject not in teacher.subjects:
                raise ValidationError(messages.ERRORS["subject_not_assigned"].format(subject=subject))
            teacher.subjects = [s for s in teacher.subjects if s != subject]
            repo.touch(teacher)
            user = repo.find_user(identity)
            if user is not None:
                user.subjects = [s for s in user.subjects if s != subject]
                repo.touch(user)
        LOGGER.info("Teacher %s removed subject %r", teacher.teacher_id, subject)
        return teacher

    # ------------------------------------------------------------------
    # Administrators

    def check_code(self, code: str) -> bool:
        return hmac.compare_digest(
            (code or "").strip().encode("utf-8"), self._admin_secret_code.encode("utf-8")
        )

    async def login_admin(self, identity: int, display_name: str, code: str) -> User:
        if not self.check_code(code):
            LOGGER.warning("Rejected admin login attempt from %s", identity)
            raise NotAuthorized(messages.ERRORS["invalid_code"])
        async with self.repository.transaction() as repo:
            user = repo.find_user(identity)
            if user is None:
                user = repo.add_user(User(identity=identity, name=display_name or "Admin", role=Role.ADMIN))
            else:
                user.role = Role.ADMIN
                repo.touch(user)
        LOGGER.info("User %s logged in as admin", identity)
        return user

    async def promote_admin(self, actor_id: int, raw_target: str) -> User:
        target_id = parse_identity(raw_target)
        async with self.repository.transaction() as repo:
            require_admin(repo, actor_id)
            user = repo.find_user(target_id)
            if user is None:
                raise ValidationError(messages.ERRORS["user_not_found"])
            if user.is_admin:
                raise IntegrityConflict(messages.ERRORS["already_admin"])
            user.role = Role.ADMIN
            repo.touch(user)
        LOGGER.info("Admin %s promoted %s", actor_id, target_id)
        return user

    async def demote_admin(self, actor_id: int, raw_target: str) -> User:
        target_id = parse_identity(raw_target)
        if target_id == actor_id:
            raise IntegrityConflict(messages.ERRORS["self_demotion"])
        async with self.repository.transaction() as repo:
            require_admin(repo, actor_id)
            user = repo.find_user(target_id)
            if user is None or not user.is_admin:
                raise ValidationError(messages.ERRORS["admin_not_found"])
            user.role = Role.USER
            repo.touch(user)
        LOGGER.info("Admin %s demoted %s", actor_id, target_id)
        return user

    async def bootstrap_admins(self, identities: Iterable[int]) -> list[User]:
        promoted: list[User] = []
        async with self.repository.transaction() as repo:
            for identity in identities:
                user = repo.find_user(identity)
                if user is None:
                    user = repo.add_user(User(identity=identity, name="Admin", role=Role.ADMIN))
                elif not user.is_admin:
                    user.role = Role.ADMIN
                    repo.touch(user)
                else:
                    continue
                promoted.append(user)
        for user in promoted:
            LOGGER.info("Bootstrapped admin %s from configuration", user.identity)
        return promoted

    # ------------------------------------------------------------------
    # Search

    def search(self, actor: User, query: str) -> tuple[list[Student], list[Teacher]]:
        """Return students (and, for admins, teachers) matching ``query``.

        Names match case-insensitively by substring; identifiers match by
        substring of the 10-digit id.
        """

        needle = (query or "").strip().lower()
        if not needle:
            raise ValidationError(messages.ERRORS["empty_input"])
        if actor.role not in (Role.ADMIN, Role.TEACHER):
            raise NotAuthorized(messages.ERRORS["not_authorized"])
        students = [
            student
            for student in self.repository.list_students()
            if needle in student.name.lower() or needle in student.student_id
        ]
        teachers: list[Teacher] = []
        if actor.is_admin:
            teachers = [
                teacher
                for teacher in self.repository.list_teachers()
                if needle in teacher.name.lower() or needle in teacher.teacher_id
            ]
        return students, teachers


__all__ = ["StaffService"]
