from __future__ import annotations

import logging

from school_bot import messages
from school_bot.callbacks import CALLBACK_DATA_LIMIT, Action, encode_subject
from school_bot.database import Repository, Role, Student, Teacher, User
from school_bot.errors import IntegrityConflict, NotAuthorized, RequestNotFound, ValidationError
from school_bot.keyboards.admin import parent_link_request_keyboard, subject_request_keyboard
from school_bot.services.notifications import Notifier

LOGGER = logging.getLogger(__name__)

# Longest subject-carrying payload: add_student_to_subject_<student id>_<subject>.
SUBJECT_MAX_BYTES = CALLBACK_DATA_LIMIT - len(Action.ADD_STUDENT_TO_SUBJECT.value) - 12


def normalize_subject(raw: str) -> str:
    """Return ``raw`` with collapsed whitespace or raise :class:`ValidationError`."""

    subject = " ".join((raw or "").split())
    if not subject:
        raise ValidationError(messages.ERRORS["empty_subject"])
    if "_" in subject:
        raise ValidationError(messages.ERRORS["subject_underscore"])
    if len(encode_subject(subject).encode("utf-8")) > SUBJECT_MAX_BYTES:
        raise ValidationError(messages.ERRORS["subject_too_long"])
    return subject


def contains_subject(subjects: list[str], subject: str) -> bool:
    folded = subject.casefold()
    return any(existing.casefold() == folded for existing in subjects)


def require_admin(repository: Repository, actor_id: int) -> User:
    actor = repository.find_user(actor_id)
    if actor is None or not actor.is_admin:
        raise NotAuthorized(messages.ERRORS["not_authorized"])
    return actor


class ApprovalService:
    """Pending-request workflow for parent links and teacher subjects.

    Each request moves ``NONE -> PENDING -> APPROVED | DENIED``.  Checks and
    mutations for one step run inside a single repository transaction; the
    resulting notifications go out after the lock is released.
    """

    def __init__(self, repository: Repository, notifier: Notifier) -> None:
        self.repository = repository
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Parent links

    async def request_parent_link(
        self,
        identity: int,
        display_name: str,
        student_id: str,
        *,
        registered_only: bool = False,
    ) -> Student:
        student_id = (student_id or "").strip()
        async with self.repository.transaction() as repo:
            parent = repo.find_user(identity)
            if registered_only and parent is None:
                raise ValidationError(messages.ERRORS["not_parent"])
            student = repo.find_student(student_id)
            if student is None:
                raise ValidationError(
                    messages.ERRORS["student_not_found"] if registered_only else messages.ERRORS["invalid_link"]
                )
            if student.parent_id is not None or student.pending_parent_id is not None:
                raise IntegrityConflict(
                    messages.ERRORS["already_linked"] if registered_only else messages.ERRORS["invalid_link"]
                )
            if parent is not None and (
                student_id in parent.student_ids or student_id in parent.pending_student_ids
            ):
                raise IntegrityConflict(messages.ERRORS["already_linked"])

            if parent is None:
                parent = repo.add_user(
                    User(identity=identity, name=display_name or "Parent", role=Role.PARENT)
                )
            elif parent.role is Role.USER:
                parent.role = Role.PARENT
            parent.pending_student_ids.append(student_id)
            student.pending_parent_id = identity
            repo.touch(parent, student)
            admin_ids = [admin.identity for admin in repo.list_admins()]
            parent_name = parent.name

        LOGGER.info("Parent %s requested a link to student %s", identity, student_id)
        text = messages.NOTIFICATIONS["parent_link_request"].format(
            parent_name=parent_name,
            parent_id=identity,
            student_name=student.name,
            student_id=student_id,
        )
        delivered = await self.notifier.broadcast(
            admin_ids, text, reply_markup=parent_link_request_keyboard(identity, student_id)
        )
        if not delivered:
            LOGGER.warning("No administrator received the link request for student %s", student_id)
        return student

    def _pending_link(self, repo: Repository, parent_id: int, student_id: str) -> tuple[User, Student]:
        parent = repo.find_user(parent_id)
        student = repo.find_student(student_id)
        if parent is None or student is None or student.pending_parent_id != parent_id:
            raise RequestNotFound(messages.ERRORS["request_not_found"])
        return parent, student

    async def approve_parent_link(self, actor_id: int, parent_id: int, student_id: str) -> str:
        async with self.repository.transaction() as repo:
            require_admin(repo, actor_id)
            parent, student = self._pending_link(repo, parent_id, student_id)
            student.parent_id = parent_id
            student.pending_parent_id = None
            if student_id not in parent.student_ids:
                parent.student_ids.append(student_id)
            parent.pending_student_ids = [sid for sid in parent.pending_student_ids if sid != student_id]
            if parent.role is Role.USER:
                parent.role = Role.PARENT
            repo.touch(parent, student)

        LOGGER.info("Admin %s approved parent %s for student %s", actor_id, parent_id, student_id)
        await self.notifier.send(
            parent_id,
            messages.NOTIFICATIONS["parent_link_approved"].format(
                student_name=student.name, student_id=student_id
            ),
        )
        return messages.NOTIFICATIONS["parent_link_approved_admin"].format(
            parent_name=parent.name, student_name=student.name
        )

    async def deny_parent_link(self, actor_id: int, parent_id: int, student_id: str) -> str:
        async with self.repository.transaction() as repo:
            require_admin(repo, actor_id)
            parent, student = self._pending_link(repo, parent_id, student_id)
            student.pending_parent_id = None
            parent.pending_student_ids = [sid for sid in parent.pending_student_ids if sid != student_id]
            if parent.role is Role.PARENT and not parent.student_ids and not parent.pending_student_ids:
                parent.role = Role.USER
            repo.touch(parent, student)

        LOGGER.info("Admin %s denied parent %s for student %s", actor_id, parent_id, student_id)
        await self.notifier.send(
            parent_id,
            messages.NOTIFICATIONS["parent_link_denied"].format(
                student_name=student.name, student_id=student_id
            ),
        )
        return messages.NOTIFICATIONS["parent_link_denied_admin"].format(
            parent_name=parent.name, student_name=student.name
        )

    # ------------------------------------------------------------------
    # Subject verification

    async def request_subject(self, identity: int, raw_subject: str) -> str:
        subject = normalize_subject(raw_subject)
        async with self.repository.transaction() as repo:
            user = repo.find_user(identity)
            teacher = repo.find_teacher_by_user(identity)
            if user is None or teacher is None:
                raise NotAuthorized(messages.ERRORS["not_teacher"])
            if contains_subject(teacher.subjects, subject) or contains_subject(
                teacher.pending_subjects, subject
            ):
                raise IntegrityConflict(messages.ERRORS["duplicate_subject"].format(subject=subject))
            markup = subject_request_keyboard(teacher.teacher_id, subject)
            teacher.pending_subjects.append(subject)
            repo.touch(teacher)
            admin_ids = [admin.identity for admin in repo.list_admins()]
            teacher_id, teacher_name = teacher.teacher_id, teacher.name

        LOGGER.info("Teacher %s requested subject %r", teacher_id, subject)
        await self.notifier.broadcast(
            admin_ids,
            messages.NOTIFICATIONS["subject_request"].format(
                teacher_name=teacher_name, subject=subject, teacher_id=teacher_id
            ),
            reply_markup=markup,
        )
        return subject

    def _pending_subject(self, repo: Repository, teacher_id: str, subject: str) -> Teacher:
        teacher = repo.find_teacher(teacher_id)
        if teacher is None or subject not in teacher.pending_subjects:
            raise RequestNotFound(messages.ERRORS["request_not_found"])
        return teacher

    async def approve_subject(self, actor_id: int, teacher_id: str, subject: str) -> str:
        async with self.repository.transaction() as repo:
            require_admin(repo, actor_id)
            teacher = self._pending_subject(repo, teacher_id, subject)
            teacher.pending_subjects.remove(subject)
            if subject not in teacher.subjects:
                teacher.subjects.append(subject)
            repo.touch(teacher)
            user = repo.find_user(teacher.user_id)
            if user is not None:
                if subject not in user.subjects:
                    user.subjects.append(subject)
                repo.touch(user)
            else:
                LOGGER.warning("Teacher %s has no linked user to mirror %r onto", teacher_id, subject)

        LOGGER.info("Admin %s approved subject %r for teacher %s", actor_id, subject, teacher_id)
        if teacher.user_id is not None:
            await self.notifier.send(
                teacher.user_id, messages.NOTIFICATIONS["subject_approved"].format(subject=subject)
            )
        return messages.NOTIFICATIONS["subject_approved_admin"].format(
            subject=subject, teacher_name=teacher.name
        )

    async def deny_subject(self, actor_id: int, teacher_id: str, subject: str) -> str:
        async with self.repository.transaction() as repo:
            require_admin(repo, actor_id)
            teacher = self._pending_subject(repo, teacher_id, subject)
            teacher.pending_subjects.remove(subject)
            repo.touch(teacher)

        LOGGER.info("Admin %s denied subject %r for teacher %s", actor_id, subject, teacher_id)
        if teacher.user_id is not None:
            await self.notifier.send(
                teacher.user_id, messages.NOTIFICATIONS["subject_denied"].format(subject=subject)
            )
        return messages.NOTIFICATIONS["subject_denied_admin"].format(
            subject=subject, teacher_name=teacher.name
        )


__all__ = [
    "ApprovalService",
    "SUBJECT_MAX_BYTES",
    "contains_subject",
    "normalize_subject",
    "require_admin",
]
