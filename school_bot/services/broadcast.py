from __future__ import annotations

import logging
from typing import Optional

from school_bot import messages
from school_bot.database import Repository, Role
from school_bot.errors import NotAuthorized, ValidationError
from school_bot.services.approvals import require_admin
from school_bot.services.grades import GradeService
from school_bot.services.notifications import Notifier

LOGGER = logging.getLogger(__name__)

AUDIENCES = {"parents": Role.PARENT, "teachers": Role.TEACHER}


class BroadcastService:
    def __init__(self, repository: Repository, notifier: Notifier, grades: GradeService) -> None:
        self.repository = repository
        self.notifier = notifier
        self.grades = grades

    async def announce(self, actor_id: int, target: Optional[str], text: str) -> int:
        """Send an admin announcement to every parent or every teacher."""

        text = (text or "").strip()
        if not text:
            raise ValidationError(messages.ERRORS["empty_announcement"])
        role = AUDIENCES.get(target or "")
        if role is None:
            raise ValidationError(messages.ERRORS["target_missing"])
        require_admin(self.repository, actor_id)
        recipients = [user.identity for user in self.repository.list_users(role)]
        sent = await self.notifier.broadcast(
            recipients, messages.NOTIFICATIONS["admin_announcement"].format(text=text)
        )
        LOGGER.info("Announcement to %s delivered to %d of %d", target, sent, len(recipients))
        return sent

    async def announce_to_class(self, identity: int, subject: Optional[str], text: str) -> int:
        text = (text or "").strip()
        if not text:
            raise ValidationError(messages.ERRORS["empty_announcement"])
        teacher = self.grades.teacher_for(identity)
        if not subject or subject not in teacher.subjects:
            raise NotAuthorized(messages.ERRORS["subject_not_assigned"].format(subject=subject))
        parent_ids = [
            student.parent_id for student in self.grades.roster(subject) if student.parent_id is not None
        ]
        sent = await self.notifier.broadcast(
            parent_ids,
            messages.NOTIFICATIONS["class_announcement"].format(subject=subject, text=text),
        )
        LOGGER.info("Teacher %s announced to %d parents of %s", teacher.teacher_id, sent, subject)
        return sent

    def parent_of(self, student_id: str) -> int:
        student = self.repository.find_student((student_id or "").strip())
        if student is None or student.parent_id is None:
            raise ValidationError(messages.ERRORS["no_linked_parent"])
        return student.parent_id

    async def contact_parent(self, sender_id: int, recipient_id: Optional[int], text: str) -> None:
        """Deliver a direct message; failure is reported to the sender."""

        text = (text or "").strip()
        if not text or recipient_id is None:
            raise ValidationError(messages.ERRORS["recipient_missing"])
        sender = self.repository.find_user(sender_id)
        if sender is None or sender.role not in (Role.TEACHER, Role.ADMIN):
            raise NotAuthorized(messages.ERRORS["not_authorized"])
        role_name = "Teacher" if sender.role is Role.TEACHER else "Admin"
        delivered = await self.notifier.send(
            recipient_id,
            messages.NOTIFICATIONS["direct_message"].format(role=role_name, name=sender.name, text=text),
        )
        if not delivered:
            raise ValidationError(messages.ERRORS["delivery_failed"])

    async def contact_admins(self, sender_name: str, text: str) -> int:
        text = (text or "").strip()
        if not text:
            raise ValidationError(messages.ERRORS["empty_message"])
        admins = self.repository.list_admins()
        if not admins:
            raise ValidationError(messages.ERRORS["no_admins"])
        return await self.notifier.broadcast(
            [admin.identity for admin in admins],
            messages.NOTIFICATIONS["parent_message"].format(name=sender_name or "Parent", text=text),
        )


__all__ = ["AUDIENCES", "BroadcastService"]
