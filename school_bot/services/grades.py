from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from school_bot import messages
from school_bot.database import Grade, Repository, Role, Student, Teacher
from school_bot.errors import NotAuthorized, ValidationError

LOGGER = logging.getLogger(__name__)


def utc_timestamp(now: Optional[datetime] = None) -> str:
    moment = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class GradeService:
    """Grade entry for teachers and the subject rosters derived from grades.

    A student is on a subject's roster when their grade list for that
    subject exists; :meth:`enroll` creates the (possibly empty) list.
    """

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def teacher_for(self, identity: int) -> Teacher:
        user = self.repository.find_user(identity)
        teacher = self.repository.find_teacher_by_user(identity)
        if user is None or user.role is not Role.TEACHER or teacher is None:
            raise NotAuthorized(messages.ERRORS["no_roster"])
        return teacher

    def teaching_subject(self, teacher: Teacher, subject: Optional[str]) -> str:
        folded = (subject or "").strip().casefold()
        for candidate in teacher.subjects:
            if candidate.casefold() == folded:
                return candidate
        raise NotAuthorized(messages.ERRORS["subject_not_assigned"].format(subject=subject))

    def _student(self, repo: Repository, student_id: Optional[str]) -> Student:
        student = repo.find_student(student_id)
        if student is None:
            raise ValidationError(messages.ERRORS["grade_context_lost"])
        return student

    async def add_grade(
        self,
        identity: int,
        student_id: Optional[str],
        subject: Optional[str],
        score: Optional[str],
        purpose: str,
        *,
        now: Optional[datetime] = None,
    ) -> tuple[Student, Grade]:
        score = (score or "").strip()
        purpose = (purpose or "").strip()
        if not score:
            raise ValidationError(messages.ERRORS["empty_grade"])
        if not purpose:
            raise ValidationError(messages.ERRORS["empty_purpose"])
        async with self.repository.transaction() as repo:
            teacher = self.teacher_for(identity)
            subject = self.teaching_subject(teacher, subject)
            student = self._student(repo, student_id)
            grade = Grade(
                grade_id=repo.new_grade_id(student),
                score=score,
                purpose=purpose,
                date=utc_timestamp(now),
            )
            student.grades.setdefault(subject.lower(), []).append(grade)
            repo.touch(student)
        LOGGER.info("Teacher %s graded student %s in %s", teacher.teacher_id, student.student_id, subject)
        return student, grade

    async def edit_grade(
        self,
        identity: int,
        student_id: Optional[str],
        subject: Optional[str],
        grade_id: Optional[str],
        score: Optional[str],
        purpose: str,
        *,
        now: Optional[datetime] = None,
    ) -> tuple[Student, Grade]:
        score = (score or "").strip()
        purpose = (purpose or "").strip()
        if not score:
            raise ValidationError(messages.ERRORS["empty_grade"])
        if not purpose:
            raise ValidationError(messages.ERRORS["empty_purpose"])
        async with self.repository.transaction() as repo:
            teacher = self.teacher_for(identity)
            subject = self.teaching_subject(teacher, subject)
            student = self._student(repo, student_id)
            grade = student.find_grade(subject, grade_id or "")
            if grade is None:
                raise ValidationError(messages.ERRORS["grade_not_found"])
            grade.score = score
            grade.purpose = purpose
            grade.date = utc_timestamp(now)
            repo.touch(student)
        LOGGER.info("Teacher %s edited grade %s of student %s", teacher.teacher_id, grade.grade_id, student.student_id)
        return student, grade

    async def enroll(
        self,
        identity: int,
        student_id: str,
        subjects: Optional[Iterable[str]] = None,
    ) -> Student:
        """Put ``student_id`` on the roster of ``subjects`` (default: all of the teacher's)."""

        async with self.repository.transaction() as repo:
            teacher = self.teacher_for(identity)
            student = repo.find_student(student_id)
            if student is None:
                raise ValidationError(messages.ERRORS["student_not_found"])
            chosen = teacher.subjects if subjects is None else [
                self.teaching_subject(teacher, subject) for subject in subjects
            ]
            if not chosen:
                raise ValidationError(messages.ERRORS["no_subjects"])
            for subject in chosen:
                student.grades.setdefault(subject.lower(), [])
            repo.touch(student)
        LOGGER.info("Student %s enrolled in %s", student.student_id, ", ".join(chosen))
        return student

    def roster(self, subject: str) -> list[Student]:
        key = subject.lower()
        return [student for student in self.repository.list_students() if key in student.grades]

    def rosters_for(self, identity: int) -> dict[str, list[Student]]:
        teacher = self.teacher_for(identity)
        return {subject: self.roster(subject) for subject in teacher.subjects}


__all__ = ["GradeService", "utc_timestamp"]
