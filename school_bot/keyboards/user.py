from __future__ import annotations

import logging
from typing import Iterable, Optional

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyKeyboardMarkup

from school_bot import messages
from school_bot.callbacks import Action, callback_data
from school_bot.database import Grade, Role, Student, User
from school_bot.keyboards.admin import admin_menu_keyboard

LOGGER = logging.getLogger(__name__)


def registration_keyboard() -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [InlineKeyboardButton(labels["register_teacher"], callback_data=Action.REGISTER_TEACHER.value)],
        [InlineKeyboardButton(labels["register_parent"], callback_data=Action.REGISTER_PARENT.value)],
    ]
    return InlineKeyboardMarkup(buttons)


def parent_menu_keyboard() -> ReplyKeyboardMarkup:
    labels = messages.PARENT_MENU_LABELS
    rows = [
        [labels["grades"], labels["schedule"]],
        [labels["profile"], labels["link"]],
        [labels["contact_admin"]],
    ]
    return ReplyKeyboardMarkup(rows, resize_keyboard=True)


def teacher_menu_keyboard() -> ReplyKeyboardMarkup:
    labels = messages.TEACHER_MENU_LABELS
    rows = [
        [labels["manage_grades"], labels["my_students"]],
        [labels["announce"], labels["contact_parent"]],
        [labels["profile"], labels["search"]],
    ]
    return ReplyKeyboardMarkup(rows, resize_keyboard=True)


def role_menu_keyboard(user: Optional[User]) -> Optional[ReplyKeyboardMarkup]:
    """Persistent menu for the role of ``user``; ``None`` for guests."""

    if user is None:
        return None
    if user.role is Role.ADMIN:
        return admin_menu_keyboard()
    if user.role is Role.TEACHER:
        return teacher_menu_keyboard()
    if user.role is Role.PARENT:
        return parent_menu_keyboard()
    return None


def teacher_profile_keyboard() -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [
            InlineKeyboardButton(labels["add_subject"], callback_data=Action.ADD_NEW_SUBJECT.value),
            InlineKeyboardButton(labels["remove_subject"], callback_data=Action.SUBJECT_REMOVAL.value),
        ],
        [InlineKeyboardButton(labels["back_to_teacher"], callback_data=Action.BACK_TO_TEACHER.value)],
    ]
    return InlineKeyboardMarkup(buttons)


def parent_profile_keyboard() -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [InlineKeyboardButton(labels["linked_students"], callback_data=Action.VIEW_LINKED_CHILDREN.value)],
        [InlineKeyboardButton(labels["back_to_parent"], callback_data=Action.BACK_TO_PARENT.value)],
    ]
    return InlineKeyboardMarkup(buttons)


def subject_keyboard(action: Action, subjects: Iterable[str]) -> InlineKeyboardMarkup:
    """One button per subject, each carrying ``action`` and the subject."""

    buttons = []
    for subject in subjects:
        try:
            data = callback_data(action, subject)
        except ValueError as exc:
            LOGGER.warning("Skipping subject %r in %s keyboard: %s", subject, action.value, exc)
            continue
        buttons.append([InlineKeyboardButton(subject, callback_data=data)])
    return InlineKeyboardMarkup(buttons)


def grade_edit_keyboard(grades: Iterable[Grade]) -> InlineKeyboardMarkup:
    label = messages.INLINE_LABELS["edit_grade"]
    buttons = [
        [
            InlineKeyboardButton(
                label.format(score=grade.score, purpose=grade.purpose),
                callback_data=callback_data(Action.EDIT_GRADE, grade.grade_id),
            )
        ]
        for grade in grades
    ]
    return InlineKeyboardMarkup(buttons)


def roster_subject_keyboard(student_id: str, subjects: Iterable[str]) -> InlineKeyboardMarkup:
    buttons = []
    for subject in subjects:
        try:
            data = callback_data(Action.ADD_STUDENT_TO_SUBJECT, student_id, subject)
        except ValueError as exc:
            LOGGER.warning("Skipping subject %r in roster keyboard: %s", subject, exc)
            continue
        buttons.append([InlineKeyboardButton(subject, callback_data=data)])
    buttons.append(
        [
            InlineKeyboardButton(
                messages.INLINE_LABELS["add_to_all_subjects"],
                callback_data=callback_data(Action.ADD_STUDENT_ALL_SUBJECTS, student_id),
            )
        ]
    )
    return InlineKeyboardMarkup(buttons)


def manage_grades_keyboard(students: Iterable[Student]) -> InlineKeyboardMarkup:
    label = messages.INLINE_LABELS["manage_grades_for"]
    buttons = [
        [
            InlineKeyboardButton(
                label.format(name=student.name),
                callback_data=callback_data(Action.MANAGE_GRADES, student.student_id),
            )
        ]
        for student in students
    ]
    return InlineKeyboardMarkup(buttons)


def add_student_to_class_keyboard() -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        [[InlineKeyboardButton(messages.INLINE_LABELS["add_student_to_class"], callback_data=Action.TEACHER_ADD_STUDENT.value)]]
    )


__all__ = [
    "add_student_to_class_keyboard",
    "grade_edit_keyboard",
    "manage_grades_keyboard",
    "parent_menu_keyboard",
    "parent_profile_keyboard",
    "registration_keyboard",
    "role_menu_keyboard",
    "roster_subject_keyboard",
    "subject_keyboard",
    "teacher_menu_keyboard",
    "teacher_profile_keyboard",
]
