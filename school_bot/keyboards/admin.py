from __future__ import annotations

from telegram import InlineKeyboardButton, InlineKeyboardMarkup, ReplyKeyboardMarkup

from school_bot import messages
from school_bot.callbacks import Action, callback_data


def admin_menu_keyboard() -> ReplyKeyboardMarkup:
    labels = messages.ADMIN_MENU_LABELS
    rows = [
        [labels["students"], labels["users"]],
        [labels["announcements"], labels["search"]],
    ]
    return ReplyKeyboardMarkup(rows, resize_keyboard=True)


def user_management_keyboard() -> ReplyKeyboardMarkup:
    labels = messages.USER_MANAGEMENT_LABELS
    rows = [
        [labels["add_admin"], labels["remove_admin"], labels["edit_teacher"]],
        [labels["add_teacher"], labels["remove_teacher"]],
        [labels["view_admins"], labels["view_teachers"], labels["view_parents"]],
        [labels["back"]],
    ]
    return ReplyKeyboardMarkup(rows, resize_keyboard=True)


def student_management_keyboard() -> ReplyKeyboardMarkup:
    labels = messages.STUDENT_MANAGEMENT_LABELS
    rows = [
        [labels["add_student"], labels["remove_student"], labels["edit_student"]],
        [labels["upload"], labels["unbind_parent"]],
        [labels["view_students"]],
        [labels["back"]],
    ]
    return ReplyKeyboardMarkup(rows, resize_keyboard=True)


def parent_link_request_keyboard(parent_id: int, student_id: str) -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [InlineKeyboardButton(labels["approve"], callback_data=callback_data(Action.APPROVE_PARENT, parent_id, student_id))],
        [InlineKeyboardButton(labels["deny"], callback_data=callback_data(Action.DENY_PARENT, parent_id, student_id))],
    ]
    return InlineKeyboardMarkup(buttons)


def subject_request_keyboard(teacher_id: str, subject: str) -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [InlineKeyboardButton(labels["approve"], callback_data=callback_data(Action.APPROVE_SUBJECT, teacher_id, subject))],
        [InlineKeyboardButton(labels["deny"], callback_data=callback_data(Action.DENY_SUBJECT, teacher_id, subject))],
    ]
    return InlineKeyboardMarkup(buttons)


def edit_student_keyboard() -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [
            InlineKeyboardButton(labels["edit_name"], callback_data=Action.EDIT_STUDENT_NAME.value),
            InlineKeyboardButton(labels["edit_parent"], callback_data=Action.EDIT_STUDENT_PARENT.value),
        ],
        [
            InlineKeyboardButton(labels["edit_class"], callback_data=Action.EDIT_STUDENT_CLASS.value),
            InlineKeyboardButton(labels["cancel"], callback_data=Action.CANCEL_EDIT_STUDENT.value),
        ],
    ]
    return InlineKeyboardMarkup(buttons)


def edit_teacher_keyboard() -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [
            InlineKeyboardButton(labels["edit_name"], callback_data=Action.EDIT_TEACHER_NAME.value),
            InlineKeyboardButton(labels["edit_subjects"], callback_data=Action.EDIT_TEACHER_SUBJECTS.value),
        ],
        [InlineKeyboardButton(labels["cancel"], callback_data=Action.CANCEL_EDIT_TEACHER.value)],
    ]
    return InlineKeyboardMarkup(buttons)


def announcement_target_keyboard() -> InlineKeyboardMarkup:
    labels = messages.INLINE_LABELS
    buttons = [
        [InlineKeyboardButton(labels["all_parents"], callback_data=Action.ANNOUNCE_PARENTS.value)],
        [InlineKeyboardButton(labels["all_teachers"], callback_data=Action.ANNOUNCE_TEACHERS.value)],
        [InlineKeyboardButton(labels["cancel"], callback_data=Action.CANCEL_ANNOUNCEMENT.value)],
    ]
    return InlineKeyboardMarkup(buttons)


__all__ = [
    "admin_menu_keyboard",
    "announcement_target_keyboard",
    "edit_student_keyboard",
    "edit_teacher_keyboard",
    "parent_link_request_keyboard",
    "student_management_keyboard",
    "subject_request_keyboard",
    "user_management_keyboard",
]
