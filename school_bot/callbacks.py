"""Structured inline-button payloads.

Telegram hands callback data back verbatim, so every payload is treated as
untrusted: :meth:`CallbackCommand.parse` accepts only strings produced by
:meth:`CallbackCommand.encode` and returns ``None`` for anything else.
Handlers still re-resolve the decoded identifiers against the repository.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

CALLBACK_DATA_LIMIT = 64

Arg = Union[int, str]


class ArgKind(Enum):
    IDENTITY = r"\d{1,20}"
    RECORD_ID = r"\d{10}"
    SUBJECT = r"[^_\s][^_]{0,31}(?:_[^_]+)*"
    TOKEN = r"[0-9a-f]{32}"


class Action(str, Enum):
    REGISTER_TEACHER = "register_teacher"
    REGISTER_PARENT = "register_parent"
    APPROVE_PARENT = "approve_parent"
    DENY_PARENT = "deny_parent"
    APPROVE_SUBJECT = "approve_subject"
    DENY_SUBJECT = "deny_subject"
    SELECT_SUBJECT = "select_subject"
    EDIT_GRADE = "edit_grade"
    MANAGE_GRADES = "manage_grades"
    ANNOUNCE_SUBJECT = "announce_subject"
    REMOVE_SUBJECT = "remove_subject"
    SUBJECT_REMOVAL = "subject_removal"
    ADD_STUDENT_TO_SUBJECT = "add_student_to_subject"
    ADD_STUDENT_ALL_SUBJECTS = "add_student_all_subjects"
    EDIT_STUDENT_NAME = "edit_student_name"
    EDIT_STUDENT_PARENT = "edit_student_parent"
    EDIT_STUDENT_CLASS = "edit_student_class"
    CANCEL_EDIT_STUDENT = "cancel_edit_student"
    EDIT_TEACHER_NAME = "edit_teacher_name"
    EDIT_TEACHER_SUBJECTS = "edit_teacher_subjects"
    CANCEL_EDIT_TEACHER = "cancel_edit_teacher"
    ANNOUNCE_PARENTS = "announce_parents"
    ANNOUNCE_TEACHERS = "announce_teachers"
    CANCEL_ANNOUNCEMENT = "cancel_announcement"
    VIEW_LINKED_CHILDREN = "view_linked_children"
    ADD_NEW_SUBJECT = "add_new_subject"
    TEACHER_ADD_STUDENT = "teacher_add_student"
    BACK_TO_TEACHER = "back_to_teacher"
    BACK_TO_PARENT = "back_to_parent"


SIGNATURES: dict[Action, Tuple[ArgKind, ...]] = {
    Action.APPROVE_PARENT: (ArgKind.IDENTITY, ArgKind.RECORD_ID),
    Action.DENY_PARENT: (ArgKind.IDENTITY, ArgKind.RECORD_ID),
    Action.APPROVE_SUBJECT: (ArgKind.RECORD_ID, ArgKind.SUBJECT),
    Action.DENY_SUBJECT: (ArgKind.RECORD_ID, ArgKind.SUBJECT),
    Action.SELECT_SUBJECT: (ArgKind.SUBJECT,),
    Action.EDIT_GRADE: (ArgKind.TOKEN,),
    Action.MANAGE_GRADES: (ArgKind.RECORD_ID,),
    Action.ANNOUNCE_SUBJECT: (ArgKind.SUBJECT,),
    Action.REMOVE_SUBJECT: (ArgKind.SUBJECT,),
    Action.ADD_STUDENT_TO_SUBJECT: (ArgKind.RECORD_ID, ArgKind.SUBJECT),
    Action.ADD_STUDENT_ALL_SUBJECTS: (ArgKind.RECORD_ID,),
}

_PATTERNS: dict[Action, re.Pattern[str]] = {
    action: re.compile(
        "_".join([re.escape(action.value), *(f"({kind.value})" for kind in kinds)])
    )
    for action, kinds in SIGNATURES.items()
}


def encode_subject(subject: str) -> str:
    return "_".join(subject.split())


def decode_subject(token: str) -> str:
    return token.replace("_", " ")


def _render(kind: ArgKind, value: Arg) -> str:
    if kind is ArgKind.IDENTITY:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"Expected a non-negative identity, got {value!r}")
        return str(value)
    text = str(value)
    if kind is ArgKind.RECORD_ID and not re.fullmatch(kind.value, text):
        raise ValueError(f"Expected a 10-digit record id, got {value!r}")
    if kind is ArgKind.TOKEN and not re.fullmatch(kind.value, text):
        raise ValueError(f"Expected a grade token, got {value!r}")
    if kind is ArgKind.SUBJECT:
        if "_" in text or not text.strip():
            raise ValueError(f"Subject cannot be encoded: {value!r}")
        return encode_subject(text)
    return text


def _convert(kind: ArgKind, raw: str) -> Arg:
    if kind is ArgKind.IDENTITY:
        return int(raw)
    if kind is ArgKind.SUBJECT:
        return decode_subject(raw)
    return raw


@dataclass(frozen=True, slots=True)
class CallbackCommand:
    action: Action
    args: Tuple[Arg, ...] = ()

    @classmethod
    def of(cls, action: Action, *args: Arg) -> "CallbackCommand":
        return cls(action=action, args=tuple(args))

    def encode(self) -> str:
        kinds = SIGNATURES.get(self.action, ())
        if len(kinds) != len(self.args):
            raise ValueError(
                f"{self.action.value} takes {len(kinds)} argument(s), got {len(self.args)}"
            )
        parts = [self.action.value, *(_render(kind, value) for kind, value in zip(kinds, self.args))]
        payload = "_".join(parts)
        if len(payload.encode("utf-8")) > CALLBACK_DATA_LIMIT:
            raise ValueError(f"Callback payload exceeds {CALLBACK_DATA_LIMIT} bytes: {payload!r}")
        return payload

    @classmethod
    def parse(cls, payload: Optional[str]) -> Optional["CallbackCommand"]:
        if not payload or len(payload.encode("utf-8")) > CALLBACK_DATA_LIMIT:
            return None
        try:
            action = Action(payload)
        except ValueError:
            pass
        else:
            if action not in SIGNATURES:
                return cls(action=action)
        for action, pattern in _PATTERNS.items():
            match = pattern.fullmatch(payload)
            if match is None:
                continue
            kinds = SIGNATURES[action]
            return cls(
                action=action,
                args=tuple(_convert(kind, raw) for kind, raw in zip(kinds, match.groups())),
            )
        return None


def callback_data(action: Action, *args: Arg) -> str:
    return CallbackCommand.of(action, *args).encode()


__all__ = [
    "Action",
    "ArgKind",
    "CALLBACK_DATA_LIMIT",
    "CallbackCommand",
    "SIGNATURES",
    "callback_data",
    "decode_subject",
    "encode_subject",
]
