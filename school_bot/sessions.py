from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

# Transient fields threaded through chained scenes.
NEW_STUDENT_NAME = "new_student_name"
EDIT_STUDENT_ID = "edit_student_id"
EDIT_TEACHER_ID = "edit_teacher_id"
ANNOUNCEMENT_TARGET = "announcement_target"
ANNOUNCEMENT_SUBJECT = "announcement_subject"
CURRENT_STUDENT_ID = "current_student_id"
CURRENT_SUBJECT = "current_subject"
NEW_GRADE_SCORE = "new_grade_score"
CURRENT_GRADE_ID = "current_grade_id"
RECIPIENT_ID = "recipient_id"
STUDENT_TO_ADD_ID = "student_to_add_id"


@dataclass(slots=True)
class Session:
    """Per-user conversation state: the active scene and carried-over fields."""

    user_id: int
    active_scene: Optional[str] = None
    fields: Dict[str, Any] = field(default_factory=dict)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def set(self, name: str, value: Any) -> None:
        self.fields[name] = value

    def clear(self, *names: str) -> None:
        for name in names:
            self.fields.pop(name, None)


class SessionStore:
    """Process-wide mapping of user identity to :class:`Session`."""

    def __init__(self) -> None:
        self._sessions: Dict[int, Session] = {}

    def get(self, user_id: int) -> Session:
        session = self._sessions.get(user_id)
        if session is None:
            session = Session(user_id=user_id)
            self._sessions[user_id] = session
        return session

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = [
    "ANNOUNCEMENT_SUBJECT",
    "ANNOUNCEMENT_TARGET",
    "CURRENT_GRADE_ID",
    "CURRENT_STUDENT_ID",
    "CURRENT_SUBJECT",
    "EDIT_STUDENT_ID",
    "EDIT_TEACHER_ID",
    "NEW_GRADE_SCORE",
    "NEW_STUDENT_NAME",
    "RECIPIENT_ID",
    "STUDENT_TO_ADD_ID",
    "Session",
    "SessionStore",
]
