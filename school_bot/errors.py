from __future__ import annotations


class SchoolBotError(Exception):
    """Base class for errors that are reported back to the acting user.

    ``str(exc)`` is the message shown in the chat.
    """


class ValidationError(SchoolBotError):
    """Empty, malformed or unknown input; nothing was changed."""


class IntegrityConflict(SchoolBotError):
    """The request would break a uniqueness or linking rule."""


class RequestNotFound(SchoolBotError):
    """No pending request matches, usually because it was already resolved."""


class NotAuthorized(SchoolBotError):
    """The acting user lacks the role required for the operation."""


class SceneTransitionError(RuntimeError):
    """A scene tried to enter a scene missing from its transition table."""


__all__ = [
    "SchoolBotError",
    "ValidationError",
    "IntegrityConflict",
    "RequestNotFound",
    "NotAuthorized",
    "SceneTransitionError",
]
