"""Assembles every scene into the router used by the dispatcher."""

from __future__ import annotations

from school_bot.scenes import admin, parent, registration, teacher
from school_bot.scenes.router import SceneRouter
from school_bot.sessions import ANNOUNCEMENT_SUBJECT, CURRENT_STUDENT_ID

# Fields a top-level callback may seed when it opens a scene.
TOP_LEVEL_SEEDS = frozenset({CURRENT_STUDENT_ID, ANNOUNCEMENT_SUBJECT})

ALL_SCENES = admin.SCENES + registration.SCENES + teacher.SCENES + parent.SCENES


def build_router() -> SceneRouter:
    return SceneRouter(ALL_SCENES)


__all__ = ["ALL_SCENES", "TOP_LEVEL_SEEDS", "build_router"]
