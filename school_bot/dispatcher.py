"""Transport-independent event dispatch.

:class:`Dispatcher` is what the Telegram layer talks to: it serialises the
events of one user on that user's session lock, offers each event to the
active scene and falls back to :mod:`school_bot.menus` otherwise.  Tests
drive it directly with a recording ``send`` callable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from school_bot import menus
from school_bot.database import Repository
from school_bot.errors import SchoolBotError
from school_bot.scenes.registry import build_router
from school_bot.scenes.router import Event, EventKind, ReplyFn, SceneContext, SceneRouter
from school_bot.services.approvals import ApprovalService
from school_bot.services.broadcast import BroadcastService
from school_bot.services.grades import GradeService
from school_bot.services.notifications import Notifier
from school_bot.services.staff import StaffService
from school_bot.services.students import StudentService
from school_bot.sessions import SessionStore

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class Services:
    repository: Repository
    notifier: Notifier
    approvals: ApprovalService
    students: StudentService
    staff: StaffService
    grades: GradeService
    broadcast: BroadcastService

    @classmethod
    def create(cls, repository: Repository, bot: Any, admin_secret_code: str) -> "Services":
        notifier = Notifier(bot)
        grades = GradeService(repository)
        return cls(
            repository=repository,
            notifier=notifier,
            approvals=ApprovalService(repository, notifier),
            students=StudentService(repository),
            staff=StaffService(repository, admin_secret_code),
            grades=grades,
            broadcast=BroadcastService(repository, notifier, grades),
        )


class Dispatcher:
    def __init__(
        self,
        services: Services,
        sessions: Optional[SessionStore] = None,
        router: Optional[SceneRouter] = None,
    ) -> None:
        self.services = services
        self.sessions = sessions or SessionStore()
        self.router = router or build_router()

    def accepts_documents(self, user_id: int) -> bool:
        """Whether the user's active scene is waiting for an upload."""

        if user_id not in self.sessions:
            return False
        scene = self.router.active(self.sessions.get(user_id))
        return scene is not None and scene.accepts_documents

    async def handle(self, user_id: int, first_name: str, event: Event, send: ReplyFn) -> None:
        session = self.sessions.get(user_id)
        async with session.lock:
            ctx = SceneContext(
                user_id=user_id,
                first_name=first_name or "",
                session=session,
                event=event,
                services=self.services,
                router=self.router,
                send=send,
            )
            try:
                if event.kind is EventKind.TEXT and menus.is_menu_label(event.text):
                    # Menu buttons always escape the active scene.
                    await self.router.leave(ctx)
                elif await self.router.dispatch(ctx):
                    return
                await menus.handle(ctx)
            except SchoolBotError as exc:
                LOGGER.info("Rejected event from %s: %s", user_id, exc)
                await ctx.reply(str(exc), ctx.menu)

    async def command(self, user_id: int, first_name: str, name: str, send: ReplyFn) -> None:
        handler = menus.COMMANDS.get(name)
        if handler is None:
            LOGGER.debug("Ignoring unknown command /%s from %s", name, user_id)
            return
        session = self.sessions.get(user_id)
        async with session.lock:
            ctx = SceneContext(
                user_id=user_id,
                first_name=first_name or "",
                session=session,
                event=Event.text_message(f"/{name}"),
                services=self.services,
                router=self.router,
                send=send,
            )
            try:
                await handler(ctx)
            except SchoolBotError as exc:
                LOGGER.info("Rejected /%s from %s: %s", name, user_id, exc)
                await ctx.reply(str(exc), ctx.menu)


__all__ = ["Dispatcher", "Services"]
