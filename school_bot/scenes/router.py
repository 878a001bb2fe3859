"""Scene-based conversation engine.

A session has at most one active scene.  Inbound events go to the active
scene's handlers; when it has none for the event kind, :meth:`SceneRouter.dispatch`
returns ``False`` and the caller falls back to the top-level handlers.

Multi-step forms are chains of single-purpose scenes.  A handler moves the
conversation forward with ``ctx.enter(next_scene)``, which must be listed in
the current scene's ``next_scenes`` and does not run the current scene's leave
hook.  Fields written along the chain stay in the session until a scene that
declares them in ``clears`` is left.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Mapping, Optional

from telegram import InlineKeyboardMarkup, ReplyKeyboardMarkup

from school_bot import messages
from school_bot.callbacks import Action, CallbackCommand
from school_bot.database import User
from school_bot.errors import SceneTransitionError
from school_bot.keyboards.user import role_menu_keyboard
from school_bot.scenes.names import SceneName
from school_bot.sessions import Session

if TYPE_CHECKING:
    from school_bot.dispatcher import Services

LOGGER = logging.getLogger(__name__)

ReplyMarkup = Optional[InlineKeyboardMarkup | ReplyKeyboardMarkup]
ReplyFn = Callable[[str, ReplyMarkup], Awaitable[None]]
Handler = Callable[["SceneContext"], Awaitable[None]]


class EventKind(Enum):
    TEXT = "text"
    CALLBACK = "callback"
    DOCUMENT = "document"


@dataclass(frozen=True, slots=True)
class Event:
    kind: EventKind
    text: str = ""
    command: Optional[CallbackCommand] = None
    document: Optional[bytes] = None

    @classmethod
    def text_message(cls, text: str) -> "Event":
        return cls(kind=EventKind.TEXT, text=text or "")

    @classmethod
    def callback(cls, command: Optional[CallbackCommand]) -> "Event":
        return cls(kind=EventKind.CALLBACK, command=command)

    @classmethod
    def upload(cls, document: bytes) -> "Event":
        return cls(kind=EventKind.DOCUMENT, document=document)

    @property
    def stripped(self) -> str:
        return self.text.strip()


@dataclass(frozen=True, slots=True)
class Scene:
    name: SceneName
    on_enter: Optional[Handler] = None
    on_text: Optional[Handler] = None
    on_document: Optional[Handler] = None
    actions: Mapping[Action, Handler] = field(default_factory=dict)
    on_leave: Optional[Handler] = None
    next_scenes: frozenset[SceneName] = frozenset()
    reads: frozenset[str] = frozenset()
    writes: frozenset[str] = frozenset()
    clears: frozenset[str] = frozenset()

    def handler_for(self, event: Event) -> Optional[Handler]:
        if event.kind is EventKind.TEXT:
            return self.on_text
        if event.kind is EventKind.DOCUMENT:
            return self.on_document
        if event.command is None:
            return None
        return self.actions.get(event.command.action)

    @property
    def accepts_documents(self) -> bool:
        return self.on_document is not None


@dataclass(slots=True)
class SceneContext:
    """Everything a handler needs for one inbound event."""

    user_id: int
    first_name: str
    session: Session
    event: Event
    services: "Services"
    router: "SceneRouter"
    send: ReplyFn
    origin: Optional[SceneName] = None

    @property
    def user(self) -> Optional[User]:
        return self.services.repository.find_user(self.user_id)

    @property
    def menu(self) -> ReplyMarkup:
        return role_menu_keyboard(self.user)

    @property
    def text(self) -> str:
        return self.event.stripped

    @property
    def args(self) -> tuple[Any, ...]:
        return self.event.command.args if self.event.command else ()

    async def reply(self, text: str, reply_markup: ReplyMarkup = None) -> None:
        await self.send(text, reply_markup)

    async def enter(self, name: SceneName, seed: Optional[Mapping[str, Any]] = None) -> None:
        await self.router.enter(self, name, seed)

    async def leave(self) -> None:
        await self.router.leave(self)


def prompt(key: str, **values: str) -> Handler:
    """Handler that sends the prompt registered under ``key``."""

    async def _prompt(ctx: SceneContext) -> None:
        await ctx.reply(messages.PROMPTS[key].format(**values) if values else messages.PROMPTS[key])

    return _prompt


class SceneRouter:
    def __init__(self, scenes: Iterable[Scene]) -> None:
        table: dict[SceneName, Scene] = {}
        for scene in scenes:
            if scene.name in table:
                raise SceneTransitionError(f"Scene {scene.name.value} is defined twice")
            table[scene.name] = scene
        missing = [name.value for name in SceneName if name not in table]
        if missing:
            raise SceneTransitionError(f"Scenes without a definition: {', '.join(missing)}")
        for scene in table.values():
            unknown = [target for target in scene.next_scenes if target not in table]
            if unknown:
                raise SceneTransitionError(f"{scene.name.value} chains into unknown scenes {unknown}")
        self._scenes = table

    def __getitem__(self, name: SceneName) -> Scene:
        return self._scenes[name]

    def __iter__(self):
        return iter(self._scenes.values())

    def active(self, session: Session) -> Optional[Scene]:
        if session.active_scene is None:
            return None
        try:
            return self._scenes[SceneName(session.active_scene)]
        except ValueError:
            LOGGER.warning("Session %s references unknown scene %r; resetting", session.user_id, session.active_scene)
            session.active_scene = None
            return None

    async def enter(
        self, ctx: SceneContext, name: SceneName, seed: Optional[Mapping[str, Any]] = None
    ) -> None:
        scene = self._scenes[name]
        if ctx.origin is not None:
            if name not in self._scenes[ctx.origin].next_scenes:
                raise SceneTransitionError(f"{ctx.origin.value} cannot chain into {name.value}")
        elif ctx.session.active_scene is not None:
            await self.leave(ctx)

        ctx.session.active_scene = name.value
        if seed:
            ctx.session.fields.update(seed)
        if scene.on_enter is None:
            return
        previous, ctx.origin = ctx.origin, name
        try:
            await scene.on_enter(ctx)
        finally:
            ctx.origin = previous

    async def leave(self, ctx: SceneContext) -> None:
        scene = self.active(ctx.session)
        if scene is None:
            return
        if scene.on_leave is not None:
            await scene.on_leave(ctx)
        ctx.session.clear(*scene.clears)
        ctx.session.active_scene = None

    async def dispatch(self, ctx: SceneContext) -> bool:
        scene = self.active(ctx.session)
        if scene is None:
            return False
        handler = scene.handler_for(ctx.event)
        if handler is None:
            return False
        previous, ctx.origin = ctx.origin, scene.name
        try:
            await handler(ctx)
        finally:
            ctx.origin = previous
        return True


__all__ = [
    "Event",
    "EventKind",
    "Handler",
    "ReplyFn",
    "Scene",
    "SceneContext",
    "SceneRouter",
    "prompt",
]
