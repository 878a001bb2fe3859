from __future__ import annotations

import pytest
from telegram.error import Forbidden

from school_bot.callbacks import CallbackCommand
from school_bot.database import Repository, Role, Student, Teacher, User
from school_bot.dispatcher import Dispatcher, Services
from school_bot.scenes.router import Event

ADMIN_CODE = "letmein"


class FakeBot:
    """Records outgoing messages; chats in ``blocked`` behave like users who blocked the bot."""

    def __init__(self):
        self.sent = []
        self.blocked = set()

    async def send_message(self, chat_id, text, reply_markup=None):
        if chat_id in self.blocked:
            raise Forbidden("Forbidden: bot was blocked by the user")
        self.sent.append((chat_id, text, reply_markup))

    def texts_to(self, chat_id):
        return [text for target, text, _ in self.sent if target == chat_id]

    def markups_to(self, chat_id):
        return [markup for target, _, markup in self.sent if target == chat_id]


class Conversation:
    """Talks to the dispatcher as one Telegram user and keeps the replies."""

    def __init__(self, dispatcher, user_id, first_name):
        self.dispatcher = dispatcher
        self.user_id = user_id
        self.first_name = first_name
        self.replies = []

    async def _send(self, text, reply_markup=None):
        self.replies.append((text, reply_markup))

    async def say(self, text):
        await self.dispatcher.handle(self.user_id, self.first_name, Event.text_message(text), self._send)

    async def press(self, payload):
        command = CallbackCommand.parse(payload)
        await self.dispatcher.handle(self.user_id, self.first_name, Event.callback(command), self._send)

    async def command(self, name):
        await self.dispatcher.command(self.user_id, self.first_name, name, self._send)

    async def upload(self, payload):
        await self.dispatcher.handle(self.user_id, self.first_name, Event.upload(payload), self._send)

    @property
    def texts(self):
        return [text for text, _ in self.replies]

    @property
    def last(self):
        return self.replies[-1][0]

    @property
    def last_markup(self):
        return self.replies[-1][1]

    @property
    def scene(self):
        return self.dispatcher.sessions.get(self.user_id).active_scene

    @property
    def fields(self):
        return self.dispatcher.sessions.get(self.user_id).fields


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def repository(tmp_path):
    return Repository.from_directory(tmp_path)


@pytest.fixture
def bot():
    return FakeBot()


@pytest.fixture
def services(repository, bot):
    return Services.create(repository, bot, ADMIN_CODE)


@pytest.fixture
def dispatcher(services):
    return Dispatcher(services)


@pytest.fixture
def chat(dispatcher):
    def _open(user_id, first_name="Tester"):
        return Conversation(dispatcher, user_id, first_name)

    return _open


@pytest.fixture
def school(repository):
    """A small school: one admin, one linked teacher teaching Math, two students."""

    repository.add_user(User(identity=1, name="Principal", role=Role.ADMIN))
    repository.add_user(User(identity=20, name="Mr Smith", role=Role.TEACHER, subjects=["Math"]))
    repository.add_teacher(Teacher(teacher_id="2000000001", name="Mr Smith", user_id=20, subjects=["Math"]))
    repository.add_teacher(Teacher(teacher_id="2000000002", name="Ms Jones"))
    repository.add_student(Student(student_id="1000000001", name="Ava", class_name="Grade 5"))
    repository.add_student(Student(student_id="1000000002", name="Ben", class_name="Grade 8"))
    repository.flush()
    return repository
