"""Handlers that run when no scene claims an event.

Commands, persistent menu buttons and the global inline callbacks live here.
Every menu button checks the caller's role before doing anything; callback
handlers that resolve approvals leave the admin check to the services.
"""

from __future__ import annotations

import functools
import logging
from typing import Dict

from school_bot import messages
from school_bot.callbacks import Action
from school_bot.database import Role
from school_bot.keyboards.admin import admin_menu_keyboard, student_management_keyboard, user_management_keyboard
from school_bot.keyboards.user import (
    add_student_to_class_keyboard,
    parent_profile_keyboard,
    registration_keyboard,
    subject_keyboard,
    teacher_profile_keyboard,
)
from school_bot.scenes.names import SceneName
from school_bot.scenes.router import EventKind, Handler, SceneContext
from school_bot.sessions import ANNOUNCEMENT_SUBJECT, CURRENT_STUDENT_ID
from school_bot.utils.formatting import (
    format_admins,
    format_grade_report,
    format_linked_students,
    format_parent_profile,
    format_parents,
    format_rosters,
    format_schedules,
    format_students,
    format_teacher_profile,
    format_teachers,
)

LOGGER = logging.getLogger(__name__)

ADMIN = (Role.ADMIN,)
TEACHER = (Role.TEACHER,)
PARENT = (Role.PARENT,)


def requires(*roles: Role):
    """Reject the event unless the caller holds one of ``roles``."""

    def decorate(handler: Handler) -> Handler:
        @functools.wraps(handler)
        async def guarded(ctx: SceneContext) -> None:
            user = ctx.user
            if user is None or user.role not in roles:
                LOGGER.info("User %s lacks role for %s", ctx.user_id, handler.__name__)
                await ctx.reply(messages.ERRORS["not_authorized"], ctx.menu)
                return
            await handler(ctx)

        return guarded

    return decorate


def open_scene(name: SceneName) -> Handler:
    async def _open(ctx: SceneContext) -> None:
        await ctx.enter(name)

    _open.__name__ = f"open_{name.value}"
    return _open


# ----------------------------------------------------------------------
# Commands


async def start(ctx: SceneContext) -> None:
    await ctx.leave()
    user = ctx.user
    menu = ctx.menu
    if user is None or menu is None:
        await ctx.reply(messages.WELCOME_MESSAGE, registration_keyboard())
        return
    await ctx.reply(messages.WELCOME_BACK.format(name=user.name), menu)


async def admin(ctx: SceneContext) -> None:
    user = ctx.user
    if user is not None and user.is_admin:
        await ctx.leave()
        await ctx.reply(messages.ADMIN_PANEL_TITLE, admin_menu_keyboard())
        return
    await ctx.enter(SceneName.ADMIN_LOGIN)


async def cancel(ctx: SceneContext) -> None:
    await ctx.leave()
    await ctx.reply(messages.SUCCESS["scene_cancelled"], ctx.menu)


COMMANDS: Dict[str, Handler] = {"start": start, "admin": admin, "cancel": cancel}


# ----------------------------------------------------------------------
# Administrator menus


async def show_student_management(ctx: SceneContext) -> None:
    await ctx.reply(messages.SECTION_TITLES["students"], student_management_keyboard())


async def show_user_management(ctx: SceneContext) -> None:
    await ctx.reply(messages.SECTION_TITLES["users"], user_management_keyboard())


async def back_to_admin(ctx: SceneContext) -> None:
    await ctx.reply(messages.SECTION_TITLES["back_to_admin"], admin_menu_keyboard())


async def view_admins(ctx: SceneContext) -> None:
    await ctx.reply(format_admins(ctx.services.repository.list_admins()))


async def view_teachers(ctx: SceneContext) -> None:
    await ctx.reply(format_teachers(ctx.services.repository.list_teachers()))


async def view_parents(ctx: SceneContext) -> None:
    await ctx.reply(format_parents(ctx.services.repository.list_users(Role.PARENT)))


async def view_students(ctx: SceneContext) -> None:
    await ctx.reply(format_students(ctx.services.repository.list_students()))


# ----------------------------------------------------------------------
# Teacher and parent menus


async def show_rosters(ctx: SceneContext) -> None:
    rosters = ctx.services.grades.rosters_for(ctx.user_id)
    await ctx.reply(format_rosters(rosters), add_student_to_class_keyboard())


async def choose_announcement_subject(ctx: SceneContext) -> None:
    teacher = ctx.services.grades.teacher_for(ctx.user_id)
    if not teacher.subjects:
        await ctx.reply(messages.ERRORS["no_subjects"], ctx.menu)
        return
    await ctx.reply(
        messages.PROMPTS["announce_subject"], subject_keyboard(Action.ANNOUNCE_SUBJECT, teacher.subjects)
    )


async def show_profile(ctx: SceneContext) -> None:
    user = ctx.user
    if user is not None and user.role is Role.TEACHER:
        teacher = ctx.services.repository.find_teacher_by_user(ctx.user_id)
        if teacher is None:
            await ctx.reply(messages.ERRORS["profile_missing"])
            return
        await ctx.reply(format_teacher_profile(teacher), teacher_profile_keyboard())
        return
    await ctx.reply(format_parent_profile(user), parent_profile_keyboard())


async def show_grades(ctx: SceneContext) -> None:
    students = ctx.services.repository.find_students_by_parent(ctx.user_id)
    if not students:
        await ctx.reply(messages.ERRORS["no_students_linked"])
        return
    await ctx.reply(format_grade_report(students))


async def show_schedules(ctx: SceneContext) -> None:
    students = ctx.services.repository.find_students_by_parent(ctx.user_id)
    if not students:
        await ctx.reply(messages.ERRORS["no_schedule"])
        return
    await ctx.reply(format_schedules(students))


def _menu_handlers() -> Dict[str, Handler]:
    admin_labels = messages.ADMIN_MENU_LABELS
    users = messages.USER_MANAGEMENT_LABELS
    students = messages.STUDENT_MANAGEMENT_LABELS
    teacher = messages.TEACHER_MENU_LABELS
    parent = messages.PARENT_MENU_LABELS
    as_admin = requires(*ADMIN)
    as_teacher = requires(*TEACHER)
    as_parent = requires(*PARENT)
    return {
        admin_labels["students"]: as_admin(show_student_management),
        admin_labels["users"]: as_admin(show_user_management),
        admin_labels["announcements"]: as_admin(open_scene(SceneName.ANNOUNCEMENT_RECIPIENT)),
        admin_labels["search"]: as_admin(open_scene(SceneName.SEARCH)),
        users["add_admin"]: as_admin(open_scene(SceneName.ADD_ADMIN)),
        users["remove_admin"]: as_admin(open_scene(SceneName.REMOVE_ADMIN)),
        users["edit_teacher"]: as_admin(open_scene(SceneName.EDIT_TEACHER)),
        users["add_teacher"]: as_admin(open_scene(SceneName.ADD_TEACHER)),
        users["remove_teacher"]: as_admin(open_scene(SceneName.REMOVE_TEACHER)),
        users["view_admins"]: as_admin(view_admins),
        users["view_teachers"]: as_admin(view_teachers),
        users["view_parents"]: as_admin(view_parents),
        # shared by both management keyboards
        users["back"]: as_admin(back_to_admin),
        students["add_student"]: as_admin(open_scene(SceneName.ADD_STUDENT)),
        students["remove_student"]: as_admin(open_scene(SceneName.REMOVE_STUDENT)),
        students["edit_student"]: as_admin(open_scene(SceneName.EDIT_STUDENT)),
        students["upload"]: as_admin(open_scene(SceneName.UPLOAD_STUDENT_DB)),
        students["unbind_parent"]: as_admin(open_scene(SceneName.UNBIND_PARENT)),
        students["view_students"]: as_admin(view_students),
        teacher["manage_grades"]: as_teacher(open_scene(SceneName.MANAGE_GRADES)),
        teacher["my_students"]: as_teacher(show_rosters),
        teacher["announce"]: as_teacher(choose_announcement_subject),
        teacher["contact_parent"]: as_teacher(open_scene(SceneName.CONTACT_PARENT)),
        teacher["search"]: as_teacher(open_scene(SceneName.SEARCH)),
        # shared by the teacher and parent menus
        parent["profile"]: requires(Role.TEACHER, Role.PARENT)(show_profile),
        parent["grades"]: as_parent(show_grades),
        parent["schedule"]: as_parent(show_schedules),
        parent["link"]: as_parent(open_scene(SceneName.LINK_ANOTHER_STUDENT)),
        parent["contact_admin"]: as_parent(open_scene(SceneName.CONTACT_ADMIN)),
    }


MENU_HANDLERS = _menu_handlers()


# ----------------------------------------------------------------------
# Global callbacks


async def approve_parent(ctx: SceneContext) -> None:
    parent_id, student_id = ctx.args
    await ctx.reply(await ctx.services.approvals.approve_parent_link(ctx.user_id, parent_id, student_id))


async def deny_parent(ctx: SceneContext) -> None:
    parent_id, student_id = ctx.args
    await ctx.reply(await ctx.services.approvals.deny_parent_link(ctx.user_id, parent_id, student_id))


async def approve_subject(ctx: SceneContext) -> None:
    teacher_id, subject = ctx.args
    await ctx.reply(await ctx.services.approvals.approve_subject(ctx.user_id, teacher_id, subject))


async def deny_subject(ctx: SceneContext) -> None:
    teacher_id, subject = ctx.args
    await ctx.reply(await ctx.services.approvals.deny_subject(ctx.user_id, teacher_id, subject))


async def manage_student_grades(ctx: SceneContext) -> None:
    (student_id,) = ctx.args
    await ctx.enter(SceneName.MANAGE_GRADES, {CURRENT_STUDENT_ID: student_id})


async def announce_subject(ctx: SceneContext) -> None:
    (subject,) = ctx.args
    await ctx.enter(SceneName.TEACHER_ANNOUNCEMENT, {ANNOUNCEMENT_SUBJECT: subject})


async def view_linked_children(ctx: SceneContext) -> None:
    await ctx.reply(format_linked_students(ctx.services.repository.find_students_by_parent(ctx.user_id)))


async def back_to_teacher(ctx: SceneContext) -> None:
    await ctx.reply(messages.SECTION_TITLES["back_to_teacher"], ctx.menu)


async def back_to_parent(ctx: SceneContext) -> None:
    await ctx.reply(messages.SECTION_TITLES["back_to_parent"], ctx.menu)


CALLBACK_HANDLERS: Dict[Action, Handler] = {
    Action.REGISTER_TEACHER: open_scene(SceneName.REGISTER_TEACHER),
    Action.REGISTER_PARENT: open_scene(SceneName.REGISTER_PARENT),
    Action.APPROVE_PARENT: approve_parent,
    Action.DENY_PARENT: deny_parent,
    Action.APPROVE_SUBJECT: approve_subject,
    Action.DENY_SUBJECT: deny_subject,
    Action.MANAGE_GRADES: requires(*TEACHER)(manage_student_grades),
    Action.ANNOUNCE_SUBJECT: requires(*TEACHER)(announce_subject),
    Action.VIEW_LINKED_CHILDREN: requires(*PARENT)(view_linked_children),
    Action.ADD_NEW_SUBJECT: requires(*TEACHER)(open_scene(SceneName.ADD_SUBJECT)),
    Action.SUBJECT_REMOVAL: requires(*TEACHER)(open_scene(SceneName.REMOVE_SUBJECT)),
    Action.TEACHER_ADD_STUDENT: requires(*TEACHER)(open_scene(SceneName.TEACHER_ADD_STUDENT)),
    Action.BACK_TO_TEACHER: requires(*TEACHER)(back_to_teacher),
    Action.BACK_TO_PARENT: requires(*PARENT)(back_to_parent),
}


async def handle(ctx: SceneContext) -> None:
    """Route an event that no active scene handled."""

    event = ctx.event
    if event.kind is EventKind.CALLBACK:
        handler = CALLBACK_HANDLERS.get(event.command.action) if event.command else None
        if handler is None:
            LOGGER.info("Stale or unknown callback from %s", ctx.user_id)
            await ctx.reply(messages.ERRORS["request_not_found"])
            return
        await handler(ctx)
        return
    if event.kind is EventKind.TEXT:
        handler = MENU_HANDLERS.get(ctx.text)
        if handler is not None:
            await handler(ctx)
            return
    await ctx.reply(messages.ERRORS["unknown_command"], ctx.menu)


def is_menu_label(text: str) -> bool:
    return text.strip() in MENU_HANDLERS


__all__ = [
    "CALLBACK_HANDLERS",
    "COMMANDS",
    "MENU_HANDLERS",
    "handle",
    "is_menu_label",
    "open_scene",
    "requires",
]
