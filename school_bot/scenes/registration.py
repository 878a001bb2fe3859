from __future__ import annotations

from school_bot import messages
from school_bot.errors import SchoolBotError, ValidationError
from school_bot.keyboards.admin import admin_menu_keyboard
from school_bot.scenes.names import SceneName
from school_bot.scenes.router import Scene, SceneContext, prompt


async def _admin_login(ctx: SceneContext) -> None:
    try:
        await ctx.services.staff.login_admin(ctx.user_id, ctx.first_name, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["admin_login"], admin_menu_keyboard())
    await ctx.leave()


async def _register_parent(ctx: SceneContext) -> None:
    try:
        student = await ctx.services.approvals.request_parent_link(ctx.user_id, ctx.first_name, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["link_requested"].format(name=student.name), ctx.menu)
    await ctx.leave()


async def _link_another_student(ctx: SceneContext) -> None:
    try:
        student = await ctx.services.approvals.request_parent_link(
            ctx.user_id, ctx.first_name, ctx.text, registered_only=True
        )
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
        return
    await ctx.reply(messages.SUCCESS["link_requested"].format(name=student.name), ctx.menu)
    await ctx.leave()


async def _register_teacher(ctx: SceneContext) -> None:
    try:
        teacher = await ctx.services.staff.register_teacher(ctx.user_id, ctx.first_name, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
        await ctx.leave()
        return
    await ctx.reply(messages.SUCCESS["teacher_registered"].format(name=teacher.name))
    await ctx.enter(SceneName.REGISTER_TEACHER_SUBJECT)


async def _register_subject(ctx: SceneContext) -> None:
    try:
        subject = await ctx.services.approvals.request_subject(ctx.user_id, ctx.text)
    except ValidationError as exc:
        # Malformed subject: let the teacher try again.
        await ctx.reply(str(exc))
        return
    except SchoolBotError as exc:
        await ctx.reply(str(exc), ctx.menu)
    else:
        await ctx.reply(messages.SUCCESS["subject_requested"].format(subject=subject), ctx.menu)
    await ctx.leave()


SCENES = (
    Scene(name=SceneName.ADMIN_LOGIN, on_enter=prompt("admin_code"), on_text=_admin_login),
    Scene(name=SceneName.REGISTER_PARENT, on_enter=prompt("register_parent"), on_text=_register_parent),
    Scene(
        name=SceneName.LINK_ANOTHER_STUDENT,
        on_enter=prompt("link_student"),
        on_text=_link_another_student,
    ),
    Scene(
        name=SceneName.REGISTER_TEACHER,
        on_enter=prompt("register_teacher"),
        on_text=_register_teacher,
        next_scenes=frozenset({SceneName.REGISTER_TEACHER_SUBJECT}),
    ),
    Scene(
        name=SceneName.REGISTER_TEACHER_SUBJECT,
        on_enter=prompt("teacher_subject"),
        on_text=_register_subject,
    ),
)


__all__ = ["SCENES"]
