from __future__ import annotations

from school_bot import messages
from school_bot.callbacks import Action
from school_bot.database import Role
from school_bot.errors import SchoolBotError
from school_bot.keyboards.admin import (
    admin_menu_keyboard,
    announcement_target_keyboard,
    edit_student_keyboard,
    edit_teacher_keyboard,
    student_management_keyboard,
    user_management_keyboard,
)
from school_bot.keyboards.user import manage_grades_keyboard
from school_bot.scenes.names import SceneName
from school_bot.scenes.router import Handler, Scene, SceneContext, prompt
from school_bot.sessions import ANNOUNCEMENT_TARGET, EDIT_STUDENT_ID, EDIT_TEACHER_ID, NEW_STUDENT_NAME
from school_bot.utils.formatting import format_search_results


# Students ------------------------------------------------------------------

async def _student_name(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["invalid_name"])
        await ctx.leave()
        return
    await ctx.enter(SceneName.ADD_STUDENT_CLASS, {NEW_STUDENT_NAME: ctx.text})


async def _student_class(ctx: SceneContext) -> None:
    try:
        student = await ctx.services.students.add_student(ctx.session.get(NEW_STUDENT_NAME), ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(
            messages.SUCCESS["student_added"].format(
                name=student.name, class_name=student.class_name, student_id=student.student_id
            ),
            student_management_keyboard(),
        )
    await ctx.leave()


async def _student_upload(ctx: SceneContext) -> None:
    try:
        added = await ctx.services.students.import_students(ctx.event.document or b"")
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["students_imported"].format(count=len(added)), student_management_keyboard())
    await ctx.leave()


async def _remove_student(ctx: SceneContext) -> None:
    try:
        student = await ctx.services.students.remove_student(ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["student_removed"].format(student_id=student.student_id))
    await ctx.leave()


async def _back_to_students(ctx: SceneContext) -> None:
    await ctx.reply(messages.SECTION_TITLES["back_to_students"], student_management_keyboard())


async def _edit_student_lookup(ctx: SceneContext) -> None:
    student = ctx.services.repository.find_student(ctx.text)
    if student is None:
        await ctx.reply(messages.ERRORS["student_not_found"])
        await ctx.leave()
        return
    ctx.session.set(EDIT_STUDENT_ID, student.student_id)
    await ctx.reply(messages.PROMPTS["edit_field"], edit_student_keyboard())


def _goto(name: SceneName) -> Handler:
    async def _enter(ctx: SceneContext) -> None:
        await ctx.enter(name)

    return _enter


async def _cancel_student_edit(ctx: SceneContext) -> None:
    await ctx.reply(messages.SUCCESS["edit_cancelled"], student_management_keyboard())
    await ctx.leave()


async def _rename_student(ctx: SceneContext) -> None:
    try:
        student = await ctx.services.students.rename_student(ctx.session.get(EDIT_STUDENT_ID), ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["student_renamed"].format(name=student.name))
    await ctx.leave()


async def _reassign_parent(ctx: SceneContext) -> None:
    try:
        student = await ctx.services.students.reassign_parent(ctx.session.get(EDIT_STUDENT_ID), ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(
            messages.SUCCESS["student_parent_changed"].format(name=student.name, identity=student.parent_id)
        )
    await ctx.leave()


async def _change_class(ctx: SceneContext) -> None:
    try:
        student = await ctx.services.students.change_class(ctx.session.get(EDIT_STUDENT_ID), ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["student_class_changed"].format(class_name=student.class_name))
    await ctx.leave()


async def _unbind_parent(ctx: SceneContext) -> None:
    try:
        await ctx.services.students.unbind_parent(ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
        return
    await ctx.reply(messages.SUCCESS["parent_unbound"].format(identity=ctx.text), student_management_keyboard())
    await ctx.leave()


# Teachers and administrators ----------------------------------------------

async def _add_teacher(ctx: SceneContext) -> None:
    try:
        teacher = await ctx.services.staff.add_teacher(ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(
            messages.SUCCESS["teacher_added"].format(name=teacher.name, teacher_id=teacher.teacher_id)
        )
    await ctx.leave()


async def _back_to_users(ctx: SceneContext) -> None:
    await ctx.reply(messages.SECTION_TITLES["back_to_users"], user_management_keyboard())


async def _remove_teacher(ctx: SceneContext) -> None:
    try:
        teacher = await ctx.services.staff.remove_teacher(ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["teacher_removed"].format(teacher_id=teacher.teacher_id))
    await ctx.leave()


async def _promote_admin(ctx: SceneContext) -> None:
    try:
        user = await ctx.services.staff.promote_admin(ctx.user_id, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["admin_promoted"].format(identity=user.identity))
    await ctx.leave()


async def _demote_admin(ctx: SceneContext) -> None:
    try:
        user = await ctx.services.staff.demote_admin(ctx.user_id, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["admin_demoted"].format(identity=user.identity))
    await ctx.leave()


async def _edit_teacher_lookup(ctx: SceneContext) -> None:
    teacher = ctx.services.repository.find_teacher(ctx.text)
    if teacher is None:
        await ctx.reply(messages.ERRORS["teacher_not_found"])
        await ctx.leave()
        return
    ctx.session.set(EDIT_TEACHER_ID, teacher.teacher_id)
    await ctx.reply(messages.PROMPTS["edit_field"], edit_teacher_keyboard())


async def _cancel_teacher_edit(ctx: SceneContext) -> None:
    await ctx.reply(messages.SUCCESS["edit_cancelled"], user_management_keyboard())
    await ctx.leave()


async def _rename_teacher(ctx: SceneContext) -> None:
    try:
        teacher = await ctx.services.staff.rename_teacher(ctx.session.get(EDIT_TEACHER_ID), ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["teacher_renamed"].format(name=teacher.name))
    await ctx.leave()


async def _replace_subjects(ctx: SceneContext) -> None:
    try:
        teacher = await ctx.services.staff.replace_subjects(ctx.session.get(EDIT_TEACHER_ID), ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["teacher_subjects_changed"].format(subjects=", ".join(teacher.subjects)))
    await ctx.leave()


# Announcements and search --------------------------------------------------

def _choose_audience(target: str) -> Handler:
    async def _choose(ctx: SceneContext) -> None:
        await ctx.enter(SceneName.SEND_ANNOUNCEMENT, {ANNOUNCEMENT_TARGET: target})

    return _choose


async def _announcement_targets(ctx: SceneContext) -> None:
    await ctx.reply(messages.PROMPTS["announcement_target"], announcement_target_keyboard())


async def _announcement_prompt(ctx: SceneContext) -> None:
    target = ctx.session.get(ANNOUNCEMENT_TARGET) or ""
    await ctx.reply(messages.PROMPTS["announcement_text"].format(target=messages.AUDIENCE_NAMES.get(target, target)))


async def _cancel_announcement(ctx: SceneContext) -> None:
    await ctx.reply(messages.SUCCESS["announcement_cancelled"], admin_menu_keyboard())
    await ctx.leave()


async def _send_announcement(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_announcement"])
        return
    target = ctx.session.get(ANNOUNCEMENT_TARGET)
    try:
        sent = await ctx.services.broadcast.announce(ctx.user_id, target, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(
            messages.SUCCESS["announcement_sent"].format(target=messages.AUDIENCE_NAMES[target], count=sent),
            admin_menu_keyboard(),
        )
    await ctx.leave()


async def _search(ctx: SceneContext) -> None:
    user = ctx.user
    try:
        if user is None:
            raise SchoolBotError(messages.ERRORS["not_authorized"])
        students, teachers = ctx.services.staff.search(user, ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
        await ctx.leave()
        return
    if not students and not teachers:
        await ctx.reply(messages.ERRORS["no_results"])
    elif user.role is Role.TEACHER and students:
        await ctx.reply(format_search_results(students, teachers), manage_grades_keyboard(students))
    else:
        await ctx.reply(format_search_results(students, teachers))
    await ctx.leave()


SCENES = (
    Scene(
        name=SceneName.ADD_STUDENT,
        on_enter=prompt("student_name"),
        on_text=_student_name,
        next_scenes=frozenset({SceneName.ADD_STUDENT_CLASS}),
        writes=frozenset({NEW_STUDENT_NAME}),
    ),
    Scene(
        name=SceneName.ADD_STUDENT_CLASS,
        on_enter=prompt("student_class"),
        on_text=_student_class,
        reads=frozenset({NEW_STUDENT_NAME}),
        clears=frozenset({NEW_STUDENT_NAME}),
    ),
    Scene(
        name=SceneName.UPLOAD_STUDENT_DB,
        on_enter=prompt("upload_students"),
        on_document=_student_upload,
    ),
    Scene(
        name=SceneName.ADD_TEACHER,
        on_enter=prompt("teacher_name"),
        on_text=_add_teacher,
        on_leave=_back_to_users,
    ),
    Scene(
        name=SceneName.REMOVE_STUDENT,
        on_enter=prompt("remove_student"),
        on_text=_remove_student,
        on_leave=_back_to_students,
    ),
    Scene(
        name=SceneName.REMOVE_TEACHER,
        on_enter=prompt("remove_teacher"),
        on_text=_remove_teacher,
        on_leave=_back_to_users,
    ),
    Scene(name=SceneName.ADD_ADMIN, on_enter=prompt("add_admin"), on_text=_promote_admin),
    Scene(name=SceneName.REMOVE_ADMIN, on_enter=prompt("remove_admin"), on_text=_demote_admin),
    Scene(
        name=SceneName.EDIT_STUDENT,
        on_enter=prompt("edit_student"),
        on_text=_edit_student_lookup,
        actions={
            Action.EDIT_STUDENT_NAME: _goto(SceneName.EDIT_STUDENT_NAME),
            Action.EDIT_STUDENT_PARENT: _goto(SceneName.EDIT_STUDENT_PARENT),
            Action.EDIT_STUDENT_CLASS: _goto(SceneName.EDIT_STUDENT_CLASS),
            Action.CANCEL_EDIT_STUDENT: _cancel_student_edit,
        },
        next_scenes=frozenset(
            {SceneName.EDIT_STUDENT_NAME, SceneName.EDIT_STUDENT_PARENT, SceneName.EDIT_STUDENT_CLASS}
        ),
        writes=frozenset({EDIT_STUDENT_ID}),
        clears=frozenset({EDIT_STUDENT_ID}),
    ),
    Scene(
        name=SceneName.EDIT_STUDENT_NAME,
        on_enter=prompt("new_student_name"),
        on_text=_rename_student,
        reads=frozenset({EDIT_STUDENT_ID}),
        clears=frozenset({EDIT_STUDENT_ID}),
    ),
    Scene(
        name=SceneName.EDIT_STUDENT_PARENT,
        on_enter=prompt("new_student_parent"),
        on_text=_reassign_parent,
        reads=frozenset({EDIT_STUDENT_ID}),
        clears=frozenset({EDIT_STUDENT_ID}),
    ),
    Scene(
        name=SceneName.EDIT_STUDENT_CLASS,
        on_enter=prompt("new_student_class"),
        on_text=_change_class,
        reads=frozenset({EDIT_STUDENT_ID}),
        clears=frozenset({EDIT_STUDENT_ID}),
    ),
    Scene(
        name=SceneName.EDIT_TEACHER,
        on_enter=prompt("edit_teacher"),
        on_text=_edit_teacher_lookup,
        actions={
            Action.EDIT_TEACHER_NAME: _goto(SceneName.EDIT_TEACHER_NAME),
            Action.EDIT_TEACHER_SUBJECTS: _goto(SceneName.EDIT_TEACHER_SUBJECTS),
            Action.CANCEL_EDIT_TEACHER: _cancel_teacher_edit,
        },
        next_scenes=frozenset({SceneName.EDIT_TEACHER_NAME, SceneName.EDIT_TEACHER_SUBJECTS}),
        writes=frozenset({EDIT_TEACHER_ID}),
        clears=frozenset({EDIT_TEACHER_ID}),
    ),
    Scene(
        name=SceneName.EDIT_TEACHER_NAME,
        on_enter=prompt("new_teacher_name"),
        on_text=_rename_teacher,
        reads=frozenset({EDIT_TEACHER_ID}),
        clears=frozenset({EDIT_TEACHER_ID}),
    ),
    Scene(
        name=SceneName.EDIT_TEACHER_SUBJECTS,
        on_enter=prompt("new_teacher_subjects"),
        on_text=_replace_subjects,
        reads=frozenset({EDIT_TEACHER_ID}),
        clears=frozenset({EDIT_TEACHER_ID}),
    ),
    Scene(
        name=SceneName.ANNOUNCEMENT_RECIPIENT,
        on_enter=_announcement_targets,
        actions={
            Action.ANNOUNCE_PARENTS: _choose_audience("parents"),
            Action.ANNOUNCE_TEACHERS: _choose_audience("teachers"),
            Action.CANCEL_ANNOUNCEMENT: _cancel_announcement,
        },
        next_scenes=frozenset({SceneName.SEND_ANNOUNCEMENT}),
        writes=frozenset({ANNOUNCEMENT_TARGET}),
        clears=frozenset({ANNOUNCEMENT_TARGET}),
    ),
    Scene(
        name=SceneName.SEND_ANNOUNCEMENT,
        on_enter=_announcement_prompt,
        on_text=_send_announcement,
        reads=frozenset({ANNOUNCEMENT_TARGET}),
        clears=frozenset({ANNOUNCEMENT_TARGET}),
    ),
    Scene(name=SceneName.UNBIND_PARENT, on_enter=prompt("unbind_parent"), on_text=_unbind_parent),
    Scene(name=SceneName.SEARCH, on_enter=prompt("search"), on_text=_search),
)


__all__ = ["SCENES"]
