from __future__ import annotations

from school_bot import messages
from school_bot.callbacks import Action
from school_bot.errors import IntegrityConflict, SchoolBotError, ValidationError
from school_bot.keyboards.user import grade_edit_keyboard, roster_subject_keyboard, subject_keyboard
from school_bot.scenes.names import SceneName
from school_bot.scenes.router import Scene, SceneContext, prompt
from school_bot.sessions import (
    ANNOUNCEMENT_SUBJECT,
    CURRENT_GRADE_ID,
    CURRENT_STUDENT_ID,
    CURRENT_SUBJECT,
    NEW_GRADE_SCORE,
    RECIPIENT_ID,
    STUDENT_TO_ADD_ID,
)
from school_bot.utils.formatting import format_grade_history

GRADE_FIELDS = frozenset({CURRENT_STUDENT_ID, CURRENT_SUBJECT, NEW_GRADE_SCORE, CURRENT_GRADE_ID})


# Grades --------------------------------------------------------------------

async def _offer_subjects(ctx: SceneContext, student_id: str) -> None:
    try:
        teacher = ctx.services.grades.teacher_for(ctx.user_id)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
        await ctx.leave()
        return
    student = ctx.services.repository.find_student(student_id)
    if student is None:
        await ctx.reply(messages.ERRORS["student_not_found"])
        await ctx.leave()
        return
    if not teacher.subjects:
        await ctx.reply(messages.ERRORS["no_subjects"])
        await ctx.leave()
        return
    ctx.session.set(CURRENT_STUDENT_ID, student.student_id)
    await ctx.reply(
        messages.PROMPTS["select_subject"].format(name=student.name),
        subject_keyboard(Action.SELECT_SUBJECT, teacher.subjects),
    )


async def _manage_grades_enter(ctx: SceneContext) -> None:
    student_id = ctx.session.get(CURRENT_STUDENT_ID)
    if student_id is None:
        await ctx.reply(messages.PROMPTS["grades_student_id"])
    else:
        await _offer_subjects(ctx, student_id)


async def _manage_grades_text(ctx: SceneContext) -> None:
    await _offer_subjects(ctx, ctx.text)


async def _select_subject(ctx: SceneContext) -> None:
    (subject,) = ctx.args
    try:
        teacher = ctx.services.grades.teacher_for(ctx.user_id)
        subject = ctx.services.grades.teaching_subject(teacher, subject)
    except SchoolBotError:
        # Button left over from a subject the teacher no longer teaches.
        await ctx.reply(messages.ERRORS["request_not_found"])
        return
    student = ctx.services.repository.find_student(ctx.session.get(CURRENT_STUDENT_ID))
    if student is None:
        await ctx.reply(messages.ERRORS["grade_context_lost"])
        await ctx.leave()
        return
    ctx.session.set(CURRENT_SUBJECT, subject)
    grades = student.grades.get(subject.lower(), [])
    await ctx.reply(format_grade_history(student, subject), grade_edit_keyboard(grades) if grades else None)
    await ctx.enter(SceneName.ENTER_GRADE_SCORE)


async def _grade_score(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_grade"])
        return
    await ctx.enter(SceneName.ENTER_GRADE_PURPOSE, {NEW_GRADE_SCORE: ctx.text})


async def _pick_grade(ctx: SceneContext) -> None:
    (grade_id,) = ctx.args
    student = ctx.services.repository.find_student(ctx.session.get(CURRENT_STUDENT_ID))
    subject = ctx.session.get(CURRENT_SUBJECT) or ""
    if student is None or student.find_grade(subject, grade_id) is None:
        await ctx.reply(messages.ERRORS["grade_not_found"])
        return
    await ctx.enter(SceneName.EDIT_GRADE, {CURRENT_GRADE_ID: grade_id})


async def _grade_purpose(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_purpose"])
        return
    try:
        student, grade = await ctx.services.grades.add_grade(
            ctx.user_id,
            ctx.session.get(CURRENT_STUDENT_ID),
            ctx.session.get(CURRENT_SUBJECT),
            ctx.session.get(NEW_GRADE_SCORE),
            ctx.text,
        )
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(
            messages.SUCCESS["grade_added"].format(
                score=grade.score,
                purpose=grade.purpose,
                name=student.name,
                subject=ctx.session.get(CURRENT_SUBJECT),
            ),
            ctx.menu,
        )
    await ctx.leave()


async def _edit_score(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_grade"])
        return
    await ctx.enter(SceneName.EDIT_GRADE_PURPOSE, {NEW_GRADE_SCORE: ctx.text})


async def _edit_purpose(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_purpose"])
        return
    try:
        student, _ = await ctx.services.grades.edit_grade(
            ctx.user_id,
            ctx.session.get(CURRENT_STUDENT_ID),
            ctx.session.get(CURRENT_SUBJECT),
            ctx.session.get(CURRENT_GRADE_ID),
            ctx.session.get(NEW_GRADE_SCORE),
            ctx.text,
        )
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(
            messages.SUCCESS["grade_updated"].format(name=student.name, subject=ctx.session.get(CURRENT_SUBJECT)),
            ctx.menu,
        )
    await ctx.leave()


# Messaging -----------------------------------------------------------------

async def _choose_recipient(ctx: SceneContext) -> None:
    try:
        parent_id = ctx.services.broadcast.parent_of(ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
        await ctx.leave()
        return
    await ctx.enter(SceneName.SEND_MESSAGE, {RECIPIENT_ID: parent_id})


async def _send_message(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_message"])
        return
    try:
        await ctx.services.broadcast.contact_parent(ctx.user_id, ctx.session.get(RECIPIENT_ID), ctx.text)
    except SchoolBotError as exc:
        await ctx.reply(str(exc), ctx.menu)
    else:
        await ctx.reply(messages.SUCCESS["message_sent"], ctx.menu)
    await ctx.leave()


async def _announcement_enter(ctx: SceneContext) -> None:
    subject = ctx.session.get(ANNOUNCEMENT_SUBJECT) or ""
    await ctx.reply(messages.PROMPTS["subject_announcement"].format(subject=subject))


async def _class_announcement(ctx: SceneContext) -> None:
    if not ctx.text:
        await ctx.reply(messages.ERRORS["empty_announcement"])
        return
    try:
        sent = await ctx.services.broadcast.announce_to_class(
            ctx.user_id, ctx.session.get(ANNOUNCEMENT_SUBJECT), ctx.text
        )
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["class_announcement_sent"].format(count=sent), ctx.menu)
    await ctx.leave()


# Subjects and rosters ------------------------------------------------------

async def _add_subject(ctx: SceneContext) -> None:
    try:
        subject = await ctx.services.approvals.request_subject(ctx.user_id, ctx.text)
    except (ValidationError, IntegrityConflict) as exc:
        await ctx.reply(str(exc))
        return
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["subject_requested"].format(subject=subject), ctx.menu)
    await ctx.leave()


async def _removal_enter(ctx: SceneContext) -> None:
    teacher = ctx.services.repository.find_teacher_by_user(ctx.user_id)
    if teacher is None or not teacher.subjects:
        await ctx.reply(messages.ERRORS["no_subjects_to_remove"])
        await ctx.leave()
        return
    await ctx.reply(
        messages.PROMPTS["remove_own_subject"], subject_keyboard(Action.REMOVE_SUBJECT, teacher.subjects)
    )


async def _remove_subject(ctx: SceneContext) -> None:
    (subject,) = ctx.args
    try:
        await ctx.services.staff.remove_own_subject(ctx.user_id, subject)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        await ctx.reply(messages.SUCCESS["subject_removed"].format(subject=subject), ctx.menu)
    await ctx.leave()


async def _roster_student(ctx: SceneContext) -> None:
    try:
        teacher = ctx.services.grades.teacher_for(ctx.user_id)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
        await ctx.leave()
        return
    if not teacher.subjects:
        await ctx.reply(messages.ERRORS["no_subjects"])
        await ctx.leave()
        return
    student = ctx.services.repository.find_student(ctx.text)
    if student is None:
        await ctx.reply(messages.ERRORS["student_not_found"])
        return
    ctx.session.set(STUDENT_TO_ADD_ID, student.student_id)
    await ctx.reply(
        messages.PROMPTS["roster_subjects"].format(name=student.name),
        roster_subject_keyboard(student.student_id, teacher.subjects),
    )


async def _enroll(ctx: SceneContext) -> None:
    student_id, *subjects = ctx.args
    if student_id != ctx.session.get(STUDENT_TO_ADD_ID):
        await ctx.reply(messages.ERRORS["request_not_found"])
        return
    try:
        student = await ctx.services.grades.enroll(ctx.user_id, student_id, subjects or None)
    except SchoolBotError as exc:
        await ctx.reply(str(exc))
    else:
        if subjects:
            text = messages.SUCCESS["student_enrolled"].format(name=student.name, subject=subjects[0])
        else:
            text = messages.SUCCESS["student_enrolled_all"].format(name=student.name)
        await ctx.reply(text, ctx.menu)
    await ctx.leave()


SCENES = (
    Scene(
        name=SceneName.MANAGE_GRADES,
        on_enter=_manage_grades_enter,
        on_text=_manage_grades_text,
        actions={Action.SELECT_SUBJECT: _select_subject},
        next_scenes=frozenset({SceneName.ENTER_GRADE_SCORE}),
        reads=frozenset({CURRENT_STUDENT_ID}),
        writes=frozenset({CURRENT_STUDENT_ID, CURRENT_SUBJECT}),
        clears=GRADE_FIELDS,
    ),
    Scene(
        name=SceneName.ENTER_GRADE_SCORE,
        on_enter=prompt("grade_score"),
        on_text=_grade_score,
        actions={Action.EDIT_GRADE: _pick_grade},
        next_scenes=frozenset({SceneName.ENTER_GRADE_PURPOSE, SceneName.EDIT_GRADE}),
        reads=frozenset({CURRENT_STUDENT_ID, CURRENT_SUBJECT}),
        writes=frozenset({NEW_GRADE_SCORE, CURRENT_GRADE_ID}),
        clears=GRADE_FIELDS,
    ),
    Scene(
        name=SceneName.ENTER_GRADE_PURPOSE,
        on_enter=prompt("grade_purpose"),
        on_text=_grade_purpose,
        reads=frozenset({CURRENT_STUDENT_ID, CURRENT_SUBJECT, NEW_GRADE_SCORE}),
        clears=GRADE_FIELDS,
    ),
    Scene(
        name=SceneName.EDIT_GRADE,
        on_enter=prompt("edit_grade_score"),
        on_text=_edit_score,
        next_scenes=frozenset({SceneName.EDIT_GRADE_PURPOSE}),
        reads=frozenset({CURRENT_STUDENT_ID, CURRENT_SUBJECT, CURRENT_GRADE_ID}),
        writes=frozenset({NEW_GRADE_SCORE}),
        clears=GRADE_FIELDS,
    ),
    Scene(
        name=SceneName.EDIT_GRADE_PURPOSE,
        on_enter=prompt("edit_grade_purpose"),
        on_text=_edit_purpose,
        reads=GRADE_FIELDS,
        clears=GRADE_FIELDS,
    ),
    Scene(
        name=SceneName.CONTACT_PARENT,
        on_enter=prompt("contact_parent"),
        on_text=_choose_recipient,
        next_scenes=frozenset({SceneName.SEND_MESSAGE}),
        writes=frozenset({RECIPIENT_ID}),
        clears=frozenset({RECIPIENT_ID}),
    ),
    Scene(
        name=SceneName.SEND_MESSAGE,
        on_enter=prompt("parent_message"),
        on_text=_send_message,
        reads=frozenset({RECIPIENT_ID}),
        clears=frozenset({RECIPIENT_ID}),
    ),
    Scene(name=SceneName.ADD_SUBJECT, on_enter=prompt("new_subject"), on_text=_add_subject),
    Scene(
        name=SceneName.REMOVE_SUBJECT,
        on_enter=_removal_enter,
        actions={Action.REMOVE_SUBJECT: _remove_subject},
    ),
    Scene(
        name=SceneName.TEACHER_ADD_STUDENT,
        on_enter=prompt("teacher_add_student"),
        on_text=_roster_student,
        actions={
            Action.ADD_STUDENT_TO_SUBJECT: _enroll,
            Action.ADD_STUDENT_ALL_SUBJECTS: _enroll,
        },
        reads=frozenset({STUDENT_TO_ADD_ID}),
        writes=frozenset({STUDENT_TO_ADD_ID}),
        clears=frozenset({STUDENT_TO_ADD_ID}),
    ),
    Scene(
        name=SceneName.TEACHER_ANNOUNCEMENT,
        on_enter=_announcement_enter,
        on_text=_class_announcement,
        reads=frozenset({ANNOUNCEMENT_SUBJECT}),
        clears=frozenset({ANNOUNCEMENT_SUBJECT}),
    ),
)


__all__ = ["GRADE_FIELDS", "SCENES"]
