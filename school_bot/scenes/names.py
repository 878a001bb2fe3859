from __future__ import annotations

from enum import Enum


class SceneName(str, Enum):
    # administrators
    ADD_STUDENT = "add_student"
    ADD_STUDENT_CLASS = "add_student_class"
    UPLOAD_STUDENT_DB = "upload_student_db"
    ADD_TEACHER = "add_teacher"
    REMOVE_STUDENT = "remove_student"
    REMOVE_TEACHER = "remove_teacher"
    ADD_ADMIN = "add_admin"
    REMOVE_ADMIN = "remove_admin"
    EDIT_STUDENT = "edit_student"
    EDIT_STUDENT_NAME = "edit_student_name"
    EDIT_STUDENT_PARENT = "edit_student_parent"
    EDIT_STUDENT_CLASS = "edit_student_class"
    EDIT_TEACHER = "edit_teacher"
    EDIT_TEACHER_NAME = "edit_teacher_name"
    EDIT_TEACHER_SUBJECTS = "edit_teacher_subjects"
    ANNOUNCEMENT_RECIPIENT = "announcement_recipient"
    SEND_ANNOUNCEMENT = "send_announcement"
    UNBIND_PARENT = "unbind_parent"
    SEARCH = "search"
    # registration
    ADMIN_LOGIN = "admin_login"
    REGISTER_PARENT = "register_parent"
    LINK_ANOTHER_STUDENT = "link_another_student"
    REGISTER_TEACHER = "register_teacher"
    REGISTER_TEACHER_SUBJECT = "register_teacher_subject"
    # teachers
    MANAGE_GRADES = "manage_grades"
    ENTER_GRADE_SCORE = "enter_grade_score"
    ENTER_GRADE_PURPOSE = "enter_grade_purpose"
    EDIT_GRADE = "edit_grade"
    EDIT_GRADE_PURPOSE = "edit_grade_purpose"
    CONTACT_PARENT = "contact_parent"
    SEND_MESSAGE = "send_message"
    ADD_SUBJECT = "add_subject"
    REMOVE_SUBJECT = "remove_subject"
    TEACHER_ADD_STUDENT = "teacher_add_student"
    TEACHER_ANNOUNCEMENT = "teacher_announcement"
    # parents
    CONTACT_ADMIN = "contact_admin"


__all__ = ["SceneName"]
