from __future__ import annotations

from datetime import datetime
from typing import Iterable, Mapping, Sequence

from school_bot.database import Grade, Student, Teacher, User


def _or_na(value: object) -> str:
    if value is None or value == "" or value == []:
        return "N/A"
    return str(value)


def format_date(value: str) -> str:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value


def format_grade_line(grade: Grade) -> str:
    return f"Score: {grade.score}, Purpose: {grade.purpose}, Date: {format_date(grade.date)}"


def format_admins(admins: Iterable[User]) -> str:
    rows = [f"ID: {user.identity}, Name: {user.name}" for user in admins]
    if not rows:
        return "No admins found."
    return "Current Admins:\n" + "\n".join(rows)


def format_teachers(teachers: Iterable[Teacher]) -> str:
    rows = [
        f"ID: {teacher.teacher_id}, Name: {teacher.name}, "
        f"Subjects: {_or_na(', '.join(teacher.subjects))}, Telegram ID: {_or_na(teacher.user_id)}"
        for teacher in teachers
    ]
    if not rows:
        return "No teachers found."
    return "All Teachers:\n" + "\n".join(rows)


def format_parents(parents: Iterable[User]) -> str:
    rows = [
        f"ID: {parent.identity}, Name: {parent.name}, Linked Students: {len(parent.student_ids)}"
        for parent in parents
    ]
    if not rows:
        return "No parents found."
    return "All Parents:\n" + "\n".join(rows)


def format_students(students: Iterable[Student]) -> str:
    rows = [
        f"ID: {student.student_id}, Name: {student.name}, "
        f"Class: {_or_na(student.class_name)}, Parent ID: {_or_na(student.parent_id)}"
        for student in students
    ]
    if not rows:
        return "👀 No students found."
    return "\n".join(rows)


def format_grade_report(students: Sequence[Student]) -> str:
    lines = ["📋 Your Child(ren)'s Grades:"]
    for student in students:
        lines.append(f"--- {student.name} (Class: {_or_na(student.class_name)}) ---")
        graded = {subject: grades for subject, grades in student.grades.items() if grades}
        if not graded:
            lines.append("No grades found.")
        for subject, grades in graded.items():
            lines.append(f"{subject.capitalize()}:")
            lines.extend(f" - {format_grade_line(grade)}" for grade in grades)
        lines.append("")
    return "\n".join(lines).rstrip()


def format_schedules(students: Sequence[Student]) -> str:
    lines = ["Your Child(ren)'s Schedules"]
    for student in students:
        lines.append(f"--- {student.name} ---")
        schedule: Mapping[str, str] = student.schedule or {}
        for day in ("monday", "tuesday"):
            lines.append(f"🗓️ {day.capitalize()}: {schedule.get(day) or 'N/A'}")
        for day, text in schedule.items():
            if day not in ("monday", "tuesday"):
                lines.append(f"🗓️ {day.capitalize()}: {text or 'N/A'}")
    return "\n".join(lines)


def format_parent_profile(parent: User) -> str:
    return f"Your Profile:\nName: {parent.name}\nTelegram ID: {parent.identity}"


def format_teacher_profile(teacher: Teacher) -> str:
    return (
        "Your Profile:\n"
        f"Name: {teacher.name}\n"
        f"Teacher ID: {teacher.teacher_id}\n"
        f"Subjects: {_or_na(', '.join(teacher.subjects))}\n"
        f"Pending Subjects: {_or_na(', '.join(teacher.pending_subjects))}"
    )


def format_linked_students(students: Iterable[Student]) -> str:
    rows = [
        f"• Name: {student.name}, ID: {student.student_id}, Class: {_or_na(student.class_name)}"
        for student in students
    ]
    if not rows:
        return "You are not linked to any students."
    return "Linked Students:\n" + "\n".join(rows)


def format_search_results(students: Sequence[Student], teachers: Sequence[Teacher]) -> str:
    sections: list[str] = []
    if students:
        sections.append(
            "🎓 Found Students:\n"
            + "\n".join(
                f"• Name: {student.name}, Class: {student.class_name}, ID: {student.student_id}"
                for student in students
            )
        )
    if teachers:
        sections.append(
            "🧑‍🏫 Found Teachers:\n"
            + "\n".join(
                f"• Name: {teacher.name}, ID: {teacher.teacher_id}, "
                f"Subjects: {_or_na(', '.join(teacher.subjects))}"
                for teacher in teachers
            )
        )
    return "\n".join(sections)


def format_rosters(rosters: Mapping[str, Sequence[Student]]) -> str:
    lines = ["Students in your classes:"]
    for subject, students in rosters.items():
        if not students:
            continue
        lines.append(f"{subject} Class:")
        lines.extend(f"• Name: {student.name}, ID: {student.student_id}" for student in students)
    if len(lines) == 1:
        return "No students found for any of your subjects.\nYou can add students to your classes below."
    return "\n".join(lines)


def format_grade_history(student: Student, subject: str) -> str:
    grades = student.grades.get(subject.lower(), [])
    lines = [f"Current grades for {student.name} in {subject}:"]
    if grades:
        lines.extend(f"- {format_grade_line(grade)}" for grade in grades)
    else:
        lines.append("No grades found.")
    return "\n".join(lines)


__all__ = [
    "format_admins",
    "format_date",
    "format_grade_history",
    "format_grade_line",
    "format_grade_report",
    "format_linked_students",
    "format_parent_profile",
    "format_parents",
    "format_rosters",
    "format_schedules",
    "format_search_results",
    "format_students",
    "format_teacher_profile",
    "format_teachers",
]
