from __future__ import annotations

WELCOME_MESSAGE = (
    "🤖 Welcome to the School System Bot! "
    "Please register with your assigned code or choose your role."
)
WELCOME_BACK = "👋 Welcome back, {name}!"
ADMIN_PANEL_TITLE = "⚙️ Admin Panel"

ADMIN_MENU_LABELS = {
    "students": "🧑‍🎓 Students",
    "users": "👥 Users",
    "announcements": "📢 Announcements",
    "search": "🔍 Search",
}

USER_MANAGEMENT_LABELS = {
    "add_admin": "➕ Add Admin",
    "remove_admin": "➖ Remove Admin",
    "edit_teacher": "✏️ Edit Teacher",
    "add_teacher": "➕ Add Teacher",
    "remove_teacher": "➖ Remove Teacher",
    "view_admins": "👀 View Admins",
    "view_teachers": "👀 View Teachers",
    "view_parents": "👀 View Parents",
    "back": "⬅️ Back to Admin Menu",
}

STUDENT_MANAGEMENT_LABELS = {
    "add_student": "➕ Add Student",
    "remove_student": "➖ Remove Student",
    "edit_student": "✏️ Edit Student",
    "upload": "📂 Upload Student DB",
    "unbind_parent": "🔗 Unbind Parent",
    "view_students": "👀 View All Students",
    "back": USER_MANAGEMENT_LABELS["back"],
}

PARENT_MENU_LABELS = {
    "grades": "💯 View Grades",
    "schedule": "🗓️ Schedule",
    "profile": "🧑‍🎓 My Profile",
    "link": "🔗 Link Another Student",
    "contact_admin": "💬 Contact Admin",
}

TEACHER_MENU_LABELS = {
    "manage_grades": "💯 Manage Grades",
    "my_students": "📚 My Students",
    "announce": "📢 Announce Class",
    "contact_parent": "💬 Contact Parent",
    "profile": PARENT_MENU_LABELS["profile"],
    "search": "🔍 Search Student",
}

INLINE_LABELS = {
    "register_teacher": "🧑‍🏫 Register as Teacher",
    "register_parent": "👨‍👩‍👧‍👦 Register as Parent",
    "approve": "✅ Approve",
    "deny": "❌ Deny",
    "edit_name": "✏️ Name",
    "edit_parent": "🔗 Parent ID",
    "edit_class": "🏫 Class",
    "edit_subjects": "📚 Subjects",
    "cancel": "⬅️ Cancel",
    "all_parents": "👨‍👩‍👧‍👦 All Parents",
    "all_teachers": "🧑‍🏫 All Teachers",
    "add_subject": "➕ Add New Subject",
    "remove_subject": "➖ Remove Subject",
    "back_to_teacher": "⬅️ Back to Teacher Menu",
    "linked_students": "🔗 Linked Students",
    "back_to_parent": "⬅️ Back to Parent Menu",
    "add_student_to_class": "➕ Add Student to Class",
    "add_to_all_subjects": "Add to All Subjects",
    "manage_grades_for": "💯 Manage Grades for {name}",
    "edit_grade": "Edit: {score} ({purpose})",
}

SECTION_TITLES = {
    "students": "🧑‍🎓 Student Management:",
    "users": "👥 User Management:",
    "back_to_admin": "⬅️ Returning to admin menu.",
    "back_to_teacher": "⬅️ Returning to teacher menu.",
    "back_to_parent": "⬅️ Returning to parent menu.",
    "back_to_users": "⬅️ Returning to user management menu.",
    "back_to_students": "⬅️ Returning to student management menu.",
}

PROMPTS = {
    "student_name": "📝 Please provide the student's full name.",
    "student_class": "Please enter the student's class (e.g., Grade 5, Grade 8, Grade 10).",
    "upload_students": "📂 Please upload the student database file (JSON format).",
    "teacher_name": "📝 Please provide the teacher's full name.",
    "remove_student": "🆔 Please provide the student ID to remove.",
    "remove_teacher": "🆔 Please provide the teacher ID to remove.",
    "add_admin": "🆔 Please provide the Telegram User ID of the new admin.",
    "remove_admin": "🆔 Please provide the Telegram User ID of the admin to remove.",
    "edit_student": "🆔 Please provide the student ID to edit.",
    "edit_teacher": "🆔 Please provide the teacher ID to edit.",
    "edit_field": "Which field do you want to edit?",
    "new_student_name": "Please enter the new name for the student.",
    "new_student_parent": "Please enter the new parent's Telegram ID to link.",
    "new_student_class": "Please enter the new class for the student (e.g., Grade 5, Grade 8, Grade 10).",
    "new_teacher_name": "Please enter the new name for the teacher.",
    "new_teacher_subjects": "Please enter the new subjects for the teacher, separated by commas (e.g., Math, Science).",
    "announcement_target": "📢 Who do you want to send the announcement to?",
    "announcement_text": "📝 Please type the announcement message to send to all {target}.",
    "unbind_parent": "🆔 Please provide the parent's Telegram ID to unbind.",
    "search": "🔍 Please enter the name or unique ID to search for.",
    "admin_code": "🔑 Please enter the secret admin code.",
    "register_parent": "👤 To register, please provide your child's unique 10-digit student ID.",
    "link_student": "🔗 Please provide the student ID of the child you want to link.",
    "register_teacher": "🧑‍🏫 To register, please provide your unique 10-digit teacher ID.",
    "teacher_subject": "🧑‍🏫 Please enter the subject you teach (e.g., Math, Science).",
    "grades_student_id": "🆔 Please enter the Student ID to update grades.",
    "select_subject": "Please select the subject for {name}'s grade:",
    "grade_score": "📝 Please enter the new grade score (e.g., A, B+, 85).",
    "grade_purpose": "Please enter the purpose of this grade (e.g., Midterm, Final, Quiz).",
    "edit_grade_score": "📝 Please enter the new grade score.",
    "edit_grade_purpose": "Please enter the new purpose for this grade.",
    "contact_parent": "🆔 Please enter the student ID of the parent you want to contact.",
    "parent_message": "📝 Please type the message you want to send to the parent.",
    "admin_message": "📝 Please type the message you want to send to the administrators.",
    "new_subject": "📚 Please enter the new subject you want to add. An admin will review your request.",
    "remove_own_subject": "📚 Please select the subject you want to remove:",
    "teacher_add_student": "🆔 Please enter the Student ID to manually add to your student list.",
    "roster_subjects": "Please select the subject(s) to add {name} to:",
    "announce_subject": "Please select the subject for the announcement:",
    "subject_announcement": "📢 Please type the announcement to send to the parents of your students in {subject}.",
}

ERRORS = {
    "request_not_found": "❌ Request not found or already processed.",
    "not_authorized": "❌ You are not authorized to use this feature.",
    "invalid_name": "❌ Invalid name. Please try again.",
    "invalid_class": "❌ Invalid class. Please try again.",
    "empty_input": "❌ This field cannot be empty. Please try again.",
    "student_not_found": "❌ Student ID not found. Please try again.",
    "teacher_not_found": "❌ Teacher ID not found. Please try again.",
    "invalid_identity": "❌ Please send a numeric Telegram ID.",
    "user_not_found": "❌ User ID not found. The user must have interacted with the bot at least once.",
    "already_admin": "❌ User is already an admin.",
    "admin_not_found": "❌ Admin not found.",
    "self_demotion": "❌ You cannot remove yourself.",
    "invalid_code": "❌ Invalid code. Access denied.",
    "invalid_link": "❌ Invalid student ID, already linked, or pending approval.",
    "already_linked": "❌ This student is already linked or pending approval.",
    "not_parent": "❌ You must be a registered parent to use this feature.",
    "invalid_teacher_code": "❌ Invalid or already linked teacher ID. Please try again or contact support.",
    "not_teacher": "❌ An error occurred. Please contact an admin.",
    "empty_subject": "❌ Subject cannot be empty. Please enter the subject you teach.",
    "subject_too_long": "❌ Subject name is too long. Please use at most 30 Latin or 15 Cyrillic letters.",
    "subject_underscore": "❌ Subject names cannot contain underscores.",
    "duplicate_subject": '❌ "{subject}" is already one of your subjects or is pending verification.',
    "no_subjects": "❌ You have no subjects set. Please contact an admin or add a new subject.",
    "no_subjects_to_remove": "❌ You have no subjects to remove.",
    "subject_not_assigned": "❌ You do not teach {subject}.",
    "empty_grade": "❌ Grade cannot be empty. Please enter the grade score.",
    "empty_purpose": "❌ Purpose cannot be empty. Please enter the purpose.",
    "grade_not_found": "❌ Grade not found.",
    "grade_context_lost": "❌ Error: Student or subject not found.",
    "no_linked_parent": "❌ Student ID not found or student has no linked parent.",
    "empty_message": "❌ Message cannot be empty.",
    "recipient_missing": "❌ Message cannot be empty or recipient not set.",
    "delivery_failed": "❌ Failed to send message. The recipient could not be reached.",
    "no_admins": "❌ No administrators found to send the message to.",
    "empty_announcement": "❌ Announcement cannot be empty.",
    "target_missing": "❌ Target audience not set. Please start again.",
    "parent_not_found": "❌ Parent not found or not a parent.",
    "invalid_parent": "❌ Invalid parent ID or student ID.",
    "invalid_student_name": "❌ Invalid name or student ID.",
    "invalid_student_class": "❌ Invalid class or student ID.",
    "invalid_teacher_name": "❌ Invalid name or teacher ID.",
    "invalid_teacher_subjects": "❌ Invalid subjects or teacher ID.",
    "invalid_upload": "❌ Invalid file format. Please upload a JSON array of students.",
    "upload_failed": "❌ Failed to process the file. Please ensure it is a valid JSON file and try again.",
    "upload_expected": "📂 Please upload the student list as a JSON document.",
    "no_results": "❌ No matching results found.",
    "profile_missing": "❌ Your profile could not be found.",
    "no_students_linked": "❌ You are not linked to any students.",
    "no_schedule": "❌ No schedule found.",
    "no_roster": "❌ You are not authorized or you have no subjects assigned.",
    "use_buttons": "Please use the buttons above.",
    "unknown_command": "🤔 Sorry, I did not understand that. Send /start to see your menu.",
}

SUCCESS = {
    "student_added": (
        '✅ Student "{name}" added to class "{class_name}" with unique ID: {student_id}\n'
        "Share this ID with the parent for registration."
    ),
    "students_imported": "✅ Successfully added {count} students from the database file.",
    "teacher_added": (
        '✅ Teacher "{name}" added with unique ID: {teacher_id}\n'
        "Share this ID with the teacher for registration."
    ),
    "student_removed": "✅ Student with ID {student_id} has been removed.",
    "teacher_removed": "✅ Teacher with ID {teacher_id} has been removed.",
    "admin_promoted": "✅ User {identity} has been promoted to admin.",
    "admin_demoted": "✅ Admin {identity} has been demoted.",
    "admin_login": "✅ Admin login successful!",
    "student_renamed": '✅ Student name updated to "{name}".',
    "student_class_changed": '✅ Student class updated to "{class_name}".',
    "student_parent_changed": "✅ Student {name} linked to new parent ID {identity}.",
    "teacher_renamed": '✅ Teacher name updated to "{name}".',
    "teacher_subjects_changed": '✅ Teacher subjects updated to "{subjects}".',
    "edit_cancelled": "❌ Edit cancelled.",
    "announcement_cancelled": "❌ Announcement cancelled.",
    "announcement_sent": "✅ Announcement sent to all {target} ({count} delivered).",
    "class_announcement_sent": "✅ Announcement sent to all parents of your students ({count} delivered).",
    "parent_unbound": "✅ Parent with ID {identity} has been unbound from all students.",
    "link_requested": "✅ Your request to link with {name} has been sent for admin approval.",
    "teacher_registered": "✅ Registration successful! You are now registered as {name}.",
    "subject_requested": '✅ Your request to add "{subject}" has been sent for admin verification.',
    "grade_added": '✅ New grade "{score}" with purpose "{purpose}" added for {name} in {subject}.',
    "grade_updated": "✅ Grade updated for {name} in {subject}.",
    "message_sent": "✅ Message sent successfully.",
    "admins_contacted": "✅ Your message has been sent to the administrators.",
    "subject_removed": '✅ Subject "{subject}" has been removed from your profile.',
    "student_enrolled": "✅ Student {name} has been added to your {subject} student list.",
    "student_enrolled_all": "✅ Student {name} has been added to all your subjects.",
    "scene_cancelled": "❌ Cancelled.",
}

NOTIFICATIONS = {
    "parent_link_request": (
        "🔔 New Parent-Student Link Request:\n"
        "Parent: {parent_name} (ID: {parent_id})\n"
        "Student: {student_name} (ID: {student_id})"
    ),
    "parent_link_approved_admin": "✅ Parent {parent_name} has been linked to student {student_name}.",
    "parent_link_denied_admin": "❌ Parent {parent_name} link request for student {student_name} has been denied.",
    "parent_link_approved": "✅ Your request to link with student {student_name} (ID: {student_id}) has been approved!",
    "parent_link_denied": "❌ Your request to link with student {student_name} (ID: {student_id}) has been denied.",
    "subject_request": (
        "🔔 New Subject Verification Request from {teacher_name}:\n"
        "Subject: {subject}\n"
        "Teacher ID: {teacher_id}"
    ),
    "subject_approved_admin": "✅ Subject {subject} has been approved for {teacher_name}.",
    "subject_denied_admin": "❌ Subject {subject} has been denied for {teacher_name}.",
    "subject_approved": '✅ Your request to add subject "{subject}" has been approved by an admin!',
    "subject_denied": '❌ Your request to add subject "{subject}" has been denied by an admin.',
    "admin_announcement": "📢 Announcement from Admin:\n{text}",
    "class_announcement": "📢 Message from your child's {subject} Teacher:\n{text}",
    "direct_message": "📢 Message from {role} ({name}):\n{text}",
    "parent_message": "📢 New message from a parent ({name}):\n{text}",
}

AUDIENCE_NAMES = {
    "parents": "parents",
    "teachers": "teachers",
}


__all__ = [
    "ADMIN_MENU_LABELS",
    "ADMIN_PANEL_TITLE",
    "AUDIENCE_NAMES",
    "ERRORS",
    "INLINE_LABELS",
    "NOTIFICATIONS",
    "PARENT_MENU_LABELS",
    "PROMPTS",
    "SECTION_TITLES",
    "STUDENT_MANAGEMENT_LABELS",
    "SUCCESS",
    "TEACHER_MENU_LABELS",
    "USER_MANAGEMENT_LABELS",
    "WELCOME_BACK",
    "WELCOME_MESSAGE",
]
