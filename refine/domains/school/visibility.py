# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Role-based visibility rules for the school hierarchy.

Pure functions over ``SchoolDocument``; nothing here touches the database.

Administrators and teachers see a whole school. Students see only the parts
of the hierarchy that contain a class they belong to, and only the fellow
students they share such a class with. Users who are not members see
nothing.
"""

from refine.models.common import Role
from refine.models.school import (
    ClassDocument,
    CourseDocument,
    PendingClassJoinRequest,
    SchoolDocument,
)


def role_of(school: SchoolDocument, user_id: str) -> Role | None:
    """Return the user's role in the school, or None if not a member."""
    if user_id in school.administrator_ids:
        return Role.ADMINISTRATOR
    if user_id in school.teacher_ids:
        return Role.TEACHER
    if user_id in school.student_ids:
        return Role.STUDENT
    return None


def is_staff(role: Role | None) -> bool:
    """Teachers and administrators share every staff permission."""
    return role in (Role.ADMINISTRATOR, Role.TEACHER)


def relevant_school_view(school: SchoolDocument, user_id: str) -> SchoolDocument | None:
    """Project a school down to what the user may see.

    Args:
        school: The full school document.
        user_id: The requesting user.

    Returns:
        The school unchanged for staff, a trimmed copy for students, or None
        for non-members.
    """
    role = role_of(school, user_id)
    if role is None:
        return None
    if is_staff(role):
        return school

    year_groups = []
    visible_classes: list[ClassDocument] = []
    for year_group in school.year_groups:
        courses = []
        for course in year_group.courses:
            classes = [
                cls.model_copy(update={"requesting_student_ids": []})
                for cls in course.classes
                if user_id in cls.student_ids
            ]
            if classes:
                visible_classes.extend(classes)
                courses.append(course.model_copy(update={"classes": classes}))
        if courses:
            year_groups.append(year_group.model_copy(update={"courses": courses}))

    classmates = {student_id for cls in visible_classes for student_id in cls.student_ids}

    return school.model_copy(update={
        "year_groups": year_groups,
        "student_ids": [sid for sid in school.student_ids if sid in classmates],
        "invited_administrator_emails": [],
        "invited_teacher_emails": [],
        "invited_student_emails": [],
    })


def pending_join_requests(school: SchoolDocument, user_id: str) -> list[PendingClassJoinRequest]:
    """List the classes a user has asked to join, with their parent names."""
    return [
        PendingClassJoinRequest(
            class_name=cls.name,
            course_name=course.name,
            year_group_name=year_group.name,
        )
        for year_group, course, cls in school.iter_classes()
        if user_id in cls.requesting_student_ids
    ]


def can_view_scope(
    school: SchoolDocument,
    user_id: str,
    year_group_id: str,
    course_id: str | None = None,
) -> bool:
    """Check whether the user may read posts of a year group or course.

    Staff may view any scope that exists. Students must belong to a class of
    the year group, or of the course when one is given.
    """
    role = role_of(school, user_id)
    if role is None:
        return False

    year_group = school.find_year_group(year_group_id)
    if year_group is None:
        return False

    courses = year_group.courses
    if course_id is not None:
        course = year_group.find_course(course_id)
        if course is None:
            return False
        courses = [course]

    if is_staff(role):
        return True

    return any(user_id in cls.student_ids for course in courses for cls in course.classes)


def filter_class_ids(
    school: SchoolDocument,
    course: CourseDocument,
    user_id: str,
    class_ids: list[str],
) -> list[str]:
    """Keep only the classes the user may target.

    Students keep the course's classes they belong to; staff keep everything.
    """
    if role_of(school, user_id) is not Role.STUDENT:
        return list(class_ids)

    kept = []
    for class_id in class_ids:
        cls = course.find_class(class_id)
        if cls is not None and user_id in cls.student_ids:
            kept.append(class_id)
    return kept
