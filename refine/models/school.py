# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School schemas.

Two families live here:

- Document models (``SchoolDocument`` and its nested year groups, courses
  and classes). A school is persisted as one JSON document, so these are
  both the storage format and the unit the service mutates.
- Request and response models for the school endpoints.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, EmailStr, Field, StringConstraints

from refine.models.common import EntityId, Name, Role
from refine.models.user import UserInfo

SyllabusContentText = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=350)
]
SyllabusOutcomeName = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)
]
SyllabusOutcomeDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=350)]


# =============================================================================
# Documents
# =============================================================================


class SyllabusContent(BaseModel):
    """A syllabus content item of a course."""

    id: str
    content: str


class SyllabusOutcome(BaseModel):
    """A syllabus outcome of a course."""

    id: str
    name: str
    description: str


class ClassDocument(BaseModel):
    """A class within a course."""

    id: str
    name: str
    teacher_ids: list[str] = Field(default_factory=list)
    student_ids: list[str] = Field(default_factory=list)
    requesting_student_ids: list[str] = Field(default_factory=list)


class CourseDocument(BaseModel):
    """A course within a year group."""

    id: str
    name: str
    classes: list[ClassDocument] = Field(default_factory=list)
    syllabus_content: list[SyllabusContent] = Field(default_factory=list)
    syllabus_outcomes: list[SyllabusOutcome] = Field(default_factory=list)

    def find_class(self, class_id: str) -> ClassDocument | None:
        return next((cls for cls in self.classes if cls.id == class_id), None)


class YearGroupDocument(BaseModel):
    """A year group within a school."""

    id: str
    name: str
    courses: list[CourseDocument] = Field(default_factory=list)

    def find_course(self, course_id: str) -> CourseDocument | None:
        return next((course for course in self.courses if course.id == course_id), None)


class SchoolDocument(BaseModel):
    """The school aggregate.

    Attributes:
        id: School identifier.
        name: Display name.
        year_groups: Ordered year groups, each owning its courses and classes.
        administrator_ids: Users with the administrator role.
        teacher_ids: Users with the teacher role.
        student_ids: Users with the student role.
        invited_administrator_emails: Pending administrator invitations.
        invited_teacher_emails: Pending teacher invitations.
        invited_student_emails: Pending student invitations.
    """

    id: str
    name: str
    year_groups: list[YearGroupDocument] = Field(default_factory=list)
    administrator_ids: list[str] = Field(default_factory=list)
    teacher_ids: list[str] = Field(default_factory=list)
    student_ids: list[str] = Field(default_factory=list)
    invited_administrator_emails: list[str] = Field(default_factory=list)
    invited_teacher_emails: list[str] = Field(default_factory=list)
    invited_student_emails: list[str] = Field(default_factory=list)

    def find_year_group(self, year_group_id: str) -> YearGroupDocument | None:
        return next((yg for yg in self.year_groups if yg.id == year_group_id), None)

    def find_course(self, year_group_id: str, course_id: str) -> CourseDocument | None:
        year_group = self.find_year_group(year_group_id)
        return year_group.find_course(course_id) if year_group else None

    def find_class(
        self, year_group_id: str, course_id: str, class_id: str
    ) -> ClassDocument | None:
        course = self.find_course(year_group_id, course_id)
        return course.find_class(class_id) if course else None

    def iter_classes(self):
        """Yield every (year group, course, class) triple in order."""
        for year_group in self.year_groups:
            for course in year_group.courses:
                for cls in course.classes:
                    yield year_group, course, cls

    def member_ids(self, role: Role) -> list[str]:
        """Return the mutable membership list for a role."""
        if role is Role.ADMINISTRATOR:
            return self.administrator_ids
        if role is Role.TEACHER:
            return self.teacher_ids
        return self.student_ids

    def invited_emails(self, role: Role) -> list[str]:
        """Return the mutable invitation list for a role."""
        if role is Role.ADMINISTRATOR:
            return self.invited_administrator_emails
        if role is Role.TEACHER:
            return self.invited_teacher_emails
        return self.invited_student_emails


# =============================================================================
# Requests
# =============================================================================


class CreateSchoolRequest(BaseModel):
    """Request to create a school."""

    name: Name


class CreateYearGroupRequest(BaseModel):
    """Request to create a year group."""

    name: Name


class CreateCourseRequest(BaseModel):
    """Request to create a course, optionally with its first classes."""

    name: Name
    initial_class_names: list[Name] = Field(default_factory=list)


class CreateClassRequest(BaseModel):
    """Request to create a class."""

    name: Name


class InviteRequest(BaseModel):
    """Request to invite an email address to a school role."""

    role: Role
    # email-validator rejects addresses longer than 254 characters
    email: EmailStr


class AddToClassRequest(BaseModel):
    """Request to add a school member to a class."""

    user_id: EntityId
    role: Literal["teacher", "student"]


class AddSyllabusContentRequest(BaseModel):
    """Request to add a syllabus content item."""

    content: SyllabusContentText


class AddSyllabusOutcomeRequest(BaseModel):
    """Request to add a syllabus outcome."""

    name: SyllabusOutcomeName
    description: SyllabusOutcomeDescription


# =============================================================================
# Responses
# =============================================================================


class SchoolSummary(BaseModel):
    """Identifier and name of a school."""

    id: str
    name: str


class VisibleSchoolsResponse(BaseModel):
    """Schools the user has joined or been invited to."""

    joined_schools: list[SchoolSummary]
    invited_schools: list[SchoolSummary]


class PendingClassJoinRequest(BaseModel):
    """A class the current student has asked to join."""

    class_name: str
    course_name: str
    year_group_name: str


class SchoolInfo(BaseModel):
    """Role-filtered view of a school with member identities resolved."""

    id: str
    name: str
    year_groups: list[YearGroupDocument]
    administrators: list[UserInfo]
    teachers: list[UserInfo]
    students: list[UserInfo]
    invited_administrator_emails: list[str]
    invited_teacher_emails: list[str]
    invited_student_emails: list[str]
    pending_class_join_requests: list[PendingClassJoinRequest]


class ClassStructure(BaseModel):
    id: str
    name: str


class CourseStructure(BaseModel):
    id: str
    name: str
    classes: list[ClassStructure]


class YearGroupStructure(BaseModel):
    id: str
    name: str
    courses: list[CourseStructure]


class SchoolStructure(BaseModel):
    """Identifier and name tree of a school, without membership data."""

    id: str
    name: str
    year_groups: list[YearGroupStructure]
