# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School service for the school hierarchy and its membership.

This module provides the SchoolService that handles:
- School, year group, course and class creation
- Invitations, joining, declining and removing members
- Class membership and join requests
- Course syllabus content and outcomes
- Role-filtered school views

Every mutation loads the school document, checks the caller's role, edits
the document and saves it back. Failed permission checks raise
``SchoolNotFoundError`` so callers cannot probe for schools they do not
belong to.

Example:
    >>> school_service = SchoolService(db_session)
    >>> school_id = await school_service.create_school(user_id, "Hillside High")
    >>> info = await school_service.get_relevant_school_info(user_id, school_id)
"""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from refine.core.exceptions import NotFoundError, ValidationFailedError
from refine.domains.school.repository import SchoolRepository
from refine.domains.school.visibility import (
    is_staff,
    pending_join_requests,
    relevant_school_view,
    role_of,
)
from refine.domains.user.service import UserService
from refine.infrastructure.database.models import User
from refine.models.common import Role, new_id
from refine.models.school import (
    ClassDocument,
    ClassStructure,
    CourseDocument,
    CourseStructure,
    SchoolDocument,
    SchoolInfo,
    SchoolStructure,
    SyllabusContent,
    SyllabusOutcome,
    VisibleSchoolsResponse,
    YearGroupDocument,
    YearGroupStructure,
)

logger = logging.getLogger(__name__)


class SchoolServiceError(Exception):
    """Base exception for school service errors."""


class SchoolNotFoundError(SchoolServiceError, NotFoundError):
    """Raised when a school does not exist or the caller may not act on it."""


class SchoolEntityNotFoundError(SchoolServiceError, NotFoundError):
    """Raised when a year group, course, class, member or syllabus item is missing."""


class SchoolValidationError(SchoolServiceError, ValidationFailedError):
    """Raised when a membership change would break a school invariant."""


class SchoolService:
    """Service for managing schools.

    Attributes:
        _db: Async database session.
        _schools: School document repository.
        _users: User lookups for member identities.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the school service.

        Args:
            db: Async database session.
        """
        self._db = db
        self._schools = SchoolRepository(db)
        self._users = UserService(db)

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_visible_schools(self, user_id: str, email: str) -> VisibleSchoolsResponse:
        """List schools the user has joined and schools inviting the user's email."""
        return VisibleSchoolsResponse(
            joined_schools=await self._schools.list_joined(user_id),
            invited_schools=await self._schools.list_invited(email),
        )

    async def get_member_school(self, user_id: str, school_id: str) -> SchoolDocument:
        """Load a school the user belongs to.

        Raises:
            SchoolNotFoundError: If the school is missing or the user is not a member.
        """
        school = await self._schools.get(school_id)
        if school is None or role_of(school, user_id) is None:
            raise SchoolNotFoundError("School not found")
        return school

    async def get_relevant_school_info(self, user_id: str, school_id: str) -> SchoolInfo:
        """Get the school as the user is allowed to see it.

        Staff receive the full structure, all members and all invitations.
        Students receive only their own classes (and the courses and year
        groups containing them), their classmates, all staff, and no
        invitations.

        Raises:
            SchoolNotFoundError: If the school is missing or the user is not a member.
        """
        school = await self.get_member_school(user_id, school_id)
        view = relevant_school_view(school, user_id)
        if view is None:
            raise SchoolNotFoundError("School not found")

        infos = await self._users.find_user_infos(
            [*view.administrator_ids, *view.teacher_ids, *view.student_ids]
        )

        def resolve(ids: list[str]):
            return [infos[user] for user in ids if user in infos]

        return SchoolInfo(
            id=view.id,
            name=view.name,
            year_groups=view.year_groups,
            administrators=resolve(view.administrator_ids),
            teachers=resolve(view.teacher_ids),
            students=resolve(view.student_ids),
            invited_administrator_emails=view.invited_administrator_emails,
            invited_teacher_emails=view.invited_teacher_emails,
            invited_student_emails=view.invited_student_emails,
            pending_class_join_requests=pending_join_requests(school, user_id),
        )

    async def get_school_structure(self, user_id: str, school_id: str) -> SchoolStructure:
        """Get the id/name tree of every year group, course and class.

        Any member may read the full tree; it carries no membership data.
        """
        school = await self.get_member_school(user_id, school_id)
        return SchoolStructure(
            id=school.id,
            name=school.name,
            year_groups=[
                YearGroupStructure(
                    id=year_group.id,
                    name=year_group.name,
                    courses=[
                        CourseStructure(
                            id=course.id,
                            name=course.name,
                            classes=[ClassStructure(id=cls.id, name=cls.name) for cls in course.classes],
                        )
                        for course in year_group.courses
                    ],
                )
                for year_group in school.year_groups
            ],
        )

    # =========================================================================
    # Structure
    # =========================================================================

    async def create_school(self, user_id: str, name: str) -> str:
        """Create a school with the creator as its sole administrator.

        Returns:
            The new school id.
        """
        school = SchoolDocument(id=new_id(), name=name, administrator_ids=[user_id])
        await self._schools.add(school)
        logger.info("School created: %s by %s", school.id, user_id)
        return school.id

    async def create_year_group(self, user_id: str, school_id: str, name: str) -> str:
        """Append a year group. Staff only."""
        school = await self._load_for_staff(user_id, school_id)
        year_group = YearGroupDocument(id=new_id(), name=name)
        school.year_groups.append(year_group)
        await self._schools.save(school)
        logger.info("Year group created: %s in school %s", year_group.id, school_id)
        return year_group.id

    async def create_course(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        name: str,
        initial_class_names: list[str] | None = None,
    ) -> str:
        """Append a course, optionally with classes. Staff only."""
        school = await self._load_for_staff(user_id, school_id)
        year_group = self._require_year_group(school, year_group_id)
        course = CourseDocument(
            id=new_id(),
            name=name,
            classes=[ClassDocument(id=new_id(), name=n) for n in initial_class_names or []],
        )
        year_group.courses.append(course)
        await self._schools.save(school)
        logger.info("Course created: %s in year group %s", course.id, year_group_id)
        return course.id

    async def create_class(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        name: str,
    ) -> str:
        """Append a class to a course. Staff only."""
        school = await self._load_for_staff(user_id, school_id)
        course = self._require_course(school, year_group_id, course_id)
        cls = ClassDocument(id=new_id(), name=name)
        course.classes.append(cls)
        await self._schools.save(school)
        logger.info("Class created: %s in course %s", cls.id, course_id)
        return cls.id

    # =========================================================================
    # School membership
    # =========================================================================

    async def invite(self, user_id: str, school_id: str, role: Role, email: str) -> None:
        """Invite an email address to a role. Administrators only.

        Raises:
            SchoolValidationError: If the email is already invited to that
                role or belongs to a member of the school.
        """
        school = await self._load_for_admin(user_id, school_id)
        email = email.lower()

        invited = school.invited_emails(role)
        if email in invited:
            raise SchoolValidationError(f"{email} has already been invited as {role.value}")

        result = await self._db.execute(select(User.id).where(func.lower(User.email) == email))
        if any(role_of(school, existing) is not None for existing in result.scalars()):
            raise SchoolValidationError(f"{email} is already a member of this school")

        invited.append(email)
        await self._schools.save(school)
        logger.info("Invited %s to school %s as %s", email, school_id, role.value)

    async def join_school(self, user_id: str, email: str, school_id: str) -> Role:
        """Accept the invitations addressed to the user's email.

        The highest invited role wins (administrator, then teacher, then
        student). Every invitation for the email is consumed and the user is
        added exactly once.

        Returns:
            The role the user now holds.

        Raises:
            SchoolNotFoundError: If the school does not exist or has no
                invitation for the email.
        """
        school = await self._schools.get(school_id)
        email = email.lower()
        if school is None:
            raise SchoolNotFoundError("School not found")

        invited_roles = [role for role in Role if email in school.invited_emails(role)]
        if not invited_roles:
            raise SchoolNotFoundError("School not found")

        for role in Role:
            invited = school.invited_emails(role)
            invited[:] = [e for e in invited if e != email]

        current = role_of(school, user_id)
        if current is None:
            current = invited_roles[0]
            school.member_ids(current).append(user_id)

        await self._schools.save(school)
        logger.info("User %s joined school %s as %s", user_id, school_id, current.value)
        return current

    async def decline_invitation(self, email: str, school_id: str) -> None:
        """Remove every invitation addressed to the email.

        Raises:
            SchoolNotFoundError: If the school has no invitation for the email.
        """
        school = await self._schools.get(school_id)
        email = email.lower()
        if school is None or not any(email in school.invited_emails(role) for role in Role):
            raise SchoolNotFoundError("School not found")

        for role in Role:
            invited = school.invited_emails(role)
            invited[:] = [e for e in invited if e != email]

        await self._schools.save(school)
        logger.info("Invitation to school %s declined by %s", school_id, email)

    async def remove_user(self, user_id: str, school_id: str, user_id_to_remove: str) -> None:
        """Remove a member from the school and from every class. Administrators only.

        Raises:
            SchoolEntityNotFoundError: If the user is not a member.
            SchoolValidationError: If the user is the last administrator.
        """
        school = await self._load_for_admin(user_id, school_id)
        role = role_of(school, user_id_to_remove)
        if role is None:
            raise SchoolEntityNotFoundError("User is not a member of this school")
        if role is Role.ADMINISTRATOR and len(school.administrator_ids) == 1:
            raise SchoolValidationError("A school must keep at least one administrator")

        school.member_ids(role).remove(user_id_to_remove)
        for _, _, cls in school.iter_classes():
            self._remove_from_class_lists(cls, user_id_to_remove)

        await self._schools.save(school)
        logger.info("User %s removed from school %s by %s", user_id_to_remove, school_id, user_id)

    # =========================================================================
    # Class membership
    # =========================================================================

    async def add_to_class(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        class_id: str,
        role: Role,
        user_id_to_add: str,
    ) -> None:
        """Add a school member to a class. Staff only.

        Teachers and administrators may be added as class teachers; students
        as class students. Adding a student clears their pending request.

        Raises:
            SchoolValidationError: If the user does not hold a matching school role.
        """
        school = await self._load_for_staff(user_id, school_id)
        cls = self._require_class(school, year_group_id, course_id, class_id)
        target_role = role_of(school, user_id_to_add)

        if role is Role.STUDENT:
            if target_role is not Role.STUDENT:
                raise SchoolValidationError("Only students of this school can join a class as students")
            if user_id_to_add not in cls.student_ids:
                cls.student_ids.append(user_id_to_add)
        elif role is Role.TEACHER:
            if not is_staff(target_role):
                raise SchoolValidationError("Only staff of this school can join a class as teachers")
            if user_id_to_add not in cls.teacher_ids:
                cls.teacher_ids.append(user_id_to_add)
        else:
            raise SchoolValidationError("Class members are either teachers or students")

        cls.requesting_student_ids[:] = [s for s in cls.requesting_student_ids if s != user_id_to_add]
        await self._schools.save(school)
        logger.info("User %s added to class %s as %s", user_id_to_add, class_id, role.value)

    async def remove_from_class(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        class_id: str,
        user_id_to_remove: str,
    ) -> None:
        """Remove a user from a class's teacher, student and request lists. Staff only."""
        school = await self._load_for_staff(user_id, school_id)
        cls = self._require_class(school, year_group_id, course_id, class_id)
        self._remove_from_class_lists(cls, user_id_to_remove)
        await self._schools.save(school)
        logger.info("User %s removed from class %s", user_id_to_remove, class_id)

    async def request_to_join_class(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        class_id: str,
    ) -> None:
        """Record a student's request to join a class.

        Repeated requests are ignored.

        Raises:
            SchoolNotFoundError: If the user is not a student of the school.
            SchoolValidationError: If the student is already in the class.
        """
        school = await self.get_member_school(user_id, school_id)
        if role_of(school, user_id) is not Role.STUDENT:
            raise SchoolNotFoundError("School not found")

        cls = self._require_class(school, year_group_id, course_id, class_id)
        if user_id in cls.student_ids:
            raise SchoolValidationError("Already a member of this class")
        if user_id in cls.requesting_student_ids:
            return

        cls.requesting_student_ids.append(user_id)
        await self._schools.save(school)
        logger.info("User %s requested to join class %s", user_id, class_id)

    # =========================================================================
    # Syllabus
    # =========================================================================

    async def add_syllabus_content(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        content: str,
    ) -> str:
        """Add a syllabus content item to a course. Staff only.

        Returns:
            The new item's id.
        """
        school = await self._load_for_staff(user_id, school_id)
        course = self._require_course(school, year_group_id, course_id)
        item = SyllabusContent(id=new_id(), content=content)
        course.syllabus_content.append(item)
        await self._schools.save(school)
        logger.info("Syllabus content %s added to course %s", item.id, course_id)
        return item.id

    async def remove_syllabus_content(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        content_id: str,
    ) -> None:
        """Remove a syllabus content item from a course. Staff only.

        Raises:
            SchoolEntityNotFoundError: If the course has no such item.
        """
        school = await self._load_for_staff(user_id, school_id)
        course = self._require_course(school, year_group_id, course_id)
        remaining = [item for item in course.syllabus_content if item.id != content_id]
        if len(remaining) == len(course.syllabus_content):
            raise SchoolEntityNotFoundError("Syllabus content not found")
        course.syllabus_content = remaining
        await self._schools.save(school)
        logger.info("Syllabus content %s removed from course %s", content_id, course_id)

    async def add_syllabus_outcome(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        name: str,
        description: str,
    ) -> str:
        """Add a learning outcome to a course. Staff only."""
        school = await self._load_for_staff(user_id, school_id)
        course = self._require_course(school, year_group_id, course_id)
        outcome = SyllabusOutcome(id=new_id(), name=name, description=description)
        course.syllabus_outcomes.append(outcome)
        await self._schools.save(school)
        logger.info("Syllabus outcome %s added to course %s", outcome.id, course_id)
        return outcome.id

    async def remove_syllabus_outcome(
        self,
        user_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str,
        outcome_id: str,
    ) -> None:
        """Remove a learning outcome from a course. Staff only.

        Raises:
            SchoolEntityNotFoundError: If the course has no such outcome.
        """
        school = await self._load_for_staff(user_id, school_id)
        course = self._require_course(school, year_group_id, course_id)
        remaining = [item for item in course.syllabus_outcomes if item.id != outcome_id]
        if len(remaining) == len(course.syllabus_outcomes):
            raise SchoolEntityNotFoundError("Syllabus outcome not found")
        course.syllabus_outcomes = remaining
        await self._schools.save(school)
        logger.info("Syllabus outcome %s removed from course %s", outcome_id, course_id)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_for_staff(self, user_id: str, school_id: str) -> SchoolDocument:
        school = await self.get_member_school(user_id, school_id)
        if not is_staff(role_of(school, user_id)):
            raise SchoolNotFoundError("School not found")
        return school

    async def _load_for_admin(self, user_id: str, school_id: str) -> SchoolDocument:
        school = await self.get_member_school(user_id, school_id)
        if role_of(school, user_id) is not Role.ADMINISTRATOR:
            raise SchoolNotFoundError("School not found")
        return school

    @staticmethod
    def _require_year_group(school: SchoolDocument, year_group_id: str) -> YearGroupDocument:
        year_group = school.find_year_group(year_group_id)
        if year_group is None:
            raise SchoolEntityNotFoundError("Year group not found")
        return year_group

    @staticmethod
    def _require_course(school: SchoolDocument, year_group_id: str, course_id: str) -> CourseDocument:
        course = school.find_course(year_group_id, course_id)
        if course is None:
            raise SchoolEntityNotFoundError("Course not found")
        return course

    @staticmethod
    def _require_class(
        school: SchoolDocument,
        year_group_id: str,
        course_id: str,
        class_id: str,
    ) -> ClassDocument:
        cls = school.find_class(year_group_id, course_id, class_id)
        if cls is None:
            raise SchoolEntityNotFoundError("Class not found")
        return cls

    @staticmethod
    def _remove_from_class_lists(cls: ClassDocument, user_id: str) -> None:
        for members in (cls.teacher_ids, cls.student_ids, cls.requesting_student_ids):
            members[:] = [member for member in members if member != user_id]
