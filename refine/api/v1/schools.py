# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School management API endpoints.

This module provides endpoints for schools and their hierarchy:
- POST / - Create a school (the caller becomes its administrator)
- GET / - List joined schools and pending invitations
- GET /{school_id} - Get the school as the caller may see it
- GET /{school_id}/structure - Get the year group/course/class tree
- POST /{school_id}/year-groups - Create a year group
- POST /{school_id}/year-groups/{year_group_id}/courses - Create a course
- POST .../courses/{course_id}/classes - Create a class
- POST /{school_id}/invitations - Invite an email address
- POST /{school_id}/join - Accept an invitation
- POST /{school_id}/decline - Decline an invitation
- DELETE /{school_id}/users/{user_id} - Remove a member
- POST .../classes/{class_id}/members - Add a member to a class
- DELETE .../classes/{class_id}/members/{user_id} - Remove a class member
- POST .../classes/{class_id}/join-requests - Ask to join a class
- POST/DELETE .../courses/{course_id}/syllabus/content - Syllabus content
- POST/DELETE .../courses/{course_id}/syllabus/outcomes - Syllabus outcomes

Requests the caller is not allowed to make are answered with 404, the same
as requests for schools that do not exist.

Example:
    POST /api/v1/schools/{school_id}/invitations
    {
        "role": "teacher",
        "email": "teacher@school.org"
    }
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from refine.api.dependencies import AuthenticatedUser, get_school_service
from refine.domains.school.service import SchoolService
from refine.models.common import IdResponse, MessageResponse, Role
from refine.models.school import (
    AddSyllabusContentRequest,
    AddSyllabusOutcomeRequest,
    AddToClassRequest,
    CreateClassRequest,
    CreateCourseRequest,
    CreateSchoolRequest,
    CreateYearGroupRequest,
    InviteRequest,
    SchoolInfo,
    SchoolStructure,
    VisibleSchoolsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

Service = Annotated[SchoolService, Depends(get_school_service)]

COURSE_PATH = "/{school_id}/year-groups/{year_group_id}/courses/{course_id}"
CLASS_PATH = COURSE_PATH + "/classes/{class_id}"


# =========================================================================
# Schools
# =========================================================================


@router.post(
    "",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create school",
)
async def create_school(
    data: CreateSchoolRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    """Create a new school with the caller as its only administrator."""
    school_id = await service.create_school(current_user.id, data.name)
    return IdResponse(id=school_id)


@router.get("", response_model=VisibleSchoolsResponse, summary="List visible schools")
async def list_schools(current_user: AuthenticatedUser, service: Service) -> VisibleSchoolsResponse:
    """List schools the caller belongs to and schools inviting their email."""
    return await service.list_visible_schools(current_user.id, current_user.email)


@router.get("/{school_id}", response_model=SchoolInfo, summary="Get school")
async def get_school(
    school_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> SchoolInfo:
    """Get the school as the caller's role allows them to see it.

    Students only see their own classes and classmates.
    """
    return await service.get_relevant_school_info(current_user.id, school_id)


@router.get("/{school_id}/structure", response_model=SchoolStructure, summary="Get school structure")
async def get_school_structure(
    school_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> SchoolStructure:
    return await service.get_school_structure(current_user.id, school_id)


@router.post(
    "/{school_id}/year-groups",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create year group",
)
async def create_year_group(
    school_id: str,
    data: CreateYearGroupRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    year_group_id = await service.create_year_group(current_user.id, school_id, data.name)
    return IdResponse(id=year_group_id)


@router.post(
    "/{school_id}/year-groups/{year_group_id}/courses",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create course",
)
async def create_course(
    school_id: str,
    year_group_id: str,
    data: CreateCourseRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    course_id = await service.create_course(
        current_user.id, school_id, year_group_id, data.name, data.initial_class_names
    )
    return IdResponse(id=course_id)


@router.post(
    COURSE_PATH + "/classes",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create class",
)
async def create_class(
    school_id: str,
    year_group_id: str,
    course_id: str,
    data: CreateClassRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    class_id = await service.create_class(
        current_user.id, school_id, year_group_id, course_id, data.name
    )
    return IdResponse(id=class_id)


# =========================================================================
# School membership
# =========================================================================


@router.post("/{school_id}/invitations", response_model=MessageResponse, summary="Invite to school")
async def invite(
    school_id: str,
    data: InviteRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    """Invite an email address to a role. Administrators only."""
    await service.invite(current_user.id, school_id, data.role, data.email)
    return MessageResponse(message="Invitation sent")


@router.post("/{school_id}/join", response_model=MessageResponse, summary="Join school")
async def join_school(
    school_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    """Accept the invitations addressed to the caller's email."""
    role = await service.join_school(current_user.id, current_user.email, school_id)
    return MessageResponse(message=f"Joined as {role.value}")


@router.post("/{school_id}/decline", response_model=MessageResponse, summary="Decline invitation")
async def decline_invitation(
    school_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.decline_invitation(current_user.email, school_id)
    return MessageResponse(message="Invitation declined")


@router.delete("/{school_id}/users/{user_id}", response_model=MessageResponse, summary="Remove member")
async def remove_user(
    school_id: str,
    user_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    """Remove a member from the school and all of its classes. Administrators only."""
    await service.remove_user(current_user.id, school_id, user_id)
    return MessageResponse(message="User removed")


# =========================================================================
# Class membership
# =========================================================================


@router.post(CLASS_PATH + "/members", response_model=MessageResponse, summary="Add class member")
async def add_to_class(
    school_id: str,
    year_group_id: str,
    course_id: str,
    class_id: str,
    data: AddToClassRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.add_to_class(
        current_user.id,
        school_id,
        year_group_id,
        course_id,
        class_id,
        Role(data.role),
        data.user_id,
    )
    return MessageResponse(message="User added to class")


@router.delete(
    CLASS_PATH + "/members/{user_id}",
    response_model=MessageResponse,
    summary="Remove class member",
)
async def remove_from_class(
    school_id: str,
    year_group_id: str,
    course_id: str,
    class_id: str,
    user_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.remove_from_class(
        current_user.id, school_id, year_group_id, course_id, class_id, user_id
    )
    return MessageResponse(message="User removed from class")


@router.post(
    CLASS_PATH + "/join-requests",
    response_model=MessageResponse,
    summary="Request to join class",
)
async def request_to_join_class(
    school_id: str,
    year_group_id: str,
    course_id: str,
    class_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.request_to_join_class(
        current_user.id, school_id, year_group_id, course_id, class_id
    )
    return MessageResponse(message="Request sent")


# =========================================================================
# Syllabus
# =========================================================================


@router.post(
    COURSE_PATH + "/syllabus/content",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add syllabus content",
)
async def add_syllabus_content(
    school_id: str,
    year_group_id: str,
    course_id: str,
    data: AddSyllabusContentRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    content_id = await service.add_syllabus_content(
        current_user.id, school_id, year_group_id, course_id, data.content
    )
    return IdResponse(id=content_id)


@router.delete(
    COURSE_PATH + "/syllabus/content/{content_id}",
    response_model=MessageResponse,
    summary="Remove syllabus content",
)
async def remove_syllabus_content(
    school_id: str,
    year_group_id: str,
    course_id: str,
    content_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.remove_syllabus_content(
        current_user.id, school_id, year_group_id, course_id, content_id
    )
    return MessageResponse(message="Syllabus content removed")


@router.post(
    COURSE_PATH + "/syllabus/outcomes",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add syllabus outcome",
)
async def add_syllabus_outcome(
    school_id: str,
    year_group_id: str,
    course_id: str,
    data: AddSyllabusOutcomeRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    outcome_id = await service.add_syllabus_outcome(
        current_user.id, school_id, year_group_id, course_id, data.name, data.description
    )
    return IdResponse(id=outcome_id)


@router.delete(
    COURSE_PATH + "/syllabus/outcomes/{outcome_id}",
    response_model=MessageResponse,
    summary="Remove syllabus outcome",
)
async def remove_syllabus_outcome(
    school_id: str,
    year_group_id: str,
    course_id: str,
    outcome_id: str,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.remove_syllabus_outcome(
        current_user.id, school_id, year_group_id, course_id, outcome_id
    )
    return MessageResponse(message="Syllabus outcome removed")
