# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Post API endpoints.

This module provides endpoints for feeds and assignments:
- POST / - Create a post
- POST /list - Get a page of a feed
- POST /get - Get a single post
- PUT /{post_id} - Replace a post
- POST /attachment-link - Get a Drive link for an attachment
- POST /{post_id}/submission/attachments - Attach a file to a submission
- POST /{post_id}/submit - Submit an assignment
- POST /{post_id}/marks - Record marks and feedback
- POST /{post_id}/comments - Add a comment
- DELETE /{post_id}/comments/{comment_id} - Delete own comment

Feed reads are POSTs because the scope (year group, course, classes) is a
structured body.

Example:
    POST /api/v1/posts/list
    {
        "school_id": "...",
        "year_group_id": "...",
        "course_id": "...",
        "class_ids": ["..."],
        "limit": 20
    }
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from refine.api.dependencies import AuthenticatedUser, get_post_service
from refine.domains.post.service import PostService
from refine.models.common import IdResponse, MessageResponse
from refine.models.post import (
    AddAttachmentToSubmissionRequest,
    AddCommentRequest,
    AttachmentLinkRequest,
    AttachmentLinkResponse,
    GetPostRequest,
    ListPostsRequest,
    ListPostsResponse,
    PostInfo,
    PostTemplate,
    RecordMarksRequest,
    SubmitAssignmentRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()

Service = Annotated[PostService, Depends(get_post_service)]


@router.post(
    "",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
)
async def create_post(
    data: PostTemplate,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    """Create a post, material or assignment.

    Attached Drive files are shared with the service account using the
    caller's own Google access token.
    """
    post_id = await service.create_post(current_user.id, current_user.access_token, data)
    return IdResponse(id=post_id)


@router.post("/list", response_model=ListPostsResponse, summary="List posts")
async def list_posts(
    data: ListPostsRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> ListPostsResponse:
    """Get the newest posts of a feed posted before ``before_date``."""
    return await service.list_posts(current_user.id, data)


@router.post("/get", response_model=PostInfo, summary="Get post")
async def get_post(
    data: GetPostRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> PostInfo:
    return await service.get_post(current_user.id, data)


@router.put("/{post_id}", response_model=MessageResponse, summary="Update post")
async def update_post(
    post_id: str,
    data: PostTemplate,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.update_post(current_user.id, current_user.access_token, post_id, data)
    return MessageResponse(message="Post updated")


@router.post("/attachment-link", response_model=AttachmentLinkResponse, summary="Get attachment link")
async def get_attachment_link(
    data: AttachmentLinkRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> AttachmentLinkResponse:
    """Get a Drive link the caller can open.

    The file is shared with (or copied for) the caller on first access.
    """
    link = await service.get_attachment_link(current_user.id, current_user.email, data)
    return AttachmentLinkResponse(link=link)


@router.post(
    "/{post_id}/submission/attachments",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add attachment to submission",
)
async def add_attachment_to_submission(
    post_id: str,
    data: AddAttachmentToSubmissionRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    attachment_id = await service.add_attachment_to_submission(
        current_user.id, current_user.access_token, post_id, data
    )
    return IdResponse(id=attachment_id)


@router.post("/{post_id}/submit", response_model=MessageResponse, summary="Submit assignment")
async def submit_assignment(
    post_id: str,
    data: SubmitAssignmentRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.submit_assignment(current_user.id, data.school_id, post_id)
    return MessageResponse(message="Assignment submitted")


@router.post("/{post_id}/marks", response_model=MessageResponse, summary="Record marks")
async def record_marks(
    post_id: str,
    data: RecordMarksRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.record_marks(current_user.id, post_id, data)
    return MessageResponse(message="Marks recorded")


@router.post(
    "/{post_id}/comments",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add comment",
)
async def add_comment(
    post_id: str,
    data: AddCommentRequest,
    current_user: AuthenticatedUser,
    service: Service,
) -> IdResponse:
    comment_id = await service.add_comment(current_user.id, data.school_id, post_id, data.comment)
    return IdResponse(id=comment_id)


@router.delete(
    "/{post_id}/comments/{comment_id}",
    response_model=MessageResponse,
    summary="Delete comment",
)
async def delete_comment(
    post_id: str,
    comment_id: str,
    school_id: Annotated[str, Query(description="School the post belongs to")],
    current_user: AuthenticatedUser,
    service: Service,
) -> MessageResponse:
    await service.delete_comment(current_user.id, school_id, post_id, comment_id)
    return MessageResponse(message="Comment deleted")
