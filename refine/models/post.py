# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Post schemas.

Posts are feed items targeted at a year group, optionally narrowed to a
course and a set of its classes. Assignments additionally carry marking
criteria, submission templates and per-student submission records.

``PostDocument`` is the stored shape; ``PostInfo`` is what a caller sees after
per-role trimming.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, NonNegativeInt, PositiveInt, StringConstraints

from refine.models.common import EntityId
from refine.models.user import UserInfo

PostType = Literal["post", "material", "assignment"]
ShareMode = Literal["shared", "copied"]

CommentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]
FeedbackText = Annotated[str, StringConstraints(max_length=2500)]

# Post fields kept as real columns; everything else is stored in the JSON document.
POST_COLUMN_FIELDS = frozenset({
    "id",
    "school_id",
    "year_group_id",
    "course_id",
    "class_ids",
    "poster_id",
    "private",
    "type",
    "title",
    "content",
    "post_date",
})


# =============================================================================
# Documents
# =============================================================================


class AttachmentTemplate(BaseModel):
    """Attachment as supplied by a client."""

    title: str
    thumbnail: str
    mime_type: str
    share_mode: ShareMode
    others_can_edit: bool
    host: Literal["google"] = "google"
    google_file_id: str = Field(min_length=1)


class AttachmentDocument(AttachmentTemplate):
    """Stored attachment with its link caches.

    Shared attachments cache one link plus the users it was shared with.
    Copied attachments keep one copy per owning user, keyed by user id.
    """

    id: str
    cached_link: str | None = None
    users_with_access: list[str] = Field(default_factory=list)
    per_user_links: dict[str, str] = Field(default_factory=dict)
    per_user_file_ids: dict[str, str] = Field(default_factory=dict)
    per_user_users_with_access: dict[str, list[str]] = Field(default_factory=dict)

    def cached_link_for(self, owner_id: str, accessor_id: str) -> str | None:
        """Return a previously resolved link usable by the accessor, if any."""
        if self.cached_link and accessor_id in self.users_with_access:
            return self.cached_link
        link = self.per_user_links.get(owner_id)
        if link and accessor_id in self.per_user_users_with_access.get(owner_id, []):
            return link
        return None


class MarkingCriterionTemplate(BaseModel):
    """Marking criterion as supplied by a client.

    ``id`` is only honoured on update, to keep marks attached to an existing
    criterion.
    """

    id: str | None = None
    title: str
    maximum_marks: PositiveInt


class MarkingCriterion(BaseModel):
    id: str
    title: str
    maximum_marks: int


class CommentDocument(BaseModel):
    id: str
    user_id: str
    date: datetime
    content: str


class PostDocument(BaseModel):
    """The stored post."""

    id: str
    poster_id: str
    school_id: str
    year_group_id: str
    course_id: str | None = None
    class_ids: list[str] | None = None
    private: bool
    type: PostType
    title: str
    content: str
    post_date: datetime
    linked_syllabus_content_ids: list[str] = Field(default_factory=list)
    attachments: list[AttachmentDocument] = Field(default_factory=list)
    comments: list[CommentDocument] = Field(default_factory=list)
    due_date: datetime | None = None
    submission_templates: list[AttachmentDocument] | None = None
    student_attachments: dict[str, list[AttachmentDocument]] = Field(default_factory=dict)
    submission_dates: dict[str, datetime] = Field(default_factory=dict)
    marking_criteria: list[MarkingCriterion] | None = None
    marks: dict[str, dict[str, int]] = Field(default_factory=dict)
    feedback: dict[str, str] = Field(default_factory=dict)

    def document_fields(self) -> dict:
        """Serialize the fields that are not stored as columns."""
        return self.model_dump(mode="json", exclude=set(POST_COLUMN_FIELDS))


# =============================================================================
# Requests
# =============================================================================


class PostScope(BaseModel):
    """Where a post lives, or which feed is being read."""

    school_id: EntityId
    year_group_id: EntityId
    course_id: EntityId | None = None
    class_ids: list[EntityId] | None = None


class PostTemplate(PostScope):
    """Request body used to create or replace a post."""

    private: bool = False
    type: PostType = "post"
    title: str = Field(max_length=200)
    content: str = Field(default="", max_length=10000)
    linked_syllabus_content_ids: list[EntityId] = Field(default_factory=list)
    attachments: list[AttachmentTemplate] = Field(default_factory=list)
    due_date: datetime | None = None
    submission_templates: list[AttachmentTemplate] | None = None
    marking_criteria: list[MarkingCriterionTemplate] | None = None


class ListPostsRequest(PostScope):
    """Request for one page of a feed."""

    before_date: datetime | None = None
    limit: int = Field(ge=1, le=100)
    post_types: list[PostType] | None = None


class GetPostRequest(PostScope):
    """Request for a single post within a feed scope."""

    post_id: EntityId


class AttachmentLinkRequest(BaseModel):
    """Request for a usable link to an attachment.

    ``individual_copy_owner_id`` lets teachers open a student's own copy.
    """

    school_id: EntityId
    post_id: EntityId
    attachment_id: EntityId
    individual_copy_owner_id: EntityId | None = None


class AddAttachmentToSubmissionRequest(BaseModel):
    school_id: EntityId
    attachment: AttachmentTemplate


class SubmitAssignmentRequest(BaseModel):
    school_id: EntityId


class RecordMarksRequest(BaseModel):
    """Marks for one student, keyed by marking criterion id."""

    school_id: EntityId
    student_user_id: EntityId
    marks: dict[str, NonNegativeInt]
    feedback: FeedbackText | None = None


class AddCommentRequest(BaseModel):
    school_id: EntityId
    comment: CommentText


# =============================================================================
# Responses
# =============================================================================


class AttachmentInfo(BaseModel):
    """Attachment as seen by a caller, with a link if one is already cached."""

    id: str
    title: str
    thumbnail: str
    mime_type: str
    share_mode: ShareMode
    others_can_edit: bool
    host: Literal["google"]
    google_file_id: str
    access_link: str | None = None


class CommentInfo(BaseModel):
    id: str
    date: datetime
    content: str
    user: UserInfo


class PostInfo(BaseModel):
    """A post trimmed for the requesting user."""

    id: str
    post_date: datetime
    poster: UserInfo
    school_id: str
    year_group_id: str
    course_id: str | None = None
    class_ids: list[str] | None = None
    private: bool
    type: PostType
    title: str
    content: str
    linked_syllabus_content_ids: list[str]
    attachments: list[AttachmentInfo]
    comments: list[CommentInfo]
    due_date: datetime | None = None
    submission_dates: dict[str, datetime] | None = None
    submission_templates: list[AttachmentInfo] | None = None
    student_attachments: dict[str, list[AttachmentInfo]] | None = None
    marking_criteria: list[MarkingCriterion] | None = None
    marks: dict[str, dict[str, int]] | None = None
    feedback: dict[str, str] | None = None


class ListPostsResponse(BaseModel):
    """One page of a feed."""

    posts: list[PostInfo]
    is_end: bool


class AttachmentLinkResponse(BaseModel):
    link: str
