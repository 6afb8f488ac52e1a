# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Post service for feeds, assignments and attachments.

This module provides the PostService that handles:
- Creating, updating, listing and fetching posts
- Resolving Drive links for attachments
- Assignment submissions, marks and feedback
- Comments

Visibility follows the school hierarchy: a user must be able to view the
post's year group (and course) to see it, students only see classes they
belong to, and private posts are hidden from students other than the
author. Anything the caller may not see is reported as not found.

Example:
    >>> post_service = PostService(db_session, drive_client)
    >>> post_id = await post_service.create_post(user_id, access_token, template)
    >>> page = await post_service.list_posts(user_id, ListPostsRequest(...))
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from refine.core.exceptions import NotFoundError, ValidationFailedError
from refine.domains.post.attachments import (
    find_attachment,
    has_edit_access,
    merge_attachments,
    merge_marking_criteria,
    new_attachment,
    newly_added,
    record_link,
    to_attachment_info,
)
from refine.domains.post.repository import PostRepository
from refine.domains.school.repository import SchoolRepository
from refine.domains.school.visibility import (
    can_view_scope,
    filter_class_ids,
    is_staff,
    role_of,
)
from refine.domains.user.service import UserService
from refine.infrastructure.google.drive import DriveClient
from refine.models.common import Role, new_id
from refine.models.post import (
    AddAttachmentToSubmissionRequest,
    AttachmentLinkRequest,
    CommentDocument,
    CommentInfo,
    GetPostRequest,
    ListPostsRequest,
    ListPostsResponse,
    PostDocument,
    PostInfo,
    PostScope,
    PostTemplate,
    RecordMarksRequest,
)
from refine.models.school import SchoolDocument
from refine.models.user import UserInfo
from refine.utils.datetime import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class PostServiceError(Exception):
    """Base exception for post service errors."""


class PostNotFoundError(PostServiceError, NotFoundError):
    """Raised when a post does not exist or is not visible to the caller."""


class AttachmentNotFoundError(PostServiceError, NotFoundError):
    """Raised when an attachment is not part of the post."""


class CommentNotFoundError(PostServiceError, NotFoundError):
    """Raised when a comment does not exist or belongs to someone else."""


class PostValidationError(PostServiceError, ValidationFailedError):
    """Raised when a post request breaks a post rule."""


class PostService:
    """Service for managing posts.

    Attributes:
        _db: Async database session.
        _drive: Drive client for attachment sharing and copies.
        _posts: Post repository.
        _schools: School repository, for membership and hierarchy checks.
        _users: User lookups for posters and commenters.
    """

    def __init__(self, db: AsyncSession, drive: DriveClient) -> None:
        """Initialize the post service.

        Args:
            db: Async database session.
            drive: Drive client used for attachments.
        """
        self._db = db
        self._drive = drive
        self._posts = PostRepository(db)
        self._schools = SchoolRepository(db)
        self._users = UserService(db)

    # =========================================================================
    # Create / update
    # =========================================================================

    async def create_post(self, user_id: str, access_token: str, template: PostTemplate) -> str:
        """Create a post.

        Attachments and submission templates are shared with the service
        account using the poster's access token before anything is stored.

        Args:
            user_id: The poster.
            access_token: The poster's Google access token.
            template: Post content and target scope.

        Returns:
            The new post id.

        Raises:
            PostNotFoundError: If the poster cannot view the target scope, or
                is a student targeting only classes they are not in.
            PostValidationError: If the target classes are invalid, or a
                student tries to create an assignment.
            AttachmentPreparationError: If a file could not be shared.
        """
        school = await self._load_school(user_id, template.school_id)
        class_ids = self._resolve_class_ids(school, user_id, template)
        self._check_type_allowed(school, user_id, template)

        await self._drive.prepare_attachments(access_token, template.attachments)
        if template.type == "assignment" and template.submission_templates:
            await self._drive.prepare_attachments(access_token, template.submission_templates)

        post = PostDocument(
            id=new_id(),
            poster_id=user_id,
            school_id=template.school_id,
            year_group_id=template.year_group_id,
            course_id=template.course_id,
            class_ids=class_ids,
            private=template.private,
            type=template.type,
            title=template.title,
            content=template.content,
            post_date=utc_now(),
            linked_syllabus_content_ids=template.linked_syllabus_content_ids,
            attachments=[new_attachment(a) for a in template.attachments],
        )
        if template.type == "assignment":
            post.due_date = template.due_date
            post.submission_templates = [
                new_attachment(a, share_mode="copied", others_can_edit=True)
                for a in template.submission_templates or []
            ]
            post.marking_criteria = merge_marking_criteria(None, template.marking_criteria or [])

        await self._posts.add(post)
        logger.info("Post created: %s (%s) by %s", post.id, post.type, user_id)
        return post.id

    async def update_post(
        self,
        user_id: str,
        access_token: str,
        post_id: str,
        template: PostTemplate,
    ) -> None:
        """Replace a post's content and scope.

        Users may edit their own posts; teachers and administrators may also
        edit posts by other staff. Comments, submissions, marks and feedback
        are kept, as are the link caches of attachments that did not change.
        Only attachments not already on the post are shared again.

        Raises:
            PostNotFoundError: If the post is not visible or not editable.
        """
        school = await self._load_school(user_id, template.school_id)
        class_ids = self._resolve_class_ids(school, user_id, template)
        self._check_type_allowed(school, user_id, template)

        post = await self._load_visible_post(school, user_id, post_id, for_update=True)
        if post.poster_id != user_id and not (
            is_staff(role_of(school, user_id)) and is_staff(role_of(school, post.poster_id))
        ):
            raise PostNotFoundError("Post not found")

        added = newly_added(post.attachments, template.attachments)
        if added:
            await self._drive.prepare_attachments(access_token, added)

        is_assignment = template.type == "assignment"
        if is_assignment:
            added_templates = newly_added(post.submission_templates, template.submission_templates)
            if added_templates:
                await self._drive.prepare_attachments(access_token, added_templates)

        post.year_group_id = template.year_group_id
        post.course_id = template.course_id
        post.class_ids = class_ids
        post.private = template.private
        post.type = template.type
        post.title = template.title
        post.content = template.content
        post.linked_syllabus_content_ids = template.linked_syllabus_content_ids
        post.attachments = merge_attachments(post.attachments, template.attachments)
        post.due_date = template.due_date if is_assignment else None
        post.submission_templates = (
            merge_attachments(
                post.submission_templates or [],
                template.submission_templates or [],
                share_mode="copied",
                others_can_edit=True,
            )
            if is_assignment
            else None
        )
        post.marking_criteria = (
            merge_marking_criteria(post.marking_criteria, template.marking_criteria or [])
            if is_assignment
            else None
        )

        await self._posts.save(post)
        logger.info("Post updated: %s by %s", post_id, user_id)

    # =========================================================================
    # Reads
    # =========================================================================

    async def list_posts(self, user_id: str, request: ListPostsRequest) -> ListPostsResponse:
        """Get one newest-first page of a feed.

        One extra post is fetched to decide whether the feed continues.
        Callers who cannot view the scope get an empty, finished page.
        """
        school = await self._schools.get(request.school_id)
        if school is None or not can_view_scope(
            school, user_id, request.year_group_id, request.course_id
        ):
            return ListPostsResponse(posts=[], is_end=True)

        role = role_of(school, user_id)
        posts = await self._posts.list_feed(
            school_id=request.school_id,
            year_group_id=request.year_group_id,
            course_id=request.course_id,
            class_ids=self._readable_class_ids(school, user_id, request),
            before=ensure_utc(request.before_date) or utc_now(),
            limit=request.limit + 1,
            post_types=request.post_types,
            student_id=user_id if role is Role.STUDENT else None,
        )
        return ListPostsResponse(
            posts=await self._to_infos(posts[: request.limit], user_id, role),
            is_end=len(posts) <= request.limit,
        )

    async def get_post(self, user_id: str, request: GetPostRequest) -> PostInfo:
        """Get a single post, using the same visibility rules as the feed.

        Raises:
            PostNotFoundError: If the post is not in the feed the user can read.
        """
        school = await self._schools.get(request.school_id)
        if school is None or not can_view_scope(
            school, user_id, request.year_group_id, request.course_id
        ):
            raise PostNotFoundError("Post not found")

        role = role_of(school, user_id)
        post = await self._posts.get_in_scope(
            post_id=request.post_id,
            school_id=request.school_id,
            year_group_id=request.year_group_id,
            course_id=request.course_id,
            class_ids=self._readable_class_ids(school, user_id, request),
            student_id=user_id if role is Role.STUDENT else None,
        )
        infos = await self._to_infos([post] if post else [], user_id, role)
        if not infos:
            raise PostNotFoundError("Post not found")
        return infos[0]

    # =========================================================================
    # Attachments and submissions
    # =========================================================================

    async def get_attachment_link(
        self,
        user_id: str,
        user_email: str,
        request: AttachmentLinkRequest,
    ) -> str:
        """Resolve a Drive link the user can open.

        Shared attachments are shared with the user directly. Copied
        attachments (and submission templates) get one personal copy per
        owner. Staff may pass ``individual_copy_owner_id`` to open a
        student's copy or submitted file with comment access.

        Links are cached on the post, so repeat requests make no Drive calls.

        Raises:
            PostNotFoundError: If the post is not visible to the user or owner.
            AttachmentNotFoundError: If the attachment is not on the post.
            DriveError: If Drive refuses to share or copy the file.
        """
        school = await self._load_school(user_id, request.school_id)
        owner_id = request.individual_copy_owner_id or user_id
        if owner_id != user_id and not (
            is_staff(role_of(school, user_id)) and role_of(school, owner_id) is Role.STUDENT
        ):
            raise PostNotFoundError("Post not found")

        post = await self._load_visible_post(school, user_id, request.post_id, for_update=True)
        if owner_id != user_id:
            self._check_post_visible(school, owner_id, post)

        located = find_attachment(post, request.attachment_id, owner_id)
        if located is None:
            raise AttachmentNotFoundError("Attachment not found")
        attachment = located.attachment

        cached = attachment.cached_link_for(owner_id, user_id)
        if cached:
            return cached

        owner = await self._users.get_user(owner_id)
        per_user_file_id = attachment.per_user_file_ids.get(owner_id)
        file_link = await self._drive.get_file_link(
            file_id=per_user_file_id or attachment.google_file_id,
            file_name=attachment.title,
            user_email=user_email,
            user_name=owner.name,
            has_edit_access=has_edit_access(post, located, owner_id, user_id),
            should_create_copy=attachment.share_mode == "copied" and not per_user_file_id,
        )
        record_link(attachment, owner_id, user_id, file_link.link, file_link.file_id)
        await self._posts.save(post)
        return file_link.link

    async def add_attachment_to_submission(
        self,
        user_id: str,
        access_token: str,
        post_id: str,
        request: AddAttachmentToSubmissionRequest,
    ) -> str:
        """Attach one of the student's own files to their submission.

        Returns:
            The new attachment id.

        Raises:
            PostNotFoundError: If the caller is not a student who can see the post.
            PostValidationError: If the post is not an assignment or was
                already submitted.
        """
        school = await self._load_school(user_id, request.school_id)
        if role_of(school, user_id) is not Role.STUDENT:
            raise PostNotFoundError("Post not found")

        post = await self._load_visible_post(school, user_id, post_id, for_update=True)
        self._check_open_assignment(post, user_id)

        await self._drive.prepare_attachments(access_token, [request.attachment])
        attachment = new_attachment(request.attachment, share_mode="shared", others_can_edit=False)
        post.student_attachments.setdefault(user_id, []).append(attachment)
        await self._posts.save(post)
        logger.info("Attachment %s added to submission of %s on %s", attachment.id, user_id, post_id)
        return attachment.id

    async def submit_assignment(self, user_id: str, school_id: str, post_id: str) -> None:
        """Submit the student's work on an assignment.

        Every file the student could edit (their copies of the submission
        templates and their own attachments) is replaced by a fresh copy
        they have no access to, and the submission date is recorded. A
        student submits once.

        Raises:
            PostNotFoundError: If the caller is not a student who can see the post.
            PostValidationError: If the post is not an assignment or was
                already submitted.
            DriveError: If a copy fails; nothing is recorded in that case.
        """
        school = await self._load_school(user_id, school_id)
        if role_of(school, user_id) is not Role.STUDENT:
            raise PostNotFoundError("Post not found")

        post = await self._load_visible_post(school, user_id, post_id, for_update=True)
        self._check_open_assignment(post, user_id)

        templates = [
            template
            for template in post.submission_templates or []
            if template.per_user_file_ids.get(user_id)
        ]
        own_files = post.student_attachments.get(user_id, [])

        copies = await asyncio.gather(
            *(self._drive.create_copy(t.per_user_file_ids[user_id], t.title) for t in templates),
            *(self._drive.create_copy(a.google_file_id, a.title) for a in own_files),
        )

        for template, file_id in zip(templates, copies[: len(templates)]):
            template.per_user_file_ids[user_id] = file_id
            template.per_user_users_with_access[user_id] = []
            template.per_user_links.pop(user_id, None)
        for attachment, file_id in zip(own_files, copies[len(templates):]):
            attachment.google_file_id = file_id
            attachment.users_with_access = []
            attachment.cached_link = None

        post.submission_dates[user_id] = utc_now()
        await self._posts.save(post)
        logger.info("Assignment %s submitted by %s", post_id, user_id)

    async def record_marks(self, user_id: str, post_id: str, request: RecordMarksRequest) -> None:
        """Record a student's marks, and optionally feedback, on an assignment.

        Raises:
            PostNotFoundError: If the caller is not staff who can see the post,
                or the target is not a student of the school.
            PostValidationError: If the post is not an assignment, a criterion
                is unknown, or a mark exceeds its maximum.
        """
        school = await self._load_school(user_id, request.school_id)
        if not is_staff(role_of(school, user_id)):
            raise PostNotFoundError("Post not found")
        if role_of(school, request.student_user_id) is not Role.STUDENT:
            raise PostNotFoundError("Student not found")

        post = await self._load_visible_post(school, user_id, post_id, for_update=True)
        if post.type != "assignment":
            raise PostValidationError("Marks can only be recorded on assignments")

        criteria = {criterion.id: criterion for criterion in post.marking_criteria or []}
        for criterion_id, mark in request.marks.items():
            criterion = criteria.get(criterion_id)
            if criterion is None:
                raise PostValidationError(f"Unknown marking criterion {criterion_id}")
            if mark > criterion.maximum_marks:
                raise PostValidationError(
                    f"Mark {mark} exceeds the maximum of {criterion.maximum_marks} for '{criterion.title}'"
                )

        post.marks[request.student_user_id] = dict(request.marks)
        if request.feedback is not None:
            post.feedback[request.student_user_id] = request.feedback
        await self._posts.save(post)
        logger.info("Marks recorded on %s for %s by %s", post_id, request.student_user_id, user_id)

    # =========================================================================
    # Comments
    # =========================================================================

    async def add_comment(self, user_id: str, school_id: str, post_id: str, content: str) -> str:
        """Comment on a post the user can see.

        Returns:
            The new comment id.
        """
        school = await self._load_school(user_id, school_id)
        post = await self._load_visible_post(school, user_id, post_id, for_update=True)
        comment = CommentDocument(id=new_id(), user_id=user_id, date=utc_now(), content=content)
        post.comments.append(comment)
        await self._posts.save(post)
        return comment.id

    async def delete_comment(self, user_id: str, school_id: str, post_id: str, comment_id: str) -> None:
        """Delete one of the user's own comments."""
        school = await self._load_school(user_id, school_id)
        post = await self._load_visible_post(school, user_id, post_id, for_update=True)
        comment = next((c for c in post.comments if c.id == comment_id), None)
        if comment is None or comment.user_id != user_id:
            raise CommentNotFoundError("Comment not found")
        post.comments.remove(comment)
        await self._posts.save(post)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _load_school(self, user_id: str, school_id: str) -> SchoolDocument:
        school = await self._schools.get(school_id)
        if school is None or role_of(school, user_id) is None:
            raise PostNotFoundError("Post not found")
        return school

    async def _load_visible_post(
        self,
        school: SchoolDocument,
        user_id: str,
        post_id: str,
        for_update: bool = False,
    ) -> PostDocument:
        post = await self._posts.get(post_id, for_update=for_update)
        if post is None or post.school_id != school.id:
            raise PostNotFoundError("Post not found")
        self._check_post_visible(school, user_id, post)
        return post

    @staticmethod
    def _check_post_visible(school: SchoolDocument, user_id: str, post: PostDocument) -> None:
        if not can_view_scope(school, user_id, post.year_group_id, post.course_id):
            raise PostNotFoundError("Post not found")
        if role_of(school, user_id) is not Role.STUDENT or post.poster_id == user_id:
            return
        if post.private:
            raise PostNotFoundError("Post not found")
        if post.class_ids and post.course_id:
            course = school.find_course(post.year_group_id, post.course_id)
            if course is None or not filter_class_ids(school, course, user_id, post.class_ids):
                raise PostNotFoundError("Post not found")

    @staticmethod
    def _resolve_class_ids(school: SchoolDocument, user_id: str, template: PostTemplate) -> list[str] | None:
        """Validate the target scope of a new or edited post.

        Returns:
            The target classes, or None for a post without classes.
        """
        if not can_view_scope(school, user_id, template.year_group_id, template.course_id):
            raise PostNotFoundError("Post not found")
        if not template.class_ids:
            return None
        if template.course_id is None:
            raise PostValidationError("Classes can only be targeted within a course")

        course = school.find_course(template.year_group_id, template.course_id)
        class_ids = list(dict.fromkeys(template.class_ids))
        if course is None or any(course.find_class(c) is None for c in class_ids):
            raise PostValidationError("Every class must belong to the post's course")

        allowed = filter_class_ids(school, course, user_id, class_ids)
        if len(allowed) != len(class_ids):
            raise PostNotFoundError("Class not found")
        return allowed

    @staticmethod
    def _readable_class_ids(school: SchoolDocument, user_id: str, scope: PostScope) -> list[str] | None:
        if not scope.class_ids or scope.course_id is None:
            return None
        course = school.find_course(scope.year_group_id, scope.course_id)
        if course is None:
            return None
        return filter_class_ids(school, course, user_id, scope.class_ids)

    @staticmethod
    def _check_type_allowed(school: SchoolDocument, user_id: str, template: PostTemplate) -> None:
        if template.type == "assignment" and not is_staff(role_of(school, user_id)):
            raise PostValidationError("Only teachers and administrators can create assignments")

    @staticmethod
    def _check_open_assignment(post: PostDocument, user_id: str) -> None:
        if post.type != "assignment":
            raise PostValidationError("Only assignments accept submissions")
        if user_id in post.submission_dates:
            raise PostValidationError("This assignment has already been submitted")

    async def _to_infos(
        self,
        posts: list[PostDocument],
        user_id: str,
        role: Role | None,
    ) -> list[PostInfo]:
        """Convert stored posts to what the user may see.

        Students only see their own submission records. Posts whose poster
        no longer exists are dropped, as are comments by unknown users.
        """
        user_ids = {post.poster_id for post in posts}
        user_ids.update(comment.user_id for post in posts for comment in post.comments)
        infos = await self._users.find_user_infos(user_ids)
        is_student = role is Role.STUDENT

        def own(records: dict) -> dict:
            if not is_student:
                return dict(records)
            return {user_id: records[user_id]} if user_id in records else {}

        results = []
        for post in posts:
            poster = infos.get(post.poster_id)
            if poster is None:
                logger.warning("Post %s has unknown poster %s", post.id, post.poster_id)
                continue

            info = PostInfo(
                id=post.id,
                post_date=post.post_date,
                poster=poster,
                school_id=post.school_id,
                year_group_id=post.year_group_id,
                course_id=post.course_id,
                class_ids=post.class_ids,
                private=post.private,
                type=post.type,
                title=post.title,
                content=post.content,
                linked_syllabus_content_ids=post.linked_syllabus_content_ids,
                attachments=[to_attachment_info(a, user_id, user_id) for a in post.attachments],
                comments=self._comment_infos(post, infos),
                due_date=post.due_date,
            )
            if post.type == "assignment":
                info.submission_templates = [
                    to_attachment_info(a, user_id, user_id) for a in post.submission_templates or []
                ]
                info.student_attachments = {
                    student_id: [to_attachment_info(a, student_id, user_id) for a in attachments]
                    for student_id, attachments in own(post.student_attachments).items()
                }
                info.submission_dates = own(post.submission_dates)
                info.marking_criteria = post.marking_criteria or []
                info.marks = own(post.marks)
                info.feedback = own(post.feedback)
            results.append(info)
        return results

    @staticmethod
    def _comment_infos(post: PostDocument, infos: dict[str, UserInfo]) -> list[CommentInfo]:
        return [
            CommentInfo(id=c.id, date=c.date, content=c.content, user=infos[c.user_id])
            for c in post.comments
            if c.user_id in infos
        ]

