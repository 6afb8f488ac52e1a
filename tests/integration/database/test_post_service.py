# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Integration tests for PostService.

Posts are stored in a real database session; the Drive client is mocked.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from refine.domains.post import (
    AttachmentNotFoundError,
    CommentNotFoundError,
    PostNotFoundError,
    PostService,
    PostValidationError,
)
from refine.domains.post import service as post_service_module
from refine.infrastructure.google import DriveClient, FileLink
from refine.models.post import (
    AddAttachmentToSubmissionRequest,
    AttachmentLinkRequest,
    AttachmentTemplate,
    GetPostRequest,
    ListPostsRequest,
    MarkingCriterionTemplate,
    PostTemplate,
    RecordMarksRequest,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def drive() -> AsyncMock:
    """Drive client double that shares, copies and links without network calls."""
    client = AsyncMock(spec=DriveClient)

    async def get_file_link(*, file_id, file_name, user_email, user_name, has_edit_access, should_create_copy):
        if should_create_copy:
            file_id = f"copy-{file_id}"
        return FileLink(link=f"https://docs.example.com/{file_id}", file_id=file_id)

    async def create_copy(file_id, new_file_name):
        return f"submitted-{file_id}"

    client.get_file_link.side_effect = get_file_link
    client.create_copy.side_effect = create_copy
    return client


@pytest.fixture
def service(db_session, drive) -> PostService:
    return PostService(db_session, drive)


class Clock:
    """Deterministic replacement for utc_now that ticks one minute per call."""

    def __init__(self) -> None:
        self.now = datetime(2024, 9, 2, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def clock(monkeypatch) -> Clock:
    clock = Clock()
    monkeypatch.setattr(post_service_module, "utc_now", clock)
    return clock


def attachment(file_id: str, title: str = "Worksheet", **overrides) -> AttachmentTemplate:
    values = {
        "title": title,
        "thumbnail": f"https://drive.example.com/{file_id}.png",
        "mime_type": "application/vnd.google-apps.document",
        "share_mode": "shared",
        "others_can_edit": False,
        "google_file_id": file_id,
    }
    values.update(overrides)
    return AttachmentTemplate(**values)


def maths_scope(school) -> dict:
    year_7 = school.year_groups[0]
    return {"school_id": school.id, "year_group_id": year_7.id, "course_id": year_7.courses[0].id}


def maths_class_ids(school) -> list[str]:
    return [cls.id for cls in school.year_groups[0].courses[0].classes]


def post_template(school, **overrides) -> PostTemplate:
    values = {**maths_scope(school), "title": "Welcome back", "content": "Bring a calculator"}
    values.update(overrides)
    return PostTemplate(**values)


def assignment_template(school, **overrides) -> PostTemplate:
    values = {
        "type": "assignment",
        "title": "Essay",
        "due_date": "2024-09-20T08:00:00Z",
        "submission_templates": [attachment("essay-template", "Essay template")],
        "marking_criteria": [MarkingCriterionTemplate(title="Argument", maximum_marks=10)],
    }
    values.update(overrides)
    return post_template(school, **values)


def list_request(school, **overrides) -> ListPostsRequest:
    values = {**maths_scope(school), "class_ids": maths_class_ids(school), "limit": 10}
    values.update(overrides)
    return ListPostsRequest(**values)


def get_request(school, post_id: str, **overrides) -> GetPostRequest:
    values = {**maths_scope(school), "class_ids": maths_class_ids(school), "post_id": post_id}
    values.update(overrides)
    return GetPostRequest(**values)


# =============================================================================
# Create / update
# =============================================================================


class TestCreatePost:
    """Tests for creating posts."""

    @pytest.mark.asyncio
    async def test_teacher_creates_post(self, service, drive, members, school) -> None:
        """Test that attachments are shared with the poster's token before storing."""
        template = post_template(school, attachments=[attachment("worksheet")])

        post_id = await service.create_post(members.teacher.id, "teacher-token", template)

        drive.prepare_attachments.assert_awaited_once_with("teacher-token", template.attachments)
        post = await service.get_post(members.student_b.id, get_request(school, post_id))
        assert post.title == "Welcome back"
        assert post.poster.name == "Tom Teacher"
        assert post.class_ids is None
        assert post.attachments[0].google_file_id == "worksheet"
        assert post.attachments[0].access_link is None
        assert post.submission_templates is None
        assert post.marks is None

    @pytest.mark.asyncio
    async def test_student_posts_to_own_class(self, service, members, school) -> None:
        class_a = maths_class_ids(school)[0]

        post_id = await service.create_post(
            members.student_a.id, "token", post_template(school, class_ids=[class_a, class_a])
        )

        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert post.class_ids == [class_a]

    @pytest.mark.asyncio
    async def test_student_cannot_post_to_foreign_class(self, service, members, school) -> None:
        class_b = maths_class_ids(school)[1]

        with pytest.raises(PostNotFoundError):
            await service.create_post(
                members.student_a.id, "token", post_template(school, class_ids=[class_b])
            )

    @pytest.mark.asyncio
    async def test_classes_require_course(self, service, members, school) -> None:
        template = post_template(school, course_id=None, class_ids=maths_class_ids(school))

        with pytest.raises(PostValidationError):
            await service.create_post(members.teacher.id, "token", template)

    @pytest.mark.asyncio
    async def test_classes_must_belong_to_course(self, service, members, school) -> None:
        science_class = school.year_groups[0].courses[1].classes[0].id

        with pytest.raises(PostValidationError):
            await service.create_post(
                members.teacher.id, "token", post_template(school, class_ids=[science_class])
            )

    @pytest.mark.asyncio
    async def test_students_cannot_create_assignments(self, service, members, school) -> None:
        with pytest.raises(PostValidationError):
            await service.create_post(members.student_a.id, "token", assignment_template(school))

    @pytest.mark.asyncio
    async def test_outsider_cannot_post(self, service, members, school) -> None:
        with pytest.raises(PostNotFoundError):
            await service.create_post(members.outsider.id, "token", post_template(school))

    @pytest.mark.asyncio
    async def test_student_cannot_post_outside_their_scope(self, service, members, school) -> None:
        template = post_template(school, course_id=school.year_groups[0].courses[1].id)

        with pytest.raises(PostNotFoundError):
            await service.create_post(members.student_b.id, "token", template)

    @pytest.mark.asyncio
    async def test_assignment_fields(self, service, drive, members, school) -> None:
        """Test that submission templates become editable per-student copies."""
        template = assignment_template(school)

        post_id = await service.create_post(members.teacher.id, "token", template)

        drive.prepare_attachments.assert_any_await("token", template.submission_templates)
        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert post.type == "assignment"
        assert post.due_date == datetime(2024, 9, 20, 8, 0, tzinfo=timezone.utc)
        assert post.submission_templates[0].share_mode == "copied"
        assert post.submission_templates[0].others_can_edit is True
        assert [c.title for c in post.marking_criteria] == ["Argument"]
        assert post.marks == {}

    @pytest.mark.asyncio
    async def test_non_assignment_drops_assignment_fields(self, service, members, school) -> None:
        template = assignment_template(school, type="material")

        post_id = await service.create_post(members.teacher.id, "token", template)

        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert post.due_date is None
        assert post.submission_templates is None
        assert post.marking_criteria is None


class TestUpdatePost:
    """Tests for editing posts."""

    @pytest.mark.asyncio
    async def test_update_keeps_attachment_caches(self, service, drive, members, school) -> None:
        """Test that unchanged attachments keep their id and link, new ones are shared."""
        post_id = await service.create_post(
            members.teacher.id, "token", post_template(school, attachments=[attachment("worksheet")])
        )
        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        await service.get_attachment_link(
            members.student_a.id,
            members.student_a.email,
            AttachmentLinkRequest(
                school_id=school.id, post_id=post_id, attachment_id=post.attachments[0].id
            ),
        )
        drive.prepare_attachments.reset_mock()

        new_files = [attachment("worksheet", "Worksheet v2"), attachment("answers", "Answers")]
        await service.update_post(
            members.teacher.id, "token", post_id,
            post_template(school, title="Updated", attachments=new_files),
        )

        drive.prepare_attachments.assert_awaited_once_with("token", [new_files[1]])
        updated = await service.get_post(members.student_a.id, get_request(school, post_id))
        assert updated.title == "Updated"
        assert updated.attachments[0].id == post.attachments[0].id
        assert updated.attachments[0].title == "Worksheet v2"
        assert updated.attachments[0].access_link == "https://docs.example.com/worksheet"
        assert updated.attachments[1].title == "Answers"

    @pytest.mark.asyncio
    async def test_staff_edit_staff_posts(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", post_template(school))

        await service.update_post(
            members.admin.id, "token", post_id, post_template(school, title="Edited by admin")
        )

        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert post.title == "Edited by admin"
        assert post.poster.id == members.teacher.id

    @pytest.mark.asyncio
    async def test_students_cannot_edit_others_posts(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", post_template(school))

        with pytest.raises(PostNotFoundError):
            await service.update_post(
                members.student_a.id, "token", post_id, post_template(school, title="Mine now")
            )

    @pytest.mark.asyncio
    async def test_staff_cannot_edit_student_posts(self, service, members, school) -> None:
        post_id = await service.create_post(members.student_b.id, "token", post_template(school))

        with pytest.raises(PostNotFoundError):
            await service.update_post(
                members.teacher.id, "token", post_id, post_template(school, title="Edited")
            )

    @pytest.mark.asyncio
    async def test_changing_type_clears_assignment_fields(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))

        await service.update_post(
            members.teacher.id, "token", post_id, post_template(school, type="post")
        )

        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert post.type == "post"
        assert post.due_date is None
        assert post.marking_criteria is None

    @pytest.mark.asyncio
    async def test_marking_criteria_ids_survive(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        criterion = (await service.get_post(members.teacher.id, get_request(school, post_id))).marking_criteria[0]

        await service.update_post(
            members.teacher.id, "token", post_id,
            assignment_template(
                school,
                marking_criteria=[
                    MarkingCriterionTemplate(id=criterion.id, title="Argument", maximum_marks=20)
                ],
            ),
        )

        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert post.marking_criteria[0].id == criterion.id
        assert post.marking_criteria[0].maximum_marks == 20


# =============================================================================
# Feed
# =============================================================================


class TestListPosts:
    """Tests for feed pages and visibility."""

    @pytest.mark.asyncio
    async def test_class_posts_only_reach_their_class(self, service, members, school) -> None:
        class_a, class_b = maths_class_ids(school)
        everyone = await service.create_post(members.teacher.id, "token", post_template(school))
        for_a = await service.create_post(
            members.teacher.id, "token", post_template(school, class_ids=[class_a])
        )

        page_a = await service.list_posts(members.student_a.id, list_request(school))
        page_b = await service.list_posts(members.student_b.id, list_request(school))
        page_teacher = await service.list_posts(members.teacher.id, list_request(school))

        assert {p.id for p in page_a.posts} == {everyone, for_a}
        assert {p.id for p in page_b.posts} == {everyone}
        assert {p.id for p in page_teacher.posts} == {everyone, for_a}

    @pytest.mark.asyncio
    async def test_posts_without_class_filter(self, service, members, school) -> None:
        """Test that omitting class ids returns only posts without classes."""
        class_a = maths_class_ids(school)[0]
        everyone = await service.create_post(members.teacher.id, "token", post_template(school))
        await service.create_post(
            members.teacher.id, "token", post_template(school, class_ids=[class_a])
        )

        page = await service.list_posts(members.teacher.id, list_request(school, class_ids=None))

        assert [p.id for p in page.posts] == [everyone]

    @pytest.mark.asyncio
    async def test_private_posts_hidden_from_other_students(self, service, members, school) -> None:
        post_id = await service.create_post(
            members.student_a.id, "token", post_template(school, private=True)
        )

        own = await service.list_posts(members.student_a.id, list_request(school))
        other = await service.list_posts(members.student_b.id, list_request(school))
        staff = await service.list_posts(members.teacher.id, list_request(school))

        assert [p.id for p in own.posts] == [post_id]
        assert other.posts == []
        assert [p.id for p in staff.posts] == [post_id]
        with pytest.raises(PostNotFoundError):
            await service.get_post(members.student_b.id, get_request(school, post_id))

    @pytest.mark.asyncio
    async def test_pagination(self, service, members, school, clock) -> None:
        """Test newest-first pages and the end marker."""
        ids = [
            await service.create_post(members.teacher.id, "token", post_template(school, title=f"Post {n}"))
            for n in range(5)
        ]

        first = await service.list_posts(members.teacher.id, list_request(school, limit=2))
        second = await service.list_posts(
            members.teacher.id,
            list_request(school, limit=2, before_date=first.posts[-1].post_date),
        )
        third = await service.list_posts(
            members.teacher.id,
            list_request(school, limit=2, before_date=second.posts[-1].post_date),
        )

        assert [p.id for p in first.posts] == [ids[4], ids[3]]
        assert first.is_end is False
        assert [p.id for p in second.posts] == [ids[2], ids[1]]
        assert second.is_end is False
        assert [p.id for p in third.posts] == [ids[0]]
        assert third.is_end is True

    @pytest.mark.asyncio
    async def test_exact_last_page_is_end(self, service, members, school, clock) -> None:
        for n in range(2):
            await service.create_post(members.teacher.id, "token", post_template(school, title=f"Post {n}"))

        page = await service.list_posts(members.teacher.id, list_request(school, limit=2))

        assert len(page.posts) == 2
        assert page.is_end is True

    @pytest.mark.asyncio
    async def test_filter_by_type(self, service, members, school) -> None:
        await service.create_post(members.teacher.id, "token", post_template(school))
        assignment_id = await service.create_post(
            members.teacher.id, "token", assignment_template(school)
        )

        page = await service.list_posts(
            members.teacher.id, list_request(school, post_types=["assignment"])
        )

        assert [p.id for p in page.posts] == [assignment_id]

    @pytest.mark.asyncio
    async def test_year_group_feed_is_separate(self, service, members, school) -> None:
        """Test that course posts do not appear in the year group feed."""
        await service.create_post(members.teacher.id, "token", post_template(school))
        year_post = await service.create_post(
            members.teacher.id, "token", post_template(school, course_id=None)
        )

        page = await service.list_posts(
            members.student_a.id,
            list_request(school, course_id=None, class_ids=None),
        )

        assert [p.id for p in page.posts] == [year_post]

    @pytest.mark.asyncio
    async def test_unviewable_scope_is_empty(self, service, members, school) -> None:
        await service.create_post(members.teacher.id, "token", post_template(school))

        page = await service.list_posts(members.outsider.id, list_request(school))
        science = await service.list_posts(
            members.student_b.id,
            list_request(school, course_id=school.year_groups[0].courses[1].id, class_ids=None),
        )

        assert page.posts == [] and page.is_end is True
        assert science.posts == [] and science.is_end is True


class TestGetPost:
    """Tests for reading a single post."""

    @pytest.mark.asyncio
    async def test_private_post_readers(self, service, members, school) -> None:
        """Test that a private post is readable by its author and staff only."""
        post_id = await service.create_post(
            members.student_a.id, "token", post_template(school, private=True)
        )

        own = await service.get_post(members.student_a.id, get_request(school, post_id))
        staff = await service.get_post(members.teacher.id, get_request(school, post_id))
        admin = await service.get_post(members.admin.id, get_request(school, post_id))

        assert own.id == staff.id == admin.id == post_id
        assert own.private is True
        with pytest.raises(PostNotFoundError):
            await service.get_post(members.student_b.id, get_request(school, post_id))

    @pytest.mark.asyncio
    async def test_public_student_post_is_shared(self, service, members, school) -> None:
        post_id = await service.create_post(members.student_a.id, "token", post_template(school))

        post = await service.get_post(members.student_b.id, get_request(school, post_id))

        assert post.poster.id == members.student_a.id

    @pytest.mark.asyncio
    async def test_class_post_hidden_from_other_class(self, service, members, school) -> None:
        class_a = maths_class_ids(school)[0]
        post_id = await service.create_post(
            members.teacher.id, "token", post_template(school, class_ids=[class_a])
        )

        with pytest.raises(PostNotFoundError):
            await service.get_post(members.student_b.id, get_request(school, post_id))

    @pytest.mark.asyncio
    async def test_unknown_post(self, service, members, school) -> None:
        with pytest.raises(PostNotFoundError):
            await service.get_post(members.teacher.id, get_request(school, str(uuid4())))


# =============================================================================
# Attachments and submissions
# =============================================================================


class TestAttachmentLinks:
    """Tests for resolving Drive links."""

    @pytest.mark.asyncio
    async def test_shared_attachment_link_is_cached(self, service, drive, members, school) -> None:
        post_id = await service.create_post(
            members.teacher.id, "token", post_template(school, attachments=[attachment("worksheet")])
        )
        post = await service.get_post(members.student_a.id, get_request(school, post_id))
        request = AttachmentLinkRequest(
            school_id=school.id, post_id=post_id, attachment_id=post.attachments[0].id
        )

        first = await service.get_attachment_link(members.student_a.id, members.student_a.email, request)
        second = await service.get_attachment_link(members.student_a.id, members.student_a.email, request)

        assert first == second == "https://docs.example.com/worksheet"
        drive.get_file_link.assert_awaited_once_with(
            file_id="worksheet",
            file_name="Worksheet",
            user_email=members.student_a.email,
            user_name="Sam Student",
            has_edit_access=False,
            should_create_copy=False,
        )

    @pytest.mark.asyncio
    async def test_poster_gets_edit_access(self, service, drive, members, school) -> None:
        post_id = await service.create_post(
            members.teacher.id, "token", post_template(school, attachments=[attachment("worksheet")])
        )
        post = await service.get_post(members.teacher.id, get_request(school, post_id))

        await service.get_attachment_link(
            members.teacher.id,
            members.teacher.email,
            AttachmentLinkRequest(
                school_id=school.id, post_id=post_id, attachment_id=post.attachments[0].id
            ),
        )

        assert drive.get_file_link.await_args.kwargs["has_edit_access"] is True

    @pytest.mark.asyncio
    async def test_copies_are_per_student(self, service, drive, members, school) -> None:
        """Test that each student gets a copy and staff can open it read-only."""
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        post = await service.get_post(members.student_a.id, get_request(school, post_id))
        template_id = post.submission_templates[0].id

        link = await service.get_attachment_link(
            members.student_a.id,
            members.student_a.email,
            AttachmentLinkRequest(school_id=school.id, post_id=post_id, attachment_id=template_id),
        )

        assert link == "https://docs.example.com/copy-essay-template"
        kwargs = drive.get_file_link.await_args.kwargs
        assert kwargs["should_create_copy"] is True
        assert kwargs["has_edit_access"] is True

        teacher_link = await service.get_attachment_link(
            members.teacher.id,
            members.teacher.email,
            AttachmentLinkRequest(
                school_id=school.id,
                post_id=post_id,
                attachment_id=template_id,
                individual_copy_owner_id=members.student_a.id,
            ),
        )

        assert teacher_link == "https://docs.example.com/copy-essay-template"
        kwargs = drive.get_file_link.await_args.kwargs
        assert kwargs["file_id"] == "copy-essay-template"
        assert kwargs["user_email"] == members.teacher.email
        assert kwargs["should_create_copy"] is False
        assert kwargs["has_edit_access"] is False

    @pytest.mark.asyncio
    async def test_students_cannot_open_other_copies(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        post = await service.get_post(members.student_a.id, get_request(school, post_id))

        with pytest.raises(PostNotFoundError):
            await service.get_attachment_link(
                members.student_a.id,
                members.student_a.email,
                AttachmentLinkRequest(
                    school_id=school.id,
                    post_id=post_id,
                    attachment_id=post.submission_templates[0].id,
                    individual_copy_owner_id=members.student_b.id,
                ),
            )

    @pytest.mark.asyncio
    async def test_unknown_attachment(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", post_template(school))

        with pytest.raises(AttachmentNotFoundError):
            await service.get_attachment_link(
                members.teacher.id,
                members.teacher.email,
                AttachmentLinkRequest(
                    school_id=school.id,
                    post_id=post_id,
                    attachment_id="00000000-0000-4000-8000-000000000000",
                ),
            )


class TestSubmissions:
    """Tests for student submissions."""

    @pytest.mark.asyncio
    async def test_submit_replaces_files_with_copies(self, service, drive, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        post = await service.get_post(members.student_a.id, get_request(school, post_id))
        await service.get_attachment_link(
            members.student_a.id,
            members.student_a.email,
            AttachmentLinkRequest(
                school_id=school.id, post_id=post_id, attachment_id=post.submission_templates[0].id
            ),
        )
        own_file = attachment("my-notes", "My notes")
        attachment_id = await service.add_attachment_to_submission(
            members.student_a.id,
            "student-token",
            post_id,
            AddAttachmentToSubmissionRequest(school_id=school.id, attachment=own_file),
        )

        await service.submit_assignment(members.student_a.id, school.id, post_id)

        drive.prepare_attachments.assert_any_await("student-token", [own_file])
        assert sorted(call.args for call in drive.create_copy.await_args_list) == [
            ("copy-essay-template", "Essay template"),
            ("my-notes", "My notes"),
        ]
        submitted = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert members.student_a.id in submitted.submission_dates
        files = submitted.student_attachments[members.student_a.id]
        assert [(f.id, f.google_file_id) for f in files] == [(attachment_id, "submitted-my-notes")]
        assert files[0].share_mode == "shared"
        assert files[0].others_can_edit is False

    @pytest.mark.asyncio
    async def test_submit_once(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        await service.submit_assignment(members.student_b.id, school.id, post_id)

        with pytest.raises(PostValidationError):
            await service.submit_assignment(members.student_b.id, school.id, post_id)
        with pytest.raises(PostValidationError):
            await service.add_attachment_to_submission(
                members.student_b.id,
                "token",
                post_id,
                AddAttachmentToSubmissionRequest(school_id=school.id, attachment=attachment("late")),
            )

    @pytest.mark.asyncio
    async def test_only_assignments_accept_submissions(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", post_template(school))

        with pytest.raises(PostValidationError):
            await service.submit_assignment(members.student_a.id, school.id, post_id)

    @pytest.mark.asyncio
    async def test_staff_do_not_submit(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))

        with pytest.raises(PostNotFoundError):
            await service.submit_assignment(members.teacher.id, school.id, post_id)

    @pytest.mark.asyncio
    async def test_students_see_only_own_records(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        for student in (members.student_a, members.student_b):
            await service.add_attachment_to_submission(
                student.id,
                "token",
                post_id,
                AddAttachmentToSubmissionRequest(
                    school_id=school.id, attachment=attachment(f"file-{student.id}")
                ),
            )
        await service.submit_assignment(members.student_b.id, school.id, post_id)

        as_a = await service.get_post(members.student_a.id, get_request(school, post_id))
        as_teacher = await service.get_post(members.teacher.id, get_request(school, post_id))

        assert set(as_a.student_attachments) == {members.student_a.id}
        assert as_a.submission_dates == {}
        assert set(as_teacher.student_attachments) == {members.student_a.id, members.student_b.id}
        assert set(as_teacher.submission_dates) == {members.student_b.id}


class TestMarks:
    """Tests for marking."""

    def marks(self, school, student_id: str, marks: dict, feedback: str | None = None) -> RecordMarksRequest:
        return RecordMarksRequest(
            school_id=school.id, student_user_id=student_id, marks=marks, feedback=feedback
        )

    @pytest.mark.asyncio
    async def test_record_marks_and_feedback(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        criterion_id = (await service.get_post(members.teacher.id, get_request(school, post_id))).marking_criteria[0].id

        await service.record_marks(
            members.teacher.id, post_id,
            self.marks(school, members.student_a.id, {criterion_id: 8}, "Well argued"),
        )

        post = await service.get_post(members.student_a.id, get_request(school, post_id))
        assert post.marks == {members.student_a.id: {criterion_id: 8}}
        assert post.feedback == {members.student_a.id: "Well argued"}
        other = await service.get_post(members.student_b.id, get_request(school, post_id))
        assert other.marks == {}

    @pytest.mark.asyncio
    async def test_mark_above_maximum(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))
        criterion_id = (await service.get_post(members.teacher.id, get_request(school, post_id))).marking_criteria[0].id

        with pytest.raises(PostValidationError):
            await service.record_marks(
                members.teacher.id, post_id, self.marks(school, members.student_a.id, {criterion_id: 11})
            )

    @pytest.mark.asyncio
    async def test_unknown_criterion(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))

        with pytest.raises(PostValidationError):
            await service.record_marks(
                members.teacher.id, post_id, self.marks(school, members.student_a.id, {"missing": 1})
            )

    @pytest.mark.asyncio
    async def test_target_must_be_student(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))

        with pytest.raises(PostNotFoundError, match="Student not found"):
            await service.record_marks(
                members.admin.id, post_id, self.marks(school, members.teacher.id, {})
            )

    @pytest.mark.asyncio
    async def test_students_cannot_mark(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", assignment_template(school))

        with pytest.raises(PostNotFoundError):
            await service.record_marks(
                members.student_a.id, post_id, self.marks(school, members.student_b.id, {})
            )

    @pytest.mark.asyncio
    async def test_only_assignments_take_marks(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", post_template(school))

        with pytest.raises(PostValidationError):
            await service.record_marks(
                members.teacher.id, post_id, self.marks(school, members.student_a.id, {})
            )


# =============================================================================
# Comments
# =============================================================================


class TestComments:
    """Tests for comments."""

    @pytest.mark.asyncio
    async def test_add_and_delete_comment(self, service, members, school) -> None:
        post_id = await service.create_post(members.teacher.id, "token", post_template(school))

        comment_id = await service.add_comment(members.student_a.id, school.id, post_id, "Thanks!")

        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert [(c.id, c.content, c.user.name) for c in post.comments] == [
            (comment_id, "Thanks!", "Sam Student")
        ]

        with pytest.raises(CommentNotFoundError):
            await service.delete_comment(members.teacher.id, school.id, post_id, comment_id)

        await service.delete_comment(members.student_a.id, school.id, post_id, comment_id)
        post = await service.get_post(members.teacher.id, get_request(school, post_id))
        assert post.comments == []

    @pytest.mark.asyncio
    async def test_cannot_comment_on_hidden_post(self, service, members, school) -> None:
        class_a = maths_class_ids(school)[0]
        post_id = await service.create_post(
            members.teacher.id, "token", post_template(school, class_ids=[class_a])
        )

        with pytest.raises(PostNotFoundError):
            await service.add_comment(members.student_b.id, school.id, post_id, "Hello")

    @pytest.mark.asyncio
    async def test_comment_on_unknown_post(self, service, members, school) -> None:
        with pytest.raises(PostNotFoundError):
            await service.add_comment(
                members.teacher.id, school.id, "00000000-0000-4000-8000-000000000000", "Hello"
            )
