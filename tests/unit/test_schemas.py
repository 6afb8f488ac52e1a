# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for request schema validation."""

import pytest
from pydantic import ValidationError

from refine.models.common import new_id
from refine.models.post import (
    AddCommentRequest,
    ListPostsRequest,
    PostDocument,
    RecordMarksRequest,
)
from refine.models.school import (
    AddSyllabusOutcomeRequest,
    AddToClassRequest,
    CreateCourseRequest,
    CreateSchoolRequest,
    InviteRequest,
)
from refine.utils.datetime import utc_now


class TestNames:
    """Tests for entity name constraints."""

    def test_strips_whitespace(self) -> None:
        assert CreateSchoolRequest(name="  Hillside High  ").name == "Hillside High"

    def test_rejects_blank(self) -> None:
        with pytest.raises(ValidationError):
            CreateSchoolRequest(name="   ")

    def test_rejects_long_names(self) -> None:
        with pytest.raises(ValidationError):
            CreateSchoolRequest(name="x" * 101)

    def test_course_initial_class_names_are_validated(self) -> None:
        request = CreateCourseRequest(name="Maths", initial_class_names=[" 7A ", "7B"])

        assert request.initial_class_names == ["7A", "7B"]
        with pytest.raises(ValidationError):
            CreateCourseRequest(name="Maths", initial_class_names=[""])


class TestInviteRequest:
    """Tests for invitation requests."""

    def test_valid_invitation(self) -> None:
        request = InviteRequest(role="teacher", email="new.teacher@school.org")

        assert request.role.value == "teacher"

    def test_rejects_invalid_email(self) -> None:
        with pytest.raises(ValidationError):
            InviteRequest(role="student", email="not-an-email")

    def test_rejects_unknown_role(self) -> None:
        with pytest.raises(ValidationError):
            InviteRequest(role="janitor", email="a@school.org")


class TestAddToClassRequest:
    def test_rejects_administrator_role(self) -> None:
        with pytest.raises(ValidationError):
            AddToClassRequest(user_id=new_id(), role="administrator")

    def test_rejects_malformed_user_id(self) -> None:
        with pytest.raises(ValidationError):
            AddToClassRequest(user_id="nope", role="student")


class TestSyllabusOutcome:
    def test_name_limit(self) -> None:
        with pytest.raises(ValidationError):
            AddSyllabusOutcomeRequest(name="x" * 51, description="Outcome")

    def test_description_may_be_empty(self) -> None:
        request = AddSyllabusOutcomeRequest(name="Fractions", description="")

        assert request.description == ""

    def test_description_limit(self) -> None:
        with pytest.raises(ValidationError):
            AddSyllabusOutcomeRequest(name="Fractions", description="x" * 351)


class TestListPostsRequest:
    """Tests for feed page requests."""

    def _request(self, **overrides) -> dict:
        return {"school_id": new_id(), "year_group_id": new_id(), "limit": 10, **overrides}

    def test_valid_request(self) -> None:
        request = ListPostsRequest(**self._request(before_date="2024-09-01T08:00:00Z"))

        assert request.before_date is not None
        assert request.course_id is None

    @pytest.mark.parametrize("limit", [0, 101])
    def test_rejects_limit_out_of_range(self, limit: int) -> None:
        with pytest.raises(ValidationError):
            ListPostsRequest(**self._request(limit=limit))

    def test_rejects_unknown_post_type(self) -> None:
        with pytest.raises(ValidationError):
            ListPostsRequest(**self._request(post_types=["announcement"]))


class TestRecordMarksRequest:
    def test_rejects_negative_marks(self) -> None:
        with pytest.raises(ValidationError):
            RecordMarksRequest(
                school_id=new_id(),
                student_user_id=new_id(),
                marks={"criterion": -1},
            )

    def test_rejects_long_feedback(self) -> None:
        with pytest.raises(ValidationError):
            RecordMarksRequest(
                school_id=new_id(),
                student_user_id=new_id(),
                marks={},
                feedback="x" * 2501,
            )


class TestAddCommentRequest:
    def test_rejects_empty_comment(self) -> None:
        with pytest.raises(ValidationError):
            AddCommentRequest(school_id=new_id(), comment="  ")

    def test_rejects_long_comment(self) -> None:
        with pytest.raises(ValidationError):
            AddCommentRequest(school_id=new_id(), comment="x" * 1001)


class TestPostDocument:
    """Tests for the stored post shape."""

    def test_document_fields_exclude_columns(self) -> None:
        """Test that column fields are not duplicated into the JSON document."""
        post = PostDocument(
            id=new_id(),
            poster_id=new_id(),
            school_id=new_id(),
            year_group_id=new_id(),
            private=False,
            type="post",
            title="Welcome",
            content="",
            post_date=utc_now(),
        )

        fields = post.document_fields()

        assert "title" not in fields
        assert "post_date" not in fields
        assert "class_ids" not in fields
        assert fields["attachments"] == []
        assert fields["marks"] == {}
