# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from collections.abc import Callable

import pytest

from refine.models.common import new_id
from refine.models.school import (
    ClassDocument,
    CourseDocument,
    SchoolDocument,
    YearGroupDocument,
)


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires a database)"
    )


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def school_factory() -> Callable[..., SchoolDocument]:
    """Build a school document with a fixed shape.

    Layout:
        Year 7
            Maths: 7A (teacher, student_a), 7B (student_b)
            Science: 7S (student_a)
        Year 8 (no courses)

    Returns:
        Function taking the four member ids and returning the document.
    """

    def build(admin_id: str, teacher_id: str, student_a_id: str, student_b_id: str) -> SchoolDocument:
        maths = CourseDocument(
            id=new_id(),
            name="Maths",
            classes=[
                ClassDocument(
                    id=new_id(),
                    name="7A",
                    teacher_ids=[teacher_id],
                    student_ids=[student_a_id],
                ),
                ClassDocument(id=new_id(), name="7B", student_ids=[student_b_id]),
            ],
        )
        science = CourseDocument(
            id=new_id(),
            name="Science",
            classes=[ClassDocument(id=new_id(), name="7S", student_ids=[student_a_id])],
        )
        return SchoolDocument(
            id=new_id(),
            name="Hillside High",
            year_groups=[
                YearGroupDocument(id=new_id(), name="Year 7", courses=[maths, science]),
                YearGroupDocument(id=new_id(), name="Year 8"),
            ],
            administrator_ids=[admin_id],
            teacher_ids=[teacher_id],
            student_ids=[student_a_id, student_b_id],
            invited_teacher_emails=["new.teacher@school.org"],
        )

    return build


@pytest.fixture
def sample_school(school_factory) -> SchoolDocument:
    """School document whose members are "admin", "teacher", "student-a" and "student-b"."""
    return school_factory("admin", "teacher", "student-a", "student-b")
