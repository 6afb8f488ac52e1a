# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School domain package.

This package provides school management functionality including:
- School hierarchy (year groups, courses, classes, syllabus)
- Membership, invitations and class join requests
- Role-based visibility of the hierarchy
"""

from refine.domains.school.repository import SchoolConflictError, SchoolRepository
from refine.domains.school.service import (
    SchoolEntityNotFoundError,
    SchoolNotFoundError,
    SchoolService,
    SchoolServiceError,
    SchoolValidationError,
)

__all__ = [
    "SchoolService",
    "SchoolRepository",
    "SchoolServiceError",
    "SchoolNotFoundError",
    "SchoolEntityNotFoundError",
    "SchoolValidationError",
    "SchoolConflictError",
]
