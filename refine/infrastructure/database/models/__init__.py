# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQLAlchemy models for Refine.

Importing this package registers every table on ``Base.metadata``.
"""

from refine.infrastructure.database.models.base import Base, IdMixin, JSONDocument, TimestampMixin
from refine.infrastructure.database.models.post import Post, PostClass
from refine.infrastructure.database.models.school import School, SchoolInvitation, SchoolMember
from refine.infrastructure.database.models.user import User

__all__ = [
    "Base",
    "IdMixin",
    "JSONDocument",
    "TimestampMixin",
    "User",
    "School",
    "SchoolMember",
    "SchoolInvitation",
    "Post",
    "PostClass",
]
