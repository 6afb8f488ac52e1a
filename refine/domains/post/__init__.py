# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Post domain package.

This package provides post functionality including:
- Feeds with role-based visibility and pagination
- Assignments, submissions, marks and feedback
- Attachment sharing through Google Drive
- Comments
"""

from refine.domains.post.repository import PostRepository
from refine.domains.post.service import (
    AttachmentNotFoundError,
    CommentNotFoundError,
    PostNotFoundError,
    PostService,
    PostServiceError,
    PostValidationError,
)

__all__ = [
    "PostService",
    "PostRepository",
    "PostServiceError",
    "PostNotFoundError",
    "AttachmentNotFoundError",
    "CommentNotFoundError",
    "PostValidationError",
]
