# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""API v1 routes package.

This package contains all v1 API endpoint definitions.
Each module provides a FastAPI router for a specific domain.

Modules:
    auth: Google OAuth code exchange, refresh and revocation (public).
    users: Current user endpoint.
    schools: School hierarchy, membership and syllabus endpoints.
    posts: Feed, assignment, attachment and comment endpoints.
"""

from fastapi import APIRouter

from refine.api.v1 import auth, posts, schools, users

# Create the main v1 router
router = APIRouter(prefix="/api/v1")

# Include domain routers
router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(schools.router, prefix="/schools", tags=["Schools"])
router.include_router(posts.router, prefix="/posts", tags=["Posts"])

__all__ = ["router"]
