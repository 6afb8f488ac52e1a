# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI dependency injection definitions.

This module provides dependency functions for FastAPI endpoints.
Dependencies are used to:
- Get database sessions
- Get the Google clients created at startup
- Get authenticated users
- Get service instances

Long-lived resources live on ``app.state`` (see ``refine.api.app``); nothing
here holds module-level state.

Example:
    @router.get("/schools")
    async def list_schools(
        current_user: AuthenticatedUser,
        service: Annotated[SchoolService, Depends(get_school_service)],
    ):
        ...
"""

import logging
from typing import Annotated, AsyncGenerator

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from refine.api.middleware.auth import CurrentUser, get_access_token
from refine.domains.post.service import PostService
from refine.domains.school.service import SchoolService
from refine.domains.user.service import UserService
from refine.infrastructure.database import Database
from refine.infrastructure.google import DriveClient, GoogleIdentityProvider, GoogleOAuthClient
from refine.utils.logging import bind_context

logger = logging.getLogger(__name__)


# =========================================================================
# Infrastructure Dependencies
# =========================================================================


def get_database(request: Request) -> Database:
    """Get the database created at startup."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get a database session for the request.

    The session commits when the endpoint returns and rolls back if it raises.
    It is used with function scope, so the commit happens before the response
    is sent and a failed commit becomes an error response.

    Yields:
        AsyncSession bound to the application database.
    """
    async with get_database(request).session() as session:
        yield session


def get_oauth_client(request: Request) -> GoogleOAuthClient:
    return request.app.state.oauth_client


def get_identity_provider(request: Request) -> GoogleIdentityProvider:
    return request.app.state.identity_provider


def get_drive_client(request: Request) -> DriveClient:
    return request.app.state.drive_client


DBSession = Annotated[AsyncSession, Depends(get_db, scope="function")]


# =========================================================================
# Authentication Dependencies
# =========================================================================


async def require_user(
    request: Request,
    db: DBSession,
    identity_provider: Annotated[GoogleIdentityProvider, Depends(get_identity_provider)],
) -> CurrentUser:
    """Require an authenticated user.

    Resolves the bearer token to a Google profile and makes sure a local
    user exists for it.

    Returns:
        CurrentUser.

    Raises:
        HTTPException: If no bearer token was sent.
        InvalidAccessTokenError: If Google rejects the token.
    """
    token = get_access_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    profile = await identity_provider.get_profile(token)
    user = await UserService(db).ensure_user_exists(profile)
    bind_context(user_id=user.id)
    return CurrentUser(id=user.id, email=user.email, name=user.name, access_token=token)


AuthenticatedUser = Annotated[CurrentUser, Depends(require_user)]


# =========================================================================
# Service Dependencies
# =========================================================================


def get_user_service(db: DBSession) -> UserService:
    return UserService(db)


def get_school_service(db: DBSession) -> SchoolService:
    return SchoolService(db)


def get_post_service(
    db: DBSession,
    drive: Annotated[DriveClient, Depends(get_drive_client)],
) -> PostService:
    return PostService(db, drive)
