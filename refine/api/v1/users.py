# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User API endpoints.

- GET /me - Get the current user's profile
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from refine.api.dependencies import AuthenticatedUser, get_user_service
from refine.domains.user.service import UserService
from refine.models.user import UserInfo

router = APIRouter()


@router.get("/me", response_model=UserInfo, summary="Get current user")
async def get_me(
    current_user: AuthenticatedUser,
    service: Annotated[UserService, Depends(get_user_service)],
) -> UserInfo:
    user = await service.get_user(current_user.id)
    return UserInfo.model_validate(user)
