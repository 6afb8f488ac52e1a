# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User service.

Users are created the first time a Google account signs in and are looked up
by the provider's subject id afterwards. Name, email and picture are
refreshed from the provider profile on every sign-in.

Example:
    >>> service = UserService(db)
    >>> user = await service.ensure_user_exists(profile)
    >>> infos = await service.find_user_infos([user.id])
"""

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from refine.core.exceptions import NotFoundError
from refine.infrastructure.database.models import User
from refine.models.user import UserInfo, UserProfile

logger = logging.getLogger(__name__)


class UserServiceError(Exception):
    """Base exception for user service errors."""


class UserNotFoundError(UserServiceError, NotFoundError):
    """Raised when a user is not found."""


class UserService:
    """Service for user accounts.

    Attributes:
        _db: Async database session.
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize the user service.

        Args:
            db: Async database session.
        """
        self._db = db

    async def ensure_user_exists(self, profile: UserProfile) -> User:
        """Return the user for a provider profile, creating it if needed.

        Args:
            profile: Profile read from the identity provider.

        Returns:
            The stored user, with profile fields up to date.
        """
        user = await self.get_by_subject(profile.subject)
        if user is None:
            user = User(
                subject=profile.subject,
                name=profile.name,
                email=profile.email,
                picture=profile.picture,
            )
            try:
                async with self._db.begin_nested():
                    self._db.add(user)
            except IntegrityError:
                # A concurrent first sign-in created the row
                user = await self.get_by_subject(profile.subject)
                if user is None:
                    raise
                logger.debug("User %s created concurrently", user.id)
            else:
                logger.info("User created: %s", user.id)
                return user

        if (user.name, user.email, user.picture) != (profile.name, profile.email, profile.picture):
            user.name = profile.name
            user.email = profile.email
            user.picture = profile.picture
            await self._db.flush()
            logger.debug("User profile refreshed: %s", user.id)

        return user

    async def get_by_subject(self, subject: str) -> User | None:
        """Find a user by identity-provider subject id."""
        result = await self._db.execute(select(User).where(User.subject == subject))
        return result.scalar_one_or_none()

    async def get_user(self, user_id: str) -> User:
        """Get a user by id.

        Raises:
            UserNotFoundError: If no such user exists.
        """
        user = await self._db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def find_user_infos(self, user_ids: Iterable[str]) -> dict[str, UserInfo]:
        """Resolve user ids to public identities.

        Unknown ids are omitted from the result.

        Args:
            user_ids: Ids to resolve; duplicates are fine.

        Returns:
            Mapping of user id to UserInfo.
        """
        ids = set(user_ids)
        if not ids:
            return {}

        result = await self._db.execute(select(User).where(User.id.in_(ids)))
        return {user.id: UserInfo.model_validate(user) for user in result.scalars()}
