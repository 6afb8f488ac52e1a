# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User domain package."""

from refine.domains.user.service import UserNotFoundError, UserService, UserServiceError

__all__ = [
    "UserService",
    "UserServiceError",
    "UserNotFoundError",
]
