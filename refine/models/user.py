# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User schemas."""

from pydantic import BaseModel, ConfigDict


class UserProfile(BaseModel):
    """Profile read from the identity provider's userinfo endpoint."""

    subject: str
    name: str
    email: str
    picture: str = ""


class UserInfo(BaseModel):
    """Public identity of a user, embedded in school and post responses."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    picture: str
