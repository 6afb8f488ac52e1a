# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Shared schema types used across request and response models."""

from enum import Enum
from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, Field, StringConstraints

# Identifiers are UUID4 strings generated by the server.
EntityId = Annotated[
    str,
    StringConstraints(
        pattern=r"^[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}$"
    ),
]

# Names of schools, year groups, courses and classes.
Name = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


def new_id() -> str:
    """Generate a new entity identifier."""
    return str(uuid4())


class Role(str, Enum):
    """Membership role of a user within a school."""

    ADMINISTRATOR = "administrator"
    TEACHER = "teacher"
    STUDENT = "student"


class MessageResponse(BaseModel):
    """Body returned for errors and bodiless successes."""

    message: str


class IdResponse(BaseModel):
    """Body returned by create operations."""

    id: str = Field(description="Identifier of the created entity")
