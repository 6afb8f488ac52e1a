# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""User table."""

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from refine.infrastructure.database.models.base import Base, IdMixin, TimestampMixin


class User(IdMixin, TimestampMixin, Base):
    """A person who has signed in at least once.

    ``subject`` is the identity provider's stable user id; the profile
    columns are refreshed from the provider on sign-in.
    """

    __tablename__ = "users"

    subject: Mapped[str] = mapped_column(sa.String(255), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(sa.String(255), nullable=False)
    email: Mapped[str] = mapped_column(sa.String(320), nullable=False, index=True)
    picture: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")
