# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""School tables.

The whole school hierarchy (year groups, courses, classes, syllabus and
membership lists) is one JSON document in ``schools.document``. The two index
tables mirror the membership and invitation lists so that "which schools can
this user see" is a plain indexed query; they are rewritten on every save.
"""

from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from refine.infrastructure.database.models.base import (
    Base,
    IdMixin,
    JSONDocument,
    TimestampMixin,
)


class School(IdMixin, TimestampMixin, Base):
    """A school aggregate with optimistic versioning."""

    __tablename__ = "schools"

    name: Mapped[str] = mapped_column(sa.String(100), nullable=False)
    document: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    version: Mapped[int] = mapped_column(sa.Integer, nullable=False)

    members: Mapped[list["SchoolMember"]] = relationship(
        back_populates="school",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    invitations: Mapped[list["SchoolInvitation"]] = relationship(
        back_populates="school",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    # UPDATE ... WHERE version = :old raises StaleDataError on a lost update
    __mapper_args__ = {"version_id_col": version}


class SchoolMember(Base):
    """Index row: user holds a role in a school."""

    __tablename__ = "school_members"

    school_id: Mapped[str] = mapped_column(
        sa.String(36), sa.ForeignKey("schools.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, index=True)
    role: Mapped[str] = mapped_column(sa.String(20), nullable=False)

    school: Mapped[School] = relationship(back_populates="members")


class SchoolInvitation(Base):
    """Index row: email has a pending invitation to a school role."""

    __tablename__ = "school_invitations"

    school_id: Mapped[str] = mapped_column(
        sa.String(36), sa.ForeignKey("schools.id", ondelete="CASCADE"), primary_key=True
    )
    email: Mapped[str] = mapped_column(sa.String(320), primary_key=True, index=True)
    role: Mapped[str] = mapped_column(sa.String(20), primary_key=True)

    school: Mapped[School] = relationship(back_populates="invitations")
