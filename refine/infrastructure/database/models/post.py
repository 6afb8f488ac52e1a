# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Post tables.

Fields used to filter and order the feed are columns; attachments, comments,
marks and the other assignment records live in ``posts.document``.
"""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from refine.infrastructure.database.models.base import (
    Base,
    IdMixin,
    JSONDocument,
    TimestampMixin,
)


class Post(IdMixin, TimestampMixin, Base):
    """A feed item targeted at a year group, course or set of classes."""

    __tablename__ = "posts"
    __table_args__ = (
        sa.Index("ix_posts_feed", "school_id", "year_group_id", "post_date"),
    )

    school_id: Mapped[str] = mapped_column(
        sa.String(36), sa.ForeignKey("schools.id", ondelete="CASCADE"), nullable=False
    )
    year_group_id: Mapped[str] = mapped_column(sa.String(36), nullable=False)
    course_id: Mapped[str | None] = mapped_column(sa.String(36), nullable=True)
    poster_id: Mapped[str] = mapped_column(sa.String(36), nullable=False, index=True)
    private: Mapped[bool] = mapped_column(sa.Boolean, nullable=False, default=False)
    type: Mapped[str] = mapped_column(sa.String(20), nullable=False)
    title: Mapped[str] = mapped_column(sa.String(200), nullable=False)
    content: Mapped[str] = mapped_column(sa.Text, nullable=False, default="")
    post_date: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)
    document: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)

    classes: Mapped[list["PostClass"]] = relationship(
        back_populates="post",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PostClass.position",
    )


class PostClass(Base):
    """Association of a post with one of its target classes."""

    __tablename__ = "post_classes"

    post_id: Mapped[str] = mapped_column(
        sa.String(36), sa.ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True
    )
    class_id: Mapped[str] = mapped_column(sa.String(36), primary_key=True, index=True)
    position: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)

    post: Mapped[Post] = relationship(back_populates="classes")
