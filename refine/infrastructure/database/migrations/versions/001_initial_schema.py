# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Initial schema: users, schools with membership indexes, posts.

Revision ID: 001_initial_schema
Revises:
Create Date: 2025-01-10
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    """Create all tables."""

    # =========================================================================
    # USERS
    # =========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("subject", sa.String(255), unique=True, nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("picture", sa.Text, nullable=False, server_default=""),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # =========================================================================
    # SCHOOLS
    # =========================================================================
    op.create_table(
        "schools",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("document", postgresql.JSONB, nullable=False),
        sa.Column("version", sa.Integer, nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "school_members",
        sa.Column(
            "school_id",
            sa.String(36),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("role", sa.String(20), nullable=False),
        # 'administrator', 'teacher', 'student'
    )
    op.create_index("ix_school_members_user_id", "school_members", ["user_id"])

    op.create_table(
        "school_invitations",
        sa.Column(
            "school_id",
            sa.String(36),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("email", sa.String(320), primary_key=True),
        sa.Column("role", sa.String(20), primary_key=True),
    )
    op.create_index("ix_school_invitations_email", "school_invitations", ["email"])

    # =========================================================================
    # POSTS
    # =========================================================================
    op.create_table(
        "posts",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "school_id",
            sa.String(36),
            sa.ForeignKey("schools.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("year_group_id", sa.String(36), nullable=False),
        sa.Column("course_id", sa.String(36), nullable=True),
        sa.Column("poster_id", sa.String(36), nullable=False),
        sa.Column("private", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("type", sa.String(20), nullable=False),
        # 'post', 'material', 'assignment'
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("post_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("document", postgresql.JSONB, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_posts_feed", "posts", ["school_id", "year_group_id", "post_date"])
    op.create_index("ix_posts_poster_id", "posts", ["poster_id"])

    op.create_table(
        "post_classes",
        sa.Column(
            "post_id",
            sa.String(36),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("class_id", sa.String(36), primary_key=True),
        sa.Column("position", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_post_classes_class_id", "post_classes", ["class_id"])


def downgrade() -> None:
    """Drop all tables."""

    op.drop_index("ix_post_classes_class_id", table_name="post_classes")
    op.drop_table("post_classes")
    op.drop_index("ix_posts_poster_id", table_name="posts")
    op.drop_index("ix_posts_feed", table_name="posts")
    op.drop_table("posts")
    op.drop_index("ix_school_invitations_email", table_name="school_invitations")
    op.drop_table("school_invitations")
    op.drop_index("ix_school_members_user_id", table_name="school_members")
    op.drop_table("school_members")
    op.drop_table("schools")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
