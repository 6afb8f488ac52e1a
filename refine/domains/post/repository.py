# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence for post documents.

A post is split across the ``posts`` row (fields the feed filters and sorts
on), the ``post_classes`` association (target classes, in order) and the
row's JSON document (everything else). This module is the only place that
knows about the split.
"""

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import ColumnElement, and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from refine.infrastructure.database.models import Post, PostClass
from refine.models.post import PostDocument, PostType
from refine.utils.datetime import ensure_utc


class PostRepository:
    """Loads, stores and queries posts.

    Attributes:
        _db: Async database session.
        _rows: Rows loaded through this repository, by post id.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._rows: dict[str, Post] = {}

    async def add(self, post: PostDocument) -> None:
        """Insert a new post."""
        row = Post(id=post.id)
        self._apply(row, post)
        self._db.add(row)
        self._rows[post.id] = row
        await self._db.flush()

    async def get(self, post_id: str, for_update: bool = False) -> PostDocument | None:
        """Load a post by id.

        Args:
            post_id: Post identifier.
            for_update: Lock the row until the transaction ends.
        """
        stmt = select(Post).where(Post.id == post_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await self._db.execute(stmt)
        row = result.scalar_one_or_none()
        if row is None:
            return None
        self._rows[post_id] = row
        return self._to_document(row)

    async def save(self, post: PostDocument) -> None:
        """Write back a post previously loaded with ``get``."""
        row = self._rows.get(post.id)
        if row is None:
            raise KeyError(f"Post {post.id} was not loaded through this repository")
        self._apply(row, post)
        await self._db.flush()

    async def list_feed(
        self,
        school_id: str,
        year_group_id: str,
        course_id: str | None,
        class_ids: Sequence[str] | None,
        before: datetime,
        limit: int,
        post_types: Sequence[PostType] | None = None,
        student_id: str | None = None,
    ) -> list[PostDocument]:
        """Newest-first posts of a feed scope posted strictly before ``before``.

        Args:
            school_id: School of the feed.
            year_group_id: Year group of the feed.
            course_id: Course of the feed, or None for year-group level posts.
            class_ids: Classes the reader asked for. Posts without classes
                always match.
            before: Exclusive upper bound on the post date.
            limit: Maximum number of posts to return.
            post_types: Restrict to these types.
            student_id: When set, private posts of other users are excluded.
        """
        conditions = self._scope_conditions(
            school_id, year_group_id, course_id, class_ids, post_types, student_id
        )
        result = await self._db.execute(
            select(Post)
            .where(*conditions, Post.post_date < before)
            .order_by(Post.post_date.desc(), Post.id.desc())
            .limit(limit)
        )
        return [self._to_document(row) for row in result.scalars()]

    async def get_in_scope(
        self,
        post_id: str,
        school_id: str,
        year_group_id: str,
        course_id: str | None,
        class_ids: Sequence[str] | None,
        student_id: str | None = None,
    ) -> PostDocument | None:
        """Load a post only if it would appear in the given feed."""
        conditions = self._scope_conditions(
            school_id, year_group_id, course_id, class_ids, None, student_id
        )
        result = await self._db.execute(select(Post).where(Post.id == post_id, *conditions))
        row = result.scalar_one_or_none()
        return self._to_document(row) if row is not None else None

    @staticmethod
    def _scope_conditions(
        school_id: str,
        year_group_id: str,
        course_id: str | None,
        class_ids: Sequence[str] | None,
        post_types: Sequence[PostType] | None,
        student_id: str | None,
    ) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = [
            Post.school_id == school_id,
            Post.year_group_id == year_group_id,
            Post.course_id == course_id if course_id is not None else Post.course_id.is_(None),
        ]

        class_filter = ~Post.classes.any()
        if class_ids:
            class_filter = or_(class_filter, Post.classes.any(PostClass.class_id.in_(class_ids)))
        conditions.append(class_filter)

        if post_types:
            conditions.append(Post.type.in_(post_types))
        if student_id is not None:
            conditions.append(or_(Post.private.is_(False), Post.poster_id == student_id))
        return [and_(*conditions)]

    @staticmethod
    def _apply(row: Post, post: PostDocument) -> None:
        row.school_id = post.school_id
        row.year_group_id = post.year_group_id
        row.course_id = post.course_id
        row.poster_id = post.poster_id
        row.private = post.private
        row.type = post.type
        row.title = post.title
        row.content = post.content
        row.post_date = post.post_date
        row.document = post.document_fields()
        row.classes = [
            PostClass(post_id=post.id, class_id=class_id, position=position)
            for position, class_id in enumerate(post.class_ids or [])
        ]

    @staticmethod
    def _to_document(row: Post) -> PostDocument:
        data = dict(row.document)
        data.update(
            id=row.id,
            school_id=row.school_id,
            year_group_id=row.year_group_id,
            course_id=row.course_id,
            class_ids=[link.class_id for link in row.classes] or None,
            poster_id=row.poster_id,
            private=row.private,
            type=row.type,
            title=row.title,
            content=row.content,
            post_date=ensure_utc(row.post_date),
        )
        return PostDocument.model_validate(data)
