# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Persistence for school documents.

Loads and saves the ``SchoolDocument`` aggregate and keeps the membership and
invitation index tables in step with it. Saves are guarded by the row's
version counter: if another request saved the same school in between, the
save raises ``SchoolConflictError`` instead of overwriting it.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from refine.core.exceptions import ConflictError
from refine.infrastructure.database.models import School, SchoolInvitation, SchoolMember
from refine.models.common import Role
from refine.models.school import SchoolDocument, SchoolSummary

logger = logging.getLogger(__name__)


class SchoolConflictError(ConflictError):
    """Raised when a school was modified concurrently."""


class SchoolRepository:
    """Loads and stores school documents.

    Attributes:
        _db: Async database session.
        _rows: Rows loaded through this repository, by school id.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._rows: dict[str, School] = {}

    async def get(self, school_id: str) -> SchoolDocument | None:
        """Load a school document by id."""
        row = await self._db.get(School, school_id)
        if row is None:
            return None
        self._rows[school_id] = row
        return SchoolDocument.model_validate(row.document)

    async def add(self, school: SchoolDocument) -> None:
        """Insert a new school."""
        row = School(id=school.id, name=school.name, document=school.model_dump(mode="json"))
        row.members = self._member_rows(school)
        row.invitations = self._invitation_rows(school)
        self._db.add(row)
        self._rows[school.id] = row
        await self._db.flush()

    async def save(self, school: SchoolDocument) -> None:
        """Write back a school previously loaded with ``get``.

        Raises:
            SchoolConflictError: If the school changed since it was loaded.
        """
        row = self._rows.get(school.id)
        if row is None:
            raise KeyError(f"School {school.id} was not loaded through this repository")

        row.name = school.name
        row.document = school.model_dump(mode="json")
        row.members = self._member_rows(school)
        row.invitations = self._invitation_rows(school)
        try:
            await self._db.flush()
        except StaleDataError as e:
            logger.info("Concurrent update of school %s", school.id)
            raise SchoolConflictError(
                "The school was changed by another request, please retry"
            ) from e

    async def list_joined(self, user_id: str) -> list[SchoolSummary]:
        """Schools in which the user holds any role."""
        result = await self._db.execute(
            select(School.id, School.name)
            .join(SchoolMember, SchoolMember.school_id == School.id)
            .where(SchoolMember.user_id == user_id)
            .order_by(School.name)
        )
        return [SchoolSummary(id=row.id, name=row.name) for row in result]

    async def list_invited(self, email: str) -> list[SchoolSummary]:
        """Schools with a pending invitation for the email, in any role."""
        result = await self._db.execute(
            select(School.id, School.name)
            .where(
                School.id.in_(
                    select(SchoolInvitation.school_id).where(
                        SchoolInvitation.email == email.lower()
                    )
                )
            )
            .order_by(School.name)
        )
        return [SchoolSummary(id=row.id, name=row.name) for row in result]

    @staticmethod
    def _member_rows(school: SchoolDocument) -> list[SchoolMember]:
        rows: dict[str, SchoolMember] = {}
        for role in Role:
            for user_id in school.member_ids(role):
                rows.setdefault(
                    user_id,
                    SchoolMember(school_id=school.id, user_id=user_id, role=role.value),
                )
        return list(rows.values())

    @staticmethod
    def _invitation_rows(school: SchoolDocument) -> list[SchoolInvitation]:
        rows: dict[tuple[str, str], SchoolInvitation] = {}
        for role in Role:
            for email in school.invited_emails(role):
                rows.setdefault(
                    (email, role.value),
                    SchoolInvitation(school_id=school.id, email=email, role=role.value),
                )
        return list(rows.values())
