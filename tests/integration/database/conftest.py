# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest fixtures for database integration tests.

Provides database sessions, engines and seeded users and schools.

Tests run against an in-memory SQLite database unless TEST_DATABASE_URL
points at a PostgreSQL instance.
"""

import os
from dataclasses import dataclass
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from refine.domains.school.repository import SchoolRepository
from refine.domains.user.service import UserService
from refine.infrastructure.database.models import Base, User
from refine.models.school import SchoolDocument
from refine.models.user import UserProfile


@pytest.fixture(scope="session")
def test_db_url() -> str:
    """Get database URL for tests."""
    return os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture(scope="function")
async def db_engine(test_db_url: str):
    """Create async engine with a fresh schema."""
    if test_db_url.startswith("sqlite"):
        engine = create_async_engine(
            test_db_url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        # pysqlite's own transaction handling breaks SAVEPOINT; let
        # SQLAlchemy emit BEGIN itself.
        @event.listens_for(engine.sync_engine, "connect")
        def do_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None

        @event.listens_for(engine.sync_engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")
    else:
        engine = create_async_engine(test_db_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create async session for database tests."""
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@dataclass
class Members:
    """Users seeded into the test school."""

    admin: User
    teacher: User
    student_a: User
    student_b: User
    outsider: User


async def create_user(db_session: AsyncSession, name: str) -> User:
    """Create a user as a first Google sign-in would."""
    slug = name.lower().replace(" ", ".")
    return await UserService(db_session).ensure_user_exists(
        UserProfile(
            subject=f"google-{slug}",
            name=name,
            email=f"{slug}@school.org",
            picture=f"https://lh3.example.com/{slug}.png",
        )
    )


@pytest_asyncio.fixture
async def members(db_session: AsyncSession) -> Members:
    """Five signed-in users: four school members and one outsider."""
    return Members(
        admin=await create_user(db_session, "Alice Admin"),
        teacher=await create_user(db_session, "Tom Teacher"),
        student_a=await create_user(db_session, "Sam Student"),
        student_b=await create_user(db_session, "Bea Student"),
        outsider=await create_user(db_session, "Olly Outsider"),
    )


@pytest_asyncio.fixture
async def school(db_session: AsyncSession, members: Members, school_factory) -> SchoolDocument:
    """Stored school with the seeded members.

    Layout:
        Year 7
            Maths: 7A (teacher, student_a), 7B (student_b)
            Science: 7S (student_a)
        Year 8 (no courses)
    """
    document = school_factory(
        members.admin.id,
        members.teacher.id,
        members.student_a.id,
        members.student_b.id,
    )
    await SchoolRepository(db_session).add(document)
    return document
