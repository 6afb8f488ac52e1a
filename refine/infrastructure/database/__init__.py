# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure: connection lifecycle, models and migrations."""

from refine.infrastructure.database.connection import Database, DatabaseError

__all__ = ["Database", "DatabaseError"]
