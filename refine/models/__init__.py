# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pydantic schemas for Refine.

Modules:
    common: Identifier and name types, roles, generic responses.
    user: User identities and provider profiles.
    school: School documents and school endpoint schemas.
    post: Post documents and feed/assignment endpoint schemas.
    auth: Google OAuth exchange schemas.
"""
