# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Schemas for the Google OAuth exchange endpoints."""

from pydantic import BaseModel, Field


class GoogleAuthenticateRequest(BaseModel):
    """Authorization code obtained by the browser popup flow."""

    code: str = Field(min_length=1)


class GoogleRefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


class GoogleRevokeRequest(BaseModel):
    access_token: str = Field(min_length=1)
    refresh_token: str | None = None


class GoogleTokenResponse(BaseModel):
    """Tokens returned to the browser.

    Attributes:
        access_token: Bearer token for subsequent API calls.
        id_token: OpenID Connect id token.
        refresh_token: Refresh token; Google omits it on refresh, in which
            case the caller's own token is echoed back.
        expiry_date: Absolute expiry, milliseconds since the Unix epoch.
    """

    access_token: str
    id_token: str = ""
    refresh_token: str = ""
    expiry_date: int
