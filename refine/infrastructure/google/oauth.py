# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Google OAuth2 and OpenID Connect clients.

``GoogleOAuthClient`` performs the token exchanges behind the unauthenticated
auth endpoints. ``GoogleIdentityProvider`` turns a bearer access token into a
``UserProfile`` using the userinfo endpoint advertised in Google's discovery
document; the endpoint is discovered once per provider instance.

Example:
    >>> oauth = GoogleOAuthClient(http_client, settings.google)
    >>> tokens = await oauth.exchange_code("4/0Ad...")
    >>> identity = GoogleIdentityProvider(http_client, settings.google)
    >>> profile = await identity.get_profile(tokens.access_token)
"""

import asyncio
import logging
from typing import Any

import httpx

from refine.core.config.settings import GoogleSettings
from refine.infrastructure.google.errors import IdentityProviderError, InvalidAccessTokenError
from refine.models.auth import GoogleTokenResponse
from refine.models.user import UserProfile
from refine.utils.datetime import expiry_in_millis

logger = logging.getLogger(__name__)


class GoogleOAuthClient:
    """Client for Google's OAuth2 token and revocation endpoints.

    Attributes:
        _http: Shared async HTTP client.
        _settings: Google configuration.
    """

    def __init__(self, http: httpx.AsyncClient, settings: GoogleSettings) -> None:
        self._http = http
        self._settings = settings

    async def exchange_code(self, code: str) -> GoogleTokenResponse:
        """Exchange an authorization code for tokens.

        Args:
            code: Authorization code from the browser popup flow.

        Returns:
            Access, id and refresh tokens.

        Raises:
            IdentityProviderError: If Google rejects the exchange.
        """
        data = await self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self._settings.redirect_uri,
        })
        return self._to_response(data)

    async def refresh(self, refresh_token: str) -> GoogleTokenResponse:
        """Obtain a fresh access token from a refresh token.

        Google does not rotate refresh tokens here, so the caller's token is
        returned unchanged when the response omits one.
        """
        data = await self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })
        return self._to_response(data, fallback_refresh_token=refresh_token)

    async def revoke(self, token: str) -> None:
        """Revoke an access or refresh token.

        Raises:
            IdentityProviderError: If the revocation request fails.
        """
        try:
            response = await self._http.post(
                self._settings.revoke_uri,
                data={"token": token},
                timeout=self._settings.timeout,
            )
        except httpx.RequestError as e:
            raise IdentityProviderError(f"Token revocation failed: {e}") from e

        # 400 means the token was already invalid, which is the desired end state
        if response.status_code not in (200, 400):
            raise IdentityProviderError(
                "Token revocation failed", status_code=response.status_code
            )

    async def _token_request(self, form: dict[str, str]) -> dict[str, Any]:
        payload = {
            **form,
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret.get_secret_value(),
        }
        try:
            response = await self._http.post(
                self._settings.token_uri,
                data=payload,
                timeout=self._settings.timeout,
            )
        except httpx.RequestError as e:
            raise IdentityProviderError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            logger.warning(
                "Google token endpoint returned %s for grant %s",
                response.status_code,
                form["grant_type"],
            )
            raise IdentityProviderError(
                "Google rejected the token request", status_code=response.status_code
            )
        return response.json()

    @staticmethod
    def _to_response(
        data: dict[str, Any],
        fallback_refresh_token: str = "",
    ) -> GoogleTokenResponse:
        if "access_token" not in data:
            raise IdentityProviderError("Token response did not include an access token")
        return GoogleTokenResponse(
            access_token=data["access_token"],
            id_token=data.get("id_token", ""),
            refresh_token=data.get("refresh_token", fallback_refresh_token),
            expiry_date=expiry_in_millis(data.get("expires_in", 3600)),
        )


class GoogleIdentityProvider:
    """Resolves bearer access tokens to user profiles.

    Attributes:
        _http: Shared async HTTP client.
        _settings: Google configuration.
        _userinfo_endpoint: Endpoint from the discovery document, cached.
    """

    def __init__(self, http: httpx.AsyncClient, settings: GoogleSettings) -> None:
        self._http = http
        self._settings = settings
        self._userinfo_endpoint: str | None = None
        self._discovery_lock = asyncio.Lock()

    async def get_profile(self, access_token: str) -> UserProfile:
        """Fetch the profile that owns an access token.

        Args:
            access_token: Google OAuth access token from the Authorization header.

        Returns:
            The user's subject, name, email and picture.

        Raises:
            InvalidAccessTokenError: If Google does not accept the token.
            IdentityProviderError: If Google cannot be reached.
        """
        endpoint = await self._get_userinfo_endpoint()
        try:
            response = await self._http.get(
                endpoint,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self._settings.timeout,
            )
        except httpx.RequestError as e:
            raise IdentityProviderError(f"Userinfo request failed: {e}") from e

        if response.status_code in (400, 401, 403):
            raise InvalidAccessTokenError("Invalid or expired access token")
        if response.status_code != 200:
            raise IdentityProviderError(
                "Userinfo request failed", status_code=response.status_code
            )

        data = response.json()
        if not data.get("sub") or not data.get("email"):
            raise InvalidAccessTokenError("Access token does not grant profile and email scopes")

        return UserProfile(
            subject=data["sub"],
            name=data.get("name") or data["email"],
            email=data["email"],
            picture=data.get("picture", ""),
        )

    async def _get_userinfo_endpoint(self) -> str:
        if self._userinfo_endpoint is not None:
            return self._userinfo_endpoint

        async with self._discovery_lock:
            if self._userinfo_endpoint is None:
                try:
                    response = await self._http.get(
                        self._settings.discovery_url,
                        timeout=self._settings.timeout,
                    )
                    response.raise_for_status()
                except httpx.HTTPError as e:
                    raise IdentityProviderError(f"OpenID discovery failed: {e}") from e

                endpoint = response.json().get("userinfo_endpoint")
                if not endpoint:
                    raise IdentityProviderError("Discovery document has no userinfo endpoint")
                self._userinfo_endpoint = endpoint
                logger.debug("Discovered userinfo endpoint: %s", endpoint)

        return self._userinfo_endpoint
