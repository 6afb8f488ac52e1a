# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Configuration package for Refine.

Settings are loaded from environment variables through pydantic-settings.

Example:
    >>> from refine.core.config import get_settings
    >>> settings = get_settings()
    >>> print(settings.google.redirect_uri)
    'postmessage'
"""

from refine.core.config.settings import (
    APISettings,
    CORSSettings,
    DatabaseSettings,
    GoogleSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Subsettings
    "DatabaseSettings",
    "GoogleSettings",
    "CORSSettings",
    "APISettings",
]
