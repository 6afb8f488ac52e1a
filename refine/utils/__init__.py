# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Utility functions and helpers for Refine.

This package contains cross-cutting utilities:
- logging: Structured logging with structlog
- datetime: Timezone-aware datetime operations
"""

from refine.utils.datetime import ensure_utc, expiry_in_millis, utc_now
from refine.utils.logging import bind_context, clear_context, setup_logging

__all__ = [
    # datetime
    "utc_now",
    "ensure_utc",
    "expiry_in_millis",
    # logging
    "setup_logging",
    "bind_context",
    "clear_context",
]
