"""Refine Backend.

School learning-management backend: schools, classes, feeds and assignments
backed by Google sign-in and Google Drive attachments.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
