# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services for Refine.

Each subpackage owns one aggregate:
- user: Accounts created from Google sign-in
- school: School hierarchy, membership and visibility rules
- post: Feed posts, assignments, attachments and marks
"""
