# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""siteschema exception hierarchy.

All siteschema-specific errors inherit from SiteSchemaError, allowing
callers to catch the base class for any failure or specific subclasses
for targeted handling.

Extraction, detection and classification never raise. Only URL
validation, selection validation and absolutization during synthesis
surface InvalidInputError; rendering surfaces BrowserError.
"""

from __future__ import annotations


class SiteSchemaError(Exception):
    """Base exception for all siteschema errors."""


class InvalidInputError(SiteSchemaError, ValueError):
    """Malformed URL, schema selection, or catalog query."""

    def __init__(self, message: str, *, value: str = "") -> None:
        super().__init__(message)
        self.value = value


class BrowserError(SiteSchemaError):
    """Browser launch, navigation, or rendering failure."""


class PageTimeoutError(BrowserError, TimeoutError):
    """Page did not finish loading within the navigation timeout."""
