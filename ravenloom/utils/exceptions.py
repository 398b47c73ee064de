# -*- coding: utf-8 -*-
"""
Exception hierarchy for RavenLoom.

Subject-not-found errors (scope, preview) are raised to callers. Auxiliary
lookups (edge endpoints) never raise; they log and skip.
"""
from typing import Optional


class RavenLoomError(Exception):
    """Base error. Keeps the underlying exception when wrapping one."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class DatabaseConnectionError(RavenLoomError):
    """Connection pool could not be created or is not configured."""


class NotFoundError(RavenLoomError):
    """The entity an operation is about does not exist."""


class ScopeNotFoundError(NotFoundError):
    def __init__(self, scope_id: Optional[str] = None):
        super().__init__('Scope not found')
        self.scope_id = scope_id


class PreviewNotFoundError(NotFoundError):
    """Unknown, consumed or expired Remember preview. Expected when users take too long."""

    def __init__(self, preview_id: Optional[str] = None):
        super().__init__('Preview not found or expired')
        self.preview_id = preview_id


class FactExtractionError(RavenLoomError):
    """Atomic fact decomposition produced nothing usable."""
