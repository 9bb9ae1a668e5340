#!/usr/bin/env python3
"""Error taxonomy for gitlab-github-batch."""

from __future__ import annotations

from typing import Optional


class MigrationError(Exception):
    """Base class for every error raised while migrating repositories."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (HTTP {self.status_code})"
        return self.message


class TransportError(MigrationError):
    """Network failure, timeout, or failed git transfer."""


class AuthError(MigrationError):
    """Credentials rejected by the platform (401/403)."""


class NotFoundError(MigrationError):
    """Repository, project or group does not exist (404)."""


class AlreadySatisfiedError(MigrationError):
    """Desired state is already present; a classification label, not a failure."""


class ValidationError(MigrationError):
    """Malformed parameters detected before any call is made."""


class UnknownPlatformError(MigrationError):
    """Unexpected status code or response body."""


class CancelledError(MigrationError):
    """Work item was cancelled before it started."""
