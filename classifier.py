#!/usr/bin/env python3
"""Classify platform responses into outcomes, recognising already-applied state."""

from __future__ import annotations

from typing import FrozenSet

from config import ActionKind
from errors import (AuthError, MigrationError, NotFoundError, TransportError,
                    UnknownPlatformError)
from models import Outcome, RawResponse

# Actions whose create call reports 422 "already exists" when re-applied.
# The remaining actions are naturally idempotent and succeed on re-application.
_ALREADY_EXISTS_ACTIONS: FrozenSet[ActionKind] = frozenset(
    {ActionKind.CREATE_WEBHOOK, ActionKind.COPY_CONTENT}
)
_ALREADY_EXISTS_STATUS = 422
_ALREADY_EXISTS_MARKER = "already exist"


def _is_already_satisfied(action: ActionKind, response: RawResponse) -> bool:
    if action not in _ALREADY_EXISTS_ACTIONS:
        return False
    if response.status_code != _ALREADY_EXISTS_STATUS:
        return False
    return _ALREADY_EXISTS_MARKER in response.message().lower()


def _error_for(response: RawResponse) -> MigrationError:
    if response.status_code is None:
        if isinstance(response.error, MigrationError):
            return response.error
        detail = str(response.error) if response.error else ""
        return TransportError(detail or "request failed before a response was received")

    message = response.message() or "unexpected response from platform"
    status = response.status_code
    if status in (401, 403):
        return AuthError(message, status_code=status)
    if status == 404:
        return NotFoundError(message, status_code=status)
    return UnknownPlatformError(message, status_code=status)


def classify(action: ActionKind, response: RawResponse) -> Outcome:
    """Map ``response`` to Applied, AlreadySatisfied or Failed.

    Pure: the same action and response always yield the same outcome.
    """
    if response.ok:
        resource_id = None
        if isinstance(response.body, dict):
            resource_id = response.body.get("id")
        return Outcome.applied(response.message(), resource_id=resource_id)

    if _is_already_satisfied(action, response):
        return Outcome.already_satisfied(response.message())

    return Outcome.failed(_error_for(response))
