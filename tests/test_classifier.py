"""Tests for response classification."""

from __future__ import annotations

import pytest

from classifier import classify
from config import ActionKind
from errors import (AuthError, NotFoundError, TransportError,
                    UnknownPlatformError)
from models import OutcomeKind, RawResponse

HOOK_EXISTS_BODY = {
    'message': 'Validation Failed',
    'errors': [
        {'resource': 'Hook', 'code': 'custom', 'message': 'Hook already exists on this repository'}
    ],
}


def test_created_webhook_is_applied_with_id() -> None:
    """A 201 for a new hook carries the hook id into the outcome."""
    outcome = classify(ActionKind.CREATE_WEBHOOK, RawResponse(201, {'id': 224234647}))

    assert outcome.kind == OutcomeKind.APPLIED
    assert outcome.resource_id == 224234647


def test_existing_webhook_is_already_satisfied() -> None:
    """422 'already exists' on hook creation is not a failure."""
    outcome = classify(ActionKind.CREATE_WEBHOOK, RawResponse(422, HOOK_EXISTS_BODY))

    assert outcome.kind == OutcomeKind.ALREADY_SATISFIED
    assert 'already exists' in outcome.message
    assert outcome.error is None


def test_existing_repository_is_already_satisfied_for_copy() -> None:
    body = {
        'message': 'Repository creation failed.',
        'errors': [{'resource': 'Repository', 'field': 'name', 'message': 'name already exists on this account'}],
    }
    outcome = classify(ActionKind.COPY_CONTENT, RawResponse(422, body))

    assert outcome.kind == OutcomeKind.ALREADY_SATISFIED


def test_other_422_is_failed() -> None:
    """Only the 'already exists' signature counts as satisfied."""
    body = {'message': 'Validation Failed', 'errors': [{'message': 'Invalid event'}]}
    outcome = classify(ActionKind.CREATE_WEBHOOK, RawResponse(422, body))

    assert outcome.kind == OutcomeKind.FAILED
    assert isinstance(outcome.error, UnknownPlatformError)
    assert outcome.error.status_code == 422
    assert 'Invalid event' in outcome.message


def test_already_exists_signature_is_per_action() -> None:
    """Naturally idempotent actions never use the 422 signature."""
    outcome = classify(ActionKind.PROTECT_BRANCH, RawResponse(422, HOOK_EXISTS_BODY))

    assert outcome.kind == OutcomeKind.FAILED


@pytest.mark.parametrize('action', list(ActionKind))
def test_any_2xx_is_applied(action: ActionKind) -> None:
    assert classify(action, RawResponse(200, {})).kind == OutcomeKind.APPLIED
    assert classify(action, RawResponse(204, None)).kind == OutcomeKind.APPLIED


@pytest.mark.parametrize(
    'status, error_type',
    [(401, AuthError), (403, AuthError), (404, NotFoundError), (500, UnknownPlatformError)],
)
def test_error_statuses_map_to_taxonomy(status: int, error_type: type) -> None:
    outcome = classify(ActionKind.SET_DEFAULT_BRANCH, RawResponse(status, {'message': 'Nope'}))

    assert outcome.kind == OutcomeKind.FAILED
    assert isinstance(outcome.error, error_type)
    assert outcome.error.status_code == status
    assert outcome.error.message == 'Nope'


def test_missing_body_message_uses_generic_text() -> None:
    outcome = classify(ActionKind.ARCHIVE_PROJECT, RawResponse(502, None))

    assert outcome.error.message == 'unexpected response from platform'


def test_transport_failure_is_failed_transport_error() -> None:
    outcome = classify(
        ActionKind.ARCHIVE_PROJECT, RawResponse(error=TimeoutError('read timed out'))
    )

    assert outcome.kind == OutcomeKind.FAILED
    assert isinstance(outcome.error, TransportError)
    assert outcome.error.status_code is None
    assert 'read timed out' in outcome.message


def test_classification_is_pure() -> None:
    """Same action and response always give the same outcome."""
    response = RawResponse(422, HOOK_EXISTS_BODY)

    first = classify(ActionKind.CREATE_WEBHOOK, response)
    second = classify(ActionKind.CREATE_WEBHOOK, response)

    assert first == second
