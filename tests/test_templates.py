"""Tests for YAML template loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from errors import ValidationError
from templates import (BRANCH_PROTECTION_KEY, WEBHOOK_KEY, WEBHOOK_SECRET_ENV,
                       branch_protection_rule_from_template, load_template,
                       webhook_spec_from_template)

WEBHOOK_YAML = """
webhook:
  events:
    - push
    - pull_request
    - push
  config:
    url: https://github-webhook-proxy/webhook?targetUrl=https://jenkins.some-jenkins.com/github-webhook/
    content_type: json
    secret: some-secret
"""

PROTECTION_YAML = """
branchProtectionRule:
  required_status_checks:
    strict: true
    contexts: [ci]
  enforce_admins: true
  required_pull_request_reviews:
    required_approving_review_count: 1
  restrictions: null
"""


def _write(tmp_path: Path, content: str) -> str:
    path = tmp_path / 'template.yml'
    path.write_text(content, encoding='utf-8')
    return str(path)


def test_webhook_template_in_github_shape(tmp_path: Path) -> None:
    spec = webhook_spec_from_template(load_template(_write(tmp_path, WEBHOOK_YAML), WEBHOOK_KEY))

    assert spec.events == ('push', 'pull_request')
    assert spec.secret == 'some-secret'
    assert spec.payload_url.startswith('https://github-webhook-proxy/webhook')
    assert spec.content_type == 'json'


def test_webhook_template_in_flat_shape_with_secret_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(WEBHOOK_SECRET_ENV, 'env-secret')

    spec = webhook_spec_from_template(
        {'events': ['push'], 'payloadUrl': 'https://hooks.example.com/gh'}
    )

    assert spec.secret == 'env-secret'
    assert spec.payload_url == 'https://hooks.example.com/gh'


def test_webhook_template_without_secret_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(WEBHOOK_SECRET_ENV, raising=False)

    with pytest.raises(ValidationError, match='secret'):
        webhook_spec_from_template({'events': ['push'], 'payloadUrl': 'https://hooks.example.com/gh'})


@pytest.mark.parametrize('template', [
    {'events': [], 'secret': 's', 'payloadUrl': 'https://hooks.example.com'},
    {'events': 'push', 'secret': 's', 'payloadUrl': 'https://hooks.example.com'},
    {'events': ['push'], 'secret': 's'},
    {'events': ['push'], 'secret': 's', 'payloadUrl': 'https://hooks.example.com', 'contentType': 'xml'},
])
def test_malformed_webhook_templates_are_rejected(template: dict) -> None:
    with pytest.raises(ValidationError):
        webhook_spec_from_template(template)


def test_branch_protection_template(tmp_path: Path) -> None:
    rule = branch_protection_rule_from_template(
        load_template(_write(tmp_path, PROTECTION_YAML), BRANCH_PROTECTION_KEY)
    )

    payload = rule.to_payload()
    assert payload['enforce_admins'] is True
    assert payload['restrictions'] is None
    assert payload['required_status_checks']['contexts'] == ['ci']


def test_branch_protection_template_missing_keys() -> None:
    with pytest.raises(ValidationError, match='restrictions'):
        branch_protection_rule_from_template({
            'required_status_checks': None,
            'enforce_admins': True,
            'required_pull_request_reviews': None,
        })


def test_load_template_errors(tmp_path: Path) -> None:
    with pytest.raises(ValidationError):
        load_template(str(tmp_path / 'missing.yml'), WEBHOOK_KEY)
    with pytest.raises(ValidationError):
        load_template(_write(tmp_path, 'webhook: [unclosed'), WEBHOOK_KEY)
    with pytest.raises(ValidationError, match=BRANCH_PROTECTION_KEY):
        load_template(_write(tmp_path, WEBHOOK_YAML), BRANCH_PROTECTION_KEY)
