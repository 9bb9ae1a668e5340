#!/usr/bin/env python3
"""Load branch-protection and webhook templates from YAML files."""

from __future__ import annotations

import os
from typing import Any, Dict, Mapping

import yaml

from errors import ValidationError
from models import BranchProtectionRule, WebhookSpec

BRANCH_PROTECTION_KEY = "branchProtectionRule"
WEBHOOK_KEY = "webhook"
WEBHOOK_SECRET_ENV = "GITHUB_WEBHOOK_SECRET"

# GitHub rejects a protection PUT that omits any of these
REQUIRED_PROTECTION_KEYS = (
    "required_status_checks",
    "enforce_admins",
    "required_pull_request_reviews",
    "restrictions",
)


def load_template(path: str, key: str) -> Dict[str, Any]:
    """Return the mapping stored under ``key`` in the YAML file at ``path``."""
    try:
        with open(path, "r", encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except OSError as e:
        raise ValidationError(f"cannot read template {path}: {e.strerror}") from e
    except yaml.YAMLError as e:
        raise ValidationError(f"invalid YAML in template {path}: {e}") from e

    if not isinstance(document, dict):
        raise ValidationError(f"template {path} must contain a mapping")
    section = document.get(key)
    if not isinstance(section, dict):
        raise ValidationError(f"template {path} has no '{key}' mapping")
    return section


def webhook_spec_from_template(template: Mapping[str, Any]) -> WebhookSpec:
    """Build a ``WebhookSpec`` from GitHub-shaped or flat template data.

    GitHub shape: ``events`` plus ``config: {url, secret, content_type}``.
    Flat shape: ``secret``, ``events`` and ``payloadUrl`` (or ``payload_url``).
    """
    hook_config = template.get("config") or {}
    if not isinstance(hook_config, dict):
        raise ValidationError("webhook 'config' must be a mapping")

    payload_url = (
        hook_config.get("url")
        or template.get("payloadUrl")
        or template.get("payload_url")
    )
    if not payload_url or not isinstance(payload_url, str):
        raise ValidationError("webhook template is missing the payload URL")

    events = template.get("events")
    if (
        not isinstance(events, list)
        or not events
        or not all(isinstance(event, str) and event for event in events)
    ):
        raise ValidationError("webhook 'events' must be a non-empty list of event names")

    secret = hook_config.get("secret", template.get("secret"))
    if secret is None:
        secret = os.environ.get(WEBHOOK_SECRET_ENV)
    if not secret:
        raise ValidationError(
            f"webhook secret not provided (template 'secret' or {WEBHOOK_SECRET_ENV})"
        )

    content_type = hook_config.get("content_type", template.get("contentType", "json"))
    if content_type not in ("json", "form"):
        raise ValidationError(f"unsupported webhook content type: {content_type}")

    return WebhookSpec(
        secret=str(secret),
        events=tuple(events),
        payload_url=payload_url,
        content_type=content_type,
    )


def branch_protection_rule_from_template(template: Mapping[str, Any]) -> BranchProtectionRule:
    missing = [key for key in REQUIRED_PROTECTION_KEYS if key not in template]
    if missing:
        raise ValidationError(
            f"branch protection template is missing: {', '.join(missing)}"
        )
    return BranchProtectionRule(settings=dict(template))
