#!/usr/bin/env python3
"""Value objects shared by the directory, appliers, executor and report."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from errors import MigrationError


class Platform(Enum):
    GITLAB = "gitlab"
    GITHUB = "github"


@dataclass(frozen=True)
class RepositoryRef:
    """A repository on either platform: GitLab group/project or GitHub owner/name."""
    platform: Platform
    namespace: str
    name: str

    @property
    def full_name(self) -> str:
        if not self.namespace:
            return self.name
        return f"{self.namespace}/{self.name}"

    @classmethod
    def parse(
        cls, platform: Platform, value: str, default_namespace: str = ""
    ) -> "RepositoryRef":
        """Split ``value`` on its last ``/``; bare names use ``default_namespace``."""
        namespace, sep, name = value.strip("/").rpartition("/")
        if not sep:
            namespace = default_namespace
        return cls(platform=platform, namespace=namespace, name=name)

    def __str__(self) -> str:
        return self.full_name


@dataclass(frozen=True)
class WebhookSpec:
    secret: str
    events: Tuple[str, ...]
    payload_url: str
    content_type: str = "json"

    def __post_init__(self) -> None:
        # ordered set: keep first occurrence of each event
        object.__setattr__(self, "events", tuple(dict.fromkeys(self.events)))

    def to_payload(self) -> Dict[str, Any]:
        """Render the body of GitHub's create-hook call."""
        return {
            "name": "web",
            "active": True,
            "events": list(self.events),
            "config": {
                "url": self.payload_url,
                "content_type": self.content_type,
                "secret": self.secret,
                "insecure_ssl": "0",
            },
        }


@dataclass(frozen=True)
class BranchProtectionRule:
    """Protection settings sent verbatim as the GitHub protection body."""
    settings: Mapping[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        return dict(self.settings)


@dataclass(frozen=True)
class RawResponse:
    """Status and body of one platform call, or the transport error that replaced them."""
    status_code: Optional[int] = None
    body: Any = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
        )

    @property
    def transient(self) -> bool:
        """True for failures worth retrying: transport errors and 5xx."""
        if self.error is not None:
            return True
        return self.status_code is not None and self.status_code >= 500

    def message(self) -> str:
        """Human-readable message taken from the body, or an empty string."""
        if isinstance(self.body, dict):
            parts = []
            top = self.body.get("message") or self.body.get("error")
            if isinstance(top, (list, dict)):
                top = str(top)
            if top:
                parts.append(str(top))
            for item in self.body.get("errors") or []:
                if isinstance(item, dict) and item.get("message"):
                    parts.append(str(item["message"]))
                elif isinstance(item, str):
                    parts.append(item)
            return ": ".join(parts)
        if isinstance(self.body, str):
            return self.body.strip()
        return ""


class OutcomeKind(Enum):
    APPLIED = "applied"
    ALREADY_SATISFIED = "already-satisfied"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    message: str = ""
    error: Optional[MigrationError] = None
    resource_id: Optional[Any] = None

    @classmethod
    def applied(cls, message: str = "", resource_id: Optional[Any] = None) -> "Outcome":
        return cls(OutcomeKind.APPLIED, message=message, resource_id=resource_id)

    @classmethod
    def already_satisfied(cls, reason: str) -> "Outcome":
        return cls(OutcomeKind.ALREADY_SATISFIED, message=reason)

    @classmethod
    def failed(cls, error: MigrationError) -> "Outcome":
        return cls(OutcomeKind.FAILED, message=str(error), error=error)

    @property
    def is_failure(self) -> bool:
        return self.kind == OutcomeKind.FAILED
