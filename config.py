#!/usr/bin/env python3
"""Configuration dataclasses for gitlab-github-batch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from models import BranchProtectionRule, RepositoryRef, WebhookSpec


class ActionKind(Enum):
    """Closed set of migration actions; values are the CLI sub-commands."""
    PROTECT_BRANCH = "protect-branch"
    CREATE_WEBHOOK = "create-webhook"
    SET_DEFAULT_BRANCH = "set-default-branch"
    AUTO_DELETE_HEAD_BRANCHES = "auto-delete-head-branches"
    ARCHIVE_PROJECT = "archive-project"
    COPY_CONTENT = "copy-content"


@dataclass(frozen=True)
class BranchProtectionParams:
    branch: str
    rule: BranchProtectionRule


@dataclass(frozen=True)
class WebhookParams:
    spec: WebhookSpec


@dataclass(frozen=True)
class DefaultBranchParams:
    branch: str


@dataclass(frozen=True)
class NoParams:
    """Marker for actions that take nothing beyond the repository list."""


@dataclass(frozen=True)
class ContentCopyParams:
    """Where copied repositories land; no owner means the token's user account."""
    target_owner: Optional[str] = None
    private: bool = True


ActionParams = Union[
    BranchProtectionParams,
    WebhookParams,
    DefaultBranchParams,
    NoParams,
    ContentCopyParams,
]


@dataclass(frozen=True)
class ActionRequest:
    """One invocation: the action, its ordered targets and shared parameters."""
    action: ActionKind
    targets: Tuple[RepositoryRef, ...]
    params: ActionParams = NoParams()

    def __post_init__(self) -> None:
        object.__setattr__(self, "targets", tuple(self.targets))


@dataclass
class GitLabConfig:
    """GitLab-specific configuration."""
    url: str
    token: str
    username: str = ""


@dataclass
class GitHubConfig:
    """GitHub-specific configuration."""
    api_url: str
    token: str


@dataclass
class ExecutionConfig:
    """Batch execution configuration."""
    max_workers: int = 5
    timeout_s: float = 30.0
    retries: int = 0
    retry_delay_s: float = 3.0


@dataclass
class GitOperationConfig:
    """Git operation configuration."""
    clone_temp_dir: str = "/tmp/gitlab-github-batch"


@dataclass
class Config:
    """Main configuration, built once per invocation."""
    gitlab: GitLabConfig
    github: GitHubConfig
    execution: ExecutionConfig
    git: GitOperationConfig
