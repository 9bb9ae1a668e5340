#!/usr/bin/env python3
"""Wires configuration, clients, directory, appliers and executor together."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from appliers import PlatformClients, RetryPolicy, build_applier
from config import ActionKind, ActionParams, ActionRequest, Config, NoParams
from directory import DEFAULT_LIMIT, RepositoryDirectory
from errors import ValidationError
from executor import ActionExecutor
from git_transfer import GitTransfer
from github_target import GitHubTarget
from gitlab_source import GitLabSource
from logging_utils import Logger
from models import Platform, RepositoryRef
from report import MigrationReport
from utils import plural

_NEEDS_GITLAB = {ActionKind.ARCHIVE_PROJECT, ActionKind.COPY_CONTENT}
_NEEDS_GITHUB = set(ActionKind) - {ActionKind.ARCHIVE_PROJECT}


class MigrationOrchestrator:
    """Entry point used by the CLI: list repositories or run one action over a batch."""

    def __init__(
        self,
        cfg: Config,
        gitlab: Optional[GitLabSource] = None,
        github: Optional[GitHubTarget] = None,
        transfer: Optional[GitTransfer] = None,
    ) -> None:
        self.cfg = cfg
        self.gl = gitlab or GitLabSource(
            cfg.gitlab.url, cfg.gitlab.token, timeout_s=cfg.execution.timeout_s
        )
        self.gh = github or GitHubTarget(
            cfg.github.api_url, cfg.github.token, timeout_s=cfg.execution.timeout_s
        )
        self.transfer = transfer or GitTransfer(
            cfg.git.clone_temp_dir,
            source_token=cfg.gitlab.token,
            source_username=cfg.gitlab.username,
            target_token=cfg.github.token,
        )
        self.executor = ActionExecutor(max_workers=cfg.execution.max_workers)
        self.retry = RetryPolicy(
            attempts=cfg.execution.retries, delay_s=cfg.execution.retry_delay_s
        )
        self._connected: set = set()

    def _connect(self, platform: Platform) -> None:
        if platform in self._connected:
            return
        if platform == Platform.GITLAB:
            self.gl.connect()
        else:
            self.gh.connect()
        self._connected.add(platform)

    def list_repositories(
        self, group: str, prefix: Optional[str] = None, limit: int = DEFAULT_LIMIT
    ) -> List[RepositoryRef]:
        """Sorted projects of ``group``; raises on any listing failure."""
        self._connect(Platform.GITLAB)
        return RepositoryDirectory(self.gl.fetch_page).list(group, prefix, limit)

    def run_action(
        self,
        action: ActionKind,
        targets: Sequence[RepositoryRef],
        params: ActionParams = NoParams(),
    ) -> MigrationReport:
        """Apply ``action`` to every target and return the ordered report.

        Raises ``ValidationError`` before any call when the shared parameters
        are malformed; per-repository failures end up in the report.
        """
        request = ActionRequest(action=action, targets=tuple(targets), params=params)
        clients = PlatformClients(gitlab=self.gl, github=self.gh, transfer=self.transfer)
        applier = build_applier(request, clients, self.retry)

        if not request.targets:
            Logger.warn(f"{action.value}: no repositories to process")
            return self.executor.run(request, applier)

        if action in _NEEDS_GITLAB:
            self._connect(Platform.GITLAB)
        if action in _NEEDS_GITHUB:
            self._connect(Platform.GITHUB)

        report = self.executor.run(request, applier)
        summary = report.summary
        Logger.info(
            f"{action.value}: {plural(summary.total, 'repository')} processed, "
            f"{summary.applied} applied, {summary.already_satisfied} already satisfied, "
            f"{summary.failed} failed"
        )
        return report

    def copy_group(
        self,
        group: str,
        params: ActionParams,
        prefix: Optional[str] = None,
        limit: int = DEFAULT_LIMIT,
    ) -> MigrationReport:
        """Copy every project of ``group`` matching ``prefix`` to GitHub.

        Raises ``ValidationError`` when two listed projects would land on the
        same GitHub repository name.
        """
        targets = self.list_repositories(group, prefix, limit)
        seen: Dict[str, RepositoryRef] = {}
        for ref in targets:
            if ref.name in seen:
                raise ValidationError(
                    f"{seen[ref.name].full_name} and {ref.full_name} both map to "
                    f"GitHub repository '{ref.name}'"
                )
            seen[ref.name] = ref
        return self.run_action(ActionKind.COPY_CONTENT, targets, params)
