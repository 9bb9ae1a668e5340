#!/usr/bin/env python3
"""One applier per migration action, each behind ``apply(ref) -> RawResponse``."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Optional, Type

from classifier import classify
from config import (ActionKind, ActionParams, ActionRequest,
                    BranchProtectionParams, ContentCopyParams,
                    DefaultBranchParams, NoParams, WebhookParams)
from errors import TransportError, ValidationError
from logging_utils import Logger
from models import Platform, RawResponse, RepositoryRef
from security import SecurityValidator

if TYPE_CHECKING:
    from git_transfer import GitTransfer
    from github_target import GitHubTarget
    from gitlab_source import GitLabSource


@dataclass(frozen=True)
class RetryPolicy:
    """Retries for transient failures (transport errors, 5xx). Zero attempts disables retrying."""
    attempts: int = 0
    delay_s: float = 3.0


@dataclass(frozen=True)
class PlatformClients:
    """Clients built once per invocation and shared read-only by every applier."""
    gitlab: Optional["GitLabSource"] = None
    github: Optional["GitHubTarget"] = None
    transfer: Optional["GitTransfer"] = None


class Applier(ABC):
    """Applies one action to one repository.

    Subclasses declare ``kind``, the platform their targets live on and the
    parameter type they accept.
    """

    kind: ActionKind
    platform: Platform = Platform.GITHUB
    params_type: Type = NoParams

    def __init__(
        self,
        params: ActionParams,
        clients: PlatformClients,
        retry: Optional[RetryPolicy] = None,
    ) -> None:
        if not isinstance(params, self.params_type):
            raise ValidationError(
                f"{self.kind.value} expects {self.params_type.__name__}, "
                f"got {type(params).__name__}"
            )
        self.params = params
        self.clients = clients
        self.retry = retry or RetryPolicy()

    def validate(self) -> None:
        """Check the shared parameters before any call is made."""

    def check_targets(self, request: ActionRequest) -> None:
        for ref in request.targets:
            if ref.platform != self.platform:
                raise ValidationError(
                    f"{self.kind.value} acts on {self.platform.value} repositories, "
                    f"got {ref.platform.value} repository {ref.full_name}"
                )

    @abstractmethod
    def apply(self, ref: RepositoryRef) -> RawResponse:
        """Perform the platform call(s) for ``ref``."""

    def invoke(self, ref: RepositoryRef) -> RawResponse:
        response = self.apply(ref)
        attempt = 0
        while response.transient and attempt < self.retry.attempts:
            attempt += 1
            Logger.warn(
                f"transient failure on {ref.full_name}, retry {attempt}/{self.retry.attempts} "
                f"in {self.retry.delay_s:.1f}s"
            )
            time.sleep(self.retry.delay_s)
            response = self.apply(ref)
        return response

    def _github(self) -> "GitHubTarget":
        if self.clients.github is None:
            raise ValidationError(f"{self.kind.value} requires a GitHub client")
        return self.clients.github

    def _gitlab(self) -> "GitLabSource":
        if self.clients.gitlab is None:
            raise ValidationError(f"{self.kind.value} requires a GitLab client")
        return self.clients.gitlab


class BranchProtectionApplier(Applier):
    kind = ActionKind.PROTECT_BRANCH
    params_type = BranchProtectionParams

    def validate(self) -> None:
        SecurityValidator.validate_branch_name(self.params.branch)
        if not self.params.rule.settings:
            raise ValidationError("branch protection rule is empty")
        self._github()

    def apply(self, ref: RepositoryRef) -> RawResponse:
        return self._github().protect_branch(
            ref, self.params.branch, self.params.rule.to_payload()
        )


class WebhookApplier(Applier):
    """Creates the webhook; an existing hook for the same URL is left as it is."""

    kind = ActionKind.CREATE_WEBHOOK
    params_type = WebhookParams

    def validate(self) -> None:
        spec = self.params.spec
        SecurityValidator.validate_url(spec.payload_url, ["https", "http"])
        if not spec.events:
            raise ValidationError("webhook needs at least one event")
        self._github()

    def apply(self, ref: RepositoryRef) -> RawResponse:
        return self._github().create_webhook(ref, self.params.spec.to_payload())


class DefaultBranchApplier(Applier):
    kind = ActionKind.SET_DEFAULT_BRANCH
    params_type = DefaultBranchParams

    def validate(self) -> None:
        SecurityValidator.validate_branch_name(self.params.branch)
        self._github()

    def apply(self, ref: RepositoryRef) -> RawResponse:
        return self._github().update_repo(ref, {"default_branch": self.params.branch})


class AutoDeleteHeadBranchesApplier(Applier):
    kind = ActionKind.AUTO_DELETE_HEAD_BRANCHES

    def validate(self) -> None:
        self._github()

    def apply(self, ref: RepositoryRef) -> RawResponse:
        return self._github().update_repo(ref, {"delete_branch_on_merge": True})


class ArchiveApplier(Applier):
    kind = ActionKind.ARCHIVE_PROJECT
    platform = Platform.GITLAB

    def validate(self) -> None:
        self._gitlab()

    def apply(self, ref: RepositoryRef) -> RawResponse:
        return self._gitlab().archive_project(ref)


class ContentCopyApplier(Applier):
    """Ensures the GitHub repository exists, then mirrors the GitLab history into it."""

    kind = ActionKind.COPY_CONTENT
    platform = Platform.GITLAB
    params_type = ContentCopyParams

    def validate(self) -> None:
        if self.params.target_owner:
            SecurityValidator.validate_owner(self.params.target_owner)
        self._gitlab()
        self._github()
        if self.clients.transfer is None:
            raise ValidationError("copy-content requires a git transfer")

    def target_ref(self, ref: RepositoryRef) -> RepositoryRef:
        owner = self.params.target_owner or self._github().login or ""
        return RepositoryRef(platform=Platform.GITHUB, namespace=owner, name=ref.name)

    def apply(self, ref: RepositoryRef) -> RawResponse:
        github = self._github()
        target = self.target_ref(ref)
        created = github.create_repo(
            self.params.target_owner, ref.name, private=self.params.private
        )
        if classify(self.kind, created).is_failure:
            return created

        try:
            self.clients.transfer.transfer(
                self._gitlab().clone_url(ref), github.clone_url(target), ref.name
            )
        except TransportError as e:
            return RawResponse(error=e)

        body = {"message": f"mirrored {ref.full_name} to {target.full_name}"}
        if created.ok and isinstance(created.body, dict):
            body["id"] = created.body.get("id")
        return RawResponse(status_code=200, body=body)


APPLIER_TYPES: Dict[ActionKind, Type[Applier]] = {
    ActionKind.PROTECT_BRANCH: BranchProtectionApplier,
    ActionKind.CREATE_WEBHOOK: WebhookApplier,
    ActionKind.SET_DEFAULT_BRANCH: DefaultBranchApplier,
    ActionKind.AUTO_DELETE_HEAD_BRANCHES: AutoDeleteHeadBranchesApplier,
    ActionKind.ARCHIVE_PROJECT: ArchiveApplier,
    ActionKind.COPY_CONTENT: ContentCopyApplier,
}


def build_applier(
    request: ActionRequest,
    clients: PlatformClients,
    retry: Optional[RetryPolicy] = None,
) -> Applier:
    """Build and validate the applier for ``request``.

    Raises ``ValidationError`` before any platform call when the shared
    parameters or the targets cannot work.
    """
    applier = APPLIER_TYPES[request.action](request.params, clients, retry)
    applier.check_targets(request)
    applier.validate()
    return applier
