#!/usr/bin/env python3
"""GitLab API wrapper for listing and archiving projects."""

from __future__ import annotations

from typing import List, Optional, Tuple

import gitlab
import requests

from errors import (AuthError, MigrationError, NotFoundError, TransportError,
                    UnknownPlatformError)
from logging_utils import Logger
from models import Platform, RawResponse, RepositoryRef
from utils import RateLimiter


def _error_from_gitlab(error: gitlab.exceptions.GitlabError, context: str) -> MigrationError:
    status = getattr(error, "response_code", None)
    message = f"{context}: {getattr(error, 'error_message', None) or error}"
    if isinstance(error, gitlab.exceptions.GitlabAuthenticationError) or status in (401, 403):
        return AuthError(message, status_code=status)
    if status == 404:
        return NotFoundError(message, status_code=status)
    return UnknownPlatformError(message, status_code=status)


class GitLabSource:
    """Wrapper around the GitLab API for the source side of a migration."""

    def __init__(self, url: str, token: str, timeout_s: float = 30.0) -> None:
        self.url = url.rstrip("/")
        self.token = token
        self.timeout_s = timeout_s
        self.api: Optional[gitlab.Gitlab] = None
        self.rate_limiter = RateLimiter(max_requests_per_minute=300)

    def connect(self) -> None:
        Logger.info(f"init gitlab API: {self.url}")
        try:
            self.api = gitlab.Gitlab(
                url=self.url, private_token=self.token, timeout=self.timeout_s
            )
            self.api.auth()
        except gitlab.exceptions.GitlabAuthenticationError as e:
            raise AuthError(f"authentication error (gitlab): {e}", status_code=401) from e
        except gitlab.exceptions.GitlabError as e:
            raise _error_from_gitlab(e, "failed to initialize gitlab API") from e
        except requests.RequestException as e:
            raise TransportError(f"failed to contact gitlab: {e}") from e

    def _require_api(self) -> gitlab.Gitlab:
        if self.api is None:
            raise RuntimeError("gitlab API not initialized")
        return self.api

    @staticmethod
    def _to_ref(project: object) -> RepositoryRef:
        path_ns = getattr(project, "path_with_namespace", "") or ""
        namespace, _, name = path_ns.rpartition("/")
        name = getattr(project, "path", None) or name
        return RepositoryRef(platform=Platform.GITLAB, namespace=namespace, name=name)

    def fetch_page(
        self, group: str, search: Optional[str], page: int, per_page: int
    ) -> Tuple[List[RepositoryRef], bool]:
        """Fetch one page of a group's projects; ``has_more`` is true for a full page."""
        api = self._require_api()
        params = {
            "page": page,
            "per_page": per_page,
            "order_by": "path",
            "sort": "asc",
            "get_all": False,
        }
        if search:
            params["search"] = search
        try:
            self.rate_limiter.wait_if_needed("GitLab API")
            projects = api.groups.get(group, lazy=True).projects.list(**params)
        except gitlab.exceptions.GitlabError as e:
            raise _error_from_gitlab(e, f"failed to list projects under '{group}'") from e
        except requests.RequestException as e:
            raise TransportError(f"failed to list projects under '{group}': {e}") from e

        refs = [self._to_ref(project) for project in projects]
        Logger.debug(f"page {page} of {group}: {len(refs)} projects")
        return refs, len(refs) >= per_page

    def archive_project(self, ref: RepositoryRef) -> RawResponse:
        """Archive a project; re-archiving an archived project succeeds."""
        api = self._require_api()
        try:
            self.rate_limiter.wait_if_needed("GitLab API")
            project = api.projects.get(ref.full_name, lazy=True)
            body = project.archive()
        except gitlab.exceptions.GitlabError as e:
            status = getattr(e, "response_code", None)
            message = getattr(e, "error_message", None) or str(e)
            if status is None:
                return RawResponse(error=TransportError(f"archiving {ref.full_name}: {message}"))
            return RawResponse(status_code=status, body={"message": message})
        except requests.RequestException as e:
            return RawResponse(error=TransportError(f"archiving {ref.full_name}: {e}"))
        return RawResponse(status_code=201, body=body if isinstance(body, dict) else {})

    def clone_url(self, ref: RepositoryRef) -> str:
        return f"{self.url}/{ref.full_name}.git"
