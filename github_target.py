#!/usr/bin/env python3
"""GitHub API wrapper for creating repositories and applying repository settings."""

from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote, urlparse

import github
import requests

from errors import AuthError, TransportError, UnknownPlatformError
from logging_utils import Logger
from models import RawResponse, RepositoryRef
from utils import RateLimiter

PUBLIC_API_URL = "https://api.github.com"


class GitHubTarget:
    """Wrapper around the GitHub API for the target side of a migration.

    Every repository call returns a ``RawResponse``; HTTP failures are data,
    not exceptions, so callers can classify them.
    """

    def __init__(self, api_url: str, token: str, timeout_s: float = 30.0) -> None:
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout_s = timeout_s
        self.api: Optional[github.Github] = None
        self.login: Optional[str] = None
        self.session = requests.Session()
        self.session.headers.update(self._get_api_headers())
        self.rate_limiter = RateLimiter(
            max_requests_per_minute=80
        )  # GitHub secondary limit for content-creating requests

    def connect(self) -> None:
        Logger.info(f"init github API: {self.api_url}")
        auth = github.Auth.Token(self.token)
        try:
            if self.api_url != PUBLIC_API_URL:
                self.api = github.Github(
                    base_url=self.api_url, auth=auth, timeout=self.timeout_s
                )
            else:
                self.api = github.Github(auth=auth, timeout=self.timeout_s)
            self.login = self.api.get_user().login
            Logger.debug(f"github user: {self.login}")
        except github.BadCredentialsException as e:
            raise AuthError("authentication failed (github): invalid token", status_code=401) from e
        except github.GithubException as e:
            raise UnknownPlatformError(f"github error: {e}", status_code=e.status) from e
        except requests.RequestException as e:
            raise TransportError(f"failed to contact github api: {e}") from e

    def _get_api_headers(self) -> Dict[str, str]:
        """Get standard API headers for GitHub requests."""
        return {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {self.token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _git_base_url(self) -> str:
        """Return base URL for Git operations derived from API endpoint."""
        parsed = urlparse(self.api_url)
        if parsed.netloc == "api.github.com":
            return "https://github.com"

        base_path = parsed.path.rstrip("/")
        if base_path.endswith("/api/v3"):
            base_path = base_path[: -len("/api/v3")]
        base = f"{parsed.scheme}://{parsed.netloc}"
        if base_path:
            base += base_path
        return base

    def clone_url(self, ref: RepositoryRef) -> str:
        return f"{self._git_base_url()}/{ref.namespace}/{ref.name}.git"

    def _repo_path(self, ref: RepositoryRef) -> str:
        return f"/repos/{quote(ref.namespace, safe='')}/{quote(ref.name, safe='')}"

    def _request(self, method: str, path: str, payload: Dict[str, Any]) -> RawResponse:
        url = f"{self.api_url}{path}"
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            response = self.session.request(method, url, json=payload, timeout=self.timeout_s)
        except requests.Timeout as e:
            return RawResponse(error=TransportError(f"{method} {path} timed out after {self.timeout_s}s: {e}"))
        except requests.RequestException as e:
            return RawResponse(error=TransportError(f"{method} {path} failed: {e}"))

        Logger.debug(f"{method} {path} returned {response.status_code}")
        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = response.text
        return RawResponse(status_code=response.status_code, body=body)

    def protect_branch(
        self, ref: RepositoryRef, branch: str, rule: Dict[str, Any]
    ) -> RawResponse:
        path = f"{self._repo_path(ref)}/branches/{quote(branch, safe='')}/protection"
        return self._request("PUT", path, rule)

    def create_webhook(self, ref: RepositoryRef, payload: Dict[str, Any]) -> RawResponse:
        return self._request("POST", f"{self._repo_path(ref)}/hooks", payload)

    def update_repo(self, ref: RepositoryRef, settings: Dict[str, Any]) -> RawResponse:
        return self._request("PATCH", self._repo_path(ref), settings)

    def create_repo(
        self, owner: Optional[str], name: str, private: bool, description: str = ""
    ) -> RawResponse:
        """Create a repository in ``owner``'s organization, or the token user's account."""
        if self.api is None:
            raise RuntimeError("github API not initialized")
        try:
            self.rate_limiter.wait_if_needed("GitHub API")
            if owner and owner != self.login:
                account = self.api.get_organization(owner)
            else:
                account = self.api.get_user()
            self.rate_limiter.wait_if_needed("GitHub API")
            repo = account.create_repo(
                name=name,
                description=description,
                private=private,
                has_wiki=False,
                auto_init=False,
            )
        except github.GithubException as e:
            return RawResponse(status_code=e.status, body=e.data)
        except requests.RequestException as e:
            return RawResponse(error=TransportError(f"creating repository {name} failed: {e}"))
        Logger.info(f"created repo: {repo.full_name}")
        return RawResponse(
            status_code=201,
            body={"id": repo.id, "full_name": repo.full_name, "clone_url": repo.clone_url},
        )
