#!/usr/bin/env python3
"""Input validation and log redaction for gitlab-github-batch."""

from __future__ import annotations

import re
from typing import List, Optional

from errors import ValidationError


class SecurityValidator:
    """Validates names and URLs arriving from the command line and templates."""

    MAX_REPO_NAME_LENGTH = 100
    MAX_OWNER_LENGTH = 39
    MAX_PROJECT_PATH_LENGTH = 255
    MAX_BRANCH_LENGTH = 255
    MAX_URL_LENGTH = 2048

    SAFE_REPO_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
    SAFE_OWNER_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")
    SAFE_PROJECT_PATH_PATTERN = re.compile(r"^[A-Za-z0-9._/-]+$")
    # git check-ref-format, simplified
    UNSAFE_BRANCH_PATTERN = re.compile(r"(\.\.|@\{|[\x00-\x20~^:?*\[\\\x7f]|//|^/|/$|\.lock$|^\.|\.$)")

    @staticmethod
    def _check_basic(value: str, label: str, max_length: int) -> None:
        if not value or not isinstance(value, str):
            raise ValidationError(f"{label} must be a non-empty string")
        if len(value) > max_length:
            raise ValidationError(f"{label} exceeds maximum length of {max_length}")
        if "\x00" in value or any(ord(c) < 32 for c in value):
            raise ValidationError(f"{label} contains null bytes or control characters")

    @classmethod
    def validate_repo_name(cls, name: str) -> str:
        """Validate a GitHub repository name."""
        cls._check_basic(name, "Repository name", cls.MAX_REPO_NAME_LENGTH)
        if name in (".", "..") or not cls.SAFE_REPO_NAME_PATTERN.match(name):
            raise ValidationError(f"Repository name '{name}' contains invalid characters")
        return name

    @classmethod
    def validate_owner(cls, owner: str) -> str:
        """Validate a GitHub user or organization login."""
        cls._check_basic(owner, "Owner", cls.MAX_OWNER_LENGTH)
        if not cls.SAFE_OWNER_PATTERN.match(owner):
            raise ValidationError(f"Owner '{owner}' contains invalid characters")
        return owner

    @classmethod
    def validate_project_path(cls, path: str) -> str:
        """Validate a GitLab group or project path (namespace/project)."""
        cls._check_basic(path, "Project path", cls.MAX_PROJECT_PATH_LENGTH)
        if ".." in path:
            raise ValidationError("Project path contains path traversal sequences")
        if not cls.SAFE_PROJECT_PATH_PATTERN.match(path):
            raise ValidationError(f"Project path '{path}' contains invalid characters")
        return path.strip("/")

    @classmethod
    def validate_branch_name(cls, branch: str) -> str:
        """Validate a git branch name."""
        cls._check_basic(branch, "Branch name", cls.MAX_BRANCH_LENGTH)
        if cls.UNSAFE_BRANCH_PATTERN.search(branch):
            raise ValidationError(f"Branch name '{branch}' is not a valid git ref")
        return branch

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate an http(s) URL."""
        cls._check_basic(url, "URL", cls.MAX_URL_LENGTH)
        scheme, sep, rest = url.partition("://")
        if not sep or not rest:
            raise ValidationError(f"URL '{url}' is missing a scheme")
        allowed = allowed_schemes or ["https", "http"]
        if scheme.lower() not in allowed:
            raise ValidationError(
                f"URL scheme '{scheme}' not in allowed schemes: {allowed}"
            )
        return url

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        patterns = [
            (r"https://[^:/@\s]+:[^@\s]+@", "https://[REDACTED]@"),  # URLs with credentials
            (r"token[=:\s]+[^\s]+", "token=[REDACTED]"),
            (r"secret[=:\s]+[^\s]+", "secret=[REDACTED]"),
            (r"password[=:\s]+[^\s]+", "password=[REDACTED]"),
            (r"glpat-[A-Za-z0-9_-]+", "[GITLAB_TOKEN_REDACTED]"),
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
