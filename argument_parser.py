#!/usr/bin/env python3
"""Command line argument parsing and configuration building."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence, Tuple

from config import (ActionKind, Config, ExecutionConfig, GitHubConfig,
                    GitLabConfig, GitOperationConfig)
from directory import DEFAULT_LIMIT
from errors import ValidationError
from executor import MAX_WORKERS_LIMIT
from logging_utils import Logger
from security import SecurityValidator

# Exit codes
EXIT_AUTH_ERROR = 40
EXIT_MISSING_ARGUMENTS = 2

LIST_COMMAND = "list"

_GITLAB_COMMANDS = {LIST_COMMAND, ActionKind.COPY_CONTENT.value, ActionKind.ARCHIVE_PROJECT.value}
_GITHUB_COMMANDS = {kind.value for kind in ActionKind} - {ActionKind.ARCHIVE_PROJECT.value}


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="gitlab-github-batch",
        description="Migrate GitLab repositories and their settings to GitHub in batches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list --starts-with project FOO
  %(prog)s copy-content --starts-with project FOO --github-org BAR
  %(prog)s protect-branch -c branchProtectionRuleTemplate.yml some-org master repo1 repo2
  %(prog)s create-webhook -c webhookTemplate.yml some-org repo1 repo2
  %(prog)s set-default-branch some-org main repo1 repo2
  %(prog)s auto-delete-head-branches some-org repo1 repo2
  %(prog)s archive-project FOO/project1 FOO/project2
        """,
    )
    return parser


def _add_platform_arguments(parser: argparse.ArgumentParser) -> None:
    """Add GitLab and GitHub connection arguments to parser."""
    parser.add_argument(
        "--gl-url",
        dest="gl_url",
        default="https://gitlab.com",
        help="Base URL of the GitLab instance",
    )
    parser.add_argument(
        "--gl-token",
        dest="gl_token",
        help="GitLab API token (or set GITLAB_TOKEN env var)",
    )
    parser.add_argument(
        "--gl-username",
        dest="gl_username",
        help="GitLab username for HTTPS git auth (or set GITLAB_USERNAME env var)",
    )
    parser.add_argument(
        "--gh-api",
        dest="gh_api_url",
        default="https://api.github.com",
        help="Base URL of the GitHub API",
    )
    parser.add_argument(
        "--gh-token",
        dest="gh_token",
        help="GitHub API token (or set GITHUB_TOKEN env var)",
    )


def _add_execution_arguments(parser: argparse.ArgumentParser) -> None:
    """Add batch execution arguments to parser."""
    parser.add_argument(
        "-w",
        "--workers",
        dest="workers",
        type=int,
        default=5,
        help=f"Repositories processed concurrently, 1-{MAX_WORKERS_LIMIT} (default: 5)",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout_s",
        type=float,
        default=30.0,
        help="Timeout in seconds for each API call (default: 30)",
    )
    parser.add_argument(
        "--retries",
        dest="retries",
        type=int,
        default=0,
        help="Retries for timeouts and 5xx responses per repository (default: 0)",
    )
    parser.add_argument(
        "--retry-delay",
        dest="retry_delay_s",
        type=float,
        default=3.0,
        help="Seconds to wait between retry attempts (default: 3.0)",
    )
    parser.add_argument(
        "--clone-temp-dir",
        dest="clone_temp_dir",
        default="/tmp/gitlab-github-batch",
        help="Temporary directory for git clones (default: /tmp/gitlab-github-batch)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        dest="verbose",
        help="Print per-repository progress and request details",
    )


def _add_listing_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--starts-with",
        dest="starts_with",
        help="Only repositories whose name starts with this prefix (case-sensitive)",
    )
    parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Maximum number of repositories (default: {DEFAULT_LIMIT})",
    )
    parser.add_argument("group", help="GitLab group path")


def _add_subcommands(parser: argparse.ArgumentParser) -> None:
    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    list_parser = subparsers.add_parser(
        LIST_COMMAND, help="List GitLab projects of a group in alphabetical order"
    )
    _add_listing_arguments(list_parser)

    copy_parser = subparsers.add_parser(
        ActionKind.COPY_CONTENT.value,
        help="Create GitHub repositories and mirror the GitLab history into them",
    )
    _add_listing_arguments(copy_parser)
    copy_parser.add_argument(
        "--github-org",
        dest="github_org",
        help="GitHub organization to copy into (default: the token's user account)",
    )
    copy_parser.add_argument(
        "--public",
        action="store_true",
        dest="public",
        help="Create public GitHub repositories (default: private)",
    )

    protect_parser = subparsers.add_parser(
        ActionKind.PROTECT_BRANCH.value,
        help="Apply a branch protection rule to a branch of GitHub repositories",
    )
    protect_parser.add_argument(
        "-c", "--config", dest="config_file", required=True,
        help="YAML template with a 'branchProtectionRule' mapping",
    )
    protect_parser.add_argument("owner", help="GitHub owner (organization or user)")
    protect_parser.add_argument("branch", help="Branch to protect")
    protect_parser.add_argument("repos", nargs="+", help="GitHub repository names")

    webhook_parser = subparsers.add_parser(
        ActionKind.CREATE_WEBHOOK.value, help="Create a webhook on GitHub repositories"
    )
    webhook_parser.add_argument(
        "-c", "--config", dest="config_file", required=True,
        help="YAML template with a 'webhook' mapping",
    )
    webhook_parser.add_argument("owner", help="GitHub owner (organization or user)")
    webhook_parser.add_argument("repos", nargs="+", help="GitHub repository names")

    default_parser = subparsers.add_parser(
        ActionKind.SET_DEFAULT_BRANCH.value,
        help="Set the default branch of GitHub repositories",
    )
    default_parser.add_argument("owner", help="GitHub owner (organization or user)")
    default_parser.add_argument("branch", help="New default branch")
    default_parser.add_argument("repos", nargs="+", help="GitHub repository names")

    auto_delete_parser = subparsers.add_parser(
        ActionKind.AUTO_DELETE_HEAD_BRANCHES.value,
        help="Delete head branches automatically after pull requests are merged",
    )
    auto_delete_parser.add_argument("owner", help="GitHub owner (organization or user)")
    auto_delete_parser.add_argument("repos", nargs="+", help="GitHub repository names")

    archive_parser = subparsers.add_parser(
        ActionKind.ARCHIVE_PROJECT.value, help="Archive GitLab projects"
    )
    archive_parser.add_argument(
        "projects", nargs="+", help="GitLab project paths (namespace/project)"
    )


def _validate_parsed_arguments(args: argparse.Namespace) -> None:
    """Validate names, URLs and numeric inputs; exit on the first problem."""
    try:
        args.gl_url = SecurityValidator.validate_url(args.gl_url, ["https", "http"])
        args.gh_api_url = SecurityValidator.validate_url(args.gh_api_url, ["https", "http"])

        if not 1 <= args.workers <= MAX_WORKERS_LIMIT:
            raise ValidationError(f"workers must be between 1 and {MAX_WORKERS_LIMIT}")
        if args.timeout_s <= 0 or args.timeout_s > 600:
            raise ValidationError("timeout must be between 0 and 600 seconds")
        if args.retries < 0 or args.retries > 10:
            raise ValidationError("retries must be between 0 and 10")
        if args.retry_delay_s < 0 or args.retry_delay_s > 300:
            raise ValidationError("retry delay must be between 0 and 300 seconds")
        args.clone_temp_dir = os.path.normpath(args.clone_temp_dir)

        if hasattr(args, "group"):
            args.group = SecurityValidator.validate_project_path(args.group)
            if args.limit < 1:
                raise ValidationError("limit must be at least 1")
            if args.starts_with is not None and not args.starts_with:
                raise ValidationError("--starts-with must not be empty")
        if getattr(args, "github_org", None):
            args.github_org = SecurityValidator.validate_owner(args.github_org)
        if hasattr(args, "owner"):
            args.owner = SecurityValidator.validate_owner(args.owner)
        if hasattr(args, "branch"):
            args.branch = SecurityValidator.validate_branch_name(args.branch)
        if hasattr(args, "repos"):
            args.repos = [SecurityValidator.validate_repo_name(r) for r in args.repos]
        if hasattr(args, "projects"):
            args.projects = [
                SecurityValidator.validate_project_path(p) for p in args.projects
            ]

        Logger.security_event(
            "CONFIG_VALIDATION", "successfully validated all command line inputs"
        )
    except ValidationError as e:
        Logger.security_event(
            "CONFIG_VALIDATION_FAILED", f"configuration validation failed: {e}"
        )
        Logger.error(f"configuration validation error: {e}")
        sys.exit(EXIT_MISSING_ARGUMENTS)


def _get_and_validate_tokens(args: argparse.Namespace) -> Tuple[str, str, str]:
    """Get the tokens the chosen command needs; exit when one is missing."""
    gl_token = args.gl_token or os.getenv("GITLAB_TOKEN") or ""
    gh_token = args.gh_token or os.getenv("GITHUB_TOKEN") or ""
    if args.command in _GITLAB_COMMANDS and not gl_token:
        Logger.error(
            "error: gitlab token not provided (use --gl-token or GITLAB_TOKEN)"
        )
        sys.exit(EXIT_AUTH_ERROR)
    if args.command in _GITHUB_COMMANDS and not gh_token:
        Logger.error(
            "error: github token not provided (use --gh-token or GITHUB_TOKEN)"
        )
        sys.exit(EXIT_AUTH_ERROR)

    gl_username = args.gl_username or os.getenv("GITLAB_USERNAME") or ""
    if gl_username:
        try:
            gl_username = SecurityValidator.validate_owner(gl_username)
        except ValidationError as e:
            Logger.error(f"GitLab username validation error: {e}")
            sys.exit(EXIT_AUTH_ERROR)
    return gl_token, gh_token, gl_username


def parse_arguments(
    argv: Optional[Sequence[str]] = None,
) -> Tuple[argparse.Namespace, Config]:
    """Parse command line arguments into the namespace and the configuration object."""
    parser = _create_argument_parser()
    _add_platform_arguments(parser)
    _add_execution_arguments(parser)
    _add_subcommands(parser)

    args = parser.parse_args(argv)
    Logger.verbose = args.verbose

    _validate_parsed_arguments(args)
    gl_token, gh_token, gl_username = _get_and_validate_tokens(args)

    cfg = Config(
        gitlab=GitLabConfig(url=args.gl_url, token=gl_token, username=gl_username),
        github=GitHubConfig(api_url=args.gh_api_url, token=gh_token),
        execution=ExecutionConfig(
            max_workers=args.workers,
            timeout_s=args.timeout_s,
            retries=args.retries,
            retry_delay_s=args.retry_delay_s,
        ),
        git=GitOperationConfig(clone_temp_dir=args.clone_temp_dir),
    )
    return args, cfg
