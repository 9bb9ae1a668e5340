#!/usr/bin/env python3
"""Turn command line arguments into a listing or a batch run, and the report into an exit code."""

from __future__ import annotations

import sys
from typing import Optional, Sequence

from argument_parser import LIST_COMMAND, parse_arguments
from config import (ActionKind, ActionParams, BranchProtectionParams,
                    ContentCopyParams, DefaultBranchParams, NoParams,
                    WebhookParams)
from errors import AuthError, MigrationError, ValidationError
from logging_utils import Logger
from models import Platform, RepositoryRef
from orchestrator import MigrationOrchestrator
from report import MigrationReport
from templates import (BRANCH_PROTECTION_KEY, WEBHOOK_KEY,
                       branch_protection_rule_from_template, load_template,
                       webhook_spec_from_template)

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1
EXIT_VALIDATION_ERROR = 2
EXIT_PLATFORM_ERROR = 30
EXIT_AUTH_ERROR = 40


def _build_params(args) -> ActionParams:
    action = ActionKind(args.command)
    if action == ActionKind.PROTECT_BRANCH:
        rule = branch_protection_rule_from_template(
            load_template(args.config_file, BRANCH_PROTECTION_KEY)
        )
        return BranchProtectionParams(branch=args.branch, rule=rule)
    if action == ActionKind.CREATE_WEBHOOK:
        spec = webhook_spec_from_template(load_template(args.config_file, WEBHOOK_KEY))
        return WebhookParams(spec=spec)
    if action == ActionKind.SET_DEFAULT_BRANCH:
        return DefaultBranchParams(branch=args.branch)
    if action == ActionKind.COPY_CONTENT:
        return ContentCopyParams(target_owner=args.github_org, private=not args.public)
    return NoParams()


def _build_targets(args) -> list:
    if hasattr(args, "projects"):
        return [RepositoryRef.parse(Platform.GITLAB, path) for path in args.projects]
    return [
        RepositoryRef(platform=Platform.GITHUB, namespace=args.owner, name=repo)
        for repo in args.repos
    ]


def print_report(report: MigrationReport) -> None:
    """One line per repository; failures go to stderr."""
    for entry, line in zip(report.entries, report.lines()):
        if entry.outcome.is_failure:
            Logger.error(line)
        else:
            Logger.success(line)


def _run_command(args, orchestrator: MigrationOrchestrator) -> int:
    if args.command == LIST_COMMAND:
        refs = orchestrator.list_repositories(args.group, args.starts_with, args.limit)
        for ref in refs:
            sys.stdout.write(f"{ref.name}\n")
        return EXIT_SUCCESS

    params = _build_params(args)
    if args.command == ActionKind.COPY_CONTENT.value:
        report = orchestrator.copy_group(args.group, params, args.starts_with, args.limit)
    else:
        report = orchestrator.run_action(
            ActionKind(args.command), _build_targets(args), params
        )
    print_report(report)
    return report.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    args, cfg = parse_arguments(argv)
    orchestrator = MigrationOrchestrator(cfg)
    try:
        return _run_command(args, orchestrator)
    except ValidationError as e:
        Logger.error(f"invalid parameters: {e}")
        return EXIT_VALIDATION_ERROR
    except AuthError as e:
        Logger.error(str(e))
        return EXIT_AUTH_ERROR
    except MigrationError as e:
        Logger.error(str(e))
        return EXIT_PLATFORM_ERROR
    except KeyboardInterrupt:
        Logger.warn("interrupted")
        return EXIT_EXECUTION_ERROR


if __name__ == "__main__":
    sys.exit(main())
