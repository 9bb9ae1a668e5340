#!/usr/bin/env python3
"""
gitlab-github-batch - Migrate GitLab repositories and their governance
settings to GitHub, one action at a time, over many repositories.

Lists the projects of a GitLab group, mirrors their history to GitHub, and
applies branch protection, webhooks, default branch and auto-delete of merged
branches to GitHub repositories or archives GitLab projects. Each repository
is processed independently and reported in input order.
"""

from __future__ import annotations

import sys
from typing import NoReturn

from cli import main as run_cli


def main() -> NoReturn:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
