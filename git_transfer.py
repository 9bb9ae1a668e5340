#!/usr/bin/env python3
"""Mirror a repository's full history from GitLab to GitHub with the git CLI."""

from __future__ import annotations

import os
import shutil
import subprocess
import tempfile
from typing import Dict, List, Optional

from errors import TransportError
from logging_utils import Logger
from security import SecurityValidator

CLONE_TIMEOUT_S = 300
PUSH_TIMEOUT_S = 600


class GitTransfer:
    """Runs ``git clone --mirror`` then ``git push --mirror`` in a private temp dir."""

    def __init__(
        self,
        clone_temp_dir: str,
        source_token: str = "",
        source_username: str = "",
        target_token: str = "",
    ) -> None:
        self.clone_temp_dir = clone_temp_dir
        self.source_token = source_token
        self.source_username = source_username
        self.target_token = target_token

    def _create_askpass_script(self, username: str, password: str) -> str:
        """Create a temporary askpass script for secure credential injection."""
        fd, path = tempfile.mkstemp(prefix="ggb_askpass_", text=True)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as script:
                script.write("#!/bin/sh\n")
                script.write("case \"$1\" in\n")
                script.write(f"  *Username*) echo '{username}' ;;\n")
                script.write(f"  *Password*) echo '{password}' ;;\n")
                script.write("  *) exit 1 ;;\n")
                script.write("esac\n")
            os.chmod(path, 0o700)
        except OSError:
            os.unlink(path)
            raise
        return path

    @staticmethod
    def _cleanup_askpass_script(path: Optional[str]) -> None:
        if not path:
            return
        try:
            if os.path.exists(path):
                os.remove(path)
        except OSError as error:
            Logger.warn(f"failed to clean up temporary credential helper: {error}")

    def _run_git(
        self,
        args: List[str],
        username: str,
        token: str,
        timeout: int,
        cwd: Optional[str] = None,
    ) -> None:
        env: Dict[str, str] = os.environ.copy()
        env["GIT_TERMINAL_PROMPT"] = "0"
        askpass_script: Optional[str] = None
        try:
            if token:
                askpass_script = self._create_askpass_script(username, token)
                env["GIT_ASKPASS"] = askpass_script
            subprocess.run(
                ["git", *args],
                cwd=cwd,
                check=True,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise TransportError(f"git {args[0]} timed out after {timeout}s") from e
        except subprocess.CalledProcessError as e:
            detail = SecurityValidator.sanitize_for_logging((e.stderr or e.stdout or "").strip())
            raise TransportError(f"git {args[0]} failed: {detail}") from e
        except OSError as e:
            raise TransportError(f"could not run git: {e}") from e
        finally:
            self._cleanup_askpass_script(askpass_script)

    def _create_clone_dir(self, name: str) -> str:
        os.makedirs(self.clone_temp_dir, mode=0o700, exist_ok=True)
        clone_dir = tempfile.mkdtemp(prefix=f"{name}_", dir=self.clone_temp_dir)
        os.chmod(clone_dir, 0o700)
        return clone_dir

    @staticmethod
    def _cleanup_clone_dir(clone_dir: str) -> None:
        if not os.path.exists(clone_dir):
            return
        try:
            shutil.rmtree(clone_dir)
            Logger.debug("cleaned up temporary clone directory")
        except OSError as error:
            Logger.warn(f"failed to clean up temporary directory {clone_dir}: {error}")

    def transfer(self, source_url: str, target_url: str, name: str) -> None:
        """Copy every branch and tag from ``source_url`` to ``target_url``.

        Raises ``TransportError`` when cloning or pushing fails.
        """
        clone_dir = self._create_clone_dir(name)
        try:
            Logger.info(f"cloning from GitLab: {name}")
            self._run_git(
                ["clone", "--mirror", source_url, clone_dir],
                self.source_username or "oauth2",
                self.source_token,
                CLONE_TIMEOUT_S,
            )
            Logger.info(f"pushing to GitHub: {name}")
            self._run_git(
                ["push", "--mirror", target_url],
                "x-access-token",
                self.target_token,
                PUSH_TIMEOUT_S,
                cwd=clone_dir,
            )
        finally:
            self._cleanup_clone_dir(clone_dir)
