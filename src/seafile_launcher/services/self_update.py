"""Opt-in self-update of a launcher that lives in a git checkout."""

import enum
import os
import sys
from typing import Callable, List, Sequence

from seafile_launcher.errors import ExternalCommandError, LauncherError
from seafile_launcher.errors_catalog import actionable_error

NO_SELF_UPDATE_FLAG = "--no-self-update"


class UpdateStatus(str, enum.Enum):
    SKIPPED = "skipped"
    UP_TO_DATE = "up-to-date"
    AHEAD = "ahead"
    DIVERGED = "diverged"
    UPDATED = "updated"


class SelfUpdateService:
    """Fast-forwards the launcher checkout to a signed upstream commit.

    Only a fast-forward to an upstream head whose signature ``git verify-commit``
    accepts is applied. After updating, the process re-executes itself with the
    original arguments plus ``--no-self-update``.
    """

    def __init__(
        self,
        repo_dir: str,
        logger,
        console,
        run_cmd: Callable,
        branch: str,
        execv: Callable = os.execv,
    ):
        self.repo_dir = repo_dir
        self.logger = logger
        self.console = console
        self.run_cmd = run_cmd
        self.branch = branch
        self.execv = execv

    def _git(self, *args: str, check: bool = True):
        return self.run_cmd(["git", "-C", self.repo_dir, *args], check=check, capture_output=True)

    def _rev(self, ref: str) -> str:
        return (self._git("rev-parse", ref).stdout or "").strip()

    def check_and_update(self) -> UpdateStatus:
        current = self._git("symbolic-ref", "--short", "HEAD", check=False)
        if current.returncode != 0:
            self.logger.info("Launcher is not on a git branch, skipping self-update.")
            return UpdateStatus.SKIPPED

        current_branch = (current.stdout or "").strip()
        if current_branch != self.branch:
            self.logger.info(
                "Launcher is on branch '%s', self-update only runs on '%s'.",
                current_branch,
                self.branch,
            )
            return UpdateStatus.SKIPPED

        self.console.print("[blue]Ensuring launcher is up to date...[/blue]")
        self._git("remote", "update")

        local = self._rev("@")
        remote = self._rev("@{u}")
        base = (self._git("merge-base", "@", "@{u}").stdout or "").strip()

        if local == remote:
            self.console.print("[green]Launcher is up-to-date.[/green]")
            return UpdateStatus.UP_TO_DATE
        if remote == base:
            self.console.print("[yellow]Your launcher is ahead of origin.[/yellow]")
            return UpdateStatus.AHEAD
        if local != base:
            self.console.print("[yellow]Launcher has diverged from origin, skipping update.[/yellow]")
            return UpdateStatus.DIVERGED

        try:
            self._git("verify-commit", remote)
        except ExternalCommandError as exc:
            raise LauncherError(actionable_error("self_update_unverified", commit=remote[:12])) from exc

        self.console.print("[blue]Updating launcher...[/blue]")
        self._git("merge", "--ff-only", "@{u}")
        self.logger.info("Launcher updated from %s to %s", local[:12], remote[:12])
        return UpdateStatus.UPDATED

    def reexec_args(self, argv: Sequence[str]) -> List[str]:
        args = [sys.executable, "-m", "seafile_launcher", *argv]
        if NO_SELF_UPDATE_FLAG not in argv:
            args.append(NO_SELF_UPDATE_FLAG)
        return args

    def reexec(self, argv: Sequence[str]):
        args = self.reexec_args(argv)
        self.logger.debug("Re-executing: %s", " ".join(args))
        self.execv(args[0], args)
