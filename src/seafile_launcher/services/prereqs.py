"""Host prerequisite checks for the Seafile launcher."""

import re
import shutil
from typing import Callable, Optional

from packaging import version

from seafile_launcher.errors import PrerequisiteError
from seafile_launcher.errors_catalog import actionable_error

_VERSION_PATTERN = re.compile(r"(\d+\.\d+(?:\.\d+)?)")


def extract_version(output: str) -> Optional[str]:
    match = _VERSION_PATTERN.search(output or "")
    return match.group(1) if match else None


class PrerequisiteService:
    """Verifies that docker (and git when needed) are usable."""

    def __init__(self, logger, run_cmd: Callable, which: Callable = shutil.which):
        self.logger = logger
        self.run_cmd = run_cmd
        self.which = which

    def check_docker(self, min_version: str):
        if not self.which("docker"):
            raise PrerequisiteError(actionable_error("docker_missing", min_version=min_version))
        self._check_version("Docker", ["docker", "--version"], min_version)

    def check_git(self, min_version: str):
        if not self.which("git"):
            raise PrerequisiteError(actionable_error("git_missing", min_version=min_version))
        self._check_version("Git", ["git", "--version"], min_version)

    def _check_version(self, tool: str, cmd, min_version: str):
        result = self.run_cmd(cmd, capture_output=True)
        found = extract_version(result.stdout)
        if found is None:
            self.logger.warning("Could not determine the %s version from: %s", tool, result.stdout)
            return

        if version.parse(found) < version.parse(min_version):
            raise PrerequisiteError(
                actionable_error("tool_too_old", tool=tool, found=found, min_version=min_version)
            )
        self.logger.debug("%s %s satisfies >= %s", tool, found, min_version)
