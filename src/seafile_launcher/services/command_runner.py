"""Subprocess execution service for the Seafile launcher."""

import subprocess
from typing import List, Optional

from seafile_launcher.errors import ExternalCommandError, PrerequisiteError


class CommandRunner:
    """Runs external commands with consistent error handling."""

    def __init__(self, logger):
        self.logger = logger

    def run(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
        timeout: Optional[float] = None,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        try:
            result = subprocess.run(
                cmd,
                text=True,
                capture_output=capture_output,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise PrerequisiteError(
                f"Required command not found: {cmd[0]}. Please install it and try again."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalCommandError(
                f"Command timed out after {timeout}s: {cmd_str}",
                returncode=-1,
                cmd=cmd,
            ) from exc
        except OSError as exc:
            raise ExternalCommandError(
                f"Failed to execute command: {cmd_str}. {exc}", returncode=-1, cmd=cmd
            ) from exc

        if capture_output and result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())

        if result.returncode == 0:
            return result

        stderr = (result.stderr or "").strip() if capture_output else ""
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if stderr:
            message = f"{message}\n{stderr}"

        if check:
            raise ExternalCommandError(message, returncode=result.returncode, cmd=cmd)

        self.logger.debug(message)
        return result
