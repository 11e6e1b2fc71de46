"""Filesystem helpers for the Seafile launcher."""

import logging
import os
import sys

from seafile_launcher.constants import DIR_MODE
from seafile_launcher.models import LaunchPaths


class FileSystemService:
    """Encapsulates file and directory side effects."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def set_permissions(self, path: str, mode: int):
        if sys.platform == "win32":
            return

        try:
            os.chmod(path, mode)
        except OSError as exc:
            self.logger.warning("Could not set permissions on %s: %s", path, exc)

    def init_shared(self, paths: LaunchPaths):
        """Create the host side of the runtime mounts so docker does not create them as root."""
        shared = paths.shared_dir
        for directory in (shared, os.path.join(shared, "logs", "var-log"), os.path.join(shared, "db")):
            if not os.path.isdir(directory):
                os.makedirs(directory, exist_ok=True)
                self.set_permissions(directory, DIR_MODE)
                self.logger.debug("Created directory: %s", directory)

        history = os.path.join(shared, ".bash_history")
        if not os.path.exists(history):
            with open(history, "a", encoding="utf-8"):
                pass
            self.logger.debug("Created file: %s", history)
