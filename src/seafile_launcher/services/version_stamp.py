"""Version stamp persistence for the provisioned data directory."""

import os
import tempfile

from seafile_launcher.errors import LauncherError, MissingStateError
from seafile_launcher.errors_catalog import actionable_error


class VersionStampService:
    """Reads and writes the version the data was last provisioned for."""

    def __init__(self, stamp_file: str, logger):
        self.stamp_file = stamp_file
        self.logger = logger

    def exists(self) -> bool:
        return os.path.isfile(self.stamp_file)

    def load(self) -> str:
        try:
            with open(self.stamp_file, "r", encoding="utf-8") as file_obj:
                value = file_obj.read().strip()
        except OSError as exc:
            raise MissingStateError(
                actionable_error("version_stamp_missing", path=self.stamp_file)
            ) from exc

        if not value:
            raise MissingStateError(
                actionable_error("version_stamp_invalid", path=self.stamp_file, value=value)
            )

        self.logger.debug("Version stamp %s contains %s", self.stamp_file, value)
        return value

    def save(self, version: str):
        directory = os.path.dirname(self.stamp_file) or "."
        os.makedirs(directory, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(prefix=".current_version-", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as file_obj:
                file_obj.write(f"{version}\n")
            os.replace(temp_path, self.stamp_file)
        except OSError as exc:
            raise LauncherError(f"Could not write version stamp '{self.stamp_file}': {exc}") from exc
        finally:
            if os.path.exists(temp_path):
                try:
                    os.remove(temp_path)
                except OSError:
                    pass

        self.logger.info("Version stamp set to %s", version)

    def ensure(self, version: str) -> bool:
        """Write ``version`` only when no stamp exists yet."""
        if self.exists():
            return False
        self.save(version)
        return True
