"""Major-version gate between stamped data and the launcher version."""

import enum
from typing import Callable, Tuple

from seafile_launcher.errors import MissingStateError, VersionMismatchError
from seafile_launcher.errors_catalog import actionable_error


class GateOutcome(str, enum.Enum):
    COMPATIBLE = "compatible"
    UPGRADED = "upgraded"
    DEFERRED = "deferred"


def major_minor(value: str) -> Tuple[str, str]:
    parts = value.strip().split(".")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ValueError(f"Not a MAJOR.MINOR[.PATCH] version: '{value}'")
    return parts[0], parts[1]


def major_compatible(first: str, second: str) -> bool:
    """Compare the MAJOR.MINOR prefixes textually; PATCH is ignored."""
    return major_minor(first) == major_minor(second)


class VersionGate:
    """Decides whether stamped data may run under the current version."""

    def __init__(self, stamp_service, current_version: str, logger, console):
        self.stamp_service = stamp_service
        self.current_version = current_version
        self.logger = logger
        self.console = console

    def _last_version(self) -> str:
        last_version = self.stamp_service.load()
        try:
            major_minor(last_version)
        except ValueError as exc:
            raise MissingStateError(
                actionable_error(
                    "version_stamp_invalid",
                    path=self.stamp_service.stamp_file,
                    value=last_version,
                )
            ) from exc
        return last_version

    def check_start(self):
        last_version = self._last_version()
        if major_compatible(last_version, self.current_version):
            self.logger.debug("Version %s is compatible with %s", last_version, self.current_version)
            return

        raise VersionMismatchError(
            actionable_error(
                "version_mismatch",
                last_version=last_version,
                current_version=self.current_version,
            )
        )

    def check_upgrade(self, manual_upgrade: bool, run_upgrade: Callable[[], None]) -> GateOutcome:
        last_version = self._last_version()
        if major_compatible(last_version, self.current_version):
            return GateOutcome.COMPATIBLE

        self.console.print(
            f"[yellow]Data is at version {last_version}, "
            f"upgrading to {self.current_version} is required.[/yellow]"
        )

        if manual_upgrade:
            self.console.print(
                "You have chosen to upgrade manually. Run `launcher manual-upgrade`, "
                "perform the upgrade inside the container, then write "
                f"{self.current_version} into {self.stamp_service.stamp_file} "
                "and run `launcher start`."
            )
            self.logger.info("Upgrade from %s deferred to the operator", last_version)
            return GateOutcome.DEFERRED

        self.logger.info("Upgrading data from %s to %s", last_version, self.current_version)
        run_upgrade()
        return GateOutcome.UPGRADED
