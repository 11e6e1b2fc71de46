"""Shared domain models for the Seafile launcher."""

import enum
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .constants import (
    BOOTSTRAP_CONF,
    BOOTSTRAP_DIR,
    CONTAINER_NAME,
    GENERATED_DOCKERFILE,
    SCRIPTS_DIR,
    SEAFILE_VERSION,
    SHARED_DIR,
    TEMPLATES_DIR,
    VERSION_STAMP,
)


class ContainerState(str, enum.Enum):
    ABSENT = "absent"
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass(frozen=True)
class ContainerRecord:
    """One row of the runtime's instance listing."""

    LIVE_STATUSES = ("running", "restarting", "paused")

    id: str
    name: str
    status: str

    @property
    def state(self) -> ContainerState:
        if self.status in self.LIVE_STATUSES:
            return ContainerState.RUNNING
        return ContainerState.STOPPED


@dataclass(frozen=True)
class Mount:
    host_path: str
    container_path: str
    read_only: bool = False

    @property
    def mode(self) -> str:
        return "ro" if self.read_only else "rw"

    def to_args(self):
        spec = f"{self.host_path}:{self.container_path}"
        if self.read_only:
            spec = f"{spec}:ro"
        return ["-v", spec]


@dataclass(frozen=True)
class Port:
    host_port: int
    container_port: int
    protocol: str = "tcp"

    def to_args(self):
        spec = f"{self.host_port}:{self.container_port}"
        if self.protocol != "tcp":
            spec = f"{spec}/{self.protocol}"
        return ["-p", spec]


@dataclass(frozen=True)
class LaunchPaths:
    """Host-side layout rooted at the launcher directory."""

    base_dir: str

    @property
    def shared_dir(self) -> str:
        return os.path.join(self.base_dir, SHARED_DIR)

    @property
    def bootstrap_dir(self) -> str:
        return os.path.join(self.base_dir, BOOTSTRAP_DIR)

    @property
    def scripts_dir(self) -> str:
        return os.path.join(self.base_dir, SCRIPTS_DIR)

    @property
    def templates_dir(self) -> str:
        return os.path.join(self.base_dir, TEMPLATES_DIR)

    @property
    def bootstrap_conf(self) -> str:
        return os.path.join(self.bootstrap_dir, BOOTSTRAP_CONF)

    @property
    def generated_dockerfile(self) -> str:
        return os.path.join(self.bootstrap_dir, *GENERATED_DOCKERFILE)

    @property
    def version_stamp_file(self) -> str:
        return os.path.join(self.shared_dir, *VERSION_STAMP)


@dataclass(frozen=True)
class LaunchContext:
    """Per-invocation settings handed to every action routine."""

    paths: LaunchPaths
    verbose: bool = False
    skip_prereqs: bool = False
    docker_args: Tuple[str, ...] = field(default_factory=tuple)
    manual_upgrade: bool = False
    self_update: bool = False
    version: str = SEAFILE_VERSION
    container_name: str = CONTAINER_NAME
    argv: Optional[Tuple[str, ...]] = None
