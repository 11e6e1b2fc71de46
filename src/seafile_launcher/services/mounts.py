"""Bind mount and published port resolution."""

import re
from typing import Callable, Tuple

from seafile_launcher.constants import BOOTSTRAP_SCRIPT
from seafile_launcher.errors import ExternalCommandError, LauncherError
from seafile_launcher.errors_catalog import actionable_error
from seafile_launcher.models import LaunchPaths, Mount, Port

MOUNT_KINDS = ("runtime", "bootstrap")

_PORT_PATTERN = re.compile(r"^(?:(?P<host>\d+):)?(?P<container>\d+)(?:/(?P<proto>tcp|udp))?$")


def parse_ports(output: str) -> Tuple[Port, ...]:
    """Parse ``-p HOST:CONTAINER[/PROTO]`` tokens reported by the bootstrap script."""
    tokens = output.split()
    ports = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token in ("-p", "--publish"):
            index += 1
            if index >= len(tokens):
                raise ValueError(f"Dangling '{token}' without a port mapping")
            token = tokens[index]
        elif token.startswith("--publish="):
            token = token.split("=", 1)[1]

        match = _PORT_PATTERN.match(token)
        if not match:
            raise ValueError(f"Unrecognized port mapping '{token}'")

        container_port = int(match.group("container"))
        host_port = int(match.group("host") or container_port)
        ports.append(Port(host_port, container_port, match.group("proto") or "tcp"))
        index += 1

    return tuple(ports)


class MountResolver:
    """Builds the mount and port arguments for runtime invocations."""

    def __init__(self, paths: LaunchPaths, logger):
        self.paths = paths
        self.logger = logger

    def resolve_mounts(self, kind: str) -> Tuple[Mount, ...]:
        if kind not in MOUNT_KINDS:
            raise ValueError(f"Unknown mount kind '{kind}'. Expected one of: {', '.join(MOUNT_KINDS)}")

        shared = self.paths.shared_dir
        mounts = [
            Mount(shared, "/shared"),
            Mount(f"{shared}/logs/var-log", "/var/log"),
            Mount(f"{shared}/db", "/var/lib/mysql"),
            Mount(f"{shared}/.bash_history", "/root/.bash_history"),
        ]

        if kind == "bootstrap":
            mounts.extend(
                [
                    Mount(self.paths.bootstrap_dir, "/bootstrap"),
                    Mount(self.paths.scripts_dir, "/scripts", read_only=True),
                    Mount(self.paths.templates_dir, "/templates", read_only=True),
                ]
            )

        return tuple(mounts)

    def resolve_ports(self, image: str, run_once: Callable) -> Tuple[Port, ...]:
        options = [
            *Mount(self.paths.scripts_dir, "/scripts", read_only=True).to_args(),
            *Mount(self.paths.bootstrap_dir, "/bootstrap", read_only=True).to_args(),
        ]
        try:
            result = run_once(
                image,
                [BOOTSTRAP_SCRIPT, "--parse-ports"],
                options=options,
                interactive=False,
                capture_output=True,
            )
        except ExternalCommandError as exc:
            raise LauncherError(actionable_error("ports_unresolved", reason=str(exc))) from exc

        try:
            ports = parse_ports(result.stdout or "")
        except ValueError as exc:
            raise LauncherError(actionable_error("ports_unresolved", reason=str(exc))) from exc

        self.logger.debug("Resolved ports: %s", ", ".join(" ".join(p.to_args()) for p in ports))
        return ports


def mount_args(mounts) -> list:
    args = []
    for mount in mounts:
        args.extend(mount.to_args())
    return args


def port_args(ports) -> list:
    args = []
    for port in ports:
        args.extend(port.to_args())
    return args
