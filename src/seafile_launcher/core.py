import logging
import os
import subprocess
from typing import List, Optional

from rich.console import Console

from .constants import (
    BASE_IMAGE,
    BOOTSTRAP_SCRIPT,
    DOCKER_MIN_VERSION,
    GC_SCRIPT,
    GIT_MIN_VERSION,
    INIT_CMD,
    LOCAL_IMAGE,
    LOG_TAIL_LINES,
    SELF_UPDATE_BRANCH,
    START_SCRIPT,
    STOP_TIMEOUT_SECONDS,
    UPGRADE_SCRIPT,
)
from .errors import ExternalCommandError, LauncherError, PreconditionError
from .errors_catalog import actionable_error
from .models import ContainerRecord, ContainerState, LaunchContext
from .services.command_runner import CommandRunner
from .services.docker_runtime import DockerRuntimeService
from .services.filesystem import FileSystemService
from .services.mounts import MountResolver, mount_args, port_args
from .services.prereqs import PrerequisiteService
from .services.self_update import SelfUpdateService, UpdateStatus
from .services.version_gate import GateOutcome, VersionGate
from .services.version_stamp import VersionStampService

console = Console()
logger = logging.getLogger("seafile_launcher")


class Launcher:
    ACTIONS = [
        "start",
        "stop",
        "restart",
        "destroy",
        "enter",
        "logs",
        "bootstrap",
        "rebuild",
        "manual-upgrade",
        "gc",
    ]

    def __init__(self, context: LaunchContext):
        self.context = context
        self.name = context.container_name

        self.command_runner = CommandRunner(logger=logger)
        self.docker_runtime_service = DockerRuntimeService(logger=logger, run_cmd=self._run_cmd)
        self.filesystem_service = FileSystemService(logger=logger)
        self.mount_resolver = MountResolver(paths=context.paths, logger=logger)
        self.prerequisite_service = PrerequisiteService(logger=logger, run_cmd=self._run_cmd)
        self.version_stamp_service = VersionStampService(
            stamp_file=context.paths.version_stamp_file,
            logger=logger,
        )
        self.version_gate = VersionGate(
            stamp_service=self.version_stamp_service,
            current_version=context.version,
            logger=logger,
            console=console,
        )
        self.self_update_service = SelfUpdateService(
            repo_dir=context.paths.base_dir,
            logger=logger,
            console=console,
            run_cmd=self._run_cmd,
            branch=SELF_UPDATE_BRANCH,
        )

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output)

    def _init_command(self, script: str) -> List[str]:
        command = [INIT_CMD]
        if not self.context.verbose:
            command.append("--quiet")
        return command + ["--", script]

    def _probe(self) -> Optional[ContainerRecord]:
        return self.docker_runtime_service.probe(self.name)

    def _require_running(self):
        if self.docker_runtime_service.state(self.name) != ContainerState.RUNNING:
            raise PreconditionError(actionable_error("not_started", name=self.name))

    def check_prereqs(self, action: str):
        if self.context.skip_prereqs:
            logger.debug("Skipping prerequisite checks.")
            return

        self.prerequisite_service.check_docker(DOCKER_MIN_VERSION)
        if action == "rebuild" and self.context.self_update:
            self.prerequisite_service.check_git(GIT_MIN_VERSION)

    def start(self):
        record = self._probe()
        if record is not None and record.state == ContainerState.RUNNING:
            console.print("[green]Nothing to do, your container has already started![/green]")
            return

        self.version_gate.check_start()

        if record is not None:
            console.print("[blue]Starting up existing container...[/blue]")
            self.docker_runtime_service.start(self.name)
            return

        self.filesystem_service.init_shared(self.context.paths)
        ports = self.mount_resolver.resolve_ports(
            BASE_IMAGE,
            self.docker_runtime_service.run_once,
        )
        options = (
            mount_args(self.mount_resolver.resolve_mounts("runtime"))
            + port_args(ports)
            + list(self.context.docker_args)
        )

        console.print("[blue]Starting up new seafile server container...[/blue]")
        self.docker_runtime_service.run_detached(
            self.name,
            LOCAL_IMAGE,
            self._init_command(START_SCRIPT),
            options=options,
        )
        console.print("[green]Container started.[/green]")

    def stop(self):
        self._require_running()
        console.print("[blue]Stopping seafile container...[/blue]")
        self.docker_runtime_service.stop(self.name, timeout=STOP_TIMEOUT_SECONDS)

    def restart(self):
        self.stop()
        self.start()

    def destroy(self):
        console.print("[blue]Stopping and removing seafile container...[/blue]")
        result = self.docker_runtime_service.stop(
            self.name,
            timeout=STOP_TIMEOUT_SECONDS,
            check=False,
        )
        if result.returncode != 0:
            logger.info("Container %s was not stopped (exit code %s).", self.name, result.returncode)
        self.docker_runtime_service.remove(self.name)

    def enter(self):
        self._require_running()
        returncode = self.docker_runtime_service.exec(self.name, ["/bin/bash"], interactive=True)
        if returncode != 0:
            raise ExternalCommandError(
                f"Shell in container {self.name} exited with code {returncode}.",
                returncode=returncode,
                cmd=["/bin/bash"],
            )

    def logs(self):
        self._require_running()
        self.docker_runtime_service.logs(self.name, tail=LOG_TAIL_LINES, follow=True)

    def bootstrap(self):
        paths = self.context.paths
        if not os.path.isfile(paths.bootstrap_conf):
            raise PreconditionError(actionable_error("bootstrap_conf_missing", path=paths.bootstrap_conf))

        if not self.docker_runtime_service.image_exists(BASE_IMAGE):
            console.print(f"[blue]Pulling base image {BASE_IMAGE}...[/blue]")
            self.docker_runtime_service.pull(BASE_IMAGE)

        self.filesystem_service.init_shared(paths)
        options = (
            [
                "-e",
                "SEAFILE_BOOTSRAP=1",
                "-e",
                f"SEAFILE_VERSION={self.context.version}",
            ]
            + mount_args(self.mount_resolver.resolve_mounts("bootstrap"))
            + list(self.context.docker_args)
        )

        console.print("[blue]Bootstrapping seafile configuration...[/blue]")
        self.docker_runtime_service.run_once(
            BASE_IMAGE,
            self._init_command(BOOTSTRAP_SCRIPT),
            options=options,
            name=f"{self.name}-bootstrap",
        )

        console.print(f"[blue]Building local image {LOCAL_IMAGE}...[/blue]")
        self.docker_runtime_service.build(paths.generated_dockerfile, LOCAL_IMAGE, paths.base_dir)

        self.version_stamp_service.ensure(self.context.version)
        console.print("[green]Bootstrap completed.[/green]")

    def gc(self):
        self._require_running()
        console.print("[blue]Running seafile garbage collection...[/blue]")
        returncode = self.docker_runtime_service.exec(self.name, [GC_SCRIPT])
        if returncode != 0:
            raise ExternalCommandError(
                actionable_error("gc_failed", returncode=str(returncode)),
                returncode=returncode,
                cmd=[GC_SCRIPT],
            )
        console.print("[green]Seafile garbage collection finished successfully.[/green]")

    def run_upgrade(self):
        options = mount_args(self.mount_resolver.resolve_mounts("bootstrap")) + list(
            self.context.docker_args
        )
        self.docker_runtime_service.run_once(
            BASE_IMAGE,
            self._init_command(UPGRADE_SCRIPT),
            options=options,
            name=f"{self.name}-upgrade",
        )

    def manual_upgrade(self):
        options = mount_args(self.mount_resolver.resolve_mounts("bootstrap")) + list(
            self.context.docker_args
        )
        console.print("[blue]Launching a shell in a one-shot upgrade container...[/blue]")
        self.docker_runtime_service.run_once(
            BASE_IMAGE,
            [INIT_CMD, "--", "bash", "-l"],
            options=options,
            name=f"{self.name}-upgrade",
        )
        console.print(
            "If the upgrade succeeded, update the version stamp with:\n"
            f"  echo {self.context.version} > {self.context.paths.version_stamp_file}\n"
            "then run `launcher start`."
        )

    def self_update(self) -> UpdateStatus:
        if not self.context.self_update:
            return UpdateStatus.SKIPPED

        status = self.self_update_service.check_and_update()
        if status == UpdateStatus.UPDATED:
            self.self_update_service.reexec(self.context.argv or ())
        return status

    def rebuild(self):
        self.self_update()

        existing = self._probe()
        if existing is not None:
            console.print("[blue]Stopping old container...[/blue]")
            self.docker_runtime_service.stop(self.name, timeout=STOP_TIMEOUT_SECONDS)

        self.bootstrap()

        if existing is not None:
            console.print("[blue]Removing old container...[/blue]")
            self.docker_runtime_service.remove(self.name)

        outcome = self.version_gate.check_upgrade(
            manual_upgrade=self.context.manual_upgrade,
            run_upgrade=self.run_upgrade,
        )
        if outcome == GateOutcome.DEFERRED:
            return

        self.start()

    def dispatch(self, action: str):
        handlers = {
            "start": self.start,
            "stop": self.stop,
            "restart": self.restart,
            "destroy": self.destroy,
            "enter": self.enter,
            "logs": self.logs,
            "bootstrap": self.bootstrap,
            "rebuild": self.rebuild,
            "manual-upgrade": self.manual_upgrade,
            "gc": self.gc,
        }
        if action not in handlers:
            raise LauncherError(f"Unknown action '{action}'. Supported actions: {', '.join(self.ACTIONS)}")
        handlers[action]()

    def run(self, action: str) -> int:
        try:
            logger.debug("Running action '%s' for container '%s'", action, self.name)
            self.check_prereqs(action)
            self.dispatch(action)
            return 0

        except KeyboardInterrupt:
            console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except LauncherError as exc:
            console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.error(str(exc))
            return 1
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1
