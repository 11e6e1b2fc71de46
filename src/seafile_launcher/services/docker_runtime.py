"""Docker runtime services for the Seafile launcher."""

from typing import Callable, List, Optional, Sequence

from seafile_launcher.models import ContainerRecord, ContainerState

PS_FORMAT = "{{.ID}}\t{{.Names}}\t{{.State}}"


class DockerRuntimeService:
    """Thin typed wrapper over the docker CLI.

    Every call goes through ``run_cmd`` (normally ``CommandRunner.run``), so a
    non-zero exit surfaces as :class:`ExternalCommandError` unless the caller
    asks for ``check=False``.
    """

    def __init__(self, logger, run_cmd: Callable, docker_cmd: str = "docker"):
        self.logger = logger
        self.run_cmd = run_cmd
        self.docker_cmd = docker_cmd

    def _docker(self, *args: str) -> List[str]:
        return [self.docker_cmd, *args]

    def probe(self, name: str) -> Optional[ContainerRecord]:
        """Return the record for the container called exactly ``name``, if any."""
        result = self.run_cmd(
            self._docker(
                "ps",
                "--all",
                "--no-trunc",
                "--filter",
                f"name={name}",
                "--format",
                PS_FORMAT,
            ),
            capture_output=True,
        )

        for line in (result.stdout or "").splitlines():
            parts = line.strip().split("\t")
            if len(parts) != 3:
                continue
            container_id, names, status = parts
            # A container may carry several comma separated names.
            if name in names.split(","):
                return ContainerRecord(id=container_id, name=name, status=status.lower())

        return None

    def state(self, name: str) -> ContainerState:
        record = self.probe(name)
        if record is None:
            return ContainerState.ABSENT
        return record.state

    def image_exists(self, image: str) -> bool:
        result = self.run_cmd(
            self._docker("image", "inspect", image),
            check=False,
            capture_output=True,
        )
        return result.returncode == 0

    def pull(self, image: str):
        self.run_cmd(self._docker("pull", image))

    def build(self, dockerfile: str, tag: str, context_dir: str):
        self.run_cmd(self._docker("build", "-f", dockerfile, "-t", tag, context_dir))

    def run_detached(
        self,
        name: str,
        image: str,
        command: Sequence[str],
        options: Sequence[str] = (),
    ):
        self.run_cmd(
            self._docker("run", "-d", "--restart=always", "--name", name, *options, image, *command)
        )

    def run_once(
        self,
        image: str,
        command: Sequence[str],
        options: Sequence[str] = (),
        name: Optional[str] = None,
        interactive: bool = True,
        capture_output: bool = False,
    ):
        """Run a throwaway container that is removed when ``command`` exits."""
        args = ["run", "--rm"]
        if interactive:
            args.append("-it")
        if name:
            args.extend(["--name", name])
        return self.run_cmd(
            self._docker(*args, *options, image, *command),
            capture_output=capture_output,
        )

    def start(self, name: str):
        self.run_cmd(self._docker("start", name))

    def stop(self, name: str, timeout: int, check: bool = True):
        return self.run_cmd(
            self._docker("stop", "-t", str(timeout), name),
            check=check,
        )

    def remove(self, name: str):
        self.run_cmd(self._docker("rm", name))

    def exec(self, name: str, command: Sequence[str], interactive: bool = False) -> int:
        args = ["exec"]
        if interactive:
            args.append("-it")
        result = self.run_cmd(self._docker(*args, name, *command), check=False)
        return result.returncode

    def logs(self, name: str, tail: int, follow: bool = True):
        args = ["logs", f"--tail={tail}"]
        if follow:
            args.append("-f")
        self.run_cmd(self._docker(*args, name))
