import subprocess

import pytest

from seafile_launcher.core import Launcher
from seafile_launcher.errors import ExternalCommandError, PreconditionError
from seafile_launcher.models import ContainerRecord, ContainerState, LaunchContext, LaunchPaths


class FakeRuntime:
    """Stands in for DockerRuntimeService and keeps a single container record."""

    def __init__(self, status=None, exec_returncode=0, ports_output="-p 80:80\n"):
        self.record = None if status is None else ContainerRecord("abc", "seafile", status)
        self.exec_returncode = exec_returncode
        self.ports_output = ports_output
        self.calls = []

    def probe(self, name):
        self.calls.append(("probe", name))
        return self.record

    def state(self, name):
        record = self.probe(name)
        if record is None:
            return ContainerState.ABSENT
        return record.state

    def image_exists(self, image):
        self.calls.append(("image_exists", image))
        return True

    def pull(self, image):
        self.calls.append(("pull", image))

    def build(self, dockerfile, tag, context_dir):
        self.calls.append(("build", tag))

    def run_detached(self, name, image, command, options=()):
        self.calls.append(("run", name, image, tuple(command), tuple(options)))
        self.record = ContainerRecord("new", name, "running")

    def run_once(
        self,
        image,
        command,
        options=(),
        name=None,
        interactive=True,
        capture_output=False,
    ):
        self.calls.append(("run_once", name, tuple(command), tuple(options)))
        return subprocess.CompletedProcess([], 0, stdout=self.ports_output, stderr="")

    def start(self, name):
        self.calls.append(("start", name))
        self.record = ContainerRecord(self.record.id, name, "running")

    def stop(self, name, timeout, check=True):
        self.calls.append(("stop", name, timeout))
        if self.record is None:
            if check:
                raise ExternalCommandError("No such container", returncode=1)
            return subprocess.CompletedProcess([], 1)
        self.record = ContainerRecord(self.record.id, name, "exited")
        return subprocess.CompletedProcess([], 0)

    def remove(self, name):
        self.calls.append(("remove", name))
        if self.record is None:
            raise ExternalCommandError("No such container", returncode=1)
        self.record = None

    def exec(self, name, command, interactive=False):
        self.calls.append(("exec", name, tuple(command)))
        return self.exec_returncode

    def logs(self, name, tail, follow=True):
        self.calls.append(("logs", name, tail, follow))

    def names(self):
        return [call[0] for call in self.calls if call[0] not in ("probe", "image_exists")]


def _launcher(tmp_path, runtime, stamp="6.1.9", bootstrap_conf=True, **overrides):
    if bootstrap_conf:
        conf = tmp_path / "bootstrap" / "bootstrap.conf"
        conf.parent.mkdir(parents=True, exist_ok=True)
        conf.write_text("[server]\n", encoding="utf-8")
    paths = LaunchPaths(base_dir=str(tmp_path))
    if stamp is not None:
        stamp_file = tmp_path / "shared" / "seafile" / "seafile-data" / "current_version"
        stamp_file.parent.mkdir(parents=True, exist_ok=True)
        stamp_file.write_text(f"{stamp}\n", encoding="utf-8")

    options = {"skip_prereqs": True}
    options.update(overrides)
    launcher = Launcher(LaunchContext(paths=paths, **options))
    launcher.docker_runtime_service = runtime
    return launcher


def test_start_is_noop_when_already_running(tmp_path):
    runtime = FakeRuntime(status="running")
    launcher = _launcher(tmp_path, runtime)

    assert launcher.run("start") == 0
    assert launcher.run("start") == 0
    assert runtime.names() == []


def test_start_creates_new_container_with_mounts_and_ports(tmp_path):
    runtime = FakeRuntime()
    launcher = _launcher(tmp_path, runtime, docker_args=("-e", "TZ=UTC"))

    assert launcher.run("start") == 0

    run_call = [call for call in runtime.calls if call[0] == "run"][0]
    _, name, image, command, options = run_call
    assert name == "seafile"
    assert image == "local_seafile/server:latest"
    assert command == ("/sbin/my_init", "--quiet", "--", "/scripts/start.py")
    assert f"{tmp_path}/shared:/shared" in options
    assert options[-4:] == ("-p", "80:80", "-e", "TZ=UTC")
    assert (tmp_path / "shared" / ".bash_history").exists()


def test_start_verbose_drops_quiet_flag(tmp_path):
    runtime = FakeRuntime()
    launcher = _launcher(tmp_path, runtime, verbose=True)

    launcher.run("start")

    run_call = [call for call in runtime.calls if call[0] == "run"][0]
    assert "--quiet" not in run_call[3]


def test_start_resumes_stopped_container(tmp_path):
    runtime = FakeRuntime(status="exited")
    launcher = _launcher(tmp_path, runtime)

    assert launcher.run("start") == 0
    assert runtime.names() == ["start"]


def test_start_blocks_on_major_version_mismatch(tmp_path):
    runtime = FakeRuntime()
    launcher = _launcher(tmp_path, runtime, stamp="6.0.3")

    assert launcher.run("start") == 1
    assert runtime.names() == []


def test_start_without_stamp_fails(tmp_path):
    runtime = FakeRuntime()
    launcher = _launcher(tmp_path, runtime, stamp=None)

    assert launcher.run("start") == 1
    assert runtime.names() == []


def test_stop_on_never_started_container_is_precondition_error(tmp_path):
    launcher = _launcher(tmp_path, FakeRuntime())

    with pytest.raises(PreconditionError, match="not running"):
        launcher.stop()
    assert launcher.run("stop") == 1


def test_stop_uses_ten_second_grace(tmp_path):
    runtime = FakeRuntime(status="running")

    assert _launcher(tmp_path, runtime).run("stop") == 0
    assert ("stop", "seafile", 10) in runtime.calls


def test_restart_stops_then_starts(tmp_path):
    runtime = FakeRuntime(status="running")

    assert _launcher(tmp_path, runtime).run("restart") == 0
    assert runtime.names() == ["stop", "start"]


def test_destroy_twice_surfaces_removal_failure(tmp_path):
    runtime = FakeRuntime(status="running")
    launcher = _launcher(tmp_path, runtime)

    launcher.destroy()
    assert runtime.record is None

    with pytest.raises(ExternalCommandError):
        launcher.destroy()
    assert launcher.run("destroy") == 1


def test_enter_and_logs_require_running(tmp_path):
    runtime = FakeRuntime(status="exited")
    launcher = _launcher(tmp_path, runtime)

    assert launcher.run("enter") == 1
    assert launcher.run("logs") == 1
    assert runtime.names() == []


def test_logs_follows_tail(tmp_path):
    runtime = FakeRuntime(status="running")

    assert _launcher(tmp_path, runtime).run("logs") == 0
    assert ("logs", "seafile", 20, True) in runtime.calls


def test_gc_failure_carries_exit_code(tmp_path):
    runtime = FakeRuntime(status="running", exec_returncode=3)
    launcher = _launcher(tmp_path, runtime)

    with pytest.raises(ExternalCommandError) as exc_info:
        launcher.gc()

    assert exc_info.value.returncode == 3
    assert launcher.run("gc") == 1


def test_gc_success(tmp_path):
    runtime = FakeRuntime(status="running")

    assert _launcher(tmp_path, runtime).run("gc") == 0
    assert ("exec", "seafile", ("/scripts/gc.sh",)) in runtime.calls


def test_bootstrap_without_config_makes_no_runtime_calls(tmp_path):
    runtime = FakeRuntime()
    launcher = _launcher(tmp_path, runtime, bootstrap_conf=False)

    assert launcher.run("bootstrap") == 1
    assert runtime.calls == []


def test_bootstrap_provisions_and_builds_local_image(tmp_path):
    runtime = FakeRuntime()
    launcher = _launcher(tmp_path, runtime, stamp=None)

    assert launcher.run("bootstrap") == 0

    assert runtime.names() == ["run_once", "build"]
    run_once = runtime.calls[1]
    assert run_once[1] == "seafile-bootstrap"
    assert "SEAFILE_VERSION=6.1.9" in run_once[3]
    assert f"{tmp_path}/scripts:/scripts:ro" in run_once[3]
    stamp_file = tmp_path / "shared" / "seafile" / "seafile-data" / "current_version"
    assert stamp_file.read_text(encoding="utf-8") == "6.1.9\n"


def test_rebuild_orders_steps_for_existing_container(tmp_path):
    runtime = FakeRuntime(status="running")
    launcher = _launcher(tmp_path, runtime)

    assert launcher.run("rebuild") == 0

    # bootstrap run_once, build, then parse-ports run_once before the new run
    assert runtime.names() == ["stop", "run_once", "build", "remove", "run_once", "run"]


def test_rebuild_skips_stop_and_remove_without_container(tmp_path):
    runtime = FakeRuntime()
    launcher = _launcher(tmp_path, runtime)

    assert launcher.run("rebuild") == 0
    assert runtime.names() == ["run_once", "build", "run_once", "run"]


def test_rebuild_runs_upgrade_before_start_on_mismatch(tmp_path, monkeypatch):
    runtime = FakeRuntime(status="running")
    launcher = _launcher(tmp_path, runtime, stamp="6.0.3")
    order = []

    def fake_upgrade():
        order.append("upgrade")
        launcher.version_stamp_service.save("6.1.9")

    monkeypatch.setattr(launcher, "run_upgrade", fake_upgrade)
    original_start = launcher.start
    monkeypatch.setattr(launcher, "start", lambda: (order.append("start"), original_start()))

    assert launcher.run("rebuild") == 0
    assert order == ["upgrade", "start"]
    assert runtime.names()[:4] == ["stop", "run_once", "build", "remove"]


def test_rebuild_with_manual_upgrade_defers_and_exits_zero(tmp_path):
    runtime = FakeRuntime(status="running")
    launcher = _launcher(tmp_path, runtime, stamp="6.0.3", manual_upgrade=True)

    assert launcher.run("rebuild") == 0

    assert runtime.names() == ["stop", "run_once", "build", "remove"]
    assert all("/scripts/upgrade.py" not in call[2] for call in runtime.calls if call[0] == "run_once")


def test_rebuild_aborts_when_bootstrap_fails(tmp_path):
    runtime = FakeRuntime(status="running")
    launcher = _launcher(tmp_path, runtime)

    def failing_build(*_args, **_kwargs):
        raise ExternalCommandError("build failed", returncode=1)

    runtime.build = failing_build

    assert launcher.run("rebuild") == 1
    assert "remove" not in runtime.names()
    assert "run" not in runtime.names()


def test_manual_upgrade_runs_interactive_shell(tmp_path):
    runtime = FakeRuntime()

    assert _launcher(tmp_path, runtime).run("manual-upgrade") == 0

    call = runtime.calls[0]
    assert call[1] == "seafile-upgrade"
    assert call[2] == ("/sbin/my_init", "--", "bash", "-l")


def test_self_update_reexecs_after_update(tmp_path, monkeypatch):
    runtime = FakeRuntime()
    launcher = _launcher(
        tmp_path,
        runtime,
        self_update=True,
        argv=("rebuild", "--self-update"),
    )
    reexecs = []

    monkeypatch.setattr(launcher.self_update_service, "check_and_update", lambda: "updated")
    monkeypatch.setattr(launcher.self_update_service, "reexec", lambda argv: reexecs.append(argv))

    launcher.self_update()

    assert reexecs == [("rebuild", "--self-update")]


def test_prereqs_checked_unless_skipped(tmp_path, monkeypatch):
    runtime = FakeRuntime(status="running")
    launcher = _launcher(tmp_path, runtime, skip_prereqs=False)
    checked = []

    monkeypatch.setattr(launcher.prerequisite_service, "check_docker", checked.append)
    monkeypatch.setattr(launcher.prerequisite_service, "check_git", checked.append)

    assert launcher.run("start") == 0
    assert checked == ["1.8.0"]


def test_unexpected_exception_returns_one(tmp_path):
    runtime = FakeRuntime()

    def broken_probe(_name):
        raise ValueError("boom")

    runtime.probe = broken_probe

    assert _launcher(tmp_path, runtime).run("start") == 1


def test_probe_failure_is_not_treated_as_absent(tmp_path):
    runtime = FakeRuntime()

    def unreachable(_name):
        raise ExternalCommandError("Cannot connect to the Docker daemon", returncode=1)

    runtime.probe = unreachable

    assert _launcher(tmp_path, runtime).run("start") == 1
    assert runtime.names() == []


@pytest.mark.parametrize("status", ["restarting", "paused"])
def test_stop_accepts_live_but_not_running_container(tmp_path, status):
    runtime = FakeRuntime(status=status)

    assert _launcher(tmp_path, runtime).run("stop") == 0
    assert ("stop", "seafile", 10) in runtime.calls


def test_enter_failure_surfaces_exit_code(tmp_path):
    runtime = FakeRuntime(status="running", exec_returncode=126)
    launcher = _launcher(tmp_path, runtime)

    with pytest.raises(ExternalCommandError) as exc_info:
        launcher.enter()

    assert exc_info.value.returncode == 126
    assert launcher.run("enter") == 1


def test_enter_opens_interactive_shell(tmp_path):
    runtime = FakeRuntime(status="running")

    assert _launcher(tmp_path, runtime).run("enter") == 0
    assert ("exec", "seafile", ("/bin/bash",)) in runtime.calls
