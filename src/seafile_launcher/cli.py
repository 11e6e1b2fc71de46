import logging
import os
import shlex

import click
from rich.logging import RichHandler

from .constants import CONFIG_FILE_NAME, CONTAINER_NAME
from .core import Launcher, LauncherError
from .models import LaunchContext, LaunchPaths
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _split_docker_args(value):
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value)
    try:
        return tuple(shlex.split(str(value)))
    except ValueError as exc:
        raise click.ClickException(f"Invalid --docker-args value: {exc}") from exc


class LauncherCommand(click.Command):
    """Reports usage errors with exit status 1 and remembers the raw arguments."""

    def parse_args(self, ctx, args):
        ctx.meta["raw_args"] = tuple(args)
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            exc.exit_code = 1
            raise


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command(cls=LauncherCommand)
@click.argument("action", type=click.Choice(Launcher.ACTIONS))
@click.option(
    "--skip-prereqs",
    is_flag=True,
    default=None,
    help="Don't check that docker (and git) are installed and recent enough.",
)
@click.option(
    "--docker-args",
    required=False,
    help="Extra arguments passed verbatim to every container created by the launcher.",
)
@click.option("-v", "--verbose", is_flag=True, default=None, help="Enable verbose logging")
@click.option(
    "--manual-upgrade",
    is_flag=True,
    default=None,
    help="On rebuild, print upgrade instructions instead of running the upgrade script.",
)
@click.option(
    "--self-update/--no-self-update",
    default=None,
    help="On rebuild, fast-forward the launcher checkout to a signed upstream commit first.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help=f"Path to a YAML configuration file. Defaults to {CONFIG_FILE_NAME} if present.",
)
@click.option(
    "--base-dir",
    required=False,
    type=click.Path(file_okay=False),
    help="Launcher directory holding bootstrap/, scripts/, templates/ and shared/ (default: cwd).",
)
@click.option("--log-file", type=click.Path(), help="Path to log file")
@click.pass_context
def main(
    ctx,
    action,
    skip_prereqs,
    docker_args,
    verbose,
    manual_upgrade,
    self_update,
    config,
    base_dir,
    log_file,
):
    """Manage the lifecycle of the Seafile server container.

    \b
    Actions:
      start           Start/initialize the container
      stop            Stop a running container
      restart         Restart the container
      destroy         Stop and remove the container
      enter           Open a shell to run commands inside the container
      logs            View the container logs
      bootstrap       Bootstrap the container based on a template
      rebuild         Rebuild the container (destroy old, bootstrap, start new)
      manual-upgrade  Open a one-shot container to upgrade the data by hand
      gc              Run the Seafile garbage collector
    """
    logger = logging.getLogger("seafile_launcher")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), CONFIG_FILE_NAME)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except LauncherError as exc:
        raise click.ClickException(str(exc)) from exc

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    skip_prereqs = bool(_resolve_option(skip_prereqs, config_values, "skip_prereqs", default=False))
    docker_args = _split_docker_args(_resolve_option(docker_args, config_values, "docker_args"))
    manual_upgrade = bool(
        _resolve_option(manual_upgrade, config_values, "manual_upgrade", default=False)
    )
    self_update = bool(_resolve_option(self_update, config_values, "self_update", default=False))
    base_dir = _resolve_option(base_dir, config_values, "base_dir", default=os.getcwd())
    log_file = _resolve_option(log_file, config_values, "log_file")
    container_name = str(
        _resolve_option(None, config_values, "container_name", default=CONTAINER_NAME)
    )

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    context = LaunchContext(
        paths=LaunchPaths(base_dir=os.path.abspath(str(base_dir))),
        verbose=verbose,
        skip_prereqs=skip_prereqs,
        docker_args=docker_args,
        manual_upgrade=manual_upgrade,
        self_update=self_update,
        container_name=container_name,
        argv=ctx.meta.get("raw_args", ()),
    )

    launcher = Launcher(context)
    raise SystemExit(launcher.run(action))


if __name__ == "__main__":
    main()
