"""Fixed names, versions and layout used by the launcher."""

SEAFILE_VERSION = "6.1.9"

CONTAINER_NAME = "seafile"
BASE_IMAGE = f"seafileorg/server:{SEAFILE_VERSION}"
LOCAL_IMAGE = "local_seafile/server:latest"

STOP_TIMEOUT_SECONDS = 10
LOG_TAIL_LINES = 20

DOCKER_MIN_VERSION = "1.8.0"
GIT_MIN_VERSION = "1.8.0"
SELF_UPDATE_BRANCH = "master"

CONFIG_FILE_NAME = ".launcher.yml"

SHARED_DIR = "shared"
BOOTSTRAP_DIR = "bootstrap"
SCRIPTS_DIR = "scripts"
TEMPLATES_DIR = "templates"
BOOTSTRAP_CONF = "bootstrap.conf"
GENERATED_DOCKERFILE = ("generated", "Dockerfile")
VERSION_STAMP = ("seafile", "seafile-data", "current_version")

INIT_CMD = "/sbin/my_init"
START_SCRIPT = "/scripts/start.py"
BOOTSTRAP_SCRIPT = "/scripts/bootstrap.py"
UPGRADE_SCRIPT = "/scripts/upgrade.py"
GC_SCRIPT = "/scripts/gc.sh"

DIR_MODE = 0o755
