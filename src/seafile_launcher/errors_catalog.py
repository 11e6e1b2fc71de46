"""Actionable error catalog for the Seafile launcher."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "not_started": {
        "what": "Container '{name}' is not running.",
        "next": "Run `launcher start` first.",
    },
    "bootstrap_conf_missing": {
        "what": "The file {path} doesn't exist.",
        "next": "Create the bootstrap configuration (see bootstrap/bootstrap.conf.sample) and retry.",
    },
    "version_mismatch": {
        "what": "Your data is at version {last_version}, the launcher is at version {current_version}.",
        "next": "Run `launcher rebuild` to upgrade.",
    },
    "version_stamp_missing": {
        "what": "Version stamp file not found or unreadable: {path}",
        "next": "Run `launcher bootstrap` to provision the data directory.",
    },
    "version_stamp_invalid": {
        "what": "Version stamp file {path} contains an invalid version: '{value}'",
        "next": "Write a MAJOR.MINOR.PATCH version into the stamp file.",
    },
    "gc_failed": {
        "what": "Seafile garbage collection failed with exit code {returncode}.",
        "next": "Inspect the container logs with `launcher logs`.",
    },
    "ports_unresolved": {
        "what": "Could not determine the ports to publish: {reason}",
        "next": "Check the port settings in bootstrap/bootstrap.conf.",
    },
    "docker_missing": {
        "what": "Docker is not installed or not on PATH.",
        "next": "Install Docker {min_version} or newer, or pass --skip-prereqs.",
    },
    "git_missing": {
        "what": "Git is not installed or not on PATH.",
        "next": "Install Git {min_version} or newer, or run with --no-self-update.",
    },
    "tool_too_old": {
        "what": "{tool} version {found} is older than the required {min_version}.",
        "next": "Upgrade {tool}, or pass --skip-prereqs if you know it works.",
    },
    "self_update_unverified": {
        "what": "Upstream commit {commit} of the launcher could not be verified.",
        "next": "Update the launcher manually after reviewing the changes, or run with --no-self-update.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
