# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Configuration system for qjob.

This module defines dataclasses representing all configurable aspects of qjob,
including environment variables, cluster defaults, SSH settings, workspace
layout, names of the artifacts written into a job's workspace, and global defaults.

The `Config` class loads user configuration from a TOML file (if available)
and provides a globally accessible `CFG` instance.
"""

import os
import tomllib
from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Self


@dataclass
class EnvironmentVariables:
    """Environment variable names used by qjob."""

    # Enables qjob debug mode.
    debug_mode: str = "QJOB_DEBUG"
    # Explicit path to the qjob config file.
    config: str = "QJOB_CONFIG"
    # Name of the scheduler backend to use.
    scheduler: str = "QJOB_SCHEDULER"
    # Hostname of the cluster head node.
    host: str = "QJOB_HOST"
    # Username on the cluster head node.
    user: str = "QJOB_USER"


@dataclass
class ClusterSettings:
    """Default connection settings for the cluster head node."""

    # Hostname of the head node.
    host: str | None = None
    # Username on the head node. If not set, the user is prompted.
    user: str | None = None
    # SSH port of the head node.
    port: int = 22
    # Name of the scheduler backend running on the cluster.
    scheduler: str | None = None


@dataclass
class SSHSettings:
    """Settings for the SSH transport."""

    # Timeout for establishing an SSH connection in seconds.
    connect_timeout: int = 60
    # Maximum number of attempts when authenticating with a password.
    auth_attempts: int = 3


@dataclass
class WorkspaceSettings:
    """Layout of the remote job workspaces."""

    # Name of the directory holding all job workspaces.
    jobs_dir: str = "jobs"
    # Number of random bits used for the name of a workspace directory.
    id_bits: int = 53


@dataclass
class ArtifactNames:
    """Names of the files written into a job's workspace."""

    # Structured-data file holding the arguments of all tasks.
    arguments: str = "arguments.yaml"
    # Script containing the submission commands of all tasks.
    command_script: str = "command.sh"
    # Suffix of the per-task execution log.
    diary_suffix: str = "_diary.txt"
    # Suffix of the per-task structured-data output file.
    output_suffix: str = "_output.yaml"
    # Field of the output file holding the return values.
    output_field: str = "out"
    # Prefix of the argument fields in the arguments file.
    argument_prefix: str = "arg"
    # Helper module copied into every workspace for loading task arguments.
    remote_module: str = "qjob_remote.py"


@dataclass
class RemoteRuntime:
    """Settings of the runtime invoked on the compute nodes."""

    # Python interpreter used to run the tasks.
    python: str = "python3"
    # Shell used to execute the submission script.
    shell: str = "sh"


@dataclass
class SubmitSettings:
    """Settings for `qjob submit`."""

    # Interval (in seconds) between successive status queries when waiting for a job.
    poll_interval: int = 30


@dataclass
class DateFormats:
    """Date and time format strings."""

    # Standard date format used by qjob.
    standard: str = "%Y-%m-%d %H:%M:%S"


@dataclass
class ExitCodes:
    """Exit codes used for various errors."""

    # Default error code for failures of qjob commands.
    default: int = 91
    # Returned when the user aborts authentication.
    authentication: int = 92
    # Returned when the job was interrupted and its tasks killed.
    interrupted: int = 93
    # Returned on an unexpected or unhandled error.
    unexpected_error: int = 99


@dataclass
class StateColors:
    """Color scheme for CanonicalState display."""

    done: str = "bright_green"
    held: str = "bright_magenta"
    queued: str = "bright_magenta"
    running: str = "bright_blue"
    transferring: str = "bright_cyan"
    waiting: str = "bright_magenta"
    error: str = "bright_red"


@dataclass
class Config:
    """Main configuration for qjob."""

    env_vars: EnvironmentVariables = field(default_factory=EnvironmentVariables)
    cluster: ClusterSettings = field(default_factory=ClusterSettings)
    ssh: SSHSettings = field(default_factory=SSHSettings)
    workspace: WorkspaceSettings = field(default_factory=WorkspaceSettings)
    artifacts: ArtifactNames = field(default_factory=ArtifactNames)
    runtime: RemoteRuntime = field(default_factory=RemoteRuntime)
    submit: SubmitSettings = field(default_factory=SubmitSettings)
    date_formats: DateFormats = field(default_factory=DateFormats)
    exit_codes: ExitCodes = field(default_factory=ExitCodes)
    state_colors: StateColors = field(default_factory=StateColors)

    # Name of the qjob binary.
    binary_name: str = "qjob"

    @classmethod
    def load(cls, config_path: Path | None = None) -> Self:
        """
        Load configuration from TOML file or use defaults.

        Args:
            config_path: Explicit path to config file. If None, searches standard locations.

        Returns:
            Config instance with loaded or default values.
        """
        if config_path is None:
            config_path = Config._get_config_path()

        try:
            if config_path and config_path.exists():
                with config_path.open("rb") as f:
                    config_data = tomllib.load(f)
                return _dict_to_dataclass(cls, config_data)
        except Exception as e:
            raise ValueError(f"Could not read qjob config '{config_path}': {e}.") from e

        # no config found - use defaults
        return cls()

    @staticmethod
    def _get_config_path() -> Path | None:
        """
        Search for config file in standard locations (XDG compliant).
        Returns the first existing config file, or None.
        """
        config_locations: list[Path | None] = [
            # 1. Explicit environment variable (highest priority)
            Path(env_path)
            if (env_path := os.getenv(EnvironmentVariables.config))
            else None,
            # 2. Current working directory
            Path.cwd() / "qjob_config.toml",
            # 3. XDG config home
            Path(os.getenv("XDG_CONFIG_HOME", Path.home() / ".config"))
            / "qjob"
            / "config.toml",
        ]

        for path in config_locations:
            if path and path.is_file():
                return path

        return None


def _dict_to_dataclass(cls, data: dict[str, Any]):
    """
    Recursively convert a dictionary to a dataclass instance.
    Handles nested dataclasses properly.
    """
    if not is_dataclass(cls):
        return data

    field_values = {}
    for field_info in fields(cls):
        field_name = field_info.name
        field_type = field_info.type

        if field_name in data:
            value = data[field_name]
            if is_dataclass(field_type) and isinstance(value, dict):
                field_values[field_name] = _dict_to_dataclass(field_type, value)
            else:
                field_values[field_name] = value

    return cls(**field_values)


# Global configuration for qjob.
CFG = Config.load()
