# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
General utility functions for the qjob library.

This module provides helpers for YAML I/O, shell escaping of remote commands,
allocation of remote workspace paths, and normalization of user-supplied
task arguments and scheduler directives.
"""

import random
from collections.abc import Sequence
from functools import lru_cache
from pathlib import PurePosixPath
from typing import Any

import yaml

from .config import CFG
from .error import QJobError
from .logger import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def load_yaml_dumper() -> type[yaml.SafeDumper]:
    """Return the fastest available safe YAML dumper (CSafeDumper if possible)."""
    try:
        from yaml import CSafeDumper as SafeDumper  # type: ignore[attr-defined]

        logger.debug("Loaded YAML CSafeDumper.")
    except ImportError:
        from yaml import SafeDumper

        logger.debug("Loaded default YAML dumper.")
    return SafeDumper


@lru_cache(maxsize=1)
def load_yaml_flat_dumper() -> type[yaml.SafeDumper]:
    """
    Return a safe YAML dumper that never emits anchors and aliases.

    Objects shared between several places of a record are written out in full
    at every place, so each top-level field can be loaded on its own.
    """

    class FlatDumper(load_yaml_dumper()):
        def ignore_aliases(self, data: Any) -> bool:
            return True

    return FlatDumper


@lru_cache(maxsize=1)
def load_yaml_loader() -> type[yaml.SafeLoader]:
    """Return the fastest available safe YAML loader (CSafeLoader if possible)."""
    try:
        from yaml import (
            CSafeLoader as SafeLoader,  # ty: ignore[possibly-missing-import]
        )

        logger.debug("Loaded YAML CLoader.")
    except ImportError:
        from yaml import SafeLoader

        logger.debug("Loaded default YAML loader.")

    return SafeLoader


def shell_escape(arg: str) -> str:
    """
    Quote a string so that it is passed verbatim as a single argument through a POSIX shell.

    The string is wrapped in single quotes and every embedded single quote
    is replaced by `'\\''`. Newlines and all other characters survive unchanged.

    Args:
        arg (str): The string to quote.

    Returns:
        str: The quoted string.
    """
    return "'" + arg.replace("'", "'\\''") + "'"


def allocate_workspace_path(working_dir: str | None = None) -> PurePosixPath:
    """
    Construct a unique path for a new remote job workspace.

    The path has the form `[working_dir/]jobs/<random integer>`, where the integer
    is drawn uniformly from `[1, 2^53)`. Relative paths are relative to the
    home directory of the remote user.

    Args:
        working_dir (str | None): Optional directory to place the jobs root into.

    Returns:
        PurePosixPath: Path to the new workspace.
    """
    identifier = random.SystemRandom().randrange(1, 2**CFG.workspace.id_bits)
    root = PurePosixPath(CFG.workspace.jobs_dir)
    if working_dir:
        root = PurePosixPath(working_dir) / root

    return root / str(identifier)


def is_workspace_path(path: PurePosixPath) -> bool:
    """
    Check that the path points to a workspace directory allocated by `allocate_workspace_path`.

    Such a path ends with `<jobs_dir>/<integer>`, where `jobs_dir` may itself be
    a nested path, and does not contain any `..` component.
    """
    root = PurePosixPath(CFG.workspace.jobs_dir).parts
    if not root or ".." in path.parts or ".." in root:
        return False

    parent = path.parent.parts
    return (
        path.name.isdigit()
        and len(parent) >= len(root)
        and parent[len(parent) - len(root) :] == root
    )


def normalize_arguments(args: Sequence[Any]) -> list[list[Any]]:
    """
    Convert a task list into a list of positional-argument lists.

    Every element of `args` describes one task. Lists and tuples are treated as
    the positional arguments of the task, any other value becomes the only
    argument of the task.

    Args:
        args (Sequence[Any]): The caller-supplied task list.

    Returns:
        list[list[Any]]: One list of positional arguments per task.

    Raises:
        QJobError: If the task list is a string or a mapping.
    """
    if isinstance(args, str | bytes | dict):
        raise QJobError(
            f"Tasks must be provided as a sequence, not as '{type(args).__name__}'."
        )

    return [list(a) if isinstance(a, list | tuple) else [a] for a in args]


def normalize_directives(directives: str | Sequence[str] | None) -> list[str]:
    """
    Convert scheduler directives into a list of directive strings.

    Directives are opaque to qjob: they are neither parsed nor validated.
    Empty strings are dropped.
    """
    if not directives:
        return []

    if isinstance(directives, str):
        return [directives]

    return [d for d in directives if d]
