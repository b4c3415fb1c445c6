# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Submitted jobs and their remote workspaces.

`Job` aggregates the tasks of one batch submission and exposes their
combined state, killing, and cleanup of the workspace. `Workspace` provides
typed reading and writing of text and YAML files inside the workspace.
"""

from .job import Job
from .workspace import Workspace

__all__ = [
    "Job",
    "Workspace",
]
