# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Utilities for submitting batches of tasks.

`Submitter` allocates a workspace on the cluster, stages the invoked script
together with the arguments of all tasks, and submits every task to the
scheduler in a single remote call, returning a `Job` handle.

The `submit` command exposes the same workflow on the command line and can
optionally wait for the tasks to finish and collect their outputs.
"""

from .submitter import Submitter

__all__ = ["Submitter"]
