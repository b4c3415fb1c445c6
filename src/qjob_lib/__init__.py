# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core implementation of the qjob library and command-line tool.

This package runs batches of independent tasks on remote compute clusters.
It defines the canonical task states, adapters translating operations into
the commands of individual schedulers (Torque/PBS and Sun Grid Engine), an
SSH transport for talking to the cluster head node, and the `Job` handle used
to query, kill and clean up a submitted batch.
"""

from .qjob import __version__, cli

__all__ = [
    "__version__",
    "cli",
    "batch",
    "core",
    "job",
    "properties",
    "submit",
    "transport",
]
