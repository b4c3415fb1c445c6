# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Torque backend for qjob.

Translates task submission, status queries and kills into `qsub`, `qstat -x`
and `qdel` commands, and parses their output into native job ids and
canonical job states.
"""

from .torque import Torque

__all__ = [
    "Torque",
]
