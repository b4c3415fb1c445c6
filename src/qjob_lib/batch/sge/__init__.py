# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Sun Grid Engine backend for qjob.

Translates task submission, status queries and kills into `qsub`,
`qstat -u <user> -xml` and `qdel` commands, and parses their output into
native job ids and canonical job states.
"""

from .sge import SGE

__all__ = [
    "SGE",
]
