# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Scheduler support for qjob.

This module groups all components that allow qjob to interact with cluster
schedulers: the abstract scheduler interface with its registry, and the
concrete backends for Torque/PBS and Sun Grid Engine.
"""

# import so that these schedulers are registered but do not export them from here
from .sge import SGE as _SGE
from .torque import Torque as _Torque

_SGE, _Torque
