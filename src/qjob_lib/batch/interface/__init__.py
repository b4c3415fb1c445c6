# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Abstractions for integrating qjob with cluster schedulers.

This module defines the interfaces that allow qjob to talk to multiple
schedulers through a unified API:

- `SchedulerInterface`: the abstract interface every scheduler backend
  implements. It translates submissions, status queries and kills into
  scheduler commands and parses the scheduler's responses into native job ids
  and canonical job states.

- `SchedulerMeta`: a metaclass that registers available scheduler backends
  and selects one by name, from an environment variable, or from the
  configuration. The `@scheduler` decorator registers implementations.
"""

from .interface import SchedulerInterface
from .meta import SchedulerMeta, scheduler

__all__ = [
    "SchedulerInterface",
    "SchedulerMeta",
    "scheduler",
]
