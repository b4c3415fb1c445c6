# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Value types describing qjob jobs.

Includes the canonical task states shared by all schedulers, the handle
of a single submitted task, and the Python function invoked by the tasks.
"""
