# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Core infrastructure for qjob.

This module collects the foundational pieces used across the qjob codebase:
configuration, structured logging, the exception taxonomy, and shared helpers
for shell escaping, YAML handling, and workspace path allocation.
"""
